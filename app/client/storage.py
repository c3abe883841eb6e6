"""
Almacenamiento clave/valor duradero del lado cliente.

Misma idea que localStorage en el navegador: claves y valores son strings.
"""
import json
import logging
import os
import tempfile
import threading
from pathlib import Path
from typing import Dict, Optional, Protocol, Union

logger = logging.getLogger("client.storage")


class Storage(Protocol):
    def get_item(self, key: str) -> Optional[str]:
        ...

    def set_item(self, key: str, value: str) -> None:
        ...

    def remove_item(self, key: str) -> None:
        ...


class MemoryStorage:
    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._items: Dict[str, str] = dict(initial or {})

    def get_item(self, key: str) -> Optional[str]:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._items[key] = value

    def remove_item(self, key: str) -> None:
        self._items.pop(key, None)


class FileStorage:
    """
    Guarda todas las claves en un único documento JSON.

    El fichero se relee en cada acceso, así un cambio hecho por otro
    proceso se ve en la siguiente lectura.

    Dentro del proceso, set_item/remove_item se serializan con un lock por
    fichero (compartido entre instancias). Entre procesos no hay bloqueo:
    dos escrituras simultáneas de claves distintas pueden perder una
    (gana la última). La sesión del cliente la escribe un único proceso.
    """

    _locks: Dict[Path, threading.Lock] = {}
    _locks_guard = threading.Lock()

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)
        key = self.path.resolve()
        with self._locks_guard:
            self._lock = self._locks.setdefault(key, threading.Lock())

    def _load(self) -> Dict[str, str]:
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return {}

        try:
            data = json.loads(raw)
        except ValueError:
            logger.warning("storage_file_corrupt", extra={"path": str(self.path)})
            return {}

        if not isinstance(data, dict):
            logger.warning("storage_file_corrupt", extra={"path": str(self.path)})
            return {}
        return {k: v for k, v in data.items() if isinstance(v, str)}

    def _save(self, items: Dict[str, str]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=self.path.parent, prefix=f".{self.path.name}.")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(items, fh, ensure_ascii=False)
            os.replace(tmp_path, self.path)
        except BaseException:
            Path(tmp_path).unlink(missing_ok=True)
            raise

    def get_item(self, key: str) -> Optional[str]:
        return self._load().get(key)

    def set_item(self, key: str, value: str) -> None:
        with self._lock:
            items = self._load()
            items[key] = value
            self._save(items)

    def remove_item(self, key: str) -> None:
        with self._lock:
            items = self._load()
            if key in items:
                del items[key]
                self._save(items)
