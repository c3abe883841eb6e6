"""
Cliente HTTP de la API.

- Siempre manda credenciales (las cookies del cliente httpx) y
  `Content-Type: application/json`.
- Cualquier respuesta no 2xx se convierte en ApiError(status, message).
- Los fallos de transporte (httpx.TransportError) se propagan tal cual.
"""
import logging
from http import HTTPStatus
from typing import Any, Dict, Mapping, Optional

import httpx

from app.client.config import ClientSettings, resolve_api_base

logger = logging.getLogger("client.api")


class ApiError(Exception):
    def __init__(self, status: int, message: str):
        super().__init__(f"{status} {message}")
        self.status = status
        self.message = message

    def as_dict(self) -> Dict[str, Any]:
        return {"status": self.status, "message": self.message}


def reason_phrase(response: httpx.Response) -> str:
    try:
        return HTTPStatus(response.status_code).phrase
    except ValueError:
        return response.reason_phrase


class ApiClient:
    def __init__(
        self,
        base_url: Optional[str] = None,
        http_client: Optional[httpx.Client] = None,
        settings: Optional[ClientSettings] = None,
    ):
        settings = settings or ClientSettings()

        if base_url is None:
            base_url = resolve_api_base(settings.API_URL, settings.DEV)
        self.base_url = base_url.rstrip("/")

        # Un cliente inyectado (p. ej. TestClient) hace de proxy del mismo origen
        self._owns_http = http_client is None
        self._http = http_client or httpx.Client(timeout=settings.REQUEST_TIMEOUT)

    def request(
        self,
        path: str,
        method: str = "GET",
        *,
        json: Any = None,
        params: Optional[Mapping[str, Any]] = None,
        headers: Optional[Mapping[str, str]] = None,
    ) -> Any:
        merged_headers = httpx.Headers({"Content-Type": "application/json"})
        merged_headers.update(headers or {})

        response = self._http.request(
            method,
            self.base_url + path,
            json=json,
            params=params,
            headers=merged_headers,
        )

        if not response.is_success:
            message = reason_phrase(response)
            try:
                body = response.json()
            except ValueError:
                body = None
            if isinstance(body, dict) and isinstance(body.get("message"), str):
                message = body["message"]

            logger.debug(
                "api_request_failed",
                extra={"method": method, "path": path, "status_code": response.status_code},
            )
            raise ApiError(response.status_code, message)

        if not response.content:
            return None
        return response.json()

    def get(self, path: str, **options: Any) -> Any:
        return self.request(path, "GET", **options)

    def post(self, path: str, json: Any = None, **options: Any) -> Any:
        return self.request(path, "POST", json=json, **options)

    def put(self, path: str, json: Any = None, **options: Any) -> Any:
        return self.request(path, "PUT", json=json, **options)

    def delete(self, path: str, **options: Any) -> Any:
        return self.request(path, "DELETE", **options)

    def close(self) -> None:
        if self._owns_http:
            self._http.close()

    def __enter__(self) -> "ApiClient":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
