import json
import time
from typing import Any, Optional

import httpx
import structlog

from ..config import settings
from .metrics import backend_requests_total, backend_request_duration_seconds

logger = structlog.get_logger()


class BackendError(Exception):
    """Ошибка обращения к LMS backend.

    kind:
      transport - сеть/таймаут, ответа нет
      http      - ответ с кодом не 2xx
      logical   - конверт с success=false (или тело не JSON)

    message - текст от backend (может быть пустым), его показывают пользователю.
    """

    def __init__(self, message: str = "", kind: str = "http", status_code: Optional[int] = None):
        super().__init__(message or f"{kind} error (status={status_code})")
        self.message = message
        self.kind = kind
        self.status_code = status_code

    @property
    def is_not_found(self) -> bool:
        return self.kind == "http" and self.status_code == 404

    def __repr__(self) -> str:
        return f"BackendError(kind={self.kind!r}, status_code={self.status_code!r}, message={self.message!r})"


def _form_parts(fields: dict[str, Any]) -> list[tuple[str, tuple[None, bytes]]]:
    # httpx отправляет multipart только при наличии files, поэтому
    # обычные поля формы передаются как части без имени файла
    return [(name, (None, str(value).encode("utf-8"))) for name, value in fields.items()]


class BackendClient:
    def __init__(self, http: httpx.AsyncClient):
        self.http = http

    async def request(
        self,
        method: str,
        url: str,
        *,
        token: Optional[str] = None,
        json_body: Any = None,
        files: Optional[list] = None,
        headers: Optional[dict[str, str]] = None,
    ) -> Any:
        """Выполнить запрос и вернуть поле data из конверта {success, data, message}."""
        req_headers = dict(headers or {})
        if token:
            req_headers["Authorization"] = f"Bearer {token}"

        start_time = time.time()
        try:
            response = await self.http.request(
                method, url, json=json_body, files=files, headers=req_headers
            )
        except httpx.HTTPError as exc:
            self._record(method, url, "transport", start_time, error=str(exc))
            raise BackendError(kind="transport") from exc

        payload = None
        if response.content:
            try:
                payload = response.json()
            except (json.JSONDecodeError, UnicodeDecodeError):
                payload = None

        if response.is_error:
            message = payload.get("message") if isinstance(payload, dict) else None
            self._record(method, url, "http", start_time, status_code=response.status_code)
            raise BackendError(message or "", kind="http", status_code=response.status_code)

        if not response.content:
            self._record(method, url, "ok", start_time, status_code=response.status_code)
            return None

        if not isinstance(payload, dict):
            self._record(method, url, "logical", start_time, status_code=response.status_code)
            raise BackendError(kind="logical", status_code=response.status_code)

        if payload.get("success") is False:
            self._record(method, url, "logical", start_time, status_code=response.status_code)
            raise BackendError(payload.get("message") or "", kind="logical",
                               status_code=response.status_code)

        self._record(method, url, "ok", start_time, status_code=response.status_code)
        return payload.get("data")

    def _record(self, method: str, url: str, outcome: str, start_time: float, **extra):
        duration = time.time() - start_time
        backend_requests_total.labels(method=method, outcome=outcome).inc()
        backend_request_duration_seconds.labels(method=method).observe(duration)
        log = logger.info if outcome == "ok" else logger.warning
        log(
            "backend_request",
            method=method,
            url=url,
            outcome=outcome,
            duration_ms=round(duration * 1000, 2),
            **extra,
        )

    async def get(self, url: str, token: Optional[str] = None) -> Any:
        return await self.request("GET", url, token=token)

    async def post(self, url: str, body: Any = None, token: Optional[str] = None) -> Any:
        return await self.request("POST", url, token=token, json_body=body if body is not None else {})

    async def delete(self, url: str, token: Optional[str] = None) -> Any:
        return await self.request("DELETE", url, token=token)

    async def send_form(self, method: str, url: str, fields: dict[str, Any],
                        token: Optional[str] = None, extra_headers: Optional[dict] = None) -> Any:
        """multipart/form-data с текстовыми полями (создание/обновление урока)."""
        return await self.request(method, url, token=token, files=_form_parts(fields),
                                  headers=extra_headers)

    async def upload(self, url: str, files: list[tuple[str, bytes, str]],
                     token: Optional[str] = None) -> Any:
        """Загрузка файлов под именем поля files; backend возвращает их описания."""
        parts = [("files", (name, content, content_type)) for name, content, content_type in files]
        headers = {"X-Auth-Token": token} if token else None
        return await self.request("POST", url, token=token, files=parts, headers=headers)


async def get_backend():
    async with httpx.AsyncClient(timeout=settings.REQUEST_TIMEOUT) as http:
        yield BackendClient(http)
