import asyncio
import os
import sys

import httpx
import pytest

CURRENT_DIR = os.path.dirname(__file__)
PROJECT_ROOT = os.path.dirname(CURRENT_DIR)
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from portal.infrastructure.backend import BackendClient
from portal.infrastructure.urls import UrlRegistry

BACKEND = "http://lms.test"


class FakeLMS:
    """Поддельный LMS backend поверх httpx.MockTransport.

    Маршруты: (метод, путь) -> (код, тело) или исключение транспорта.
    Все запросы сохраняются в calls.
    """

    def __init__(self):
        self.routes = {}
        self.calls: list[httpx.Request] = []

    def ok(self, method, path, data):
        self.routes[(method, path)] = (200, {"success": True, "data": data}, None)

    def fail(self, method, path, message="", status=200):
        # success=false в конверте
        self.routes[(method, path)] = (status, {"success": False, "message": message}, None)

    def http_error(self, method, path, status=500, body=None):
        self.routes[(method, path)] = (status, body, None)

    def down(self, method, path):
        self.routes[(method, path)] = (None, None, "connect")

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.calls.append(request)
        key = (request.method, request.url.path)
        if key not in self.routes:
            return httpx.Response(404, json={"success": False, "message": "Not found"})
        status, body, error = self.routes[key]
        if error:
            raise httpx.ConnectError("connection refused", request=request)
        if body is None:
            return httpx.Response(status)
        return httpx.Response(status, json=body)

    def client(self) -> BackendClient:
        return BackendClient(httpx.AsyncClient(transport=httpx.MockTransport(self.handler)))

    def requested(self, method=None) -> list[str]:
        return [f"{r.method} {r.url.path}" for r in self.calls if method is None or r.method == method]


@pytest.fixture(autouse=True)
def setup_test_environment(monkeypatch):
    """Настройка тестового окружения"""
    monkeypatch.setenv("BACKEND_URL", BACKEND)
    monkeypatch.setenv("ENVIRONMENT", "development")


@pytest.fixture
def lms():
    return FakeLMS()


@pytest.fixture
def backend(lms):
    return lms.client()


@pytest.fixture
def urls():
    return UrlRegistry(backend_url=BACKEND)


@pytest.fixture
def run():
    """Запуск корутины view в отдельном event loop"""
    return asyncio.run


@pytest.fixture
def client(lms, urls):
    """Тестовый клиент портала с поддельным backend"""
    from fastapi.testclient import TestClient
    from portal.infrastructure.backend import get_backend
    from portal.infrastructure.urls import get_registry
    from portal.main import app

    async def override_get_backend():
        async with httpx.AsyncClient(transport=httpx.MockTransport(lms.handler)) as http:
            yield BackendClient(http)

    app.dependency_overrides[get_backend] = override_get_backend
    app.dependency_overrides[get_registry] = lambda: urls
    yield TestClient(app)
    app.dependency_overrides.clear()
