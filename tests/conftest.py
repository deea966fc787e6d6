import httpx
import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool

import recommend
from config import Settings
from database import DatasetStore, SnapshotSlot, init_db, make_engine, make_session_factory
from main import app, get_settings, get_store


GEMINI_TEST_URL = "https://gemini.test/v1beta/models"


def gemini_text_payload(*texts: str) -> dict:
    return {
        "candidates": [
            {
                "content": {"role": "model", "parts": [{"text": t} for t in texts]},
                "finishReason": "STOP",
            }
        ]
    }


class GeminiStub:
    """Canned upstream responses; records every request it receives."""

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.status_code = 200
        self.payload: dict = gemini_text_payload("## Summary\nFix it.")
        self.raw: str | None = None
        self.error: Exception | None = None

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        if self.raw is not None:
            return httpx.Response(self.status_code, text=self.raw, request=request)
        return httpx.Response(self.status_code, json=self.payload, request=request)


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture
def session_factory():
    engine = make_engine("sqlite://", poolclass=StaticPool)
    init_db(engine)
    yield make_session_factory(engine)
    engine.dispose()


@pytest.fixture
def store(session_factory) -> DatasetStore:
    s = DatasetStore(SnapshotSlot(session_factory))
    s.load()
    return s


@pytest.fixture
def settings() -> Settings:
    return Settings(google_api_key="test-key", gemini_base_url=GEMINI_TEST_URL)


@pytest.fixture
def gemini(monkeypatch: pytest.MonkeyPatch) -> GeminiStub:
    stub = GeminiStub()
    transport = httpx.MockTransport(stub.handler)
    real_async_client = httpx.AsyncClient

    class MockAsyncClient:
        def __init__(self, *args, **kwargs):
            self._client = real_async_client(transport=transport, timeout=kwargs.get("timeout"))

        async def __aenter__(self):
            return self._client

        async def __aexit__(self, exc_type, exc, tb):
            await self._client.aclose()

    monkeypatch.setattr(recommend.httpx, "AsyncClient", MockAsyncClient)
    return stub


@pytest.fixture
def client(store: DatasetStore, settings: Settings):
    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[get_settings] = lambda: settings
    test_client = TestClient(app)
    yield test_client
    test_client.close()
    app.dependency_overrides.clear()
