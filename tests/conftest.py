import httpx
import pytest
import pytest_asyncio
from fastapi.testclient import TestClient

from app.config import Settings, get_settings
from app.main import app, get_http_client

PREDICTIONS_URL = "https://api.replicate.com/v1/predictions"


def prediction(status, output=None, error=None, id="p1"):
    return {
        "id": id,
        "status": status,
        "output": output,
        "error": error,
        "urls": {
            "get": f"{PREDICTIONS_URL}/{id}",
            "cancel": f"{PREDICTIONS_URL}/{id}/cancel",
        },
    }


class FakeUpstream:
    """
    Stands in for every outbound host. Replies are queued per (method, url)
    as (status, httpx.Response kwargs) pairs or exceptions to raise; the
    last reply keeps repeating.
    """

    def __init__(self):
        self.requests = []
        self._routes = {}

    def on(self, method, url, *replies):
        self._routes[(method, url)] = list(replies)

    def handler(self, request):
        self.requests.append(request)
        replies = self._routes.get((request.method, str(request.url)))
        if not replies:
            raise AssertionError(f"unexpected request {request.method} {request.url}")
        reply = replies.pop(0) if len(replies) > 1 else replies[0]
        if isinstance(reply, Exception):
            raise reply
        status, kwargs = reply
        return httpx.Response(status, **kwargs)


@pytest.fixture
def settings():
    return Settings(api_token="test-token", poll_interval=0)


@pytest.fixture
def upstream():
    return FakeUpstream()


@pytest_asyncio.fixture
async def http(upstream):
    async with httpx.AsyncClient(transport=httpx.MockTransport(upstream.handler)) as client:
        yield client


@pytest.fixture
def client(settings, upstream):
    async def http_override():
        async with httpx.AsyncClient(transport=httpx.MockTransport(upstream.handler)) as http:
            yield http

    app.dependency_overrides[get_settings] = lambda: settings
    app.dependency_overrides[get_http_client] = http_override
    yield TestClient(app)
    app.dependency_overrides.clear()
