import json
from typing import Callable, List

import httpx
import pytest

from whaapy.credentials.models import WhaapyCredential
from whaapy.webhooks.registration import StaticDataStore
from whaapy.workflows.engine.nodes.registry import NodeRegistry

API_KEY = "wha_test_key_123456"
BASE_URL = "https://api.whaapy.test"


@pytest.fixture
def credential() -> WhaapyCredential:
    return WhaapyCredential(apiKey=API_KEY, baseUrl=BASE_URL)


@pytest.fixture
def credential_data() -> dict:
    return {"apiKey": API_KEY, "baseUrl": BASE_URL}


@pytest.fixture
def store() -> StaticDataStore:
    return StaticDataStore()


@pytest.fixture
def registry():
    NodeRegistry.reset()
    NodeRegistry.initialize()
    yield NodeRegistry
    NodeRegistry.reset()


class RecordingTransport:
    """
    Mock transport that records every request and answers from a handler.

    ``calls`` keeps (method, path, query, json body) tuples in order.
    """

    def __init__(self, handler: Callable[[httpx.Request], httpx.Response]):
        self.handler = handler
        self.requests: List[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.handler(request)

    @property
    def calls(self):
        return [
            (
                request.method,
                request.url.path,
                dict(request.url.params),
                json.loads(request.content) if request.content else None,
            )
            for request in self.requests
        ]

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self))


@pytest.fixture
def mock_api():
    """Factory: ``mock_api(handler)`` returns a RecordingTransport."""
    return RecordingTransport


def json_response(data, status_code: int = 200) -> httpx.Response:
    return httpx.Response(status_code, json=data)
