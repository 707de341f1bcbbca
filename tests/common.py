from http import HTTPStatus
from typing import Any

import httpx


class MockResponse:
    def __init__(self, status_code: int, payload: Any = None, text: str = "") -> None:
        self.status_code = status_code
        self._payload = payload if payload is not None else {}
        self.text = text

    def json(self) -> Any:
        return self._payload


class MockAsyncClient:
    """Minimal async context-manager mock for httpx.AsyncClient.

    Every POST is recorded in `posts` so tests can inspect what went on the wire.
    """

    def __init__(self, response: MockResponse, **kwargs: Any) -> None:
        self._response = response
        self.init_kwargs = kwargs
        self.posts: list[dict[str, Any]] = []
        self.closed = False

    async def __aenter__(self) -> "MockAsyncClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        self.closed = True
        return None

    async def post(self, url: str, **kwargs: Any) -> MockResponse:
        self.posts.append({"url": url, **kwargs})
        return self._response


class FailingAsyncClient:
    """Async client whose POST raises the given httpx error to simulate a transport failure."""

    def __init__(self, exc_type: type[httpx.RequestError], *args: Any, **kwargs: Any) -> None:
        self._exc_type = exc_type

    async def __aenter__(self) -> "FailingAsyncClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        return None

    async def post(self, url: str, **kwargs: Any) -> MockResponse:
        request = httpx.Request("POST", url)
        raise self._exc_type("Network failure", request=request)


class RecordingClientFactory:
    """Stand-in for the httpx.AsyncClient class that remembers every client it built."""

    def __init__(self, response: MockResponse) -> None:
        self._response = response
        self.clients: list[MockAsyncClient] = []

    def __call__(self, *args: Any, **kwargs: Any) -> MockAsyncClient:
        client = MockAsyncClient(self._response, **kwargs)
        self.clients.append(client)
        return client

    @property
    def last_post(self) -> dict[str, Any]:
        return self.clients[-1].posts[-1]


def ok_response(payload: Any | None = None) -> MockResponse:
    return MockResponse(
        status_code=HTTPStatus.OK,
        payload=payload if payload is not None else {"location": {"lat": 1.5, "lng": 2.5}, "accuracy": 10},
    )
