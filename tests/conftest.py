"""Shared fixtures: a client wired to an in-memory transport."""

import json

import httpx
import pytest

from btcpay.client import Client, ClientConfig
from btcpay.keys import generate_pem


class RecordingTransport:
    """httpx.MockTransport handler that records requests and replays a response."""

    def __init__(self, status_code: int = 200, body=b"{}"):
        self.status_code = status_code
        self.body = body
        self.requests: list[httpx.Request] = []

    def respond(self, status_code: int, body) -> None:
        self.status_code = status_code
        self.body = body

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        body = self.body
        if not isinstance(body, (bytes, str)):
            body = json.dumps(body)
        return httpx.Response(self.status_code, content=body)

    @property
    def last(self) -> httpx.Request:
        return self.requests[-1]


@pytest.fixture(scope="session")
def pem():
    return generate_pem()


@pytest.fixture
def transport():
    return RecordingTransport()


@pytest.fixture
def make_client(transport, pem):
    created = []

    def _make(token: str = "", **config_kwargs):
        http = httpx.Client(transport=httpx.MockTransport(transport))
        config = ClientConfig(http_client=http, pem=pem, **config_kwargs)
        client = Client("http://test.com", token, config=config)
        created.append(http)
        return client

    yield _make
    for http in created:
        http.close()
