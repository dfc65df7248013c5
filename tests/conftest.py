"""Shared fixtures: a PostmanClient wired to an in-memory httpx transport."""

import httpx
import pytest

from postman_mcp.core.clients.postman import PostmanClient

API_KEY = "test-api-key"


def json_response(data, status_code=200):
    return httpx.Response(status_code=status_code, json=data)


class FakeRemote:
    """Records every request and answers from a queue of canned responses."""

    def __init__(self, *responses):
        self.requests = []
        self.responses = list(responses)

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.responses.pop(0)


@pytest.fixture
def make_client():
    """Factory returning (client, remote) for a sequence of responses."""

    def _make(*responses, api_key=API_KEY):
        remote = FakeRemote(*responses)
        client = PostmanClient(api_key, transport=httpx.MockTransport(remote))
        return client, remote

    return _make
