"""Shared fixtures: a scripted fake of the Up API behind httpx.MockTransport."""

import json

import httpx
import pytest

from up_banking_mcp.up.client import UpClient

TOKEN = "test-token-123"
API_PREFIX = "/api/v1"


def page_link(path: str, cursor: str) -> str:
    return f"https://api.up.com.au/api/v1{path}?page[size]=20&page[after]={cursor}"


class FakeUpApi:
    """
    Routes (method, path) to queued responses and records every request.

    A route with several queued responses pops them in order and keeps
    repeating the last one.
    """

    def __init__(self):
        self.requests = []
        self._routes = {}

    def add(self, method, path, json=None, status=200, exc=None):
        self._routes.setdefault((method, path), []).append((status, json, exc))

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        if path.startswith(API_PREFIX):
            path = path[len(API_PREFIX):]
        queue = self._routes.get((request.method, path))
        if not queue:
            return httpx.Response(404, json={"errors": [{"status": "404", "title": "Not Found"}]})
        status, body, exc = queue.pop(0) if len(queue) > 1 else queue[0]
        if exc is not None:
            raise exc
        if body is None:
            return httpx.Response(status)
        return httpx.Response(status, json=body)

    def body(self, index: int = -1):
        return json.loads(self.requests[index].content)

    def params(self, index: int = -1):
        return dict(self.requests[index].url.params)


@pytest.fixture
def api():
    return FakeUpApi()


@pytest.fixture
def client(api):
    return UpClient(TOKEN, transport=httpx.MockTransport(api.handler))


@pytest.fixture
def account():
    return {
        "type": "accounts",
        "id": "acc-1",
        "attributes": {
            "displayName": "Spending",
            "accountType": "TRANSACTIONAL",
            "ownershipType": "INDIVIDUAL",
            "balance": {"currencyCode": "AUD", "value": "12.34", "valueInBaseUnits": 1234},
            "createdAt": "2024-01-01T00:00:00+10:00",
        },
        "relationships": {"transactions": {"links": {"related": "https://api.up.com.au/api/v1/accounts/acc-1/transactions"}}},
        "links": {"self": "https://api.up.com.au/api/v1/accounts/acc-1"},
    }


def make_transaction(tx_id: str, description: str = "Coffee", tags=()):
    return {
        "type": "transactions",
        "id": tx_id,
        "attributes": {
            "status": "SETTLED",
            "description": description,
            "amount": {"currencyCode": "AUD", "value": "-4.50", "valueInBaseUnits": -450},
        },
        "relationships": {
            "category": {"data": None},
            "tags": {"data": [{"type": "tags", "id": tag} for tag in tags]},
        },
    }
