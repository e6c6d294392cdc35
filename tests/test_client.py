"""
Tests for the Up API client.

HTTP is faked with httpx.MockTransport, so no real API calls are made.
"""

import httpx
import pytest

from conftest import TOKEN, make_transaction, page_link
from up_banking_mcp.up.client import BASE_URL, UpApiError, UpClient, extract_cursor


class TestConstruction:

    def test_empty_token_rejected(self):
        with pytest.raises(ValueError):
            UpClient("")

    def test_blank_token_rejected(self):
        with pytest.raises(ValueError):
            UpClient("   ")

    def test_headers(self, client):
        headers = client.get_headers()
        assert headers["Authorization"] == f"Bearer {TOKEN}"
        assert headers["Content-Type"] == "application/json"
        assert headers["Accept"] == "application/json"

    def test_token_is_trimmed(self):
        client = UpClient("  padded  ")
        assert client.get_headers()["Authorization"] == "Bearer padded"

    def test_base_url(self, client):
        assert client.get_base_url() == "https://api.up.com.au/api/v1"
        assert BASE_URL == "https://api.up.com.au/api/v1"

    def test_repr_hides_token(self, client):
        assert TOKEN not in repr(client)

    @pytest.mark.asyncio
    async def test_headers_sent_on_requests(self, api, client):
        api.add("GET", "/util/ping", json={"meta": {"id": "x", "statusEmoji": "⚡️"}})
        await client.get("/util/ping")

        request = api.requests[0]
        assert request.headers["Authorization"] == f"Bearer {TOKEN}"
        assert request.headers["Accept"] == "application/json"
        assert request.headers["Content-Type"] == "application/json"
        assert str(request.url) == "https://api.up.com.au/api/v1/util/ping"


class TestVerbs:

    @pytest.mark.asyncio
    @pytest.mark.parametrize("method", ["GET", "POST", "PATCH", "DELETE"])
    async def test_error_status_raises(self, api, client, method):
        api.add(method, "/things", json={"errors": []}, status=401)
        verb = getattr(client, method.lower())

        with pytest.raises(UpApiError) as exc_info:
            await verb("/things")

        assert exc_info.value.status_code == 401
        assert exc_info.value.status_text == "Unauthorized"
        assert "401" in str(exc_info.value)
        assert "Unauthorized" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_server_error_message(self, api, client):
        api.add("GET", "/accounts", status=500)
        with pytest.raises(UpApiError, match="Up API request failed: 500 Internal Server Error"):
            await client.get_accounts()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("method", ["PATCH", "DELETE"])
    async def test_empty_body_yields_empty_dict(self, api, client, method):
        api.add(method, "/things", status=204)
        verb = getattr(client, method.lower())
        assert await verb("/things") == {}

    @pytest.mark.asyncio
    async def test_json_body_parsed(self, api, client):
        api.add("POST", "/things", json={"data": {"id": "1"}}, status=201)
        assert await client.post("/things", json={"a": 1}) == {"data": {"id": "1"}}
        assert api.body() == {"a": 1}


class TestDomainMethods:

    @pytest.mark.asyncio
    async def test_get_accounts_filters(self, api, client, account):
        api.add("GET", "/accounts", json={"data": [account], "links": {"prev": None, "next": None}})

        response = await client.get_accounts(account_type="SAVER", ownership_type="JOINT", page_size=5, cursor="c1")

        assert response["data"][0]["id"] == "acc-1"
        assert api.params() == {
            "filter[accountType]": "SAVER",
            "filter[ownershipType]": "JOINT",
            "page[size]": "5",
            "page[after]": "c1",
        }

    @pytest.mark.asyncio
    async def test_get_accounts_without_filters_sends_no_params(self, api, client):
        api.add("GET", "/accounts", json={"data": [], "links": {}})
        await client.get_accounts()
        assert api.params() == {}

    @pytest.mark.asyncio
    async def test_get_account(self, api, client, account):
        api.add("GET", "/accounts/acc-1", json={"data": account})
        response = await client.get_account("acc-1")
        assert response["data"]["attributes"]["displayName"] == "Spending"

    @pytest.mark.asyncio
    async def test_get_transactions_filters(self, api, client):
        api.add("GET", "/transactions", json={"data": [make_transaction("tx-1")], "links": {}})

        await client.get_transactions(
            account_id="acc-1",
            since="2024-01-01T00:00:00+10:00",
            until="2024-02-01T00:00:00+10:00",
            page_size=20,
        )

        assert api.params() == {
            "filter[accountId]": "acc-1",
            "filter[since]": "2024-01-01T00:00:00+10:00",
            "filter[until]": "2024-02-01T00:00:00+10:00",
            "page[size]": "20",
        }

    @pytest.mark.asyncio
    async def test_get_transaction(self, api, client):
        api.add("GET", "/transactions/tx-1", json={"data": make_transaction("tx-1", "Super Tasty Rooster")})
        response = await client.get_transaction("tx-1")
        assert response["data"]["attributes"]["description"] == "Super Tasty Rooster"

    @pytest.mark.asyncio
    async def test_get_account_transactions(self, api, client):
        api.add("GET", "/accounts/acc-1/transactions", json={"data": [], "links": {}})

        await client.get_account_transactions("acc-1", since="2024-01-01T00:00:00Z", page_size=5, cursor="abc")

        assert api.params() == {
            "filter[since]": "2024-01-01T00:00:00Z",
            "page[size]": "5",
            "page[after]": "abc",
        }

    @pytest.mark.asyncio
    async def test_get_categories_parent_filter(self, api, client):
        api.add("GET", "/categories", json={"data": []})

        await client.get_categories(parent="good-life")
        assert api.params() == {"filter[parent]": "good-life"}

        await client.get_categories()
        assert api.params() == {}

    @pytest.mark.asyncio
    async def test_get_category(self, api, client):
        api.add("GET", "/categories/good-life", json={"data": {"type": "categories", "id": "good-life"}})
        response = await client.get_category("good-life")
        assert response["data"]["id"] == "good-life"

    @pytest.mark.asyncio
    async def test_update_transaction_category(self, api, client):
        api.add("PATCH", "/transactions/tx-1/relationships/category", status=204)

        assert await client.update_transaction_category("tx-1", "restaurants-and-cafes") == {}
        assert api.requests[0].method == "PATCH"
        assert api.body() == {"data": {"type": "categories", "id": "restaurants-and-cafes"}}

    @pytest.mark.asyncio
    async def test_remove_transaction_category(self, api, client):
        api.add("PATCH", "/transactions/tx-1/relationships/category", status=204)

        await client.update_transaction_category("tx-1", None)
        assert api.body() == {"data": None}

    @pytest.mark.asyncio
    async def test_get_tags(self, api, client):
        api.add("GET", "/tags", json={"data": [{"type": "tags", "id": "holiday"}], "links": {}})

        response = await client.get_tags(page_size=50, cursor="next-page")

        assert response["data"][0]["id"] == "holiday"
        assert api.params() == {"page[size]": "50", "page[after]": "next-page"}

    @pytest.mark.asyncio
    async def test_add_transaction_tags(self, api, client):
        api.add("POST", "/transactions/tx-1/relationships/tags", status=204)

        await client.add_transaction_tags("tx-1", ["holiday", "queensland"])

        assert api.requests[0].method == "POST"
        assert api.body() == {
            "data": [{"type": "tags", "id": "holiday"}, {"type": "tags", "id": "queensland"}]
        }

    @pytest.mark.asyncio
    async def test_remove_transaction_tags(self, api, client):
        api.add("DELETE", "/transactions/tx-1/relationships/tags", status=204)

        await client.remove_transaction_tags("tx-1", ["holiday"])

        assert api.requests[0].method == "DELETE"
        assert api.body() == {"data": [{"type": "tags", "id": "holiday"}]}

    @pytest.mark.asyncio
    async def test_ids_are_quoted_as_one_path_segment(self, api, client):
        with pytest.raises(UpApiError):
            await client.get_account("a/../../util/ping")

        assert api.requests[0].url.raw_path == b"/api/v1/accounts/a%2F..%2F..%2Futil%2Fping"

    @pytest.mark.asyncio
    async def test_dot_segment_id_rejected(self, api, client):
        with pytest.raises(ValueError):
            await client.get_transaction("..")
        assert api.requests == []


class TestPing:

    @pytest.mark.asyncio
    async def test_ping_success(self, api, client):
        api.add("GET", "/util/ping", json={"meta": {"id": "abc", "statusEmoji": "⚡️"}})
        assert await client.ping() is True

    @pytest.mark.asyncio
    async def test_ping_http_error(self, api, client):
        api.add("GET", "/util/ping", status=401, json={"errors": []})
        assert await client.ping() is False

    @pytest.mark.asyncio
    async def test_ping_network_error(self, api, client):
        api.add("GET", "/util/ping", exc=httpx.ConnectError("connection refused"))
        assert await client.ping() is False


class TestExtractCursor:

    def test_extracts_cursor(self):
        url = "https://api.up.com.au/api/v1/transactions?page[size]=20&page[after]=abc123"
        assert extract_cursor(url) == "abc123"

    def test_extracts_encoded_cursor(self):
        url = "https://api.up.com.au/api/v1/tags?page%5Bafter%5D=WyJob2xpZGF5Il0%3D"
        assert extract_cursor(url) == "WyJob2xpZGF5Il0="

    def test_no_cursor_param(self):
        assert extract_cursor("https://api.up.com.au/api/v1/transactions?page[size]=20") is None

    def test_none(self):
        assert extract_cursor(None) is None

    def test_empty_string(self):
        assert extract_cursor("") is None

    def test_malformed_url(self):
        assert extract_cursor("https://[not-an-ipv6]/transactions?page[after]=abc") is None

    def test_static_alias(self):
        assert UpClient.extract_cursor(page_link("/accounts", "c9")) == "c9"
