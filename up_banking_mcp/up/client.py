import logging
import httpx
from typing import Optional, Dict, List, Any
from urllib.parse import quote

logger = logging.getLogger(__name__)

BASE_URL = "https://api.up.com.au/api/v1"
CURSOR_PARAM = "page[after]"


class UpApiError(Exception):
    """Non-2xx response from the Up API."""

    def __init__(self, status_code: int, status_text: str):
        self.status_code = status_code
        self.status_text = status_text
        super().__init__(f"Up API request failed: {status_code} {status_text}")


def extract_cursor(url: Optional[str]) -> Optional[str]:
    """Pull the page[after] cursor out of a JSON:API pagination link."""
    if not url:
        return None
    try:
        return httpx.URL(url).params.get(CURSOR_PARAM)
    except httpx.InvalidURL as e:
        logger.warning("Ignoring unparsable pagination link %r: %s", url, e)
        return None


def _page_params(page_size: Optional[int], cursor: Optional[str]) -> Dict[str, Any]:
    params: Dict[str, Any] = {}
    if page_size:
        params["page[size]"] = page_size
    if cursor:
        params[CURSOR_PARAM] = cursor
    return params


def _segment(resource_id: str) -> str:
    """Quote an id so it stays a single path segment."""
    if resource_id in (".", ".."):
        raise ValueError(f"Invalid resource id: {resource_id!r}")
    return quote(resource_id, safe="")


class UpClient:
    """
    Async wrapper around the Up Banking REST API.

    One instance holds one immutable token and is shared by every request.
    """
    extract_cursor = staticmethod(extract_cursor)

    def __init__(
        self,
        token: str,
        base_url: str = BASE_URL,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: float = 30.0,
    ):
        if not token or not token.strip():
            raise ValueError("API token is required and cannot be empty")

        self._token = token.strip()
        self._base_url = base_url
        self.client = httpx.AsyncClient(
            base_url=self._base_url,
            headers=self.get_headers(),
            timeout=timeout,
            transport=transport,
        )

    def __repr__(self) -> str:
        return f"UpClient(base_url={self._base_url!r})"

    async def __aenter__(self) -> "UpClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    def get_headers(self) -> Dict[str, str]:
        """Headers required for every Up API request."""
        return {
            "Authorization": f"Bearer {self._token}",
            "Content-Type": "application/json",
            "Accept": "application/json",
        }

    def get_base_url(self) -> str:
        return self._base_url

    # ========================================================================
    # HTTP verbs
    # ========================================================================

    async def _request(self, method: str, path: str, **kwargs) -> Dict[str, Any]:
        logger.debug("%s %s", method, path)
        response = await self.client.request(method, path, **kwargs)
        if not response.is_success:
            raise UpApiError(response.status_code, response.reason_phrase)
        # PATCH and DELETE on relationships answer 204 with no body
        if not response.content:
            return {}
        return response.json()

    async def get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        return await self._request("GET", path, params=params)

    async def post(self, path: str, json: Optional[Any] = None) -> Dict[str, Any]:
        return await self._request("POST", path, json=json)

    async def patch(self, path: str, json: Optional[Any] = None) -> Dict[str, Any]:
        return await self._request("PATCH", path, json=json)

    async def delete(self, path: str, json: Optional[Any] = None) -> Dict[str, Any]:
        return await self._request("DELETE", path, json=json)

    # ========================================================================
    # Accounts
    # ========================================================================

    async def get_accounts(
        self,
        account_type: Optional[str] = None,
        ownership_type: Optional[str] = None,
        page_size: Optional[int] = None,
        cursor: Optional[str] = None,
    ) -> Dict[str, Any]:
        """List accounts, one page at a time."""
        params = _page_params(page_size, cursor)
        if account_type:
            params["filter[accountType]"] = account_type
        if ownership_type:
            params["filter[ownershipType]"] = ownership_type
        return await self.get("/accounts", params=params)

    async def get_account(self, account_id: str) -> Dict[str, Any]:
        return await self.get(f"/accounts/{_segment(account_id)}")

    # ========================================================================
    # Transactions
    # ========================================================================

    async def get_transactions(
        self,
        account_id: Optional[str] = None,
        since: Optional[str] = None,
        until: Optional[str] = None,
        page_size: Optional[int] = None,
        cursor: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        List transactions across all accounts, newest first.

        since/until are ISO 8601 timestamps passed straight through to the API.
        """
        params = _page_params(page_size, cursor)
        if account_id:
            params["filter[accountId]"] = account_id
        if since:
            params["filter[since]"] = since
        if until:
            params["filter[until]"] = until
        return await self.get("/transactions", params=params)

    async def get_transaction(self, transaction_id: str) -> Dict[str, Any]:
        return await self.get(f"/transactions/{_segment(transaction_id)}")

    async def get_account_transactions(
        self,
        account_id: str,
        since: Optional[str] = None,
        until: Optional[str] = None,
        page_size: Optional[int] = None,
        cursor: Optional[str] = None,
    ) -> Dict[str, Any]:
        params = _page_params(page_size, cursor)
        if since:
            params["filter[since]"] = since
        if until:
            params["filter[until]"] = until
        return await self.get(f"/accounts/{_segment(account_id)}/transactions", params=params)

    # ========================================================================
    # Categories
    # ========================================================================

    async def get_categories(self, parent: Optional[str] = None) -> Dict[str, Any]:
        """List categories. Not paginated."""
        params = {"filter[parent]": parent} if parent else None
        return await self.get("/categories", params=params)

    async def get_category(self, category_id: str) -> Dict[str, Any]:
        return await self.get(f"/categories/{_segment(category_id)}")

    async def update_transaction_category(
        self, transaction_id: str, category_id: Optional[str]
    ) -> Dict[str, Any]:
        """Assign a category to a transaction, or remove it when category_id is None."""
        data = {"type": "categories", "id": category_id} if category_id else None
        return await self.patch(
            f"/transactions/{_segment(transaction_id)}/relationships/category",
            json={"data": data},
        )

    # ========================================================================
    # Tags
    # ========================================================================

    async def get_tags(
        self, page_size: Optional[int] = None, cursor: Optional[str] = None
    ) -> Dict[str, Any]:
        return await self.get("/tags", params=_page_params(page_size, cursor))

    async def add_transaction_tags(self, transaction_id: str, tag_ids: List[str]) -> Dict[str, Any]:
        return await self.post(
            f"/transactions/{_segment(transaction_id)}/relationships/tags",
            json={"data": [{"type": "tags", "id": tag_id} for tag_id in tag_ids]},
        )

    async def remove_transaction_tags(self, transaction_id: str, tag_ids: List[str]) -> Dict[str, Any]:
        return await self.delete(
            f"/transactions/{_segment(transaction_id)}/relationships/tags",
            json={"data": [{"type": "tags", "id": tag_id} for tag_id in tag_ids]},
        )

    # ========================================================================
    # Utilities
    # ========================================================================

    async def ping(self) -> bool:
        """Check connectivity. Any failure means unreachable; never raises."""
        try:
            await self.get("/util/ping")
            return True
        except Exception as e:
            logger.warning("Up API ping failed: %s", e)
            return False

    async def aclose(self) -> None:
        await self.client.aclose()
