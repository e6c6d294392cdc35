"""
Read-only MCP resources backed by the Up Banking API.

Collection resources that Up paginates (accounts, tags) are walked to the
end with fetch_all_pages so the host sees the whole set in one read.
"""
import json
import logging
from typing import Any, Dict, List, Optional

import mcp.types as types

from .pagination import fetch_all_pages
from .up.client import UpClient

logger = logging.getLogger(__name__)

SCHEME = "up://"
MIME_TYPE = "application/json"
RECENT_TRANSACTIONS_COUNT = 10

ACCOUNT_PREFIX = f"{SCHEME}account/"
TRANSACTION_PREFIX = f"{SCHEME}transaction/"

RESOURCES = [
    types.Resource(
        uri=f"{SCHEME}accounts",
        name="All Accounts",
        description="List of all Up bank accounts",
        mimeType=MIME_TYPE,
    ),
    types.Resource(
        uri=f"{SCHEME}transactions/recent",
        name="Latest Transactions",
        description=f"The {RECENT_TRANSACTIONS_COUNT} most recent transactions",
        mimeType=MIME_TYPE,
    ),
    types.Resource(
        uri=f"{SCHEME}categories",
        name="All Categories",
        description="List of all transaction categories",
        mimeType=MIME_TYPE,
    ),
    types.Resource(
        uri=f"{SCHEME}tags",
        name="All Tags",
        description="List of all tags currently in use",
        mimeType=MIME_TYPE,
    ),
]

RESOURCE_TEMPLATES = [
    types.ResourceTemplate(
        uriTemplate=ACCOUNT_PREFIX + "{accountId}",
        name="Account Details",
        description="Details of a specific account by ID",
        mimeType=MIME_TYPE,
    ),
    types.ResourceTemplate(
        uriTemplate=TRANSACTION_PREFIX + "{transactionId}",
        name="Transaction Details",
        description="Details of a specific transaction by ID",
        mimeType=MIME_TYPE,
    ),
]


class ResourceError(Exception):
    """A resource URI could not be resolved or read."""


class UpResources:
    def __init__(self, client: UpClient):
        self.client = client

    def list_resources(self) -> List[types.Resource]:
        return list(RESOURCES)

    def list_resource_templates(self) -> List[types.ResourceTemplate]:
        return list(RESOURCE_TEMPLATES)

    async def read(self, uri: str) -> str:
        """Resolve a resource URI to its JSON text."""
        try:
            payload = await self._fetch(uri)
        except ResourceError:
            raise
        except Exception as e:
            logger.warning("Reading %s failed: %s", uri, e)
            raise ResourceError(f"Failed to read resource {uri}: {e}") from e
        return json.dumps(payload, indent=2)

    async def _fetch(self, uri: str) -> Dict[str, Any]:
        if uri == f"{SCHEME}accounts":
            accounts = await fetch_all_pages(lambda cursor: self.client.get_accounts(cursor=cursor))
            return {"data": accounts}

        if uri == f"{SCHEME}transactions/recent":
            return await self.client.get_transactions(page_size=RECENT_TRANSACTIONS_COUNT)

        if uri == f"{SCHEME}categories":
            return await self.client.get_categories()

        if uri == f"{SCHEME}tags":
            tags = await fetch_all_pages(lambda cursor: self.client.get_tags(cursor=cursor))
            return {"data": tags}

        account_id = _template_id(uri, ACCOUNT_PREFIX)
        if account_id:
            return await self.client.get_account(account_id)

        transaction_id = _template_id(uri, TRANSACTION_PREFIX)
        if transaction_id:
            return await self.client.get_transaction(transaction_id)

        raise ResourceError(f"Unknown resource URI: {uri}")


def _template_id(uri: str, prefix: str) -> Optional[str]:
    # ids are a single path segment
    if not uri.startswith(prefix):
        return None
    resource_id = uri[len(prefix):]
    if not resource_id or "/" in resource_id:
        return None
    return resource_id
