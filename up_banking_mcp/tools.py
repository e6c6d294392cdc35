"""
MCP tool catalogue for the Up Banking API.

Each tool validates its arguments against a pydantic model before any
request is made, then maps onto one or more UpClient calls. Failures never
escape as protocol faults: call_tool turns every exception into a result
flagged isError.
"""
import json
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, List, NamedTuple, Optional, Type, get_origin

import httpx
import mcp.types as types
from pydantic import BaseModel, ValidationError

from .pagination import with_pagination
from .schemas import (
    AccountTransactionsArguments,
    AddTagsArguments,
    CategoryListResponse,
    CategoryUpdateResult,
    GetAccountArguments,
    GetCategoryArguments,
    GetTransactionArguments,
    ListAccountsArguments,
    ListCategoriesArguments,
    ListTagsArguments,
    ListTransactionsArguments,
    NoArguments,
    PaginatedResponse,
    PingResult,
    RemoveTagsArguments,
    ResourceResponse,
    TagChangeResult,
    ToolArguments,
    UpdateCategoryArguments,
    input_schema,
    output_schema,
)
from .up.client import UpApiError, UpClient

logger = logging.getLogger(__name__)

# Null values count as absent too; a non-list for a list field reads "<field> array is required".
REQUIRED_ERROR_TYPES = {"missing", "string_too_short", "list_type"}


class ToolInputError(ValueError):
    """Bad tool name or arguments; reported back to the caller as-is."""


class ToolOutput(NamedTuple):
    data: Dict[str, Any]
    note: Optional[str] = None


@dataclass(frozen=True)
class ToolSpec:
    name: str
    description: str
    arguments: Type[ToolArguments]
    result: Type[BaseModel]
    result_description: Optional[str] = None

    def to_tool(self) -> types.Tool:
        return types.Tool(
            name=self.name,
            description=self.description,
            inputSchema=input_schema(self.arguments),
            outputSchema=output_schema(self.result, self.result_description),
        )


TOOLS: List[ToolSpec] = [
    ToolSpec(
        "list_accounts",
        "List all Up bank accounts for the authenticated user",
        ListAccountsArguments,
        PaginatedResponse,
        "Paginated list of accounts with pagination metadata",
    ),
    ToolSpec(
        "get_account",
        "Get details of a specific Up bank account by ID",
        GetAccountArguments,
        ResourceResponse,
        "Single account details",
    ),
    ToolSpec(
        "list_transactions",
        "List transactions from Up bank accounts\n\n"
        "The default account that users are generally asking for is their transaction account. "
        'ie. "What is my latest transaction?" is likely to be in reference to their transaction account.',
        ListTransactionsArguments,
        PaginatedResponse,
        "Paginated list of transactions with pagination metadata",
    ),
    ToolSpec(
        "get_transaction",
        "Get details of a specific transaction by ID",
        GetTransactionArguments,
        ResourceResponse,
        "Single transaction details",
    ),
    ToolSpec(
        "get_account_transactions",
        "Get transactions for a specific account",
        AccountTransactionsArguments,
        PaginatedResponse,
        "Paginated list of transactions with pagination metadata",
    ),
    ToolSpec(
        "list_categories",
        "List all categories and subcategories available in Up (not paginated)",
        ListCategoriesArguments,
        CategoryListResponse,
        "List of all categories (not paginated)",
    ),
    ToolSpec(
        "get_category",
        "Get details of a specific category by ID",
        GetCategoryArguments,
        ResourceResponse,
        "Single category details",
    ),
    ToolSpec(
        "update_transaction_category",
        "Update or remove the category associated with a transaction (only for settled transactions)",
        UpdateCategoryArguments,
        CategoryUpdateResult,
        "Result of category update operation",
    ),
    ToolSpec(
        "list_tags",
        "List all tags currently in use",
        ListTagsArguments,
        PaginatedResponse,
        "Paginated list of tags with pagination metadata",
    ),
    ToolSpec(
        "add_transaction_tags",
        "Add one or more tags to a transaction",
        AddTagsArguments,
        TagChangeResult,
        "Result of adding tags to a transaction",
    ),
    ToolSpec(
        "remove_transaction_tags",
        "Remove one or more tags from a transaction",
        RemoveTagsArguments,
        TagChangeResult,
        "Result of removing tags from a transaction",
    ),
    ToolSpec(
        "ping",
        "Test connectivity to the Up API",
        NoArguments,
        PingResult,
        "API connectivity test result",
    ),
]

TOOLS_BY_NAME: Dict[str, ToolSpec] = {spec.name: spec for spec in TOOLS}


def _is_absent(err: Dict[str, Any]) -> bool:
    if len(err["loc"]) != 1:
        return False
    return err["type"] in REQUIRED_ERROR_TYPES or err.get("input", ...) is None


def _field_label(model: Type[ToolArguments], wire_name: str) -> str:
    for name, field in model.model_fields.items():
        if (field.alias or name) == wire_name and get_origin(field.annotation) is list:
            return f"{wire_name} array"
    return wire_name


def parse_arguments(model: Type[ToolArguments], arguments: Optional[Dict[str, Any]]) -> ToolArguments:
    """
    Validate raw tool arguments.

    Missing, null or empty required fields are reported as "<field> is required",
    using the wire (camelCase) field name; list fields read "<field> array".
    """
    try:
        return model.model_validate(arguments or {})
    except ValidationError as e:
        errors = e.errors()
        required = [_field_label(model, str(err["loc"][0])) for err in errors if _is_absent(err)]
        if required and len(required) == len(errors):
            if len(required) == 1:
                raise ToolInputError(f"{required[0]} is required") from e
            raise ToolInputError(f"{' and '.join(required)} are required") from e
        details = "; ".join(
            f"{'.'.join(str(part) for part in err['loc']) or 'arguments'}: {err['msg']}" for err in errors
        )
        raise ToolInputError(f"Invalid arguments: {details}") from e


def transaction_resources_note(transactions: List[Dict[str, Any]]) -> Optional[str]:
    if not transactions:
        return None
    uris = [f"up://transaction/{tx.get('id')}" for tx in transactions]
    listed = ", ".join(uris[:3])
    if len(uris) > 3:
        listed += ", ..."
    return f"Note: Individual transactions can be accessed via resources: {listed}"


def _text_result(text: str, structured: Optional[Dict[str, Any]] = None, is_error: bool = False) -> types.CallToolResult:
    return types.CallToolResult(
        content=[types.TextContent(type="text", text=text)],
        structuredContent=structured,
        isError=is_error,
    )


class UpTools:
    """Executes catalogue tools against one UpClient."""

    def __init__(self, client: UpClient):
        self.client = client
        self._handlers: Dict[str, Callable[[Any], Awaitable[ToolOutput]]] = {
            "list_accounts": self.list_accounts,
            "get_account": self.get_account,
            "list_transactions": self.list_transactions,
            "get_transaction": self.get_transaction,
            "get_account_transactions": self.get_account_transactions,
            "list_categories": self.list_categories,
            "get_category": self.get_category,
            "update_transaction_category": self.update_transaction_category,
            "list_tags": self.list_tags,
            "add_transaction_tags": self.add_transaction_tags,
            "remove_transaction_tags": self.remove_transaction_tags,
            "ping": self.ping,
        }

    def list_tools(self) -> List[types.Tool]:
        return [spec.to_tool() for spec in TOOLS]

    async def call_tool(self, name: str, arguments: Optional[Dict[str, Any]]) -> types.CallToolResult:
        try:
            spec = TOOLS_BY_NAME.get(name)
            if spec is None:
                raise ToolInputError(f"Unknown tool: {name}")
            args = parse_arguments(spec.arguments, arguments)
            output = await self._handlers[name](args)
        except (ToolInputError, UpApiError, httpx.HTTPError) as e:
            logger.warning("Tool %s failed: %s", name, e)
            return _text_result(f"Error: {e}", is_error=True)
        except Exception as e:
            logger.exception("Tool %s raised unexpectedly", name)
            return _text_result(f"Error: {e}", is_error=True)

        text = json.dumps(output.data, indent=2)
        if output.note:
            text = f"{output.note}\n\n{text}"
        return _text_result(text, structured=output.data)

    # ========================================================================
    # Accounts
    # ========================================================================

    async def list_accounts(self, args: ListAccountsArguments) -> ToolOutput:
        response = await self.client.get_accounts(
            account_type=args.account_type,
            ownership_type=args.ownership_type,
            cursor=args.cursor,
        )
        return ToolOutput(with_pagination(response))

    async def get_account(self, args: GetAccountArguments) -> ToolOutput:
        return ToolOutput(await self.client.get_account(args.account_id))

    # ========================================================================
    # Transactions
    # ========================================================================

    async def list_transactions(self, args: ListTransactionsArguments) -> ToolOutput:
        response = await self.client.get_transactions(
            account_id=args.account_id,
            since=args.since,
            until=args.until,
            page_size=args.page_size,
            cursor=args.cursor,
        )
        return ToolOutput(with_pagination(response), transaction_resources_note(response.get("data") or []))

    async def get_transaction(self, args: GetTransactionArguments) -> ToolOutput:
        response = await self.client.get_transaction(args.transaction_id)
        note = f"Note: This transaction is also available via resource: up://transaction/{args.transaction_id}"
        return ToolOutput(response, note)

    async def get_account_transactions(self, args: AccountTransactionsArguments) -> ToolOutput:
        response = await self.client.get_account_transactions(
            args.account_id,
            since=args.since,
            until=args.until,
            page_size=args.page_size,
            cursor=args.cursor,
        )
        return ToolOutput(with_pagination(response), transaction_resources_note(response.get("data") or []))

    # ========================================================================
    # Categories
    # ========================================================================

    async def list_categories(self, args: ListCategoriesArguments) -> ToolOutput:
        return ToolOutput(await self.client.get_categories(parent=args.parent))

    async def get_category(self, args: GetCategoryArguments) -> ToolOutput:
        return ToolOutput(await self.client.get_category(args.category_id))

    async def update_transaction_category(self, args: UpdateCategoryArguments) -> ToolOutput:
        await self.client.update_transaction_category(args.transaction_id, args.category_id)
        change = f"updated to {args.category_id}" if args.category_id else "removed"
        return ToolOutput({
            "success": True,
            "transactionId": args.transaction_id,
            "categoryId": args.category_id,
            "message": (
                f"Category {change} for transaction {args.transaction_id}. "
                f"View transaction at up://transaction/{args.transaction_id}"
            ),
        })

    # ========================================================================
    # Tags
    # ========================================================================

    async def list_tags(self, args: ListTagsArguments) -> ToolOutput:
        response = await self.client.get_tags(page_size=args.page_size, cursor=args.cursor)
        return ToolOutput(with_pagination(response))

    async def add_transaction_tags(self, args: AddTagsArguments) -> ToolOutput:
        await self.client.add_transaction_tags(args.transaction_id, args.tags)
        return ToolOutput({
            "success": True,
            "transactionId": args.transaction_id,
            "tags": args.tags,
            "message": (
                f"Added {len(args.tags)} tag(s) to transaction {args.transaction_id}. "
                f"View transaction at up://transaction/{args.transaction_id}"
            ),
        })

    async def remove_transaction_tags(self, args: RemoveTagsArguments) -> ToolOutput:
        await self.client.remove_transaction_tags(args.transaction_id, args.tags)
        return ToolOutput({
            "success": True,
            "transactionId": args.transaction_id,
            "tags": args.tags,
            "message": (
                f"Removed {len(args.tags)} tag(s) from transaction {args.transaction_id}. "
                f"View transaction at up://transaction/{args.transaction_id}"
            ),
        })

    # ========================================================================
    # Utilities
    # ========================================================================

    async def ping(self, args: NoArguments) -> ToolOutput:
        ok = await self.client.ping()
        return ToolOutput({
            "success": ok,
            "message": "Connection successful" if ok else "Connection failed",
        })
