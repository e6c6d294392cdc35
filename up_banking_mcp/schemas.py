"""
Tool argument and result models.

Field names are snake_case in Python and camelCase on the wire (aliases),
matching the Up API's own JSON conventions.
"""
from typing import Any, Dict, List, Literal, Optional, Type

from pydantic import BaseModel, ConfigDict, Field


def input_schema(model: Type[BaseModel]) -> Dict[str, Any]:
    return model.model_json_schema(by_alias=True, mode="validation")


def output_schema(model: Type[BaseModel], description: Optional[str] = None) -> Dict[str, Any]:
    schema = model.model_json_schema(by_alias=True, mode="serialization")
    if description:
        schema["description"] = description
    return schema


# ============================================================================
# Tool arguments
# ============================================================================

class ToolArguments(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


CURSOR_DESCRIPTION = "Pagination cursor to fetch the next page of results"
SINCE_DESCRIPTION = "Filter transactions after this date (ISO 8601)"
UNTIL_DESCRIPTION = "Filter transactions before this date (ISO 8601)"


class NoArguments(ToolArguments):
    pass


class ListAccountsArguments(ToolArguments):
    account_type: Optional[Literal["SAVER", "TRANSACTIONAL"]] = Field(
        None, alias="accountType", description="Filter by account type (SAVER or TRANSACTIONAL)"
    )
    ownership_type: Optional[Literal["INDIVIDUAL", "JOINT"]] = Field(
        None, alias="ownershipType", description="Filter by ownership type (INDIVIDUAL or JOINT)"
    )
    cursor: Optional[str] = Field(None, description=CURSOR_DESCRIPTION)


class GetAccountArguments(ToolArguments):
    account_id: str = Field(
        alias="accountId", min_length=1, description="The unique identifier for the account"
    )


class ListTransactionsArguments(ToolArguments):
    account_id: Optional[str] = Field(
        None, alias="accountId", description="Filter transactions by account ID"
    )
    since: Optional[str] = Field(None, description=SINCE_DESCRIPTION)
    until: Optional[str] = Field(None, description=UNTIL_DESCRIPTION)
    page_size: Optional[int] = Field(
        None, alias="pageSize", ge=1, le=100, description="Number of records to return (max 100)"
    )
    cursor: Optional[str] = Field(None, description=CURSOR_DESCRIPTION)


class GetTransactionArguments(ToolArguments):
    transaction_id: str = Field(
        alias="transactionId", min_length=1, description="The unique identifier for the transaction"
    )


class AccountTransactionsArguments(ToolArguments):
    account_id: str = Field(
        alias="accountId", min_length=1, description="The account ID to get transactions for"
    )
    since: Optional[str] = Field(None, description=SINCE_DESCRIPTION)
    until: Optional[str] = Field(None, description=UNTIL_DESCRIPTION)
    page_size: Optional[int] = Field(
        None, alias="pageSize", ge=1, le=100, description="Number of records to return (max 100)"
    )
    cursor: Optional[str] = Field(None, description=CURSOR_DESCRIPTION)


class ListCategoriesArguments(ToolArguments):
    parent: Optional[str] = Field(None, description="Filter by parent category ID")


class GetCategoryArguments(ToolArguments):
    category_id: str = Field(
        alias="categoryId", min_length=1, description="The unique identifier for the category"
    )


class UpdateCategoryArguments(ToolArguments):
    transaction_id: str = Field(
        alias="transactionId", min_length=1, description="The transaction ID to update"
    )
    # Required, but null is meaningful: it removes the category.
    category_id: Optional[str] = Field(
        alias="categoryId", description="The category ID to assign, or null to remove category"
    )


class ListTagsArguments(ToolArguments):
    page_size: Optional[int] = Field(
        None, alias="pageSize", ge=1, description="Number of records to return"
    )
    cursor: Optional[str] = Field(None, description=CURSOR_DESCRIPTION)


class AddTagsArguments(ToolArguments):
    transaction_id: str = Field(
        alias="transactionId", min_length=1, description="The transaction ID to tag"
    )
    tags: List[str] = Field(description="Array of tag IDs to add")


class RemoveTagsArguments(ToolArguments):
    transaction_id: str = Field(
        alias="transactionId", min_length=1, description="The transaction ID to untag"
    )
    tags: List[str] = Field(description="Array of tag IDs to remove")


# ============================================================================
# Tool results
# ============================================================================

class Pagination(BaseModel):
    next_cursor: Optional[str] = Field(
        None, alias="nextCursor",
        description="Cursor for the next page of results, or null if no more pages",
    )
    prev_cursor: Optional[str] = Field(
        None, alias="prevCursor",
        description=(
            "page[after] cursor found in the previous-page link, or null. Up's previous-page "
            "links carry page[before] instead, so this is normally null; follow links.prev to go back"
        ),
    )


class PaginatedResponse(BaseModel):
    model_config = ConfigDict(extra="allow")

    data: List[Dict[str, Any]] = Field(description="JSON:API resources on this page")
    links: Dict[str, Any] = Field(description="JSON:API pagination links")
    pagination: Pagination


class ResourceResponse(BaseModel):
    model_config = ConfigDict(extra="allow")

    data: Dict[str, Any] = Field(description="JSON:API resource")


class CategoryListResponse(BaseModel):
    model_config = ConfigDict(extra="allow")

    data: List[Dict[str, Any]] = Field(description="Category resources")


class CategoryUpdateResult(BaseModel):
    success: bool = Field(description="Whether the operation succeeded")
    transaction_id: str = Field(alias="transactionId", description="The transaction ID that was updated")
    category_id: Optional[str] = Field(
        None, alias="categoryId", description="The category ID that was set, or null if removed"
    )
    message: str = Field(description="Human-readable result message")


class TagChangeResult(BaseModel):
    success: bool = Field(description="Whether the operation succeeded")
    transaction_id: str = Field(alias="transactionId", description="The transaction ID that was updated")
    tags: List[str] = Field(description="The tag IDs that were added or removed")
    message: str = Field(description="Human-readable result message")


class PingResult(BaseModel):
    success: bool = Field(description="Whether the API is reachable")
    message: str = Field(description="Human-readable status message")
