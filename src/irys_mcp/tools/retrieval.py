"""
Read tools.

- retrieveDataFromIrys: every transaction matching owners, tags and time
- retrieveDataFromATransactionId: one transaction, fixed or latest-in-chain
"""

from typing import Any

from pydantic import ValidationError

from irys_mcp.schema import RetrieveRequest, TransactionRequest
from irys_mcp.tools.base import Tool, ToolContext, ToolOutput


class RetrieveDataTool(Tool):
    """
    Retrieve data by filter.

    Arguments:
        walletAddress: Owner addresses (empty matches every owner)
        tags: Optional list of {name, values}; any listed value matches
        timestamp: Optional {from, to} in milliseconds, inclusive

    Returns:
        A JSON list of {id, address, data, error}; items that failed to
        load carry error and null data without failing the call.
    """

    request_model = RetrieveRequest

    @property
    def name(self) -> str:
        return "retrieveDataFromIrys"

    @property
    def description(self) -> str:
        return "Retrieve data uploaded to Irys filtered by wallet addresses, tags and time range"

    async def execute(self, args: dict[str, Any], context: ToolContext) -> ToolOutput:
        try:
            request: RetrieveRequest = self.parse_args(args)
        except ValidationError as e:
            return ToolOutput.fail(str(e), summary="Invalid arguments")

        result = await context.retriever.retrieve_all(
            request.wallet_address or None,
            request.tags,
            request.timestamp,
        )
        if not result.success:
            return ToolOutput.fail(result.error_message or "unknown error", summary="Failed to retrieve data")

        items = result.value or []
        if not items:
            return ToolOutput.ok(None, summary="No data found for the given filters", count=0)

        failed = sum(1 for item in items if item.error)
        return ToolOutput.ok(
            items,
            summary=f"Retrieved {len(items)} transactions ({failed} failed)",
            count=len(items),
            failed=failed,
        )


class RetrieveTransactionTool(Tool):
    """
    Retrieve one transaction by id.

    With isMutable the id is a chain root and the latest version of the
    chain is returned.
    """

    request_model = TransactionRequest

    @property
    def name(self) -> str:
        return "retrieveDataFromATransactionId"

    @property
    def description(self) -> str:
        return "Retrieve the data stored in one Irys transaction, optionally the latest version of a mutable chain"

    async def execute(self, args: dict[str, Any], context: ToolContext) -> ToolOutput:
        try:
            request: TransactionRequest = self.parse_args(args)
        except ValidationError as e:
            return ToolOutput.fail(str(e), summary="Invalid arguments")

        result = await context.retriever.retrieve_one(request.transaction_id, request.is_mutable)
        if not result.success:
            return ToolOutput.fail(result.error_message or "unknown error", summary="Failed to retrieve data")

        return ToolOutput.ok(
            result.value,
            summary="Data retrieved successfully",
            transaction_id=request.transaction_id,
            mutable=request.is_mutable,
        )


def register_retrieval_tools() -> None:
    """Register the read tools in the default registry."""
    from irys_mcp.tools.registry import default_registry

    default_registry.register(RetrieveDataTool())
    default_registry.register(RetrieveTransactionTool())
