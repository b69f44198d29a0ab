"""
Write tools.

- uploadDataOnIrys: upload a value or a file with tags
- mutateDataOnIrys: write the next value of a mutable chain
"""

from typing import Any

from pydantic import ValidationError

from irys_mcp.schema import MutateRequest, UploadRequest
from irys_mcp.tools.base import Tool, ToolContext, ToolOutput


class UploadDataTool(Tool):
    """
    Upload data to the ledger.

    Arguments:
        data: Value to store; a file path when dataType is FILE or IMAGE
        dataType: FILE, IMAGE or OTHER (default OTHER)
        tags: Optional list of {name, values}

    Returns:
        On success: the gateway URL of the new transaction
        On failure: the upload error
    """

    request_model = UploadRequest

    @property
    def name(self) -> str:
        return "uploadDataOnIrys"

    @property
    def description(self) -> str:
        return "Upload data or a file to Irys with optional tags and return its URL"

    async def execute(self, args: dict[str, Any], context: ToolContext) -> ToolOutput:
        try:
            request: UploadRequest = self.parse_args(args)
        except ValidationError as e:
            return ToolOutput.fail(str(e), summary="Invalid arguments")

        result = await context.writer.upload_data(request.data, request.data_type, request.tags)
        if not result.success:
            return ToolOutput.fail(result.error or "unknown error", summary="Failed to upload data")

        return ToolOutput.ok(
            result.url,
            summary="Data uploaded successfully",
            transaction_id=result.transaction_id,
        )


class MutateDataTool(Tool):
    """
    Write to a mutable chain.

    The first write (alreadyUploaded false) starts the chain; its
    transaction id is the root for every later write. Follow-up writes
    pass that root id with alreadyUploaded true.
    """

    request_model = MutateRequest

    @property
    def name(self) -> str:
        return "mutateDataOnIrys"

    @property
    def description(self) -> str:
        return (
            "Upload a new version of mutable data. Set alreadyUploaded and pass the "
            "root transaction id to append to an existing chain"
        )

    async def execute(self, args: dict[str, Any], context: ToolContext) -> ToolOutput:
        try:
            request: MutateRequest = self.parse_args(args)
        except ValidationError as e:
            return ToolOutput.fail(str(e), summary="Invalid arguments")

        chain = request.chain
        result = await context.writer.mutate(request.data, chain)
        if not result.success:
            return ToolOutput.fail(result.error or "unknown error", summary="Failed to mutate data")

        root_id = chain.root_id or result.transaction_id
        return ToolOutput.ok(
            result.url,
            summary=f"Mutable data uploaded successfully (root transaction id: {root_id})",
            transaction_id=result.transaction_id,
            root_transaction_id=root_id,
        )


def register_storage_tools() -> None:
    """Register the write tools in the default registry."""
    from irys_mcp.tools.registry import default_registry

    default_registry.register(UploadDataTool())
    default_registry.register(MutateDataTool())
