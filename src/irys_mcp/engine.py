"""
Service facade for irys-mcp.

IrysService wires the ledger components to one shared transport and runs
tool calls against them. Both the MCP server and the CLI go through it,
so a tool behaves the same whichever surface invoked it.

Execution Flow (call_tool):
    1. Look up the tool in the registry
    2. Validate the arguments
    3. Execute the tool with a ToolContext bound to this service
    4. Return the ToolOutput; an unexpected exception becomes a failed output
"""

import logging
import time
from typing import Any

from irys_mcp.errors import IrysError
from irys_mcp.ledger import BatchRetriever, LedgerTransport, LedgerWriter
from irys_mcp.ledger.signer import get_signer
from irys_mcp.ledger.writer import SignerFactory
from irys_mcp.schema import Settings
from irys_mcp.tools import ToolContext, ToolOutput, default_registry
from irys_mcp.tools.registry import ToolRegistry

logger = logging.getLogger(__name__)


class IrysService:
    """
    Long-lived handle on the ledger for one process.

    Usage:
        async with IrysService(settings) as service:
            output = await service.call_tool("retrieveDataFromIrys", {"walletAddress": [...]})

    Attributes:
        settings: Endpoints, limits and credential
        transport: Shared HTTP transport
        retriever: Read path
        writer: Write path
        registry: Tools available to call_tool
    """

    def __init__(
        self,
        settings: Settings | None = None,
        transport: LedgerTransport | None = None,
        registry: ToolRegistry | None = None,
        signer_factory: SignerFactory = get_signer,
    ) -> None:
        self.settings = settings or Settings()
        self.transport = transport or LedgerTransport(self.settings)
        self.retriever = BatchRetriever(self.transport)
        self.writer = LedgerWriter(self.transport, signer_factory=signer_factory)
        self.registry = registry or default_registry

    async def aclose(self) -> None:
        await self.transport.aclose()

    async def __aenter__(self) -> "IrysService":
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.aclose()

    def context(self) -> ToolContext:
        return ToolContext(retriever=self.retriever, writer=self.writer, settings=self.settings)

    async def call_tool(self, name: str, args: dict[str, Any]) -> ToolOutput:
        """
        Run one tool call.

        Args:
            name: Registered tool name
            args: Raw arguments as sent by the caller

        Returns:
            ToolOutput; unknown tools and invalid arguments are failures
        """
        try:
            tool = self.registry.get(name)
        except IrysError as e:
            return ToolOutput.fail(e.message)

        errors = tool.validate_args(args)
        if errors:
            return ToolOutput.fail(f"Invalid arguments: {'; '.join(errors)}")

        start = time.perf_counter()
        try:
            output = await tool.execute(args, self.context())
        except Exception as e:
            logger.exception("Tool %s raised", name)
            output = ToolOutput.fail(f"Tool execution failed: {type(e).__name__}: {e}")
        duration_ms = (time.perf_counter() - start) * 1000

        logger.info(
            "%s %s in %.1fms",
            name,
            "succeeded" if output.success else "failed",
            duration_ms,
        )
        return output
