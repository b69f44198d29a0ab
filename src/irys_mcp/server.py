"""
MCP server exposing the ledger tools to an agent host over stdio.

Each MCP tool is a thin wrapper that forwards its arguments to the
matching registered tool through IrysService and returns the rendered
text. Settings are loaded on first call, so the server starts without a
private key and read-only tools stay usable.
"""

import logging
from typing import Any

from fastmcp import FastMCP

from irys_mcp import __version__
from irys_mcp.engine import IrysService
from irys_mcp.schema import DataKind, Settings, Tag, TimeRange, load_settings

logger = logging.getLogger(__name__)

mcp = FastMCP("irys-mcp")

_service: IrysService | None = None


def configure(settings: Settings | None = None, service: IrysService | None = None) -> IrysService:
    """Install the service used by the MCP tools."""
    global _service
    _service = service or IrysService(settings)
    return _service


def get_service() -> IrysService:
    """The installed service, built from load_settings() on first use."""
    if _service is None:
        return configure(load_settings())
    return _service


async def call(name: str, args: dict[str, Any]) -> str:
    """Run a registered tool and render its output as text."""
    output = await get_service().call_tool(name, args)
    return output.to_text()


@mcp.tool(name="uploadDataOnIrys")
async def upload_data_on_irys(
    data: Any,
    dataType: DataKind = DataKind.OTHER,
    tags: list[Tag] | None = None,
) -> str:
    """Upload data to Irys. For FILE or IMAGE, data is a file path. Returns the URL."""
    return await call("uploadDataOnIrys", {"data": data, "dataType": dataType, "tags": tags or []})


@mcp.tool(name="retrieveDataFromIrys")
async def retrieve_data_from_irys(
    walletAddress: list[str],
    tags: list[Tag] | None = None,
    timestamp: TimeRange | None = None,
) -> str:
    """Retrieve data uploaded by the given wallets, filtered by tags and a {from, to} time range in ms."""
    return await call(
        "retrieveDataFromIrys",
        {"walletAddress": walletAddress, "tags": tags, "timestamp": timestamp},
    )


@mcp.tool(name="retrieveDataFromATransactionId")
async def retrieve_data_from_a_transaction_id(transactionId: str, isMutable: bool = False) -> str:
    """Retrieve the data of one transaction. With isMutable, returns the latest version of the chain."""
    return await call(
        "retrieveDataFromATransactionId",
        {"transactionId": transactionId, "isMutable": isMutable},
    )


@mcp.tool(name="mutateDataOnIrys")
async def mutate_data_on_irys(
    data: Any,
    rootTransactionId: str = "",
    alreadyUploaded: bool = False,
) -> str:
    """Upload a new version of mutable data. Pass the root id and alreadyUploaded=true for follow-ups."""
    return await call(
        "mutateDataOnIrys",
        {"data": data, "rootTransactionId": rootTransactionId, "alreadyUploaded": alreadyUploaded},
    )


def run(settings: Settings | None = None) -> None:
    """Serve the tools over stdio until the host disconnects."""
    configure(settings)
    logger.info("Starting irys-mcp %s on stdio", __version__)
    mcp.run()
