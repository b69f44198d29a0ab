"""
Tools module for irys-mcp.

Tools are the operations an agent host can call. Each one validates its
arguments, delegates to the ledger components in its ToolContext, and
returns a ToolOutput that renders to text.

Built-in tools:
    - uploadDataOnIrys: Upload a value or file with tags
    - retrieveDataFromIrys: Retrieve by owners, tags and time range
    - retrieveDataFromATransactionId: Retrieve one transaction
    - mutateDataOnIrys: Write to a mutable chain
"""

from irys_mcp.tools.base import Tool, ToolContext, ToolOutput
from irys_mcp.tools.registry import ToolRegistry, default_registry
from irys_mcp.tools.retrieval import (
    RetrieveDataTool,
    RetrieveTransactionTool,
    register_retrieval_tools,
)
from irys_mcp.tools.storage import MutateDataTool, UploadDataTool, register_storage_tools

# Register built-in tools
register_storage_tools()
register_retrieval_tools()

__all__ = [
    "Tool",
    "ToolContext",
    "ToolOutput",
    "ToolRegistry",
    "default_registry",
    "MutateDataTool",
    "RetrieveDataTool",
    "RetrieveTransactionTool",
    "UploadDataTool",
]
