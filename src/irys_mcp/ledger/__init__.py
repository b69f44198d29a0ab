"""
Ledger module for irys-mcp.

Components (leaf first):
    - LedgerTransport: HTTP client for the gateway, indexer and upload node
    - IdentifierResolver: filter -> ordered transaction refs
    - classify: gateway response -> parsed payload or URL
    - BatchRetriever: bounded concurrent fetch of every resolved ref
    - LedgerWriter: signed uploads and the mutable chain protocol
"""

from irys_mcp.ledger.classifier import classify
from irys_mcp.ledger.resolver import IdentifierResolver
from irys_mcp.ledger.retrieval import BatchRetriever
from irys_mcp.ledger.transport import LedgerTransport
from irys_mcp.ledger.writer import LedgerWriter

__all__ = [
    "BatchRetriever",
    "IdentifierResolver",
    "LedgerTransport",
    "LedgerWriter",
    "classify",
]
