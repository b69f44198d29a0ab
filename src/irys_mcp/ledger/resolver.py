"""
Identifier resolver.

Turns an (owners, tags, time range) filter into the ordered list of
matching transaction ids by querying the indexing endpoint once.
"""

import logging
from collections.abc import Sequence
from typing import Any

from irys_mcp.errors import ResolutionMalformedError
from irys_mcp.ledger.tags import query_tag_filters
from irys_mcp.ledger.transport import LedgerTransport
from irys_mcp.result import Result
from irys_mcp.schema import Tag, TimeRange, TransactionRef

logger = logging.getLogger(__name__)

TRANSACTIONS_QUERY = """
query Transactions($owners: [String!], $tags: [TagFilter!], $timestamp: TimestampFilter) {
  transactions(owners: $owners, tags: $tags, timestamp: $timestamp) {
    edges {
      node {
        id
        address
      }
    }
  }
}
""".strip()


def timestamp_filter(time_range: TimeRange | None) -> dict[str, int] | None:
    """
    Map TimeRange{from, to} onto the indexer's timestamp filter.

    Unset bounds are omitted; a fully unbounded range sends no filter.
    """
    if time_range is None or time_range.is_unbounded:
        return None
    wire: dict[str, int] = {}
    if time_range.from_ is not None:
        wire["from"] = time_range.from_
    if time_range.to is not None:
        wire["to"] = time_range.to
    return wire


def parse_edges(body: Any) -> list[TransactionRef]:
    """
    Flatten data.transactions.edges[].node into TransactionRefs.

    Raises:
        ResolutionMalformedError: If the body does not have that shape
    """
    if not isinstance(body, dict):
        raise ResolutionMalformedError(underlying_error="response is not an object")

    if body.get("errors"):
        messages = [str(e.get("message", e)) if isinstance(e, dict) else str(e) for e in body["errors"]]
        raise ResolutionMalformedError(underlying_error="; ".join(messages))

    try:
        edges = body["data"]["transactions"]["edges"]
        refs = [
            TransactionRef(id=edge["node"]["id"], address=edge["node"]["address"])
            for edge in edges
        ]
    except (KeyError, TypeError, ValueError) as e:
        raise ResolutionMalformedError(underlying_error=f"{type(e).__name__}: {e}") from e

    return refs


class IdentifierResolver:
    """Resolves filters into TransactionRefs via the indexing endpoint."""

    def __init__(self, transport: LedgerTransport):
        self.transport = transport

    async def resolve(
        self,
        owners: Sequence[str] | None = None,
        tags: Sequence[Tag] | None = None,
        time_range: TimeRange | None = None,
    ) -> Result[list[TransactionRef]]:
        """
        Resolve a filter into transaction refs, in the indexer's order.

        An empty filter is a valid "list everything" query. No matches is
        a success with an empty list.
        """
        variables = {
            "owners": list(owners) if owners else None,
            "tags": query_tag_filters(tags) or None,
            "timestamp": timestamp_filter(time_range),
        }

        response = await self.transport.query(TRANSACTIONS_QUERY, variables)
        if not response.success:
            logger.warning("Transaction query failed: %s", response.error)
            return Result.fail(response.error)  # type: ignore[arg-type]

        try:
            refs = parse_edges(response.value)
        except ResolutionMalformedError as e:
            logger.warning("Malformed transaction query response: %s", e.underlying_error)
            return Result.fail(e)

        logger.debug("Resolved %d transactions", len(refs))
        return Result.ok(refs)
