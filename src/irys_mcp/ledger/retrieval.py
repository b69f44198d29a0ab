"""
Batch and single-transaction retrieval.

Execution Flow (batch):
    1. Resolve the filter into transaction refs (one indexing query)
    2. For every ref, concurrently: fetch from the gateway, then classify
    3. Convert each per-item failure into a RetrievedItem with error set
    4. Return the items in the resolver's order

Fan-out is bounded by a semaphore and each item has its own timeout, so
one slow transaction only costs its own slot.
"""

import asyncio
import logging
from collections.abc import Sequence
from typing import Any

from irys_mcp.errors import IrysError, ResolutionError, TransportError, TransportTimeoutError
from irys_mcp.ledger.classifier import classify
from irys_mcp.ledger.resolver import IdentifierResolver
from irys_mcp.ledger.transport import LedgerTransport
from irys_mcp.result import Result
from irys_mcp.schema import RetrievedItem, Tag, TimeRange, TransactionRef

logger = logging.getLogger(__name__)


class BatchRetriever:
    """
    Retrieves ledger content by filter or by id.

    Attributes:
        transport: Shared HTTP transport
        resolver: Filter-to-ids resolver
        max_concurrency: Maximum concurrent per-item pipelines
        item_timeout_seconds: Timeout for one fetch-and-classify pipeline
    """

    def __init__(
        self,
        transport: LedgerTransport,
        resolver: IdentifierResolver | None = None,
        max_concurrency: int | None = None,
        item_timeout_seconds: float | None = None,
    ):
        self.transport = transport
        self.resolver = resolver or IdentifierResolver(transport)
        self.max_concurrency = max_concurrency or transport.settings.max_concurrency
        self.item_timeout_seconds = item_timeout_seconds or transport.settings.item_timeout_seconds

    async def retrieve_one(self, transaction_id: str, mutable: bool = False) -> Result[Any]:
        """
        Fetch and classify exactly one transaction.

        Args:
            transaction_id: The transaction (or chain root when mutable)
            mutable: Resolve to the latest transaction in the chain

        Returns:
            Result with the parsed payload or a URL for binary content
        """
        fetched = await self.transport.fetch_transaction(transaction_id, mutable)
        if not fetched.success:
            return Result.fail(fetched.error)  # type: ignore[arg-type]
        return await classify(fetched.value, transaction_id)  # type: ignore[arg-type]

    async def _retrieve_item(self, ref: TransactionRef, semaphore: asyncio.Semaphore) -> RetrievedItem:
        """Run one per-item pipeline; failures become an item with error set."""
        async with semaphore:
            try:
                result = await asyncio.wait_for(
                    self.retrieve_one(ref.id),
                    timeout=self.item_timeout_seconds,
                )
            except TimeoutError:
                result = Result.fail(TransportTimeoutError(
                    transaction_id=ref.id,
                    timeout_seconds=self.item_timeout_seconds,
                ))
            except Exception as e:
                logger.exception("Unexpected failure retrieving %s", ref.id)
                result = Result.fail(TransportError(
                    transaction_id=ref.id,
                    underlying_error=f"{type(e).__name__}: {e}",
                ))

        if not result.success:
            logger.warning("Retrieving %s failed: %s", ref.id, result.error_message)
            return RetrievedItem(id=ref.id, address=ref.address, data=None, error=result.error_message)

        return RetrievedItem(id=ref.id, address=ref.address, data=result.value)

    async def retrieve_all(
        self,
        owners: Sequence[str] | None = None,
        tags: Sequence[Tag] | None = None,
        time_range: TimeRange | None = None,
    ) -> Result[list[RetrievedItem]]:
        """
        Retrieve every transaction matching the filter.

        The batch fails only when resolution fails; per-item failures are
        reported on their own item and never remove or reorder others.

        Returns:
            Result with one RetrievedItem per resolved ref, in resolver order
        """
        resolved = await self.resolver.resolve(owners, tags, time_range)
        if not resolved.success:
            return Result.fail(resolved.error)  # type: ignore[arg-type]

        refs = resolved.value or []
        if not refs:
            return Result.ok([])

        semaphore = asyncio.Semaphore(self.max_concurrency)
        try:
            # gather preserves argument order regardless of completion order
            items = await asyncio.gather(*(self._retrieve_item(ref, semaphore) for ref in refs))
        except IrysError as e:
            logger.exception("Batch retrieval failed outside item isolation")
            return Result.fail(e)
        except Exception as e:
            logger.exception("Batch retrieval failed outside item isolation")
            return Result.fail(ResolutionError(
                message="Unexpected failure while retrieving transactions",
                underlying_error=f"{type(e).__name__}: {e}",
            ))

        failed = sum(1 for item in items if item.error)
        logger.info("Retrieved %d transactions (%d failed)", len(items), failed)
        return Result.ok(list(items))
