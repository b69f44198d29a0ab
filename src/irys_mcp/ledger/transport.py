"""
Transport client for the gateway and indexing endpoints.

This module only moves bytes: it sends the indexing query, opens gateway
responses for transaction ids, and posts upload bodies. Interpreting the
responses is left to the resolver, classifier and writer.

Failures never escape as httpx exceptions; they come back as failed
Result values carrying a typed IrysError.
"""

import logging
from typing import Any
from urllib.parse import quote

import httpx

from irys_mcp.errors import ResolutionError, TransportError, TransportStatusError
from irys_mcp.result import Result
from irys_mcp.schema import Settings

logger = logging.getLogger(__name__)

MUTABLE_PATH_SEGMENT = "mutable"


class LedgerTransport:
    """
    Async HTTP client shared by every ledger component.

    Example:
        async with LedgerTransport(settings) as transport:
            result = await transport.fetch_transaction(tx_id)
            if result.success:
                response = result.value
    """

    def __init__(self, settings: Settings | None = None, client: httpx.AsyncClient | None = None):
        """
        Initialize the transport.

        Args:
            settings: Endpoints and timeouts. If None, uses defaults.
            client: Optional pre-built client (not closed by this transport)
        """
        self.settings = settings or Settings()
        self._client = client
        self._owns_client = client is None

    def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self.settings.timeout_seconds,
                follow_redirects=True,
            )
        return self._client

    async def aclose(self) -> None:
        """Close the HTTP client if this transport created it."""
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "LedgerTransport":
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.aclose()

    def transaction_url(self, transaction_id: str, mutable: bool = False) -> str:
        """
        Build <gateway>[/mutable]/<id>.

        The id is percent-encoded as a single path segment, so "/" or
        control characters in it never change which path is requested.
        """
        base = self.settings.gateway_url
        segment = quote(transaction_id, safe="")
        if mutable:
            return f"{base}/{MUTABLE_PATH_SEGMENT}/{segment}"
        return f"{base}/{segment}"

    async def query(self, query: str, variables: dict[str, Any]) -> Result[dict[str, Any]]:
        """
        POST a GraphQL query to the indexing endpoint.

        Args:
            query: GraphQL document
            variables: Query variables (None-valued entries are dropped)

        Returns:
            Result with the decoded JSON body, or a ResolutionError
        """
        payload = {
            "query": query,
            "variables": {k: v for k, v in variables.items() if v is not None},
        }
        url = self.settings.graphql_url
        logger.debug("POST %s variables=%s", url, payload["variables"])

        try:
            response = await self._get_client().post(url, json=payload)
        except httpx.TimeoutException as e:
            return Result.fail(ResolutionError(underlying_error=f"timed out: {e}"))
        except httpx.RequestError as e:
            return Result.fail(ResolutionError(underlying_error=f"{type(e).__name__}: {e}"))

        if not response.is_success:
            return Result.fail(ResolutionError(
                underlying_error=f"{response.status_code} {response.reason_phrase}",
            ))

        try:
            body = response.json()
        except ValueError as e:
            return Result.fail(ResolutionError(underlying_error=f"invalid JSON: {e}"))

        return Result.ok(body)

    async def fetch_transaction(self, transaction_id: str, mutable: bool = False) -> Result[httpx.Response]:
        """
        Open the gateway response for one transaction.

        The body is not read: the returned response is streaming, and the
        caller must read or close it.

        Args:
            transaction_id: The transaction to fetch
            mutable: Resolve to the latest transaction of the chain rooted here

        Returns:
            Result with an open httpx.Response, or a TransportError
        """
        client = self._get_client()
        url = self.transaction_url(transaction_id, mutable)
        logger.debug("GET %s", url)

        try:
            response = await client.send(client.build_request("GET", url), stream=True)
        except httpx.InvalidURL as e:
            return Result.fail(TransportError(
                transaction_id=transaction_id,
                underlying_error=f"invalid URL: {e}",
            ))
        except httpx.TimeoutException as e:
            return Result.fail(TransportError(
                transaction_id=transaction_id,
                underlying_error=f"timed out: {e}",
            ))
        except httpx.RequestError as e:
            return Result.fail(TransportError(
                transaction_id=transaction_id,
                underlying_error=f"{type(e).__name__}: {e}",
            ))

        if not response.is_success:
            await response.aclose()
            return Result.fail(TransportStatusError(
                transaction_id=transaction_id,
                status_code=response.status_code,
                reason_phrase=response.reason_phrase,
            ))

        return Result.ok(response)

    async def post_bytes(self, url: str, body: bytes, headers: dict[str, str] | None = None) -> httpx.Response:
        """
        POST a raw body. Network errors propagate as httpx exceptions.

        Only the writer uses this; it converts failures into WriteError.
        """
        logger.debug("POST %s (%d bytes)", url, len(body))
        return await self._get_client().post(url, content=body, headers=headers or {})
