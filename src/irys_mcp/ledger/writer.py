"""
Write orchestrator.

Uploads structured values and files to the ledger and implements the
mutable chain protocol:

    unwritten --(first write, no link tag)--> root written
    root written --(write tagged Root-TX=<root id>)--> updated
    updated --(write tagged Root-TX=<root id>)--> updated

The chain position is passed in by the caller as a MutableChain; nothing
about chain membership is stored locally. A write is committed once the
upload node returns a receipt; the content is not read back.
"""

import asyncio
import json
import logging
import mimetypes
from collections.abc import Callable, Sequence
from pathlib import Path
from typing import Any

import httpx

from irys_mcp.errors import InvalidRootReferenceError, IrysError, WriteError
from irys_mcp.ledger.bundle import DataItemSigner, create_data_item
from irys_mcp.ledger.signer import get_signer
from irys_mcp.ledger.tags import CONTENT_TYPE_TAG, ROOT_TX_TAG, flatten_tags, has_tag
from irys_mcp.ledger.transport import LedgerTransport
from irys_mcp.schema import DataKind, MutableChain, Settings, Tag, UploadResult

logger = logging.getLogger(__name__)

SignerFactory = Callable[[Settings], DataItemSigner]


def wrap_envelope(data: Any) -> dict[str, Any]:
    """Envelope applied to structured values uploaded through the dispatcher."""
    return {"data": data}


class LedgerWriter:
    """
    Uploads payloads as signed data items.

    Every public method returns an UploadResult and never raises for
    network, signing or service-side failures.
    """

    def __init__(self, transport: LedgerTransport, signer_factory: SignerFactory = get_signer):
        self.transport = transport
        self.settings = transport.settings
        self._signer_factory = signer_factory

    @property
    def upload_endpoint(self) -> str:
        return f"{self.settings.upload_url}/tx/{self.settings.token}"

    def public_url(self, transaction_id: str) -> str:
        return f"{self.settings.gateway_url}/{transaction_id}"

    async def upload(self, payload: Any, tags: Sequence[Tag] | None = None) -> UploadResult:
        """
        Upload a structured value as JSON.

        No Content-Type tag is attached, so the gateway serves the value
        as application/octet-stream and reads parse it back as JSON.
        """
        try:
            body = json.dumps(payload).encode("utf-8")
        except (TypeError, ValueError) as e:
            return UploadResult.fail(WriteError(underlying_error=f"payload is not JSON-serializable: {e}").message)
        return await self._submit(body, flatten_tags(tags))

    async def upload_file(
        self,
        payload: bytes | str | Path,
        tags: Sequence[Tag] | None = None,
        content_type: str | None = None,
    ) -> UploadResult:
        """
        Upload raw bytes or the contents of a file.

        Args:
            payload: Raw bytes, or a path to read
            tags: Caller tags
            content_type: Explicit Content-Type; guessed from the file name otherwise
        """
        if isinstance(payload, bytes):
            body = payload
        else:
            path = Path(payload)
            try:
                body = await asyncio.to_thread(path.read_bytes)
            except OSError as e:
                return UploadResult.fail(WriteError(underlying_error=f"cannot read {path}: {e}").message)
            if content_type is None:
                content_type = mimetypes.guess_type(path.name)[0]

        flat = flatten_tags(tags)
        if content_type and not has_tag(flat, CONTENT_TYPE_TAG):
            flat.append({"name": CONTENT_TYPE_TAG, "value": content_type})
        return await self._submit(body, flat)

    async def upload_data(self, data: Any, kind: DataKind, tags: Sequence[Tag] | None = None) -> UploadResult:
        """
        Dispatch on the declared kind.

        FILE and IMAGE data is a file path; anything else is wrapped in the
        {"data": ...} envelope and uploaded as JSON.
        """
        if kind.is_file:
            if not isinstance(data, (str, Path)):
                return UploadResult.fail(
                    WriteError(underlying_error=f"{kind.value} data must be a file path").message
                )
            return await self.upload_file(data, tags)
        return await self.upload(wrap_envelope(data), tags)

    async def mutate(self, payload: Any, chain: MutableChain) -> UploadResult:
        """
        Write the next value of a mutable chain.

        An unwritten chain gets a plain upload whose id becomes the root.
        A rooted chain gets an upload tagged Root-TX=<root id>, which the
        gateway's mutable path resolves to.
        """
        if chain.is_unwritten:
            logger.debug("Starting new mutable chain")
            return await self.upload(payload)

        if not chain.has_valid_root():
            error = InvalidRootReferenceError(root_transaction_id=chain.root_id or "")
            logger.warning("Rejected chain write: %s", error.message)
            return UploadResult.fail(error.message)

        logger.debug("Appending to mutable chain %s", chain.root_id)
        return await self.upload(payload, [Tag.of(ROOT_TX_TAG, chain.root_id)])  # type: ignore[arg-type]

    async def _submit(self, body: bytes, tags: list[dict[str, str]]) -> UploadResult:
        """Sign, post and turn the receipt into an UploadResult."""
        try:
            signer = self._signer_factory(self.settings)
            item = create_data_item(body, signer, tags)
        except IrysError as e:
            return UploadResult.fail(e.message)

        try:
            response = await self.transport.post_bytes(
                self.upload_endpoint,
                item.to_bytes(),
                headers={"Content-Type": "application/octet-stream"},
            )
        except httpx.TimeoutException as e:
            return UploadResult.fail(WriteError(underlying_error=f"upload timed out: {e}").message)
        except httpx.RequestError as e:
            return UploadResult.fail(WriteError(underlying_error=f"{type(e).__name__}: {e}").message)

        if not response.is_success:
            detail = response.text.strip()[:200] or response.reason_phrase
            error = WriteError(
                underlying_error=f"upload node returned {response.status_code}: {detail}",
                status_code=response.status_code,
            )
            logger.warning("%s", error.message)
            return UploadResult.fail(error.message)

        try:
            receipt = response.json()
            transaction_id = receipt["id"]
        except (ValueError, KeyError, TypeError) as e:
            return UploadResult.fail(WriteError(underlying_error=f"malformed receipt: {e}").message)

        url = self.public_url(transaction_id)
        logger.info("Uploaded %d bytes as %s", len(body), transaction_id)
        return UploadResult.ok(url=url, transaction_id=transaction_id)
