"""
Unit tests for LedgerWriter.
"""

import json
from pathlib import Path

import httpx
import pytest

from irys_mcp.errors import CredentialMissingError
from irys_mcp.ledger.transport import LedgerTransport
from irys_mcp.ledger.writer import LedgerWriter, wrap_envelope
from irys_mcp.schema import DataKind, MutableChain, Settings, Tag

ROOT_ID = "r" * 43


def missing_credential(settings: Settings):
    raise CredentialMissingError()


class TestUpload:
    @pytest.mark.asyncio
    async def test_upload_structured(self, transport: LedgerTransport, ledger, settings: Settings) -> None:
        result = await LedgerWriter(transport).upload({"k": "v"}, [Tag.of("Category", "a", "b")])

        assert result.success
        item = ledger.uploads[-1]
        assert result.transaction_id == item.id
        assert result.url == f"{settings.gateway_url}/{item.id}"
        assert json.loads(item.data) == {"k": "v"}
        assert item.tags == [{"name": "Category", "value": "a,b"}]

    @pytest.mark.asyncio
    async def test_no_content_type_for_structured(self, transport: LedgerTransport, ledger) -> None:
        await LedgerWriter(transport).upload([1, 2, 3])
        assert ledger.uploads[-1].tags == []

    @pytest.mark.asyncio
    async def test_posts_to_token_endpoint(self, transport: LedgerTransport, settings: Settings) -> None:
        writer = LedgerWriter(transport)
        assert writer.upload_endpoint == f"{settings.upload_url}/tx/ethereum"

    @pytest.mark.asyncio
    async def test_not_serializable(self, transport: LedgerTransport, ledger) -> None:
        result = await LedgerWriter(transport).upload({"when": object()})
        assert not result.success
        assert "JSON-serializable" in result.error
        assert ledger.uploads == []

    @pytest.mark.asyncio
    async def test_missing_credential(self, transport: LedgerTransport, ledger) -> None:
        writer = LedgerWriter(transport, signer_factory=missing_credential)
        result = await writer.upload({"k": 1})
        assert not result.success
        assert "private key" in result.error
        assert ledger.uploads == []

    @pytest.mark.asyncio
    async def test_service_error(self, transport: LedgerTransport, ledger) -> None:
        ledger.upload_override = httpx.Response(402, text="Not enough balance")
        result = await LedgerWriter(transport).upload("x")
        assert not result.success
        assert "402" in result.error
        assert "Not enough balance" in result.error

    @pytest.mark.asyncio
    async def test_network_error(self, transport: LedgerTransport, ledger) -> None:
        ledger.upload_override = httpx.ConnectError("refused")
        result = await LedgerWriter(transport).upload("x")
        assert not result.success
        assert "ConnectError" in result.error

    @pytest.mark.asyncio
    async def test_malformed_receipt(self, transport: LedgerTransport, ledger) -> None:
        ledger.upload_override = httpx.Response(200, json={"status": "ok"})
        result = await LedgerWriter(transport).upload("x")
        assert not result.success
        assert "malformed receipt" in result.error


class TestUploadFile:
    @pytest.mark.asyncio
    async def test_guesses_content_type(self, transport: LedgerTransport, ledger, temp_dir: Path) -> None:
        path = temp_dir / "photo.png"
        path.write_bytes(b"\x89PNG\r\n")

        result = await LedgerWriter(transport).upload_file(path, [Tag.of("App", "demo")])
        assert result.success
        item = ledger.uploads[-1]
        assert item.data == b"\x89PNG\r\n"
        assert {"name": "Content-Type", "value": "image/png"} in item.tags

    @pytest.mark.asyncio
    async def test_caller_content_type_kept(self, transport: LedgerTransport, ledger, temp_dir: Path) -> None:
        path = temp_dir / "photo.png"
        path.write_bytes(b"x")

        await LedgerWriter(transport).upload_file(path, [Tag.of("content-type", "image/webp")])
        assert ledger.uploads[-1].tags == [{"name": "content-type", "value": "image/webp"}]

    @pytest.mark.asyncio
    async def test_missing_file(self, transport: LedgerTransport, temp_dir: Path) -> None:
        result = await LedgerWriter(transport).upload_file(temp_dir / "nope.txt")
        assert not result.success
        assert "cannot read" in result.error

    @pytest.mark.asyncio
    async def test_raw_bytes(self, transport: LedgerTransport, ledger) -> None:
        result = await LedgerWriter(transport).upload_file(b"raw", content_type="text/plain")
        assert result.success
        assert ledger.uploads[-1].tags == [{"name": "Content-Type", "value": "text/plain"}]


class TestUploadData:
    @pytest.mark.asyncio
    async def test_envelope_for_other(self, transport: LedgerTransport, ledger) -> None:
        await LedgerWriter(transport).upload_data("hello", DataKind.OTHER)
        assert json.loads(ledger.uploads[-1].data) == wrap_envelope("hello") == {"data": "hello"}

    @pytest.mark.asyncio
    async def test_file_kind_reads_path(self, transport: LedgerTransport, ledger, temp_dir: Path) -> None:
        path = temp_dir / "notes.txt"
        path.write_text("notes")
        result = await LedgerWriter(transport).upload_data(str(path), DataKind.FILE)
        assert result.success
        assert ledger.uploads[-1].data == b"notes"

    @pytest.mark.asyncio
    async def test_file_kind_requires_path(self, transport: LedgerTransport) -> None:
        result = await LedgerWriter(transport).upload_data({"not": "a path"}, DataKind.IMAGE)
        assert not result.success
        assert "file path" in result.error


class TestMutate:
    @pytest.mark.asyncio
    async def test_first_write_has_no_link(self, transport: LedgerTransport, ledger) -> None:
        result = await LedgerWriter(transport).mutate({"v": 1}, MutableChain.unwritten())
        assert result.success
        assert ledger.uploads[-1].tags == []

    @pytest.mark.asyncio
    async def test_follow_up_tagged_with_root(self, transport: LedgerTransport, ledger) -> None:
        result = await LedgerWriter(transport).mutate({"v": 2}, MutableChain.root(ROOT_ID))
        assert result.success
        assert ledger.uploads[-1].tags == [{"name": "Root-TX", "value": ROOT_ID}]

    @pytest.mark.asyncio
    async def test_invalid_root_never_uploads(self, transport: LedgerTransport, ledger) -> None:
        result = await LedgerWriter(transport).mutate({"v": 2}, MutableChain.root("not-an-id"))
        assert not result.success
        assert "Invalid root transaction id" in result.error
        assert ledger.uploads == []
