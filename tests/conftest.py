"""
Pytest configuration and fixtures for irys-mcp tests.

The FakeLedger fixture stands in for all three remote services behind an
httpx.MockTransport:
- the indexing endpoint (GraphQL transactions query)
- the gateway (/<id> and /mutable/<root>)
- the upload node (/tx/<token>, decoding the signed data item)
"""

import asyncio
import json
import tempfile
from collections.abc import AsyncGenerator
from dataclasses import dataclass, field
from pathlib import Path
from typing import Generator
from urllib.parse import unquote

import httpx
import pytest
import pytest_asyncio
from eth_keys import keys

from irys_mcp.engine import IrysService
from irys_mcp.ledger.bundle import DataItem
from irys_mcp.ledger.signer import reset_signer
from irys_mcp.ledger.transport import LedgerTransport
from irys_mcp.schema import Settings

# Example key from the eth-account documentation; never holds funds
TEST_PRIVATE_KEY = "0x4c0883a69102937d6231471b5dbb6204fe5129617082792ae468d01a3f362318"


@dataclass
class StoredTransaction:
    id: str
    address: str
    data: bytes
    tags: list[dict[str, str]] = field(default_factory=list)
    timestamp: int = 0

    def tag(self, name: str) -> str | None:
        for tag in self.tags:
            if tag["name"].lower() == name.lower():
                return tag["value"]
        return None


class FakeLedger:
    """In-memory gateway, indexer and upload node."""

    def __init__(self, settings: Settings):
        self.settings = settings
        self.transactions: dict[str, StoredTransaction] = {}
        self.queries: list[dict] = []
        self.uploads: list[DataItem] = []
        # Per-id overrides: an httpx.Response to return, an exception to raise,
        # or a float number of seconds to stall before answering
        self.gateway_overrides: dict[str, object] = {}
        self.graphql_override: httpx.Response | Exception | None = None
        self.upload_override: httpx.Response | Exception | None = None
        self._clock = 1_700_000_000_000

    def seed(
        self,
        tx_id: str,
        address: str,
        data: bytes | str | dict | list,
        tags: list[dict[str, str]] | None = None,
        timestamp: int | None = None,
    ) -> StoredTransaction:
        if isinstance(data, (dict, list)):
            data = json.dumps(data)
        if isinstance(data, str):
            data = data.encode()
        self._clock += 1000
        tx = StoredTransaction(
            id=tx_id,
            address=address,
            data=data,
            tags=tags or [],
            timestamp=self._clock if timestamp is None else timestamp,
        )
        self.transactions[tx_id] = tx
        return tx

    async def handler(self, request: httpx.Request) -> httpx.Response:
        url = str(request.url)
        if request.method == "POST" and url == self.settings.graphql_url:
            return self._graphql(request)
        if request.method == "POST" and url.startswith(f"{self.settings.upload_url}/tx/"):
            return self._upload(request)
        if request.method == "GET" and url.startswith(f"{self.settings.gateway_url}/"):
            return await self._gateway(request, url[len(self.settings.gateway_url) + 1:])
        return httpx.Response(404, text="not found")

    def _graphql(self, request: httpx.Request) -> httpx.Response:
        if isinstance(self.graphql_override, Exception):
            raise self.graphql_override
        body = json.loads(request.content)
        self.queries.append(body)
        if self.graphql_override is not None:
            return self.graphql_override

        variables = body.get("variables", {})
        owners = variables.get("owners")
        tag_filters = variables.get("tags") or []
        timestamp = variables.get("timestamp") or {}

        edges = []
        for tx in self.transactions.values():
            if owners and tx.address not in owners:
                continue
            if any(tx.tag(f["name"]) not in f["values"] for f in tag_filters):
                continue
            if "from" in timestamp and tx.timestamp < timestamp["from"]:
                continue
            if "to" in timestamp and tx.timestamp > timestamp["to"]:
                continue
            edges.append({"node": {"id": tx.id, "address": tx.address}})

        return httpx.Response(200, json={"data": {"transactions": {"edges": edges}}})

    def _upload(self, request: httpx.Request) -> httpx.Response:
        if isinstance(self.upload_override, Exception):
            raise self.upload_override
        if self.upload_override is not None:
            return self.upload_override

        item = DataItem.from_bytes(request.content)
        self.uploads.append(item)
        address = keys.PublicKey(item.owner[1:]).to_checksum_address()
        tx = self.seed(item.id, address, item.data, item.tags)
        return httpx.Response(200, json={"id": tx.id, "timestamp": tx.timestamp})

    async def _gateway(self, request: httpx.Request, path: str) -> httpx.Response:
        segments = path.split("/")
        mutable = len(segments) == 2 and segments[0] == "mutable"
        if len(segments) > 1 and not mutable:
            return httpx.Response(404, text="Not Found")
        tx_id = unquote(segments[-1])

        override = self.gateway_overrides.get(tx_id)
        if isinstance(override, Exception):
            raise override
        if isinstance(override, httpx.Response):
            return override
        if isinstance(override, float):
            await asyncio.sleep(override)

        tx = self.transactions.get(tx_id)
        if tx is None:
            return httpx.Response(404, text="Not Found")
        if mutable:
            for candidate in self.transactions.values():
                if candidate.tag("Root-TX") == tx_id:
                    tx = candidate

        content_type = tx.tag("Content-Type") or "application/octet-stream"
        return httpx.Response(200, headers={"content-type": content_type}, content=tx.data)


@pytest.fixture(autouse=True)
def clean_signer() -> Generator[None, None, None]:
    """Every test starts without a process-wide signer."""
    reset_signer()
    yield
    reset_signer()


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def settings() -> Settings:
    """Settings with a test key and short item timeout."""
    return Settings(private_key=TEST_PRIVATE_KEY, item_timeout_seconds=2.0, max_concurrency=4)


@pytest.fixture
def ledger(settings: Settings) -> FakeLedger:
    return FakeLedger(settings)


@pytest_asyncio.fixture
async def transport(settings: Settings, ledger: FakeLedger) -> AsyncGenerator[LedgerTransport, None]:
    client = httpx.AsyncClient(transport=httpx.MockTransport(ledger.handler), follow_redirects=True)
    yield LedgerTransport(settings, client=client)
    await client.aclose()


@pytest_asyncio.fixture
async def service(settings: Settings, transport: LedgerTransport) -> IrysService:
    return IrysService(settings, transport=transport)


@pytest.fixture
def sample_settings_yaml() -> str:
    return """
gateway_url: "https://gateway.example.com/"
graphql_url: "https://indexer.example.com/graphql"
max_concurrency: 2
"""


@pytest.fixture
def private_key() -> str:
    return TEST_PRIVATE_KEY
