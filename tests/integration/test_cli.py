"""
Integration tests for the irys-mcp CLI.

Commands run against a FakeLedger by patching build_service.
"""

import asyncio
import json

import httpx
import pytest
import typer
from typer.testing import CliRunner

from irys_mcp import __version__, cli
from irys_mcp.cli import app, parse_data_argument, parse_tag_options
from irys_mcp.engine import IrysService
from irys_mcp.ledger.transport import LedgerTransport

runner = CliRunner()


@pytest.fixture
def fake_service(monkeypatch: pytest.MonkeyPatch, settings, ledger):
    """Route every CLI command to the FakeLedger."""
    clients: list[httpx.AsyncClient] = []

    def build(_settings) -> IrysService:
        client = httpx.AsyncClient(transport=httpx.MockTransport(ledger.handler))
        clients.append(client)
        return IrysService(settings, transport=LedgerTransport(settings, client=client))

    monkeypatch.setattr(cli, "build_service", build)
    yield ledger

    for client in clients:
        asyncio.run(client.aclose())


class TestParsing:
    def test_tag_options_merge_repeated_names(self) -> None:
        assert parse_tag_options(["App=demo", "Category=a", "Category=b"]) == [
            {"name": "App", "values": ["demo"]},
            {"name": "Category", "values": ["a", "b"]},
        ]

    def test_tag_value_may_contain_equals(self) -> None:
        assert parse_tag_options(["Query=a=b"]) == [{"name": "Query", "values": ["a=b"]}]

    def test_tag_options_require_equals(self) -> None:
        with pytest.raises(typer.BadParameter):
            parse_tag_options(["nope"])

    def test_no_tags(self) -> None:
        assert parse_tag_options(None) == []

    def test_data_argument(self) -> None:
        assert parse_data_argument('{"a": 1}') == {"a": 1}
        assert parse_data_argument("42") == 42
        assert parse_data_argument("just text") == "just text"


class TestVersion:
    def test_version(self) -> None:
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.stdout


class TestToolsCommand:
    def test_lists_tools_as_json(self) -> None:
        result = runner.invoke(app, ["tools", "--json"])
        assert result.exit_code == 0
        names = [entry["name"] for entry in json.loads(result.stdout)]
        assert names == [
            "mutateDataOnIrys",
            "retrieveDataFromATransactionId",
            "retrieveDataFromIrys",
            "uploadDataOnIrys",
        ]


class TestUploadAndGet:
    def test_upload_json(self, fake_service) -> None:
        result = runner.invoke(app, ["upload", '{"note": "hi"}', "--tag", "App=demo", "--json"])
        assert result.exit_code == 0, result.output

        payload = json.loads(result.stdout)
        assert payload["success"] is True
        item = fake_service.uploads[-1]
        assert payload["data"].endswith(item.id)
        assert json.loads(item.data) == {"data": {"note": "hi"}}
        assert item.tags == [{"name": "App", "value": "demo"}]

    def test_get(self, fake_service) -> None:
        fake_service.seed("tx1", "0xA", {"data": {"k": 1}})
        result = runner.invoke(app, ["get", "tx1", "--json"])
        assert result.exit_code == 0
        assert json.loads(result.stdout)["data"] == {"data": {"k": 1}}

    def test_get_plain_output(self, fake_service) -> None:
        fake_service.seed("tx1", "0xA", {"data": [1, 2]})
        result = runner.invoke(app, ["get", "tx1"])
        assert result.exit_code == 0
        assert "Data retrieved successfully" in result.stdout

    def test_get_missing_exits_non_zero(self, fake_service) -> None:
        result = runner.invoke(app, ["get", "missing"])
        assert result.exit_code == 1
        assert "Failed to retrieve data" in result.stdout


class TestRetrieveCommand:
    def test_retrieve_json(self, fake_service) -> None:
        fake_service.seed("t1", "0xA", {"data": "one"}, tags=[{"name": "App", "value": "demo"}])
        fake_service.seed("t2", "0xA", {"data": "two"})

        result = runner.invoke(app, ["retrieve", "0xA", "--tag", "App=demo", "--json"])
        assert result.exit_code == 0
        payload = json.loads(result.stdout)
        assert [item["id"] for item in payload["data"]] == ["t1"]
        assert payload["metadata"]["count"] == 1

    def test_retrieve_time_range(self, fake_service) -> None:
        runner.invoke(app, ["retrieve", "0xA", "--from", "10", "--json"])
        assert fake_service.queries[-1]["variables"]["timestamp"] == {"from": 10}


class TestMutateCommand:
    def test_chain(self, fake_service) -> None:
        first = runner.invoke(app, ["mutate", '{"v": 1}', "--json"])
        root_id = json.loads(first.stdout)["metadata"]["root_transaction_id"]

        second = runner.invoke(app, ["mutate", '{"v": 2}', "--root", root_id, "--already-uploaded", "--json"])
        assert second.exit_code == 0
        assert fake_service.uploads[-1].tags == [{"name": "Root-TX", "value": root_id}]

        latest = runner.invoke(app, ["get", root_id, "--mutable", "--json"])
        assert json.loads(latest.stdout)["data"] == {"v": 2}


class TestDoctor:
    def test_all_checks_pass(self, monkeypatch: pytest.MonkeyPatch, private_key: str) -> None:
        monkeypatch.setenv("PRIVATE_KEY", private_key)
        real_client = httpx.Client

        def fake_client(**kwargs) -> httpx.Client:
            return real_client(transport=httpx.MockTransport(lambda request: httpx.Response(200)), **kwargs)

        monkeypatch.setattr(cli.httpx, "Client", fake_client)

        result = runner.invoke(app, ["doctor", "--json"])
        payload = json.loads(result.stdout)
        assert payload["ok"] is True, payload
        assert result.exit_code == 0

    def test_missing_key_fails(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("PRIVATE_KEY", raising=False)
        monkeypatch.delenv("IRYS_PRIVATE_KEY", raising=False)
        real_client = httpx.Client
        monkeypatch.setattr(
            cli.httpx,
            "Client",
            lambda **kwargs: real_client(transport=httpx.MockTransport(lambda r: httpx.Response(200))),
        )

        result = runner.invoke(app, ["doctor", "--json"])
        checks = {check["name"]: check for check in json.loads(result.stdout)["checks"]}
        assert checks["Upload credential"]["ok"] is False
        assert result.exit_code == 1
