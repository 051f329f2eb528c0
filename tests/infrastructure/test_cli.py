"""End-to-end tests for the click CLI against a temporary data directory."""

import json

import pytest
from click.testing import CliRunner

from invres.infrastructure import bootstrap
from invres.infrastructure.cli.main import cli


@pytest.fixture
def runner(tmp_path, monkeypatch):
    monkeypatch.setenv("INVRES_DATA_DIR", str(tmp_path))
    monkeypatch.setenv("INVRES_TENANT", "acme")
    monkeypatch.setenv("INVRES_LOG_LEVEL", "CRITICAL")
    bootstrap.settings.cache_clear()
    yield CliRunner()
    bootstrap.settings.cache_clear()


class TestStockCommands:

    def test_receive_and_show(self, runner):
        result = runner.invoke(cli, ["stock", "receive", "--product", "SKU-1", "--quantity", "10"])
        assert result.exit_code == 0, result.output
        assert "available=10" in result.output

        result = runner.invoke(cli, ["stock", "show"])
        assert result.exit_code == 0
        assert "SKU-1" in result.output
        assert "WH-001" in result.output

    def test_check_prints_summary(self, runner):
        runner.invoke(cli, ["stock", "receive", "--product", "SKU-1", "--quantity", "3"])

        result = runner.invoke(cli, ["stock", "check", "--items", "SKU-1:2,SKU-9:1"])

        assert result.exit_code == 0
        assert "not_found" in result.output
        assert "all_available=false" in result.output

    def test_domain_error_becomes_click_error(self, runner):
        result = runner.invoke(cli, ["stock", "damage", "--product", "SKU-1", "--quantity", "1"])
        assert result.exit_code == 1
        assert "[insufficient_stock]" in result.output


class TestOrderCommands:

    def test_create_edit_and_ship(self, runner, tmp_path):
        runner.invoke(cli, ["stock", "receive", "--product", "SKU-1", "--quantity", "10"])

        result = runner.invoke(cli, ["order", "create", "--items", "SKU-1:2"])
        assert result.exit_code == 0, result.output
        assert "Order #1 created" in result.output

        result = runner.invoke(cli, ["order", "update", "--id", "1", "--items", "SKU-1:8"])
        assert result.exit_code == 0, result.output

        result = runner.invoke(cli, ["order", "status", "--id", "1", "--to", "shipped"])
        assert result.exit_code == 0, result.output

        [record] = json.loads((tmp_path / "stock.json").read_text())
        assert (record["available"], record["reserved"], record["committed"]) == (2, 0, 8)

    def test_oversell_is_refused(self, runner):
        runner.invoke(cli, ["stock", "receive", "--product", "SKU-1", "--quantity", "1"])

        result = runner.invoke(cli, ["order", "create", "--items", "SKU-1@WH-001:5"])

        assert result.exit_code == 1
        assert "[insufficient_stock]" in result.output

    def test_bad_item_format(self, runner):
        result = runner.invoke(cli, ["order", "create", "--items", "SKU-1"])
        assert result.exit_code == 2
        assert "Invalid item format" in result.output

    def test_cancel_and_delete(self, runner):
        runner.invoke(cli, ["stock", "receive", "--product", "SKU-1", "--quantity", "10"])
        runner.invoke(cli, ["order", "create", "--items", "SKU-1:2"])
        runner.invoke(cli, ["order", "create", "--items", "SKU-1:3"])

        assert runner.invoke(cli, ["order", "cancel", "--id", "1"]).exit_code == 0
        assert runner.invoke(cli, ["order", "delete", "--id", "2"]).exit_code == 0

        result = runner.invoke(cli, ["order", "show", "--id", "2"])
        assert result.exit_code == 1
        assert "[not_found]" in result.output
