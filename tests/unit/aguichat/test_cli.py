"""Tests for the aguichat CLI."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from typer.testing import CliRunner

from aguichat import __version__
from aguichat.agui.stream import StreamFragment
from aguichat.cli import main as cli_main

runner = CliRunner()


@pytest.fixture
def schema_file(tmp_path: Path) -> Path:
    path = tmp_path / "schema.json"
    path.write_text(
        json.dumps(
            [
                {"table_name": "products", "column_name": "name", "data_type": "text"},
                {"table_name": "products", "column_name": "price", "data_type": "numeric"},
            ]
        )
    )
    return path


def _use_provider(monkeypatch: pytest.MonkeyPatch, provider) -> None:
    monkeypatch.setattr(cli_main, "create_provider_from_config", lambda config: provider)


class TestCLI:
    """Tests for CLI commands."""

    def test_version(self) -> None:
        result = runner.invoke(cli_main.app, ["version"])
        assert result.exit_code == 0
        assert f"aguichat version {__version__}" in result.stdout

    def test_sql_json(self, monkeypatch, schema_file, scripted_provider) -> None:
        provider = scripted_provider(
            replies=['{"sql": "SELECT name FROM products", "explanation": "Names", "confidence": 0.9}']
        )
        _use_provider(monkeypatch, provider)

        result = runner.invoke(
            cli_main.app, ["sql", "product names", "-s", str(schema_file), "--json"]
        )

        assert result.exit_code == 0, result.stdout
        assert json.loads(result.stdout) == {
            "sql": "SELECT name FROM products",
            "explanation": "Names",
            "confidence": 0.9,
        }
        messages, _ = provider.calls[0]
        assert "products: name (text) NULL, price (numeric) NULL" in messages[0].content

    def test_sql_invalid_schema_file(self, tmp_path: Path) -> None:
        path = tmp_path / "bad.json"
        path.write_text("{not json")
        result = runner.invoke(cli_main.app, ["sql", "q", "-s", str(path)])
        assert result.exit_code == 2

    def test_sql_conversion_failure(self, monkeypatch, schema_file, scripted_provider) -> None:
        _use_provider(monkeypatch, scripted_provider(error=ConnectionError("refused")))
        result = runner.invoke(cli_main.app, ["sql", "q", "-s", str(schema_file)])
        assert result.exit_code == 1

    def test_check(self, monkeypatch, scripted_provider) -> None:
        _use_provider(monkeypatch, scripted_provider())
        assert runner.invoke(cli_main.app, ["check"]).exit_code == 0

        _use_provider(monkeypatch, scripted_provider(available=False))
        assert runner.invoke(cli_main.app, ["check"]).exit_code == 1

    def test_chat_raw(self, monkeypatch, scripted_provider, envelope_fragments) -> None:
        _use_provider(monkeypatch, scripted_provider(fragments=envelope_fragments))

        result = runner.invoke(cli_main.app, ["chat", "results?", "--raw"])

        assert result.exit_code == 0
        assert '"type": "done"' in result.stdout

    def test_chat_error_exit_code(self, monkeypatch, scripted_provider) -> None:
        _use_provider(monkeypatch, scripted_provider(error=ConnectionError("refused")))
        result = runner.invoke(cli_main.app, ["chat", "hi"])
        assert result.exit_code == 1

    def test_chat_renders_text(self, monkeypatch, scripted_provider) -> None:
        provider = scripted_provider(
            fragments=[StreamFragment(delta="plain answer"), StreamFragment(finish_reason="stop")]
        )
        _use_provider(monkeypatch, provider)
        result = runner.invoke(cli_main.app, ["chat", "hi"])
        assert result.exit_code == 0
        assert "plain answer" in result.stdout
