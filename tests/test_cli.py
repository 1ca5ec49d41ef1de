"""
Tests for the command-line interface.
"""

from __future__ import annotations

import json

import pytest

from conftest import FakeEngine, make_docs
from signedsearch import ConfigurationError, SearchHandler, cli


@pytest.fixture
def engine(monkeypatch):
    engine = FakeEngine(make_docs(3))
    monkeypatch.setattr(cli, "get_handler", lambda args: SearchHandler(client=engine))
    return engine


def test_no_command_prints_help(capsys):
    assert cli.main([]) == 0
    assert "usage" in capsys.readouterr().out


def test_count(engine, capsys):
    assert cli.main(["count", "docs", "status:active"]) == 0
    assert capsys.readouterr().out.strip() == "3"


def test_scan_to_file(engine, tmp_path, capsys):
    out = tmp_path / "hits.jsonl"
    assert cli.main(["scan", "docs", "status:active", "-o", str(out)]) == 0

    lines = [json.loads(line) for line in out.read_text(encoding="utf-8").splitlines()]
    assert lines == [{"n": i, "status": "active"} for i in range(3)]
    assert "Scanned 3/3 documents in 1 requests" in capsys.readouterr().err


def test_scan_full_hits_to_stdout(engine, capsys):
    assert cli.main(["scan", "docs", "--hits"]) == 0
    first = json.loads(capsys.readouterr().out.splitlines()[0])
    assert first["_id"] == "doc-000000"
    assert first["sort"] == ["doc-000000"]


def test_partial_scan_exits_nonzero(monkeypatch, capsys):
    engine = FakeEngine(responses=[{"hits": {"hits": [{"_id": "a", "_source": {}}]}}])
    monkeypatch.setattr(cli, "get_handler", lambda args: SearchHandler(client=engine))

    assert cli.main(["scan", "docs"]) == 1
    assert "Scan incomplete: missing-total" in capsys.readouterr().err


def test_query(engine, capsys):
    assert cli.main(["query", "docs", "*", "--limit", "2", "--sort", "_id:desc"]) == 0
    assert engine.search_calls[0]["body"]["sort"] == [{"_id": {"order": "desc"}}]
    assert len(capsys.readouterr().out.splitlines()) == 2


def test_aggregate(engine, capsys):
    assert cli.main(["aggregate", "docs", "*", "total=amount"]) == 0
    assert engine.search_calls[0]["body"]["aggs"] == {"total": {"sum": {"field": "amount"}}}
    assert "total: 42.0" in capsys.readouterr().out


def test_delete_aborts_without_confirmation(engine, monkeypatch, capsys):
    monkeypatch.setattr("builtins.input", lambda prompt: "n")
    cli.main(["delete", "docs"])
    assert engine.indices.delete.calls == []
    assert "Aborted." in capsys.readouterr().out


def test_delete_forced(engine):
    cli.main(["delete", "docs", "-f"])
    assert engine.indices.delete.calls == [{"index": "docs"}]


def test_indices_table(engine, capsys):
    engine.cat.indices.result = [{"index": "docs", "health": "green", "docs.count": "3"}]
    cli.main(["indices"])
    assert "docs" in capsys.readouterr().out


def test_configuration_error_exit_code(monkeypatch, capsys):
    def broken(args):
        raise ConfigurationError("A region is required to sign requests", field="region")

    monkeypatch.setattr(cli, "get_handler", broken)
    assert cli.main(["count", "docs"]) == 2
    assert "region is required" in capsys.readouterr().err


def test_get_handler_reads_options(monkeypatch):
    for var in ("AWS_PROFILE", "AWS_DEFAULT_REGION", "AWS_REGION", "SEARCH_HOSTS",
                "SEARCH_ENGINE", "SEARCH_TIMEOUT"):
        monkeypatch.delenv(var, raising=False)

    args = cli.build_parser().parse_args([
        "--hosts", "https://a:443,https://b:443",
        "--region", "eu-west-1",
        "--profile", "sso-dev",
        "--timeout", "30",
        "count", "docs",
    ])
    handler = cli.get_handler(args)

    assert handler.config.hosts == ["https://a:443", "https://b:443"]
    assert handler.config.region == "eu-west-1"
    assert handler.config.profile == "sso-dev"
    assert handler.config.timeout == 30
    assert handler.config.signed


def test_scan_output_not_created_when_handler_fails(monkeypatch, tmp_path):
    def broken(args):
        raise ConfigurationError("A region is required to sign requests", field="region")

    monkeypatch.setattr(cli, "get_handler", broken)
    out = tmp_path / "hits.jsonl"

    assert cli.main(["scan", "docs", "-o", str(out)]) == 2
    assert not out.exists()


def test_scan_reports_lower_bound_total(monkeypatch, capsys):
    engine = FakeEngine(responses=[{"hits": {
        "total": {"value": 1, "relation": "gte"},
        "hits": [{"_id": "a", "_source": {}, "sort": ["a"]}],
    }}])
    monkeypatch.setattr(cli, "get_handler", lambda args: SearchHandler(client=engine))

    assert cli.main(["scan", "docs"]) == 1
    assert "Scan incomplete: total-lower-bound" in capsys.readouterr().err
