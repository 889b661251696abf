"""Tests for the command line interface."""

import json

import pytest
from click.testing import CliRunner

from vaultgraph.cli import main
from vaultgraph.config import HOME_ENV, VAULT_ENV


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    monkeypatch.delenv(HOME_ENV, raising=False)
    monkeypatch.delenv(VAULT_ENV, raising=False)


@pytest.fixture
def home(tmp_path):
    vault = tmp_path / "notes"
    vault.mkdir()
    (vault / "a.md").write_text('---\ntitle: A\ntags: ["x"]\n---\nsee [[b]]\n')
    (vault / "b.md").write_text("see [[c]] and [[ghost]]\n")
    (vault / "c.md").write_text("no links\n")
    (vault / "d.md").write_text("alone\n")
    return tmp_path


def _invoke(home, *args):
    runner = CliRunner()
    return runner.invoke(main, ["--home", str(home), *args])


def test_path(home):
    result = _invoke(home, "path", "a", "c")
    assert result.exit_code == 0, result.output
    assert "a.md → b.md → c.md" in result.output


def test_path_unreachable(home):
    result = _invoke(home, "path", "c", "a")
    assert result.exit_code == 0
    assert "unreachable" in result.output


def test_backlinks(home):
    result = _invoke(home, "backlinks", "c")
    assert result.exit_code == 0
    assert result.output.strip() == "b.md"


def test_backlinks_missing_note_exits_1(home):
    result = _invoke(home, "backlinks", "nope")
    assert result.exit_code == 1


def test_orphans(home):
    result = _invoke(home, "orphans")
    assert result.output.split() == ["d.md"]
    result = _invoke(home, "orphans", "--exclude", "d.md")
    assert "d.md" not in result.output


def test_tags_add_and_list(home):
    result = _invoke(home, "tags", "add", "a", "y", "x")
    assert result.exit_code == 0, result.output
    result = _invoke(home, "tags", "list")
    assert result.output.split() == ["x", "y"]


def test_set_single_and_batch(home):
    assert _invoke(home, "set", "status", "draft", "d").exit_code == 0
    assert "status: draft" in (home / "notes" / "d.md").read_text()

    result = _invoke(home, "set", "status", "done", "a", "missing")
    assert result.exit_code == 1
    assert "status: done" in (home / "notes" / "a.md").read_text()


def test_set_list_value(home):
    _invoke(home, "set", "--list", "aliases", "one, two", "c")
    assert 'aliases: ["one", "two"]' in (home / "notes" / "c.md").read_text()


def test_call_outputs_json(home):
    result = _invoke(home, "call", "find_clusters", '{"min_size": 2}')
    assert result.exit_code == 0, result.output
    assert json.loads(result.output) == [["a.md", "b.md", "c.md"]]


def test_call_rejects_bad_json(home):
    result = _invoke(home, "call", "find_clusters", "{nope")
    assert result.exit_code == 2


def test_vault_switching(home):
    assert _invoke(home, "vaults", "create", "second").exit_code == 0
    assert _invoke(home, "vaults", "switch", "second").exit_code == 0
    result = _invoke(home, "call", "list_notes")
    assert [n["filename"] for n in json.loads(result.output)] == ["Welcome.md"]


def test_missing_vault_exits_1(tmp_path):
    result = _invoke(tmp_path, "orphans")
    assert result.exit_code == 1


def test_stats_and_broken(home):
    result = _invoke(home, "stats")
    assert result.exit_code == 0, result.output
    assert "Notes: 4" in result.output
    result = _invoke(home, "broken")
    assert "ghost" in result.output


def test_call_with_reserved_looking_keys(home):
    result = _invoke(home, "call", "list_notes", '{"ctx": 1, "operation_name": "x"}')
    assert result.exit_code == 1
    assert isinstance(result.exception, SystemExit)
