"""Tests for name-based operation dispatch."""

import json

import pytest

from vaultgraph.api import INVALID_ARGUMENTS, OPERATIONS, UNKNOWN_OPERATION, call
from vaultgraph.config import Vault
from vaultgraph.graph import GraphProvider, build_graph
from vaultgraph.vault import load_vault


@pytest.fixture
def vault(tmp_path):
    notes = {
        "a.md": '---\ntags: ["x"]\n---\nsee [[b]]',
        "b.md": "see [[c]]",
        "c.md": "no links",
        "Welcome.md": "start here",
    }
    for name, text in notes.items():
        (tmp_path / name).write_text(text)
    return Vault(root=tmp_path, orphan_exclude=frozenset({"Welcome.md"}))


def test_every_operation_has_a_description():
    for op in OPERATIONS.values():
        assert op.description, op.name


def test_shortest_path(vault):
    result = call(vault, "shortest_path", {"source": "a", "target": "c"})
    assert result.ok
    assert result.payload["path"] == ["a.md", "b.md", "c.md"]
    assert result.payload["hops"] == 2


def test_shortest_path_unknown_is_not_an_error(vault):
    result = call(vault, "shortest_path", {"source": "a", "target": "zzz"})
    assert result.ok
    assert result.payload["status"] == "not_found"


def test_orphans_use_configured_exclusions(vault):
    assert call(vault, "find_orphans").payload == []
    (vault.root / "lonely.md").write_text("nobody")
    assert call(vault, "find_orphans").payload == ["lonely.md"]
    assert call(vault, "find_orphans", {"exclude": ["lonely.md"]}).payload == []


def test_backlinks_not_found_is_typed(vault):
    result = call(vault, "find_backlinks", {"filename": "ghost"})
    assert not result.ok
    assert result.error_kind == "not_found"


def test_centrality_payload(vault):
    (top,) = call(vault, "centrality", {"limit": 1}).payload
    assert top == {"document": "b.md", "in_degree": 1, "out_degree": 1, "degree": 2}


def test_unknown_operation(vault):
    result = call(vault, "format_disk")
    assert result.error_kind == UNKNOWN_OPERATION


def test_invalid_arguments(vault):
    assert call(vault, "shortest_path", {"source": "a"}).error_kind == INVALID_ARGUMENTS
    assert call(vault, "find_clusters", {"size": 2}).error_kind == INVALID_ARGUMENTS
    result = call(vault, "update_field", {"filename": "a", "field": "bad:key", "value": "v"})
    assert result.error_kind == INVALID_ARGUMENTS


def test_batch_update_partial_failure(vault):
    result = call(
        vault,
        "batch_update",
        {"field": "status", "value": "done", "filenames": ["a", "missing", "b"]},
    )
    assert not result.ok
    assert result.error_kind == "partial_batch_failure"
    assert result.payload["succeeded"] == ["a", "b"]
    assert [f["document"] for f in result.payload["failed"]] == ["missing"]


def test_tag_round_trip(vault):
    before = (vault.root / "a.md").read_text()
    assert call(vault, "add_tags", {"filename": "a", "tags": ["y"]}).payload["tags"] == ["x", "y"]
    assert call(vault, "list_all_tags").payload == {"total": 2, "tags": ["x", "y"]}
    call(vault, "remove_tags", {"filename": "a", "tags": ["y"]})
    assert (vault.root / "a.md").read_text() == before


def test_payloads_are_json_serializable(vault):
    for name, args in [
        ("broken_links", {}),
        ("graph_stats", {}),
        ("find_clusters", {"min_size": 1}),
        ("isolated_notes", {}),
        ("vault_stats", {}),
        ("list_notes", {}),
        ("search_notes", {"query": "see"}),
        ("related_notes", {"tags": ["x"]}),
        ("suggest_tags", {"filename": "a"}),
        ("suggest_links", {}),
        ("get_values", {"field": "tags"}),
    ]:
        result = call(vault, name, args)
        assert result.ok, (name, result.message)
        json.dumps(result.as_payload())


def test_custom_graph_provider_is_used(vault):
    class CountingProvider(GraphProvider):
        calls = 0

        def graph(self, v):
            CountingProvider.calls += 1
            return build_graph(load_vault(v), v.extension)

    provider = CountingProvider()
    call(vault, "find_orphans", provider=provider)
    call(vault, "centrality", provider=provider)
    assert CountingProvider.calls == 2


def test_list_argument_rejects_a_string(vault):
    before = (vault.root / "a.md").read_text()
    result = call(vault, "add_tags", {"filename": "a", "tags": "abc"})
    assert result.error_kind == INVALID_ARGUMENTS
    assert (vault.root / "a.md").read_text() == before


def test_argument_types_are_checked(vault):
    assert call(vault, "find_clusters", {"min_size": "2"}).error_kind == INVALID_ARGUMENTS
    assert call(vault, "centrality", {"limit": True}).error_kind == INVALID_ARGUMENTS
    assert call(vault, "find_orphans", {"exclude": ["ok", 3]}).error_kind == INVALID_ARGUMENTS
    assert call(vault, "list_notes", {"tag_filter": None}).ok
    assert call(vault, "suggest_links", {"min_similarity": 0}).ok
    assert call(vault, "update_field", {"filename": "b", "field": "k", "value": ["v"]}).ok
