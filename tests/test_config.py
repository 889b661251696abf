"""Tests for vault resolution and the vault registry."""

import pytest

from vaultgraph.config import (
    CONFIG_FILENAME,
    HOME_ENV,
    VAULT_ENV,
    create_vault,
    list_vaults,
    load_settings,
    resolve_vault,
    switch_vault,
)
from vaultgraph.errors import ConfigError, NotFoundError


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    monkeypatch.delenv(HOME_ENV, raising=False)
    monkeypatch.delenv(VAULT_ENV, raising=False)


@pytest.fixture
def home(tmp_path):
    (tmp_path / "notes").mkdir()
    (tmp_path / "research").mkdir()
    (tmp_path / ".git").mkdir()
    return tmp_path


def test_defaults_without_config_file(home):
    settings = load_settings(home)
    assert settings.active == "notes"
    assert settings.extension == ".md"
    assert settings.orphan_exclude == []


def test_resolve_vault_uses_config(home):
    (home / CONFIG_FILENAME).write_text(
        "active: research\nextension: txt\norphans:\n  exclude: [Welcome.md]\n"
    )
    vault = resolve_vault(home)
    assert vault.root == home / "research"
    assert vault.extension == ".txt"
    assert vault.orphan_exclude == frozenset({"Welcome.md"})


def test_resolve_vault_reads_home_from_env(home, monkeypatch):
    monkeypatch.setenv(HOME_ENV, str(home))
    assert resolve_vault().root == home / "notes"


def test_explicit_vault_path_wins(home, tmp_path_factory):
    other = tmp_path_factory.mktemp("elsewhere")
    assert resolve_vault(home, other).root == other


def test_resolve_missing_vault(home):
    (home / CONFIG_FILENAME).write_text("active: gone\n")
    with pytest.raises(NotFoundError):
        resolve_vault(home)


def test_bad_config(home):
    (home / CONFIG_FILENAME).write_text("- just\n- a list\n")
    with pytest.raises(ConfigError):
        load_settings(home)
    (home / CONFIG_FILENAME).write_text("orphans:\n  exclude: nope\n")
    with pytest.raises(ConfigError):
        load_settings(home)


def test_switch_vault_is_seen_by_next_resolve(home):
    assert resolve_vault(home).name == "notes"
    switch_vault(home, "research")
    assert resolve_vault(home).name == "research"


def test_switch_vault_keeps_other_settings(home):
    (home / CONFIG_FILENAME).write_text("orphans:\n  exclude: [Index.md]\n")
    switch_vault(home, "research")
    settings = load_settings(home)
    assert settings.active == "research"
    assert settings.orphan_exclude == ["Index.md"]


def test_switch_to_unknown_vault(home):
    with pytest.raises(NotFoundError):
        switch_vault(home, "nope")


def test_list_vaults(home):
    vaults = list_vaults(home)
    assert [v["name"] for v in vaults] == ["notes", "research"]
    assert [v["active"] for v in vaults] == [True, False]


def test_create_vault(home):
    path = create_vault(home, "projects", "Work notes")
    welcome = (path / "Welcome.md").read_text()
    assert welcome.startswith("# Welcome to projects\n\nWork notes\n")
    assert "projects" in [v["name"] for v in list_vaults(home)]


def test_create_vault_rejects_bad_names(home):
    with pytest.raises(ValueError):
        create_vault(home, "../escape")
    with pytest.raises(ValueError):
        create_vault(home, ".hidden")
