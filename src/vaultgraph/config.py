"""Vault context and configuration.

The active vault is never held in process state. Every engine entry point
takes a :class:`Vault`, and :func:`resolve_vault` builds one by re-reading
the environment and ``vaultgraph.yaml`` each time it is called, so a
``switch`` made by another process is seen by the next call.

Layout of a vaultgraph home directory::

    vaultgraph.yaml     # optional
    notes/              # one vault per sub-directory
        Welcome.md
        ...
    research/

vaultgraph.yaml example::

    active: notes
    extension: .md
    orphans:
      exclude: [Welcome.md]
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path

import yaml

from vaultgraph.errors import ConfigError, NotFoundError
from vaultgraph.storage import atomic_write

logger = logging.getLogger(__name__)

CONFIG_FILENAME = "vaultgraph.yaml"
HOME_ENV = "VAULTGRAPH_HOME"
VAULT_ENV = "VAULTGRAPH_VAULT"
DEFAULT_EXTENSION = ".md"
DEFAULT_VAULT = "notes"
WELCOME_NOTE = "Welcome.md"


@dataclass(frozen=True)
class Vault:
    """A resolved vault: the context value passed to every engine call."""

    root: Path
    extension: str = DEFAULT_EXTENSION
    orphan_exclude: frozenset[str] = frozenset()

    @property
    def name(self) -> str:
        return self.root.name

    def filename(self, name: str) -> str:
        """Append the canonical extension when *name* lacks it."""
        return name if name.endswith(self.extension) else name + self.extension


@dataclass
class Settings:
    """Contents of ``vaultgraph.yaml``."""

    active: str = DEFAULT_VAULT
    extension: str = DEFAULT_EXTENSION
    orphan_exclude: list[str] = field(default_factory=list)


def home_dir(home: str | Path | None = None) -> Path:
    if home is not None:
        return Path(home)
    return Path(os.environ.get(HOME_ENV) or Path.cwd())


def load_settings(home: str | Path | None = None) -> Settings:
    """Read ``vaultgraph.yaml`` from *home*; defaults when it is missing."""
    path = home_dir(home) / CONFIG_FILENAME
    if not path.is_file():
        return Settings()

    try:
        raw = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except (OSError, yaml.YAMLError) as exc:
        raise ConfigError(f"Cannot read {path}: {exc}") from exc
    if not isinstance(raw, dict):
        raise ConfigError(f"{path} must contain a mapping")

    orphans = raw.get("orphans") or {}
    exclude = orphans.get("exclude", []) if isinstance(orphans, dict) else None
    if not isinstance(exclude, list):
        raise ConfigError(f"{path}: orphans.exclude must be a list")

    extension = str(raw.get("extension", DEFAULT_EXTENSION))
    if not extension.startswith("."):
        extension = "." + extension

    return Settings(
        active=str(raw.get("active", DEFAULT_VAULT)),
        extension=extension,
        orphan_exclude=[str(name) for name in exclude],
    )


def _save_settings(home: Path, settings: Settings) -> None:
    payload = {
        "active": settings.active,
        "extension": settings.extension,
        "orphans": {"exclude": list(settings.orphan_exclude)},
    }
    text = yaml.safe_dump(payload, sort_keys=False)
    atomic_write(home / CONFIG_FILENAME, text)


def resolve_vault(
    home: str | Path | None = None,
    vault_path: str | Path | None = None,
) -> Vault:
    """Build the :class:`Vault` for this call from the current configuration.

    Args:
        home: vaultgraph home directory (default: ``$VAULTGRAPH_HOME`` or cwd).
        vault_path: explicit vault directory, overriding ``active``
            (default: ``$VAULTGRAPH_VAULT``).
    """
    settings = load_settings(home)
    explicit = vault_path or os.environ.get(VAULT_ENV)
    root = Path(explicit) if explicit else home_dir(home) / settings.active
    if not root.is_dir():
        raise NotFoundError(str(root), what="vault")

    logger.debug("Resolved vault %s", root)
    return Vault(
        root=root,
        extension=settings.extension,
        orphan_exclude=frozenset(settings.orphan_exclude),
    )


def list_vaults(home: str | Path | None = None) -> list[dict]:
    """List vault directories under *home* with their ``active`` flag."""
    base = home_dir(home)
    if not base.is_dir():
        raise NotFoundError(str(base), what="home directory")
    active = load_settings(base).active
    return [
        {"name": entry.name, "path": str(entry), "active": entry.name == active}
        for entry in sorted(base.iterdir())
        if entry.is_dir() and not entry.name.startswith(".")
    ]


def create_vault(
    home: str | Path | None,
    name: str,
    description: str | None = None,
) -> Path:
    """Create a vault directory with a welcome note; returns its path."""
    if not name or name.startswith(".") or "/" in name or "\\" in name:
        raise ValueError(f"Invalid vault name: {name!r}")
    path = home_dir(home) / name
    path.mkdir(parents=True, exist_ok=True)

    welcome = path / WELCOME_NOTE
    if not welcome.exists():
        intro = f"{description}\n\n" if description else ""
        atomic_write(
            welcome,
            f"# Welcome to {name}\n\n{intro}"
            f"This vault was created on {datetime.now():%Y-%m-%d %H:%M}.\n",
        )
    logger.info("Created vault %s", path)
    return path


def switch_vault(home: str | Path | None, name: str) -> Path:
    """Make *name* the active vault by rewriting ``vaultgraph.yaml``."""
    base = home_dir(home)
    path = base / name
    if not path.is_dir():
        raise NotFoundError(name, what="vault")
    settings = load_settings(base)
    settings.active = name
    _save_settings(base, settings)
    logger.info("Switched active vault to %s", name)
    return path
