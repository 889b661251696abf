"""vaultgraph: metadata and link-graph engine for a directory of notes."""

from vaultgraph.api import OPERATIONS, OperationResult, call
from vaultgraph.config import Vault, resolve_vault
from vaultgraph.errors import (
    ConfigError,
    NotFoundError,
    PartialBatchFailure,
    VaultError,
    VaultIOError,
)
from vaultgraph.graph import GraphProvider, RebuildingGraphProvider, VaultGraph, build_graph
from vaultgraph.vault import Document, load_vault

__version__ = "0.1.0"
__all__ = [
    "OPERATIONS",
    "OperationResult",
    "call",
    "Vault",
    "resolve_vault",
    "ConfigError",
    "NotFoundError",
    "PartialBatchFailure",
    "VaultError",
    "VaultIOError",
    "GraphProvider",
    "RebuildingGraphProvider",
    "VaultGraph",
    "build_graph",
    "Document",
    "load_vault",
]
