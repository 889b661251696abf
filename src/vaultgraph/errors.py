"""Error types raised by the vault engine.

Every error carries a stable ``kind`` string so callers that dispatch
operations by name can report a typed failure without inspecting classes.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from vaultgraph.mutate import BatchResult


class VaultError(Exception):
    """Base class for all vault engine errors."""

    kind = "vault_error"


class NotFoundError(VaultError):
    """A document or vault name does not resolve to anything on disk."""

    kind = "not_found"

    def __init__(self, name: str, what: str = "document"):
        self.name = name
        self.what = what
        super().__init__(f"{what.capitalize()} not found: {name}")


class VaultIOError(VaultError):
    """Reading or writing a document failed."""

    kind = "io_failure"

    def __init__(self, name: str, cause: Exception):
        self.name = name
        self.cause = cause
        super().__init__(f"I/O failure on {name}: {cause}")


class MalformedHeaderError(VaultError):
    """A header block could not be tokenized.

    Never escapes the parser: a malformed header is treated as absent.
    """

    kind = "malformed_header"


class PartialBatchFailure(VaultError):
    """Some documents in a batch mutation failed."""

    kind = "partial_batch_failure"

    def __init__(self, result: BatchResult):
        self.result = result
        names = ", ".join(name for name, _ in result.failed)
        super().__init__(
            f"{len(result.failed)} of {result.total} documents failed: {names}"
        )


class ConfigError(VaultError):
    """The configuration file is unreadable or has the wrong shape."""

    kind = "config"
