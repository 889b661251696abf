"""Name-addressable operations with typed argument records.

Transports (an RPC server, the CLI's ``call`` command) hand an operation
name and a dict of arguments to :func:`call` and get back an
:class:`OperationResult`: either a JSON-ready payload or a typed error.
Every call builds its graph through the configured :class:`GraphProvider`,
so nothing is reused between calls.
"""

from __future__ import annotations

import dataclasses
import logging
import types
import typing
from collections.abc import Callable
from dataclasses import asdict, dataclass, field
from typing import Any

from vaultgraph import mutate, queries, similarity, tags, vault as vaultmod
from vaultgraph.config import Vault
from vaultgraph.errors import PartialBatchFailure, VaultError
from vaultgraph.graph import GraphProvider, RebuildingGraphProvider, VaultGraph

logger = logging.getLogger(__name__)

INVALID_ARGUMENTS = "invalid_arguments"
UNKNOWN_OPERATION = "unknown_operation"


@dataclass
class OperationResult:
    ok: bool
    payload: Any = None
    error_kind: str | None = None
    message: str | None = None

    def as_payload(self) -> dict:
        if self.ok:
            return {"ok": True, "result": self.payload}
        out = {"ok": False, "error": {"kind": self.error_kind, "message": self.message}}
        if self.payload is not None:
            out["result"] = self.payload
        return out


@dataclass
class Context:
    vault: Vault
    provider: GraphProvider

    def graph(self) -> VaultGraph:
        return self.provider.graph(self.vault)


@dataclass(frozen=True)
class Operation:
    name: str
    arguments: type
    handler: Callable[[Context, Any], Any]

    @property
    def description(self) -> str:
        return (self.handler.__doc__ or "").strip()


OPERATIONS: dict[str, Operation] = {}


def operation(name: str, arguments: type):
    def decorator(fn):
        OPERATIONS[name] = Operation(name, arguments, fn)
        return fn

    return decorator


# -- argument records ---------------------------------------------------------


@dataclass
class NoArgs:
    pass


@dataclass
class DocumentArgs:
    filename: str


@dataclass
class OrphanArgs:
    exclude: list[str] = field(default_factory=list)


@dataclass
class ClusterArgs:
    min_size: int = 2


@dataclass
class CentralityArgs:
    limit: int = 10


@dataclass
class PathArgs:
    source: str
    target: str


@dataclass
class IsolatedArgs:
    max_connections: int = 1


@dataclass
class FieldArgs:
    filename: str
    field: str
    value: str | list[str] = ""


@dataclass
class RemoveFieldArgs:
    filename: str
    field: str


@dataclass
class TagArgs:
    filename: str
    tags: list[str]


@dataclass
class BatchArgs:
    field: str
    value: str | list[str]
    filenames: list[str]


@dataclass
class RenameArgs:
    old: str
    new: str


@dataclass
class ValuesArgs:
    field: str


@dataclass
class ListArgs:
    tag_filter: str | None = None


@dataclass
class SearchArgs:
    query: str | None = None
    tags: list[str] = field(default_factory=list)


@dataclass
class RelatedArgs:
    tags: list[str] = field(default_factory=list)
    language: str | None = None
    limit: int = 5


@dataclass
class SuggestTagsArgs:
    filename: str
    limit: int = 10


@dataclass
class SuggestLinksArgs:
    top_k: int = 20
    min_similarity: float = 0.3


# -- graph queries -------------------------------------------------------------


@operation("find_backlinks", DocumentArgs)
def _find_backlinks(ctx: Context, args: DocumentArgs):
    """Notes that link to the given note."""
    return queries.backlinks(ctx.graph(), args.filename)


@operation("find_orphans", OrphanArgs)
def _find_orphans(ctx: Context, args: OrphanArgs):
    """Notes with no incoming or outgoing links."""
    exclude = set(ctx.vault.orphan_exclude) | set(args.exclude)
    return queries.orphans(ctx.graph(), exclude=exclude)


@operation("find_clusters", ClusterArgs)
def _find_clusters(ctx: Context, args: ClusterArgs):
    """Groups of notes connected by links in either direction."""
    return queries.clusters(ctx.graph(), min_size=args.min_size)


@operation("centrality", CentralityArgs)
def _centrality(ctx: Context, args: CentralityArgs):
    """Most linked notes by in-degree + out-degree."""
    return [
        {**asdict(c), "degree": c.degree}
        for c in queries.centrality(ctx.graph(), limit=args.limit)
    ]


@operation("shortest_path", PathArgs)
def _shortest_path(ctx: Context, args: PathArgs):
    """Fewest link hops from one note to another."""
    result = queries.shortest_path(ctx.graph(), args.source, args.target)
    return {**asdict(result), "hops": result.hops}


@operation("isolated_notes", IsolatedArgs)
def _isolated_notes(ctx: Context, args: IsolatedArgs):
    """Notes with at most N connections."""
    return queries.isolated_notes(ctx.graph(), max_connections=args.max_connections)


@operation("broken_links", NoArgs)
def _broken_links(ctx: Context, args: NoArgs):
    """Wikilinks whose target note does not exist."""
    return [asdict(b) for b in queries.broken_links(ctx.graph())]


@operation("graph_stats", NoArgs)
def _graph_stats(ctx: Context, args: NoArgs):
    """Counts describing the link structure."""
    return queries.graph_stats(ctx.graph())


@operation("suggest_links", SuggestLinksArgs)
def _suggest_links(ctx: Context, args: SuggestLinksArgs):
    """Similar notes that are not linked to each other."""
    docs = vaultmod.load_vault(ctx.vault)
    graph = ctx.graph()
    return [
        asdict(s)
        for s in similarity.suggest_links(
            docs, graph, top_k=args.top_k, min_similarity=args.min_similarity
        )
    ]


# -- metadata edits ---------------------------------------------------------------


@operation("update_field", FieldArgs)
def _update_field(ctx: Context, args: FieldArgs):
    """Set one header field of a note."""
    changed = mutate.update_field(ctx.vault, args.filename, args.field, args.value)
    return {"filename": args.filename, "changed": changed}


@operation("remove_field", RemoveFieldArgs)
def _remove_field(ctx: Context, args: RemoveFieldArgs):
    """Delete one header field of a note."""
    changed = mutate.remove_field(ctx.vault, args.filename, args.field)
    return {"filename": args.filename, "changed": changed}


@operation("add_tags", TagArgs)
def _add_tags(ctx: Context, args: TagArgs):
    """Add tags to a note."""
    return {"filename": args.filename, "tags": mutate.add_tags(ctx.vault, args.filename, args.tags)}


@operation("remove_tags", TagArgs)
def _remove_tags(ctx: Context, args: TagArgs):
    """Remove tags from a note."""
    return {"filename": args.filename, "tags": mutate.remove_tags(ctx.vault, args.filename, args.tags)}


@operation("batch_update", BatchArgs)
def _batch_update(ctx: Context, args: BatchArgs):
    """Set one header field on many notes."""
    result = mutate.batch_update(ctx.vault, args.field, args.value, args.filenames)
    result.raise_for_failures()
    return result.as_payload()


@operation("rename_property", RenameArgs)
def _rename_property(ctx: Context, args: RenameArgs):
    """Rename a header field in every note."""
    result = mutate.rename_property_globally(ctx.vault, args.old, args.new)
    result.raise_for_failures()
    return result.as_payload()


# -- indexes and listings ------------------------------------------------------------


@operation("list_all_tags", NoArgs)
def _list_all_tags(ctx: Context, args: NoArgs):
    """Every tag used in the vault."""
    all_tags = tags.list_all_tags(ctx.vault)
    return {"total": len(all_tags), "tags": all_tags}


@operation("get_values", ValuesArgs)
def _get_values(ctx: Context, args: ValuesArgs):
    """How often each value of a header field occurs."""
    return tags.get_values(ctx.vault, args.field)


@operation("vault_stats", NoArgs)
def _vault_stats(ctx: Context, args: NoArgs):
    """Note, word, link and tag totals."""
    return tags.vault_stats(ctx.vault)


@operation("list_notes", ListArgs)
def _list_notes(ctx: Context, args: ListArgs):
    """Notes with titles and tags, optionally filtered by tag."""
    return vaultmod.list_notes(ctx.vault, tag=args.tag_filter)


@operation("search_notes", SearchArgs)
def _search_notes(ctx: Context, args: SearchArgs):
    """Notes matching a text query or tags."""
    return vaultmod.search_notes(ctx.vault, query=args.query, tags=args.tags)


@operation("related_notes", RelatedArgs)
def _related_notes(ctx: Context, args: RelatedArgs):
    """Notes sharing tags or language with the given ones."""
    docs = vaultmod.load_vault(ctx.vault)
    return similarity.related_notes(
        docs,
        args.tags,
        language=args.language,
        limit=args.limit,
        exclude=ctx.vault.orphan_exclude,
    )


@operation("suggest_tags", SuggestTagsArgs)
def _suggest_tags(ctx: Context, args: SuggestTagsArgs):
    """Tag ideas for a note from its own text."""
    doc = vaultmod.load_document(ctx.vault, args.filename)
    suggested = similarity.suggest_tags(doc, tags.list_all_tags(ctx.vault), limit=args.limit)
    return {"filename": doc.name, "suggested_tags": suggested}


# -- dispatch ----------------------------------------------------------------------------


def _accepts(annotation: Any, value: Any) -> bool:
    """Whether a JSON-decoded *value* fits an argument annotation."""
    if annotation is Any:
        return True
    if annotation is type(None):
        return value is None
    if annotation is float:
        return isinstance(value, (int, float)) and not isinstance(value, bool)
    if annotation is int:
        return isinstance(value, int) and not isinstance(value, bool)
    origin = typing.get_origin(annotation)
    if origin in (typing.Union, types.UnionType):
        return any(_accepts(option, value) for option in typing.get_args(annotation))
    if origin is list:
        (item,) = typing.get_args(annotation)
        return isinstance(value, list) and all(_accepts(item, v) for v in value)
    return isinstance(value, annotation)


def _build_arguments(op: Operation, arguments: dict[str, Any]):
    known = {f.name for f in dataclasses.fields(op.arguments)}
    unknown = sorted(set(arguments) - known)
    if unknown:
        raise TypeError(f"unexpected argument(s) for {op.name}: {', '.join(unknown)}")
    hints = typing.get_type_hints(op.arguments)
    for key, value in arguments.items():
        if not _accepts(hints[key], value):
            raise TypeError(
                f"argument {key!r} of {op.name} must be {_describe(hints[key])}, "
                f"not {type(value).__name__}"
            )
    return op.arguments(**arguments)


def _describe(annotation: Any) -> str:
    return getattr(annotation, "__name__", None) or str(annotation)


def call(
    vault: Vault,
    name: str,
    arguments: dict[str, Any] | None = None,
    provider: GraphProvider | None = None,
) -> OperationResult:
    """Run operation *name* against *vault*."""
    op = OPERATIONS.get(name)
    if op is None:
        return OperationResult(False, error_kind=UNKNOWN_OPERATION, message=f"Unknown operation: {name}")

    try:
        args = _build_arguments(op, arguments or {})
    except TypeError as exc:
        return OperationResult(False, error_kind=INVALID_ARGUMENTS, message=str(exc))

    ctx = Context(vault=vault, provider=provider or RebuildingGraphProvider())
    logger.debug("Calling %s with %s", name, args)
    try:
        payload = op.handler(ctx, args)
    except PartialBatchFailure as exc:
        return OperationResult(
            False,
            payload=exc.result.as_payload(),
            error_kind=exc.kind,
            message=str(exc),
        )
    except VaultError as exc:
        return OperationResult(False, error_kind=exc.kind, message=str(exc))
    except ValueError as exc:
        return OperationResult(False, error_kind=INVALID_ARGUMENTS, message=str(exc))
    return OperationResult(True, payload=payload)
