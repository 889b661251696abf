"""CLI entrypoint for vaultgraph."""

from __future__ import annotations

import json
import logging

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from vaultgraph import config
from vaultgraph.api import OPERATIONS, OperationResult, call
from vaultgraph.errors import VaultError

console = Console()
err_console = Console(stderr=True)


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )


def _run(ctx: click.Context, operation_name: str, **arguments) -> object:
    return _call(ctx, operation_name, arguments)


def _call(ctx: click.Context, operation_name: str, arguments: dict) -> object:
    """Resolve the vault, run one operation, and exit 1 on failure."""
    try:
        vault = config.resolve_vault(ctx.obj["home"], ctx.obj["vault"])
    except VaultError as exc:
        err_console.print(f"[red]{exc}[/red]")
        ctx.exit(1)
    result = call(vault, operation_name, arguments)
    if not result.ok:
        _print_error(result)
        ctx.exit(1)
    return result.payload


def _print_error(result: OperationResult) -> None:
    err_console.print(f"[red]{result.error_kind}:[/red] {result.message}")
    if result.payload is not None:
        err_console.print_json(data=result.payload)


@click.group()
@click.option(
    "--home",
    type=click.Path(file_okay=False),
    default=None,
    envvar=config.HOME_ENV,
    help="Directory holding vaults and vaultgraph.yaml.",
)
@click.option(
    "--vault",
    type=click.Path(file_okay=False),
    default=None,
    envvar=config.VAULT_ENV,
    help="Vault directory, overriding the active vault.",
)
@click.option("-v", "--verbose", is_flag=True, help="Debug logging.")
@click.pass_context
def main(ctx: click.Context, home: str | None, vault: str | None, verbose: bool):
    """vaultgraph: query and edit the link graph and metadata of a note vault."""
    _setup_logging(verbose)
    ctx.ensure_object(dict)
    ctx.obj["home"] = home
    ctx.obj["vault"] = vault


# -- graph queries --------------------------------------------------------------


@main.command()
@click.argument("note")
@click.pass_context
def backlinks(ctx: click.Context, note: str):
    """List notes that link to NOTE."""
    for name in _run(ctx, "find_backlinks", filename=note):
        console.print(name)


@main.command()
@click.option("--exclude", multiple=True, help="Filename to leave out (repeatable).")
@click.pass_context
def orphans(ctx: click.Context, exclude: tuple[str, ...]):
    """List notes with no links in or out."""
    names = _run(ctx, "find_orphans", exclude=list(exclude))
    if not names:
        console.print("[green]No orphans found.[/green]")
    for name in names:
        console.print(name)


@main.command()
@click.option("--min-size", default=2, help="Smallest cluster to show.")
@click.pass_context
def clusters(ctx: click.Context, min_size: int):
    """Show groups of notes connected by links."""
    groups = _run(ctx, "find_clusters", min_size=min_size)
    if not groups:
        console.print("[yellow]No clusters found.[/yellow]")
        return
    for i, group in enumerate(groups, 1):
        console.print(f"\n[bold]Cluster #{i}[/bold]  ({len(group)} notes)")
        for name in group:
            console.print(f"  {name}")


@main.command()
@click.option("--limit", default=10, help="Number of notes to show.")
@click.pass_context
def central(ctx: click.Context, limit: int):
    """Rank notes by number of links in and out."""
    rows = _run(ctx, "centrality", limit=limit)
    table = Table(title="Degree Centrality")
    table.add_column("#", style="dim", width=4)
    table.add_column("Note", style="cyan")
    table.add_column("In", justify="right")
    table.add_column("Out", justify="right")
    table.add_column("Degree", justify="right", style="bold green")
    for i, row in enumerate(rows, 1):
        table.add_row(
            str(i), row["document"], str(row["in_degree"]), str(row["out_degree"]), str(row["degree"])
        )
    console.print(table)


@main.command()
@click.argument("source")
@click.argument("target")
@click.pass_context
def path(ctx: click.Context, source: str, target: str):
    """Shortest chain of links from SOURCE to TARGET."""
    result = _run(ctx, "shortest_path", source=source, target=target)
    if result["status"] == "found":
        console.print(" → ".join(result["path"]))
        console.print(f"[dim]{result['hops']} hop(s)[/dim]")
    elif result["status"] == "unreachable":
        console.print(f"[yellow]{result['target']} is unreachable from {result['source']}.[/yellow]")
    else:
        console.print(f"[red]Not found: {', '.join(result['missing'])}[/red]")
        ctx.exit(1)


@main.command()
@click.option("--max-connections", default=1, help="Connection threshold.")
@click.pass_context
def isolated(ctx: click.Context, max_connections: int):
    """List loosely connected notes."""
    rows = _run(ctx, "isolated_notes", max_connections=max_connections)
    table = Table(title="Isolated Notes")
    table.add_column("Note", style="cyan")
    table.add_column("Outgoing", justify="right")
    table.add_column("Linked to", justify="center")
    for row in rows:
        table.add_row(row["document"], str(row["outgoing"]), "yes" if row["has_incoming"] else "no")
    console.print(table)


@main.command()
@click.pass_context
def broken(ctx: click.Context):
    """List wikilinks pointing at missing notes."""
    rows = _run(ctx, "broken_links")
    if not rows:
        console.print("[green]No broken links found![/green]")
        return
    table = Table(title="Broken Links")
    table.add_column("In note", style="cyan")
    table.add_column("Target", style="red")
    table.add_column("Syntax", style="dim")
    for row in rows:
        table.add_row(row["source"], row["target"], row["raw"])
    console.print(table)


@main.command()
@click.pass_context
def stats(ctx: click.Context):
    """Print basic statistics about the vault."""
    graph = _run(ctx, "graph_stats")
    notes = _run(ctx, "vault_stats")
    console.print(f"Notes: {notes['total_notes']}")
    console.print(f"Words: {notes['total_words']} (avg {notes['avg_words_per_note']})")
    console.print(f"Explicit links: {graph['links']}")
    console.print(f"Broken links: {graph['broken_links']}")
    console.print(f"Connected components: {graph['components']}")
    console.print(f"Isolated notes (no links): {graph['isolated']}")
    console.print(f"Tags: {notes['total_tags']}")
    if graph["links"] > 0:
        console.print(f"Graph density: {graph['density']:.4f}")
    for note_type, count in notes["note_types"].items():
        console.print(f"  {note_type}: {count}")


@main.command()
@click.option("--top-k", default=20, help="Number of suggestions to show.")
@click.option("--min-similarity", default=0.3, help="Minimum TF-IDF cosine similarity.")
@click.pass_context
def holes(ctx: click.Context, top_k: int, min_similarity: float):
    """Suggest links between similar but unlinked notes."""
    rows = _run(ctx, "suggest_links", top_k=top_k, min_similarity=min_similarity)
    if not rows:
        console.print("[green]No link suggestions, your vault is well-connected![/green]")
        return
    table = Table(title="Link Suggestions", show_lines=True)
    table.add_column("#", style="dim", width=4)
    table.add_column("Note A", style="cyan")
    table.add_column("Note B", style="cyan")
    table.add_column("Similarity", justify="right")
    table.add_column("Link Distance", justify="right")
    table.add_column("Bridge Score", justify="right", style="bold green")
    for i, row in enumerate(rows, 1):
        dist = row["graph_distance"]
        table.add_row(
            str(i),
            row["note_a"],
            row["note_b"],
            f"{row['similarity']:.3f}",
            str(dist) if dist is not None else "∞",
            f"{row['bridge_score']:.3f}",
        )
    console.print(table)


# -- tags and fields --------------------------------------------------------------


@main.group()
def tags():
    """Inspect and edit tags."""


@tags.command("list")
@click.pass_context
def tags_list(ctx: click.Context):
    """List every tag in the vault."""
    result = _run(ctx, "list_all_tags")
    for tag in result["tags"]:
        console.print(tag)


@tags.command("add")
@click.argument("note")
@click.argument("tag", nargs=-1, required=True)
@click.pass_context
def tags_add(ctx: click.Context, note: str, tag: tuple[str, ...]):
    """Add TAG(s) to NOTE."""
    result = _run(ctx, "add_tags", filename=note, tags=list(tag))
    console.print(f"{note}: {', '.join(result['tags'])}")


@tags.command("remove")
@click.argument("note")
@click.argument("tag", nargs=-1, required=True)
@click.pass_context
def tags_remove(ctx: click.Context, note: str, tag: tuple[str, ...]):
    """Remove TAG(s) from NOTE."""
    result = _run(ctx, "remove_tags", filename=note, tags=list(tag))
    console.print(f"{note}: {', '.join(result['tags'])}")


@tags.command("suggest")
@click.argument("note")
@click.option("--limit", default=10)
@click.pass_context
def tags_suggest(ctx: click.Context, note: str, limit: int):
    """Suggest tags for NOTE from its text."""
    result = _run(ctx, "suggest_tags", filename=note, limit=limit)
    for tag in result["suggested_tags"]:
        console.print(tag)


@main.command()
@click.argument("field")
@click.pass_context
def values(ctx: click.Context, field: str):
    """Count the values of header FIELD across notes."""
    counts = _run(ctx, "get_values", field=field)
    table = Table(title=f"Values of {field!r}")
    table.add_column("Value", style="cyan")
    table.add_column("Notes", justify="right")
    for value, count in counts.items():
        table.add_row(value, str(count))
    console.print(table)


def _parse_value(raw: str, as_list: bool) -> str | list[str]:
    if not as_list:
        return raw
    return [part.strip() for part in raw.split(",") if part.strip()]


@main.command("set")
@click.argument("field")
@click.argument("value")
@click.argument("notes", nargs=-1, required=True)
@click.option("--list", "as_list", is_flag=True, help="Store VALUE as a comma-separated list.")
@click.pass_context
def set_field(ctx: click.Context, field: str, value: str, notes: tuple[str, ...], as_list: bool):
    """Set header FIELD to VALUE on one or more NOTES."""
    parsed = _parse_value(value, as_list)
    if len(notes) == 1:
        result = _run(ctx, "update_field", filename=notes[0], field=field, value=parsed)
        console.print(f"{notes[0]}: {'updated' if result['changed'] else 'unchanged'}")
        return
    result = _run(ctx, "batch_update", field=field, value=parsed, filenames=list(notes))
    console.print(
        f"Updated {len(result['succeeded'])}, unchanged {len(result['unchanged'])}"
    )


@main.command("unset")
@click.argument("field")
@click.argument("note")
@click.pass_context
def unset_field(ctx: click.Context, field: str, note: str):
    """Remove header FIELD from NOTE."""
    result = _run(ctx, "remove_field", filename=note, field=field)
    console.print(f"{note}: {'updated' if result['changed'] else 'unchanged'}")


@main.command("rename-field")
@click.argument("old")
@click.argument("new")
@click.pass_context
def rename_field(ctx: click.Context, old: str, new: str):
    """Rename header field OLD to NEW in every note."""
    result = _run(ctx, "rename_property", old=old, new=new)
    console.print(f"Renamed in {len(result['succeeded'])} note(s)")


# -- vault registry ------------------------------------------------------------------


@main.group()
def vaults():
    """List, create and switch vaults."""


@vaults.command("list")
@click.pass_context
def vaults_list(ctx: click.Context):
    """List vaults in the home directory."""
    try:
        entries = config.list_vaults(ctx.obj["home"])
    except VaultError as exc:
        err_console.print(f"[red]{exc}[/red]")
        ctx.exit(1)
    for entry in entries:
        marker = "[bold green]*[/bold green]" if entry["active"] else " "
        console.print(f"{marker} {entry['name']}  [dim]{entry['path']}[/dim]")


@vaults.command("create")
@click.argument("name")
@click.option("--description", default=None)
@click.pass_context
def vaults_create(ctx: click.Context, name: str, description: str | None):
    """Create vault NAME with a welcome note."""
    try:
        path = config.create_vault(ctx.obj["home"], name, description)
    except (ValueError, OSError) as exc:
        err_console.print(f"[red]{exc}[/red]")
        ctx.exit(1)
    console.print(f"Created vault {name!r} at {path}")


@vaults.command("switch")
@click.argument("name")
@click.pass_context
def vaults_switch(ctx: click.Context, name: str):
    """Make NAME the active vault."""
    try:
        config.switch_vault(ctx.obj["home"], name)
    except VaultError as exc:
        err_console.print(f"[red]{exc}[/red]")
        ctx.exit(1)
    console.print(f"Switched to vault {name!r}")


# -- generic dispatch -------------------------------------------------------------------


@main.command("call")
@click.argument("operation", type=click.Choice(sorted(OPERATIONS)))
@click.argument("arguments", default="{}")
@click.pass_context
def call_operation(ctx: click.Context, operation: str, arguments: str):
    """Run OPERATION with a JSON object of ARGUMENTS and print JSON."""
    try:
        parsed = json.loads(arguments)
    except json.JSONDecodeError as exc:
        raise click.BadParameter(str(exc), param_hint="ARGUMENTS") from exc
    if not isinstance(parsed, dict):
        raise click.BadParameter("must be a JSON object", param_hint="ARGUMENTS")
    console.print_json(data=_call(ctx, operation, parsed))


if __name__ == "__main__":
    main()
