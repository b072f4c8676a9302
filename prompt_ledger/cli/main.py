"""Prompt Ledger CLI: the ledger command."""

from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Any

import click

from prompt_ledger.cli.client import LedgerClient
from prompt_ledger.core.differ import DiffResult, SideBySideRow, generate_diff


def _format_table(rows: list[dict], columns: list[str]) -> str:
    """Simple table formatter."""
    if not rows:
        return "No results."
    widths = {c: len(c) for c in columns}
    for row in rows:
        for c in columns:
            widths[c] = max(widths[c], len(str(row.get(c, ""))))

    header = "  ".join(c.upper().ljust(widths[c]) for c in columns)
    separator = "  ".join("-" * widths[c] for c in columns)
    lines = [header, separator]
    for row in rows:
        lines.append("  ".join(str(row.get(c, "")).ljust(widths[c]) for c in columns))
    return "\n".join(lines)


def _format_side_by_side(rows: list[SideBySideRow], width: int = 40) -> str:
    markers = {"unchanged": " ", "deletion": "<", "addition": ">"}
    lines = []
    for row in rows:
        left_no = "" if row.left_line_number is None else row.left_line_number
        right_no = "" if row.right_line_number is None else row.right_line_number
        lines.append(
            f"{left_no!s:>4} {row.left_content[:width]:<{width}} "
            f"{markers.get(row.type, '?')} "
            f"{right_no!s:>4} {row.right_content[:width]}"
        )
    return "\n".join(lines)


@click.group()
@click.option("--api", default="http://localhost:8400", envvar="LEDGER_API", help="API base URL")
@click.option("--format", "output_format", type=click.Choice(["table", "json"]), default="table")
@click.pass_context
def cli(ctx: click.Context, api: str, output_format: str) -> None:
    """Prompt Ledger CLI. Manage prompts and their versions, or diff local files."""
    ctx.obj = LedgerClient(base_url=api)
    ctx.meta["output_format"] = output_format


def _output(ctx: click.Context, data: Any, columns: list[str] | None = None) -> None:
    fmt = ctx.meta.get("output_format", "table")
    if fmt == "table" and isinstance(data, list) and columns:
        click.echo(_format_table(data, columns))
    else:
        click.echo(json.dumps(data, indent=2, default=str))


def _read_content(file_path: str | None) -> str:
    """Read prompt text from a file, or stdin when no file is given."""
    if file_path:
        return Path(file_path).read_text(encoding="utf-8")
    return sys.stdin.read()


def _split_tags(tags: str | None) -> list[str] | None:
    if tags is None:
        return None
    return [t.strip() for t in tags.split(",") if t.strip()]


def _call(fn, *args: Any, **kwargs: Any) -> Any:
    try:
        return fn(*args, **kwargs)
    except RuntimeError as e:
        raise click.ClickException(str(e)) from e


# --- Prompt commands ---


@cli.group()
def prompt() -> None:
    """Manage prompts."""


@prompt.command("list")
@click.option("--tag", default=None)
@click.option("--limit", type=int, default=50)
@click.pass_context
def prompt_list(ctx: click.Context, tag: str | None, limit: int) -> None:
    """List prompts, most recently updated first."""
    client: LedgerClient = ctx.obj
    params: dict[str, Any] = {"limit": limit}
    if tag:
        params["tag"] = tag
    data = _call(client.list_prompts, **params)
    _output(ctx, data, ["id", "title", "version_count", "tags", "updated_at"])


@prompt.command("create")
@click.option("--title", required=True)
@click.option("--file", "-f", "file_path", default=None, help="Read content from a file instead of stdin")
@click.option("--tags", default="")
@click.option("--note", default=None)
@click.pass_context
def prompt_create(
    ctx: click.Context, title: str, file_path: str | None, tags: str, note: str | None
) -> None:
    """Create a prompt. Reads content from --file or stdin."""
    client: LedgerClient = ctx.obj
    data: dict[str, Any] = {
        "title": title,
        "content": _read_content(file_path),
        "tags": _split_tags(tags),
    }
    if note:
        data["note"] = note
    _output(ctx, _call(client.create_prompt, data))


@prompt.command("show")
@click.argument("prompt_id")
@click.pass_context
def prompt_show(ctx: click.Context, prompt_id: str) -> None:
    """Show prompt details."""
    client: LedgerClient = ctx.obj
    _output(ctx, _call(client.get_prompt, prompt_id))


@prompt.command("update")
@click.argument("prompt_id")
@click.option("--title", default=None)
@click.option("--file", "-f", "file_path", default=None, help="New content")
@click.option("--tags", default=None)
@click.option("--note", default=None)
@click.pass_context
def prompt_update(
    ctx: click.Context,
    prompt_id: str,
    title: str | None,
    file_path: str | None,
    tags: str | None,
    note: str | None,
) -> None:
    """Update a prompt. Content only changes when --file is given."""
    client: LedgerClient = ctx.obj
    data: dict[str, Any] = {}
    if title is not None:
        data["title"] = title
    if file_path is not None:
        data["content"] = _read_content(file_path)
    if tags is not None:
        data["tags"] = _split_tags(tags)
    if note is not None:
        data["note"] = note
    if not data:
        raise click.UsageError("Nothing to update: pass --title, --file or --tags")
    _output(ctx, _call(client.update_prompt, prompt_id, data))


@prompt.command("delete")
@click.argument("prompt_id")
@click.confirmation_option(prompt="Delete this prompt and its whole history?")
@click.pass_context
def prompt_delete(ctx: click.Context, prompt_id: str) -> None:
    """Delete a prompt and all of its versions."""
    client: LedgerClient = ctx.obj
    _call(client.delete_prompt, prompt_id)
    click.echo(f"Deleted prompt '{prompt_id}'")


# --- Version commands ---


@cli.group()
def version() -> None:
    """Inspect history, roll back and compare versions."""


@version.command("history")
@click.argument("prompt_id")
@click.pass_context
def version_history(ctx: click.Context, prompt_id: str) -> None:
    """Show version history, newest first."""
    client: LedgerClient = ctx.obj
    data = _call(client.list_versions, prompt_id)
    _output(ctx, data, ["version_number", "id", "note", "is_rollback", "created_at"])


@version.command("rollback")
@click.argument("prompt_id")
@click.argument("version_id")
@click.option("--note", default=None)
@click.pass_context
def version_rollback(ctx: click.Context, prompt_id: str, version_id: str, note: str | None) -> None:
    """Restore a version's content as a new version."""
    client: LedgerClient = ctx.obj
    result = _call(client.rollback, prompt_id, version_id, note)
    if ctx.meta.get("output_format") == "json":
        _output(ctx, result)
        return
    new_version = result["new_version"]
    click.echo(
        f"Created version {new_version['version_number']} ({new_version['id']}): "
        f"{new_version['note']}"
    )


@version.command("stats")
@click.argument("prompt_id")
@click.pass_context
def version_stats(ctx: click.Context, prompt_id: str) -> None:
    """Show version statistics."""
    client: LedgerClient = ctx.obj
    _output(ctx, _call(client.version_stats, prompt_id))


@version.command("compare")
@click.argument("version_id_1")
@click.argument("version_id_2")
@click.option("--ignore-whitespace", is_flag=True)
@click.option("--ignore-case", is_flag=True)
@click.option("--context", "context_lines", type=int, default=None)
@click.pass_context
def version_compare(
    ctx: click.Context,
    version_id_1: str,
    version_id_2: str,
    ignore_whitespace: bool,
    ignore_case: bool,
    context_lines: int | None,
) -> None:
    """Diff two versions. Prints the unified diff unless --format json."""
    client: LedgerClient = ctx.obj
    params: dict[str, Any] = {
        "ignore_whitespace": ignore_whitespace,
        "ignore_case": ignore_case,
    }
    if context_lines is not None:
        params["context_lines"] = context_lines
    result = _call(client.compare, version_id_1, version_id_2, **params)
    if ctx.meta.get("output_format") == "json":
        _output(ctx, result)
    else:
        click.echo(result["diff"]["unified"])


# --- Offline diff ---


@cli.command()
@click.argument("file_a", type=click.Path(exists=True, dir_okay=False))
@click.argument("file_b", type=click.Path(exists=True, dir_okay=False))
@click.option("--ignore-whitespace", is_flag=True)
@click.option("--ignore-case", is_flag=True)
@click.option("--context", "context_lines", type=int, default=3, show_default=True)
@click.option(
    "--view",
    type=click.Choice(["unified", "side-by-side", "summary"]),
    default="unified",
    show_default=True,
)
@click.pass_context
def diff(
    ctx: click.Context,
    file_a: str,
    file_b: str,
    ignore_whitespace: bool,
    ignore_case: bool,
    context_lines: int,
    view: str,
) -> None:
    """Diff two local files without a server."""
    result: DiffResult = generate_diff(
        Path(file_a).read_text(encoding="utf-8"),
        Path(file_b).read_text(encoding="utf-8"),
        ignore_whitespace=ignore_whitespace,
        ignore_case=ignore_case,
        context_lines=context_lines,
    )
    if ctx.meta.get("output_format") == "json":
        _output(ctx, result.to_dict())
    elif view == "side-by-side":
        click.echo(_format_side_by_side(result.side_by_side))
    elif view == "summary":
        s = result.summary
        click.echo(f"+{s.additions} -{s.deletions} ={s.unchanged} ({s.total_changes} changes)")
    else:
        click.echo(result.unified)


if __name__ == "__main__":
    cli()
