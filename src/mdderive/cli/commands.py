"""CLI command implementations"""

import asyncio
import json
from pathlib import Path
from typing import Annotated, Any, Optional

import typer

from mdderive.config import Settings, load_config
from mdderive.core.errors import MarkdownDeriveError, PluginNotFoundError
from mdderive.core.fields import build_fields, resolve_field
from mdderive.core.host import FileHost
from mdderive.core.pipeline import MarkdownPipeline
from mdderive.core.plugins import discover
from mdderive.core.utils.logging import configure_logging


FIELD_NAMES = ["html", "src", "excerpt", "headings", "time_to_read"]


def _fail(msg: str, cause: Exception = None) -> None:
    """Print a user-friendly error to stderr and exit 1."""
    typer.echo(f"Error: {msg}", err=True)
    if cause:
        typer.echo(f"  {cause}", err=True)
    raise typer.Exit(1)


def _settings(overrides: dict = None) -> Settings:
    """Load config with standard CLI error handling."""
    try:
        settings = load_config(overrides=overrides)
    except ValueError as e:
        _fail(str(e))
    configure_logging(settings.log_level)
    return settings


def _pipeline(path: str, settings: Settings) -> tuple[FileHost, MarkdownPipeline]:
    """Load records under path and build a pipeline wired to the host."""
    if not Path(path).exists():
        _fail(f"Path not found: {path}")
    try:
        host = FileHost(Path(path), settings.link_prefix, settings.markdown_kind)
        pipeline = MarkdownPipeline.from_settings(settings, host.context())
    except (ValueError, PluginNotFoundError) as e:
        _fail("Setup failed", e)
    host.subscribe(pipeline.on_record_created)
    return host, pipeline


def _jsonable(value: Any) -> Any:
    if isinstance(value, list):
        return [_jsonable(v) for v in value]
    if hasattr(value, "model_dump"):
        return value.model_dump()
    return value


async def _collect(host: FileHost, pipeline: MarkdownPipeline, names: list[str], args: dict[str, dict]) -> list[dict]:
    fields = build_fields(pipeline)
    rows = []
    for record in host.markdown_records:
        row: dict[str, Any] = {"id": record.id, "path": record.path}
        for name in names:
            value = await resolve_field(fields, name, record, **args.get(name, {}))
            row[name] = _jsonable(value)
        rows.append(row)
    return rows


def fields_cmd(
    path: Annotated[str, typer.Argument(help="Markdown file or directory")],
    field: Annotated[Optional[list[str]], typer.Option("--field", "-f", help="Field to resolve (repeatable)")] = None,
    prune_length: Annotated[Optional[int], typer.Option("--prune-length", help="Excerpt length in characters")] = None,
    depth: Annotated[Optional[int], typer.Option("--depth", help="Only headings of this depth (1-6)")] = None,
    plugin: Annotated[Optional[list[str]], typer.Option("--plugin", "-p", help="Plugin reference (repeatable)")] = None,
    link_prefix: Annotated[Optional[str], typer.Option("--link-prefix", help="Prefix passed to annotate plugins")] = None,
    parser: Annotated[Optional[str], typer.Option("--parser-config", help="MarkdownIt preset name")] = None,
    ):
    """Resolve derived fields for every Markdown file under PATH and print them as JSON."""
    settings = _settings(overrides={
        "prune_length": prune_length,
        "link_prefix": link_prefix,
        "parser_config": parser,
        "plugins": [{"resolve": ref} for ref in plugin] if plugin else None,
    })
    names = list(field) if field else FIELD_NAMES
    unknown = [n for n in names if n not in FIELD_NAMES]
    if unknown:
        _fail(f"Unknown field(s): {', '.join(unknown)}. Choose from: {', '.join(FIELD_NAMES)}")

    host, pipeline = _pipeline(path, settings)
    args = {"headings": {"depth": depth}} if depth is not None else {}
    try:
        rows = asyncio.run(_collect(host, pipeline, names, args))
    except (MarkdownDeriveError, ValueError) as e:
        _fail("Field resolution failed", e)
    typer.echo(json.dumps(rows, indent=2, ensure_ascii=False))


def headings_cmd(
    path: Annotated[str, typer.Argument(help="Markdown file or directory")],
    depth: Annotated[Optional[int], typer.Option("--depth", help="Only headings of this depth (1-6)")] = None,
    ):
    """Print the headings of each Markdown file, one per line as depth<TAB>value."""
    settings = _settings()
    host, pipeline = _pipeline(path, settings)
    args = {"headings": {"depth": depth}}
    try:
        rows = asyncio.run(_collect(host, pipeline, ["headings"], args))
    except (MarkdownDeriveError, ValueError) as e:
        _fail("Field resolution failed", e)
    for row in rows:
        typer.echo(row["path"])
        for heading in row["headings"]:
            typer.echo(f"  {heading['depth']}\t{heading['value'] or ''}")


def plugins_cmd():
    """List plugins registered under the mdderive.plugins entry point group."""
    names = discover()
    if not names:
        typer.echo("No plugins registered.")
        raise typer.Exit(1)
    for name in names:
        typer.echo(name)
