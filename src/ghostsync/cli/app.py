"""Command line interface for ghostsync."""

from __future__ import annotations

import asyncio
import json
import logging
import pathlib
import platform
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Optional

import typer
import yaml
from dotenv import load_dotenv
from rich.console import Console
from rich.table import Table

from ghostsync import get_version
from ghostsync.config import Config, load_config
from ghostsync.core import IngestSummary
from ghostsync.errors import GhostSyncError
from ghostsync.host import (
    SCHEMA_FINALIZED_EVENT,
    EventEmitter,
    NodeStore,
    RemoteFileCache,
    SourceContext,
    create_node_id,
)
from ghostsync.logging import configure_logging, log_file_path
from ghostsync.plugin import GhostSourcePlugin


@dataclass(slots=True)
class OutputDirs:
    base: pathlib.Path
    nodes: pathlib.Path
    cache: pathlib.Path


def _load_environment(env_file: Optional[pathlib.Path]) -> None:
    """Load environment variables from .env files."""

    if env_file is not None:
        load_dotenv(dotenv_path=env_file, override=True)
    else:
        load_dotenv(override=False)


def _prepare_logging(
    config: Config,
    override_path: Optional[pathlib.Path],
    override_level: Optional[str],
) -> tuple[logging.Logger, pathlib.Path]:
    configured_path = override_path or config.logging.path
    configured_level = (override_level or config.logging.level).upper()
    logger = configure_logging(
        log_path=configured_path,
        level=configured_level,
        mirror_to_console=False,
    )
    return logger, log_file_path(logger) or pathlib.Path.cwd() / "ghostsync.log"


def _prepare_output_dirs(config: Config, base_override: Optional[pathlib.Path]) -> OutputDirs:
    base = base_override or config.outputs.base_path
    if not base.is_absolute():
        base = pathlib.Path.cwd() / base
    nodes = base / config.outputs.nodes_subdir
    cache = base / config.outputs.cache_subdir
    for path in (base, nodes, cache):
        path.mkdir(parents=True, exist_ok=True)
    return OutputDirs(base=base, nodes=nodes, cache=cache)


def _write_nodes(store: NodeStore, output_dirs: OutputDirs) -> dict[str, pathlib.Path]:
    """Write one JSON document per node type."""

    by_type: dict[str, list[dict]] = {}
    for node in store:
        by_type.setdefault(node.internal.type, []).append(node.to_dict())

    written: dict[str, pathlib.Path] = {}
    for node_type, nodes in sorted(by_type.items()):
        path = output_dirs.nodes / f"{node_type}.json"
        nodes.sort(key=lambda item: item["id"])
        path.write_text(json.dumps(nodes, indent=2), encoding="utf-8")
        written[node_type] = path
    return written


def _write_run_metadata(
    *,
    summary: IngestSummary,
    config: Config,
    output_dirs: OutputDirs,
    written: dict[str, pathlib.Path],
) -> pathlib.Path:
    metadata = {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "source": {
            "api_url": config.plugin_options().get("api_url"),
            "api_version": config.ghost.api_version,
        },
        "stats": {
            "nodes": summary.counts,
            "images_linked": summary.images_linked,
            "images_failed": summary.images_failed,
            "elapsed_seconds": round(summary.elapsed_seconds, 3),
        },
        "outputs": {node_type: str(path) for node_type, path in written.items()},
        "environment": {
            "ghostsync_version": get_version(),
            "python_version": platform.python_version(),
        },
    }
    path = output_dirs.base / "run.json"
    path.write_text(json.dumps(metadata, indent=2), encoding="utf-8")
    return path


def _summary_table(summary: IngestSummary, store: NodeStore) -> Table:
    table = Table(title="Ghost ingestion")
    table.add_column("Node type")
    table.add_column("Created", justify="right")
    table.add_column("In store", justify="right")
    stored = store.count_by_type()
    for node_type in sorted(set(summary.counts) | set(stored)):
        table.add_row(
            node_type,
            str(summary.counts.get(node_type, 0)),
            str(stored.get(node_type, 0)),
        )
    table.caption = (
        f"images linked={summary.images_linked} failed={summary.images_failed} "
        f"in {summary.elapsed_seconds:.2f}s"
    )
    return table


async def _build(
    plugin: GhostSourcePlugin,
    context: SourceContext,
    emitter: EventEmitter,
    options: dict[str, Any],
) -> IngestSummary:
    """Mirror the host build: sourcing, schema inference, query extraction, final schema."""

    summary = await plugin.source_nodes(context, options)
    emitter.emit(SCHEMA_FINALIZED_EVENT)
    await plugin.placeholders.flush()
    await plugin.on_pre_extract_queries(context)
    emitter.emit(SCHEMA_FINALIZED_EVENT)
    await plugin.placeholders.flush()
    return summary


app = typer.Typer(
    name="ghostsync",
    help="Source Ghost Content API records into a static-site node graph.",
    no_args_is_help=True,
    add_completion=False,
)

config_app = typer.Typer(help="Configuration utilities.", no_args_is_help=True)
app.add_typer(config_app, name="config")


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(get_version())
        raise typer.Exit()


@app.callback()
def main(
    ctx: typer.Context,
    config: Optional[pathlib.Path] = typer.Option(
        None,
        "--config",
        metavar="PATH",
        help="Path to YAML configuration file (used exclusively).",
    ),
    env_file: Optional[pathlib.Path] = typer.Option(
        None,
        "--env-file",
        metavar="PATH",
        help="Load environment variables from .env-style file before execution.",
    ),
    log_level: Optional[str] = typer.Option(
        None,
        "--log-level",
        metavar="LEVEL",
        help="Override the configured log level (debug, info, warn, error).",
    ),
    log_path: Optional[pathlib.Path] = typer.Option(
        None,
        "--log-path",
        metavar="PATH",
        help="Override the base directory or file for log output.",
    ),
    version: Optional[bool] = typer.Option(
        None,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show ghostsync version and exit.",
    ),
) -> None:
    """CLI root; loads environment, configuration and logging."""

    ctx.ensure_object(dict)
    _load_environment(env_file)

    try:
        config_obj = load_config(config)
    except (FileNotFoundError, ValueError) as exc:
        raise typer.BadParameter(str(exc), param_hint="--config") from exc

    logger, log_file = _prepare_logging(config_obj, log_path, log_level)
    ctx.obj.update(
        {
            "config": config_obj,
            "config_path": config,
            "logger": logger,
            "log_file": log_file,
        }
    )


@app.command()
def ingest(
    ctx: typer.Context,
    output: Optional[pathlib.Path] = typer.Option(
        None,
        "--output",
        metavar="DIR",
        help="Override the output base directory.",
    ),
) -> None:
    """Fetch all Ghost content, build nodes and write them as JSON."""

    config: Config = ctx.obj["config"]
    logger: logging.Logger = ctx.obj["logger"]
    console = Console()

    output_dirs = _prepare_output_dirs(config, output)
    store = NodeStore(owner="ghostsync", logger=logger)
    emitter = EventEmitter()
    context = SourceContext(
        actions=store,
        create_node_id=create_node_id,
        emitter=emitter,
        file_loader=RemoteFileCache(
            cache_dir=output_dirs.cache,
            logger=logger,
            timeout=config.http.timeout_seconds,
            max_size_bytes=config.http.max_image_bytes,
        ),
        logger=logger,
    )
    plugin = GhostSourcePlugin(timeout=config.http.timeout_seconds)

    try:
        summary = asyncio.run(_build(plugin, context, emitter, config.plugin_options()))
    except GhostSyncError as exc:
        logger.error("Ingestion failed: %s", exc)
        typer.echo(f"Ingestion failed: {exc}", err=True)
        raise typer.Exit(code=1) from exc

    written = _write_nodes(store, output_dirs)
    metadata_path = _write_run_metadata(
        summary=summary, config=config, output_dirs=output_dirs, written=written
    )

    console.print(_summary_table(summary, store))
    typer.echo(f"Wrote {len(written)} node file(s) to {output_dirs.nodes}")
    typer.echo(f"Run metadata: {metadata_path} log={ctx.obj['log_file']}")


@config_app.command("show")
def config_show(
    ctx: typer.Context,
    format: str = typer.Option(
        "yaml",
        "--format",
        help="Output format: yaml or json.",
    ),
) -> None:
    """Print the effective configuration with secrets masked."""

    config: Config = ctx.obj["config"]
    fmt = format.lower()
    if fmt not in {"yaml", "json"}:
        raise typer.BadParameter("Format must be 'yaml' or 'json'.", param_hint="--format")

    for entry in config.loaded_from:
        typer.echo(f"# loaded from {entry}", err=True)

    data = config.model_dump()
    if fmt == "json":
        typer.echo(json.dumps(data, indent=2))
    else:
        typer.echo(yaml.safe_dump(data, sort_keys=False))
