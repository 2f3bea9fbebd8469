"""Click-based command line entry point for udiscan."""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path
from typing import Iterable, List, Optional, TextIO

import click

from . import __version__
from .config import AppConfig, ConfigError, load_config
from .export import ExportIOError
from .inventory import ValidationError
from .lookup import LookupClient
from .logging_conf import configure_logging
from .pipeline import ScanPipeline


@click.group(help="Device identifier scan, lookup and inventory export")
@click.version_option(__version__)
@click.option("--verbose", is_flag=True, help="Enable verbose logging output.")
@click.option(
    "--config",
    "config_path",
    default=None,
    type=click.Path(path_type=Path, exists=True, dir_okay=False),
    help="YAML configuration file.",
)
@click.pass_context
def cli(ctx: click.Context, verbose: bool, config_path: Optional[Path]) -> None:
    """
    Root CLI group configuring logging and loading configuration before subcommands execute.
    """

    configure_logging(verbose)
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    try:
        ctx.obj["config"] = load_config(config_path)
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc


@cli.command("lookup")
@click.argument("udi")
@click.pass_context
def cli_lookup(ctx: click.Context, udi: str) -> None:
    """Resolve one identifier and print the normalised record as JSON."""

    pipeline = _build_pipeline(ctx.obj["config"])
    try:
        outcome = pipeline.submit_manual(udi)
    except ValidationError as exc:
        raise click.ClickException(str(exc)) from exc
    if outcome is None:
        raise click.ClickException(f"{udi} was not processed")
    if outcome.notice:
        click.echo(f"notice: {outcome.notice}", err=True)
    click.echo(json.dumps(outcome.record.to_dict(), indent=2))


@cli.command("batch")
@click.option("--input", "input_file", required=True, type=click.File("r", encoding="utf-8"))
@click.option(
    "--out",
    "out_dir",
    default=None,
    type=click.Path(path_type=Path, file_okay=False),
    help="Export directory, defaults to the configured one.",
)
@click.pass_context
def cli_batch(ctx: click.Context, input_file: TextIO, out_dir: Optional[Path]) -> None:
    """Scan every identifier listed in INPUT (one per line), collect the records and export them as CSV."""

    config: AppConfig = ctx.obj["config"]
    pipeline = _build_pipeline(config)
    identifiers = _read_identifiers(input_file)
    if not identifiers:
        raise click.ClickException("no identifiers found in input")

    logger = logging.getLogger(__name__)
    for identifier in identifiers:
        pipeline.start_scanning()
        outcome = pipeline.handle_scan(identifier)
        if outcome is None:
            logger.warning("%s was dropped", identifier)
            continue
        try:
            pipeline.accept()
        except ValidationError:
            continue
    try:
        path = pipeline.export(out_dir or config.export_dir)
    except (ValidationError, ExportIOError) as exc:
        raise click.ClickException(str(exc)) from exc
    logger.info("collected %d items (%d notices) -> %s", len(pipeline.inventory), len(pipeline.notices), path)
    click.echo(str(path))


def _build_pipeline(config: AppConfig) -> ScanPipeline:
    client = LookupClient(
        base_url=config.lookup_url,
        timeout=config.lookup_timeout,
        user_agent=config.user_agent,
    )
    return ScanPipeline(client, columns=config.columns)


def _read_identifiers(lines: Iterable[str]) -> List[str]:
    return [line.strip() for line in lines if line.strip()]


def main(argv: Optional[Iterable[str]] = None) -> int:
    """
    Entry point returning an exit code for setuptools console scripts.
    """

    argv_list = sys.argv[1:] if argv is None else list(argv)
    try:
        cli.main(args=argv_list, prog_name="udiscan", standalone_mode=False)
    except click.ClickException as exc:
        exc.show()
        return 1
    except SystemExit as exc:
        return int(exc.code or 0)
    return 0


if __name__ == "__main__":
    sys.exit(main())
