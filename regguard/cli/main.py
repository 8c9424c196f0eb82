# Copyright 2025 Ilya Makarov
#
# Licensed under the Business Source License 1.1
# Change Date: 2028-11-05
# Change License: Apache License 2.0

"""RegGuard CLI - enforce registry settings from a catalog file"""

import json
import sys
from pathlib import Path

import click

from regguard import __version__
from regguard.core.catalog import SettingsCatalog
from regguard.core.codec import render
from regguard.core.config import load_config
from regguard.core.exceptions import (
    CatalogError,
    CatalogValidationError,
    ConfigError,
    StoreError,
)
from regguard.core.logger import get_logger
from regguard.core.reconciler import ApplyReport, EntryStatus, Reconciler
from regguard.core.stores import available_backends, create_store

# Force UTF-8 encoding for Windows consoles
if sys.platform == "win32":
    sys.stdout.reconfigure(encoding="utf-8")
    sys.stderr.reconfigure(encoding="utf-8")

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_DRIFT = 3

_ICONS = {
    EntryStatus.CREATED: "+",
    EntryStatus.UPDATED: "~",
    EntryStatus.RECREATED: "~",
    EntryStatus.REMOVED: "-",
    EntryStatus.UNCHANGED: "=",
    EntryStatus.FAILED: "!",
}


@click.group()
@click.version_option(version=__version__)
@click.option(
    "--config", "-c", "config_file",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Configuration file (YAML)",
)
@click.option("--verbose", "-v", is_flag=True, help="Trace every container and value change")
@click.pass_context
def cli(ctx: click.Context, config_file: Path, verbose: bool):
    """RegGuard - declarative registry state enforcement.

    Reads a catalog of desired registry values and makes the host match it:
    missing keys are created, differing values are set and values marked
    Absent are removed. Re-running a catalog changes nothing.

    Core commands:
        regguard apply     - Enforce a catalog
        regguard check     - Report drift without writing
        regguard validate  - Validate a catalog file
    """
    try:
        config = load_config(config_file)
    except ConfigError as e:
        click.echo(f"[-] Configuration error: {e}", err=True)
        sys.exit(EXIT_FAILED)

    level = "DEBUG" if verbose else config.observability.log_level
    get_logger(
        "regguard",
        level=level,
        log_dir=config.paths.log_dir,
        file_output=config.observability.file_logging,
    )

    ctx.ensure_object(dict)
    ctx.obj["config"] = config


def _load_catalog(catalog_path: str) -> SettingsCatalog:
    try:
        return SettingsCatalog.from_file(catalog_path)
    except CatalogValidationError as e:
        click.echo(f"[-] Invalid catalog {catalog_path}:", err=True)
        for error in e.errors:
            field = f".{error['field']}" if error["field"] else ""
            click.echo(f"    settings[{error['index']}]{field}: {error['message']}", err=True)
        sys.exit(EXIT_FAILED)
    except CatalogError as e:
        click.echo(f"[-] {e}", err=True)
        sys.exit(EXIT_FAILED)


def _reconcile(
    ctx: click.Context,
    catalog_path: str,
    backend: str,
    force_recreate: bool,
    dry_run: bool,
) -> ApplyReport:
    config = ctx.obj["config"]
    catalog = _load_catalog(catalog_path)

    try:
        store = create_store(backend or config.runtime.backend)
    except StoreError as e:
        click.echo(f"[-] {e}", err=True)
        sys.exit(EXIT_FAILED)

    reconciler = Reconciler(
        catalog,
        store,
        force_recreate=force_recreate or config.runtime.force_recreate,
        dry_run=dry_run,
    )
    return reconciler.apply()


def _print_report(report: ApplyReport, output: str):
    if output == "json":
        click.echo(json.dumps(report.to_dict(), indent=2, default=str))
        return

    prefix = "would be " if report.dry_run else ""
    for entry in report.entries:
        icon = _ICONS[entry.status]
        line = f"[{icon}] {entry.setting.label}: "
        if entry.status is EntryStatus.FAILED:
            click.echo(line + f"failed - {entry.error}", err=True)
            continue
        if entry.status is EntryStatus.UNCHANGED:
            click.echo(line + "unchanged")
            continue
        old = "<absent>" if entry.old is None else repr(render(entry.old))
        new = "<absent>" if entry.new is None else repr(render(entry.new))
        click.echo(line + f"{prefix}{entry.status.value} ({old} -> {new})")

    summary = report.summary()
    click.echo(
        f"\n{summary['total']} settings: {len(report.changed)} {prefix}changed, "
        f"{summary['unchanged']} unchanged, {summary['failed']} failed"
    )


@cli.command()
@click.argument("catalog_path", type=click.Path(exists=True, dir_okay=False))
@click.option("--force-recreate", "-f", is_flag=True, help="Delete values before writing them")
@click.option("--dry-run", "-n", is_flag=True, help="Show what would change without writing")
@click.option("--backend", "-b", type=click.Choice(available_backends()), help="Store backend")
@click.option("--output", "-o", type=click.Choice(["text", "json"]), default="text")
@click.pass_context
def apply(
    ctx: click.Context,
    catalog_path: str,
    force_recreate: bool,
    dry_run: bool,
    backend: str,
    output: str,
):
    """Enforce the settings in CATALOG_PATH.

    Exits 1 if any setting could not be enforced.

    Examples:
        regguard apply hardening.yaml
        regguard apply hardening.yaml --dry-run
        regguard apply hardening.yaml -o json
    """
    dry_run = dry_run or ctx.obj["config"].runtime.dry_run
    report = _reconcile(ctx, catalog_path, backend, force_recreate, dry_run)
    _print_report(report, output)
    sys.exit(EXIT_OK if report.ok else EXIT_FAILED)


@cli.command()
@click.argument("catalog_path", type=click.Path(exists=True, dir_okay=False))
@click.option("--backend", "-b", type=click.Choice(available_backends()), help="Store backend")
@click.option("--output", "-o", type=click.Choice(["text", "json"]), default="text")
@click.pass_context
def check(ctx: click.Context, catalog_path: str, backend: str, output: str):
    """Report whether the host matches CATALOG_PATH.

    Nothing is written. Exits 0 when compliant, 3 when drift is found
    and 1 when settings could not be read.
    """
    report = _reconcile(ctx, catalog_path, backend, False, True)
    _print_report(report, output)
    if not report.ok:
        sys.exit(EXIT_FAILED)
    sys.exit(EXIT_OK if report.compliant else EXIT_DRIFT)


@cli.command()
@click.argument("catalog_path", type=click.Path(exists=True, dir_okay=False))
def validate(catalog_path: str):
    """Validate a catalog file without touching the registry."""
    catalog = _load_catalog(catalog_path)
    click.echo(f"[+] Catalog is valid: {catalog_path} ({len(catalog)} settings)")


@cli.command("version")
def show_version():
    """Show RegGuard version."""
    click.echo(f"RegGuard - declarative registry state enforcement v{__version__}")
    click.echo("License: BSL 1.1 (converts to Apache 2.0 on 2028-11-05)")
