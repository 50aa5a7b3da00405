"""CLI module for schema drift validation.

Provides commands for validating a live database against declared models,
listing configured profiles, and previewing how model types map to each
dialect.

Usage:
    DB_PROFILE=local db-drift validate
    db-drift validate --profile staging --full-report
    db-drift validate --models models.toml --exclude audit_log,sessions
    db-drift profiles
    db-drift types --models models.toml --dialect mysql8

Commands:
    validate  - Validate the profile's database against the models file
    profiles  - List available profiles
    types     - Show native column types for every model attribute
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from db_drift.config.loader import load_db_config
from db_drift.factory import ProfileNotFoundError, connect_and_validate, get_active_profile_name
from db_drift.schema.dialects import Dialect
from db_drift.schema.models import ValidationMode
from db_drift.schema.registry import load_models
from db_drift.schema.types import map_type

console = Console()


def _config_path(args: argparse.Namespace) -> Path | None:
    config = getattr(args, "config", None)
    return Path(config) if config else None


def _validation_overrides(args: argparse.Namespace) -> dict:
    """Collect ``ValidationOptions`` overrides from CLI flags.

    Only flags the user actually passed are included, so db.toml settings
    apply otherwise.
    """
    overrides: dict = {}
    if getattr(args, "exclude", None):
        overrides["exclude"] = [t.strip() for t in args.exclude.split(",") if t.strip()]
    if getattr(args, "full_report", False):
        overrides["mode"] = ValidationMode.FULL_REPORT
    if getattr(args, "compare_comments", False):
        overrides["compare_comments"] = True
    if getattr(args, "max_concurrency", None) is not None:
        overrides["max_concurrency"] = args.max_concurrency
    return overrides


# ============================================================================
# Async command implementations
# ============================================================================


async def _async_validate(args: argparse.Namespace) -> int:
    """Async implementation for validate command.

    Args:
        args: Parsed arguments with profile, models, validation flags,
            config, and env_prefix.

    Returns:
        0 on valid schema, 1 on drift or any failure.
    """
    env_prefix = getattr(args, "env_prefix", "")
    profile = getattr(args, "profile", None)

    if profile is None:
        try:
            profile = get_active_profile_name(env_prefix=env_prefix)
        except ProfileNotFoundError as e:
            console.print(f"[yellow]{e}[/yellow]")
            return 1

    console.print(f"Validating schema for profile: [bold cyan]{profile}[/bold cyan]")

    models = getattr(args, "models", None)
    result = await connect_and_validate(
        profile_name=profile,
        models_file=Path(models) if models else None,
        env_prefix=env_prefix,
        config_path=_config_path(args),
        overrides=_validation_overrides(args),
    )

    report = result.schema_report

    if result.success and result.schema_valid:
        console.print()
        console.print("[bold green]v[/bold green] Schema is valid")
        if report is not None:
            console.print(f"  Tables checked: {len(report.tables_checked)}")
            if report.tables_excluded:
                console.print(
                    f"  Excluded tables: [dim]{', '.join(report.tables_excluded)}[/dim]"
                )
        return 0

    console.print()
    if result.schema_valid is False:
        console.print("[bold red]x[/bold red] Schema has drifted")
        if report is not None:
            console.print(report.format_report(), markup=False)
    else:
        console.print(f"[bold red]x[/bold red] {escape(result.error or '')}")
    return 1


# ============================================================================
# Command handlers
# ============================================================================


def cmd_validate(args: argparse.Namespace) -> int:
    """Validate the live schema against the models file.

    Wraps the async implementation with ``asyncio.run()``.

    Returns:
        0 on valid schema, 1 on drift or failure.
    """
    return asyncio.run(_async_validate(args))


def cmd_profiles(args: argparse.Namespace) -> int:
    """List available profiles from db.toml.

    Args:
        args: Parsed CLI arguments.

    Returns:
        0 on success, 1 if db.toml is missing or invalid.
    """
    try:
        config = load_db_config(_config_path(args))
    except (FileNotFoundError, ValueError) as e:
        console.print(f"[red]Error: {e}[/red]")
        return 1

    env_prefix = getattr(args, "env_prefix", "")
    try:
        active = get_active_profile_name(env_prefix=env_prefix)
    except ProfileNotFoundError:
        active = None

    table = Table(title="Database Profiles", show_header=True, header_style="bold")
    table.add_column("", width=2)
    table.add_column("Profile")
    table.add_column("Dialect")
    table.add_column("Description")

    for name, profile in config.profiles.items():
        try:
            dialect = profile.resolved_dialect.value
        except ValueError:
            dialect = "[red]unknown[/red]"
        marker = "[bold green]*[/bold green]" if name == active else " "
        label = f"[bold cyan]{name}[/bold cyan]" if name == active else name
        table.add_row(marker, label, dialect, profile.description or "")

    console.print(table)

    if active:
        console.print("\n[bold green]*[/bold green] = active profile")

    return 0


def cmd_types(args: argparse.Namespace) -> int:
    """Show the native type each model attribute maps to on a dialect.

    Needs no database connection.

    Returns:
        0 when every type maps, 1 when a type is unmapped or the models
        file cannot be loaded.
    """
    try:
        registry = load_models(Path(args.models))
    except (FileNotFoundError, ValueError) as e:
        console.print(f"[red]Error: {e}[/red]")
        return 1

    dialect = Dialect(args.dialect)

    table = Table(
        title=f"Column Types ({dialect.value})", show_header=True, header_style="bold"
    )
    table.add_column("Table")
    table.add_column("Field")
    table.add_column("Model Type")
    table.add_column("Native Type")

    unmapped = 0
    for table_name in registry.table_names():
        model = registry.resolve_model(table_name)
        for attr in model.attributes:
            native = map_type(attr, dialect)
            if native is None:
                unmapped += 1
                native_cell = "[yellow]unmapped[/yellow]"
            else:
                native_cell = native
            table.add_row(table_name, attr.field, str(attr.type), native_cell)

    console.print(table)

    if unmapped:
        console.print(f"\n[yellow]{unmapped} attribute(s) have no {dialect.value} type[/yellow]")
        return 1
    return 0


# ============================================================================
# Main entry point
# ============================================================================


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point.

    Parses command line arguments and dispatches to appropriate handler.

    Returns:
        Exit code (0 for success, non-zero for errors).
    """
    parser = argparse.ArgumentParser(
        prog="db-drift",
        description="Validate a live database schema against declared models",
    )

    parser.add_argument(
        "--config",
        default=None,
        help="Path to db.toml (default: ./db.toml)",
    )
    parser.add_argument(
        "--env-prefix",
        default="",
        help=(
            "Prefix for environment variable lookup "
            "(e.g., --env-prefix APP_ reads APP_DB_PROFILE)"
        ),
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable debug logging",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    # validate command
    p_validate = subparsers.add_parser(
        "validate",
        help="Validate the database against the models file",
    )
    p_validate.add_argument(
        "--profile",
        "-p",
        default=None,
        help="Profile from db.toml (default: $DB_PROFILE)",
    )
    p_validate.add_argument(
        "--models",
        "-m",
        default=None,
        help="Models TOML file (default: [validation].models_file)",
    )
    p_validate.add_argument(
        "--exclude",
        default=None,
        help="Comma-separated tables to skip (replaces configured list)",
    )
    p_validate.add_argument(
        "--full-report",
        action="store_true",
        help="Collect every discrepancy instead of stopping at the first",
    )
    p_validate.add_argument(
        "--compare-comments",
        action="store_true",
        help="Also require column comments to match",
    )
    p_validate.add_argument(
        "--max-concurrency",
        type=int,
        default=None,
        help="Maximum concurrent catalog queries",
    )
    p_validate.set_defaults(func=cmd_validate)

    # profiles command
    p_profiles = subparsers.add_parser(
        "profiles",
        help="List available profiles",
    )
    p_profiles.set_defaults(func=cmd_profiles)

    # types command
    p_types = subparsers.add_parser(
        "types",
        help="Show native column types for every model attribute",
    )
    p_types.add_argument(
        "--models",
        "-m",
        default="models.toml",
        help="Models TOML file",
    )
    p_types.add_argument(
        "--dialect",
        "-d",
        choices=[d.value for d in Dialect],
        default=Dialect.POSTGRES.value,
        help="Target dialect",
    )
    p_types.set_defaults(func=cmd_types)

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
