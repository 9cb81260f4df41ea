"""CLI module for schema comparison and change planning.

Provides commands to compare two schema snapshots, validate a snapshot,
capture a snapshot from a live database profile, and replay a saved plan.

Usage:
    schema-delta diff current.json desired.json
    schema-delta diff profile:dev desired.json --json --output plan.json
    schema-delta validate desired.json
    schema-delta snapshot --profile dev --output current.json
    schema-delta apply plan.json current.json --output result.json
    schema-delta profiles

Commands:
    diff      - Plan the changes from a current to a desired schema
    validate  - Check a schema snapshot for dangling keys and duplicates
    snapshot  - Introspect a database profile into a JSON snapshot
    apply     - Replay a saved plan onto a snapshot (offline)
    profiles  - List configured database profiles
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

import psycopg
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from schema_delta.config.loader import CONFIG_FILE_NAME, load_config
from schema_delta.config.models import DatabaseProfile, DeltaConfig
from schema_delta.errors import ProfileNotFoundError, SchemaDeltaError
from schema_delta.schema.changes import Change, apply_changes, describe_change
from schema_delta.schema.comparator import compare_models
from schema_delta.schema.files import (
    dump_changes,
    load_changes,
    load_database,
    save_changes,
    save_database,
)
from schema_delta.schema.introspector import SchemaIntrospector
from schema_delta.schema.models import Database
from schema_delta.schema.validation import validate_database

console = Console()
err_console = Console(stderr=True)

PROFILE_PREFIX = "profile:"

# Errors reported to the user as "Error: ..." with exit code 1
_USER_ERRORS = (FileNotFoundError, ValueError, SchemaDeltaError, psycopg.Error)

_KIND_STYLES = {
    "add": "green",
    "remove": "red",
}


# ============================================================================
# Helpers
# ============================================================================


def _load_config(args: argparse.Namespace) -> DeltaConfig:
    """Load the config named by ``--config``, or the default file if present.

    A missing default file is not an error; built-in defaults apply.
    """
    if args.config:
        return load_config(Path(args.config))
    default_path = Path.cwd() / CONFIG_FILE_NAME
    if default_path.exists():
        return load_config(default_path)
    return DeltaConfig()


def _case_sensitive(args: argparse.Namespace, config: DeltaConfig) -> bool:
    return bool(getattr(args, "case_sensitive", False)) or config.case_sensitive


def _introspect_profile(name: str, config: DeltaConfig) -> Database:
    """Introspect the live database behind a configured profile.

    Raises:
        ProfileNotFoundError: If the profile is not in the config.
    """
    if name not in config.profiles:
        available = ", ".join(sorted(config.profiles)) or "none"
        raise ProfileNotFoundError(
            f"Profile '{name}' not found in {CONFIG_FILE_NAME}. Available profiles: {available}"
        )
    profile = config.profiles[name]
    return asyncio.run(_introspect(profile, config))


async def _introspect(profile: DatabaseProfile, config: DeltaConfig) -> Database:
    async with SchemaIntrospector(
        profile.resolved_url(), type_info=config.type_capabilities()
    ) as introspector:
        return await introspector.introspect(profile.schema_name)


def _load_model(source: str, config: DeltaConfig) -> Database:
    """Load a snapshot file, or introspect ``profile:<name>``."""
    if source.startswith(PROFILE_PREFIX):
        return _introspect_profile(source[len(PROFILE_PREFIX):], config)
    return load_database(source)


def _print_error(error: Exception) -> None:
    # Messages quote TOML section names like [compare]; print them literally.
    err_console.print(f"Error: {error}", style="red", markup=False)


def _kind_style(kind: str) -> str:
    return _KIND_STYLES.get(kind.split("_", 1)[0], "yellow")


def _print_plan(changes: list[Change]) -> None:
    if not changes:
        console.print("[bold green]v[/bold green] Schemas match - no changes needed")
        return

    table = Table(title="Change Plan", show_header=True, header_style="bold")
    table.add_column("#", justify="right", style="dim")
    table.add_column("Kind")
    table.add_column("Table", style="cyan")
    table.add_column("Detail")

    for step, change in enumerate(changes, start=1):
        style = _kind_style(change.kind)
        table.add_row(
            str(step),
            f"[{style}]{change.kind}[/{style}]",
            change.table,
            describe_change(change),
        )

    console.print(table)
    console.print(f"\n[bold]{len(changes)}[/bold] change(s)")


# ============================================================================
# Command implementations
# ============================================================================


def cmd_diff(args: argparse.Namespace) -> int:
    """Plan the changes from the current to the desired schema.

    Args:
        args: Parsed arguments with current, desired, case_sensitive,
            json, and output.

    Returns:
        0 on success, 1 on failure.
    """
    try:
        config = _load_config(args)
        current = _load_model(args.current, config)
        desired = _load_model(args.desired, config)
        changes = compare_models(
            current,
            desired,
            case_sensitive=_case_sensitive(args, config),
            type_info=config.type_capabilities(),
        )
    except _USER_ERRORS as e:
        _print_error(e)
        return 1

    if args.output:
        path = save_changes(changes, args.output)
        console.print(f"Plan written to [cyan]{path}[/cyan] ({len(changes)} change(s))")
    elif args.json:
        print(dump_changes(changes))
    else:
        _print_plan(changes)

    return 0


def cmd_validate(args: argparse.Namespace) -> int:
    """Validate a schema snapshot.

    Args:
        args: Parsed arguments with file and case_sensitive.

    Returns:
        0 when the snapshot is valid, 1 otherwise.
    """
    try:
        config = _load_config(args)
        database = _load_model(args.file, config)
    except _USER_ERRORS as e:
        _print_error(e)
        return 1

    result = validate_database(database, _case_sensitive(args, config))
    if result.valid:
        console.print(
            f"[bold green]v[/bold green] {args.file} is valid "
            f"({len(database.tables)} table(s))"
        )
        return 0

    console.print(f"[bold red]x[/bold red] {args.file} is invalid")
    console.print(result.format_report())
    return 1


def cmd_snapshot(args: argparse.Namespace) -> int:
    """Introspect a database profile into a JSON snapshot.

    Args:
        args: Parsed arguments with profile and output.

    Returns:
        0 on success, 1 on failure.
    """
    try:
        config = _load_config(args)
        console.print(f"Introspecting profile: [bold cyan]{args.profile}[/bold cyan]", style="dim")
        database = _introspect_profile(args.profile, config)
    except _USER_ERRORS as e:
        _print_error(e)
        return 1

    if args.output:
        path = save_database(database, args.output)
        console.print(
            f"[bold green]v[/bold green] {len(database.tables)} table(s) written to [cyan]{path}[/cyan]"
        )
    else:
        print(database.model_dump_json(indent=2, exclude_none=True))
    return 0


def cmd_apply(args: argparse.Namespace) -> int:
    """Replay a saved plan onto a snapshot.

    Args:
        args: Parsed arguments with plan, file, case_sensitive, and output.

    Returns:
        0 on success, 1 on failure.
    """
    try:
        config = _load_config(args)
        changes = load_changes(args.plan)
        database = load_database(args.file)
        result = apply_changes(database, changes, _case_sensitive(args, config))
    except _USER_ERRORS as e:
        _print_error(e)
        return 1

    if args.output:
        path = save_database(result, args.output)
        console.print(
            f"[bold green]v[/bold green] Applied {len(changes)} change(s), result written to "
            f"[cyan]{path}[/cyan]"
        )
    else:
        print(result.model_dump_json(indent=2, exclude_none=True))
    return 0


def cmd_profiles(args: argparse.Namespace) -> int:
    """List available profiles from the config file.

    Reads only local TOML config -- no database calls.

    Args:
        args: Parsed CLI arguments.

    Returns:
        0 on success, 1 if the config cannot be read.
    """
    try:
        config = _load_config(args)
    except (FileNotFoundError, ValueError) as e:
        _print_error(e)
        return 1

    if not config.profiles:
        console.print("[yellow]No profiles configured.[/yellow]")
        console.print(
            f"[dim]Add[/dim] [cyan][profiles.<name>][/cyan] [dim]to {CONFIG_FILE_NAME}.[/dim]"
        )
        return 0

    table = Table(title="Database Profiles", show_header=True, header_style="bold")
    table.add_column("Profile", style="bold cyan")
    table.add_column("Schema")
    table.add_column("Description")

    for name, profile in config.profiles.items():
        table.add_row(name, profile.schema_name, profile.description or "")

    console.print(table)
    mode = "case-sensitive" if config.case_sensitive else "case-insensitive"
    console.print(f"\n[dim]Identifier matching:[/dim] {mode}")
    return 0


# ============================================================================
# Main entry point
# ============================================================================


def _configure_logging(verbose: bool) -> None:
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(message)s",
            handlers=[RichHandler(console=err_console, show_path=False)],
        )


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point.

    Parses command line arguments and dispatches to appropriate handler.

    Args:
        argv: Argument list (default: ``sys.argv[1:]``).

    Returns:
        Exit code (0 for success, non-zero for errors).
    """
    parser = argparse.ArgumentParser(
        prog="schema-delta",
        description="Compare database schemas and plan the changes between them",
    )

    # Global options
    parser.add_argument(
        "--config",
        default=None,
        help=f"Path to config file (default: ./{CONFIG_FILE_NAME} if present)",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Log every planned change",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    # diff command
    p_diff = subparsers.add_parser(
        "diff",
        help="Plan the changes from a current to a desired schema",
    )
    p_diff.add_argument(
        "current",
        help=f"Current schema: JSON snapshot path or {PROFILE_PREFIX}<name>",
    )
    p_diff.add_argument(
        "desired",
        help=f"Desired schema: JSON snapshot path or {PROFILE_PREFIX}<name>",
    )
    p_diff.add_argument(
        "--case-sensitive",
        action="store_true",
        help="Match names exactly (delimited identifiers)",
    )
    p_diff.add_argument(
        "--json",
        action="store_true",
        help="Print the plan as JSON instead of a table",
    )
    p_diff.add_argument(
        "--output",
        "-o",
        help="Write the plan as JSON to this file",
    )
    p_diff.set_defaults(func=cmd_diff)

    # validate command
    p_validate = subparsers.add_parser(
        "validate",
        help="Check a schema snapshot for dangling keys and duplicates",
    )
    p_validate.add_argument(
        "file",
        help=f"JSON snapshot path or {PROFILE_PREFIX}<name>",
    )
    p_validate.add_argument(
        "--case-sensitive",
        action="store_true",
        help="Match names exactly (delimited identifiers)",
    )
    p_validate.set_defaults(func=cmd_validate)

    # snapshot command
    p_snapshot = subparsers.add_parser(
        "snapshot",
        help="Introspect a database profile into a JSON snapshot",
    )
    p_snapshot.add_argument(
        "--profile",
        "-p",
        required=True,
        help="Profile name from the config file",
    )
    p_snapshot.add_argument(
        "--output",
        "-o",
        help="Write the snapshot to this file instead of stdout",
    )
    p_snapshot.set_defaults(func=cmd_snapshot)

    # apply command
    p_apply = subparsers.add_parser(
        "apply",
        help="Replay a saved plan onto a snapshot (offline)",
    )
    p_apply.add_argument("plan", help="Plan file written by diff --output")
    p_apply.add_argument("file", help="JSON snapshot the plan starts from")
    p_apply.add_argument(
        "--case-sensitive",
        action="store_true",
        help="Match names exactly (delimited identifiers)",
    )
    p_apply.add_argument(
        "--output",
        "-o",
        help="Write the resulting snapshot to this file instead of stdout",
    )
    p_apply.set_defaults(func=cmd_apply)

    # profiles command
    p_profiles = subparsers.add_parser(
        "profiles",
        help="List configured database profiles",
    )
    p_profiles.set_defaults(func=cmd_profiles)

    args = parser.parse_args(argv)
    _configure_logging(args.verbose)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
