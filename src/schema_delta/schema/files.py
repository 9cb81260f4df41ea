"""JSON schema snapshots and plan files.

A snapshot is a ``Database`` serialized with pydantic; a plan is a JSON
array of changes, each tagged with its ``kind``.

Usage:
    from schema_delta.schema.files import load_database, save_changes

    current = load_database("snapshots/current.json")
    save_changes(plan, "plan.json")
"""

from collections.abc import Sequence
from pathlib import Path

from pydantic import ValidationError

from schema_delta.errors import SchemaFileError
from schema_delta.schema.changes import Change, ChangeList
from schema_delta.schema.models import Database


def _read(path: str | Path, what: str) -> str:
    file_path = Path(path)
    if not file_path.exists():
        raise FileNotFoundError(f"{what} not found: {file_path}")
    return file_path.read_text()


def load_database(path: str | Path) -> Database:
    """Read a schema snapshot from a JSON file.

    Raises:
        FileNotFoundError: If the file does not exist.
        SchemaFileError: If the content is not a valid snapshot.
    """
    content = _read(path, "Schema file")
    try:
        return Database.model_validate_json(content)
    except ValidationError as e:
        raise SchemaFileError(f"Invalid schema file {Path(path).name}: {e}") from e


def save_database(database: Database, path: str | Path) -> Path:
    """Write a schema snapshot as indented JSON and return its path."""
    file_path = Path(path)
    file_path.parent.mkdir(parents=True, exist_ok=True)
    file_path.write_text(database.model_dump_json(indent=2, exclude_none=True) + "\n")
    return file_path


def load_changes(path: str | Path) -> list[Change]:
    """Read a plan written by ``save_changes``.

    Raises:
        FileNotFoundError: If the file does not exist.
        SchemaFileError: If the content is not a valid plan.
    """
    content = _read(path, "Plan file")
    try:
        return ChangeList.validate_json(content)
    except ValidationError as e:
        raise SchemaFileError(f"Invalid plan file {Path(path).name}: {e}") from e


def dump_changes(changes: Sequence[Change]) -> str:
    """Serialize a plan to a JSON string."""
    return ChangeList.dump_json(list(changes), indent=2, exclude_none=True).decode()


def save_changes(changes: Sequence[Change], path: str | Path) -> Path:
    file_path = Path(path)
    file_path.parent.mkdir(parents=True, exist_ok=True)
    file_path.write_text(dump_changes(changes) + "\n")
    return file_path
