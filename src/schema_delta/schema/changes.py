"""Change values produced by the comparator, and replaying them onto a model.

A plan is an ordered ``list[Change]``. ``Change`` is a closed tagged
union of thirteen frozen pydantic models, discriminated by ``kind``:

- Tables: AddTable, RemoveTable
- Columns: AddColumn, RemoveColumn, ColumnDefinitionChange, ColumnOrderChange
- Primary keys: AddPrimaryKey, RemovePrimaryKey, PrimaryKeyChange
- Foreign keys: AddForeignKey, RemoveForeignKey
- Indexes: AddIndex, RemoveIndex

Every change names exactly one table (``table``). Changes carry data only;
``apply_changes`` replays a plan onto a copy of a model and dispatches on
``kind`` through a table of appliers.

Usage:
    from schema_delta.schema.changes import ChangeList, apply_changes

    result = apply_changes(current, plan, case_sensitive=False)
    payload = ChangeList.dump_json(plan, indent=2)
    plan = ChangeList.validate_json(payload)
"""

from collections.abc import Callable, Iterable
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter

from schema_delta.errors import ChangeApplicationError
from schema_delta.schema.defaults import defaults_equal
from schema_delta.schema.models import (
    Column,
    Database,
    ForeignKey,
    Index,
    Table,
    match_foreign_key,
    match_index,
    names_equal,
)
from schema_delta.schema.types import TypeCapabilities


# ============================================================================
# Change variants
# ============================================================================


class _TableChange(BaseModel):
    model_config = ConfigDict(frozen=True)

    table: str


class AddTable(_TableChange):
    """Creation of a table. Carries no foreign keys; those follow as AddForeignKey."""

    kind: Literal["add_table"] = "add_table"
    new_table: Table


class RemoveTable(_TableChange):
    kind: Literal["remove_table"] = "remove_table"


class AddColumn(_TableChange):
    """Addition of a column between two existing siblings.

    ``previous_column`` is None when the column goes first and
    ``next_column`` is None when it goes last.
    """

    kind: Literal["add_column"] = "add_column"
    new_column: Column
    previous_column: str | None = None
    next_column: str | None = None


class RemoveColumn(_TableChange):
    kind: Literal["remove_column"] = "remove_column"
    column: str


class ColumnDefinitionChange(_TableChange):
    """Redefinition of ``column``; ``new_column`` is the complete new definition."""

    kind: Literal["column_definition"] = "column_definition"
    column: str
    new_column: Column


class ColumnOrderChange(_TableChange):
    """Reordering of retained columns.

    ``new_positions`` maps each column that moves to its new zero-based
    index. Columns not listed keep their relative order.
    """

    kind: Literal["column_order"] = "column_order"
    new_positions: dict[str, int] = Field(default_factory=dict)

    def get_new_position(self, column: str, case_sensitive: bool) -> int:
        """New index of ``column``, or -1 if this change does not move it."""
        for name, position in self.new_positions.items():
            if names_equal(name, column, case_sensitive):
                return position
        return -1


class AddPrimaryKey(_TableChange):
    kind: Literal["add_primary_key"] = "add_primary_key"
    columns: list[str]


class RemovePrimaryKey(_TableChange):
    kind: Literal["remove_primary_key"] = "remove_primary_key"


class PrimaryKeyChange(_TableChange):
    """Replacement of the primary key by ``new_columns``, in order."""

    kind: Literal["primary_key"] = "primary_key"
    new_columns: list[str]


class AddForeignKey(_TableChange):
    kind: Literal["add_foreign_key"] = "add_foreign_key"
    new_foreign_key: ForeignKey


class RemoveForeignKey(_TableChange):
    """Removal of a foreign key, identified by name or structure."""

    kind: Literal["remove_foreign_key"] = "remove_foreign_key"
    foreign_key: ForeignKey


class AddIndex(_TableChange):
    kind: Literal["add_index"] = "add_index"
    new_index: Index


class RemoveIndex(_TableChange):
    kind: Literal["remove_index"] = "remove_index"
    index: Index


Change = Annotated[
    AddTable
    | RemoveTable
    | AddColumn
    | RemoveColumn
    | ColumnDefinitionChange
    | ColumnOrderChange
    | AddPrimaryKey
    | RemovePrimaryKey
    | PrimaryKeyChange
    | AddForeignKey
    | RemoveForeignKey
    | AddIndex
    | RemoveIndex,
    Field(discriminator="kind"),
]

ChangeList = TypeAdapter(list[Change])


# ============================================================================
# Column definition predicates
# ============================================================================


def is_type_changed(type_info: TypeCapabilities, current: Column, desired: Column) -> bool:
    return not type_info.same_type(current.type_code, desired.type_code)


def is_size_changed(type_info: TypeCapabilities, current: Column, desired: Column) -> bool:
    """Whether size (or precision and scale) differs in a way the type cares about.

    A size reported for a type without a meaningful size is ignored, so
    a live catalog that reports ``INTEGER(10)`` does not differ from a
    schema file that says ``INTEGER``.
    """
    if not type_info.has_size(desired.type_code):
        return False
    if current.precision != desired.precision:
        return True
    if type_info.has_precision_and_scale(desired.type_code):
        return (current.effective_scale or 0) != (desired.effective_scale or 0)
    return False


def is_required_changed(current: Column, desired: Column) -> bool:
    return current.required != desired.required


def is_auto_increment_changed(current: Column, desired: Column) -> bool:
    return current.auto_increment != desired.auto_increment


def is_default_changed(type_info: TypeCapabilities, current: Column, desired: Column) -> bool:
    """Whether the desired model sets a different default.

    A desired column without a default never counts as a change.
    """
    if desired.default is None:
        return False
    return not defaults_equal(desired.type_code, current.default, desired.default, type_info)


def is_column_definition_changed(
    type_info: TypeCapabilities, current: Column, desired: Column
) -> bool:
    return (
        is_type_changed(type_info, current, desired)
        or is_size_changed(type_info, current, desired)
        or is_required_changed(current, desired)
        or is_auto_increment_changed(current, desired)
        or is_default_changed(type_info, current, desired)
    )


# ============================================================================
# Applying changes
# ============================================================================


def _table(database: Database, change: _TableChange, case_sensitive: bool) -> Table:
    table = database.find_table(change.table, case_sensitive)
    if table is None:
        raise ChangeApplicationError(f"Table '{change.table}' not found")
    return table


def _column_index(table: Table, name: str, case_sensitive: bool) -> int:
    idx = table.find_column_index(name, case_sensitive)
    if idx < 0:
        raise ChangeApplicationError(f"Column '{name}' not found in table '{table.name}'")
    return idx


def _apply_add_table(database: Database, change: AddTable, case_sensitive: bool) -> None:
    if database.find_table(change.table, case_sensitive) is not None:
        raise ChangeApplicationError(f"Table '{change.table}' already exists")
    database.tables.append(change.new_table.model_copy(deep=True))


def _apply_remove_table(database: Database, change: RemoveTable, case_sensitive: bool) -> None:
    idx = database.find_table_index(change.table, case_sensitive)
    if idx < 0:
        raise ChangeApplicationError(f"Table '{change.table}' not found")
    del database.tables[idx]


def _apply_add_column(database: Database, change: AddColumn, case_sensitive: bool) -> None:
    table = _table(database, change, case_sensitive)
    if table.find_column(change.new_column.name, case_sensitive) is not None:
        raise ChangeApplicationError(
            f"Column '{change.new_column.name}' already exists in table '{table.name}'"
        )
    if change.previous_column is not None:
        position = _column_index(table, change.previous_column, case_sensitive) + 1
    elif change.next_column is not None:
        position = _column_index(table, change.next_column, case_sensitive)
    else:
        position = len(table.columns)
    table.columns.insert(position, change.new_column.model_copy(deep=True))


def _apply_remove_column(database: Database, change: RemoveColumn, case_sensitive: bool) -> None:
    table = _table(database, change, case_sensitive)
    del table.columns[_column_index(table, change.column, case_sensitive)]


def _apply_column_definition(
    database: Database, change: ColumnDefinitionChange, case_sensitive: bool
) -> None:
    table = _table(database, change, case_sensitive)
    idx = _column_index(table, change.column, case_sensitive)
    existing = table.columns[idx]
    # Primary key membership is owned by the primary key changes.
    table.columns[idx] = change.new_column.model_copy(
        update={"name": existing.name, "primary_key": existing.primary_key}, deep=True
    )


def _apply_column_order(database: Database, change: ColumnOrderChange, case_sensitive: bool) -> None:
    table = _table(database, change, case_sensitive)
    count = len(table.columns)
    slots: list[Column | None] = [None] * count
    unmoved: list[Column] = []

    for column in table.columns:
        position = change.get_new_position(column.name, case_sensitive)
        if position < 0:
            unmoved.append(column)
            continue
        if position >= count or slots[position] is not None:
            raise ChangeApplicationError(
                f"Invalid position {position} for column '{column.name}' in table '{table.name}'"
            )
        slots[position] = column

    remaining = iter(unmoved)
    table.columns = [slot if slot is not None else next(remaining) for slot in slots]


def _set_primary_key(table: Table, names: list[str], case_sensitive: bool) -> None:
    for name in names:
        _column_index(table, name, case_sensitive)
    for column in table.columns:
        column.primary_key = any(names_equal(column.name, name, case_sensitive) for name in names)


def _apply_add_primary_key(database: Database, change: AddPrimaryKey, case_sensitive: bool) -> None:
    _set_primary_key(_table(database, change, case_sensitive), change.columns, case_sensitive)


def _apply_remove_primary_key(
    database: Database, change: RemovePrimaryKey, case_sensitive: bool
) -> None:
    for column in _table(database, change, case_sensitive).columns:
        column.primary_key = False


def _apply_primary_key(database: Database, change: PrimaryKeyChange, case_sensitive: bool) -> None:
    _set_primary_key(_table(database, change, case_sensitive), change.new_columns, case_sensitive)


def _apply_add_foreign_key(database: Database, change: AddForeignKey, case_sensitive: bool) -> None:
    table = _table(database, change, case_sensitive)
    table.foreign_keys.append(change.new_foreign_key.model_copy(deep=True))


def _apply_remove_foreign_key(
    database: Database, change: RemoveForeignKey, case_sensitive: bool
) -> None:
    table = _table(database, change, case_sensitive)
    found = match_foreign_key(table, change.foreign_key, case_sensitive)
    if found is None:
        raise ChangeApplicationError(
            f"Foreign key {change.foreign_key.name or '<unnamed>'} not found in table '{table.name}'"
        )
    table.foreign_keys = [fk for fk in table.foreign_keys if fk is not found]


def _apply_add_index(database: Database, change: AddIndex, case_sensitive: bool) -> None:
    table = _table(database, change, case_sensitive)
    table.indexes.append(change.new_index.model_copy(deep=True))


def _apply_remove_index(database: Database, change: RemoveIndex, case_sensitive: bool) -> None:
    table = _table(database, change, case_sensitive)
    found = match_index(table, change.index, case_sensitive)
    if found is None:
        raise ChangeApplicationError(
            f"Index {change.index.name or '<unnamed>'} not found in table '{table.name}'"
        )
    table.indexes = [index for index in table.indexes if index is not found]


_APPLIERS: dict[str, Callable[[Database, BaseModel, bool], None]] = {
    "add_table": _apply_add_table,
    "remove_table": _apply_remove_table,
    "add_column": _apply_add_column,
    "remove_column": _apply_remove_column,
    "column_definition": _apply_column_definition,
    "column_order": _apply_column_order,
    "add_primary_key": _apply_add_primary_key,
    "remove_primary_key": _apply_remove_primary_key,
    "primary_key": _apply_primary_key,
    "add_foreign_key": _apply_add_foreign_key,
    "remove_foreign_key": _apply_remove_foreign_key,
    "add_index": _apply_add_index,
    "remove_index": _apply_remove_index,
}


def apply_change(database: Database, change: Change, case_sensitive: bool = False) -> None:
    """Apply one change to ``database`` in place.

    Raises:
        ChangeApplicationError: If the change refers to something the
            model does not contain, or adds something it already has.
    """
    _APPLIERS[change.kind](database, change, case_sensitive)


def apply_changes(
    database: Database, changes: Iterable[Change], case_sensitive: bool = False
) -> Database:
    """Replay a plan onto a copy of ``database`` and return the copy.

    Args:
        database: Starting model; left untouched.
        changes: Changes in plan order.
        case_sensitive: Identifier mode used to locate tables and columns.

    Returns:
        The resulting model.

    Example:
        >>> plan = compare_models(current, desired)
        >>> apply_changes(current, plan) == desired   # up to identifier case
    """
    result = database.model_copy(deep=True)
    for change in changes:
        apply_change(result, change, case_sensitive)
    return result


# ============================================================================
# Display
# ============================================================================


def _fk_text(foreign_key: ForeignKey) -> str:
    label = foreign_key.name or "<unnamed>"
    local = ", ".join(foreign_key.local_columns)
    foreign = ", ".join(foreign_key.foreign_columns)
    return f"{label} ({local}) -> {foreign_key.foreign_table} ({foreign})"


def _index_text(index: Index) -> str:
    label = index.name or "<unnamed>"
    unique = "unique " if index.unique else ""
    return f"{unique}{label} ({', '.join(index.columns)})"


_DESCRIBERS: dict[str, Callable[..., str]] = {
    "add_table": lambda c: f"create with {len(c.new_table.columns)} column(s)",
    "remove_table": lambda c: "drop table",
    "add_column": lambda c: (
        f"add column {c.new_column.name} {c.new_column.type_code} "
        + (f"after {c.previous_column}" if c.previous_column else "first")
    ),
    "remove_column": lambda c: f"drop column {c.column}",
    "column_definition": lambda c: f"redefine column {c.column} as {c.new_column.type_code}",
    "column_order": lambda c: "reorder columns "
    + ", ".join(f"{name}->{pos}" for name, pos in c.new_positions.items()),
    "add_primary_key": lambda c: f"add primary key ({', '.join(c.columns)})",
    "remove_primary_key": lambda c: "drop primary key",
    "primary_key": lambda c: f"change primary key to ({', '.join(c.new_columns)})",
    "add_foreign_key": lambda c: f"add foreign key {_fk_text(c.new_foreign_key)}",
    "remove_foreign_key": lambda c: f"drop foreign key {_fk_text(c.foreign_key)}",
    "add_index": lambda c: f"add index {_index_text(c.new_index)}",
    "remove_index": lambda c: f"drop index {_index_text(c.index)}",
}


def describe_change(change: Change) -> str:
    """One-line description of a change, without the table name.

    Example:
        >>> describe_change(RemoveColumn(table="orders", column="note"))
        'drop column note'
    """
    return _DESCRIBERS[change.kind](change)
