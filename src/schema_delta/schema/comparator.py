"""Schema comparison: turn a current and a desired model into an ordered plan.

Pure logic -- no I/O, no database connections. Both input models are left
untouched; every call works on its own copy.

The comparator keeps an *intermediate* model, a copy of the current one,
and applies each change to it as soon as the change is emitted. Later
steps compare against that intermediate model, so the names in a change
are always the names the element has at that point of the plan: existing
tables and columns keep their current spelling, new ones get the desired
spelling.

Plan order:

1. Foreign keys that disappear or change are removed, including every
   foreign key of a table that is dropped.
2. Dropped tables are removed, last declared first.
3. Each remaining table, in declaration order:
   indexes removed, columns removed, retained columns reordered,
   columns added, column definitions changed, primary key changed,
   indexes added.
4. New tables are created without their foreign keys.
5. Missing foreign keys are added.

Foreign keys and indexes are never altered in place: a key that differs
in any way is removed in step 1 (or 3) and added back in step 5 (or 3).
An index spanning exactly the primary key columns is left alone when the
primary key keeps the same columns; once the key moves, it is compared
like any other index.

Usage:
    from schema_delta.schema.comparator import compare_models
    from schema_delta.schema.files import load_database

    current = load_database("current.json")
    desired = load_database("desired.json")

    for change in compare_models(current, desired, case_sensitive=False):
        print(change.kind, change.table)
"""

import logging
from dataclasses import dataclass, field

from schema_delta.schema.changes import (
    AddColumn,
    AddForeignKey,
    AddIndex,
    AddPrimaryKey,
    AddTable,
    Change,
    ColumnDefinitionChange,
    ColumnOrderChange,
    PrimaryKeyChange,
    RemoveColumn,
    RemoveForeignKey,
    RemoveIndex,
    RemovePrimaryKey,
    RemoveTable,
    apply_change,
    describe_change,
    is_column_definition_changed,
)
from schema_delta.schema.models import (
    Database,
    ForeignKey,
    Index,
    Reference,
    Table,
    indexes_equal,
    match_foreign_key,
    name_key,
)
from schema_delta.schema.types import TypeCapabilities
from schema_delta.schema.validation import ensure_valid

logger = logging.getLogger(__name__)


# ------------------------------------------------------------------
# Plan state
# ------------------------------------------------------------------


@dataclass
class _PlanBuilder:
    """Changes emitted so far and the model they produce.

    Attributes:
        intermediate: Copy of the current model with every emitted
            change applied.
        case_sensitive: Identifier mode.
        changes: Emitted changes, in order.
    """

    intermediate: Database
    case_sensitive: bool
    changes: list[Change] = field(default_factory=list)

    def emit(self, change: Change) -> None:
        apply_change(self.intermediate, change, self.case_sensitive)
        self.changes.append(change)
        logger.debug("%s: %s", change.table, describe_change(change))

    def table(self, name: str) -> Table | None:
        return self.intermediate.find_table(name, self.case_sensitive)


# ------------------------------------------------------------------
# Comparator
# ------------------------------------------------------------------


class ModelComparator:
    """Compares two schema models and plans the changes between them.

    The comparator holds configuration only; ``compare`` may be called
    concurrently on different model pairs.

    Args:
        case_sensitive: Match table, column, key and index names exactly
            (delimited identifiers) instead of ignoring case.
        type_info: Type capability lookup; defaults to the built-in table.

    Example:
        >>> comparator = ModelComparator(case_sensitive=False)
        >>> comparator.compare(model, model)
        []
    """

    def __init__(self, case_sensitive: bool = False, type_info: TypeCapabilities | None = None):
        self.case_sensitive = case_sensitive
        self.type_info = type_info or TypeCapabilities()

    def compare(self, current: Database, desired: Database) -> list[Change]:
        """Plan the changes that turn ``current`` into ``desired``.

        Args:
            current: Model of the schema as it is.
            desired: Model of the schema as it should be.

        Returns:
            Ordered list of changes; empty when the models are equivalent.

        Raises:
            ModelValidationError: If either model is malformed, for
                example a foreign key naming a missing table or column.
        """
        ensure_valid(current, self.case_sensitive, "current")
        ensure_valid(desired, self.case_sensitive, "desired")

        plan = _PlanBuilder(
            intermediate=current.model_copy(deep=True),
            case_sensitive=self.case_sensitive,
        )

        self._remove_foreign_keys(plan, desired)
        self._remove_tables(plan, desired)
        for table in list(plan.intermediate.tables):
            desired_table = desired.find_table(table.name, self.case_sensitive)
            self._compare_table(plan, table.name, desired_table)
        self._add_tables(plan, desired)
        self._add_foreign_keys(plan, desired)

        logger.info(
            "Compared %d current and %d desired tables: %d change(s)",
            len(current.tables),
            len(desired.tables),
            len(plan.changes),
        )
        return plan.changes

    # ------------------------------------------------------------------
    # Model level
    # ------------------------------------------------------------------

    def _remove_foreign_keys(self, plan: _PlanBuilder, desired: Database) -> None:
        for table in list(plan.intermediate.tables):
            desired_table = desired.find_table(table.name, self.case_sensitive)
            for fk in list(table.foreign_keys):
                if desired_table is None or match_foreign_key(
                    desired_table, fk, self.case_sensitive
                ) is None:
                    plan.emit(RemoveForeignKey(table=table.name, foreign_key=fk.model_copy(deep=True)))

    def _remove_tables(self, plan: _PlanBuilder, desired: Database) -> None:
        for table in reversed(list(plan.intermediate.tables)):
            if desired.find_table(table.name, self.case_sensitive) is None:
                plan.emit(RemoveTable(table=table.name))

    def _add_tables(self, plan: _PlanBuilder, desired: Database) -> None:
        for desired_table in desired.tables:
            if plan.table(desired_table.name) is None:
                new_table = desired_table.model_copy(update={"foreign_keys": []}, deep=True)
                plan.emit(AddTable(table=desired_table.name, new_table=new_table))

    def _add_foreign_keys(self, plan: _PlanBuilder, desired: Database) -> None:
        for table in list(plan.intermediate.tables):
            desired_table = desired.find_table(table.name, self.case_sensitive)
            if desired_table is None:
                continue
            for desired_fk in desired_table.foreign_keys:
                if match_foreign_key(table, desired_fk, self.case_sensitive) is None:
                    new_fk = self._resolve_foreign_key(plan, table, desired_fk)
                    plan.emit(AddForeignKey(table=table.name, new_foreign_key=new_fk))

    def _resolve_foreign_key(self, plan: _PlanBuilder, table: Table, desired_fk: ForeignKey) -> ForeignKey:
        """Copy of ``desired_fk`` spelled with the intermediate model's names."""
        target = plan.table(desired_fk.foreign_table)
        references = [
            Reference(
                local_column=self._column_name(table, ref.local_column),
                foreign_column=self._column_name(target, ref.foreign_column),
            )
            for ref in desired_fk.references
        ]
        return desired_fk.model_copy(
            update={"foreign_table": target.name, "references": references}, deep=True
        )

    def _column_name(self, table: Table, name: str) -> str:
        column = table.find_column(name, self.case_sensitive)
        return column.name if column is not None else name

    # ------------------------------------------------------------------
    # Table level
    # ------------------------------------------------------------------

    def _compare_table(self, plan: _PlanBuilder, name: str, desired: Table) -> None:
        carried = self._carried_key(plan.table(name), desired)
        self._remove_indexes(plan, name, desired, carried)
        self._remove_columns(plan, name, desired)
        self._reorder_columns(plan, name, desired)
        self._add_columns(plan, name, desired)
        self._change_column_definitions(plan, name, desired)
        self._change_primary_key(plan, name, desired)
        self._add_indexes(plan, name, desired, carried)

    def _remove_columns(self, plan: _PlanBuilder, name: str, desired: Table) -> None:
        for column in list(plan.table(name).columns):
            if desired.find_column(column.name, self.case_sensitive) is None:
                plan.emit(RemoveColumn(table=name, column=column.name))

    def _reorder_columns(self, plan: _PlanBuilder, name: str, desired: Table) -> None:
        """Move retained columns into the desired relative order.

        Emits a ``PrimaryKeyChange`` first when the move changes the order
        of the primary key columns.
        """
        table = plan.table(name)
        target_order = [
            self._column_name(table, column.name)
            for column in desired.columns
            if table.find_column(column.name, self.case_sensitive) is not None
        ]
        new_positions = {
            column_name: new_idx
            for new_idx, column_name in enumerate(target_order)
            if table.find_column_index(column_name, self.case_sensitive) != new_idx
        }
        if not new_positions:
            return

        pk_before = table.primary_key_names
        pk_after = [
            column_name
            for column_name in target_order
            if table.find_column(column_name, self.case_sensitive).primary_key
        ]
        if pk_before and pk_before != pk_after:
            plan.emit(PrimaryKeyChange(table=name, new_columns=pk_after))
        plan.emit(ColumnOrderChange(table=name, new_positions=new_positions))

    def _add_columns(self, plan: _PlanBuilder, name: str, desired: Table) -> None:
        table = plan.table(name)
        for idx, column in enumerate(desired.columns):
            if table.find_column(column.name, self.case_sensitive) is not None:
                continue
            previous_column = table.columns[idx - 1].name if idx > 0 else None
            next_column = table.columns[idx].name if idx < len(table.columns) else None
            plan.emit(
                AddColumn(
                    table=name,
                    new_column=column.model_copy(update={"primary_key": False}, deep=True),
                    previous_column=previous_column,
                    next_column=next_column,
                )
            )

    def _change_column_definitions(self, plan: _PlanBuilder, name: str, desired: Table) -> None:
        table = plan.table(name)
        for desired_column in desired.columns:
            column = table.find_column(desired_column.name, self.case_sensitive)
            if is_column_definition_changed(self.type_info, column, desired_column):
                plan.emit(
                    ColumnDefinitionChange(
                        table=name,
                        column=column.name,
                        new_column=desired_column.model_copy(update={"name": column.name}, deep=True),
                    )
                )

    def _change_primary_key(self, plan: _PlanBuilder, name: str, desired: Table) -> None:
        table = plan.table(name)
        current_pk = table.primary_key_names
        desired_pk = [self._column_name(table, column) for column in desired.primary_key_names]

        if not current_pk and desired_pk:
            plan.emit(AddPrimaryKey(table=name, columns=desired_pk))
        elif current_pk and not desired_pk:
            plan.emit(RemovePrimaryKey(table=name))
        elif current_pk != desired_pk:
            plan.emit(PrimaryKeyChange(table=name, new_columns=desired_pk))

    # ------------------------------------------------------------------
    # Indexes
    # ------------------------------------------------------------------

    def _key_set(self, columns: list[str]) -> frozenset[str]:
        return frozenset(name_key(column, self.case_sensitive) for column in columns)

    def _carried_key(self, current: Table, desired: Table) -> frozenset[str] | None:
        """Column key set of an index implied by the primary key.

        Only defined when the current and desired primary keys span the
        same columns; otherwise every index is compared on its own.
        """
        current_keys = self._key_set(current.primary_key_names)
        desired_keys = self._key_set(desired.primary_key_names)
        if not current_keys or current_keys != desired_keys:
            return None
        return current_keys

    def _comparable_indexes(self, table: Table, carried: frozenset[str] | None) -> list[Index]:
        """Indexes of ``table`` except the one carried by the primary key."""
        if carried is None:
            return list(table.indexes)
        return [index for index in table.indexes if self._key_set(index.columns) != carried]

    def _has_equal_index(self, indexes: list[Index], index: Index) -> bool:
        return any(indexes_equal(candidate, index, self.case_sensitive) for candidate in indexes)

    def _remove_indexes(
        self, plan: _PlanBuilder, name: str, desired: Table, carried: frozenset[str] | None
    ) -> None:
        desired_indexes = self._comparable_indexes(desired, carried)
        for index in self._comparable_indexes(plan.table(name), carried):
            if not self._has_equal_index(desired_indexes, index):
                plan.emit(RemoveIndex(table=name, index=index.model_copy(deep=True)))

    def _add_indexes(
        self, plan: _PlanBuilder, name: str, desired: Table, carried: frozenset[str] | None
    ) -> None:
        table = plan.table(name)
        for desired_index in self._comparable_indexes(desired, carried):
            if self._has_equal_index(self._comparable_indexes(table, carried), desired_index):
                continue
            new_index = desired_index.model_copy(
                update={"columns": [self._column_name(table, column) for column in desired_index.columns]},
                deep=True,
            )
            plan.emit(AddIndex(table=name, new_index=new_index))


def compare_models(
    current: Database,
    desired: Database,
    *,
    case_sensitive: bool = False,
    type_info: TypeCapabilities | None = None,
) -> list[Change]:
    """Plan the changes that turn ``current`` into ``desired``.

    Convenience wrapper around ``ModelComparator(...).compare(...)``.

    Args:
        current: Model of the schema as it is.
        desired: Model of the schema as it should be.
        case_sensitive: Identifier mode (True for delimited identifiers).
        type_info: Type capability lookup; defaults to the built-in table.

    Returns:
        Ordered list of changes.

    Examples:
        >>> from schema_delta.schema.models import Column, Table
        >>> current = Database(tables=[Table(name="t", columns=[Column(name="a", type_code="INTEGER")])])
        >>> desired = Database(tables=[Table(name="T", columns=[Column(name="A", type_code="INTEGER")])])
        >>> compare_models(current, desired)
        []
        >>> [c.kind for c in compare_models(current, desired, case_sensitive=True)]
        ['remove_table', 'add_table']
    """
    return ModelComparator(case_sensitive=case_sensitive, type_info=type_info).compare(current, desired)
