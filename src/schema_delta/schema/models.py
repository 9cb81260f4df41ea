"""Pydantic models describing a relational schema snapshot.

This module contains the schema-domain models:
- Column, Reference, ForeignKey, Index: the per-table building blocks
- Table: ordered columns, foreign keys and indexes; the primary key is
  derived from the column flags
- Database: an ordered list of tables

Name lookups take a ``case_sensitive`` flag instead of storing the
identifier mode on the model, so one snapshot can be compared under
either mode.
"""

from pydantic import BaseModel, Field


def names_equal(first: str | None, second: str | None, case_sensitive: bool) -> bool:
    """Compare two identifiers under the given identifier mode.

    Example:
        >>> names_equal("TableA", "TABLEA", case_sensitive=False)
        True
        >>> names_equal("TableA", "TABLEA", case_sensitive=True)
        False
    """
    if first is None or second is None:
        return first is second
    if case_sensitive:
        return first == second
    return first.casefold() == second.casefold()


def name_key(name: str, case_sensitive: bool) -> str:
    """Return the dictionary key used for a name under the given mode."""
    return name if case_sensitive else name.casefold()


# ============================================================================
# Column
# ============================================================================


class Column(BaseModel):
    """Schema for a table column.

    ``size`` is kept as a string because decimal types declare precision
    and scale together ("15,3"). ``scale`` may also be given on its own.

    Example:
        >>> col = Column(name="price", type_code="DECIMAL", size="15,3")
        >>> col.precision, col.effective_scale
        (15, 3)
    """

    name: str
    type_code: str = "VARCHAR"
    size: str | None = None
    scale: int | None = None
    required: bool = False
    primary_key: bool = False
    auto_increment: bool = False
    default: str | None = None
    description: str | None = None

    @property
    def precision(self) -> int | None:
        """Leading number of ``size`` (the length or the precision)."""
        if self.size is None or not self.size.strip():
            return None
        head = self.size.split(",", 1)[0].strip()
        return int(head) if head else None

    @property
    def effective_scale(self) -> int | None:
        """Scale from ``size`` ("p,s") or the explicit ``scale`` field."""
        if self.size and "," in self.size:
            tail = self.size.split(",", 1)[1].strip()
            if tail:
                return int(tail)
        return self.scale


# ============================================================================
# Keys and indexes
# ============================================================================


class Reference(BaseModel):
    """One (local column, foreign column) pair of a foreign key."""

    local_column: str
    foreign_column: str


class ForeignKey(BaseModel):
    """Schema for a foreign key.

    ``on_delete`` and ``on_update`` are carried for renderers but do not
    take part in comparison.
    """

    name: str | None = None
    foreign_table: str
    references: list[Reference] = Field(default_factory=list)
    on_delete: str | None = None
    on_update: str | None = None

    @property
    def local_columns(self) -> list[str]:
        return [ref.local_column for ref in self.references]

    @property
    def foreign_columns(self) -> list[str]:
        return [ref.foreign_column for ref in self.references]

    def reference_set(self, case_sensitive: bool) -> frozenset[tuple[str, str]]:
        """Reference pairs as an unordered set, keyed for the given mode."""
        return frozenset(
            (name_key(ref.local_column, case_sensitive), name_key(ref.foreign_column, case_sensitive))
            for ref in self.references
        )


class Index(BaseModel):
    """Schema for an index. Column order is significant."""

    name: str | None = None
    unique: bool = False
    columns: list[str] = Field(default_factory=list)


# ============================================================================
# Table and Database
# ============================================================================


class Table(BaseModel):
    """Schema for a table."""

    name: str
    columns: list[Column] = Field(default_factory=list)
    foreign_keys: list[ForeignKey] = Field(default_factory=list)
    indexes: list[Index] = Field(default_factory=list)
    description: str | None = None

    @property
    def primary_key_columns(self) -> list[Column]:
        """Columns flagged ``primary_key``, in declaration order."""
        return [col for col in self.columns if col.primary_key]

    @property
    def primary_key_names(self) -> list[str]:
        return [col.name for col in self.columns if col.primary_key]

    @property
    def column_names(self) -> list[str]:
        return [col.name for col in self.columns]

    def find_column_index(self, name: str, case_sensitive: bool) -> int:
        """Position of the named column, or -1."""
        for idx, col in enumerate(self.columns):
            if names_equal(col.name, name, case_sensitive):
                return idx
        return -1

    def find_column(self, name: str, case_sensitive: bool) -> Column | None:
        idx = self.find_column_index(name, case_sensitive)
        return self.columns[idx] if idx >= 0 else None

    def find_index(self, name: str, case_sensitive: bool) -> Index | None:
        for index in self.indexes:
            if index.name is not None and names_equal(index.name, name, case_sensitive):
                return index
        return None


class Database(BaseModel):
    """Complete schema snapshot.

    Table order is significant: it drives the order in which changes are
    emitted and the reverse order in which tables are removed.

    Example:
        >>> db = Database(name="shop", tables=[Table(name="orders")])
        >>> db.find_table("ORDERS", case_sensitive=False).name
        'orders'
    """

    name: str = "database"
    tables: list[Table] = Field(default_factory=list)

    @property
    def table_names(self) -> list[str]:
        return [table.name for table in self.tables]

    def find_table_index(self, name: str, case_sensitive: bool) -> int:
        """Position of the named table, or -1."""
        for idx, table in enumerate(self.tables):
            if names_equal(table.name, name, case_sensitive):
                return idx
        return -1

    def find_table(self, name: str, case_sensitive: bool) -> Table | None:
        idx = self.find_table_index(name, case_sensitive)
        return self.tables[idx] if idx >= 0 else None


# ============================================================================
# Structural matching
# ============================================================================


def foreign_keys_equal(first: ForeignKey, second: ForeignKey, case_sensitive: bool) -> bool:
    """Whether two foreign keys denote the same constraint.

    Names must match when both keys are named. The target table must
    match, and the reference pairs must form the same set; declaration
    order of the pairs is not significant.
    """
    if first.name is not None and second.name is not None:
        if not names_equal(first.name, second.name, case_sensitive):
            return False
    if not names_equal(first.foreign_table, second.foreign_table, case_sensitive):
        return False
    return first.reference_set(case_sensitive) == second.reference_set(case_sensitive)


def indexes_equal(first: Index, second: Index, case_sensitive: bool) -> bool:
    """Whether two indexes are the same, including column order and uniqueness."""
    if first.name is not None and second.name is not None:
        if not names_equal(first.name, second.name, case_sensitive):
            return False
    if first.unique != second.unique or len(first.columns) != len(second.columns):
        return False
    return all(
        names_equal(a, b, case_sensitive) for a, b in zip(first.columns, second.columns)
    )


def match_foreign_key(table: Table, foreign_key: ForeignKey, case_sensitive: bool) -> ForeignKey | None:
    """First foreign key of ``table`` equal to ``foreign_key``."""
    for candidate in table.foreign_keys:
        if foreign_keys_equal(candidate, foreign_key, case_sensitive):
            return candidate
    return None


def match_index(table: Table, index: Index, case_sensitive: bool) -> Index | None:
    """First index of ``table`` equal to ``index``."""
    for candidate in table.indexes:
        if indexes_equal(candidate, index, case_sensitive):
            return candidate
    return None
