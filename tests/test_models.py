"""Tests for the schema snapshot models and structural matching.

Verifies:
- names_equal honours the identifier mode
- Column size parsing into precision and scale
- Table and Database lookups by name
- Foreign key and index equality rules
"""

from schema_delta.schema.models import (
    Column,
    Database,
    ForeignKey,
    Index,
    Reference,
    Table,
    foreign_keys_equal,
    indexes_equal,
    match_foreign_key,
    match_index,
    name_key,
    names_equal,
)


def _fk(name: str | None, target: str, *pairs: tuple[str, str]) -> ForeignKey:
    return ForeignKey(
        name=name,
        foreign_table=target,
        references=[Reference(local_column=local, foreign_column=foreign) for local, foreign in pairs],
    )


# ============================================================
# Test: Identifier comparison
# ============================================================


class TestNamesEqual:
    """Verify identifier comparison under both modes."""

    def test_case_insensitive_ignores_case(self) -> None:
        assert names_equal("Orders", "ORDERS", case_sensitive=False)

    def test_case_sensitive_requires_exact_match(self) -> None:
        assert not names_equal("Orders", "ORDERS", case_sensitive=True)
        assert names_equal("Orders", "Orders", case_sensitive=True)

    def test_none_only_equals_none(self) -> None:
        """An unnamed element never matches a named one."""
        assert names_equal(None, None, case_sensitive=False)
        assert not names_equal(None, "fk", case_sensitive=False)
        assert not names_equal("fk", None, case_sensitive=True)

    def test_name_key(self) -> None:
        assert name_key("Orders", case_sensitive=False) == name_key("ORDERS", case_sensitive=False)
        assert name_key("Orders", case_sensitive=True) == "Orders"


# ============================================================
# Test: Column
# ============================================================


class TestColumn:
    """Verify Column defaults and size parsing."""

    def test_defaults(self) -> None:
        col = Column(name="id")
        assert col.type_code == "VARCHAR"
        assert col.size is None
        assert col.required is False
        assert col.primary_key is False
        assert col.auto_increment is False
        assert col.default is None

    def test_plain_size(self) -> None:
        col = Column(name="title", size="50")
        assert col.precision == 50
        assert col.effective_scale is None

    def test_precision_and_scale_in_size(self) -> None:
        col = Column(name="price", type_code="DECIMAL", size="15,3")
        assert col.precision == 15
        assert col.effective_scale == 3

    def test_explicit_scale_field(self) -> None:
        col = Column(name="price", type_code="DECIMAL", size="15", scale=2)
        assert col.precision == 15
        assert col.effective_scale == 2

    def test_size_scale_wins_over_field(self) -> None:
        col = Column(name="price", type_code="DECIMAL", size="15,4", scale=2)
        assert col.effective_scale == 4

    def test_blank_size_has_no_precision(self) -> None:
        assert Column(name="x", size="  ").precision is None


# ============================================================
# Test: Table and Database lookups
# ============================================================


class TestTableLookups:
    """Verify column and index lookups on Table."""

    def _table(self) -> Table:
        return Table(
            name="orders",
            columns=[
                Column(name="id", type_code="INTEGER", primary_key=True),
                Column(name="Customer", type_code="INTEGER"),
                Column(name="note"),
            ],
            indexes=[Index(name="IX_Customer", columns=["Customer"])],
        )

    def test_find_column_index(self) -> None:
        table = self._table()
        assert table.find_column_index("customer", case_sensitive=False) == 1
        assert table.find_column_index("customer", case_sensitive=True) == -1
        assert table.find_column_index("missing", case_sensitive=False) == -1

    def test_find_column(self) -> None:
        table = self._table()
        assert table.find_column("NOTE", case_sensitive=False).name == "note"
        assert table.find_column("NOTE", case_sensitive=True) is None

    def test_primary_key_names(self) -> None:
        assert self._table().primary_key_names == ["id"]

    def test_column_names(self) -> None:
        assert self._table().column_names == ["id", "Customer", "note"]

    def test_find_index(self) -> None:
        table = self._table()
        assert table.find_index("ix_customer", case_sensitive=False) is not None
        assert table.find_index("ix_customer", case_sensitive=True) is None


class TestDatabaseLookups:
    """Verify table lookups on Database."""

    def test_find_table(self) -> None:
        db = Database(tables=[Table(name="A"), Table(name="b")])
        assert db.find_table_index("a", case_sensitive=False) == 0
        assert db.find_table("B", case_sensitive=False).name == "b"
        assert db.find_table("B", case_sensitive=True) is None

    def test_table_names_keep_order(self) -> None:
        db = Database(tables=[Table(name="z"), Table(name="a")])
        assert db.table_names == ["z", "a"]

    def test_json_round_trip(self) -> None:
        db = Database(
            name="shop",
            tables=[
                Table(
                    name="orders",
                    columns=[Column(name="id", type_code="INTEGER", primary_key=True, required=True)],
                    foreign_keys=[_fk("fk_c", "customers", ("id", "id"))],
                    indexes=[Index(name="ix", unique=True, columns=["id"])],
                )
            ],
        )
        assert Database.model_validate_json(db.model_dump_json()) == db


# ============================================================
# Test: Foreign key equality
# ============================================================


class TestForeignKeysEqual:
    """Verify foreign keys are compared by name, target and reference set."""

    def test_same_structure(self) -> None:
        assert foreign_keys_equal(
            _fk("fk", "b", ("x", "y")), _fk("fk", "b", ("x", "y")), case_sensitive=False
        )

    def test_reference_order_not_significant(self) -> None:
        first = _fk("fk", "b", ("x1", "y1"), ("x2", "y2"))
        second = _fk("fk", "b", ("x2", "y2"), ("x1", "y1"))
        assert foreign_keys_equal(first, second, case_sensitive=True)

    def test_different_names(self) -> None:
        assert not foreign_keys_equal(
            _fk("fk1", "b", ("x", "y")), _fk("fk2", "b", ("x", "y")), case_sensitive=False
        )

    def test_unnamed_matches_by_structure(self) -> None:
        assert foreign_keys_equal(
            _fk(None, "b", ("x", "y")), _fk("fk", "b", ("x", "y")), case_sensitive=False
        )

    def test_different_target(self) -> None:
        assert not foreign_keys_equal(
            _fk("fk", "b", ("x", "y")), _fk("fk", "c", ("x", "y")), case_sensitive=False
        )

    def test_extra_reference(self) -> None:
        assert not foreign_keys_equal(
            _fk("fk", "b", ("x", "y")),
            _fk("fk", "b", ("x", "y"), ("x2", "y2")),
            case_sensitive=False,
        )

    def test_case_of_references(self) -> None:
        first = _fk("fk", "b", ("X", "Y"))
        second = _fk("fk", "B", ("x", "y"))
        assert foreign_keys_equal(first, second, case_sensitive=False)
        assert not foreign_keys_equal(first, second, case_sensitive=True)

    def test_referential_actions_ignored(self) -> None:
        first = _fk("fk", "b", ("x", "y"))
        second = first.model_copy(update={"on_delete": "CASCADE"})
        assert foreign_keys_equal(first, second, case_sensitive=False)

    def test_match_foreign_key(self) -> None:
        table = Table(name="a", foreign_keys=[_fk("fk1", "b", ("x", "y")), _fk("fk2", "c", ("x", "z"))])
        assert match_foreign_key(table, _fk(None, "c", ("x", "z")), False).name == "fk2"
        assert match_foreign_key(table, _fk(None, "d", ("x", "z")), False) is None


# ============================================================
# Test: Index equality
# ============================================================


class TestIndexesEqual:
    """Verify index equality includes column order and uniqueness."""

    def test_same_index(self) -> None:
        assert indexes_equal(
            Index(name="ix", columns=["a", "b"]), Index(name="IX", columns=["A", "B"]), False
        )

    def test_column_order_significant(self) -> None:
        assert not indexes_equal(
            Index(name="ix", columns=["a", "b"]), Index(name="ix", columns=["b", "a"]), False
        )

    def test_uniqueness_significant(self) -> None:
        assert not indexes_equal(
            Index(name="ix", columns=["a"]), Index(name="ix", unique=True, columns=["a"]), False
        )

    def test_unnamed_matches_by_structure(self) -> None:
        assert indexes_equal(Index(columns=["a"]), Index(name="ix", columns=["a"]), False)

    def test_match_index(self) -> None:
        table = Table(name="t", indexes=[Index(name="ix_a", columns=["a"])])
        assert match_index(table, Index(columns=["A"]), case_sensitive=False).name == "ix_a"
        assert match_index(table, Index(columns=["A"]), case_sensitive=True) is None
