"""Tests for change values, their JSON form, and replaying them onto a model."""

import pytest
from pydantic import ValidationError

from schema_delta.errors import ChangeApplicationError, SchemaDeltaError
from schema_delta.schema.changes import (
    AddColumn,
    AddForeignKey,
    AddIndex,
    AddPrimaryKey,
    AddTable,
    ChangeList,
    ColumnDefinitionChange,
    ColumnOrderChange,
    PrimaryKeyChange,
    RemoveColumn,
    RemoveForeignKey,
    RemoveIndex,
    RemovePrimaryKey,
    RemoveTable,
    apply_change,
    apply_changes,
    describe_change,
    is_column_definition_changed,
    is_default_changed,
    is_size_changed,
)
from schema_delta.schema.models import Column, Database, ForeignKey, Index, Reference, Table
from schema_delta.schema.types import TypeCapabilities


def _model() -> Database:
    return Database(
        tables=[
            Table(
                name="customers",
                columns=[
                    Column(name="id", type_code="INTEGER", primary_key=True, required=True),
                    Column(name="name", size="100"),
                ],
            ),
            Table(
                name="orders",
                columns=[
                    Column(name="id", type_code="INTEGER", primary_key=True, required=True),
                    Column(name="customer_id", type_code="INTEGER"),
                    Column(name="note"),
                ],
                foreign_keys=[
                    ForeignKey(
                        name="fk_customer",
                        foreign_table="customers",
                        references=[Reference(local_column="customer_id", foreign_column="id")],
                    )
                ],
                indexes=[Index(name="ix_customer", columns=["customer_id"])],
            ),
        ]
    )


# ============================================================
# Test: Change values
# ============================================================


class TestChangeValues:
    """Verify changes are immutable, tagged values."""

    def test_frozen(self) -> None:
        change = RemoveColumn(table="orders", column="note")
        with pytest.raises(ValidationError):
            change.column = "other"

    def test_kind_tags(self) -> None:
        assert RemoveTable(table="t").kind == "remove_table"
        assert ColumnDefinitionChange(table="t", column="c", new_column=Column(name="c")).kind == (
            "column_definition"
        )
        assert PrimaryKeyChange(table="t", new_columns=["a"]).kind == "primary_key"

    def test_get_new_position(self) -> None:
        change = ColumnOrderChange(table="t", new_positions={"Col1": 1, "col2": 0})
        assert change.get_new_position("COL1", case_sensitive=False) == 1
        assert change.get_new_position("COL1", case_sensitive=True) == -1
        assert change.get_new_position("col3", case_sensitive=False) == -1

    def test_json_round_trip_keeps_variants(self) -> None:
        """A mixed plan survives dump/validate with each variant restored."""
        plan = [
            RemoveForeignKey(
                table="orders",
                foreign_key=ForeignKey(
                    name="fk",
                    foreign_table="customers",
                    references=[Reference(local_column="customer_id", foreign_column="id")],
                ),
            ),
            AddColumn(table="orders", new_column=Column(name="total", type_code="DECIMAL", size="10,2"),
                      previous_column="note"),
            ColumnOrderChange(table="orders", new_positions={"note": 1}),
            AddTable(table="items", new_table=Table(name="items", columns=[Column(name="id")])),
            RemovePrimaryKey(table="items"),
        ]
        restored = ChangeList.validate_json(ChangeList.dump_json(plan))
        assert restored == plan
        assert [type(change) for change in restored] == [type(change) for change in plan]

    def test_unknown_kind_rejected(self) -> None:
        with pytest.raises(ValidationError):
            ChangeList.validate_python([{"kind": "rename_table", "table": "t"}])


# ============================================================
# Test: Applying changes
# ============================================================


class TestApplyTables:
    """Verify table-level changes."""

    def test_add_table_appends(self) -> None:
        result = apply_changes(_model(), [AddTable(table="items", new_table=Table(name="items"))])
        assert result.table_names == ["customers", "orders", "items"]

    def test_add_existing_table_fails(self) -> None:
        with pytest.raises(ChangeApplicationError, match="already exists"):
            apply_changes(_model(), [AddTable(table="ORDERS", new_table=Table(name="ORDERS"))])

    def test_remove_table(self) -> None:
        result = apply_changes(_model(), [RemoveTable(table="Customers")])
        assert result.table_names == ["orders"]

    def test_remove_missing_table_fails(self) -> None:
        with pytest.raises(ChangeApplicationError, match="not found"):
            apply_changes(_model(), [RemoveTable(table="missing")])

    def test_input_not_mutated(self) -> None:
        model = _model()
        apply_changes(model, [RemoveTable(table="customers")])
        assert model == _model()

    def test_error_is_schema_delta_error(self) -> None:
        with pytest.raises(SchemaDeltaError):
            apply_changes(_model(), [RemoveColumn(table="nope", column="x")])


class TestApplyColumns:
    """Verify column-level changes."""

    def test_add_column_after_previous(self) -> None:
        change = AddColumn(
            table="orders", new_column=Column(name="total"), previous_column="id", next_column="customer_id"
        )
        result = apply_changes(_model(), [change])
        assert result.find_table("orders", False).column_names == ["id", "total", "customer_id", "note"]

    def test_add_column_first(self) -> None:
        change = AddColumn(table="orders", new_column=Column(name="total"), next_column="id")
        result = apply_changes(_model(), [change])
        assert result.find_table("orders", False).column_names[0] == "total"

    def test_add_column_last(self) -> None:
        change = AddColumn(table="orders", new_column=Column(name="total"), previous_column="note")
        result = apply_changes(_model(), [change])
        assert result.find_table("orders", False).column_names[-1] == "total"

    def test_add_duplicate_column_fails(self) -> None:
        with pytest.raises(ChangeApplicationError, match="already exists"):
            apply_changes(_model(), [AddColumn(table="orders", new_column=Column(name="NOTE"))])

    def test_remove_column(self) -> None:
        result = apply_changes(_model(), [RemoveColumn(table="orders", column="Note")])
        assert result.find_table("orders", False).column_names == ["id", "customer_id"]

    def test_column_definition_keeps_name_and_key(self) -> None:
        change = ColumnDefinitionChange(
            table="orders",
            column="id",
            new_column=Column(name="ID", type_code="BIGINT", required=True),
        )
        result = apply_changes(_model(), [change])
        column = result.find_table("orders", False).columns[0]
        assert column.name == "id"
        assert column.type_code == "BIGINT"
        assert column.primary_key is True

    def test_column_order_moves_listed_columns(self) -> None:
        change = ColumnOrderChange(table="orders", new_positions={"note": 0, "id": 2})
        result = apply_changes(_model(), [change])
        assert result.find_table("orders", False).column_names == ["note", "customer_id", "id"]

    def test_column_order_rejects_collisions(self) -> None:
        change = ColumnOrderChange(table="orders", new_positions={"note": 0, "id": 0})
        with pytest.raises(ChangeApplicationError, match="Invalid position"):
            apply_changes(_model(), [change])

    def test_column_order_rejects_out_of_range(self) -> None:
        change = ColumnOrderChange(table="orders", new_positions={"note": 5})
        with pytest.raises(ChangeApplicationError):
            apply_changes(_model(), [change])


class TestApplyKeys:
    """Verify primary key, foreign key and index changes."""

    def test_remove_primary_key(self) -> None:
        result = apply_changes(_model(), [RemovePrimaryKey(table="orders")])
        assert result.find_table("orders", False).primary_key_names == []

    def test_add_primary_key(self) -> None:
        model = apply_changes(_model(), [RemovePrimaryKey(table="orders")])
        result = apply_changes(model, [AddPrimaryKey(table="orders", columns=["ID", "note"])])
        assert result.find_table("orders", False).primary_key_names == ["id", "note"]

    def test_primary_key_change(self) -> None:
        result = apply_changes(_model(), [PrimaryKeyChange(table="orders", new_columns=["customer_id"])])
        assert result.find_table("orders", False).primary_key_names == ["customer_id"]

    def test_primary_key_on_missing_column_fails(self) -> None:
        with pytest.raises(ChangeApplicationError):
            apply_changes(_model(), [PrimaryKeyChange(table="orders", new_columns=["missing"])])

    def test_remove_foreign_key_by_structure(self) -> None:
        unnamed = ForeignKey(
            foreign_table="CUSTOMERS",
            references=[Reference(local_column="CUSTOMER_ID", foreign_column="ID")],
        )
        result = apply_changes(_model(), [RemoveForeignKey(table="orders", foreign_key=unnamed)])
        assert result.find_table("orders", False).foreign_keys == []

    def test_remove_missing_foreign_key_fails(self) -> None:
        other = ForeignKey(name="fk_other", foreign_table="customers")
        with pytest.raises(ChangeApplicationError, match="fk_other"):
            apply_changes(_model(), [RemoveForeignKey(table="orders", foreign_key=other)])

    def test_add_foreign_key(self) -> None:
        fk = ForeignKey(
            name="fk_self",
            foreign_table="orders",
            references=[Reference(local_column="customer_id", foreign_column="id")],
        )
        result = apply_changes(_model(), [AddForeignKey(table="orders", new_foreign_key=fk)])
        assert [key.name for key in result.find_table("orders", False).foreign_keys] == [
            "fk_customer",
            "fk_self",
        ]

    def test_add_and_remove_index(self) -> None:
        plan = [
            RemoveIndex(table="orders", index=Index(name="ix_customer", columns=["customer_id"])),
            AddIndex(table="orders", new_index=Index(name="ix_note", unique=True, columns=["note"])),
        ]
        result = apply_changes(_model(), plan)
        assert [index.name for index in result.find_table("orders", False).indexes] == ["ix_note"]

    def test_remove_missing_index_fails(self) -> None:
        with pytest.raises(ChangeApplicationError, match="<unnamed>"):
            apply_changes(_model(), [RemoveIndex(table="orders", index=Index(columns=["note"]))])

    def test_apply_change_mutates_in_place(self) -> None:
        model = _model()
        apply_change(model, RemoveTable(table="orders"))
        assert model.table_names == ["customers"]


# ============================================================
# Test: Column definition predicates
# ============================================================


class TestColumnPredicates:
    """Verify which column differences count as a redefinition."""

    caps = TypeCapabilities()

    def test_identical(self) -> None:
        col = Column(name="a", type_code="VARCHAR", size="10", default="x")
        assert not is_column_definition_changed(self.caps, col, col.model_copy())

    def test_type_alias_is_same_type(self) -> None:
        assert not is_column_definition_changed(
            self.caps, Column(name="a", type_code="int"), Column(name="a", type_code="INTEGER")
        )

    def test_size_ignored_for_unsized_type(self) -> None:
        assert not is_size_changed(
            self.caps, Column(name="a", type_code="INTEGER", size="10"), Column(name="a", type_code="INTEGER")
        )

    def test_size_compared_for_sized_type(self) -> None:
        assert is_size_changed(
            self.caps, Column(name="a", size="10"), Column(name="a", size="20")
        )

    def test_scale_compared_for_decimal(self) -> None:
        current = Column(name="a", type_code="DECIMAL", size="15,2")
        assert is_size_changed(self.caps, current, Column(name="a", type_code="DECIMAL", size="15,3"))
        assert not is_size_changed(
            self.caps, current, Column(name="a", type_code="DECIMAL", size="15", scale=2)
        )

    def test_omitted_default_is_not_a_change(self) -> None:
        assert not is_default_changed(
            self.caps, Column(name="a", default="x"), Column(name="a")
        )

    def test_changed_default(self) -> None:
        assert is_default_changed(self.caps, Column(name="a"), Column(name="a", default="x"))

    def test_required_and_auto_increment(self) -> None:
        base = Column(name="a", type_code="INTEGER")
        assert is_column_definition_changed(self.caps, base, base.model_copy(update={"required": True}))
        assert is_column_definition_changed(
            self.caps, base, base.model_copy(update={"auto_increment": True})
        )

    def test_description_ignored(self) -> None:
        base = Column(name="a")
        assert not is_column_definition_changed(
            self.caps, base, base.model_copy(update={"description": "text"})
        )


# ============================================================
# Test: Descriptions
# ============================================================


class TestDescribeChange:
    """Verify one-line change descriptions."""

    def test_remove_column(self) -> None:
        assert describe_change(RemoveColumn(table="orders", column="note")) == "drop column note"

    def test_add_column_position(self) -> None:
        first = AddColumn(table="t", new_column=Column(name="a", type_code="INTEGER"), next_column="b")
        after = AddColumn(table="t", new_column=Column(name="a"), previous_column="b")
        assert describe_change(first) == "add column a INTEGER first"
        assert describe_change(after) == "add column a VARCHAR after b"

    def test_foreign_key(self) -> None:
        fk = ForeignKey(
            name="fk", foreign_table="b", references=[Reference(local_column="x", foreign_column="y")]
        )
        assert describe_change(AddForeignKey(table="a", new_foreign_key=fk)) == (
            "add foreign key fk (x) -> b (y)"
        )

    def test_unique_index(self) -> None:
        change = AddIndex(table="t", new_index=Index(name="ix", unique=True, columns=["a", "b"]))
        assert describe_change(change) == "add index unique ix (a, b)"

    def test_every_kind_described(self) -> None:
        changes = [
            AddTable(table="t", new_table=Table(name="t")),
            RemoveTable(table="t"),
            ColumnDefinitionChange(table="t", column="c", new_column=Column(name="c")),
            ColumnOrderChange(table="t", new_positions={"c": 0}),
            AddPrimaryKey(table="t", columns=["c"]),
            RemovePrimaryKey(table="t"),
            PrimaryKeyChange(table="t", new_columns=["c"]),
            RemoveForeignKey(table="t", foreign_key=ForeignKey(foreign_table="u")),
            RemoveIndex(table="t", index=Index(columns=["c"])),
        ]
        for change in changes:
            assert describe_change(change)
