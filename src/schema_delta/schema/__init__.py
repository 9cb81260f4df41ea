"""Schema models, comparison, and change planning.

Provides the snapshot models (``Database``, ``Table``, ``Column``, ...),
the comparator (``compare_models``, ``ModelComparator``), the change
union and its replay (``Change``, ``apply_changes``), model validation,
JSON snapshot files, and live PostgreSQL introspection
(``SchemaIntrospector``).

Usage:
    from schema_delta.schema import compare_models, apply_changes
    from schema_delta.schema import load_database, save_changes
    from schema_delta.schema import SchemaIntrospector
"""

from schema_delta.schema.changes import (
    AddColumn,
    AddForeignKey,
    AddIndex,
    AddPrimaryKey,
    AddTable,
    Change,
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
)
from schema_delta.schema.comparator import ModelComparator, compare_models
from schema_delta.schema.defaults import defaults_equal
from schema_delta.schema.files import (
    dump_changes,
    load_changes,
    load_database,
    save_changes,
    save_database,
)
from schema_delta.schema.introspector import SchemaIntrospector
from schema_delta.schema.models import (
    Column,
    Database,
    ForeignKey,
    Index,
    Reference,
    Table,
    names_equal,
)
from schema_delta.schema.types import TypeCapabilities, TypeCode, TypeInfo
from schema_delta.schema.validation import (
    ModelIssue,
    ModelValidationResult,
    ensure_valid,
    validate_database,
)

__all__ = [
    "Column",
    "Database",
    "ForeignKey",
    "Index",
    "Reference",
    "Table",
    "names_equal",
    "TypeCapabilities",
    "TypeCode",
    "TypeInfo",
    "defaults_equal",
    "Change",
    "ChangeList",
    "AddTable",
    "RemoveTable",
    "AddColumn",
    "RemoveColumn",
    "ColumnDefinitionChange",
    "ColumnOrderChange",
    "AddPrimaryKey",
    "RemovePrimaryKey",
    "PrimaryKeyChange",
    "AddForeignKey",
    "RemoveForeignKey",
    "AddIndex",
    "RemoveIndex",
    "apply_change",
    "apply_changes",
    "describe_change",
    "ModelComparator",
    "compare_models",
    "ModelIssue",
    "ModelValidationResult",
    "validate_database",
    "ensure_valid",
    "load_database",
    "save_database",
    "load_changes",
    "save_changes",
    "dump_changes",
    "SchemaIntrospector",
]
