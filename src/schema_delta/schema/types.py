"""Type capability metadata for canonical column type codes.

Answers the questions the column differ needs: does a type carry a
meaningful size, does it carry precision and scale, and which category
(numeric, textual, datetime, ...) drives default-value comparison.

The default table is read-only; configuration overrides produce a new
``TypeCapabilities`` instead of mutating shared state, so one instance
can be read from any number of concurrent comparisons.

Usage:
    from schema_delta.schema.types import TypeCapabilities, TypeInfo

    caps = TypeCapabilities()
    caps.has_size("VARCHAR")          # True
    caps.has_size("INTEGER")          # False
    caps.canonical("character varying")   # 'VARCHAR'

    # Treat BIGINT sizes as significant for one comparison
    caps = TypeCapabilities({"BIGINT": TypeInfo(has_size=True, category="numeric")})
"""

from collections.abc import Mapping
from enum import Enum
from types import MappingProxyType
from typing import Literal

from pydantic import BaseModel, ConfigDict

TypeCategory = Literal["numeric", "textual", "datetime", "binary", "boolean", "other"]


class TypeCode(str, Enum):
    """Canonical type codes (JDBC naming)."""

    ARRAY = "ARRAY"
    BIGINT = "BIGINT"
    BINARY = "BINARY"
    BIT = "BIT"
    BLOB = "BLOB"
    BOOLEAN = "BOOLEAN"
    CHAR = "CHAR"
    CLOB = "CLOB"
    DATALINK = "DATALINK"
    DATE = "DATE"
    DECIMAL = "DECIMAL"
    DISTINCT = "DISTINCT"
    DOUBLE = "DOUBLE"
    FLOAT = "FLOAT"
    INTEGER = "INTEGER"
    JAVA_OBJECT = "JAVA_OBJECT"
    LONGVARBINARY = "LONGVARBINARY"
    LONGVARCHAR = "LONGVARCHAR"
    NULL = "NULL"
    NUMERIC = "NUMERIC"
    OTHER = "OTHER"
    REAL = "REAL"
    REF = "REF"
    SMALLINT = "SMALLINT"
    STRUCT = "STRUCT"
    TIME = "TIME"
    TIMESTAMP = "TIMESTAMP"
    TINYINT = "TINYINT"
    VARBINARY = "VARBINARY"
    VARCHAR = "VARCHAR"


class TypeInfo(BaseModel):
    """Capabilities of one type code."""

    model_config = ConfigDict(frozen=True)

    has_size: bool = False
    has_precision_and_scale: bool = False
    category: TypeCategory = "other"


def _info(category: TypeCategory, has_size: bool = False, decimal: bool = False) -> TypeInfo:
    return TypeInfo(
        has_size=has_size or decimal,
        has_precision_and_scale=decimal,
        category=category,
    )


DEFAULT_TYPE_INFO: Mapping[str, TypeInfo] = MappingProxyType(
    {
        TypeCode.BIT.value: _info("boolean"),
        TypeCode.BOOLEAN.value: _info("boolean"),
        TypeCode.TINYINT.value: _info("numeric"),
        TypeCode.SMALLINT.value: _info("numeric"),
        TypeCode.INTEGER.value: _info("numeric"),
        TypeCode.BIGINT.value: _info("numeric"),
        TypeCode.REAL.value: _info("numeric"),
        TypeCode.FLOAT.value: _info("numeric"),
        TypeCode.DOUBLE.value: _info("numeric"),
        TypeCode.DECIMAL.value: _info("numeric", decimal=True),
        TypeCode.NUMERIC.value: _info("numeric", decimal=True),
        TypeCode.CHAR.value: _info("textual", has_size=True),
        TypeCode.VARCHAR.value: _info("textual", has_size=True),
        TypeCode.LONGVARCHAR.value: _info("textual"),
        TypeCode.CLOB.value: _info("textual"),
        TypeCode.BINARY.value: _info("binary", has_size=True),
        TypeCode.VARBINARY.value: _info("binary", has_size=True),
        TypeCode.LONGVARBINARY.value: _info("binary"),
        TypeCode.BLOB.value: _info("binary"),
        TypeCode.DATE.value: _info("datetime"),
        TypeCode.TIME.value: _info("datetime"),
        TypeCode.TIMESTAMP.value: _info("datetime"),
    }
)

# Aliases seen in schema files and live catalogs, lower-cased.
TYPE_ALIASES: Mapping[str, str] = MappingProxyType(
    {
        "int": "INTEGER",
        "int2": "SMALLINT",
        "int4": "INTEGER",
        "int8": "BIGINT",
        "bool": "BOOLEAN",
        "float4": "REAL",
        "float8": "DOUBLE",
        "double precision": "DOUBLE",
        "character": "CHAR",
        "character varying": "VARCHAR",
        "bpchar": "CHAR",
        "text": "LONGVARCHAR",
        "bytea": "LONGVARBINARY",
        "timestamp with time zone": "TIMESTAMP",
        "timestamp without time zone": "TIMESTAMP",
        "timestamptz": "TIMESTAMP",
        "time with time zone": "TIME",
        "time without time zone": "TIME",
        "timetz": "TIME",
    }
)


class TypeCapabilities:
    """Read-only lookup of ``TypeInfo`` by canonical type code.

    Unknown type codes have no size and fall in the ``other`` category.
    """

    def __init__(self, overrides: Mapping[str, TypeInfo] | None = None):
        table = dict(DEFAULT_TYPE_INFO)
        for code, info in (overrides or {}).items():
            table[self.canonical(code)] = info
        self._table: Mapping[str, TypeInfo] = MappingProxyType(table)

    @staticmethod
    def canonical(type_code: str) -> str:
        """Normalize a type name to its canonical code."""
        cleaned = type_code.strip()
        alias = TYPE_ALIASES.get(cleaned.lower())
        if alias:
            return alias
        return cleaned.upper()

    def info(self, type_code: str) -> TypeInfo:
        return self._table.get(self.canonical(type_code), _UNKNOWN)

    def has_size(self, type_code: str) -> bool:
        return self.info(type_code).has_size

    def has_precision_and_scale(self, type_code: str) -> bool:
        return self.info(type_code).has_precision_and_scale

    def category(self, type_code: str) -> TypeCategory:
        return self.info(type_code).category

    def same_type(self, first: str, second: str) -> bool:
        return self.canonical(first) == self.canonical(second)


_UNKNOWN = TypeInfo()
