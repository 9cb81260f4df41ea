"""PostgreSQL schema introspection into a ``Database`` model.

This module queries a live database to build the current-side snapshot:
- Tables and columns (canonical type, size, nullability, default,
  identity/serial as auto-increment)
- Primary keys (as column flags)
- Foreign keys with their ordered reference pairs
- Indexes other than the primary key index

Uses psycopg (v3) async connections.
"""

import logging
import re

import psycopg
from psycopg import AsyncConnection

from schema_delta.schema.models import Column, Database, ForeignKey, Index, Reference, Table
from schema_delta.schema.types import TypeCapabilities

logger = logging.getLogger(__name__)

_FK_ACTIONS = {
    "a": "NO ACTION",
    "r": "RESTRICT",
    "c": "CASCADE",
    "n": "SET NULL",
    "d": "SET DEFAULT",
}

_QUOTED_DEFAULT = re.compile(r"^'(?P<value>(?:[^']|'')*)'(?:::[\w\s\".]+(?:\[\])?)?$")
_CAST_SUFFIX = re.compile(r"::[\w\s\".]+(?:\[\])?$")


class SchemaIntrospector:
    """Introspects a PostgreSQL schema into a ``Database`` model.

    Uses information_schema and pg_catalog. Works with any PostgreSQL
    database (RDS, Supabase, local).

    Usage:
        async with SchemaIntrospector(database_url) as introspector:
            current = await introspector.introspect()

        plan = compare_models(current, desired)
    """

    # Tables excluded from introspection unless the caller overrides them
    EXCLUDED_TABLES_DEFAULT = {
        "schema_migrations",
        "pg_stat_statements",
        "spatial_ref_sys",
    }

    def __init__(
        self,
        database_url: str,
        excluded_tables: set[str] | None = None,
        connect_timeout: int = 10,
        type_info: TypeCapabilities | None = None,
    ):
        """Initialize with database connection URL.

        Args:
            database_url: PostgreSQL connection URL
            excluded_tables: Table names to skip (default:
                ``EXCLUDED_TABLES_DEFAULT``); pass an empty set to keep all
            connect_timeout: Connection timeout in seconds
            type_info: Lookup used to canonicalize catalog type names
        """
        self._database_url = database_url
        self._excluded_tables = (
            set(self.EXCLUDED_TABLES_DEFAULT) if excluded_tables is None else set(excluded_tables)
        )
        self._connect_timeout = connect_timeout
        self._type_info = type_info or TypeCapabilities()
        self._conn: AsyncConnection | None = None

    async def __aenter__(self) -> "SchemaIntrospector":
        """Async context manager entry - opens connection."""
        self._conn = await psycopg.AsyncConnection.connect(
            self._database_url,
            connect_timeout=self._connect_timeout,
        )
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Async context manager exit - closes connection."""
        if self._conn:
            await self._conn.close()
            self._conn = None

    def _require_connection(self) -> AsyncConnection:
        if not self._conn:
            raise RuntimeError("Introspector not connected. Use async with statement.")
        return self._conn

    async def test_connection(self) -> bool:
        """Run ``SELECT 1`` against the open connection.

        Returns:
            True when the query succeeds.

        Raises:
            RuntimeError: If called outside the ``async with`` block.
            ConnectionError: If the query fails.
        """
        conn = self._require_connection()
        try:
            async with conn.cursor() as cur:
                await cur.execute("SELECT 1")
                await cur.fetchone()
        except psycopg.Error as e:
            raise ConnectionError(f"Connection test failed: {e}") from e
        return True

    async def introspect(self, schema_name: str = "public") -> Database:
        """Introspect one schema.

        Args:
            schema_name: PostgreSQL schema to introspect (default: public)

        Returns:
            Database named after the schema, tables in name order.

        Raises:
            RuntimeError: If called outside the ``async with`` block.
        """
        self._require_connection()

        database = Database(name=schema_name)

        for table_name in await self._get_tables(schema_name):
            if table_name in self._excluded_tables:
                continue

            table = Table(name=table_name)
            table.columns = await self._get_columns(schema_name, table_name)

            pk_columns = set(await self._get_primary_key(schema_name, table_name))
            for column in table.columns:
                column.primary_key = column.name in pk_columns

            table.foreign_keys = await self._get_foreign_keys(schema_name, table_name)
            table.indexes = await self._get_indexes(schema_name, table_name)
            database.tables.append(table)

        logger.info("Introspected %d table(s) from schema %s", len(database.tables), schema_name)
        return database

    async def _fetch_all(self, query: str, params: tuple) -> list[tuple]:
        async with self._require_connection().cursor() as cur:
            await cur.execute(query, params)
            return await cur.fetchall()

    async def _get_tables(self, schema_name: str) -> list[str]:
        """Get all table names in schema."""
        query = """
            SELECT table_name
            FROM information_schema.tables
            WHERE table_schema = %s
              AND table_type = 'BASE TABLE'
            ORDER BY table_name
        """
        rows = await self._fetch_all(query, (schema_name,))
        return [row[0] for row in rows]

    async def _get_columns(self, schema_name: str, table_name: str) -> list[Column]:
        """Get columns for a table, in ordinal order."""
        query = """
            SELECT
                column_name,
                data_type,
                character_maximum_length,
                numeric_precision,
                numeric_scale,
                is_nullable,
                column_default,
                is_identity
            FROM information_schema.columns
            WHERE table_schema = %s
              AND table_name = %s
            ORDER BY ordinal_position
        """
        columns = []
        for row in await self._fetch_all(query, (schema_name, table_name)):
            (
                col_name,
                data_type,
                char_length,
                precision,
                scale,
                is_nullable,
                default,
                is_identity,
            ) = row
            type_code = self._type_info.canonical(data_type)
            auto_increment = is_identity == "YES" or (
                default is not None and default.startswith("nextval(")
            )
            columns.append(
                Column(
                    name=col_name,
                    type_code=type_code,
                    size=self._size(type_code, char_length, precision, scale),
                    required=(is_nullable == "NO"),
                    auto_increment=auto_increment,
                    default=None if auto_increment else self._normalize_default(default),
                )
            )
        return columns

    def _size(
        self,
        type_code: str,
        char_length: int | None,
        precision: int | None,
        scale: int | None,
    ) -> str | None:
        """Size string for a column, "p,s" for decimal types."""
        if self._type_info.has_precision_and_scale(type_code):
            if precision is None:
                return None
            return f"{precision},{scale or 0}"
        if char_length is not None:
            return str(char_length)
        return None

    def _normalize_default(self, default: str | None) -> str | None:
        """Strip PostgreSQL casts and quoting from a column default.

        ``'active'::character varying`` becomes ``active`` and
        ``(0)::numeric`` becomes ``0``.
        """
        if default is None:
            return None
        text = default.strip()
        match = _QUOTED_DEFAULT.match(text)
        if match:
            return match.group("value").replace("''", "'")
        text = _CAST_SUFFIX.sub("", text)
        if text.startswith("(") and text.endswith(")"):
            text = text[1:-1]
        return text

    async def _get_primary_key(self, schema_name: str, table_name: str) -> list[str]:
        """Get primary key column names for a table."""
        query = """
            SELECT kcu.column_name
            FROM information_schema.table_constraints tc
            JOIN information_schema.key_column_usage kcu
                ON tc.constraint_name = kcu.constraint_name
                AND tc.table_schema = kcu.table_schema
                AND tc.table_name = kcu.table_name
            WHERE tc.table_schema = %s
              AND tc.table_name = %s
              AND tc.constraint_type = 'PRIMARY KEY'
            ORDER BY kcu.ordinal_position
        """
        rows = await self._fetch_all(query, (schema_name, table_name))
        return [row[0] for row in rows]

    async def _get_foreign_keys(self, schema_name: str, table_name: str) -> list[ForeignKey]:
        """Get foreign keys for a table with reference pairs in key order."""
        query = """
            SELECT
                con.conname,
                ft.relname AS foreign_table,
                la.attname AS local_column,
                fa.attname AS foreign_column,
                con.confdeltype,
                con.confupdtype
            FROM pg_constraint con
            JOIN pg_class t ON t.oid = con.conrelid
            JOIN pg_namespace n ON n.oid = t.relnamespace
            JOIN pg_class ft ON ft.oid = con.confrelid
            JOIN LATERAL unnest(con.conkey, con.confkey)
                WITH ORDINALITY AS k(local_num, foreign_num, ordinality) ON TRUE
            JOIN pg_attribute la ON la.attrelid = con.conrelid AND la.attnum = k.local_num
            JOIN pg_attribute fa ON fa.attrelid = con.confrelid AND fa.attnum = k.foreign_num
            WHERE con.contype = 'f'
              AND n.nspname = %s
              AND t.relname = %s
            ORDER BY con.conname, k.ordinality
        """
        foreign_keys: dict[str, ForeignKey] = {}
        for row in await self._fetch_all(query, (schema_name, table_name)):
            name, foreign_table, local_col, foreign_col, on_delete, on_update = row
            if name not in foreign_keys:
                foreign_keys[name] = ForeignKey(
                    name=name,
                    foreign_table=foreign_table,
                    on_delete=_FK_ACTIONS.get(on_delete),
                    on_update=_FK_ACTIONS.get(on_update),
                )
            foreign_keys[name].references.append(
                Reference(local_column=local_col, foreign_column=foreign_col)
            )
        return list(foreign_keys.values())

    async def _get_indexes(self, schema_name: str, table_name: str) -> list[Index]:
        """Get indexes for a table (excluding primary key)."""
        query = """
            SELECT
                i.relname AS index_name,
                array_agg(a.attname ORDER BY x.ordinality) AS columns,
                ix.indisunique AS is_unique
            FROM pg_index ix
            JOIN pg_class t ON t.oid = ix.indrelid
            JOIN pg_class i ON i.oid = ix.indexrelid
            JOIN pg_namespace n ON n.oid = t.relnamespace
            JOIN LATERAL unnest(ix.indkey) WITH ORDINALITY AS x(attnum, ordinality) ON TRUE
            JOIN pg_attribute a ON a.attrelid = t.oid AND a.attnum = x.attnum
            WHERE n.nspname = %s
              AND t.relname = %s
              AND NOT ix.indisprimary
            GROUP BY i.relname, ix.indisunique
            ORDER BY i.relname
        """
        rows = await self._fetch_all(query, (schema_name, table_name))
        return [
            Index(name=name, columns=list(columns), unique=is_unique)
            for name, columns, is_unique in rows
        ]
