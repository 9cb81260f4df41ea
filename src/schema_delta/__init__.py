"""schema-delta: compare relational schema models and plan the changes between them.

Takes a current and a desired schema snapshot and produces an ordered,
dependency-safe list of changes (add/remove tables, columns, keys and
indexes) that turns one into the other. Snapshots come from JSON files
or from a live PostgreSQL database.

Usage:
    from schema_delta import compare_models, apply_changes
    from schema_delta import Database, Table, Column, ForeignKey, Reference, Index
    from schema_delta import load_database, load_config
"""

__version__ = "0.1.0"

# Config
from schema_delta.config.loader import load_config
from schema_delta.config.models import DatabaseProfile, DeltaConfig

# Errors
from schema_delta.errors import (
    ChangeApplicationError,
    ModelValidationError,
    ProfileNotFoundError,
    SchemaDeltaError,
    SchemaFileError,
)

# Schema
from schema_delta.schema.changes import Change, apply_changes, describe_change
from schema_delta.schema.comparator import ModelComparator, compare_models
from schema_delta.schema.files import load_changes, load_database, save_changes, save_database
from schema_delta.schema.models import Column, Database, ForeignKey, Index, Reference, Table
from schema_delta.schema.types import TypeCapabilities, TypeInfo
from schema_delta.schema.validation import validate_database

__all__ = [
    # Config
    "load_config",
    "DeltaConfig",
    "DatabaseProfile",
    # Errors
    "SchemaDeltaError",
    "ModelValidationError",
    "ChangeApplicationError",
    "SchemaFileError",
    "ProfileNotFoundError",
    # Models
    "Database",
    "Table",
    "Column",
    "ForeignKey",
    "Reference",
    "Index",
    "TypeCapabilities",
    "TypeInfo",
    # Comparison
    "ModelComparator",
    "compare_models",
    "validate_database",
    "Change",
    "apply_changes",
    "describe_change",
    # Files
    "load_database",
    "save_database",
    "load_changes",
    "save_changes",
]
