"""Structural validation of a schema model before comparison.

A model is rejected when it contains something the comparator cannot
reason about: duplicate table or column names under the identifier mode,
column sizes that are not numbers, foreign keys that point at a missing
table or column, or indexes over missing columns.

Usage:
    from schema_delta.schema.validation import ensure_valid, validate_database

    result = validate_database(model, case_sensitive=False)
    if not result.valid:
        print(result.format_report())

    ensure_valid(model, case_sensitive=False, label="desired")  # raises
"""

from pydantic import BaseModel, Field

from schema_delta.errors import ModelValidationError
from schema_delta.schema.models import Database, Table, name_key


class ModelIssue(BaseModel):
    """A single problem found in a model."""

    table: str
    message: str


class ModelValidationResult(BaseModel):
    """Result of model validation.

    Example:
        >>> result = ModelValidationResult(valid=True)
        >>> result.error_count
        0
        >>> result.format_report()
        'Model valid'
    """

    valid: bool
    errors: list[ModelIssue] = Field(default_factory=list)

    @property
    def error_count(self) -> int:
        return len(self.errors)

    def format_report(self) -> str:
        """Format validation result as human-readable report."""
        if self.valid:
            return "Model valid"

        lines = [f"Model validation failed ({self.error_count} error(s)):"]
        for issue in self.errors:
            lines.append(f"  - {issue.table}: {issue.message}")
        return "\n".join(lines)


def _check_table(
    database: Database, table: Table, case_sensitive: bool, errors: list[ModelIssue]
) -> None:
    seen: set[str] = set()
    for column in table.columns:
        key = name_key(column.name, case_sensitive)
        if key in seen:
            errors.append(ModelIssue(table=table.name, message=f"duplicate column '{column.name}'"))
        seen.add(key)
        try:
            column.precision
            column.effective_scale
        except ValueError:
            errors.append(
                ModelIssue(
                    table=table.name,
                    message=f"column '{column.name}' has non-numeric size '{column.size}'",
                )
            )

    for fk in table.foreign_keys:
        label = f"foreign key {fk.name}" if fk.name else "unnamed foreign key"
        if not fk.references:
            errors.append(ModelIssue(table=table.name, message=f"{label} has no references"))
        target = database.find_table(fk.foreign_table, case_sensitive)
        if target is None:
            errors.append(
                ModelIssue(
                    table=table.name,
                    message=f"{label} references missing table '{fk.foreign_table}'",
                )
            )
        for ref in fk.references:
            if table.find_column(ref.local_column, case_sensitive) is None:
                errors.append(
                    ModelIssue(
                        table=table.name,
                        message=f"{label} uses missing local column '{ref.local_column}'",
                    )
                )
            if target is not None and target.find_column(ref.foreign_column, case_sensitive) is None:
                errors.append(
                    ModelIssue(
                        table=table.name,
                        message=(
                            f"{label} references missing column "
                            f"'{target.name}.{ref.foreign_column}'"
                        ),
                    )
                )

    for index in table.indexes:
        label = f"index {index.name}" if index.name else "unnamed index"
        if not index.columns:
            errors.append(ModelIssue(table=table.name, message=f"{label} has no columns"))
        for column_name in index.columns:
            if table.find_column(column_name, case_sensitive) is None:
                errors.append(
                    ModelIssue(
                        table=table.name,
                        message=f"{label} uses missing column '{column_name}'",
                    )
                )


def validate_database(database: Database, case_sensitive: bool = False) -> ModelValidationResult:
    """Check a model for problems that would make a comparison meaningless.

    Args:
        database: The model to check.
        case_sensitive: Identifier mode used for duplicate and lookup checks.

    Returns:
        ``ModelValidationResult`` listing every problem found.

    Examples:
        >>> from schema_delta.schema.models import ForeignKey, Reference, Table
        >>> db = Database(tables=[Table(name="a", foreign_keys=[
        ...     ForeignKey(foreign_table="b", references=[Reference(local_column="x", foreign_column="y")])
        ... ])])
        >>> validate_database(db).valid
        False
    """
    errors: list[ModelIssue] = []
    seen: set[str] = set()

    for table in database.tables:
        key = name_key(table.name, case_sensitive)
        if key in seen:
            errors.append(ModelIssue(table=table.name, message="duplicate table name"))
        seen.add(key)
        _check_table(database, table, case_sensitive, errors)

    return ModelValidationResult(valid=not errors, errors=errors)


def ensure_valid(database: Database, case_sensitive: bool = False, label: str = "model") -> None:
    """Raise ``ModelValidationError`` if ``database`` is malformed."""
    result = validate_database(database, case_sensitive)
    if not result.valid:
        raise ModelValidationError(result, label)
