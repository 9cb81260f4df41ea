"""Exception types raised by schema-delta.

The comparison core raises these; only the CLI catches them and turns
them into an exit code.
"""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from schema_delta.schema.validation import ModelValidationResult


class SchemaDeltaError(Exception):
    """Base class for all schema-delta errors."""

    pass


class ModelValidationError(SchemaDeltaError, ValueError):
    """Raised when a schema model is malformed and cannot be compared.

    Attributes:
        result: The full validation report for the rejected model.
        label: Which side of the comparison was rejected ("current",
            "desired", or a file name).
    """

    def __init__(self, result: "ModelValidationResult", label: str = "model"):
        self.result = result
        self.label = label
        super().__init__(f"Invalid {label} model:\n{result.format_report()}")


class ChangeApplicationError(SchemaDeltaError):
    """Raised when a change cannot be replayed onto a model."""

    pass


class SchemaFileError(SchemaDeltaError):
    """Raised when a schema snapshot or plan file cannot be parsed."""

    pass


class ProfileNotFoundError(SchemaDeltaError):
    """Raised when a named database profile is not configured."""

    pass
