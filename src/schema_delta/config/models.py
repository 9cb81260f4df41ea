"""Pydantic models for schema-delta configuration."""

from urllib.parse import quote

from pydantic import BaseModel, Field

from schema_delta.schema.types import TypeCapabilities, TypeInfo


# ============================================================================
# Configuration Models
# ============================================================================


class DatabaseProfile(BaseModel):
    """Database connection profile from schema-delta.toml."""

    url: str
    description: str = ""
    db_password: str | None = None  # For [YOUR-PASSWORD] placeholder substitution
    schema_name: str = "public"

    def resolved_url(self) -> str:
        """Connection URL with the ``[YOUR-PASSWORD]`` placeholder filled in."""
        url = self.url
        if self.db_password and "[YOUR-PASSWORD]" in url:
            url = url.replace("[YOUR-PASSWORD]", quote(self.db_password, safe=""))
        return url


class DeltaConfig(BaseModel):
    """Complete configuration from schema-delta.toml."""

    profiles: dict[str, DatabaseProfile] = Field(default_factory=dict)
    delimited_identifiers: bool = False
    type_overrides: dict[str, TypeInfo] = Field(default_factory=dict)

    @property
    def case_sensitive(self) -> bool:
        """Delimited identifiers are matched case-sensitively."""
        return self.delimited_identifiers

    def type_capabilities(self) -> TypeCapabilities:
        return TypeCapabilities(self.type_overrides)
