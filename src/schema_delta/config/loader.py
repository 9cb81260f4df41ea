"""Load schema-delta configuration from a TOML file."""

import logging
import tomllib
from pathlib import Path

from pydantic import ValidationError

from schema_delta.config.models import DatabaseProfile, DeltaConfig
from schema_delta.schema.types import TypeInfo

logger = logging.getLogger(__name__)

CONFIG_FILE_NAME = "schema-delta.toml"


def load_config(config_path: Path | None = None) -> DeltaConfig:
    """Load configuration from TOML file.

    Args:
        config_path: Path to the config file (default:
            ``Path.cwd() / "schema-delta.toml"``)

    Returns:
        DeltaConfig with profiles, identifier mode and type overrides

    Raises:
        FileNotFoundError: If config file doesn't exist
        ValueError: If config format is invalid
    """
    if config_path is None:
        config_path = Path.cwd() / CONFIG_FILE_NAME

    if not config_path.exists():
        raise FileNotFoundError(
            f"Config not found: {config_path}\n"
            f"Create {CONFIG_FILE_NAME} with [compare] and [profiles.<name>] sections."
        )

    with open(config_path, "rb") as f:
        try:
            data = tomllib.load(f)
        except tomllib.TOMLDecodeError as e:
            raise ValueError(f"Invalid TOML in {config_path.name}: {e}") from e

    try:
        profiles = {
            name: DatabaseProfile(**profile_data)
            for name, profile_data in data.get("profiles", {}).items()
        }
        type_overrides = {
            code: TypeInfo(**info) for code, info in data.get("types", {}).items()
        }
        compare_settings = data.get("compare", {})

        config = DeltaConfig(
            profiles=profiles,
            delimited_identifiers=compare_settings.get("delimited_identifiers", False),
            type_overrides=type_overrides,
        )
    except ValidationError as e:
        raise ValueError(f"Invalid config in {config_path.name}: {e}") from e

    logger.debug("Loaded %d profile(s) from %s", len(config.profiles), config_path)
    return config
