"""Configuration management: profiles, TOML loading, and config models.

Usage:
    >>> from schema_delta.config import load_config, DatabaseProfile, DeltaConfig
"""

from schema_delta.config.loader import load_config
from schema_delta.config.models import DatabaseProfile, DeltaConfig

__all__ = ["load_config", "DeltaConfig", "DatabaseProfile"]
