"""Pydantic configuration models with code-baked defaults.

Sparse TOML contract: defaults baked here, itemscreen.toml only contains
overrides. An empty file (or none at all) is a valid configuration.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, Field

# --- itemscreen.toml sections ---


class FormattingConfig(BaseModel):
    """[formatting] section."""

    model_config = {"frozen": True}

    locale: str = "en_US"


class CacheConfig(BaseModel):
    """[cache] section."""

    model_config = {"frozen": True}

    enabled: bool = True
    path: Path = Path(".itemscreen/cache.db")


class UserConfig(BaseModel):
    """[user] section."""

    model_config = {"frozen": True}

    premium: bool = False


class SourcesConfig(BaseModel):
    """[sources] section."""

    model_config = {"frozen": True}

    data_path: Path = Path("items.json")
    timeout_seconds: float = Field(default=30.0, gt=0)
