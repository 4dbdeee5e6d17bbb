"""Unified settings — CLI flags, env vars, and TOML config in one object.

Priority chain (highest to lowest):
  1. Init kwargs  — CLI flags passed by Click
  2. Env vars     — ``ITEMSCREEN_*`` prefix, ``__`` for nested sections
  3. TOML file    — ``itemscreen.toml`` found by :func:`find_config`
  4. Code defaults — baked into the section models

The TOML file is chosen per construction, so :meth:`from_cli` publishes it
through a context variable that ``settings_customise_sources`` reads.
"""

from __future__ import annotations

import tomllib
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from pathlib import Path
from typing import Any

import click
from pydantic import Field
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    TomlConfigSettingsSource,
)

from itemscreen.config.discovery import find_config
from itemscreen.config.models import CacheConfig, FormattingConfig, SourcesConfig, UserConfig

_toml_file: ContextVar[Path | None] = ContextVar("itemscreen_toml_file", default=None)


@contextmanager
def _using_toml(path: Path | None) -> Iterator[None]:
    token = _toml_file.set(path)
    try:
        yield
    finally:
        _toml_file.reset(token)


def _toml_source(settings_cls: type[BaseSettings], path: Path) -> PydanticBaseSettingsSource:
    try:
        return TomlConfigSettingsSource(settings_cls, toml_file=path)
    except tomllib.TOMLDecodeError as exc:
        msg = f"Invalid TOML in {path}: {exc}"
        raise click.ClickException(msg) from exc


class ItemScreenSettings(BaseSettings):
    """Everything one CLI invocation needs to know.

    Attributes:
        project_root: Base for relative paths: the directory holding the
            config file, or the CWD when there is none.
        config_path: The TOML file that was read, or None.
    """

    model_config = SettingsConfigDict(
        env_prefix="ITEMSCREEN_",
        env_nested_delimiter="__",
        frozen=True,
        extra="ignore",
    )

    project_root: Path = Field(default_factory=Path.cwd)
    config_path: Path | None = None

    # Global flags
    json_output: bool = False
    quiet: bool = False
    verbose: bool = False
    log_json: bool = False
    sync: bool = False

    formatting: FormattingConfig = Field(default_factory=FormattingConfig)
    cache: CacheConfig = Field(default_factory=CacheConfig)
    user: UserConfig = Field(default_factory=UserConfig)
    sources: SourcesConfig = Field(default_factory=SourcesConfig)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        path = _toml_file.get()
        if path is None:
            return init_settings, env_settings
        return init_settings, env_settings, _toml_source(settings_cls, path)

    @classmethod
    def from_cli(
        cls,
        *,
        config_path: str | None = None,
        project_root: Path | None = None,
        **cli_flags: Any,
    ) -> ItemScreenSettings:
        """Build settings for one invocation.

        An explicit *config_path* must exist; otherwise the file is found
        by walking up from *project_root* (or the CWD). Unset *project_root*
        becomes the config file's directory.
        """
        if config_path:
            toml_path: Path | None = Path(config_path)
            if not toml_path.is_file():
                msg = f"Config file not found: {config_path}"
                raise click.ClickException(msg)
        else:
            toml_path = find_config(project_root)

        if project_root is None:
            project_root = toml_path.parent if toml_path is not None else Path.cwd()

        with _using_toml(toml_path):
            return cls(project_root=project_root, config_path=toml_path, **cli_flags)

    def resolve(self, path: Path) -> Path:
        """Resolve *path* against ``project_root`` unless already absolute."""
        return path if path.is_absolute() else self.project_root / path
