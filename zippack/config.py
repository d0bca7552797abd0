"""
Configuration management for zippack.

Two sources feed a run:
- A configuration document (TOML by default, YAML by suffix) describing the
  traversal root, the output directory, the volume size limit and the named
  archive groups.
- Environment variables (prefix ZIPPACK_) for process-level settings: which
  configuration file to read, log level and log format.

Example config.toml:
    root = "/srv/game"
    root_name = "base"
    root_compression = "deflate"
    output = "./out"
    zip_limit = 1073741824

    [zip.textures]
    path = "assets/textures"
    compression = "store"

Invariants:
    - Configuration is fully loaded and validated before any archive work
    - Every load failure surfaces as ConfigError
    - Codec names are resolved to Compression members once, here

How to change safely:
    - Add new document fields with defaults so older configs keep loading
    - Keep group order stable, it is the run order
"""

from __future__ import annotations

import logging
import os
import tomllib
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, PositiveInt, ValidationError, field_validator
from pydantic_settings import BaseSettings

from .errors import ConfigError

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = "config.toml"
YAML_SUFFIXES = {".yaml", ".yml"}


class PackerSettings(BaseSettings):
    """Process settings loaded from the environment."""

    config_file: str = Field(default=DEFAULT_CONFIG_PATH, description="Configuration file path")
    log_level: str = Field(default="INFO", description="DEBUG, INFO, WARNING or ERROR")
    log_format: str = Field(default="text", description="Log format: 'text' or 'json'")

    model_config = {"env_prefix": "ZIPPACK_"}


class GroupConfig(BaseModel):
    """One named archive group.

    Attributes:
        path: Sub-path under the traversal root
        compression: Codec name (store, deflate, bzip2, lzma, zstd)
        skip: Leave this group out of the run
    """

    path: str
    compression: str = "store"
    skip: bool = False

    @field_validator("path")
    @classmethod
    def _path_not_empty(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("path must not be empty")
        return value


class PackerConfig(BaseModel):
    """Complete packer configuration document.

    Attributes:
        root: Traversal root
        root_name: Name of the residual archive set
        root_compression: Codec name for the residual archive set
        output: Output directory for all volumes
        zip_limit: Declared bytes per volume before rollover
        zip: Named archive groups, in run order
    """

    root: str
    root_name: str
    root_compression: str = "store"
    output: str
    zip_limit: PositiveInt
    zip: dict[str, GroupConfig] = Field(default_factory=dict)

    @field_validator("root", "root_name", "output")
    @classmethod
    def _not_empty(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("must not be empty")
        return value

    @classmethod
    def from_file(cls, path: str | os.PathLike[str]) -> PackerConfig:
        """Load and validate a configuration document.

        Args:
            path: TOML file, or YAML if the suffix is .yaml/.yml

        Returns:
            Validated configuration

        Raises:
            ConfigError: If the file is missing, unparsable or invalid
        """
        source = Path(path)
        try:
            text = source.read_text(encoding="utf-8")
        except OSError as e:
            raise ConfigError(f"Failed to read {source}: {e}", source=str(source)) from e

        data = _parse(text, source)
        try:
            config = cls.model_validate(data)
        except ValidationError as e:
            raise ConfigError(f"Invalid configuration in {source}: {e}", source=str(source)) from e

        config.validate_groups(source=str(source))
        return config

    def validate_groups(self, source: str | None = None) -> None:
        """Check group names for collisions and unusable characters.

        Raises:
            ConfigError: If a group name is invalid
        """
        for name in self.zip:
            if not name.strip():
                raise ConfigError("Archive group names must not be empty", source=source)
            if "/" in name or "\\" in name:
                raise ConfigError(
                    f"Archive group name '{name}' must not contain path separators",
                    source=source,
                )
            if name == self.root_name:
                raise ConfigError(
                    f"Archive group '{name}' has the same name as the root archive",
                    source=source,
                )
        if "/" in self.root_name or "\\" in self.root_name:
            raise ConfigError(
                f"root_name '{self.root_name}' must not contain path separators",
                source=source,
            )

    def log_config(self) -> None:
        """Log the loaded configuration."""
        logger.info(
            "Packer configuration loaded",
            extra={
                "root": self.root,
                "root_name": self.root_name,
                "root_compression": self.root_compression,
                "output": self.output,
                "zip_limit": self.zip_limit,
                "groups": sorted(self.zip),
                "skipped": sorted(name for name, group in self.zip.items() if group.skip),
            },
        )


def _parse(text: str, source: Path) -> Any:
    if source.suffix.lower() in YAML_SUFFIXES:
        try:
            data = yaml.safe_load(text)
        except yaml.YAMLError as e:
            raise ConfigError(f"Failed to parse {source}: {e}", source=str(source)) from e
    else:
        try:
            data = tomllib.loads(text)
        except tomllib.TOMLDecodeError as e:
            raise ConfigError(f"Failed to parse {source}: {e}", source=str(source)) from e

    if not isinstance(data, dict):
        raise ConfigError(f"{source} must contain a mapping at the top level", source=str(source))
    return data
