"""Configuration model and I/O for sandfm.

Configuration is stored in ~/.config/sandfm/config.toml. The root
directory can also be supplied with the SANDFM_ROOT environment
variable or the --root CLI option, which take precedence over the file.
"""

import os
import tomllib
from pathlib import Path
from tempfile import NamedTemporaryFile
from typing import Annotated

import tomli_w
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from sandfm.core.paths import get_config_path

ROOT_ENV_VAR = "SANDFM_ROOT"

DEFAULT_ARCHIVE_NAME = "download.zip"


class SandfmConfig(BaseModel):
    """Settings for the file manager.

    Attributes:
        root_dir: Directory all client paths are confined to.
        archive_name: Default file name for zip downloads.
        compress_archives: Deflate archive entries instead of storing them.
        journal: Record successful mutations in the operation journal.
    """

    model_config = ConfigDict(extra="forbid")

    root_dir: Annotated[
        Path | None,
        Field(description="Root directory all paths are confined to"),
    ] = None
    archive_name: Annotated[
        str,
        Field(min_length=1, description="Default zip download file name"),
    ] = DEFAULT_ARCHIVE_NAME
    compress_archives: Annotated[
        bool,
        Field(description="Deflate archive entries"),
    ] = True
    journal: Annotated[
        bool,
        Field(description="Record mutations in the operation journal"),
    ] = True

    @field_validator("root_dir", mode="before")
    @classmethod
    def expand_root(cls, v: object) -> object:
        """Expand ~ in the configured root directory."""
        if isinstance(v, str):
            return Path(v).expanduser()
        return v


class ConfigError(Exception):
    """Base exception for configuration errors."""


class ConfigNotFoundError(ConfigError):
    """Raised when the config file is not found."""


class ConfigParseError(ConfigError):
    """Raised when the config file cannot be parsed."""


def load_config(path: Path | None = None) -> SandfmConfig:
    """Load configuration from a TOML file.

    Args:
        path: Path to the config file. If None, uses the default config path.

    Returns:
        Validated SandfmConfig object.

    Raises:
        ConfigNotFoundError: If the config file doesn't exist.
        ConfigParseError: If the TOML syntax is invalid.
        ConfigError: If the content doesn't match the schema.
    """
    config_path = path or get_config_path()

    if not config_path.exists():
        raise ConfigNotFoundError(f"Config not found: {config_path}")

    try:
        with open(config_path, "rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigParseError(f"Invalid TOML syntax: {e}") from e
    except OSError as e:
        raise ConfigError(f"Failed to read config: {e}") from e

    try:
        return SandfmConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid config content: {e}") from e


def load_config_or_default(path: Path | None = None) -> SandfmConfig:
    """Load configuration, falling back to defaults when no file exists.

    Raises:
        ConfigError: If the file exists but is invalid.
    """
    try:
        return load_config(path)
    except ConfigNotFoundError:
        return SandfmConfig()


def save_config(config: SandfmConfig, path: Path | None = None) -> Path:
    """Save configuration to a TOML file.

    The file is written atomically by first writing to a temporary file
    and then using os.replace() for atomic rename.

    Args:
        config: The SandfmConfig object to save.
        path: Path to save the config. If None, uses the default config path.

    Returns:
        Path where the config was saved.

    Raises:
        ConfigError: If the file cannot be written.
    """
    config_path = path or get_config_path()
    config_path.parent.mkdir(parents=True, exist_ok=True)

    data = _config_to_dict(config)

    tmp_path: Path | None = None
    try:
        with NamedTemporaryFile(
            mode="wb",
            dir=config_path.parent,
            delete=False,
            suffix=".tmp",
        ) as f:
            tmp_path = Path(f.name)
            tomli_w.dump(data, f)
        os.replace(str(tmp_path), str(config_path))
    except OSError as e:
        if tmp_path is not None and tmp_path.exists():
            tmp_path.unlink()
        raise ConfigError(f"Failed to write config: {e}") from e

    return config_path


def _config_to_dict(config: SandfmConfig) -> dict[str, object]:
    """Convert SandfmConfig to a dictionary for TOML serialization.

    TOML has no null, so an unset root directory is omitted.
    """
    result: dict[str, object] = {}
    if config.root_dir is not None:
        result["root_dir"] = str(config.root_dir)
    result["archive_name"] = config.archive_name
    result["compress_archives"] = config.compress_archives
    result["journal"] = config.journal
    return result


def resolve_root_dir(cli_root: Path | None, config: SandfmConfig) -> Path | None:
    """Pick the root directory by precedence: CLI, environment, config file.

    Returns:
        The chosen root directory, or None if none is configured.
    """
    if cli_root is not None:
        return cli_root.expanduser()
    env_root = os.environ.get(ROOT_ENV_VAR)
    if env_root:
        return Path(env_root).expanduser()
    return config.root_dir
