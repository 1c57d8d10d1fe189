"""
Configuration loading.

Configuration is a key=value environment file, layered:

1. Explicit override (--config PATH or MEDIAINDEXER_CONFIG_FILE)
2. /etc/mediaindexer/mediaindexer.env
3. ./mediaindexer.env

The first layer that applies is the only one read; later layers are never
consulted. Values from that file override process environment variables,
which override the defaults below. An empty value (KEY=) counts as
unset, so the default applies.

Design rules:
- Configuration is built once at startup and never mutated
- Components receive it explicitly; nothing reads os.environ after startup
- Invalid values are rejected up front with ConfigError
"""

import logging
import os
import shlex
from pathlib import Path
from typing import Dict, Mapping, Optional, Tuple, Union

from dotenv import dotenv_values
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

logger = logging.getLogger(__name__)


CONFIG_FILE_ENV = "MEDIAINDEXER_CONFIG_FILE"
SYSTEM_CONFIG_FILE = Path("/etc/mediaindexer/mediaindexer.env")
LOCAL_CONFIG_FILE = Path("mediaindexer.env")

# Environment key -> IndexerConfig field
ENV_KEYS: Dict[str, str] = {
    "MEDIAINDEXER_SOURCE_DIR": "source_dir",
    "MEDIAINDEXER_DESTINATION_DIR": "destination_dir",
    "MEDIAINDEXER_TEMP_DIR": "temp_dir",
    "MEDIAINDEXER_DISABLE_REMOVAL": "disable_removal",
    "MEDIAINDEXER_IGNORE_MISSING_FRAMES": "ignore_missing_frames",
    "MEDIAINDEXER_IMG_WIDTH": "img_width",
    "MEDIAINDEXER_FFMPEG_OPTS": "ffmpeg_opts",
    "MEDIAINDEXER_FFPROBE_OPTS": "ffprobe_opts",
    "MEDIAINDEXER_LOG_LEVEL": "log_level",
    "MEDIAINDEXER_LOG_FILE": "log_file",
    "MEDIAINDEXER_SLEEP_INTERVAL": "sleep_interval",
    "MEDIAINDEXER_TOOL_TIMEOUT": "tool_timeout",
}

LOG_LEVELS = ("debug", "info", "warning", "error", "critical")


class ConfigError(Exception):
    """Configuration is invalid. Fatal at startup."""


class IndexerConfig(BaseModel):
    """
    Immutable daemon configuration.

    Paths are made absolute at construction so that a later chdir cannot
    change which directories the daemon touches.
    """

    model_config = ConfigDict(extra="forbid", frozen=True, validate_default=True)

    source_dir: Path = Path("input")
    destination_dir: Path = Path("output")
    temp_dir: Path = Path("/tmp/mediaindexer")

    disable_removal: bool = False
    ignore_missing_frames: bool = False

    img_width: int = Field(default=4096, gt=0, description="Filmstrip and waveform width in pixels")

    ffmpeg_opts: Tuple[str, ...] = ("-hide_banner", "-nostdin", "-nostats", "-probesize", "16M")
    ffprobe_opts: Tuple[str, ...] = ("-loglevel", "level+quiet")

    log_level: str = "info"
    log_file: Optional[Path] = None

    sleep_interval: float = Field(default=10, ge=0, description="Seconds between sync passes")
    tool_timeout: float = Field(
        default=3600,
        ge=0,
        description="Per-invocation timeout for external tools, 0 disables it",
    )

    # Which file the values were loaded from, for the startup banner
    config_file: Optional[Path] = None

    @field_validator("ffmpeg_opts", "ffprobe_opts", mode="before")
    @classmethod
    def split_options(cls, v):
        """Option strings are split the way a shell would split them."""
        if isinstance(v, str):
            return tuple(shlex.split(v))
        return v

    @field_validator("log_level", mode="before")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = str(v).strip().lower()
        if level == "warn":
            level = "warning"
        if level not in LOG_LEVELS:
            raise ValueError(f"log level must be one of {', '.join(LOG_LEVELS)}")
        return level

    @field_validator("log_file", mode="before")
    @classmethod
    def empty_log_file_is_unset(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("source_dir", "destination_dir", "temp_dir", "log_file")
    @classmethod
    def make_absolute(cls, v: Optional[Path]) -> Optional[Path]:
        if v is None:
            return None
        return v.expanduser().absolute()


def resolve_config_file(
    override_path: Optional[Union[str, Path]] = None,
    environ: Optional[Mapping[str, str]] = None,
    system_file: Path = SYSTEM_CONFIG_FILE,
    local_file: Path = LOCAL_CONFIG_FILE,
) -> Optional[Path]:
    """
    Select the configuration file to load.

    An explicit override that does not exist is reported and yields no file;
    the system and local files are not consulted in that case.

    Returns:
        Path of the file to load, or None to use environment and defaults
    """
    if environ is None:
        environ = os.environ

    explicit = override_path or environ.get(CONFIG_FILE_ENV)
    if explicit:
        path = Path(explicit)
        if path.is_file():
            return path
        logger.warning(f"Configuration file not found: {path}, using defaults")
        return None

    for candidate in (system_file, local_file):
        if candidate.is_file():
            return candidate

    return None


def load_config(
    override_path: Optional[Union[str, Path]] = None,
    environ: Optional[Mapping[str, str]] = None,
    system_file: Path = SYSTEM_CONFIG_FILE,
    local_file: Path = LOCAL_CONFIG_FILE,
) -> IndexerConfig:
    """
    Build the daemon configuration.

    Args:
        override_path: Explicit configuration file (--config)
        environ: Process environment, os.environ by default
        system_file: System-wide configuration file
        local_file: Working-directory configuration file

    Returns:
        Validated, immutable IndexerConfig

    Raises:
        ConfigError: If the file cannot be read or a value is invalid
    """
    if environ is None:
        environ = os.environ

    config_file = resolve_config_file(override_path, environ, system_file, local_file)

    values: Dict[str, str] = {
        key: value for key, value in environ.items() if key in ENV_KEYS
    }

    if config_file is not None:
        try:
            file_values = dotenv_values(config_file)
        except OSError as e:
            raise ConfigError(f"Cannot read configuration file {config_file}: {e}") from e

        for key, value in file_values.items():
            if key not in ENV_KEYS:
                if key != CONFIG_FILE_ENV:
                    logger.debug(f"Ignoring unknown configuration key {key} in {config_file}")
            elif value is not None:
                values[key] = value

    # KEY= means unset: the default applies, even over an environment value
    fields = {ENV_KEYS[key]: value for key, value in values.items() if value.strip()}

    try:
        return IndexerConfig(config_file=config_file, **fields)
    except ValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(loc) for loc in err['loc'])}: {err['msg']}"
            for err in e.errors()
        )
        raise ConfigError(f"Invalid configuration: {problems}") from e
