"""
Configuration Management for aimlog

Provides configuration loading from multiple sources:
- Default values
- Configuration files (YAML, TOML, JSON)
- Environment variables
- Command line arguments

Configuration precedence (highest to lowest):
1. Command line arguments
2. Environment variables (AIMLOG_*)
3. Configuration file
4. Default values
"""

import json
import logging
import logging.handlers
import os
import tomllib
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any

import yaml

from aimlog.core.constants import (
    DEFAULT_CHUNK_SIZE,
    PROCESSED_DIR_NAME,
    SECTION_DELIMITER,
    STATS_FILE_SUFFIX,
)

logger = logging.getLogger(__name__)


# ============================================================================
# Configuration Dataclasses
# ============================================================================


@dataclass
class ParserConfig:
    """Configuration for stats file parsing."""

    section_delimiter: str = SECTION_DELIMITER
    chunk_size: int = DEFAULT_CHUNK_SIZE
    encoding: str = "utf-8"
    # codec error handler; "strict" fails the file on undecodable bytes
    encoding_errors: str = "replace"

    # Raise on a section that cannot be decoded instead of dropping it
    strict_sections: bool = False


@dataclass
class IngestConfig:
    """Configuration for batch ingestion of a stats folder."""

    source_dir: str = "."
    file_suffix: str = STATS_FILE_SUFFIX
    processed_dir: str = PROCESSED_DIR_NAME
    archive: bool = True


@dataclass
class StorageConfig:
    """Configuration for the object storage upload."""

    project_id: str | None = None
    bucket_name: str | None = None
    credentials_path: str | None = "credentials.json"
    content_type: str = "application/x-ndjson"


@dataclass
class WatcherConfig:
    """Configuration for the stats folder watcher."""

    min_file_size_bytes: int = 1
    debounce_seconds: float = 2.0
    recursive: bool = False
    upload: bool = True


@dataclass
class LoggingConfig:
    """Configuration for logging."""

    level: str = "INFO"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    file: str | None = None
    file_max_bytes: int = 10 * 1024 * 1024  # 10MB
    file_backup_count: int = 5


@dataclass
class AimlogConfig:
    """Main configuration container."""

    parser: ParserConfig = field(default_factory=ParserConfig)
    ingest: IngestConfig = field(default_factory=IngestConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)
    watcher: WatcherConfig = field(default_factory=WatcherConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    # Version of the config format
    config_version: str = "1.0"


# ============================================================================
# Configuration Loading
# ============================================================================


def get_default_config_paths() -> list[Path]:
    """Get the default paths to search for configuration files."""
    paths = []

    # Current directory
    paths.append(Path.cwd() / "aimlog.yaml")
    paths.append(Path.cwd() / "aimlog.toml")
    paths.append(Path.cwd() / "aimlog.json")
    paths.append(Path.cwd() / ".aimlog.yaml")

    # User home directory
    home = Path.home()
    xdg_config = os.environ.get("XDG_CONFIG_HOME", str(home / ".config"))
    paths.append(Path(xdg_config) / "aimlog" / "config.yaml")
    paths.append(Path(xdg_config) / "aimlog" / "config.toml")
    paths.append(home / ".aimlog.yaml")

    return paths


def load_yaml_config(path: Path) -> dict[str, Any]:
    """Load configuration from a YAML file."""
    with open(path) as f:
        return yaml.safe_load(f) or {}


def load_toml_config(path: Path) -> dict[str, Any]:
    """Load configuration from a TOML file."""
    with open(path, "rb") as f:
        return tomllib.load(f)


def load_json_config(path: Path) -> dict[str, Any]:
    """Load configuration from a JSON file."""
    with open(path) as f:
        return json.load(f)


CONFIG_LOADERS = {
    ".yaml": load_yaml_config,
    ".yml": load_yaml_config,
    ".toml": load_toml_config,
    ".json": load_json_config,
}


def load_config_file(path: Path) -> dict[str, Any]:
    """
    Load configuration from a file, detecting format from extension.

    A missing file loads as an empty mapping; an unsupported extension
    raises ValueError.
    """
    loader = CONFIG_LOADERS.get(path.suffix.lower())
    if loader is None:
        raise ValueError(f"Unsupported config file format: {path.name} (expected .yaml, .yml, .toml or .json)")

    if not path.exists():
        return {}
    return loader(path)


ENV_MAPPINGS = {
    "AIMLOG_LOG_LEVEL": ("logging", "level"),
    "AIMLOG_LOG_FILE": ("logging", "file"),
    "AIMLOG_SOURCE_DIR": ("ingest", "source_dir"),
    "AIMLOG_PROCESSED_DIR": ("ingest", "processed_dir"),
    "AIMLOG_STRICT_SECTIONS": ("parser", "strict_sections"),
    # Storage
    "AIMLOG_PROJECT_ID": ("storage", "project_id"),
    "AIMLOG_BUCKET_NAME": ("storage", "bucket_name"),
    "AIMLOG_CREDENTIALS_PATH": ("storage", "credentials_path"),
    # Watcher
    "AIMLOG_WATCH_DEBOUNCE": ("watcher", "debounce_seconds"),
}

# Identifiers must stay strings even when they look numeric
STRING_ONLY_KEYS = {
    ("storage", "project_id"),
    ("storage", "bucket_name"),
    ("storage", "credentials_path"),
    ("ingest", "source_dir"),
    ("ingest", "processed_dir"),
    ("logging", "file"),
}


def load_env_config() -> dict[str, Any]:
    """Load configuration from environment variables."""
    config: dict[str, Any] = {}

    for env_var, (section, key) in ENV_MAPPINGS.items():
        value: Any = os.environ.get(env_var)
        if value is None:
            continue

        if section not in config:
            config[section] = {}

        # Type conversion
        if (section, key) not in STRING_ONLY_KEYS:
            if value.lower() in ("true", "false"):
                value = value.lower() == "true"
            elif value.isdigit():
                value = int(value)
            else:
                try:
                    value = float(value)
                except ValueError:
                    pass

        config[section][key] = value

    return config


def merge_configs(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge two configuration dictionaries."""
    result = base.copy()

    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = merge_configs(result[key], value)
        else:
            result[key] = value

    return result


def dict_to_config(data: dict[str, Any]) -> AimlogConfig:
    """Convert a dictionary to AimlogConfig, ignoring unknown keys."""
    config = AimlogConfig()

    for section_name in ("parser", "ingest", "storage", "watcher", "logging"):
        section = getattr(config, section_name)
        for key, value in (data.get(section_name) or {}).items():
            if hasattr(section, key):
                setattr(section, key, value)
            else:
                logger.warning(f"Ignoring unknown config key: {section_name}.{key}")

    return config


def load_config(config_file: Path | None = None, include_env: bool = True) -> AimlogConfig:
    """
    Load configuration from all sources.

    Args:
        config_file: Explicit path to a config file (optional)
        include_env: Whether to include environment variables

    Returns:
        Merged AimlogConfig
    """
    config_data: dict[str, Any] = {}

    if config_file:
        config_data = load_config_file(config_file)
        logger.info(f"Loaded config from: {config_file}")
    else:
        for path in get_default_config_paths():
            if path.exists():
                config_data = load_config_file(path)
                logger.info(f"Loaded config from: {path}")
                break

    if include_env:
        config_data = merge_configs(config_data, load_env_config())

    return dict_to_config(config_data)


# ============================================================================
# Configuration Saving
# ============================================================================


def config_to_dict(config: AimlogConfig) -> dict[str, Any]:
    """Convert AimlogConfig to a dictionary."""
    return asdict(config)


def save_config(config: AimlogConfig, path: Path) -> None:
    """
    Save configuration to a file.

    Args:
        config: Configuration to save
        path: Path to save to (YAML or JSON, detected from extension)
    """
    data = config_to_dict(config)
    suffix = path.suffix.lower()

    if suffix in (".yaml", ".yml"):
        with open(path, "w") as f:
            yaml.safe_dump(data, f, default_flow_style=False, sort_keys=False)
    elif suffix == ".json":
        with open(path, "w") as f:
            json.dump(data, f, indent=2)
    else:
        raise ValueError(f"Unsupported config format for saving: {suffix}")

    logger.info(f"Saved config to: {path}")


# ============================================================================
# Logging Setup
# ============================================================================


def configure_logging(config: LoggingConfig, verbose: bool = False) -> None:
    """
    Configure the root logger from a LoggingConfig.

    Args:
        config: Logging section of the configuration
        verbose: Force DEBUG level regardless of config
    """
    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if config.file:
        handlers.append(
            logging.handlers.RotatingFileHandler(
                config.file,
                maxBytes=config.file_max_bytes,
                backupCount=config.file_backup_count,
            )
        )

    level = logging.DEBUG if verbose else getattr(logging, str(config.level).upper(), logging.INFO)
    logging.basicConfig(level=level, format=config.format, handlers=handlers, force=True)


# ============================================================================
# Global Configuration
# ============================================================================

_global_config: AimlogConfig | None = None


def get_config() -> AimlogConfig:
    """Get the global configuration, loading it if necessary."""
    global _global_config

    if _global_config is None:
        _global_config = load_config()

    return _global_config


def set_config(config: AimlogConfig) -> None:
    """Set the global configuration."""
    global _global_config
    _global_config = config


def reset_config() -> None:
    """Reset the global configuration to defaults."""
    global _global_config
    _global_config = None


# ============================================================================
# Configuration Templates
# ============================================================================

DEFAULT_CONFIG_YAML = """# aimlog configuration

# Parser settings
parser:
  strict_sections: false  # raise instead of dropping undecodable sections
  encoding: utf-8
  encoding_errors: replace  # or strict to reject undecodable files

# Batch ingestion
ingest:
  source_dir: .
  file_suffix: .csv
  processed_dir: processed
  archive: true

# Object storage upload
storage:
  # project_id: my-project
  # bucket_name: my-bucket
  credentials_path: credentials.json

# Folder watcher
watcher:
  debounce_seconds: 2.0
  recursive: false
  upload: true

# Logging settings
logging:
  level: INFO
  # file: /path/to/aimlog.log
"""


def generate_default_config(path: Path) -> None:
    """Generate a default configuration file."""
    suffix = path.suffix.lower()

    if suffix in (".yaml", ".yml"):
        path.write_text(DEFAULT_CONFIG_YAML)
    else:
        save_config(AimlogConfig(), path)

    logger.info(f"Generated default config at: {path}")
