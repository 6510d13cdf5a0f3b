"""
Per-user connection settings (server URL + API key) for the desktop client.

The file is JSON (config.json). The config.toml written by the earlier Rust
shell is not read; users upgrading from it re-enter their server URL and
key once.
"""
import os
import sys
import json
import logging
import tempfile
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger("ConfigManager")

# --- Config Location ---
QUALIFIER = "org"
ORGANIZATION = "nanochat"
APPLICATION = "nanochat-desktop"
CONFIG_FILENAME = "config.json"
CONFIG_DIR_ENV = "NANOCHAT_CONFIG_DIR"


class ConfigError(Exception):
    """Base class for config store failures."""
    pass


class PathResolutionError(ConfigError):
    pass


class LoadError(ConfigError):
    pass


class SaveError(ConfigError):
    """Raised when saving fails. `stage` is 'directory', 'serialize' or 'write'."""

    def __init__(self, message, stage):
        super().__init__(message)
        self.stage = stage


@dataclass
class Config:
    server_url: str = ""
    api_key: str = ""

    @classmethod
    def from_dict(cls, data):
        if not isinstance(data, dict):
            raise TypeError(f"expected a JSON object, got {type(data).__name__}")

        values = {}
        for key in ("server_url", "api_key"):
            if key not in data:
                raise ValueError(f"missing field '{key}'")
            if not isinstance(data[key], str):
                raise TypeError(f"field '{key}' must be a string, got {type(data[key]).__name__}")
            values[key] = data[key]

        extra = set(data) - set(values)
        if extra:
            logger.debug(f"Ignoring unknown config fields: {sorted(extra)}")
        return cls(**values)

    def to_dict(self):
        return {"server_url": self.server_url, "api_key": self.api_key}

    def __repr__(self):
        # Never leak the key into logs
        masked = "***" if self.api_key else ""
        return f"Config(server_url={self.server_url!r}, api_key={masked!r})"


def is_valid(config):
    """True when both server_url and api_key are set (no trimming, no URL checks)."""
    return bool(config.server_url) and bool(config.api_key)


def _platform_config_dir():
    # Path.home() raises RuntimeError if it cannot be determined
    if sys.platform.startswith("win"):
        appdata = os.environ.get("APPDATA")
        return Path(appdata) if appdata else Path.home() / "AppData" / "Roaming"
    if sys.platform == "darwin":
        return Path.home() / "Library" / "Application Support"
    xdg = os.environ.get("XDG_CONFIG_HOME")
    # XDG spec: relative paths are invalid and must be ignored
    if xdg and os.path.isabs(xdg):
        return Path(xdg)
    return Path.home() / ".config"


def resolve_path():
    """
    Returns the path of the per-user config file.
    NANOCHAT_CONFIG_DIR, if set, replaces the whole config directory.
    """
    override = os.environ.get(CONFIG_DIR_ENV)
    if override:
        return Path(override).expanduser() / CONFIG_FILENAME

    try:
        base = _platform_config_dir()
    except (RuntimeError, KeyError) as e:
        raise PathResolutionError(f"Failed to determine config directory: {e}") from e

    return base / f"{QUALIFIER}.{ORGANIZATION}.{APPLICATION}" / CONFIG_FILENAME


def load(path=None):
    """
    Loads the config from disk.
    A missing file yields the default (empty) Config; anything unreadable or
    malformed raises LoadError.
    """
    config_path = Path(path) if path is not None else resolve_path()

    try:
        content = config_path.read_text(encoding="utf-8")
    except FileNotFoundError:
        logger.info(f"No config file at {config_path}, using defaults.")
        return Config()
    except (OSError, UnicodeDecodeError) as e:
        logger.error(f"Failed to read config file {config_path}: {e}")
        raise LoadError(f"Failed to read config file: {e}") from e

    try:
        config = Config.from_dict(json.loads(content))
    except json.JSONDecodeError as e:
        logger.error(f"Invalid JSON in config file {config_path}: {e}")
        raise LoadError(f"Failed to parse config file: {e}") from e
    except (TypeError, ValueError) as e:
        logger.error(f"Invalid config structure in {config_path}: {e}")
        raise LoadError(f"Failed to parse config file: {e}") from e

    logger.debug(f"Loaded config from {config_path}: {config!r}")
    return config


def _write_atomic(path, text):
    fd, tmp = tempfile.mkstemp(prefix=path.name + ".", suffix=".tmp", dir=str(path.parent))
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(text)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp, path)
    finally:
        if os.path.exists(tmp):
            try:
                os.remove(tmp)
            except OSError as e:
                logger.warning(f"Could not remove temporary file {tmp}: {e}")


def save(config, path=None):
    """Writes the config, replacing whatever was there before."""
    config_path = Path(path) if path is not None else resolve_path()

    try:
        config_path.parent.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        logger.error(f"Failed to create config directory {config_path.parent}: {e}")
        raise SaveError(f"Failed to create config directory: {e}", stage="directory") from e

    try:
        data = config.to_dict()
        Config.from_dict(data)  # same shape load() will demand
        content = json.dumps(data, indent=2, sort_keys=True) + "\n"
    except (TypeError, ValueError, AttributeError) as e:
        logger.error(f"Failed to serialize config: {e}")
        raise SaveError(f"Failed to serialize config: {e}", stage="serialize") from e

    try:
        _write_atomic(config_path, content)
    except OSError as e:
        logger.error(f"Failed to write config file {config_path}: {e}")
        raise SaveError(f"Failed to write config file: {e}", stage="write") from e

    logger.info(f"Saved config to {config_path}")
