"""YAML configuration loading and saving for the content-sync CLI.

Configuration file structure (.content-sync/config.yaml):
    directory: "./content"
    account_id: "acme"
    project_id: "marketing-site"
    database: ".content-sync/content.db"
    debounce_ms: 1000
    max_workers: 8
    content_repo: "https://github.com/acme/site-content"

Every key is optional in the file; command-line options and
``CONTENT_SYNC_*`` environment variables fill or override them.
"""

import os
from dataclasses import asdict, fields
from typing import Any, Dict

import yaml
from dotenv import load_dotenv

from src.content_sync.errors import ConfigError, FilesystemError

from .errors import ConfigNotFoundError
from .models import SyncConfig

DEFAULT_CONFIG_PATH = ".content-sync/config.yaml"

# Config field -> environment variable overriding it
ENV_VARS = {
    'directory': 'CONTENT_SYNC_DIRECTORY',
    'account_id': 'CONTENT_SYNC_ACCOUNT_ID',
    'project_id': 'CONTENT_SYNC_PROJECT_ID',
    'database': 'CONTENT_SYNC_DATABASE',
    'debounce_ms': 'CONTENT_SYNC_DEBOUNCE_MS',
    'max_workers': 'CONTENT_SYNC_MAX_WORKERS',
    'content_repo': 'CONTENT_SYNC_CONTENT_REPO',
}

INT_FIELDS = {'debounce_ms', 'max_workers'}


class ConfigLoader:
    """Handles configuration file loading, validation, and saving."""

    @classmethod
    def load(cls, config_path: str = DEFAULT_CONFIG_PATH) -> SyncConfig:
        """Load and parse configuration from a YAML file.

        Args:
            config_path: Path to the YAML configuration file

        Returns:
            SyncConfig with parsed values and defaults for missing keys

        Raises:
            ConfigNotFoundError: If the file does not exist
            FilesystemError: If the file cannot be read
            ConfigError: If the YAML is malformed or values are invalid
        """
        try:
            with open(config_path, 'r', encoding='utf-8') as f:
                content = f.read()
        except FileNotFoundError:
            raise ConfigNotFoundError(config_path)
        except PermissionError:
            raise FilesystemError(config_path, 'read', 'Permission denied')
        except OSError as e:
            raise FilesystemError(config_path, 'read', str(e))

        try:
            config_dict = yaml.safe_load(content)
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML syntax: {e}")

        if config_dict is None:
            return SyncConfig()
        if not isinstance(config_dict, dict):
            raise ConfigError(
                f"Configuration must be a YAML dictionary, got {type(config_dict).__name__}"
            )

        return cls._parse_config(config_dict)

    @classmethod
    def load_or_default(cls, config_path: str = DEFAULT_CONFIG_PATH) -> SyncConfig:
        """Like load(), but a missing file yields default settings."""
        try:
            return cls.load(config_path)
        except ConfigNotFoundError:
            return SyncConfig()

    @classmethod
    def save(cls, config_path: str, sync_config: SyncConfig) -> None:
        """Write ``sync_config`` to ``config_path``, creating parent directories.

        Raises:
            FilesystemError: If the file cannot be written
        """
        config_dict = {key: value for key, value in asdict(sync_config).items() if value is not None}
        yaml_str = yaml.safe_dump(
            config_dict,
            default_flow_style=False,
            allow_unicode=True,
            sort_keys=False
        )

        config_dir = os.path.dirname(config_path)
        if config_dir:
            try:
                os.makedirs(config_dir, exist_ok=True)
            except OSError as e:
                raise FilesystemError(config_dir, 'create_directory', str(e))

        try:
            with open(config_path, 'w', encoding='utf-8') as f:
                f.write(yaml_str)
        except PermissionError:
            raise FilesystemError(config_path, 'write', 'Permission denied')
        except OSError as e:
            raise FilesystemError(config_path, 'write', str(e))

    @classmethod
    def apply_env(cls, sync_config: SyncConfig) -> SyncConfig:
        """Overlay ``CONTENT_SYNC_*`` environment variables (and .env) onto ``sync_config``.

        Raises:
            ConfigError: If a numeric variable is not an integer
        """
        load_dotenv()
        overrides: Dict[str, Any] = {}
        for field_name, env_var in ENV_VARS.items():
            value = os.getenv(env_var)
            if value is None or value == "":
                continue
            overrides[field_name] = value

        if not overrides:
            return sync_config

        merged = asdict(sync_config)
        merged.update(overrides)
        return cls._parse_config(merged)

    @classmethod
    def _parse_config(cls, config_dict: Dict[str, Any]) -> SyncConfig:
        known = {f.name for f in fields(SyncConfig)}
        unknown = sorted(set(config_dict) - known)
        if unknown:
            raise ConfigError(f"Unknown configuration key(s): {', '.join(unknown)}")

        values: Dict[str, Any] = {}
        for key, value in config_dict.items():
            if value is None:
                continue
            if key in INT_FIELDS:
                values[key] = cls._parse_int(key, value)
            else:
                if isinstance(value, (dict, list)):
                    raise ConfigError(f"Expected a scalar value, got {type(value).__name__}", key)
                values[key] = str(value)

        return SyncConfig(**values)

    @staticmethod
    def _parse_int(key: str, value: Any) -> int:
        if isinstance(value, bool):
            raise ConfigError(f"Expected an integer, got {value!r}", key)
        try:
            number = int(value)
        except (TypeError, ValueError):
            raise ConfigError(f"Expected an integer, got {value!r}", key)
        if key == 'max_workers' and number < 1:
            raise ConfigError(f"Must be at least 1, got {number}", key)
        if key == 'debounce_ms' and number < 0:
            raise ConfigError(f"Must not be negative, got {number}", key)
        return number
