"""Configuration management for the shooting incident report"""

import yaml
from pathlib import Path
from typing import Any, Optional


# Source checkout root, used only to locate the default config file
PROJECT_ROOT = Path(__file__).parent.parent.parent
DEFAULT_CONFIG_PATH = "config/config.yaml"


class ConfigLoader:
    """
    Load and manage project configuration from YAML files

    Supports nested configuration access using dot notation.
    Example: config.get('data.raw_path', default='/default/path')
    """

    def __init__(self, config_path: Optional[str] = None):
        """
        Initialize configuration loader

        Args:
            config_path: Path to YAML configuration file
        """
        self.config_path = Path(config_path or DEFAULT_CONFIG_PATH)

        if not self.config_path.exists() and not self.config_path.is_absolute():
            # Try relative to project root
            self.config_path = PROJECT_ROOT / self.config_path

        self.project_root = self._find_project_root()
        self.config = self._load_config()

    def _find_project_root(self) -> Path:
        """
        Directory that relative paths in the config resolve against

        A file under a `config/` directory belongs to that directory's parent;
        any other file resolves against its own directory.
        """
        config_dir = self.config_path.resolve().parent
        return config_dir.parent if config_dir.name == 'config' else config_dir

    def _load_config(self) -> dict:
        """Load configuration from YAML file"""
        if not self.config_path.exists():
            raise FileNotFoundError(
                f"Configuration file not found: {self.config_path}\n"
                f"Please create {DEFAULT_CONFIG_PATH}"
            )

        with open(self.config_path, 'r') as f:
            return yaml.safe_load(f) or {}

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get configuration value by key (supports dot notation)

        Args:
            key: Configuration key (e.g., 'data.raw_path')
            default: Default value if key not found

        Returns:
            Configuration value or default

        Examples:
            >>> config = ConfigLoader()
            >>> config.get('forecast.horizon_months')
            12
            >>> config.get('data.invalid_key', default='fallback')
            'fallback'
        """
        keys = key.split('.')
        value = self.config

        for k in keys:
            if isinstance(value, dict) and k in value:
                value = value[k]
            else:
                return default

        # Explicit nulls in YAML fall back to the default
        return default if value is None else value

    def get_path(self, key: str, default: Optional[str] = None) -> Path:
        """
        Get configuration value as Path object

        Args:
            key: Configuration key
            default: Default path if key not found

        Returns:
            Path object (relative paths are resolved against the config's project directory)
        """
        value = self.get(key, default)

        if value is None:
            raise ValueError(f"Configuration key '{key}' not found and no default provided")

        path = Path(value)

        if not path.is_absolute():
            path = self.project_root / path

        return path

    def set(self, key: str, value: Any):
        """
        Override a configuration value in memory (dot notation)

        Used by the CLI to apply command-line overrides.
        """
        keys = key.split('.')
        node = self.config

        for k in keys[:-1]:
            if not isinstance(node.get(k), dict):
                node[k] = {}
            node = node[k]

        node[keys[-1]] = value

    def reload(self):
        """Reload configuration from file"""
        self.config = self._load_config()

    def __repr__(self) -> str:
        return f"ConfigLoader(config_path='{self.config_path}')"
