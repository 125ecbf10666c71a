"""Configuration loading utilities."""

import copy
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml


# Values used when a key is missing from the YAML file.
DEFAULT_CONFIG: Dict[str, Any] = {
    "logging": {
        "level": "INFO",
        "log_file": None,
    },
    "data": {
        "frames_file": "json.json",
        "image_root": ".",
    },
    "filter": {
        "excluded_class_ids": [2],
        "min_forward": 4.0,
        "max_forward": 40.0,
        "max_lateral": 10.0,
    },
    "visibility": {
        "near_plane": 2.0,
    },
    "render": {
        "box_color": [0, 0, 255],
        "front_color": [255, 0, 0],
        "thickness": 1,
        "mask_value": 1.0,
        "draw_labels": False,
        "font_scale": 0.4,
    },
    "display": {
        "image_window": "img",
        "mask_window": "mask",
        "wait_ms": 0,
        "quit_key": "q",
        "mask_overlay": False,
    },
}


class ConfigLoader:
    """Load and manage YAML configurations."""

    def __init__(self, config_dir: Optional[str] = None):
        """
        Initialize config loader.

        Args:
            config_dir: Default directory for config files.
        """
        self.config_dir = Path(config_dir) if config_dir else Path("configs")
        self._cache: Dict[str, Dict] = {}

    def load(
        self,
        config_path: Union[str, Path],
        use_cache: bool = True,
    ) -> Dict[str, Any]:
        """
        Load configuration from YAML file.

        Args:
            config_path: Path to config file.
            use_cache: Whether to use cached config.

        Returns:
            Configuration dictionary.
        """
        config_path = Path(config_path)

        # Bare file names are looked up in config_dir
        if not config_path.is_absolute() and not config_path.exists():
            config_path = self.config_dir / config_path

        cache_key = str(config_path)

        if use_cache and cache_key in self._cache:
            return copy.deepcopy(self._cache[cache_key])

        if not config_path.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")

        with open(config_path, "r") as f:
            config = yaml.safe_load(f) or {}

        if not isinstance(config, dict):
            raise ValueError(
                f"Config file must contain a mapping, got {type(config).__name__}: "
                f"{config_path}"
            )

        if use_cache:
            self._cache[cache_key] = config

        return copy.deepcopy(config)

    def merge(
        self,
        base: Dict[str, Any],
        override: Dict[str, Any],
    ) -> Dict[str, Any]:
        """
        Deep merge two configurations.

        Args:
            base: Base configuration.
            override: Override configuration.

        Returns:
            Merged configuration.
        """
        result = copy.deepcopy(base)

        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self.merge(result[key], value)
            else:
                result[key] = value

        return result

    def clear_cache(self) -> None:
        """Clear configuration cache."""
        self._cache.clear()


def load_config(
    config_path: Optional[Union[str, Path]] = None,
    overrides: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    """
    Load configuration merged over DEFAULT_CONFIG.

    Args:
        config_path: Path to config file. Defaults only when None.
        overrides: Optional overrides applied last.

    Returns:
        Configuration dictionary.
    """
    loader = ConfigLoader()
    config = copy.deepcopy(DEFAULT_CONFIG)

    if config_path is not None:
        config = loader.merge(config, loader.load(config_path))

    if overrides:
        config = loader.merge(config, overrides)

    return config


def get_nested(
    config: Dict[str, Any],
    key: str,
    default: Any = None,
) -> Any:
    """
    Get nested config value using dot notation.

    Args:
        config: Configuration dictionary.
        key: Dot-separated key (e.g., 'filter.max_forward').
        default: Default value if key not found.

    Returns:
        Config value or default.
    """
    keys = key.split(".")
    value = config

    for k in keys:
        if isinstance(value, dict) and k in value:
            value = value[k]
        else:
            return default

    return value
