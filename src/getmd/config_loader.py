"""Config file discovery and loading (.getmdrc, getmd.config.json/.yaml)."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Mapping, Optional, Union

import yaml
from pydantic import ValidationError

from .models.config import GetMdConfig

logger = logging.getLogger(__name__)

# Checked in this order within a directory; the first one found is used
CONFIG_FILE_NAMES = (
    ".getmdrc",
    ".getmdrc.json",
    "getmd.config.json",
    "getmd.config.yaml",
)


def find_config_in_dir(directory: Path) -> Optional[Path]:
    for name in CONFIG_FILE_NAMES:
        path = directory / name
        if path.is_file():
            return path
    return None


def _parse(path: Path) -> Any:
    text = path.read_text(encoding="utf-8")
    if path.suffix == ".json":
        return json.loads(text)
    # .getmdrc may be JSON or YAML; YAML accepts both
    return yaml.safe_load(text)


def load_config_from_file(path: Union[str, Path]) -> GetMdConfig:
    """
    Load and validate one config file.

    Raises:
        ValueError: If the file cannot be read, parsed or validated
    """
    path = Path(path)
    try:
        data = _parse(path)
        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise ValueError("Config must be a mapping of option names to values")
        return GetMdConfig.model_validate(data)
    except (OSError, ValueError, yaml.YAMLError, ValidationError) as e:
        raise ValueError(f"Failed to load config from {path}: {e}") from e


def load_config(
    home_dir: Optional[Path] = None,
    cwd: Optional[Path] = None,
) -> GetMdConfig:
    """
    Load configuration from the home directory and the working directory.

    Settings from the working directory override the home directory's.

    Returns:
        Merged config (empty if no file was found)
    """
    merged: dict[str, Any] = {}
    for directory in (home_dir or Path.home(), cwd or Path.cwd()):
        path = find_config_in_dir(directory)
        if path is not None:
            logger.debug(f"Loading config from {path}")
            merged.update(load_config_from_file(path).to_options())
    return GetMdConfig(**merged)


def find_config_path(
    home_dir: Optional[Path] = None,
    cwd: Optional[Path] = None,
) -> Optional[Path]:
    """The config file with the highest priority, if any."""
    return find_config_in_dir(cwd or Path.cwd()) or find_config_in_dir(home_dir or Path.home())


def merge_config_with_options(config: GetMdConfig, options: Mapping[str, Any]) -> dict[str, Any]:
    """
    Merge file config with explicit options; options that are set win.

    Options whose value is None count as not set.
    """
    merged = config.to_options()
    merged.update({key: value for key, value in options.items() if value is not None})
    return merged
