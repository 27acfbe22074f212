import json
import logging
import os
import shutil
from pathlib import Path
from typing import Any, Dict, Optional, cast

import yaml
from jsonschema import ValidationError, validate

from tssemantic.config.types import UserConfig

logger = logging.getLogger(__name__)

__all__ = ["load_user_config", "default_config_path"]

DEFAULT_MIN_VERSION = "3.7.0"


def default_config_path() -> Path:
    """Location of the user config when neither a flag nor TSSEMANTIC_CONFIG is given."""
    return Path.home() / ".tssemantic" / "config.yml"


def _apply_defaults(config: Dict[str, Any]) -> UserConfig:
    """Apply default values to the user config"""
    # Create a copy to avoid modifying the input
    config = config.copy()

    tsserver = dict(config.get("tsserver") or {})
    if not tsserver.get("path"):
        # Fall back to a tsserver on PATH, e.g. from `npm install -g typescript`
        tsserver["path"] = shutil.which("tsserver")
    if "node" not in tsserver:
        tsserver["node"] = "node"
    if "command" not in tsserver:
        tsserver["command"] = None
    if "args" not in tsserver:
        tsserver["args"] = []
    if "version" not in tsserver:
        tsserver["version"] = None
    config["tsserver"] = tsserver

    semantic_tokens = dict(config.get("semantic_tokens") or {})
    if "enabled" not in semantic_tokens:
        semantic_tokens["enabled"] = True
    if "min_version" not in semantic_tokens:
        semantic_tokens["min_version"] = DEFAULT_MIN_VERSION
    config["semantic_tokens"] = semantic_tokens

    return cast(UserConfig, config)


def _resolve_config_path(config_path: Optional[Path]) -> tuple[Path, bool]:
    """Return the config path and whether it was explicitly requested."""
    if config_path is not None:
        return Path(config_path), True
    if "TSSEMANTIC_CONFIG" in os.environ:
        return Path(os.environ["TSSEMANTIC_CONFIG"]), True
    return default_config_path(), False


def load_user_config(config_path: Optional[Path] = None) -> UserConfig:
    """Load the user configuration.

    The file is looked up in this order:

    1. ``config_path`` when given (the ``--config`` flag)
    2. the ``TSSEMANTIC_CONFIG`` environment variable
    3. ``~/.tssemantic/config.yml``

    A missing default file is not an error: every setting has a default.

    Args:
        config_path: Optional explicit path to the config file

    Returns:
        The validated user configuration with defaults applied

    Raises:
        FileNotFoundError: If an explicitly requested file does not exist
        ValueError: If the file does not match the config schema
    """
    path, explicit = _resolve_config_path(config_path)

    if not path.exists():
        if explicit:
            raise FileNotFoundError(f"Config file not found at {path}")
        logger.debug(f"No user config at {path}, using defaults")
        return _apply_defaults({"tssemantic": 1})

    with open(path) as f:
        config = yaml.safe_load(f)

    if config is None:
        config = {}
    if not isinstance(config, dict):
        raise ValueError(f"User config validation error: {path} must contain a mapping")
    config.setdefault("tssemantic", 1)

    # Load and apply JSON Schema validation
    schema_path = Path(__file__).parent / "schemas" / "tssemantic-config-schema-1.json"
    with open(schema_path) as schema_file:
        schema = json.load(schema_file)

    try:
        validate(instance=config, schema=schema)
    except ValidationError as e:
        raise ValueError(f"User config validation error: {e.message}")

    logger.debug(f"Loaded user config from {path}")
    return _apply_defaults(config)
