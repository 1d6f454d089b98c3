# src/crate_bundle/config.py

import argparse
from difflib import get_close_matches
from pathlib import Path
from typing import Any

from .errors import ConfigError
from .meta import PROGRAM_SCRIPT
from .types import ConfigInput
from .utils import load_jsonc, remove_path_in_error_message
from .utils_logs import LEVEL_ORDER, get_logger

# key → accepted JSON types
CONFIG_SCHEMA: dict[str, tuple[type, ...]] = {
    "lib_path": (str,),
    "library_name": (str,),
    "doc_url": (str, type(None)),
    "log_level": (str,),
    "strip_non_ascii": (bool,),
}


def find_config(args: argparse.Namespace, cwd: Path) -> Path | None:
    """Locate a configuration file.

    Search order:
      1. Explicit path from CLI (--config)
      2. Default candidates in the current working directory:
         .{PROGRAM_SCRIPT}.jsonc, .{PROGRAM_SCRIPT}.json

    Returns the first matching path, or None if no config was found.
    """
    logger = get_logger()

    # --- 1. Explicit config path ---
    if getattr(args, "config", None):
        config = Path(args.config).expanduser().resolve()
        if not config.exists():
            # Explicit path → hard failure
            xmsg = f"Specified config file not found: {config}"
            raise ConfigError(xmsg)
        if config.is_dir():
            xmsg = f"Specified config path is a directory, not a file: {config}"
            raise ConfigError(xmsg)
        return config

    # --- 2. Default candidate files ---
    candidates: list[Path] = [
        cwd / f".{PROGRAM_SCRIPT}.jsonc",
        cwd / f".{PROGRAM_SCRIPT}.json",
    ]
    found = [p for p in candidates if p.exists()]

    if not found:
        # Expected absence: soft failure
        logger.trace("No config file found in %s", cwd)
        return None

    if len(found) > 1:
        names = ", ".join(p.name for p in found)
        logger.warning("Multiple config files detected (%s); using %s.", names, found[0].name)
    return found[0]


def validate_config(raw: dict[str, Any], origin: Path) -> ConfigInput:
    """Check keys and value types; return the config narrowed to ConfigInput."""
    for key, value in raw.items():
        accepted = CONFIG_SCHEMA.get(key)
        if accepted is None:
            close = get_close_matches(key, CONFIG_SCHEMA, n=1, cutoff=0.6)
            hint = f" (did you mean {close[0]!r}?)" if close else ""
            xmsg = f"{origin.name}: unknown key {key!r}{hint}"
            raise ConfigError(xmsg)
        if not isinstance(value, accepted):
            names = " or ".join("null" if t is type(None) else t.__name__ for t in accepted)
            xmsg = f"{origin.name}: {key!r} must be {names}, not {type(value).__name__}"
            raise ConfigError(xmsg)

    level = raw.get("log_level")
    if level is not None and level not in LEVEL_ORDER:
        xmsg = f"{origin.name}: unknown log_level {level!r}"
        raise ConfigError(xmsg)

    return ConfigInput(**raw)  # type: ignore[typeddict-item]


def load_config(config_path: Path) -> ConfigInput | None:
    """Load and validate a JSON/JSONC config file.

    Returns None for intentionally empty configs (empty file, only comments).
    """
    try:
        data = load_jsonc(config_path)
    except (ValueError, FileNotFoundError) as e:
        clean_msg = remove_path_in_error_message(str(e), config_path)
        xmsg = (
            f"Error while loading configuration file '{config_path.name}': {clean_msg}"
        )
        raise ConfigError(xmsg) from e

    if data is None:
        return None
    if not isinstance(data, dict):
        xmsg = f"{config_path.name}: top level must be an object, not a list"
        raise ConfigError(xmsg)

    return validate_config(data, config_path)
