# src/crate_bundle/config_resolve.py

import argparse
from collections.abc import Mapping
from pathlib import Path

from .constants import (
    DEFAULT_DOC_URL,
    DEFAULT_ENV_LIB_PATH,
    DEFAULT_ENV_LOG_LEVEL,
    DEFAULT_LIB_PATH,
    DEFAULT_LIBRARY_NAME,
    DEFAULT_LOG_LEVEL,
    DEFAULT_STRIP_NON_ASCII,
)
from .meta import PROGRAM_ENV
from .types import ConfigInput, ConfigResolved
from .utils_logs import get_logger


def expand_home(raw: str, home: Path) -> Path:
    """Expand a leading `~` against the given home directory."""
    if raw == "~":
        return home
    if raw.startswith("~/"):
        return home / raw[2:]
    return Path(raw)


def determine_log_level(
    args: argparse.Namespace,
    env: Mapping[str, str],
    config_log_level: str | None = None,
) -> str:
    """Resolve log level from CLI → env → config file → default."""
    if getattr(args, "log_level", None):
        return str(args.log_level)

    env_log_level = env.get(f"{PROGRAM_ENV}_{DEFAULT_ENV_LOG_LEVEL}") or env.get(
        DEFAULT_ENV_LOG_LEVEL
    )
    if env_log_level:
        return env_log_level

    return config_log_level or DEFAULT_LOG_LEVEL


def resolve_config(
    args: argparse.Namespace,
    file_cfg: ConfigInput | None,
    *,
    env: Mapping[str, str],
    home: Path,
    config_dir: Path,
    cwd: Path,
) -> ConfigResolved:
    """Merge CLI args, environment, config file and defaults.

    `home` and `env` are injected so nothing here reads process state.
    Relative paths from the CLI or env are taken against `cwd`; relative
    paths from the config file against the file's directory.
    """
    logger = get_logger()
    cfg: ConfigInput = file_cfg or {}

    # --- library path ---
    cli_lib = getattr(args, "lib_path", None)
    env_lib = env.get(f"{PROGRAM_ENV}_{DEFAULT_ENV_LIB_PATH}")
    if cli_lib:
        lib_path, origin = cwd / expand_home(str(cli_lib), home), "cli"
    elif env_lib:
        lib_path, origin = cwd / expand_home(env_lib, home), "env"
    elif "lib_path" in cfg:
        lib_path, origin = config_dir / expand_home(cfg["lib_path"], home), "config"
    else:
        lib_path, origin = expand_home(DEFAULT_LIB_PATH, home), "default"
    logger.trace("[CONFIG] lib_path=%s (from %s)", lib_path, origin)

    # --- flags ---
    strip = getattr(args, "strip_non_ascii", None)
    if strip is None:
        strip = cfg.get("strip_non_ascii", DEFAULT_STRIP_NON_ASCII)

    resolved: ConfigResolved = {
        "lib_path": lib_path,
        "library_name": getattr(args, "name", None)
        or cfg.get("library_name", DEFAULT_LIBRARY_NAME),
        "doc_url": cfg.get("doc_url", DEFAULT_DOC_URL),
        "log_level": determine_log_level(args, env, cfg.get("log_level")),
        "strip_non_ascii": bool(strip),
    }
    return resolved
