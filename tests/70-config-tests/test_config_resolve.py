# tests/70-config-tests/test_config_resolve.py

from argparse import Namespace
from pathlib import Path

import crate_bundle.config_resolve as mod_resolve
from crate_bundle.constants import DEFAULT_DOC_URL, DEFAULT_LIBRARY_NAME


def _args(**kwargs: object) -> Namespace:
    base: dict[str, object] = {
        "lib_path": None,
        "name": None,
        "strip_non_ascii": None,
        "log_level": None,
    }
    base.update(kwargs)
    return Namespace(**base)


def _resolve(args: Namespace, cfg=None, env=None, tmp: Path = Path("/work")):
    return mod_resolve.resolve_config(
        args,
        cfg,
        env=env or {},
        home=Path("/home/neko"),
        config_dir=tmp / "conf",
        cwd=tmp,
    )


def test_expand_home() -> None:
    home = Path("/home/neko")
    assert mod_resolve.expand_home("~", home) == home
    assert mod_resolve.expand_home("~/lib", home) == home / "lib"
    assert mod_resolve.expand_home("lib", home) == Path("lib")


def test_defaults() -> None:
    # --- execute ---
    resolved = _resolve(_args())

    # --- verify ---
    assert resolved["lib_path"] == Path("/home/neko/git/rsk0315/nekolib/nekolib-doc")
    assert resolved["library_name"] == DEFAULT_LIBRARY_NAME
    assert resolved["doc_url"] == DEFAULT_DOC_URL
    assert resolved["log_level"] == "info"
    assert resolved["strip_non_ascii"] is False
    assert "config_path" not in resolved


def test_config_file_paths_are_relative_to_config_dir() -> None:
    resolved = _resolve(_args(), {"lib_path": "lib", "doc_url": None})
    assert resolved["lib_path"] == Path("/work/conf/lib")
    assert resolved["doc_url"] is None


def test_env_overrides_config_file() -> None:
    resolved = _resolve(
        _args(),
        {"lib_path": "lib", "log_level": "warning"},
        {"CRATE_BUNDLE_LIB_PATH": "~/env-lib", "LOG_LEVEL": "debug"},
    )
    assert resolved["lib_path"] == Path("/home/neko/env-lib")
    assert resolved["log_level"] == "debug"


def test_cli_overrides_everything() -> None:
    # --- execute ---
    resolved = _resolve(
        _args(lib_path="cli-lib", name="mylib", strip_non_ascii=True, log_level="trace"),
        {"lib_path": "lib", "library_name": "cfglib", "strip_non_ascii": False},
        {"CRATE_BUNDLE_LIB_PATH": "env-lib", "CRATE_BUNDLE_LOG_LEVEL": "error"},
    )

    # --- verify ---
    assert resolved["lib_path"] == Path("/work/cli-lib")
    assert resolved["library_name"] == "mylib"
    assert resolved["strip_non_ascii"] is True
    assert resolved["log_level"] == "trace"


def test_program_env_log_level_beats_generic() -> None:
    args = _args()
    env = {"CRATE_BUNDLE_LOG_LEVEL": "error", "LOG_LEVEL": "debug"}
    assert mod_resolve.determine_log_level(args, env, "warning") == "error"
    assert mod_resolve.determine_log_level(args, {}, "warning") == "warning"
