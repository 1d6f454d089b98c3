# tests/conftest.py
"""Shared test setup for project."""

from collections.abc import Iterator
from pathlib import Path

import pytest
from pytest import Config, Item as PytestItem

import crate_bundle.meta as mod_meta
import crate_bundle.runtime as mod_runtime
from crate_bundle.manifest import build_library
from crate_bundle.types import Library
from tests.utils import make_trace, write_library

TRACE = make_trace("⚡️")

# library used by most pipeline tests:
#   ds/dsu ──▶ utils/ops ──▶ utils/bits
#   mac/chmin (macro only, no deps)
SAMPLE_UNITS: dict[str, dict[str, str]] = {
    "ds": {
        "dsu": (
            "//! Disjoint set union.\n"
            "use ops::Monoid;\n"
            "\n"
            "/// Union-find forest.\n"
            "pub struct Dsu {\n"
            "    /// parent links\n"
            "    parent: Vec<usize>,\n"
            "}\n"
            "\n"
            "#[cfg(test)]\n"
            "mod tests {\n"
            "    #[test]\n"
            "    fn it_works() {}\n"
            "}\n"
        ),
    },
    "utils": {
        "ops": "use bits::Bits;\n\npub trait Monoid {}\n",
        "bits": "pub trait Bits {}\n",
    },
    "mac": {
        "chmin": (
            "#[macro_export]\n"
            "macro_rules! chmin {\n"
            "    ($a:expr, $b:expr) => {\n"
            "        if $b < $a { $a = $b; }\n"
            "    };\n"
            "}\n"
        ),
    },
}

SAMPLE_DEPS: dict[str, list[str]] = {
    "ds/dsu": ["utils/ops"],
    "utils/ops": ["utils/bits"],
}


@pytest.fixture(autouse=True)
def _isolate_runtime(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Reset log level, color and environment overrides for every test."""
    monkeypatch.setitem(mod_runtime.current_runtime, "log_level", "info")
    monkeypatch.setitem(mod_runtime.current_runtime, "use_color", False)
    for key in ("LOG_LEVEL", "LIB_PATH"):
        monkeypatch.delenv(f"{mod_meta.PROGRAM_ENV}_{key}", raising=False)
    monkeypatch.delenv("LOG_LEVEL", raising=False)
    yield


@pytest.fixture
def sample_lib_path(tmp_path: Path) -> Path:
    """Root directory of a freshly written sample library."""
    return write_library(tmp_path / "lib", SAMPLE_UNITS, SAMPLE_DEPS)


@pytest.fixture
def sample_library(sample_lib_path: Path) -> Library:
    return build_library(sample_lib_path)


def pytest_collection_modifyitems(
    config: Config,
    items: list[PytestItem],
) -> None:
    """Skip debug tests unless asked for."""
    keywords = config.getoption("-k") or ""
    if "debug" in keywords.lower():
        return  # user explicitly requested them, don't skip

    for item in items:
        if "debug" in item.keywords:
            item.add_marker(
                pytest.mark.skip(reason="Skipped debug test (use -k debug to run)")
            )
