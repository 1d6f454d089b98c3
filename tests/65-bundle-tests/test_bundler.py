# tests/65-bundle-tests/test_bundler.py

from pathlib import Path

import pytest

import crate_bundle.bundler as mod_bundler
from crate_bundle.errors import UnknownSymbolError
from crate_bundle.manifest import build_library
from crate_bundle.types import Library, UnitId
from tests.utils import cargo_toml, write_library

CONSUMER = "use nekolib::ds::Dsu;\n\nfn main() {}\n"

EXPECTED = (
    CONSUMER
    + "\n"
    + "/// This module is bundled automatically.\n"
    "/// Commit: abc123\n"
    "#[allow(unused)]\n"
    "pub mod nekolib {\n"
    "    pub mod ds {\n"
    "        pub mod dsu {\n"
    "            use crate::nekolib::utils::ops;\n"
    "            use ops::Monoid;\n"
    "            pub struct Dsu {\n"
    "                parent: Vec<usize>,\n"
    "            }\n"
    "        }\n"
    "        #[allow(unused_imports)]\n"
    "        pub use dsu::*;\n"
    "    }\n"
    "    pub mod utils {\n"
    "        pub mod bits {\n"
    "            pub trait Bits {}\n"
    "        }\n"
    "        #[allow(unused_imports)]\n"
    "        pub use bits::*;\n"
    "        pub mod ops {\n"
    "            use crate::nekolib::utils::bits;\n"
    "            use bits::Bits;\n"
    "            pub trait Monoid {}\n"
    "        }\n"
    "        #[allow(unused_imports)]\n"
    "        pub use ops::*;\n"
    "    }\n"
    "}\n"
)


def _no_provenance() -> str:
    raise AssertionError("provenance must not be requested")


def test_bundle_appends_unit_and_its_dependencies(sample_library: Library) -> None:
    result = mod_bundler.bundle(CONSUMER, sample_library, lambda: "abc123")
    assert result == EXPECTED


def test_bundle_without_library_usage_is_identity(sample_library: Library) -> None:
    """Nothing is appended and provenance is never asked for."""
    source = "use std::io;\n\nfn main() {}\n"
    assert mod_bundler.bundle(source, sample_library, _no_provenance) == source


def test_bundle_is_deterministic(sample_library: Library) -> None:
    first = mod_bundler.bundle(CONSUMER, sample_library, lambda: "x")
    second = mod_bundler.bundle(CONSUMER, sample_library, lambda: "x")
    assert first == second


def test_bundle_doc_url_line(sample_library: Library) -> None:
    result = mod_bundler.bundle(
        CONSUMER, sample_library, lambda: "abc", doc_url="https://example.org/doc"
    )
    assert "/// See <https://example.org/doc> for documentation.\n" in result


def test_bundle_exports_macros(sample_library: Library) -> None:
    # --- execute ---
    result = mod_bundler.bundle(
        "use nekolib::mac::chmin;\n", sample_library, lambda: "abc"
    )

    # --- verify ---
    assert "    pub mod mac {\n        pub mod chmin {\n" in result
    assert "            macro_rules! chmin {\n" in result
    assert "#[macro_export]" not in result
    assert "            pub(crate) use {chmin};\n" in result
    assert "pub mod ds" not in result


def test_bundle_unknown_symbol(sample_library: Library) -> None:
    with pytest.raises(UnknownSymbolError):
        mod_bundler.bundle("use nekolib::ds::Nope;\n", sample_library, _no_provenance)


def test_required_units_is_closed_under_dependencies(sample_library: Library) -> None:
    # --- execute ---
    units = mod_bundler.required_units([("ds", "Dsu")], sample_library)

    # --- verify ---
    assert units == [UnitId("ds", "dsu"), UnitId("utils", "bits"), UnitId("utils", "ops")]
    for uid in units:
        assert sample_library.units[uid].required <= set(units)


def test_required_set_groups_by_category(sample_library: Library) -> None:
    required = mod_bundler.required_set([("utils", "Monoid")], sample_library)
    assert list(required) == ["utils"]
    assert [name for name, _ in required["utils"]] == ["bits", "ops"]
    assert all(entry.name == "lib.rs" for _, entry in required["utils"])


def test_bundle_inlines_module_files_and_inner_attributes(tmp_path: Path) -> None:
    # --- setup ---
    root = write_library(
        tmp_path / "lib",
        {
            "ds": {"seg": "#![allow(clippy::all)]\nmod node;\npub use node::Node;\n"},
            "utils": {"ops": "pub trait Op {}\n"},
        },
        {"ds/seg": ["utils/ops"]},
        files={"ds/seg/src/node.rs": "/// A node.\npub struct Node;\n"},
    )
    library = build_library(root)

    # --- execute ---
    result = mod_bundler.bundle("use nekolib::ds::Node;\n", library, lambda: "c")

    # --- verify ---
    assert (
        "        pub mod seg {\n"
        "            #![allow(clippy::all)]\n"
        "            use crate::nekolib::utils::ops;\n"
        "            mod node {\n"
        "                pub struct Node;\n"
        "            }\n"
        "            pub use node::Node;\n"
        "        }\n"
    ) in result


def test_bundle_custom_library_name(tmp_path: Path) -> None:
    # --- setup ---
    root = write_library(tmp_path / "lib", {"ds": {"dsu": "pub struct Dsu;\n"}})
    library = build_library(root, name="mylib")

    # --- execute ---
    result = mod_bundler.bundle("use mylib::ds::Dsu;\n", library, lambda: "c")

    # --- verify ---
    assert "pub mod mylib {\n" in result
    assert "pub mod nekolib" not in result


def test_bundle_same_category_dependency(tmp_path: Path) -> None:
    """a depends on b; using only a::f pulls in both, sorted by name."""
    # --- setup ---
    root = write_library(
        tmp_path / "lib",
        {"catA": {"a": "use b::g;\npub fn f() { g() }\n", "b": "pub fn g() {}\n"}},
        {"catA/a": ["catA/b"]},
    )
    library = build_library(root)

    # --- execute ---
    usages = [("catA", "a", "f")]
    result = mod_bundler.bundle("use nekolib::catA::a::f;\n", library, lambda: "r")

    # --- verify ---
    assert mod_bundler.required_units(usages, library) == [
        UnitId("catA", "a"),
        UnitId("catA", "b"),
    ]
    assert result.endswith(
        "pub mod nekolib {\n"
        "    pub mod catA {\n"
        "        pub mod a {\n"
        "            use crate::nekolib::catA::b;\n"
        "            use b::g;\n"
        "            pub fn f() { g() }\n"
        "        }\n"
        "        #[allow(unused_imports)]\n"
        "        pub use a::*;\n"
        "        pub mod b {\n"
        "            pub fn g() {}\n"
        "        }\n"
        "        #[allow(unused_imports)]\n"
        "        pub use b::*;\n"
        "    }\n"
        "}\n"
    )


def test_bundle_aliased_dependency_imported_once(tmp_path: Path) -> None:
    # --- setup ---
    alias_manifest = cargo_toml("a", {"b": "../../catA/b", "b-alias": "../../catA/b"})
    root = write_library(
        tmp_path / "lib",
        {"catA": {"a": "pub fn f() {}\n", "b": "pub fn g() {}\n"}},
        files={"catA/a/Cargo.toml": alias_manifest},
    )
    library = build_library(root)

    # --- execute ---
    result = mod_bundler.bundle("use nekolib::catA::a::f;\n", library, lambda: "r")

    # --- verify ---
    assert library.units[UnitId("catA", "a")].dependencies == (
        UnitId("catA", "b"),
        UnitId("catA", "b"),
    )
    assert result.count("use crate::nekolib::catA::b;\n") == 1
