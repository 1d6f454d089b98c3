# src/crate_bundle/manifest.py
"""Build the unit graph and symbol index from the library's Cargo manifests.

Layout convention:

    <root>/Cargo.toml                    path-deps on categories
    <category>/Cargo.toml                path-deps on units
    <unit>/Cargo.toml                    path-deps on other units
    <unit>/src/lib.rs                    entry file (or [lib] path)

Any malformed manifest, missing dependency target or unparsable entry file
aborts the traversal; no partial graph is returned.
"""

from __future__ import annotations

import tomllib
from pathlib import Path
from typing import Any

from .closure import transitive_closure
from .constants import DEFAULT_ENTRY, DEFAULT_LIBRARY_NAME, MANIFEST_NAME
from .errors import BundleIOError, ManifestError
from .syntax import (
    NAMED_EXPORT_KINDS,
    DeclKind,
    flatten_use_tree,
    parse_rust,
    split_declarations,
)
from .types import Export, ExportKind, Library, SymbolIndex, Unit, UnitId
from .utils import plural, read_source
from .utils_logs import get_logger

# --------------------------------------------------------------------------- #
# manifests
# --------------------------------------------------------------------------- #


def load_manifest(path: Path) -> dict[str, Any]:
    """Read and parse one Cargo.toml."""
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError as e:
        raise ManifestError("manifest not found", path) from e
    except OSError as e:
        raise BundleIOError(path, e) from e

    try:
        return tomllib.loads(text)
    except tomllib.TOMLDecodeError as e:
        xmsg = f"invalid TOML: {e}"
        raise ManifestError(xmsg, path) from e


def _path_dependencies(manifest_path: Path, data: dict[str, Any]) -> dict[str, Path]:
    deps = data.get("dependencies", {})
    if not isinstance(deps, dict):
        raise ManifestError("[dependencies] must be a table", manifest_path)

    crate_dir = manifest_path.parent
    result: dict[str, Path] = {}
    for name, spec in deps.items():
        # registry / git dependencies are not bundled
        if not isinstance(spec, dict) or "path" not in spec:
            continue
        raw = spec["path"]
        if not isinstance(raw, str):
            xmsg = f"dependency {name!r}: path must be a string"
            raise ManifestError(xmsg, manifest_path)
        try:
            target = (crate_dir / raw).resolve(strict=True)
        except (OSError, RuntimeError) as e:
            xmsg = f"dependency {name!r} points to missing path {raw!r}"
            raise ManifestError(xmsg, manifest_path) from e
        result[name.replace("-", "_")] = target
    return result


def dependency_paths(manifest_path: Path) -> dict[str, Path]:
    """Path dependencies of a manifest: normalized name → canonical directory.

    Declaration order is preserved.
    """
    return _path_dependencies(manifest_path, load_manifest(manifest_path))


def entry_path(unit_dir: Path, data: dict[str, Any]) -> Path:
    lib = data.get("lib", {})
    raw = lib.get("path") if isinstance(lib, dict) else None
    if raw is not None and not isinstance(raw, str):
        raise ManifestError("[lib] path must be a string", unit_dir / MANIFEST_NAME)
    return unit_dir / (raw or DEFAULT_ENTRY)


# --------------------------------------------------------------------------- #
# exports
# --------------------------------------------------------------------------- #


def export_items(entry: Path, *, ascii_only: bool = False) -> list[Export]:
    """Symbols a unit's entry file makes visible at its top level.

    - `pub` items (const, enum, fn, mod, static, struct, trait, type, union)
    - names re-exported by `pub use` (aliases for renames)
    - `#[macro_export]` macro_rules
    """
    tree = parse_rust(read_source(entry, ascii_only=ascii_only), entry)
    block = split_declarations(tree.root, entry)

    exports: list[Export] = []
    for decl in block.decls:
        if decl.kind is DeclKind.USE:
            argument = decl.node.child_by_field_name("argument")
            if not decl.is_public or argument is None:
                continue
            for leaf in flatten_use_tree(argument, rename="alias"):
                if leaf and leaf[-1] not in ("*", ""):
                    exports.append(Export(leaf[-1]))
        elif decl.kind is DeclKind.MACRO_RULES:
            if decl.attribute("macro_export") is not None and decl.name:
                exports.append(Export(decl.name, ExportKind.MACRO_EXPORT))
        elif decl.kind in NAMED_EXPORT_KINDS and decl.is_public and decl.name:
            exports.append(Export(decl.name))
    return exports


# --------------------------------------------------------------------------- #
# graph
# --------------------------------------------------------------------------- #


def build_library(
    root: Path,
    *,
    name: str = DEFAULT_LIBRARY_NAME,
    ascii_only: bool = False,
) -> Library:
    """Traverse the library at `root` into a Library graph."""
    logger = get_logger()
    root = root.resolve()
    logger.debug("[LIBRARY] traversing %s", root)

    unit_dirs: dict[UnitId, Path] = {}
    by_dir: dict[Path, UnitId] = {}
    for category, category_dir in dependency_paths(root / MANIFEST_NAME).items():
        category_manifest = category_dir / MANIFEST_NAME
        for unit_name, unit_dir in dependency_paths(category_manifest).items():
            uid = UnitId(category, unit_name)
            if unit_dir in by_dir:
                xmsg = f"{unit_dir} is listed as both {by_dir[unit_dir]} and {uid}"
                raise ManifestError(xmsg, category_manifest)
            by_dir[unit_dir] = uid
            unit_dirs[uid] = unit_dir
            logger.trace("[LIBRARY] unit %s at %s", uid, unit_dir)

    deps: dict[UnitId, tuple[UnitId, ...]] = {}
    entries: dict[UnitId, Path] = {}
    for uid in sorted(unit_dirs):
        manifest = unit_dirs[uid] / MANIFEST_NAME
        data = load_manifest(manifest)
        targets: list[UnitId] = []
        for dep_name, dep_dir in _path_dependencies(manifest, data).items():
            target = by_dir.get(dep_dir)
            if target is None:
                xmsg = f"dependency {dep_name!r} ({dep_dir}) is not a unit of the library"
                raise ManifestError(xmsg, manifest)
            targets.append(target)
        deps[uid] = tuple(targets)
        entries[uid] = entry_path(unit_dirs[uid], data)

    closure = transitive_closure(deps)

    symbols = SymbolIndex()
    units: dict[UnitId, Unit] = {}
    for uid in sorted(unit_dirs):
        exports = export_items(entries[uid], ascii_only=ascii_only)
        for export in exports:
            symbols.register((uid.category, export.name), uid)
            symbols.register((uid.category, uid.name, export.name), uid)
        symbols.register((uid.category, uid.name), uid, explicit=True)
        symbols.register((uid.category, uid.name, "*"), uid, explicit=True)

        units[uid] = Unit(
            id=uid,
            entry=entries[uid],
            dependencies=deps[uid],
            required=closure[uid],
            macro_exports=tuple(
                e.name for e in exports if e.kind is ExportKind.MACRO_EXPORT
            ),
        )
        logger.trace("[LIBRARY] %s exports %d symbol(s)", uid, len(exports))

    categories = {uid.category for uid in units}
    logger.debug(
        "[LIBRARY] %d unit%s in %d categor%s",
        len(units),
        plural(units),
        len(categories),
        "ies" if len(categories) != 1 else "y",
    )
    return Library(name=name, root=root, units=units, symbols=symbols)
