# src/crate_bundle/bundler.py
"""Assemble the consumer source and its required units into one file.

Output layout (after the untouched consumer source):

    /// This module is bundled automatically.
    /// Commit: <provenance>
    #[allow(unused)]
    pub mod <root> {
        pub mod <category> {
            pub mod <unit> {
                use crate::<root>::<dep category>::<dep unit>;
                <polished unit body>
                pub(crate) use {<exported macros>};
            }
            #[allow(unused_imports)]
            pub use <unit>::*;
        }
    }

Categories and units are emitted in sorted order.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from pathlib import Path

from .constants import INDENT, UNIT_BODY_DEPTH
from .polish import Polished, polish_source
from .resolve import resolve_nested_mod
from .types import Library, RequiredSet, SymbolPath, UnitId
from .usage import extract_usages, resolve_usages
from .utils import plural
from .utils_logs import get_logger

ProvenanceSupplier = Callable[[], str]


def required_units(usages: Iterable[SymbolPath], library: Library) -> list[UnitId]:
    """Units referenced by `usages` plus everything they depend on, sorted."""
    needed: set[UnitId] = set()
    for uid in resolve_usages(usages, library):
        needed.add(uid)
        needed.update(library.units[uid].required)
    return sorted(needed)


def required_set(usages: Iterable[SymbolPath], library: Library) -> RequiredSet:
    result: RequiredSet = {}
    for uid in required_units(usages, library):
        result.setdefault(uid.category, []).append((uid.name, library.units[uid].entry))
    return result


def bundle_file(
    library: Library,
    unit_id: UnitId,
    *,
    depth: int = UNIT_BODY_DEPTH,
    ascii_only: bool = False,
) -> Polished:
    """Flatten and polish one unit."""
    entry = library.units[unit_id].entry
    expanded = resolve_nested_mod(entry, ascii_only=ascii_only)
    return polish_source(expanded, depth=depth, origin=entry)


def _header(commit: str, doc_url: str | None) -> str:
    lines = ["", "/// This module is bundled automatically."]
    if doc_url:
        lines.append(f"/// See <{doc_url}> for documentation.")
    lines.append(f"/// Commit: {commit}")
    lines.append("#[allow(unused)]")
    return "\n".join(lines) + "\n"


def _unit_block(
    library: Library,
    uid: UnitId,
    *,
    ascii_only: bool,
) -> str:
    unit = library.units[uid]
    outer = INDENT * (UNIT_BODY_DEPTH - 1)
    body = INDENT * UNIT_BODY_DEPTH
    polished = bundle_file(library, uid, ascii_only=ascii_only)

    lines = [f"{outer}pub mod {uid.name} {{"]
    lines.extend(polished.inner_attributes)
    lines.extend(
        f"{body}use crate::{library.name}::{dep.category}::{dep.name};"
        for dep in dict.fromkeys(unit.dependencies)
    )
    lines.extend(polished.items)
    if unit.macro_exports:
        lines.append(f"{body}pub(crate) use {{{', '.join(unit.macro_exports)}}};")
    lines.append(f"{outer}}}")
    lines.append(f"{outer}#[allow(unused_imports)]")
    lines.append(f"{outer}pub use {uid.name}::*;")
    return "\n".join(lines) + "\n"


def bundle(
    source: str,
    library: Library,
    provenance: ProvenanceSupplier,
    *,
    doc_url: str | None = None,
    ascii_only: bool = False,
    origin: str | Path | None = None,
) -> str:
    """Return `source` followed by every library unit it needs.

    When the consumer uses nothing from the library the source is returned
    unchanged and `provenance` is never called.
    """
    logger = get_logger()
    usages = extract_usages(source, root=library.name, origin=origin)
    required = required_set(usages, library)
    if not required:
        logger.info("No %s imports found; nothing to bundle.", library.name)
        return source

    count = sum(len(members) for members in required.values())
    logger.info("📦 Bundling %d unit%s from %s", count, plural(count), library.name)

    out = [source, _header(provenance(), doc_url), f"pub mod {library.name} {{\n"]
    for category, members in sorted(required.items()):
        out.append(f"{INDENT}pub mod {category} {{\n")
        for name, entry in members:
            logger.debug("[BUNDLE] %s::%s (%s)", category, name, entry)
            out.append(_unit_block(library, UnitId(category, name), ascii_only=ascii_only))
        out.append(f"{INDENT}}}\n")
    out.append("}\n")
    return "".join(out)
