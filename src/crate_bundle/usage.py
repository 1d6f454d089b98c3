# src/crate_bundle/usage.py
"""Find the library paths a consumer program imports."""

from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path

from .constants import DEFAULT_LIBRARY_NAME
from .syntax import flatten_use_tree, parse_rust, walk
from .types import Library, SymbolPath, UnitId
from .utils_logs import get_logger


def extract_usages(
    source: str,
    *,
    root: str = DEFAULT_LIBRARY_NAME,
    origin: str | Path | None = None,
) -> list[SymbolPath]:
    """Sorted, deduplicated `use` paths rooted at `root`, with `root` dropped.

    `use` declarations anywhere in the file count, including ones inside
    function bodies. Renames are looked up by their original name.
    """
    tree = parse_rust(source, origin)

    paths: set[SymbolPath] = set()
    for node in walk(tree.root, descend=lambda n: n.type != "token_tree"):
        if node.type != "use_declaration":
            continue
        argument = node.child_by_field_name("argument")
        if argument is not None:
            paths.update(flatten_use_tree(argument, rename="original"))

    return [p[1:] for p in sorted(paths) if len(p) > 1 and p[0] == root]


def resolve_usages(usages: Iterable[SymbolPath], library: Library) -> list[UnitId]:
    """Owning unit of every usage; raises UnknownSymbolError on the first miss."""
    logger = get_logger()
    owners: set[UnitId] = set()
    for path in usages:
        owner = library.symbols.lookup(path)
        logger.trace("[USAGE] %s → %s", "::".join(path), owner)
        owners.add(owner)
    return sorted(owners)
