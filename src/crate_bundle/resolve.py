# src/crate_bundle/resolve.py
"""Inline file-backed modules (`mod foo;`) into a single source text.

Module files are located the way rustc does it for the common cases:

    src/lib.rs,  mod c;            → src/c.rs
    src/a/mod.rs, mod c;           → src/a/c.rs
    src/a/b.rs,  mod c;            → src/a/b/c.rs
    any file,    #[path = "x.rs"]  → <dir of file>/x.rs

`<name>/mod.rs` is used when `<name>.rs` does not exist.

Only declarations at the top level of each file are followed: a
file-backed module nested inside an inline `mod x { ... }` is left as is.
"""

from __future__ import annotations

from pathlib import Path

from .constants import MOD_ROOT_STEMS
from .errors import ParseError
from .syntax import Decl, DeclKind, parse_rust, split_declarations
from .utils import read_source
from .utils_logs import get_logger


def module_file(main_path: Path, name: str, path_override: str | None = None) -> Path:
    """File holding module `name` declared in `main_path`."""
    directory = main_path.parent
    if path_override is not None:
        return directory / path_override

    name = name.removeprefix("r#")
    base = directory if main_path.stem in MOD_ROOT_STEMS else directory / main_path.stem
    candidate = base / f"{name}.rs"
    nested = base / name / "mod.rs"
    if not candidate.exists() and nested.exists():
        return nested
    return candidate


def resolve_mod_source(main_path: Path, decl: Decl) -> Path:
    """File backing the `mod` declaration `decl` found in `main_path`."""
    override = decl.attribute("path")
    return module_file(
        main_path,
        decl.name or "",
        override.string_value() if override is not None else None,
    )


def resolve_nested_mod(
    path: Path,
    *,
    ascii_only: bool = False,
    _stack: tuple[Path, ...] = (),
) -> str:
    """Return the text of `path` with every `mod foo;` replaced by its file."""
    logger = get_logger()
    key = path.resolve()
    if key in _stack:
        raise ParseError("module file includes itself", path)

    tree = parse_rust(read_source(path, ascii_only=ascii_only), path)
    block = split_declarations(tree.root, path)
    src = tree.source

    pieces: list[bytes] = []
    pos = 0
    for decl in block.decls:
        if decl.kind is not DeclKind.MOD or decl.body is not None:
            continue
        semi = decl.node.children[-1]
        if semi.type != ";":
            continue
        if decl.is_test_only:
            # stripped by the polisher anyway; its file need not exist
            logger.trace("[RESOLVE] skipping test module %s in %s", decl.name, path)
            continue

        target = resolve_mod_source(path, decl)
        logger.trace("[RESOLVE] mod %s → %s", decl.name, target)
        inner = resolve_nested_mod(
            target, ascii_only=ascii_only, _stack=(*_stack, key)
        ).encode("utf-8")
        if inner and not inner.endswith(b"\n"):
            inner += b"\n"

        pieces.append(src[pos : semi.start_byte])
        pieces.append(b" {\n" + inner + b"}")
        pos = semi.end_byte

    pieces.append(src[pos:])
    return b"".join(pieces).decode("utf-8")
