# src/crate_bundle/polish.py
"""Strip documentation and test-only code from a flattened unit.

Passes, applied while re-serializing the declaration tree:

1. file-level docs (`//!`, `/*! */`, `#![doc ...]`) are dropped;
2. docs on every declaration are dropped, recursively through `mod`,
   `impl`, `trait` and `extern` blocks, but never inside macro bodies;
3. `#[test]` and `#[cfg(test)]` declarations are dropped;
4. `#[macro_export]` is dropped from `macro_rules!` definitions.

Declarations are re-emitted one per line block with four spaces of
indentation per nesting level. Macro definitions and item-position macro
calls are copied from the original text and only re-indented. Lines that
begin inside a string literal or block comment are never re-indented.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from tree_sitter import Node

from .constants import INDENT
from .syntax import (
    COMMENT_TYPES,
    STRING_TYPES,
    VERBATIM_KINDS,
    Attribute,
    Decl,
    DeclKind,
    SourceTree,
    parse_rust,
    split_declarations,
    walk,
)

Span = tuple[int, int]

_OPAQUE_TYPES = frozenset({"token_tree", "macro_invocation", "macro_definition"})


@dataclass
class Polished:
    """Polished unit text, split so callers can put items after `use` lines."""

    inner_attributes: list[str] = field(default_factory=list)
    items: list[str] = field(default_factory=list)

    def render(self) -> str:
        return "".join(f"{block}\n" for block in (*self.inner_attributes, *self.items))


def polish_source(
    text: str,
    *,
    depth: int = 0,
    origin: str | Path | None = None,
) -> Polished:
    """Polish `text`, indenting its top level by `depth` levels."""
    polisher = _Polisher(parse_rust(text, origin))
    inner, items = polisher.block(polisher.tree.root, depth)
    return Polished(inner, items)


def polish_library(
    text: str,
    *,
    depth: int = 0,
    origin: str | Path | None = None,
) -> str:
    return polish_source(text, depth=depth, origin=origin).render()


# --------------------------------------------------------------------------- #
# implementation
# --------------------------------------------------------------------------- #


class _Polisher:
    def __init__(self, tree: SourceTree) -> None:
        self.tree = tree
        self.src = tree.source
        # multi-line literals and block comments, whose lines must not move
        self.protected: list[Span] = [
            (n.start_byte, n.end_byte)
            for n in walk(tree.root)
            if (n.type in STRING_TYPES or n.type == "block_comment")
            and b"\n" in self.src[n.start_byte : n.end_byte]
        ]

    def block(self, container: Node, depth: int) -> tuple[list[str], list[str]]:
        block = split_declarations(container, self.tree.origin)
        inner = [self.attribute(a, depth) for a in block.inner if not a.is_doc]
        items = [self.declaration(d, depth) for d in block.decls if not d.is_test_only]
        return inner, items

    def attribute(self, attr: Attribute, depth: int) -> str:
        return self.span(attr.node.start_byte, attr.node.end_byte, depth)

    def declaration(self, decl: Decl, depth: int) -> str:
        lines: list[str] = []
        for attr in decl.attrs:
            if attr.is_doc:
                continue
            if decl.kind is DeclKind.MACRO_RULES and attr.is_macro_export:
                continue
            lines.append(self.attribute(attr, depth))

        body = decl.body
        if body is not None:
            header_cuts = [
                (c.start_byte, c.end_byte)
                for c in decl.node.children
                if c.type in COMMENT_TYPES and c.end_byte <= body.start_byte
            ]
            header = self.span(decl.start_byte, body.start_byte, depth, header_cuts)
            inner, items = self.block(body, depth + 1)
            if inner or items:
                lines.append(f"{header.rstrip()} {{")
                lines.extend(inner)
                lines.extend(items)
                lines.append(f"{INDENT * depth}}}")
            else:
                lines.append(f"{header.rstrip()} {{}}")
        elif decl.kind in VERBATIM_KINDS:
            lines.append(self.span(decl.start_byte, decl.end_byte, depth))
        else:
            cuts = self.doc_cuts(decl.node)
            lines.append(self.span(decl.start_byte, decl.end_byte, depth, cuts))

        return "\n".join(lines)

    # --- documentation inside a declaration -------------------------------

    def doc_cuts(self, node: Node) -> list[Span]:
        """Byte ranges of docs nested in `node` (field docs, inner fn items)."""
        cuts: list[Span] = []
        for child in walk(node, descend=lambda n: n.type not in _OPAQUE_TYPES):
            if child is node or child.type not in (
                *COMMENT_TYPES,
                "attribute_item",
                "inner_attribute_item",
            ):
                continue
            attr = Attribute.from_node(child)
            if attr is not None and attr.is_doc:
                cuts.append(self.whole_lines(child.start_byte, child.end_byte))
        return cuts

    def whole_lines(self, start: int, end: int) -> Span:
        """Widen a span to whole lines when nothing else shares them."""
        line_start = self.src.rfind(b"\n", 0, start) + 1
        if self.src[line_start:start].strip():
            return start, end
        if self.src[end - 1 : end] == b"\n":
            return line_start, end
        line_end = self.src.find(b"\n", end)
        if line_end == -1:
            line_end = len(self.src)
        if self.src[end:line_end].strip():
            return start, end
        return line_start, min(line_end + 1, len(self.src))

    # --- text emission ----------------------------------------------------

    def span(
        self,
        start: int,
        end: int,
        depth: int,
        cuts: list[Span] | None = None,
    ) -> str:
        """Source text of [start, end) re-indented to `depth`, minus `cuts`."""
        indent = len(INDENT) * depth
        line_start = self.src.rfind(b"\n", 0, start) + 1
        line = self.src[line_start:start]
        column = len(line) - len(line.lstrip(b" \t"))

        text, protected = self._cut(start, end, cuts or [])
        return " " * indent + _shift(text, indent - column, protected)

    def _cut(self, start: int, end: int, cuts: list[Span]) -> tuple[bytes, list[Span]]:
        kept: list[bytes] = []
        removed: list[Span] = []  # (position, bytes removed so far) breakpoints
        pos = start
        total = 0
        for cut_start, cut_end in sorted(cuts):
            cut_start, cut_end = max(cut_start, pos), min(cut_end, end)
            if cut_start >= cut_end:
                continue
            kept.append(self.src[pos:cut_start])
            total += cut_end - cut_start
            removed.append((cut_end, total))
            pos = cut_end
        kept.append(self.src[pos:end])

        def remap(offset: int) -> int:
            shift = 0
            for at, amount in removed:
                if offset >= at:
                    shift = amount
            return offset - start - shift

        protected = [
            (remap(s), remap(e))
            for s, e in self.protected
            if s < end and e > start
        ]
        return b"".join(kept), protected


def _shift(text: bytes, delta: int, protected: list[Span]) -> str:
    """Move every line after the first by `delta` columns."""
    if delta == 0:
        return text.decode("utf-8")

    lines = text.split(b"\n")
    out = [lines[0]]
    offset = len(lines[0]) + 1
    for line in lines[1:]:
        line_start = offset
        offset += len(line) + 1
        if not line.strip() or any(s < line_start < e for s, e in protected):
            out.append(line)
        elif delta > 0:
            out.append(b" " * delta + line)
        else:
            lead = len(line) - len(line.lstrip(b" "))
            out.append(line[min(lead, -delta) :])
    return b"\n".join(out).decode("utf-8")
