# src/crate_bundle/syntax.py
"""Rust syntax layer on top of tree-sitter.

tree-sitter keeps every node's byte span, so callers can re-emit exact
source text (macro bodies) next to structurally rewritten declarations.
All offsets are byte offsets into the UTF-8 encoded source.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator
from dataclasses import dataclass, field
from enum import Enum
from functools import lru_cache
from pathlib import Path
from typing import Literal

import tree_sitter_rust
from tree_sitter import Language, Node, Parser, Tree

from .errors import ParseError, UnsupportedDeclarationError
from .types import SymbolPath

RUST = Language(tree_sitter_rust.language())

COMMENT_TYPES = frozenset({"line_comment", "block_comment"})
STRING_TYPES = frozenset({"string_literal", "raw_string_literal"})


@lru_cache(maxsize=1)
def _parser() -> Parser:
    return Parser(RUST)


# --------------------------------------------------------------------------- #
# parsing
# --------------------------------------------------------------------------- #


@dataclass(frozen=True)
class SourceTree:
    source: bytes
    tree: Tree
    origin: str | Path | None = None

    @property
    def root(self) -> Node:
        return self.tree.root_node


def parse_rust(source: str | bytes, origin: str | Path | None = None) -> SourceTree:
    """Parse Rust source, raising ParseError if the text does not conform."""
    data = source.encode("utf-8") if isinstance(source, str) else source
    tree = _parser().parse(data)
    root = tree.root_node
    if root.has_error:
        bad = _first_error(root)
        row, col = bad.start_point if bad is not None else root.start_point
        what = "missing " + bad.type if bad is not None and bad.is_missing else "syntax error"
        raise ParseError(what, origin, row + 1, col + 1)
    return SourceTree(data, tree, origin)


def _first_error(root: Node) -> Node | None:
    for node in walk(root, descend=lambda n: n.has_error):
        if node.type == "ERROR" or node.is_missing:
            return node
    return None


def walk(
    node: Node,
    *,
    descend: Callable[[Node], bool] | None = None,
) -> Iterator[Node]:
    """Pre-order traversal; children of nodes failing `descend` are skipped."""
    stack = [node]
    while stack:
        current = stack.pop()
        yield current
        if descend is None or descend(current):
            stack.extend(reversed(current.children))


def node_text(node: Node) -> str:
    return (node.text or b"").decode("utf-8")


# --------------------------------------------------------------------------- #
# comments and attributes
# --------------------------------------------------------------------------- #


def doc_comment_style(node: Node) -> Literal["outer", "inner"] | None:
    """Classify `///`, `/** */` (outer) and `//!`, `/*! */` (inner) comments."""
    text = node.text or b""
    if node.type == "line_comment":
        if text.startswith(b"//!"):
            return "inner"
        if text.startswith(b"///") and not text.startswith(b"////"):
            return "outer"
    elif node.type == "block_comment":
        if text.startswith(b"/*!"):
            return "inner"
        if text.startswith(b"/**") and not text.startswith(b"/***") and text != b"/**/":
            return "outer"
    return None


@dataclass(frozen=True)
class Attribute:
    """An outer/inner attribute, or a doc comment standing in for `#[doc]`."""

    node: Node
    path: str
    inner: bool
    arguments: str | None = None
    value: Node | None = None
    is_comment: bool = False

    @classmethod
    def from_node(cls, node: Node) -> Attribute | None:
        if node.type in COMMENT_TYPES:
            style = doc_comment_style(node)
            if style is None:
                return None
            return cls(node, "doc", inner=style == "inner", is_comment=True)

        if node.type not in ("attribute_item", "inner_attribute_item"):
            return None
        attr = next((c for c in node.named_children if c.type == "attribute"), None)
        if attr is None or not attr.named_children:
            return None
        args = attr.child_by_field_name("arguments")
        return cls(
            node,
            _squash(node_text(attr.named_children[0])),
            inner=node.type == "inner_attribute_item",
            arguments=_squash(node_text(args)) if args is not None else None,
            value=attr.child_by_field_name("value"),
        )

    @property
    def is_doc(self) -> bool:
        return self.path == "doc"

    @property
    def is_test(self) -> bool:
        if self.path == "test":
            return self.arguments is None and self.value is None
        return self.path == "cfg" and self.arguments == "(test)"

    @property
    def is_macro_export(self) -> bool:
        return self.path == "macro_export"

    def string_value(self) -> str | None:
        """Value of `#[name = "..."]`, if it is a string literal."""
        if self.value is None or self.value.type not in STRING_TYPES:
            return None
        return string_literal_value(self.value)


def _squash(text: str) -> str:
    return "".join(text.split())


def string_literal_value(node: Node) -> str:
    text = node_text(node)
    if node.type == "raw_string_literal":
        body = text[1:].strip("#")
        return body[1:-1]
    body = text[1:-1]
    simple = {"n": "\n", "t": "\t", "r": "\r", "0": "\0", "\\": "\\", '"': '"', "'": "'"}
    out: list[str] = []
    i = 0
    while i < len(body):
        ch = body[i]
        if ch != "\\" or i + 1 == len(body):
            out.append(ch)
            i += 1
            continue
        esc = body[i + 1]
        i += 2
        if esc in simple:
            out.append(simple[esc])
        elif esc == "\n":
            # line continuation swallows the leading whitespace that follows
            while i < len(body) and body[i].isspace():
                i += 1
        else:
            out.append("\\" + esc)
    return "".join(out)


# --------------------------------------------------------------------------- #
# declarations
# --------------------------------------------------------------------------- #


class DeclKind(Enum):
    """Every declaration kind the bundler knows how to handle.

    Values are the tree-sitter node types they are parsed from.
    """

    CONST = "const_item"
    ENUM = "enum_item"
    EXTERN_CRATE = "extern_crate_declaration"
    FN = "function_item"
    FN_SIGNATURE = "function_signature_item"
    FOREIGN_MOD = "foreign_mod_item"
    IMPL = "impl_item"
    MACRO_RULES = "macro_definition"
    MACRO_CALL = "macro_invocation"
    MOD = "mod_item"
    STATIC = "static_item"
    STRUCT = "struct_item"
    TRAIT = "trait_item"
    TYPE = "type_item"
    ASSOC_TYPE = "associated_type"
    UNION = "union_item"
    USE = "use_declaration"


NODE_KINDS: dict[str, DeclKind] = {kind.value: kind for kind in DeclKind}

CONTAINER_KINDS = frozenset(
    {DeclKind.MOD, DeclKind.IMPL, DeclKind.TRAIT, DeclKind.FOREIGN_MOD}
)
VERBATIM_KINDS = frozenset({DeclKind.MACRO_RULES, DeclKind.MACRO_CALL})
NAMED_EXPORT_KINDS = frozenset(
    {
        DeclKind.CONST,
        DeclKind.ENUM,
        DeclKind.FN,
        DeclKind.MOD,
        DeclKind.STATIC,
        DeclKind.STRUCT,
        DeclKind.TRAIT,
        DeclKind.TYPE,
        DeclKind.UNION,
    }
)


@dataclass
class Decl:
    kind: DeclKind
    node: Node
    attrs: list[Attribute] = field(default_factory=list)
    end_byte: int = -1

    def __post_init__(self) -> None:
        if self.end_byte < 0:
            self.end_byte = self.node.end_byte

    @property
    def start_byte(self) -> int:
        return self.node.start_byte

    @property
    def name(self) -> str | None:
        ident = self.node.child_by_field_name("name")
        return node_text(ident) if ident is not None else None

    @property
    def is_public(self) -> bool:
        return any(
            c.type == "visibility_modifier" and c.text == b"pub"
            for c in self.node.children
        )

    @property
    def body(self) -> Node | None:
        """The `{ ... }` declaration list of a container declaration."""
        if self.kind not in CONTAINER_KINDS:
            return None
        body = self.node.child_by_field_name("body")
        if body is None or body.type != "declaration_list":
            return None
        return body

    @property
    def is_test_only(self) -> bool:
        return any(a.is_test for a in self.attrs)

    def attribute(self, path: str) -> Attribute | None:
        return next((a for a in self.attrs if a.path == path), None)


@dataclass
class Block:
    """Contents of a source file or a `{ ... }` declaration list."""

    inner: list[Attribute]
    decls: list[Decl]


def split_declarations(container: Node, origin: str | Path | None = None) -> Block:
    """Group a container's children into inner attributes and declarations.

    Outer attributes and doc comments are attached to the declaration that
    follows them. Plain comments and stray `;` are not part of the result.
    """
    inner: list[Attribute] = []
    decls: list[Decl] = []
    pending: list[Attribute] = []

    for child in container.named_children:
        kind_name = child.type

        if kind_name in COMMENT_TYPES or kind_name in (
            "attribute_item",
            "inner_attribute_item",
        ):
            attr = Attribute.from_node(child)
            if attr is None:
                continue
            (inner if attr.inner else pending).append(attr)
            continue

        if kind_name == "empty_statement":
            continue

        if kind_name == "expression_statement":
            call = child.named_children[0] if child.named_children else None
            if call is None or call.type != "macro_invocation":
                raise UnsupportedDeclarationError(kind_name, origin)
            decls.append(Decl(DeclKind.MACRO_CALL, child, pending))
            pending = []
            continue

        kind = NODE_KINDS.get(kind_name)
        if kind is None:
            raise UnsupportedDeclarationError(kind_name, origin)

        decl = Decl(kind, child, pending)
        pending = []
        if kind is DeclKind.MACRO_CALL:
            # item-position `foo!(...);` keeps its terminating semicolon
            nxt = child.next_sibling
            if nxt is not None and nxt.type in (";", "empty_statement"):
                decl.end_byte = nxt.end_byte
        decls.append(decl)

    dangling = [a for a in pending if not a.is_doc]
    if dangling:
        row, col = dangling[0].node.start_point
        raise ParseError("attribute without a declaration", origin, row + 1, col + 1)

    return Block(inner, decls)


# --------------------------------------------------------------------------- #
# paths and use trees
# --------------------------------------------------------------------------- #


def path_segments(node: Node) -> SymbolPath:
    """`a::b::c` → ("a", "b", "c"); a leading `::` gives an empty first segment."""
    if node.type == "scoped_identifier":
        head_node = node.child_by_field_name("path")
        name = node.child_by_field_name("name")
        if head_node is not None:
            head = path_segments(head_node)
        else:
            head = ("",) if node.children and node.children[0].type == "::" else ()
        return (*head, node_text(name) if name is not None else "")
    return (node_text(node),)


def flatten_use_tree(
    node: Node,
    *,
    rename: Literal["original", "alias"] = "original",
) -> list[SymbolPath]:
    """Expand a `use` argument into one segment tuple per imported leaf.

    `rename` picks which side of `a as b` names the leaf: the original
    item (how a consumer's import is looked up) or the alias (the name a
    re-export makes visible). Wildcards end in a literal "*" segment.
    """
    out: list[SymbolPath] = []

    def visit(n: Node, prefix: SymbolPath) -> None:
        kind = n.type
        if kind in COMMENT_TYPES:
            return
        if kind == "use_list":
            for child in n.named_children:
                visit(child, prefix)
        elif kind == "scoped_use_list":
            path = n.child_by_field_name("path")
            if path is not None:
                base = prefix + path_segments(path)
            else:
                base = prefix + (("",) if n.children[0].type == "::" else ())
            lst = n.child_by_field_name("list")
            if lst is not None:
                visit(lst, base)
        elif kind == "use_as_clause":
            path = n.child_by_field_name("path")
            segs = path_segments(path) if path is not None else ()
            alias = n.child_by_field_name("alias")
            if rename == "alias" and alias is not None:
                segs = (*segs[:-1], node_text(alias))
            out.append(_leaf(prefix, segs))
        elif kind == "use_wildcard":
            path = next((c for c in n.named_children if c.type not in COMMENT_TYPES), None)
            segs = path_segments(path) if path is not None else ()
            out.append((*prefix, *segs, "*"))
        else:
            out.append(_leaf(prefix, path_segments(n)))

    visit(node, ())
    return out


def _leaf(prefix: SymbolPath, segs: SymbolPath) -> SymbolPath:
    # `a::{self}` imports `a` itself
    if segs and segs[-1] == "self" and (prefix or len(segs) > 1):
        return (*prefix, *segs[:-1])
    return (*prefix, *segs)
