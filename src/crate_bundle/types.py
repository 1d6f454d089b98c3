# src/crate_bundle/types.py
from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import TypedDict

from typing_extensions import NotRequired

from .errors import UnknownSymbolError

SymbolPath = tuple[str, ...]

# category -> [(unit name, entry file)], both levels sorted
RequiredSet = dict[str, list[tuple[str, Path]]]


# --- library graph -------------------------------------------------------------


@dataclass(frozen=True, order=True)
class UnitId:
    category: str
    name: str

    def __str__(self) -> str:
        return f"{self.category}::{self.name}"


class ExportKind(Enum):
    PUB_ITEM = "pub"
    MACRO_EXPORT = "macro_export"


@dataclass(frozen=True)
class Export:
    name: str
    kind: ExportKind = ExportKind.PUB_ITEM


@dataclass(frozen=True)
class Unit:
    id: UnitId
    entry: Path
    dependencies: tuple[UnitId, ...] = ()
    required: frozenset[UnitId] = frozenset()
    macro_exports: tuple[str, ...] = ()


@dataclass
class SymbolIndex:
    """Qualified path → owning unit.

    Paths registered by more than one unit are remembered as ambiguous
    unless one registration is explicit (a unit's own module path).
    """

    _owners: dict[SymbolPath, UnitId] = field(default_factory=dict)
    _explicit: set[SymbolPath] = field(default_factory=set)
    _ambiguous: dict[SymbolPath, set[UnitId]] = field(default_factory=dict)

    def register(
        self, path: SymbolPath, unit: UnitId, *, explicit: bool = False
    ) -> None:
        if explicit:
            self._owners[path] = unit
            self._explicit.add(path)
            self._ambiguous.pop(path, None)
            return
        if path in self._explicit:
            return
        owner = self._owners.get(path)
        if owner is None:
            self._owners[path] = unit
        elif owner != unit:
            self._ambiguous.setdefault(path, {owner}).add(unit)

    def lookup(self, path: SymbolPath) -> UnitId:
        """Resolve `path` by exact key.

        A longer `cat::unit::item::...` path resolves to the unit only when
        `item` is one of that unit's exports.
        """
        key = path
        if path not in self._owners and len(path) > 3:
            key = path[:3]
            if path[:2] not in self._explicit or key in self._explicit:
                raise UnknownSymbolError(path)
        if key in self._ambiguous:
            owners = ", ".join(str(u) for u in sorted(self._ambiguous[key]))
            raise UnknownSymbolError(path, f"ambiguous symbol ({owners})")
        if key not in self._owners:
            raise UnknownSymbolError(path)
        return self._owners[key]

    def __contains__(self, path: object) -> bool:
        return path in self._owners and path not in self._ambiguous

    def __len__(self) -> int:
        return len(self._owners)

    def __iter__(self) -> Iterator[SymbolPath]:
        return iter(sorted(self._owners))


@dataclass(frozen=True)
class Library:
    name: str
    root: Path
    units: dict[UnitId, Unit]
    symbols: SymbolIndex


# --- configuration -------------------------------------------------------------


class ConfigInput(TypedDict, total=False):
    lib_path: str
    library_name: str
    doc_url: str | None
    log_level: str
    strip_non_ascii: bool


class ConfigResolved(TypedDict):
    lib_path: Path
    library_name: str
    doc_url: str | None
    log_level: str
    strip_non_ascii: bool

    # where the config file lived, for diagnostics
    config_path: NotRequired[Path]
