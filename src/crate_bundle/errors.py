# src/crate_bundle/errors.py
"""Error taxonomy.

Every error here is fatal at the point it is raised: the bundler never
produces partial output. `cli.main()` is the only place they are caught.
"""

from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path


class BundleError(Exception):
    """Base class for all controlled failures (exit code in `code`)."""

    code: int = 1


class ConfigError(BundleError, ValueError):
    """Invalid configuration file, environment value or CLI combination."""


class ManifestError(BundleError):
    """A Cargo.toml is malformed or names a dependency that does not exist."""

    def __init__(self, message: str, manifest: Path | None = None) -> None:
        self.manifest = manifest
        if manifest is not None:
            message = f"{manifest}: {message}"
        super().__init__(message)


class ParseError(BundleError):
    """Text does not conform to the Rust grammar."""

    def __init__(
        self,
        message: str,
        origin: str | Path | None = None,
        line: int | None = None,
        column: int | None = None,
    ) -> None:
        self.origin = origin
        self.line = line
        self.column = column
        where = str(origin) if origin is not None else "<source>"
        if line is not None:
            where += f":{line}"
            if column is not None:
                where += f":{column}"
        super().__init__(f"{where}: {message}")


class UnknownSymbolError(BundleError):
    """A consumer `use` path does not resolve to exactly one unit."""

    def __init__(self, path: tuple[str, ...], reason: str = "unknown symbol") -> None:
        self.path = path
        super().__init__(f"{reason}: {'::'.join(path)}")


class UnsupportedDeclarationError(BundleError, NotImplementedError):
    """A declaration kind the polisher was never taught about."""

    def __init__(self, kind: str, origin: str | Path | None = None) -> None:
        self.kind = kind
        where = f" in {origin}" if origin is not None else ""
        super().__init__(f"unsupported declaration kind {kind!r}{where}")


class BundleIOError(BundleError, OSError):
    """Reading part of the library or the consumer failed."""

    def __init__(self, path: Path, cause: OSError | None = None) -> None:
        self.path = path
        detail = cause.strerror if cause is not None and cause.strerror else "not found"
        super().__init__(f"cannot read {path}: {detail}")


class ProvenanceError(BundleError):
    """The revision id of the library checkout could not be determined."""


class CyclicDependencyError(BundleError):
    """The unit graph has a cycle; `units` are the ones left unordered."""

    def __init__(self, units: Iterable[object]) -> None:
        self.units = sorted(units)  # type: ignore[type-var]
        first = self.units[0]
        rest = len(self.units) - 1
        more = f" (and {rest} more)" if rest else ""
        super().__init__(f"cyclic dependency involving {first}{more}")
