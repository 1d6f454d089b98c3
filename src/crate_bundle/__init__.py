# src/crate_bundle/__init__.py

"""Crate Bundle: paste the parts of a Rust library a program uses into it.

Full developer API
==================
This package re-exports the non-private symbols of its submodules for
programmatic use. Anything prefixed with "_" is internal and may change.

Highlights:
    - main()              → CLI entrypoint
    - build_library()     → Read the library workspace into a unit graph
    - bundle()            → Append required units to a consumer source
    - polish_library()    → Strip docs and tests from one unit's text
    - fetch_provenance()  → Revision id of the library checkout
"""

from .bundler import (
    ProvenanceSupplier,
    bundle,
    bundle_file,
    required_set,
    required_units,
)
from .cli import (
    main,
)
from .closure import topological_order, transitive_closure
from .config import find_config, load_config, validate_config
from .config_resolve import determine_log_level, resolve_config
from .constants import (
    DEFAULT_DOC_URL,
    DEFAULT_ENV_LIB_PATH,
    DEFAULT_ENV_LOG_LEVEL,
    DEFAULT_LIB_PATH,
    DEFAULT_LIBRARY_NAME,
    DEFAULT_LOG_LEVEL,
)
from .errors import (
    BundleError,
    BundleIOError,
    ConfigError,
    CyclicDependencyError,
    ManifestError,
    ParseError,
    ProvenanceError,
    UnknownSymbolError,
    UnsupportedDeclarationError,
)
from .manifest import build_library, dependency_paths, export_items
from .meta import (
    PROGRAM_DISPLAY,
    PROGRAM_ENV,
    PROGRAM_PACKAGE,
    PROGRAM_SCRIPT,
)
from .polish import Polished, polish_library, polish_source
from .provenance import Provenance, fetch_provenance
from .resolve import module_file, resolve_nested_mod
from .runtime import Runtime, current_runtime
from .types import (
    ConfigInput,
    ConfigResolved,
    Export,
    ExportKind,
    Library,
    RequiredSet,
    SymbolIndex,
    SymbolPath,
    Unit,
    UnitId,
)
from .usage import extract_usages, resolve_usages
from .utils import load_jsonc, should_use_color, strip_non_ascii
from .utils_logs import LEVEL_ORDER, get_logger, set_log_level


__all__ = [  # noqa: RUF022
    # --- CLI ---
    "main",
    #
    # --- Bundling pipeline ---
    "build_library",
    "bundle",
    "bundle_file",
    "dependency_paths",
    "export_items",
    "extract_usages",
    "fetch_provenance",
    "module_file",
    "polish_library",
    "polish_source",
    "required_set",
    "required_units",
    "resolve_nested_mod",
    "resolve_usages",
    "topological_order",
    "transitive_closure",
    #
    # --- Config Handling ---
    "determine_log_level",
    "find_config",
    "load_config",
    "resolve_config",
    "validate_config",
    #
    # --- Constants / Metadata / Runtime ---
    "DEFAULT_DOC_URL",
    "DEFAULT_ENV_LIB_PATH",
    "DEFAULT_ENV_LOG_LEVEL",
    "DEFAULT_LIB_PATH",
    "DEFAULT_LIBRARY_NAME",
    "DEFAULT_LOG_LEVEL",
    "PROGRAM_DISPLAY",
    "PROGRAM_ENV",
    "PROGRAM_PACKAGE",
    "PROGRAM_SCRIPT",
    "current_runtime",
    #
    # --- utils ---
    "LEVEL_ORDER",
    "get_logger",
    "load_jsonc",
    "set_log_level",
    "should_use_color",
    "strip_non_ascii",
    #
    # --- Errors ---
    "BundleError",
    "BundleIOError",
    "ConfigError",
    "CyclicDependencyError",
    "ManifestError",
    "ParseError",
    "ProvenanceError",
    "UnknownSymbolError",
    "UnsupportedDeclarationError",
    #
    # --- Types ---
    "ConfigInput",
    "ConfigResolved",
    "Export",
    "ExportKind",
    "Library",
    "Polished",
    "Provenance",
    "ProvenanceSupplier",
    "RequiredSet",
    "Runtime",
    "SymbolIndex",
    "SymbolPath",
    "Unit",
    "UnitId",
]
