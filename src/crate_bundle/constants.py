# src/crate_bundle/constants.py
"""
Central constants used across the project.
"""

# --- env keys ---
DEFAULT_ENV_LOG_LEVEL: str = "LOG_LEVEL"
DEFAULT_ENV_LIB_PATH: str = "LIB_PATH"

# --- library layout ---
MANIFEST_NAME: str = "Cargo.toml"
DEFAULT_ENTRY: str = "src/lib.rs"
MOD_ROOT_STEMS: tuple[str, ...] = ("lib", "main", "mod")

# --- config defaults ---
DEFAULT_LIBRARY_NAME: str = "nekolib"
DEFAULT_LIB_PATH: str = "~/git/rsk0315/nekolib/nekolib-doc"
DEFAULT_DOC_URL: str = "https://rsk0315.github.io/nekolib/nekolib_doc/index.html"
DEFAULT_LOG_LEVEL: str = "info"
DEFAULT_STRIP_NON_ASCII: bool = False

# --- output layout ---
INDENT: str = "    "
UNIT_BODY_DEPTH: int = 3  # root mod > category mod > unit mod
