# tests/utils/__init__.py

from .library import cargo_toml, write_library
from .patch_everywhere import patch_everywhere
from .trace import TRACE, make_trace

__all__ = [
    "TRACE",
    "cargo_toml",
    "make_trace",
    "patch_everywhere",
    "write_library",
]
