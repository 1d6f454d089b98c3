# src/crate_bundle/provenance.py
"""Revision id of the library checkout, stamped into bundled output."""

from __future__ import annotations

import subprocess
from dataclasses import dataclass
from pathlib import Path

from .errors import ProvenanceError
from .utils_logs import get_logger


@dataclass(frozen=True)
class Provenance:
    commit: str
    dirty: bool = False

    def __str__(self) -> str:
        return f"{self.commit}-dirty" if self.dirty else self.commit


def _git(path: Path, *args: str) -> str:
    try:
        result = subprocess.run(
            ["git", *args],  # noqa: S607
            cwd=path,
            capture_output=True,
            text=True,
            check=True,
        )
    except FileNotFoundError as e:
        xmsg = "git executable not found"
        raise ProvenanceError(xmsg) from e
    except NotADirectoryError as e:
        xmsg = f"not a directory: {path}"
        raise ProvenanceError(xmsg) from e
    except subprocess.CalledProcessError as e:
        detail = (e.stderr or "").strip() or f"exit status {e.returncode}"
        xmsg = f"git {' '.join(args)} failed in {path}: {detail}"
        raise ProvenanceError(xmsg) from e
    return result.stdout


def fetch_provenance(path: Path) -> Provenance:
    """Return the HEAD commit of the checkout at `path`, flagged if dirty."""
    logger = get_logger()
    logger.trace("[PROVENANCE] reading git state of %s", path)

    commit = _git(path, "log", "-1", "--format=%H").strip()
    if not commit:
        xmsg = f"no commits in repository at {path}"
        raise ProvenanceError(xmsg)
    dirty = bool(_git(path, "status", "-s").strip())

    provenance = Provenance(commit, dirty)
    logger.debug("[PROVENANCE] %s", provenance)
    return provenance
