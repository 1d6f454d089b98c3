# src/crate_bundle/cli.py

import argparse
import os
import platform
import sys
from difflib import get_close_matches
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path

from .bundler import ProvenanceSupplier, bundle
from .config import find_config, load_config
from .config_resolve import resolve_config
from .errors import BundleError, BundleIOError, ParseError
from .manifest import build_library
from .meta import DESCRIPTION, PROGRAM_DISPLAY, PROGRAM_SCRIPT
from .provenance import fetch_provenance
from .types import ConfigResolved
from .utils import safe_log, strip_non_ascii
from .utils_logs import LEVEL_ORDER, get_logger, set_log_level

# --------------------------------------------------------------------------- #
# CLI setup and helpers
# --------------------------------------------------------------------------- #


class HintingArgumentParser(argparse.ArgumentParser):
    def error(self, message: str) -> None:  # type: ignore[override]
        known_opts: list[str] = []
        for action in self._actions:
            known_opts.extend([s for s in action.option_strings if s])

        hint_lines: list[str] = []
        # "unrecognized arguments: --strip-non-asci ..."
        if "unrecognized arguments:" in message:
            bad = message.split("unrecognized arguments:", 1)[1].strip()
            bad_args = [tok for tok in bad.split() if tok.startswith("-")]
            for arg in bad_args:
                close = get_close_matches(arg, known_opts, n=1, cutoff=0.6)
                if close:
                    hint_lines.append(f"Hint: did you mean {close[0]}?")

        self.print_usage(sys.stderr)
        full = f"{self.prog}: error: {message}"
        if hint_lines:
            full += "\n" + "\n".join(hint_lines)
        self.exit(2, full + "\n")


def _setup_parser() -> argparse.ArgumentParser:
    """Define and return the CLI argument parser."""
    parser = HintingArgumentParser(prog=PROGRAM_SCRIPT, description=DESCRIPTION)

    parser.add_argument(
        "source",
        nargs="?",
        metavar="SOURCE",
        help="Consumer Rust source file ('-' reads standard input).",
    )

    parser.add_argument(
        "-l", "--lib-path", help="Root directory of the library workspace."
    )
    parser.add_argument(
        "-o", "--out", help="Write the bundle here instead of standard output."
    )
    parser.add_argument("-c", "--config", help="Path to a config file.")
    parser.add_argument(
        "--name", help="Crate name the consumer imports the library as."
    )
    parser.add_argument(
        "--commit",
        metavar="REV",
        help="Revision to stamp into the output instead of asking git.",
    )
    parser.add_argument(
        "--strip-non-ascii",
        dest="strip_non_ascii",
        action="store_const",
        const=True,
        default=None,
        help="Drop non-ASCII characters from every source before parsing.",
    )

    # --- Version and verbosity ---
    parser.add_argument("--version", action="store_true", help="Show version info.")

    log_level = parser.add_mutually_exclusive_group()
    log_level.add_argument(
        "-q",
        "--quiet",
        action="store_const",
        const="warning",
        dest="log_level",
        help="Suppress non-critical output (same as --log-level warning).",
    )
    log_level.add_argument(
        "-v",
        "--verbose",
        action="store_const",
        const="debug",
        dest="log_level",
        help="Verbose output (same as --log-level debug).",
    )
    log_level.add_argument(
        "--log-level",
        choices=LEVEL_ORDER,
        default=None,
        dest="log_level",
        help="Set log verbosity level.",
    )
    return parser


def get_version() -> str:
    try:
        return version(PROGRAM_SCRIPT)
    except PackageNotFoundError:
        return "unknown"


def _read_consumer(source: str, *, ascii_only: bool) -> tuple[str, str]:
    """Return (text, origin) for the consumer program."""
    if source == "-":
        text, origin = sys.stdin.read(), "<stdin>"
    else:
        path = Path(source)
        try:
            text = path.read_text(encoding="utf-8")
        except UnicodeDecodeError as e:
            raise ParseError("not valid UTF-8", path) from e
        except OSError as e:
            raise BundleIOError(path, e) from e
        origin = str(path)
    return (strip_non_ascii(text) if ascii_only else text), origin


def _provenance_supplier(
    args: argparse.Namespace, resolved: ConfigResolved
) -> ProvenanceSupplier:
    commit = getattr(args, "commit", None)
    if commit:
        return lambda: str(commit)
    return lambda: str(fetch_provenance(resolved["lib_path"]))


def _write_output(text: str, out: str | None) -> None:
    if out is None or out == "-":
        sys.stdout.write(text)
        sys.stdout.flush()
        return
    path = Path(out)
    try:
        path.write_text(text, encoding="utf-8")
    except OSError as e:
        raise BundleIOError(path, e) from e


# --------------------------------------------------------------------------- #
# Main entry
# --------------------------------------------------------------------------- #


def main(argv: list[str] | None = None) -> int:
    logger = get_logger()  # init (use env + defaults)

    try:
        parser = _setup_parser()
        args = parser.parse_args(argv)

        # --- Early log level (CLI only; config may refine it) ---
        if args.log_level:
            set_log_level(args.log_level)

        logger.debug(
            "Runtime: Python %s (%s)",
            platform.python_version(),
            platform.python_implementation(),
        )

        # --- Version flag ---
        if args.version:
            print(f"{PROGRAM_DISPLAY} {get_version()}")  # noqa: T201
            return 0

        if not args.source:
            parser.error("the following arguments are required: SOURCE")

        # --- Load configuration ---
        cwd = Path.cwd().resolve()
        config_path = find_config(args, cwd)
        file_cfg = load_config(config_path) if config_path else None
        resolved = resolve_config(
            args,
            file_cfg,
            env=os.environ,
            home=Path.home(),
            config_dir=config_path.parent if config_path else cwd,
            cwd=cwd,
        )
        set_log_level(resolved["log_level"])
        if config_path:
            resolved["config_path"] = config_path
            logger.debug("🔧 Using config: %s", config_path)
        logger.debug("📚 Library: %s", resolved["lib_path"])

        # --- Bundle ---
        ascii_only = resolved["strip_non_ascii"]
        source, origin = _read_consumer(args.source, ascii_only=ascii_only)
        library = build_library(
            resolved["lib_path"],
            name=resolved["library_name"],
            ascii_only=ascii_only,
        )
        output = bundle(
            source,
            library,
            _provenance_supplier(args, resolved),
            doc_url=resolved["doc_url"],
            ascii_only=ascii_only,
            origin=origin,
        )
        _write_output(output, args.out)

    except BundleError as e:
        # controlled termination
        try:
            logger.error(str(e))  # noqa: TRY400
        except Exception:  # noqa: BLE001
            safe_log(f"[FATAL] Logging failed while reporting: {e}")
        return e.code

    except Exception as e:  # noqa: BLE001
        # unexpected internal error
        try:
            logger.critical("Unexpected internal error: %s", e, exc_info=True)
        except Exception:  # noqa: BLE001
            safe_log(f"[FATAL] Logging failed while reporting: {e}")
        return getattr(e, "code", 1)

    else:
        return 0
