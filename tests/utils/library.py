# tests/utils/library.py
"""Write small library workspaces laid out like the real one.

    <root>/Cargo.toml                      [dependencies] <cat> = { path = "<cat>" }
    <root>/<cat>/Cargo.toml                [dependencies] <unit> = { path = "<unit>" }
    <root>/<cat>/<unit>/Cargo.toml         [dependencies] <dep> = { path = "../../<c>/<u>" }
    <root>/<cat>/<unit>/src/lib.rs
"""

from collections.abc import Mapping, Sequence
from pathlib import Path


def cargo_toml(name: str, deps: Mapping[str, str] | None = None) -> str:
    lines = ["[package]", f'name = "{name}"', 'version = "0.1.0"', ""]
    lines.append("[dependencies]")
    for dep, path in (deps or {}).items():
        lines.append(f'{dep} = {{ path = "{path}" }}')
    return "\n".join(lines) + "\n"


def write_library(
    root: Path,
    units: Mapping[str, Mapping[str, str]],
    deps: Mapping[str, Sequence[str]] | None = None,
    files: Mapping[str, str] | None = None,
) -> Path:
    """Create a library under `root` and return `root`.

    `units` maps category → unit name → lib.rs text; `deps` maps
    "cat/unit" → ["cat/unit", ...]; `files` adds extra files relative
    to `root` (e.g. nested module files).
    """
    deps = deps or {}
    root.mkdir(parents=True, exist_ok=True)
    (root / "Cargo.toml").write_text(
        cargo_toml("library", {cat: cat for cat in units})
    )

    for cat, members in units.items():
        cat_dir = root / cat
        cat_dir.mkdir(exist_ok=True)
        (cat_dir / "Cargo.toml").write_text(
            cargo_toml(cat, {name: name for name in members})
        )
        for name, source in members.items():
            unit_dir = cat_dir / name
            (unit_dir / "src").mkdir(parents=True, exist_ok=True)
            unit_deps = {
                target.split("/")[1]: f"../../{target}"
                for target in deps.get(f"{cat}/{name}", ())
            }
            (unit_dir / "Cargo.toml").write_text(cargo_toml(name, unit_deps))
            (unit_dir / "src" / "lib.rs").write_text(source)

    for rel, text in (files or {}).items():
        target = root / rel
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(text)

    return root
