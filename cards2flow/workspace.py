# cards2flow/workspace.py
from __future__ import annotations

import shutil
from pathlib import Path
from typing import Optional

from .constants import ASSETS_CARDS_DIR, README_BEGIN_MARKER, README_END_MARKER
from .diagnostics import Diagnostic
from .flow_fmt import render_readme_section
from .graph import FlowGraph
from .io import iter_card_files
from .writer import Markers, PlannedWrite, plan_write

README_MARKERS = Markers(begin=README_BEGIN_MARKER, end=README_END_MARKER)


def copy_cards(cards_dir: Path, out_dir: Path) -> list[Path]:
    """Mirror every candidate card file into the pack's asset directory."""
    dest_root = out_dir / ASSETS_CARDS_DIR
    copied: list[Path] = []
    for src in iter_card_files(cards_dir):
        dest = dest_root / src.relative_to(cards_dir)
        dest.parent.mkdir(parents=True, exist_ok=True)
        shutil.copyfile(src, dest)
        copied.append(dest)
    return copied


def readme_entries(graphs: list[FlowGraph]) -> list[tuple[str, str]]:
    return [(g.flow_name, g.entry or "unknown") for g in graphs]


def plan_readme(
    readme_path: Path, name: str, graphs: list[FlowGraph]
) -> tuple[Optional[PlannedWrite], list[Diagnostic]]:
    """README keeps hand-written text; only the flows section is regenerated.

    A README without the section markers gets the section appended.
    """
    return plan_write(
        readme_path,
        readme_path.name,
        render_readme_section(readme_entries(graphs)),
        README_MARKERS,
        preamble=f"# {name}\n\nGenerated by cards2flow.\n\n",
        append=True,
    )
