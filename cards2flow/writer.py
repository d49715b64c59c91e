# cards2flow/writer.py
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .diagnostics import Diagnostic, diagnostic


class MarkerError(ValueError):
    """Generated-block markers are missing, duplicated or out of order."""


@dataclass(frozen=True)
class Markers:
    begin: str
    end: str
    # Line-comment prefix for adopting an unmarked scaffolded file.
    comment: Optional[str] = None


@dataclass(frozen=True)
class GeneratedBlock:
    """Three-region split of a file that contains one generated block.

    `begin_line`/`end_line` are the marker lines exactly as found on disk
    (including their line terminators); `before`/`after` are everything outside
    them.
    """

    start: int
    end: int
    before: str
    begin_line: str
    end_line: str
    after: str

    def merge(self, body: str) -> str:
        return f"{self.before}{self.begin_line}{body}\n{self.end_line}{self.after}"


def _strip_eol(line: str) -> str:
    if line.endswith("\n"):
        line = line[:-1]
    if line.endswith("\r"):
        line = line[:-1]
    return line


def _split_lines(text: str) -> list[str]:
    """Split on "\\n" only, keeping terminators.

    `str.splitlines` also breaks on form feeds, vertical tabs and Unicode line
    separators, which would let part of a hand-written line match a marker.
    """
    parts = text.split("\n")
    lines = [part + "\n" for part in parts[:-1]]
    if parts[-1]:
        lines.append(parts[-1])
    return lines


def split_generated_block(text: str, markers: Markers) -> Optional[GeneratedBlock]:
    """Locate the generated block in `text`.

    Returns None when the text has no markers at all. Markers are whole lines
    compared by exact string equality.
    """
    begins: list[tuple[int, str]] = []
    ends: list[tuple[int, str]] = []
    offset = 0
    for line in _split_lines(text):
        content = _strip_eol(line)
        if content == markers.begin:
            begins.append((offset, line))
        elif content == markers.end:
            ends.append((offset, line))
        offset += len(line)

    if not begins and not ends:
        return None
    if len(begins) != 1 or len(ends) != 1:
        raise MarkerError(
            f"expected exactly one {markers.begin!r} / {markers.end!r} pair, "
            f"found {len(begins)} begin and {len(ends)} end marker(s)"
        )

    (start, begin_line), (end, end_line) = begins[0], ends[0]
    if end < start:
        raise MarkerError(f"{markers.end!r} appears before {markers.begin!r}")

    return GeneratedBlock(
        start=start,
        end=end,
        before=text[:start],
        begin_line=begin_line,
        end_line=end_line,
        after=text[end + len(end_line) :],
    )


def render_block(body: str, markers: Markers) -> str:
    """A standalone generated region, as written to a new file."""
    return f"{markers.begin}\n{body}\n{markers.end}\n"


def comment_out(text: str, prefix: str) -> str:
    out: list[str] = []
    for line in text.strip().split("\n"):
        line = line.rstrip("\r")
        out.append(f"{prefix} {line}" if line.strip() else prefix)
    return "\n".join(out)


def merge_generated(
    existing: Optional[str],
    body: str,
    markers: Markers,
    *,
    preamble: str = "",
    append: bool = False,
    adopt: bool = False,
) -> str:
    """Return the file contents with the generated region replaced by `body`.

    A new (or blank) file gets `preamble` followed by the block. A file with
    content but no markers gets the block appended when `append` is set, or
    the block followed by the old content commented out when `adopt` is set
    and `markers.comment` is known. Otherwise MarkerError is raised instead of
    guessing where a block belongs.
    """
    if existing is None or not existing.strip():
        return preamble + render_block(body, markers)

    block = split_generated_block(existing, markers)
    if block is None:
        if append:
            sep = "\n" if existing.endswith("\n") else "\n\n"
            return existing + sep + render_block(body, markers)
        if adopt and markers.comment is not None:
            return (
                render_block(body, markers)
                + "\n"
                + comment_out(existing, markers.comment)
                + "\n"
            )
        raise MarkerError(
            f"file has content but no {markers.begin!r} / {markers.end!r} markers"
        )
    return block.merge(body)


def _read_text(path: Path) -> Optional[str]:
    # Bytes in, bytes out: no newline translation.
    if not path.exists():
        return None
    return path.read_bytes().decode("utf-8")


@dataclass(frozen=True)
class PlannedWrite:
    path: Path
    label: str
    body: str
    markers: Markers
    preamble: str = ""
    append: bool = False
    # Target did not exist at planning time.
    fresh: bool = False

    def render(self, existing: Optional[str]) -> str:
        return merge_generated(
            existing,
            self.body,
            self.markers,
            preamble=self.preamble,
            append=self.append,
            adopt=self.fresh,
        )


def plan_write(
    path: Path,
    label: str,
    body: str,
    markers: Markers,
    *,
    preamble: str = "",
    append: bool = False,
) -> tuple[Optional[PlannedWrite], list[Diagnostic]]:
    """Check that `path` can take a generated block without writing anything."""
    plan = PlannedWrite(
        path=path,
        label=label,
        body=body,
        markers=markers,
        preamble=preamble,
        append=append,
        fresh=not path.exists(),
    )
    diagnostics = check_plan(plan)
    if diagnostics:
        return None, diagnostics
    return plan, []


def check_plan(plan: PlannedWrite) -> list[Diagnostic]:
    """Render `plan` against the file as it is now, without writing."""
    try:
        plan.render(_read_text(plan.path))
    except (MarkerError, UnicodeDecodeError) as e:
        return [diagnostic("marker_corruption", plan.label, str(e))]
    return []


def commit_write(plan: PlannedWrite) -> bool:
    """Re-read the target, merge and write. Returns True when bytes changed."""
    existing = _read_text(plan.path)
    updated = plan.render(existing)
    if existing == updated:
        return False
    plan.path.parent.mkdir(parents=True, exist_ok=True)
    plan.path.write_bytes(updated.encode("utf-8"))
    return True
