# cards2flow/tools.py
from __future__ import annotations

import os
import shutil
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .constants import GTPACK_SUFFIX

PACK_BIN_ENV = "GREENTIC_PACK_BIN"
PACK_BIN_NAME = "greentic-pack"

# Lines of tool stderr kept in error messages.
ERROR_TAIL_LINES = 20


@dataclass(frozen=True)
class BuildOutput:
    stdout: str
    stderr: str


def resolve_pack_bin(override: Optional[Path] = None) -> Path:
    """Explicit path, then $GREENTIC_PACK_BIN, then PATH."""
    if override is not None:
        return override

    env_value = os.environ.get(PACK_BIN_ENV, "").strip()
    if env_value:
        return Path(env_value)

    found = shutil.which(PACK_BIN_NAME)
    if not found:
        raise FileNotFoundError(
            f"{PACK_BIN_NAME} not found on PATH (set {PACK_BIN_ENV} or pass "
            "--greentic-pack-bin)"
        )
    return Path(found)


def tail_lines(text: str, max_lines: int = ERROR_TAIL_LINES) -> str:
    lines = text.strip().splitlines()
    return "\n".join(lines[-max_lines:])


def _run_pack(bin_path: Path, *args: str) -> BuildOutput:
    cmd = [str(bin_path), *args]
    proc = subprocess.run(cmd, capture_output=True, text=True, check=False)
    if proc.returncode != 0:
        detail = tail_lines(proc.stderr or proc.stdout)
        raise RuntimeError(
            f"{' '.join(cmd)} failed with exit code {proc.returncode}"
            + (f": {detail}" if detail else "")
        )
    return BuildOutput(stdout=proc.stdout, stderr=proc.stderr)


def run_pack_new(bin_path: Path, out_dir: Path, name: str) -> BuildOutput:
    """Scaffold a pack workspace (`pack.yaml` and friends) in `out_dir`."""
    return _run_pack(bin_path, "new", "--dir", str(out_dir), name)


def run_pack_update(bin_path: Path, workspace: Path) -> BuildOutput:
    return _run_pack(bin_path, "update", "--in", str(workspace))


def run_pack_resolve(bin_path: Path, workspace: Path) -> BuildOutput:
    return _run_pack(bin_path, "resolve", "--in", str(workspace))


def run_pack_doctor(bin_path: Path, workspace: Path) -> BuildOutput:
    return _run_pack(bin_path, "doctor", "--in", str(workspace))


def run_pack_build(bin_path: Path, workspace: Path, gtpack_out: Path) -> BuildOutput:
    """Run `greentic-pack build` for the workspace and capture its output."""
    gtpack_out.parent.mkdir(parents=True, exist_ok=True)
    return _run_pack(
        bin_path,
        "build",
        "--in",
        str(workspace),
        "--gtpack-out",
        str(gtpack_out),
    )


def extract_gtpack_path(output: BuildOutput) -> Optional[Path]:
    """Path from a `wrote <file>.gtpack` line in the tool output, if any."""
    for line in output.stdout.splitlines() + output.stderr.splitlines():
        line = line.strip()
        if not line.startswith("wrote "):
            continue
        candidate = line[len("wrote ") :].strip()
        if candidate.endswith(GTPACK_SUFFIX):
            return Path(candidate)
    return None


def ensure_named_gtpack(dist_dir: Path, name: str) -> tuple[Path, Optional[Path]]:
    """Make sure `dist_dir/<name>.gtpack` exists.

    When the tool wrote the archive under another name, the newest `.gtpack`
    in `dist_dir` is renamed. Returns the target path and the path it was
    renamed from (None when nothing moved).
    """
    target = dist_dir / f"{name}{GTPACK_SUFFIX}"
    if target.exists():
        return target, None

    candidates = sorted(
        (p for p in dist_dir.glob(f"*{GTPACK_SUFFIX}") if p.is_file()),
        key=lambda p: (p.stat().st_mtime, p.name),
    )
    if not candidates:
        raise FileNotFoundError(f"no {GTPACK_SUFFIX} file found in {dist_dir}")

    source = candidates[-1]
    shutil.move(str(source), str(target))
    return target, source
