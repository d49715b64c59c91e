# cards2flow/config.py
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .constants import (
    DIST_DIR,
    FLOW_SUFFIX,
    FLOWS_DIR,
    GROUP_BY_CHOICES,
    PACK_MANIFEST_FILE,
    STATE_DIR,
)
from .resolve import ResolveConfig


@dataclass(frozen=True)
class GenerateConfig:
    """Settings for one generation run (normally built by the CLI)."""

    cards_dir: Path
    out_dir: Path
    name: str = "cards"
    group_by: Optional[str] = None
    default_flow: Optional[str] = None
    strict: bool = False
    build: bool = False
    pack_bin: Optional[Path] = None
    verbose: bool = False

    def __post_init__(self) -> None:
        if self.group_by is not None and self.group_by not in GROUP_BY_CHOICES:
            raise ValueError(
                f"group_by must be one of {GROUP_BY_CHOICES}, got {self.group_by!r}"
            )

    @property
    def resolve(self) -> ResolveConfig:
        return ResolveConfig(group_by=self.group_by, default_flow=self.default_flow)

    def flow_path(self, flow_name: str) -> Path:
        return self.out_dir / FLOWS_DIR / f"{flow_name}{FLOW_SUFFIX}"

    @property
    def manifest_path(self) -> Path:
        return self.out_dir / STATE_DIR / "manifest.json"

    @property
    def readme_path(self) -> Path:
        return self.out_dir / "README.md"

    @property
    def gtpack_path(self) -> Path:
        return self.out_dir / DIST_DIR / f"{self.name}.gtpack"

    @property
    def pack_manifest_path(self) -> Path:
        return self.out_dir / PACK_MANIFEST_FILE
