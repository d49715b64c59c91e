# cards2flow/pipeline.py
from __future__ import annotations

import shutil
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Optional

from .config import GenerateConfig
from .constants import FLOW_BEGIN_MARKER, FLOW_END_MARKER
from .diagnostics import Diagnostic, Verdict, collect, diagnostic, fatal, gate
from .flow_fmt import render_flow
from .graph import FlowGraph, build_flow_graphs
from .grouping import FlowGroup, group_cards
from .io import load_cards
from .manifest import build_manifest, write_manifest
from .resolve import resolve_cards
from .tools import (
    BuildOutput,
    ensure_named_gtpack,
    extract_gtpack_path,
    resolve_pack_bin,
    run_pack_build,
    run_pack_doctor,
    run_pack_new,
    run_pack_resolve,
    run_pack_update,
)
from .workspace import copy_cards, plan_readme
from .writer import Markers, PlannedWrite, check_plan, commit_write, plan_write

FLOW_MARKERS = Markers(begin=FLOW_BEGIN_MARKER, end=FLOW_END_MARKER, comment="#")

# Run in order before `greentic-pack build`; failures are warnings unless strict.
PRE_BUILD_STEPS: tuple[tuple[str, Callable[[Path, Path], BuildOutput]], ...] = (
    ("update", run_pack_update),
    ("resolve", run_pack_resolve),
    ("doctor", run_pack_doctor),
)


@dataclass
class GenerationResult:
    verdict: Verdict
    groups: list[FlowGroup] = field(default_factory=list)
    graphs: list[FlowGraph] = field(default_factory=list)
    flow_paths: list[Path] = field(default_factory=list)
    manifest_path: Optional[Path] = None
    build_output: Optional[BuildOutput] = None
    written: bool = False

    @property
    def ok(self) -> bool:
        return self.verdict.ok

    @property
    def cards_processed(self) -> int:
        return sum(len(g.cards) for g in self.groups)


def flow_name_problem(name: str) -> Optional[str]:
    """Why `name` cannot be a file stem under flows/, or None if it can."""
    if not name:
        return "it is empty"
    if "/" in name or "\\" in name:
        return "it contains a path separator"
    if name == "..":
        return "it names the parent directory"
    if "\x00" in name:
        return "it contains a NUL character"
    return None


def check_flow_names(groups: list[FlowGroup]) -> list[Diagnostic]:
    diagnostics: list[Diagnostic] = []
    for group in groups:
        problem = flow_name_problem(group.flow_name)
        if problem is None:
            continue
        for card in group.cards:
            diagnostics.append(
                diagnostic(
                    "invalid_flow_name",
                    card.rel_path,
                    f"flow name {group.flow_name!r} of card {card.card_id!r} "
                    f"cannot be used as a flow file name: {problem}",
                )
            )
    return diagnostics


@dataclass(frozen=True)
class _Scan:
    groups: list[FlowGroup]
    graphs: list[FlowGraph]
    diagnostics: list[Diagnostic]


def scan(cfg: GenerateConfig) -> _Scan:
    """Run every read-only stage and accumulate all diagnostics."""
    cards, load_diags = load_cards(cfg.cards_dir)
    resolved, resolve_diags = resolve_cards(cards, cfg.resolve)
    groups, group_diags = group_cards(resolved)
    graphs, graph_diags = build_flow_graphs(groups)
    return _Scan(
        groups=groups,
        graphs=graphs,
        diagnostics=collect(
            load_diags,
            resolve_diags,
            group_diags,
            check_flow_names(groups),
            graph_diags,
        ),
    )


def plan_outputs(
    cfg: GenerateConfig, graphs: list[FlowGraph]
) -> tuple[list[PlannedWrite], list[Diagnostic]]:
    plans: list[PlannedWrite] = []
    diagnostics: list[Diagnostic] = []
    for graph in graphs:
        # Already reported by check_flow_names.
        if flow_name_problem(graph.flow_name) is not None:
            continue
        path = cfg.flow_path(graph.flow_name)
        label = path.relative_to(cfg.out_dir).as_posix()
        plan, diags = plan_write(path, label, render_flow(graph), FLOW_MARKERS)
        diagnostics.extend(diags)
        if plan is not None:
            plans.append(plan)

    readme, diags = plan_readme(cfg.readme_path, cfg.name, graphs)
    diagnostics.extend(diags)
    if readme is not None:
        plans.append(readme)
    return plans, diagnostics


def build_pack(
    cfg: GenerateConfig, bin_path: Path
) -> tuple[Optional[BuildOutput], list[Diagnostic]]:
    """Validate the written workspace with greentic-pack, then build it.

    The build itself is skipped when a pre-build step failed in strict mode.
    """
    diagnostics: list[Diagnostic] = []
    for step, run in PRE_BUILD_STEPS:
        try:
            run(bin_path, cfg.out_dir)
        except RuntimeError as e:
            diagnostics.append(diagnostic("tool_failure", f"greentic-pack {step}", str(e)))
    if fatal(diagnostics, cfg.strict):
        return None, diagnostics

    output = run_pack_build(bin_path, cfg.out_dir, cfg.gtpack_path)
    if not cfg.gtpack_path.exists():
        produced = extract_gtpack_path(output)
        if produced is not None and produced.is_file():
            shutil.copyfile(produced, cfg.gtpack_path)

    target, renamed_from = ensure_named_gtpack(cfg.gtpack_path.parent, cfg.name)
    if renamed_from is not None:
        diagnostics.append(
            diagnostic(
                "pack_output",
                target.relative_to(cfg.out_dir).as_posix(),
                f"renamed greentic-pack output {renamed_from.name} to {target.name}",
            )
        )
    return output, diagnostics


def generate(cfg: GenerateConfig) -> GenerationResult:
    """Scan cards, build flow graphs and write the pack workspace.

    Nothing under `cfg.out_dir` is touched unless the diagnostics gate passes
    (apart from `greentic-pack new` scaffolding when building). The manifest is
    written last, so its presence marks a completed run.
    """
    scanned = scan(cfg)

    plans, plan_diags = plan_outputs(cfg, scanned.graphs)
    verdict = gate(collect(scanned.diagnostics, plan_diags), cfg.strict)
    result = GenerationResult(
        verdict=verdict, groups=scanned.groups, graphs=scanned.graphs
    )
    if not verdict.ok:
        return result

    bin_path: Optional[Path] = None
    if cfg.build:
        bin_path = resolve_pack_bin(cfg.pack_bin)
        if not cfg.pack_manifest_path.exists():
            run_pack_new(bin_path, cfg.out_dir, cfg.name)

    # Targets may have changed since planning.
    stale = collect(*(check_plan(plan) for plan in plans))
    if stale:
        result.verdict = gate(collect(verdict.warnings, stale), cfg.strict)
        return result

    copy_cards(cfg.cards_dir, cfg.out_dir)
    result.written = True
    for plan in plans:
        commit_write(plan)
        if plan.markers == FLOW_MARKERS:
            result.flow_paths.append(plan.path)

    if bin_path is not None:
        result.build_output, pack_diags = build_pack(cfg, bin_path)
        result.verdict = gate(collect(verdict.warnings, pack_diags), cfg.strict)
        if not result.verdict.ok:
            return result

    write_manifest(
        cfg.manifest_path,
        build_manifest(cfg, scanned.groups, result.verdict.warnings),
    )
    result.manifest_path = cfg.manifest_path
    return result


def summarize(cfg: GenerateConfig, result: GenerationResult) -> str:
    """Human-readable run summary."""
    lines = [f"Workspace: {cfg.out_dir}"]
    if result.build_output is not None:
        lines.append(f"Pack: {cfg.gtpack_path}")
    lines.append(f"Cards processed: {result.cards_processed}")

    lines.append("Flows:")
    if not result.groups:
        lines.append("  (none)")
    for group in result.groups:
        lines.append(f"  - {group.flow_name} ({len(group.cards)} cards)")

    lines.append("Generated flow files:")
    if not result.flow_paths:
        lines.append("  (none)")
    for path in result.flow_paths:
        lines.append(f"  - {path.relative_to(cfg.out_dir).as_posix()}")

    warnings = result.verdict.warnings
    lines.append(f"Warnings: {len(warnings)}")
    for warning in warnings[:5]:
        lines.append(f"  - {warning.format()}")
    return "\n".join(lines)
