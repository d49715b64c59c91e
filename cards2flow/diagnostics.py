# cards2flow/diagnostics.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Literal, Optional

Severity = Literal["error", "warning"]

Kind = Literal[
    "parse_error",
    "ignored_file",
    "identity_conflict",
    "flow_conflict",
    "missing_flow",
    "missing_route_target",
    "duplicate_route_key",
    "marker_corruption",
    "invalid_flow_name",
    "tool_failure",
    "pack_output",
]

# Escalated to errors when strict mode is active.
STRICT_FATAL_KINDS: frozenset[str] = frozenset(
    {
        "parse_error",
        "identity_conflict",
        "flow_conflict",
        "missing_flow",
        "missing_route_target",
        "duplicate_route_key",
        "tool_failure",
    }
)

# Errors regardless of mode.
ALWAYS_FATAL_KINDS: frozenset[str] = frozenset(
    {"marker_corruption", "invalid_flow_name"}
)


@dataclass(frozen=True)
class Diagnostic:
    """A problem found while scanning cards or emitting flows.

    Severity is not stored: it depends on the mode and is resolved once, at the
    gate, via `severity()`.
    """

    kind: Kind
    path: str
    message: str
    action_index: Optional[int] = None

    def severity(self, strict: bool) -> Severity:
        if self.kind in ALWAYS_FATAL_KINDS:
            return "error"
        if strict and self.kind in STRICT_FATAL_KINDS:
            return "error"
        return "warning"

    @property
    def location(self) -> str:
        if self.action_index is None:
            return self.path
        return f"{self.path}#/actions/{self.action_index}"

    def format(self) -> str:
        return f"[{self.kind}] {self.location}: {self.message}"


def diagnostic(
    kind: Kind, path: str, message: str, action_index: Optional[int] = None
) -> Diagnostic:
    return Diagnostic(kind=kind, path=path, message=message, action_index=action_index)


def _sort_key(diag: Diagnostic) -> tuple[str, int, str, str]:
    # File-level diagnostics sort ahead of the file's action-level ones.
    index = -1 if diag.action_index is None else diag.action_index
    return (diag.path, index, diag.kind, diag.message)


def collect(*batches: Iterable[Diagnostic]) -> list[Diagnostic]:
    """Concatenate diagnostic batches from independent producers in stable order."""
    merged: list[Diagnostic] = []
    for batch in batches:
        merged.extend(batch)
    return sorted(merged, key=_sort_key)


def fatal(diagnostics: Iterable[Diagnostic], strict: bool) -> list[Diagnostic]:
    return [d for d in diagnostics if d.severity(strict) == "error"]


def warnings(diagnostics: Iterable[Diagnostic], strict: bool) -> list[Diagnostic]:
    return [d for d in diagnostics if d.severity(strict) == "warning"]


@dataclass(frozen=True)
class Verdict:
    """Outcome of the diagnostics gate."""

    errors: tuple[Diagnostic, ...]
    warnings: tuple[Diagnostic, ...]

    @property
    def ok(self) -> bool:
        return not self.errors


def gate(diagnostics: Iterable[Diagnostic], strict: bool) -> Verdict:
    """Split accumulated diagnostics into fatal errors and warnings for `strict`."""
    ordered = collect(diagnostics)
    return Verdict(
        errors=tuple(fatal(ordered, strict)),
        warnings=tuple(warnings(ordered, strict)),
    )
