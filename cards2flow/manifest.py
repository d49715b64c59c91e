# cards2flow/manifest.py
from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Iterable, Optional

from .card_view import ActionRecord, CardDocument, target_kind, target_value
from .config import GenerateConfig
from .constants import MANIFEST_VERSION
from .diagnostics import Diagnostic
from .grouping import FlowGroup


def now_rfc3339() -> str:
    return datetime.now(timezone.utc).replace(microsecond=0).isoformat().replace(
        "+00:00", "Z"
    )


def _action_entry(action: ActionRecord) -> dict[str, Any]:
    target: Optional[dict[str, str]] = None
    if action.target is not None:
        target = {"kind": target_kind(action.target), "value": target_value(action.target)}
    return {
        "index": action.index,
        "kind": action.kind,
        "type": action.action_type,
        "title": action.title,
        "target": target,
    }


def _card_entry(card: CardDocument) -> dict[str, Any]:
    return {
        "card_id": card.card_id,
        "flow_name": card.flow_name,
        "rel_path": card.rel_path,
        "asset_path": card.asset_path,
        "actions": [_action_entry(a) for a in card.actions],
    }


def build_manifest(
    cfg: GenerateConfig,
    groups: list[FlowGroup],
    warnings: Iterable[Diagnostic],
    generated_at: Optional[str] = None,
) -> dict[str, Any]:
    """Machine-readable record of one run."""
    return {
        "version": MANIFEST_VERSION,
        "generated_at": generated_at or now_rfc3339(),
        "input": {
            "cards_dir": cfg.cards_dir.as_posix(),
            "group_by": cfg.group_by,
            "default_flow": cfg.default_flow,
        },
        "flows": [
            {"flow_name": g.flow_name, "cards": [_card_entry(c) for c in g.cards]}
            for g in groups
        ],
        "warnings": [
            {"kind": w.kind, "path": w.location, "message": w.message}
            for w in warnings
        ],
    }


def write_manifest(path: Path, manifest: dict[str, Any]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(manifest, indent=2) + "\n", encoding="utf-8")
