# cards2flow/actions.py
from __future__ import annotations

from typing import Any, Optional

from .card_view import (
    ActionKind,
    ActionRecord,
    CardId,
    RouteTarget,
    Step,
    as_str,
    get_mapping,
    get_str,
    target_value,
)
from .constants import STEP_FIELD, TARGET_CARD_FIELD
from .diagnostics import Diagnostic, diagnostic

_ACTION_KINDS: dict[str, ActionKind] = {
    "Action.Submit": "submit",
    "Action.Execute": "execute",
}


def classify_action(action_type: str) -> ActionKind:
    return _ACTION_KINDS.get(action_type, "other")


def route_target(data: Any) -> Optional[RouteTarget]:
    """Pick the action's route target: explicit step first, then card reference."""
    step = get_str(data, STEP_FIELD)
    if step:
        return Step(step)

    card_ref = get_str(data, TARGET_CARD_FIELD)
    if card_ref:
        return CardId(card_ref)

    return None


def route_key(action: ActionRecord) -> str:
    """Label an edge is emitted under; never empty.

    Priority: step name, card reference, display title, then the 1-based
    position of the action.
    """
    if action.target is not None:
        value = target_value(action.target)
        if value:
            return value

    if action.title:
        return action.title

    return f"action-{action.index + 1}"


def extract_actions(
    content: dict[str, Any], rel_path: str
) -> tuple[tuple[ActionRecord, ...], list[Diagnostic]]:
    """Read the card's top-level action list.

    Composite actions (e.g. Action.ShowCard) are recorded as-is; their nested
    cards are not descended into.
    """
    diagnostics: list[Diagnostic] = []
    raw = content.get("actions", []) or []
    if not isinstance(raw, list):
        diagnostics.append(
            diagnostic(
                "ignored_file",
                rel_path,
                "card `actions` is not a list; treating the card as terminal",
            )
        )
        return (), diagnostics

    records: list[ActionRecord] = []
    for i, action in enumerate(raw):
        if not isinstance(action, dict):
            diagnostics.append(
                diagnostic(
                    "ignored_file",
                    rel_path,
                    "ignored non-object action",
                    action_index=i,
                )
            )
            continue

        action_type = as_str(action.get("type")) or "Unknown"
        data = action.get("data")
        records.append(
            ActionRecord(
                index=i,
                kind=classify_action(action_type),
                action_type=action_type,
                title=as_str(action.get("title")),
                target=route_target(get_mapping(action, "data")),
                data=data,
            )
        )

    return tuple(records), diagnostics
