# cards2flow/resolve.py
from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from typing import Optional

from .card_view import CardDocument, get_mapping, get_str
from .constants import FALLBACK_FLOW, FLOW_FIELD, IDENTITY_FIELD, METADATA_FIELD
from .diagnostics import Diagnostic, Kind, diagnostic


@dataclass(frozen=True)
class ResolveConfig:
    """Inputs to flow-name resolution.

    group_by: "folder" enables the parent-directory fallback; "flow-field" (or
    None) leaves it off.
    """

    group_by: Optional[str] = None
    default_flow: Optional[str] = None


def _action_values(card: CardDocument, field: str) -> list[tuple[int, str]]:
    out: list[tuple[int, str]] = []
    for action in card.actions:
        value = get_str(action.data, field)
        if value:
            out.append((action.index, value))
    return out


def _consistent_value(
    card: CardDocument,
    field: str,
    kind: Kind,
    diagnostics: list[Diagnostic],
) -> Optional[str]:
    """Return the value every action agrees on, or the first-seen one on conflict."""
    values = _action_values(card, field)
    if not values:
        return None

    first_index, first = values[0]
    distinct: list[str] = [first]
    conflict_index: Optional[int] = None
    for index, value in values[1:]:
        if value not in distinct:
            distinct.append(value)
            if conflict_index is None:
                conflict_index = index

    if len(distinct) > 1:
        diagnostics.append(
            diagnostic(
                kind,
                card.rel_path,
                f"inconsistent data.{field} values across actions: "
                f"{', '.join(repr(v) for v in distinct)}; using {first!r} "
                f"from action {first_index}",
                action_index=conflict_index,
            )
        )
    return first


def _metadata_value(card: CardDocument, field: str) -> Optional[str]:
    return get_str(get_mapping(card.content, METADATA_FIELD), field)


def resolve_card_id(card: CardDocument, diagnostics: list[Diagnostic]) -> str:
    value = _consistent_value(card, IDENTITY_FIELD, "identity_conflict", diagnostics)
    if value:
        return value

    value = _metadata_value(card, IDENTITY_FIELD)
    if value:
        return value

    return card.stem


def resolve_flow_name(
    card: CardDocument, cfg: ResolveConfig, diagnostics: list[Diagnostic]
) -> str:
    value = _consistent_value(card, FLOW_FIELD, "flow_conflict", diagnostics)
    if value:
        return value

    value = _metadata_value(card, FLOW_FIELD)
    if value:
        return value

    if cfg.group_by == "folder" and card.parent_dir:
        return card.parent_dir

    default_flow = (cfg.default_flow or "").strip()
    if default_flow:
        return default_flow

    diagnostics.append(
        diagnostic(
            "missing_flow",
            card.rel_path,
            f"no flow name in action data, card metadata, folder or default; "
            f"using {FALLBACK_FLOW!r}",
        )
    )
    return FALLBACK_FLOW


def resolve_card(
    card: CardDocument, cfg: ResolveConfig
) -> tuple[CardDocument, list[Diagnostic]]:
    """Fill in `card_id` and `flow_name`; the two resolutions are independent."""
    diagnostics: list[Diagnostic] = []
    card_id = resolve_card_id(card, diagnostics)
    flow_name = resolve_flow_name(card, cfg, diagnostics)
    return dataclasses.replace(card, card_id=card_id, flow_name=flow_name), diagnostics


def resolve_cards(
    cards: list[CardDocument], cfg: ResolveConfig
) -> tuple[list[CardDocument], list[Diagnostic]]:
    resolved: list[CardDocument] = []
    diagnostics: list[Diagnostic] = []
    for card in cards:
        if card.card_id or card.flow_name:
            raise ValueError(f"card {card.rel_path} has already been resolved")
        out, card_diags = resolve_card(card, cfg)
        resolved.append(out)
        diagnostics.extend(card_diags)
    return resolved, diagnostics
