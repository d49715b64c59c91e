# cards2flow/grouping.py
from __future__ import annotations

from dataclasses import dataclass

from .card_view import CardDocument
from .diagnostics import Diagnostic, diagnostic


@dataclass(frozen=True)
class FlowGroup:
    flow_name: str
    cards: tuple[CardDocument, ...]


def group_cards(
    cards: list[CardDocument],
) -> tuple[list[FlowGroup], list[Diagnostic]]:
    """Partition resolved cards by flow name.

    Cards are ordered by relative path before grouping, so the result does not
    depend on filesystem iteration order. A repeated card_id inside one flow
    keeps the first card (by path) and reports the rest.
    """
    diagnostics: list[Diagnostic] = []
    members: dict[str, list[CardDocument]] = {}
    seen: dict[str, dict[str, str]] = {}

    for card in sorted(cards, key=lambda c: c.rel_path):
        if not card.card_id or not card.flow_name:
            raise ValueError(f"card {card.rel_path} has not been resolved")

        flow_seen = seen.setdefault(card.flow_name, {})
        existing = flow_seen.get(card.card_id)
        if existing is not None:
            diagnostics.append(
                diagnostic(
                    "identity_conflict",
                    card.rel_path,
                    f"duplicate card_id {card.card_id!r} in flow "
                    f"{card.flow_name!r} (already defined by {existing}); "
                    "keeping the first card",
                )
            )
            continue

        flow_seen[card.card_id] = card.rel_path
        members.setdefault(card.flow_name, []).append(card)

    groups = [
        FlowGroup(flow_name=name, cards=tuple(members[name]))
        for name in sorted(members)
    ]
    return groups, diagnostics
