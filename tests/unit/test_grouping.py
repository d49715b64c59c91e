import pytest

from cards2flow.card_view import CardDocument
from cards2flow.grouping import group_cards


def card(rel_path, card_id, flow_name):
    return CardDocument(rel_path=rel_path, content={}, card_id=card_id, flow_name=flow_name)


def test_groups_by_flow_in_path_order():
    cards = [
        card("z.json", "Z", "beta"),
        card("b.json", "B", "alpha"),
        card("a.json", "A", "alpha"),
    ]

    groups, diagnostics = group_cards(cards)

    assert diagnostics == []
    assert [g.flow_name for g in groups] == ["alpha", "beta"]
    assert [c.card_id for c in groups[0].cards] == ["A", "B"]


def test_order_does_not_depend_on_input_order():
    cards = [card("b.json", "B", "f"), card("a.json", "A", "f")]

    forward, _ = group_cards(cards)
    backward, _ = group_cards(list(reversed(cards)))

    assert forward == backward


def test_duplicate_card_id_keeps_first_by_path():
    cards = [card("b.json", "SAME", "f"), card("a.json", "SAME", "f")]

    groups, diagnostics = group_cards(cards)

    assert [c.rel_path for c in groups[0].cards] == ["a.json"]
    assert [d.kind for d in diagnostics] == ["identity_conflict"]
    assert diagnostics[0].path == "b.json"


def test_same_card_id_in_different_flows_is_fine():
    groups, diagnostics = group_cards([card("a.json", "X", "f1"), card("b.json", "X", "f2")])

    assert diagnostics == []
    assert len(groups) == 2


def test_unresolved_cards_are_rejected():
    with pytest.raises(ValueError):
        group_cards([CardDocument(rel_path="a.json", content={})])
