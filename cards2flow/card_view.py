# cards2flow/card_view.py
from __future__ import annotations

from dataclasses import dataclass
from pathlib import PurePosixPath
from typing import Any, Literal, Optional, Union

from .constants import ASSETS_CARDS_DIR

ActionKind = Literal["submit", "execute", "other"]


@dataclass(frozen=True)
class Step:
    """Route to a named flow step."""

    name: str


@dataclass(frozen=True)
class CardId:
    """Route to another card by identity."""

    card_id: str


RouteTarget = Union[Step, CardId]


def target_value(target: RouteTarget) -> str:
    """Return the node identity a route target points at."""
    if isinstance(target, Step):
        return target.name
    if isinstance(target, CardId):
        return target.card_id
    raise TypeError(f"unknown route target {target!r}")


def target_kind(target: RouteTarget) -> str:
    if isinstance(target, Step):
        return "step"
    if isinstance(target, CardId):
        return "card_id"
    raise TypeError(f"unknown route target {target!r}")


@dataclass(frozen=True)
class ActionRecord:
    index: int
    kind: ActionKind
    action_type: str
    title: Optional[str]
    target: Optional[RouteTarget]
    data: Any = None


@dataclass(frozen=True)
class CardDocument:
    """A recognized card.

    `card_id` and `flow_name` stay empty until the resolver fills them in
    (through `dataclasses.replace`, so a resolved card is a new instance).
    """

    rel_path: str
    content: dict[str, Any]
    actions: tuple[ActionRecord, ...] = ()
    card_id: str = ""
    flow_name: str = ""

    @property
    def asset_path(self) -> str:
        return f"{ASSETS_CARDS_DIR}/{self.rel_path}"

    @property
    def stem(self) -> str:
        return PurePosixPath(self.rel_path).stem

    @property
    def parent_dir(self) -> Optional[str]:
        """Immediate parent directory name, or None for top-level cards."""
        parent = PurePosixPath(self.rel_path).parent
        if str(parent) in ("", "."):
            return None
        return parent.name

    @property
    def is_terminal(self) -> bool:
        return not any(action.target is not None for action in self.actions)


def as_str(value: Any) -> Optional[str]:
    """Return a stripped, non-empty string or None."""
    if isinstance(value, str):
        stripped = value.strip()
        if stripped:
            return stripped
    return None


def get_str(mapping: Any, key: str) -> Optional[str]:
    if not isinstance(mapping, dict):
        return None
    return as_str(mapping.get(key))


def get_mapping(mapping: Any, key: str) -> Optional[dict[str, Any]]:
    if not isinstance(mapping, dict):
        return None
    value = mapping.get(key)
    if isinstance(value, dict):
        return value
    return None
