import json
from pathlib import Path
from typing import Any, Optional

import pytest


def card_json(
    actions: Optional[list[Any]] = None,
    *,
    metadata: Optional[dict[str, Any]] = None,
    card_type: Optional[str] = "AdaptiveCard",
) -> dict[str, Any]:
    doc: dict[str, Any] = {"$schema": "http://adaptivecards.io/schemas/adaptive-card.json"}
    if card_type is not None:
        doc["type"] = card_type
    doc["version"] = "1.5"
    doc["body"] = [{"type": "TextBlock", "text": "hello"}]
    doc["actions"] = actions if actions is not None else []
    if metadata is not None:
        doc["greentic"] = metadata
    return doc


def submit(title: Optional[str] = None, **data: Any) -> dict[str, Any]:
    action: dict[str, Any] = {"type": "Action.Submit"}
    if title is not None:
        action["title"] = title
    if data:
        action["data"] = data
    return action


@pytest.fixture
def write_card():
    def _write(root: Path, rel: str, doc: Any) -> Path:
        path = root / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        if isinstance(doc, str):
            path.write_text(doc, encoding="utf-8")
        else:
            path.write_text(json.dumps(doc, indent=2), encoding="utf-8")
        return path

    return _write
