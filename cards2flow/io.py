# cards2flow/io.py
from __future__ import annotations

import json
import re
from pathlib import Path
from typing import Any, Optional

from .actions import extract_actions
from .card_view import CardDocument
from .constants import CARD_EXTENSION, CARD_TYPE_FIELD, CARD_TYPE_VALUE
from .diagnostics import Diagnostic, diagnostic

# Used only on text that failed to parse, to tell a broken card from stray JSON.
_CARD_DISCRIMINATOR_RE = re.compile(
    r'"%s"\s*:\s*"%s"' % (re.escape(CARD_TYPE_FIELD), re.escape(CARD_TYPE_VALUE))
)


def iter_card_files(cards_dir: Path) -> list[Path]:
    """Return candidate card files under `cards_dir`, sorted by relative path."""
    found = [
        p
        for p in cards_dir.rglob("*")
        if p.is_file() and p.suffix.lower() == CARD_EXTENSION
    ]
    return sorted(found, key=lambda p: p.relative_to(cards_dir).as_posix())


def looks_like_card(raw: str) -> bool:
    return bool(_CARD_DISCRIMINATOR_RE.search(raw))


def _load_json(path: Path, rel_path: str) -> tuple[Optional[Any], list[Diagnostic]]:
    try:
        raw_bytes = path.read_bytes()
    except OSError as e:
        return None, [diagnostic("ignored_file", rel_path, f"failed to read file: {e}")]

    raw = raw_bytes.decode("utf-8", errors="replace")
    try:
        return json.loads(raw_bytes.decode("utf-8")), []
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        if looks_like_card(raw):
            return None, [diagnostic("parse_error", rel_path, f"invalid JSON: {e}")]
        return None, [
            diagnostic("ignored_file", rel_path, f"invalid JSON ignored: {e}")
        ]


def load_card_file(
    path: Path, cards_dir: Path
) -> tuple[Optional[CardDocument], list[Diagnostic]]:
    """Parse and classify one file; depends on nothing but the file's bytes."""
    rel_path = path.relative_to(cards_dir).as_posix()
    data, diagnostics = _load_json(path, rel_path)
    if data is None and diagnostics:
        return None, diagnostics

    if not isinstance(data, dict):
        diagnostics.append(
            diagnostic(
                "ignored_file",
                rel_path,
                f"non-object JSON ignored (top-level {type(data).__name__})",
            )
        )
        return None, diagnostics

    card_type = data.get(CARD_TYPE_FIELD)
    if card_type != CARD_TYPE_VALUE:
        if card_type is None:
            message = f"non-card JSON ignored (no `{CARD_TYPE_FIELD}` field)"
        else:
            message = f"non-card JSON ignored ({CARD_TYPE_FIELD}={card_type!r})"
        diagnostics.append(diagnostic("ignored_file", rel_path, message))
        return None, diagnostics

    actions, action_diags = extract_actions(data, rel_path)
    diagnostics.extend(action_diags)
    return CardDocument(rel_path=rel_path, content=data, actions=actions), diagnostics


def load_cards(cards_dir: Path) -> tuple[list[CardDocument], list[Diagnostic]]:
    """Load every recognized card under `cards_dir`."""
    if not cards_dir.exists():
        raise FileNotFoundError(str(cards_dir))
    if not cards_dir.is_dir():
        raise NotADirectoryError(str(cards_dir))

    cards: list[CardDocument] = []
    diagnostics: list[Diagnostic] = []
    for path in iter_card_files(cards_dir):
        card, file_diags = load_card_file(path, cards_dir)
        diagnostics.extend(file_diags)
        if card is not None:
            cards.append(card)

    if not cards:
        diagnostics.append(
            diagnostic(
                "ignored_file",
                cards_dir.as_posix(),
                f"no {CARD_TYPE_VALUE} JSON files found",
            )
        )

    return cards, diagnostics
