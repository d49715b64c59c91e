# cards2flow/constants.py
from __future__ import annotations

CARD_EXTENSION = ".json"

# Discriminator a JSON document must carry to be treated as a card.
CARD_TYPE_FIELD = "type"
CARD_TYPE_VALUE = "AdaptiveCard"

# Document-level metadata container (e.g. {"greentic": {"cardId": ..., "flow": ...}}).
METADATA_FIELD = "greentic"

# Fields read from an action's `data` object.
IDENTITY_FIELD = "cardId"
FLOW_FIELD = "flow"
STEP_FIELD = "step"
TARGET_CARD_FIELD = "targetCardId"

GROUP_BY_CHOICES: tuple[str, ...] = ("folder", "flow-field")
FALLBACK_FLOW = "misc"

ASSETS_CARDS_DIR = "assets/cards"
FLOWS_DIR = "flows"
DIST_DIR = "dist"
STATE_DIR = ".cards2flow"
FLOW_SUFFIX = ".ygtc"

FLOW_BEGIN_MARKER = "# BEGIN GENERATED (cards2flow)"
FLOW_END_MARKER = "# END GENERATED (cards2flow)"
README_BEGIN_MARKER = "<!-- BEGIN GENERATED FLOWS (cards2flow) -->"
README_END_MARKER = "<!-- END GENERATED FLOWS (cards2flow) -->"

FLOW_TYPE = "messaging"
STUB_ASSET_PATH = "TODO"
MANIFEST_VERSION = 1

# Created by `greentic-pack new`; its absence means the workspace is unscaffolded.
PACK_MANIFEST_FILE = "pack.yaml"
GTPACK_SUFFIX = ".gtpack"
