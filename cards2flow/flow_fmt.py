# cards2flow/flow_fmt.py
from __future__ import annotations

from typing import Any

import yaml

from .constants import FLOW_TYPE, STUB_ASSET_PATH
from .graph import FlowGraph, GraphEdge, GraphNode

# Routing value the flow runtime reads as "end of flow".
ROUTING_OUT = "out"


def card_payload(node: GraphNode, interactive: bool) -> dict[str, Any]:
    """Input for the adaptive-card component at one node."""
    asset_path = STUB_ASSET_PATH if node.is_stub else node.asset_path
    return {
        "card_source": "asset",
        "card_spec": {"asset_path": asset_path},
        "node_id": node.node_id,
        "mode": "renderAndValidate",
        "validation_mode": "warn",
        "interaction": {
            "card_instance_id": node.node_id,
            "interaction_type": "Submit",
            "enabled": interactive,
        },
    }


def routing_entries(routes: list[GraphEdge]) -> Any:
    if not routes:
        return ROUTING_OUT
    return [{"key": edge.route_key, "to": edge.target} for edge in routes]


def flow_document(graph: FlowGraph) -> dict[str, Any]:
    nodes: dict[str, Any] = {}
    for node in graph.nodes.values():
        routes = graph.routes_from(node.node_id)
        body: dict[str, Any] = {}
        if node.is_stub:
            body["stub"] = True
        body["card"] = card_payload(node, interactive=bool(routes))
        body["routing"] = routing_entries(routes)
        nodes[node.node_id] = body

    doc: dict[str, Any] = {"id": graph.flow_name, "type": FLOW_TYPE}
    entry = graph.entry
    if entry is not None:
        doc["start"] = entry
    doc["nodes"] = nodes
    return doc


def render_flow(graph: FlowGraph) -> str:
    """Serialize a flow graph to YAML text (no trailing newline).

    Key order follows node/edge order, so equal graphs render byte-identically.
    """
    text = yaml.safe_dump(
        flow_document(graph),
        sort_keys=False,
        default_flow_style=False,
        allow_unicode=True,
        width=4096,
    )
    return text.rstrip("\n")


def render_readme_section(entries: list[tuple[str, str]]) -> str:
    """Markdown list of generated flows and their entry nodes."""
    lines = ["## Generated Flows"]
    if not entries:
        lines.append("- (none)")
    for flow_name, entry in entries:
        lines.append(f"- `{flow_name}` entry: `{entry}`")
    return "\n".join(lines)
