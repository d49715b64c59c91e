# cards2flow/graph.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal, Optional

from .actions import route_key
from .card_view import CardId, Step, target_value
from .diagnostics import Diagnostic, diagnostic
from .grouping import FlowGroup

NodeKind = Literal["real", "stub"]


@dataclass(frozen=True)
class GraphNode:
    node_id: str
    kind: NodeKind
    asset_path: Optional[str] = None
    terminal: bool = False

    @property
    def is_stub(self) -> bool:
        return self.kind == "stub"


@dataclass(frozen=True)
class GraphEdge:
    source: str
    target: str
    route_key: str
    terminal: bool
    action_index: int


@dataclass
class FlowGraph:
    flow_name: str
    nodes: dict[str, GraphNode] = field(default_factory=dict)
    edges: list[GraphEdge] = field(default_factory=list)

    def routes_from(self, node_id: str) -> list[GraphEdge]:
        return [e for e in self.edges if e.source == node_id]

    @property
    def real_nodes(self) -> list[GraphNode]:
        return [n for n in self.nodes.values() if not n.is_stub]

    @property
    def stub_nodes(self) -> list[GraphNode]:
        return [n for n in self.nodes.values() if n.is_stub]

    @property
    def entry(self) -> Optional[str]:
        """First real node nothing routes into, else the first real node."""
        real = self.real_nodes
        if not real:
            return None
        incoming = {e.target for e in self.edges if e.target != e.source}
        for node in real:
            if node.node_id not in incoming:
                return node.node_id
        return real[0].node_id


def build_flow_graph(group: FlowGroup) -> tuple[FlowGraph, list[Diagnostic]]:
    """Build one flow's graph: every real node first, then every edge.

    Unresolved targets become stub nodes and are reported; whether that report
    is fatal is decided later by the diagnostics gate.
    """
    graph = FlowGraph(flow_name=group.flow_name)
    diagnostics: list[Diagnostic] = []

    # Node phase.
    for card in group.cards:
        if card.card_id in graph.nodes:
            raise ValueError(
                f"duplicate card_id {card.card_id!r} in flow {group.flow_name!r}"
            )
        graph.nodes[card.card_id] = GraphNode(
            node_id=card.card_id,
            kind="real",
            asset_path=card.asset_path,
            terminal=card.is_terminal,
        )
    real_ids = set(graph.nodes)

    # Edge phase.
    for card in group.cards:
        used_keys: dict[str, int] = {}
        for action in card.actions:
            target = action.target
            if target is None:
                continue

            if isinstance(target, Step):
                label = "step"
            elif isinstance(target, CardId):
                label = "card"
            else:
                raise TypeError(f"unknown route target {target!r}")
            target_id = target_value(target)

            if target_id not in real_ids:
                diagnostics.append(
                    diagnostic(
                        "missing_route_target",
                        card.rel_path,
                        f"{label} target {target_id!r} from card {card.card_id!r} "
                        f"does not exist in flow {group.flow_name!r}; using a stub node",
                        action_index=action.index,
                    )
                )
                if target_id not in graph.nodes:
                    graph.nodes[target_id] = GraphNode(
                        node_id=target_id, kind="stub", terminal=True
                    )

            key = route_key(action)
            if key in used_keys:
                diagnostics.append(
                    diagnostic(
                        "duplicate_route_key",
                        card.rel_path,
                        f"route key {key!r} on card {card.card_id!r} is already used "
                        f"by action {used_keys[key]}; keeping the first route",
                        action_index=action.index,
                    )
                )
                continue
            used_keys[key] = action.index

            graph.edges.append(
                GraphEdge(
                    source=card.card_id,
                    target=target_id,
                    route_key=key,
                    terminal=graph.nodes[target_id].terminal,
                    action_index=action.index,
                )
            )

    return graph, diagnostics


def build_flow_graphs(
    groups: list[FlowGroup],
) -> tuple[list[FlowGraph], list[Diagnostic]]:
    """Build every group's graph; groups share nothing."""
    graphs: list[FlowGraph] = []
    diagnostics: list[Diagnostic] = []
    for group in groups:
        graph, group_diags = build_flow_graph(group)
        graphs.append(graph)
        diagnostics.extend(group_diags)
    return graphs, diagnostics
