# flowshape/editor/upstream.py
from __future__ import annotations

from collections import deque
from dataclasses import dataclass
from typing import Iterable, List, Optional

import networkx as nx

from flowshape.editor.store import GraphEdge, GraphNode, GraphStore
from flowshape.schema.model import DataSchema

# Control-flow nodes forward their input unchanged; look through them.
PASSTHROUGH_TYPES = frozenset({"if", "filter", "merge"})

DEFAULT_HANDLE = "output"


@dataclass(frozen=True)
class UpstreamNode:
    node_id: str
    label: str
    node_type: str
    source_handle: str
    schema: Optional[DataSchema]


def build_graph(nodes: Iterable[GraphNode], edges: Iterable[GraphEdge]) -> nx.MultiDiGraph:
    """
    Directed multigraph of the document. Edge keys are the edge ids, edge
    order follows the document so traversal is deterministic.
    """
    G = nx.MultiDiGraph()
    for n in nodes:
        G.add_node(n.id, node=n)
    for e in edges:
        # dangling edges are skipped, the store never holds them
        if e.source not in G or e.target not in G:
            continue
        G.add_edge(e.source, e.target, key=e.id, handle=e.source_handle or DEFAULT_HANDLE)
    return G


def get_upstream_nodes(store: GraphStore, target_id: str) -> List[UpstreamNode]:
    """All data-producing ancestors of `target_id`, closest first."""
    return upstream_from_graph(build_graph(store.nodes, store.edges), target_id)


def upstream_from_graph(G: nx.MultiDiGraph, target_id: str) -> List[UpstreamNode]:
    if target_id not in G:
        return []

    result: List[UpstreamNode] = []
    visited = set()
    queue = deque([target_id])

    while queue:
        current = queue.popleft()
        for source, _, data in G.in_edges(current, data=True):
            if source in visited:
                continue
            visited.add(source)
            node: GraphNode = G.nodes[source]["node"]

            if node.node_type not in PASSTHROUGH_TYPES:
                result.append(
                    UpstreamNode(
                        node_id=node.id,
                        label=node.label,
                        node_type=node.node_type,
                        source_handle=data["handle"],
                        schema=node.output_schema,
                    )
                )
            queue.append(source)

    return result
