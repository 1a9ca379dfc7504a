# flowshape/editor/store.py
"""
Editor graph store.

Holds the nodes and edges of one open workflow document. The store is an
explicit object handed to whatever binds to it (canvas, edge widgets,
panels); it is mutated only through its methods or through dispatch() with
one of the action dataclasses below, which funnel into the same methods.

Collections are replaced, never mutated in place, so a subscriber holding
the previous `edges` tuple still sees the old state.
"""

from __future__ import annotations

import itertools
from dataclasses import dataclass, field, replace
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

from flowshape.schema.model import DataSchema, schema_from_dict, schema_to_dict
from flowshape.utils.logger import get_logger

log = get_logger("editor.store")

DEFAULT_WORKFLOW_NAME = "Untitled Workflow"


class GraphStoreError(ValueError):
    """Raised when a mutation would break a store invariant."""


@dataclass(frozen=True)
class GraphNode:
    id: str
    node_type: str
    label: str = ""
    position: Tuple[float, float] = (0.0, 0.0)
    config: Dict[str, Any] = field(default_factory=dict)
    output_schema: Optional[DataSchema] = None


@dataclass(frozen=True)
class GraphEdge:
    id: str
    source: str
    target: str
    selected: bool = False
    source_handle: Optional[str] = None
    target_handle: Optional[str] = None
    style: Dict[str, Any] = field(default_factory=dict)
    marker_end: Optional[Any] = None


# ---------------------------------------------------------------------------
# Actions
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class RemoveEdge:
    edge_id: str


@dataclass(frozen=True)
class RemoveNode:
    node_id: str


@dataclass(frozen=True)
class AddNode:
    node: GraphNode


@dataclass(frozen=True)
class AddEdge:
    edge: GraphEdge


@dataclass(frozen=True)
class SelectEdge:
    edge_id: str
    selected: bool


@dataclass(frozen=True)
class UpdateNodeConfig:
    node_id: str
    patch: Dict[str, Any]


@dataclass(frozen=True)
class UpdateNodeLabel:
    node_id: str
    label: str


@dataclass(frozen=True)
class SelectNode:
    node_id: Optional[str]


@dataclass(frozen=True)
class LoadWorkflow:
    nodes: Tuple[GraphNode, ...]
    edges: Tuple[GraphEdge, ...]
    global_config: Dict[str, Any] = field(default_factory=dict)


Listener = Callable[["GraphStore"], None]


class GraphStore:
    def __init__(self):
        self._ids = itertools.count()
        self._listeners: List[Listener] = []
        self._reset()

    def _reset(self) -> None:
        self.nodes: Tuple[GraphNode, ...] = ()
        self.edges: Tuple[GraphEdge, ...] = ()
        self.selected_node_id: Optional[str] = None
        self.workflow_name: str = DEFAULT_WORKFLOW_NAME
        self.workflow_id: Optional[str] = None
        self.global_config: Dict[str, Any] = {}

    # ---------- subscriptions ----------

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a listener called after every effective mutation."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener(self)

    # ---------- reads ----------

    def node(self, node_id: str) -> Optional[GraphNode]:
        for n in self.nodes:
            if n.id == node_id:
                return n
        return None

    def edge(self, edge_id: str) -> Optional[GraphEdge]:
        for e in self.edges:
            if e.id == edge_id:
                return e
        return None

    def has_node(self, node_id: str) -> bool:
        return self.node(node_id) is not None

    def incident_edges(self, node_id: str) -> List[GraphEdge]:
        return [e for e in self.edges if e.source == node_id or e.target == node_id]

    # ---------- edges ----------

    def remove_edge(self, edge_id: str) -> None:
        """Remove an edge; unknown ids are ignored."""
        remaining = tuple(e for e in self.edges if e.id != edge_id)
        if len(remaining) == len(self.edges):
            return
        self.edges = remaining
        log.debug("removed edge %s", edge_id)
        self._notify()

    def add_edge(self, edge: GraphEdge) -> GraphEdge:
        for endpoint in (edge.source, edge.target):
            if not self.has_node(endpoint):
                raise GraphStoreError(f"Edge '{edge.id}' references unknown node '{endpoint}'")
        if self.edge(edge.id) is not None:
            raise GraphStoreError(f"Duplicate edge id '{edge.id}'")
        self.edges = self.edges + (edge,)
        self._notify()
        return edge

    def connect(
        self,
        source: str,
        target: str,
        source_handle: Optional[str] = None,
        target_handle: Optional[str] = None,
    ) -> GraphEdge:
        """Connect two nodes; an identical existing connection is returned as is."""
        for e in self.edges:
            if (e.source, e.target, e.source_handle, e.target_handle) == (source, target, source_handle, target_handle):
                return e
        base = f"e_{source}{source_handle or ''}-{target}{target_handle or ''}"
        # different (node, handle) splits can spell the same base id
        edge_id = base
        suffix = itertools.count(1)
        while self.edge(edge_id) is not None:
            edge_id = f"{base}_{next(suffix)}"
        return self.add_edge(
            GraphEdge(
                id=edge_id,
                source=source,
                target=target,
                source_handle=source_handle,
                target_handle=target_handle,
            )
        )

    def set_edge_selected(self, edge_id: str, selected: bool) -> None:
        changed = False
        edges = []
        for e in self.edges:
            if e.id == edge_id and e.selected != selected:
                e = replace(e, selected=selected)
                changed = True
            edges.append(e)
        if changed:
            self.edges = tuple(edges)
            self._notify()

    def toggle_edge_selection(self, edge_id: str) -> None:
        current = self.edge(edge_id)
        if current is None:
            return
        self.set_edge_selected(edge_id, not current.selected)

    # ---------- nodes ----------

    def add_node(self, node: GraphNode) -> GraphNode:
        if self.has_node(node.id):
            raise GraphStoreError(f"Duplicate node id '{node.id}'")
        self.nodes = self.nodes + (node,)
        self._notify()
        return node

    def create_node(
        self,
        node_type: str,
        position: Tuple[float, float] = (0.0, 0.0),
        label: Optional[str] = None,
        config: Optional[Dict[str, Any]] = None,
    ) -> GraphNode:
        node_id = f"node_{next(self._ids)}"
        while self.has_node(node_id):
            node_id = f"node_{next(self._ids)}"
        return self.add_node(
            GraphNode(
                id=node_id,
                node_type=node_type,
                label=label if label is not None else node_type,
                position=position,
                config=dict(config or {}),
            )
        )

    def remove_node(self, node_id: str) -> None:
        """Remove a node together with every edge touching it."""
        if not self.has_node(node_id):
            return
        dropped = self.incident_edges(node_id)
        self.nodes = tuple(n for n in self.nodes if n.id != node_id)
        self.edges = tuple(e for e in self.edges if e.source != node_id and e.target != node_id)
        if self.selected_node_id == node_id:
            self.selected_node_id = None
        log.debug("removed node %s (and %d incident edges)", node_id, len(dropped))
        self._notify()

    def _update_node(self, node_id: str, **changes: Any) -> None:
        if not self.has_node(node_id):
            return
        self.nodes = tuple(replace(n, **changes) if n.id == node_id else n for n in self.nodes)
        self._notify()

    def update_node_config(self, node_id: str, patch: Dict[str, Any]) -> None:
        """Shallow-merge `patch` into the node's config."""
        current = self.node(node_id)
        if current is None:
            return
        self._update_node(node_id, config={**current.config, **patch})

    def update_node_label(self, node_id: str, label: str) -> None:
        self._update_node(node_id, label=label)

    def set_node_output_schema(self, node_id: str, schema: Optional[DataSchema]) -> None:
        self._update_node(node_id, output_schema=schema)

    # ---------- selection / document ----------

    def select_node(self, node_id: Optional[str]) -> None:
        if self.selected_node_id == node_id:
            return
        self.selected_node_id = node_id
        self._notify()

    def clear_selection(self) -> None:
        self.select_node(None)

    def set_workflow_name(self, name: str) -> None:
        self.workflow_name = name
        self._notify()

    def set_workflow_id(self, workflow_id: Optional[str]) -> None:
        self.workflow_id = workflow_id
        self._notify()

    def set_global_config(self, patch: Dict[str, Any]) -> None:
        self.global_config = {**self.global_config, **patch}
        self._notify()

    def load_workflow(
        self,
        nodes: Iterable[GraphNode],
        edges: Iterable[GraphEdge],
        global_config: Optional[Dict[str, Any]] = None,
    ) -> None:
        """
        Replace the whole document.

        Ids stay unique: a node or edge repeating an earlier id is dropped,
        as is an edge with a missing endpoint. Each drop is logged.
        """
        kept_nodes = []
        node_ids = set()
        for n in nodes:
            if n.id in node_ids:
                log.warning("dropping node %s: duplicate id", n.id)
                continue
            node_ids.add(n.id)
            kept_nodes.append(n)
        kept = []
        edge_ids = set()
        for e in edges:
            if e.id in edge_ids:
                log.warning("dropping edge %s: duplicate id", e.id)
                continue
            if e.source not in node_ids or e.target not in node_ids:
                log.warning("dropping edge %s: endpoint %s -> %s not in document", e.id, e.source, e.target)
                continue
            edge_ids.add(e.id)
            kept.append(e)
        self.nodes = tuple(kept_nodes)
        self.edges = tuple(kept)
        self.global_config = dict(global_config or {})
        self.selected_node_id = None
        log.info("loaded workflow: %d nodes, %d edges", len(self.nodes), len(self.edges))
        self._notify()

    def close(self) -> None:
        """Discard the document and all subscribers."""
        self._reset()
        self._listeners.clear()

    # ---------- message passing ----------

    def dispatch(self, action: Any) -> None:
        if isinstance(action, RemoveEdge):
            self.remove_edge(action.edge_id)
        elif isinstance(action, RemoveNode):
            self.remove_node(action.node_id)
        elif isinstance(action, AddNode):
            self.add_node(action.node)
        elif isinstance(action, AddEdge):
            self.add_edge(action.edge)
        elif isinstance(action, SelectEdge):
            self.set_edge_selected(action.edge_id, action.selected)
        elif isinstance(action, UpdateNodeConfig):
            self.update_node_config(action.node_id, action.patch)
        elif isinstance(action, UpdateNodeLabel):
            self.update_node_label(action.node_id, action.label)
        elif isinstance(action, SelectNode):
            self.select_node(action.node_id)
        elif isinstance(action, LoadWorkflow):
            self.load_workflow(action.nodes, action.edges, action.global_config)
        else:
            raise TypeError(f"Unknown store action: {action!r}")

    # ---------- serialisation ----------

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.workflow_id,
            "name": self.workflow_name,
            "nodes": [node_to_dict(n) for n in self.nodes],
            "edges": [edge_to_dict(e) for e in self.edges],
            "globalConfig": dict(self.global_config),
        }

    @classmethod
    def from_dict(cls, doc: Dict[str, Any]) -> "GraphStore":
        store = cls()
        store.workflow_id = doc.get("id")
        store.workflow_name = doc.get("name") or DEFAULT_WORKFLOW_NAME
        store.load_workflow(
            [node_from_dict(n) for n in doc.get("nodes") or []],
            [edge_from_dict(e) for e in doc.get("edges") or []],
            doc.get("globalConfig") or {},
        )
        return store


# ---------------------------------------------------------------------------
# Wire helpers (canvas document shape)
# ---------------------------------------------------------------------------

def node_to_dict(node: GraphNode) -> Dict[str, Any]:
    data: Dict[str, Any] = {"label": node.label, "nodeType": node.node_type, "config": dict(node.config)}
    if node.output_schema is not None:
        data["outputSchema"] = schema_to_dict(node.output_schema)
    return {
        "id": node.id,
        "position": {"x": node.position[0], "y": node.position[1]},
        "data": data,
    }


def node_from_dict(raw: Dict[str, Any]) -> GraphNode:
    data = raw.get("data") or {}
    pos = raw.get("position") or {}
    schema = data.get("outputSchema")
    return GraphNode(
        id=str(raw["id"]),
        node_type=data.get("nodeType") or raw.get("type") or "",
        label=data.get("label", ""),
        position=(float(pos.get("x", 0.0)), float(pos.get("y", 0.0))),
        config=dict(data.get("config") or {}),
        output_schema=schema_from_dict(schema) if schema is not None else None,
    )


def edge_to_dict(edge: GraphEdge) -> Dict[str, Any]:
    out: Dict[str, Any] = {"id": edge.id, "source": edge.source, "target": edge.target}
    if edge.source_handle is not None:
        out["sourceHandle"] = edge.source_handle
    if edge.target_handle is not None:
        out["targetHandle"] = edge.target_handle
    if edge.selected:
        out["selected"] = True
    if edge.style:
        out["style"] = dict(edge.style)
    if edge.marker_end is not None:
        out["markerEnd"] = edge.marker_end
    return out


def edge_from_dict(raw: Dict[str, Any]) -> GraphEdge:
    return GraphEdge(
        id=str(raw["id"]),
        source=str(raw["source"]),
        target=str(raw["target"]),
        selected=bool(raw.get("selected", False)),
        source_handle=raw.get("sourceHandle"),
        target_handle=raw.get("targetHandle"),
        style=dict(raw.get("style") or {}),
        marker_end=raw.get("markerEnd"),
    )
