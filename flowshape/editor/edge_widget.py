# flowshape/editor/edge_widget.py

from flowshape.editor.store import GraphStore


class EdgeWidget:
    """
    Canvas edge bound to a store: clicking toggles selection, and the
    delete control is only shown (and only acts) while the edge is selected.
    """

    def __init__(self, store: GraphStore, edge_id: str):
        self.store = store
        self.edge_id = edge_id

    @property
    def exists(self) -> bool:
        return self.store.edge(self.edge_id) is not None

    @property
    def selected(self) -> bool:
        edge = self.store.edge(self.edge_id)
        return edge is not None and edge.selected

    @property
    def delete_visible(self) -> bool:
        return self.selected

    def click(self) -> None:
        self.store.toggle_edge_selection(self.edge_id)

    def press_delete(self) -> bool:
        """Returns True when a removal was requested."""
        if not self.delete_visible:
            return False
        self.store.remove_edge(self.edge_id)
        return True
