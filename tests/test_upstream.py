# tests/test_upstream.py

from flowshape.editor.store import GraphEdge, GraphNode, GraphStore
from flowshape.editor.upstream import build_graph, get_upstream_nodes
from flowshape.schema.model import LeafSchema, ObjectSchema, SchemaField

TRIGGER_SCHEMA = ObjectSchema((SchemaField("body", LeafSchema("any")),))
HTTP_SCHEMA = ObjectSchema((SchemaField("statusCode", LeafSchema("number")), SchemaField("body", LeafSchema("string"))))


def _store(nodes, edges):
    s = GraphStore()
    s.load_workflow(nodes, edges)
    return s


def test_closest_first_through_passthrough_nodes():
    store = _store(
        [
            GraphNode("trigger", "httpTrigger", "Webhook", output_schema=TRIGGER_SCHEMA),
            GraphNode("http", "httpRequest", "Fetch", output_schema=HTTP_SCHEMA),
            GraphNode("cond", "if", "Check"),
            GraphNode("out", "return", "Return"),
        ],
        [
            GraphEdge("e1", "trigger", "http"),
            GraphEdge("e2", "http", "cond"),
            GraphEdge("e3", "cond", "out", source_handle="true"),
        ],
    )

    ups = get_upstream_nodes(store, "out")
    assert [u.node_id for u in ups] == ["http", "trigger"]
    assert ups[0].schema is HTTP_SCHEMA
    assert ups[0].source_handle == "output"
    assert ups[1].label == "Webhook"


def test_each_ancestor_reported_once():
    # diamond: a -> b -> d, a -> c -> d
    store = _store(
        [GraphNode(i, "log", i.upper()) for i in "abcd"],
        [
            GraphEdge("ab", "a", "b"),
            GraphEdge("ac", "a", "c"),
            GraphEdge("bd", "b", "d"),
            GraphEdge("cd", "c", "d"),
        ],
    )
    ids = [u.node_id for u in get_upstream_nodes(store, "d")]
    assert sorted(ids) == ["a", "b", "c"]
    assert ids[-1] == "a"


def test_dynamic_output_has_no_schema():
    store = _store(
        [GraphNode("code", "codeNode"), GraphNode("log", "log")],
        [GraphEdge("e", "code", "log", source_handle="result")],
    )
    (up,) = get_upstream_nodes(store, "log")
    assert up.schema is None
    assert up.source_handle == "result"


def test_no_upstream():
    store = _store([GraphNode("a", "cron")], [])
    assert get_upstream_nodes(store, "a") == []
    assert get_upstream_nodes(store, "missing") == []


def test_upstream_follows_edge_removal():
    store = _store(
        [GraphNode("a", "cron"), GraphNode("b", "log")],
        [GraphEdge("e1", "a", "b")],
    )
    assert len(get_upstream_nodes(store, "b")) == 1
    store.remove_edge("e1")
    assert get_upstream_nodes(store, "b") == []


def test_build_graph_skips_dangling_edges():
    G = build_graph([GraphNode("a", "cron")], [GraphEdge("x", "a", "ghost")])
    assert G.number_of_nodes() == 1
    assert G.number_of_edges() == 0
