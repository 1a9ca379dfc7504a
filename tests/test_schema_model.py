# tests/test_schema_model.py

import pytest

from flowshape.render.tree import SchemaTree, format_tree, iter_schema_rows
from flowshape.schema.model import (
    ArraySchema,
    LeafSchema,
    ObjectSchema,
    SchemaError,
    SchemaField,
    child_entries,
    count_nodes,
    schema_from_dict,
    schema_to_dict,
)


def _user_schema():
    return ObjectSchema(
        fields=(
            SchemaField("name", LeafSchema("string")),
            SchemaField("age", LeafSchema("number"), optional=True),
            SchemaField(
                "orders",
                ArraySchema(
                    ObjectSchema(
                        fields=(
                            SchemaField("id", LeafSchema("string")),
                            SchemaField("total", LeafSchema("number"), optional=True),
                        )
                    )
                ),
            ),
        )
    )


def test_variant_type_tags():
    assert LeafSchema("string").type == "string"
    assert ObjectSchema().type == "object"
    assert ArraySchema(LeafSchema("any")).type == "array"


def test_leaf_cannot_be_container():
    with pytest.raises(SchemaError):
        LeafSchema("object")
    with pytest.raises(SchemaError):
        LeafSchema("array")
    with pytest.raises(SchemaError):
        LeafSchema("")


def test_duplicate_field_keys_rejected():
    with pytest.raises(SchemaError, match="Duplicate field key 'a'"):
        ObjectSchema(fields=(SchemaField("a", LeafSchema("string")), SchemaField("a", LeafSchema("number"))))


def test_field_order_is_preserved():
    keys = ["zeta", "alpha", "mid"]
    schema = ObjectSchema(fields=[SchemaField(k, LeafSchema("string")) for k in keys])
    assert isinstance(schema.fields, tuple)
    assert [label for label, _, _ in child_entries(schema)] == keys
    assert schema.get_field("alpha").key == "alpha"
    assert schema.get_field("missing") is None


def test_array_requires_item_schema():
    with pytest.raises(SchemaError):
        ArraySchema(None)


def test_from_dict_rejects_fields_and_item_schema_together():
    raw = {"type": "array", "fields": [], "itemSchema": {"type": "string"}}
    with pytest.raises(SchemaError, match="both"):
        schema_from_dict(raw)


@pytest.mark.parametrize(
    "raw",
    [
        {"type": "string", "fields": []},
        {"type": "number", "itemSchema": {"type": "string"}},
        {"type": "object", "itemSchema": {"type": "string"}},
        {"type": "array", "fields": []},
        {"type": "array"},
        {"fields": []},
        {"type": 3},
        "string",
        {"type": "object", "fields": [{"optional": True, "schema": {"type": "string"}}]},
        {"type": "object", "fields": [{"key": "x"}]},
    ],
)
def test_from_dict_rejects_malformed(raw):
    with pytest.raises(SchemaError):
        schema_from_dict(raw)


def test_unknown_tag_is_a_leaf():
    schema = schema_from_dict({"type": "bytes32", "path": "hash"})
    assert isinstance(schema, LeafSchema)
    assert schema.type == "bytes32"
    assert list(child_entries(schema)) == []


def test_to_dict_emits_variant_members_only():
    raw = {
        "type": "object",
        "path": "",
        "fields": [
            {"key": "tags", "optional": True, "path": "tags",
             "schema": {"type": "array", "path": "tags", "itemSchema": {"type": "string", "path": "tags[]"}}},
        ],
    }
    assert schema_to_dict(schema_from_dict(raw)) == raw
    assert schema_to_dict(LeafSchema("null")) == {"type": "null"}


def test_count_nodes():
    assert count_nodes(LeafSchema("string")) == 1
    assert count_nodes(_user_schema()) == 7


def test_rows_are_preorder_with_depths():
    rows = list(SchemaTree(_user_schema()))
    assert [(r.label, r.type, r.depth) for r in rows] == [
        ("root", "object", 0),
        ("name", "string", 1),
        ("age?", "number", 1),
        ("orders", "array", 1),
        ("[]", "object", 2),
        ("id", "string", 3),
        ("total?", "number", 3),
    ]


def test_optional_marker_iff_optional():
    for row in SchemaTree(_user_schema()):
        assert row.label.endswith("?") == row.optional


def test_depth_is_parent_plus_one():
    # in pre-order the parent is the closest earlier row with depth - 1
    rows = list(SchemaTree(_user_schema()))
    assert rows[0].depth == 0
    for i, row in enumerate(rows[1:], start=1):
        parents = [r for r in rows[:i] if r.depth < row.depth]
        assert parents[-1].depth == row.depth - 1


def test_tree_is_lazy_and_restartable():
    tree = SchemaTree(_user_schema(), label="payload")
    it = iter(tree)
    first = next(it)
    assert first.label == "payload"
    # a second iteration starts over, independent of the first
    assert tree.rows()[0].label == "payload"
    assert len(tree.rows()) == len(list(tree)) == 7
    assert next(it).label == "name"


def test_deep_schema_does_not_hit_recursion_limit():
    schema = LeafSchema("string")
    for _ in range(3000):
        schema = ArraySchema(schema)
    rows = iter_schema_rows(schema)
    last = None
    for last in rows:
        pass
    assert last.depth == 3000
    assert last.type == "string"


def test_format_tree():
    schema = schema_from_dict(
        {"type": "object", "fields": [{"key": "id", "schema": {"type": "string", "path": "id"}}]}
    )
    assert format_tree(schema) == "root  object\n  id  string  id"
    assert format_tree(schema, label="out", indent=4).splitlines()[1] == "    id  string  id"


@pytest.mark.parametrize("flag", ["false", 0, None])
def test_from_dict_requires_boolean_optional(flag):
    raw = {"type": "object", "fields": [{"key": "x", "optional": flag, "schema": {"type": "string"}}]}
    with pytest.raises(SchemaError, match="'optional' must be a boolean"):
        schema_from_dict(raw)
