# flowshape/schema/infer.py
"""
Infer a data schema from a sample runtime value.

Used when a node has no declared output schema: the editor runs the node
once and derives the shape from what came back. Work is bounded by the same
caps as the value preview.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Dict, List

from flowshape.schema.model import (
    ArraySchema,
    DataSchema,
    LeafSchema,
    ObjectSchema,
    SchemaField,
    SchemaKind,
)

MAX_DEPTH = 6
MAX_ARRAY_ITEMS = 20
MAX_OBJECT_KEYS = 50


def infer_schema(value: Any) -> DataSchema:
    """Derive a schema from `value`; the root path is the empty string."""
    return _infer(value, "", 0)


def kind_of(value: Any) -> str:
    if value is None:
        return SchemaKind.NULL.value
    # bool before int: bool is an int subclass
    if isinstance(value, bool):
        return SchemaKind.BOOLEAN.value
    if isinstance(value, (int, float)):
        return SchemaKind.NUMBER.value
    if isinstance(value, str):
        return SchemaKind.STRING.value
    if isinstance(value, (list, tuple)):
        return SchemaKind.ARRAY.value
    if isinstance(value, Mapping):
        return SchemaKind.OBJECT.value
    return SchemaKind.UNKNOWN.value


def append_field_path(path: str, key: str) -> str:
    return f"{path}.{key}" if path else key


def append_array_path(path: str) -> str:
    return f"{path}[]" if path else "[]"


def _infer(value: Any, path: str, depth: int) -> DataSchema:
    if depth >= MAX_DEPTH:
        return LeafSchema(SchemaKind.UNKNOWN.value, path)

    kind = kind_of(value)

    if kind == SchemaKind.ARRAY.value:
        item_path = append_array_path(path)
        items = list(value[:MAX_ARRAY_ITEMS])
        if not items:
            return ArraySchema(LeafSchema(SchemaKind.UNKNOWN.value, item_path), path)
        return ArraySchema(
            merge_schemas([_infer(item, item_path, depth + 1) for item in items], item_path),
            path,
        )

    if kind == SchemaKind.OBJECT.value:
        fields = []
        seen = set()
        for i, (key, child) in enumerate(value.items()):
            if i >= MAX_OBJECT_KEYS:
                break
            key = str(key)
            # 1 and "1" both stringify to "1": the first one wins
            if key in seen:
                continue
            seen.add(key)
            child_path = append_field_path(path, key)
            fields.append(SchemaField(key=key, schema=_infer(child, child_path, depth + 1), path=child_path))
        return ObjectSchema(tuple(fields), path)

    return LeafSchema(kind, path)


def merge_schemas(schemas: List[DataSchema], path: str) -> DataSchema:
    """
    Merge element schemas of one array into a single item schema.

    Mixed types collapse to "unknown". Object fields are unioned and sorted
    by key; a field is optional when some sample lacks it.
    """
    if not schemas:
        return LeafSchema(SchemaKind.UNKNOWN.value, path)

    first = schemas[0].type
    if any(s.type != first for s in schemas):
        return LeafSchema(SchemaKind.UNKNOWN.value, path)

    if first == SchemaKind.OBJECT.value:
        buckets: Dict[str, List[SchemaField]] = {}
        for s in schemas:
            for f in s.fields:
                buckets.setdefault(f.key, []).append(f)
        fields = []
        for key in sorted(buckets):
            bucket = buckets[key]
            field_path = bucket[0].path or append_field_path(path, key)
            fields.append(
                SchemaField(
                    key=key,
                    schema=merge_schemas([f.schema for f in bucket], field_path),
                    optional=len(bucket) < len(schemas),
                    path=field_path,
                )
            )
        return ObjectSchema(tuple(fields), path)

    if first == SchemaKind.ARRAY.value:
        return ArraySchema(
            merge_schemas([s.item_schema for s in schemas], append_array_path(path)),
            path,
        )

    return LeafSchema(first, path)
