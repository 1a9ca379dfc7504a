# flowshape/schema/model.py
"""
Data schema model.

A schema describes the shape of a value flowing between workflow nodes,
independent of any concrete value. It is a sum type of three variants:

  - LeafSchema   : primitives, "any", "unknown" and any tag we do not know
  - ObjectSchema : ordered, uniquely-keyed fields
  - ArraySchema  : one item schema shared by every element

Schemas are immutable and built either directly or from the JSON wire shape
used by the editor (`{type, path?, fields?, itemSchema?}`).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterator, List, Mapping, Optional, Tuple, Union


class SchemaKind(str, Enum):
    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    NULL = "null"
    OBJECT = "object"
    ARRAY = "array"
    ANY = "any"
    UNKNOWN = "unknown"


CONTAINER_KINDS = frozenset({SchemaKind.OBJECT.value, SchemaKind.ARRAY.value})


class SchemaError(ValueError):
    """Raised when a schema cannot be constructed from its parts."""

    def __init__(self, message: str, issues: Optional[List[str]] = None):
        super().__init__(message)
        self.issues = list(issues) if issues else [message]


@dataclass(frozen=True)
class LeafSchema:
    type: str
    path: Optional[str] = None

    def __post_init__(self):
        if not isinstance(self.type, str) or not self.type:
            raise SchemaError(f"Schema type must be a non-empty string, got {self.type!r}")
        if self.type in CONTAINER_KINDS:
            raise SchemaError(f"'{self.type}' is a container type and cannot be a leaf schema")


@dataclass(frozen=True)
class SchemaField:
    key: str
    schema: "DataSchema"
    optional: bool = False
    path: Optional[str] = None

    def __post_init__(self):
        if not isinstance(self.key, str):
            raise SchemaError(f"Field key must be a string, got {self.key!r}")
        if not isinstance(self.schema, SCHEMA_TYPES):
            raise SchemaError(f"Field '{self.key}' has no valid schema")


@dataclass(frozen=True)
class ObjectSchema:
    fields: Tuple[SchemaField, ...] = ()
    path: Optional[str] = None
    type: str = field(default=SchemaKind.OBJECT.value, init=False)

    def __post_init__(self):
        # accept any sequence but store a tuple
        object.__setattr__(self, "fields", tuple(self.fields))
        seen = set()
        for f in self.fields:
            if not isinstance(f, SchemaField):
                raise SchemaError(f"Object fields must be SchemaField instances, got {f!r}")
            if f.key in seen:
                raise SchemaError(f"Duplicate field key '{f.key}' in object schema")
            seen.add(f.key)

    def get_field(self, key: str) -> Optional[SchemaField]:
        for f in self.fields:
            if f.key == key:
                return f
        return None


@dataclass(frozen=True)
class ArraySchema:
    item_schema: "DataSchema"
    path: Optional[str] = None
    type: str = field(default=SchemaKind.ARRAY.value, init=False)

    def __post_init__(self):
        if not isinstance(self.item_schema, SCHEMA_TYPES):
            raise SchemaError("Array schema requires an item schema")


DataSchema = Union[LeafSchema, ObjectSchema, ArraySchema]
SCHEMA_TYPES = (LeafSchema, ObjectSchema, ArraySchema)


def child_entries(schema: DataSchema) -> Iterator[Tuple[str, DataSchema, bool]]:
    """
    Yield (label, child schema, optional) for the direct children of a node.

    Object fields come in stored order; an array has exactly one child
    labelled "[]"; leaves have none.
    """
    if isinstance(schema, ObjectSchema):
        for f in schema.fields:
            yield f.key, f.schema, f.optional
    elif isinstance(schema, ArraySchema):
        yield "[]", schema.item_schema, False
    elif isinstance(schema, LeafSchema):
        return
    else:
        raise TypeError(f"Not a data schema: {schema!r}")


def count_nodes(schema: DataSchema) -> int:
    """Number of schema nodes in the tree rooted at `schema`."""
    total = 0
    stack: List[DataSchema] = [schema]
    while stack:
        node = stack.pop()
        total += 1
        stack.extend(child for _, child, _ in child_entries(node))
    return total


# ---------------------------------------------------------------------------
# Wire format
# ---------------------------------------------------------------------------

def schema_from_dict(raw: Mapping[str, Any]) -> DataSchema:
    """
    Build a schema from its JSON shape.

    A raw schema populating both `fields` and `itemSchema`, or populating one
    that does not match its `type`, is rejected with SchemaError.
    """
    return _from_dict(raw, where="root")


def _from_dict(raw: Any, where: str) -> DataSchema:
    if not isinstance(raw, Mapping):
        raise SchemaError(f"{where}: schema must be an object, got {type(raw).__name__}")

    tag = raw.get("type")
    if not isinstance(tag, str) or not tag:
        raise SchemaError(f"{where}: schema 'type' must be a non-empty string")

    path = raw.get("path")
    if path is not None and not isinstance(path, str):
        raise SchemaError(f"{where}: schema 'path' must be a string")

    has_fields = raw.get("fields") is not None
    has_items = raw.get("itemSchema") is not None

    if has_fields and has_items:
        raise SchemaError(f"{where}: schema cannot have both 'fields' and 'itemSchema'")

    if tag == SchemaKind.OBJECT.value:
        if has_items:
            raise SchemaError(f"{where}: object schema cannot have 'itemSchema'")
        raw_fields = raw.get("fields") or []
        if not isinstance(raw_fields, (list, tuple)):
            raise SchemaError(f"{where}: 'fields' must be a list")
        fields = []
        for i, rf in enumerate(raw_fields):
            if not isinstance(rf, Mapping):
                raise SchemaError(f"{where}.fields[{i}]: field must be an object")
            key = rf.get("key")
            if not isinstance(key, str):
                raise SchemaError(f"{where}.fields[{i}]: field 'key' must be a string")
            optional = rf.get("optional", False)
            if not isinstance(optional, bool):
                raise SchemaError(f"{where}.{key}: field 'optional' must be a boolean, got {optional!r}")
            fields.append(
                SchemaField(
                    key=key,
                    schema=_from_dict(rf.get("schema"), where=f"{where}.{key}"),
                    optional=optional,
                    path=rf.get("path"),
                )
            )
        return ObjectSchema(fields=tuple(fields), path=path)

    if tag == SchemaKind.ARRAY.value:
        if has_fields:
            raise SchemaError(f"{where}: array schema cannot have 'fields'")
        if not has_items:
            raise SchemaError(f"{where}: array schema requires 'itemSchema'")
        return ArraySchema(item_schema=_from_dict(raw["itemSchema"], where=f"{where}[]"), path=path)

    if has_fields or has_items:
        raise SchemaError(f"{where}: '{tag}' schema cannot have 'fields' or 'itemSchema'")
    return LeafSchema(type=tag, path=path)


def schema_to_dict(schema: DataSchema) -> Dict[str, Any]:
    """Inverse of schema_from_dict; emits only the members of the variant."""
    out: Dict[str, Any] = {"type": schema.type}
    if schema.path is not None:
        out["path"] = schema.path
    if isinstance(schema, ObjectSchema):
        fields = []
        for f in schema.fields:
            entry: Dict[str, Any] = {"key": f.key, "optional": f.optional}
            if f.path is not None:
                entry["path"] = f.path
            entry["schema"] = schema_to_dict(f.schema)
            fields.append(entry)
        out["fields"] = fields
    elif isinstance(schema, ArraySchema):
        out["itemSchema"] = schema_to_dict(schema.item_schema)
    return out
