# flowshape/schema/document.py

from typing import Any, List, Tuple

from jsonschema import Draft202012Validator

from flowshape.schema.model import DataSchema, SchemaError, schema_from_dict
from flowshape.utils.io import PathLike, load_any
from flowshape.utils.logger import get_logger

log = get_logger("schema")


# Recursive JSON Schema for the editor's data-schema documents.
# The type tag is left open: unknown tags are valid leaves.
DATA_SCHEMA_JSONSCHEMA = {
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "$ref": "#/$defs/dataSchema",
    "$defs": {
        "dataSchema": {
            "type": "object",
            "required": ["type"],
            "properties": {
                "type": {"type": "string", "minLength": 1},
                "path": {"type": "string"},
                "fields": {
                    "type": "array",
                    "items": {"$ref": "#/$defs/field"},
                },
                "itemSchema": {"$ref": "#/$defs/dataSchema"},
            },
            # fields/itemSchema are mutually exclusive
            "not": {"required": ["fields", "itemSchema"]},
            "allOf": [
                {
                    "if": {"properties": {"type": {"const": "array"}}},
                    "then": {"required": ["itemSchema"]},
                },
                {
                    "if": {"properties": {"type": {"not": {"const": "object"}}}},
                    "then": {"not": {"required": ["fields"]}},
                },
                {
                    "if": {"properties": {"type": {"not": {"const": "array"}}}},
                    "then": {"not": {"required": ["itemSchema"]}},
                },
            ],
            "additionalProperties": True,
        },
        "field": {
            "type": "object",
            "required": ["key", "schema"],
            "properties": {
                "key": {"type": "string"},
                "optional": {"type": "boolean"},
                "path": {"type": "string"},
                "schema": {"$ref": "#/$defs/dataSchema"},
            },
            "additionalProperties": True,
        },
    },
}

_VALIDATOR = Draft202012Validator(DATA_SCHEMA_JSONSCHEMA)


def validate_schema_document(raw: Any) -> Tuple[bool, List[str]]:
    """
    Validate a raw schema document and collect human-readable issues.

    Returns (ok, issues). Structural problems come from the JSON Schema
    validator; duplicate field keys, which JSON Schema cannot express,
    are reported by building the model.
    """
    issues: List[str] = []

    for err in sorted(_VALIDATOR.iter_errors(raw), key=lambda e: [str(p) for p in e.absolute_path]):
        where = "/".join(str(p) for p in err.absolute_path) or "<root>"
        issues.append(f"[SCHEMA] {where}: {err.message}")

    if not issues:
        try:
            schema_from_dict(raw)
        except SchemaError as e:
            issues.append(f"[SCHEMA] {e}")

    return len(issues) == 0, issues


def load_schema(path: PathLike) -> DataSchema:
    """Read a JSON/YAML schema document, validate it and build the model."""
    raw = load_any(path)
    ok, issues = validate_schema_document(raw)
    if not ok:
        log.warning("schema document %s rejected (%d issues)", path, len(issues))
        raise SchemaError(f"Invalid schema document: {path}", issues=issues)
    return schema_from_dict(raw)
