# flowshape/editor/document.py

from typing import Any, Dict, List, Tuple

from jsonschema import Draft202012Validator

from flowshape.editor.store import GraphStore
from flowshape.schema.document import validate_schema_document
from flowshape.utils.io import PathLike, load_any
from flowshape.utils.logger import get_logger

log = get_logger("editor.document")


WORKFLOW_DOCUMENT_SCHEMA = {
    "type": "object",
    "required": ["nodes", "edges"],
    "properties": {
        "id": {"type": ["string", "null"]},
        "name": {"type": "string"},
        "nodes": {
            "type": "array",
            "items": {
                "type": "object",
                "required": ["id", "data"],
                "properties": {
                    "id": {"type": "string", "minLength": 1},
                    "position": {
                        "type": "object",
                        "properties": {
                            "x": {"type": "number"},
                            "y": {"type": "number"},
                        },
                        "required": ["x", "y"],
                        "additionalProperties": True,
                    },
                    "data": {
                        "type": "object",
                        "required": ["nodeType"],
                        "properties": {
                            "nodeType": {"type": "string", "minLength": 1},
                            "label": {"type": "string"},
                            "config": {"type": "object"},
                            # validated separately, see check_workflow_document
                            "outputSchema": {"type": "object"},
                        },
                        "additionalProperties": True,
                    },
                },
                "additionalProperties": True,
            },
        },
        "edges": {
            "type": "array",
            "items": {
                "type": "object",
                "required": ["id", "source", "target"],
                "properties": {
                    "id": {"type": "string", "minLength": 1},
                    "source": {"type": "string"},
                    "target": {"type": "string"},
                    "sourceHandle": {"type": ["string", "null"]},
                    "targetHandle": {"type": ["string", "null"]},
                    "selected": {"type": "boolean"},
                },
                "additionalProperties": True,
            },
        },
        "globalConfig": {"type": "object"},
    },
    "additionalProperties": True,
}

_VALIDATOR = Draft202012Validator(WORKFLOW_DOCUMENT_SCHEMA)


def check_workflow_document(doc: Any) -> Tuple[bool, List[str]]:
    """
    Validate a saved editor document before loading it into a store.

    Issues are tagged:
      [SCHEMA]    document shape
      [NODE]      a node's embedded output schema
      [STRUCTURE] duplicate ids, edges pointing at missing nodes
    Edges with a missing endpoint are reported but are not fatal: the store
    drops them on load.
    """
    issues: List[str] = []
    for err in sorted(_VALIDATOR.iter_errors(doc), key=lambda e: [str(p) for p in e.absolute_path]):
        where = "/".join(str(p) for p in err.absolute_path) or "<root>"
        issues.append(f"[SCHEMA] {where}: {err.message}")
    if issues:
        return False, issues

    fatal = False
    node_ids: Dict[str, int] = {}
    for n in doc["nodes"]:
        node_ids[n["id"]] = node_ids.get(n["id"], 0) + 1
        schema = n["data"].get("outputSchema")
        if schema is not None:
            ok, schema_issues = validate_schema_document(schema)
            if not ok:
                fatal = True
                issues.extend(f"[NODE] {n['id']}: {msg}" for msg in schema_issues)

    for nid, count in node_ids.items():
        if count > 1:
            fatal = True
            issues.append(f"[STRUCTURE] Duplicate node id '{nid}' ({count} occurrences)")

    edge_ids = set()
    for e in doc["edges"]:
        if e["id"] in edge_ids:
            fatal = True
            issues.append(f"[STRUCTURE] Duplicate edge id '{e['id']}'")
        edge_ids.add(e["id"])
        for end in ("source", "target"):
            if e[end] not in node_ids:
                issues.append(f"[STRUCTURE] Edge '{e['id']}' {end} '{e[end]}' is not a node in the document")

    return not fatal, issues


def load_workflow_document(path: PathLike) -> GraphStore:
    """Read, check and load an editor document into a fresh store."""
    doc = load_any(path)
    ok, issues = check_workflow_document(doc)
    for msg in issues:
        log.warning("%s: %s", path, msg)
    if not ok:
        raise ValueError(f"Invalid workflow document {path}: {'; '.join(issues)}")
    return GraphStore.from_dict(doc)
