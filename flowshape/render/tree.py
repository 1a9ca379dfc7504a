# flowshape/render/tree.py

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, List, Optional, Tuple

from flowshape.schema.model import DataSchema, child_entries


@dataclass(frozen=True)
class SchemaRow:
    label: str
    type: str
    path: Optional[str]
    depth: int
    optional: bool = False


class SchemaTree:
    """
    Lazy, restartable pre-order projection of a schema into display rows.

    Every call to iter() walks the schema again from the root; nothing is
    cached. The schema is assumed to be a tree (guaranteed by how schemas
    are built), so there is no cycle detection.
    """

    def __init__(self, schema: DataSchema, label: str = "root"):
        self.schema = schema
        self.label = label

    def __iter__(self) -> Iterator[SchemaRow]:
        return iter_schema_rows(self.schema, self.label)

    def rows(self) -> List[SchemaRow]:
        return list(self)


def iter_schema_rows(schema: DataSchema, label: str = "root") -> Iterator[SchemaRow]:
    # explicit stack keeps deep schemas off the interpreter's recursion limit
    stack: List[Tuple[str, DataSchema, int, bool]] = [(label, schema, 0, False)]
    while stack:
        name, node, depth, optional = stack.pop()
        yield SchemaRow(
            label=f"{name}?" if optional else name,
            type=node.type,
            path=node.path,
            depth=depth,
            optional=optional,
        )
        children = list(child_entries(node))
        for child_label, child, child_optional in reversed(children):
            stack.append((child_label, child, depth + 1, child_optional))


def format_tree(schema: DataSchema, label: str = "root", indent: int = 2) -> str:
    """Plain-text rendering, one row per line: label, type, then path if any."""
    lines = []
    for row in SchemaTree(schema, label):
        line = f"{' ' * (indent * row.depth)}{row.label}  {row.type}"
        if row.path:
            line += f"  {row.path}"
        lines.append(line)
    return "\n".join(lines)
