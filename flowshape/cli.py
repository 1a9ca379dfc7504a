#!/usr/bin/env python3
# flowshape/cli.py

from pathlib import Path
from typing import Optional

import typer
import yaml

from flowshape.client.errors import FrontendApiError, Unauthorized
from flowshape.client.workflows import fetch_workflows
from flowshape.config import load_settings
from flowshape.editor.document import load_workflow_document
from flowshape.editor.upstream import get_upstream_nodes
from flowshape.providers import AI_PROVIDERS, providers_by_vendor
from flowshape.render.preview import preview_value
from flowshape.render.tree import format_tree
from flowshape.schema.document import load_schema, validate_schema_document
from flowshape.schema.infer import infer_schema
from flowshape.schema.model import SchemaError, schema_to_dict
from flowshape.utils.io import load_any, write_json, write_text
from flowshape.utils.logger import init_logger, parse_level

app = typer.Typer(help="flowshape CLI - inspect workflow data schemas and editor documents")


def _fail(message: str) -> None:
    typer.secho(message, fg=typer.colors.RED, err=True)
    raise typer.Exit(code=1)


@app.callback()
def main(
    ctx: typer.Context,
    config: Optional[Path] = typer.Option(None, "--config", "-c", exists=True, readable=True, help="YAML/JSON settings file"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
):
    """Resolve settings once and set up logging for every command."""
    try:
        settings = load_settings(config)
    except (ValueError, yaml.YAMLError) as e:
        _fail(f"[config] {e}")
    level = parse_level("DEBUG" if verbose else settings.log_level)
    init_logger(level=level, log_dir=settings.log_dir)
    ctx.obj = settings


@app.command()
def tree(
    input: Path = typer.Option(..., "--input", "-i", exists=True, readable=True, help="Schema document (JSON/YAML)"),
    label: str = typer.Option("root", "--label", help="Label of the root row"),
    indent: int = typer.Option(2, "--indent", help="Spaces per depth level"),
    out: Optional[Path] = typer.Option(None, "--out", help="Also write the tree to this file"),
):
    """Print the tree projection of a data schema."""
    try:
        schema = load_schema(input)
    except SchemaError as e:
        for issue in e.issues:
            typer.secho(f"- {issue}", fg=typer.colors.RED, err=True)
        _fail(str(e))
    text = format_tree(schema, label=label, indent=indent)
    print(text)
    if out is not None:
        write_text(out, text + "\n")
        print(f"[ok] wrote {out}")


@app.command()
def validate(
    input: Path = typer.Option(..., "--input", "-i", exists=True, readable=True, help="Schema document (JSON/YAML)"),
):
    """Check a schema document and list every issue found."""
    ok, issues = validate_schema_document(load_any(input))
    if ok:
        print(f"[ok] {input} is a valid data schema")
        return
    print("Detected issues:")
    for it in issues:
        print(f"- {it}")
    raise typer.Exit(code=1)


@app.command()
def preview(
    input: Path = typer.Option(..., "--input", "-i", exists=True, readable=True, help="Value file (JSON/YAML/text)"),
):
    """Print the bounded, redacted preview of a value."""
    print(preview_value(load_any(input)))


@app.command()
def infer(
    input: Path = typer.Option(..., "--input", "-i", exists=True, readable=True, help="Sample value file (JSON/YAML)"),
    out: Optional[Path] = typer.Option(None, "--out", help="Write the inferred schema as JSON"),
    show_tree: bool = typer.Option(True, "--tree/--no-tree", help="Print the tree projection"),
):
    """Infer a data schema from a sample value."""
    schema = infer_schema(load_any(input))
    if show_tree:
        print(format_tree(schema))
    if out is not None:
        write_json(out, schema_to_dict(schema))
        print(f"[ok] wrote {out}")


@app.command()
def upstream(
    input: Path = typer.Option(..., "--input", "-i", exists=True, readable=True, help="Editor workflow document"),
    node: str = typer.Option(..., "--node", "-n", help="Target node id"),
):
    """List the data-producing ancestors of a node with their output schemas."""
    try:
        store = load_workflow_document(input)
    except ValueError as e:
        _fail(str(e))
    if store.node(node) is None:
        _fail(f"Node '{node}' is not in {input}")

    ancestors = get_upstream_nodes(store, node)
    if not ancestors:
        print("No upstream nodes connected")
        return
    for up in ancestors:
        print(f"{up.label} ({up.node_id}, {up.node_type}) via {up.source_handle}")
        if up.schema is None:
            print("  <dynamic output>")
            continue
        for line in format_tree(up.schema).splitlines():
            print(f"  {line}")


@app.command()
def workflows(
    ctx: typer.Context,
    base_url: Optional[str] = typer.Option(None, "--base-url", help="Frontend base URL (default from settings)"),
    token: Optional[str] = typer.Option(None, "--token", help="Bearer token (default FLOWSHAPE_TOKEN)"),
):
    """List workflows from the editor frontend."""
    settings = ctx.obj
    token = token or settings.token
    if not token:
        _fail("No token: pass --token or set FLOWSHAPE_TOKEN")

    try:
        items = fetch_workflows(base_url or settings.base_url, token, timeout=settings.timeout)
    except Unauthorized as e:
        _fail(f"[auth] {e.message} - log in again to refresh your token")
    except FrontendApiError as e:
        _fail(f"[api] {e.message}")

    if not items:
        print("No workflows")
        return
    for wf in items:
        print(f"{wf.id}  {wf.name}  nodes={wf.node_count}  status={wf.status}")


@app.command()
def providers(
    vendor: Optional[str] = typer.Option(None, "--vendor", help="Only this vendor (OpenAI, Anthropic, Google)"),
):
    """Print the AI provider registry."""
    entries = providers_by_vendor(vendor) if vendor else AI_PROVIDERS
    for p in entries:
        print(f"{p.value:<24} {p.label:<24} {p.provider:<10} {p.base_url}")


if __name__ == "__main__":
    app()
