from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Optional

import click

from .errors import RagError
from .knowledge_base import KnowledgeBase, build_knowledge_base

_log = logging.getLogger(__name__)


def _get_knowledge_base() -> KnowledgeBase:
    return build_knowledge_base()


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging.")
def main(verbose: bool) -> None:
    """CLI entrypoint for embedding resources and querying them."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


@main.command("ingest")
@click.argument("source", type=click.Path(exists=True, dir_okay=False, path_type=Path), required=False)
@click.option("--text", "text", default=None, help="Resource text given inline instead of a file.")
@click.option("--resource-id", default=None, help="Identifier for the resource (generated if omitted).")
def ingest(source: Optional[Path], text: Optional[str], resource_id: Optional[str]) -> None:
    """Chunk, embed and store a resource read from SOURCE or --text."""
    if (source is None) == (text is None):
        raise click.UsageError("Provide exactly one of SOURCE or --text.")
    content = text if text is not None else source.read_text(encoding="utf-8")

    try:
        result = _get_knowledge_base().add_resource(content, resource_id=resource_id)
    except RagError as exc:
        raise click.ClickException(str(exc)) from exc

    click.echo(f"{result.resource_id}\t{result.chunk_count} chunks")


@main.command("query")
@click.argument("question")
@click.option("--json", "as_json", is_flag=True, help="Print results as JSON.")
def query(question: str, as_json: bool) -> None:
    """Print the stored chunks most relevant to QUESTION."""
    try:
        results = _get_knowledge_base().find_relevant_content(question)
    except RagError as exc:
        raise click.ClickException(str(exc)) from exc

    if as_json:
        click.echo(json.dumps([r.model_dump() for r in results], ensure_ascii=False, indent=2))
        return
    if not results:
        click.echo("No relevant content found.")
        return
    for r in results:
        click.echo(f"{r.similarity:.4f}\t{r.content.strip()}")


@main.command("delete")
@click.argument("resource_id")
def delete(resource_id: str) -> None:
    """Delete all stored chunks of RESOURCE_ID."""
    try:
        removed = _get_knowledge_base().delete_resource(resource_id)
    except RagError as exc:
        raise click.ClickException(str(exc)) from exc
    click.echo(f"Deleted {removed} chunks")


if __name__ == "__main__":
    main()
