"""
Command-line interface for the semantic knowledge base.

Commands:
    chunk   Semantically chunk Markdown files and store the chunks
    load    Incrementally bring the store in line with a document tree
    search  Rank stored chunks against a query
    serve   Run the HTTP API

Dependencies: click, rich, semantic_kb.application, semantic_kb.boundary
System role: Operator entry point
"""

import asyncio
import json
import logging
import sys
from dataclasses import dataclass, field
from pathlib import Path

import click
from rich.console import Console
from rich.table import Table

from semantic_kb.application.services.indexing_service import IndexingService
from semantic_kb.application.services.search_service import SearchService
from semantic_kb.boundary.db.connection import (
    create_engine_from_settings,
    get_async_session_factory,
    init_db,
)
from semantic_kb.boundary.embeddings.ollama_client import OllamaEmbeddingProvider
from semantic_kb.boundary.embeddings.provider import EmbeddingProvider
from semantic_kb.configs import Settings, get_settings
from semantic_kb.core.exceptions import SemanticKBException
from semantic_kb.core.indexing.categorizer import DEFAULT_EXTENSIONS, discover_files
from semantic_kb.core.indexing.loader import LoaderConfig, LoadStats, RawDocument
from semantic_kb.core.indexing.metadata import build_metadata
from semantic_kb.core.search.embedding_cache import EmbeddingCache
from semantic_kb.core.search.ranking import SearchConfig, SearchPage
from semantic_kb.core.semantic.chunker import SemanticChunker
from semantic_kb.core.semantic.config import STRATEGIES, ChunkerConfig
from semantic_kb.observability.logger import configure_logging

console = Console()
logger = logging.getLogger(__name__)


@dataclass
class ChunkSummary:
    """Per-run counters for the chunk command."""

    total_files: int = 0
    successful: int = 0
    skipped: int = 0
    total_chunks: int = 0
    failed: dict[str, str] = field(default_factory=dict)


def _database_settings(settings: Settings, database_url: str | None):
    if database_url:
        return settings.database.model_copy(update={"url": database_url})
    return settings.database


def _build_provider(settings: Settings, ollama_url: str | None) -> EmbeddingProvider:
    embedding = settings.embedding
    if ollama_url:
        embedding = embedding.model_copy(update={"base_url": ollama_url})
    return OllamaEmbeddingProvider.from_settings(embedding)


def _build_chunker_config(
    settings: Settings,
    strategy: str,
    threshold: float | None,
    max_sentences: int | None,
) -> ChunkerConfig:
    config = ChunkerConfig.for_strategy(strategy).with_overrides(
        similarity_threshold=threshold
        if threshold is not None
        else settings.chunking.similarity_threshold,
        max_chunk_sentences=max_sentences
        if max_sentences is not None
        else settings.chunking.max_chunk_sentences,
        threshold_policy=settings.chunking.threshold_policy,
        model_name=settings.embedding.model,
    )
    config.validate()
    return config


def _validate_threshold(ctx, param, value):
    if value is not None and not 0.0 <= value <= 1.0:
        raise click.BadParameter("must be between 0.0 and 1.0")
    return value


def _validate_max_sentences(ctx, param, value):
    if value is not None and value <= 0:
        raise click.BadParameter("must be greater than 0")
    return value


@click.group()
@click.option("--log-level", default=None, help="Log level (defaults to SKB log_level setting)")
@click.pass_context
def cli(ctx, log_level):
    """Semantic knowledge base - chunk, index and search documentation."""
    ctx.ensure_object(dict)
    settings = get_settings()
    configure_logging(log_level or settings.log_level, stream=sys.stderr)
    ctx.obj["settings"] = settings


@cli.command()
@click.option(
    "--input",
    "-i",
    "inputs",
    multiple=True,
    required=True,
    type=click.Path(exists=True, path_type=Path),
    help="Markdown file or directory (repeatable)",
)
@click.option(
    "--output",
    "-o",
    type=click.Path(path_type=Path),
    default=None,
    help="Directory for per-file chunk summaries (JSON)",
)
@click.option(
    "--strategy",
    type=click.Choice(STRATEGIES, case_sensitive=False),
    default=None,
    help="Chunking preset",
)
@click.option("--threshold", type=float, default=None, callback=_validate_threshold,
              help="Similarity threshold override (0.0-1.0)")
@click.option("--max-sentences", type=int, default=None, callback=_validate_max_sentences,
              help="Maximum sentences per chunk")
@click.option("--dry-run", is_flag=True, help="Report what would be processed without writing")
@click.option("--database-url", default=None, help="Database URL override")
@click.option("--ollama-url", default=None, help="Ollama base URL override")
@click.pass_context
def chunk(ctx, inputs, output, strategy, threshold, max_sentences, dry_run, database_url, ollama_url):
    """Semantically chunk Markdown files and store the chunks."""
    settings: Settings = ctx.obj["settings"]
    if output is not None and output.exists() and not output.is_dir():
        raise click.ClickException(f"Output path exists but is not a directory: {output}")

    try:
        config = _build_chunker_config(
            settings, strategy or settings.chunking.strategy, threshold, max_sentences
        )
        files = discover_files(inputs, settings.indexing.file_extensions or DEFAULT_EXTENSIONS)
    except (SemanticKBException, FileNotFoundError) as e:
        raise click.ClickException(str(e))

    if not files:
        console.print("[yellow]No Markdown files found.[/]")
        return

    console.print(
        f"[blue]Chunking {len(files)} file(s) "
        f"(threshold {config.similarity_threshold:.2f}, "
        f"max {config.max_chunk_sentences} sentences){' [DRY RUN]' if dry_run else ''}[/]"
    )
    if dry_run:
        summary = _dry_run_chunk(files)
    else:
        try:
            summary = asyncio.run(
                _run_chunk(files, config, settings, database_url, ollama_url, output)
            )
        except SemanticKBException as e:
            raise click.ClickException(str(e))

    table = Table(title="Chunking Summary")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right", style="green")
    table.add_row("Total files", str(summary.total_files))
    table.add_row("Successful", str(summary.successful))
    table.add_row("Unchanged", str(summary.skipped))
    table.add_row("Failed", str(len(summary.failed)))
    if not dry_run:
        table.add_row("Total chunks", str(summary.total_chunks))
    console.print(table)

    for path, error in summary.failed.items():
        console.print(f"  [red]✗ {path}: {error}[/]")
    if summary.failed:
        raise SystemExit(1)


def _dry_run_chunk(files: list[Path]) -> ChunkSummary:
    summary = ChunkSummary(total_files=len(files))
    for path in files:
        try:
            document = RawDocument.from_file(path)
        except (OSError, UnicodeDecodeError) as e:
            summary.failed[str(path)] = str(e)
            continue
        metadata = build_metadata(document.path, document.content, document.content_hash)
        console.print(
            f"  [dim]Would process {path}: {metadata.word_count} words, "
            f"{metadata.char_count} chars[/]"
        )
        summary.successful += 1
    return summary


async def _run_chunk(
    files: list[Path],
    config: ChunkerConfig,
    settings: Settings,
    database_url: str | None,
    ollama_url: str | None,
    output: Path | None,
) -> ChunkSummary:
    engine = create_engine_from_settings(_database_settings(settings, database_url))
    provider = _build_provider(settings, ollama_url)
    summary = ChunkSummary(total_files=len(files))
    try:
        await init_db(engine)
        service = IndexingService.from_settings(
            get_async_session_factory(engine),
            SemanticChunker(config, provider),
            settings.indexing,
        )
        existing = await service.existing_hashes()
        if output is not None:
            output.mkdir(parents=True, exist_ok=True)

        for index, path in enumerate(files, start=1):
            logger.info(f"{__name__}:chunk - Processing file {index}/{len(files)}: {path}")
            try:
                document = RawDocument.from_file(path)
                recorded = existing.get(document.path)
                if recorded == document.content_hash:
                    summary.skipped += 1
                    continue
                if recorded is None:
                    written = await service.index_document(document)
                else:
                    written = await service.reindex_document(document)
            except (SemanticKBException, OSError, UnicodeDecodeError) as e:
                logger.warning(f"{__name__}:chunk - Failed to process {path}: {e}")
                summary.failed[str(path)] = str(e)
                continue

            summary.successful += 1
            summary.total_chunks += written
            if output is not None:
                _write_chunk_summary(output, path, document, written)
    finally:
        await provider.aclose()
        await engine.dispose()
    return summary


def _write_chunk_summary(output: Path, path: Path, document: RawDocument, written: int) -> None:
    payload = {
        "file_path": document.path,
        "file_hash": document.content_hash,
        "chunks_created": written,
        "total_words": len(document.content.split()),
        "total_chars": len(document.content),
    }
    (output / f"{path.stem}_chunks.json").write_text(json.dumps(payload, indent=2))


@cli.command()
@click.argument("paths", nargs=-1, required=True, type=click.Path(exists=True, path_type=Path))
@click.option("--resume", is_flag=True, help="Skip unchanged files, add new ones")
@click.option("--update", is_flag=True, help="Also re-index modified files")
@click.option("--force", is_flag=True, help="Re-index every file regardless of hash")
@click.option("--cleanup", is_flag=True, help="Remove chunks of deleted files")
@click.option("--dry-run", is_flag=True, help="Report changes without writing")
@click.option("--database-url", default=None, help="Database URL override")
@click.option("--ollama-url", default=None, help="Ollama base URL override")
@click.pass_context
def load(ctx, paths, resume, update, force, cleanup, dry_run, database_url, ollama_url):
    """Incrementally load a documentation tree into the store."""
    settings: Settings = ctx.obj["settings"]
    loader_config = LoaderConfig(
        resume=resume, update=update, cleanup=cleanup, dry_run=dry_run, force=force
    )
    try:
        loader_config.validate()
        chunker_config = _build_chunker_config(settings, settings.chunking.strategy, None, None)
        stats = asyncio.run(
            _run_load(list(paths), loader_config, chunker_config, settings, database_url, ollama_url)
        )
    except (SemanticKBException, FileNotFoundError) as e:
        raise click.ClickException(str(e))

    console.print(f"[blue]Mode: {loader_config.mode_description()}[/]")
    _print_load_stats(stats, dry_run)
    if stats.files_failed:
        raise SystemExit(1)


async def _run_load(
    paths: list[Path],
    loader_config: LoaderConfig,
    chunker_config: ChunkerConfig,
    settings: Settings,
    database_url: str | None,
    ollama_url: str | None,
) -> LoadStats:
    engine = create_engine_from_settings(_database_settings(settings, database_url))
    provider = _build_provider(settings, ollama_url)
    try:
        await init_db(engine)
        service = IndexingService.from_settings(
            get_async_session_factory(engine),
            SemanticChunker(chunker_config, provider),
            settings.indexing,
        )
        return await service.load(paths, loader_config)
    finally:
        await provider.aclose()
        await engine.dispose()


def _print_load_stats(stats: LoadStats, dry_run: bool) -> None:
    table = Table(title="Load Summary (dry run)" if dry_run else "Load Summary")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right", style="green")
    table.add_row("Files discovered", str(stats.total_files()))
    table.add_row("Files skipped", str(stats.files_skipped))
    table.add_row("Files added", str(stats.files_added))
    table.add_row("Files updated", str(stats.files_updated))
    table.add_row("Files deleted", str(stats.files_deleted))
    table.add_row("Files failed", str(stats.files_failed))
    table.add_row("Chunks inserted", str(stats.chunks_inserted))
    table.add_row("Chunks deleted", str(stats.chunks_deleted))
    table.add_row("Duration", f"{stats.duration_secs:.2f}s")
    console.print(table)
    for path, error in stats.failures.items():
        console.print(f"  [red]✗ {path}: {error}[/]")


@cli.command()
@click.argument("query")
@click.option("--max-results", "-n", default=10, show_default=True, help="Maximum results")
@click.option("--min-similarity", "-s", default=0.0, show_default=True,
              help="Lowest similarity returned (0.0-1.0)")
@click.option("--category", "-c", default=None, help="Restrict to one category")
@click.option("--json", "as_json", is_flag=True, help="Print results as JSON")
@click.option("--full-content", is_flag=True, help="Print whole chunks instead of previews")
@click.option("--verbose", "-v", is_flag=True, help="Show chunk position and cohesion")
@click.option("--database-url", default=None, help="Database URL override")
@click.option("--ollama-url", default=None, help="Ollama base URL override")
@click.pass_context
def search(ctx, query, max_results, min_similarity, category, as_json, full_content, verbose,
           database_url, ollama_url):
    """Semantic search over stored chunks."""
    settings: Settings = ctx.obj["settings"]
    config = SearchConfig(
        max_results=max_results,
        min_similarity=min_similarity,
        category_filter=[category.lower()] if category else None,
    )
    try:
        page = asyncio.run(_run_search(query, config, settings, database_url, ollama_url))
    except SemanticKBException as e:
        raise click.ClickException(str(e))

    if as_json:
        click.echo(json.dumps(_page_to_json(query, page), indent=2))
        return

    if not page.results:
        console.print(f"\n[yellow]No results found for query: '{query}'[/]")
        console.print("Try:")
        console.print("  - Using different keywords")
        console.print("  - Lowering the minimum similarity threshold")
        console.print("  - Removing category filters")
        return

    console.print(f"[blue]Found {page.total} result(s) for: '{query}'[/]\n")
    for rank_no, result in enumerate(page.results, start=1):
        console.print(
            f"[bold]{rank_no}. {result.source_file}[/] "
            f"[green](similarity {result.similarity:.3f})[/]"
        )
        if result.title:
            console.print(f"   Title: {result.title}")
        if result.category:
            console.print(f"   Category: {result.category}")
        if verbose:
            start, end = result.sentence_range
            console.print(
                f"   Chunk {result.chunk_index}, sentences {start}-{end}, "
                f"cohesion {result.avg_similarity:.3f}"
            )
        body = result.content if full_content else result.content[:200].replace("\n", " ")
        console.print(f"   {body}\n")


async def _run_search(
    query: str,
    config: SearchConfig,
    settings: Settings,
    database_url: str | None,
    ollama_url: str | None,
) -> SearchPage:
    engine = create_engine_from_settings(_database_settings(settings, database_url))
    provider = _build_provider(settings, ollama_url)
    try:
        await init_db(engine)
        service = SearchService(
            session_factory=get_async_session_factory(engine),
            provider=provider,
            cache=EmbeddingCache.from_settings(settings.cache),
        )
        return await service.search(query, config)
    finally:
        await provider.aclose()
        await engine.dispose()


def _page_to_json(query: str, page: SearchPage) -> dict:
    return {
        "query": query,
        "total_results": page.total,
        "results": [
            {
                "id": r.chunk_id,
                "source_file": r.source_file,
                "similarity": r.similarity,
                "title": r.title,
                "category": r.category,
                "chunk_index": r.chunk_index,
                "sentence_range": list(r.sentence_range),
                "avg_similarity": r.avg_similarity,
                "content": r.content,
            }
            for r in page.results
        ],
    }


@cli.command()
@click.option("--host", default="localhost", show_default=True)
@click.option("--port", default=8082, show_default=True, type=int)
def serve(host, port):
    """Run the HTTP API with uvicorn."""
    import uvicorn

    uvicorn.run("semantic_kb.main:app", host=host, port=port)


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
