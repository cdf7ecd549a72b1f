"""Command line interface for hybrid search over a JSON corpus or the bundled samples.

Examples
    hybridsearch search "machine learning algorithms" --strategy CombMax
    hybridsearch compare "machine learning algorithms" --corpus docs.json
"""

import argparse
import asyncio
import json
import sys
from typing import Dict, List, Optional, Sequence

import structlog

from .common.config import LoggingConfig, get_config
from .common.errors import HybridSearchError
from .common.logging import configure_logging_from_config
from .hybrid.search_manager import HybridSearchManager, SearchOutcome
from .models import Document, FusedResult
from .providers.factory import create_providers
from .ranking.strategies import RerankingStrategy
from .samples import sample_documents

logger = structlog.get_logger("hybridsearch.cli")


def load_corpus(path: Optional[str]) -> List[Document]:
    """Load documents from a JSON file (a list of ``{id, title, content, metadata?}``).

    Without a path the bundled sample documents are returned.
    """
    if not path:
        return sample_documents()

    with open(path, "r", encoding="utf-8") as f:
        raw = json.load(f)

    if not isinstance(raw, list):
        raise ValueError(f"{path}: expected a JSON list of documents")

    documents = []
    for index, item in enumerate(raw):
        if not isinstance(item, dict):
            raise ValueError(f"{path}: document {index} is not a JSON object")
        if "id" not in item:
            raise ValueError(f"{path}: document {index} has no 'id'")
        documents.append(Document(
            id=str(item["id"]),
            title=item.get("title", ""),
            content=item.get("content", ""),
            metadata=item.get("metadata", {}),
            embedding=item.get("embedding"),
        ))
    return documents


def build_manager(max_results: Optional[int] = None, env_file: Optional[str] = None) -> HybridSearchManager:
    """Create a manager wired from ``HYBRID_*`` settings."""
    config = get_config("fusion", env_file)
    if max_results is not None:
        config = config.model_copy(update={"max_results": max_results})
    hyde_config = get_config("hyde", env_file)
    embedding, generator = create_providers(get_config("providers", env_file), hyde_config)
    return HybridSearchManager(
        embedding_provider=embedding,
        hypothetical_generator=generator,
        config=config,
        bm25_config=get_config("bm25", env_file),
        hyde_config=hyde_config,
    )


def _format_score(value: Optional[float]) -> str:
    return "-" if value is None else f"{value:.4f}"


def format_results(results: Sequence[FusedResult]) -> str:
    lines = []
    for rank, result in enumerate(results, start=1):
        lines.append(f"{rank:>3}. {result.document.title} (id={result.document.id})")
        lines.append(
            f"     combined={result.combined_score:.4f} "
            f"bm25={_format_score(result.bm25_score)} "
            f"semantic={_format_score(result.semantic_score)}"
        )
    return "\n".join(lines) if lines else "No results."


def format_comparison(comparison: Dict[RerankingStrategy, List[FusedResult]]) -> str:
    lines = []
    for strategy, results in comparison.items():
        lines.append(f"=== {strategy.value} ===")
        lines.append(format_results(results[:5]))
        lines.append("")
    return "\n".join(lines).rstrip()


async def run_search(
    query: str,
    corpus: List[Document],
    strategy: Optional[str],
    limit: Optional[int],
    env_file: Optional[str] = None,
) -> SearchOutcome:
    manager = build_manager(limit, env_file)
    try:
        await manager.index_documents(corpus)
        return await manager.search_with_details(query, strategy=strategy)
    finally:
        await manager.close()


async def run_compare(
    query: str,
    corpus: List[Document],
    limit: Optional[int],
    env_file: Optional[str] = None,
) -> Dict[RerankingStrategy, List[FusedResult]]:
    manager = build_manager(limit, env_file)
    try:
        await manager.index_documents(corpus)
        return await manager.compare_strategies(query)
    finally:
        await manager.close()


def build_parser() -> argparse.ArgumentParser:
    logging_defaults = LoggingConfig()
    parser = argparse.ArgumentParser(prog="hybridsearch", description="Hybrid BM25 + HyDE search")
    parser.add_argument("--log-level", default=logging_defaults.log_level, help="Logging level")
    parser.add_argument(
        "--log-format",
        default="console",
        choices=["json", "console"],
        help="Log renderer",
    )
    parser.add_argument("--corpus", help="JSON file with documents (defaults to the sample corpus)")
    parser.add_argument("--limit", type=int, help="Maximum number of fused results")
    parser.add_argument("--env-file", help="Dotenv file with HYBRID_* settings (defaults to .env)")

    subparsers = parser.add_subparsers(dest="command", required=True)

    search_parser = subparsers.add_parser("search", help="Run a hybrid search")
    search_parser.add_argument("query", help="Search query")
    search_parser.add_argument(
        "--strategy",
        choices=[s.value for s in RerankingStrategy],
        help="Reranking strategy (defaults to HYBRID_RERANKING_STRATEGY)",
    )

    compare_parser = subparsers.add_parser("compare", help="Compare all reranking strategies")
    compare_parser.add_argument("query", help="Search query")
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main function for CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)

    configure_logging_from_config(LoggingConfig(
        log_level=args.log_level,
        log_format=args.log_format,
        service_name="hybridsearch-cli",
    ))

    try:
        corpus = load_corpus(args.corpus)
        if args.command == "search":
            outcome = asyncio.run(run_search(args.query, corpus, args.strategy, args.limit, args.env_file))
            print(f"Query: '{outcome.query}' ({outcome.strategy.value}, {outcome.latency_ms:.1f} ms)")
            print(f"BM25 results: {outcome.bm25_result_count}, HyDE results: {outcome.hyde_result_count}")
            if outcome.semantic_error:
                print(f"Semantic scoring failed: {outcome.semantic_error}")
            print(format_results(outcome.results))
        else:
            comparison = asyncio.run(run_compare(args.query, corpus, args.limit, args.env_file))
            print(f"Query: '{args.query}'")
            print(format_comparison(comparison))
    except (HybridSearchError, ValueError, OSError) as e:
        logger.error("Command failed", command=args.command, error=str(e))
        print(f"Error: {e}", file=sys.stderr)
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
