"""Command line entry point: run one named strategy and print the documents.

Example
    hybrid-search keyword "What do Gophers eat?"
    python -m hybrid_search hybrid-rrf "gopher" --window-size 20
"""

import argparse
import asyncio
import json
import sys
from typing import List, Optional

from .common.config import SearchStrategyConfig
from .common.logging import configure_logging
from .common.metrics import MetricsCollector
from .retrieval.base import SearchStrategyError
from .retrieval.factory import create_search_strategies
from .retrieval.models import Document
from .retrieval.query_builder import (
    DEFAULT_FILTER_TERM,
    DEFAULT_RRF_RANK_CONSTANT,
    DEFAULT_VECTOR_BOOST,
    MIN_RRF_WINDOW_SIZE,
)
from .retrieval.strategies import STRATEGY_METHODS, SearchStrategies

DEFAULT_TERM = "What do Gophers eat?"


async def run_strategy(
    strategies: SearchStrategies,
    strategy: str,
    term: str,
    args: argparse.Namespace
) -> List[Document]:
    """Dispatch ``term`` to the named strategy with its optional parameters."""
    method = getattr(strategies, STRATEGY_METHODS[strategy])
    if strategy == "filtered-vector":
        return await method(term, filter_term=args.filter_term)
    if strategy == "hybrid-boost":
        return await method(term, vector_boost=args.vector_boost)
    if strategy == "hybrid-rrf":
        return await method(term, window_size=args.window_size, rank_constant=args.rank_constant)
    return await method(term)


async def search(
    args: argparse.Namespace,
    config: SearchStrategyConfig,
    metrics: Optional[MetricsCollector] = None
) -> List[Document]:
    """Build the strategies, run one search, and release the clients."""
    strategies = create_search_strategies(config, metrics=metrics)
    try:
        if args.timeout is not None:
            return await asyncio.wait_for(
                run_strategy(strategies, args.strategy, args.term, args), args.timeout
            )
        return await run_strategy(strategies, args.strategy, args.term, args)
    finally:
        await strategies.cleanup()


def build_parser() -> argparse.ArgumentParser:
    """Argument parser for the CLI."""
    parser = argparse.ArgumentParser(description="Run a retrieval strategy against the search engine")
    parser.add_argument("strategy", choices=sorted(STRATEGY_METHODS), help="Strategy to run")
    parser.add_argument("term", nargs="?", default=DEFAULT_TERM, help="Query term")
    parser.add_argument("--filter-term", default=DEFAULT_FILTER_TERM, help="Body filter for filtered-vector")
    parser.add_argument("--vector-boost", type=float, default=DEFAULT_VECTOR_BOOST, help="Vector weight for hybrid-boost")
    parser.add_argument("--window-size", type=int, default=MIN_RRF_WINDOW_SIZE, help="RRF window size")
    parser.add_argument("--rank-constant", type=int, default=DEFAULT_RRF_RANK_CONSTANT, help="RRF rank constant")
    parser.add_argument("--timeout", type=float, default=None, help="Deadline for the whole call in seconds")
    parser.add_argument("--metrics", action="store_true", help="Print Prometheus metrics to stderr when done")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main function for CLI."""
    args = build_parser().parse_args(argv)

    try:
        config = SearchStrategyConfig()
        configure_logging("hybrid-search", config.search_log_level, config.search_log_format)
    except ValueError as e:
        print(f"Invalid configuration: {e}", file=sys.stderr)
        return 1

    metrics = MetricsCollector("hybrid-search-cli") if args.metrics else None
    exit_code = 1
    try:
        documents = asyncio.run(search(args, config, metrics))
    except SearchStrategyError as e:
        print(f"Search failed in {e.stage} stage: {e}", file=sys.stderr)
    except asyncio.TimeoutError:
        print(f"Search did not complete within {args.timeout} seconds", file=sys.stderr)
    except ValueError as e:
        print(f"Invalid configuration: {e}", file=sys.stderr)
    else:
        print(json.dumps([document.model_dump() for document in documents], indent=2))
        exit_code = 0

    if metrics is not None:
        sys.stderr.write(metrics.get_metrics())
    return exit_code


if __name__ == "__main__":
    sys.exit(main())
