"""Retrieval strategies over a search engine document collection.

Subpackages:
- ``hybrid_search.common``: configuration, logging, and metrics.
- ``hybrid_search.retrieval``: query building, embedding, execution, result
  mapping, and the strategy facade that composes them.

Usage:
- Build a facade with ``hybrid_search.retrieval.factory.create_search_strategies``
  and await one of its named strategies.
"""

__version__ = "0.1.0"
