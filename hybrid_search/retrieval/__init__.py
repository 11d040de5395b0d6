"""Retrieval strategy layer.

Primary components:
- ``base``: error taxonomy and the abstract ``EmbeddingProvider``.
- ``models``: ``Document``, ``RawHit`` and the ``RetrievalRequest`` shapes.
- ``query_builder``: one request recipe per strategy.
- ``embedding``: HuggingFace inference API client for query vectors.
- ``executor``: one engine round trip per request.
- ``mapper``: raw hits to ``Document``s.
- ``strategies``: the public strategy facade.
- ``factory``: builds the facade from ``SearchStrategyConfig``.
"""
