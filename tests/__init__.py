"""Tests for the retrieval strategy layer.

The search engine is replaced by an in-memory client and the embedding
service by ``httpx.MockTransport``, so no external services are needed.
"""
