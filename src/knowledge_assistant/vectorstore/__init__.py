"""Embedding and vector search for RAG.

This module provides:
- Embedding generation (Ollama)
- Similarity search against a Qdrant index
- Deterministic in-process fakes for tests and offline demos
"""
