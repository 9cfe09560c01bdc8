"""Retrieval-augmented question answering over indexed documents."""

__version__ = "0.1.0"
