"""Semantic chunking, incremental indexing and similarity search over Markdown docs."""

__version__ = "0.1.0"
