"""Core domain layer: exceptions, semantic chunking, search and indexing."""
