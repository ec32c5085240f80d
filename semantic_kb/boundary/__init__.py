"""Boundary layer: database and embedding provider adapters."""
