"""Application layer: services orchestrating the core domain and boundary adapters."""
