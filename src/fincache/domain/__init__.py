"""Domain layer: financial bundles and cache records."""
