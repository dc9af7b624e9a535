"""Stores backing the cache tiers."""
