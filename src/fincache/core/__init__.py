"""Core utilities: exceptions and timezone helpers."""
