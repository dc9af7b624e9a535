"""Earnings-aware, multi-tier cache for company financial statements."""

__version__ = "0.1.0"
