"""HTTP API for the financial data cache."""
