"""HTTP API for accounts and lead capture."""
