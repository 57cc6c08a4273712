"""Interface adapters (HTTP API)."""
