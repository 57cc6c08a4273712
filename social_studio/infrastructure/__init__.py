"""
Infrastructure Layer - Adapters for storage, crypto, email and logging.
"""
