"""Domain value objects."""

from .email import is_valid_email, normalize_email

__all__ = ["is_valid_email", "normalize_email"]
