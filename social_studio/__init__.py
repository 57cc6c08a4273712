"""
Social Studio backend.

Account & credential lifecycle (signup, login, email verification,
password reset, TOTP two-factor authentication) plus the lead-capture
forms of the marketing site.
"""

__version__ = "1.0.0"
