"""Email address normalization and format checks."""

import re

# Same shape check the site's forms have always used: something@something.tld
_EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


def normalize_email(email: str) -> str:
    """Trim and lowercase an email so lookups and uniqueness are case-insensitive."""
    return email.strip().lower()


def is_valid_email(email: str | None) -> bool:
    """Check the basic ``local@domain.tld`` shape."""
    if not email:
        return False
    return bool(_EMAIL_RE.match(email.strip()))
