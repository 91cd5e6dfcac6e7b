"""
Python-specific naming utilities and sanitization.

Handles Python keywords and the attribute names SQLAlchemy reserves on
declarative classes.
"""

import keyword

from ...core.naming import NameSanitizer


# Python reserved keywords
PYTHON_RESERVED_WORDS = set(keyword.kwlist)

# Attributes already defined on every declarative model
SQLALCHEMY_RESERVED_ATTRIBUTES = {
    "metadata",
    "registry",
    "query",
}


def create_python_sanitizer() -> NameSanitizer:
    """Create a name sanitizer configured for Python models and schemas."""
    return NameSanitizer(PYTHON_RESERVED_WORDS | SQLALCHEMY_RESERVED_ATTRIBUTES)
