"""
Go code generator module.

Generates a Gin + GORM backend: models embedding an audited base struct,
DTOs with binding tags, mappers, repositories, services, handlers and
golang-migrate SQL migrations.
"""

from .generator import GoGenerator, create_go_generator
from .naming import GO_RESERVED_WORDS, create_go_sanitizer, go_local_name
from .types import GoTypeMapper

__all__ = [
    "GoGenerator",
    "GoTypeMapper",
    "GO_RESERVED_WORDS",
    "create_go_generator",
    "create_go_sanitizer",
    "go_local_name",
]
