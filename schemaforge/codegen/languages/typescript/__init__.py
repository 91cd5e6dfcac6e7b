"""
TypeScript code generator module.

Generates a NestJS backend: TypeORM entities on a shared audited base
entity, class-validator DTOs, mappers, repositories, services,
controllers, Nest modules and TypeORM migrations.
"""

from .generator import TypeScriptGenerator, create_typescript_generator
from .naming import TYPESCRIPT_RESERVED_WORDS, create_typescript_sanitizer
from .types import TypeScriptTypeMapper, typeorm_column_type

__all__ = [
    "TypeScriptGenerator",
    "TypeScriptTypeMapper",
    "TYPESCRIPT_RESERVED_WORDS",
    "create_typescript_generator",
    "create_typescript_sanitizer",
    "typeorm_column_type",
]
