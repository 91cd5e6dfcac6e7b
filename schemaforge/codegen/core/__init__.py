"""
Core code generation components.

Provides the schema model, relationship resolution and base classes used
by all language generators.
"""

from .generator import (
    ArtifactKind,
    CodeGenerator,
    EntityContext,
    GeneratedFile,
    GenerationResult,
    GeneratorError,
)
from .schema import AuditFieldSet, Column, ForeignKeyRef, Schema, SchemaError, Table, build_schema
from .types import CanonicalType, TypeMapper, UnmappedTypeError, check_exhaustive
from .relationships import (
    RelationKind,
    Relationship,
    RelationshipError,
    ResolvedSchema,
    resolve_relationships,
)
from .naming import NameSanitizer, NamingCase
from .config import GeneratorConfig, ConfigManager, ConfigError, load_config
from .templates import TemplateEngine, TemplateError, create_template_engine

__all__ = [
    # Base generator interface
    "ArtifactKind",
    "CodeGenerator",
    "EntityContext",
    "GeneratedFile",
    "GenerationResult",
    "GeneratorError",
    # Schema model
    "AuditFieldSet",
    "Column",
    "ForeignKeyRef",
    "Schema",
    "SchemaError",
    "Table",
    "build_schema",
    # Type taxonomy
    "CanonicalType",
    "TypeMapper",
    "UnmappedTypeError",
    "check_exhaustive",
    # Relationships
    "RelationKind",
    "Relationship",
    "RelationshipError",
    "ResolvedSchema",
    "resolve_relationships",
    # Naming utilities - language-agnostic
    "NameSanitizer",
    "NamingCase",
    # Configuration system
    "GeneratorConfig",
    "ConfigManager",
    "ConfigError",
    "load_config",
    # Template system - language-agnostic
    "TemplateEngine",
    "TemplateError",
    "create_template_engine",
]
