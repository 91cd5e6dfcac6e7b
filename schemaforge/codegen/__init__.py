"""
Schemaforge Code Generation Module

Generates backend code in several languages from one canonical schema.
"""

from .registry import (
    GeneratorRegistry,
    RegistryError,
    get_generator,
    get_registry,
    is_language_supported,
    list_supported_languages,
)
from .orchestrator import (
    GenerationOrchestrator,
    GenerationRequest,
    OrchestrationError,
    generate,
)
from .core.generator import ArtifactKind, CodeGenerator, GeneratedFile, GenerationResult
from .core.schema import AuditFieldSet, Column, ForeignKeyRef, Schema, SchemaError, Table
from .core.relationships import RelationshipError, ResolvedSchema, resolve_relationships
from .core.types import CanonicalType, UnmappedTypeError
from .core.config import GeneratorConfig, ConfigManager, ConfigError, load_config

# Export main interfaces
__all__ = [
    "GeneratorRegistry",
    "RegistryError",
    "get_generator",
    "get_registry",
    "is_language_supported",
    "list_supported_languages",
    "GenerationOrchestrator",
    "GenerationRequest",
    "OrchestrationError",
    "generate",
    "ArtifactKind",
    "CodeGenerator",
    "GeneratedFile",
    "GenerationResult",
    "AuditFieldSet",
    "Column",
    "ForeignKeyRef",
    "Schema",
    "SchemaError",
    "Table",
    "RelationshipError",
    "ResolvedSchema",
    "resolve_relationships",
    "CanonicalType",
    "UnmappedTypeError",
    "GeneratorConfig",
    "ConfigManager",
    "ConfigError",
    "load_config",
]
