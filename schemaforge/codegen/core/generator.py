"""
Base generator interface for all code generation targets.

Defines the contract that all language generators must implement. A
language generator owns one type mapper, one name sanitizer and one
template directory, and turns an entity context into one file per
artifact kind.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Any, Optional
from pathlib import Path

from .config import GeneratorConfig
from .naming import NameSanitizer, NamingCase, pluralize, to_camel_case
from .naming import to_kebab_case, to_pascal_case, to_snake_case
from .relationships import ManyToManyLink, Relationship, ResolvedSchema, TableRelations
from .schema import Column, Table
from .sql import build_join_table_plan, build_migration_plan, sql_type
from .templates import TemplateEngine, create_template_engine
from .types import CanonicalType, TypeMapper, usable_default


class GeneratorError(Exception):
    """Base exception for code generation errors."""

    pass


class ArtifactKind(Enum):
    """Kinds of files generated per entity."""

    ENTITY = "entity"
    DTO = "dto"
    MAPPER = "mapper"
    REPOSITORY = "repository"
    SERVICE = "service"
    CONTROLLER = "controller"
    MIGRATION = "migration"


@dataclass(frozen=True)
class GeneratedFile:
    """One generated file."""

    path: str
    content: str


@dataclass(frozen=True)
class EntityNames:
    """Every identifier derived from one table, computed once."""

    table: str
    module: str
    entity: str
    variable: str
    snake: str
    kebab: str
    plural_entity: str
    plural_variable: str
    plural_snake: str
    plural_kebab: str

    @classmethod
    def for_table(cls, table: Table, module: Optional[str] = None) -> "EntityNames":
        entity = table.entity_name
        plural = pluralize(to_snake_case(entity))
        return cls(
            table=table.name,
            module=to_snake_case(module or table.module_name),
            entity=entity,
            variable=to_camel_case(entity),
            snake=to_snake_case(entity),
            kebab=to_kebab_case(entity),
            plural_entity=to_pascal_case(plural),
            plural_variable=to_camel_case(plural),
            plural_snake=plural,
            plural_kebab=to_kebab_case(plural),
        )


@dataclass(frozen=True)
class EntityContext:
    """Inputs of every artifact of one table: the table and its resolved edges."""

    table: Table
    relations: TableRelations
    resolved: ResolvedSchema
    migration_version: int = 1


class CodeGenerator(ABC):
    """Abstract base class for all code generators."""

    # Template file per artifact kind, relative to the template directory
    artifact_templates: Dict[ArtifactKind, str] = {}
    join_table_template: str = ""

    # Case used for fields and properties
    field_case: NamingCase = NamingCase.CAMEL_CASE

    def __init__(self, config: Optional[GeneratorConfig] = None):
        """Initialize generator with optional configuration."""
        self.config = config or GeneratorConfig()
        self.audit = self.config.audit_fields
        self.type_mapper: TypeMapper = self.create_type_mapper()
        self.sanitizer: NameSanitizer = self.create_sanitizer()
        self._template_engine = None
        self._setup_templates()

    def _setup_templates(self):
        """Setup template engine for this generator."""
        self._template_engine = create_template_engine(self.get_template_directory())

    @property
    @abstractmethod
    def language_name(self) -> str:
        """Return the name of the target language (e.g., 'go', 'python')."""
        pass

    @property
    @abstractmethod
    def file_extension(self) -> str:
        """Return the file extension for generated files (e.g., '.go', '.py')."""
        pass

    @classmethod
    @abstractmethod
    def create_type_mapper(cls) -> TypeMapper:
        """Return the type mapper of this target."""
        pass

    @abstractmethod
    def create_sanitizer(self) -> NameSanitizer:
        """Return the reserved-word aware sanitizer of this target."""
        pass

    @abstractmethod
    def artifact_path(self, kind: ArtifactKind, names: EntityNames, version: int) -> str:
        """Relative output path of an artifact."""
        pass

    @abstractmethod
    def join_table_path(self, table: Table, version: int) -> str:
        """Relative output path of a join table migration."""
        pass

    def get_template_directory(self) -> Optional[Path]:
        """
        Return the directory containing templates for this generator.

        Subclasses should override this to provide their template directory.

        Returns:
            Path to template directory or None
        """
        return None

    @property
    def template_engine(self) -> TemplateEngine:
        """Get the template engine for this generator."""
        if self._template_engine is None:
            self._setup_templates()
        return self._template_engine

    # Naming helpers

    def field_name(self, name: str) -> str:
        """Field/property name of a column or relationship in this target."""
        return self.sanitizer.sanitize_name(name, self.field_case)

    def json_name(self, name: str) -> str:
        """Wire name used by DTOs in every target."""
        return to_camel_case(name)

    def names_for(self, table: Table) -> EntityNames:
        return EntityNames.for_table(
            table, self.config.module_for(table.name, table.module_name)
        )

    # Context construction

    def column_data(self, column: Column) -> Dict[str, Any]:
        """Template data of a scalar column."""
        native = self.type_mapper.map_scalar(column.type)
        hint = usable_default(column)
        return {
            "column": column.name,
            "name": self.field_name(column.name),
            "json_name": self.json_name(column.name),
            "canonical": column.type.value,
            "ctype": column.type,
            "base_type": native,
            "type": self.type_mapper.map_nullable(native) if column.nullable else native,
            "nullable": column.nullable,
            "unique": column.unique,
            "default": self.type_mapper.map_default_value(column),
            "has_default": hint is not None,
            "default_kind": hint.kind.value if hint else None,
            "length": column.length,
            "precision": column.precision,
            "scale": column.scale,
            "comment": column.comment,
        }

    def primary_key_data(self, column: Column) -> Dict[str, Any]:
        """Template data of a primary key column."""
        return {
            "column": column.name,
            "name": self.field_name(column.name),
            "json_name": self.json_name(column.name),
            "canonical": column.type.value,
            "ctype": column.type,
            "type": self.type_mapper.map_primary_key_type(column.type),
            "generated": column.type.is_integer,
            "is_uuid": column.type == CanonicalType.UUID,
        }

    def many_to_one_data(self, rel: Relationship, resolved: ResolvedSchema) -> Dict[str, Any]:
        target = resolved.schema.table(rel.target_table)
        source = resolved.schema.table(rel.source_table)
        fk = resolved.aligned_column(source.column(rel.foreign_key_column))
        id_type = self.type_mapper.map_primary_key_type(fk.type)
        return {
            "property": self.field_name(rel.property_name),
            "json_property": self.json_name(rel.property_name),
            "inverse_property": self.field_name(rel.inverse_property_name),
            "fk_column": rel.foreign_key_column,
            "fk_field": self.field_name(rel.foreign_key_column),
            "fk_json": self.json_name(rel.foreign_key_column),
            "fk_base_type": id_type,
            "fk_ctype": fk.type,
            "fk_type": self.type_mapper.map_nullable(id_type) if rel.nullable else id_type,
            "nullable": rel.nullable,
            "referenced_column": rel.referenced_column,
            "referenced_field": self.field_name(rel.referenced_column),
            "target": self.names_for(target),
        }

    def one_to_many_data(self, rel: Relationship, resolved: ResolvedSchema) -> Dict[str, Any]:
        child = resolved.schema.table(rel.target_table)
        return {
            "property": self.field_name(rel.property_name),
            "mapped_by": self.field_name(rel.inverse_property_name),
            "fk_column": rel.foreign_key_column,
            "fk_field": self.field_name(rel.foreign_key_column),
            "target": self.names_for(child),
        }

    def many_to_many_data(self, link: ManyToManyLink, resolved: ResolvedSchema) -> Dict[str, Any]:
        other = resolved.schema.table(link.other_table)
        id_type = self.type_mapper.map_primary_key_type(other.primary_key.type)
        return {
            "property": self.field_name(link.property_name),
            "ids_field": self.field_name(link.ids_property_name),
            "ids_json": self.json_name(link.ids_property_name),
            "id_type": id_type,
            "id_ctype": other.primary_key.type,
            "target_pk_field": self.field_name(other.primary_key.name),
            "target_pk_column": other.primary_key.name,
            "ids_type": self.type_mapper.map_collection(id_type),
            "join_table": link.join_table,
            "join_column": link.join_column,
            "inverse_join_column": link.inverse_join_column,
            "owner": link.owner,
            "mapped_by": self.field_name(link.mapped_by),
            "target": self.names_for(other),
        }

    def audit_data(self) -> Dict[str, Dict[str, Any]]:
        """Template data of the base columns keyed by role."""
        return {
            role: self.column_data(column)
            for role, column in self.audit.columns_by_role().items()
        }

    def build_context(self, entity: EntityContext) -> Dict[str, Any]:
        """
        Build the template context shared by all artifacts of an entity.

        Business columns become ``fields``; foreign keys appear only through
        ``many_to_one`` so that DTOs can carry ids instead of nested objects.
        """
        table = entity.table
        resolved = entity.resolved
        names = self.names_for(table)
        fields = [self.column_data(c) for c in table.scalar_columns(self.audit)]

        return {
            "names": names,
            "table": table,
            "package": self.config.package_name,
            "project_name": self.config.project_name,
            "api_prefix": self.config.api_prefix.rstrip("/"),
            "add_comments": self.config.add_comments,
            "comment": table.comment,
            "pk": self.primary_key_data(table.primary_key),
            "fields": fields,
            "many_to_one": [
                self.many_to_one_data(rel, resolved) for rel in entity.relations.many_to_one
            ],
            "one_to_many": [
                self.one_to_many_data(rel, resolved) for rel in entity.relations.one_to_many
            ],
            "many_to_many": [
                self.many_to_many_data(link, resolved)
                for link in entity.relations.many_to_many
            ],
            "audit": self.audit_data(),
            "plan": build_migration_plan(table, resolved, self.audit),
            "version": entity.migration_version,
        }

    def artifact_context(self, kind: ArtifactKind, context: Dict[str, Any]) -> Dict[str, Any]:
        """
        Extra context for one artifact kind, such as its import list.

        Language generators override this; the default adds nothing.
        """
        return {}

    # Generation

    def render_artifact(
        self, kind: ArtifactKind, context: Dict[str, Any], version: int
    ) -> GeneratedFile:
        """Render one artifact from a prepared entity context."""
        artifact_context = dict(context)
        artifact_context.update(self.artifact_context(kind, context))
        content = self.render_template(self.artifact_templates[kind], artifact_context)
        path = self.artifact_path(kind, context["names"], version)
        return GeneratedFile(path, self.format_code(content))

    def generate_artifact(self, kind: ArtifactKind, entity: EntityContext) -> GeneratedFile:
        """Generate one artifact of an entity-bearing table."""
        return self.render_artifact(kind, self.build_context(entity), entity.migration_version)

    def generate_entity_files(self, entity: EntityContext) -> List[GeneratedFile]:
        """
        Generate every artifact kind for one entity-bearing table.

        Args:
            entity: Table, its relationships and its migration version

        Returns:
            One GeneratedFile per ArtifactKind
        """
        context = self.build_context(entity)
        return [
            self.render_artifact(kind, context, entity.migration_version)
            for kind in ArtifactKind
        ]

    def generate_join_table(
        self, table: Table, resolved: ResolvedSchema, version: int
    ) -> GeneratedFile:
        """Generate the migration of a pure join table."""
        plan = build_join_table_plan(table, resolved)
        context = {
            "table": table,
            "plan": plan,
            "version": version,
            "add_comments": self.config.add_comments,
            "left_type": self.sql_column_type(plan.left),
            "right_type": self.sql_column_type(plan.right),
            "class_name": to_pascal_case(f"create_{table.name}_table"),
        }
        content = self.render_template(self.join_table_template, context)
        return GeneratedFile(self.join_table_path(table, version), self.format_code(content))

    def sql_column_type(self, column: Column) -> str:
        """Type expression used for join table columns; SQL by default."""
        return sql_type(column)

    def base_files(self, resolved: ResolvedSchema) -> List[GeneratedFile]:
        """
        Files generated once per target, such as the shared base entity.

        Returns:
            List of generated files (can be empty)
        """
        return []

    def validate_schema(self, resolved: ResolvedSchema) -> List[str]:
        """
        Check for identifiers that had to be escaped in this target.

        Returns:
            List of warning messages (empty if no issues)
        """
        warnings = []
        for table in resolved.entity_tables:
            for column in table.business_columns(self.audit):
                if self.sanitizer.is_reserved(self.field_name_unescaped(column.name)):
                    warnings.append(
                        f"{self.language_name}: column {table.name}.{column.name} is a "
                        f"reserved word and was renamed to '{self.field_name(column.name)}'"
                    )
        return warnings

    def field_name_unescaped(self, name: str) -> str:
        if self.field_case == NamingCase.PASCAL_CASE:
            return to_pascal_case(name, self.sanitizer.acronyms)
        if self.field_case == NamingCase.SNAKE_CASE:
            return to_snake_case(name)
        return to_camel_case(name, self.sanitizer.acronyms)

    def format_code(self, code: str) -> str:
        """
        Apply language-specific formatting to generated code.

        Args:
            code: Raw generated code

        Returns:
            Formatted code ending in exactly one newline
        """
        # Basic cleanup - remove excessive blank lines
        lines = code.split("\n")
        formatted_lines = []
        blank_count = 0

        for line in lines:
            stripped = line.rstrip()
            if not stripped:
                blank_count += 1
                if blank_count <= 1:
                    formatted_lines.append("")
            else:
                blank_count = 0
                formatted_lines.append(stripped)

        return "\n".join(formatted_lines).strip("\n") + "\n"

    # Template helper methods

    def render_template(self, template_name: str, context: Dict[str, Any]) -> str:
        """
        Render a template with context.

        Args:
            template_name: Template file name
            context: Template variables

        Returns:
            Rendered content
        """
        return self.template_engine.render_template(template_name, context)

    def template_exists(self, template_name: str) -> bool:
        """Check if a template exists."""
        return self.template_engine.template_exists(template_name)


class GenerationResult:
    """Container for generation results and metadata."""

    def __init__(
        self,
        files: Dict[str, str],
        warnings: Optional[List[str]] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ):
        """
        Initialize generation result.

        Args:
            files: Relative path -> file content
            warnings: Any warnings from generation
            metadata: Additional metadata about generation
        """
        self.files = dict(sorted(files.items()))
        self.warnings = warnings or []
        self.metadata = metadata or {}

    def __len__(self) -> int:
        return len(self.files)

    def __contains__(self, path: str) -> bool:
        return path in self.files

    def __getitem__(self, path: str) -> str:
        return self.files[path]

    def paths(self, prefix: str = "") -> List[str]:
        """Generated paths, optionally restricted to a prefix."""
        return [p for p in self.files if p.startswith(prefix)]
