"""
TypeScript code generator implementation.

Generates a NestJS backend per module directory: TypeORM entities on a
shared audited base entity, class-validator DTOs, mappers, repositories,
services, controllers and TypeORM migrations.
"""

from pathlib import Path
from typing import Any, Dict, List, Optional, Set, Tuple

from ...core.config import GeneratorConfig
from ...core.generator import ArtifactKind, CodeGenerator, EntityNames, GeneratedFile
from ...core.naming import NameSanitizer, NamingCase, to_kebab_case, to_pascal_case
from ...core.relationships import ResolvedSchema
from ...core.schema import Column, Table
from ...core.sql import (
    DEFAULT_PRECISION,
    DEFAULT_SCALE,
    DEFAULT_STRING_LENGTH,
    build_join_table_plan,
    sql_default,
)
from ...core.types import CanonicalType
from .naming import create_typescript_sanitizer
from .types import TypeScriptTypeMapper, typeorm_column_type

# Layer directory and file suffix per artifact kind
LAYERS = {
    ArtifactKind.ENTITY: ("entities", "entity", ""),
    ArtifactKind.DTO: ("dto", "dto", "Dto"),
    ArtifactKind.MAPPER: ("mappers", "mapper", "Mapper"),
    ArtifactKind.REPOSITORY: ("repositories", "repository", "Repository"),
    ArtifactKind.SERVICE: ("services", "service", "Service"),
    ArtifactKind.CONTROLLER: ("controllers", "controller", "Controller"),
}

# TypeORM derives migration order from a trailing JavaScript timestamp
MIGRATION_EPOCH = 1700000000000

VALIDATORS = {
    CanonicalType.INT32: ["IsInt()"],
    CanonicalType.INT64: ["IsInt()"],
    CanonicalType.FLOAT32: ["IsNumber()"],
    CanonicalType.FLOAT64: ["IsNumber()"],
    CanonicalType.DECIMAL: ["IsNumberString()"],
    CanonicalType.BOOLEAN: ["IsBoolean()"],
    CanonicalType.STRING: ["IsString()"],
    CanonicalType.BYTES: [],
    CanonicalType.DATE: ["IsDateString()"],
    CanonicalType.DATETIME: ["IsDate()"],
    CanonicalType.TIME: ["IsString()"],
    CanonicalType.INSTANT: ["IsDate()"],
    CanonicalType.DURATION: ["IsString()"],
    CanonicalType.UUID: ["IsUUID()"],
}

PARAM_PIPES = {
    CanonicalType.INT32: "ParseIntPipe",
    CanonicalType.INT64: "ParseIntPipe",
    CanonicalType.UUID: "ParseUUIDPipe",
}


def _finder(property_name: str) -> str:
    return "findBy" + property_name[:1].upper() + property_name[1:]


def _js_string(value: str) -> str:
    return "'" + value.replace("\\", "\\\\").replace("'", "\\'") + "'"


class TypeScriptGenerator(CodeGenerator):
    """Code generator for NestJS with TypeORM and class-validator."""

    artifact_templates = {
        ArtifactKind.ENTITY: "entity.ts.j2",
        ArtifactKind.DTO: "dto.ts.j2",
        ArtifactKind.MAPPER: "mapper.ts.j2",
        ArtifactKind.REPOSITORY: "repository.ts.j2",
        ArtifactKind.SERVICE: "service.ts.j2",
        ArtifactKind.CONTROLLER: "controller.ts.j2",
        ArtifactKind.MIGRATION: "migration.ts.j2",
    }
    join_table_template = "join_table_migration.ts.j2"
    field_case = NamingCase.CAMEL_CASE

    def __init__(self, config: Optional[GeneratorConfig] = None):
        """Initialize TypeScript generator with configuration."""
        super().__init__(config)
        self.source_root = self.config.package_name.strip("/") or "src"

    @property
    def language_name(self) -> str:
        """Return the language name."""
        return "typescript"

    @property
    def file_extension(self) -> str:
        """Return TypeScript file extension."""
        return ".ts"

    @classmethod
    def create_type_mapper(cls) -> TypeScriptTypeMapper:
        return TypeScriptTypeMapper()

    def create_sanitizer(self) -> NameSanitizer:
        return create_typescript_sanitizer()

    def get_template_directory(self) -> Path:
        """Return the TypeScript templates directory."""
        return Path(__file__).parent / "templates"

    # Paths

    def module_dir(self, names: EntityNames) -> str:
        return to_kebab_case(names.module)

    def file_stem(self, names: EntityNames, kind: ArtifactKind) -> str:
        layer, suffix, _ = LAYERS[kind]
        return f"{self.module_dir(names)}/{layer}/{names.kebab}.{suffix}"

    def import_path(self, names: EntityNames, kind: ArtifactKind) -> str:
        """Relative import of an artifact from any other layer directory."""
        return f"../../{self.file_stem(names, kind)}"

    def class_name(self, names: EntityNames, kind: ArtifactKind) -> str:
        return names.entity + LAYERS[kind][2]

    def _relative_module(self, names: EntityNames, kind: ArtifactKind) -> str:
        layer, suffix, _ = LAYERS[kind]
        return f"./{layer}/{names.kebab}.{suffix}"

    def migration_name(self, table_name: str, version: int) -> Tuple[str, int]:
        timestamp = MIGRATION_EPOCH + version
        return f"Create{to_pascal_case(table_name)}Table{timestamp}", timestamp

    def artifact_path(self, kind: ArtifactKind, names: EntityNames, version: int) -> str:
        if kind == ArtifactKind.MIGRATION:
            return self._migration_path(names.table, version)
        return f"{self.source_root}/{self.file_stem(names, kind)}.ts"

    def join_table_path(self, table: Table, version: int) -> str:
        return self._migration_path(table.name, version)

    def _migration_path(self, table_name: str, version: int) -> str:
        _, timestamp = self.migration_name(table_name, version)
        class_stem = to_pascal_case(table_name)
        return f"{self.source_root}/migrations/{timestamp}-Create{class_stem}Table.ts"

    # Context

    def column_data(self, column: Column) -> Dict[str, Any]:
        data = super().column_data(column)
        data["column_options"] = self.column_options(column, data["unique"])
        data["optional"] = column.nullable or data["has_default"]
        data["validators"] = self.validators(column, data["optional"])
        return data

    def column_options(self, column: Column, unique: bool = False) -> str:
        """Object literal passed to ``@Column``."""
        options = [f"name: '{column.name}'", f"type: '{typeorm_column_type(column.type)}'"]
        if column.type == CanonicalType.STRING:
            options.append(f"length: {column.length or DEFAULT_STRING_LENGTH}")
        elif column.type == CanonicalType.DECIMAL:
            scale = column.scale if column.scale is not None else DEFAULT_SCALE
            options.append(f"precision: {column.precision or DEFAULT_PRECISION}")
            options.append(f"scale: {scale}")
        options.append(f"nullable: {'true' if column.nullable else 'false'}")
        if unique:
            options.append("unique: true")
        default = sql_default(column)
        if default is not None and default != "NULL":
            options.append(f"default: () => {_js_string(default)}")
        return "{ " + ", ".join(options) + " }"

    def validators(self, column: Column, optional: bool) -> List[str]:
        """class-validator decorators of a DTO property."""
        decorators = ["IsOptional()"] if optional else []
        decorators.extend(VALIDATORS[column.type])
        if column.type == CanonicalType.STRING:
            decorators.append(f"MaxLength({column.length or DEFAULT_STRING_LENGTH})")
        if column.type in (CanonicalType.DATETIME, CanonicalType.INSTANT):
            decorators.append("Type(() => Date)")
        return decorators

    def id_validator(self, canonical: CanonicalType, each: bool = False) -> str:
        name = VALIDATORS[canonical][0].split("(")[0]
        if each:
            if canonical == CanonicalType.UUID:
                return "IsUUID('all', { each: true })"
            return f"{name}({{ each: true }})"
        return f"{name}()"

    def build_context(self, entity) -> Dict[str, Any]:
        context = super().build_context(entity)
        names = context["names"]
        table = entity.table
        pk = context["pk"]

        pk_column = table.primary_key
        if pk["generated"]:
            pk["decorator"] = (
                f"PrimaryGeneratedColumn({{ name: '{pk['column']}', "
                f"type: '{typeorm_column_type(pk_column.type)}' }})"
            )
        elif pk["is_uuid"]:
            pk["decorator"] = f"PrimaryGeneratedColumn('uuid', {{ name: '{pk['column']}' }})"
        else:
            pk["decorator"] = f"PrimaryColumn({self.column_options(pk_column)})"
        pk["pipe"] = PARAM_PIPES.get(pk["ctype"])
        pk["validator"] = self.id_validator(pk["ctype"])

        for rel in context["many_to_one"]:
            fk = entity.resolved.aligned_column(table.column(rel["fk_column"]))
            rel["column_options"] = self.column_options(fk)
            rel["validators"] = (["IsOptional()"] if rel["nullable"] else []) + [
                self.id_validator(rel["fk_ctype"])
            ]
            rel["on_delete"] = "SET NULL" if rel["nullable"] else "RESTRICT"
            rel["finder"] = _finder(rel["fk_field"])
            rel["variable"] = rel["target"].variable
        for rel in context["one_to_many"]:
            rel["variable"] = rel["target"].variable
        for rel in context["many_to_many"]:
            rel["variable"] = rel["target"].variable
            rel["validator"] = self.id_validator(rel["id_ctype"], each=True)
            rel["finder"] = f"find{rel['target'].plural_entity}ByIds"
        context["owned_many_to_many"] = [r for r in context["many_to_many"] if r["owner"]]
        context["unique_fields"] = [f for f in context["fields"] if f["unique"]]
        for data in context["unique_fields"]:
            data["finder"] = _finder(data["name"])
        context["unique_properties"] = [
            (name, [self.field_name(c) for c in columns])
            for name, columns in context["plan"].unique_constraints
        ]
        context["classes"] = {kind.value: self.class_name(names, kind) for kind in LAYERS}
        context["controller_path"] = f"{context['api_prefix'].lstrip('/')}/{names.plural_kebab}"
        migration_class, _ = self.migration_name(table.name, entity.migration_version)
        context["migration_class"] = migration_class
        return context

    def _relative_imports(
        self, kinds: Dict[ArtifactKind, List[EntityNames]]
    ) -> List[Tuple[str, str]]:
        imports: Dict[str, str] = {}
        for kind, targets in kinds.items():
            for names in targets:
                imports[self.import_path(names, kind)] = self.class_name(names, kind)
        return sorted((name, path) for path, name in imports.items())

    def artifact_context(self, kind: ArtifactKind, context: Dict[str, Any]) -> Dict[str, Any]:
        names = context["names"]
        rel_targets = [
            rel["target"]
            for rel in context["many_to_one"] + context["one_to_many"] + context["many_to_many"]
            if rel["target"].entity != names.entity
        ]

        if kind == ArtifactKind.ENTITY:
            typeorm = {"Column", "Entity"}
            pk = context["pk"]
            generated = pk["generated"] or pk["is_uuid"]
            typeorm.add("PrimaryGeneratedColumn" if generated else "PrimaryColumn")
            if context["many_to_one"]:
                typeorm |= {"ManyToOne", "JoinColumn"}
            if context["one_to_many"]:
                typeorm.add("OneToMany")
            if context["many_to_many"]:
                typeorm.add("ManyToMany")
            if context["owned_many_to_many"]:
                typeorm.add("JoinTable")
            if context["plan"].unique_constraints:
                typeorm.add("Unique")
            return {
                "typeorm_names": sorted(typeorm),
                "local_imports": self._relative_imports(
                    {ArtifactKind.ENTITY: rel_targets}
                ),
                "base_entity_path": "../../common/entities/base.entity",
            }

        if kind == ArtifactKind.DTO:
            validators: Set[str] = set()
            decorators = [context["pk"]["validator"]]
            for field in context["fields"]:
                decorators.extend(field["validators"])
            for rel in context["many_to_one"]:
                decorators.extend(rel["validators"])
            for rel in context["many_to_many"]:
                decorators.extend(["IsOptional()", "IsArray()", rel["validator"]])
            for decorator in decorators:
                validators.add(decorator.split("(")[0])
            needs_transformer = "Type" in validators
            validators.discard("Type")
            validators.add("IsOptional")
            return {
                "validator_names": sorted(validators),
                "transformer_names": ["Type"] if needs_transformer else [],
            }

        if kind == ArtifactKind.MAPPER:
            return {
                "local_imports": self._relative_imports(
                    {ArtifactKind.ENTITY: [names], ArtifactKind.DTO: [names]}
                )
            }

        if kind == ArtifactKind.REPOSITORY:
            targets = [rel["target"] for rel in context["owned_many_to_many"]]
            return {
                "typeorm_names": ["In", "Repository"] if targets else ["Repository"],
                "local_imports": self._relative_imports(
                    {ArtifactKind.ENTITY: [names] + targets}
                ),
            }

        if kind == ArtifactKind.SERVICE:
            return {
                "local_imports": self._relative_imports(
                    {
                        ArtifactKind.ENTITY: [names],
                        ArtifactKind.DTO: [names],
                        ArtifactKind.MAPPER: [names],
                        ArtifactKind.REPOSITORY: [names],
                    },
                )
            }

        if kind == ArtifactKind.CONTROLLER:
            nest = {
                "Body",
                "Controller",
                "Delete",
                "Get",
                "HttpCode",
                "Param",
                "Patch",
                "Post",
                "Put",
                "Query",
            }
            if context["pk"]["pipe"]:
                nest.add(context["pk"]["pipe"])
            return {
                "nest_names": sorted(nest),
                "local_imports": self._relative_imports(
                    {ArtifactKind.DTO: [names], ArtifactKind.SERVICE: [names]}
                ),
            }

        return {}

    def generate_join_table(
        self, table: Table, resolved: ResolvedSchema, version: int
    ) -> GeneratedFile:
        """Generate the TypeORM migration of a pure join table."""
        plan = build_join_table_plan(table, resolved)
        migration_class, _ = self.migration_name(table.name, version)
        context = {
            "table": table,
            "plan": plan,
            "version": version,
            "add_comments": self.config.add_comments,
            "migration_class": migration_class,
        }
        content = self.render_template(self.join_table_template, context)
        return GeneratedFile(self.join_table_path(table, version), self.format_code(content))

    def base_files(self, resolved: ResolvedSchema) -> List[GeneratedFile]:
        """Generate the base entity, one Nest module per entity and the root module."""
        audit = self.audit_data()

        files = [
            GeneratedFile(
                f"{self.source_root}/common/entities/base.entity.ts",
                self.format_code(
                    self.render_template(
                        "base.entity.ts.j2",
                        {"audit": audit, "add_comments": self.config.add_comments},
                    )
                ),
            )
        ]

        modules = []
        for table in resolved.entity_tables:
            names = self.names_for(table)
            stem = f"{self.module_dir(names)}/{names.kebab}.module"
            context = {
                "names": names,
                "imports": [
                    (self.class_name(names, kind), self._relative_module(names, kind))
                    for kind in (
                        ArtifactKind.CONTROLLER,
                        ArtifactKind.ENTITY,
                        ArtifactKind.REPOSITORY,
                        ArtifactKind.SERVICE,
                    )
                ],
            }
            files.append(
                GeneratedFile(
                    f"{self.source_root}/{stem}.ts",
                    self.format_code(self.render_template("module.ts.j2", context)),
                )
            )
            modules.append((f"{names.entity}Module", f"./{stem}"))

        app_context = {
            "modules": modules,
            "project_name": self.config.project_name,
            "add_comments": self.config.add_comments,
        }
        files.append(
            GeneratedFile(
                f"{self.source_root}/app.module.ts",
                self.format_code(self.render_template("app.module.ts.j2", app_context)),
            )
        )
        return files


def create_typescript_generator(config: Optional[Dict[str, Any]] = None) -> TypeScriptGenerator:
    """Create a TypeScript generator with default configuration."""
    from ...core.config import load_config

    return TypeScriptGenerator(load_config("typescript", custom_config=config))
