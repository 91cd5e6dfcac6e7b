"""
Java code generator implementation.

Generates a Spring Boot project layer per entity: JPA entity, DTO,
MapStruct mapper, Spring Data repository, service, REST controller and a
Flyway migration.
"""

from pathlib import Path
from typing import Any, Dict, List, Optional, Set

from ...core.config import GeneratorConfig
from ...core.generator import ArtifactKind, CodeGenerator, EntityNames, GeneratedFile
from ...core.naming import NameSanitizer, NamingCase, to_pascal_case
from ...core.relationships import ResolvedSchema
from ...core.schema import Table
from ...core.sql import (
    DEFAULT_PRECISION,
    DEFAULT_SCALE,
    DEFAULT_STRING_LENGTH,
    is_sql_reserved,
)
from ...core.types import CanonicalType
from .naming import create_java_sanitizer, java_package_segment
from .types import JavaTypeMapper

LAYERS = {
    ArtifactKind.ENTITY: ("entity", ""),
    ArtifactKind.DTO: ("dto", "DTO"),
    ArtifactKind.MAPPER: ("mapper", "Mapper"),
    ArtifactKind.REPOSITORY: ("repository", "Repository"),
    ArtifactKind.SERVICE: ("service", "Service"),
    ArtifactKind.CONTROLLER: ("controller", "Controller"),
}


def jpa_name(name: str) -> str:
    """Table or column name for a JPA annotation; SQL reserved words are quoted."""
    if is_sql_reserved(name):
        return f'\\"{name}\\"'
    return name


class JavaGenerator(CodeGenerator):
    """Code generator for Spring Boot with JPA, MapStruct and Flyway."""

    artifact_templates = {
        ArtifactKind.ENTITY: "entity.java.j2",
        ArtifactKind.DTO: "dto.java.j2",
        ArtifactKind.MAPPER: "mapper.java.j2",
        ArtifactKind.REPOSITORY: "repository.java.j2",
        ArtifactKind.SERVICE: "service.java.j2",
        ArtifactKind.CONTROLLER: "controller.java.j2",
        ArtifactKind.MIGRATION: "migration.sql.j2",
    }
    join_table_template = "join_table.sql.j2"
    field_case = NamingCase.CAMEL_CASE

    def __init__(self, config: Optional[GeneratorConfig] = None):
        """Initialize Java generator with configuration."""
        super().__init__(config)
        self.base_package = self.config.package_name
        self.source_root = "src/main/java/" + self.base_package.replace(".", "/")

    @property
    def language_name(self) -> str:
        """Return the language name."""
        return "java"

    @property
    def file_extension(self) -> str:
        """Return Java file extension."""
        return ".java"

    @classmethod
    def create_type_mapper(cls) -> JavaTypeMapper:
        return JavaTypeMapper()

    def create_sanitizer(self) -> NameSanitizer:
        return create_java_sanitizer()

    def get_template_directory(self) -> Optional[Path]:
        """Return the Java templates directory."""
        return Path(__file__).parent / "templates"

    # Packages and paths

    def layer_package(self, names: EntityNames, layer: str) -> str:
        return f"{self.base_package}.{java_package_segment(names.module)}.{layer}"

    def qualified(self, names: EntityNames, kind: ArtifactKind) -> str:
        layer, suffix = LAYERS[kind]
        return f"{self.layer_package(names, layer)}.{names.entity}{suffix}"

    def artifact_path(self, kind: ArtifactKind, names: EntityNames, version: int) -> str:
        if kind == ArtifactKind.MIGRATION:
            return f"src/main/resources/db/migration/V{version}__create_{names.table}_table.sql"
        return "src/main/java/" + self.qualified(names, kind).replace(".", "/") + ".java"

    def join_table_path(self, table: Table, version: int) -> str:
        return f"src/main/resources/db/migration/V{version}__create_{table.name}_table.sql"

    # Context

    def accessor(self, field_name: str) -> str:
        """Suffix of the Lombok getter/setter of a field."""
        return to_pascal_case(field_name)

    def column_args(self, field: Dict[str, Any]) -> str:
        """Arguments of the JPA ``@Column`` annotation of a scalar field."""
        args = [f'name = "{jpa_name(field["column"])}"']
        if not field["nullable"]:
            args.append("nullable = false")
        if field["unique"]:
            args.append("unique = true")
        if field["ctype"] == CanonicalType.STRING:
            args.append(f"length = {field['length'] or DEFAULT_STRING_LENGTH}")
        elif field["ctype"] == CanonicalType.DECIMAL:
            precision = field["precision"] or DEFAULT_PRECISION
            scale = field["scale"] if field["scale"] is not None else DEFAULT_SCALE
            args.append(f"precision = {precision}, scale = {scale}")
        return ", ".join(args)

    def build_context(self, entity) -> Dict[str, Any]:
        context = super().build_context(entity)
        names = context["names"]
        context["base_package"] = self.base_package
        context["jpa_name"] = jpa_name
        context["packages"] = {
            layer: self.layer_package(names, layer) for layer, _ in LAYERS.values()
        }
        context["pk"]["accessor"] = self.accessor(context["pk"]["name"])
        for field in context["fields"]:
            field["accessor"] = self.accessor(field["name"])
            field["column_args"] = self.column_args(field)
        for role in context["audit"].values():
            role["accessor"] = self.accessor(role["name"])
        for rel in context["many_to_one"]:
            rel["accessor"] = self.accessor(rel["property"])
            rel["fk_accessor"] = self.accessor(rel["fk_field"])
            rel["referenced_accessor"] = self.accessor(rel["referenced_field"])
            rel["repository"] = f"{rel['target'].variable}Repository"
        for rel in context["many_to_many"]:
            rel["accessor"] = self.accessor(rel["property"])
            rel["ids_accessor"] = self.accessor(rel["ids_field"])
            rel["target_pk_accessor"] = self.accessor(rel["target_pk_field"])
            rel["collection_type"] = self.type_mapper.map_collection(rel["target"].entity)
            rel["repository"] = f"{rel['target'].variable}Repository"
        for rel in context["one_to_many"]:
            rel["collection_type"] = self.type_mapper.map_collection(rel["target"].entity)
        context["owned_many_to_many"] = [r for r in context["many_to_many"] if r["owner"]]
        # Repositories the service needs, one per related entity
        repositories = {}
        for rel in context["many_to_one"] + context["owned_many_to_many"]:
            if rel["target"].entity == names.entity:
                continue
            repositories.setdefault(rel["repository"], rel["target"])
        context["related_repositories"] = sorted(
            repositories.items(), key=lambda item: item[0]
        )
        context["has_relations"] = bool(
            context["many_to_one"] or context["owned_many_to_many"]
        )
        return context

    def _type_imports(self, context: Dict[str, Any], include_fk: bool = True) -> Set[str]:
        mapper = self.type_mapper
        imports: Set[str] = set()
        for field in context["fields"]:
            imports |= mapper.imports_for(field["ctype"])
        imports |= mapper.imports_for(context["pk"]["ctype"])
        if include_fk:
            for rel in context["many_to_one"]:
                imports |= mapper.imports_for(rel["fk_ctype"])
            for rel in context["many_to_many"]:
                imports |= mapper.imports_for(rel["id_ctype"])
        return imports

    def _foreign(self, names: EntityNames, kind: ArtifactKind, own_package: str) -> Set[str]:
        qualified = self.qualified(names, kind)
        if qualified.rsplit(".", 1)[0] == own_package:
            return set()
        return {qualified}

    def artifact_context(self, kind: ArtifactKind, context: Dict[str, Any]) -> Dict[str, Any]:
        names = context["names"]
        packages = context["packages"]
        imports: Set[str] = set()

        if kind == ArtifactKind.ENTITY:
            imports |= self._type_imports(context, include_fk=False)
            imports.add(f"{self.base_package}.common.entity.BaseEntity")
            related = [r["target"] for r in context["many_to_one"]]
            related += [r["target"] for r in context["one_to_many"]]
            related += [r["target"] for r in context["many_to_many"]]
            for target in related:
                imports |= self._foreign(target, ArtifactKind.ENTITY, packages["entity"])
            if context["one_to_many"] or context["many_to_many"]:
                imports |= {"java.util.ArrayList", "java.util.List"}

        elif kind == ArtifactKind.DTO:
            imports |= self._type_imports(context)
            for role in ("created_at", "updated_at"):
                imports |= self.type_mapper.imports_for(context["audit"][role]["ctype"])
            if context["many_to_many"]:
                imports.add("java.util.List")

        elif kind == ArtifactKind.MAPPER:
            imports.add(self.qualified(names, ArtifactKind.ENTITY))
            imports.add(self.qualified(names, ArtifactKind.DTO))
            for rel in context["many_to_many"]:
                imports |= self._foreign(rel["target"], ArtifactKind.ENTITY, packages["mapper"])
                imports |= self.type_mapper.imports_for(rel["id_ctype"])
            if context["many_to_many"]:
                imports.add("java.util.List")

        elif kind == ArtifactKind.REPOSITORY:
            imports.add(self.qualified(names, ArtifactKind.ENTITY))
            imports |= self.type_mapper.imports_for(context["pk"]["ctype"])
            for field in context["fields"]:
                if field["unique"]:
                    imports |= self.type_mapper.imports_for(field["ctype"])
                    imports.add("java.util.Optional")
            for rel in context["many_to_one"]:
                imports |= self.type_mapper.imports_for(rel["fk_ctype"])
                imports.add("java.util.List")

        elif kind == ArtifactKind.SERVICE:
            for own in (
                ArtifactKind.ENTITY,
                ArtifactKind.DTO,
                ArtifactKind.MAPPER,
                ArtifactKind.REPOSITORY,
            ):
                imports |= self._foreign(names, own, packages["service"])
            for _, target in context["related_repositories"]:
                imports |= self._foreign(target, ArtifactKind.REPOSITORY, packages["service"])
            imports |= self.type_mapper.imports_for(context["pk"]["ctype"])
            imports |= self.type_mapper.imports_for(context["audit"]["deleted_at"]["ctype"])
            if context["owned_many_to_many"]:
                imports.add("java.util.ArrayList")

        elif kind == ArtifactKind.CONTROLLER:
            imports.add(self.qualified(names, ArtifactKind.DTO))
            imports.add(self.qualified(names, ArtifactKind.SERVICE))
            imports |= self.type_mapper.imports_for(context["pk"]["ctype"])

        return {"imports": sorted(imports)}

    def base_files(self, resolved: ResolvedSchema) -> List[GeneratedFile]:
        """Generate the audited mapped superclass and the application class."""
        audit = self.audit_data()
        imports: Set[str] = set()
        for role in audit.values():
            role["accessor"] = self.accessor(role["name"])
            imports |= self.type_mapper.imports_for(role["ctype"])
        context = {
            "package": f"{self.base_package}.common.entity",
            "audit": audit,
            "imports": sorted(imports),
            "add_comments": self.config.add_comments,
        }
        content = self.render_template("base_entity.java.j2", context)
        path = f"{self.source_root}/common/entity/BaseEntity.java"
        return [
            GeneratedFile(path, self.format_code(content)),
            self._application(resolved),
        ]

    def _application(self, resolved: ResolvedSchema) -> GeneratedFile:
        entities = []
        for table in resolved.entity_tables:
            names = self.names_for(table)
            entities.append(
                {
                    "entity": self.qualified(names, ArtifactKind.ENTITY),
                    "repository": self.qualified(names, ArtifactKind.REPOSITORY),
                }
            )
        context = {
            "package": self.base_package,
            "project_name": self.config.project_name,
            "entities": entities,
            "add_comments": self.config.add_comments,
        }
        content = self.render_template("application.java.j2", context)
        return GeneratedFile(f"{self.source_root}/Application.java", self.format_code(content))


def create_java_generator(config: Optional[Dict[str, Any]] = None) -> JavaGenerator:
    """Create a Java generator with default configuration."""
    from ...core.config import load_config

    return JavaGenerator(load_config("java", custom_config=config))
