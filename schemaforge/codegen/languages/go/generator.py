"""
Go code generator implementation.

Generates a Gin + GORM service layout under ``internal/`` with
golang-migrate SQL migrations.
"""

from pathlib import Path
from typing import Any, Dict, List, Optional, Set

from ...core.config import GeneratorConfig
from ...core.generator import ArtifactKind, CodeGenerator, EntityNames, GeneratedFile
from ...core.naming import NameSanitizer, NamingCase
from ...core.relationships import ResolvedSchema
from ...core.schema import Column, Table
from ...core.sql import DEFAULT_STRING_LENGTH, sql_default, sql_type
from ...core.types import CanonicalType
from .naming import create_go_sanitizer, go_local_name
from .types import GoTypeMapper

PACKAGES = {
    ArtifactKind.ENTITY: ("models", ""),
    ArtifactKind.DTO: ("dto", "_dto"),
    ArtifactKind.MAPPER: ("mapper", "_mapper"),
    ArtifactKind.REPOSITORY: ("repository", "_repository"),
    ArtifactKind.SERVICE: ("service", "_service"),
    ArtifactKind.CONTROLLER: ("handler", "_handler"),
}


class GoGenerator(CodeGenerator):
    """Code generator for Gin handlers over GORM models."""

    artifact_templates = {
        ArtifactKind.ENTITY: "model.go.j2",
        ArtifactKind.DTO: "dto.go.j2",
        ArtifactKind.MAPPER: "mapper.go.j2",
        ArtifactKind.REPOSITORY: "repository.go.j2",
        ArtifactKind.SERVICE: "service.go.j2",
        ArtifactKind.CONTROLLER: "handler.go.j2",
        ArtifactKind.MIGRATION: "migration.sql.j2",
    }
    join_table_template = "join_table.sql.j2"
    field_case = NamingCase.PASCAL_CASE

    def __init__(self, config: Optional[GeneratorConfig] = None):
        """Initialize Go generator with configuration."""
        super().__init__(config)
        self.module = self.config.package_name

    @property
    def language_name(self) -> str:
        """Return the language name."""
        return "go"

    @property
    def file_extension(self) -> str:
        """Return Go file extension."""
        return ".go"

    @classmethod
    def create_type_mapper(cls) -> GoTypeMapper:
        return GoTypeMapper()

    def create_sanitizer(self) -> NameSanitizer:
        return create_go_sanitizer()

    def get_template_directory(self) -> Path:
        """Return the Go templates directory."""
        return Path(__file__).parent / "templates"

    # Paths

    def artifact_path(self, kind: ArtifactKind, names: EntityNames, version: int) -> str:
        if kind == ArtifactKind.MIGRATION:
            return f"migrations/{version:06d}_create_{names.table}.up.sql"
        package, suffix = PACKAGES[kind]
        return f"internal/{package}/{names.snake}{suffix}.go"

    def join_table_path(self, table: Table, version: int) -> str:
        return f"migrations/{version:06d}_create_{table.name}.up.sql"

    def import_path(self, package: str) -> str:
        return f"{self.module}/internal/{package}"

    # Context

    def column_data(self, column: Column) -> Dict[str, Any]:
        data = super().column_data(column)
        data["gorm_tag"] = self.gorm_tag(column, data["unique"])
        data["json_tag"] = self.json_tag(data["json_name"], column.nullable)
        data["local"] = go_local_name(column.name)
        data["binding"] = self.binding_tag(column, data["has_default"])
        return data

    def binding_tag(self, column: Column, has_default: bool) -> str:
        """Gin validator rules; only strings are checked since zero numbers are valid."""
        if column.type != CanonicalType.STRING:
            return ""
        max_rule = f"max={column.length or DEFAULT_STRING_LENGTH}"
        if column.nullable or has_default:
            return f"omitempty,{max_rule}"
        return f"required,{max_rule}"

    def gorm_tag(self, column: Column, unique: bool = False) -> str:
        """GORM struct tag body of a scalar column."""
        parts = [f"column:{column.name}", f"type:{sql_type(column).lower()}"]
        if not column.nullable:
            parts.append("not null")
        if unique:
            parts.append("unique")
        if column.name == self.audit.created_at:
            parts.append("autoCreateTime")
        else:
            default = sql_default(column)
            if default is not None and default != "NULL":
                parts.append(f"default:{default}")
        return ";".join(parts)

    def json_tag(self, json_name: str, omit_empty: bool = False) -> str:
        return f"{json_name},omitempty" if omit_empty else json_name

    def build_context(self, entity) -> Dict[str, Any]:
        context = super().build_context(entity)
        names = context["names"]
        table = entity.table
        pk = context["pk"]

        pk_parts = [f"column:{pk['column']}", "primaryKey"]
        if pk["generated"]:
            pk_parts.append("autoIncrement")
        elif pk["is_uuid"]:
            pk_parts.append("type:uuid;default:gen_random_uuid()")
        else:
            pk_parts.append(f"type:{sql_type(table.primary_key).lower()}")
        pk["gorm_tag"] = ";".join(pk_parts)
        pk["parser"] = _ID_PARSERS[pk["ctype"]]

        for rel in context["many_to_one"]:
            fk_parts = [f"column:{rel['fk_column']}"]
            if not rel["nullable"]:
                fk_parts.append("not null")
            rel["fk_gorm_tag"] = ";".join(fk_parts)
            rel["fk_json_tag"] = self.json_tag(rel["fk_json"], rel["nullable"])
            rel["fk_local"] = go_local_name(rel["fk_column"])
            rel["gorm_tag"] = f"foreignKey:{rel['fk_field']};references:{rel['referenced_field']}"
            rel["field_type"] = f"*{rel['target'].entity}"
        for rel in context["one_to_many"]:
            rel["gorm_tag"] = f"foreignKey:{rel['fk_field']}"
            rel["field_type"] = self.type_mapper.map_collection(rel["target"].entity)
        for rel in context["many_to_many"]:
            rel["gorm_tag"] = (
                f"many2many:{rel['join_table']};"
                f"joinForeignKey:{self.field_name(rel['join_column'])};"
                f"joinReferences:{self.field_name(rel['inverse_join_column'])}"
            )
            rel["field_type"] = self.type_mapper.map_collection(rel["target"].entity)
        context["owned_many_to_many"] = [r for r in context["many_to_many"] if r["owner"]]
        context["unique_fields"] = [f for f in context["fields"] if f["unique"]]
        context["defaulted_fields"] = [
            f for f in context["fields"] if f["has_default"] and not f["nullable"]
        ]
        context["receiver"] = names.variable[0].lower()
        context["local_pk"] = go_local_name(pk["column"])
        context["not_found"] = f"Err{names.entity}NotFound"
        return context

    def _id_imports(self, context: Dict[str, Any], links: str = "") -> Set[str]:
        mapper = self.type_mapper
        imports: Set[str] = set(mapper.imports_for(context["pk"]["ctype"]))
        for rel in context["many_to_one"]:
            imports |= mapper.imports_for(rel["fk_ctype"])
        for rel in context.get(links, ()):
            imports |= mapper.imports_for(rel["id_ctype"])
        return imports

    def artifact_context(self, kind: ArtifactKind, context: Dict[str, Any]) -> Dict[str, Any]:
        mapper = self.type_mapper
        imports: Set[str] = set()

        if kind in (ArtifactKind.ENTITY, ArtifactKind.DTO):
            scope = "many_to_many" if kind == ArtifactKind.DTO else ""
            imports |= self._id_imports(context, scope)
            for field in context["fields"]:
                imports |= mapper.imports_for(field["ctype"])
            if kind == ArtifactKind.DTO:
                imports |= mapper.imports_for(context["audit"]["created_at"]["ctype"])

        elif kind == ArtifactKind.MAPPER:
            imports |= {self.import_path("dto"), self.import_path("models")}
            for rel in context["many_to_many"]:
                imports |= mapper.imports_for(rel["id_ctype"])

        elif kind == ArtifactKind.REPOSITORY:
            imports |= {"context", "gorm.io/gorm", "gorm.io/gorm/clause"}
            imports.add(self.import_path("models"))
            imports |= self._id_imports(context, "owned_many_to_many")
            for field in context["unique_fields"]:
                imports |= mapper.imports_for(field["ctype"])

        elif kind == ArtifactKind.SERVICE:
            imports |= {
                "context",
                "errors",
                "time",
                "gorm.io/gorm",
                self.import_path("dto"),
                self.import_path("mapper"),
                self.import_path("models"),
                self.import_path("repository"),
            }
            imports |= mapper.imports_for(context["pk"]["ctype"])

        elif kind == ArtifactKind.CONTROLLER:
            imports |= {
                "errors",
                "net/http",
                "strconv",
                "github.com/gin-gonic/gin",
                self.import_path("dto"),
                self.import_path("service"),
            }
            imports |= mapper.imports_for(context["pk"]["ctype"])

        return {"imports": _group_imports(imports)}

    def base_files(self, resolved: ResolvedSchema) -> List[GeneratedFile]:
        """
        Generate the shared files of the Go module.

        Besides the embedded base model with the audit columns this emits the
        response bodies the handlers share and a router mounting the handler
        of each entity table.
        """
        audit = self.audit_data()
        imports: Set[str] = {"gorm.io/gorm"}
        for data in audit.values():
            imports |= self.type_mapper.imports_for(data["ctype"])
        add_comments = self.config.add_comments
        base = self.render_template(
            "base.go.j2",
            {"audit": audit, "imports": _group_imports(imports), "add_comments": add_comments},
        )
        response = self.render_template("response.go.j2", {"add_comments": add_comments})

        router_imports = {"github.com/gin-gonic/gin", "gorm.io/gorm"}
        router_imports |= {self.import_path(p) for p in ("handler", "repository", "service")}
        router = self.render_template(
            "router.go.j2",
            {
                "entities": [self.names_for(t) for t in resolved.entity_tables],
                "imports": _group_imports(router_imports),
                "add_comments": add_comments,
            },
        )
        return [
            GeneratedFile("internal/models/base.go", self.format_code(base)),
            GeneratedFile("internal/dto/response.go", self.format_code(response)),
            GeneratedFile("internal/router/router.go", self.format_code(router)),
        ]


_ID_PARSERS = {
    CanonicalType.INT32: "int32",
    CanonicalType.INT64: "int64",
    CanonicalType.UUID: "uuid",
    CanonicalType.STRING: "string",
}


def _group_imports(imports: Set[str]) -> List[List[str]]:
    """Standard library imports first, then third-party ones, each sorted."""
    standard = sorted(i for i in imports if "." not in i.split("/")[0])
    external = sorted(i for i in imports if "." in i.split("/")[0])
    return [group for group in (standard, external) if group]


def create_go_generator(config: Optional[Dict[str, Any]] = None) -> GoGenerator:
    """Create a Go generator with default configuration."""
    from ...core.config import load_config

    return GoGenerator(load_config("go", custom_config=config))
