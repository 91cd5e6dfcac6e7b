"""
Python code generator implementation.

Generates a FastAPI backend on SQLAlchemy 2 (async) with Pydantic v2
schemas and Alembic migrations.
"""

from pathlib import Path
from typing import Any, Dict, List, Optional, Set, Tuple

from ...core.config import GeneratorConfig
from ...core.generator import ArtifactKind, CodeGenerator, EntityNames, GeneratedFile
from ...core.naming import NameSanitizer, NamingCase, to_snake_case
from ...core.relationships import ResolvedSchema
from ...core.schema import Column, Table
from ...core.sql import DEFAULT_STRING_LENGTH, build_join_table_plan, sql_default
from ...core.types import CanonicalType
from .naming import create_python_sanitizer
from .types import PythonTypeMapper, import_lines, sqlalchemy_type

AUDIT_SCHEMA_ROLES = ("active", "created_at", "updated_at")
TOP_LEVEL_PREFIXES = ("class ", "def ", "async def ", "@")


def sa_expression(column: Column) -> str:
    """``sa.``-qualified type constructor used in Alembic migrations."""
    expression = sqlalchemy_type(column)
    if "(" not in expression:
        expression += "()"
    return f"sa.{expression}"


def _join_column(column: Column, target: Tuple[str, str]) -> Tuple[str, str, str]:
    return column.name, sqlalchemy_type(column), ".".join(target)


class PythonGenerator(CodeGenerator):
    """Code generator for FastAPI with SQLAlchemy, Pydantic and Alembic."""

    artifact_templates = {
        ArtifactKind.ENTITY: "model.py.j2",
        ArtifactKind.DTO: "schema.py.j2",
        ArtifactKind.MAPPER: "mapper.py.j2",
        ArtifactKind.REPOSITORY: "repository.py.j2",
        ArtifactKind.SERVICE: "service.py.j2",
        ArtifactKind.CONTROLLER: "router.py.j2",
        ArtifactKind.MIGRATION: "migration.py.j2",
    }
    join_table_template = "join_table_migration.py.j2"
    field_case = NamingCase.SNAKE_CASE

    def __init__(self, config: Optional[GeneratorConfig] = None):
        """Initialize Python generator with configuration."""
        super().__init__(config)
        self.package = self.config.package_name
        self.package_root = self.package.replace(".", "/")

    @property
    def language_name(self) -> str:
        """Return the language name."""
        return "python"

    @property
    def file_extension(self) -> str:
        """Return Python file extension."""
        return ".py"

    @classmethod
    def create_type_mapper(cls) -> PythonTypeMapper:
        return PythonTypeMapper()

    def create_sanitizer(self) -> NameSanitizer:
        return create_python_sanitizer()

    def get_template_directory(self) -> Path:
        """Return the Python templates directory."""
        return Path(__file__).parent / "templates"

    # Paths

    def artifact_path(self, kind: ArtifactKind, names: EntityNames, version: int) -> str:
        if kind == ArtifactKind.MIGRATION:
            return self._migration_path(names.table, version)
        layout = {
            ArtifactKind.ENTITY: f"models/{names.snake}.py",
            ArtifactKind.DTO: f"schemas/{names.snake}.py",
            ArtifactKind.MAPPER: f"mappers/{names.snake}_mapper.py",
            ArtifactKind.REPOSITORY: f"repositories/{names.snake}_repository.py",
            ArtifactKind.SERVICE: f"services/{names.snake}_service.py",
            ArtifactKind.CONTROLLER: f"routers/{names.snake}_router.py",
        }
        return f"{self.package_root}/{layout[kind]}"

    def join_table_path(self, table: Table, version: int) -> str:
        return self._migration_path(table.name, version)

    def _migration_path(self, table_name: str, version: int) -> str:
        return f"alembic/versions/{version:04d}_create_{table_name}.py"

    def module_path(self, layer: str, names: EntityNames) -> str:
        """Dotted import path of a generated module, e.g. ``app.models.product``."""
        suffix = {
            "models": "",
            "schemas": "",
            "mappers": "_mapper",
            "repositories": "_repository",
            "services": "_service",
            "routers": "_router",
        }[layer]
        return f"{self.package}.{layer}.{names.snake}{suffix}"

    # Context

    def column_data(self, column: Column) -> Dict[str, Any]:
        data = super().column_data(column)
        data["sa_type"] = sqlalchemy_type(column)
        data["column_args"] = self._mapped_column_args(column, data)
        data["schema_value"] = self._schema_value(data)
        return data

    def _mapped_column_args(self, column: Column, data: Dict[str, Any]) -> str:
        args = []
        if data["name"] != column.name:
            args.append(f'"{column.name}"')
        args.append(data["sa_type"])
        args.append(f"nullable={column.nullable}")
        if data["unique"]:
            args.append("unique=True")
        if data["default_kind"] == "now":
            args.append("server_default=func.now()")
        elif data["has_default"] and data["default_kind"] != "null":
            args.append(f"default={data['default']}")
        return ", ".join(args)

    def _schema_value(self, data: Dict[str, Any]) -> str:
        """Right-hand side of a Pydantic field, empty for required fields."""
        options = []
        if data["name"] != to_snake_case(data["column"]):
            options.append(f'alias="{data["json_name"]}"')
        if data["ctype"] == CanonicalType.STRING:
            options.append(f"max_length={data['length'] or DEFAULT_STRING_LENGTH}")

        if data["default_kind"] == "now":
            factory = "date.today" if data["ctype"] == CanonicalType.DATE else "datetime.now"
            return f"Field({', '.join([f'default_factory={factory}'] + options)})"
        if data["nullable"] or data["has_default"]:
            if not options:
                return data["default"]
            return f"Field({', '.join([data['default']] + options)})"
        if options:
            return f"Field({', '.join(options)})"
        return ""

    def build_context(self, entity) -> Dict[str, Any]:
        context = super().build_context(entity)
        names = context["names"]
        context["package"] = self.package
        context["pk"]["sa_type"] = sqlalchemy_type(entity.table.primary_key)
        context["modules"] = {
            layer: self.module_path(layer, names)
            for layer in ("models", "schemas", "mappers", "repositories", "services", "routers")
        }
        for rel in context["many_to_one"]:
            rel["ondelete"] = "SET NULL" if rel["nullable"] else "RESTRICT"
            rel["target_module"] = self.module_path("models", rel["target"])
            rel["target_table"] = rel["target"].table
        for rel in context["one_to_many"] + context["many_to_many"]:
            rel["target_module"] = self.module_path("models", rel["target"])
        for rel in context["many_to_many"]:
            rel["repository_module"] = self.module_path("repositories", rel["target"])
            rel["repository"] = f"{rel['target'].snake}_repository"
        context["owned_many_to_many"] = [r for r in context["many_to_many"] if r["owner"]]
        context["schema_audit"] = [context["audit"][role] for role in AUDIT_SCHEMA_ROLES]

        # Related model classes, imported for type checking only
        related = {}
        for rel in context["many_to_one"] + context["one_to_many"] + context["many_to_many"]:
            if rel["target"].entity != names.entity:
                related.setdefault(rel["target"].entity, rel["target_module"])
        context["related_models"] = sorted(related.items())
        return context

    def _type_imports(self, context: Dict[str, Any]) -> Set[str]:
        mapper = self.type_mapper
        imports: Set[str] = set(mapper.imports_for(context["pk"]["ctype"]))
        for field in context["fields"]:
            imports |= mapper.imports_for(field["ctype"])
        for rel in context["many_to_one"]:
            imports |= mapper.imports_for(rel["fk_ctype"])
        for rel in context["many_to_many"]:
            imports |= mapper.imports_for(rel["id_ctype"])
        return imports

    def artifact_context(self, kind: ArtifactKind, context: Dict[str, Any]) -> Dict[str, Any]:
        if kind == ArtifactKind.ENTITY:
            imports = self._type_imports(context)
            sa_names = {self._sa_name(context["pk"]["ctype"])}
            sa_names |= {f["sa_type"].split("(")[0] for f in context["fields"]}
            if context["many_to_one"]:
                sa_names.add("ForeignKey")
            if context["plan"].unique_constraints:
                sa_names.add("UniqueConstraint")
            if any(f["default_kind"] == "now" for f in context["fields"]):
                sa_names.add("func")
            if context["pk"]["is_uuid"]:
                imports.add("uuid.uuid4")
            typing_names = ["TYPE_CHECKING"] if context["related_models"] else []
            if any(r["nullable"] for r in context["many_to_one"]):
                typing_names.append("Optional")
            return {
                "imports": import_lines(imports),
                "sa_names": sorted(sa_names),
                "typing_names": typing_names,
            }

        if kind == ArtifactKind.DTO:
            imports = self._type_imports(context)
            for data in context["schema_audit"]:
                imports |= self.type_mapper.imports_for(data["ctype"])
            return {"imports": import_lines(imports)}

        if kind in (ArtifactKind.SERVICE, ArtifactKind.REPOSITORY):
            imports = set(self.type_mapper.imports_for(context["pk"]["ctype"]))
            for field in context["fields"]:
                if field["unique"]:
                    imports |= self.type_mapper.imports_for(field["ctype"])
            for rel in context["many_to_one"]:
                imports |= self.type_mapper.imports_for(rel["fk_ctype"])
            if kind == ArtifactKind.SERVICE:
                imports |= self.type_mapper.imports_for(context["audit"]["deleted_at"]["ctype"])
            return {"imports": import_lines(imports)}

        if kind == ArtifactKind.CONTROLLER:
            return {"imports": import_lines(self.type_mapper.imports_for(context["pk"]["ctype"]))}

        if kind == ArtifactKind.MIGRATION:
            return self._migration_context(context)

        return {}

    def _sa_name(self, canonical: CanonicalType) -> str:
        return sqlalchemy_type(Column("_", canonical)).split("(")[0]

    def _migration_context(self, context: Dict[str, Any]) -> Dict[str, Any]:
        plan = context["plan"]
        pk = plan.primary_key
        columns = []
        if pk.type.is_integer:
            columns.append(
                f'sa.Column("{pk.name}", {sa_expression(pk)}, sa.Identity(), primary_key=True)'
            )
        else:
            columns.append(f'sa.Column("{pk.name}", {sa_expression(pk)}, primary_key=True)')
        for column in plan.business_columns:
            columns.append(self._migration_column(column, plan.is_unique(column)))
        for column in plan.audit_columns:
            columns.append(self._migration_column(column))
        constraints = []
        for name, cols in plan.unique_constraints:
            quoted = ", ".join(f'"{c}"' for c in cols)
            constraints.append(f'sa.UniqueConstraint({quoted}, name="{name}")')
        constraints.extend(
            f'sa.ForeignKeyConstraint(["{fk.column}"], ["{fk.target_table}.{fk.target_column}"], '
            f'name="{fk.name}", ondelete="{fk.on_delete}")'
            for fk in plan.foreign_keys
        )
        indexes = []
        for index in plan.indexes:
            if index.descending:
                columns_expr = ", ".join(f'sa.text("{c} DESC")' for c in index.columns)
            else:
                columns_expr = ", ".join(f'"{c}"' for c in index.columns)
            indexes.append(f'op.create_index("{index.name}", "{plan.table}", [{columns_expr}])')
        version = context["version"]
        return {
            "columns": columns + constraints,
            "indexes": indexes,
            "revision": f"{version:04d}",
            "down_revision": f'"{version - 1:04d}"' if version > 1 else "None",
        }

    def _migration_column(self, column: Column, unique: bool = False) -> str:
        args = [f'"{column.name}"', sa_expression(column), f"nullable={column.nullable}"]
        if unique:
            args.append("unique=True")
        default = sql_default(column)
        if default is not None:
            args.append(f"server_default=sa.text({default!r})")
        return f"sa.Column({', '.join(args)})"

    def sql_column_type(self, column: Column) -> str:
        return sa_expression(column)

    def generate_join_table(
        self, table: Table, resolved: ResolvedSchema, version: int
    ) -> GeneratedFile:
        """Generate the Alembic migration of a pure join table."""
        plan = build_join_table_plan(table, resolved)
        context = {
            "table": table,
            "plan": plan,
            "version": version,
            "add_comments": self.config.add_comments,
            "left_type": self.sql_column_type(plan.left),
            "right_type": self.sql_column_type(plan.right),
            "revision": f"{version:04d}",
            "down_revision": f'"{version - 1:04d}"' if version > 1 else "None",
        }
        content = self.render_template(self.join_table_template, context)
        return GeneratedFile(self.join_table_path(table, version), self.format_code(content))

    def base_files(self, resolved: ResolvedSchema) -> List[GeneratedFile]:
        """Generate the declarative base, session factory, base repository and package inits."""
        audit = self.audit_data()
        audit_imports: Set[str] = set()
        for data in audit.values():
            audit_imports |= self.type_mapper.imports_for(data["ctype"])
        audit_sa_names = {data["sa_type"].split("(")[0] for data in audit.values()}

        join_tables = []
        for table in resolved.join_tables:
            plan = build_join_table_plan(table, resolved)
            join_tables.append(
                {
                    "name": table.name,
                    "variable": f"{to_snake_case(table.name)}_table",
                    "left": _join_column(plan.left, plan.left_target),
                    "right": _join_column(plan.right, plan.right_target),
                }
            )
        join_sa_names = set()
        for join in join_tables:
            join_sa_names |= {join["left"][1].split("(")[0], join["right"][1].split("(")[0]}

        models = [self.names_for(t) for t in resolved.entity_tables]
        context = {
            "package": self.package,
            "project_name": self.config.project_name,
            "add_comments": self.config.add_comments,
            "audit": audit,
            "audit_imports": import_lines(audit_imports),
            "audit_sa_names": sorted(audit_sa_names | {"func"}),
            "join_tables": join_tables,
            "join_sa_names": sorted(join_sa_names),
            "models": models,
        }
        files = [
            ("models/base.py", "base_model.py.j2"),
            ("models/associations.py", "associations.py.j2"),
            ("models/__init__.py", "models_init.py.j2"),
            ("core/database.py", "database.py.j2"),
            ("repositories/base_repository.py", "base_repository.py.j2"),
            ("main.py", "main.py.j2"),
        ]
        return [
            GeneratedFile(
                f"{self.package_root}/{path}",
                self.format_code(self.render_template(template, context)),
            )
            for path, template in files
        ]

    def format_code(self, code: str) -> str:
        """Collapse blank lines, keeping the two blank lines PEP 8 puts before top-level blocks."""
        lines = code.split("\n")
        formatted: List[str] = []
        blank_count = 0
        for line in lines:
            stripped = line.rstrip()
            if not stripped:
                blank_count += 1
                continue
            if formatted:
                top_level = line.startswith(TOP_LEVEL_PREFIXES)
                if blank_count:
                    formatted.extend([""] * (2 if top_level else 1))
            blank_count = 0
            formatted.append(stripped)
        return "\n".join(formatted) + "\n"


def create_python_generator(config: Optional[Dict[str, Any]] = None) -> PythonGenerator:
    """Create a Python generator with default configuration."""
    from ...core.config import load_config

    return PythonGenerator(load_config("python", custom_config=config))
