"""
Canonical schema model for code generation.

Tables, columns and constraints in a target-language independent form.
The model carries no generation logic; it is built once per request by an
input adapter (SQL DDL or JSON) and validated before anything is derived
from it.
"""

from dataclasses import dataclass, field, fields, replace
from typing import Any, Dict, FrozenSet, Iterable, List, Optional, Tuple

from .naming import singularize, to_pascal_case, to_snake_case
from .types import PRIMARY_KEY_TYPES, CanonicalType


class SchemaError(Exception):
    """Raised for malformed or inconsistent schemas."""

    pass


@dataclass(frozen=True)
class ForeignKeyRef:
    """Target of a foreign key column."""

    table: str
    column: str = "id"


@dataclass(frozen=True)
class Column:
    """A single table column."""

    name: str
    type: CanonicalType
    nullable: bool = True
    unique: bool = False
    primary_key: bool = False
    default: Optional[str] = None
    references: Optional[ForeignKeyRef] = None
    length: Optional[int] = None
    precision: Optional[int] = None
    scale: Optional[int] = None
    comment: Optional[str] = None

    @property
    def is_foreign_key(self) -> bool:
        return self.references is not None


@dataclass(frozen=True)
class AuditFieldSet:
    """
    Names of the base/audit columns supplied by the shared base type.

    These columns are never iterated as business columns. The role names are
    fixed; the column names are configurable so that schemas with other
    audit conventions (``estado``, ``fecha_creacion``...) work unchanged.
    """

    id: str = "id"
    active: str = "active"
    created_at: str = "created_at"
    updated_at: str = "updated_at"
    created_by: str = "created_by"
    updated_by: str = "updated_by"
    deleted_at: str = "deleted_at"
    deleted_by: str = "deleted_by"
    version: str = "version"

    @classmethod
    def from_dict(cls, data: Dict[str, str]) -> "AuditFieldSet":
        """Build from a role -> column name mapping; unknown roles are rejected."""
        roles = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - roles)
        if unknown:
            raise SchemaError(f"Unknown audit field roles: {', '.join(unknown)}")
        return cls(**data)

    @property
    def names(self) -> FrozenSet[str]:
        return frozenset(getattr(self, f.name).lower() for f in fields(self))

    def is_audit(self, column_name: str) -> bool:
        """Check whether ``column_name`` belongs to the audit set."""
        return column_name.lower() in self.names

    def columns_by_role(self) -> Dict[str, Column]:
        """Canonical definitions of the base columns other than the id, by role."""
        return {
            "active": Column(self.active, CanonicalType.BOOLEAN, nullable=False, default="TRUE"),
            "created_at": Column(
                self.created_at,
                CanonicalType.DATETIME,
                nullable=False,
                default="CURRENT_TIMESTAMP",
            ),
            "updated_at": Column(self.updated_at, CanonicalType.DATETIME),
            "created_by": Column(self.created_by, CanonicalType.STRING, length=100),
            "updated_by": Column(self.updated_by, CanonicalType.STRING, length=100),
            "deleted_at": Column(self.deleted_at, CanonicalType.DATETIME),
            "deleted_by": Column(self.deleted_by, CanonicalType.STRING, length=100),
            "version": Column(self.version, CanonicalType.INT64, nullable=False, default="0"),
        }

    def columns(self) -> List[Column]:
        return list(self.columns_by_role().values())


DEFAULT_AUDIT_FIELDS = AuditFieldSet()


@dataclass(frozen=True)
class Table:
    """A table with its ordered columns and unique constraints."""

    name: str
    columns: Tuple[Column, ...]
    unique_constraints: Tuple[Tuple[str, ...], ...] = ()
    module: Optional[str] = None
    comment: Optional[str] = None

    @property
    def entity_name(self) -> str:
        """PascalCase singular name, e.g. ``order_items`` -> ``OrderItem``."""
        return to_pascal_case(singularize(self.name))

    @property
    def module_name(self) -> str:
        """Namespace the table's artifacts are grouped under."""
        return to_snake_case(self.module or self.name)

    @property
    def primary_key_columns(self) -> List[Column]:
        return [c for c in self.columns if c.primary_key]

    @property
    def primary_key(self) -> Column:
        """The single primary key column."""
        keys = self.primary_key_columns
        if len(keys) != 1:
            raise SchemaError(
                f"Table '{self.name}' has {len(keys)} primary key columns, expected 1"
            )
        return keys[0]

    @property
    def has_composite_key(self) -> bool:
        return len(self.primary_key_columns) > 1

    @property
    def foreign_keys(self) -> List[Column]:
        return [c for c in self.columns if c.is_foreign_key]

    def column(self, name: str) -> Optional[Column]:
        """Case-insensitive column lookup."""
        key = name.lower()
        for column in self.columns:
            if column.name.lower() == key:
                return column
        return None

    def business_columns(self, audit: AuditFieldSet = DEFAULT_AUDIT_FIELDS) -> List[Column]:
        """Columns that are neither primary keys nor audit columns."""
        return [
            c for c in self.columns if not c.primary_key and not audit.is_audit(c.name)
        ]

    def scalar_columns(self, audit: AuditFieldSet = DEFAULT_AUDIT_FIELDS) -> List[Column]:
        """Business columns that are not foreign keys."""
        return [c for c in self.business_columns(audit) if not c.is_foreign_key]

    def is_unique(self, column_name: str) -> bool:
        """True when the column is unique on its own."""
        column = self.column(column_name)
        if column is not None and (column.unique or column.primary_key):
            return True
        return any(
            len(constraint) == 1 and constraint[0].lower() == column_name.lower()
            for constraint in self.unique_constraints
        )

    @property
    def composite_unique_constraints(self) -> List[Tuple[str, ...]]:
        return [c for c in self.unique_constraints if len(c) > 1]


@dataclass(frozen=True)
class Schema:
    """Ordered collection of tables."""

    tables: Tuple[Table, ...] = field(default_factory=tuple)

    def table(self, name: str) -> Optional[Table]:
        """Case-insensitive table lookup."""
        key = name.lower()
        for table in self.tables:
            if table.name.lower() == key:
                return table
        return None

    def __len__(self) -> int:
        return len(self.tables)

    def validate(self) -> None:
        """
        Check structural invariants.

        Raises:
            SchemaError: On duplicate tables or columns, a missing or
                unsupported primary key, or a foreign key to an unknown table
        """
        seen_tables = set()
        for table in self.tables:
            key = table.name.lower()
            if key in seen_tables:
                raise SchemaError(f"Duplicate table name: {table.name}")
            seen_tables.add(key)
            _validate_table(table)

        for table in self.tables:
            for column in table.foreign_keys:
                if self.table(column.references.table) is None:
                    raise SchemaError(
                        f"Foreign key {table.name}.{column.name} references "
                        f"unknown table '{column.references.table}'"
                    )

    @classmethod
    def from_dict(
        cls, data: Dict[str, Any], module_grouping: Optional[Dict[str, str]] = None
    ) -> "Schema":
        """
        Build a schema from plain data.

        Expected shape::

            {"tables": [{"name": "products",
                         "module": "catalog",
                         "columns": [{"name": "id", "type": "int64",
                                      "primary_key": true},
                                     {"name": "category_id", "type": "int64",
                                      "references": "categories.id"}],
                         "unique_constraints": [["a", "b"]]}]}

        Args:
            data: Parsed JSON document
            module_grouping: Optional table -> module overrides

        Returns:
            Unvalidated Schema
        """
        if not isinstance(data, dict) or not isinstance(data.get("tables"), list):
            raise SchemaError("Schema document must be an object with a 'tables' list")

        grouping = {k.lower(): v for k, v in (module_grouping or {}).items()}
        tables = []
        for raw_table in data["tables"]:
            if not isinstance(raw_table, dict) or "name" not in raw_table:
                raise SchemaError(f"Table entry must be an object with a name: {raw_table!r}")
            name = raw_table["name"]
            columns = tuple(_column_from_dict(name, c) for c in raw_table.get("columns", []))
            uniques = tuple(tuple(c) for c in raw_table.get("unique_constraints", []))
            single = {c[0].lower() for c in uniques if len(c) == 1}
            columns = tuple(
                replace(c, unique=True) if c.name.lower() in single else c for c in columns
            )
            uniques = tuple(c for c in uniques if len(c) > 1)
            tables.append(
                Table(
                    name=name,
                    columns=columns,
                    unique_constraints=uniques,
                    module=grouping.get(name.lower(), raw_table.get("module")),
                    comment=raw_table.get("comment"),
                )
            )
        return cls(tuple(tables))


def _validate_table(table: Table) -> None:
    seen_columns = set()
    for column in table.columns:
        key = column.name.lower()
        if key in seen_columns:
            raise SchemaError(f"Duplicate column '{column.name}' in table '{table.name}'")
        seen_columns.add(key)

    keys = table.primary_key_columns
    if not keys:
        raise SchemaError(f"Table '{table.name}' has no primary key")

    if len(keys) > 1:
        # Composite keys are only accepted on pure join tables.
        foreign = [c for c in keys if c.is_foreign_key]
        if len(keys) != 2 or len(foreign) != 2:
            raise SchemaError(
                f"Table '{table.name}' has a composite primary key; only join "
                f"tables keyed by their two foreign keys may do that"
            )
        return

    if keys[0].type not in PRIMARY_KEY_TYPES:
        allowed = ", ".join(sorted(t.value for t in PRIMARY_KEY_TYPES))
        raise SchemaError(
            f"Primary key {table.name}.{keys[0].name} has unsupported type "
            f"'{keys[0].type.value}' (allowed: {allowed})"
        )


def _column_from_dict(table_name: str, data: Dict[str, Any]) -> Column:
    try:
        name = data["name"]
        canonical = CanonicalType.from_name(data.get("type", "string"))
    except KeyError:
        raise SchemaError(f"Column in table '{table_name}' has no name")
    except ValueError as e:
        raise SchemaError(f"{table_name}.{data.get('name')}: {e}")

    references = data.get("references")
    if isinstance(references, str):
        target, _, target_column = references.partition(".")
        references = ForeignKeyRef(target, target_column or "id")
    elif isinstance(references, dict):
        references = ForeignKeyRef(references["table"], references.get("column", "id"))
    elif references is not None:
        raise SchemaError(f"Invalid reference on {table_name}.{name}: {references!r}")

    primary_key = bool(data.get("primary_key", False))
    default = data.get("default")
    return Column(
        name=name,
        type=canonical,
        nullable=bool(data.get("nullable", not primary_key)) and not primary_key,
        unique=bool(data.get("unique", False)),
        primary_key=primary_key,
        default=None if default is None else str(default),
        references=references,
        length=data.get("length"),
        precision=data.get("precision"),
        scale=data.get("scale"),
        comment=data.get("comment"),
    )


def build_schema(tables: Iterable[Table]) -> Schema:
    """Create and validate a schema from tables."""
    schema = Schema(tuple(tables))
    schema.validate()
    return schema
