"""
SQL rendering shared by the migration artifacts.

Migrations are written in PostgreSQL flavoured DDL. The migration plan
collects everything one CREATE TABLE needs (key, business columns, audit
columns, constraints and indexes) so that SQL and ORM-based migration
templates describe exactly the same table.
"""

from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Tuple

from .relationships import ResolvedSchema
from .schema import AuditFieldSet, Column, Table
from .types import CanonicalType, DefaultKind, UnmappedTypeError, usable_default

DEFAULT_STRING_LENGTH = 255
DEFAULT_PRECISION = 19
DEFAULT_SCALE = 2

# PostgreSQL reserved key words; these cannot be bare table or column names.
SQL_RESERVED_WORDS = frozenset(
    """
    all analyse analyze and any array as asc asymmetric authorization binary both
    case cast check collate collation column concurrently constraint create cross
    current_catalog current_date current_role current_schema current_time
    current_timestamp current_user default deferrable desc distinct do else end
    except false fetch for foreign freeze from full grant group having ilike in
    initially inner intersect into is isnull join lateral leading left like limit
    localtime localtimestamp natural not notnull null offset on only or order outer
    overlaps placing primary references returning right select session_user
    similar some symmetric system_user table tablesample then to trailing true
    union unique user using variadic verbose when where window with
    """.split()
)


def is_sql_reserved(name: str) -> bool:
    return name.lower() in SQL_RESERVED_WORDS


def quote_identifier(name: str) -> str:
    """Double-quote ``name`` when it is a reserved word; other names stay bare."""
    if is_sql_reserved(name):
        return f'"{name}"'
    return name


def _varchar(column: Column) -> str:
    return f"VARCHAR({column.length or DEFAULT_STRING_LENGTH})"


def _numeric(column: Column) -> str:
    scale = column.scale if column.scale is not None else DEFAULT_SCALE
    return f"NUMERIC({column.precision or DEFAULT_PRECISION}, {scale})"


SQL_TYPES: Dict[CanonicalType, Callable[[Column], str]] = {
    CanonicalType.INT32: lambda c: "INTEGER",
    CanonicalType.INT64: lambda c: "BIGINT",
    CanonicalType.FLOAT32: lambda c: "REAL",
    CanonicalType.FLOAT64: lambda c: "DOUBLE PRECISION",
    CanonicalType.DECIMAL: _numeric,
    CanonicalType.BOOLEAN: lambda c: "BOOLEAN",
    CanonicalType.STRING: _varchar,
    CanonicalType.BYTES: lambda c: "BYTEA",
    CanonicalType.DATE: lambda c: "DATE",
    CanonicalType.DATETIME: lambda c: "TIMESTAMP",
    CanonicalType.TIME: lambda c: "TIME",
    CanonicalType.INSTANT: lambda c: "TIMESTAMPTZ",
    CanonicalType.DURATION: lambda c: "INTERVAL",
    CanonicalType.UUID: lambda c: "UUID",
}


def sql_type(column: Column) -> str:
    """PostgreSQL type of a column."""
    try:
        return SQL_TYPES[column.type](column)
    except KeyError:
        raise UnmappedTypeError(f"No SQL type for {column.type.value}")


def primary_key_type(column: Column) -> str:
    """Column type of a generated primary key; integers become identities."""
    if column.type == CanonicalType.INT64:
        return "BIGSERIAL"
    if column.type == CanonicalType.INT32:
        return "SERIAL"
    return sql_type(column)


def sql_default(column: Column) -> Optional[str]:
    """SQL literal for the column default, or None."""
    hint = usable_default(column)
    if hint is None:
        return None
    if hint.kind == DefaultKind.STRING:
        return "'" + hint.value.replace("'", "''") + "'"
    if hint.kind == DefaultKind.BOOLEAN:
        return hint.value.upper()
    if hint.kind == DefaultKind.NOW:
        return "CURRENT_DATE" if column.type == CanonicalType.DATE else "CURRENT_TIMESTAMP"
    if hint.kind == DefaultKind.NULL:
        return "NULL"
    return hint.value


def column_definition(column: Column, unique: bool = False) -> str:
    """Render ``name TYPE [NOT NULL] [UNIQUE] [DEFAULT x]``."""
    parts = [quote_identifier(column.name), sql_type(column)]
    if not column.nullable:
        parts.append("NOT NULL")
    if unique:
        parts.append("UNIQUE")
    default = sql_default(column)
    if default is not None:
        parts.append(f"DEFAULT {default}")
    return " ".join(parts)


@dataclass(frozen=True)
class ForeignKeyConstraint:
    """A FOREIGN KEY clause of a migration."""

    name: str
    column: str
    target_table: str
    target_column: str
    on_delete: str = "RESTRICT"


@dataclass(frozen=True)
class IndexSpec:
    """A CREATE INDEX statement of a migration."""

    name: str
    columns: Tuple[str, ...]
    descending: bool = False


@dataclass
class MigrationPlan:
    """Everything one CREATE TABLE migration declares."""

    table: str
    primary_key: Column
    business_columns: List[Column] = field(default_factory=list)
    audit_columns: List[Column] = field(default_factory=list)
    unique_columns: List[str] = field(default_factory=list)
    unique_constraints: List[Tuple[str, Tuple[str, ...]]] = field(default_factory=list)
    foreign_keys: List[ForeignKeyConstraint] = field(default_factory=list)
    indexes: List[IndexSpec] = field(default_factory=list)

    @property
    def quoted_table(self) -> str:
        return quote_identifier(self.table)

    def is_unique(self, column: Column) -> bool:
        return column.name in self.unique_columns

    def sql_lines(self) -> List[str]:
        """Body lines of the CREATE TABLE statement, without trailing commas."""
        pk = quote_identifier(self.primary_key.name)
        lines = [f"{pk} {primary_key_type(self.primary_key)} PRIMARY KEY"]
        lines.extend(column_definition(c, self.is_unique(c)) for c in self.business_columns)
        lines.extend(column_definition(c) for c in self.audit_columns)
        for name, columns in self.unique_constraints:
            quoted = ", ".join(quote_identifier(c) for c in columns)
            lines.append(f"CONSTRAINT {name} UNIQUE ({quoted})")
        for fk in self.foreign_keys:
            lines.append(
                f"CONSTRAINT {fk.name} FOREIGN KEY ({quote_identifier(fk.column)}) "
                f"REFERENCES {quote_identifier(fk.target_table)} "
                f"({quote_identifier(fk.target_column)}) ON DELETE {fk.on_delete}"
            )
        return lines

    def index_statements(self) -> List[str]:
        statements = []
        for index in self.indexes:
            columns = ", ".join(
                f"{quote_identifier(c)} DESC" if index.descending else quote_identifier(c)
                for c in index.columns
            )
            statements.append(f"CREATE INDEX {index.name} ON {self.quoted_table} ({columns});")
        return statements


def build_migration_plan(
    table: Table, resolved: ResolvedSchema, audit: AuditFieldSet
) -> MigrationPlan:
    """
    Collect the migration content of an entity-bearing table.

    Declares the primary key, every business column, the full audit set,
    one foreign key constraint per owned ManyToOne and indexes on the
    ``active`` flag, on ``created_at`` and on every foreign key column.
    """
    plan = MigrationPlan(
        table=table.name,
        primary_key=table.primary_key,
        business_columns=[resolved.aligned_column(c) for c in table.business_columns(audit)],
        audit_columns=audit.columns(),
    )
    plan.unique_columns = [c.name for c in plan.business_columns if table.is_unique(c.name)]

    for columns in table.composite_unique_constraints:
        plan.unique_constraints.append((f"uk_{table.name}_{'_'.join(columns)}", tuple(columns)))

    for rel in resolved.relations_for(table.name).many_to_one:
        plan.foreign_keys.append(
            ForeignKeyConstraint(
                name=f"fk_{table.name}_{rel.foreign_key_column}",
                column=rel.foreign_key_column,
                target_table=rel.target_table,
                target_column=rel.referenced_column,
                on_delete="SET NULL" if rel.nullable else "RESTRICT",
            )
        )

    plan.indexes.append(IndexSpec(f"idx_{table.name}_{audit.active}", (audit.active,)))
    plan.indexes.append(
        IndexSpec(f"idx_{table.name}_{audit.created_at}", (audit.created_at,), descending=True)
    )
    for fk in plan.foreign_keys:
        plan.indexes.append(IndexSpec(f"idx_{table.name}_{fk.column}", (fk.column,)))
    return plan


@dataclass
class JoinTablePlan:
    """A join table realising a ManyToMany edge."""

    table: str
    left: Column
    right: Column
    left_target: Tuple[str, str]
    right_target: Tuple[str, str]

    @property
    def quoted_table(self) -> str:
        return quote_identifier(self.table)

    def _foreign_key(self, column: Column, target: Tuple[str, str]) -> str:
        table, key = (quote_identifier(name) for name in target)
        return (
            f"CONSTRAINT fk_{self.table}_{column.name} FOREIGN KEY "
            f"({quote_identifier(column.name)}) REFERENCES {table} ({key}) ON DELETE CASCADE"
        )

    def sql_lines(self) -> List[str]:
        left = quote_identifier(self.left.name)
        right = quote_identifier(self.right.name)
        return [
            f"{left} {sql_type(self.left)} NOT NULL",
            f"{right} {sql_type(self.right)} NOT NULL",
            f"PRIMARY KEY ({left}, {right})",
            self._foreign_key(self.left, self.left_target),
            self._foreign_key(self.right, self.right_target),
        ]

    def index_statements(self) -> List[str]:
        column = self.right.name
        return [
            f"CREATE INDEX idx_{self.table}_{column} "
            f"ON {self.quoted_table} ({quote_identifier(column)});"
        ]


def build_join_table_plan(table: Table, resolved: ResolvedSchema) -> JoinTablePlan:
    """
    Collect the migration content of a pure join table.

    The join table is keyed by its two foreign keys, whose column types
    follow the primary keys they reference.
    """
    left, right = table.foreign_keys
    schema = resolved.schema
    left_target = schema.table(left.references.table)
    right_target = schema.table(right.references.table)
    left_key = left_target.column(left.references.column)
    right_key = right_target.column(right.references.column)
    return JoinTablePlan(
        table=table.name,
        left=Column(left.name, left_key.type, nullable=False, length=left_key.length),
        right=Column(right.name, right_key.type, nullable=False, length=right_key.length),
        left_target=(left_target.name, left_key.name),
        right_target=(right_target.name, right_key.name),
    )
