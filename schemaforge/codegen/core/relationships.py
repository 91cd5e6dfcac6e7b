"""
Relationship resolution over a validated schema.

Turns foreign keys into relationship edges: every foreign key is a
ManyToOne with exactly one inverse OneToMany, and pure join tables collapse
into a single ManyToMany edge. Resolution needs the whole table set, so it
runs once per request before any artifact is generated.
"""

from collections import Counter
from dataclasses import dataclass, replace
from enum import Enum
from typing import Dict, FrozenSet, List, Optional, Tuple

from ...logging_config import get_logger
from .naming import pluralize, to_snake_case
from .schema import (
    DEFAULT_AUDIT_FIELDS,
    AuditFieldSet,
    Column,
    Schema,
    SchemaError,
    Table,
)

logger = get_logger(__name__)


class RelationshipError(Exception):
    """Raised when a foreign key cannot be resolved to a target column."""

    pass


class RelationKind(Enum):
    """Kinds of relationship edges."""

    MANY_TO_ONE = "ManyToOne"
    ONE_TO_MANY = "OneToMany"
    MANY_TO_MANY = "ManyToMany"


@dataclass(frozen=True)
class Relationship:
    """
    A directed relationship edge.

    For ManyToOne edges ``foreign_key_column`` lives on the source table;
    for OneToMany edges it lives on the target table. ManyToMany edges name
    the join table, with ``foreign_key_column`` pointing at the source and
    ``inverse_join_column`` pointing at the target.
    """

    source_table: str
    target_table: str
    foreign_key_column: str
    kind: RelationKind
    property_name: str
    inverse_property_name: str
    referenced_column: str = "id"
    nullable: bool = True
    join_table: Optional[str] = None
    inverse_join_column: Optional[str] = None


@dataclass(frozen=True)
class ManyToManyLink:
    """One side of a ManyToMany edge as seen from a particular table."""

    other_table: str
    property_name: str
    ids_property_name: str
    join_table: str
    join_column: str
    inverse_join_column: str
    owner: bool
    mapped_by: str


@dataclass(frozen=True)
class TableRelations:
    """All relationships that touch one table."""

    table: str
    many_to_one: Tuple[Relationship, ...] = ()
    one_to_many: Tuple[Relationship, ...] = ()
    many_to_many: Tuple[ManyToManyLink, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not (self.many_to_one or self.one_to_many or self.many_to_many)


@dataclass(frozen=True)
class ResolvedSchema:
    """A schema together with its closed set of relationship edges."""

    schema: Schema
    relationships: Tuple[Relationship, ...]
    junction_tables: FrozenSet[str]
    audit_fields: AuditFieldSet = DEFAULT_AUDIT_FIELDS

    @property
    def entity_tables(self) -> List[Table]:
        """Tables that produce entity-bearing artifacts, in schema order."""
        return [t for t in self.schema.tables if t.name not in self.junction_tables]

    @property
    def join_tables(self) -> List[Table]:
        return [t for t in self.schema.tables if t.name in self.junction_tables]

    def aligned_column(self, column: Column) -> Column:
        """Foreign key columns take the type of the column they reference."""
        if not column.is_foreign_key:
            return column
        target = self.schema.table(column.references.table)
        referenced = target.column(column.references.column)
        return replace(column, type=referenced.type, length=referenced.length)

    def is_junction(self, table_name: str) -> bool:
        return table_name in self.junction_tables

    def edges(self, kind: RelationKind) -> List[Relationship]:
        return [r for r in self.relationships if r.kind == kind]

    def relations_for(self, table_name: str) -> TableRelations:
        """Collect the edges of ``table_name`` in deterministic order."""
        many_to_one = []
        one_to_many = []
        many_to_many = []
        for rel in self.relationships:
            if rel.kind == RelationKind.MANY_TO_ONE and rel.source_table == table_name:
                many_to_one.append(rel)
            elif rel.kind == RelationKind.ONE_TO_MANY and rel.source_table == table_name:
                one_to_many.append(rel)
            elif rel.kind == RelationKind.MANY_TO_MANY:
                if rel.source_table == table_name:
                    many_to_many.append(
                        ManyToManyLink(
                            other_table=rel.target_table,
                            property_name=rel.property_name,
                            ids_property_name=_ids_name(self.schema, rel.target_table),
                            join_table=rel.join_table,
                            join_column=rel.foreign_key_column,
                            inverse_join_column=rel.inverse_join_column,
                            owner=True,
                            mapped_by=rel.inverse_property_name,
                        )
                    )
                if rel.target_table == table_name:
                    many_to_many.append(
                        ManyToManyLink(
                            other_table=rel.source_table,
                            property_name=rel.inverse_property_name,
                            ids_property_name=_ids_name(self.schema, rel.source_table),
                            join_table=rel.join_table,
                            join_column=rel.inverse_join_column,
                            inverse_join_column=rel.foreign_key_column,
                            owner=False,
                            mapped_by=rel.property_name,
                        )
                    )
        return TableRelations(
            table=table_name,
            many_to_one=tuple(many_to_one),
            one_to_many=tuple(one_to_many),
            many_to_many=tuple(many_to_many),
        )

    @property
    def creation_order(self) -> List[Table]:
        """
        Tables ordered so that referenced tables come before referencing ones.

        Self references are ignored; cycles fall back to schema order.
        """
        tables = {t.name: t for t in self.schema.tables}
        position = {t.name: i for i, t in enumerate(self.schema.tables)}
        ordered: List[Table] = []
        visited = set()
        visiting = set()

        def visit(name: str) -> None:
            if name in visited or name in visiting:
                return
            visiting.add(name)
            table = tables[name]
            targets = sorted(
                {
                    self.schema.table(c.references.table).name
                    for c in table.foreign_keys
                },
                key=position.get,
            )
            for target in targets:
                if target != name:
                    visit(target)
            visiting.discard(name)
            visited.add(name)
            ordered.append(table)

        for table in self.schema.tables:
            visit(table.name)
        return ordered


def _ids_name(schema: Schema, table_name: str) -> str:
    return f"{to_snake_case(schema.table(table_name).entity_name)}_ids"


def many_to_one_property(column: Column) -> str:
    """Accessor name for the object behind a foreign key column."""
    name = to_snake_case(column.name)
    if name.endswith("_id") and len(name) > 3:
        return name[:-3]
    return f"{name}_ref"


def is_junction_table(table: Table, audit: AuditFieldSet) -> bool:
    """
    Check the pure join table shape.

    The table's business columns must be exactly two foreign keys to two
    distinct tables, and its primary key must be either a single surrogate
    key, whatever its name, or the composite of those two foreign keys.
    A third business column keeps the table entity-bearing.
    """
    business = table.business_columns(audit)
    foreign = [c for c in table.columns if c.is_foreign_key]

    if table.has_composite_key:
        keys = {c.name for c in table.primary_key_columns}
        extra = [
            c for c in table.columns if not c.primary_key and not audit.is_audit(c.name)
        ]
        if extra or len(foreign) != 2 or keys != {c.name for c in foreign}:
            return False
    else:
        if len(business) != 2 or not all(c.is_foreign_key for c in business):
            return False
        if len(foreign) != 2:
            return False

    targets = {c.references.table.lower() for c in foreign}
    return len(targets) == 2 and table.name.lower() not in targets


def resolve_relationships(
    schema: Schema, audit_fields: AuditFieldSet = DEFAULT_AUDIT_FIELDS
) -> ResolvedSchema:
    """
    Resolve the relationship edges of a validated schema.

    Args:
        schema: Schema that already passed ``Schema.validate``
        audit_fields: Base/audit column names excluded from business columns

    Returns:
        ResolvedSchema with ManyToOne/OneToMany/ManyToMany edges

    Raises:
        RelationshipError: If a foreign key names a column missing on its target
    """
    _check_reference_columns(schema)

    # A table something else points at is an entity, whatever its shape.
    referenced = {
        c.references.table.lower() for t in schema.tables for c in t.foreign_keys
    }
    junctions = [
        t
        for t in schema.tables
        if t.name.lower() not in referenced and is_junction_table(t, audit_fields)
    ]
    junction_names = frozenset(t.name for t in junctions)

    for table in schema.tables:
        if table.has_composite_key and table.name not in junction_names:
            raise SchemaError(
                f"Table '{table.name}' has a composite primary key but is not a "
                f"pure join table; give it a single surrogate key"
            )

    relationships: List[Relationship] = []
    for table in schema.tables:
        if table.name in junction_names:
            continue
        relationships.extend(_foreign_key_edges(schema, table))

    for table in junctions:
        relationships.append(_many_to_many_edge(schema, table))

    logger.debug(
        f"Resolved {len(relationships)} relationships across {len(schema.tables)} "
        f"tables ({len(junction_names)} join tables)"
    )
    return ResolvedSchema(
        schema=schema,
        relationships=tuple(relationships),
        junction_tables=junction_names,
        audit_fields=audit_fields,
    )


def _check_reference_columns(schema: Schema) -> None:
    for table in schema.tables:
        for column in table.foreign_keys:
            target = schema.table(column.references.table)
            if target is None:
                raise RelationshipError(
                    f"Foreign key {table.name}.{column.name} references "
                    f"unknown table '{column.references.table}'"
                )
            referenced = target.column(column.references.column)
            if referenced is None:
                raise RelationshipError(
                    f"Foreign key {table.name}.{column.name} references missing "
                    f"column {target.name}.{column.references.column}"
                )
            if referenced.type != column.type:
                logger.warning(
                    f"{table.name}.{column.name} is {column.type.value} but "
                    f"{target.name}.{referenced.name} is {referenced.type.value}; "
                    f"generated code uses the referenced type"
                )


def _foreign_key_edges(schema: Schema, table: Table) -> List[Relationship]:
    edges = []
    per_target = Counter(c.references.table.lower() for c in table.foreign_keys)
    plural_source = pluralize(to_snake_case(table.entity_name))
    taken = {to_snake_case(c.name) for c in table.columns}

    for column in table.foreign_keys:
        target = schema.table(column.references.table)
        property_name = many_to_one_property(column)
        if property_name in taken:
            fallback = f"{to_snake_case(column.name)}_ref"
            logger.warning(
                f"{table.name}.{column.name}: accessor '{property_name}' clashes with a "
                f"column of the same name; using '{fallback}'"
            )
            property_name = fallback
        inverse_name = plural_source
        if per_target[target.name.lower()] > 1:
            inverse_name = f"{plural_source}_by_{property_name}"

        edges.append(
            Relationship(
                source_table=table.name,
                target_table=target.name,
                foreign_key_column=column.name,
                kind=RelationKind.MANY_TO_ONE,
                property_name=property_name,
                inverse_property_name=inverse_name,
                referenced_column=target.column(column.references.column).name,
                nullable=column.nullable,
            )
        )
        edges.append(
            Relationship(
                source_table=target.name,
                target_table=table.name,
                foreign_key_column=column.name,
                kind=RelationKind.ONE_TO_MANY,
                property_name=inverse_name,
                inverse_property_name=property_name,
                referenced_column=target.column(column.references.column).name,
                nullable=column.nullable,
            )
        )
    return edges


def _many_to_many_edge(schema: Schema, table: Table) -> Relationship:
    first, second = [c for c in table.columns if c.is_foreign_key]
    source = schema.table(first.references.table)
    target = schema.table(second.references.table)
    logger.debug(f"Table '{table.name}' is a join table for {source.name} <-> {target.name}")
    return Relationship(
        source_table=source.name,
        target_table=target.name,
        foreign_key_column=first.name,
        kind=RelationKind.MANY_TO_MANY,
        property_name=pluralize(to_snake_case(target.entity_name)),
        inverse_property_name=pluralize(to_snake_case(source.entity_name)),
        referenced_column=source.column(first.references.column).name,
        nullable=False,
        join_table=table.name,
        inverse_join_column=second.name,
    )


def relationship_summary(resolved: ResolvedSchema) -> Dict[str, int]:
    """Count edges per kind, used in generation metadata."""
    counts = Counter(r.kind.value for r in resolved.relationships)
    return {kind.value: counts.get(kind.value, 0) for kind in RelationKind}
