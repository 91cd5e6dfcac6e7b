"""
TypeScript type system for code generation.

Maps canonical column types to the TypeScript types used by TypeORM
entities and class-validator DTOs, and to the TypeORM column types.
Decimals travel as strings, the way TypeORM returns NUMERIC columns.
"""

from typing import Dict, FrozenSet

from ...core.schema import Column
from ...core.types import (
    CanonicalType,
    DefaultKind,
    NativeType,
    UnmappedTypeError,
    escape_string_literal,
    usable_default,
)


def _ts(name: str) -> NativeType:
    return NativeType(name=name, imports=frozenset(), is_nilable=False)


class TypeScriptTypeMapper:
    """Maps canonical types to TypeScript types."""

    language = "typescript"

    def __init__(self):
        self._types = self._build_type_map()

    def _build_type_map(self) -> Dict[CanonicalType, NativeType]:
        return {
            CanonicalType.INT32: _ts("number"),
            CanonicalType.INT64: _ts("number"),
            CanonicalType.FLOAT32: _ts("number"),
            CanonicalType.FLOAT64: _ts("number"),
            CanonicalType.DECIMAL: _ts("string"),
            CanonicalType.BOOLEAN: _ts("boolean"),
            CanonicalType.STRING: _ts("string"),
            CanonicalType.BYTES: _ts("Buffer"),
            CanonicalType.DATE: _ts("string"),
            CanonicalType.DATETIME: _ts("Date"),
            CanonicalType.TIME: _ts("string"),
            CanonicalType.INSTANT: _ts("Date"),
            CanonicalType.DURATION: _ts("string"),
            CanonicalType.UUID: _ts("string"),
        }

    def native(self, canonical_type: CanonicalType) -> NativeType:
        try:
            return self._types[canonical_type]
        except KeyError:
            raise UnmappedTypeError(f"typescript: no mapping for {canonical_type.value}")

    def map_scalar(self, canonical_type: CanonicalType) -> str:
        return self.native(canonical_type).name

    def map_nullable(self, native_type: str) -> str:
        if native_type.endswith(" | null"):
            return native_type
        return f"{native_type} | null"

    def map_collection(self, element_type: str) -> str:
        return f"{element_type}[]"

    def map_primary_key_type(
        self, canonical_type: CanonicalType = CanonicalType.INT64
    ) -> str:
        return self.map_scalar(canonical_type)

    def imports_for(self, canonical_type: CanonicalType) -> FrozenSet[str]:
        return self.native(canonical_type).imports

    def map_default_value(self, column: Column) -> str:
        """TypeScript expression for the column default; ``null`` for nullable columns."""
        hint = usable_default(column)
        canonical = column.type

        if hint is None or hint.kind == DefaultKind.NULL:
            if column.nullable:
                return "null"
            return _ZERO_VALUES[canonical]

        if hint.kind == DefaultKind.STRING:
            escaped = escape_string_literal(hint.value, quote="'")
            return f"'{escaped}'"
        if hint.kind == DefaultKind.BOOLEAN:
            return hint.value
        if hint.kind == DefaultKind.NOW:
            if canonical in (CanonicalType.DATETIME, CanonicalType.INSTANT):
                return "new Date()"
            return "new Date().toISOString().slice(0, 10)"
        if canonical == CanonicalType.DECIMAL:
            return f"'{hint.value}'"
        return hint.value


_ZERO_VALUES = {
    CanonicalType.INT32: "0",
    CanonicalType.INT64: "0",
    CanonicalType.FLOAT32: "0",
    CanonicalType.FLOAT64: "0",
    CanonicalType.DECIMAL: "'0'",
    CanonicalType.BOOLEAN: "false",
    CanonicalType.STRING: "''",
    CanonicalType.BYTES: "Buffer.alloc(0)",
    CanonicalType.DATE: "'0001-01-01'",
    CanonicalType.DATETIME: "new Date(0)",
    CanonicalType.TIME: "'00:00:00'",
    CanonicalType.INSTANT: "new Date(0)",
    CanonicalType.DURATION: "'PT0S'",
    CanonicalType.UUID: "'00000000-0000-0000-0000-000000000000'",
}

TYPEORM_COLUMN_TYPES = {
    CanonicalType.INT32: "integer",
    CanonicalType.INT64: "bigint",
    CanonicalType.FLOAT32: "real",
    CanonicalType.FLOAT64: "double precision",
    CanonicalType.DECIMAL: "numeric",
    CanonicalType.BOOLEAN: "boolean",
    CanonicalType.STRING: "varchar",
    CanonicalType.BYTES: "bytea",
    CanonicalType.DATE: "date",
    CanonicalType.DATETIME: "timestamp",
    CanonicalType.TIME: "time",
    CanonicalType.INSTANT: "timestamptz",
    CanonicalType.DURATION: "interval",
    CanonicalType.UUID: "uuid",
}


def typeorm_column_type(canonical_type: CanonicalType) -> str:
    """Column type passed to TypeORM's ``@Column``."""
    try:
        return TYPEORM_COLUMN_TYPES[canonical_type]
    except KeyError:
        raise UnmappedTypeError(f"typescript: no TypeORM type for {canonical_type.value}")
