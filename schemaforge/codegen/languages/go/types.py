"""
Go type system for code generation.

Maps canonical column types to Go types for GORM models and DTOs. Nullable
columns become pointers, except for slices which already admit nil.
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

DECIMAL_IMPORT = "github.com/shopspring/decimal"
UUID_IMPORT = "github.com/google/uuid"


def _go(name: str, *imports: str, nilable: bool = False) -> NativeType:
    return NativeType(name=name, imports=frozenset(imports), is_nilable=nilable)


class GoTypeMapper:
    """Maps canonical types to Go types."""

    language = "go"

    def __init__(self):
        self._types = self._build_type_map()

    def _build_type_map(self) -> Dict[CanonicalType, NativeType]:
        return {
            CanonicalType.INT32: _go("int32"),
            CanonicalType.INT64: _go("int64"),
            CanonicalType.FLOAT32: _go("float32"),
            CanonicalType.FLOAT64: _go("float64"),
            CanonicalType.DECIMAL: _go("decimal.Decimal", DECIMAL_IMPORT),
            CanonicalType.BOOLEAN: _go("bool"),
            CanonicalType.STRING: _go("string"),
            CanonicalType.BYTES: _go("[]byte", nilable=True),
            CanonicalType.DATE: _go("time.Time", "time"),
            CanonicalType.DATETIME: _go("time.Time", "time"),
            CanonicalType.TIME: _go("time.Time", "time"),
            CanonicalType.INSTANT: _go("time.Time", "time"),
            CanonicalType.DURATION: _go("time.Duration", "time"),
            CanonicalType.UUID: _go("uuid.UUID", UUID_IMPORT),
        }

    def native(self, canonical_type: CanonicalType) -> NativeType:
        try:
            return self._types[canonical_type]
        except KeyError:
            raise UnmappedTypeError(f"go: no mapping for {canonical_type.value}")

    def map_scalar(self, canonical_type: CanonicalType) -> str:
        return self.native(canonical_type).name

    def map_nullable(self, native_type: str) -> str:
        if native_type.startswith(("*", "[]", "map[")):
            return native_type
        return f"*{native_type}"

    def map_collection(self, element_type: str) -> str:
        return f"[]{element_type}"

    def map_primary_key_type(
        self, canonical_type: CanonicalType = CanonicalType.INT64
    ) -> str:
        return self.map_scalar(canonical_type)

    def imports_for(self, canonical_type: CanonicalType) -> FrozenSet[str]:
        return self.native(canonical_type).imports

    def map_default_value(self, column: Column) -> str:
        """Go expression for the column default; ``nil`` for nullable columns."""
        hint = usable_default(column)
        canonical = column.type

        if hint is None or hint.kind == DefaultKind.NULL:
            if column.nullable:
                return "nil"
            return _ZERO_VALUES[canonical]

        if hint.kind == DefaultKind.STRING:
            return f'"{escape_string_literal(hint.value)}"'
        if hint.kind == DefaultKind.BOOLEAN:
            return hint.value
        if hint.kind == DefaultKind.NOW:
            return "time.Now()"
        if canonical == CanonicalType.DECIMAL:
            return f'decimal.RequireFromString("{hint.value}")'
        return hint.value


_ZERO_VALUES = {
    CanonicalType.INT32: "0",
    CanonicalType.INT64: "0",
    CanonicalType.FLOAT32: "0",
    CanonicalType.FLOAT64: "0",
    CanonicalType.DECIMAL: "decimal.Zero",
    CanonicalType.BOOLEAN: "false",
    CanonicalType.STRING: '""',
    CanonicalType.BYTES: "[]byte{}",
    CanonicalType.DATE: "time.Time{}",
    CanonicalType.DATETIME: "time.Time{}",
    CanonicalType.TIME: "time.Time{}",
    CanonicalType.INSTANT: "time.Time{}",
    CanonicalType.DURATION: "time.Duration(0)",
    CanonicalType.UUID: "uuid.Nil",
}
