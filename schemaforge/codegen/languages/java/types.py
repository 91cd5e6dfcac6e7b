"""
Java type system for code generation.

Maps canonical column types to boxed Java types. Boxed types are already
nullable, so the nullable variant of a type is the type itself.
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


def _java(name: str, *imports: str) -> NativeType:
    return NativeType(name=name, imports=frozenset(imports), is_nilable=True)


class JavaTypeMapper:
    """Maps canonical types to Java types for JPA entities and DTOs."""

    language = "java"

    def __init__(self):
        self._types = self._build_type_map()

    def _build_type_map(self) -> Dict[CanonicalType, NativeType]:
        return {
            CanonicalType.INT32: _java("Integer"),
            CanonicalType.INT64: _java("Long"),
            CanonicalType.FLOAT32: _java("Float"),
            CanonicalType.FLOAT64: _java("Double"),
            CanonicalType.DECIMAL: _java("BigDecimal", "java.math.BigDecimal"),
            CanonicalType.BOOLEAN: _java("Boolean"),
            CanonicalType.STRING: _java("String"),
            CanonicalType.BYTES: _java("byte[]"),
            CanonicalType.DATE: _java("LocalDate", "java.time.LocalDate"),
            CanonicalType.DATETIME: _java("LocalDateTime", "java.time.LocalDateTime"),
            CanonicalType.TIME: _java("LocalTime", "java.time.LocalTime"),
            CanonicalType.INSTANT: _java("Instant", "java.time.Instant"),
            CanonicalType.DURATION: _java("Duration", "java.time.Duration"),
            CanonicalType.UUID: _java("UUID", "java.util.UUID"),
        }

    def native(self, canonical_type: CanonicalType) -> NativeType:
        try:
            return self._types[canonical_type]
        except KeyError:
            raise UnmappedTypeError(f"java: no mapping for {canonical_type.value}")

    def map_scalar(self, canonical_type: CanonicalType) -> str:
        return self.native(canonical_type).name

    def map_nullable(self, native_type: str) -> str:
        return native_type

    def map_collection(self, element_type: str) -> str:
        return f"List<{element_type}>"

    def map_primary_key_type(
        self, canonical_type: CanonicalType = CanonicalType.INT64
    ) -> str:
        return self.map_scalar(canonical_type)

    def imports_for(self, canonical_type: CanonicalType) -> FrozenSet[str]:
        return self.native(canonical_type).imports

    def map_default_value(self, column: Column) -> str:
        """Java literal for the column default; ``null`` for nullable columns."""
        hint = usable_default(column)
        canonical = column.type

        if hint is None or hint.kind == DefaultKind.NULL:
            if column.nullable:
                return "null"
            return _ZERO_VALUES[canonical]

        if hint.kind == DefaultKind.STRING:
            return f'"{escape_string_literal(hint.value)}"'
        if hint.kind == DefaultKind.BOOLEAN:
            return hint.value
        if hint.kind == DefaultKind.NOW:
            return f"{self.map_scalar(canonical)}.now()"

        value = hint.value
        if canonical == CanonicalType.INT64:
            return f"{value}L"
        if canonical == CanonicalType.FLOAT32:
            return f"{value}f"
        if canonical == CanonicalType.FLOAT64:
            return value if "." in value else f"{value}.0"
        if canonical == CanonicalType.DECIMAL:
            return f'new BigDecimal("{value}")'
        return value


_ZERO_VALUES = {
    CanonicalType.INT32: "0",
    CanonicalType.INT64: "0L",
    CanonicalType.FLOAT32: "0.0f",
    CanonicalType.FLOAT64: "0.0",
    CanonicalType.DECIMAL: "BigDecimal.ZERO",
    CanonicalType.BOOLEAN: "false",
    CanonicalType.STRING: '""',
    CanonicalType.BYTES: "new byte[0]",
    CanonicalType.DATE: "LocalDate.MIN",
    CanonicalType.DATETIME: "LocalDateTime.MIN",
    CanonicalType.TIME: "LocalTime.MIN",
    CanonicalType.INSTANT: "Instant.MIN",
    CanonicalType.DURATION: "Duration.ZERO",
    CanonicalType.UUID: "new UUID(0L, 0L)",
}
