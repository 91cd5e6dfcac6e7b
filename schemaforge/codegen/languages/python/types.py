"""
Python type system for code generation.

Maps canonical column types to the Python annotations used by SQLAlchemy 2
``Mapped[...]`` attributes and Pydantic v2 schemas, and to the SQLAlchemy
column types used by models and Alembic migrations.
"""

from typing import Callable, Dict, FrozenSet, Iterable, List

from ...core.schema import Column
from ...core.sql import DEFAULT_PRECISION, DEFAULT_SCALE, DEFAULT_STRING_LENGTH
from ...core.types import (
    CanonicalType,
    DefaultKind,
    NativeType,
    UnmappedTypeError,
    escape_string_literal,
    usable_default,
)


def _py(name: str, *imports: str) -> NativeType:
    return NativeType(name=name, imports=frozenset(imports), is_nilable=False)


class PythonTypeMapper:
    """Maps canonical types to Python type annotations."""

    language = "python"

    def __init__(self):
        self._types = self._build_type_map()

    def _build_type_map(self) -> Dict[CanonicalType, NativeType]:
        return {
            CanonicalType.INT32: _py("int"),
            CanonicalType.INT64: _py("int"),
            CanonicalType.FLOAT32: _py("float"),
            CanonicalType.FLOAT64: _py("float"),
            CanonicalType.DECIMAL: _py("Decimal", "decimal.Decimal"),
            CanonicalType.BOOLEAN: _py("bool"),
            CanonicalType.STRING: _py("str"),
            CanonicalType.BYTES: _py("bytes"),
            CanonicalType.DATE: _py("date", "datetime.date"),
            CanonicalType.DATETIME: _py("datetime", "datetime.datetime"),
            CanonicalType.TIME: _py("time", "datetime.time"),
            CanonicalType.INSTANT: _py("datetime", "datetime.datetime"),
            CanonicalType.DURATION: _py("timedelta", "datetime.timedelta"),
            CanonicalType.UUID: _py("UUID", "uuid.UUID"),
        }

    def native(self, canonical_type: CanonicalType) -> NativeType:
        try:
            return self._types[canonical_type]
        except KeyError:
            raise UnmappedTypeError(f"python: no mapping for {canonical_type.value}")

    def map_scalar(self, canonical_type: CanonicalType) -> str:
        return self.native(canonical_type).name

    def map_nullable(self, native_type: str) -> str:
        if native_type.endswith(" | None"):
            return native_type
        return f"{native_type} | None"

    def map_collection(self, element_type: str) -> str:
        return f"list[{element_type}]"

    def map_primary_key_type(
        self, canonical_type: CanonicalType = CanonicalType.INT64
    ) -> str:
        return self.map_scalar(canonical_type)

    def imports_for(self, canonical_type: CanonicalType) -> FrozenSet[str]:
        return self.native(canonical_type).imports

    def map_default_value(self, column: Column) -> str:
        """Python expression for the column default; ``None`` for nullable columns."""
        hint = usable_default(column)
        canonical = column.type

        if hint is None or hint.kind == DefaultKind.NULL:
            if column.nullable:
                return "None"
            return _ZERO_VALUES[canonical]

        if hint.kind == DefaultKind.STRING:
            return f'"{escape_string_literal(hint.value)}"'
        if hint.kind == DefaultKind.BOOLEAN:
            return "True" if hint.value == "true" else "False"
        if hint.kind == DefaultKind.NOW:
            if canonical == CanonicalType.DATE:
                return "date.today()"
            return "datetime.now()"

        value = hint.value
        if canonical in (CanonicalType.FLOAT32, CanonicalType.FLOAT64):
            return value if "." in value else f"{value}.0"
        if canonical == CanonicalType.DECIMAL:
            return f'Decimal("{value}")'
        return value


_ZERO_VALUES = {
    CanonicalType.INT32: "0",
    CanonicalType.INT64: "0",
    CanonicalType.FLOAT32: "0.0",
    CanonicalType.FLOAT64: "0.0",
    CanonicalType.DECIMAL: 'Decimal("0")',
    CanonicalType.BOOLEAN: "False",
    CanonicalType.STRING: '""',
    CanonicalType.BYTES: 'b""',
    CanonicalType.DATE: "date.min",
    CanonicalType.DATETIME: "datetime.min",
    CanonicalType.TIME: "time.min",
    CanonicalType.INSTANT: "datetime.min",
    CanonicalType.DURATION: "timedelta(0)",
    CanonicalType.UUID: "UUID(int=0)",
}


def _string(column: Column) -> str:
    return f"String({column.length or DEFAULT_STRING_LENGTH})"


def _numeric(column: Column) -> str:
    scale = column.scale if column.scale is not None else DEFAULT_SCALE
    return f"Numeric({column.precision or DEFAULT_PRECISION}, {scale})"


SQLALCHEMY_TYPES: Dict[CanonicalType, Callable[[Column], str]] = {
    CanonicalType.INT32: lambda c: "Integer",
    CanonicalType.INT64: lambda c: "BigInteger",
    CanonicalType.FLOAT32: lambda c: "Float",
    CanonicalType.FLOAT64: lambda c: "Double",
    CanonicalType.DECIMAL: _numeric,
    CanonicalType.BOOLEAN: lambda c: "Boolean",
    CanonicalType.STRING: _string,
    CanonicalType.BYTES: lambda c: "LargeBinary",
    CanonicalType.DATE: lambda c: "Date",
    CanonicalType.DATETIME: lambda c: "DateTime",
    CanonicalType.TIME: lambda c: "Time",
    CanonicalType.INSTANT: lambda c: "DateTime(timezone=True)",
    CanonicalType.DURATION: lambda c: "Interval",
    CanonicalType.UUID: lambda c: "Uuid",
}


def sqlalchemy_type(column: Column) -> str:
    """SQLAlchemy column type expression, e.g. ``String(255)``."""
    try:
        return SQLALCHEMY_TYPES[column.type](column)
    except KeyError:
        raise UnmappedTypeError(f"python: no SQLAlchemy type for {column.type.value}")


def import_lines(imports: Iterable[str]) -> List[str]:
    """
    Group dotted ``module.Name`` imports into ``from module import ...`` lines.

    Example:
        >>> import_lines(["datetime.date", "datetime.datetime", "uuid.UUID"])
        ['from datetime import date, datetime', 'from uuid import UUID']
    """
    grouped: Dict[str, set] = {}
    for dotted in imports:
        module, _, name = dotted.rpartition(".")
        grouped.setdefault(module, set()).add(name)
    return [
        f"from {module} import {', '.join(sorted(names))}"
        for module, names in sorted(grouped.items())
    ]
