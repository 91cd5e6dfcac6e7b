"""
Canonical type taxonomy and the type mapper contract.

Every column in the schema model carries one of the fixed canonical types
below. Each target language supplies a type mapper that turns canonical
types into native type names; the registry refuses a target whose mapper
leaves any canonical type unmapped.
"""

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, FrozenSet, List, Optional, Protocol, runtime_checkable

if TYPE_CHECKING:
    from .schema import Column


class UnmappedTypeError(Exception):
    """Raised when a type mapper does not cover a canonical type."""

    pass


class CanonicalType(Enum):
    """Abstract column types every target maps from."""

    INT32 = "int32"
    INT64 = "int64"
    FLOAT32 = "float32"
    FLOAT64 = "float64"
    DECIMAL = "decimal"
    BOOLEAN = "boolean"
    STRING = "string"
    BYTES = "bytes"
    DATE = "date"
    DATETIME = "datetime"
    TIME = "time"
    INSTANT = "instant"
    DURATION = "duration"
    UUID = "uuid"

    @classmethod
    def from_name(cls, name: str) -> "CanonicalType":
        """Look up a canonical type by value, accepting a few spellings."""
        key = name.strip().lower().replace("-", "_")
        key = _CANONICAL_ALIASES.get(key, key)
        for member in cls:
            if member.value == key:
                return member
        raise ValueError(f"Unknown canonical type: {name}")

    @property
    def is_integer(self) -> bool:
        return self in (CanonicalType.INT32, CanonicalType.INT64)

    @property
    def is_numeric(self) -> bool:
        return self in _NUMERIC_TYPES

    @property
    def is_temporal(self) -> bool:
        return self in _TEMPORAL_TYPES


_CANONICAL_ALIASES = {
    "byte_sequence": "bytes",
    "binary": "bytes",
    "int": "int32",
    "integer": "int32",
    "long": "int64",
    "float": "float64",
    "double": "float64",
    "bool": "boolean",
    "text": "string",
    "timestamp": "datetime",
    "timestamptz": "instant",
    "interval": "duration",
}

_NUMERIC_TYPES = frozenset(
    {
        CanonicalType.INT32,
        CanonicalType.INT64,
        CanonicalType.FLOAT32,
        CanonicalType.FLOAT64,
        CanonicalType.DECIMAL,
    }
)

_TEMPORAL_TYPES = frozenset(
    {
        CanonicalType.DATE,
        CanonicalType.DATETIME,
        CanonicalType.TIME,
        CanonicalType.INSTANT,
    }
)

PRIMARY_KEY_TYPES = frozenset(
    {
        CanonicalType.INT32,
        CanonicalType.INT64,
        CanonicalType.UUID,
        CanonicalType.STRING,
    }
)


@dataclass(frozen=True)
class NativeType:
    """
    Immutable description of one native type in a target language.

    Carries the type name plus the imports it needs and whether the type
    already admits a null value without wrapping.
    """

    name: str
    imports: FrozenSet[str] = field(default_factory=frozenset)
    is_nilable: bool = False


@runtime_checkable
class TypeMapper(Protocol):
    """Capabilities every target type mapper provides."""

    language: str

    def map_scalar(self, canonical_type: CanonicalType) -> str:
        """Native type name for a canonical type."""
        ...

    def map_nullable(self, native_type: str) -> str:
        """Nullable variant of a native type name."""
        ...

    def map_default_value(self, column: "Column") -> str:
        """Literal default for a column, honouring its nullability."""
        ...

    def map_collection(self, element_type: str) -> str:
        """Collection type holding ``element_type`` items."""
        ...

    def map_primary_key_type(
        self, canonical_type: CanonicalType = CanonicalType.INT64
    ) -> str:
        """Native type used for identifiers and the foreign keys pointing at them."""
        ...

    def imports_for(self, canonical_type: CanonicalType) -> FrozenSet[str]:
        """Imports required to use the native type of ``canonical_type``."""
        ...


def check_exhaustive(mapper: TypeMapper) -> None:
    """
    Verify that ``mapper`` maps every canonical type.

    Raises:
        UnmappedTypeError: Listing every canonical type without a mapping
    """
    missing: List[str] = []
    for canonical_type in CanonicalType:
        try:
            native = mapper.map_scalar(canonical_type)
        except (KeyError, UnmappedTypeError):
            native = ""
        if not native:
            missing.append(canonical_type.value)

    if missing:
        language = getattr(mapper, "language", type(mapper).__name__)
        raise UnmappedTypeError(
            f"Type mapper for '{language}' does not map: {', '.join(missing)}"
        )


class DefaultKind(Enum):
    """Classification of a raw default-value hint."""

    NUMBER = "number"
    STRING = "string"
    BOOLEAN = "boolean"
    NOW = "now"
    NULL = "null"
    RAW = "raw"


@dataclass(frozen=True)
class DefaultHint:
    """A default-value hint reduced to a kind and a normalized value."""

    kind: DefaultKind
    value: str = ""


_NUMBER_LITERAL = re.compile(r"^[+-]?(\d+(\.\d*)?|\.\d+)$")
_NOW_EXPRESSIONS = {
    "now()",
    "current_timestamp",
    "current_timestamp()",
    "current_date",
    "current_time",
    "localtimestamp",
    "getdate()",
    "sysdate",
}


def parse_default_hint(raw: Optional[str]) -> Optional[DefaultHint]:
    """
    Classify a raw SQL default expression.

    Returns None when there is no hint. Casts such as ``'x'::varchar`` are
    stripped before classification; anything unrecognised is RAW and is
    ignored by type mappers.
    """
    if raw is None:
        return None
    text = raw.strip()
    if not text:
        return None
    text = re.sub(r"::[\w ]+(\(\d+(,\s*\d+)?\))?$", "", text).strip()
    if text.startswith("(") and text.endswith(")"):
        text = text[1:-1].strip()

    lower = text.lower()
    if lower == "null":
        return DefaultHint(DefaultKind.NULL)
    if lower in ("true", "false"):
        return DefaultHint(DefaultKind.BOOLEAN, lower)
    if lower in _NOW_EXPRESSIONS:
        return DefaultHint(DefaultKind.NOW)
    if _NUMBER_LITERAL.match(text):
        return DefaultHint(DefaultKind.NUMBER, text.lstrip("+"))
    if len(text) >= 2 and text[0] == text[-1] == "'":
        return DefaultHint(DefaultKind.STRING, text[1:-1].replace("''", "'"))
    return DefaultHint(DefaultKind.RAW, text)


def usable_default(column: "Column") -> Optional[DefaultHint]:
    """
    Return the column's default hint if it fits the column's type.

    Numbers fit numeric columns, booleans fit boolean columns (``0``/``1``
    are accepted too), strings fit string columns and NOW fits temporal
    ones. Other combinations return None so the mapper falls back to its
    type default.
    """
    hint = parse_default_hint(column.default)
    if hint is None:
        return None
    canonical = column.type

    if hint.kind == DefaultKind.NULL:
        return hint if column.nullable else None
    if hint.kind == DefaultKind.NUMBER and canonical.is_numeric:
        if canonical.is_integer and "." in hint.value:
            return None
        return hint
    if canonical == CanonicalType.BOOLEAN:
        if hint.kind == DefaultKind.BOOLEAN:
            return hint
        if hint.kind == DefaultKind.NUMBER and hint.value in ("0", "1"):
            return DefaultHint(DefaultKind.BOOLEAN, "true" if hint.value == "1" else "false")
    if hint.kind == DefaultKind.STRING and canonical == CanonicalType.STRING:
        return hint
    if hint.kind == DefaultKind.NOW and canonical in (
        CanonicalType.DATE,
        CanonicalType.DATETIME,
        CanonicalType.INSTANT,
    ):
        return hint
    return None


def escape_string_literal(value: str, quote: str = '"') -> str:
    """Escape ``value`` for a C-style double or single quoted literal."""
    escaped = value.replace("\\", "\\\\").replace(quote, f"\\{quote}")
    return escaped.replace("\n", "\\n").replace("\t", "\\t")
