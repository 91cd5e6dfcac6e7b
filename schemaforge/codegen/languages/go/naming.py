"""
Go-specific naming utilities and sanitization.

Exported identifiers are PascalCase with Go's initialisms (``CategoryID``);
only unexported names such as locals and parameters can collide with Go
reserved words and builtins.
"""

from ...core.naming import NameSanitizer, NamingCase


# Go reserved words
GO_RESERVED_WORDS = {
    "break",
    "case",
    "chan",
    "const",
    "continue",
    "default",
    "defer",
    "else",
    "fallthrough",
    "for",
    "func",
    "go",
    "goto",
    "if",
    "import",
    "interface",
    "map",
    "package",
    "range",
    "return",
    "select",
    "struct",
    "switch",
    "type",
    "var",
}

# Go builtin types and functions
GO_BUILTIN_TYPES = {
    "bool",
    "byte",
    "error",
    "float32",
    "float64",
    "int",
    "int32",
    "int64",
    "rune",
    "string",
    "uint",
    "any",
    "append",
    "cap",
    "close",
    "copy",
    "delete",
    "len",
    "make",
    "new",
    "panic",
    "print",
    "println",
    "recover",
}

# Initialisms spelled in upper case inside Go identifiers
GO_ACRONYMS = {
    "id": "ID",
    "ids": "IDs",
    "url": "URL",
    "uuid": "UUID",
    "api": "API",
    "http": "HTTP",
    "json": "JSON",
    "sql": "SQL",
}


def create_go_sanitizer() -> NameSanitizer:
    """Create a name sanitizer for exported Go identifiers."""
    return NameSanitizer(acronyms=GO_ACRONYMS)


def create_go_local_sanitizer() -> NameSanitizer:
    """Create a name sanitizer for unexported Go identifiers."""
    return NameSanitizer(GO_RESERVED_WORDS, GO_BUILTIN_TYPES, acronyms=GO_ACRONYMS)


_local_sanitizer = create_go_local_sanitizer()


def go_local_name(name: str) -> str:
    """camelCase name for a parameter or local variable."""
    return _local_sanitizer.sanitize_name(name, NamingCase.CAMEL_CASE)
