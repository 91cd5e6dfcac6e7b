"""
TypeScript-specific naming utilities and sanitization.

Class properties may legally be named after most reserved words, but the
generated constructors and services also use them as parameters and
locals, so every reserved word is escaped.
"""

from ...core.naming import NameSanitizer


# TypeScript reserved and strict-mode words
TYPESCRIPT_RESERVED_WORDS = {
    "break",
    "case",
    "catch",
    "class",
    "const",
    "continue",
    "debugger",
    "default",
    "delete",
    "do",
    "else",
    "enum",
    "export",
    "extends",
    "false",
    "finally",
    "for",
    "function",
    "if",
    "import",
    "in",
    "instanceof",
    "new",
    "null",
    "return",
    "super",
    "switch",
    "this",
    "throw",
    "true",
    "try",
    "typeof",
    "var",
    "void",
    "while",
    "with",
    "as",
    "implements",
    "interface",
    "let",
    "package",
    "private",
    "protected",
    "public",
    "static",
    "yield",
    "await",
}

# Built-in type names that would shadow the runtime globals
TYPESCRIPT_BUILTIN_TYPES = {
    "any",
    "boolean",
    "constructor",
    "never",
    "number",
    "object",
    "string",
    "symbol",
    "unknown",
}


def create_typescript_sanitizer() -> NameSanitizer:
    """Create a name sanitizer configured for TypeScript."""
    return NameSanitizer(TYPESCRIPT_RESERVED_WORDS, TYPESCRIPT_BUILTIN_TYPES)
