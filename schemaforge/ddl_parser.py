"""SQL DDL input adapter.

Turns ``CREATE TABLE`` scripts into the canonical schema model. Only the
statements that shape tables are read; everything else in a dump (inserts,
functions, grants, ``SET`` lines) is skipped.
"""

import re
from dataclasses import dataclass, field
from typing import Any

from .codegen.core.schema import Column, ForeignKeyRef, Schema, SchemaError, Table, build_schema
from .codegen.core.types import CanonicalType
from .logging_config import get_logger

logger = get_logger(__name__)


# SQL type spellings (PostgreSQL and MySQL) to canonical types
SQL_TYPES: dict[str, CanonicalType] = {
    "smallint": CanonicalType.INT32,
    "int2": CanonicalType.INT32,
    "tinyint": CanonicalType.INT32,
    "mediumint": CanonicalType.INT32,
    "integer": CanonicalType.INT32,
    "int": CanonicalType.INT32,
    "int4": CanonicalType.INT32,
    "serial": CanonicalType.INT32,
    "serial4": CanonicalType.INT32,
    "smallserial": CanonicalType.INT32,
    "serial2": CanonicalType.INT32,
    "bigint": CanonicalType.INT64,
    "int8": CanonicalType.INT64,
    "bigserial": CanonicalType.INT64,
    "serial8": CanonicalType.INT64,
    "real": CanonicalType.FLOAT32,
    "float4": CanonicalType.FLOAT32,
    "double precision": CanonicalType.FLOAT64,
    "double": CanonicalType.FLOAT64,
    "float8": CanonicalType.FLOAT64,
    "float": CanonicalType.FLOAT64,
    "decimal": CanonicalType.DECIMAL,
    "dec": CanonicalType.DECIMAL,
    "numeric": CanonicalType.DECIMAL,
    "number": CanonicalType.DECIMAL,
    "money": CanonicalType.DECIMAL,
    "boolean": CanonicalType.BOOLEAN,
    "bool": CanonicalType.BOOLEAN,
    "bit": CanonicalType.BOOLEAN,
    "varchar": CanonicalType.STRING,
    "character varying": CanonicalType.STRING,
    "nvarchar": CanonicalType.STRING,
    "char": CanonicalType.STRING,
    "character": CanonicalType.STRING,
    "nchar": CanonicalType.STRING,
    "bpchar": CanonicalType.STRING,
    "text": CanonicalType.STRING,
    "tinytext": CanonicalType.STRING,
    "mediumtext": CanonicalType.STRING,
    "longtext": CanonicalType.STRING,
    "citext": CanonicalType.STRING,
    "clob": CanonicalType.STRING,
    "json": CanonicalType.STRING,
    "jsonb": CanonicalType.STRING,
    "xml": CanonicalType.STRING,
    "enum": CanonicalType.STRING,
    "inet": CanonicalType.STRING,
    "cidr": CanonicalType.STRING,
    "macaddr": CanonicalType.STRING,
    "bytea": CanonicalType.BYTES,
    "blob": CanonicalType.BYTES,
    "tinyblob": CanonicalType.BYTES,
    "mediumblob": CanonicalType.BYTES,
    "longblob": CanonicalType.BYTES,
    "binary": CanonicalType.BYTES,
    "varbinary": CanonicalType.BYTES,
    "date": CanonicalType.DATE,
    "timestamp": CanonicalType.DATETIME,
    "timestamp without time zone": CanonicalType.DATETIME,
    "datetime": CanonicalType.DATETIME,
    "time": CanonicalType.TIME,
    "time without time zone": CanonicalType.TIME,
    "time with time zone": CanonicalType.TIME,
    "timetz": CanonicalType.TIME,
    "timestamp with time zone": CanonicalType.INSTANT,
    "timestamptz": CanonicalType.INSTANT,
    "interval": CanonicalType.DURATION,
    "uuid": CanonicalType.UUID,
    "uniqueidentifier": CanonicalType.UUID,
}

# Types whose first argument is a length
LENGTH_TYPES = {
    "varchar",
    "character varying",
    "nvarchar",
    "char",
    "character",
    "nchar",
    "bpchar",
    "binary",
    "varbinary",
}

# MySQL type attributes that do not change the canonical type
TYPE_ATTRIBUTES = {"unsigned", "signed", "zerofill"}

# Words that end a column's type and start its modifiers
COLUMN_KEYWORDS = {
    "not",
    "null",
    "primary",
    "unique",
    "default",
    "references",
    "check",
    "constraint",
    "generated",
    "collate",
    "auto_increment",
    "autoincrement",
    "identity",
    "comment",
    "on",
}

_NAME = r'(?:"(?:[^"]|"")+"|`[^`]+`|[\w$]+)'
_QUALIFIED = rf"((?:{_NAME}\s*\.\s*)*{_NAME})"

_CREATE_TABLE = re.compile(
    r"^CREATE\s+(?:OR\s+REPLACE\s+)?(?:(?:GLOBAL|LOCAL)\s+)?"
    r"(?:(?:TEMP|TEMPORARY|UNLOGGED)\s+)?TABLE\s+(?:IF\s+NOT\s+EXISTS\s+)?"
    + _QUALIFIED
    + r"\s*\(",
    re.IGNORECASE,
)
_ALTER_TABLE = re.compile(
    r"^ALTER\s+TABLE\s+(?:IF\s+EXISTS\s+)?(?:ONLY\s+)?" + _QUALIFIED + r"\s+(.*)$",
    re.IGNORECASE | re.DOTALL,
)
_CREATE_UNIQUE_INDEX = re.compile(
    r"^CREATE\s+UNIQUE\s+INDEX\s+(?:CONCURRENTLY\s+)?(?:IF\s+NOT\s+EXISTS\s+)?"
    rf"(?:{_NAME}\s+)?ON\s+(?:ONLY\s+)?{_QUALIFIED}\s*(?:USING\s+\w+\s*)?\(",
    re.IGNORECASE,
)
_COMMENT_ON = re.compile(
    r"^COMMENT\s+ON\s+(TABLE|COLUMN)\s+" + _QUALIFIED + r"\s+IS\s+'((?:[^']|'')*)'\s*$",
    re.IGNORECASE | re.DOTALL,
)
_DOLLAR_TAG = re.compile(r"\$\w*\$")
_WORD = re.compile(r"[^\s()'\"`]+")


@dataclass
class _TableBuilder:
    """Mutable table state while statements are being read."""

    name: str
    columns: dict[str, dict[str, Any]] = field(default_factory=dict)
    primary_key: list[str] = field(default_factory=list)
    unique_constraints: list[tuple[str, ...]] = field(default_factory=list)
    comment: str | None = None

    def column(self, name: str) -> dict[str, Any]:
        try:
            return self.columns[name.lower()]
        except KeyError:
            raise SchemaError(f"Unknown column '{name}' in table '{self.name}'") from None

    def build(self, module: str | None) -> Table:
        for key in self.primary_key:
            data = self.column(key)
            data["primary_key"] = True
        columns = []
        for data in self.columns.values():
            if data["primary_key"]:
                data["nullable"] = False
                data["unique"] = False
            columns.append(Column(**data))
        return Table(
            name=self.name,
            columns=tuple(columns),
            unique_constraints=tuple(self.unique_constraints),
            module=module,
            comment=self.comment,
        )


class DDLParser:
    """Reads a DDL script into a :class:`Schema`.

    Statements are applied in order, so ``ALTER TABLE`` and ``COMMENT ON``
    must come after the ``CREATE TABLE`` they refer to.
    """

    def __init__(self, module_grouping: dict[str, str] | None = None):
        self.module_grouping = {k.lower(): v for k, v in (module_grouping or {}).items()}
        self.tables: dict[str, _TableBuilder] = {}

    def parse(self, text: str) -> Schema:
        """Parse a whole script.

        Args:
            text: SQL script, possibly with comments and several statements.

        Returns:
            Validated Schema with tables in declaration order.

        Raises:
            SchemaError: If a statement is malformed, a type is unknown, or
                the resulting schema is invalid.
        """
        statements = split_statements(strip_comments(text))
        logger.debug(f"Parsing {len(statements)} DDL statements")

        for statement in statements:
            self.parse_statement(statement)

        tables = [
            builder.build(self.module_grouping.get(key)) for key, builder in self.tables.items()
        ]
        logger.info(f"Parsed {len(tables)} tables from DDL")
        return build_schema(tables)

    def parse_statement(self, statement: str) -> None:
        match = _CREATE_TABLE.match(statement)
        if match:
            self._create_table(statement, match)
            return

        match = _ALTER_TABLE.match(statement)
        if match:
            self._alter_table(_identifier(match.group(1)), match.group(2))
            return

        match = _CREATE_UNIQUE_INDEX.match(statement)
        if match:
            self._unique_index(statement, match)
            return

        match = _COMMENT_ON.match(statement)
        if match:
            self._comment_on(match.group(1).upper(), match.group(2), match.group(3))
            return

        logger.debug(f"Skipping statement: {_preview(statement)}")

    def _table(self, name: str) -> _TableBuilder:
        try:
            return self.tables[name.lower()]
        except KeyError:
            raise SchemaError(f"Statement refers to unknown table '{name}'") from None

    def _create_table(self, statement: str, match: re.Match) -> None:
        name = _identifier(match.group(1))
        if name.lower() in self.tables:
            raise SchemaError(f"Duplicate table name: {name}")

        open_paren = match.end() - 1
        close_paren = matching_paren(statement, open_paren)
        body = statement[open_paren + 1 : close_paren]

        builder = _TableBuilder(name)
        self.tables[name.lower()] = builder
        for item in split_top_level(body, ","):
            if not self._table_constraint(builder, item):
                self._add_column(builder, item)

        comment = re.search(r"\bCOMMENT\s*=?\s*'((?:[^']|'')*)'", statement[close_paren:], re.I)
        if comment:
            builder.comment = comment.group(1).replace("''", "'")
        logger.debug(f"Table {name}: {len(builder.columns)} columns")

    def _alter_table(self, name: str, actions: str) -> None:
        builder = self._table(name)
        for action in split_top_level(actions, ","):
            tokens = tokenize(action)
            if not tokens or tokens[0].upper() != "ADD":
                logger.debug(f"Skipping ALTER TABLE {name} action: {_preview(action)}")
                continue
            rest = action.strip()[3:].strip()
            if self._table_constraint(builder, rest):
                continue
            if len(tokens) > 1 and tokens[1].upper() == "COLUMN":
                rest = rest[6:].strip()
                if rest.upper().startswith("IF NOT EXISTS"):
                    rest = rest[13:].strip()
            self._add_column(builder, rest)

    def _unique_index(self, statement: str, match: re.Match) -> None:
        builder = self._table(_identifier(match.group(1)))
        open_paren = match.end() - 1
        group = statement[open_paren : matching_paren(statement, open_paren) + 1]
        parts = split_top_level(group[1:-1], ",")
        if any("(" in part for part in parts):
            logger.debug(f"Skipping expression index on {builder.name}: {_preview(statement)}")
            return
        self._add_unique(builder, tuple(_column_list(group)))

    def _comment_on(self, kind: str, target: str, text: str) -> None:
        text = text.replace("''", "'")
        parts = [_identifier(p) for p in split_top_level(target, ".")]
        if kind == "TABLE":
            self._table(parts[-1]).comment = text
            return
        if len(parts) < 2:
            raise SchemaError(f"COMMENT ON COLUMN needs table.column, got '{target}'")
        self._table(parts[-2]).column(parts[-1])["comment"] = text

    def _add_unique(self, builder: _TableBuilder, columns: tuple[str, ...]) -> None:
        if len(columns) == 1:
            builder.column(columns[0])["unique"] = True
        elif columns not in builder.unique_constraints:
            builder.unique_constraints.append(columns)

    def _table_constraint(self, builder: _TableBuilder, item: str) -> bool:
        """Apply a table-level constraint; False when ``item`` is a column."""
        tokens = tokenize(item)
        keyword = tokens[0].upper()

        if keyword == "CONSTRAINT":
            rest = item.strip()[len(tokens[0]) :].strip()
            rest = rest[len(tokens[1]) :].strip()
            if not self._table_constraint(builder, rest):
                raise SchemaError(f"Unsupported constraint in {builder.name}: {_preview(item)}")
            return True

        upper = [t.upper() for t in tokens]
        if keyword == "PRIMARY" and len(tokens) > 2 and upper[1] == "KEY":
            builder.primary_key = _column_list(_first_group(tokens))
            return True

        if keyword == "UNIQUE" and _first_group(tokens):
            self._add_unique(builder, tuple(_column_list(_first_group(tokens))))
            return True

        if keyword == "FOREIGN" and len(tokens) > 2 and upper[1] == "KEY":
            self._foreign_key(builder, tokens)
            return True

        if keyword in ("CHECK", "EXCLUDE"):
            return True

        # MySQL inline index definitions, not a column named "key"
        if keyword in ("KEY", "INDEX", "FULLTEXT", "SPATIAL") and len(tokens) > 1:
            if tokens[1].startswith("(") or tokens[1].lower() not in SQL_TYPES:
                return _first_group(tokens) is not None

        return False

    def _foreign_key(self, builder: _TableBuilder, tokens: list[str]) -> None:
        columns = _column_list(_first_group(tokens) or "")
        upper = [t.upper() for t in tokens]
        if "REFERENCES" not in upper:
            raise SchemaError(f"FOREIGN KEY without REFERENCES in table '{builder.name}'")
        reference = _reference(tokens, upper.index("REFERENCES"))
        if len(columns) != 1:
            logger.warning(
                f"Ignoring composite foreign key {builder.name}({', '.join(columns)}) "
                f"-> {reference.table}"
            )
            return
        builder.column(columns[0])["references"] = reference

    def _add_column(self, builder: _TableBuilder, item: str) -> None:
        tokens = tokenize(item)
        if len(tokens) < 2:
            raise SchemaError(f"Cannot parse column in {builder.name}: {_preview(item)}")

        name = _identifier(tokens[0])
        if name.lower() in builder.columns:
            raise SchemaError(f"Duplicate column '{name}' in table '{builder.name}'")

        index = 1
        words: list[str] = []
        args: list[str] = []
        while index < len(tokens) and tokens[index].lower() not in COLUMN_KEYWORDS:
            token = tokens[index]
            if token.startswith("("):
                args = [a.strip() for a in split_top_level(token[1:-1], ",")]
            elif token.lower() not in TYPE_ATTRIBUTES:
                words.append(token.lower())
            index += 1

        data: dict[str, Any] = {"name": name, "nullable": True, "unique": False}
        data.update(_column_type(builder.name, name, " ".join(words), args))
        data.update(primary_key=False, default=None, references=None, comment=None)
        self._column_modifiers(builder, data, tokens, index)
        builder.columns[name.lower()] = data

    def _column_modifiers(
        self,
        builder: _TableBuilder,
        data: dict[str, Any],
        tokens: list[str],
        index: int,
    ) -> None:
        upper = [t.upper() for t in tokens]
        while index < len(tokens):
            word = upper[index]
            if word == "NOT" and index + 1 < len(tokens) and upper[index + 1] == "NULL":
                data["nullable"] = False
                index += 2
            elif word == "NULL":
                data["nullable"] = True
                index += 1
            elif word == "PRIMARY":
                data["primary_key"] = True
                index += 2
            elif word == "UNIQUE":
                data["unique"] = True
                index += 2 if index + 1 < len(tokens) and upper[index + 1] == "KEY" else 1
            elif word == "DEFAULT":
                end = index + 1
                while end < len(tokens) and (
                    end == index + 1 or tokens[end].lower() not in COLUMN_KEYWORDS
                ):
                    end += 1
                data["default"] = _join_expression(tokens[index + 1 : end])
                index = end
            elif word == "REFERENCES":
                data["references"] = _reference(tokens, index)
                index += 2
                if index < len(tokens) and tokens[index].startswith("("):
                    index += 1
            elif word == "ON":
                # ON DELETE/UPDATE action; SET NULL, SET DEFAULT and NO ACTION are two words
                index += 2
                index += 2 if index < len(tokens) and upper[index] in ("SET", "NO") else 1
            elif word in ("CHECK", "CONSTRAINT", "COLLATE"):
                index += 2
            elif word == "COMMENT" and index + 1 < len(tokens):
                data["comment"] = tokens[index + 1][1:-1].replace("''", "'")
                index += 2
            elif word == "GENERATED":
                while index < len(tokens) and upper[index] not in ("IDENTITY", "STORED"):
                    index += 1
                index += 1
                if index < len(tokens) and tokens[index].startswith("("):
                    index += 1
            else:
                logger.debug(f"Ignoring '{tokens[index]}' on {builder.name}.{data['name']}")
                index += 1


def _column_type(table: str, column: str, spelling: str, args: list[str]) -> dict[str, Any]:
    if spelling.endswith("[]"):
        raise SchemaError(f"{table}.{column}: array type '{spelling}' is not supported")
    if spelling not in SQL_TYPES:
        raise SchemaError(f"{table}.{column}: unknown SQL type '{spelling}'")

    canonical = SQL_TYPES[spelling]
    result: dict[str, Any] = {"type": canonical}
    numbers = [int(a) for a in args if a.isdigit()]

    if spelling == "tinyint" and numbers == [1]:
        result["type"] = CanonicalType.BOOLEAN
    elif spelling in LENGTH_TYPES and numbers:
        result["length"] = numbers[0]
    elif canonical == CanonicalType.DECIMAL and numbers:
        result["precision"] = numbers[0]
        if len(numbers) > 1:
            result["scale"] = numbers[1]
    return result


def _reference(tokens: list[str], index: int) -> ForeignKeyRef:
    """Read ``REFERENCES table [(column)]`` starting at ``index``."""
    if index + 1 >= len(tokens):
        raise SchemaError("REFERENCES without a table name")
    table = _identifier(split_top_level(tokens[index + 1], ".")[-1])
    column = "id"
    if index + 2 < len(tokens) and tokens[index + 2].startswith("("):
        columns = _column_list(tokens[index + 2])
        if len(columns) != 1:
            raise SchemaError(f"Composite reference to '{table}' is not supported")
        column = columns[0]
    return ForeignKeyRef(table, column)


def _first_group(tokens: list[str]) -> str | None:
    for token in tokens:
        if token.startswith("("):
            return token
    return None


def _column_list(group: str) -> list[str]:
    """Column names of a ``(a, b DESC)`` list, with or without the parentheses."""
    inner = group.strip()
    if inner.startswith("(") and inner.endswith(")"):
        inner = inner[1:-1]
    return [_identifier(tokenize(part)[0]) for part in split_top_level(inner, ",")]


def _identifier(token: str) -> str:
    """Unquote an identifier; unquoted ones are lowercased, schema prefixes dropped."""
    token = split_top_level(token.strip(), ".")[-1]
    if token.startswith('"') and token.endswith('"'):
        return token[1:-1].replace('""', '"')
    if token.startswith("`") and token.endswith("`"):
        return token[1:-1]
    return token.lower()


def _join_expression(tokens: list[str]) -> str:
    """Rejoin expression tokens; ``now`` and ``()`` become ``now()``."""
    text = ""
    for token in tokens:
        if text and not token.startswith("("):
            text += " "
        text += token
    return text


def _preview(statement: str, limit: int = 60) -> str:
    flat = " ".join(statement.split())
    return flat if len(flat) <= limit else flat[: limit - 3] + "..."


# Lexical helpers


def _quote_at(text: str, index: int) -> bool:
    ch = text[index]
    return ch in "'\"`" or (ch == "$" and _DOLLAR_TAG.match(text, index) is not None)


def skip_quoted(text: str, start: int) -> int:
    """Return the index just past the quoted text starting at ``start``.

    Raises:
        SchemaError: If the quote is never closed.
    """
    if text[start] == "$":
        tag = _DOLLAR_TAG.match(text, start).group()
        end = text.find(tag, start + len(tag))
        if end < 0:
            raise SchemaError(f"Unterminated {tag} block")
        return end + len(tag)

    quote = text[start]
    index = start + 1
    while index < len(text):
        if text[index] == quote:
            if text.startswith(quote * 2, index):
                index += 2
                continue
            return index + 1
        index += 1
    raise SchemaError(f"Unterminated quoted text: {_preview(text[start:], 30)}")


def strip_comments(text: str) -> str:
    """Remove ``--`` and ``/* */`` comments outside quoted text."""
    out: list[str] = []
    index = 0
    while index < len(text):
        if _quote_at(text, index):
            end = skip_quoted(text, index)
            out.append(text[index:end])
            index = end
        elif text.startswith("--", index):
            end = text.find("\n", index)
            index = len(text) if end < 0 else end
        elif text.startswith("/*", index):
            end = text.find("*/", index + 2)
            if end < 0:
                raise SchemaError("Unterminated /* comment")
            out.append(" ")
            index = end + 2
        else:
            out.append(text[index])
            index += 1
    return "".join(out)


def split_top_level(text: str, separator: str) -> list[str]:
    """Split on ``separator`` outside parentheses and quoted text."""
    parts: list[str] = []
    depth = 0
    start = 0
    index = 0
    while index < len(text):
        if _quote_at(text, index):
            index = skip_quoted(text, index)
            continue
        ch = text[index]
        if ch == "(":
            depth += 1
        elif ch == ")":
            depth -= 1
        elif ch == separator and depth == 0:
            parts.append(text[start:index])
            start = index + 1
        index += 1
    parts.append(text[start:])
    return [part.strip() for part in parts if part.strip()]


def split_statements(text: str) -> list[str]:
    """Split a script on top-level semicolons."""
    return split_top_level(text, ";")


def matching_paren(text: str, start: int) -> int:
    """Index of the parenthesis closing the one at ``start``.

    Raises:
        SchemaError: If the parentheses are unbalanced.
    """
    depth = 0
    index = start
    while index < len(text):
        if _quote_at(text, index):
            index = skip_quoted(text, index)
            continue
        if text[index] == "(":
            depth += 1
        elif text[index] == ")":
            depth -= 1
            if depth == 0:
                return index
        index += 1
    raise SchemaError(f"Unbalanced parentheses in: {_preview(text[start:])}")


def tokenize(text: str) -> list[str]:
    """Split a clause into words, quoted strings and whole parenthesized groups."""
    tokens: list[str] = []
    index = 0
    while index < len(text):
        ch = text[index]
        if ch.isspace():
            index += 1
        elif ch == "(":
            end = matching_paren(text, index) + 1
            tokens.append(text[index:end])
            index = end
        elif _quote_at(text, index):
            end = skip_quoted(text, index)
            tokens.append(text[index:end])
            index = end
        elif ch == ")":
            raise SchemaError(f"Unbalanced parentheses in: {_preview(text)}")
        else:
            match = _WORD.match(text, index)
            tokens.append(match.group())
            index = match.end()
    return tokens


def parse_ddl(text: str, module_grouping: dict[str, str] | None = None) -> Schema:
    """Parse a SQL DDL script into a validated schema.

    Args:
        text: SQL script.
        module_grouping: Optional table -> module overrides.

    Returns:
        Schema with one table per ``CREATE TABLE``.

    Raises:
        SchemaError: If the script cannot be read into a valid schema.

    Examples:
        >>> schema = parse_ddl("CREATE TABLE tags (id BIGSERIAL PRIMARY KEY, name TEXT);")
        >>> schema.tables[0].columns[1].type
        <CanonicalType.STRING: 'string'>
    """
    return DDLParser(module_grouping).parse(text)
