"""Utility functions for loading schemas.

This module provides functions for loading a schema from SQL DDL or JSON
files and strings with proper error handling and validation.
"""

import json
from pathlib import Path

from .codegen.core.schema import Schema, SchemaError
from .ddl_parser import parse_ddl
from .logging_config import get_logger

logger = get_logger(__name__)

SUPPORTED_FORMATS = ("sql", "json")


class SchemaLoaderError(Exception):
    """Custom exception for schema loading errors."""

    pass


def load_schema_from_string(
    text: str,
    fmt: str = "sql",
    module_grouping: dict[str, str] | None = None,
) -> Schema:
    """Parse a schema from text.

    Args:
        text: SQL DDL script or JSON document.
        fmt: Either ``"sql"`` or ``"json"``.
        module_grouping: Optional table -> module overrides.

    Returns:
        Validated Schema.

    Raises:
        SchemaLoaderError: If the format is unknown or the JSON is invalid.
        SchemaError: If the content does not describe a valid schema.
    """
    fmt = fmt.lower().lstrip(".")
    logger.debug(f"Loading {fmt} schema from string ({len(text)} chars)")

    if fmt == "sql":
        return parse_ddl(text, module_grouping)

    if fmt == "json":
        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            logger.error(f"Invalid JSON schema: {e}")
            raise SchemaLoaderError(f"Invalid JSON schema: {e}") from e
        schema = Schema.from_dict(data, module_grouping)
        schema.validate()
        return schema

    logger.error(f"Unsupported schema format: {fmt}")
    raise SchemaLoaderError(
        f"Unsupported schema format: {fmt} (expected one of: {', '.join(SUPPORTED_FORMATS)})"
    )


def load_schema_from_file(
    file_path: str | Path,
    module_grouping: dict[str, str] | None = None,
) -> Schema:
    """Load a schema from a ``.sql`` or ``.json`` file.

    Args:
        file_path: Path to the schema file.
        module_grouping: Optional table -> module overrides.

    Returns:
        Validated Schema.

    Raises:
        FileNotFoundError: If file doesn't exist.
        SchemaLoaderError: If the file cannot be read, has an unsupported
            suffix, or holds invalid JSON.
        SchemaError: If the content does not describe a valid schema.
    """
    file_path = Path(file_path)
    logger.debug(f"Attempting to load schema from file: {file_path}")

    if not file_path.exists():
        logger.error(f"File not found: {file_path}")
        raise FileNotFoundError(f"File not found: {file_path}")

    fmt = file_path.suffix.lower().lstrip(".")
    if fmt not in SUPPORTED_FORMATS:
        logger.error(f"Unsupported schema file extension: {file_path}")
        raise SchemaLoaderError(
            f"Unsupported schema file {file_path}: expected a .sql or .json file"
        )

    try:
        text = file_path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        logger.error(f"Error reading file {file_path}: {e}", exc_info=True)
        raise SchemaLoaderError(f"Error reading file {file_path}: {e}") from e

    try:
        schema = load_schema_from_string(text, fmt, module_grouping)
    except SchemaError as e:
        logger.error(f"Invalid schema in {file_path}: {e}")
        raise

    logger.info(f"Successfully loaded {len(schema)} tables from {file_path}")
    return schema
