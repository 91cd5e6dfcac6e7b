"""
schemaforge: generate layered backend source trees from one SQL schema.
"""

from .codegen import generate
from .ddl_parser import parse_ddl
from .utils import SchemaLoaderError, load_schema_from_file, load_schema_from_string

__version__ = "0.1.0"

__all__ = [
    "generate",
    "parse_ddl",
    "load_schema_from_file",
    "load_schema_from_string",
    "SchemaLoaderError",
    "__version__",
]
