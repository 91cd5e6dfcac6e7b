"""
Python code generator module.

Generates a FastAPI backend: async SQLAlchemy 2 models, Pydantic v2
schemas with camelCase aliases, repositories, services, routers and
Alembic migrations.
"""

from .generator import PythonGenerator, create_python_generator
from .naming import PYTHON_RESERVED_WORDS, create_python_sanitizer
from .types import PythonTypeMapper, import_lines, sqlalchemy_type

__all__ = [
    "PythonGenerator",
    "PythonTypeMapper",
    "PYTHON_RESERVED_WORDS",
    "create_python_generator",
    "create_python_sanitizer",
    "import_lines",
    "sqlalchemy_type",
]
