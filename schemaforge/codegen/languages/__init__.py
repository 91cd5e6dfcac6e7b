"""
Language-specific code generators.

One subpackage per target; each is registered in the generator registry.
"""

from .go import GoGenerator, create_go_generator
from .java import JavaGenerator, create_java_generator
from .python import PythonGenerator, create_python_generator
from .typescript import TypeScriptGenerator, create_typescript_generator

__all__ = [
    "GoGenerator",
    "create_go_generator",
    "JavaGenerator",
    "create_java_generator",
    "PythonGenerator",
    "create_python_generator",
    "TypeScriptGenerator",
    "create_typescript_generator",
]
