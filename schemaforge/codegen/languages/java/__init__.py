"""
Java code generator module.

Generates a Spring Boot backend: JPA entities on a shared audited base
class, DTOs, MapStruct mappers, Spring Data repositories, services, REST
controllers and Flyway migrations.
"""

from .generator import JavaGenerator, create_java_generator
from .naming import JAVA_RESERVED_WORDS, create_java_sanitizer, java_package_segment
from .types import JavaTypeMapper

__all__ = [
    "JavaGenerator",
    "JavaTypeMapper",
    "JAVA_RESERVED_WORDS",
    "create_java_generator",
    "create_java_sanitizer",
    "java_package_segment",
]
