"""Tests for the generator registry."""

import pytest

from schemaforge.codegen.core.config import GeneratorConfig
from schemaforge.codegen.core.types import CanonicalType
from schemaforge.codegen.languages.go import GoGenerator
from schemaforge.codegen.languages.go.types import GoTypeMapper
from schemaforge.codegen.languages.java import JavaGenerator
from schemaforge.codegen.languages.typescript import TypeScriptGenerator
from schemaforge.codegen.registry import (
    GeneratorRegistry,
    RegistryError,
    get_language_info,
    get_registry,
    is_language_supported,
    list_all_language_info,
    list_supported_languages,
    register_generator,
)


class PartialGoTypeMapper(GoTypeMapper):
    """Go mapper that forgot the duration type."""

    def _build_type_map(self):
        types = super()._build_type_map()
        del types[CanonicalType.DURATION]
        return types


class PartialGoGenerator(GoGenerator):
    """Go generator using the incomplete mapper."""

    @classmethod
    def create_type_mapper(cls):
        return PartialGoTypeMapper()


class TestGlobalRegistry:
    """Tests for the built-in registrations."""

    def test_builtin_languages(self) -> None:
        """The four targets are registered."""
        assert list_supported_languages() == ["go", "java", "python", "typescript"]

    @pytest.mark.parametrize(
        "alias,language",
        [
            ("spring", "java"),
            ("Spring-Boot", "java"),
            ("py", "python"),
            ("fastapi", "python"),
            ("golang", "go"),
            ("gin", "go"),
            ("ts", "typescript"),
            ("nestjs", "typescript"),
        ],
    )
    def test_aliases_resolve(self, alias, language) -> None:
        """Aliases resolve to their primary name regardless of case."""
        assert get_registry().resolve(alias) == language
        assert is_language_supported(alias)

    def test_unknown_target(self) -> None:
        """Unknown targets list the available ones."""
        with pytest.raises(RegistryError, match="Available: go, java, python, typescript"):
            get_registry().resolve("cobol")
        assert not is_language_supported("cobol")

    def test_language_info(self) -> None:
        """Language info reports the target's default package."""
        info = get_language_info("spring")
        assert info["name"] == "java"
        assert info["class"] == "JavaGenerator"
        assert info["file_extension"] == ".java"
        assert info["aliases"] == ["spring", "spring-boot"]
        assert info["default_package"] == "com.example.api"
        assert get_language_info("go")["default_package"] == "example.com/api"

    def test_create_generator_with_dict(self) -> None:
        """Dict configurations are merged over the target defaults."""
        generator = get_registry().create_generator("ts", {"project_name": "shop"})
        assert isinstance(generator, TypeScriptGenerator)
        assert generator.config.project_name == "shop"
        assert generator.config.package_name == "src"

    def test_create_generator_with_config(self) -> None:
        """A GeneratorConfig is used as is."""
        config = GeneratorConfig(package_name="org.demo")
        generator = get_registry().create_generator("java", config)
        assert generator.config is config

    def test_invalid_config_type(self) -> None:
        """Other config types are rejected."""
        with pytest.raises(RegistryError, match="Invalid config type"):
            get_registry().create_generator("go", 42)

    def test_list_all_language_info(self) -> None:
        """Info is reported for every built-in target."""
        info = list_all_language_info()
        assert sorted(info) == ["go", "java", "python", "typescript"]
        assert info["typescript"]["file_extension"] == ".ts"

    def test_register_generator(self) -> None:
        """Extra targets can be added to the global registry."""
        register_generator("gorm", GoGenerator, aliases=["gorm-api"])
        try:
            assert get_registry().resolve("gorm-api") == "gorm"
        finally:
            get_registry().unregister("gorm")
        assert not is_language_supported("gorm-api")


class TestGeneratorRegistry:
    """Tests for a standalone registry."""

    def setup_method(self) -> None:
        self.registry = GeneratorRegistry()

    def test_register_and_unregister(self) -> None:
        """Unregistering removes the target and its aliases."""
        self.registry.register("java", JavaGenerator, aliases=["spring"])
        assert self.registry.list_all_names() == {"java": ["java", "spring"]}

        self.registry.unregister("java")
        assert self.registry.list_languages() == []
        assert not self.registry.is_supported("spring")

    def test_rejects_non_generators(self) -> None:
        """Only CodeGenerator subclasses are accepted."""
        with pytest.raises(RegistryError, match="inherit from CodeGenerator"):
            self.registry.register("text", str)

    def test_rejects_incomplete_type_mapper(self) -> None:
        """A target whose mapper misses a canonical type is refused."""
        with pytest.raises(RegistryError, match="duration"):
            self.registry.register("go", PartialGoGenerator)
        assert not self.registry.is_supported("go")

    def test_alias_conflicts(self) -> None:
        """An alias cannot point at two targets or shadow a primary name."""
        self.registry.register("go", GoGenerator, aliases=["gin"])
        self.registry.register("java", JavaGenerator)
        with pytest.raises(RegistryError, match="already points to 'go'"):
            self.registry.register("typescript", TypeScriptGenerator, aliases=["gin"])
        with pytest.raises(RegistryError, match="conflicts with existing primary"):
            self.registry.register("python", TypeScriptGenerator, aliases=["java"])

    def test_existing_registration_is_kept(self) -> None:
        """Registering twice without replace keeps the first class."""
        self.registry.register("go", GoGenerator)
        self.registry.register("go", JavaGenerator)
        assert self.registry.get_generator_class("go") is GoGenerator

        self.registry.register("go", JavaGenerator, replace=True)
        assert self.registry.get_generator_class("go") is JavaGenerator
