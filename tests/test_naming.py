"""Tests for identifier case conversion, inflection and escaping."""

import pytest

from schemaforge.codegen.core.naming import (
    NameSanitizer,
    NamingCase,
    convert_case,
    pluralize,
    singularize,
    split_words,
    to_camel_case,
    to_kebab_case,
    to_pascal_case,
    to_snake_case,
)
from schemaforge.codegen.core.schema import Column, Table
from schemaforge.codegen.core.types import CanonicalType
from schemaforge.codegen.languages.go.naming import create_go_sanitizer, go_local_name
from schemaforge.codegen.languages.java.naming import create_java_sanitizer
from schemaforge.codegen.languages.python.naming import create_python_sanitizer
from schemaforge.codegen.languages.typescript.naming import create_typescript_sanitizer


class TestSplitWords:
    """Tests for word splitting."""

    def test_separators_split(self) -> None:
        """Underscores, hyphens and spaces all separate words."""
        assert split_words("order_item-line total") == ["order", "item", "line", "total"]

    def test_camel_humps_split(self) -> None:
        """Camel humps split and acronym runs stay together."""
        assert split_words("HTTPServer") == ["HTTP", "Server"]
        assert split_words("userID") == ["user", "ID"]

    def test_digits_attach_to_previous_word(self) -> None:
        """Digits stay with the word they follow."""
        assert split_words("address2_line") == ["address2", "line"]


class TestCaseConversion:
    """Tests for the case converters."""

    @pytest.mark.parametrize(
        "name,snake,camel,pascal,kebab",
        [
            ("order_items", "order_items", "orderItems", "OrderItems", "order-items"),
            ("OrderItem", "order_item", "orderItem", "OrderItem", "order-item"),
            ("category_id", "category_id", "categoryId", "CategoryId", "category-id"),
        ],
    )
    def test_conversions(self, name, snake, camel, pascal, kebab) -> None:
        """Every case is derived from the same words."""
        assert to_snake_case(name) == snake
        assert to_camel_case(name) == camel
        assert to_pascal_case(name) == pascal
        assert to_kebab_case(name) == kebab

    def test_snake_case_is_idempotent(self) -> None:
        """Converting twice changes nothing."""
        for name in ("createdAt", "HTTPServer", "order_items"):
            once = to_snake_case(name)
            assert to_snake_case(once) == once

    def test_acronyms(self) -> None:
        """Acronym spellings apply in Pascal and camel case."""
        acronyms = {"id": "ID", "url": "URL"}
        assert to_pascal_case("category_id", acronyms) == "CategoryID"
        assert to_camel_case("image_url", acronyms) == "imageURL"

    def test_leading_digit_gets_prefix(self) -> None:
        """Camel and Pascal results are valid identifiers even after a digit."""
        assert to_camel_case("4n") == "_4N"
        assert to_pascal_case("3d_model") == "_3DModel"
        assert to_camel_case("model_3d") == "model3D"
        assert to_snake_case(to_camel_case("4n")) == to_snake_case("4n")

    def test_convert_case_dispatch(self) -> None:
        """convert_case covers the flat and screaming styles."""
        assert convert_case("order_item", NamingCase.FLAT_CASE) == "orderitem"
        assert convert_case("order_item", NamingCase.SCREAMING_SNAKE) == "ORDER_ITEM"


class TestInflection:
    """Tests for pluralize and singularize."""

    @pytest.mark.parametrize(
        "singular,plural",
        [
            ("category", "categories"),
            ("product", "products"),
            ("box", "boxes"),
            ("address", "addresses"),
            ("order_item", "order_items"),
            ("key", "keys"),
        ],
    )
    def test_pairs(self, singular, plural) -> None:
        """Pluralize and singularize invert each other on common nouns."""
        assert pluralize(singular) == plural
        assert singularize(plural) == singular

    def test_singular_words_are_kept(self) -> None:
        """Words already singular are not truncated."""
        assert singularize("status") == "status"
        assert singularize("address") == "address"

    def test_only_last_word_changes(self) -> None:
        """Compound identifiers only inflect their last word."""
        assert pluralize("OrderItem") == "OrderItems"
        assert singularize("user_addresses") == "user_address"

    def test_entity_name_from_table(self) -> None:
        """Table names become singular PascalCase entity names."""
        table = Table("order_items", (Column("id", CanonicalType.INT64, primary_key=True),))
        assert table.entity_name == "OrderItem"
        assert Table("categories", ()).entity_name == "Category"


class TestNameSanitizer:
    """Tests for reserved-word escaping."""

    def test_escapes_reserved_words(self) -> None:
        """Reserved words get the conflict suffix."""
        sanitizer = NameSanitizer(reserved_words=["class"])
        assert sanitizer.sanitize_name("class") == "class_"
        assert sanitizer.is_reserved("class")

    def test_leading_digit(self) -> None:
        """Identifiers cannot start with a digit."""
        sanitizer = NameSanitizer()
        assert sanitizer.sanitize_name("2fa", NamingCase.SNAKE_CASE).startswith("_")

    def test_python_escapes_keywords_and_sqlalchemy_names(self) -> None:
        """Python fields avoid keywords and declarative attributes."""
        sanitizer = create_python_sanitizer()
        assert sanitizer.sanitize_name("from") == "from_"
        assert sanitizer.sanitize_name("metadata") == "metadata_"
        assert sanitizer.sanitize_name("unit_price") == "unit_price"

    def test_java_escapes_keywords(self) -> None:
        """Java fields avoid Java keywords."""
        sanitizer = create_java_sanitizer()
        assert sanitizer.sanitize_name("class", NamingCase.CAMEL_CASE) == "class_"
        assert sanitizer.sanitize_name("unit_price", NamingCase.CAMEL_CASE) == "unitPrice"

    def test_typescript_escapes_keywords(self) -> None:
        """TypeScript fields avoid reserved words."""
        sanitizer = create_typescript_sanitizer()
        assert sanitizer.sanitize_name("delete", NamingCase.CAMEL_CASE) == "delete_"

    def test_go_exported_names_are_never_escaped(self) -> None:
        """Exported Go names are capitalized so they cannot collide."""
        sanitizer = create_go_sanitizer()
        assert sanitizer.sanitize_name("type", NamingCase.PASCAL_CASE) == "Type"
        assert sanitizer.sanitize_name("category_id", NamingCase.PASCAL_CASE) == "CategoryID"

    def test_go_locals_are_escaped(self) -> None:
        """Unexported Go names avoid keywords."""
        assert go_local_name("type") == "type_"
        assert go_local_name("category_id") == "categoryID"
