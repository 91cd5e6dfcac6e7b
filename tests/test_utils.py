"""Tests for schema loading helpers."""

import json

import pytest

from schemaforge import SchemaLoaderError, load_schema_from_file, load_schema_from_string
from schemaforge.codegen.core.schema import SchemaError


class TestLoadSchemaFromString:
    """Tests for load_schema_from_string."""

    def test_sql(self, ecommerce_ddl) -> None:
        """DDL text is parsed into a validated schema."""
        schema = load_schema_from_string(ecommerce_ddl)
        assert len(schema) == 4
        assert schema.table("products").column("sku").unique

    def test_json(self, ecommerce_data) -> None:
        """JSON documents use the schema document format."""
        schema = load_schema_from_string(json.dumps(ecommerce_data), "json")
        assert [t.name for t in schema.tables] == [
            "categories",
            "products",
            "orders",
            "order_items",
        ]

    def test_module_grouping(self, ecommerce_data) -> None:
        """Module overrides are applied while loading."""
        schema = load_schema_from_string(
            json.dumps(ecommerce_data), ".JSON", {"products": "catalog"}
        )
        assert schema.table("products").module_name == "catalog"

    def test_unsupported_format(self) -> None:
        """Only sql and json are understood."""
        with pytest.raises(SchemaLoaderError, match="Unsupported schema format: yaml"):
            load_schema_from_string("tables: []", "yaml")

    def test_invalid_json(self) -> None:
        """Malformed JSON is a loader error."""
        with pytest.raises(SchemaLoaderError, match="Invalid JSON"):
            load_schema_from_string("{oops", "json")

    def test_invalid_schema(self) -> None:
        """Structural problems surface as SchemaError."""
        document = {"tables": [{"name": "notes", "columns": [{"name": "body", "type": "string"}]}]}
        with pytest.raises(SchemaError, match="no primary key"):
            load_schema_from_string(json.dumps(document), "json")


class TestLoadSchemaFromFile:
    """Tests for load_schema_from_file."""

    def test_sql_file(self, tmp_path, ecommerce_ddl) -> None:
        """``.sql`` files are parsed as DDL."""
        path = tmp_path / "shop.sql"
        path.write_text(ecommerce_ddl, encoding="utf-8")
        assert len(load_schema_from_file(path)) == 4

    def test_json_file(self, tmp_path, ecommerce_data) -> None:
        """``.json`` files are parsed as schema documents."""
        path = tmp_path / "shop.json"
        path.write_text(json.dumps(ecommerce_data), encoding="utf-8")
        assert len(load_schema_from_file(str(path))) == 4

    def test_missing_file(self, tmp_path) -> None:
        """Missing files raise FileNotFoundError."""
        with pytest.raises(FileNotFoundError):
            load_schema_from_file(tmp_path / "missing.sql")

    def test_unsupported_suffix(self, tmp_path) -> None:
        """Other suffixes are rejected."""
        path = tmp_path / "shop.yaml"
        path.write_text("tables: []", encoding="utf-8")
        with pytest.raises(SchemaLoaderError, match="expected a .sql or .json file"):
            load_schema_from_file(path)

    def test_invalid_schema_is_reraised(self, tmp_path) -> None:
        """Schema errors propagate unchanged."""
        path = tmp_path / "broken.sql"
        path.write_text("CREATE TABLE notes (body TEXT);", encoding="utf-8")
        with pytest.raises(SchemaError):
            load_schema_from_file(path)
