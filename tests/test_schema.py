"""Tests for the canonical schema model and its validation."""

import pytest

from schemaforge.codegen.core.schema import (
    AuditFieldSet,
    Column,
    ForeignKeyRef,
    Schema,
    SchemaError,
    Table,
    build_schema,
)
from schemaforge.codegen.core.types import CanonicalType


def _pk(name: str = "id", canonical: CanonicalType = CanonicalType.INT64) -> Column:
    return Column(name, canonical, nullable=False, primary_key=True)


class TestSchemaFromDict:
    """Tests for building a schema from plain data."""

    def test_ecommerce_tables(self, ecommerce_schema) -> None:
        """Every table of the document is kept in order."""
        assert [t.name for t in ecommerce_schema.tables] == [
            "categories",
            "products",
            "orders",
            "order_items",
        ]
        assert len(ecommerce_schema) == 4

    def test_references_are_parsed(self, ecommerce_schema) -> None:
        """``table.column`` references become ForeignKeyRef values."""
        products = ecommerce_schema.table("products")
        assert products.column("category_id").references == ForeignKeyRef("categories", "id")

    def test_single_column_unique_constraint_marks_column(self, ecommerce_schema) -> None:
        """One-column unique constraints are folded into the column."""
        categories = ecommerce_schema.table("categories")
        assert categories.column("name").unique
        assert categories.unique_constraints == ()

    def test_primary_key_is_never_nullable(self, ecommerce_schema) -> None:
        """Primary keys are not null whatever the document says."""
        assert not ecommerce_schema.table("orders").primary_key.nullable

    def test_module_grouping_override(self, ecommerce_data) -> None:
        """module_grouping sets the module of listed tables."""
        schema = Schema.from_dict(ecommerce_data, {"products": "catalog"})
        assert schema.table("products").module_name == "catalog"
        assert schema.table("orders").module_name == "orders"

    def test_unknown_type_raises(self) -> None:
        """Types outside the canonical taxonomy are rejected."""
        data = {"tables": [{"name": "t", "columns": [{"name": "x", "type": "geometry"}]}]}
        with pytest.raises(SchemaError, match="geometry"):
            Schema.from_dict(data)

    def test_document_must_have_tables(self) -> None:
        """A document without a tables list is rejected."""
        with pytest.raises(SchemaError):
            Schema.from_dict({"columns": []})


class TestSchemaValidation:
    """Tests for Schema.validate."""

    def test_duplicate_table(self) -> None:
        """Table names are unique regardless of case."""
        schema = Schema((Table("users", (_pk(),)), Table("USERS", (_pk(),))))
        with pytest.raises(SchemaError, match="Duplicate table"):
            schema.validate()

    def test_duplicate_column(self) -> None:
        """Column names are unique within a table."""
        table = Table(
            "users",
            (_pk(), Column("name", CanonicalType.STRING), Column("Name", CanonicalType.STRING)),
        )
        with pytest.raises(SchemaError, match="Duplicate column"):
            build_schema([table])

    def test_missing_primary_key(self) -> None:
        """Every table needs a primary key."""
        with pytest.raises(SchemaError, match="no primary key"):
            build_schema([Table("logs", (Column("message", CanonicalType.STRING),))])

    def test_unsupported_primary_key_type(self) -> None:
        """Primary keys are limited to integers, uuids and strings."""
        with pytest.raises(SchemaError, match="unsupported type"):
            build_schema([Table("points", (_pk("id", CanonicalType.FLOAT64),))])

    @pytest.mark.parametrize(
        "canonical",
        [CanonicalType.INT32, CanonicalType.INT64, CanonicalType.UUID, CanonicalType.STRING],
    )
    def test_supported_primary_key_types(self, canonical) -> None:
        """Each allowed primary key type validates."""
        schema = build_schema([Table("things", (_pk("id", canonical),))])
        assert schema.table("things").primary_key.type == canonical

    def test_foreign_key_to_unknown_table(self) -> None:
        """Foreign keys must point at a declared table."""
        table = Table(
            "orders",
            (
                _pk(),
                Column("customer_id", CanonicalType.INT64, references=ForeignKeyRef("customers")),
            ),
        )
        with pytest.raises(SchemaError, match="unknown table 'customers'"):
            build_schema([table])

    def test_composite_key_only_for_join_tables(self) -> None:
        """A composite key must be made of exactly two foreign keys."""
        table = Table(
            "versions",
            (
                Column("doc", CanonicalType.INT64, primary_key=True),
                Column("rev", CanonicalType.INT32, primary_key=True),
            ),
        )
        with pytest.raises(SchemaError, match="composite primary key"):
            build_schema([table])

    def test_composite_key_of_two_foreign_keys_is_valid(self) -> None:
        """Join tables keyed by their two foreign keys are accepted."""
        tags = Table("tags", (_pk(),))
        posts = Table("posts", (_pk(),))
        post_tags = Table(
            "post_tags",
            (
                Column(
                    "post_id",
                    CanonicalType.INT64,
                    primary_key=True,
                    references=ForeignKeyRef("posts"),
                ),
                Column(
                    "tag_id",
                    CanonicalType.INT64,
                    primary_key=True,
                    references=ForeignKeyRef("tags"),
                ),
            ),
        )
        schema = build_schema([tags, posts, post_tags])
        assert schema.table("post_tags").has_composite_key


class TestTable:
    """Tests for table helpers."""

    def test_business_columns_exclude_audit_and_key(self, ecommerce_schema) -> None:
        """Audit columns declared in a table are not business columns."""
        products = ecommerce_schema.table("products")
        names = [c.name for c in products.business_columns()]
        assert names == ["name", "price", "sku", "stock", "category_id"]

    def test_scalar_columns_exclude_foreign_keys(self, ecommerce_schema) -> None:
        """Foreign keys are not scalar fields."""
        products = ecommerce_schema.table("products")
        assert "category_id" not in [c.name for c in products.scalar_columns()]

    def test_is_unique(self, ecommerce_schema) -> None:
        """Uniqueness comes from the column flag or a one-column constraint."""
        products = ecommerce_schema.table("products")
        assert products.is_unique("sku")
        assert not products.is_unique("name")
        assert ecommerce_schema.table("orders").is_unique("order_number")

    def test_column_lookup_is_case_insensitive(self, ecommerce_schema) -> None:
        """Columns are found regardless of case."""
        assert ecommerce_schema.table("Products").column("SKU").name == "sku"


class TestAuditFieldSet:
    """Tests for the configurable audit column names."""

    def test_default_roles(self) -> None:
        """The default set covers the nine audit roles."""
        audit = AuditFieldSet()
        assert audit.is_audit("created_at")
        assert audit.is_audit("VERSION")
        assert not audit.is_audit("name")
        assert len(audit.names) == 9

    def test_custom_names(self) -> None:
        """Roles can be renamed."""
        audit = AuditFieldSet.from_dict({"active": "estado", "created_at": "fecha_creacion"})
        assert audit.is_audit("estado")
        assert not audit.is_audit("active")
        assert audit.columns_by_role()["created_at"].name == "fecha_creacion"

    def test_unknown_role(self) -> None:
        """Unknown roles are rejected."""
        with pytest.raises(SchemaError, match="owner"):
            AuditFieldSet.from_dict({"owner": "owner_id"})

    def test_column_definitions(self) -> None:
        """Base columns have fixed types, nullability and defaults."""
        columns = AuditFieldSet().columns_by_role()
        assert columns["active"].type == CanonicalType.BOOLEAN
        assert columns["active"].default == "TRUE"
        assert not columns["created_at"].nullable
        assert columns["updated_at"].nullable
        assert columns["created_by"].length == 100
        assert columns["version"].type == CanonicalType.INT64
