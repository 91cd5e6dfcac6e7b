"""Tests for the SQL DDL input adapter."""

import pytest

from schemaforge.codegen.core.schema import ForeignKeyRef, SchemaError
from schemaforge.codegen.core.types import CanonicalType
from schemaforge.ddl_parser import (
    parse_ddl,
    split_statements,
    strip_comments,
    tokenize,
)


class TestLexicalHelpers:
    """Tests for comment stripping and statement splitting."""

    def test_strip_comments(self) -> None:
        """Line and block comments disappear, string contents stay."""
        text = "SELECT 1; -- trailing\n/* block\ncomment */ SELECT '-- not a comment';"
        stripped = strip_comments(text)
        assert "trailing" not in stripped
        assert "block" not in stripped
        assert "'-- not a comment'" in stripped

    def test_split_ignores_semicolons_in_strings(self) -> None:
        """Semicolons inside quoted text do not end a statement."""
        statements = split_statements("INSERT INTO t VALUES ('a;b'); SELECT 2;")
        assert statements == ["INSERT INTO t VALUES ('a;b')", "SELECT 2"]

    def test_split_ignores_dollar_quoted_bodies(self) -> None:
        """Function bodies between dollar quotes stay in one statement."""
        script = "CREATE FUNCTION f() RETURNS int AS $$ SELECT 1; $$ LANGUAGE sql; SELECT 3;"
        assert len(split_statements(script)) == 2

    def test_tokenize_keeps_groups(self) -> None:
        """Parenthesized groups are single tokens."""
        assert tokenize("price NUMERIC(10, 2) NOT NULL") == [
            "price",
            "NUMERIC",
            "(10, 2)",
            "NOT",
            "NULL",
        ]


class TestParseDDL:
    """Tests for parse_ddl."""

    def test_ecommerce_script(self, ecommerce_ddl) -> None:
        """The fixture script yields the four tables in order."""
        schema = parse_ddl(ecommerce_ddl)
        assert [t.name for t in schema.tables] == [
            "categories",
            "products",
            "orders",
            "order_items",
        ]

    def test_column_types_and_modifiers(self, ecommerce_ddl) -> None:
        """Types, lengths, precision and nullability are read."""
        products = parse_ddl(ecommerce_ddl).table("products")

        assert products.primary_key.name == "id"
        assert products.primary_key.type == CanonicalType.INT64
        assert not products.primary_key.nullable

        name = products.column("name")
        assert name.type == CanonicalType.STRING
        assert name.length == 200
        assert not name.nullable

        price = products.column("price")
        assert price.type == CanonicalType.DECIMAL
        assert (price.precision, price.scale) == (10, 2)

        assert products.column("sku").unique
        assert products.column("stock").default == "0"
        assert products.column("category_id").nullable

    def test_inline_reference(self, ecommerce_ddl) -> None:
        """REFERENCES on a column creates a foreign key."""
        products = parse_ddl(ecommerce_ddl).table("products")
        assert products.column("category_id").references == ForeignKeyRef("categories", "id")

    def test_alter_table_foreign_keys(self, ecommerce_ddl) -> None:
        """ALTER TABLE ... ADD FOREIGN KEY attaches references."""
        items = parse_ddl(ecommerce_ddl).table("order_items")
        assert items.column("order_id").references == ForeignKeyRef("orders", "id")
        assert items.column("product_id").references == ForeignKeyRef("products", "id")

    def test_named_unique_constraint(self, ecommerce_ddl) -> None:
        """CONSTRAINT name UNIQUE (col) marks the column unique."""
        orders = parse_ddl(ecommerce_ddl).table("orders")
        assert orders.column("order_number").unique
        assert orders.column("status").default == "'pending'"

    def test_table_level_keys(self) -> None:
        """Table-level PRIMARY KEY, FOREIGN KEY and composite UNIQUE are read."""
        schema = parse_ddl(
            """
            CREATE TABLE IF NOT EXISTS users (
                id INTEGER NOT NULL,
                email TEXT NOT NULL,
                tenant VARCHAR(40) NOT NULL,
                PRIMARY KEY (id),
                UNIQUE (tenant, email)
            );
            CREATE TABLE sessions (
                token UUID,
                user_id INTEGER NOT NULL,
                started_at TIMESTAMPTZ DEFAULT now(),
                CONSTRAINT pk_sessions PRIMARY KEY (token),
                CONSTRAINT fk_sessions_user FOREIGN KEY (user_id) REFERENCES users (id)
            );
            """
        )
        users = schema.table("users")
        assert users.primary_key.name == "id"
        assert users.unique_constraints == (("tenant", "email"),)

        sessions = schema.table("sessions")
        assert sessions.primary_key.type == CanonicalType.UUID
        assert sessions.column("user_id").references == ForeignKeyRef("users", "id")
        assert sessions.column("started_at").type == CanonicalType.INSTANT
        assert sessions.column("started_at").default == "now()"

    def test_identifiers(self) -> None:
        """Unquoted names are lowercased, quoted ones keep their case."""
        schema = parse_ddl(
            'CREATE TABLE public.Accounts (ID BIGINT PRIMARY KEY, "DisplayName" TEXT);'
        )
        accounts = schema.table("accounts")
        assert accounts.name == "accounts"
        assert accounts.primary_key.name == "id"
        assert accounts.columns[1].name == "DisplayName"

    def test_multi_word_types(self) -> None:
        """Multi-word type spellings map to the right canonical type."""
        table = parse_ddl(
            """
            CREATE TABLE readings (
                id BIGINT PRIMARY KEY,
                value DOUBLE PRECISION,
                label CHARACTER VARYING(30),
                taken_at TIMESTAMP WITH TIME ZONE,
                local_at TIMESTAMP WITHOUT TIME ZONE,
                span INTERVAL,
                flag TINYINT(1),
                payload BYTEA
            );
            """
        ).table("readings")
        assert table.column("value").type == CanonicalType.FLOAT64
        assert table.column("label").length == 30
        assert table.column("taken_at").type == CanonicalType.INSTANT
        assert table.column("local_at").type == CanonicalType.DATETIME
        assert table.column("span").type == CanonicalType.DURATION
        assert table.column("flag").type == CanonicalType.BOOLEAN
        assert table.column("payload").type == CanonicalType.BYTES

    def test_mysql_dialect(self) -> None:
        """MySQL attributes, inline keys and table options are tolerated."""
        table = parse_ddl(
            """
            CREATE TABLE `customers` (
                `id` INT UNSIGNED NOT NULL AUTO_INCREMENT,
                `email` VARCHAR(120) NOT NULL COMMENT 'login',
                `updated` DATETIME DEFAULT CURRENT_TIMESTAMP ON UPDATE CURRENT_TIMESTAMP,
                PRIMARY KEY (`id`),
                UNIQUE KEY `uk_email` (`email`),
                KEY `idx_updated` (`updated`)
            ) ENGINE=InnoDB COMMENT='registered customers';
            """
        ).table("customers")
        assert table.primary_key.type == CanonicalType.INT32
        assert table.column("email").unique
        assert table.column("email").comment == "login"
        assert table.column("updated").default == "CURRENT_TIMESTAMP"
        assert table.comment == "registered customers"

    def test_column_named_key(self) -> None:
        """A column called ``key`` is not mistaken for an index."""
        table = parse_ddl(
            "CREATE TABLE settings (id INT PRIMARY KEY, key VARCHAR(50) NOT NULL);"
        ).table("settings")
        assert table.column("key").length == 50

    def test_unique_index_and_comments(self) -> None:
        """CREATE UNIQUE INDEX and COMMENT ON statements are applied."""
        table = parse_ddl(
            """
            CREATE TABLE tags (id SERIAL PRIMARY KEY, slug TEXT NOT NULL);
            CREATE UNIQUE INDEX uk_tags_slug ON tags (slug);
            CREATE INDEX idx_tags_slug ON tags (slug);
            COMMENT ON TABLE tags IS 'Free-form labels';
            COMMENT ON COLUMN tags.slug IS 'URL-safe name';
            """
        ).table("tags")
        assert table.column("slug").unique
        assert table.comment == "Free-form labels"
        assert table.column("slug").comment == "URL-safe name"

    def test_other_statements_are_skipped(self) -> None:
        """Statements that do not shape tables are ignored."""
        schema = parse_ddl(
            """
            SET search_path = public;
            CREATE EXTENSION IF NOT EXISTS "uuid-ossp";
            CREATE TABLE notes (id UUID PRIMARY KEY DEFAULT gen_random_uuid(), body TEXT);
            INSERT INTO notes (body) VALUES ('hello');
            GRANT SELECT ON notes TO reader;
            """
        )
        assert [t.name for t in schema.tables] == ["notes"]

    def test_module_grouping(self, ecommerce_ddl) -> None:
        """module_grouping assigns modules to tables."""
        schema = parse_ddl(ecommerce_ddl, {"products": "catalog", "categories": "catalog"})
        assert schema.table("products").module_name == "catalog"
        assert schema.table("orders").module_name == "orders"


class TestParseDDLErrors:
    """Tests for DDL that cannot become a schema."""

    def test_unknown_type(self) -> None:
        """Unknown SQL types raise SchemaError naming the column."""
        with pytest.raises(SchemaError, match="places.location"):
            parse_ddl("CREATE TABLE places (id INT PRIMARY KEY, location GEOMETRY);")

    def test_array_type(self) -> None:
        """Array columns are not supported."""
        with pytest.raises(SchemaError, match="array"):
            parse_ddl("CREATE TABLE posts (id INT PRIMARY KEY, tags TEXT[]);")

    def test_alter_unknown_table(self) -> None:
        """ALTER TABLE on an undeclared table fails."""
        with pytest.raises(SchemaError, match="unknown table"):
            parse_ddl("ALTER TABLE ghosts ADD COLUMN name TEXT;")

    def test_missing_primary_key(self) -> None:
        """The parsed schema is validated."""
        with pytest.raises(SchemaError, match="no primary key"):
            parse_ddl("CREATE TABLE logs (message TEXT);")

    def test_unbalanced_parentheses(self) -> None:
        """Truncated statements are reported."""
        with pytest.raises(SchemaError):
            parse_ddl("CREATE TABLE broken (id INT PRIMARY KEY, name VARCHAR(20)")

    def test_foreign_key_to_unknown_column(self) -> None:
        """Table-level foreign keys must name a declared column."""
        with pytest.raises(SchemaError, match="Unknown column"):
            parse_ddl(
                """
                CREATE TABLE a (id INT PRIMARY KEY);
                CREATE TABLE b (id INT PRIMARY KEY, FOREIGN KEY (a_id) REFERENCES a (id));
                """
            )
