"""Shared fixtures: a small e-commerce schema used across the test suite."""

import logging

import pytest

from schemaforge.codegen.core.relationships import resolve_relationships
from schemaforge.codegen.core.schema import Schema

ECOMMERCE = {
    "tables": [
        {
            "name": "categories",
            "columns": [
                {"name": "id", "type": "int64", "primary_key": True},
                {"name": "name", "type": "string", "length": 100, "nullable": False},
                {"name": "description", "type": "string", "length": 500},
            ],
            "unique_constraints": [["name"]],
        },
        {
            "name": "products",
            "columns": [
                {"name": "id", "type": "int64", "primary_key": True},
                {"name": "name", "type": "string", "length": 200, "nullable": False},
                {
                    "name": "price",
                    "type": "decimal",
                    "precision": 10,
                    "scale": 2,
                    "nullable": False,
                },
                {
                    "name": "sku",
                    "type": "string",
                    "length": 50,
                    "nullable": False,
                    "unique": True,
                },
                {"name": "stock", "type": "int32", "nullable": False, "default": "0"},
                {"name": "category_id", "type": "int64", "references": "categories.id"},
                {"name": "active", "type": "boolean", "nullable": False, "default": "true"},
                {"name": "created_at", "type": "datetime", "nullable": False},
            ],
        },
        {
            "name": "orders",
            "columns": [
                {"name": "id", "type": "int64", "primary_key": True},
                {"name": "order_number", "type": "string", "length": 30, "nullable": False},
                {"name": "status", "type": "string", "length": 20, "default": "'pending'"},
                {"name": "total", "type": "decimal", "precision": 12, "scale": 2},
                {"name": "placed_at", "type": "datetime"},
            ],
            "unique_constraints": [["order_number"]],
        },
        {
            "name": "order_items",
            "columns": [
                {"name": "id", "type": "int64", "primary_key": True},
                {
                    "name": "order_id",
                    "type": "int64",
                    "nullable": False,
                    "references": "orders.id",
                },
                {
                    "name": "product_id",
                    "type": "int64",
                    "nullable": False,
                    "references": "products.id",
                },
            ],
        },
    ]
}

ECOMMERCE_DDL = """
-- Catalog
CREATE TABLE categories (
    id BIGSERIAL PRIMARY KEY,
    name VARCHAR(100) NOT NULL UNIQUE,
    description VARCHAR(500)
);

CREATE TABLE products (
    id BIGSERIAL PRIMARY KEY,
    name VARCHAR(200) NOT NULL,
    price NUMERIC(10, 2) NOT NULL CHECK (price >= 0),
    sku VARCHAR(50) NOT NULL UNIQUE,
    stock INTEGER NOT NULL DEFAULT 0,
    category_id BIGINT REFERENCES categories(id) ON DELETE SET NULL
);

/* Sales */
CREATE TABLE orders (
    id BIGSERIAL PRIMARY KEY,
    order_number VARCHAR(30) NOT NULL,
    status VARCHAR(20) DEFAULT 'pending',
    total NUMERIC(12, 2),
    placed_at TIMESTAMP,
    CONSTRAINT uk_orders_number UNIQUE (order_number)
);

CREATE TABLE order_items (
    id BIGSERIAL PRIMARY KEY,
    order_id BIGINT NOT NULL,
    product_id BIGINT NOT NULL
);

ALTER TABLE order_items ADD CONSTRAINT fk_order_items_order
    FOREIGN KEY (order_id) REFERENCES orders(id) ON DELETE CASCADE;
ALTER TABLE order_items ADD CONSTRAINT fk_order_items_product
    FOREIGN KEY (product_id) REFERENCES products(id);

INSERT INTO categories (name) VALUES ('Books; and more');
"""


@pytest.fixture(autouse=True)
def propagate_logs():
    """Let caplog see records from the schemaforge logger hierarchy."""
    logger = logging.getLogger("schemaforge")
    logger.propagate = True
    yield
    logger.propagate = False


@pytest.fixture
def ecommerce_data() -> dict:
    """Raw schema document of the e-commerce fixture."""
    return ECOMMERCE


@pytest.fixture
def ecommerce_ddl() -> str:
    """The same e-commerce schema written as PostgreSQL DDL."""
    return ECOMMERCE_DDL


@pytest.fixture
def ecommerce_schema() -> Schema:
    """Validated e-commerce schema."""
    schema = Schema.from_dict(ECOMMERCE)
    schema.validate()
    return schema


@pytest.fixture
def resolved(ecommerce_schema):
    """Relationships of the e-commerce schema with the default audit set."""
    return resolve_relationships(ecommerce_schema)
