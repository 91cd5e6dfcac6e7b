"""Tests for the per-language generators."""

import pytest

from schemaforge.codegen.core.generator import ArtifactKind, EntityContext
from schemaforge.codegen.core.relationships import resolve_relationships
from schemaforge.codegen.core.schema import Column, ForeignKeyRef, Schema, Table
from schemaforge.codegen.core.types import CanonicalType
from schemaforge.codegen.languages.go import create_go_generator
from schemaforge.codegen.languages.java import create_java_generator
from schemaforge.codegen.languages.python import create_python_generator
from schemaforge.codegen.languages.typescript import create_typescript_generator


def _entity(resolved, table_name: str, version: int = 1) -> EntityContext:
    return EntityContext(
        table=resolved.schema.table(table_name),
        relations=resolved.relations_for(table_name),
        resolved=resolved,
        migration_version=version,
    )


def _files(generator, resolved, table_name: str) -> dict:
    files = generator.generate_entity_files(_entity(resolved, table_name))
    return {f.path: f.content for f in files}


def _single_table_schema(column_name: str) -> Schema:
    return Schema(
        (
            Table(
                "lessons",
                (
                    Column("id", CanonicalType.INT64, nullable=False, primary_key=True),
                    Column(column_name, CanonicalType.STRING, length=40),
                ),
            ),
        )
    )


class TestJavaGenerator:
    """Tests for the Spring Boot target."""

    def setup_method(self) -> None:
        self.generator = create_java_generator()

    def test_one_file_per_artifact_kind(self, resolved) -> None:
        """Every artifact kind is rendered once per entity."""
        files = _files(self.generator, resolved, "products")
        assert len(files) == len(ArtifactKind)
        assert "src/main/java/com/example/api/products/service/ProductService.java" in files

    def test_generate_single_artifact(self, resolved) -> None:
        """A single artifact can be rendered on its own."""
        migration = self.generator.generate_artifact(
            ArtifactKind.MIGRATION, _entity(resolved, "products", 2)
        )
        assert migration.path == "src/main/resources/db/migration/V2__create_products_table.sql"
        assert "CREATE TABLE products (" in migration.content

    def test_entity_relationships(self, resolved) -> None:
        """JPA annotations describe both sides of every edge."""
        product = _files(self.generator, resolved, "products")[
            "src/main/java/com/example/api/products/entity/Product.java"
        ]
        assert "public class Product extends BaseEntity {" in product
        assert '@JoinColumn(name = "category_id", referencedColumnName = "id")' in product
        assert "private Category category;" in product
        assert '@ManyToMany(mappedBy = "products")' in product
        assert '@Column(name = "sku", nullable = false, unique = true, length = 50)' in product

        order = _files(self.generator, resolved, "orders")[
            "src/main/java/com/example/api/orders/entity/Order.java"
        ]
        assert 'name = "order_items",' in order
        assert 'joinColumns = @JoinColumn(name = "order_id")' in order

    def test_accessor_does_not_shadow_column(self) -> None:
        """A business column and a relation never share a field name."""
        schema = Schema(
            (
                Table(
                    "categories",
                    (Column("id", CanonicalType.INT64, nullable=False, primary_key=True),),
                ),
                Table(
                    "products",
                    (
                        Column("id", CanonicalType.INT64, nullable=False, primary_key=True),
                        Column("category", CanonicalType.STRING, length=40),
                        Column(
                            "category_id",
                            CanonicalType.INT64,
                            references=ForeignKeyRef("categories"),
                        ),
                    ),
                ),
            )
        )
        product = _files(self.generator, resolve_relationships(schema), "products")[
            "src/main/java/com/example/api/products/entity/Product.java"
        ]
        assert product.count(" category;") == 1
        assert "private String category;" in product
        assert "private Category categoryIdRef;" in product

    def test_reserved_sql_names(self) -> None:
        """JPA annotations and Flyway DDL quote SQL key words."""
        schema = Schema(
            (
                Table(
                    "order",
                    (
                        Column("id", CanonicalType.INT64, nullable=False, primary_key=True),
                        Column("user", CanonicalType.STRING, length=40),
                    ),
                ),
            )
        )
        files = _files(self.generator, resolve_relationships(schema), "order")
        entity = next(v for k, v in files.items() if k.endswith("/entity/Order.java"))
        assert '@Table(name = "\\"order\\"")' in entity
        assert '@Column(name = "\\"user\\"", length = 40)' in entity
        migration = files["src/main/resources/db/migration/V1__create_order_table.sql"]
        assert 'CREATE TABLE "order" (' in migration
        assert '"user" VARCHAR(40)' in migration

    def test_base_entity(self, resolved) -> None:
        """The base entity carries the audit columns."""
        files = {f.path: f.content for f in self.generator.base_files(resolved)}
        base = files["src/main/java/com/example/api/common/entity/BaseEntity.java"]
        assert "public abstract class BaseEntity {" in base
        assert '@Column(name = "deleted_at")' in base
        assert "@Version" in base

    def test_application_lists_every_entity(self, resolved) -> None:
        """The application class enables auditing and scans each entity and repository."""
        files = {f.path: f.content for f in self.generator.base_files(resolved)}
        app = files["src/main/java/com/example/api/Application.java"]
        assert "package com.example.api;" in app
        assert "@EnableJpaAuditing" in app
        assert "SpringApplication.run(Application.class, args);" in app
        for module, entity in (
            ("categories", "Category"),
            ("products", "Product"),
            ("orders", "Order"),
        ):
            assert f"com.example.api.{module}.entity.{entity}.class" in app
            assert f"com.example.api.{module}.repository.{entity}Repository.class" in app
        assert "    com.example.api.orders.repository.OrderRepository.class\n})" in app
        assert "OrderItem" not in app

    def test_reserved_column(self) -> None:
        """Java keywords are suffixed and reported."""
        resolved = resolve_relationships(_single_table_schema("class"))
        warnings = self.generator.validate_schema(resolved)
        assert warnings == [
            "java: column lessons.class is a reserved word and was renamed to 'class_'"
        ]


class TestPythonGenerator:
    """Tests for the FastAPI target."""

    def setup_method(self) -> None:
        self.generator = create_python_generator()

    def test_model(self, resolved) -> None:
        """Models use SQLAlchemy 2 typed mappings."""
        model = _files(self.generator, resolved, "products")["app/models/product.py"]
        assert "class Product(AuditedBase):" in model
        assert '__tablename__ = "products"' in model
        assert 'ForeignKey("categories.id", ondelete="SET NULL")' in model
        assert 'relationship(secondary="order_items"' in model

    def test_base_files(self, resolved) -> None:
        """Shared modules are generated under the package root."""
        files = {f.path: f.content for f in self.generator.base_files(resolved)}
        assert sorted(files) == [
            "app/core/database.py",
            "app/main.py",
            "app/models/__init__.py",
            "app/models/associations.py",
            "app/models/base.py",
            "app/repositories/base_repository.py",
        ]
        associations = files["app/models/associations.py"]
        assert "order_items_table = Table(" in associations
        assert 'ForeignKey("orders.id", ondelete="CASCADE")' in associations
        assert "from app.models.product import Product" in files["app/models/__init__.py"]

    def test_join_table_migration(self, resolved) -> None:
        """Join table migrations chain onto the previous revision."""
        table = resolved.schema.table("order_items")
        migration = self.generator.generate_join_table(table, resolved, 4)
        assert migration.path == "alembic/versions/0004_create_order_items.py"
        assert 'down_revision = "0003"' in migration.content
        assert 'sa.PrimaryKeyConstraint("order_id", "product_id")' in migration.content

    def test_reserved_column(self) -> None:
        """Python keywords are suffixed and reported."""
        resolved = resolve_relationships(_single_table_schema("from"))
        assert self.generator.validate_schema(resolved) == [
            "python: column lessons.from is a reserved word and was renamed to 'from_'"
        ]


class TestGoGenerator:
    """Tests for the Gin and GORM target."""

    def setup_method(self) -> None:
        self.generator = create_go_generator()

    def test_model_tags(self, resolved) -> None:
        """GORM tags carry column type and constraints."""
        model = _files(self.generator, resolved, "products")["internal/models/product.go"]
        assert "type Product struct {" in model
        assert "\tBaseModel\n" in model
        assert 'gorm:"column:sku;type:varchar(50);not null;unique"' in model
        assert 'gorm:"column:stock;type:integer;not null;default:0"' in model
        assert 'return "products"' in model

    def test_base_model(self, resolved) -> None:
        """The base model embeds the audit columns."""
        files = {f.path: f.content for f in self.generator.base_files(resolved)}
        assert sorted(files) == [
            "internal/dto/response.go",
            "internal/models/base.go",
            "internal/router/router.go",
        ]
        base = files["internal/models/base.go"]
        assert "type BaseModel struct {" in base
        assert '"gorm.io/gorm"' in base
        assert "column:deleted_at" in base
        assert "type PageResponse[T any] struct {" in files["internal/dto/response.go"]

    def test_router_registers_every_entity(self, resolved) -> None:
        """The router wires and mounts the handler of each entity table."""
        files = {f.path: f.content for f in self.generator.base_files(resolved)}
        router = files["internal/router/router.go"]
        assert "package router" in router
        assert '"example.com/api/internal/handler"' in router
        assert "func Register(r gin.IRouter, db *gorm.DB) {" in router
        for entity in ("Category", "Product", "Order"):
            assert (
                f"handler.New{entity}Handler(service.New{entity}Service("
                f"repository.New{entity}Repository(db))).Register(r)"
            ) in router
        assert "OrderItem" not in router

    def test_handler_uses_shared_responses(self, resolved) -> None:
        """Handlers answer with the shared page and error bodies."""
        handler = _files(self.generator, resolved, "products")[
            "internal/handler/product_handler.go"
        ]
        assert "dto.PageResponse[dto.ProductDTO]{Content: items" in handler
        assert 'dto.ErrorResponse{Error: "invalid id"}' in handler
        assert "gin.H" not in handler

    def test_reserved_table_is_quoted(self) -> None:
        """golang-migrate files quote a table named after a key word."""
        schema = Schema(
            (
                Table(
                    "group",
                    (Column("id", CanonicalType.INT64, nullable=False, primary_key=True),),
                ),
            )
        )
        migration = _files(self.generator, resolve_relationships(schema), "group")[
            "migrations/000001_create_group.up.sql"
        ]
        assert 'CREATE TABLE IF NOT EXISTS "group" (' in migration
        assert 'CREATE INDEX idx_group_active ON "group" (active);' in migration

    def test_exported_names_are_not_reported(self) -> None:
        """Exported Go identifiers never clash with keywords."""
        resolved = resolve_relationships(_single_table_schema("type"))
        assert self.generator.validate_schema(resolved) == []


class TestTypeScriptGenerator:
    """Tests for the NestJS and TypeORM target."""

    def setup_method(self) -> None:
        self.generator = create_typescript_generator()

    def test_entity(self, resolved) -> None:
        """TypeORM entities declare both sides of the join table."""
        order = _files(self.generator, resolved, "orders")["src/orders/entities/order.entity.ts"]
        assert "@Entity({ name: 'orders' })" in order
        assert "export class Order extends BaseEntity {" in order
        assert "name: 'order_items'," in order

    def test_module_files(self, resolved) -> None:
        """Each entity gets a Nest module registered in the root module."""
        files = {f.path: f.content for f in self.generator.base_files(resolved)}
        module = files["src/products/product.module.ts"]
        assert "import { ProductService } from './services/product.service';" in module
        assert "export class ProductModule {}" in module
        assert "ProductModule" in files["src/app.module.ts"]
        assert "src/common/entities/base.entity.ts" in files
        assert "src/order-items/order-item.module.ts" not in files

    def test_reserved_column(self) -> None:
        """TypeScript keywords are suffixed and reported."""
        resolved = resolve_relationships(_single_table_schema("delete"))
        warnings = self.generator.validate_schema(resolved)
        assert len(warnings) == 1
        assert "typescript: column lessons.delete is a reserved word" in warnings[0]


@pytest.mark.parametrize(
    "factory",
    [
        create_java_generator,
        create_python_generator,
        create_go_generator,
        create_typescript_generator,
    ],
)
def test_formatted_output_ends_with_single_newline(factory, resolved) -> None:
    """Generated files never end in blank lines."""
    for content in _files(factory(), resolved, "categories").values():
        assert content.endswith("\n")
        assert not content.endswith("\n\n")
