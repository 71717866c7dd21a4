"""
tests/test_templates.py
Unit tests for quickcrud.templates (TemplateGenerator).

Tests cover:
- Naming derived from the entity (table, slug, classes)
- Model, migration, request, seeder, controller, views, data-table content
- Seeder type→generator mapping
- Route and seeder-registration lines
- render_all ordering and paths
"""

from __future__ import annotations

from datetime import datetime

import pytest

from quickcrud.models import ArtifactKind, CrudConfig, EntitySpec
from quickcrud.templates import (
    DEFAULT_SEEDER_GENERATOR,
    TemplateGenerator,
    seeder_generator_for,
)
from quickcrud.validators import build_entity


@pytest.fixture()
def gen() -> TemplateGenerator:
    return TemplateGenerator()


# ===========================================================================
# Naming
# ===========================================================================


class TestEntityNaming:

    @pytest.mark.parametrize(
        "name, table, slug, variable",
        [
            ("Product", "products", "products", "product"),
            ("OrderItem", "order_items", "order-items", "orderItem"),
            ("Category", "categories", "categories", "category"),
            ("Person", "people", "people", "person"),
            ("Box", "boxes", "boxes", "box"),
            ("Status", "statuses", "statuses", "status"),
        ],
    )
    def test_derived_names(self, name: str, table: str, slug: str, variable: str) -> None:
        entity = build_entity(name, "title:string")
        assert entity.table_name == table
        assert entity.route_slug == slug
        assert entity.view_directory == slug
        assert entity.variable_name == variable

    def test_class_names(self, product: EntitySpec) -> None:
        assert product.class_name == "Product"
        assert product.controller_class == "ProductController"
        assert product.request_class == "ProductRequest"
        assert product.seeder_class == "ProductSeeder"
        assert product.datatable_class == "ProductDataTable"


# ===========================================================================
# Model
# ===========================================================================


class TestGenerateModel:

    def test_fillable_in_field_order(self, gen: TemplateGenerator, product: EntitySpec) -> None:
        code = gen.generate_model(product)
        start = code.index("protected $fillable = [")
        block = code[start:code.index("];", start)]
        assert block.index("'title'") < block.index("'price'") < block.index("'in_stock'")

    def test_namespace_and_traits(self, gen: TemplateGenerator, product: EntitySpec) -> None:
        code = gen.generate_model(product)
        assert code.startswith("<?php\n")
        assert "namespace App\\Models;" in code
        assert "class Product extends Model" in code
        assert "use HasFactory;" in code
        assert "protected $table = 'products';" in code


# ===========================================================================
# Migration
# ===========================================================================


class TestGenerateMigration:

    def test_columns(self, gen: TemplateGenerator, product: EntitySpec) -> None:
        code = gen.generate_migration(product)
        assert "Schema::create('products', function (Blueprint $table) {" in code
        assert "$table->string('title');" in code
        assert "$table->decimal('price');" in code
        assert "$table->boolean('in_stock');" in code

    def test_id_first_timestamps_last(self, gen: TemplateGenerator, product: EntitySpec) -> None:
        code = gen.generate_migration(product)
        assert code.index("$table->id();") < code.index("$table->string('title');")
        assert code.index("$table->boolean('in_stock');") < code.index("$table->timestamps();")

    def test_down_drops_table(self, gen: TemplateGenerator, product: EntitySpec) -> None:
        assert "Schema::dropIfExists('products');" in gen.generate_migration(product)

    def test_unknown_type_passed_through(self, gen: TemplateGenerator) -> None:
        entity = build_entity("Shape", "outline:polygon")
        assert "$table->polygon('outline');" in gen.generate_migration(entity)

    def test_path_uses_timestamp(self, gen: TemplateGenerator, product: EntitySpec) -> None:
        path = gen.migration_path(product, datetime(2024, 1, 2, 3, 4, 5))
        assert path == "database/migrations/2024_01_02_030405_create_products_table.php"


# ===========================================================================
# Request
# ===========================================================================


class TestGenerateRequest:

    def test_rules(self, gen: TemplateGenerator, product: EntitySpec) -> None:
        code = gen.generate_request(product)
        assert "class ProductRequest extends FormRequest" in code
        assert "return true;" in code
        for name in ("title", "price", "in_stock"):
            assert f"'{name}' => 'required'," in code


# ===========================================================================
# Seeder
# ===========================================================================


class TestSeederMapping:

    @pytest.mark.parametrize(
        "type_token, expected",
        [
            ("email", "$faker->unique()->safeEmail"),
            ("integer", "$faker->numberBetween(1, 100)"),
            ("bigInteger", "$faker->numberBetween(1, 100)"),
            ("decimal", "$faker->randomFloat(2, 1, 1000)"),
            ("boolean", "$faker->boolean"),
            ("text", "$faker->sentence"),
            ("date", "$faker->date()"),
            ("timestamp", "$faker->dateTime()"),
            ("phone_number", "$faker->phoneNumber"),
            ("city", "$faker->city"),
            ("slug", "Str::slug($faker->words(3, true))"),
            (" EMAIL ", "$faker->unique()->safeEmail"),
        ],
    )
    def test_known_types(self, type_token: str, expected: str) -> None:
        assert seeder_generator_for(type_token) == expected

    def test_unknown_type_falls_back_to_word(self) -> None:
        assert seeder_generator_for("polygon") == DEFAULT_SEEDER_GENERATOR == "$faker->word"


class TestGenerateSeeder:

    def test_rows_and_insert(self, gen: TemplateGenerator) -> None:
        entity = build_entity("Customer", "email:email,age:integer")
        code = gen.generate_seeder(entity)
        assert "class CustomerSeeder extends Seeder" in code
        assert "'email' => $faker->unique()->safeEmail," in code
        assert "'age' => $faker->numberBetween(1, 100)," in code
        assert "'created_at' => now()," in code
        assert "'updated_at' => now()," in code
        assert "for ($i = 0; $i < 5; $i++) {" in code
        assert "DB::table('customers')->insert($rows);" in code

    def test_seed_rows_from_config(self, product: EntitySpec) -> None:
        code = TemplateGenerator(CrudConfig(seed_rows=25)).generate_seeder(product)
        assert "for ($i = 0; $i < 25; $i++) {" in code

    def test_str_import_only_when_needed(self, gen: TemplateGenerator, product: EntitySpec) -> None:
        assert "use Illuminate\\Support\\Str;" not in gen.generate_seeder(product)
        entity = build_entity("Post", "title:string,slug:slug")
        assert "use Illuminate\\Support\\Str;" in gen.generate_seeder(entity)


# ===========================================================================
# Controller
# ===========================================================================


class TestGenerateController:

    def test_standard_handlers(self, gen: TemplateGenerator, product: EntitySpec) -> None:
        code = gen.generate_controller(product)
        assert "class ProductController extends Controller" in code
        for signature in (
            "public function index(ProductDataTable $dataTable)",
            "public function create()",
            "public function store(ProductRequest $request)",
            "public function edit(Product $product)",
            "public function update(ProductRequest $request, Product $product)",
            "public function destroy(Product $product)",
        ):
            assert signature in code

    def test_renders_and_redirects(self, gen: TemplateGenerator, product: EntitySpec) -> None:
        code = gen.generate_controller(product)
        assert "return $dataTable->render('products.index');" in code
        assert "return view('products.create');" in code
        assert "Product::create($request->validated());" in code
        assert code.count("return redirect()->route('products.index');") == 3

    def test_compound_name_binding(self, gen: TemplateGenerator) -> None:
        code = gen.generate_controller(build_entity("OrderItem", "quantity:integer"))
        assert "public function edit(OrderItem $orderItem)" in code
        assert "return view('order-items.edit', compact('orderItem'));" in code
        assert "return redirect()->route('order-items.index');" in code


# ===========================================================================
# Views & data-table
# ===========================================================================


class TestGenerateViews:

    def test_three_placeholders(self, gen: TemplateGenerator, product: EntitySpec) -> None:
        views = gen.generate_views(product)
        assert list(views) == ["index", "create", "edit"]
        assert views["index"] == "{{-- Products: index view (products.index) --}}\n"

    def test_view_path(self, gen: TemplateGenerator, product: EntitySpec) -> None:
        assert gen.view_path(product, "edit") == "resources/views/products/edit.blade.php"


class TestGenerateDataTable:

    def test_bound_to_model(self, gen: TemplateGenerator, product: EntitySpec) -> None:
        code = gen.generate_datatable(product)
        assert "namespace App\\DataTables;" in code
        assert "class ProductDataTable extends DataTable" in code
        assert "public function query(Product $model): QueryBuilder" in code
        assert "return $model->newQuery();" in code

    def test_empty_columns(self, gen: TemplateGenerator, product: EntitySpec) -> None:
        code = gen.generate_datatable(product)
        start = code.index("public function getColumns(): array")
        assert "return [];" in code[start:start + 80]


# ===========================================================================
# Shared-file lines
# ===========================================================================


class TestSharedFileLines:

    def test_route_lines(self, product: EntitySpec) -> None:
        assert TemplateGenerator.route_import_line(product) == (
            "use App\\Http\\Controllers\\ProductController;"
        )
        assert TemplateGenerator.route_resource_line(product) == (
            "Route::resource('products', ProductController::class);"
        )

    def test_seeder_call_line(self, product: EntitySpec) -> None:
        assert TemplateGenerator.seeder_call_line(product) == "$this->call(ProductSeeder::class);"


# ===========================================================================
# render_all
# ===========================================================================


class TestRenderAll:

    def test_order_and_paths(self, gen: TemplateGenerator, product: EntitySpec) -> None:
        artifacts = gen.render_all(product, timestamp=datetime(2024, 5, 17, 9, 30, 15))
        assert [a.label for a in artifacts] == [
            "model",
            "migration",
            "request",
            "seeder",
            "controller",
            "view:index",
            "view:create",
            "view:edit",
            "datatable",
        ]
        paths = {a.label: a.target_path for a in artifacts}
        assert paths["model"] == "app/Models/Product.php"
        assert paths["migration"] == (
            "database/migrations/2024_05_17_093015_create_products_table.php"
        )
        assert paths["request"] == "app/Http/Requests/ProductRequest.php"
        assert paths["seeder"] == "database/seeders/ProductSeeder.php"
        assert paths["controller"] == "app/Http/Controllers/ProductController.php"
        assert paths["datatable"] == "app/DataTables/ProductDataTable.php"

    def test_kinds(self, gen: TemplateGenerator, product: EntitySpec) -> None:
        kinds = [a.kind for a in gen.render_all(product)]
        assert kinds.count(ArtifactKind.VIEW) == 3

    def test_custom_directories(self, product: EntitySpec) -> None:
        gen = TemplateGenerator(CrudConfig(models_dir="app", views_dir="resources/views/admin"))
        paths = {a.label: a.target_path for a in gen.render_all(product)}
        assert paths["model"] == "app/Product.php"
        assert paths["view:index"] == "resources/views/admin/products/index.blade.php"
