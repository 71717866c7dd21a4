"""
tests/test_generator.py
Integration tests for quickcrud.generator (CrudGenerator pipeline).

Tests cover:
- Full generation into a skeleton Laravel app
- Step order and statuses
- Idempotence of a second run
- Runner failures, disabled runners and step dependencies
- continue-on-error vs fail-fast
- Dry runs
- Config loading (YAML + overrides)
"""

from __future__ import annotations

import pathlib
from datetime import datetime
from typing import Callable, List

import pytest
import yaml

from quickcrud.errors import InvalidFieldFormat
from quickcrud.generator import (
    STEP_ROUTE,
    STEP_RUN_MIGRATION,
    STEP_RUN_SEEDER,
    STEP_SEEDER_REGISTRATION,
    CrudGenerator,
    build_config,
    load_config_file,
)
from quickcrud.models import CrudConfig, EntitySpec, StepStatus

EXPECTED_STEPS: List[str] = [
    "model",
    "migration",
    "request",
    "seeder",
    "controller",
    "view:index",
    "view:create",
    "view:edit",
    STEP_ROUTE,
    "datatable",
    STEP_RUN_MIGRATION,
    STEP_SEEDER_REGISTRATION,
    STEP_RUN_SEEDER,
]

MIGRATION_REL = "database/migrations/2024_05_17_093015_create_products_table.php"


@pytest.fixture()
def generator(config: CrudConfig, runner, clock: Callable[[], datetime]) -> CrudGenerator:
    return CrudGenerator(config, runner=runner, clock=clock)


# ===========================================================================
# Happy path
# ===========================================================================


class TestFullGeneration:

    def test_step_order(self, generator: CrudGenerator, product: EntitySpec) -> None:
        report = generator.generate(product)
        assert [o.step for o in report.outcomes] == EXPECTED_STEPS

    def test_all_steps_succeed(self, generator: CrudGenerator, product: EntitySpec) -> None:
        report = generator.generate(product)

        assert report.success
        assert report.count(StepStatus.CREATED) == 9
        assert report.outcome(STEP_ROUTE).status is StepStatus.UPDATED
        assert report.outcome(STEP_SEEDER_REGISTRATION).status is StepStatus.UPDATED
        assert report.outcome(STEP_RUN_MIGRATION).status is StepStatus.SUCCEEDED
        assert report.outcome(STEP_RUN_SEEDER).status is StepStatus.SUCCEEDED

    def test_files_on_disk(
        self, generator: CrudGenerator, product: EntitySpec, laravel_app: pathlib.Path
    ) -> None:
        generator.generate(product)

        for rel in (
            "app/Models/Product.php",
            MIGRATION_REL,
            "app/Http/Requests/ProductRequest.php",
            "database/seeders/ProductSeeder.php",
            "app/Http/Controllers/ProductController.php",
            "resources/views/products/index.blade.php",
            "resources/views/products/create.blade.php",
            "resources/views/products/edit.blade.php",
            "app/DataTables/ProductDataTable.php",
        ):
            assert (laravel_app / rel).is_file(), rel

    def test_generated_content(
        self, generator: CrudGenerator, product: EntitySpec, laravel_app: pathlib.Path
    ) -> None:
        generator.generate(product)

        model = (laravel_app / "app/Models/Product.php").read_text(encoding="utf-8")
        assert "'title',\n        'price',\n        'in_stock'," in model

        migration = (laravel_app / MIGRATION_REL).read_text(encoding="utf-8")
        for column in (
            "$table->string('title');",
            "$table->decimal('price');",
            "$table->boolean('in_stock');",
            "$table->timestamps();",
        ):
            assert column in migration

        routes = (laravel_app / "routes/web.php").read_text(encoding="utf-8")
        assert routes.count("Route::resource('products', ProductController::class);") == 1
        assert routes.count("use App\\Http\\Controllers\\ProductController;") == 1

        registry = (laravel_app / "database/seeders/DatabaseSeeder.php").read_text(encoding="utf-8")
        assert registry.count("$this->call(ProductSeeder::class);") == 1

    def test_runner_called_in_order(self, generator: CrudGenerator, product: EntitySpec, runner) -> None:
        generator.generate(product)
        assert runner.calls == [("migrate",), ("db:seed", "ProductSeeder")]

    def test_summary(self, generator: CrudGenerator, product: EntitySpec) -> None:
        text = generator.generate(product).summary()
        assert "SUCCESS" in text
        assert "Product" in text
        assert "app/Models/Product.php" in text

    def test_generate_from_input(self, generator: CrudGenerator) -> None:
        report = generator.generate_from_input("Product", "title:string, price:decimal")
        assert report.success
        assert report.entity_name == "Product"


# ===========================================================================
# Idempotence
# ===========================================================================


class TestSecondRun:

    def test_identical_filesystem_state(
        self,
        generator: CrudGenerator,
        product: EntitySpec,
        laravel_app: pathlib.Path,
        snapshot,
    ) -> None:
        generator.generate(product)
        first = snapshot(laravel_app)

        report = generator.generate(product)

        assert snapshot(laravel_app) == first
        assert report.success

    def test_reports_all_skip(self, config: CrudConfig, runner, product: EntitySpec) -> None:
        CrudGenerator(config, runner=runner, clock=lambda: datetime(2024, 5, 17, 9, 30, 15)).generate(product)
        # A later clock would give the migration a new filename.
        report = CrudGenerator(
            config, runner=runner, clock=lambda: datetime(2025, 1, 1, 0, 0, 0)
        ).generate(product)

        file_and_injection_steps = [o for o in report.outcomes if o.step not in (STEP_RUN_MIGRATION, STEP_RUN_SEEDER)]
        assert all(o.status is StepStatus.SKIPPED for o in file_and_injection_steps)
        assert report.outcome("migration").path == MIGRATION_REL

    def test_custom_content_preserved(
        self, generator: CrudGenerator, product: EntitySpec, laravel_app: pathlib.Path
    ) -> None:
        controller = laravel_app / "app/Http/Controllers/ProductController.php"
        controller.parent.mkdir(parents=True)
        controller.write_text("<?php // hand-written\n", encoding="utf-8")

        report = generator.generate(product)

        assert report.outcome("controller").status is StepStatus.SKIPPED
        assert controller.read_text(encoding="utf-8") == "<?php // hand-written\n"


# ===========================================================================
# Failures and policy
# ===========================================================================


class TestFailures:

    def test_invalid_fields_write_nothing(
        self, generator: CrudGenerator, laravel_app: pathlib.Path, snapshot
    ) -> None:
        before = snapshot(laravel_app)
        with pytest.raises(InvalidFieldFormat):
            generator.generate_from_input("Product", "title:string,age")
        assert snapshot(laravel_app) == before

    def test_strict_types_abort_before_writing(
        self, laravel_app: pathlib.Path, runner, snapshot
    ) -> None:
        before = snapshot(laravel_app)
        gen = CrudGenerator(CrudConfig(base_path=laravel_app, strict_types=True), runner=runner)

        report = gen.generate_from_input("Shape", "outline:polygon")

        assert not report.success
        assert report.outcomes == []
        assert report.validation_errors
        assert snapshot(laravel_app) == before
        assert runner.calls == []

    def test_unknown_type_only_warns_by_default(self, generator: CrudGenerator) -> None:
        report = generator.generate_from_input("Shape", "outline:polygon")
        assert report.success
        assert any("polygon" in w for w in report.validation_warnings)

    def test_migration_failure_is_recorded_and_run_continues(
        self, generator: CrudGenerator, product: EntitySpec, runner
    ) -> None:
        runner.migrate_rc = 1

        report = generator.generate(product)

        outcome = report.outcome(STEP_RUN_MIGRATION)
        assert outcome.status is StepStatus.ERRORED
        assert "Connection refused" in outcome.detail
        assert report.outcome(STEP_SEEDER_REGISTRATION).status is StepStatus.UPDATED
        assert report.outcome(STEP_RUN_SEEDER).status is StepStatus.SUCCEEDED
        assert not report.success

    def test_fail_fast_stops_remaining_steps(
        self, laravel_app: pathlib.Path, runner, product: EntitySpec
    ) -> None:
        runner.migrate_rc = 1
        gen = CrudGenerator(
            CrudConfig(base_path=laravel_app, continue_on_error=False), runner=runner
        )

        report = gen.generate(product)

        assert report.outcome(STEP_RUN_MIGRATION).status is StepStatus.ERRORED
        assert report.outcome(STEP_SEEDER_REGISTRATION).status is StepStatus.NOT_RUN
        assert report.outcome(STEP_RUN_SEEDER).status is StepStatus.NOT_RUN
        assert runner.calls == [("migrate",)]
        registry = (laravel_app / "database/seeders/DatabaseSeeder.php").read_text(encoding="utf-8")
        assert "ProductSeeder" not in registry

    def test_missing_registry_blocks_seeder_run(
        self, generator: CrudGenerator, product: EntitySpec, laravel_app: pathlib.Path, runner
    ) -> None:
        (laravel_app / "database/seeders/DatabaseSeeder.php").unlink()

        report = generator.generate(product)

        assert report.outcome(STEP_SEEDER_REGISTRATION).status is StepStatus.ERRORED
        seeder_run = report.outcome(STEP_RUN_SEEDER)
        assert seeder_run.status is StepStatus.NOT_RUN
        assert seeder_run.detail == "seeder-registration failed"
        assert ("db:seed", "ProductSeeder") not in runner.calls

    def test_missing_routes_file_does_not_stop_datatable(
        self, generator: CrudGenerator, product: EntitySpec, laravel_app: pathlib.Path
    ) -> None:
        (laravel_app / "routes/web.php").unlink()

        report = generator.generate(product)

        assert report.outcome(STEP_ROUTE).status is StepStatus.ERRORED
        assert report.outcome("datatable").status is StepStatus.CREATED
        assert not (laravel_app / "routes/web.php").exists()

    def test_non_utf8_routes_file_is_an_errored_step(
        self, generator: CrudGenerator, product: EntitySpec, laravel_app: pathlib.Path
    ) -> None:
        original = "<?php\n// café\n".encode("latin-1")
        (laravel_app / "routes/web.php").write_bytes(original)

        report = generator.generate(product)

        route = report.outcome(STEP_ROUTE)
        assert route.status is StepStatus.ERRORED
        assert route.detail.startswith("SharedFileEncodingError: ")
        assert len(report.outcomes) == len(EXPECTED_STEPS)
        assert report.outcome("datatable").status is StepStatus.CREATED
        assert report.outcome(STEP_RUN_SEEDER).status is StepStatus.SUCCEEDED
        assert (laravel_app / "routes/web.php").read_bytes() == original

    def test_directory_error_is_isolated(
        self, generator: CrudGenerator, product: EntitySpec, laravel_app: pathlib.Path
    ) -> None:
        (laravel_app / "resources").write_text("blocking file", encoding="utf-8")

        report = generator.generate(product)

        views = [o for o in report.outcomes if o.step.startswith("view:")]
        assert all(o.status is StepStatus.ERRORED for o in views)
        assert report.outcome("datatable").status is StepStatus.CREATED
        assert len(report.errored_steps) == 3


class TestDisabledRunners:

    def test_no_migrate_no_seed(self, laravel_app: pathlib.Path, runner, product: EntitySpec) -> None:
        gen = CrudGenerator(
            CrudConfig(base_path=laravel_app, run_migrations=False, run_seeder=False),
            runner=runner,
        )

        report = gen.generate(product)

        assert report.success
        assert report.outcome(STEP_RUN_MIGRATION).status is StepStatus.NOT_RUN
        assert report.outcome(STEP_RUN_SEEDER).detail == "disabled"
        assert report.outcome(STEP_SEEDER_REGISTRATION).status is StepStatus.UPDATED
        assert runner.calls == []


class TestDryRun:

    def test_nothing_written_or_executed(
        self, laravel_app: pathlib.Path, runner, product: EntitySpec, snapshot
    ) -> None:
        before = snapshot(laravel_app)
        gen = CrudGenerator(CrudConfig(base_path=laravel_app, dry_run=True), runner=runner)

        report = gen.generate(product)

        assert report.success
        assert report.dry_run
        assert snapshot(laravel_app) == before
        assert runner.calls == []
        assert report.outcome("model").status is StepStatus.CREATED
        assert report.outcome(STEP_ROUTE).status is StepStatus.UPDATED
        assert "php artisan migrate --force" in report.outcome(STEP_RUN_MIGRATION).detail
        assert report.outcome(STEP_RUN_SEEDER).status is StepStatus.NOT_RUN


# ===========================================================================
# Config loading
# ===========================================================================


class TestConfigLoading:

    def test_defaults(self, laravel_app: pathlib.Path) -> None:
        config = build_config(laravel_app)
        assert config.seed_rows == 5
        assert config.base_path == laravel_app

    def test_yaml_in_base_path_is_picked_up(
        self, laravel_app: pathlib.Path, config_yaml_path: pathlib.Path
    ) -> None:
        config = build_config(laravel_app)
        assert config.seed_rows == 12
        assert config.php_binary == "php8.3"

    def test_overrides_win(self, laravel_app: pathlib.Path, config_yaml_path: pathlib.Path) -> None:
        config = build_config(laravel_app, overrides={"seed_rows": 3})
        assert config.seed_rows == 3
        assert config.php_binary == "php8.3"

    def test_top_level_mapping(self, tmp_path: pathlib.Path) -> None:
        path = tmp_path / "custom.yml"
        path.write_text(yaml.dump({"views_dir": "resources/views/admin"}), encoding="utf-8")
        assert load_config_file(path) == {"views_dir": "resources/views/admin"}

    def test_empty_file(self, tmp_path: pathlib.Path) -> None:
        path = tmp_path / "empty.yaml"
        path.write_text("", encoding="utf-8")
        assert load_config_file(path) == {}

    @pytest.mark.parametrize(
        "text",
        ["- a\n- b\n", "quickcrud: [1, 2]\n", "key: [unclosed\n"],
    )
    def test_invalid_files(self, tmp_path: pathlib.Path, text: str) -> None:
        path = tmp_path / "bad.yaml"
        path.write_text(text, encoding="utf-8")
        with pytest.raises(ValueError):
            load_config_file(path)

    def test_unknown_key_rejected(self, laravel_app: pathlib.Path) -> None:
        with pytest.raises(ValueError, match="Config validation failed"):
            build_config(laravel_app, overrides={"no_such_option": True})

    def test_seed_rows_out_of_range(self, laravel_app: pathlib.Path) -> None:
        with pytest.raises(ValueError):
            build_config(laravel_app, overrides={"seed_rows": 0})

    def test_missing_config_file(self, laravel_app: pathlib.Path) -> None:
        with pytest.raises(FileNotFoundError):
            build_config(laravel_app, config_file=laravel_app / "nope.yaml")

    def test_base_path_must_exist(self, tmp_path: pathlib.Path) -> None:
        with pytest.raises(ValueError, match="not a directory"):
            build_config(tmp_path / "missing")
