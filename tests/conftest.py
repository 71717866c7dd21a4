"""
tests/conftest.py
Shared fixtures for the quickcrud test suite.

No external mocking libraries are used; real file I/O is performed inside a
skeleton Laravel application created under pytest's tmp_path.  The external
``php artisan`` runner is replaced by ``RecordingRunner``.
"""

from __future__ import annotations

import pathlib
import textwrap
from datetime import datetime
from typing import Callable, List, Tuple

import pytest
import yaml

from quickcrud.models import CrudConfig, EntitySpec
from quickcrud.runners import RunnerResult
from quickcrud.validators import build_entity


# ---------------------------------------------------------------------------
# Skeleton application content
# ---------------------------------------------------------------------------

ROUTES_WEB_PHP: str = textwrap.dedent(
    """\
    <?php

    use Illuminate\\Support\\Facades\\Route;

    Route::get('/', function () {
        return view('welcome');
    });
    """
)

DATABASE_SEEDER_PHP: str = textwrap.dedent(
    """\
    <?php

    namespace Database\\Seeders;

    use Illuminate\\Database\\Seeder;

    class DatabaseSeeder extends Seeder
    {
        public function run(): void
        {
            $this->call(UserSeeder::class);
        }
    }
    """
)

FIXED_NOW: datetime = datetime(2024, 5, 17, 9, 30, 15)


# ---------------------------------------------------------------------------
# Recording runner
# ---------------------------------------------------------------------------


class RecordingRunner:
    """In-memory ``MigrationRunner``; returns scripted exit codes."""

    def __init__(self, migrate_rc: int = 0, seed_rc: int = 0) -> None:
        self.migrate_rc: int = migrate_rc
        self.seed_rc: int = seed_rc
        self.calls: List[Tuple[str, ...]] = []

    def run_migrations(self) -> RunnerResult:
        self.calls.append(("migrate",))
        return RunnerResult(
            command=("php", "artisan", "migrate", "--force"),
            returncode=self.migrate_rc,
            stderr="SQLSTATE[HY000] [2002] Connection refused" if self.migrate_rc else "",
        )

    def run_seeder(self, class_name: str) -> RunnerResult:
        self.calls.append(("db:seed", class_name))
        return RunnerResult(
            command=("php", "artisan", "db:seed", f"--class={class_name}", "--force"),
            returncode=self.seed_rc,
            stderr="Target class does not exist." if self.seed_rc else "",
        )


# ---------------------------------------------------------------------------
# Application fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def laravel_app(tmp_path: pathlib.Path) -> pathlib.Path:
    """Minimal Laravel tree: routes file, seeder registry, empty dirs."""
    root = tmp_path / "app_root"
    (root / "routes").mkdir(parents=True)
    (root / "routes" / "web.php").write_text(ROUTES_WEB_PHP, encoding="utf-8")
    (root / "database" / "seeders").mkdir(parents=True)
    (root / "database" / "seeders" / "DatabaseSeeder.php").write_text(
        DATABASE_SEEDER_PHP, encoding="utf-8"
    )
    (root / "database" / "migrations").mkdir(parents=True)
    return root


@pytest.fixture()
def config(laravel_app: pathlib.Path) -> CrudConfig:
    return CrudConfig(base_path=laravel_app)


@pytest.fixture()
def runner() -> RecordingRunner:
    return RecordingRunner()


@pytest.fixture()
def clock() -> Callable[[], datetime]:
    return lambda: FIXED_NOW


@pytest.fixture()
def product() -> EntitySpec:
    """The canonical example entity."""
    return build_entity("Product", "title:string,price:decimal,in_stock:boolean")


@pytest.fixture()
def config_yaml_path(laravel_app: pathlib.Path) -> pathlib.Path:
    """A quickcrud.yaml in the application root with a ``quickcrud:`` section."""
    path = laravel_app / "quickcrud.yaml"
    with open(path, "w", encoding="utf-8") as fh:
        yaml.dump(
            {"quickcrud": {"seed_rows": 12, "php_binary": "php8.3"}},
            fh,
            default_flow_style=False,
        )
    return path


def _snapshot_tree(root: pathlib.Path) -> dict:
    return {
        p.relative_to(root).as_posix(): p.read_text(encoding="utf-8")
        for p in sorted(root.rglob("*"))
        if p.is_file()
    }


@pytest.fixture()
def snapshot() -> Callable[[pathlib.Path], dict]:
    """Relative path -> content for every file under a root."""
    return _snapshot_tree
