# File: quickcrud/templates.py
"""
QuickCRUD - Code Template Engine
=================================
Pure-Python generation engine.  Transforms an ``EntitySpec`` (plus the
``CrudConfig`` that says where things live) into the PHP source for one
Laravel CRUD set:

    1. Eloquent model with ``$fillable``
    2. Anonymous-class migration (up / down)
    3. FormRequest with one ``required`` rule per field
    4. Seeder inserting Faker-generated rows
    5. Resource controller
    6. Blade view placeholders (index / create / edit)
    7. ``yajra/laravel-datatables`` DataTable class
    8. The single lines injected into ``routes/web.php`` and
       ``DatabaseSeeder.php``

**Contract:**
    - Every ``generate_*`` method is pure: ``EntitySpec`` in, ``str`` out.
    - All string assembly uses the ``List[str]`` + ``"\\n".join()`` pattern.
    - No I/O happens here; paths are returned relative to the base path.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Dict, List, Optional, Tuple

from quickcrud.models import ArtifactKind, CrudConfig, EntitySpec, GeneratedArtifact
from quickcrud.utils import indent_lines, php_quote, to_title_human

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("quickcrud.templates")

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

_INDENT: str = "    "

VIEW_NAMES: Tuple[str, ...] = ("index", "create", "edit")

MIGRATION_TIMESTAMP_FORMAT: str = "%Y_%m_%d_%H%M%S"

# Seeder value generators keyed by lower-cased type token.
SEEDER_GENERATORS: Dict[str, str] = {
    "string": "$faker->word",
    "char": "$faker->word",
    "varchar": "$faker->word",
    "text": "$faker->sentence",
    "integer": "$faker->numberBetween(1, 100)",
    "biginteger": "$faker->numberBetween(1, 100)",
    "smallinteger": "$faker->numberBetween(1, 100)",
    "tinyinteger": "$faker->numberBetween(1, 100)",
    "decimal": "$faker->randomFloat(2, 1, 1000)",
    "float": "$faker->randomFloat(2, 1, 1000)",
    "double": "$faker->randomFloat(2, 1, 1000)",
    "boolean": "$faker->boolean",
    "date": "$faker->date()",
    "datetime": "$faker->dateTime()",
    "timestamp": "$faker->dateTime()",
    "email": "$faker->unique()->safeEmail",
    "name": "$faker->name",
    "phone": "$faker->phoneNumber",
    "phone_number": "$faker->phoneNumber",
    "address": "$faker->address",
    "city": "$faker->city",
    "state": "$faker->state",
    "country": "$faker->country",
    "uuid": "$faker->uuid",
    "slug": "Str::slug($faker->words(3, true))",
}

DEFAULT_SEEDER_GENERATOR: str = "$faker->word"


def seeder_generator_for(type_token: str) -> str:
    """Faker expression for a field type; unknown types get a random word."""
    return SEEDER_GENERATORS.get(type_token.strip().lower(), DEFAULT_SEEDER_GENERATOR)


# ---------------------------------------------------------------------------
# TemplateGenerator class
# ---------------------------------------------------------------------------


class TemplateGenerator:
    """
    Stateless code-generation engine.

    Each ``generate_*`` method returns a complete file content string; the
    ``*_path`` methods return where that file goes, relative to the
    application root.
    """

    def __init__(self, config: Optional[CrudConfig] = None) -> None:
        self._config: CrudConfig = config or CrudConfig()
        logger.debug(
            "TemplateGenerator initialised (seed_rows=%d).",
            self._config.seed_rows,
        )

    # ===================================================================
    # 1. Eloquent model
    # ===================================================================

    def generate_model(self, entity: EntitySpec) -> str:
        """Eloquent model exposing the fields as ``$fillable`` in field order."""
        lines: List[str] = [
            "<?php",
            "",
            "namespace App\\Models;",
            "",
            "use Illuminate\\Database\\Eloquent\\Factories\\HasFactory;",
            "use Illuminate\\Database\\Eloquent\\Model;",
            "",
            f"class {entity.class_name} extends Model",
            "{",
            f"{_INDENT}use HasFactory;",
            "",
            f"{_INDENT}protected $table = {php_quote(entity.table_name)};",
            "",
            f"{_INDENT}protected $fillable = [",
        ]
        for name in entity.field_names:
            lines.append(f"{_INDENT * 2}{php_quote(name)},")
        lines.append(f"{_INDENT}];")
        lines.append("}")
        lines.append("")
        return "\n".join(lines)

    def model_path(self, entity: EntitySpec) -> str:
        return f"{self._config.models_dir}/{entity.class_name}.php"

    # ===================================================================
    # 2. Migration
    # ===================================================================

    def generate_migration(self, entity: EntitySpec) -> str:
        """
        Anonymous-class migration.

        ``up()`` creates the table with an identity key, one column per field
        (type token used verbatim as the Blueprint method) and timestamps
        last.  ``down()`` drops the table if it exists.
        """
        table: str = php_quote(entity.table_name)
        columns: List[str] = ["$table->id();"]
        columns.extend(
            f"$table->{f.type}({php_quote(f.name)});" for f in entity.fields
        )
        columns.append("$table->timestamps();")

        lines: List[str] = [
            "<?php",
            "",
            "use Illuminate\\Database\\Migrations\\Migration;",
            "use Illuminate\\Database\\Schema\\Blueprint;",
            "use Illuminate\\Support\\Facades\\Schema;",
            "",
            "return new class extends Migration",
            "{",
            f"{_INDENT}public function up(): void",
            f"{_INDENT}{{",
            f"{_INDENT * 2}Schema::create({table}, function (Blueprint $table) {{",
        ]
        lines.extend(indent_lines(columns, level=3))
        lines.extend(
            [
                f"{_INDENT * 2}}});",
                f"{_INDENT}}}",
                "",
                f"{_INDENT}public function down(): void",
                f"{_INDENT}{{",
                f"{_INDENT * 2}Schema::dropIfExists({table});",
                f"{_INDENT}}}",
                "};",
                "",
            ]
        )
        return "\n".join(lines)

    def migration_path(self, entity: EntitySpec, timestamp: datetime) -> str:
        stamp: str = timestamp.strftime(MIGRATION_TIMESTAMP_FORMAT)
        return f"{self._config.migrations_dir}/{stamp}_{self.migration_suffix(entity)}"

    @staticmethod
    def migration_suffix(entity: EntitySpec) -> str:
        """Timestamp-free tail of the migration filename."""
        return f"create_{entity.table_name}_table.php"

    # ===================================================================
    # 3. Form request
    # ===================================================================

    def generate_request(self, entity: EntitySpec) -> str:
        lines: List[str] = [
            "<?php",
            "",
            "namespace App\\Http\\Requests;",
            "",
            "use Illuminate\\Foundation\\Http\\FormRequest;",
            "",
            f"class {entity.request_class} extends FormRequest",
            "{",
            f"{_INDENT}public function authorize(): bool",
            f"{_INDENT}{{",
            f"{_INDENT * 2}return true;",
            f"{_INDENT}}}",
            "",
            f"{_INDENT}public function rules(): array",
            f"{_INDENT}{{",
            f"{_INDENT * 2}return [",
        ]
        for name in entity.field_names:
            lines.append(f"{_INDENT * 3}{php_quote(name)} => 'required',")
        lines.extend(
            [
                f"{_INDENT * 2}];",
                f"{_INDENT}}}",
                "}",
                "",
            ]
        )
        return "\n".join(lines)

    def request_path(self, entity: EntitySpec) -> str:
        return f"{self._config.requests_dir}/{entity.request_class}.php"

    # ===================================================================
    # 4. Seeder
    # ===================================================================

    def generate_seeder(self, entity: EntitySpec) -> str:
        """Seeder that batch-inserts ``seed_rows`` Faker rows."""
        row_count: int = self._config.seed_rows
        generators: List[Tuple[str, str]] = [
            (f.name, seeder_generator_for(f.type)) for f in entity.fields
        ]
        uses_str: bool = any(expr.startswith("Str::") for _, expr in generators)

        imports: List[str] = [
            "use Faker\\Factory as Faker;",
            "use Illuminate\\Database\\Seeder;",
            "use Illuminate\\Support\\Facades\\DB;",
        ]
        if uses_str:
            imports.append("use Illuminate\\Support\\Str;")

        lines: List[str] = ["<?php", "", "namespace Database\\Seeders;", ""]
        lines.extend(imports)
        lines.extend(
            [
                "",
                f"class {entity.seeder_class} extends Seeder",
                "{",
                f"{_INDENT}/**",
                f"{_INDENT} * Seed the {entity.table_name} table with {row_count} fake rows.",
                f"{_INDENT} */",
                f"{_INDENT}public function run(): void",
                f"{_INDENT}{{",
                f"{_INDENT * 2}$faker = Faker::create();",
                f"{_INDENT * 2}$rows = [];",
                "",
                f"{_INDENT * 2}for ($i = 0; $i < {row_count}; $i++) {{",
                f"{_INDENT * 3}$rows[] = [",
            ]
        )
        for name, expr in generators:
            lines.append(f"{_INDENT * 4}{php_quote(name)} => {expr},")
        lines.extend(
            [
                f"{_INDENT * 4}'created_at' => now(),",
                f"{_INDENT * 4}'updated_at' => now(),",
                f"{_INDENT * 3}];",
                f"{_INDENT * 2}}}",
                "",
                f"{_INDENT * 2}DB::table({php_quote(entity.table_name)})->insert($rows);",
                f"{_INDENT}}}",
                "}",
                "",
            ]
        )
        return "\n".join(lines)

    def seeder_path(self, entity: EntitySpec) -> str:
        return f"{self._config.seeders_dir}/{entity.seeder_class}.php"

    # ===================================================================
    # 5. Controller
    # ===================================================================

    def generate_controller(self, entity: EntitySpec) -> str:
        """
        Resource controller: index, create, store, edit, update, destroy.

        Mutating handlers validate through the form request and redirect to
        the index route.
        """
        cls: str = entity.class_name
        var: str = entity.variable_name
        request_cls: str = entity.request_class
        index_route: str = php_quote(f"{entity.route_slug}.index")
        view_prefix: str = entity.view_directory

        lines: List[str] = [
            "<?php",
            "",
            "namespace App\\Http\\Controllers;",
            "",
            f"use App\\DataTables\\{entity.datatable_class};",
            f"use App\\Http\\Requests\\{request_cls};",
            f"use App\\Models\\{cls};",
            "",
            f"class {entity.controller_class} extends Controller",
            "{",
        ]

        handlers: List[List[str]] = [
            self._handler(
                f"index({entity.datatable_class} $dataTable)",
                [f"return $dataTable->render({php_quote(view_prefix + '.index')});"],
            ),
            self._handler(
                "create()",
                [f"return view({php_quote(view_prefix + '.create')});"],
            ),
            self._handler(
                f"store({request_cls} $request)",
                [
                    f"{cls}::create($request->validated());",
                    "",
                    f"return redirect()->route({index_route});",
                ],
            ),
            self._handler(
                f"edit({cls} ${var})",
                [
                    f"return view({php_quote(view_prefix + '.edit')}, "
                    f"compact({php_quote(var)}));"
                ],
            ),
            self._handler(
                f"update({request_cls} $request, {cls} ${var})",
                [
                    f"${var}->update($request->validated());",
                    "",
                    f"return redirect()->route({index_route});",
                ],
            ),
            self._handler(
                f"destroy({cls} ${var})",
                [
                    f"${var}->delete();",
                    "",
                    f"return redirect()->route({index_route});",
                ],
            ),
        ]

        for i, handler in enumerate(handlers):
            if i:
                lines.append("")
            lines.extend(handler)

        lines.append("}")
        lines.append("")
        return "\n".join(lines)

    @staticmethod
    def _handler(signature: str, body: List[str]) -> List[str]:
        lines: List[str] = [f"{_INDENT}public function {signature}", f"{_INDENT}{{"]
        lines.extend(indent_lines(body, level=2))
        lines.append(f"{_INDENT}}}")
        return lines

    def controller_path(self, entity: EntitySpec) -> str:
        return f"{self._config.controllers_dir}/{entity.controller_class}.php"

    # ===================================================================
    # 6. Views
    # ===================================================================

    def generate_views(self, entity: EntitySpec) -> Dict[str, str]:
        """Placeholder Blade documents keyed by view name."""
        title: str = to_title_human(entity.view_directory)
        return {
            view: f"{{{{-- {title}: {view} view ({entity.view_directory}.{view}) --}}}}\n"
            for view in VIEW_NAMES
        }

    def view_path(self, entity: EntitySpec, view: str) -> str:
        return f"{self._config.views_dir}/{entity.view_directory}/{view}.blade.php"

    # ===================================================================
    # 7. DataTable
    # ===================================================================

    def generate_datatable(self, entity: EntitySpec) -> str:
        """
        Grid class bound to the model query.

        ``getColumns()`` is intentionally left empty; picking columns is a
        manual follow-up.
        """
        cls: str = entity.class_name
        lines: List[str] = [
            "<?php",
            "",
            "namespace App\\DataTables;",
            "",
            f"use App\\Models\\{cls};",
            "use Illuminate\\Database\\Eloquent\\Builder as QueryBuilder;",
            "use Yajra\\DataTables\\EloquentDataTable;",
            "use Yajra\\DataTables\\Html\\Builder as HtmlBuilder;",
            "use Yajra\\DataTables\\Services\\DataTable;",
            "",
            f"class {entity.datatable_class} extends DataTable",
            "{",
            f"{_INDENT}public function dataTable(QueryBuilder $query): EloquentDataTable",
            f"{_INDENT}{{",
            f"{_INDENT * 2}return (new EloquentDataTable($query))->setRowId('id');",
            f"{_INDENT}}}",
            "",
            f"{_INDENT}public function query({cls} $model): QueryBuilder",
            f"{_INDENT}{{",
            f"{_INDENT * 2}return $model->newQuery();",
            f"{_INDENT}}}",
            "",
            f"{_INDENT}public function html(): HtmlBuilder",
            f"{_INDENT}{{",
            f"{_INDENT * 2}return $this->builder()",
            f"{_INDENT * 3}->setTableId({php_quote(entity.route_slug + '-table')})",
            f"{_INDENT * 3}->columns($this->getColumns())",
            f"{_INDENT * 3}->minifiedAjax()",
            f"{_INDENT * 3}->orderBy(0);",
            f"{_INDENT}}}",
            "",
            f"{_INDENT}public function getColumns(): array",
            f"{_INDENT}{{",
            f"{_INDENT * 2}return [];",
            f"{_INDENT}}}",
            "",
            f"{_INDENT}protected function filename(): string",
            f"{_INDENT}{{",
            f"{_INDENT * 2}return {php_quote(entity.table_name + '_')} . date('YmdHis');",
            f"{_INDENT}}}",
            "}",
            "",
        ]
        return "\n".join(lines)

    def datatable_path(self, entity: EntitySpec) -> str:
        return f"{self._config.datatables_dir}/{entity.datatable_class}.php"

    # ===================================================================
    # 8. Shared-file lines
    # ===================================================================

    @staticmethod
    def route_import_line(entity: EntitySpec) -> str:
        return f"use App\\Http\\Controllers\\{entity.controller_class};"

    @staticmethod
    def route_resource_line(entity: EntitySpec) -> str:
        return (
            f"Route::resource({php_quote(entity.route_slug)}, "
            f"{entity.controller_class}::class);"
        )

    @staticmethod
    def seeder_call_line(entity: EntitySpec) -> str:
        return f"$this->call({entity.seeder_class}::class);"

    # ===================================================================
    # Aggregate
    # ===================================================================

    def render_all(
        self,
        entity: EntitySpec,
        *,
        timestamp: Optional[datetime] = None,
    ) -> List[GeneratedArtifact]:
        """
        Render every file artifact, in pipeline order.

        The data-table comes last: it is written after the route injection.
        """
        stamp: datetime = timestamp or datetime.now()
        artifacts: List[GeneratedArtifact] = [
            GeneratedArtifact(
                kind=ArtifactKind.MODEL,
                target_path=self.model_path(entity),
                content=self.generate_model(entity),
            ),
            GeneratedArtifact(
                kind=ArtifactKind.MIGRATION,
                target_path=self.migration_path(entity, stamp),
                content=self.generate_migration(entity),
            ),
            GeneratedArtifact(
                kind=ArtifactKind.REQUEST,
                target_path=self.request_path(entity),
                content=self.generate_request(entity),
            ),
            GeneratedArtifact(
                kind=ArtifactKind.SEEDER,
                target_path=self.seeder_path(entity),
                content=self.generate_seeder(entity),
            ),
            GeneratedArtifact(
                kind=ArtifactKind.CONTROLLER,
                target_path=self.controller_path(entity),
                content=self.generate_controller(entity),
            ),
        ]
        for view, content in self.generate_views(entity).items():
            artifacts.append(
                GeneratedArtifact(
                    kind=ArtifactKind.VIEW,
                    target_path=self.view_path(entity, view),
                    content=content,
                )
            )
        artifacts.append(
            GeneratedArtifact(
                kind=ArtifactKind.DATATABLE,
                target_path=self.datatable_path(entity),
                content=self.generate_datatable(entity),
            )
        )

        logger.debug(
            "Rendered %d artifacts for '%s'.", len(artifacts), entity.base_name
        )
        return artifacts


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "TemplateGenerator",
    "SEEDER_GENERATORS",
    "DEFAULT_SEEDER_GENERATOR",
    "VIEW_NAMES",
    "MIGRATION_TIMESTAMP_FORMAT",
    "seeder_generator_for",
]

logger.debug("quickcrud.templates loaded.")
