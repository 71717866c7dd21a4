# File: quickcrud/models.py
"""
QuickCRUD - Core Data Models
=============================
Pydantic V2 models describing one CRUD generation request and the
configuration that drives it.  These models are the single source of truth
for the whole pipeline: Field Parsing → Rendering → Writing → Injection.

Derived names (table name, route slug, view directory, class names) are
exposed as ``computed_field`` properties and never stored, so they cannot go
stale when the base name changes.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Dict, List, Literal, Optional, Tuple

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    computed_field,
    field_validator,
    model_validator,
)

from quickcrud.utils import (
    entity_route_slug,
    entity_table_name,
    entity_view_directory,
    to_camel_case,
)

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("quickcrud.models")

# ---------------------------------------------------------------------------
# Patterns
# ---------------------------------------------------------------------------

_WORD_RE: re.Pattern[str] = re.compile(r"^\w+$")
_PASCAL_CASE_RE: re.Pattern[str] = re.compile(r"^[A-Z][A-Za-z0-9]*$")


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class ArtifactKind(str, Enum):
    """Kinds of source file produced for one entity."""

    MODEL = "model"
    MIGRATION = "migration"
    REQUEST = "request"
    SEEDER = "seeder"
    CONTROLLER = "controller"
    VIEW = "view"
    DATATABLE = "datatable"


class StepStatus(str, Enum):
    """Outcome of a single orchestrator step."""

    CREATED = "created"
    UPDATED = "updated"
    SKIPPED = "skipped"
    SUCCEEDED = "succeeded"
    ERRORED = "errored"
    NOT_RUN = "not_run"


# ---------------------------------------------------------------------------
# Shared model configuration
# ---------------------------------------------------------------------------

_FROZEN_CONFIG: ConfigDict = ConfigDict(
    frozen=True,
    extra="forbid",
    use_enum_values=False,
)


# ---------------------------------------------------------------------------
# Field & entity
# ---------------------------------------------------------------------------


class FieldSpec(BaseModel):
    """One parsed ``name:type`` declaration."""

    model_config = _FROZEN_CONFIG

    name: str = Field(..., description="Attribute / column name.")
    type: str = Field(..., description="Storage-type token, passed through verbatim.")

    @field_validator("name", "type")
    @classmethod
    def _word_only(cls, v: str) -> str:
        if not _WORD_RE.match(v):
            raise ValueError(f"'{v}' must match ^\\w+$")
        return v

    @property
    def token(self) -> str:
        """The ``name:type`` form this field was parsed from."""
        return f"{self.name}:{self.type}"

    def __repr__(self) -> str:
        return f"<Field {self.token}>"


class EntitySpec(BaseModel):
    """
    A model name plus its ordered fields.

    Field order matters: it becomes the column order of the migration and the
    order of the ``$fillable`` list.
    """

    model_config = _FROZEN_CONFIG

    base_name: str = Field(..., description="PascalCase entity name, e.g. 'Product'.")
    fields: Tuple[FieldSpec, ...] = Field(..., min_length=1)

    @field_validator("base_name")
    @classmethod
    def _pascal_case(cls, v: str) -> str:
        if not _PASCAL_CASE_RE.match(v):
            raise ValueError(f"Entity name '{v}' must be a PascalCase identifier.")
        return v

    @model_validator(mode="after")
    def _unique_field_names(self) -> "EntitySpec":
        names: List[str] = [f.name for f in self.fields]
        if len(names) != len(set(names)):
            dupes: List[str] = sorted({n for n in names if names.count(n) > 1})
            raise ValueError(f"Duplicate field names: {dupes}")
        return self

    # -- Derived names ------------------------------------------------------

    @computed_field  # type: ignore[misc]
    @property
    def class_name(self) -> str:
        return self.base_name

    @computed_field  # type: ignore[misc]
    @property
    def table_name(self) -> str:
        return entity_table_name(self.base_name)

    @computed_field  # type: ignore[misc]
    @property
    def route_slug(self) -> str:
        return entity_route_slug(self.base_name)

    @computed_field  # type: ignore[misc]
    @property
    def view_directory(self) -> str:
        return entity_view_directory(self.base_name)

    @computed_field  # type: ignore[misc]
    @property
    def variable_name(self) -> str:
        """Singular camelCase name used for route-model binding (``$orderItem``)."""
        return to_camel_case(self.base_name)

    @computed_field  # type: ignore[misc]
    @property
    def controller_class(self) -> str:
        return f"{self.base_name}Controller"

    @computed_field  # type: ignore[misc]
    @property
    def request_class(self) -> str:
        return f"{self.base_name}Request"

    @computed_field  # type: ignore[misc]
    @property
    def seeder_class(self) -> str:
        return f"{self.base_name}Seeder"

    @computed_field  # type: ignore[misc]
    @property
    def datatable_class(self) -> str:
        return f"{self.base_name}DataTable"

    @computed_field  # type: ignore[misc]
    @property
    def field_names(self) -> List[str]:
        return [f.name for f in self.fields]

    def __repr__(self) -> str:
        return f"<Entity {self.base_name} ({len(self.fields)} fields)>"


# ---------------------------------------------------------------------------
# Artifacts & injection targets
# ---------------------------------------------------------------------------


class GeneratedArtifact(BaseModel):
    """A rendered file waiting to be written.  Relative to the base path."""

    model_config = _FROZEN_CONFIG

    kind: ArtifactKind
    target_path: str = Field(..., min_length=1)
    content: str

    @property
    def label(self) -> str:
        if self.kind is ArtifactKind.VIEW:
            return f"view:{Path(self.target_path).name.split('.')[0]}"
        return self.kind.value


class InjectionTarget(BaseModel):
    """
    One idempotent merge against an existing shared file.

    ``marker_string`` is the literal text whose presence means the insertion
    already happened.  ``after-pattern`` inserts right after the first match
    of ``anchor_pattern`` (or, failing that, of the first matching
    ``fallback_patterns`` entry); ``append`` adds to the end of the file.
    """

    model_config = _FROZEN_CONFIG

    file_path: str = Field(..., min_length=1)
    marker_string: str = Field(..., min_length=1)
    insertion_text: str = Field(..., min_length=1)
    insertion_rule: Literal["after-pattern", "append"] = "append"
    anchor_pattern: Optional[str] = None
    fallback_patterns: Tuple[str, ...] = ()

    @model_validator(mode="after")
    def _anchor_required(self) -> "InjectionTarget":
        if self.insertion_rule == "after-pattern" and not self.anchor_pattern:
            raise ValueError("'after-pattern' insertion requires an anchor_pattern.")
        for pattern in (self.anchor_pattern, *self.fallback_patterns):
            if not pattern:
                continue
            try:
                re.compile(pattern)
            except re.error as exc:
                raise ValueError(f"Invalid anchor pattern {pattern!r}: {exc}") from exc
        return self

    @property
    def anchor_patterns(self) -> Tuple[str, ...]:
        """Primary anchor followed by its fallbacks, in order of preference."""
        if not self.anchor_pattern:
            return ()
        return (self.anchor_pattern, *self.fallback_patterns)


# ---------------------------------------------------------------------------
# Step outcome
# ---------------------------------------------------------------------------


@dataclass(frozen=False, slots=True)
class StepOutcome:
    """Status and timing for a single pipeline step."""

    step: str = ""
    status: StepStatus = StepStatus.NOT_RUN
    path: str = ""
    detail: str = ""
    elapsed_seconds: float = 0.0

    @property
    def is_error(self) -> bool:
        return self.status is StepStatus.ERRORED


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------


class CrudConfig(BaseModel):
    """
    Everything that controls where artifacts go and which steps run.

    Directory and file settings are relative to ``base_path`` (the root of
    the Laravel application).
    """

    model_config = ConfigDict(
        validate_assignment=True,
        extra="forbid",
        populate_by_name=True,
    )

    base_path: Path = Field(default=Path("."), description="Application root.")

    # -- Artifact locations -------------------------------------------------
    models_dir: str = Field(default="app/Models")
    migrations_dir: str = Field(default="database/migrations")
    requests_dir: str = Field(default="app/Http/Requests")
    seeders_dir: str = Field(default="database/seeders")
    controllers_dir: str = Field(default="app/Http/Controllers")
    views_dir: str = Field(default="resources/views")
    datatables_dir: str = Field(default="app/DataTables")

    # -- Shared files -------------------------------------------------------
    routes_file: str = Field(default="routes/web.php")
    seeder_registry_file: str = Field(default="database/seeders/DatabaseSeeder.php")

    # -- Seeding ------------------------------------------------------------
    seed_rows: int = Field(default=5, ge=1, le=1000, description="Rows per seeder run.")

    # -- External runners ---------------------------------------------------
    php_binary: str = Field(default="php", min_length=1)
    artisan_script: str = Field(default="artisan", min_length=1)
    runner_timeout: Optional[float] = Field(default=None, gt=0)
    run_migrations: bool = Field(default=True)
    run_seeder: bool = Field(default=True)

    # -- Policy -------------------------------------------------------------
    continue_on_error: bool = Field(
        default=True,
        description="Keep running later steps after a step errors.",
    )
    strict_types: bool = Field(
        default=False,
        description="Reject unknown storage-type tokens instead of warning.",
    )
    dry_run: bool = Field(default=False, description="Report without writing or executing.")

    @field_validator(
        "models_dir",
        "migrations_dir",
        "requests_dir",
        "seeders_dir",
        "controllers_dir",
        "views_dir",
        "datatables_dir",
        "routes_file",
        "seeder_registry_file",
    )
    @classmethod
    def _relative_only(cls, v: str) -> str:
        if not v or Path(v).is_absolute():
            raise ValueError(f"'{v}' must be a non-empty path relative to base_path.")
        return v.strip("/")

    def resolve(self, relative: str) -> Path:
        """Absolute path of *relative* under the application root."""
        return (Path(self.base_path) / relative).resolve()

    def with_overrides(self, overrides: Dict[str, object]) -> "CrudConfig":
        """Return a validated copy with *overrides* applied."""
        data: Dict[str, object] = self.model_dump()
        data.update(overrides)
        return CrudConfig.model_validate(data)


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "ArtifactKind",
    "StepStatus",
    "FieldSpec",
    "EntitySpec",
    "GeneratedArtifact",
    "InjectionTarget",
    "StepOutcome",
    "CrudConfig",
]

logger.debug("quickcrud.models loaded, %d public symbols.", len(__all__))
