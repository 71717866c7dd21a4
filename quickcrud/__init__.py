# File: quickcrud/__init__.py
"""
QuickCRUD - CRUD Scaffolding for Laravel Applications
======================================================

Generates the full CRUD set for one entity (Eloquent model, migration,
FormRequest, Faker seeder, resource controller, Blade views, DataTable),
merges its route and seeder registration into the shared files without
duplicating them, then runs the migration and the seeder.

Architecture overview::

    ┌──────────────┐     ┌───────────────┐     ┌──────────────────┐
    │  CLI / Entry │────▶│ CrudGenerator │────▶│ TemplateGenerator│
    │   (cli.py)   │     │(generator.py) │     │  (templates.py)  │
    └──────────────┘     └───────┬───────┘     └──────────────────┘
                                 │
            ┌────────────┬───────┼────────────┬────────────┐
            ▼            ▼       ▼            ▼            ▼
      ┌──────────┐ ┌──────────┐ ┌─────────┐ ┌──────────┐ ┌─────────┐
      │validators│ │  models  │ │exporters│ │injectors │ │ runners │
      └──────────┘ └──────────┘ └─────────┘ └──────────┘ └─────────┘

Usage::

    # As a library
    from quickcrud import CrudConfig, CrudGenerator
    gen = CrudGenerator(CrudConfig(base_path=Path("/srv/shop")))
    report = gen.generate_from_input("Product", "title:string,price:decimal")

    # From the command line
    quickcrud Product --fields "title:string,price:decimal" -v
"""

from __future__ import annotations

__version__: str = "0.1.0"
__license__: str = "MIT"

from quickcrud.errors import (
    DirectoryCreateError,
    InjectionTargetMissing,
    InvalidEntityName,
    InvalidFieldFormat,
    QuickCrudError,
    RunnerError,
    SharedFileEncodingError,
)
from quickcrud.models import (
    ArtifactKind,
    CrudConfig,
    EntitySpec,
    FieldSpec,
    GeneratedArtifact,
    InjectionTarget,
    StepOutcome,
    StepStatus,
)
from quickcrud.validators import build_entity, parse_fields, serialize_fields, validate_entity
from quickcrud.templates import TemplateGenerator
from quickcrud.exporters import ArtifactWriter, WriteResult
from quickcrud.injectors import InjectionResult, TextInjector
from quickcrud.runners import ArtisanRunner, DryRunRunner, MigrationRunner, RunnerResult
from quickcrud.generator import CrudGenerator, GenerationReport, build_config

# ---------------------------------------------------------------------------
# Public API surface
# ---------------------------------------------------------------------------

__all__: list[str] = [
    "__version__",
    "__license__",
    # Orchestrator
    "CrudGenerator",
    "GenerationReport",
    "build_config",
    # Models
    "ArtifactKind",
    "CrudConfig",
    "EntitySpec",
    "FieldSpec",
    "GeneratedArtifact",
    "InjectionTarget",
    "StepOutcome",
    "StepStatus",
    # Parsing & validation
    "build_entity",
    "parse_fields",
    "serialize_fields",
    "validate_entity",
    # Pipeline parts
    "TemplateGenerator",
    "ArtifactWriter",
    "WriteResult",
    "TextInjector",
    "InjectionResult",
    "MigrationRunner",
    "ArtisanRunner",
    "DryRunRunner",
    "RunnerResult",
    # Errors
    "QuickCrudError",
    "InvalidFieldFormat",
    "InvalidEntityName",
    "DirectoryCreateError",
    "InjectionTargetMissing",
    "RunnerError",
    "SharedFileEncodingError",
]
