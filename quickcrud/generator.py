# File: quickcrud/generator.py
"""
QuickCRUD - CRUD Generation Pipeline (Orchestrator)
====================================================

Connects every phase for one entity:

    Input → Validation → Rendering → File writes → Shared-file injection
          → External runners

The ``CrudGenerator`` class is both the programmatic API and the backend
for the CLI.

Fixed step order::

     1. model                  7. route injection
     2. migration              8. datatable
     3. request                9. run-migration
     4. seeder                10. seeder registration
     5. controller            11. run-seeder
     6. views (index, create, edit)

Error handling strategy:
    - Malformed input (``InvalidFieldFormat``) aborts before anything is
      written; the caller sees the exception.
    - Every later failure is isolated to its step and recorded as an
      ``errored`` ``StepOutcome``.  By default the pipeline keeps going
      (``continue_on_error``); otherwise the remaining steps are ``not_run``.
    - run-seeder depends on the seeder file and its registration; when either
      errored it is ``not_run``.
    - The final report gives a clear pass/fail verdict.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

import yaml
from pydantic import ValidationError as PydanticValidationError

from quickcrud.errors import QuickCrudError
from quickcrud.exporters import ArtifactWriter, WriteResult
from quickcrud.injectors import (
    InjectionResult,
    TextInjector,
    router_targets,
    seeder_registry_targets,
)
from quickcrud.models import (
    ArtifactKind,
    CrudConfig,
    EntitySpec,
    GeneratedArtifact,
    InjectionTarget,
    StepOutcome,
    StepStatus,
)
from quickcrud.runners import DryRunRunner, MigrationRunner, RunnerResult, build_runner
from quickcrud.templates import TemplateGenerator
from quickcrud.utils import Timer
from quickcrud.validators import ValidationResult, build_entity, validate_entity

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("quickcrud.generator")

# ---------------------------------------------------------------------------
# Step names
# ---------------------------------------------------------------------------

STEP_ROUTE: str = "route"
STEP_RUN_MIGRATION: str = "run-migration"
STEP_SEEDER_REGISTRATION: str = "seeder-registration"
STEP_RUN_SEEDER: str = "run-seeder"

_STATUS_ICONS: Dict[StepStatus, str] = {
    StepStatus.CREATED: "+",
    StepStatus.UPDATED: "~",
    StepStatus.SKIPPED: "=",
    StepStatus.SUCCEEDED: "✓",
    StepStatus.ERRORED: "✗",
    StepStatus.NOT_RUN: "⊘",
}


# ---------------------------------------------------------------------------
# Generation report
# ---------------------------------------------------------------------------


@dataclass(frozen=False, slots=True)
class GenerationReport:
    """
    Report produced by ``CrudGenerator.generate()``.

    ``outcomes`` holds one ``StepOutcome`` per pipeline step, in order.
    When validation fails it is empty and ``validation_errors`` says why.
    """

    entity_name: str = ""
    base_path: str = ""
    dry_run: bool = False
    total_elapsed_seconds: float = 0.0

    outcomes: List[StepOutcome] = field(default_factory=list)
    validation_errors: List[str] = field(default_factory=list)
    validation_warnings: List[str] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return not self.validation_errors and not any(o.is_error for o in self.outcomes)

    @property
    def errored_steps(self) -> List[StepOutcome]:
        return [o for o in self.outcomes if o.is_error]

    def outcome(self, step: str) -> Optional[StepOutcome]:
        """The outcome recorded for *step*, if any."""
        for o in self.outcomes:
            if o.step == step:
                return o
        return None

    def count(self, status: StepStatus) -> int:
        return sum(1 for o in self.outcomes if o.status is status)

    def summary(self) -> str:
        """Return a human-readable summary string."""
        lines: List[str] = []
        status: str = "✅ SUCCESS" if self.success else "❌ FAILED"
        lines.append(f"{'='*60}")
        lines.append("  QuickCRUD — Generation Report")
        lines.append(f"{'='*60}")
        lines.append(f"  Status:     {status}{'  (dry run)' if self.dry_run else ''}")
        lines.append(f"  Entity:     {self.entity_name}")
        lines.append(f"  App root:   {self.base_path}")
        lines.append(
            "  Steps:      "
            + ", ".join(
                f"{self.count(s)} {s.value}" for s in StepStatus if self.count(s)
            )
        )
        lines.append(f"  Total time: {self.total_elapsed_seconds:.3f}s")

        if self.outcomes:
            lines.append(f"{'─'*60}")
            lines.append("  Pipeline Steps:")
            for o in self.outcomes:
                icon: str = _STATUS_ICONS[o.status]
                target: str = o.path or o.detail
                extra: str = f"  ({o.detail})" if o.path and o.detail else ""
                lines.append(
                    f"    {icon} {o.step:<20s} {o.status.value:<10s}{target}{extra}"
                )

        if self.validation_errors:
            lines.append(f"{'─'*60}")
            lines.append(f"  Validation Errors ({len(self.validation_errors)}):")
            for err in self.validation_errors:
                lines.append(f"    ✗ {err}")

        if self.validation_warnings:
            lines.append(f"{'─'*60}")
            lines.append(f"  Validation Warnings ({len(self.validation_warnings)}):")
            for warn in self.validation_warnings:
                lines.append(f"    ⚠ {warn}")

        lines.append(f"{'='*60}")
        return "\n".join(lines)


StepFn = Callable[[], StepOutcome]


# ---------------------------------------------------------------------------
# Config loader helpers
# ---------------------------------------------------------------------------

DEFAULT_CONFIG_FILENAME: str = "quickcrud.yaml"


def load_config_file(path: Path) -> Dict[str, Any]:
    """
    Load a YAML config file.

    The settings may sit at top level or under a ``quickcrud:`` key.  An
    empty file yields ``{}``.

    Raises:
        FileNotFoundError: If the file doesn't exist.
        ValueError: If the file can't be parsed.
    """
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")
    if not path.is_file():
        raise ValueError(f"Config path is not a file: {path}")

    try:
        data: Any = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        raise ValueError(f"Invalid YAML in {path}: {exc}") from exc

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(
            f"Expected a YAML mapping at top level, got {type(data).__name__}."
        )

    section: Any = data.get("quickcrud", data)
    if not isinstance(section, dict):
        raise ValueError(f"'quickcrud' section in {path} must be a mapping.")
    return section


def build_config(
    base_path: Path,
    *,
    config_file: Optional[Path] = None,
    overrides: Optional[Dict[str, Any]] = None,
) -> CrudConfig:
    """
    Merge defaults, the YAML file and *overrides* (highest wins).

    Without *config_file*, ``quickcrud.yaml`` in *base_path* is used when it
    exists.

    Raises:
        FileNotFoundError: If *config_file* doesn't exist.
        ValueError: If the file or the merged settings are invalid.
    """
    if not base_path.is_dir():
        raise ValueError(f"Base path is not a directory: {base_path}")

    data: Dict[str, Any] = {}
    if config_file is None and (base_path / DEFAULT_CONFIG_FILENAME).is_file():
        config_file = base_path / DEFAULT_CONFIG_FILENAME
    if config_file is not None:
        data.update(load_config_file(config_file))
        logger.info("Loaded config file: %s (%d key(s)).", config_file, len(data))

    data.update(overrides or {})
    data["base_path"] = base_path

    try:
        return CrudConfig.model_validate(data)
    except PydanticValidationError as exc:
        raise ValueError(f"Config validation failed: {exc}") from exc


# ---------------------------------------------------------------------------
# CrudGenerator: master orchestrator
# ---------------------------------------------------------------------------


class CrudGenerator:
    """
    Pipeline orchestrator for one CRUD set.

    Usage::

        generator = CrudGenerator(CrudConfig(base_path=Path("/srv/app")))
        report = generator.generate_from_input("Product", "title:string,price:decimal")
        print(report.summary())

    ``runner`` defaults to ``php artisan`` (or a recorder in dry-run mode);
    ``clock`` supplies the migration timestamp.
    """

    def __init__(
        self,
        config: CrudConfig,
        *,
        runner: Optional[MigrationRunner] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self._config: CrudConfig = config
        self._runner: MigrationRunner = runner or build_runner(config)
        self._preview_runner: DryRunRunner = DryRunRunner(
            php_binary=config.php_binary,
            artisan_script=config.artisan_script,
        )
        self._clock: Callable[[], datetime] = clock or datetime.now
        self._templates: TemplateGenerator = TemplateGenerator(config)
        self._writer: ArtifactWriter = ArtifactWriter(config)
        self._injector: TextInjector = TextInjector(config)

        logger.debug(
            "CrudGenerator initialised: base_path=%s, continue_on_error=%s, dry_run=%s.",
            config.base_path,
            config.continue_on_error,
            config.dry_run,
        )

    @property
    def config(self) -> CrudConfig:
        return self._config

    # -----------------------------------------------------------------
    # Public API
    # -----------------------------------------------------------------

    def generate_from_input(self, name: Optional[str], raw_fields: Optional[str]) -> GenerationReport:
        """
        Parse raw CLI input, then run the pipeline.

        Raises:
            InvalidFieldFormat: the name or a field token is malformed.
                Nothing has been written when this is raised.
        """
        entity: EntitySpec = build_entity(name, raw_fields)
        return self.generate(entity)

    def generate(self, entity: EntitySpec) -> GenerationReport:
        """Run every step for *entity* and return the report."""
        report: GenerationReport = GenerationReport(
            entity_name=entity.base_name,
            base_path=str(self._config.resolve(".")),
            dry_run=self._config.dry_run,
        )
        pipeline_start: float = time.perf_counter()

        checks: ValidationResult = validate_entity(
            entity, strict_types=self._config.strict_types
        )
        report.validation_errors.extend(str(i) for i in checks.errors)
        report.validation_warnings.extend(str(i) for i in checks.warnings)
        if not checks.is_valid:
            logger.error("Validation failed for '%s'; nothing generated.", entity.base_name)
            report.total_elapsed_seconds = time.perf_counter() - pipeline_start
            return report

        artifacts: List[GeneratedArtifact] = self._templates.render_all(
            entity, timestamp=self._clock()
        )
        steps: List[Tuple[str, StepFn]] = self._plan(entity, artifacts)

        halted: bool = False
        for name, fn in steps:
            if halted:
                outcome: StepOutcome = StepOutcome(
                    step=name,
                    status=StepStatus.NOT_RUN,
                    detail="not run: an earlier step failed",
                )
            else:
                blocked: Optional[str] = self._blocked_by(name, report)
                if blocked is not None:
                    outcome = StepOutcome(step=name, status=StepStatus.NOT_RUN, detail=blocked)
                else:
                    outcome = self._run_step(name, fn)

            report.outcomes.append(outcome)
            self._log_outcome(outcome)

            if outcome.is_error and not self._config.continue_on_error:
                halted = True

        report.total_elapsed_seconds = time.perf_counter() - pipeline_start
        logger.info(
            "Generation for '%s' finished in %.3fs: %s.",
            entity.base_name,
            report.total_elapsed_seconds,
            "success" if report.success else f"{len(report.errored_steps)} step(s) errored",
        )
        return report

    # -----------------------------------------------------------------
    # Internal: plan & dependencies
    # -----------------------------------------------------------------

    def _plan(
        self, entity: EntitySpec, artifacts: List[GeneratedArtifact]
    ) -> List[Tuple[str, StepFn]]:
        """Steps in execution order; artifacts already in pipeline order."""
        steps: List[Tuple[str, StepFn]] = []

        for artifact in artifacts:
            # Route goes in between the views and the data-table.
            if artifact.kind is ArtifactKind.DATATABLE:
                steps.append(
                    (STEP_ROUTE, lambda: self._step_inject(STEP_ROUTE, router_targets(entity, self._config)))
                )
            steps.append((artifact.label, lambda a=artifact: self._step_write(entity, a)))

        steps.append((STEP_RUN_MIGRATION, self._step_run_migrations))
        steps.append(
            (
                STEP_SEEDER_REGISTRATION,
                lambda: self._step_inject(
                    STEP_SEEDER_REGISTRATION, seeder_registry_targets(entity, self._config)
                ),
            )
        )
        steps.append((STEP_RUN_SEEDER, lambda: self._step_run_seeder(entity.seeder_class)))
        return steps

    def _blocked_by(self, step: str, report: GenerationReport) -> Optional[str]:
        """Why *step* must not run, or ``None``."""
        if step == STEP_RUN_MIGRATION and not self._config.run_migrations:
            return "disabled"
        if step == STEP_RUN_SEEDER:
            if not self._config.run_seeder:
                return "disabled"
            for dependency in (ArtifactKind.SEEDER.value, STEP_SEEDER_REGISTRATION):
                prior: Optional[StepOutcome] = report.outcome(dependency)
                if prior is not None and prior.is_error:
                    return f"{dependency} failed"
        return None

    # -----------------------------------------------------------------
    # Internal: step execution
    # -----------------------------------------------------------------

    def _run_step(self, name: str, fn: StepFn) -> StepOutcome:
        with Timer(name) as t:
            try:
                outcome: StepOutcome = fn()
            except (QuickCrudError, OSError) as exc:
                outcome = StepOutcome(
                    step=name,
                    status=StepStatus.ERRORED,
                    detail=f"{type(exc).__name__}: {exc}",
                )
        outcome.elapsed_seconds = t.elapsed
        return outcome

    def _step_write(self, entity: EntitySpec, artifact: GeneratedArtifact) -> StepOutcome:
        result: WriteResult
        if artifact.kind is ArtifactKind.MIGRATION:
            result = self._writer.write_migration(
                artifact, TemplateGenerator.migration_suffix(entity)
            )
        else:
            result = self._writer.write(artifact)
        return StepOutcome(
            step=artifact.label,
            status=result.status,
            path=result.path,
            detail=result.detail,
        )

    def _step_inject(self, step: str, targets: Sequence[InjectionTarget]) -> StepOutcome:
        result: InjectionResult = self._injector.inject(targets)
        if not result.changed:
            return StepOutcome(
                step=step,
                status=StepStatus.SKIPPED,
                path=result.path,
                detail="all already present",
            )
        detail: str = result.describe()
        if self._config.dry_run:
            detail += "; dry run, not written"
        return StepOutcome(step=step, status=StepStatus.UPDATED, path=result.path, detail=detail)

    def _step_run_migrations(self) -> StepOutcome:
        if self._config.dry_run:
            preview: RunnerResult = self._preview_runner.run_migrations()
            return self._dry_run_outcome(STEP_RUN_MIGRATION, preview)
        return self._from_runner(STEP_RUN_MIGRATION, self._runner.run_migrations())

    def _step_run_seeder(self, class_name: str) -> StepOutcome:
        if self._config.dry_run:
            preview: RunnerResult = self._preview_runner.run_seeder(class_name)
            return self._dry_run_outcome(STEP_RUN_SEEDER, preview)
        return self._from_runner(STEP_RUN_SEEDER, self._runner.run_seeder(class_name))

    @staticmethod
    def _dry_run_outcome(step: str, preview: RunnerResult) -> StepOutcome:
        return StepOutcome(
            step=step,
            status=StepStatus.NOT_RUN,
            detail=f"dry run, would run: {preview.command_line}",
        )

    @staticmethod
    def _from_runner(step: str, result: RunnerResult) -> StepOutcome:
        if result.ok:
            return StepOutcome(step=step, status=StepStatus.SUCCEEDED, detail=result.command_line)
        return StepOutcome(step=step, status=StepStatus.ERRORED, detail=result.failure_detail())

    @staticmethod
    def _log_outcome(outcome: StepOutcome) -> None:
        where: str = outcome.path or outcome.detail
        if outcome.is_error:
            logger.error("✗ %s errored: %s", outcome.step, outcome.detail)
        elif outcome.status is StepStatus.NOT_RUN:
            logger.info("⊘ %s not run (%s)", outcome.step, outcome.detail)
        else:
            logger.info("%s %s %s: %s", _STATUS_ICONS[outcome.status], outcome.step, outcome.status.value, where)


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "GenerationReport",
    "CrudGenerator",
    "DEFAULT_CONFIG_FILENAME",
    "load_config_file",
    "build_config",
    "STEP_ROUTE",
    "STEP_RUN_MIGRATION",
    "STEP_SEEDER_REGISTRATION",
    "STEP_RUN_SEEDER",
]

logger.debug("quickcrud.generator loaded.")
