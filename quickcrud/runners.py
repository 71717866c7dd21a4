# File: quickcrud/runners.py
"""
QuickCRUD - External Command Runners
=====================================
The last pipeline steps hand over to the host framework's own tooling:
applying pending migrations and running one seeder class.

The orchestrator depends only on the ``MigrationRunner`` protocol, so the
real ``ArtisanRunner`` can be swapped for ``DryRunRunner`` (dry runs) or a
recording fake (tests).
"""

from __future__ import annotations

import logging
import subprocess
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Protocol, Sequence, Tuple

from quickcrud.errors import RunnerError
from quickcrud.models import CrudConfig

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("quickcrud.runners")


# ---------------------------------------------------------------------------
# Result record & protocol
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class RunnerResult:
    """Captured result of one external command."""

    command: Tuple[str, ...]
    returncode: int = 0
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0

    @property
    def command_line(self) -> str:
        return " ".join(self.command)

    def failure_detail(self) -> str:
        """Short text for a failed command: last stderr line, else stdout."""
        for stream in (self.stderr, self.stdout):
            lines: List[str] = [ln.strip() for ln in stream.splitlines() if ln.strip()]
            if lines:
                return f"exit {self.returncode}: {lines[-1]}"
        return f"exit {self.returncode}"


class MigrationRunner(Protocol):
    """What the orchestrator needs from the framework's tooling."""

    def run_migrations(self) -> RunnerResult: ...

    def run_seeder(self, class_name: str) -> RunnerResult: ...


# ---------------------------------------------------------------------------
# Artisan runner
# ---------------------------------------------------------------------------


class ArtisanRunner:
    """
    Runs ``php artisan`` in the application root.

    Both commands pass ``--force`` so they do not stop at the production
    confirmation prompt.  A non-zero exit status is returned, not raised;
    ``RunnerError`` means the command could not be run at all.
    """

    def __init__(self, config: CrudConfig) -> None:
        self._cwd: Path = Path(config.base_path).resolve()
        self._php: str = config.php_binary
        self._artisan: str = config.artisan_script
        self._timeout: Optional[float] = config.runner_timeout

    def run_migrations(self) -> RunnerResult:
        return self._run(["migrate", "--force"])

    def run_seeder(self, class_name: str) -> RunnerResult:
        return self._run(["db:seed", f"--class={class_name}", "--force"])

    def _run(self, args: Sequence[str]) -> RunnerResult:
        argv: List[str] = [self._php, self._artisan, *args]
        logger.info("Running: %s (cwd=%s)", " ".join(argv), self._cwd)

        try:
            cp: subprocess.CompletedProcess[str] = subprocess.run(
                argv,
                cwd=str(self._cwd),
                capture_output=True,
                text=True,
                encoding="utf-8",
                errors="replace",
                timeout=self._timeout,
                check=False,
            )
        except FileNotFoundError as exc:
            raise RunnerError(f"Command not found: {self._php!r}") from exc
        except subprocess.TimeoutExpired as exc:
            raise RunnerError(
                f"'{' '.join(argv)}' timed out after {self._timeout:.1f}s"
            ) from exc
        except OSError as exc:
            raise RunnerError(f"Failed to execute {argv[0]!r}: {exc}") from exc

        result: RunnerResult = RunnerResult(
            command=tuple(argv),
            returncode=cp.returncode,
            stdout=cp.stdout or "",
            stderr=cp.stderr or "",
        )
        if result.ok:
            logger.debug("Command succeeded: %s", result.command_line)
        else:
            logger.warning("Command failed: %s (%s)", result.command_line, result.failure_detail())
        return result


# ---------------------------------------------------------------------------
# Dry-run runner
# ---------------------------------------------------------------------------


@dataclass
class DryRunRunner:
    """Records the commands it would run and reports success."""

    php_binary: str = "php"
    artisan_script: str = "artisan"
    calls: List[Tuple[str, ...]] = field(default_factory=list)

    def run_migrations(self) -> RunnerResult:
        return self._record(("migrate", "--force"))

    def run_seeder(self, class_name: str) -> RunnerResult:
        return self._record(("db:seed", f"--class={class_name}", "--force"))

    def _record(self, args: Tuple[str, ...]) -> RunnerResult:
        command: Tuple[str, ...] = (self.php_binary, self.artisan_script, *args)
        self.calls.append(command)
        logger.info("[dry-run] Would run: %s", " ".join(command))
        return RunnerResult(command=command)


def build_runner(config: CrudConfig) -> MigrationRunner:
    """The runner matching *config*: recording in dry-run mode, artisan otherwise."""
    if config.dry_run:
        return DryRunRunner(php_binary=config.php_binary, artisan_script=config.artisan_script)
    return ArtisanRunner(config)


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "RunnerResult",
    "MigrationRunner",
    "ArtisanRunner",
    "DryRunRunner",
    "build_runner",
]

logger.debug("quickcrud.runners loaded.")
