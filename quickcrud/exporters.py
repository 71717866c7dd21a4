# File: quickcrud/exporters.py
"""
QuickCRUD - Artifact Writer (File-System Manager)
==================================================

Responsible for putting rendered artifacts on disk without ever clobbering
an existing file:

    1. Create the parent directory (recursively) when it is missing.
    2. Skip the write when the target already exists.
    3. Otherwise write the content verbatim, atomically.

"Never overwrite" protects hand-edited generated files across repeated runs.
Migrations are timestamp-prefixed, so for them "already exists" means "any
migration creating the same table", not "the exact same filename".

Not safe against concurrent runs on the same entity: both checks here are
check-then-act.
"""

from __future__ import annotations

import logging
import os
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from quickcrud.errors import DirectoryCreateError
from quickcrud.models import CrudConfig, GeneratedArtifact, StepStatus
from quickcrud.utils import count_lines

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("quickcrud.exporters")


def _current_umask() -> int:
    """Process umask (os.umask can only be read by setting it)."""
    mask: int = os.umask(0)
    os.umask(mask)
    return mask


# ---------------------------------------------------------------------------
# Result record
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class WriteResult:
    """Outcome of writing one artifact."""

    status: StepStatus
    path: str
    detail: str = ""
    size_bytes: int = 0
    line_count: int = 0


# ---------------------------------------------------------------------------
# ArtifactWriter class
# ---------------------------------------------------------------------------


class ArtifactWriter:
    """
    Writes ``GeneratedArtifact`` objects under the application root.

    Usage::

        writer = ArtifactWriter(config)
        result = writer.write(artifact)
        if result.status is StepStatus.SKIPPED:
            ...

    Never raises for filesystem problems; they come back as ``errored``
    results.
    """

    def __init__(
        self,
        config: CrudConfig,
        *,
        atomic_writes: bool = True,
    ) -> None:
        self._config: CrudConfig = config
        self._base_path: Path = Path(config.base_path).resolve()
        self._atomic_writes: bool = atomic_writes
        self._dry_run: bool = config.dry_run

        logger.debug(
            "ArtifactWriter initialised: base_path=%s, atomic=%s, dry_run=%s.",
            self._base_path,
            self._atomic_writes,
            self._dry_run,
        )

    # -----------------------------------------------------------------
    # Public API
    # -----------------------------------------------------------------

    def write(self, artifact: GeneratedArtifact) -> WriteResult:
        """Write one artifact, honouring the never-overwrite rule."""
        return self.write_content(Path(artifact.target_path), artifact.content)

    def write_content(self, relative_path: Path, content: str) -> WriteResult:
        """
        Write *content* to *relative_path* under the base path.

        Returns a ``created``, ``skipped`` or ``errored`` result.
        """
        full_path: Path = self._base_path / relative_path
        rel: str = relative_path.as_posix()

        if full_path.exists():
            logger.info("Skipped %s (file already exists).", rel)
            return WriteResult(
                status=StepStatus.SKIPPED,
                path=rel,
                detail="file already exists",
            )

        encoded: bytes = content.encode("utf-8")

        if self._dry_run:
            logger.info("[dry-run] Would create %s (%d bytes).", rel, len(encoded))
            return WriteResult(
                status=StepStatus.CREATED,
                path=rel,
                detail="dry run, not written",
                size_bytes=len(encoded),
                line_count=count_lines(content),
            )

        try:
            self._ensure_parent(full_path)
            if self._atomic_writes:
                self._atomic_write(full_path, encoded)
            else:
                full_path.write_bytes(encoded)
        except DirectoryCreateError as exc:
            logger.error("%s", exc)
            return WriteResult(status=StepStatus.ERRORED, path=rel, detail=str(exc))
        except OSError as exc:
            error_msg: str = f"Failed to write {rel}: {type(exc).__name__}: {exc}"
            logger.error(error_msg)
            return WriteResult(status=StepStatus.ERRORED, path=rel, detail=error_msg)

        logger.info("Created %s (%d bytes).", rel, len(encoded))
        return WriteResult(
            status=StepStatus.CREATED,
            path=rel,
            size_bytes=len(encoded),
            line_count=count_lines(content),
        )

    def write_migration(self, artifact: GeneratedArtifact, suffix: str) -> WriteResult:
        """
        Write a migration unless one for the same table already exists.

        *suffix* is the timestamp-free tail, e.g. ``create_products_table.php``.
        """
        existing: Optional[Path] = self.find_existing_migration(suffix)
        if existing is not None:
            rel: str = existing.relative_to(self._base_path).as_posix()
            logger.info("Skipped migration: %s already exists.", rel)
            return WriteResult(
                status=StepStatus.SKIPPED,
                path=rel,
                detail="migration for this table already exists",
            )
        return self.write(artifact)

    def find_existing_migration(self, suffix: str) -> Optional[Path]:
        """First ``*_{suffix}`` file in the migrations directory, if any."""
        migrations_dir: Path = self._base_path / self._config.migrations_dir
        if not migrations_dir.is_dir():
            return None
        matches: List[Path] = sorted(migrations_dir.glob(f"*_{suffix}"))
        return matches[0] if matches else None

    # -----------------------------------------------------------------
    # Internal helpers
    # -----------------------------------------------------------------

    @staticmethod
    def _ensure_parent(full_path: Path) -> None:
        parent: Path = full_path.parent
        if parent.is_dir():
            return
        try:
            parent.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise DirectoryCreateError(
                f"Failed to create directory {parent}: {exc}"
            ) from exc
        logger.debug("Created directory: %s", parent)

    @staticmethod
    def _atomic_write(target_path: Path, data: bytes) -> None:
        """
        Write data to target_path atomically using a temporary file.

        The temp file lives in the target directory so that ``os.replace``
        stays on one filesystem.
        """
        fd: int = -1
        tmp_path: str = ""
        try:
            fd, tmp_path = tempfile.mkstemp(
                dir=str(target_path.parent),
                prefix=f".{target_path.name}.",
                suffix=".tmp",
            )
            os.write(fd, data)
            os.fsync(fd)
            os.close(fd)
            fd = -1

            # mkstemp creates 0600; give artifacts the mode open() would.
            os.chmod(tmp_path, 0o666 & ~_current_umask())
            os.replace(tmp_path, str(target_path))

        except Exception:
            if fd >= 0:
                os.close(fd)
            if tmp_path and os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "WriteResult",
    "ArtifactWriter",
]

logger.debug("quickcrud.exporters loaded.")
