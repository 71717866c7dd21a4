# File: quickcrud/injectors.py
"""
QuickCRUD - Idempotent Text Injector
=====================================

Merges single declarations into shared files that other code also edits:

    * ``routes/web.php``          : controller import + ``Route::resource``
    * ``DatabaseSeeder.php``      : ``$this->call(XSeeder::class)``

Every target file type declares an ``AnchorSchema``: for each kind of line
it says whether the line goes right after an anchor pattern or at the end of
the file.  Presence is checked by literal substring match of the exact line,
so re-running for the same entity never duplicates a route or seeder call.

The file is written back only when at least one line was inserted.  When an
``after-pattern`` anchor cannot be found the whole injection fails with
``InjectionTargetMissing`` and the file is left untouched: a silent no-op
would hide a shared file that no longer looks the way we expect.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Literal, Optional, Sequence, Tuple

from quickcrud.errors import InjectionTargetMissing, SharedFileEncodingError
from quickcrud.models import CrudConfig, EntitySpec, InjectionTarget
from quickcrud.templates import TemplateGenerator

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("quickcrud.injectors")


# ---------------------------------------------------------------------------
# Anchor schemas
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Anchor:
    """Where one kind of line goes inside a shared file."""

    rule: Literal["after-pattern", "append"]
    patterns: Tuple[str, ...] = ()
    indent: str = ""


@dataclass(frozen=True, slots=True)
class AnchorSchema:
    """
    The valid anchors of one shared-file type.

    For ``after-pattern`` anchors, ``patterns`` are tried in order and the
    first one that matches wins.
    """

    kind: str
    anchors: Dict[str, Anchor] = field(default_factory=dict)

    def target(self, role: str, file_path: str, line: str) -> InjectionTarget:
        """Build the ``InjectionTarget`` inserting *line* for *role*."""
        try:
            anchor: Anchor = self.anchors[role]
        except KeyError:
            raise KeyError(f"{self.kind} schema has no anchor '{role}'") from None

        return InjectionTarget(
            file_path=file_path,
            marker_string=line,
            insertion_text=f"{anchor.indent}{line}\n",
            insertion_rule=anchor.rule,
            anchor_pattern=anchor.patterns[0] if anchor.patterns else None,
            fallback_patterns=anchor.patterns[1:],
        )


ROUTER_SCHEMA: AnchorSchema = AnchorSchema(
    kind="router",
    anchors={
        # After the leading block of `use` statements, else after `<?php`.
        "import": Anchor(
            rule="after-pattern",
            patterns=(
                r"^(?:use\s[^\r\n]*;[ \t]*\r?\n)+",
                r"\A<\?php[^\r\n]*(?:\r?\n|\Z)",
            ),
        ),
        "route": Anchor(rule="append"),
    },
)

SEEDER_REGISTRY_SCHEMA: AnchorSchema = AnchorSchema(
    kind="seeder_registry",
    anchors={
        "call": Anchor(
            rule="after-pattern",
            patterns=(r"public\s+function\s+run\s*\([^)]*\)[^{;]*\{[ \t]*(?:\r?\n|\Z)",),
            indent="        ",
        ),
    },
)


# ---------------------------------------------------------------------------
# Target builders
# ---------------------------------------------------------------------------


def router_targets(entity: EntitySpec, config: CrudConfig) -> List[InjectionTarget]:
    """Import line + resource route for *entity* in the routes file."""
    return [
        ROUTER_SCHEMA.target(
            "import", config.routes_file, TemplateGenerator.route_import_line(entity)
        ),
        ROUTER_SCHEMA.target(
            "route", config.routes_file, TemplateGenerator.route_resource_line(entity)
        ),
    ]


def seeder_registry_targets(
    entity: EntitySpec, config: CrudConfig
) -> List[InjectionTarget]:
    """``$this->call(...)`` line for *entity* in the seeder aggregator."""
    return [
        SEEDER_REGISTRY_SCHEMA.target(
            "call",
            config.seeder_registry_file,
            TemplateGenerator.seeder_call_line(entity),
        ),
    ]


# ---------------------------------------------------------------------------
# Line endings
# ---------------------------------------------------------------------------


def _line_ending(content: str) -> str:
    """The file's own line ending: CRLF when its first line break is CRLF."""
    first: int = content.find("\n")
    if first > 0 and content[first - 1] == "\r":
        return "\r\n"
    return "\n"


# ---------------------------------------------------------------------------
# Result record
# ---------------------------------------------------------------------------


@dataclass(frozen=False, slots=True)
class InjectionResult:
    """What happened to one shared file."""

    path: str
    inserted: List[str] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)
    written: bool = False

    @property
    def changed(self) -> bool:
        return bool(self.inserted)

    def describe(self) -> str:
        if not self.inserted:
            return "all already present"
        return f"inserted {len(self.inserted)} line(s), {len(self.skipped)} already present"


# ---------------------------------------------------------------------------
# TextInjector
# ---------------------------------------------------------------------------


class TextInjector:
    """
    Applies ``InjectionTarget`` lists to files under the application root.

    All edits for one file are computed in memory first; the file is only
    written when every anchor was found and at least one line is new.
    """

    def __init__(self, config: CrudConfig) -> None:
        self._base_path: Path = Path(config.base_path).resolve()
        self._dry_run: bool = config.dry_run

    # -----------------------------------------------------------------
    # Public API
    # -----------------------------------------------------------------

    def inject(self, targets: Sequence[InjectionTarget]) -> InjectionResult:
        """
        Apply *targets*, which must all name the same file.

        Raises:
            InjectionTargetMissing: the file or a required anchor is absent.
            SharedFileEncodingError: the file is not valid UTF-8.
        """
        if not targets:
            raise ValueError("inject() needs at least one target.")

        file_paths: set = {t.file_path for t in targets}
        if len(file_paths) != 1:
            raise ValueError(f"Targets span several files: {sorted(file_paths)}")

        rel: str = targets[0].file_path
        full_path: Path = self._base_path / rel

        if not full_path.is_file():
            raise InjectionTargetMissing(f"Shared file not found: {rel}")

        try:
            content: str = full_path.read_bytes().decode("utf-8")
        except UnicodeDecodeError as exc:
            raise SharedFileEncodingError(
                f"Shared file is not valid UTF-8: {rel} ({exc.reason} at byte {exc.start})"
            ) from exc
        eol: str = _line_ending(content)
        result: InjectionResult = InjectionResult(path=rel)

        for target in targets:
            if target.marker_string in content:
                logger.debug("Already present in %s: %s", rel, target.marker_string)
                result.skipped.append(target.marker_string)
                continue

            content = self._apply(content, target, rel, eol)
            result.inserted.append(target.marker_string)

        if not result.changed:
            logger.info("%s: all lines already present, file untouched.", rel)
            return result

        if self._dry_run:
            logger.info("[dry-run] Would insert into %s: %s", rel, result.inserted)
            return result

        full_path.write_bytes(content.encode("utf-8"))
        result.written = True
        logger.info("%s: %s.", rel, result.describe())
        return result

    # -----------------------------------------------------------------
    # Internal helpers
    # -----------------------------------------------------------------

    def _apply(self, content: str, target: InjectionTarget, rel: str, eol: str) -> str:
        insertion: str = target.insertion_text.replace("\n", eol)
        if target.insertion_rule == "append":
            return self._append(content, insertion, eol)

        for pattern in target.anchor_patterns:
            match: Optional[re.Match[str]] = re.search(pattern, content, re.MULTILINE)
            if match is None:
                continue
            pos: int = match.end()
            if pos > 0 and content[pos - 1] != "\n":
                return content[:pos] + eol + insertion + content[pos:]
            return content[:pos] + insertion + content[pos:]

        raise InjectionTargetMissing(
            f"Anchor not found in {rel} for line: {target.marker_string}"
        )

    @staticmethod
    def _append(content: str, insertion: str, eol: str) -> str:
        if content and not content.endswith("\n"):
            content += eol
        return content + insertion


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "Anchor",
    "AnchorSchema",
    "ROUTER_SCHEMA",
    "SEEDER_REGISTRY_SCHEMA",
    "router_targets",
    "seeder_registry_targets",
    "InjectionResult",
    "TextInjector",
]

logger.debug("quickcrud.injectors loaded.")
