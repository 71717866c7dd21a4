# File: quickcrud/errors.py
"""
QuickCRUD - Exception hierarchy.

Only input validation errors escape to the CLI; everything else is caught by
the orchestrator and turned into an errored ``StepOutcome``.
"""

from __future__ import annotations

from typing import List, Optional


class QuickCrudError(Exception):
    """Base class for all quickcrud errors."""


class InvalidFieldFormat(QuickCrudError):
    """A ``name:type`` token (or the whole fields string) is malformed."""

    def __init__(self, token: str, reason: Optional[str] = None) -> None:
        self.token: str = token
        message: str = f"Invalid field format: '{token}'. Use name:type format."
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message)


class InvalidEntityName(InvalidFieldFormat):
    """The entity name is not a PascalCase identifier."""

    def __init__(self, name: str) -> None:
        self.token = name
        QuickCrudError.__init__(
            self,
            f"Invalid entity name: '{name}'. Use a PascalCase identifier such as 'Product'.",
        )


class DirectoryCreateError(QuickCrudError):
    """A parent directory for an artifact could not be created."""


class InjectionTargetMissing(QuickCrudError):
    """A shared file, or the anchor expected inside it, does not exist."""


class SharedFileEncodingError(QuickCrudError):
    """A shared file is not valid UTF-8 and cannot be edited safely."""


class RunnerError(QuickCrudError):
    """An external command could not be launched or timed out."""


__all__: List[str] = [
    "QuickCrudError",
    "InvalidFieldFormat",
    "InvalidEntityName",
    "DirectoryCreateError",
    "InjectionTargetMissing",
    "SharedFileEncodingError",
    "RunnerError",
]
