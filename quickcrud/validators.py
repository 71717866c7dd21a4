# File: quickcrud/validators.py
"""
QuickCRUD - Input Parsing & Validators
=======================================
Turns the raw CLI input (entity name + ``--fields`` string) into validated
``FieldSpec`` / ``EntitySpec`` models, and runs the soft checks that only
produce warnings.

Parsing is **fail-fast**: the first malformed token raises
``InvalidFieldFormat`` and nothing is generated.  Soft checks (unknown type
tokens, plural-looking entity names) are collected in a ``ValidationResult``
so the caller decides whether they block generation.

Usage by downstream modules:
    from quickcrud.validators import build_entity, validate_entity
    entity = build_entity("Product", "title:string,price:decimal")
    result = validate_entity(entity, strict_types=False)
"""

from __future__ import annotations

import logging
import re
from typing import Any, Dict, FrozenSet, List, Optional, Sequence, Tuple

from pydantic import ValidationError as PydanticValidationError

from quickcrud.errors import InvalidEntityName, InvalidFieldFormat
from quickcrud.models import EntitySpec, FieldSpec
from quickcrud.utils import to_plural, to_singular

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("quickcrud.validators")

# ---------------------------------------------------------------------------
# Validation result container
# ---------------------------------------------------------------------------


class ValidationIssue:
    """Lightweight issue descriptor."""

    __slots__ = ("level", "code", "message", "context")

    def __init__(
        self,
        level: str,
        code: str,
        message: str,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.level: str = level  # "error" | "warning"
        self.code: str = code
        self.message: str = message
        self.context: Dict[str, Any] = context or {}

    @property
    def is_error(self) -> bool:
        return self.level == "error"

    @property
    def is_warning(self) -> bool:
        return self.level == "warning"

    def __repr__(self) -> str:
        return f"[{self.level.upper()}] {self.code}: {self.message}"

    def __str__(self) -> str:
        return self.__repr__()


class ValidationResult:
    """Accumulates ``ValidationIssue`` instances produced by the soft checks."""

    __slots__ = ("_items",)

    def __init__(self) -> None:
        self._items: List[ValidationIssue] = []

    def add_error(
        self,
        code: str,
        message: str,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        self._items.append(ValidationIssue("error", code, message, context))

    def add_warning(
        self,
        code: str,
        message: str,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        self._items.append(ValidationIssue("warning", code, message, context))

    def merge(self, other: "ValidationResult") -> None:
        self._items.extend(other._items)

    @property
    def errors(self) -> List[ValidationIssue]:
        return [i for i in self._items if i.is_error]

    @property
    def warnings(self) -> List[ValidationIssue]:
        return [i for i in self._items if i.is_warning]

    @property
    def is_valid(self) -> bool:
        return not any(i.is_error for i in self._items)

    def summary(self) -> str:
        return (
            f"Validation: {len(self.errors)} error(s), "
            f"{len(self.warnings)} warning(s)."
        )

    def __repr__(self) -> str:
        return f"<ValidationResult {self.summary()}>"

    def __bool__(self) -> bool:
        """Truthy when there are NO errors."""
        return self.is_valid

    def __len__(self) -> int:
        return len(self._items)


# ---------------------------------------------------------------------------
# Patterns & vocabularies
# ---------------------------------------------------------------------------

FIELD_TOKEN_RE: re.Pattern[str] = re.compile(r"^\w+:\w+$")
_ENTITY_NAME_RE: re.Pattern[str] = re.compile(r"^[A-Z][A-Za-z0-9]*$")

# Column methods of the schema builder that take a single column name.
# Lower-cased: PHP method names are case-insensitive.
_SCHEMA_COLUMN_TYPES: FrozenSet[str] = frozenset(
    {
        "string", "char", "text", "tinytext", "mediumtext", "longtext",
        "integer", "biginteger", "smallinteger", "tinyinteger", "mediuminteger",
        "unsignedinteger", "unsignedbiginteger", "unsignedsmallinteger",
        "unsignedtinyinteger", "unsignedmediuminteger",
        "decimal", "unsigneddecimal", "float", "double",
        "boolean", "date", "datetime", "datetimetz", "time", "timetz",
        "timestamp", "timestamptz", "year",
        "json", "jsonb", "binary", "uuid", "ulid",
        "ipaddress", "macaddress", "geometry", "point",
        "foreignid", "foreignuuid", "foreignulid",
    }
)

# Semantic tokens understood by the seeder's value generators.
_SEEDER_SEMANTIC_TYPES: FrozenSet[str] = frozenset(
    {
        "varchar", "email", "name", "phone", "phone_number",
        "address", "city", "state", "country", "slug",
    }
)

KNOWN_FIELD_TYPES: FrozenSet[str] = _SCHEMA_COLUMN_TYPES | _SEEDER_SEMANTIC_TYPES


# ---------------------------------------------------------------------------
# Fail-fast parsing
# ---------------------------------------------------------------------------


def parse_fields(raw: Optional[str]) -> Tuple[FieldSpec, ...]:
    """
    Parse ``"title:string, price:decimal"`` into ordered ``FieldSpec`` tuples.

    Splits on commas, trims each token and checks it against ``^\\w+:\\w+$``.
    The first bad token raises ``InvalidFieldFormat`` naming it.  Duplicate
    field names are rejected too, since they would yield duplicate columns.
    """
    if raw is None or not raw.strip():
        raise InvalidFieldFormat(raw or "", "no fields given")

    fields: List[FieldSpec] = []
    seen: Dict[str, str] = {}

    for chunk in raw.split(","):
        token: str = chunk.strip()
        if not FIELD_TOKEN_RE.match(token):
            raise InvalidFieldFormat(token)

        name, type_token = token.split(":", 1)
        if name in seen:
            raise InvalidFieldFormat(token, f"duplicate field name '{name}'")
        seen[name] = type_token
        fields.append(FieldSpec(name=name, type=type_token))

    logger.debug("Parsed %d field(s): %s", len(fields), [f.token for f in fields])
    return tuple(fields)


def serialize_fields(fields: Sequence[FieldSpec]) -> str:
    """Inverse of :func:`parse_fields`."""
    return ",".join(f.token for f in fields)


def validate_entity_name(name: Optional[str]) -> str:
    """Return *name* unchanged or raise ``InvalidEntityName``."""
    if not name or not _ENTITY_NAME_RE.match(name):
        raise InvalidEntityName(name or "")
    return name


def build_entity(name: Optional[str], raw_fields: Optional[str]) -> EntitySpec:
    """Validate the name, parse the fields and assemble an ``EntitySpec``."""
    base_name: str = validate_entity_name(name)
    fields: Tuple[FieldSpec, ...] = parse_fields(raw_fields)
    try:
        return EntitySpec(base_name=base_name, fields=fields)
    except PydanticValidationError as exc:
        raise InvalidFieldFormat(serialize_fields(fields), str(exc)) from exc


# ---------------------------------------------------------------------------
# Soft checks
# ---------------------------------------------------------------------------


def check_field_types(
    fields: Sequence[FieldSpec],
    *,
    strict: bool = False,
) -> ValidationResult:
    """
    Flag type tokens outside ``KNOWN_FIELD_TYPES``.

    Unknown tokens are still passed through to the migration verbatim and the
    seeder falls back to a random word, so by default this only warns.  With
    *strict* the same findings are errors.
    """
    result: ValidationResult = ValidationResult()

    for f in fields:
        if f.type.lower() in KNOWN_FIELD_TYPES:
            continue
        message: str = (
            f"Field '{f.name}' has unrecognised type '{f.type}'; it will be "
            f"passed through to the migration as-is."
        )
        ctx: Dict[str, Any] = {"field": f.name, "type": f.type}
        if strict:
            result.add_error("UNKNOWN_FIELD_TYPE", message, ctx)
        else:
            result.add_warning("UNKNOWN_FIELD_TYPE", message, ctx)

    return result


def check_entity_name(entity: EntitySpec) -> ValidationResult:
    """Warn when the entity name already looks plural (``Products``)."""
    result: ValidationResult = ValidationResult()
    name: str = entity.base_name
    singular: str = to_singular(name)

    if singular != name and to_plural(singular) == name:
        result.add_warning(
            "ENTITY_NAME_PLURAL",
            f"Entity name '{name}' looks plural; models are usually singular "
            f"('{singular}').",
            {"entity": name},
        )
    return result


def validate_entity(entity: EntitySpec, *, strict_types: bool = False) -> ValidationResult:
    """Run all soft checks and log their findings."""
    result: ValidationResult = ValidationResult()
    result.merge(check_entity_name(entity))
    result.merge(check_field_types(entity.fields, strict=strict_types))

    for issue in result.warnings:
        logger.warning("%s", issue)
    for issue in result.errors:
        logger.error("%s", issue)

    logger.info("Entity '%s' checked. %s", entity.base_name, result.summary())
    return result


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "ValidationIssue",
    "ValidationResult",
    "FIELD_TOKEN_RE",
    "KNOWN_FIELD_TYPES",
    "parse_fields",
    "serialize_fields",
    "validate_entity_name",
    "build_entity",
    "check_field_types",
    "check_entity_name",
    "validate_entity",
]

logger.debug("quickcrud.validators loaded, %d public symbols.", len(__all__))
