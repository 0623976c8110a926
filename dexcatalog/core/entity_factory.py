"""Core service turning untrusted catalog payloads into Creature entities.

Validation is strict for identity and container shapes and lenient for
numeric optionals, which fall back to 0. Construction either produces a
complete entity or nothing at all.
"""

import logging
import math
from dataclasses import dataclass
from typing import Any, Dict, Optional

from dexcatalog.domain.errors import ValidationError
from dexcatalog.domain.models.creature import Creature

logger = logging.getLogger(__name__)

LIST_FIELDS = ("types", "abilities", "stats")
MAPPING_FIELDS = ("sprites", "cries")
NUMERIC_FIELDS = ("height", "weight", "base_experience")


@dataclass(frozen=True)
class ParseResult:
    """Outcome of parsing one payload: exactly one of entity/error is set."""
    entity: Optional[Creature] = None
    error: Optional[ValidationError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value)


class EntityFactory:
    """Validates raw payloads and builds immutable Creature entities."""

    def parse(self, raw: Any) -> ParseResult:
        """Parses a payload without raising.

        Returns:
            A ParseResult holding either the entity or the first ValidationError.
        """
        try:
            fields = self._validate(raw)
        except ValidationError as e:
            return ParseResult(error=e)
        return ParseResult(entity=Creature(**fields))

    def build(self, raw: Any) -> Creature:
        """Builds a Creature from a payload.

        Raises:
            ValidationError: Naming the first offending field.
        """
        result = self.parse(raw)
        if result.error is not None:
            logger.error(f"Rejected catalog payload: {result.error.message}")
            raise result.error
        return result.entity

    # --- Field validation ---

    def _validate(self, raw: Any) -> Dict[str, Any]:
        if not isinstance(raw, dict):
            raise ValidationError("Payload must be a JSON object", field="payload")

        fields: Dict[str, Any] = {
            "id": self._validate_id(raw.get("id")),
            "name": self._validate_name(raw.get("name")),
        }
        for name in NUMERIC_FIELDS:
            fields[name] = self._normalize_number(raw.get(name))
        for name in LIST_FIELDS:
            fields[name] = self._validate_container(raw, name, list, "a list")
        for name in MAPPING_FIELDS:
            fields[name] = self._validate_container(raw, name, dict, "an object")
        return fields

    @staticmethod
    def _validate_id(value: Any) -> int:
        if not _is_number(value):
            raise ValidationError("id is required and must be a finite number", field="id")
        if value != int(value) or value <= 0:
            raise ValidationError("id must be a positive integer", field="id")
        return int(value)

    @staticmethod
    def _validate_name(value: Any) -> str:
        if not isinstance(value, str) or not value.strip():
            raise ValidationError("name is required and must be a non-empty string", field="name")
        return value.strip()

    @staticmethod
    def _normalize_number(value: Any) -> float:
        if not _is_number(value) or value < 0:
            return 0
        return value

    @staticmethod
    def _validate_container(raw: Dict[str, Any], name: str, expected: type, label: str) -> Any:
        value = raw.get(name)
        if value is None:
            return expected()
        if not isinstance(value, expected):
            raise ValidationError(f"{name} must be {label}", field=name)
        return value
