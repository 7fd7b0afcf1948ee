"""
Escalation matrix configuration.

Loads the configured escalation matrix (built-in name or JSON file) into a
validated EscalationMatrix. Tier ranges are inclusive, ordered and disjoint;
only the last tier may be open-ended. Any violation raises
EscalationConfigError, which aborts application startup.
"""
import json
import logging
from functools import lru_cache
from pathlib import Path
from typing import List, Optional

from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

from app.core.config import settings
from app.core.constants import BUILTIN_MATRICES

logger = logging.getLogger(__name__)


class EscalationConfigError(ValueError):
    """Raised when an escalation matrix cannot be loaded or is inconsistent."""


class TierConfig(BaseModel):
    """One escalation tier: an inclusive point range and its required actions"""
    code: str = Field(..., min_length=1, description="Stable tier identifier, e.g. LEVEL_1")
    name: str = Field(..., min_length=1, description="Display name, e.g. Stage 1")
    min_points: int = Field(..., ge=0)
    max_points: Optional[int] = Field(None, description="Inclusive upper bound; None means unbounded")
    due_days: Optional[int] = Field(None, ge=0, description="Days until actions are due")
    actions: List[str] = Field(..., min_length=1)

    @field_validator("actions")
    @classmethod
    def validate_actions(cls, v: List[str]) -> List[str]:
        if any(not a.strip() for a in v):
            raise ValueError("tier actions must be non-empty strings")
        if len(set(v)) != len(v):
            raise ValueError("tier actions must be unique")
        return v

    @model_validator(mode="after")
    def validate_range(self) -> "TierConfig":
        if self.max_points is not None and self.max_points < self.min_points:
            raise ValueError(
                f"tier {self.code}: max_points {self.max_points} < min_points {self.min_points}"
            )
        return self

    def contains(self, points: int) -> bool:
        if points < self.min_points:
            return False
        return self.max_points is None or points <= self.max_points


class EscalationMatrix(BaseModel):
    """Ordered, non-overlapping set of tiers"""
    name: str = Field(default="custom")
    tiers: List[TierConfig] = Field(..., min_length=1)

    @model_validator(mode="after")
    def validate_tiers(self) -> "EscalationMatrix":
        codes = [t.code for t in self.tiers]
        if len(set(codes)) != len(codes):
            raise ValueError(f"duplicate tier codes in matrix '{self.name}': {codes}")

        ordered = sorted(self.tiers, key=lambda t: t.min_points)
        if [t.code for t in ordered] != codes:
            raise ValueError(f"tiers in matrix '{self.name}' must be listed in ascending point order")

        for lower, upper in zip(ordered, ordered[1:]):
            if lower.max_points is None:
                raise ValueError(
                    f"tier {lower.code} is unbounded but is followed by tier {upper.code}"
                )
            if upper.min_points <= lower.max_points:
                raise ValueError(
                    f"tier {lower.code} ({lower.min_points}-{lower.max_points}) overlaps "
                    f"tier {upper.code} (from {upper.min_points})"
                )
        return self


def parse_escalation_matrix(data: dict) -> EscalationMatrix:
    """Validate raw matrix data, converting pydantic errors to EscalationConfigError."""
    try:
        return EscalationMatrix.model_validate(data)
    except ValidationError as exc:
        raise EscalationConfigError(f"Invalid escalation matrix: {exc}") from exc


def load_escalation_matrix(name: Optional[str] = None, path: Optional[str] = None) -> EscalationMatrix:
    """
    Load an escalation matrix from a JSON file or by built-in name.

    Args:
        name: Built-in matrix name ('stages' or 'levels')
        path: JSON file path; takes precedence over name

    Raises:
        EscalationConfigError: If the source is missing or the matrix is invalid
    """
    if path:
        file_path = Path(path)
        if not file_path.is_file():
            raise EscalationConfigError(f"Escalation matrix file not found: {path}")
        try:
            data = json.loads(file_path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as exc:
            raise EscalationConfigError(f"Escalation matrix file is not valid JSON: {exc}") from exc
        data.setdefault("name", file_path.stem)
        return parse_escalation_matrix(data)

    key = (name or "stages").lower()
    if key not in BUILTIN_MATRICES:
        raise EscalationConfigError(
            f"Unknown escalation matrix '{name}'. Available: {sorted(BUILTIN_MATRICES)}"
        )
    return parse_escalation_matrix(BUILTIN_MATRICES[key])


@lru_cache(maxsize=1)
def get_escalation_matrix() -> EscalationMatrix:
    """Matrix selected by settings, loaded once per process."""
    matrix = load_escalation_matrix(settings.ESCALATION_MATRIX, settings.ESCALATION_MATRIX_FILE)
    logger.info(
        "Escalation matrix loaded: name=%s tiers=%s",
        matrix.name,
        [(t.code, t.min_points, t.max_points) for t in matrix.tiers],
    )
    return matrix
