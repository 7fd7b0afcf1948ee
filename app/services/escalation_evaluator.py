"""
Escalation evaluator - maps a point total to an escalation tier.

Pure and side-effect free; the matrix is injected at construction time.
"""
from dataclasses import dataclass, field
from typing import List, Optional

from app.core.escalation_config import EscalationMatrix, TierConfig, get_escalation_matrix


@dataclass(frozen=True)
class EscalationResult:
    points: int
    tier: Optional[TierConfig] = None
    actions: List[str] = field(default_factory=list)

    @property
    def tier_code(self) -> Optional[str]:
        return self.tier.code if self.tier else None

    @property
    def tier_name(self) -> Optional[str]:
        return self.tier.name if self.tier else None


class EscalationEvaluator:
    def __init__(self, matrix: EscalationMatrix):
        self.matrix = matrix
        self._ordinals = {tier.code: idx + 1 for idx, tier in enumerate(matrix.tiers)}

    @property
    def tiers(self) -> List[TierConfig]:
        return self.matrix.tiers

    def evaluate(self, points: int) -> EscalationResult:
        """Highest tier whose inclusive range contains points; no tier below the lowest minimum."""
        for tier in reversed(self.matrix.tiers):
            if tier.contains(points):
                return EscalationResult(points=points, tier=tier, actions=list(tier.actions))
        return EscalationResult(points=points)

    def ordinal(self, code: Optional[str]) -> int:
        """1-based position of a tier in the matrix; 0 for None or an unknown code."""
        if code is None:
            return 0
        return self._ordinals.get(code, 0)

    def tier_for_code(self, code: Optional[str]) -> Optional[TierConfig]:
        if code is None:
            return None
        for tier in self.matrix.tiers:
            if tier.code == code:
                return tier
        return None

    def next_threshold(self, points: int) -> Optional[TierConfig]:
        """Lowest tier that starts above points, or None at the top of the matrix."""
        for tier in self.matrix.tiers:
            if tier.min_points > points:
                return tier
        return None


def get_evaluator() -> EscalationEvaluator:
    """Evaluator over the matrix selected by settings."""
    return EscalationEvaluator(get_escalation_matrix())
