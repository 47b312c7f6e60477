from __future__ import annotations

from ...core.exceptions import ValidationError
from .base import GradeCalculator

# (inclusive lower bound, letter), highest first.
FIVE_POINT_BANDS = (
    (89.0, 5),
    (75.0, 4),
    (61.0, 3),
    (50.0, 2),
    (0.0, 1),
)


class FivePointGradeCalculator(GradeCalculator):
    """Fixed school scale: 89+ -> 5, 75+ -> 4, 61+ -> 3, 50+ -> 2, else 1."""

    def letter_grade(self, percentage: float) -> int:
        value = float(percentage)
        if not (0.0 <= value <= 100.0):
            raise ValidationError(f"percentage out of range: {value}", operation="letter_grade")
        for lower, letter in FIVE_POINT_BANDS:
            if value >= lower:
                return letter
        return 1
