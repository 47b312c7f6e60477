from __future__ import annotations

import math
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Iterable

from ...core.exceptions import ValidationError


@dataclass(frozen=True)
class WeightedScore:
    percentage: float
    weight: float


class GradeCalculator(ABC):
    """Calculator interface (Strategy Pattern for grading scales).

    Percentages and weighted averages are scale-independent; subclasses only
    decide how a percentage maps onto a letter.
    """

    def percentage_of(self, points: float, max_points: float) -> float:
        if max_points is None or not math.isfinite(float(max_points)) or float(max_points) <= 0:
            raise ValidationError("max_points must be greater than 0", operation="percentage_of")
        return float(points) / float(max_points) * 100.0

    def weighted_average(self, items: Iterable[WeightedScore]) -> float:
        """Sum(p*w) / Sum(w); 0 when there is nothing to weigh."""
        total = 0.0
        weights = 0.0
        for item in items:
            total += float(item.percentage) * float(item.weight)
            weights += float(item.weight)
        if weights == 0:
            return 0.0
        return total / weights

    @abstractmethod
    def letter_grade(self, percentage: float) -> int:
        raise NotImplementedError
