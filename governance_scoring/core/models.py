"""Entity and result records passed in and out of the scoring engine."""

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, Mapping


class RatingLabel(str, Enum):
    """Qualitative governance tier, best first."""

    EXEMPLARY = "Exemplary"
    STRONG = "Strong"
    GOOD = "Good"
    SATISFACTORY = "Satisfactory"
    NEEDS_IMPROVEMENT = "Needs Improvement"
    SIGNIFICANT_CONCERNS = "Significant Concerns"

    @property
    def display_name(self) -> str:
        return f"{self.value} Governance"


@dataclass(frozen=True)
class Entity:
    """
    A subject under evaluation, usually a company.

    Attributes:
        identifier: Unique key (e.g. ticker)
        raw_metrics: Metric name -> numeric value, read-only
    """

    identifier: str
    raw_metrics: Mapping[str, float] = field(default_factory=dict)

    def __post_init__(self):
        # Copy so later changes to the caller's dict do not leak in.
        object.__setattr__(self, "raw_metrics", MappingProxyType(dict(self.raw_metrics)))


@dataclass(frozen=True)
class ScoreResult:
    """
    Outcome of scoring one entity against one rubric.

    Attributes:
        identifier: Entity key
        sub_scores: Category -> 1-5 sub-score
        weights: Category -> weight fraction used
        contributions: Category -> points contributed to the aggregate
        aggregate_score: Weighted score in [0, 100]
        rating_label: Tier for the aggregate score
        rubric_version: Version of the rubric that produced the score
    """

    identifier: str
    sub_scores: Mapping[str, int]
    weights: Mapping[str, float]
    contributions: Mapping[str, float]
    aggregate_score: float
    rating_label: RatingLabel
    rubric_version: str = ""

    def to_dict(self) -> Dict[str, Any]:
        """Flatten into one row: identifier, sub-scores, aggregate, label."""
        row: Dict[str, Any] = {"identifier": self.identifier}
        row.update(self.sub_scores)
        row["aggregate_score"] = self.aggregate_score
        row["rating_label"] = self.rating_label.value
        row["rubric_version"] = self.rubric_version
        return row
