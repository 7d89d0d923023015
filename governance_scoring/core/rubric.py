"""
Governance Rubric Definitions
=============================

A rubric is a named, versioned set of categories. Each category has:
- a weight (the weights of one rubric sum to 1.0)
- the raw metric it reads, optionally as a percentage of a second metric
- a threshold table mapping the metric onto a 1-5 sub-score

Threshold tables are configuration, not code, so a new rubric version is a
new table rather than new logic. The weight invariant is checked once, when
the rubric is built, instead of at every formula that uses it.

Scoring a category walks its threshold table the way a spreadsheet
=LOOKUP(value, bounds, scores) does:
- higher-is-better: bounds from high to low, first value >= bound wins
- lower-is-better: bounds from low to high, first value <= bound wins
- no band matched: the minimum score (1)
"""

import math
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from governance_scoring.core.errors import (
    InvalidInputError,
    InvalidWeightsError,
    MissingMetricError,
)

MIN_SUBSCORE = 1
MAX_SUBSCORE = 5
WEIGHT_TOLERANCE = 1e-6

Threshold = Tuple[float, int]


def check_weights(weights: Mapping[str, float], tolerance: float = WEIGHT_TOLERANCE) -> float:
    """
    Validate a category -> weight mapping.

    Args:
        weights: Weight fraction per category
        tolerance: Allowed deviation of the total from 1.0

    Returns:
        The weight total

    Raises:
        InvalidWeightsError: If empty, any weight is negative or non-finite,
            or the total is not 1.0 within tolerance
    """
    if not weights:
        raise InvalidWeightsError("No category weights supplied", total=0.0)

    for category, weight in weights.items():
        try:
            value = float(weight)
        except (TypeError, ValueError) as e:
            raise InvalidWeightsError(f"Weight for '{category}' is not numeric: {weight!r}") from e
        if not math.isfinite(value) or value < 0:
            raise InvalidWeightsError(
                f"Weight for '{category}' must be a non-negative number, got {weight}"
            )

    total = math.fsum(float(w) for w in weights.values())
    if abs(total - 1.0) > tolerance:
        raise InvalidWeightsError(
            f"Category weights sum to {total:.6f}, expected 1.0 (tolerance {tolerance:g})",
            total=total,
        )
    return total


def _read_metric(raw: Mapping[str, Any], category: str, metric: str) -> float:
    if metric not in raw or raw[metric] is None:
        raise MissingMetricError(category, metric)
    try:
        value = float(raw[metric])
    except (TypeError, ValueError) as e:
        raise InvalidInputError(
            f"Metric '{metric}' for category '{category}' is not numeric: {raw[metric]!r}"
        ) from e
    if not math.isfinite(value):
        raise InvalidInputError(f"Metric '{metric}' for category '{category}' is {value}")
    if value < 0:
        raise InvalidInputError(
            f"Metric '{metric}' for category '{category}' cannot be negative, got {value}"
        )
    return value


@dataclass(frozen=True)
class CategoryRule:
    """
    Scoring rule for one rubric category.

    Attributes:
        category: Unique category name
        weight: Weight fraction of this category in the aggregate
        metric: Raw metric the rule reads
        thresholds: (bound, score) pairs with scores in 1-5
        denominator: If set, the rule scores metric / denominator * 100
        higher_is_better: Direction in which the bounds are walked
        description: Human-readable summary for reports
    """

    category: str
    weight: float
    metric: str
    thresholds: Tuple[Threshold, ...]
    denominator: Optional[str] = None
    higher_is_better: bool = True
    description: str = ""

    def __post_init__(self):
        if not self.category:
            raise InvalidInputError("Category name cannot be empty")
        if not self.thresholds:
            raise InvalidInputError(f"Category '{self.category}' has an empty threshold table")

        try:
            weight = float(self.weight)
        except (TypeError, ValueError) as e:
            raise InvalidWeightsError(
                f"Weight for '{self.category}' is not numeric: {self.weight!r}"
            ) from e

        normalized = []
        for bound, score in self.thresholds:
            try:
                bound, score = float(bound), float(score)
            except (TypeError, ValueError) as e:
                raise InvalidInputError(
                    f"Category '{self.category}' has a non-numeric threshold ({bound!r}, {score!r})"
                ) from e
            if not math.isfinite(bound):
                raise InvalidInputError(
                    f"Category '{self.category}' has a non-finite threshold {bound}"
                )
            if not MIN_SUBSCORE <= score <= MAX_SUBSCORE or int(score) != score:
                raise InvalidInputError(
                    f"Category '{self.category}' threshold score {score} is outside "
                    f"{MIN_SUBSCORE}-{MAX_SUBSCORE}"
                )
            normalized.append((bound, int(score)))

        # Frozen dataclass: bypass __setattr__ to store the cleaned table.
        object.__setattr__(self, "thresholds", tuple(normalized))
        object.__setattr__(self, "weight", weight)

    @property
    def required_metrics(self) -> Tuple[str, ...]:
        if self.denominator:
            return (self.metric, self.denominator)
        return (self.metric,)

    def scored_value(self, raw: Mapping[str, Any]) -> float:
        """
        Derive the value the threshold table is applied to.

        Raises:
            MissingMetricError: If a required metric is absent
            InvalidInputError: If a metric is negative or non-numeric, the
                denominator is zero, or the part exceeds the whole
        """
        value = _read_metric(raw, self.category, self.metric)
        if self.denominator is None:
            return value

        whole = _read_metric(raw, self.category, self.denominator)
        if whole == 0:
            raise InvalidInputError(
                f"Category '{self.category}': '{self.denominator}' is zero"
            )
        if value > whole:
            raise InvalidInputError(
                f"Category '{self.category}': '{self.metric}' ({value:g}) exceeds "
                f"'{self.denominator}' ({whole:g})"
            )
        return value / whole * 100.0


def compute_category_subscore(
    category_raw_inputs: Mapping[str, Any],
    rule: CategoryRule
) -> int:
    """
    Score one rubric category on the 1-5 scale.

    Args:
        category_raw_inputs: Raw metric values (may hold more than the rule needs)
        rule: The category's threshold table

    Returns:
        Integer sub-score in [1, 5]

    Raises:
        MissingMetricError: If a metric the rule needs is absent

    Example:
        >>> rule = DEFAULT_GOVERNANCE_RUBRIC.rule("board_independence")
        >>> compute_category_subscore({"independent_directors": 7, "total_directors": 8}, rule)
        5
    """
    value = rule.scored_value(category_raw_inputs)

    if rule.higher_is_better:
        for bound, score in sorted(rule.thresholds, key=lambda t: t[0], reverse=True):
            if value >= bound:
                return score
    else:
        for bound, score in sorted(rule.thresholds, key=lambda t: t[0]):
            if value <= bound:
                return score

    return MIN_SUBSCORE


class Rubric:
    """
    A validated set of weighted category rules.

    Construction fails with InvalidWeightsError if the weights do not sum
    to 1.0, so a Rubric instance always satisfies the weight invariant.

    Attributes:
        name (str): Rubric name used in reports
        version (str): Rubric version, recorded on every score
        rules (Tuple[CategoryRule, ...]): Category rules in report order

    Example:
        >>> rubric = get_rubric("1.0")
        >>> rubric.score_categories(company_metrics)
        {'board_independence': 5, ...}
    """

    def __init__(
        self,
        rules: Iterable[CategoryRule],
        name: str = "Corporate Governance",
        version: str = "1.0",
        weight_tolerance: float = WEIGHT_TOLERANCE
    ):
        self.rules = tuple(rules)
        self.name = name
        self.version = version

        if not self.rules:
            raise InvalidInputError("A rubric needs at least one category")

        seen = set()
        for rule in self.rules:
            if rule.category in seen:
                raise InvalidInputError(f"Duplicate rubric category '{rule.category}'")
            seen.add(rule.category)

        check_weights(self.weights, weight_tolerance)

    @classmethod
    def from_records(
        cls,
        records: Sequence[Mapping[str, Any]],
        name: str = "Corporate Governance",
        version: str = "1.0",
        weight_tolerance: float = WEIGHT_TOLERANCE
    ) -> "Rubric":
        """
        Build a rubric from plain dictionaries (e.g. parsed config rows).

        Each record needs 'category', 'weight', 'metric' and 'thresholds';
        'denominator', 'higher_is_better' and 'description' are optional.
        """
        rules = []
        for record in records:
            missing = [k for k in ("category", "weight", "metric", "thresholds") if k not in record]
            if missing:
                raise InvalidInputError(f"Rubric record {dict(record)!r} lacks {missing}")
            rules.append(CategoryRule(
                category=str(record["category"]),
                weight=record["weight"],
                metric=str(record["metric"]),
                thresholds=tuple(tuple(t) for t in record["thresholds"]),
                denominator=record.get("denominator") or None,
                higher_is_better=bool(record.get("higher_is_better", True)),
                description=record.get("description", ""),
            ))
        return cls(rules, name=name, version=version, weight_tolerance=weight_tolerance)

    @property
    def categories(self) -> List[str]:
        return [rule.category for rule in self.rules]

    @property
    def weights(self) -> Dict[str, float]:
        return {rule.category: rule.weight for rule in self.rules}

    @property
    def required_metrics(self) -> List[str]:
        metrics = []
        for rule in self.rules:
            for metric in rule.required_metrics:
                if metric not in metrics:
                    metrics.append(metric)
        return metrics

    def rule(self, category: str) -> CategoryRule:
        for rule in self.rules:
            if rule.category == category:
                return rule
        raise KeyError(f"Rubric '{self.name}' has no category '{category}'")

    def score_categories(self, raw_metrics: Mapping[str, Any]) -> Dict[str, int]:
        """
        Score every category of the rubric.

        Stops at the first category that cannot be scored; no partial
        result is returned.

        Args:
            raw_metrics: Raw metric values for one entity

        Returns:
            Dictionary mapping category -> sub-score
        """
        return {
            rule.category: compute_category_subscore(raw_metrics, rule)
            for rule in self.rules
        }

    def describe(self) -> str:
        """Format the rubric as a fixed-width table."""
        lines = [f"{self.name} rubric (version {self.version})"]
        lines.append(f"{'Category':<26} {'Weight':>7}  {'Metric':<40} Direction")
        lines.append("-" * 90)
        for rule in self.rules:
            metric = rule.metric
            if rule.denominator:
                metric = f"{rule.metric} / {rule.denominator} (%)"
            direction = "higher" if rule.higher_is_better else "lower"
            lines.append(
                f"{rule.category:<26} {rule.weight*100:>6.1f}%  {metric:<40} {direction}"
            )
        return "\n".join(lines)

    def __repr__(self):
        return f"Rubric(name={self.name!r}, version={self.version!r}, categories={self.categories})"


# =============================================================================
# REGISTERED RUBRICS
# =============================================================================

DEFAULT_GOVERNANCE_RUBRIC = Rubric(
    [
        CategoryRule(
            category="board_independence",
            weight=0.10,
            metric="independent_directors",
            denominator="total_directors",
            thresholds=((85.0, 5), (75.0, 4), (60.0, 3), (50.0, 2)),
            description="Share of independent directors on the board",
        ),
        CategoryRule(
            category="board_leadership",
            weight=0.10,
            metric="independent_chair",
            thresholds=((1.0, 5), (0.0, 2)),
            description="Chair is independent of the CEO (1) or combined (0)",
        ),
        CategoryRule(
            category="committee_independence",
            weight=0.10,
            metric="independent_committee_members",
            denominator="committee_members",
            thresholds=((100.0, 5), (80.0, 4), (60.0, 3), (40.0, 2)),
            description="Independence of audit, compensation and nominating committees",
        ),
        CategoryRule(
            category="pay_for_performance",
            weight=0.20,
            metric="performance_based_pay",
            denominator="total_compensation",
            thresholds=((70.0, 5), (55.0, 4), (40.0, 3), (25.0, 2)),
            description="Performance-linked share of executive compensation",
        ),
        CategoryRule(
            category="ceo_pay_ratio",
            weight=0.10,
            metric="ceo_pay_ratio",
            thresholds=((50.0, 5), (100.0, 4), (200.0, 3), (350.0, 2)),
            higher_is_better=False,
            description="CEO pay as a multiple of median employee pay",
        ),
        CategoryRule(
            category="ownership_concentration",
            weight=0.15,
            metric="ownership_hhi",
            thresholds=((1000.0, 5), (1500.0, 4), (2500.0, 3), (5000.0, 2)),
            higher_is_better=False,
            description="Herfindahl-Hirschman Index of the shareholder base",
        ),
        CategoryRule(
            category="shareholder_rights",
            weight=0.15,
            metric="shareholder_rights_provisions",
            thresholds=((6.0, 5), (5.0, 4), (3.0, 3), (2.0, 2)),
            description="Count of shareholder-friendly charter provisions (of 6)",
        ),
        CategoryRule(
            category="audit_oversight",
            weight=0.10,
            metric="audit_financial_experts",
            thresholds=((3.0, 5), (2.0, 4), (1.0, 3)),
            description="Financial experts on the audit committee",
        ),
    ],
    name="Corporate Governance",
    version="1.0",
)

RUBRIC_VERSIONS: Dict[str, Rubric] = {
    DEFAULT_GOVERNANCE_RUBRIC.version: DEFAULT_GOVERNANCE_RUBRIC,
}


def get_rubric(version: str = "1.0") -> Rubric:
    """Get a registered rubric by version."""
    if version not in RUBRIC_VERSIONS:
        raise ValueError(
            f"Unknown rubric version: {version}. Available: {list(RUBRIC_VERSIONS.keys())}"
        )
    return RUBRIC_VERSIONS[version]
