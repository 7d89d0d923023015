"""
Error Types for Governance Scoring
==================================

Every invalid input is reported immediately with one of these errors. The
engine never substitutes a default for a missing or malformed value, so a
caller that sees one of them must fix the upstream data and call again.

All errors derive from ValueError so existing ``except ValueError`` handling
around data loading keeps working.
"""

from typing import Iterable, Optional


class GovernanceScoringError(ValueError):
    """Base class for all scoring engine errors."""


class InvalidInputError(GovernanceScoringError):
    """A raw value violates a domain constraint (e.g. negative share count)."""


class MissingMetricError(GovernanceScoringError):
    """A rubric category references a raw metric that was not supplied."""

    def __init__(self, category: str, metric: str, entity: Optional[str] = None):
        self.category = category
        self.metric = metric
        self.entity = entity
        where = f" for '{entity}'" if entity else ""
        super().__init__(
            f"Category '{category}' requires metric '{metric}', "
            f"which was not supplied{where}"
        )


class SchemaMismatchError(GovernanceScoringError):
    """Sub-score and weight mappings disagree on their category set."""

    def __init__(self, missing: Iterable[str], extra: Iterable[str]):
        self.missing = sorted(missing)
        self.extra = sorted(extra)
        parts = []
        if self.missing:
            parts.append(f"no sub-score for weighted categories {self.missing}")
        if self.extra:
            parts.append(f"no weight for scored categories {self.extra}")
        super().__init__("Category mismatch: " + "; ".join(parts))


class InvalidWeightsError(GovernanceScoringError):
    """Category weights do not sum to 1 within tolerance."""

    def __init__(self, message: str, total: Optional[float] = None):
        self.total = total
        super().__init__(message)
