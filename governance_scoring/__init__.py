"""
Governance Scoring - Ownership and Board Governance Ratings
===========================================================

A toolkit for scoring corporate governance with a weighted rubric.

Usage:
    from governance_scoring import GovernanceScorer, GovernanceDataLoader
    from governance_scoring.visualization import plot_peer_scores

Classes:
    GovernanceScorer - Rubric scoring, aggregation and peer ranking
    GovernanceDataLoader - Data loading from Excel/CSV
    Rubric - Validated weighted category rules

Functions:
    compute_concentration_index - Herfindahl-Hirschman Index of ownership
    compute_category_subscore - 1-5 sub-score from a threshold table
    aggregate - Weighted 0-100 score from sub-scores
    label_for_score - Rating label for a 0-100 score
    generate_sample_entities - Create synthetic test companies
"""

from governance_scoring.core.errors import (
    GovernanceScoringError,
    InvalidInputError,
    MissingMetricError,
    SchemaMismatchError,
    InvalidWeightsError,
)
from governance_scoring.core.models import Entity, RatingLabel, ScoreResult
from governance_scoring.core.metrics import (
    compute_concentration_index,
    board_independence_pct,
)
from governance_scoring.core.rubric import (
    CategoryRule,
    Rubric,
    compute_category_subscore,
    DEFAULT_GOVERNANCE_RUBRIC,
    get_rubric,
)
from governance_scoring.core.scorer import (
    GovernanceScorer,
    aggregate,
    label_for_score,
    generate_sample_entities,
)
from governance_scoring.core.loader import GovernanceDataLoader, load_governance_workbook
from governance_scoring.core.config import ScoringConfig

__version__ = "1.0.0"
__author__ = "Financial Modeling Coursework"

__all__ = [
    "GovernanceScoringError",
    "InvalidInputError",
    "MissingMetricError",
    "SchemaMismatchError",
    "InvalidWeightsError",
    "Entity",
    "RatingLabel",
    "ScoreResult",
    "compute_concentration_index",
    "board_independence_pct",
    "CategoryRule",
    "Rubric",
    "compute_category_subscore",
    "DEFAULT_GOVERNANCE_RUBRIC",
    "get_rubric",
    "GovernanceScorer",
    "aggregate",
    "label_for_score",
    "generate_sample_entities",
    "GovernanceDataLoader",
    "load_governance_workbook",
    "ScoringConfig",
]
