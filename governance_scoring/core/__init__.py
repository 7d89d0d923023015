"""Core computational modules for governance scoring."""

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
    ownership_percentages,
    top_holder_share,
    board_independence_pct,
    classify_concentration,
    ConcentrationLevel,
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
    category_contributions,
    label_for_score,
    generate_sample_entities,
)
from governance_scoring.core.loader import GovernanceDataLoader, load_governance_workbook
from governance_scoring.core.config import ScoringConfig

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
    "ownership_percentages",
    "top_holder_share",
    "board_independence_pct",
    "classify_concentration",
    "ConcentrationLevel",
    "CategoryRule",
    "Rubric",
    "compute_category_subscore",
    "DEFAULT_GOVERNANCE_RUBRIC",
    "get_rubric",
    "GovernanceScorer",
    "aggregate",
    "category_contributions",
    "label_for_score",
    "generate_sample_entities",
    "GovernanceDataLoader",
    "load_governance_workbook",
    "ScoringConfig",
]
