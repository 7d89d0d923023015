"""
Scoring Configuration
=====================

Stores the user-configurable assumptions shared by the scorer, the data
loader and the command-line runner.

ASSUMPTIONS (User-Configurable):
--------------------------------
1. WEIGHT TOLERANCE: Category weights must sum to 1.0 within 1e-6

2. SUB-SCORE SCALE: Fixed at 1-5 by the rubric module, not configurable
   - Aggregation normalizes each sub-score by the scale maximum (5)
   - 0 is accepted by the aggregator so an all-zero input yields 0.0

3. CONCENTRATION BANDS: HHI classification follows antitrust practice
   - Below 1,500: unconcentrated
   - 1,500 to 2,500: moderately concentrated
   - Above 2,500: highly concentrated

4. PEER RANKING: Percentile of each aggregate score among the batch
   - 'weak' kind: percentage of peers scoring less than or equal
"""

from pathlib import Path
from typing import Optional

from governance_scoring.core.rubric import MAX_SUBSCORE, MIN_SUBSCORE


class ScoringConfig:
    """
    Stores all configurable assumptions for a scoring run.

    Attributes:
        weight_tolerance: Allowed deviation of the weight total from 1.0
        rubric_version: Registered rubric to use when none is supplied
        hhi_moderate: HHI at which ownership counts as moderately concentrated
        hhi_high: HHI above which ownership counts as highly concentrated
        percentile_kind: Method passed to scipy.stats.percentileofscore
        output_dir: Where reports and figures are written (None = ./output)
        log_dir: Where log files are written (None = ./logs)
    """

    DEFAULT_WEIGHT_TOLERANCE = 1e-6
    DEFAULT_RUBRIC_VERSION = "1.0"

    def __init__(self):
        """Initialize with default assumptions."""
        self.weight_tolerance = self.DEFAULT_WEIGHT_TOLERANCE
        self.rubric_version = self.DEFAULT_RUBRIC_VERSION

        self.hhi_moderate = 1500.0
        self.hhi_high = 2500.0

        self.percentile_kind = "weak"

        self.output_dir: Optional[Path] = None
        self.log_dir: Optional[Path] = None

    def set_output_dir(self, path: str):
        """Set the directory reports and figures are written to."""
        self.output_dir = Path(path)

    def set_log_dir(self, path: str):
        """Set the directory log files are written to."""
        self.log_dir = Path(path)

    def describe(self) -> list:
        """Return the configuration as printable lines."""
        return [
            "=" * 60,
            "CURRENT SCORING CONFIGURATION",
            "=" * 60,
            f"Rubric version: {self.rubric_version}",
            f"Sub-score scale: {MIN_SUBSCORE}-{MAX_SUBSCORE}",
            f"Weight tolerance: {self.weight_tolerance:g}",
            f"HHI bands: <{self.hhi_moderate:,.0f} unconcentrated, "
            f">{self.hhi_high:,.0f} highly concentrated",
            f"Peer percentile kind: {self.percentile_kind}",
            "=" * 60,
        ]
