"""
Data Loader Module for Governance Scoring
=========================================

This module handles loading governance data from spreadsheets and CSV files:
- Company metrics (one row per company, one column per metric)
- Rubric definitions (one row per category, with its threshold table)
- Shareholder registers (one row per company/holder pair)

The workbook format mirrors the coursework spreadsheets:
- Sheet "Metrics": ticker column plus numeric metric columns
- Sheet "Rubric": category, weight, metric, denominator, direction,
  description, and the bounds for each score in columns score_5 .. score_2
- Sheet "Holdings": ticker, holder, shares

Blank cells are left out of an entity's metrics rather than read as zero,
so a missing figure surfaces as a MissingMetricError when it is scored.
"""

import warnings
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple, Union

import numpy as np
import pandas as pd

from governance_scoring.core.config import ScoringConfig
from governance_scoring.core.errors import InvalidInputError
from governance_scoring.core.metrics import compute_concentration_index
from governance_scoring.core.models import Entity
from governance_scoring.core.rubric import MAX_SUBSCORE, MIN_SUBSCORE, Rubric

PathLike = Union[str, Path]

# Score columns in a rubric sheet, best first. Score 1 is the fallback and
# needs no bound.
THRESHOLD_COLUMNS = {f"score_{s}": s for s in range(MAX_SUBSCORE, MIN_SUBSCORE, -1)}

OWNERSHIP_HHI_METRIC = "ownership_hhi"


class GovernanceDataLoader:
    """
    A class for loading governance data from various sources.

    This class handles:
    - Excel and CSV files of company metrics
    - Rubric tables stored in a workbook
    - Shareholder registers for ownership concentration
    - Direct dictionary input

    Example:
        >>> loader = GovernanceDataLoader()
        >>> entities = loader.load_entities_from_excel("governance.xlsx", "Metrics")
        >>> rubric = loader.load_rubric_from_excel("governance.xlsx", "Rubric")
    """

    def __init__(self, config: Optional[ScoringConfig] = None):
        """
        Initialize the GovernanceDataLoader.

        Args:
            config: Scoring configuration (weight tolerance for rubrics)
        """
        self.config = config or ScoringConfig()

    # -------------------------------------------------------------------------
    # Company metrics
    # -------------------------------------------------------------------------

    def load_entities_from_excel(
        self,
        file_path: PathLike,
        sheet_name: Union[str, int] = "Metrics",
        id_column: str = "ticker"
    ) -> List[Entity]:
        """
        Load company metrics from an Excel sheet.

        Args:
            file_path: Path to the Excel file
            sheet_name: Sheet holding one row per company
            id_column: Column holding the company identifier

        Returns:
            List of Entity, in sheet order
        """
        df = pd.read_excel(file_path, sheet_name=sheet_name)
        return self._entities_from_frame(df, id_column)

    def load_entities_from_csv(
        self,
        file_path: PathLike,
        id_column: str = "ticker"
    ) -> List[Entity]:
        """
        Load company metrics from a CSV file.

        Args:
            file_path: Path to CSV file
            id_column: Column holding the company identifier

        Returns:
            List of Entity, in file order
        """
        df = pd.read_csv(file_path)
        return self._entities_from_frame(df, id_column)

    def load_direct(
        self,
        records: Mapping[str, Mapping[str, float]]
    ) -> List[Entity]:
        """
        Load company metrics directly from a dictionary.

        Args:
            records: Identifier -> {metric: value}

        Returns:
            List of Entity
        """
        return [Entity(str(identifier), dict(metrics)) for identifier, metrics in records.items()]

    def _entities_from_frame(self, df: pd.DataFrame, id_column: str) -> List[Entity]:
        df = df.rename(columns=lambda c: str(c).strip())
        if id_column not in df.columns:
            raise InvalidInputError(
                f"Identifier column '{id_column}' not found; columns are {list(df.columns)}"
            )

        # Skip fully blank rows (spreadsheet padding)
        df = df.dropna(subset=[id_column]).copy()

        metric_columns = []
        for col in df.columns:
            if col == id_column:
                continue
            try:
                df[col] = pd.to_numeric(df[col], errors="raise")
            except (ValueError, TypeError):
                warnings.warn(f"Column '{col}' is not numeric and was skipped")
                continue
            metric_columns.append(col)

        entities = []
        for _, row in df.iterrows():
            metrics = {
                col: float(row[col]) for col in metric_columns if pd.notna(row[col])
            }
            entities.append(Entity(str(row[id_column]).strip(), metrics))

        return entities

    # -------------------------------------------------------------------------
    # Rubric
    # -------------------------------------------------------------------------

    def load_rubric_from_excel(
        self,
        file_path: PathLike,
        sheet_name: Union[str, int] = "Rubric",
        name: str = "Corporate Governance",
        version: str = "custom"
    ) -> Rubric:
        """
        Load a rubric table from an Excel sheet.

        Required columns: category, weight, metric, and at least one of
        score_5 .. score_2. Optional: denominator, direction ('higher' or
        'lower'), description.

        Args:
            file_path: Path to the Excel file
            sheet_name: Sheet holding one row per category
            name: Rubric name for reports
            version: Version recorded on every score

        Returns:
            Validated Rubric

        Raises:
            InvalidWeightsError: If the weights do not sum to 1.0
        """
        df = pd.read_excel(file_path, sheet_name=sheet_name)
        return self._rubric_from_frame(df, name, version)

    def load_rubric_from_csv(
        self,
        file_path: PathLike,
        name: str = "Corporate Governance",
        version: str = "custom"
    ) -> Rubric:
        """Load a rubric table from a CSV file (same columns as the Excel sheet)."""
        df = pd.read_csv(file_path)
        return self._rubric_from_frame(df, name, version)

    def _rubric_from_frame(self, df: pd.DataFrame, name: str, version: str) -> Rubric:
        df = df.rename(columns=lambda c: str(c).strip().lower())

        missing = [c for c in ("category", "weight", "metric") if c not in df.columns]
        if missing:
            raise InvalidInputError(f"Rubric sheet lacks columns {missing}")

        score_columns = [c for c in THRESHOLD_COLUMNS if c in df.columns]
        if not score_columns:
            raise InvalidInputError(
                f"Rubric sheet needs at least one of {list(THRESHOLD_COLUMNS)}"
            )

        df = df.dropna(subset=["category"])

        records = []
        for _, row in df.iterrows():
            thresholds = [
                (row[col], THRESHOLD_COLUMNS[col]) for col in score_columns if pd.notna(row[col])
            ]

            direction = "higher"
            if "direction" in df.columns and pd.notna(row["direction"]):
                direction = str(row["direction"]).strip().lower()
            if direction not in ("higher", "lower"):
                raise InvalidInputError(
                    f"Category '{row['category']}': direction must be 'higher' or 'lower', "
                    f"got '{direction}'"
                )

            denominator = None
            if "denominator" in df.columns and pd.notna(row["denominator"]):
                denominator = str(row["denominator"]).strip()

            description = ""
            if "description" in df.columns and pd.notna(row["description"]):
                description = str(row["description"])

            records.append({
                "category": str(row["category"]).strip(),
                "weight": row["weight"],
                "metric": str(row["metric"]).strip(),
                "denominator": denominator,
                "thresholds": thresholds,
                "higher_is_better": direction == "higher",
                "description": description,
            })

        return Rubric.from_records(
            records, name=name, version=version,
            weight_tolerance=self.config.weight_tolerance,
        )

    # -------------------------------------------------------------------------
    # Shareholder registers
    # -------------------------------------------------------------------------

    def load_holdings_from_excel(
        self,
        file_path: PathLike,
        sheet_name: Union[str, int] = "Holdings",
        id_column: str = "ticker",
        holder_column: str = "holder",
        shares_column: str = "shares"
    ) -> Dict[str, pd.Series]:
        """
        Load shareholder registers from an Excel sheet in long format.

        Args:
            file_path: Path to the Excel file
            sheet_name: Sheet with one row per (company, holder)
            id_column: Company identifier column
            holder_column: Holder name column
            shares_column: Shares held column

        Returns:
            Dictionary mapping identifier -> Series of shares indexed by holder
        """
        df = pd.read_excel(file_path, sheet_name=sheet_name)
        return self._holdings_from_frame(df, id_column, holder_column, shares_column)

    def load_holdings_from_csv(
        self,
        file_path: PathLike,
        id_column: str = "ticker",
        holder_column: str = "holder",
        shares_column: str = "shares"
    ) -> Dict[str, pd.Series]:
        """Load shareholder registers from a CSV file in long format."""
        df = pd.read_csv(file_path)
        return self._holdings_from_frame(df, id_column, holder_column, shares_column)

    def _holdings_from_frame(
        self,
        df: pd.DataFrame,
        id_column: str,
        holder_column: str,
        shares_column: str
    ) -> Dict[str, pd.Series]:
        df = df.rename(columns=lambda c: str(c).strip())
        missing = [c for c in (id_column, holder_column, shares_column) if c not in df.columns]
        if missing:
            raise InvalidInputError(f"Holdings sheet lacks columns {missing}")

        df = df.dropna(subset=[id_column, holder_column])
        shares = pd.to_numeric(df[shares_column], errors="coerce")
        if shares.isna().any():
            bad = df.loc[shares.isna(), holder_column].tolist()
            raise InvalidInputError(f"Non-numeric or blank share counts for holders {bad}")
        if (shares < 0).any():
            bad = df.loc[shares < 0, holder_column].tolist()
            raise InvalidInputError(f"Negative share counts for holders {bad}")

        df = df.assign(**{shares_column: shares})

        holdings = {}
        for identifier, group in df.groupby(id_column, sort=False):
            # A holder listed twice (e.g. two share classes) is one holder
            series = group.groupby(holder_column, sort=False)[shares_column].sum()
            holdings[str(identifier).strip()] = series.astype(float)

        return holdings

    def with_ownership_hhi(
        self,
        entities: Sequence[Entity],
        holdings: Mapping[str, Any],
        metric: str = OWNERSHIP_HHI_METRIC
    ) -> List[Entity]:
        """
        Add each entity's ownership HHI, computed from its register.

        Returns new Entity records; the inputs are not modified. Entities
        without a register are returned unchanged.

        Args:
            entities: Entities to enrich
            holdings: Identifier -> shares held per holder
            metric: Metric name to store the HHI under

        Returns:
            List of Entity in input order
        """
        enriched = []
        for entity in entities:
            if entity.identifier not in holdings:
                enriched.append(entity)
                continue
            hhi = compute_concentration_index(holdings[entity.identifier])
            previous = entity.raw_metrics.get(metric)
            if previous is not None and not np.isclose(previous, hhi):
                warnings.warn(
                    f"{entity.identifier}: '{metric}' of {previous} replaced by {hhi:.2f} "
                    f"computed from holdings"
                )
            metrics = dict(entity.raw_metrics)
            metrics[metric] = hhi
            enriched.append(Entity(entity.identifier, metrics))
        return enriched

    # -------------------------------------------------------------------------
    # Validation and export
    # -------------------------------------------------------------------------

    def validate_data(
        self,
        entities: Sequence[Entity],
        rubric: Rubric
    ) -> Dict[str, Any]:
        """
        Validate loaded entities against a rubric and return diagnostics.

        Checks:
        - Identifiers are unique
        - Every metric the rubric needs is present for every entity
        - No metric value is negative, NaN or Inf
        - Metrics the rubric never reads (reported as warnings)

        Args:
            entities: Entities to check
            rubric: Rubric they will be scored against

        Returns:
            Dictionary with validation results
        """
        results = {
            'is_valid': True,
            'warnings': [],
            'errors': [],
            'n_entities': len(entities),
            'required_metrics': rubric.required_metrics,
        }

        identifiers = [e.identifier for e in entities]
        duplicates = sorted({i for i in identifiers if identifiers.count(i) > 1})
        if duplicates:
            results['errors'].append(f"Duplicate identifiers: {duplicates}")
            results['is_valid'] = False

        required = rubric.required_metrics
        coverage = {metric: 0 for metric in required}
        unused = set()

        for entity in entities:
            absent = [m for m in required if m not in entity.raw_metrics]
            if absent:
                results['errors'].append(f"{entity.identifier}: missing metrics {absent}")
                results['is_valid'] = False

            for metric, value in entity.raw_metrics.items():
                if metric in coverage:
                    coverage[metric] += 1
                else:
                    unused.add(metric)
                try:
                    numeric = float(value)
                except (TypeError, ValueError):
                    numeric = float("nan")
                if not np.isfinite(numeric) or numeric < 0:
                    results['errors'].append(
                        f"{entity.identifier}: metric '{metric}' has invalid value {value}"
                    )
                    results['is_valid'] = False

        if unused:
            results['warnings'].append(f"Metrics not used by the rubric: {sorted(unused)}")

        results['coverage'] = coverage
        return results

    def export_results(self, frame: pd.DataFrame, file_path: PathLike) -> Path:
        """
        Write a results table to .xlsx or .csv, chosen by file extension.

        Args:
            frame: Results table (e.g. GovernanceScorer.results_frame output)
            file_path: Destination path

        Returns:
            Path written
        """
        path = Path(file_path)
        suffix = path.suffix.lower()
        if suffix == ".xlsx":
            frame.to_excel(path, sheet_name="Scores", index=False, engine="openpyxl")
        elif suffix == ".csv":
            frame.to_csv(path, index=False)
        else:
            raise InvalidInputError(f"Unsupported export format '{suffix}'; use .xlsx or .csv")
        return path


def load_governance_workbook(
    file_path: PathLike,
    metrics_sheet: str = "Metrics",
    rubric_sheet: Optional[str] = None,
    holdings_sheet: Optional[str] = None,
    id_column: str = "ticker"
) -> Tuple[List[Entity], Optional[Rubric], Optional[Dict[str, pd.Series]]]:
    """
    Convenience function to load a governance workbook in one call.

    When a holdings sheet is given, each entity's ownership HHI is computed
    from it and added to the entity's metrics.

    Args:
        file_path: Path to the workbook
        metrics_sheet: Sheet with company metrics
        rubric_sheet: Optional sheet with a custom rubric
        holdings_sheet: Optional sheet with shareholder registers
        id_column: Company identifier column

    Returns:
        Tuple of (entities, rubric or None, holdings or None)
    """
    loader = GovernanceDataLoader()

    entities = loader.load_entities_from_excel(file_path, metrics_sheet, id_column)

    rubric = None
    if rubric_sheet:
        rubric = loader.load_rubric_from_excel(file_path, rubric_sheet)

    holdings = None
    if holdings_sheet:
        holdings = loader.load_holdings_from_excel(file_path, holdings_sheet, id_column)
        entities = loader.with_ownership_hhi(entities, holdings)

    return entities, rubric, holdings
