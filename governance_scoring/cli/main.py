"""
Main Runner Script for Governance Scoring
=========================================

This script demonstrates the full governance scoring workflow:
1. Loading company metrics from Excel/CSV (or sample data)
2. Computing ownership concentration from shareholder registers
3. Scoring each company against the rubric
4. Ranking companies against their peers
5. Visualizing results
6. Exporting the score table

Usage:
    gov-score                                   # Run with sample data
    gov-score --file governance.xlsx            # Score an Excel workbook
    gov-score --file metrics.csv                # Score a CSV file
    gov-score --file governance.xlsx --rubric rubric.xlsx
    gov-score --file governance.xlsx --holdings governance.xlsx --export scores.xlsx
"""

import sys
import argparse
import logging
import traceback
from datetime import datetime
from typing import Dict, Optional, List, Sequence
from pathlib import Path

import matplotlib
import numpy as np

from governance_scoring.core.config import ScoringConfig
from governance_scoring.core.errors import GovernanceScoringError
from governance_scoring.core.loader import GovernanceDataLoader
from governance_scoring.core.metrics import (
    classify_concentration,
    compute_concentration_index,
    top_holder_share,
)
from governance_scoring.core.models import Entity
from governance_scoring.core.rubric import Rubric, get_rubric
from governance_scoring.core.scorer import GovernanceScorer, generate_sample_entities


# =============================================================================
# LOGGING SETUP
# =============================================================================

def setup_logger(
    script_name: str = "governance_scoring",
    log_dir: Optional[Path] = None
) -> logging.Logger:
    """
    Sets up a logger that writes to both file and console.

    Args:
        script_name: Name of the script (used in log filename)
        log_dir: Directory for log files (default: logs/ under the project root)

    Returns:
        Configured logger instance
    """
    if log_dir is None:
        package_root = Path(__file__).parent.parent.parent
        log_dir = package_root / "logs"
    log_dir = Path(log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)

    # Generate unique log filename
    timestamp = datetime.now().strftime("%Y_%m_%d_%H%M")
    log_filename = log_dir / f"log_{script_name}_{timestamp}.txt"

    logger = logging.getLogger(script_name)
    logger.setLevel(logging.INFO)
    logger.propagate = False

    # Clear existing handlers (prevent duplicates)
    if logger.hasHandlers():
        for handler in list(logger.handlers):
            handler.close()
        logger.handlers.clear()

    formatter = logging.Formatter(
        '%(asctime)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    file_handler = logging.FileHandler(log_filename, encoding='utf-8')
    file_handler.setLevel(logging.INFO)
    file_handler.setFormatter(formatter)
    logger.addHandler(file_handler)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(logging.INFO)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    return logger


# =============================================================================
# ANALYSIS CLASS
# =============================================================================

class AnalysisCheckpoint:
    """
    Times each step of a scoring run and logs a per-step report at the end.

    Attributes:
        step_seconds (Dict[str, float]): Duration of each completed step
        step_notes (Dict[str, str]): One-line outcome of each completed step
    """

    def __init__(self, logger: logging.Logger):
        self.logger = logger
        self.step_seconds: Dict[str, float] = {}
        self.step_notes: Dict[str, str] = {}
        self.start_time = datetime.now()
        self._step_started: Dict[str, datetime] = {}

    def start_step(self, step_name: str):
        self._step_started[step_name] = datetime.now()
        self.logger.info(f"[CHECKPOINT] Starting: {step_name}")

    def complete_step(self, step_name: str, note: str = ""):
        started = self._step_started.pop(step_name, self.start_time)
        self.step_seconds[step_name] = (datetime.now() - started).total_seconds()
        self.step_notes[step_name] = note
        suffix = f" ({note})" if note else ""
        self.logger.info(f"[CHECKPOINT] Completed: {step_name}{suffix}")

    def log_final_report(self):
        """Log each completed step with its duration and outcome."""
        total = (datetime.now() - self.start_time).total_seconds()
        self.logger.info("=" * 60)
        self.logger.info("  SCORING COMPLETE")
        self.logger.info("=" * 60)
        for step_name, seconds in self.step_seconds.items():
            note = self.step_notes[step_name]
            self.logger.info(f"  {step_name:<34} {seconds:>7.2f}s  {note}")
        self.logger.info(f"  Total time: {total:.2f} seconds")
        self.logger.info("=" * 60)


# =============================================================================
# MAIN ANALYSIS FUNCTIONS
# =============================================================================

def get_output_dir(config: Optional[ScoringConfig] = None) -> Path:
    """Get the output directory path."""
    if config is not None and config.output_dir is not None:
        output_dir = Path(config.output_dir)
    else:
        package_root = Path(__file__).parent.parent.parent
        output_dir = package_root / "output"
    output_dir.mkdir(parents=True, exist_ok=True)
    return output_dir


def run_full_analysis(
    entities: Sequence[Entity],
    rubric: Optional[Rubric] = None,
    holdings: Optional[Dict[str, np.ndarray]] = None,
    config: Optional[ScoringConfig] = None,
    save_plots: bool = True,
    keep_figures: bool = False,
    export_path: Optional[str] = None,
    logger: Optional[logging.Logger] = None
) -> dict:
    """
    Run a complete governance scoring analysis.

    This function performs:
    1. Ownership concentration from shareholder registers (if given)
    2. Data validation against the rubric
    3. Rubric scoring of every company
    4. Peer ranking
    5. Visualization generation
    6. Export of the score table

    Args:
        entities: Companies and their raw metrics
        rubric: Rubric to apply (default: registered rubric from config)
        holdings: Identifier -> shares held per holder
        config: Scoring configuration
        save_plots: If True, save plots to files
        keep_figures: If True, leave figures open (for plt.show)
        export_path: If given, write the score table here (.xlsx or .csv)
        logger: Logger instance

    Returns:
        Dictionary containing all analysis results
    """
    config = config or ScoringConfig()
    if logger is None:
        logger = setup_logger(log_dir=config.log_dir)
    rubric = rubric or get_rubric(config.rubric_version)

    checkpoint = AnalysisCheckpoint(logger)
    loader = GovernanceDataLoader(config)
    scorer = GovernanceScorer(rubric, config)
    results = {}

    logger.info("=" * 70)
    logger.info("  CORPORATE GOVERNANCE SCORING")
    logger.info("=" * 70)
    logger.info(f"  Companies: {', '.join(e.identifier for e in entities)}")
    logger.info(f"  Rubric: {rubric.name} (version {rubric.version})")
    logger.info("=" * 70)
    for line in config.describe():
        logger.info(line)

    # Step 1: Ownership concentration
    if holdings:
        checkpoint.start_step("Compute Ownership Concentration")
        entities = loader.with_ownership_hhi(entities, holdings)
        concentration = {}
        logger.info("\n--- Ownership Concentration ---")
        logger.info(f"{'Company':<12} {'HHI':>10} {'Top holder':>11} {'Top 3':>8}  Class")
        logger.info("-" * 70)
        for identifier, register in holdings.items():
            hhi = compute_concentration_index(register)
            level = classify_concentration(hhi, config.hhi_moderate, config.hhi_high)
            cr1 = top_holder_share(register, 1)
            cr3 = top_holder_share(register, 3)
            concentration[identifier] = {'hhi': hhi, 'level': level, 'cr1': cr1, 'cr3': cr3}
            logger.info(
                f"{identifier:<12} {hhi:>10,.0f} {cr1:>10.1f}% {cr3:>7.1f}%  {level.value}"
            )
        results['concentration'] = concentration
        checkpoint.complete_step(
            "Compute Ownership Concentration", f"{len(concentration)} registers"
        )

    # Step 2: Validate data
    checkpoint.start_step("Validate Data")
    validation = loader.validate_data(entities, rubric)
    for warning in validation['warnings']:
        logger.warning(warning)
    if not validation['is_valid']:
        for error in validation['errors']:
            logger.error(error)
    results['validation'] = validation
    checkpoint.complete_step(
        "Validate Data",
        f"{len(validation['errors'])} errors, {len(validation['warnings'])} warnings"
    )

    # Step 3: Score companies. Invalid data raises here; nothing is defaulted.
    checkpoint.start_step("Score Companies")
    scores = scorer.evaluate_many(entities)
    results['scores'] = scores

    logger.info("\n--- Governance Scores ---")
    logger.info(f"{'Company':<12} {'Score':>8}  Rating")
    logger.info("-" * 50)
    for result in scores:
        logger.info(
            f"{result.identifier:<12} {result.aggregate_score:>8.2f}  "
            f"{result.rating_label.display_name}"
        )
    checkpoint.complete_step("Score Companies", f"{len(scores)} companies")

    # Step 4: Peer ranking
    checkpoint.start_step("Rank Peers")
    frame = scorer.results_frame(scores)
    results['table'] = frame
    logger.info("\n" + scorer.summary_report(scores))
    checkpoint.complete_step("Rank Peers")

    # Step 5: Generate plots
    if save_plots and scores:
        checkpoint.start_step("Generate Plots")
        output_dir = get_output_dir(config)

        # Imported here so scoring without plots does not need a display backend
        import matplotlib.pyplot as plt
        from governance_scoring.visualization import (
            plot_score_breakdown,
            plot_peer_scores,
            plot_ownership_concentration
        )

        plot_peer_scores(scores, save_path=str(output_dir / "peer_scores.png"))
        logger.info("Saved: peer_scores.png")

        for result in scores:
            filename = f"breakdown_{result.identifier}.png"
            plot_score_breakdown(result, save_path=str(output_dir / filename))
            logger.info(f"Saved: {filename}")

        for identifier, register in (holdings or {}).items():
            names = list(register.index) if hasattr(register, 'index') else None
            filename = f"ownership_{identifier}.png"
            plot_ownership_concentration(
                register, names, company=identifier,
                moderate_threshold=config.hhi_moderate,
                high_threshold=config.hhi_high,
                save_path=str(output_dir / filename)
            )
            logger.info(f"Saved: {filename}")

        if not keep_figures:
            plt.close('all')
        checkpoint.complete_step("Generate Plots")

    # Step 6: Export
    if export_path:
        checkpoint.start_step("Export Scores")
        written = loader.export_results(frame, export_path)
        logger.info(f"Score table written to: {written}")
        checkpoint.complete_step("Export Scores", str(written))

    checkpoint.log_final_report()

    results['scorer'] = scorer
    return results


def load_input_file(
    file_path: str,
    sheet: str = 'Metrics',
    id_column: str = 'ticker',
    config: Optional[ScoringConfig] = None,
    logger: Optional[logging.Logger] = None
) -> List[Entity]:
    """
    Load company metrics from an Excel or CSV file.

    Args:
        file_path: Path to .xlsx/.xls or .csv file
        sheet: Sheet name (Excel only)
        id_column: Company identifier column
        config: Scoring configuration
        logger: Logger instance

    Returns:
        List of Entity
    """
    loader = GovernanceDataLoader(config)
    if logger:
        logger.info(f"Loading data from: {file_path}")

    if Path(file_path).suffix.lower() == '.csv':
        return loader.load_entities_from_csv(file_path, id_column)

    if logger:
        logger.info(f"Sheet: {sheet}")
    return loader.load_entities_from_excel(file_path, sheet, id_column)


# =============================================================================
# MAIN ENTRY POINT
# =============================================================================

def build_parser() -> argparse.ArgumentParser:
    """Build the command-line parser."""
    parser = argparse.ArgumentParser(
        description='Corporate Governance Scoring Tool',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  gov-score                                          # Run with sample data
  gov-score --file "governance.xlsx"                 # Score an Excel workbook
  gov-score --file "governance.xlsx" --sheet Q4
  gov-score --file "metrics.csv" --rubric "rubric.xlsx"
  gov-score --file "governance.xlsx" --holdings "governance.xlsx" --export scores.xlsx
        """
    )

    parser.add_argument('--file', '-f', type=str,
                        help='Path to Excel or CSV file with company metrics')
    parser.add_argument('--sheet', '-s', type=str, default='Metrics',
                        help='Sheet name with company metrics (default: Metrics)')
    parser.add_argument('--id-column', type=str, default='ticker',
                        help='Column holding the company identifier (default: ticker)')
    parser.add_argument('--rubric', type=str,
                        help='Excel or CSV file with a custom rubric table')
    parser.add_argument('--rubric-sheet', type=str, default='Rubric',
                        help='Sheet name with the rubric table (default: Rubric)')
    parser.add_argument('--holdings', type=str,
                        help='Excel or CSV file with shareholder registers')
    parser.add_argument('--holdings-sheet', type=str, default='Holdings',
                        help='Sheet name with shareholder registers (default: Holdings)')
    parser.add_argument('--export', type=str,
                        help='Write the score table to this .xlsx or .csv file')
    parser.add_argument('--output-dir', type=str,
                        help='Directory for plots (default: output/)')
    parser.add_argument('--log-dir', type=str,
                        help='Directory for log files (default: logs/)')
    parser.add_argument('--no-plots', action='store_true',
                        help='Disable plot generation')
    parser.add_argument('--show-plots', action='store_true',
                        help='Show plots interactively (default: just save)')
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main entry point for the governance scoring script."""
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.holdings and not args.file:
        parser.error("--holdings needs --file; sample data brings its own registers")

    if not args.show_plots:
        matplotlib.use('Agg')

    config = ScoringConfig()
    if args.output_dir:
        config.set_output_dir(args.output_dir)
    if args.log_dir:
        config.set_log_dir(args.log_dir)

    logger = setup_logger("governance_analysis", config.log_dir)
    loader = GovernanceDataLoader(config)

    try:
        rubric = None
        if args.rubric:
            if Path(args.rubric).suffix.lower() == '.csv':
                rubric = loader.load_rubric_from_csv(args.rubric)
            else:
                rubric = loader.load_rubric_from_excel(args.rubric, args.rubric_sheet)
            logger.info("\n" + rubric.describe())

        holdings = None
        if args.file:
            entities = load_input_file(
                args.file, args.sheet, args.id_column, config, logger
            )
            if args.holdings:
                if Path(args.holdings).suffix.lower() == '.csv':
                    holdings = loader.load_holdings_from_csv(args.holdings, args.id_column)
                else:
                    holdings = loader.load_holdings_from_excel(
                        args.holdings, args.holdings_sheet, args.id_column
                    )
        else:
            logger.info("No file specified. Using sample data...")
            entities, holdings = generate_sample_entities(5)

        run_full_analysis(
            entities,
            rubric=rubric,
            holdings=holdings,
            config=config,
            save_plots=not args.no_plots,
            keep_figures=args.show_plots,
            export_path=args.export,
            logger=logger
        )

        if args.show_plots and not args.no_plots:
            import matplotlib.pyplot as plt
            plt.show()

        logger.info("Scoring completed successfully!")
        return 0

    except GovernanceScoringError as e:
        logger.error(f"Invalid governance data: {e}")
        return 2

    except Exception as e:
        logger.error(f"Scoring failed: {e}")
        logger.error(traceback.format_exc())
        return 1


if __name__ == "__main__":
    sys.exit(main())
