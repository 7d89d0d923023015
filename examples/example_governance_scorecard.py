"""
Governance Scorecard Walkthrough
4 companies: AAPL, JPM, XOM, KO
Default rubric, version 1.0

Works through the scoring pipeline one step at a time:
1. Board independence and ownership concentration from raw figures
2. Category sub-scores from the rubric threshold tables
3. Weighted aggregate and rating label
4. Peer ranking, charts and an Excel export

Figures are illustrative textbook inputs, not current filings.
"""

from pathlib import Path

import matplotlib
matplotlib.use('Agg')
import matplotlib.pyplot as plt

from governance_scoring import (
    Entity,
    GovernanceDataLoader,
    GovernanceScorer,
    aggregate,
    board_independence_pct,
    compute_category_subscore,
    compute_concentration_index,
    get_rubric,
    label_for_score,
)
from governance_scoring.core.metrics import classify_concentration
from governance_scoring.visualization import (
    plot_ownership_concentration,
    plot_peer_scores,
    plot_score_breakdown,
)

# Get the project root directory (parent of examples/)
PROJECT_ROOT = Path(__file__).parent.parent
OUTPUT_DIR = PROJECT_ROOT / 'output'
OUTPUT_DIR.mkdir(exist_ok=True)

# === Largest disclosed holders (percent of shares outstanding) ===
# The rest of each register is a dispersed float of many small holders.
# It is not one holder, so it is left out of the HHI.
registers = {
    'AAPL': {'Vanguard': 8.7, 'BlackRock': 6.8, 'State Street': 3.9, 'Berkshire': 2.6},
    'JPM': {'Vanguard': 9.6, 'BlackRock': 6.6, 'State Street': 4.5},
    'XOM': {'Vanguard': 10.1, 'BlackRock': 7.3, 'State Street': 5.8},
    'KO': {'Berkshire': 9.3, 'Vanguard': 8.6, 'BlackRock': 6.5},
}

# === Board, pay and charter data ===
raw = {
    'AAPL': dict(total_directors=8, independent_directors=7, independent_chair=1,
                 committee_members=9, independent_committee_members=9,
                 total_compensation=63.2e6, performance_based_pay=40.1e6,
                 ceo_pay_ratio=672, shareholder_rights_provisions=5,
                 audit_financial_experts=2),
    'JPM': dict(total_directors=12, independent_directors=11, independent_chair=0,
                committee_members=12, independent_committee_members=12,
                total_compensation=36.0e6, performance_based_pay=30.6e6,
                ceo_pay_ratio=391, shareholder_rights_provisions=6,
                audit_financial_experts=3),
    'XOM': dict(total_directors=12, independent_directors=11, independent_chair=0,
                committee_members=10, independent_committee_members=10,
                total_compensation=36.9e6, performance_based_pay=25.1e6,
                ceo_pay_ratio=249, shareholder_rights_provisions=4,
                audit_financial_experts=2),
    'KO': dict(total_directors=11, independent_directors=9, independent_chair=0,
               committee_members=11, independent_committee_members=11,
               total_compensation=24.7e6, performance_based_pay=19.0e6,
               ceo_pay_ratio=1598, shareholder_rights_provisions=5,
               audit_financial_experts=3),
}

rubric = get_rubric("1.0")

# === Step 1: Raw governance measures ===
print("=" * 70)
print("STEP 1: BOARD INDEPENDENCE AND OWNERSHIP CONCENTRATION")
print("=" * 70)
for ticker, metrics in raw.items():
    independence = board_independence_pct(metrics['independent_directors'], metrics['total_directors'])
    hhi = compute_concentration_index(list(registers[ticker].values()), as_percentages=True)
    metrics['ownership_hhi'] = hhi
    print(f"{ticker:<6} independence = {independence:5.1f}%   "
          f"HHI = {hhi:8,.0f} ({classify_concentration(hhi).value})")

# === Step 2: Sub-scores by hand for one company ===
print("\n" + "=" * 70)
print("STEP 2: SUB-SCORES FOR AAPL")
print("=" * 70)
aapl_scores = {}
for rule in rubric.rules:
    aapl_scores[rule.category] = compute_category_subscore(raw['AAPL'], rule)
    print(f"{rule.category:<26} {aapl_scores[rule.category]}/5   ({rule.description})")

# === Step 3: Aggregate and label ===
score = aggregate(aapl_scores, rubric.weights)
print(f"\nAAPL aggregate: {score:.2f} / 100 -> {label_for_score(score).display_name}")

# === Step 4: Whole peer group ===
scorer = GovernanceScorer(rubric)
results = scorer.evaluate_many([Entity(t, m) for t, m in raw.items()])
print("\n" + scorer.summary_report(results))

plot_peer_scores(results, save_path=str(OUTPUT_DIR / 'example_peer_scores.png'))
plot_score_breakdown(results[0], save_path=str(OUTPUT_DIR / 'example_breakdown_AAPL.png'))
plot_ownership_concentration(
    list(registers['KO'].values()), list(registers['KO'].keys()), company='KO',
    as_percentages=True,
    save_path=str(OUTPUT_DIR / 'example_ownership_KO.png')
)
plt.close('all')

table = scorer.results_frame(results)
GovernanceDataLoader().export_results(table, OUTPUT_DIR / 'example_scores.xlsx')
print(f"\nScore table written to {OUTPUT_DIR / 'example_scores.xlsx'}")
