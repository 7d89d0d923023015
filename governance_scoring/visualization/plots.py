"""
Plotting Module for Governance Scoring
======================================

This module provides visualization functions for governance analysis.
It creates charts showing:
- The weighted contribution of each rubric category to one company's score
- Aggregate scores of a peer group against the rating bands
- A shareholder register with its Herfindahl-Hirschman Index

The plots only read score results; they never compute or change a score.
"""

from typing import List, Optional, Sequence, Tuple

import matplotlib.pyplot as plt
import numpy as np
from matplotlib.figure import Figure

from governance_scoring.core.metrics import (
    PERCENT_TOLERANCE,
    classify_concentration,
    compute_concentration_index,
    ownership_percentages,
)
from governance_scoring.core.models import RatingLabel, ScoreResult
from governance_scoring.core.scorer import RATING_BANDS

BAND_COLORS = {
    RatingLabel.EXEMPLARY: '#1a9850',
    RatingLabel.STRONG: '#66bd63',
    RatingLabel.GOOD: '#a6d96a',
    RatingLabel.SATISFACTORY: '#fee08b',
    RatingLabel.NEEDS_IMPROVEMENT: '#fdae61',
    RatingLabel.SIGNIFICANT_CONCERNS: '#d73027',
}


def plot_score_breakdown(
    result: ScoreResult,
    figsize: Tuple[int, int] = (12, 7),
    save_path: Optional[str] = None,
    title: Optional[str] = None
) -> Figure:
    """
    Create a bar chart of each category's contribution to the aggregate.

    Each bar shows the points a category earned next to the points it
    could have earned at the top of the scale (its weight times 100).

    Args:
        result: Score for one company
        figsize: Figure size (width, height)
        save_path: If provided, save the figure to this path
        title: Plot title (default: company and rating)

    Returns:
        matplotlib Figure object
    """
    fig, ax = plt.subplots(figsize=figsize)

    categories = list(result.contributions.keys())
    earned = np.array([result.contributions[c] for c in categories])
    available = np.array([result.weights[c] * 100 for c in categories])
    y = np.arange(len(categories))

    ax.barh(y, available, color='lightgray', edgecolor='black', label='Available points')
    bars = ax.barh(y, earned, color=BAND_COLORS[result.rating_label],
                   edgecolor='black', label='Earned points')

    for bar, category in zip(bars, categories):
        ax.annotate(f"{result.sub_scores[category]}/5",
                    xy=(bar.get_width(), bar.get_y() + bar.get_height() / 2),
                    xytext=(4, 0), textcoords='offset points',
                    va='center', fontsize=9, fontweight='bold')

    ax.set_yticks(y)
    ax.set_yticklabels([c.replace('_', ' ').title() for c in categories])
    ax.invert_yaxis()
    ax.set_xlabel('Points (of 100)', fontsize=12)
    ax.set_title(
        title or f"{result.identifier}: {result.aggregate_score:.1f} / 100 "
                 f"({result.rating_label.display_name})",
        fontsize=14, fontweight='bold'
    )
    ax.legend(loc='lower right', fontsize=10)
    ax.grid(True, axis='x', alpha=0.3)

    plt.tight_layout()

    if save_path:
        plt.savefig(save_path, dpi=150, bbox_inches='tight')
        print(f"Figure saved to: {save_path}")

    return fig


def plot_peer_scores(
    results: Sequence[ScoreResult],
    figsize: Tuple[int, int] = (12, 7),
    save_path: Optional[str] = None,
    title: str = "Governance Scores Across Peers"
) -> Figure:
    """
    Plot aggregate scores for a peer group over the rating bands.

    Companies are sorted best first; the background is shaded by rating
    band so each bar's label can be read off directly.

    Args:
        results: Scores for the peer group
        figsize: Figure size
        save_path: Optional path to save figure
        title: Plot title

    Returns:
        matplotlib Figure object
    """
    fig, ax = plt.subplots(figsize=figsize)

    ordered = sorted(results, key=lambda r: r.aggregate_score, reverse=True)
    names = [r.identifier for r in ordered]
    scores = np.array([r.aggregate_score for r in ordered])

    # Shade the bands: each band runs from its lower bound up to the next one
    upper = 100.0
    for lower, label in RATING_BANDS:
        ax.axhspan(lower, upper, color=BAND_COLORS[label], alpha=0.15, zorder=0)
        ax.text(1.01, (lower + upper) / 2, label.value, transform=ax.get_yaxis_transform(),
                va='center', fontsize=9)
        upper = lower

    colors = [BAND_COLORS[r.rating_label] for r in ordered]
    bars = ax.bar(names, scores, color=colors, edgecolor='black', zorder=2)

    for bar, score in zip(bars, scores):
        ax.annotate(f'{score:.1f}',
                    xy=(bar.get_x() + bar.get_width() / 2, bar.get_height()),
                    xytext=(0, 3), textcoords='offset points',
                    ha='center', va='bottom', fontsize=10, fontweight='bold')

    ax.set_ylim(0, 105)
    ax.set_xlabel('Company', fontsize=12)
    ax.set_ylabel('Aggregate Governance Score', fontsize=12)
    ax.set_title(title, fontsize=14, fontweight='bold')
    ax.grid(True, axis='y', alpha=0.3, zorder=1)

    plt.tight_layout()

    if save_path:
        plt.savefig(save_path, dpi=150, bbox_inches='tight')

    return fig


def plot_ownership_concentration(
    shares: Sequence[float],
    holder_names: Optional[List[str]] = None,
    company: str = "",
    top_n: int = 10,
    as_percentages: bool = False,
    moderate_threshold: float = 1500.0,
    high_threshold: float = 2500.0,
    figsize: Tuple[int, int] = (12, 7),
    save_path: Optional[str] = None
) -> Figure:
    """
    Create a bar chart of a shareholder register with its HHI.

    The largest holders are shown individually and the rest grouped as
    'Other holders'. The HHI is always computed over the full register.
    With ``as_percentages`` the values are stakes in percent and the part
    not held by the listed holders is drawn as 'Dispersed float'; it does
    not enter the HHI.

    Args:
        shares: Shares held per holder, or percentage stakes
        holder_names: Holder names (default: Holder 1, Holder 2, ...)
        company: Company name for the title
        top_n: Number of holders shown individually
        as_percentages: If True, treat the values as percentage stakes
        moderate_threshold: HHI at which ownership is moderately concentrated
        high_threshold: HHI above which ownership is highly concentrated
        figsize: Figure size
        save_path: Optional save path

    Returns:
        matplotlib Figure object
    """
    hhi = compute_concentration_index(shares, as_percentages=as_percentages)
    level = classify_concentration(hhi, moderate_threshold, high_threshold)
    if as_percentages:
        pct = np.asarray(shares, dtype=float).ravel()
    else:
        pct = ownership_percentages(shares)

    if holder_names is None:
        holder_names = [f"Holder {i+1}" for i in range(len(pct))]
    holder_names = list(holder_names)

    order = np.argsort(pct)[::-1]
    labels = [holder_names[i] for i in order[:top_n]]
    values = list(pct[order[:top_n]])
    if len(order) > top_n:
        labels.append('Other holders')
        values.append(float(pct[order[top_n:]].sum()))
    colors = ['steelblue'] * len(values)

    if as_percentages and 100.0 - pct.sum() > PERCENT_TOLERANCE:
        labels.append('Dispersed float')
        values.append(100.0 - float(pct.sum()))
        colors.append('lightgray')

    fig, ax = plt.subplots(figsize=figsize)

    bars = ax.bar(labels, values, color=colors, edgecolor='black')
    for bar, v in zip(bars, values):
        ax.annotate(f'{v:.1f}%',
                    xy=(bar.get_x() + bar.get_width() / 2, bar.get_height()),
                    xytext=(0, 3), textcoords='offset points',
                    ha='center', va='bottom', fontsize=9)

    ax.text(0.98, 0.95, f"HHI = {hhi:,.0f}\n{level.value}",
            transform=ax.transAxes, ha='right', va='top', fontsize=12,
            bbox=dict(boxstyle='round', facecolor='white', edgecolor='gray'))

    ax.set_xlabel('Holder', fontsize=12)
    ax.set_ylabel('Ownership %', fontsize=12)
    heading = f"{company} Ownership Concentration" if company else "Ownership Concentration"
    ax.set_title(heading, fontsize=14, fontweight='bold')
    ax.tick_params(axis='x', rotation=45)
    ax.grid(True, axis='y', alpha=0.3)

    plt.tight_layout()

    if save_path:
        plt.savefig(save_path, dpi=150, bbox_inches='tight')

    return fig
