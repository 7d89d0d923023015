"""Visualization modules for governance analysis."""

from governance_scoring.visualization.plots import (
    plot_score_breakdown,
    plot_peer_scores,
    plot_ownership_concentration
)

__all__ = [
    "plot_score_breakdown",
    "plot_peer_scores",
    "plot_ownership_concentration",
]
