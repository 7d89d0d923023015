"""
Ownership and Board Metrics
===========================

This module implements the raw governance measures that feed the scoring
rubric:
- Herfindahl-Hirschman Index (HHI) of ownership concentration
- Ownership percentages and top-k concentration ratios
- Board independence percentage

Theory Background:
------------------
Ownership concentration matters for agency costs. A dispersed shareholder
base gives management more room to act in its own interest, while a single
dominant holder can monitor management but may extract private benefits at
the expense of minority holders.

The HHI summarizes concentration in one number:

    HHI = sum(p_i^2)   where p_i is holder i's stake in percent

Key Properties:
1. A single holder owning 100% gives HHI = 10,000 (maximum)
2. n equal holders give HHI = 10,000 / n (minimum for n holders)
3. Squaring weights large holders heavily, so the top few holders dominate

This is equivalent to Excel's =SUMPRODUCT(pct_range, pct_range).
"""

from enum import Enum
from typing import Sequence, Union

import numpy as np

from governance_scoring.core.errors import InvalidInputError

ArrayLike = Union[Sequence[float], np.ndarray]

HHI_MAX = 10000.0
PERCENT_TOLERANCE = 1e-6


class ConcentrationLevel(str, Enum):
    """Antitrust-style concentration bands for an HHI value."""

    UNCONCENTRATED = "Unconcentrated"
    MODERATE = "Moderately Concentrated"
    HIGH = "Highly Concentrated"


def _as_holdings(shares: ArrayLike) -> np.ndarray:
    """Convert holdings to a flat float array, rejecting bad values."""
    try:
        values = np.asarray(shares, dtype=float).ravel()
    except (TypeError, ValueError) as e:
        raise InvalidInputError(f"Holdings must be numeric: {e}") from e

    if not np.all(np.isfinite(values)):
        raise InvalidInputError("Holdings contain NaN or Inf")

    negative = np.flatnonzero(values < 0)
    if negative.size:
        raise InvalidInputError(
            f"Holdings must be non-negative; position {int(negative[0])} "
            f"has value {values[negative[0]]}"
        )

    return values


def ownership_percentages(shares: ArrayLike) -> np.ndarray:
    """
    Normalize absolute holdings to percentages of the total.

    Formula: p_i = shares_i / sum(shares) * 100

    Args:
        shares: Shares held by each holder (non-negative)

    Returns:
        Array of percentages, same order as the input. All zeros when nobody
        holds anything.

    Raises:
        InvalidInputError: If any holding is negative, NaN or Inf
    """
    values = _as_holdings(shares)
    total = values.sum()
    if total == 0:
        return np.zeros_like(values)
    return values / total * 100.0


def compute_concentration_index(
    shares: ArrayLike,
    as_percentages: bool = False
) -> float:
    """
    Calculate the Herfindahl-Hirschman Index of ownership concentration.

    Formula: HHI = sum(p_i^2)

    By default the values are absolute quantities (e.g. shares held) and are
    normalized to percentages of their sum first. Set ``as_percentages`` when
    the values already are percentage stakes; they may then sum to less than
    100 (the remainder being dispersed holders that are left out).

    Args:
        shares: Holding per holder
        as_percentages: If True, use the values as percentages directly

    Returns:
        HHI in [10000/n, 10000] for n positive holders, 0.0 for no holders

    Raises:
        InvalidInputError: On negative or non-finite values, or percentages
            above 100 (individually or in total)

    Example:
        >>> compute_concentration_index([250, 250, 250, 250])
        2500.0
    """
    values = _as_holdings(shares)
    if values.size == 0:
        return 0.0

    if as_percentages:
        if np.any(values > 100.0):
            raise InvalidInputError(
                f"Percentage stakes cannot exceed 100 (max = {values.max()})"
            )
        total = values.sum()
        if total > 100.0 + PERCENT_TOLERANCE:
            raise InvalidInputError(
                f"Percentage stakes sum to {total:.4f}, more than 100"
            )
        pct = values
    else:
        pct = ownership_percentages(values)

    return float(np.sum(pct ** 2))


def top_holder_share(shares: ArrayLike, k: int = 1) -> float:
    """
    Calculate the concentration ratio CR-k.

    CR-k is the combined percentage held by the k largest holders.

    Args:
        shares: Shares held by each holder
        k: Number of top holders to include

    Returns:
        Percentage (0-100) held by the top k holders
    """
    if k < 1:
        raise InvalidInputError(f"k must be at least 1, got {k}")
    pct = ownership_percentages(shares)
    if pct.size == 0:
        return 0.0
    return float(np.sort(pct)[::-1][:k].sum())


def board_independence_pct(independent_directors: float, total_directors: float) -> float:
    """
    Calculate the percentage of independent directors on the board.

    Formula: independence = independent / total * 100

    Args:
        independent_directors: Number of independent directors
        total_directors: Board size

    Returns:
        Independence percentage (e.g. 7 of 8 -> 87.5)

    Raises:
        InvalidInputError: If the board is empty, a count is negative, or
            there are more independent directors than seats
    """
    if not (np.isfinite(independent_directors) and np.isfinite(total_directors)):
        raise InvalidInputError("Director counts must be finite numbers")
    if total_directors <= 0:
        raise InvalidInputError(f"Board must have at least one director, got {total_directors}")
    if independent_directors < 0:
        raise InvalidInputError(
            f"Independent director count cannot be negative, got {independent_directors}"
        )
    if independent_directors > total_directors:
        raise InvalidInputError(
            f"{independent_directors} independent directors on a board of {total_directors}"
        )
    return independent_directors / total_directors * 100.0


def classify_concentration(
    hhi: float,
    moderate_threshold: float = 1500.0,
    high_threshold: float = 2500.0
) -> ConcentrationLevel:
    """
    Map an HHI value to a concentration band.

    Bands: below 1,500 unconcentrated; 1,500 to 2,500 moderately
    concentrated; above 2,500 highly concentrated.

    Args:
        hhi: Herfindahl-Hirschman Index (0-10,000)
        moderate_threshold: Lower bound of the moderate band
        high_threshold: Upper bound of the moderate band

    Returns:
        ConcentrationLevel
    """
    if not np.isfinite(hhi) or hhi < 0 or hhi > HHI_MAX + PERCENT_TOLERANCE:
        raise InvalidInputError(f"HHI must lie in [0, 10000], got {hhi}")
    if hhi < moderate_threshold:
        return ConcentrationLevel.UNCONCENTRATED
    if hhi <= high_threshold:
        return ConcentrationLevel.MODERATE
    return ConcentrationLevel.HIGH
