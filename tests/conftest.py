"""Shared fixtures for governance scoring tests."""

import matplotlib

matplotlib.use("Agg")

import pytest

from governance_scoring.core.models import Entity


@pytest.fixture
def strong_metrics() -> dict:
    """Company that reaches the top band of every default category."""
    return {
        "total_directors": 8,
        "independent_directors": 7,
        "independent_chair": 1,
        "committee_members": 10,
        "independent_committee_members": 10,
        "total_compensation": 10_000_000,
        "performance_based_pay": 8_000_000,
        "ceo_pay_ratio": 40,
        "ownership_hhi": 800,
        "shareholder_rights_provisions": 6,
        "audit_financial_experts": 3,
    }


@pytest.fixture
def weak_metrics() -> dict:
    """Company with the lowest or second-lowest score in every category."""
    return {
        "total_directors": 8,
        "independent_directors": 3,
        "independent_chair": 0,
        "committee_members": 10,
        "independent_committee_members": 4,
        "total_compensation": 10_000_000,
        "performance_based_pay": 1_000_000,
        "ceo_pay_ratio": 500,
        "ownership_hhi": 6000,
        "shareholder_rights_provisions": 1,
        "audit_financial_experts": 0,
    }


@pytest.fixture
def strong_entity(strong_metrics) -> Entity:
    return Entity("STRONG", strong_metrics)


@pytest.fixture
def weak_entity(weak_metrics) -> Entity:
    return Entity("WEAK", weak_metrics)
