"""Tests for the ROAS/CTR performance rating."""

import pytest

from funildash.analyzer.classifier import classify_performance
from funildash.models.dashboard_models import PerformanceStatus


@pytest.mark.parametrize(
    "roas, ctr, expected",
    [
        (3.5, 2.5, PerformanceStatus.EXCELLENT),
        (3.5, 1.2, PerformanceStatus.MEDIUM),
        (2.1, 1.6, PerformanceStatus.GOOD),
        (1.0, 5.0, PerformanceStatus.POOR),
        (0.0, 0.0, PerformanceStatus.POOR),
    ],
)
def test_classification(roas, ctr, expected):
    assert classify_performance(roas, ctr) is expected


@pytest.mark.parametrize(
    "roas, ctr, expected",
    [
        (3.0, 2.0, PerformanceStatus.EXCELLENT),
        (2.0, 1.5, PerformanceStatus.GOOD),
        (1.5, 1.0, PerformanceStatus.MEDIUM),
        (2.99, 2.0, PerformanceStatus.GOOD),
        (1.49, 1.0, PerformanceStatus.POOR),
        (1.5, 0.99, PerformanceStatus.POOR),
    ],
)
def test_thresholds_are_inclusive(roas, ctr, expected):
    assert classify_performance(roas, ctr) is expected


def test_high_roas_needs_ctr_too():
    assert classify_performance(10.0, 1.49) is PerformanceStatus.MEDIUM
