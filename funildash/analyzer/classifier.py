"""FunilDash — Performance Classifier."""

from funildash.models.dashboard_models import PerformanceStatus

# (status, min ROAS, min CTR %), checked in order; first match wins
THRESHOLDS = (
    (PerformanceStatus.EXCELLENT, 3.0, 2.0),
    (PerformanceStatus.GOOD, 2.0, 1.5),
    (PerformanceStatus.MEDIUM, 1.5, 1.0),
)


def classify_performance(roas: float, ctr: float) -> PerformanceStatus:
    """Rate a node from its ROAS and CTR. Thresholds are inclusive."""
    for status, min_roas, min_ctr in THRESHOLDS:
        if roas >= min_roas and ctr >= min_ctr:
            return status
    return PerformanceStatus.POOR
