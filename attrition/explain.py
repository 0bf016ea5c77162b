"""Ranking of risk factors into narrative and chart-ready views."""

import math
from typing import Iterable, List, Optional

from attrition.models import (
    ChartEntry,
    EmployeeRecord,
    ImpactDirection,
    PredictionResult,
    RiskFactor,
)
from attrition.risk import ScoreOutcome, ScoringStrategy, get_risk_tier, score_employee


MAX_REASONS = 5
MAX_CHART_ENTRIES = 6

LEAVE_RECOMMENDATION = (
    'Consider scheduling a one-on-one meeting to discuss career development '
    'and address any concerns.'
)
STAY_RECOMMENDATION = (
    'This employee shows strong retention indicators. Continue supporting '
    'their growth trajectory.'
)


def round_half_up(value: float) -> int:
    """Round .5 away from zero for positive values (Python's round() is banker's)."""
    return int(math.floor(value + 0.5))


def sort_factors(factors: Iterable[RiskFactor]) -> List[RiskFactor]:
    """Descending by importance; ties keep evaluation order."""
    return sorted(factors, key=lambda f: f.importance, reverse=True)


def rank_factors(factors: Iterable[RiskFactor], limit: int = MAX_REASONS) -> List[RiskFactor]:
    return sort_factors(factors)[:limit]


def short_label(factor_name: str) -> str:
    """First two words of a factor name, for chart axes."""
    return ' '.join(factor_name.split()[:2])


def chart_aggregates(factors: Iterable[RiskFactor], limit: int = MAX_CHART_ENTRIES) -> List[ChartEntry]:
    """
    Build the diverging bar chart series.

    Magnitudes are unsigned; the direction tells the consumer which side of
    the axis the bar belongs on.
    """
    return [
        ChartEntry(
            label=short_label(f.factor),
            impact=round_half_up(f.importance * 100),
            direction=f.impact,
        )
        for f in sort_factors(factors)[:limit]
    ]


def signed_chart_values(chart_data: Iterable[ChartEntry]) -> List[int]:
    """Risk-increasing bars positive, risk-decreasing bars negative."""
    return [
        entry.impact if entry.direction == ImpactDirection.INCREASES_RISK else -entry.impact
        for entry in chart_data
    ]


def recommendation_for(will_leave: bool) -> str:
    return LEAVE_RECOMMENDATION if will_leave else STAY_RECOMMENDATION


def build_prediction(employee_name: str, outcome: ScoreOutcome) -> PredictionResult:
    """Assemble the presentation-ready result from a scorer outcome."""
    return PredictionResult(
        will_leave=outcome.will_leave,
        risk_score=outcome.risk_score,
        employee_name=employee_name or 'Employee',
        risk_tier=get_risk_tier(outcome.risk_score),
        recommendation=recommendation_for(outcome.will_leave),
        reasons=rank_factors(outcome.factors),
        chart_data=chart_aggregates(outcome.factors),
    )


def predict(record: EmployeeRecord, scorer: Optional[ScoringStrategy] = None) -> PredictionResult:
    """Score a record and rank its explanation."""
    outcome = score_employee(record, scorer)
    return build_prediction(record.name, outcome)
