"""Bulk scoring of uploaded employee rows."""

import logging
from typing import Dict, Iterable, List, Optional

import numpy as np
import pandas as pd

from attrition.explain import predict, round_half_up
from attrition.models import BulkRow, BulkSummaryEntry, EmployeeRecord
from attrition.parsers import DEFAULTS
from attrition.risk import ScoringStrategy


logger = logging.getLogger(__name__)

TIER_LABELS = ('High Risk', 'Medium Risk', 'Low Risk')

SUMMARY_COLUMNS = [
    'Employee ID',
    'Name',
    'Department',
    'Risk Score',
    'Risk Tier',
    'Prediction',
]


def satisfaction_level(fraction: float) -> int:
    """Map a 0-1 satisfaction fraction onto the 1-4 scale."""
    # Fractions below 0.125 round to 0, which is off the scale. They are lifted
    # to 1 and so count as low satisfaction rather than skipping the rule.
    return min(4, max(1, round_half_up(fraction * 4)))


def derive_record(row: BulkRow, rng: np.random.Generator) -> EmployeeRecord:
    """
    Fill in the fields a bulk row may not carry.
    
    Overtime, work-life balance and income come from the row when present;
    otherwise they are drawn from ``rng`` (about 30% overtime, balance uniform
    in 1-5, income uniform in [3000, 10000)).
    
    Args:
        row: Upload-shaped row
        rng: Random source for missing fields
    
    Returns:
        EmployeeRecord ready for scoring
    """
    overtime = row.overtime
    if overtime is None:
        overtime = bool(rng.random() > 0.7)

    work_life_balance = row.work_life_balance
    if work_life_balance is None:
        work_life_balance = int(rng.integers(1, 6))

    monthly_income = row.monthly_income
    if monthly_income is None:
        monthly_income = float(rng.uniform(3000, 10000))

    return EmployeeRecord(
        employee_id=row.employee_id,
        name=row.name,
        age=DEFAULTS['age'],
        department=row.department,
        job_role=DEFAULTS['job_role'],
        years_at_company=row.tenure,
        monthly_income=monthly_income,
        job_satisfaction=satisfaction_level(row.satisfaction),
        work_life_balance=work_life_balance,
        overtime=overtime,
        distance_from_home=DEFAULTS['distance_from_home'],
        num_companies_worked=DEFAULTS['num_companies_worked'],
    )


def aggregate(
    rows: Iterable[BulkRow],
    rng: Optional[np.random.Generator] = None,
    scorer: Optional[ScoringStrategy] = None,
) -> List[BulkSummaryEntry]:
    """Score every row, preserving input order."""
    if rng is None:
        rng = np.random.default_rng()

    entries = []
    for row in rows:
        prediction = predict(derive_record(row, rng), scorer)
        entries.append(BulkSummaryEntry(
            employee_id=row.employee_id,
            name=row.name,
            department=row.department,
            risk_score=prediction.risk_score,
            will_leave=prediction.will_leave,
            risk_tier=prediction.risk_tier,
            prediction=prediction,
        ))
    return entries


def tier_counts(entries: Iterable[BulkSummaryEntry]) -> Dict[str, int]:
    counts = {label: 0 for label in TIER_LABELS}
    for entry in entries:
        counts[entry.risk_tier] += 1
    return counts


def build_summary(entries: List[BulkSummaryEntry]) -> Dict[str, int]:
    """Tier counts plus totals for the results header."""
    summary = tier_counts(entries)
    summary['Total'] = len(entries)
    summary['Will Leave'] = sum(1 for e in entries if e.will_leave)

    logger.info(
        "Results: %d employees (%d High Risk, %d Medium Risk, %d Low Risk)",
        summary['Total'], summary['High Risk'], summary['Medium Risk'], summary['Low Risk'],
    )
    return summary


def summary_frame(entries: List[BulkSummaryEntry]) -> pd.DataFrame:
    """Tabular view of bulk results in input order."""
    return pd.DataFrame(
        [
            [
                e.employee_id,
                e.name,
                e.department,
                e.risk_score,
                e.risk_tier,
                'Likely to Leave' if e.will_leave else 'Likely to Stay',
            ]
            for e in entries
        ],
        columns=SUMMARY_COLUMNS,
    )
