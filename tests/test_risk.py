"""Unit tests for risk scoring module."""

import itertools

from attrition.models import EmployeeRecord, ImpactDirection
from attrition.risk import (
    RuleTableScorer,
    ScoreOutcome,
    ScoringStrategy,
    clamp_score,
    get_risk_tier,
    score_employee,
)


def make_record(**overrides):
    values = dict(
        employee_id='EMP001',
        name='Test Employee',
        age=30,
        department='Sales',
        job_role='Associate',
        years_at_company=3,
        monthly_income=5000.0,
        job_satisfaction=3,
        work_life_balance=3,
        overtime=False,
        distance_from_home=10.0,
        num_companies_worked=1,
    )
    values.update(overrides)
    return EmployeeRecord(**values)


def test_clamp_score():
    """Test score clamping."""
    assert clamp_score(117) == 95
    assert clamp_score(-5) == 5
    assert clamp_score(30) == 30


def test_get_risk_tier():
    """Test risk tier assignment."""
    assert get_risk_tier(95) == 'High Risk'
    assert get_risk_tier(70) == 'High Risk'
    assert get_risk_tier(69) == 'Medium Risk'
    assert get_risk_tier(40) == 'Medium Risk'
    assert get_risk_tier(39) == 'Low Risk'
    assert get_risk_tier(5) == 'Low Risk'

    assert get_risk_tier(60, {'high': 60, 'medium': 30}) == 'High Risk'


def test_every_rule_fires():
    """Test the worst-case record: all risk-increasing rules fire."""
    record = make_record(overtime=True, job_satisfaction=1, years_at_company=1,
                         monthly_income=3000.0, work_life_balance=1)

    outcome = score_employee(record)

    # 30 + 25 + 20 + 15 + 15 + 12 = 117
    assert outcome.risk_score == 95
    assert outcome.will_leave == True
    assert len(outcome.factors) == 5
    assert all(f.impact == ImpactDirection.INCREASES_RISK for f in outcome.factors)


def test_protective_rules():
    """Test a satisfied long-tenured record."""
    record = make_record(overtime=False, job_satisfaction=4, years_at_company=6,
                         monthly_income=6000.0, work_life_balance=3)

    outcome = score_employee(record)

    # 30 - 15 - 20 = -5
    assert outcome.risk_score == 5
    assert outcome.will_leave == False
    assert [f.factor for f in outcome.factors] == ['High Job Satisfaction', 'Long Tenure']
    assert all(f.impact == ImpactDirection.DECREASES_RISK for f in outcome.factors)


def test_mid_range_fires_nothing():
    """Test that mid-range satisfaction and tenure fire neither branch."""
    outcome = score_employee(make_record())

    assert outcome.risk_score == 30
    assert outcome.will_leave == False
    assert outcome.factors == []


def test_threshold_edges():
    """Test boundary values of each rule."""
    assert score_employee(make_record(years_at_company=0)).risk_score == 45
    assert score_employee(make_record(years_at_company=2)).risk_score == 30
    assert score_employee(make_record(years_at_company=5)).risk_score == 10
    assert score_employee(make_record(job_satisfaction=2)).risk_score == 50
    assert score_employee(make_record(monthly_income=4000.0)).risk_score == 30
    assert score_employee(make_record(monthly_income=3999.0)).risk_score == 45
    assert score_employee(make_record(work_life_balance=2)).risk_score == 42


def test_factor_evaluation_order():
    """Test that factors come back in rule-table order."""
    record = make_record(overtime=True, job_satisfaction=1, years_at_company=1,
                         monthly_income=3000.0, work_life_balance=1)

    names = [f.factor for f in score_employee(record).factors]

    assert names == [
        'Overtime Required',
        'Low Job Satisfaction',
        'Short Tenure',
        'Below-Market Compensation',
        'Poor Work-Life Balance',
    ]


def test_score_bounds_and_classification():
    """Test clamp and classification across a grid of inputs."""
    grid = itertools.product([True, False], [1, 2, 3, 4], [0, 1, 3, 5, 10],
                             [2000.0, 4000.0, 9000.0], [1, 2, 3, 4, 5])
    for overtime, satisfaction, tenure, income, balance in grid:
        outcome = score_employee(make_record(
            overtime=overtime, job_satisfaction=satisfaction, years_at_company=tenure,
            monthly_income=income, work_life_balance=balance,
        ))
        assert 5 <= outcome.risk_score <= 95
        assert outcome.will_leave == (outcome.risk_score >= 50)


def test_custom_strategy():
    """Test that an alternative scoring strategy can be plugged in."""

    class FixedScorer(ScoringStrategy):
        def score(self, record):
            return ScoreOutcome(risk_score=77, will_leave=True, factors=[])

    assert score_employee(make_record(), FixedScorer()).risk_score == 77

    no_rules = RuleTableScorer(rules=[], base_score=60)
    outcome = score_employee(make_record(overtime=True), no_rules)
    assert outcome.risk_score == 60
    assert outcome.factors == []
