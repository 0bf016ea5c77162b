"""Risk scoring logic: the fixed rule table behind a scoring-strategy interface."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Sequence

from attrition.models import EmployeeRecord, ImpactDirection, RiskFactor


BASE_SCORE = 30
MIN_SCORE = 5
MAX_SCORE = 95
LEAVE_THRESHOLD = 50

DEFAULT_TIER_THRESHOLDS = {'high': 70, 'medium': 40}


@dataclass(frozen=True)
class RiskRule:
    """A condition on the record, the score delta it adds and the factor it reports."""
    condition: Callable[[EmployeeRecord], bool]
    delta: int
    factor: RiskFactor


@dataclass
class ScoreOutcome:
    """Scorer output before ranking."""
    risk_score: int
    will_leave: bool
    factors: List[RiskFactor] = field(default_factory=list)


def _increases(name: str, description: str, importance: float) -> RiskFactor:
    return RiskFactor(
        factor=name,
        impact=ImpactDirection.INCREASES_RISK,
        description=description,
        importance=importance,
    )


def _decreases(name: str, description: str, importance: float) -> RiskFactor:
    return RiskFactor(
        factor=name,
        impact=ImpactDirection.DECREASES_RISK,
        description=description,
        importance=importance,
    )


# Evaluated independently, in this order. The satisfaction and tenure pairs
# are mutually exclusive; mid-range values fire neither side.
RISK_RULES: List[RiskRule] = [
    RiskRule(
        condition=lambda e: e.overtime,
        delta=25,
        factor=_increases(
            'Overtime Required',
            'Employees working overtime regularly are 2.5x more likely to leave '
            'due to burnout and work-life imbalance.',
            0.28,
        ),
    ),
    RiskRule(
        condition=lambda e: e.job_satisfaction <= 2,
        delta=20,
        factor=_increases(
            'Low Job Satisfaction',
            'Current satisfaction level is below average, indicating potential '
            'disengagement with role responsibilities.',
            0.22,
        ),
    ),
    RiskRule(
        condition=lambda e: e.job_satisfaction >= 4,
        delta=-15,
        factor=_decreases(
            'High Job Satisfaction',
            'Strong satisfaction indicates alignment with job expectations and '
            'company culture.',
            0.20,
        ),
    ),
    RiskRule(
        condition=lambda e: e.years_at_company < 2,
        delta=15,
        factor=_increases(
            'Short Tenure',
            'Employees with less than 2 years typically have lower loyalty bonds '
            'and more external opportunities.',
            0.18,
        ),
    ),
    RiskRule(
        condition=lambda e: e.years_at_company >= 5,
        delta=-20,
        factor=_decreases(
            'Long Tenure',
            'Extended tenure suggests strong organizational commitment and '
            'established relationships.',
            0.22,
        ),
    ),
    RiskRule(
        condition=lambda e: e.monthly_income < 4000,
        delta=15,
        factor=_increases(
            'Below-Market Compensation',
            'Salary is below industry average for this role, making external '
            'offers more attractive.',
            0.15,
        ),
    ),
    RiskRule(
        condition=lambda e: e.work_life_balance <= 2,
        delta=12,
        factor=_increases(
            'Poor Work-Life Balance',
            'Current balance score indicates stress factors that may lead to '
            'seeking better opportunities.',
            0.12,
        ),
    ),
]


def clamp_score(raw_score: int) -> int:
    """Bound a raw rule-table sum to the reportable range [5, 95]."""
    return max(MIN_SCORE, min(MAX_SCORE, raw_score))


def is_likely_to_leave(risk_score: int) -> bool:
    return risk_score >= LEAVE_THRESHOLD


def get_risk_tier(risk_score: float, thresholds: Optional[Dict[str, float]] = None) -> str:
    """
    Bucket a risk score into High/Medium/Low Risk.
    
    Args:
        risk_score: Risk score (5-95)
        thresholds: Dict with 'high' and 'medium' lower bounds
    
    Returns:
        Risk tier label
    """
    thresholds = thresholds or DEFAULT_TIER_THRESHOLDS
    if risk_score >= thresholds.get('high', 70):
        return 'High Risk'
    elif risk_score >= thresholds.get('medium', 40):
        return 'Medium Risk'
    else:
        return 'Low Risk'


class ScoringStrategy(ABC):
    """Anything that turns an employee record into a score and its factors."""

    @abstractmethod
    def score(self, record: EmployeeRecord) -> ScoreOutcome:
        raise NotImplementedError


class RuleTableScorer(ScoringStrategy):
    """
    Scores a record against a static, auditable rule table.

    Every rule is checked once against the same record; the deltas are
    summed onto the base score and the total clamped to [5, 95].
    """

    def __init__(self, rules: Sequence[RiskRule] = RISK_RULES, base_score: int = BASE_SCORE):
        self.rules = list(rules)
        self.base_score = base_score

    def score(self, record: EmployeeRecord) -> ScoreOutcome:
        raw_score = self.base_score
        factors: List[RiskFactor] = []
        for rule in self.rules:
            if rule.condition(record):
                raw_score += rule.delta
                factors.append(rule.factor)

        risk_score = clamp_score(raw_score)
        return ScoreOutcome(
            risk_score=risk_score,
            will_leave=is_likely_to_leave(risk_score),
            factors=factors,
        )


default_scorer = RuleTableScorer()


def score_employee(record: EmployeeRecord, scorer: Optional[ScoringStrategy] = None) -> ScoreOutcome:
    """Score one record with the given strategy, or the rule table by default."""
    return (scorer or default_scorer).score(record)
