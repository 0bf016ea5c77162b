"""Data models for the Employee Attrition Analyzer application."""

from enum import Enum
from typing import Optional, Dict, List

from pydantic import BaseModel, ConfigDict, Field, model_validator


class ImpactDirection(str, Enum):
    """Which way a factor pushes the risk score."""
    INCREASES_RISK = "increases_risk"
    DECREASES_RISK = "decreases_risk"


class EmployeeRecord(BaseModel):
    """Canonical, fully-defaulted employee record used as scorer input."""
    employee_id: str
    name: str
    age: int = Field(gt=0)
    department: str
    job_role: str
    years_at_company: int = Field(ge=0)
    monthly_income: float = Field(gt=0)
    job_satisfaction: int = Field(ge=1, le=4)
    # Bulk derivation draws 1-5, so the canonical record admits 5
    work_life_balance: int = Field(ge=1, le=5)
    overtime: bool
    distance_from_home: float = Field(ge=0)
    num_companies_worked: int = Field(ge=0)


class EmployeeForm(BaseModel):
    """Manually entered employee details, range-checked at submission."""
    employee_id: str = "MANUAL"
    name: str = ""
    age: int = Field(default=30, ge=18, le=65)
    department: str = "General"
    job_role: str = "Associate"
    years_at_company: int = Field(default=2, ge=0, le=40)
    monthly_income: float = Field(default=5000, ge=1000, le=50000)
    job_satisfaction: int = Field(default=3, ge=1, le=4)
    work_life_balance: int = Field(default=3, ge=1, le=4)
    overtime: bool = False
    distance_from_home: float = Field(default=10, ge=0)
    num_companies_worked: int = Field(default=2, ge=0, le=10)

    def to_record(self) -> EmployeeRecord:
        return EmployeeRecord(**self.model_dump())


class RiskFactor(BaseModel):
    """A single rule that fired, with its direction and weight."""
    model_config = ConfigDict(frozen=True)

    factor: str
    impact: ImpactDirection
    description: str
    importance: float = Field(gt=0, le=1)


class ChartEntry(BaseModel):
    """One bar of the diverging feature-impact chart (unsigned)."""
    model_config = ConfigDict(frozen=True)

    label: str
    impact: int = Field(ge=0, le=100)
    direction: ImpactDirection


class PredictionResult(BaseModel):
    """Single-employee prediction with its explanation."""
    will_leave: bool
    risk_score: int = Field(ge=5, le=95)
    employee_name: str
    risk_tier: str
    recommendation: str
    reasons: List[RiskFactor] = Field(default_factory=list, max_length=5)
    chart_data: List[ChartEntry] = Field(default_factory=list, max_length=6)

    @model_validator(mode="after")
    def _classification_matches_score(self) -> "PredictionResult":
        if self.will_leave != (self.risk_score >= 50):
            raise ValueError(
                f"will_leave={self.will_leave} inconsistent with risk_score={self.risk_score}"
            )
        return self


class BulkRow(BaseModel):
    """
    Upload-shaped employee row.

    Fields left as None are derived by the bulk aggregator.
    """
    employee_id: str
    name: str
    department: str
    tenure: int = Field(ge=0)
    satisfaction: float = Field(ge=0, le=1)
    overtime: Optional[bool] = None
    work_life_balance: Optional[int] = Field(default=None, ge=1, le=5)
    monthly_income: Optional[float] = Field(default=None, gt=0)

    @classmethod
    def from_record(cls, record: EmployeeRecord) -> "BulkRow":
        """Build a row that keeps every value the uploaded file supplied."""
        return cls(
            employee_id=record.employee_id,
            name=record.name,
            department=record.department,
            tenure=record.years_at_company,
            satisfaction=record.job_satisfaction / 4.0,
            overtime=record.overtime,
            work_life_balance=record.work_life_balance,
            monthly_income=record.monthly_income,
        )


class BulkSummaryEntry(BaseModel):
    """One row of the bulk results table."""
    employee_id: str
    name: str
    department: str
    risk_score: int
    will_leave: bool
    risk_tier: str
    prediction: PredictionResult


class UploadResponse(BaseModel):
    """Response from file upload endpoint."""
    success: bool
    message: str
    total_rows: int
    processed_rows: int
    results: List[BulkSummaryEntry]
    summary: Dict[str, int]
