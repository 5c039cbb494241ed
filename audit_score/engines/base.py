"""
Type contracts shared by the audit score engines.

Design principles:
- Engines are stateless: every value comes from the ScoreInput
- Issues are immutable once handed over by the crawler
- Category is never stored on an Issue; it is derived at classification time
- Unknown severities and unmatched texts resolve through defaults, never errors
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


# ─────────────────────────────────────────────
# Enums
# ─────────────────────────────────────────────

class Severity(str, Enum):
    CRITICAL = "critical"   # Blocking issue - fix immediately
    HIGH = "high"           # Significant impact - fix soon
    MEDIUM = "medium"       # Moderate impact - fix this sprint
    LOW = "low"             # Minor - fix when convenient
    INFO = "info"           # Informational - never deducted


class ScoreCategory(str, Enum):
    ON_PAGE = "onPage"
    TECHNICAL = "technical"
    CONTENT = "content"


# ─────────────────────────────────────────────
# Core data types
# ─────────────────────────────────────────────

class Issue(BaseModel):
    """
    A single crawler-detected SEO issue.

    Severity is kept as the raw string the crawler sent so that values
    outside the known tiers survive validation and simply match no bucket.
    """
    model_config = ConfigDict(frozen=True, extra="allow")

    issue: str = ""
    severity: str | None = None

    @field_validator("issue", mode="before")
    @classmethod
    def coerce_missing_text(cls, v: Any) -> Any:
        if v is None:
            return ""
        if not isinstance(v, str):
            return str(v)
        return v

    @field_validator("severity", mode="before")
    @classmethod
    def unwrap_severity(cls, v: Any) -> Any:
        if isinstance(v, Severity):
            return v.value
        if v is not None and not isinstance(v, str):
            return str(v)
        return v

    @property
    def normalized_text(self) -> str:
        """Lower-cased issue text used for keyword matching."""
        return self.issue.lower()


CategorizedIssues = dict[ScoreCategory, list[Issue]]


class SeverityBuckets(BaseModel):
    """A category's issues partitioned into deduction tiers."""
    critical_or_high: list[Issue] = Field(default_factory=list)
    medium: list[Issue] = Field(default_factory=list)
    low: list[Issue] = Field(default_factory=list)


class ScoreInput(BaseModel):
    """Vendor baselines plus crawler issues. Baselines are not range-checked."""
    model_config = ConfigDict(populate_by_name=True)

    on_page_baseline: float = Field(alias="onPageBaseline", allow_inf_nan=False)
    technical_baseline: float = Field(alias="technicalBaseline", allow_inf_nan=False)
    content_baseline: float = Field(alias="contentBaseline", allow_inf_nan=False)
    issues: list[Issue] = Field(default_factory=list)

    @field_validator("issues", mode="before")
    @classmethod
    def default_missing_issues(cls, v: Any) -> Any:
        return [] if v is None else v

    def baseline_for(self, category: ScoreCategory) -> float:
        return {
            ScoreCategory.ON_PAGE: self.on_page_baseline,
            ScoreCategory.TECHNICAL: self.technical_baseline,
            ScoreCategory.CONTENT: self.content_baseline,
        }[category]


class ScoreOutput(BaseModel):
    """Adjusted scores shown to the user as the real SEO score."""
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    on_page_score: int = Field(alias="onPageScore")
    technical_score: int = Field(alias="technicalScore")
    content_score: int = Field(alias="contentScore")

    def score_for(self, category: ScoreCategory) -> int:
        return {
            ScoreCategory.ON_PAGE: self.on_page_score,
            ScoreCategory.TECHNICAL: self.technical_score,
            ScoreCategory.CONTENT: self.content_score,
        }[category]


class CategoryBreakdown(BaseModel):
    """How a single category's score was derived."""
    category: ScoreCategory
    baseline: float
    score: int
    deduction: int = 0
    issues_count: int = 0
    critical_or_high_count: int = 0
    medium_count: int = 0
    low_count: int = 0

    model_config = ConfigDict(use_enum_values=True)


class IssueSummary(BaseModel):
    total: int = 0
    critical: int = 0
    high: int = 0
    medium: int = 0
    low: int = 0


class ScoreReport(BaseModel):
    """Full result of an engine run: scores plus the numbers behind them."""
    scores: ScoreOutput
    overall_score: int
    grade: str
    breakdown: list[CategoryBreakdown] = Field(default_factory=list)
    issue_summary: IssueSummary = Field(default_factory=IssueSummary)
    execution_time_ms: float = 0.0


# ─────────────────────────────────────────────
# Helpers
# ─────────────────────────────────────────────

def calculate_grade(score: float) -> str:
    """Convert numeric score to letter grade."""
    if score >= 90:
        return "A"
    elif score >= 80:
        return "B"
    elif score >= 65:
        return "C"
    elif score >= 50:
        return "D"
    return "F"
