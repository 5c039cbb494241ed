"""
Deduction Calculators

Each category's issues are bucketed by severity and every bucket costs a
fixed number of points per issue, capped per bucket:

  Category    critical/high    medium       low         missing alt
  on-page     15 (max 30)      10 (max 20)  3 (max 10)  -
  technical   20 (max 40)      10 (max 20)  5 (max 10)  -
  content     15 (max 30)       8 (max 20)  3 (max 10)  3 (max 25)

Content issues mentioning "alt tag" are charged through the missing-alt tier
and left out of the critical/high and medium buckets. The low bucket still
counts them, so a low-severity alt-tag issue is charged twice. Issues whose
severity is unset or outside the four tiers cost nothing.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from types import MappingProxyType

from pydantic import BaseModel, ConfigDict

from audit_score.engines.base import (
    CategorizedIssues,
    Issue,
    ScoreCategory,
    Severity,
    SeverityBuckets,
)

MISSING_ALT_KEYWORD = "alt tag"


# ─────────────────────────────────────────────
# Policy
# ─────────────────────────────────────────────

class TierRule(BaseModel):
    """Points charged per issue in a tier, and the most the tier may cost."""
    model_config = ConfigDict(frozen=True)

    points: int
    cap: int

    def apply(self, count: int) -> int:
        return min(count * self.points, self.cap)


class DeductionPolicy(BaseModel):
    model_config = ConfigDict(frozen=True)

    critical_or_high: TierRule
    medium: TierRule
    low: TierRule
    missing_alt: TierRule | None = None

    @property
    def max_deduction(self) -> int:
        total = self.critical_or_high.cap + self.medium.cap + self.low.cap
        if self.missing_alt is not None:
            total += self.missing_alt.cap
        return total


ON_PAGE_POLICY = DeductionPolicy(
    critical_or_high=TierRule(points=15, cap=30),
    medium=TierRule(points=10, cap=20),
    low=TierRule(points=3, cap=10),
)

TECHNICAL_POLICY = DeductionPolicy(
    critical_or_high=TierRule(points=20, cap=40),
    medium=TierRule(points=10, cap=20),
    low=TierRule(points=5, cap=10),
)

CONTENT_POLICY = DeductionPolicy(
    critical_or_high=TierRule(points=15, cap=30),
    medium=TierRule(points=8, cap=20),
    low=TierRule(points=3, cap=10),
    missing_alt=TierRule(points=3, cap=25),
)

DEFAULT_POLICIES: Mapping[ScoreCategory, DeductionPolicy] = MappingProxyType({
    ScoreCategory.ON_PAGE: ON_PAGE_POLICY,
    ScoreCategory.TECHNICAL: TECHNICAL_POLICY,
    ScoreCategory.CONTENT: CONTENT_POLICY,
})


# ─────────────────────────────────────────────
# Severity Bucketer
# ─────────────────────────────────────────────

def bucket_by_severity(issues: Sequence[Issue]) -> SeverityBuckets:
    """Partition issues into deduction tiers; other severities are dropped."""
    buckets = SeverityBuckets()
    for issue in issues:
        if issue.severity in (Severity.CRITICAL.value, Severity.HIGH.value):
            buckets.critical_or_high.append(issue)
        elif issue.severity == Severity.MEDIUM.value:
            buckets.medium.append(issue)
        elif issue.severity == Severity.LOW.value:
            buckets.low.append(issue)
    return buckets


def is_missing_alt(issue: Issue) -> bool:
    return MISSING_ALT_KEYWORD in issue.normalized_text


# ─────────────────────────────────────────────
# Calculators
# ─────────────────────────────────────────────

def calculate_tiered_deduction(issues: Sequence[Issue], policy: DeductionPolicy) -> int:
    """
    Sum of the capped per-tier deductions for one category's issues.

    When the policy carries a missing-alt tier, alt-tag issues are charged
    there and excluded from the critical/high and medium tiers only.
    """
    buckets = bucket_by_severity(issues)
    critical_or_high = buckets.critical_or_high
    medium = buckets.medium

    deduction = 0
    if policy.missing_alt is not None:
        missing_alt = [i for i in issues if is_missing_alt(i)]
        deduction += policy.missing_alt.apply(len(missing_alt))
        critical_or_high = [i for i in critical_or_high if not is_missing_alt(i)]
        medium = [i for i in medium if not is_missing_alt(i)]

    deduction += policy.critical_or_high.apply(len(critical_or_high))
    deduction += policy.medium.apply(len(medium))
    deduction += policy.low.apply(len(buckets.low))
    return deduction


def calculate_on_page_deductions(
    issues: Sequence[Issue],
    policy: DeductionPolicy = ON_PAGE_POLICY,
) -> int:
    return calculate_tiered_deduction(issues, policy)


def calculate_technical_deductions(
    issues: Sequence[Issue],
    policy: DeductionPolicy = TECHNICAL_POLICY,
) -> int:
    return calculate_tiered_deduction(issues, policy)


def calculate_content_deductions(
    issues: Sequence[Issue],
    policy: DeductionPolicy = CONTENT_POLICY,
) -> int:
    return calculate_tiered_deduction(issues, policy)


CALCULATORS = {
    ScoreCategory.ON_PAGE: calculate_on_page_deductions,
    ScoreCategory.TECHNICAL: calculate_technical_deductions,
    ScoreCategory.CONTENT: calculate_content_deductions,
}


def calculate_deductions(
    categorized: CategorizedIssues,
    policies: Mapping[ScoreCategory, DeductionPolicy] = DEFAULT_POLICIES,
) -> dict[ScoreCategory, int]:
    """Point deduction for every category, missing categories count as empty."""
    return {
        category: calculator(categorized.get(category, []), policies[category])
        for category, calculator in CALCULATORS.items()
    }
