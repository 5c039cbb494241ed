"""
Scoring Engine - Turns vendor baseline scores plus crawler issues into the
adjusted on-page, technical and content scores shown to the user.

Scoring Model:
- Issues are categorized (first keyword match wins, on-page by default)
- Each category's issues cost capped points per severity tier
- Adjusted score = max(0, baseline - deduction), rounded half up
- No issues at all returns the rounded baselines untouched
- Overall score is the rounded mean of the three adjusted scores

Everything below AuditScoreEngine is a pure function of its arguments.
The engine only adds timing and the structured log line for a run.
"""

from __future__ import annotations

import math
import time
from collections.abc import Iterable, Mapping
from typing import Any

import structlog

from audit_score.engines.base import (
    CategoryBreakdown,
    Issue,
    IssueSummary,
    ScoreCategory,
    ScoreInput,
    ScoreOutput,
    ScoreReport,
    Severity,
    calculate_grade,
)
from audit_score.engines.categorizer.engine import categorize
from audit_score.engines.deductions.engine import (
    DEFAULT_POLICIES,
    DeductionPolicy,
    bucket_by_severity,
    calculate_deductions,
)

# ─────────────────────────────────────────────
# Score Composer
# ─────────────────────────────────────────────

def round_half_up(value: float) -> int:
    """Round to the nearest integer with .5 going towards +infinity."""
    return math.floor(value + 0.5)


def compose(
    baselines: Mapping[ScoreCategory, float],
    deductions: Mapping[ScoreCategory, int],
) -> ScoreOutput:
    adjusted = {
        category: round_half_up(max(0, baselines[category] - deductions.get(category, 0)))
        for category in ScoreCategory
    }
    return ScoreOutput(
        on_page_score=adjusted[ScoreCategory.ON_PAGE],
        technical_score=adjusted[ScoreCategory.TECHNICAL],
        content_score=adjusted[ScoreCategory.CONTENT],
    )


def rounded_baselines(score_input: ScoreInput) -> ScoreOutput:
    return ScoreOutput(
        on_page_score=round_half_up(score_input.on_page_baseline),
        technical_score=round_half_up(score_input.technical_baseline),
        content_score=round_half_up(score_input.content_baseline),
    )


def baselines_of(score_input: ScoreInput) -> dict[ScoreCategory, float]:
    return {category: score_input.baseline_for(category) for category in ScoreCategory}


def score_from_input(
    score_input: ScoreInput,
    policies: Mapping[ScoreCategory, DeductionPolicy] = DEFAULT_POLICIES,
) -> ScoreOutput:
    if not score_input.issues:
        return rounded_baselines(score_input)

    categorized = categorize(score_input.issues)
    deductions = calculate_deductions(categorized, policies)
    return compose(baselines_of(score_input), deductions)


def calculate_scores(
    on_page_baseline: float,
    technical_baseline: float,
    content_baseline: float,
    issues: Iterable[Issue | Mapping[str, Any]] | None = None,
    policies: Mapping[ScoreCategory, DeductionPolicy] = DEFAULT_POLICIES,
) -> ScoreOutput:
    """
    Adjust vendor baseline scores for the SEO issues the crawler found.

    Args:
        on_page_baseline: Vendor on-page score, expected in [0, 100]
        technical_baseline: Vendor technical score, expected in [0, 100]
        content_baseline: Vendor content score, expected in [0, 100]
        issues: Issue models or mappings shaped {issue, severity}
        policies: Per-category tier points and caps

    Returns:
        ScoreOutput with each score in [0, rounded baseline]
    """
    score_input = ScoreInput(
        on_page_baseline=on_page_baseline,
        technical_baseline=technical_baseline,
        content_baseline=content_baseline,
        issues=list(issues or []),
    )
    return score_from_input(score_input, policies)


# ─────────────────────────────────────────────
# Report helpers
# ─────────────────────────────────────────────

def calculate_overall_score(scores: ScoreOutput) -> int:
    return round_half_up(
        (scores.on_page_score + scores.technical_score + scores.content_score) / 3
    )


def summarize_issues(issues: Iterable[Issue]) -> IssueSummary:
    issues = list(issues)
    return IssueSummary(
        total=len(issues),
        critical=len([i for i in issues if i.severity == Severity.CRITICAL.value]),
        high=len([i for i in issues if i.severity == Severity.HIGH.value]),
        medium=len([i for i in issues if i.severity == Severity.MEDIUM.value]),
        low=len([i for i in issues if i.severity == Severity.LOW.value]),
    )


def build_report(
    score_input: ScoreInput,
    policies: Mapping[ScoreCategory, DeductionPolicy] = DEFAULT_POLICIES,
) -> ScoreReport:
    """Scores plus the per-category numbers behind them."""
    categorized = categorize(score_input.issues)
    if score_input.issues:
        deductions = calculate_deductions(categorized, policies)
        scores = compose(baselines_of(score_input), deductions)
    else:
        deductions = {category: 0 for category in ScoreCategory}
        scores = rounded_baselines(score_input)

    breakdown: list[CategoryBreakdown] = []
    for category in ScoreCategory:
        category_issues = categorized[category]
        buckets = bucket_by_severity(category_issues)
        breakdown.append(CategoryBreakdown(
            category=category,
            baseline=score_input.baseline_for(category),
            score=scores.score_for(category),
            deduction=deductions[category],
            issues_count=len(category_issues),
            critical_or_high_count=len(buckets.critical_or_high),
            medium_count=len(buckets.medium),
            low_count=len(buckets.low),
        ))

    overall = calculate_overall_score(scores)
    return ScoreReport(
        scores=scores,
        overall_score=overall,
        grade=calculate_grade(overall),
        breakdown=breakdown,
        issue_summary=summarize_issues(score_input.issues),
    )


# ─────────────────────────────────────────────
# Audit Score Engine
# ─────────────────────────────────────────────

class AuditScoreEngine:
    """
    Caller-side wrapper used by the audit pipeline.
    Validates raw payloads, times the run and logs the deductions.
    """

    ENGINE_NAME = "audit_score"

    def __init__(self, policies: Mapping[ScoreCategory, DeductionPolicy] = DEFAULT_POLICIES):
        self.policies = dict(policies)
        self.logger = structlog.get_logger(self.__class__.__name__)

    def execute(self, score_input: ScoreInput | Mapping[str, Any]) -> ScoreReport:
        start = time.perf_counter()
        try:
            if not isinstance(score_input, ScoreInput):
                score_input = ScoreInput.model_validate(score_input)
            report = build_report(score_input, self.policies)
        except Exception as exc:
            elapsed = (time.perf_counter() - start) * 1000
            self.logger.error(
                "Audit score calculation failed",
                engine=self.ENGINE_NAME,
                error=str(exc),
                elapsed_ms=round(elapsed, 2),
                exc_info=True,
            )
            raise

        elapsed = (time.perf_counter() - start) * 1000
        report.execution_time_ms = elapsed
        self.logger.info(
            "Audit scores calculated",
            engine=self.ENGINE_NAME,
            overall_score=report.overall_score,
            grade=report.grade,
            deductions={b.category: b.deduction for b in report.breakdown},
            issue_counts={b.category: b.issues_count for b in report.breakdown},
            elapsed_ms=round(elapsed, 2),
        )
        return report
