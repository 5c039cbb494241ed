"""
Tests for the Score Composer, calculate_scores and the AuditScoreEngine wrapper.
"""

import pytest
from pydantic import ValidationError
from structlog.testing import capture_logs

from audit_score.engines.base import Issue, ScoreCategory, ScoreInput, ScoreOutput, calculate_grade
from audit_score.engines.scoring.engine import (
    AuditScoreEngine,
    build_report,
    calculate_overall_score,
    calculate_scores,
    compose,
    round_half_up,
    summarize_issues,
)


# ─────────────────────────────────────────────
# Rounding
# ─────────────────────────────────────────────

class TestRoundHalfUp:

    @pytest.mark.parametrize("value,expected", [
        (74.4, 74),
        (74.5, 75),
        (2.5, 3),
        (0.5, 1),
        (-2.5, -2),
        (0.0, 0),
    ])
    def test_rounds_half_towards_positive_infinity(self, value, expected):
        assert round_half_up(value) == expected


# ─────────────────────────────────────────────
# Composer
# ─────────────────────────────────────────────

class TestCompose:

    def test_subtracts_and_rounds(self):
        baselines = {
            ScoreCategory.ON_PAGE: 90.5,
            ScoreCategory.TECHNICAL: 85.0,
            ScoreCategory.CONTENT: 95.4,
        }
        deductions = {
            ScoreCategory.ON_PAGE: 15,
            ScoreCategory.TECHNICAL: 20,
            ScoreCategory.CONTENT: 0,
        }
        assert compose(baselines, deductions) == ScoreOutput(
            on_page_score=76, technical_score=65, content_score=95,
        )

    def test_clamps_at_zero(self):
        baselines = {category: 10.0 for category in ScoreCategory}
        deductions = {category: 60 for category in ScoreCategory}
        result = compose(baselines, deductions)
        assert (result.on_page_score, result.technical_score, result.content_score) == (0, 0, 0)

    def test_baselines_above_hundred_are_not_clamped(self):
        baselines = {category: 120.0 for category in ScoreCategory}
        result = compose(baselines, {})
        assert result.on_page_score == 120


# ─────────────────────────────────────────────
# calculate_scores
# ─────────────────────────────────────────────

class TestCalculateScores:

    def test_documented_scenario(self):
        issues = [
            {"issue": "Missing meta description", "severity": "critical"},
            {"issue": "Broken link found", "severity": "high"},
        ]
        result = calculate_scores(90, 85, 95, issues)
        assert result == ScoreOutput(on_page_score=75, technical_score=65, content_score=95)

    @pytest.mark.parametrize("issues", [[], None])
    def test_no_issues_returns_rounded_baselines(self, issues):
        result = calculate_scores(72.5, 60.4, 88.49, issues)
        assert result == ScoreOutput(on_page_score=73, technical_score=60, content_score=88)

    def test_no_issues_keeps_negative_baseline(self):
        assert calculate_scores(-3, 50, 50, []).on_page_score == -3

    def test_negative_baseline_clamped_when_issues_exist(self):
        result = calculate_scores(-3, 50, 50, [Issue(issue="Broken link", severity="high")])
        assert result.on_page_score == 0

    def test_ten_low_alt_tag_issues(self):
        issues = [Issue(issue="missing alt tag", severity="low") for _ in range(10)]
        assert calculate_scores(100, 100, 100, issues).content_score == 65

    def test_five_medium_on_page_issues(self):
        issues = [Issue(issue="Missing H1 tag", severity="medium") for _ in range(5)]
        assert calculate_scores(100, 100, 100, issues).on_page_score == 80

    def test_unknown_severities_leave_scores_unchanged(self):
        issues = [Issue(issue="Broken link", severity="urgent"), Issue(issue="page load slow")]
        assert calculate_scores(80, 70, 60, issues) == ScoreOutput(
            on_page_score=80, technical_score=70, content_score=60,
        )

    def test_scores_never_exceed_baseline_or_drop_below_zero(self):
        issues = (
            [Issue(issue="Missing meta description", severity="critical")] * 40
            + [Issue(issue="Broken link", severity="medium")] * 40
            + [Issue(issue="Missing alt tag", severity="low")] * 40
        )
        for baseline in (0, 15, 50, 99.5, 100):
            result = calculate_scores(baseline, baseline, baseline, issues)
            for category in ScoreCategory:
                assert 0 <= result.score_for(category) <= round_half_up(baseline)

    def test_serializes_with_camel_case_aliases(self):
        result = calculate_scores(90, 85, 95, [])
        assert result.model_dump(by_alias=True) == {
            "onPageScore": 90,
            "technicalScore": 85,
            "contentScore": 95,
        }

    @pytest.mark.parametrize("text", [404, ["x"]])
    def test_non_string_issue_text_is_scored_as_on_page(self, text):
        result = calculate_scores(90, 85, 95, [{"issue": text, "severity": "high"}])
        assert result == ScoreOutput(on_page_score=75, technical_score=85, content_score=95)

    def test_non_numeric_baseline_is_rejected(self):
        with pytest.raises(ValidationError):
            calculate_scores("not a score", 50, 50, [])


# ─────────────────────────────────────────────
# Report helpers
# ─────────────────────────────────────────────

class TestReport:

    @pytest.fixture
    def score_input(self):
        return ScoreInput(
            onPageBaseline=90,
            technicalBaseline=85,
            contentBaseline=95,
            issues=[
                {"issue": "Missing meta description", "severity": "critical"},
                {"issue": "Broken link found", "severity": "high"},
                {"issue": "Missing alt tag", "severity": "low"},
                {"issue": "page load slow"},
            ],
        )

    @pytest.mark.parametrize("score,grade", [(95, "A"), (90, "A"), (80, "B"), (65, "C"), (50, "D"), (49, "F")])
    def test_grade_thresholds(self, score, grade):
        assert calculate_grade(score) == grade

    def test_overall_score_is_rounded_mean(self):
        scores = ScoreOutput(on_page_score=75, technical_score=65, content_score=90)
        assert calculate_overall_score(scores) == 77

    def test_summarize_issues(self, score_input):
        summary = summarize_issues(score_input.issues)
        assert summary.total == 4
        assert summary.critical == 1
        assert summary.high == 1
        assert summary.medium == 0
        assert summary.low == 1

    def test_build_report(self, score_input):
        report = build_report(score_input)
        assert report.scores == ScoreOutput(on_page_score=75, technical_score=65, content_score=89)
        assert report.overall_score == 76
        assert report.grade == "C"

        by_category = {b.category: b for b in report.breakdown}
        assert by_category["onPage"].deduction == 15
        assert by_category["onPage"].issues_count == 2
        assert by_category["technical"].critical_or_high_count == 1
        assert by_category["content"].deduction == 6
        assert by_category["content"].low_count == 1

    def test_build_report_without_issues(self):
        report = build_report(ScoreInput(on_page_baseline=90, technical_baseline=80, content_baseline=70))
        assert report.scores == ScoreOutput(on_page_score=90, technical_score=80, content_score=70)
        assert all(b.deduction == 0 for b in report.breakdown)
        assert report.issue_summary.total == 0


# ─────────────────────────────────────────────
# Audit Score Engine Tests
# ─────────────────────────────────────────────

class TestAuditScoreEngine:

    def test_execute_accepts_raw_payload(self):
        engine = AuditScoreEngine()
        report = engine.execute({
            "onPageBaseline": 90,
            "technicalBaseline": 85,
            "contentBaseline": 95,
            "issues": [{"issue": "Broken link found", "severity": "high"}],
        })
        assert report.scores.technical_score == 65
        assert report.execution_time_ms >= 0

    def test_execute_logs_deductions(self):
        with capture_logs() as logs:
            AuditScoreEngine().execute(ScoreInput(
                on_page_baseline=90,
                technical_baseline=85,
                content_baseline=95,
                issues=[Issue(issue="Missing meta description", severity="critical")],
            ))
        [entry] = [e for e in logs if e["event"] == "Audit scores calculated"]
        assert entry["log_level"] == "info"
        assert entry["deductions"] == {"onPage": 15, "technical": 0, "content": 0}
        assert entry["issue_counts"] == {"onPage": 1, "technical": 0, "content": 0}

    def test_execute_logs_and_reraises_validation_errors(self):
        with capture_logs() as logs:
            with pytest.raises(ValidationError):
                AuditScoreEngine().execute({"onPageBaseline": "n/a"})
        assert any(e["event"] == "Audit score calculation failed" for e in logs)
