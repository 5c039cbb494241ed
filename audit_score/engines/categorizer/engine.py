"""
Issue Categorizer

Assigns each crawler issue to exactly one score category by matching its
lower-cased text against ordered keyword rules. The first rule that matches
wins, so texts hitting several keyword sets land in the earliest category:

  1. On-page:   meta description, h1 tag, title tag, keyword
  2. Technical: broken, link, redirect, crawl, structure
  3. Content:   alt tag, alt text, image, content, text

Anything left unmatched falls back to on-page.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict

from audit_score.engines.base import CategorizedIssues, Issue, ScoreCategory


# ─────────────────────────────────────────────
# Rule Schema
# ─────────────────────────────────────────────

class CategoryRule(BaseModel):
    """A category paired with the keywords that select it (OR logic)."""
    model_config = ConfigDict(frozen=True)

    category: ScoreCategory
    keywords: tuple[str, ...]

    def matches(self, text: str) -> bool:
        return any(keyword in text for keyword in self.keywords)


# Order is significant: evaluated top to bottom, first match wins.
CATEGORY_RULES: tuple[CategoryRule, ...] = (
    CategoryRule(
        category=ScoreCategory.ON_PAGE,
        keywords=("meta description", "h1 tag", "title tag", "keyword"),
    ),
    CategoryRule(
        category=ScoreCategory.TECHNICAL,
        keywords=("broken", "link", "redirect", "crawl", "structure"),
    ),
    CategoryRule(
        category=ScoreCategory.CONTENT,
        keywords=("alt tag", "alt text", "image", "content", "text"),
    ),
)

DEFAULT_CATEGORY = ScoreCategory.ON_PAGE


# ─────────────────────────────────────────────
# Categorizer
# ─────────────────────────────────────────────

def as_issue(raw: Issue | Mapping[str, Any]) -> Issue:
    if isinstance(raw, Issue):
        return raw
    return Issue.model_validate(raw)


def categorize_issue(
    issue: Issue,
    rules: Iterable[CategoryRule] = CATEGORY_RULES,
) -> ScoreCategory:
    text = issue.normalized_text
    for rule in rules:
        if rule.matches(text):
            return rule.category
    return DEFAULT_CATEGORY


def categorize(
    issues: Iterable[Issue | Mapping[str, Any]],
    rules: Iterable[CategoryRule] = CATEGORY_RULES,
) -> CategorizedIssues:
    """
    Group issues by score category, preserving input order within each group.

    Every category key is present in the result, even when empty.
    """
    rules = tuple(rules)
    categories: CategorizedIssues = {category: [] for category in ScoreCategory}
    for raw in issues:
        issue = as_issue(raw)
        categories[categorize_issue(issue, rules)].append(issue)
    return categories
