"""Tests for PR comment rendering."""

from aggregator import Aggregator
from comments import ERROR_NOTICE, VERDICT_TEMPLATES, render_review_comment
from diff_parser import parse_diff
from models import Verdict


def test_every_verdict_has_a_template():
    assert set(VERDICT_TEMPLATES) == set(Verdict)


def test_approve_comment(clean_diff_text):
    result = Aggregator().aggregate(parse_diff(clean_diff_text))
    body = render_review_comment(result)

    assert body.startswith("## ✅ Review Passed")
    assert "All checks passed" in body
    assert "- Files changed: 2 (2 added)" in body
    assert "No obvious security issues detected." in body
    assert "Code quality looks good." in body
    assert "✅ Tests added for code changes" in body


def test_block_comment_lists_findings(insecure_diff_text):
    result = Aggregator().aggregate(parse_diff(insecure_diff_text))
    body = render_review_comment(result)

    assert body.startswith("## 🚫 Review Blocked")
    assert "| **critical** | Hardcoded Secret | app/db.py:2 |" in body
    assert "| **high** | SQL Injection Risk | app/db.py:4 |" in body


def test_error_notice_leaks_nothing():
    assert "Traceback" not in ERROR_NOTICE
    assert "Review Error" in ERROR_NOTICE


def test_scope_lists_file_statuses(diff_text_builder):
    text = diff_text_builder(
        {"src/new.py": ['"""New module."""'], "src/old.py": ['"""Reworded."""']},
        removed={"src/old.py": ['"""Old module."""']},
    )
    body = render_review_comment(Aggregator().aggregate(parse_diff(text)))

    assert "- Files changed: 2 (1 added, 1 modified)" in body
