"""Tests for the Gemini-backed security analyzer (no network)."""

import json
from unittest.mock import MagicMock

import pytest
from google.api_core.exceptions import ServiceUnavailable

import llm_analyzer
from aggregator import Aggregator
from diff_parser import parse_diff
from errors import AnalyzerFailure
from llm_analyzer import GeminiSecurityAnalyzer, parse_llm_review
from models import Severity, Verdict


@pytest.fixture
def app_diff(diff_text_builder):
    return parse_diff(
        diff_text_builder(
            {
                "app/handler.py": ["def handle(request):", "    return request.args['q']"],
            }
        )
    )


def test_mock_mode_uses_canned_response(monkeypatch, app_diff):
    monkeypatch.setattr(llm_analyzer, "USE_MOCK", True)
    monkeypatch.setattr(
        llm_analyzer, "call_gemini", lambda *a, **k: pytest.fail("network call in mock mode")
    )

    result = GeminiSecurityAnalyzer().analyze(app_diff)

    assert result.severity == Severity.MEDIUM
    assert result.findings[0].kind == "Missing Input Validation"
    assert result.findings[0].location == "app/handler.py:1"


def test_maps_llm_findings(monkeypatch, app_diff):
    response = {
        "findings": [
            {"severity": "CRITICAL", "kind": "Hardcoded Secret", "line": 2, "description": "key"},
            {"severity": "LOW", "description": "no line"},
        ],
        "summary": "2 issues",
    }
    prompts = []

    def fake_call(prompt, model):
        prompts.append(prompt)
        return json.dumps(response)

    monkeypatch.setattr(llm_analyzer, "USE_MOCK", False)
    monkeypatch.setattr(llm_analyzer, "call_gemini", fake_call)

    result = GeminiSecurityAnalyzer(model="test-model").analyze(app_diff)

    assert len(prompts) == 1
    assert "app/handler.py" in prompts[0]
    assert "   2|     return request.args['q']" in prompts[0]
    assert [f.severity for f in result.findings] == [Severity.CRITICAL, Severity.LOW]
    assert [f.location for f in result.findings] == ["app/handler.py:2", "app/handler.py"]
    assert result.severity == Severity.CRITICAL


def test_unparseable_response_fails_the_review(monkeypatch, app_diff):
    monkeypatch.setattr(llm_analyzer, "USE_MOCK", False)
    monkeypatch.setattr(llm_analyzer, "call_gemini", lambda prompt, model: "I cannot help")

    with pytest.raises(AnalyzerFailure) as exc_info:
        Aggregator(security=GeminiSecurityAnalyzer()).aggregate(app_diff)

    assert exc_info.value.analyzer_name == "security"
    assert isinstance(exc_info.value.__cause__, ValueError)


def test_transient_gemini_error_fails_the_review_without_retry(monkeypatch, app_diff):
    client = MagicMock()
    client.models.generate_content.side_effect = [
        ServiceUnavailable("overloaded"),
        MagicMock(text='{"findings": [], "summary": "ok"}'),
    ]
    monkeypatch.setattr(llm_analyzer, "USE_MOCK", False)
    monkeypatch.setattr(llm_analyzer, "get_gemini_client", lambda: client)

    with pytest.raises(AnalyzerFailure) as exc_info:
        Aggregator(security=GeminiSecurityAnalyzer()).aggregate(app_diff)

    assert exc_info.value.analyzer_name == "security"
    assert isinstance(exc_info.value.__cause__, ServiceUnavailable)
    assert client.models.generate_content.call_count == 1


def test_substitutes_into_aggregator(monkeypatch, app_diff):
    monkeypatch.setattr(llm_analyzer, "USE_MOCK", True)

    result = Aggregator(security=GeminiSecurityAnalyzer()).aggregate(app_diff)

    assert result.verdict == Verdict.WARN


class TestParseLlmReview:
    def test_strips_markdown_fence(self):
        review = parse_llm_review('```json\n{"findings": [], "summary": "ok"}\n```')
        assert review is not None
        assert review.summary == "ok"

    def test_no_json(self):
        assert parse_llm_review("nothing here") is None

    def test_invalid_schema(self):
        assert parse_llm_review('{"findings": [{"severity": "SEVERE"}]}') is None
