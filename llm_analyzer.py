"""Gemini-backed security analyzer.

Drop-in replacement for the heuristic ``SecurityAnalyzer``: same
contract, same result type, different detection. Unlike the heuristic
analyzers it performs network I/O, so a failed or unparseable response
raises and the whole review cycle fails rather than reporting a
partial verdict.
"""

import functools
import json
import logging

from google import genai
from google.api_core.exceptions import (
    DeadlineExceeded,
    InternalServerError,
    ServiceUnavailable,
    TooManyRequests,
)
from pydantic import ValidationError

from analyzers import Analyzer, security_message
from config import DEFAULT_MODEL, USE_MOCK, require_env
from diff_parser import Diff, extract_added_code
from mock_data import MOCK_SECURITY_RESPONSE
from models import Finding, LLMReview, SecurityResult, Severity
from prompts import SECURITY_PROMPT

logger = logging.getLogger(__name__)

# Transient / rate-limit errors, logged and propagated without retry
_TRANSIENT_GEMINI_ERRORS: tuple[type[Exception], ...] = (
    ServiceUnavailable,
    TooManyRequests,
    DeadlineExceeded,
    InternalServerError,
)


@functools.lru_cache(maxsize=1)
def get_gemini_client() -> genai.Client:
    """One Gemini client per process."""
    return genai.Client(api_key=require_env("GEMINI_API_KEY"))


def call_gemini(prompt: str, model: str = DEFAULT_MODEL) -> str:
    """Send *prompt* to Gemini in JSON mode and return the raw text."""
    response = get_gemini_client().models.generate_content(
        model=model,
        contents=prompt,
        config={"response_mime_type": "application/json"},
    )
    return response.text


def parse_llm_review(text: str) -> LLMReview | None:
    """Validate the first JSON object in *text*; None if there is none."""
    start = text.find("{")
    if start == -1:
        logger.warning("LLM response contained no JSON object")
        return None

    try:
        payload, _ = json.JSONDecoder().raw_decode(text[start:])
        return LLMReview.model_validate(payload)
    except json.JSONDecodeError as e:
        logger.warning("LLM response is not valid JSON: %s", e)
    except ValidationError as e:
        logger.warning("LLM response does not match schema: %s", e)
    return None


class GeminiSecurityAnalyzer(Analyzer):
    """Asks Gemini to review each file's added code for vulnerabilities."""

    name = "security"

    def __init__(self, model: str = DEFAULT_MODEL):
        self.model = model

    def _review_file(self, code: str, filename: str) -> LLMReview:
        if USE_MOCK:
            text = MOCK_SECURITY_RESPONSE
        else:
            prompt = SECURITY_PROMPT.format(filename=filename, code=code)
            try:
                text = call_gemini(prompt, self.model)
            except _TRANSIENT_GEMINI_ERRORS as e:
                logger.warning("Gemini unavailable while reviewing %s: %s", filename, e)
                raise

        review = parse_llm_review(text)
        if review is None:
            raise ValueError(f"Unparseable security review for {filename}")
        return review

    def analyze(self, diff: Diff) -> SecurityResult:
        findings: list[Finding] = []

        for file in diff.files:
            code = extract_added_code(file, include_line_numbers=True)
            if not code.strip():
                continue

            logger.info("  🔒 Security review: %s", file.path)
            review = self._review_file(code, file.path)

            for item in review.findings:
                location = f"{file.path}:{item.line}" if item.line else file.path
                findings.append(
                    Finding(
                        kind=item.kind,
                        description=item.description,
                        severity=Severity[item.severity],
                        location=location,
                    )
                )

        return SecurityResult(
            analyzer_name=self.name,
            findings=tuple(findings),
            message=security_message(findings),
        )
