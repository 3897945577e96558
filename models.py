"""Data models for review findings, analyzer results and verdicts."""

from enum import Enum, IntEnum
from functools import reduce
from typing import Iterable, Literal

from pydantic import BaseModel, ConfigDict, Field, computed_field


# ---------------------------------------------------------------------------
# Severity lattice
# ---------------------------------------------------------------------------
class Severity(IntEnum):
    """Severity levels, totally ordered LOW < MEDIUM < HIGH < CRITICAL."""

    LOW = 1
    MEDIUM = 2
    HIGH = 3
    CRITICAL = 4

    @property
    def label(self) -> str:
        return self.name.lower()


def join(a: Severity, b: Severity) -> Severity:
    """Return the higher of two severities."""
    return a if a >= b else b


def join_all(severities: Iterable[Severity]) -> Severity:
    """Join any number of severities; ``LOW`` when there are none."""
    return reduce(join, severities, Severity.LOW)


def compare(a: Severity, b: Severity) -> int:
    """Three-way comparison: -1, 0 or 1."""
    return (a > b) - (a < b)


# ---------------------------------------------------------------------------
# Findings and analyzer results
# ---------------------------------------------------------------------------
class Finding(BaseModel):
    """A single issue detected by an analyzer."""

    model_config = ConfigDict(frozen=True)

    kind: str = Field(description="Analyzer-defined category, e.g. 'Hardcoded Secret'")
    description: str = Field(description="What the issue is")
    severity: Severity
    location: str | None = Field(
        default=None, description="'path:line' or 'path' when known"
    )


class AnalyzerResult(BaseModel):
    """Output of one analyzer over one diff."""

    model_config = ConfigDict(frozen=True)

    analyzer_name: str
    findings: tuple[Finding, ...] = ()
    message: str = ""

    @computed_field  # type: ignore[prop-decorator]
    @property
    def severity(self) -> Severity:
        return join_all(f.severity for f in self.findings)

    @property
    def has_issues(self) -> bool:
        return bool(self.findings)


class ScopeResult(AnalyzerResult):
    is_focused: bool = True
    files_count: int = Field(default=0, ge=0)
    lines_added: int = Field(default=0, ge=0)
    lines_removed: int = Field(default=0, ge=0)
    # e.g. {"added": 2, "modified": 1}, in first-seen order
    files_by_status: dict[str, int] = Field(default_factory=dict)


class SecurityResult(AnalyzerResult):
    pass


class BehaviorResult(AnalyzerResult):
    pass


class TestsResult(AnalyzerResult):
    __test__ = False  # not a pytest test class

    has_test_coverage: bool = True
    has_test_files: bool = False
    assertion_lines: int = Field(default=0, ge=0)
    coverage: int = Field(default=40, ge=0, le=100, description="Estimated %")


# ---------------------------------------------------------------------------
# Verdict and review output
# ---------------------------------------------------------------------------
class Verdict(str, Enum):
    """Final recommendation, decided by precedence rather than a join."""

    APPROVE = "APPROVE"
    WARN = "WARN"
    BLOCK = "BLOCK"


class ReviewResult(BaseModel):
    """Everything a reporting adapter needs to publish one review."""

    model_config = ConfigDict(frozen=True)

    verdict: Verdict
    summary: str
    scope: ScopeResult
    security: SecurityResult
    behavior: BehaviorResult
    tests: TestsResult

    @property
    def results(self) -> tuple[AnalyzerResult, ...]:
        """Analyzer results in fixed report order."""
        return (self.scope, self.security, self.behavior, self.tests)

    @property
    def findings(self) -> list[Finding]:
        return [f for result in self.results for f in result.findings]


# ---------------------------------------------------------------------------
# LLM response schema
# ---------------------------------------------------------------------------
class LLMFinding(BaseModel):
    """A finding as returned by the LLM, before mapping to ``Finding``."""

    severity: Literal["CRITICAL", "HIGH", "MEDIUM", "LOW"] = Field(
        default="MEDIUM", description="CRITICAL, HIGH, MEDIUM, LOW"
    )
    kind: str = Field(default="Security Issue", description="Short category name")
    line: int | None = Field(default=None, description="Line number in the file")
    description: str = Field(description="What the issue is")


class LLMReview(BaseModel):
    """Complete JSON payload returned by the LLM for one file."""

    findings: list[LLMFinding] = Field(default_factory=list)
    summary: str = Field(default="", description="Brief overall summary")
