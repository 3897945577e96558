"""
Heuristic diff analyzers.

Each analyzer is a pure function of a Diff: it reads the diff, never
mutates it, and returns a fresh AnalyzerResult. That is what lets the
aggregator run all four concurrently without locks.
"""

import re
from abc import ABC, abstractmethod
from collections import Counter
from dataclasses import dataclass

from diff_parser import Diff, FileChange
from models import (
    AnalyzerResult,
    BehaviorResult,
    Finding,
    ScopeResult,
    SecurityResult,
    Severity,
    TestsResult,
)

# Scope thresholds: a PR at or above either limit is unfocused
MAX_FOCUSED_LINES = 500
MAX_FOCUSED_FILES = 10

# Behavior: diffs longer than this many lines of text are hard to review
LARGE_CHANGESET_LINES = 300

# Tests: heuristic coverage estimates
COVERAGE_WITH_TESTS = 70
COVERAGE_WITHOUT_TESTS = 40


class Analyzer(ABC):
    """Contract shared by all analyzers: ``analyze(diff) -> AnalyzerResult``."""

    name: str = "analyzer"

    @abstractmethod
    def analyze(self, diff: Diff) -> AnalyzerResult:
        """Review *diff* and return findings. Must not mutate *diff*."""


# ---------------------------------------------------------------------------
# Pattern rules
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class PatternRule:
    """Flags every added line that matches *pattern*.

    If *unless* is set, a match anywhere in the file's added code
    suppresses the rule.
    """

    kind: str
    description: str
    severity: Severity
    pattern: re.Pattern
    unless: re.Pattern | None = None

    def check(self, file: FileChange) -> list[Finding]:
        """One finding per matching added line, in line order."""
        if self.unless is not None:
            added_code = "\n".join(content for _, content in file.added_lines)
            if self.unless.search(added_code):
                return []

        return [
            Finding(
                kind=self.kind,
                description=self.description,
                severity=self.severity,
                location=f"{file.path}:{line_num}",
            )
            for line_num, content in file.added_lines
            if self.pattern.search(content)
        ]


def _scan(diff: Diff, rules: tuple[PatternRule, ...]) -> list[Finding]:
    """Apply every rule to every file, in diff order then rule order."""
    findings = []
    for file in diff.files:
        for rule in rules:
            findings.extend(rule.check(file))
    return findings


def _distinct_kinds(findings: list[Finding]) -> list[str]:
    return list(dict.fromkeys(f.kind for f in findings))


# ---------------------------------------------------------------------------
# Scope
# ---------------------------------------------------------------------------
class ScopeAnalyzer(Analyzer):
    """Flags PRs that change too many lines or files to review well."""

    name = "scope"

    def analyze(self, diff: Diff) -> ScopeResult:
        total_changes = diff.changed_lines
        files_count = diff.files_count
        is_focused = (
            total_changes < MAX_FOCUSED_LINES and files_count < MAX_FOCUSED_FILES
        )

        findings: tuple[Finding, ...] = ()
        if is_focused:
            message = "✅ PR scope is focused and well-defined"
        else:
            message = (
                f"⚠️ PR changes {total_changes} lines across {files_count} files. "
                "Consider breaking into smaller PRs."
            )
            findings = (
                Finding(
                    kind="Unfocused Change",
                    description=(
                        f"{total_changes} changed lines across {files_count} files"
                    ),
                    severity=Severity.HIGH,
                ),
            )

        return ScopeResult(
            analyzer_name=self.name,
            findings=findings,
            message=message,
            is_focused=is_focused,
            files_count=files_count,
            lines_added=diff.lines_added,
            lines_removed=diff.lines_removed,
            files_by_status=dict(Counter(f.status for f in diff.files)),
        )


# ---------------------------------------------------------------------------
# Security
# ---------------------------------------------------------------------------
SECURITY_RULES: tuple[PatternRule, ...] = (
    PatternRule(
        kind="Hardcoded Secret",
        description="Found potential hardcoded password or API key",
        severity=Severity.CRITICAL,
        pattern=re.compile(
            r"(password|passwd|secret|api[_-]?key|access[_-]?token)\w*\s*[:=]\s*[\"'][^\"']+[\"']",
            re.IGNORECASE,
        ),
    ),
    PatternRule(
        kind="SQL Injection Risk",
        description="String concatenation or interpolation in SQL query detected",
        severity=Severity.HIGH,
        pattern=re.compile(
            r"(query|sql)\s*=\s*[\"'][^\"']*[\"']\s*(\+|%)"
            r"|(query|sql)\s*=\s*f[\"'].*\{"
            r"|\.execute\(\s*f[\"']",
            re.IGNORECASE,
        ),
    ),
    PatternRule(
        kind="Unsafe Deserialization",
        description="Potentially unsafe deserialization of untrusted data",
        severity=Severity.HIGH,
        pattern=re.compile(
            r"\beval\(|pickle\.loads?\(|marshal\.loads\("
            r"|yaml\.load\((?!.*SafeLoader)|JSON\.parse.*untrusted",
            re.IGNORECASE,
        ),
    ),
    PatternRule(
        kind="Missing Input Validation",
        description="Direct use of request data without validation",
        severity=Severity.MEDIUM,
        pattern=re.compile(
            r"req\.(body|query|params)\b|request\.(args|form|json|GET|POST)\b"
        ),
        unless=re.compile(r"validat|saniti[sz]e", re.IGNORECASE),
    ),
)


def security_message(findings: list[Finding]) -> str:
    if not findings:
        return "✅ No obvious security issues detected"
    return (
        f"🔒 Found {len(findings)} security concern(s): "
        + ", ".join(_distinct_kinds(findings))
    )


class SecurityAnalyzer(Analyzer):
    """Scans added code for known vulnerability signatures."""

    name = "security"

    def __init__(self, rules: tuple[PatternRule, ...] = SECURITY_RULES):
        self.rules = rules

    def analyze(self, diff: Diff) -> SecurityResult:
        findings = _scan(diff, self.rules)
        return SecurityResult(
            analyzer_name=self.name,
            findings=tuple(findings),
            message=security_message(findings),
        )


# ---------------------------------------------------------------------------
# Behavior
# ---------------------------------------------------------------------------
BEHAVIOR_RULES: tuple[PatternRule, ...] = (
    PatternRule(
        kind="Missing Error Handling",
        description="Async operations without visible error handling",
        severity=Severity.MEDIUM,
        pattern=re.compile(
            r"\.then\(|\basync\b.*=>|\basync\s+(def|function)\b|\bawait\b"
        ),
        unless=re.compile(r"\btry\b|\bcatch\b|\bexcept\b|Error"),
    ),
    PatternRule(
        kind="Debug Logging",
        description="Found debug logging statements that should use proper logging",
        severity=Severity.LOW,
        pattern=re.compile(
            r"console\.(log|debug|error)\(|^\s*print\(|\bpdb\.set_trace\(|\bbreakpoint\(\)"
        ),
    ),
    PatternRule(
        kind="Missing Documentation",
        description="Public exports without documentation comments",
        severity=Severity.LOW,
        pattern=re.compile(
            r"^\s*export\s+(default\s+)?(class|function|const)\b|^(def|class)\s+[A-Za-z]"
        ),
        unless=re.compile(r"/\*\*|//|\"\"\"|'''|#"),
    ),
)


class BehaviorAnalyzer(Analyzer):
    """Looks for code-quality smells in added code."""

    name = "behavior"

    def __init__(self, rules: tuple[PatternRule, ...] = BEHAVIOR_RULES):
        self.rules = rules

    def analyze(self, diff: Diff) -> BehaviorResult:
        findings = _scan(diff, self.rules)

        if diff.line_count > LARGE_CHANGESET_LINES:
            findings.append(
                Finding(
                    kind="Large Change Set",
                    description="This diff is quite large and may be harder to review",
                    severity=Severity.LOW,
                )
            )

        if findings:
            message = f"🔍 Found {len(findings)} code quality suggestion(s)"
        else:
            message = "✅ Code quality looks good"

        return BehaviorResult(
            analyzer_name=self.name,
            findings=tuple(findings),
            message=message,
        )


# ---------------------------------------------------------------------------
# Tests
# ---------------------------------------------------------------------------
TEST_PATH_PATTERN = re.compile(
    r"(^|/)(tests?|__tests__|spec)/"
    r"|(^|/)test_[^/]*$"
    r"|[._-](test|spec)\.[^/]+$"
    r"|(^|/)conftest\.py$",
    re.IGNORECASE,
)

ASSERTION_PATTERN = re.compile(
    r"\b(assert\w*|expect|should)\b|\.to(Be|Equal|Throw|Match)\w*\(|\bpytest\.raises\b"
)


def is_test_file(path: str) -> bool:
    return bool(TEST_PATH_PATTERN.search(path))


class TestsAnalyzer(Analyzer):
    """
    Estimates whether the change carries test evidence.

    A PR that touches no test files is reported as covered; only test
    files without any new assertion-like lines lower the signal.
    """

    __test__ = False  # not a pytest test class

    name = "tests"

    def analyze(self, diff: Diff) -> TestsResult:
        test_files = [f for f in diff.files if is_test_file(f.path)]
        production_files = [f for f in diff.files if not is_test_file(f.path)]

        has_test_files = bool(test_files)
        assertion_lines = sum(
            1
            for file in test_files
            for _, content in file.added_lines
            if ASSERTION_PATTERN.search(content)
        )
        production_changed = any(f.changed_lines > 0 for f in production_files)

        has_test_coverage = assertion_lines > 0 or not has_test_files
        coverage = COVERAGE_WITH_TESTS if has_test_files else COVERAGE_WITHOUT_TESTS

        findings: tuple[Finding, ...] = ()
        if has_test_coverage:
            if assertion_lines > 0:
                message = "✅ Tests added for code changes"
            else:
                message = "ℹ️ No test files modified in this PR"
        elif production_changed:
            message = (
                "⚠️ Production code changed without visible test updates "
                f"({coverage}% estimated coverage)"
            )
            findings = (
                Finding(
                    kind="Missing Test Updates",
                    description="Production code changed without new test assertions",
                    severity=Severity.MEDIUM,
                ),
            )
        else:
            message = (
                "ℹ️ Test files changed without new assertions "
                f"({coverage}% estimated coverage)"
            )
            findings = (
                Finding(
                    kind="Tests Without Assertions",
                    description="Test files changed but no assertion-like lines were added",
                    severity=Severity.LOW,
                ),
            )

        return TestsResult(
            analyzer_name=self.name,
            findings=findings,
            message=message,
            has_test_coverage=has_test_coverage,
            has_test_files=has_test_files,
            assertion_lines=assertion_lines,
            coverage=coverage,
        )


def default_analyzers() -> dict[str, Analyzer]:
    """The four heuristic analyzers, keyed by report slot."""
    return {
        "scope": ScopeAnalyzer(),
        "security": SecurityAnalyzer(),
        "behavior": BehaviorAnalyzer(),
        "tests": TestsAnalyzer(),
    }
