"""Markdown rendering of a ReviewResult for the PR comment."""

from dataclasses import dataclass

from models import AnalyzerResult, ReviewResult, ScopeResult, Verdict


@dataclass(frozen=True)
class VerdictTemplate:
    emoji: str
    title: str
    recommendation: str


VERDICT_TEMPLATES: dict[Verdict, VerdictTemplate] = {
    Verdict.APPROVE: VerdictTemplate(
        emoji="✅",
        title="Review Passed",
        recommendation="This PR looks good and ready for review.",
    ),
    Verdict.WARN: VerdictTemplate(
        emoji="⚠️",
        title="Review Warnings",
        recommendation="This PR has some concerns that maintainers should review.",
    ),
    Verdict.BLOCK: VerdictTemplate(
        emoji="🚫",
        title="Review Blocked",
        recommendation=(
            "This PR has critical issues that must be addressed before merging."
        ),
    ),
}

# Posted instead of a verdict when the review cycle fails. Deliberately
# carries no detail from the underlying error.
ERROR_NOTICE = (
    "⚠️ **Review Error**: The PR reviewer encountered an issue analyzing "
    "this PR. Please try again or contact the maintainers."
)

FOOTER = (
    "---\n"
    "_This is an automated review by PRVerdict. "
    "Maintainers should review all findings and use their judgment._"
)


def _truncate(text: str, limit: int) -> str:
    return text[:limit] + "..." if len(text) > limit else text


def _findings_table(result: AnalyzerResult) -> list[str]:
    lines = [
        "| Severity | Issue | Location | Details |",
        "|----------|-------|----------|---------|",
    ]
    for f in result.findings:
        lines.append(
            f"| **{f.severity.label}** | {f.kind} | {f.location or '-'} "
            f"| {_truncate(f.description, 80)} |"
        )
    return lines


def _files_line(scope: ScopeResult) -> str:
    line = f"- Files changed: {scope.files_count}"
    if scope.files_by_status:
        breakdown = ", ".join(
            f"{count} {status}" for status, count in scope.files_by_status.items()
        )
        line += f" ({breakdown})"
    return line


def render_review_comment(result: ReviewResult) -> str:
    """Format a review result as the markdown body of a PR comment."""
    template = VERDICT_TEMPLATES[result.verdict]
    scope = result.scope

    lines: list[str] = [
        f"## {template.emoji} {template.title}\n",
        f"**Recommendation:** {template.recommendation}\n",
        "### Summary",
        f"{result.summary}\n",
        "### Detailed Analysis\n",
        "#### 📊 Scope",
        _files_line(scope),
        f"- Lines added: {scope.lines_added}",
        f"- Lines removed: {scope.lines_removed}",
        f"- Status: {scope.message}\n",
        "#### 🔒 Security",
    ]

    if result.security.has_issues:
        lines.append(f"{result.security.message}\n")
        lines.extend(_findings_table(result.security))
    else:
        lines.append("No obvious security issues detected.")
    lines.append("")

    lines.append("#### 🔍 Code Quality")
    if result.behavior.has_issues:
        lines.append(f"{len(result.behavior.findings)} suggestion(s):\n")
        lines.extend(_findings_table(result.behavior))
    else:
        lines.append("Code quality looks good.")
    lines.append("")

    lines.append("#### 🧪 Tests")
    lines.append(result.tests.message)
    lines.append(f"- Estimated coverage: {result.tests.coverage}%\n")

    lines.append(FOOTER)
    return "\n".join(lines)
