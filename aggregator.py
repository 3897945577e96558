"""
Review aggregation - LangGraph fan-out/fan-in over the analyzers.

All four analyzers run in parallel on the same immutable Diff, each
writing only its own state field. A single decision node then derives
the verdict and summary from the four results, so the outcome depends
on analyzer identity and never on completion order.
"""

import asyncio
import logging
from dataclasses import dataclass

from langchain_core.runnables import RunnableLambda
from langgraph.graph import END, START, StateGraph

from analyzers import Analyzer, default_analyzers
from diff_parser import Diff
from errors import AnalyzerFailure
from models import (
    BehaviorResult,
    ReviewResult,
    ScopeResult,
    SecurityResult,
    Severity,
    TestsResult,
    Verdict,
)

logger = logging.getLogger(__name__)

# Report order; also the order summary parts are emitted in
ANALYZER_SLOTS: tuple[str, ...] = ("scope", "security", "behavior", "tests")

SUMMARY_SEPARATOR = " | "
ALL_CLEAR = "All checks passed"


# =============================================================================
# STATE DEFINITION
# =============================================================================
@dataclass
class ReviewState:
    """
    State that flows through the review graph.

    Each analyzer node writes exactly one result field; the decision
    node writes verdict and summary.
    """

    diff: Diff

    scope: ScopeResult | None = None
    security: SecurityResult | None = None
    behavior: BehaviorResult | None = None
    tests: TestsResult | None = None

    verdict: Verdict | None = None
    summary: str = ""


# =============================================================================
# VERDICT RULES
# =============================================================================
def decide_verdict(
    scope: ScopeResult,
    security: SecurityResult,
    behavior: BehaviorResult,
) -> Verdict:
    """
    Derive the verdict by fixed precedence; first match wins.

    1. BLOCK when security is HIGH or CRITICAL.
    2. WARN when security is MEDIUM, behavior is MEDIUM or HIGH, or the
       scope is unfocused.
    3. APPROVE otherwise.

    Scope can only escalate to WARN, and test results never affect the
    verdict.
    """
    if security.severity >= Severity.HIGH:
        return Verdict.BLOCK

    if (
        security.severity == Severity.MEDIUM
        or behavior.severity >= Severity.MEDIUM
        or not scope.is_focused
    ):
        return Verdict.WARN

    return Verdict.APPROVE


def build_summary(
    scope: ScopeResult,
    security: SecurityResult,
    behavior: BehaviorResult,
    tests: TestsResult,
) -> str:
    """Join the messages of every analyzer that has something to say."""
    parts = [
        result.message
        for result in (scope, security, behavior)
        if result.severity != Severity.LOW
    ]
    if not tests.has_test_coverage:
        parts.append(tests.message)

    return SUMMARY_SEPARATOR.join(parts) if parts else ALL_CLEAR


# =============================================================================
# NODE FUNCTIONS
# =============================================================================
def _analyzer_node(slot: str, analyzer: Analyzer) -> RunnableLambda:
    """
    Wrap *analyzer* as a graph node writing to the *slot* state field.

    The async side runs the analyzer in a worker thread so the event
    loop stays free and cancellation reaches the awaiting node.
    """

    def _record(result) -> dict:
        logger.debug(
            "   %s: %s (%d finding(s))",
            slot,
            result.severity.label,
            len(result.findings),
        )
        return {slot: result}

    def run_analyzer(state: ReviewState) -> dict:
        try:
            result = analyzer.analyze(state.diff)
        except Exception as e:
            logger.error("   ❌ %s analyzer failed: %s", slot, e)
            raise AnalyzerFailure(slot, e) from e
        return _record(result)

    async def arun_analyzer(state: ReviewState) -> dict:
        try:
            result = await asyncio.to_thread(analyzer.analyze, state.diff)
        except Exception as e:
            logger.error("   ❌ %s analyzer failed: %s", slot, e)
            raise AnalyzerFailure(slot, e) from e
        return _record(result)

    return RunnableLambda(run_analyzer, afunc=arun_analyzer, name=f"{slot}_analyzer")


def decide(state: ReviewState) -> dict:
    """
    Decision Node: waits for all analyzers, then derives the verdict.

    Reads: scope, security, behavior, tests
    Writes: verdict, summary
    """
    verdict = decide_verdict(state.scope, state.security, state.behavior)
    summary = build_summary(state.scope, state.security, state.behavior, state.tests)

    logger.info("🔀 Verdict: %s (%s)", verdict.value, summary)
    return {"verdict": verdict, "summary": summary}


# =============================================================================
# GRAPH CONSTRUCTION
# =============================================================================
def build_review_graph(analyzers: dict[str, Analyzer]) -> StateGraph:
    """Build the review graph with one PARALLEL node per analyzer."""
    missing = [slot for slot in ANALYZER_SLOTS if slot not in analyzers]
    if missing:
        raise ValueError(f"Missing analyzer(s): {', '.join(missing)}")

    graph = StateGraph(ReviewState)
    graph.add_node("decide", decide)

    for slot in ANALYZER_SLOTS:
        node_name = f"{slot}_analyzer"
        graph.add_node(node_name, _analyzer_node(slot, analyzers[slot]))

        # START → every analyzer (parallel), every analyzer → decide (join)
        graph.add_edge(START, node_name)
        graph.add_edge(node_name, "decide")

    graph.add_edge("decide", END)
    return graph


class Aggregator:
    """Runs the analyzers concurrently and merges them into one ReviewResult."""

    def __init__(
        self,
        scope: Analyzer | None = None,
        security: Analyzer | None = None,
        behavior: Analyzer | None = None,
        tests: Analyzer | None = None,
    ):
        defaults = default_analyzers()
        self.analyzers: dict[str, Analyzer] = {
            "scope": scope or defaults["scope"],
            "security": security or defaults["security"],
            "behavior": behavior or defaults["behavior"],
            "tests": tests or defaults["tests"],
        }
        self._graph = build_review_graph(self.analyzers).compile()

    def aggregate(self, diff: Diff) -> ReviewResult:
        """
        Review *diff* with every analyzer and return the merged result.

        Raises:
            AnalyzerFailure: If any analyzer raises; no partial result
                is produced.
        """
        logger.info("🔍 Analysing %d file(s)...", diff.files_count)
        final_state = self._graph.invoke(ReviewState(diff=diff))
        return _to_review_result(final_state)

    async def aggregate_async(self, diff: Diff) -> ReviewResult:
        """Async variant; cancelling the caller cancels in-flight analyzers."""
        logger.info("🔍 Analysing %d file(s)...", diff.files_count)
        final_state = await self._graph.ainvoke(ReviewState(diff=diff))
        return _to_review_result(final_state)


def _to_review_result(final_state: dict) -> ReviewResult:
    return ReviewResult(
        verdict=final_state["verdict"],
        summary=final_state["summary"],
        scope=final_state["scope"],
        security=final_state["security"],
        behavior=final_state["behavior"],
        tests=final_state["tests"],
    )


def create_aggregator() -> Aggregator:
    """Create an aggregator with the configured analyzer set."""
    from config import USE_LLM_SECURITY

    if USE_LLM_SECURITY:
        from llm_analyzer import GeminiSecurityAnalyzer

        logger.info("Using Gemini security analyzer")
        return Aggregator(security=GeminiSecurityAnalyzer())

    return Aggregator()
