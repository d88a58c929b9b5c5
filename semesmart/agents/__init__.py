"""AI agents for SemeSmart."""

from semesmart.agents.insight_agent import (
    InsightAgent,
    InsightGenerationError,
    build_prompt,
    parse_insights,
    redact_transactions,
)

__all__ = [
    "InsightAgent",
    "InsightGenerationError",
    "build_prompt",
    "parse_insights",
    "redact_transactions",
]
