"""
AI Insight Agent for SemeSmart

DESIGN DECISION: Gemini is asked for spending tips in JSON mode and the
reply is parsed into Insight models. Anything else (network failure,
blocked response, malformed JSON) is an InsightGenerationError. There is
no fallback advice: a tip the model did not give is never invented.

CRITICAL BOUNDARIES:
- CAN: See description, amount and category of recent expenses
- CANNOT: See member names or ids, dates, locations, payment methods, cards
- CANNOT: Change family data (it only returns text)

Whether to call at all (enough expenses?) and how many transactions to
send is the caller's decision. See FamilySession.get_insights.
"""

import json
from typing import Iterable, Optional

import google.generativeai as genai
import structlog
from pydantic import TypeAdapter, ValidationError

from semesmart.config import get_settings
from semesmart.models.family import Insight, Transaction

logger = structlog.get_logger(__name__)

_INSIGHT_LIST = TypeAdapter(list[Insight])

INSIGHT_RESPONSE_SCHEMA = {
    "type": "ARRAY",
    "items": {
        "type": "OBJECT",
        "properties": {
            "title": {"type": "STRING"},
            "description": {"type": "STRING"},
        },
        "required": ["title", "description"],
    },
}

PROMPT_TEMPLATE = (
    "Você é um consultor financeiro amigável e otimista para uma família. "
    "Analise a seguinte lista de despesas recentes e forneça exatamente {count} dicas "
    "curtas, práticas e encorajadoras para ajudá-los a economizar dinheiro ou melhorar "
    "seus hábitos financeiros. As dicas devem ser acionáveis e baseadas nos dados fornecidos.\n\n"
    "Gastos recentes:\n{transactions}"
)


class InsightGenerationError(Exception):
    """Insights could not be produced. Safe to retry later."""
    pass


def redact_transactions(transactions: Iterable[Transaction]) -> list[dict]:
    """Keep only what the model is allowed to see."""
    return [
        {
            "description": tx.description,
            "amount": tx.amount,
            "category": tx.category.value,
        }
        for tx in transactions
    ]


def build_prompt(transactions: Iterable[Transaction], count: int = 3) -> str:
    payload = json.dumps(redact_transactions(transactions), ensure_ascii=False, indent=2)
    return PROMPT_TEMPLATE.format(count=count, transactions=payload)


def parse_insights(text: str, limit: int = 3) -> list[Insight]:
    """
    Parse the model reply into at most `limit` insights.

    Raises:
        InsightGenerationError: If no JSON array of {title, description} is found
    """
    start = text.find("[")
    end = text.rfind("]") + 1
    if start < 0 or end <= start:
        raise InsightGenerationError("Model reply contains no JSON array")

    try:
        insights = _INSIGHT_LIST.validate_python(json.loads(text[start:end]))
    except (json.JSONDecodeError, ValidationError) as e:
        raise InsightGenerationError(f"Model reply is not a list of insights: {e}") from e

    return insights[:limit]


class InsightAgent:
    """
    Generates spending tips from a list of (recent expense) transactions.
    """

    def __init__(self, settings=None, model=None, insight_count: Optional[int] = None):
        self._settings = settings or get_settings().gemini
        self._count = insight_count or get_settings().app.insights_count
        self._model = model
        if self._model is None:
            self._configure_genai()

    def _configure_genai(self):
        """Configure Google Generative AI."""
        genai.configure(api_key=self._settings.api_key)
        self._model = genai.GenerativeModel(
            model_name=self._settings.model_name,
            generation_config={
                "temperature": self._settings.temperature,
                "max_output_tokens": self._settings.max_tokens,
                "response_mime_type": "application/json",
                "response_schema": INSIGHT_RESPONSE_SCHEMA,
            }
        )

    async def get_insights(self, transactions: list[Transaction]) -> list[Insight]:
        """
        Ask the model for tips about these transactions.

        Returns:
            Up to `insight_count` insights (three by default)

        Raises:
            InsightGenerationError: On any failure talking to or parsing the model
        """
        prompt = build_prompt(transactions, self._count)

        try:
            response = await self._model.generate_content_async(prompt)
            text = response.text
        except Exception as e:
            # Blocked responses raise on .text; transport errors raise on the call.
            logger.error("insight_generation_failed", error=str(e))
            raise InsightGenerationError("Falha ao gerar insights da IA.") from e

        insights = parse_insights(text or "", self._count)
        logger.info("insights_generated", count=len(insights), transactions=len(transactions))
        return insights
