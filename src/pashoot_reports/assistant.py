"""Claude-backed assistant that answers questions about a user's transactions."""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Any

import anthropic
import structlog

from pashoot_reports.config import Settings, get_settings
from pashoot_reports.models import ChatMessage, Transaction, TransactionType, utc_now
from pashoot_reports.storage import Repository

logger = structlog.get_logger(__name__)

CONTEXT_TRANSACTIONS = 100
LISTED_TRANSACTIONS = 20
FALLBACK_ANSWER = "I couldn't process that question. Please try rephrasing it."

SYSTEM_PROMPT = """You are a financial analyst assistant for Pashoot Reports, a financial reporting tool.
You help small business owners understand their financial data by answering questions in plain English.

The user has {count} transactions in their database from sources: {sources}.
Total income: ${income:,.2f}
Total expenses: ${expenses:,.2f}
Net: ${net:,.2f}

Here are the most recent transactions (up to {limit}):
{lines}

When answering questions:
1. Be concise and clear
2. Use dollar amounts and specific numbers from the data
3. If you need to calculate something, show your work briefly
4. If the data doesn't contain enough information to answer, say so
5. Format currency with dollar signs and commas (e.g., $1,234.56)

Answer the user's financial question based on their data."""


class ChatQuotaExceededError(Exception):
    """The user has used up this month's questions."""

    def __init__(self, used: int, limit: int):
        super().__init__(
            f"You've reached your monthly limit of {limit} queries. Upgrade for unlimited access."
        )
        self.used = used
        self.limit = limit


@dataclass
class ChatQuota:
    allowed: bool
    used: int
    limit: int


@dataclass
class ChatAnswer:
    response: str
    used: int
    limit: int

    def to_dict(self) -> dict[str, Any]:
        return {"response": self.response, "quota": {"used": self.used, "limit": self.limit}}


def start_of_month(now: datetime) -> datetime:
    return now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)


def build_system_prompt(transactions: list[Transaction]) -> str:
    """Summary statistics plus the newest transactions. Expects newest first."""
    income = sum(
        (t.amount for t in transactions if t.type == TransactionType.INCOME), Decimal("0")
    )
    expenses = sum(
        (t.amount for t in transactions if t.type == TransactionType.EXPENSE), Decimal("0")
    )
    sources = list(dict.fromkeys(t.source.value for t in transactions))
    lines = "\n".join(
        f"- {t.date.isoformat()}: {t.description} - ${t.amount} ({t.type.value})"
        for t in transactions[:LISTED_TRANSACTIONS]
    )
    return SYSTEM_PROMPT.format(
        count=len(transactions),
        sources=", ".join(sources),
        income=income,
        expenses=expenses,
        net=income - expenses,
        limit=CONTEXT_TRANSACTIONS,
        lines=lines,
    )


class FinancialAssistant:
    """Answers plain-English questions using Claude over recent transactions."""

    def __init__(
        self,
        repository: Repository,
        client: anthropic.AsyncAnthropic | None = None,
        settings: Settings | None = None,
    ):
        self.repository = repository
        self.settings = settings or get_settings()
        self._client = client
        self._logger = logger.bind(client="claude", model=self.settings.claude_model)

    def _get_client(self) -> anthropic.AsyncAnthropic:
        if self._client is None:
            key = self.settings.anthropic_api_key
            self._client = anthropic.AsyncAnthropic(
                api_key=key.get_secret_value() if key else None
            )
        return self._client

    async def check_quota(self, user_id: str, now: datetime | None = None) -> ChatQuota:
        """Questions asked since the first of the current month against the monthly limit."""
        since = start_of_month(now or utc_now())
        used = await self.repository.count_chat_messages(user_id, "user", since)
        limit = self.settings.chat_monthly_limit
        return ChatQuota(allowed=used < limit, used=used, limit=limit)

    async def recent_transactions(self, user_id: str) -> list[Transaction]:
        transactions = await self.repository.query_transactions(user_id)
        return list(reversed(transactions[-CONTEXT_TRANSACTIONS:]))

    async def _complete(self, system_prompt: str, question: str) -> str:
        try:
            response = await self._get_client().messages.create(
                model=self.settings.claude_model,
                max_tokens=self.settings.chat_max_tokens,
                system=system_prompt,
                messages=[{"role": "user", "content": question}],
            )
        except anthropic.APIError as e:
            self._logger.error("api_error", error=str(e))
            raise

        self._logger.info(
            "response_generated",
            stop_reason=response.stop_reason,
            input_tokens=response.usage.input_tokens,
            output_tokens=response.usage.output_tokens,
        )
        first = response.content[0] if response.content else None
        if first is None or first.type != "text":
            return FALLBACK_ANSWER
        return first.text

    async def answer(self, user_id: str, question: str) -> ChatAnswer:
        """Answer one question and record both sides of the exchange.

        Raises:
            ValueError: If the question is empty.
            ChatQuotaExceededError: If the monthly limit is used up.
        """
        if not question or not question.strip():
            raise ValueError("Message is required")

        quota = await self.check_quota(user_id)
        if not quota.allowed:
            raise ChatQuotaExceededError(quota.used, quota.limit)

        await self.repository.add_chat_message(
            ChatMessage(user_id=user_id, role="user", content=question)
        )
        transactions = await self.recent_transactions(user_id)
        response = await self._complete(build_system_prompt(transactions), question)
        await self.repository.add_chat_message(
            ChatMessage(user_id=user_id, role="assistant", content=response)
        )
        return ChatAnswer(response=response, used=quota.used + 1, limit=quota.limit)
