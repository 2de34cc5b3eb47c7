"""Article summarization through the Claude Messages API, with an extractive fallback."""

import json
import logging
import re
from dataclasses import dataclass
from typing import Any, Dict, Optional

import anthropic

from .budget import SafetyConfig, UsageTracker
from .models import Article

logger = logging.getLogger(__name__)

MAX_PROMPT_TITLE = 500
MAX_PROMPT_DESCRIPTION = 2000
MAX_SUMMARY_LENGTH = 1000
MAX_EXTRACTIVE_LENGTH = 200
EXTRACTIVE_SENTENCES = 3

_SENTENCE_RE = re.compile(r"[^.!?]+[.!?]+")
_FENCE_RE = re.compile(r"```(?:json)?\s*")


class SummarizationError(ValueError):
    """Raised when the model output cannot be turned into a summary."""


@dataclass
class SummaryResult:
    summary: str
    source: str  # "ai" | "extractive"
    cost: float = 0.0


def build_prompt(article: Article) -> str:
    """Build the summarization prompt from a bounded title and description."""
    title = (article.title or "")[:MAX_PROMPT_TITLE]
    description = (article.description or "")[:MAX_PROMPT_DESCRIPTION]
    return (
        "You are a cybersecurity intelligence assistant processing threat information for CISOs.\n\n"
        f"Article Title: {title}\n"
        f"Article Description: {description}\n\n"
        "Task:\n"
        "Generate a concise 2-3 sentence summary in the SAME language as the original article.\n"
        "Focus on: threat, impact, and affected systems.\n"
        "Keep technical terms (CVE, CVSS, API, IoC, etc.) in their original form.\n\n"
        "Return ONLY a JSON object (no markdown formatting):\n"
        '{"summary": "Your summary in the same language as the article"}'
    )


def parse_summary_response(text: str) -> str:
    """
    Extract the summary from the model's JSON reply.

    Markdown code fences are tolerated. The summary is truncated to 1000
    characters.

    Raises:
        SummarizationError: If the reply is not JSON or has no summary
    """
    cleaned = _FENCE_RE.sub("", text or "").strip()
    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError as e:
        raise SummarizationError(f"Invalid JSON in response: {e}") from e
    if not isinstance(data, dict):
        raise SummarizationError("Response is not a JSON object")
    summary = str(data.get("summary") or "").strip()
    if not summary:
        raise SummarizationError("Response has an empty summary")
    return summary[:MAX_SUMMARY_LENGTH]


def extractive_summary(article: Article) -> str:
    """
    Build a summary from the first sentences of the description.

    Falls back to the title when the description is missing or too short.
    """
    description = (article.description or "").strip()
    if len(description) < 10:
        return article.title or "Summary not available."

    sentences = [s.strip() for s in _SENTENCE_RE.findall(description)]
    summary = " ".join(sentences[:EXTRACTIVE_SENTENCES]).strip()
    if not summary:
        summary = description
    if len(summary) > MAX_EXTRACTIVE_LENGTH:
        summary = summary[:MAX_EXTRACTIVE_LENGTH - 3].rstrip() + "..."
    return summary


class MessagesClient:
    """Thin wrapper over the Anthropic SDK returning plain response dictionaries."""

    def __init__(self, api_key: str, config: SafetyConfig, client: Optional[anthropic.Anthropic] = None):
        self.config = config
        # One attempt per article
        self.client = client or anthropic.Anthropic(
            api_key=api_key,
            timeout=config.api_timeout,
            max_retries=0,
        )

    def create(self, prompt: str) -> Dict[str, Any]:
        """
        Send one prompt and return the response as a dictionary.

        Raises:
            anthropic.APIError: On connection errors, timeouts or non-2xx replies
        """
        message = self.client.messages.create(
            model=self.config.model,
            max_tokens=self.config.max_output_tokens,
            messages=[{"role": "user", "content": prompt}],
        )
        return message.model_dump()


def _usage(response: Any) -> Dict[str, Any]:
    """Return the usage block of a Messages response, validating its shape."""
    if not isinstance(response, dict):
        raise SummarizationError(f"Response is not an object: {type(response).__name__}")
    usage = response.get("usage") or {}
    if not isinstance(usage, dict):
        raise SummarizationError("Response usage is not an object")
    return usage


def _first_text(response: Dict[str, Any]) -> str:
    content = response.get("content")
    if not isinstance(content, list) or not content or not isinstance(content[0], dict):
        raise SummarizationError("Response has no content blocks")
    return str(content[0].get("text") or "")


class Summarizer:
    """Summarizes approved articles while enforcing the run's budget ceilings."""

    def __init__(
        self,
        config: SafetyConfig,
        tracker: Optional[UsageTracker] = None,
        api_key: Optional[str] = None,
        client: Optional[MessagesClient] = None,
    ):
        self.config = config
        self.tracker = tracker or UsageTracker()
        if client is None and api_key:
            client = MessagesClient(api_key, config)
        self.client = client

    def _fallback(self, article: Article, reason: str) -> SummaryResult:
        self.tracker.fallback_used += 1
        logger.warning(f"Using extractive summary ({reason}): {article.title[:60]}")
        return SummaryResult(summary=extractive_summary(article), source="extractive")

    def summarize(self, article: Article) -> SummaryResult:
        """
        Summarize one article, never raising.

        Missing credentials, exhausted budgets, API failures and unusable
        replies all produce an extractive summary instead.
        """
        self.tracker.articles_processed += 1

        allowed, reason = self.tracker.can_call(self.config)
        if not allowed:
            return self._fallback(article, reason)
        if self.client is None:
            return self._fallback(article, "no API key configured")

        prompt = build_prompt(article)
        self.tracker.api_calls += 1
        self.tracker.record_estimate(self.config, prompt)
        logger.info(f"API call {self.tracker.api_calls}: {article.title[:60]}")

        try:
            response = self.client.create(prompt)
            usage = _usage(response)
            call_cost = self.tracker.record_call(
                self.config,
                int(usage.get("input_tokens") or 0),
                int(usage.get("output_tokens") or 0),
            )
            logger.info(f"Actual cost: ${call_cost:.6f}")
            summary = parse_summary_response(_first_text(response))
        except anthropic.APIError as e:
            self.tracker.api_errors += 1
            logger.error(f"Summarization request failed: {e}")
            return self._fallback(article, "API error")
        except (SummarizationError, TypeError, ValueError) as e:
            self.tracker.api_errors += 1
            logger.error(f"Unusable summarization response: {e}")
            return self._fallback(article, "bad response")

        return SummaryResult(summary=summary, source="ai", cost=call_cost)

    def apply(self, article: Article) -> Article:
        """Summarize an article and store the result on it."""
        result = self.summarize(article)
        article.summary = result.summary
        article.summary_source = result.source
        return article
