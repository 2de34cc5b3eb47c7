"""Cost controls and usage accounting for the summarization service."""

import logging
from dataclasses import asdict, dataclass
from typing import Any, Dict, Optional, Tuple

logger = logging.getLogger(__name__)

TOKENS_PER_PRICE_UNIT = 1_000_000


@dataclass
class SafetyConfig:
    """Budget ceilings and API settings. Every ceiling degrades to the extractive summary."""

    monthly_budget_limit: float = 5.00  # USD
    alert_threshold: float = 4.00  # USD
    min_remaining_budget: float = 0.25  # USD left in the month before AI calls stop
    max_calls_per_run: int = 100
    max_articles_per_run: int = 150
    api_timeout: float = 30.0  # seconds
    max_output_tokens: int = 150
    price_input: float = 0.80  # USD per million input tokens
    price_output: float = 4.00  # USD per million output tokens
    model: str = "claude-3-5-haiku-20241022"

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "SafetyConfig":
        """Build from the `safety` config section, ignoring unknown keys."""
        known = set(cls.__dataclass_fields__)
        unknown = set(data or {}) - known
        if unknown:
            logger.warning(f"Ignoring unknown safety options: {', '.join(sorted(unknown))}")
        return cls(**{k: v for k, v in (data or {}).items() if k in known})


@dataclass
class UsageTracker:
    """Per-run usage counters, seeded with what was already spent this month."""

    monthly_spent: float = 0.0
    api_calls: int = 0
    api_errors: int = 0
    fallback_used: int = 0
    articles_processed: int = 0
    input_tokens: int = 0
    output_tokens: int = 0
    estimated_cost: float = 0.0
    actual_cost: float = 0.0

    def cost(self, config: SafetyConfig, input_tokens: int, output_tokens: int) -> float:
        return (
            input_tokens / TOKENS_PER_PRICE_UNIT * config.price_input
            + output_tokens / TOKENS_PER_PRICE_UNIT * config.price_output
        )

    @property
    def month_to_date(self) -> float:
        return self.monthly_spent + self.actual_cost

    def remaining_budget(self, config: SafetyConfig) -> float:
        return config.monthly_budget_limit - self.month_to_date

    def can_call(self, config: SafetyConfig) -> Tuple[bool, str]:
        """
        Check the per-run and monthly ceilings before an API call.

        Returns:
            Tuple of (allowed: bool, reason: str)
        """
        if self.articles_processed > config.max_articles_per_run:
            return False, f"Article limit reached ({config.max_articles_per_run})"
        if self.api_calls >= config.max_calls_per_run:
            return False, f"Call limit reached ({self.api_calls})"
        remaining = self.remaining_budget(config)
        if remaining < config.min_remaining_budget:
            return False, f"Monthly budget exhausted (${remaining:.4f} left)"
        return True, "ok"

    def record_estimate(self, config: SafetyConfig, prompt: str):
        """Account an estimated cost of roughly four characters per token."""
        estimated_input = -(-len(prompt) // 4)
        self.estimated_cost += self.cost(config, estimated_input, config.max_output_tokens)

    def record_call(self, config: SafetyConfig, input_tokens: int, output_tokens: int) -> float:
        """Account a completed API call and return its actual cost."""
        call_cost = self.cost(config, input_tokens, output_tokens)
        self.input_tokens += input_tokens
        self.output_tokens += output_tokens
        self.actual_cost += call_cost
        if self.month_to_date >= config.alert_threshold:
            logger.warning(
                f"Budget alert: ${self.month_to_date:.2f} spent of ${config.monthly_budget_limit:.2f}"
            )
        return call_cost

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
