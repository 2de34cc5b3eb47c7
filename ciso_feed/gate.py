"""Pre-API relevance gate deciding which articles are worth an LLM summary."""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from .models import Article, FilterDecision
from .vocabulary import BLACKLIST, BUSINESS_WHITELIST, TECHNICAL_WHITELIST

logger = logging.getLogger(__name__)


def _first_match(text: str, keywords: List[str]) -> Optional[str]:
    for keyword in keywords:
        if keyword.lower() in text:
            return keyword
    return None


def should_summarize(
    article: Article,
    blacklist: List[str] = BLACKLIST,
    technical: List[str] = TECHNICAL_WHITELIST,
    business: List[str] = BUSINESS_WHITELIST,
) -> FilterDecision:
    """
    Decide whether an article should be sent to the summarization service.

    Precedence is strict and the first match wins: blacklist, then the
    technical whitelist, then the business whitelist. Anything else is
    rejected.

    Returns:
        FilterDecision describing the outcome and the keyword that decided it
    """
    text = f"{article.title or ''} {article.description or ''}".lower()

    # Blacklist first
    keyword = _first_match(text, blacklist)
    if keyword:
        return FilterDecision(
            process=False,
            category="blocked",
            matched_keyword=keyword,
            reason=f"Blacklist: {keyword}",
        )

    keyword = _first_match(text, technical)
    if keyword:
        return FilterDecision(
            process=True,
            category="technical",
            matched_keyword=keyword,
            reason=f"Technical: {keyword}",
            audience="CISO/Technical",
        )

    keyword = _first_match(text, business)
    if keyword:
        return FilterDecision(
            process=True,
            category="business",
            matched_keyword=keyword,
            reason=f"Business: {keyword}",
            audience="C-Level/Management",
        )

    return FilterDecision(process=False, category="no_match", reason="No whitelist match")


@dataclass
class GateStats:
    """Running counters of gate decisions for one pipeline run."""

    total: int = 0
    approved: int = 0
    rejected: int = 0
    by_category: Dict[str, int] = field(
        default_factory=lambda: {"technical": 0, "business": 0, "blocked": 0, "no_match": 0}
    )

    def record(self, decision: FilterDecision):
        self.total += 1
        self.by_category[decision.category] = self.by_category.get(decision.category, 0) + 1
        if decision.process:
            self.approved += 1
        else:
            self.rejected += 1

    def percentages(self) -> Tuple[int, int]:
        """Approved and rejected shares as rounded percentages."""
        if not self.total:
            return 0, 0
        return round(self.approved / self.total * 100), round(self.rejected / self.total * 100)


def evaluate(article: Article, stats: GateStats) -> FilterDecision:
    """Run the gate on an article and record the decision."""
    decision = should_summarize(article)
    stats.record(decision)
    if decision.process:
        logger.debug(f"Gate approved ({decision.reason}): {article.title[:60]}")
    else:
        logger.debug(f"Gate rejected ({decision.reason}): {article.title[:60]}")
    return decision
