"""Advanced filtering, priority sorting and statistics over enriched articles."""

from collections import Counter
from dataclasses import replace
from typing import Any, Callable, Dict, List, Optional, Sequence

from .models import SEVERITY_LEVELS, SEVERITY_RANK, Article, FilterConfig, Metadata, as_utc
from .vocabulary import PRIORITY_ATTACK_TECHNIQUES

Predicate = Callable[[Metadata], bool]

_EMPTY_METADATA = Metadata()


def _meta(article: Article) -> Metadata:
    return article.metadata or _EMPTY_METADATA


def _predicates(config: FilterConfig) -> List[Predicate]:
    """Build one predicate per option that is set; unset options add nothing."""
    predicates: List[Predicate] = []

    if config.only_with_cve:
        predicates.append(lambda m: bool(m.cves))

    if config.min_cvss:
        min_cvss = config.min_cvss
        # A missing score never satisfies a CVSS floor
        predicates.append(lambda m: m.cvss_score is not None and m.cvss_score >= min_cvss)

    if config.threat_actor:
        actor = config.threat_actor.lower()
        predicates.append(lambda m: any(actor in ta.lower() for ta in m.threat_actors))

    if config.product:
        product = config.product.lower()
        predicates.append(lambda m: any(product in p.lower() for p in m.affected_products))

    if config.only_with_patch:
        predicates.append(lambda m: m.patch_available)

    if config.only_official_sources:
        predicates.append(lambda m: m.is_official_source)

    if config.severity_level and config.severity_level != "all":
        level = config.severity_level
        predicates.append(lambda m: m.severity_level == level)

    if config.max_days_old:
        max_days = config.max_days_old
        predicates.append(lambda m: m.days_since_published <= max_days)

    if config.min_relevance_score:
        min_score = config.min_relevance_score
        predicates.append(lambda m: m.relevance_score >= min_score)

    if config.only_with_iocs:
        predicates.append(lambda m: m.has_iocs())

    if config.only_regulatory:
        predicates.append(lambda m: bool(m.regulatory_keywords))

    if config.mitre_attack_technique:
        technique = config.mitre_attack_technique.upper()
        predicates.append(lambda m: technique in m.mitre_attack_techniques)

    return predicates


def apply_filters(articles: Sequence[Article], config: Optional[FilterConfig] = None) -> List[Article]:
    """
    Return the articles matching every option set in config.

    Survivors keep their relative order.
    """
    predicates = _predicates(config or FilterConfig())
    return [a for a in articles if all(check(_meta(a)) for check in predicates)]


def priority_key(article: Article):
    meta = _meta(article)
    return (
        meta.relevance_score,
        SEVERITY_RANK.get(meta.severity_level, 0),
        as_utc(article.pub_date),
    )


def sort_by_priority(articles: Sequence[Article]) -> List[Article]:
    """Sort by relevance, then severity, then publish date, all descending (stable)."""
    return sorted(articles, key=priority_key, reverse=True)


def calculate_metadata_stats(articles: Sequence[Article], top: int = 10) -> Dict[str, Any]:
    """Aggregate metadata counts for dashboards."""
    actors: Counter = Counter()
    products: Counter = Counter()
    cves: Counter = Counter()
    stats = {
        "total_articles": len(articles),
        "with_cve": 0,
        "with_high_cvss": 0,
        "with_threat_actors": 0,
        "with_iocs": 0,
        "with_priority_techniques": 0,
        "with_patch": 0,
        "avg_relevance_score": 0,
    }
    stats.update({level: 0 for level in SEVERITY_LEVELS})
    total_relevance = 0

    for article in articles:
        meta = _meta(article)
        if meta.cves:
            stats["with_cve"] += 1
        if meta.cvss_score is not None and meta.cvss_score >= 8.0:
            stats["with_high_cvss"] += 1
        if meta.threat_actors:
            stats["with_threat_actors"] += 1
        if meta.has_iocs():
            stats["with_iocs"] += 1
        if any(t in PRIORITY_ATTACK_TECHNIQUES for t in meta.mitre_attack_techniques):
            stats["with_priority_techniques"] += 1
        if meta.severity_level in SEVERITY_LEVELS:
            stats[meta.severity_level] += 1
        if meta.patch_available:
            stats["with_patch"] += 1
        total_relevance += meta.relevance_score
        actors.update(meta.threat_actors)
        products.update(meta.affected_products)
        cves.update(meta.cves)

    if articles:
        stats["avg_relevance_score"] = round(total_relevance / len(articles))
    stats["top_threat_actors"] = actors.most_common(top)
    stats["top_products"] = products.most_common(top)
    stats["top_cves"] = cves.most_common(top)
    return stats


class NewsView:
    """
    A caller-owned view over an article collection.

    Keeps the unfiltered collection and the current filter config together
    so the display layer can narrow, widen and reset without losing articles.
    """

    def __init__(self, articles: Sequence[Article], config: Optional[FilterConfig] = None) -> None:
        self.all_articles: List[Article] = list(articles)
        self.config = config or FilterConfig()

    def visible(self) -> List[Article]:
        return sort_by_priority(apply_filters(self.all_articles, self.config))

    def update(self, **changes: Any) -> List[Article]:
        """Change some filter options and return the new visible list."""
        self.config = replace(self.config, **changes)
        return self.visible()

    def reset(self) -> List[Article]:
        self.config = FilterConfig()
        return self.visible()

    def stats(self) -> Dict[str, Any]:
        return calculate_metadata_stats(self.visible())
