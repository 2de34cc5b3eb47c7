"""Per-article metadata enrichment."""

import logging
from datetime import datetime, timezone
from typing import Optional

from . import extractors
from .classifier import score_cia, tags_from_scores
from .models import Article, Metadata, as_utc
from .scoring import relevance_score

logger = logging.getLogger(__name__)

SECONDS_PER_DAY = 86400
DEEP_EXTRACTION_SEVERITIES = ("critical", "high")


def days_since(pub_date: datetime, now: Optional[datetime] = None) -> int:
    """Whole days elapsed between publication and now (floored)."""
    now = as_utc(now) if now else datetime.now(timezone.utc)
    return int((now - as_utc(pub_date)).total_seconds() // SECONDS_PER_DAY)


def needs_deep_extraction(metadata: Metadata) -> bool:
    """Deep extraction only pays off when a CVE or high/critical severity was found."""
    return bool(metadata.cves) or metadata.severity_level in DEEP_EXTRACTION_SEVERITIES


def enrich_article(article: Article, now: Optional[datetime] = None) -> Article:
    """
    Attach threat-intelligence metadata to an article.

    Already processed articles are returned untouched, so days_since_published
    reflects the time of first enrichment. The cheap pass (CVEs, CVSS,
    severity) always runs; MITRE techniques, threat actors, products and IOCs
    are only extracted when the cheap pass finds a CVE or high/critical
    severity.

    Args:
        article: Article to enrich in place
        now: Reference time for days_since_published (default: current UTC time)

    Returns:
        The same article, with metadata populated
    """
    if article.metadata is not None and article.metadata.processed:
        return article

    text = article.text
    metadata = Metadata()

    # Cheap pass
    metadata.cves = extractors.extract_cves(text)
    metadata.cvss_score = extractors.extract_cvss(text)
    metadata.severity_level = extractors.classify_severity(text, metadata.cvss_score)

    if needs_deep_extraction(metadata):
        metadata.mitre_attack_techniques = extractors.extract_mitre_techniques(text)
        metadata.threat_actors = extractors.extract_threat_actors(text)
        metadata.affected_products = extractors.extract_affected_products(text)
        metadata.iocs = extractors.extract_iocs(text)
    else:
        logger.debug(f"Skipping deep extraction: {article.title[:60]}")

    metadata.patch_available = extractors.has_patch_available(text)
    metadata.is_official_source = extractors.is_official_source(article.source_name)
    metadata.regulatory_keywords = extractors.extract_regulatory_keywords(text)
    metadata.cia_scores = score_cia(text)
    metadata.cia_tags = tags_from_scores(metadata.cia_scores)
    metadata.days_since_published = days_since(article.pub_date, now)
    metadata.relevance_score = relevance_score(metadata)
    metadata.processed = True

    article.metadata = metadata
    return article
