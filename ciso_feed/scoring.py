"""Relevance scoring for enriched articles."""

from .models import Metadata

MAX_RELEVANCE_SCORE = 100
HIGH_CVSS_THRESHOLD = 8.0

WEIGHT_CVE = 30
WEIGHT_HIGH_CVSS = 20
WEIGHT_THREAT_ACTOR = 15
WEIGHT_AFFECTED_PRODUCT = 15
WEIGHT_PATCH = 10
WEIGHT_OFFICIAL_SOURCE = 10
WEIGHT_MITRE = 10
WEIGHT_IOC = 5
WEIGHT_REGULATORY = 5
WEIGHT_SEVERITY = {"critical": 10, "high": 5}


def raw_relevance_score(metadata: Metadata) -> int:
    """Weighted sum of the metadata signals before clamping."""
    score = 0
    if metadata.cves:
        score += WEIGHT_CVE
    if metadata.cvss_score is not None and metadata.cvss_score >= HIGH_CVSS_THRESHOLD:
        score += WEIGHT_HIGH_CVSS
    if metadata.threat_actors:
        score += WEIGHT_THREAT_ACTOR
    if metadata.affected_products:
        score += WEIGHT_AFFECTED_PRODUCT
    if metadata.patch_available:
        score += WEIGHT_PATCH
    if metadata.is_official_source:
        score += WEIGHT_OFFICIAL_SOURCE
    if metadata.mitre_attack_techniques:
        score += WEIGHT_MITRE
    if metadata.has_iocs():
        score += WEIGHT_IOC
    if metadata.regulatory_keywords:
        score += WEIGHT_REGULATORY
    score += WEIGHT_SEVERITY.get(metadata.severity_level, 0)
    return score


def relevance_score(metadata: Metadata) -> int:
    """
    Compute the CISO relevance score of an article's metadata.

    Returns:
        Integer in [0, 100]
    """
    return min(raw_relevance_score(metadata), MAX_RELEVANCE_SCORE)
