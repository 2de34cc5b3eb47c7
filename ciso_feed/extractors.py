"""Regex and keyword extractors for threat-intelligence metadata.

Every extractor takes free text (usually title + description), never raises
and returns an empty result when nothing matches.
"""

import logging
import re
from typing import Iterable, List, Optional

from . import vocabulary
from .models import IOCs, SEVERITY_RANK

logger = logging.getLogger(__name__)

MAX_IOCS_PER_TYPE = 10

CVE_PATTERN = re.compile(r"CVE-\d{4}-\d{4,}", re.IGNORECASE)
CVSS_PATTERN = re.compile(r"CVSS[:\s]+(\d+\.?\d*)", re.IGNORECASE)
MITRE_PATTERN = re.compile(r"\bT\d{4}(?:\.\d{3})?\b", re.IGNORECASE)
IPV4_PATTERN = re.compile(r"\b(?:\d{1,3}\.){3}\d{1,3}\b")
DOMAIN_PATTERN = re.compile(
    r"\b[a-z0-9][-a-z0-9]*\.(?:com|net|org|io|info|biz|ru|cn|xyz|top|tk)\b",
    re.IGNORECASE,
)
HASH_PATTERN = re.compile(r"\b(?:[a-f0-9]{64}|[a-f0-9]{40}|[a-f0-9]{32})\b", re.IGNORECASE)
PATCH_PATTERN = re.compile(
    "|".join(re.escape(keyword) for keyword in vocabulary.PATCH_KEYWORDS),
    re.IGNORECASE,
)


def _dedupe(values: Iterable[str]) -> List[str]:
    """De-duplicate while keeping first-seen order."""
    seen = set()
    result = []
    for value in values:
        if value not in seen:
            seen.add(value)
            result.append(value)
    return result


def _match_vocabulary(text: Optional[str], terms: List[str]) -> List[str]:
    """Return the vocabulary terms contained in text, in vocabulary order."""
    if not text:
        return []
    lowered = text.lower()
    return _dedupe(term for term in terms if term.lower() in lowered)


def extract_cves(text: Optional[str]) -> List[str]:
    """Extract CVE identifiers, upper-cased and de-duplicated."""
    if not text:
        return []
    return _dedupe(match.upper() for match in CVE_PATTERN.findall(text))


def extract_cvss(text: Optional[str]) -> Optional[float]:
    """
    Extract the CVSS score mentioned in text.

    Mentions outside [0, 10] are discarded. When several valid mentions
    exist the highest one is returned.

    Returns:
        The score, or None if no valid mention was found
    """
    if not text:
        return None
    scores = []
    for raw in CVSS_PATTERN.findall(text):
        try:
            score = float(raw)
        except ValueError:
            continue
        if 0.0 <= score <= 10.0:
            scores.append(score)
        else:
            logger.debug(f"Discarding out-of-range CVSS value: {raw}")
    return max(scores) if scores else None


def extract_mitre_techniques(text: Optional[str]) -> List[str]:
    """Extract MITRE ATT&CK technique IDs such as T1078 or T1566.001."""
    if not text:
        return []
    return _dedupe(match.upper() for match in MITRE_PATTERN.findall(text))


def extract_threat_actors(text: Optional[str]) -> List[str]:
    return _match_vocabulary(text, vocabulary.THREAT_ACTORS)


def extract_affected_products(text: Optional[str]) -> List[str]:
    return _match_vocabulary(text, vocabulary.CRITICAL_PRODUCTS)


def extract_regulatory_keywords(text: Optional[str]) -> List[str]:
    return _match_vocabulary(text, vocabulary.REGULATORY_KEYWORDS)


def has_patch_available(text: Optional[str]) -> bool:
    """Detect patch, update or fix availability phrases (English and Spanish)."""
    if not text:
        return False
    return PATCH_PATTERN.search(text) is not None


def _valid_ipv4(candidate: str) -> bool:
    return all(int(part) <= 255 for part in candidate.split("."))


def extract_iocs(text: Optional[str]) -> IOCs:
    """Extract IPv4 addresses, domains and MD5/SHA1/SHA256 hashes."""
    if not text:
        return IOCs()
    ips = _dedupe(ip for ip in IPV4_PATTERN.findall(text) if _valid_ipv4(ip))
    domains = _dedupe(domain.lower() for domain in DOMAIN_PATTERN.findall(text))
    hashes = _dedupe(digest.lower() for digest in HASH_PATTERN.findall(text))
    return IOCs(
        ips=ips[:MAX_IOCS_PER_TYPE],
        domains=domains[:MAX_IOCS_PER_TYPE],
        hashes=hashes[:MAX_IOCS_PER_TYPE],
    )


def is_official_source(source_name: Optional[str]) -> bool:
    """Check whether the source name belongs to an authoritative publisher."""
    if not source_name:
        return False
    lowered = source_name.lower()
    return any(official.lower() in lowered for official in vocabulary.OFFICIAL_SOURCES)


def _severity_from_cvss(cvss_score: Optional[float]) -> str:
    if cvss_score is None:
        return "low"
    if cvss_score >= 9.0:
        return "critical"
    if cvss_score >= 7.0:
        return "high"
    if cvss_score >= 4.0:
        return "medium"
    return "low"


def classify_severity(text: Optional[str], cvss_score: Optional[float] = None) -> str:
    """
    Classify the severity of an article as critical, high, medium or low.

    Impact keywords are checked from the critical tier down. A CVSS score,
    when given, can raise the level to its band but never lower it.
    """
    lowered = (text or "").lower()
    level = "low"
    if any(kw.lower() in lowered for kw in vocabulary.CRITICAL_IMPACT_KEYWORDS):
        level = "critical"
    elif any(kw.lower() in lowered for kw in vocabulary.HIGH_IMPACT_KEYWORDS):
        level = "high"
    elif any(kw.lower() in lowered for kw in vocabulary.MEDIUM_IMPACT_KEYWORDS):
        level = "medium"

    cvss_level = _severity_from_cvss(cvss_score)
    if SEVERITY_RANK[cvss_level] > SEVERITY_RANK[level]:
        return cvss_level
    return level
