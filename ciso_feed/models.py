"""Data models for articles and their threat-intelligence metadata."""

import hashlib
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
from urllib.parse import parse_qsl, urlencode, urlparse, urlunparse

from dateutil import parser as date_parser

SEVERITY_LEVELS = ("critical", "high", "medium", "low")
SEVERITY_RANK = {"critical": 4, "high": 3, "medium": 2, "low": 1}
SOURCE_CATEGORIES = ("general", "corporate", "intelligence", "blog")
CIA_DIMENSIONS = ("confidentiality", "integrity", "availability", "non-repudiation")

_TRACKING_PARAMS = {
    "utm_source",
    "utm_medium",
    "utm_campaign",
    "utm_term",
    "utm_content",
    "fbclid",
    "gclid",
}


def normalize_link(link: Optional[str]) -> str:
    """Normalize an article link so trivially different URLs share an identity."""
    if not link:
        return ""
    parsed = urlparse(link.strip())
    query = [(k, v) for k, v in parse_qsl(parsed.query) if k not in _TRACKING_PARAMS]
    normalized = parsed._replace(
        scheme=parsed.scheme.lower(),
        netloc=parsed.netloc.lower(),
        fragment="",
        query=urlencode(query, doseq=True),
    )
    return urlunparse(normalized)


def article_id(link: Optional[str]) -> str:
    """Generate the stable 16-character document ID for an article link."""
    return hashlib.sha256(normalize_link(link).encode()).hexdigest()[:16]


def as_utc(value: datetime) -> datetime:
    """Return an aware UTC datetime, treating naive values as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


@dataclass
class IOCs:
    """Indicators of compromise found in an article (each list capped at 10)."""

    ips: List[str] = field(default_factory=list)
    domains: List[str] = field(default_factory=list)
    hashes: List[str] = field(default_factory=list)

    def total(self) -> int:
        return len(self.ips) + len(self.domains) + len(self.hashes)


@dataclass
class Metadata:
    """Threat-intelligence metadata attached to an article by enrichment."""

    cves: List[str] = field(default_factory=list)
    cvss_score: Optional[float] = None
    mitre_attack_techniques: List[str] = field(default_factory=list)
    threat_actors: List[str] = field(default_factory=list)
    affected_products: List[str] = field(default_factory=list)
    patch_available: bool = False
    iocs: IOCs = field(default_factory=IOCs)
    is_official_source: bool = False
    regulatory_keywords: List[str] = field(default_factory=list)
    severity_level: str = "low"  # "critical" | "high" | "medium" | "low"
    cia_tags: List[str] = field(default_factory=list)
    cia_scores: Dict[str, int] = field(default_factory=dict)
    days_since_published: int = 0
    relevance_score: int = 0
    processed: bool = False

    def has_iocs(self) -> bool:
        return self.iocs.total() > 0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Metadata":
        """Rebuild metadata from its stored dictionary form."""
        values = dict(data)
        iocs = values.pop("iocs", None) or {}
        known = set(cls.__dataclass_fields__)
        values = {k: v for k, v in values.items() if k in known}
        return cls(iocs=IOCs(**iocs), **values)


@dataclass
class Article:
    """A news article produced by a feed source."""

    title: str
    description: str
    link: str
    pub_date: datetime
    source_name: str
    source_color: str = ""
    source_category: str = "general"  # "general" | "corporate" | "intelligence" | "blog"
    thumbnail: Optional[str] = None
    author: Optional[str] = None
    summary: Optional[str] = None
    summary_source: Optional[str] = None  # "ai" | "extractive"
    metadata: Optional[Metadata] = None

    def __post_init__(self):
        """Ensure text fields are strings and the publish date is timezone-aware."""
        if self.title is None:
            self.title = ""
        if self.description is None:
            self.description = ""
        self.pub_date = as_utc(self.pub_date)

    @property
    def id(self) -> str:
        return article_id(self.link)

    @property
    def text(self) -> str:
        """Title and description joined, the text every extractor reads."""
        return f"{self.title} {self.description}"

    def to_dict(self) -> Dict[str, Any]:
        """Serialize the article to a JSON-compatible document."""
        pub_date = self.pub_date
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "link": self.link,
            "pubDate": pub_date.isoformat(),
            "sourceName": self.source_name,
            "sourceColor": self.source_color,
            "sourceCategory": self.source_category,
            "thumbnail": self.thumbnail or "",
            "author": self.author or "",
            "summary": self.summary or "",
            "summarySource": self.summary_source or "",
            "metadata": self.metadata.to_dict() if self.metadata else {},
            "year": pub_date.year,
            "month": pub_date.month,
            "day": pub_date.day,
            "dateKey": pub_date.strftime("%Y-%m-%d"),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Article":
        """Rebuild an article from a stored document."""
        metadata = data.get("metadata") or None
        return cls(
            title=data.get("title", ""),
            description=data.get("description", ""),
            link=data.get("link", ""),
            pub_date=date_parser.isoparse(data["pubDate"]),
            source_name=data.get("sourceName", ""),
            source_color=data.get("sourceColor", ""),
            source_category=data.get("sourceCategory", "general"),
            thumbnail=data.get("thumbnail") or None,
            author=data.get("author") or None,
            summary=data.get("summary") or None,
            summary_source=data.get("summarySource") or None,
            metadata=Metadata.from_dict(metadata) if metadata else None,
        )


@dataclass(frozen=True)
class FilterDecision:
    """Outcome of the pre-API relevance gate for one article."""

    process: bool
    category: str  # "technical" | "business" | "blocked" | "no_match"
    matched_keyword: Optional[str] = None
    reason: str = ""
    audience: str = "N/A"


# camelCase option names accepted by FilterConfig.from_dict
_FILTER_ALIASES = {
    "onlyWithCVE": "only_with_cve",
    "minCVSS": "min_cvss",
    "onlyWithPatch": "only_with_patch",
    "onlyWithIOCs": "only_with_iocs",
    "onlyOfficialSources": "only_official_sources",
    "onlyRegulatory": "only_regulatory",
    "severityLevel": "severity_level",
    "minRelevanceScore": "min_relevance_score",
    "maxDaysOld": "max_days_old",
    "threatActor": "threat_actor",
    "mitreAttackTechnique": "mitre_attack_technique",
}


@dataclass
class FilterConfig:
    """Filter options; every option that is set narrows the result (logical AND)."""

    only_with_cve: bool = False
    min_cvss: Optional[float] = None
    only_with_patch: bool = False
    only_with_iocs: bool = False
    only_official_sources: bool = False
    only_regulatory: bool = False
    severity_level: str = "all"
    min_relevance_score: int = 0
    max_days_old: Optional[int] = None
    threat_actor: Optional[str] = None
    product: Optional[str] = None
    mitre_attack_technique: Optional[str] = None

    def __post_init__(self):
        """Normalize the severity option and reject unknown levels."""
        level = (self.severity_level or "all").lower()
        if level != "all" and level not in SEVERITY_LEVELS:
            raise ValueError(f"Unknown severity level: {self.severity_level}")
        self.severity_level = level

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FilterConfig":
        """Build a config from snake_case or camelCase keys, ignoring unknown ones."""
        known = set(cls.__dataclass_fields__)
        values = {}
        for key, value in (data or {}).items():
            name = _FILTER_ALIASES.get(key, key)
            if name in known:
                values[name] = value
        return cls(**values)
