"""News source catalogue."""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from .models import SOURCE_CATEGORIES

logger = logging.getLogger(__name__)


@dataclass
class FeedSource:
    """A security-news RSS/Atom feed."""

    key: str
    name: str
    rss: str
    color: str = "#7f8c8d"
    category: str = "general"  # "general" | "corporate" | "intelligence" | "blog"

    def __post_init__(self):
        if self.category not in SOURCE_CATEGORIES:
            logger.warning(f"Unknown category {self.category!r} for source {self.name}, using general")
            self.category = "general"

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FeedSource":
        name = data.get("name") or data.get("key") or "Unknown"
        return cls(
            key=data.get("key") or name.lower().replace(" ", ""),
            name=name,
            rss=data.get("rss") or data.get("url") or "",
            color=data.get("color", "#7f8c8d"),
            category=data.get("category", "general"),
        )


DEFAULT_SOURCES: List[FeedSource] = [
    FeedSource("thehackernews", "The Hacker News", "https://feeds.feedburner.com/TheHackersNews", "#e74c3c", "general"),
    FeedSource("bleepingcomputer", "BleepingComputer", "https://www.bleepingcomputer.com/feed/", "#2ecc71", "general"),
    FeedSource("darkreading", "Dark Reading", "https://www.darkreading.com/rss.xml", "#00a86b", "general"),
    FeedSource("securityweek", "SecurityWeek", "https://feeds.feedburner.com/securityweek", "#34495e", "general"),
    FeedSource("cybersecuritynews", "Cybersecurity News", "https://cybersecuritynews.com/feed/", "#9b59b6", "general"),
    FeedSource("unaaldia", "Una al Día (Hispasec)", "http://feeds.feedburner.com/hispasec/zCAd", "#3498db", "general"),
    FeedSource("uscert", "US-CERT (CISA)", "https://www.cisa.gov/cybersecurity-advisories/all.xml", "#c0392b", "intelligence"),
    FeedSource("virustotal", "VirusTotal Blog", "https://blog.virustotal.com/feeds/posts/default", "#27ae60", "intelligence"),
    FeedSource("unit42", "Palo Alto Unit42", "https://unit42.paloaltonetworks.com/feed/", "#fa582d", "intelligence"),
    FeedSource("talos", "Talos Intelligence", "https://blog.talosintelligence.com/rss/", "#1abc9c", "intelligence"),
    FeedSource("cisco", "Cisco Security", "https://blogs.cisco.com/security/feed", "#049fd9", "corporate"),
    FeedSource("microsoft", "Microsoft Security", "https://www.microsoft.com/en-us/security/blog/feed/", "#0078d4", "corporate"),
    FeedSource("googlecloud", "Google Cloud Security", "https://cloudblog.withgoogle.com/topics/security/rss/", "#4285f4", "corporate"),
    FeedSource("crowdstrike", "CrowdStrike", "https://www.crowdstrike.com/blog/feed/", "#e01f3d", "corporate"),
    FeedSource("krebsonsecurity", "Krebs on Security", "https://krebsonsecurity.com/feed/", "#16a085", "blog"),
    FeedSource("seguinfo", "Segu-Info", "http://feeds.feedburner.com/NoticiasSeguridadInformatica", "#f39c12", "blog"),
]


def load_sources(configs: Optional[List[Dict[str, Any]]]) -> List[FeedSource]:
    """Build sources from config entries, falling back to the defaults."""
    if not configs:
        return list(DEFAULT_SOURCES)
    return [FeedSource.from_dict(entry) for entry in configs]
