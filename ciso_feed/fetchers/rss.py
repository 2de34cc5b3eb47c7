"""RSS/Atom feed fetcher producing Article records."""

import html
import logging
import re
from datetime import datetime, timezone
from typing import List, Optional, Union

import feedparser
import requests
from dateutil import parser as date_parser

from ..models import Article
from ..sources import FeedSource

logger = logging.getLogger(__name__)

MAX_ARTICLES_PER_SOURCE = 25
REQUEST_TIMEOUT = 30
USER_AGENT = "ciso-feed/1.0"

_TAG_RE = re.compile(r"<[^>]+>")
_SPACE_RE = re.compile(r"\s{2,}")


def strip_html(value: Optional[str]) -> str:
    """Remove tags and entities from feed HTML."""
    if not value:
        return ""
    text = _TAG_RE.sub(" ", value)
    text = html.unescape(text).replace("\xa0", " ")
    return _SPACE_RE.sub(" ", text).strip()


def parse_date(date_str: str) -> datetime:
    """Parse a date string to datetime, handling various formats."""
    try:
        parsed = date_parser.parse(date_str)
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        return parsed
    except (ValueError, TypeError, OverflowError) as e:
        logger.warning(f"Failed to parse date '{date_str}': {e}, using current time")
        return datetime.now(timezone.utc)


def _thumbnail(entry) -> Optional[str]:
    for media in entry.get("media_content", []) or []:
        if media.get("url"):
            return media["url"]
    for thumb in entry.get("media_thumbnail", []) or []:
        if thumb.get("url"):
            return thumb["url"]
    for enclosure in entry.get("enclosures", []) or []:
        if str(enclosure.get("type", "")).startswith("image") and enclosure.get("href"):
            return enclosure["href"]
    return None


def _description(entry) -> str:
    description = strip_html(entry.get("summary", "") or entry.get("description", ""))
    if not description and entry.get("content"):
        # Some feeds only publish content:encoded
        description = strip_html(entry.content[0].get("value", ""))
    return description


def parse_feed(
    raw: Union[bytes, str],
    source: FeedSource,
    limit: int = MAX_ARTICLES_PER_SOURCE,
) -> List[Article]:
    """
    Parse raw feed content into articles.

    Args:
        raw: RSS or Atom document
        source: Feed the content came from
        limit: Maximum number of entries to read

    Returns:
        List of Article objects; entries without a title or link are skipped
    """
    feed = feedparser.parse(raw)

    if feed.bozo and feed.get("bozo_exception"):
        logger.warning(f"RSS feed parsing warning for {source.name}: {feed.bozo_exception}")

    articles = []
    if not feed.entries:
        logger.warning(f"No entries found in RSS feed: {source.name}")
        return articles

    for entry in feed.entries[:limit]:
        title = strip_html(entry.get("title", ""))
        link = (entry.get("link") or "").strip()
        if not title or not link:
            continue

        published_str = entry.get("published") or entry.get("updated") or ""
        pub_date = parse_date(published_str) if published_str else datetime.now(timezone.utc)

        articles.append(
            Article(
                title=title,
                description=_description(entry),
                link=link,
                pub_date=pub_date,
                source_name=source.name,
                source_color=source.color,
                source_category=source.category,
                thumbnail=_thumbnail(entry),
                author=entry.get("author") or None,
            )
        )

    return articles


def fetch_rss(
    source: FeedSource,
    limit: int = MAX_ARTICLES_PER_SOURCE,
    session: Optional[requests.Session] = None,
) -> List[Article]:
    """
    Download and parse one source's feed.

    Raises:
        requests.exceptions.RequestException: If the feed cannot be downloaded
    """
    logger.debug(f"Fetching RSS feed: {source.name} from {source.rss}")
    http = session or requests
    response = http.get(source.rss, timeout=REQUEST_TIMEOUT, headers={"User-Agent": USER_AGENT})
    response.raise_for_status()
    articles = parse_feed(response.content, source, limit)
    logger.info(f"Successfully parsed {len(articles)} items from {source.name}")
    return articles
