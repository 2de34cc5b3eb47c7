"""SQLite document store for enriched articles and API usage."""

import json
import logging
import sqlite3
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

from .budget import UsageTracker
from .gate import GateStats
from .models import Article, article_id, as_utc

logger = logging.getLogger(__name__)

# Flag columns that query_articles() accepts as keyword filters
FLAG_COLUMNS = (
    "visible",
    "processed",
    "has_cve",
    "has_patch",
    "has_iocs",
    "is_official",
    "is_regulatory",
    "has_summary",
)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _index_columns(document: Dict[str, Any]) -> Dict[str, Any]:
    """Derive the queryable columns from a stored document."""
    meta = document.get("metadata") or {}
    iocs = meta.get("iocs") or {}
    return {
        "link": document.get("link", ""),
        "pub_date": document.get("pubDate", ""),
        "date_key": document.get("dateKey", ""),
        "year": document.get("year"),
        "month": document.get("month"),
        "source_name": document.get("sourceName", ""),
        "visible": int(document.get("visible", True)),
        "processed": int(bool(meta.get("processed"))),
        "severity_level": meta.get("severity_level", "low"),
        "relevance_score": int(meta.get("relevance_score", 0)),
        "cvss_score": meta.get("cvss_score"),
        "has_cve": int(bool(meta.get("cves"))),
        "has_patch": int(bool(meta.get("patch_available"))),
        "has_iocs": int(any(iocs.get(kind) for kind in ("ips", "domains", "hashes"))),
        "is_official": int(bool(meta.get("is_official_source"))),
        "is_regulatory": int(bool(meta.get("regulatory_keywords"))),
        "has_summary": int(bool(document.get("summary"))),
    }


class Storage:
    """Manages the SQLite database holding news documents and usage logs."""

    def __init__(self, db_path: str = "data/news.sqlite"):
        """Initialize storage with database path."""
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_db()

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def _init_db(self):
        """Initialize the database schema."""
        conn = self._connect()
        cursor = conn.cursor()
        cursor.execute(
            """
            CREATE TABLE IF NOT EXISTS news (
                id TEXT PRIMARY KEY,
                link TEXT NOT NULL,
                pub_date TEXT NOT NULL,
                date_key TEXT,
                year INTEGER,
                month INTEGER,
                source_name TEXT,
                visible INTEGER NOT NULL DEFAULT 1,
                processed INTEGER NOT NULL DEFAULT 0,
                severity_level TEXT,
                relevance_score INTEGER NOT NULL DEFAULT 0,
                cvss_score REAL,
                has_cve INTEGER NOT NULL DEFAULT 0,
                has_patch INTEGER NOT NULL DEFAULT 0,
                has_iocs INTEGER NOT NULL DEFAULT 0,
                is_official INTEGER NOT NULL DEFAULT 0,
                is_regulatory INTEGER NOT NULL DEFAULT 0,
                has_summary INTEGER NOT NULL DEFAULT 0,
                document TEXT NOT NULL,
                saved_at TEXT NOT NULL,
                updated_at TEXT NOT NULL
            )
            """
        )
        cursor.execute("CREATE INDEX IF NOT EXISTS idx_news_pub_date ON news (pub_date)")
        cursor.execute(
            """
            CREATE TABLE IF NOT EXISTS api_usage (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                timestamp TEXT NOT NULL,
                api_calls INTEGER NOT NULL,
                estimated_cost REAL NOT NULL,
                actual_cost REAL NOT NULL,
                input_tokens INTEGER NOT NULL,
                output_tokens INTEGER NOT NULL,
                articles_processed INTEGER NOT NULL,
                api_errors INTEGER NOT NULL,
                fallback_used INTEGER NOT NULL,
                filter_total INTEGER NOT NULL DEFAULT 0,
                filter_approved INTEGER NOT NULL DEFAULT 0,
                filter_rejected INTEGER NOT NULL DEFAULT 0,
                filter_technical INTEGER NOT NULL DEFAULT 0,
                filter_business INTEGER NOT NULL DEFAULT 0,
                filter_blocked INTEGER NOT NULL DEFAULT 0,
                filter_no_match INTEGER NOT NULL DEFAULT 0
            )
            """
        )
        conn.commit()
        conn.close()
        logger.debug(f"Initialized database at {self.db_path}")

    def get_document(self, doc_id: str) -> Optional[Dict[str, Any]]:
        """Fetch a raw stored document by ID."""
        conn = self._connect()
        row = conn.execute("SELECT document FROM news WHERE id = ?", (doc_id,)).fetchone()
        conn.close()
        return json.loads(row["document"]) if row else None

    def get_article(self, doc_id: str) -> Optional[Article]:
        document = self.get_document(doc_id)
        return Article.from_dict(document) if document else None

    def exists(self, link: str) -> bool:
        """Check if an article with this link has been stored."""
        conn = self._connect()
        row = conn.execute("SELECT 1 FROM news WHERE id = ?", (article_id(link),)).fetchone()
        conn.close()
        return row is not None

    def upsert_document(self, doc_id: str, fields: Dict[str, Any]) -> Dict[str, Any]:
        """
        Insert a document or merge fields into the stored one.

        Stored fields that are not part of ``fields`` are kept.

        Returns:
            The merged document
        """
        now = _now()
        conn = self._connect()
        try:
            row = conn.execute(
                "SELECT document, saved_at FROM news WHERE id = ?", (doc_id,)
            ).fetchone()
            if row:
                document = json.loads(row["document"])
                saved_at = row["saved_at"]
            else:
                document = {"visible": True}
                saved_at = now
            document.update(fields)
            document["id"] = doc_id
            document["updatedAt"] = now
            document.setdefault("savedAt", saved_at)

            columns = _index_columns(document)
            columns.update(id=doc_id, document=json.dumps(document), saved_at=saved_at, updated_at=now)
            names = ", ".join(columns)
            placeholders = ", ".join("?" for _ in columns)
            conn.execute(
                f"INSERT OR REPLACE INTO news ({names}) VALUES ({placeholders})",
                tuple(columns.values()),
            )
            conn.commit()
        finally:
            conn.close()
        logger.debug(f"Upserted news document: {doc_id}")
        return document

    def upsert_article(self, article: Article) -> Dict[str, Any]:
        return self.upsert_document(article.id, article.to_dict())

    def save_articles(self, articles: Iterable[Article]) -> int:
        """Upsert every article, skipping (and logging) ones that fail."""
        saved = 0
        for article in articles:
            try:
                self.upsert_article(article)
                saved += 1
            except (sqlite3.Error, TypeError, ValueError) as e:
                logger.error(f"Error saving article '{article.title[:60]}': {e}")
        logger.info(f"Saved {saved} articles to {self.db_path}")
        return saved

    def query_articles(
        self,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        severity_level: Optional[str] = None,
        min_relevance: Optional[int] = None,
        limit: Optional[int] = None,
        **flags: bool,
    ) -> List[Article]:
        """
        Query stored articles by date range and metadata fields.

        Args:
            start: Earliest publish date (inclusive)
            end: Latest publish date (inclusive)
            severity_level: Exact severity level
            min_relevance: Minimum relevance score
            limit: Maximum number of results
            **flags: Boolean columns from FLAG_COLUMNS, e.g. has_cve=True

        Returns:
            Articles ordered by publish date, newest first
        """
        clauses = []
        params: List[Any] = []
        for name, value in flags.items():
            if name not in FLAG_COLUMNS:
                raise ValueError(f"Unknown query flag: {name}")
            clauses.append(f"{name} = ?")
            params.append(int(bool(value)))
        if start is not None:
            clauses.append("pub_date >= ?")
            params.append(as_utc(start).isoformat())
        if end is not None:
            clauses.append("pub_date <= ?")
            params.append(as_utc(end).isoformat())
        if severity_level:
            clauses.append("severity_level = ?")
            params.append(severity_level)
        if min_relevance is not None:
            clauses.append("relevance_score >= ?")
            params.append(min_relevance)

        sql = "SELECT document FROM news"
        if clauses:
            sql += " WHERE " + " AND ".join(clauses)
        sql += " ORDER BY pub_date DESC"
        if limit:
            sql += " LIMIT ?"
            params.append(limit)

        conn = self._connect()
        rows = conn.execute(sql, params).fetchall()
        conn.close()
        return [Article.from_dict(json.loads(row["document"])) for row in rows]

    def get_recent_articles(self, days: int = 7) -> List[Article]:
        start = datetime.now(timezone.utc) - timedelta(days=days)
        return self.query_articles(start=start, visible=True)

    def get_month_articles(self, year: int, month: int) -> List[Article]:
        conn = self._connect()
        rows = conn.execute(
            "SELECT document FROM news WHERE visible = 1 AND year = ? AND month = ? "
            "ORDER BY pub_date DESC",
            (year, month),
        ).fetchall()
        conn.close()
        return [Article.from_dict(json.loads(row["document"])) for row in rows]

    def count(self) -> int:
        """Get total count of stored articles."""
        conn = self._connect()
        count = conn.execute("SELECT COUNT(*) FROM news").fetchone()[0]
        conn.close()
        return count

    def delete_older_than(self, days: int = 90) -> int:
        """Delete articles published more than ``days`` days ago."""
        cutoff = (datetime.now(timezone.utc) - timedelta(days=days)).isoformat()
        conn = self._connect()
        cursor = conn.execute("DELETE FROM news WHERE pub_date < ?", (cutoff,))
        conn.commit()
        deleted = cursor.rowcount
        conn.close()
        logger.info(f"Deleted {deleted} articles older than {days} days")
        return deleted

    def log_usage(self, tracker: UsageTracker, gate_stats: Optional[GateStats] = None):
        """Record one run's API usage and gate statistics."""
        stats = gate_stats or GateStats()
        conn = self._connect()
        conn.execute(
            """
            INSERT INTO api_usage (
                timestamp, api_calls, estimated_cost, actual_cost, input_tokens,
                output_tokens, articles_processed, api_errors, fallback_used,
                filter_total, filter_approved, filter_rejected, filter_technical,
                filter_business, filter_blocked, filter_no_match
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                _now(),
                tracker.api_calls,
                tracker.estimated_cost,
                tracker.actual_cost,
                tracker.input_tokens,
                tracker.output_tokens,
                tracker.articles_processed,
                tracker.api_errors,
                tracker.fallback_used,
                stats.total,
                stats.approved,
                stats.rejected,
                stats.by_category.get("technical", 0),
                stats.by_category.get("business", 0),
                stats.by_category.get("blocked", 0),
                stats.by_category.get("no_match", 0),
            ),
        )
        conn.commit()
        conn.close()
        logger.debug("Recorded API usage")

    def monthly_cost(self, now: Optional[datetime] = None) -> float:
        """Sum the actual API cost logged since the start of the month."""
        now = as_utc(now) if now else datetime.now(timezone.utc)
        month_start = now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)
        conn = self._connect()
        total = conn.execute(
            "SELECT COALESCE(SUM(actual_cost), 0) FROM api_usage WHERE timestamp >= ?",
            (month_start.isoformat(),),
        ).fetchone()[0]
        conn.close()
        return float(total)
