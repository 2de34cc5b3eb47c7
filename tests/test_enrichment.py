"""Unit tests for ciso_feed/enrichment.py: metadata enrichment."""

import sys
import os
import copy
from datetime import datetime, timedelta, timezone

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import pytest
from ciso_feed.enrichment import days_since, enrich_article
from ciso_feed.models import Article, Metadata

NOW = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)


def _make_article(title, description="", **kwargs):
    base = dict(
        title=title,
        description=description,
        link="https://example.com/news/1",
        pub_date=NOW - timedelta(days=2),
        source_name="Example News",
    )
    base.update(kwargs)
    return Article(**base)


@pytest.fixture
def critical_article():
    return _make_article("CVE-2024-12345 critical vulnerability, CVSS: 9.8, actively exploited")


def test_enrich_scenario(critical_article):
    article = enrich_article(critical_article, now=NOW)
    meta = article.metadata
    assert meta.cves == ["CVE-2024-12345"]
    assert meta.cvss_score == 9.8
    assert meta.severity_level == "critical"
    assert meta.cia_tags == ["integrity"]
    assert meta.relevance_score == 60
    assert meta.processed is True


def test_enrich_returns_same_object(critical_article):
    assert enrich_article(critical_article, now=NOW) is critical_article


def test_enrich_is_idempotent(critical_article):
    enrich_article(critical_article, now=NOW)
    snapshot = copy.deepcopy(critical_article.metadata)

    # A later "now" must not change anything on the second pass
    enrich_article(critical_article, now=NOW + timedelta(days=30))
    assert critical_article.metadata == snapshot
    assert critical_article.metadata.days_since_published == 2


def test_processed_metadata_is_left_untouched():
    preset = Metadata(relevance_score=42, processed=True)
    article = _make_article("CVE-2024-0001 zero-day", metadata=preset)
    enrich_article(article, now=NOW)
    assert article.metadata is preset
    assert article.metadata.cves == []
    assert article.metadata.relevance_score == 42


def test_unprocessed_metadata_is_recomputed():
    article = _make_article("CVE-2024-0001 zero-day", metadata=Metadata(relevance_score=42))
    enrich_article(article, now=NOW)
    assert article.metadata.cves == ["CVE-2024-0001"]
    assert article.metadata.processed is True


def test_low_signal_article_skips_deep_extraction():
    article = _make_article("LockBit affiliates hosted files at 203.0.113.7, GDPR questions raised")
    meta = enrich_article(article, now=NOW).metadata
    assert meta.severity_level == "low"
    assert meta.threat_actors == []
    assert meta.iocs.total() == 0
    assert meta.mitre_attack_techniques == []
    # Cheap fields are still filled in
    assert meta.regulatory_keywords == ["GDPR"]
    assert meta.relevance_score == 5


def test_high_severity_triggers_deep_extraction():
    article = _make_article("Severe LockBit campaign uses 203.0.113.7")
    meta = enrich_article(article, now=NOW).metadata
    assert meta.severity_level == "high"
    assert meta.threat_actors == ["LockBit"]
    assert meta.iocs.ips == ["203.0.113.7"]
    assert meta.relevance_score == 25


def test_cve_triggers_deep_extraction():
    article = _make_article("CVE-2025-1111 abused via T1190 against Citrix")
    meta = enrich_article(article, now=NOW).metadata
    assert meta.mitre_attack_techniques == ["T1190"]
    assert meta.affected_products == ["Citrix"]


def test_official_source_flag():
    article = _make_article("Advisory published", source_name="US-CERT (CISA)")
    meta = enrich_article(article, now=NOW).metadata
    assert meta.is_official_source is True
    assert meta.relevance_score == 10


def test_empty_description_does_not_fail():
    article = _make_article("Plain headline", description="")
    meta = enrich_article(article, now=NOW).metadata
    assert meta.cves == []
    assert meta.cvss_score is None
    assert meta.processed is True


class TestDaysSince:
    def test_floors_partial_days(self):
        assert days_since(NOW - timedelta(days=3, hours=5), NOW) == 3

    def test_same_day(self):
        assert days_since(NOW - timedelta(hours=23), NOW) == 0

    def test_naive_dates_are_utc(self):
        naive = datetime(2026, 10, 16, 12, 0)
        assert days_since(naive, NOW) == 3
