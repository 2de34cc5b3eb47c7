"""Unit tests for ciso_feed/filters.py: filtering, sorting and stats."""

import sys
import os
from datetime import datetime, timedelta, timezone

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import pytest
from ciso_feed.filters import (
    NewsView,
    apply_filters,
    calculate_metadata_stats,
    sort_by_priority,
)
from ciso_feed.models import IOCs, Article, FilterConfig, Metadata

BASE_DATE = datetime(2026, 10, 1, tzinfo=timezone.utc)


def _make_article(name, pub_date=BASE_DATE, **meta):
    return Article(
        title=name,
        description="",
        link=f"https://example.com/{name}",
        pub_date=pub_date,
        source_name="Example News",
        metadata=Metadata(processed=True, **meta),
    )


@pytest.fixture
def articles():
    return [
        _make_article(
            "a",
            cves=["CVE-2024-0001"],
            cvss_score=9.8,
            severity_level="critical",
            relevance_score=60,
            days_since_published=1,
        ),
        _make_article(
            "b",
            threat_actors=["LockBit"],
            affected_products=["VMware ESXi"],
            iocs=IOCs(ips=["203.0.113.7"]),
            severity_level="high",
            relevance_score=40,
            days_since_published=5,
        ),
        _make_article(
            "c",
            patch_available=True,
            is_official_source=True,
            regulatory_keywords=["NIS2"],
            mitre_attack_techniques=["T1190"],
            cvss_score=6.5,
            relevance_score=25,
            days_since_published=10,
        ),
        _make_article("d", relevance_score=0, days_since_published=30),
    ]


def _names(articles):
    return [a.title for a in articles]


# ---------------------------------------------------------------------------
# apply_filters
# ---------------------------------------------------------------------------

def test_default_config_keeps_everything(articles):
    assert _names(apply_filters(articles, FilterConfig())) == ["a", "b", "c", "d"]
    assert _names(apply_filters(articles)) == ["a", "b", "c", "d"]


@pytest.mark.parametrize(
    "options,expected",
    [
        ({"only_with_cve": True}, ["a"]),
        ({"min_cvss": 7.0}, ["a"]),
        ({"min_cvss": 6.0}, ["a", "c"]),
        ({"threat_actor": "lock"}, ["b"]),
        ({"product": "esxi"}, ["b"]),
        ({"only_with_patch": True}, ["c"]),
        ({"only_official_sources": True}, ["c"]),
        ({"severity_level": "high"}, ["b"]),
        ({"severity_level": "all"}, ["a", "b", "c", "d"]),
        ({"max_days_old": 7}, ["a", "b"]),
        ({"min_relevance_score": 30}, ["a", "b"]),
        ({"only_with_iocs": True}, ["b"]),
        ({"only_regulatory": True}, ["c"]),
        ({"mitre_attack_technique": "t1190"}, ["c"]),
    ],
)
def test_single_option(articles, options, expected):
    assert _names(apply_filters(articles, FilterConfig(**options))) == expected


def test_options_combine_with_and(articles):
    config = FilterConfig(min_relevance_score=20, max_days_old=7)
    assert _names(apply_filters(articles, config)) == ["a", "b"]
    config = FilterConfig(min_relevance_score=20, max_days_old=7, only_with_iocs=True)
    assert _names(apply_filters(articles, config)) == ["b"]


def test_missing_cvss_fails_floor(articles):
    # "b" and "d" have no CVSS score at all
    kept = apply_filters(articles, FilterConfig(min_cvss=1.0))
    assert "b" not in _names(kept)
    assert "d" not in _names(kept)


def test_zero_values_add_no_constraint(articles):
    config = FilterConfig(min_cvss=0, max_days_old=0, min_relevance_score=0)
    assert len(apply_filters(articles, config)) == 4


def test_adding_an_option_never_grows_result(articles):
    loose = apply_filters(articles, FilterConfig(max_days_old=15))
    strict = apply_filters(articles, FilterConfig(max_days_old=15, only_with_patch=True))
    assert set(_names(strict)) <= set(_names(loose))


def test_unenriched_articles_are_treated_as_empty():
    bare = Article(
        title="bare",
        description="",
        link="https://example.com/bare",
        pub_date=BASE_DATE,
        source_name="Example News",
    )
    assert apply_filters([bare], FilterConfig()) == [bare]
    assert apply_filters([bare], FilterConfig(only_with_cve=True)) == []


def test_filter_config_from_camel_case():
    config = FilterConfig.from_dict(
        {"onlyWithCVE": True, "minCVSS": 7.5, "severityLevel": "critical", "unknownKey": 1}
    )
    assert config.only_with_cve is True
    assert config.min_cvss == 7.5
    assert config.severity_level == "critical"


def test_filter_config_severity_is_normalized():
    assert FilterConfig(severity_level="HIGH").severity_level == "high"
    assert FilterConfig(severity_level="").severity_level == "all"
    assert FilterConfig.from_dict({"severityLevel": "Critical"}).severity_level == "critical"


def test_filter_config_rejects_unknown_severity():
    with pytest.raises(ValueError):
        FilterConfig(severity_level="severe")
    with pytest.raises(ValueError):
        FilterConfig.from_dict({"severityLevel": "urgent"})


def test_priority_techniques_counted_once_per_article():
    batch = [
        _make_article("x", mitre_attack_techniques=["T1190", "T1059"]),
        _make_article("y", mitre_attack_techniques=["T9999"]),
    ]
    assert calculate_metadata_stats(batch)["with_priority_techniques"] == 1


def test_filter_config_from_snake_case():
    config = FilterConfig.from_dict({"max_days_old": 3, "product": "Citrix"})
    assert config.max_days_old == 3
    assert config.product == "Citrix"


# ---------------------------------------------------------------------------
# sort_by_priority
# ---------------------------------------------------------------------------

def test_sort_by_relevance_first(articles):
    shuffled = [articles[3], articles[1], articles[0], articles[2]]
    assert _names(sort_by_priority(shuffled)) == ["a", "b", "c", "d"]


def test_severity_breaks_relevance_tie():
    high = _make_article("high", severity_level="high", relevance_score=50)
    critical = _make_article("critical", severity_level="critical", relevance_score=50)
    assert _names(sort_by_priority([high, critical])) == ["critical", "high"]


def test_newer_article_wins_full_tie():
    older = _make_article("older", BASE_DATE, severity_level="high", relevance_score=50)
    newer = _make_article("newer", BASE_DATE + timedelta(days=1), severity_level="high", relevance_score=50)
    assert _names(sort_by_priority([older, newer])) == ["newer", "older"]


def test_sort_returns_new_list(articles):
    original = list(articles)
    result = sort_by_priority(articles)
    assert result is not articles
    assert articles == original


def test_sort_is_fixed_point(articles):
    once = sort_by_priority(articles)
    assert sort_by_priority(once) == once


def test_sort_is_stable_for_exact_ties():
    first = _make_article("first", relevance_score=10)
    second = _make_article("second", relevance_score=10)
    assert _names(sort_by_priority([first, second])) == ["first", "second"]


# ---------------------------------------------------------------------------
# calculate_metadata_stats
# ---------------------------------------------------------------------------

def test_stats(articles):
    stats = calculate_metadata_stats(articles)
    assert stats["total_articles"] == 4
    assert stats["with_cve"] == 1
    assert stats["with_high_cvss"] == 1
    assert stats["with_threat_actors"] == 1
    assert stats["with_iocs"] == 1
    assert stats["critical"] == 1
    assert stats["high"] == 1
    assert stats["with_patch"] == 1
    assert stats["medium"] == 0
    assert stats["low"] == 2
    assert stats["with_priority_techniques"] == 1
    assert stats["avg_relevance_score"] == 31
    assert stats["top_threat_actors"] == [("LockBit", 1)]
    assert stats["top_cves"] == [("CVE-2024-0001", 1)]


def test_stats_on_empty_collection():
    stats = calculate_metadata_stats([])
    assert stats["total_articles"] == 0
    assert stats["avg_relevance_score"] == 0
    assert stats["top_products"] == []


def test_top_lists_are_ranked():
    batch = [
        _make_article("x", threat_actors=["APT29", "Turla"]),
        _make_article("y", threat_actors=["APT29"]),
    ]
    stats = calculate_metadata_stats(batch, top=1)
    assert stats["top_threat_actors"] == [("APT29", 2)]


# ---------------------------------------------------------------------------
# NewsView
# ---------------------------------------------------------------------------

class TestNewsView:
    def test_visible_is_filtered_and_sorted(self, articles):
        view = NewsView(list(reversed(articles)))
        assert _names(view.visible()) == ["a", "b", "c", "d"]

    def test_update_rejects_unknown_severity(self, articles):
        view = NewsView(articles)
        with pytest.raises(ValueError):
            view.update(severity_level="severe")
        assert view.config.severity_level == "all"

    def test_update_narrows_and_reset_restores(self, articles):
        view = NewsView(articles)
        assert _names(view.update(max_days_old=7)) == ["a", "b"]
        assert _names(view.update(severity_level="high")) == ["b"]
        assert view.config.max_days_old == 7
        assert _names(view.reset()) == ["a", "b", "c", "d"]

    def test_collection_is_never_mutated(self, articles):
        view = NewsView(articles)
        view.update(only_with_cve=True)
        assert len(view.all_articles) == 4

    def test_stats_follow_visible_articles(self, articles):
        view = NewsView(articles, FilterConfig(only_with_cve=True))
        assert view.stats()["total_articles"] == 1
