"""Pipeline tests for ciso_feed/main.py using fake fetchers and a temporary database."""

import sys
import os
import logging
from datetime import datetime, timedelta, timezone

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import pytest
import requests
from ciso_feed import main as pipeline
from ciso_feed.budget import SafetyConfig
from ciso_feed.gate import GateStats
from ciso_feed.models import Article
from ciso_feed.storage import Storage
from ciso_feed.summarize import Summarizer


def _make_article(source, title, description=""):
    slug = title.lower().replace(" ", "-")
    return Article(
        title=title,
        description=description,
        link=f"https://example.com/{source.key}/{slug}",
        pub_date=datetime.now(timezone.utc) - timedelta(days=1),
        source_name=source.name,
        source_color=source.color,
        source_category=source.category,
    )


def fake_fetcher(source, limit):
    if source.key == "broken":
        raise requests.exceptions.ConnectionError("connection refused")
    if source.key == "corrupt":
        raise ValueError("malformed feed document")
    if source.key == "empty":
        return []
    return [
        _make_article(
            source,
            "Microsoft fixes zero-day exploited by attackers, CVSS 9.8",
            "The flaw affects Exchange servers worldwide.",
        ),
        _make_article(source, "Quarterly earnings call scheduled"),
    ][:limit]


@pytest.fixture(autouse=True)
def no_api_key(monkeypatch):
    monkeypatch.delenv("CLAUDE_API_KEY", raising=False)


@pytest.fixture
def config(tmp_path):
    return {
        "app": {"db_path": str(tmp_path / "news.sqlite"), "max_articles_per_source": 10},
        "safety": {"max_calls_per_run": 5},
        "sources": [
            {"key": "good", "name": "Good Feed", "rss": "https://good/feed"},
            {"key": "broken", "name": "Broken Feed", "rss": "https://broken/feed"},
            {"key": "empty", "name": "Empty Feed", "rss": "https://empty/feed"},
            {"key": "nourl", "name": "No URL Feed"},
        ],
    }


def test_run_once_processes_and_stores(config):
    articles = pipeline.run_once(config, use_ai=False, fetcher=fake_fetcher)

    assert len(articles) == 2
    for article in articles:
        assert article.metadata.processed is True
        assert article.summary
        assert article.summary_source == "extractive"

    zero_day = articles[0]
    assert zero_day.metadata.cvss_score == 9.8
    assert zero_day.metadata.severity_level == "critical"
    assert zero_day.metadata.affected_products == ["Exchange"]
    assert zero_day.summary == "The flaw affects Exchange servers worldwide."

    storage = Storage(config["app"]["db_path"])
    assert storage.count() == 2
    assert storage.exists(zero_day.link)
    assert storage.monthly_cost() == 0.0


def test_run_once_is_repeatable(config):
    pipeline.run_once(config, use_ai=False, fetcher=fake_fetcher)
    pipeline.run_once(config, use_ai=False, fetcher=fake_fetcher)
    assert Storage(config["app"]["db_path"]).count() == 2


def test_dry_run_writes_nothing(config, tmp_path):
    articles = pipeline.run_once(config, dry_run=True, fetcher=fake_fetcher)
    assert len(articles) == 2
    assert not (tmp_path / "news.sqlite").exists()


def test_failing_source_does_not_stop_run(config):
    config["sources"] = [
        {"key": "broken", "name": "Broken Feed", "rss": "https://broken/feed"},
        {"key": "good", "name": "Good Feed", "rss": "https://good/feed"},
    ]
    articles = pipeline.run_once(config, use_ai=False, fetcher=fake_fetcher)
    assert {a.source_name for a in articles} == {"Good Feed"}


def test_unexpected_fetch_error_does_not_stop_run(config, caplog):
    config["sources"] = [
        {"key": "corrupt", "name": "Corrupt Feed", "rss": "https://corrupt/feed"},
        {"key": "good", "name": "Good Feed", "rss": "https://good/feed"},
    ]
    with caplog.at_level(logging.INFO, logger="ciso_feed.main"):
        articles = pipeline.run_once(config, use_ai=False, fetcher=fake_fetcher)

    assert {a.source_name for a in articles} == {"Good Feed"}
    assert Storage(config["app"]["db_path"]).count() == 2
    assert "Error processing source Corrupt Feed" in caplog.text
    assert "Sources: 1 ok, 1 failed" in caplog.text


def test_processing_error_skips_only_that_source(config, monkeypatch):
    real_enrich = pipeline.enrich_article

    def flaky_enrich(article):
        if article.source_name == "Bad Feed":
            raise KeyError("metadata")
        return real_enrich(article)

    monkeypatch.setattr(pipeline, "enrich_article", flaky_enrich)
    config["sources"] = [
        {"key": "bad", "name": "Bad Feed", "rss": "https://bad/feed"},
        {"key": "good", "name": "Good Feed", "rss": "https://good/feed"},
    ]
    articles = pipeline.run_once(config, use_ai=False, fetcher=fake_fetcher)

    assert {a.source_name for a in articles} == {"Good Feed"}
    assert Storage(config["app"]["db_path"]).count() == 2


def test_per_source_limit_is_passed(config):
    config["app"]["max_articles_per_source"] = 1
    articles = pipeline.run_once(config, dry_run=True, fetcher=fake_fetcher)
    assert len(articles) == 1


# ---------------------------------------------------------------------------
# process_article
# ---------------------------------------------------------------------------

class FakeClient:
    def __init__(self):
        self.prompts = []

    def create(self, prompt):
        self.prompts.append(prompt)
        return {
            "content": [{"type": "text", "text": '{"summary": "Patched zero-day."}'}],
            "usage": {"input_tokens": 200, "output_tokens": 20},
        }


def test_approved_article_goes_to_summarizer():
    client = FakeClient()
    summarizer = Summarizer(SafetyConfig(), client=client)
    stats = GateStats()
    source = pipeline.FeedSource("x", "X", "https://x/feed")

    article = pipeline.process_article(_make_article(source, "Microsoft fixes zero-day"), summarizer, stats)

    assert article.summary == "Patched zero-day."
    assert article.summary_source == "ai"
    assert stats.approved == 1
    assert len(client.prompts) == 1


def test_rejected_article_never_calls_api():
    client = FakeClient()
    summarizer = Summarizer(SafetyConfig(), client=client)
    stats = GateStats()
    source = pipeline.FeedSource("x", "X", "https://x/feed")

    article = pipeline.process_article(
        _make_article(source, "Top 10 zero-day tips", "Read our list of the best tips for teams."),
        summarizer,
        stats,
    )

    assert client.prompts == []
    assert article.summary_source == "extractive"
    assert article.summary == "Read our list of the best tips for teams."
    assert stats.rejected == 1
    # Gate rejections are not budget fallbacks
    assert summarizer.tracker.fallback_used == 0
    assert article.metadata.processed is True


# ---------------------------------------------------------------------------
# Configuration and CLI
# ---------------------------------------------------------------------------

def test_load_config(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("app:\n  db_path: data/test.sqlite\nsafety:\n  max_calls_per_run: 3\n")
    config = pipeline.load_config(str(path))
    assert config["app"]["db_path"] == "data/test.sqlite"
    assert config["safety"]["max_calls_per_run"] == 3


def test_load_empty_config(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("")
    assert pipeline.load_config(str(path)) == {}


def test_load_missing_config(tmp_path):
    with pytest.raises(FileNotFoundError):
        pipeline.load_config(str(tmp_path / "missing.yaml"))


def test_cli_exits_on_missing_config(tmp_path, monkeypatch):
    monkeypatch.setattr(
        sys,
        "argv",
        ["ciso-feed", "--config", str(tmp_path / "missing.yaml"), "--log-file", str(tmp_path / "run.log")],
    )
    with pytest.raises(SystemExit) as excinfo:
        pipeline.main()
    assert excinfo.value.code == 1


def test_load_config_rejects_non_mapping(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("- just\n- a list\n")
    with pytest.raises(ValueError):
        pipeline.load_config(str(path))


def test_cli_exits_on_non_mapping_config(tmp_path, monkeypatch):
    path = tmp_path / "config.yaml"
    path.write_text("plain text\n")
    monkeypatch.setattr(
        sys,
        "argv",
        ["ciso-feed", "--config", str(path), "--log-file", str(tmp_path / "run.log")],
    )
    with pytest.raises(SystemExit) as excinfo:
        pipeline.main()
    assert excinfo.value.code == 1
