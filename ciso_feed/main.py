#!/usr/bin/env python3
"""Main entry point for the CISO news pipeline."""

import argparse
import logging
import os
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, List, Optional

import requests
import yaml

from .budget import SafetyConfig, UsageTracker
from .enrichment import enrich_article
from .fetchers import rss
from .gate import GateStats, evaluate
from .models import Article
from .sources import FeedSource, load_sources
from .storage import Storage
from .summarize import Summarizer, extractive_summary

Fetcher = Callable[[FeedSource, int], List[Article]]


def setup_logging(verbose: bool = False, log_file: Optional[str] = None):
    """Configure logging."""
    level = logging.DEBUG if verbose else logging.INFO
    handlers = [logging.StreamHandler(sys.stdout)]

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=handlers,
    )


def load_config(config_path: str) -> dict:
    """Load configuration from YAML file.

    Raises:
        FileNotFoundError: If the file does not exist
        ValueError: If the top level of the document is not a mapping
    """
    config_file = Path(config_path)
    if not config_file.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_file, "r", encoding="utf-8") as f:
        config = yaml.safe_load(f) or {}

    if not isinstance(config, dict):
        raise ValueError(f"Config file must contain a mapping, got {type(config).__name__}")
    return config


def process_article(
    article: Article,
    summarizer: Summarizer,
    gate_stats: GateStats,
) -> Article:
    """Enrich an article and give it an AI or extractive summary."""
    enrich_article(article)
    decision = evaluate(article, gate_stats)
    if decision.process:
        summarizer.apply(article)
    else:
        # Rejected by the gate: displayed, but never worth an API call
        article.summary = extractive_summary(article)
        article.summary_source = "extractive"
    return article


def run_once(
    config: dict,
    dry_run: bool = False,
    use_ai: bool = True,
    fetcher: Fetcher = rss.fetch_rss,
) -> List[Article]:
    """Run one cycle of fetching, enrichment, summarization and storage."""
    logger = logging.getLogger(__name__)
    start_time = datetime.now(timezone.utc)

    logger.info("=" * 60)
    logger.info("Starting CISO news cycle")
    logger.info("=" * 60)

    app_config = config.get("app", {})
    safety = SafetyConfig.from_dict(config.get("safety"))
    sources = load_sources(config.get("sources"))
    per_source = app_config.get("max_articles_per_source", rss.MAX_ARTICLES_PER_SOURCE)

    storage = None
    monthly_spent = 0.0
    if not dry_run:
        storage = Storage(app_config.get("db_path", "data/news.sqlite"))
        monthly_spent = storage.monthly_cost()
        logger.info(f"Storage initialized. Stored articles: {storage.count()}")

    tracker = UsageTracker(monthly_spent=monthly_spent)
    logger.info(
        f"Monthly budget: ${monthly_spent:.4f} spent of ${safety.monthly_budget_limit:.2f} "
        f"(${tracker.remaining_budget(safety):.4f} available)"
    )
    if tracker.remaining_budget(safety) < safety.min_remaining_budget:
        logger.warning("Monthly budget exhausted, all summaries will be extractive")

    api_key = os.getenv("CLAUDE_API_KEY") if use_ai and not dry_run else None
    if use_ai and not dry_run and not api_key:
        logger.warning("CLAUDE_API_KEY not set, all summaries will be extractive")
    summarizer = Summarizer(safety, tracker, api_key=api_key)
    gate_stats = GateStats()

    all_articles: List[Article] = []
    successful_sources = 0
    failed_sources = 0

    for source in sources:
        if not source.rss:
            logger.warning(f"Skipping source {source.name}: no URL")
            continue
        try:
            articles = fetcher(source, per_source)
            if not articles:
                logger.warning(f"No articles found for {source.name}")
                failed_sources += 1
                continue

            approved_before = gate_stats.approved
            for article in articles:
                process_article(article, summarizer, gate_stats)
        except requests.exceptions.RequestException as e:
            logger.error(f"Error fetching RSS feed {source.name}: {e}")
            failed_sources += 1
            continue
        except Exception as e:
            logger.error(f"Error processing source {source.name}: {e}")
            failed_sources += 1
            continue

        all_articles.extend(articles)
        successful_sources += 1
        logger.info(
            f"{source.name}: {len(articles)} articles, "
            f"{gate_stats.approved - approved_before} sent to summarization"
        )

    if storage is not None:
        if all_articles:
            storage.save_articles(all_articles)
        storage.log_usage(tracker, gate_stats)
    else:
        logger.info(f"[DRY RUN] Would save {len(all_articles)} articles")

    # Summary
    duration = (datetime.now(timezone.utc) - start_time).total_seconds()
    approved_pct, rejected_pct = gate_stats.percentages()

    logger.info("=" * 60)
    logger.info("Cycle complete")
    logger.info(f"Duration: {duration:.2f}s")
    logger.info(f"Sources: {successful_sources} ok, {failed_sources} failed")
    logger.info(f"Gate: {gate_stats.total} evaluated")
    logger.info(f"  Approved: {gate_stats.approved} ({approved_pct}%)")
    logger.info(f"  Rejected: {gate_stats.rejected} ({rejected_pct}%)")
    for category, count in gate_stats.by_category.items():
        logger.info(f"  - {category}: {count}")
    logger.info(f"API calls: {tracker.api_calls} (errors: {tracker.api_errors})")
    logger.info(f"Fallback used: {tracker.fallback_used}")
    logger.info(f"Tokens: {tracker.input_tokens} in / {tracker.output_tokens} out")
    logger.info(f"Cost: ${tracker.actual_cost:.6f} actual, ${tracker.estimated_cost:.6f} estimated")
    logger.info("=" * 60)

    return all_articles


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Security news aggregator with threat-intel enrichment and AI summaries"
    )
    parser.add_argument(
        "--config",
        default="config.yaml",
        help="Path to config YAML file (default: config.yaml)",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Fetch and enrich without calling the API or writing to the database",
    )
    parser.add_argument(
        "--no-ai",
        action="store_true",
        help="Use extractive summaries only",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )
    parser.add_argument(
        "--log-file",
        help="Path to log file (default: logs/ciso-feed.log)",
    )

    args = parser.parse_args()

    log_file = args.log_file or "logs/ciso-feed.log"
    setup_logging(verbose=args.verbose, log_file=log_file)

    try:
        config = load_config(args.config)
    except FileNotFoundError as e:
        logging.error(f"Configuration error: {e}")
        sys.exit(1)
    except (yaml.YAMLError, ValueError) as e:
        logging.error(f"Error loading config: {e}")
        sys.exit(1)

    try:
        run_once(config, dry_run=args.dry_run, use_ai=not args.no_ai)
    except KeyboardInterrupt:
        logging.info("Interrupted by user")
        sys.exit(0)
    except Exception as e:
        logging.exception(f"Error during execution: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
