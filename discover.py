#!/usr/bin/env python3
"""
Resolve organizations by EIN and discover content pages on their websites.

Resolve: EIN -> stored organization (fetch profile + LLM extraction on first sight)
Crawl:   seed URL -> up to 10 LLM-ranked content URLs (single level)

When only --ein is given, the crawl seeds from the organization's extracted
website URL.

Usage:
    python discover.py --ein 75-3139219
    python discover.py --seed-url https://pastorserve.org
    python discover.py --ein 75-3139219 --no-crawl
"""

import argparse
import asyncio
import sys

from dotenv import load_dotenv

from nonprofit_pipeline.collectors import ContentFetcher, CrawlOrchestrator
from nonprofit_pipeline.config import get_api_keys, get_http_client, get_llm_model, get_profile_url_template
from nonprofit_pipeline.db import OrganizationRepository
from nonprofit_pipeline.errors import PipelineError
from nonprofit_pipeline.llm import LLMClient, LLMTask, ProfileExtractor, RelevanceRanker
from nonprofit_pipeline.llm.llm_client import MODEL_REGISTRY, is_known_model
from nonprofit_pipeline.services.organization_resolver import OrganizationResolver
from nonprofit_pipeline.utils.logger import PipelineLogger, configure_global_logging


def build_llm_clients(model=None, api_keys=None, logger=None):
    """
    One client per task so each gets its own model chain and cost label.

    A pinned ``model`` replaces both chains.
    """
    extraction = LLMClient(task=LLMTask.WEBSITE_EXTRACTION, model=model, api_keys=api_keys, logger=logger)
    ranking = LLMClient(task=LLMTask.URL_RANKING, model=model, api_keys=api_keys, logger=logger)
    return extraction, ranking


async def run(args, logger: PipelineLogger) -> int:
    extraction_client, ranking_client = build_llm_clients(args.model, get_api_keys(), logger)

    async with get_http_client() as http_client:
        fetcher = ContentFetcher(http_client, logger=logger)
        extractor = ProfileExtractor(extraction_client, logger=logger)
        ranker = RelevanceRanker(ranking_client, logger=logger)

        seed_url = args.seed_url

        if args.ein:
            repository = OrganizationRepository()
            await asyncio.to_thread(repository.ensure_schema)
            resolver = OrganizationResolver(
                repository,
                fetcher,
                extractor,
                profile_url_template=args.profile_url_template,
                logger=logger,
            )

            with logger.time_operation("resolve", ein=args.ein):
                organization = await resolver.resolve(args.ein)

            print(f"\nOrganization {organization.ein}")
            print(f"  Name:      {organization.name}")
            print(f"  Website:   {organization.website_url}")
            print(f"  NTEE:      {organization.ntee_code} ({organization.ntee_description})")
            print(f"  ZIP:       {organization.zip_code}")
            print(f"  Profile:   {organization.profile_url}")

            seed_url = seed_url or organization.website_url

        if args.no_crawl:
            return 0

        if not seed_url:
            logger.warning("No seed URL available, skipping crawl")
            return 0

        orchestrator = CrawlOrchestrator(
            fetcher,
            ranker,
            fallback_to_unranked=args.fallback_unranked,
            logger=logger,
        )

        with logger.time_operation("crawl", seed_url=seed_url):
            urls = await orchestrator.discover_content_urls(seed_url)

        print(f"\nContent URLs for {seed_url} ({len(urls)}):")
        for i, url in enumerate(urls, start=1):
            print(f"  {i:>2}. {url}")

    return 0


def parse_args(argv=None) -> argparse.Namespace:
    """
    Parse the command line and resolve settings that come from the environment.

    Bad settings (unknown model, unusable profile URL template) end in a
    usage error instead of a traceback later in the run.
    """
    parser = argparse.ArgumentParser(description="Resolve nonprofits by EIN and discover their content pages")
    parser.add_argument("--ein", type=str, help="Organization EIN (format: XX-XXXXXXX)")
    parser.add_argument("--seed-url", type=str, help="Website URL to crawl (defaults to the organization's website)")
    parser.add_argument(
        "--model",
        type=str,
        default=None,
        help="Pin one LLM model for every call (default: NONPROFIT_LLM_MODEL, else per-task model chains)",
    )
    parser.add_argument("--no-crawl", action="store_true", help="Only resolve the organization")
    parser.add_argument(
        "--fallback-unranked",
        action="store_true",
        help="Use unranked candidate links when the ranking response is malformed",
    )
    parser.add_argument("--log-level", type=str, default="INFO", help="Log level (default: INFO)")
    parser.add_argument("--log-file", type=str, default=None, help="Also write logs to logs/<file>")
    args = parser.parse_args(argv)

    if not args.ein and not args.seed_url:
        parser.error("one of --ein or --seed-url is required")

    args.model = args.model or get_llm_model()
    if args.model and not is_known_model(args.model):
        parser.error(f"unknown model {args.model!r}; choose one of: {', '.join(sorted(MODEL_REGISTRY))}")

    try:
        args.profile_url_template = get_profile_url_template()
    except ValueError as e:
        parser.error(str(e))

    return args


def main():
    load_dotenv()
    args = parse_args()

    configure_global_logging(args.log_level, phase="Discover")
    logger = PipelineLogger(log_level=args.log_level, log_file=args.log_file, phase="Discover")

    try:
        exit_code = asyncio.run(run(args, logger))
    except PipelineError as e:
        logger.error("Discovery failed", exception=e)
        exit_code = 1

    summary = logger.generate_summary()
    logger.info(
        "Run summary",
        lookups=summary["lookups"]["total"],
        errors=summary["errors"]["total"],
        warnings=summary["warnings"]["total"],
    )
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
