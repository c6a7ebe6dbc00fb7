#!/usr/bin/env python3
"""
Business Intelligence Runner

Runs one analysis against the configured providers and prints the result,
using the same cache and opportunity tables as the API.

Usage:
    # Set any provider credentials you have first (missing ones are skipped):
    export APOLLO_API_KEY=your_key
    export DATAFORSEO_LOGIN=your_login
    export DATAFORSEO_PASSWORD=your_password
    export WAPPALYZER_API_KEY=your_key

    # Run analysis:
    python scripts/analyze_domain.py example.com

    # Fresh fetch, record opportunities for a client:
    python scripts/analyze_domain.py example.com --client-id acme --skip-cache
"""

import asyncio
import argparse
import json
import logging
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from dotenv import load_dotenv

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


async def run_analysis(domain: str, client_id: str = None, skip_cache: bool = False):
    """Run a single analysis and return the response payload."""

    load_dotenv()

    from src.cache import IntelligenceCache
    from src.database import OpportunityStore, get_db_context, init_db
    from src.integrations import ProviderClients, ProviderConfig
    from src.services import BusinessIntelligenceService

    init_db()

    config = ProviderConfig.from_settings()
    config.log_status()

    async with ProviderClients(config) as providers:
        with get_db_context() as db:
            service = BusinessIntelligenceService(
                cache=IntelligenceCache(db),
                opportunity_store=OpportunityStore(db),
                providers=providers,
            )
            return await service.analyze(domain, client_id=client_id, skip_cache=skip_cache)


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Aggregate company, SEO and technology data for a domain"
    )
    parser.add_argument(
        "domain",
        help="Domain to analyze (e.g., example.com)"
    )
    parser.add_argument(
        "--client-id",
        default=None,
        help="Client to record detected opportunities against (optional)"
    )
    parser.add_argument(
        "--skip-cache",
        action="store_true",
        help="Ignore any cached result and query the providers"
    )

    args = parser.parse_args()

    result = asyncio.run(run_analysis(
        domain=args.domain,
        client_id=args.client_id,
        skip_cache=args.skip_cache,
    ))

    print(json.dumps(result, indent=2, default=str))

    metadata = result["metadata"]
    logger.info(
        f"Quality score {metadata['data_quality_score']}, "
        f"cost ${metadata['total_cost']:.4f}, cache hit: {metadata['cache_hit']}"
    )


if __name__ == "__main__":
    main()
