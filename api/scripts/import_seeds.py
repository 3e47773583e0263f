"""Import sample content and reviews into the database.

Loads content items from api/fixtures/sample_content.json (or a custom path)
together with their taxonomy terms and reviews, so the schema endpoints have
something to render on a fresh development database.

Key behaviors:
- Idempotent per content item: the slug is the key (existing slugs are skipped)
- Terms keep the order they are listed in, per taxonomy
- Reviews are written through ReviewStore, so cached aggregates for the
  affected content are invalidated exactly as on a live write

Usage:
    # From project root:
    cd api
    DATABASE_URL="postgresql+asyncpg://..." python -m scripts.import_seeds

    # With custom fixtures path:
    python -m scripts.import_seeds --fixtures-path fixtures/sample_content.json
"""
import argparse
import asyncio
import json
import sys
from datetime import datetime
from pathlib import Path

import redis.asyncio as aioredis
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

# Support running from both project root and api/ directory
_api_root = Path(__file__).parent.parent  # api/
if str(_api_root) not in sys.path:
    sys.path.insert(0, str(_api_root))

from app.config import settings
from app.models.content import ContentItem, ContentTerm
from app.services.aggregate import AggregateFetcher
from app.services.cache import RedisCache
from app.services.capabilities import Capabilities
from app.services.review_store import ReviewStore

DEFAULT_FIXTURES_PATH = Path(__file__).parent.parent / "fixtures" / "sample_content.json"


def build_content_item(item_json: dict) -> ContentItem:
    published_at = item_json.get("published_at")
    return ContentItem(
        content_type=item_json["content_type"],
        title=item_json["title"],
        slug=item_json["slug"],
        excerpt=item_json.get("excerpt"),
        thumbnail_url=item_json.get("thumbnail_url"),
        status=item_json.get("status", "publish"),
        published_at=datetime.fromisoformat(published_at) if published_at else None,
        seo_schemas=item_json.get("seo_schemas"),
    )


async def import_content(session: AsyncSession, fixture_data: list[dict]) -> dict[int, list[dict]]:
    """Insert content items and terms; return {content_id: reviews} for new items."""
    pending_reviews: dict[int, list[dict]] = {}

    for item_json in fixture_data:
        result = await session.execute(
            select(ContentItem.id).where(ContentItem.slug == item_json["slug"])
        )
        if result.scalar_one_or_none() is not None:
            continue

        item = build_content_item(item_json)
        session.add(item)
        await session.flush()  # Populate item.id for the terms and reviews

        for taxonomy, names in item_json.get("terms", {}).items():
            for position, name in enumerate(names):
                session.add(
                    ContentTerm(
                        content_id=item.id, taxonomy=taxonomy, name=name, position=position
                    )
                )

        pending_reviews[item.id] = item_json.get("reviews", [])

    await session.commit()
    return pending_reviews


async def import_seeds(fixtures_path: Path) -> None:
    """Import sample content from the given JSON file into the database.

    Content rows are committed first in one transaction; reviews follow one
    by one through the review store. Prints a summary when done.
    """
    if not fixtures_path.exists():
        print(f"Error: fixtures file not found: {fixtures_path}", file=sys.stderr)
        sys.exit(1)

    with open(fixtures_path, "r") as fh:
        fixture_data = json.load(fh)

    print(f"Loaded {len(fixture_data)} content items from {fixtures_path}")

    # Build a standalone engine from settings so the script runs without
    # starting the full app.
    engine = create_async_engine(settings.database_url, echo=False)
    session_factory = async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)
    redis_client = aioredis.from_url(settings.redis_url, decode_responses=True)

    review_store = ReviewStore(session_factory)
    fetcher = AggregateFetcher(
        store=review_store,
        cache=RedisCache(redis_client),
        capabilities=Capabilities(
            review_store_available=True,
            seo_integration_available=settings.seo_integration_available,
        ),
        key_prefix=settings.cache_key_prefix,
        ttl_seconds=settings.aggregate_cache_ttl_seconds,
        negative_ttl_seconds=settings.negative_cache_ttl_seconds,
    )
    review_store.add_observer(fetcher.invalidate)

    async with session_factory() as session:
        pending_reviews = await import_content(session, fixture_data)

    review_total = 0
    for content_id, reviews in pending_reviews.items():
        for review_json in reviews:
            await review_store.create_review(
                content_id,
                rating=float(review_json["rating"]),
                approved=review_json.get("approved", True),
                author_name=review_json.get("author_name"),
                title=review_json.get("title"),
                content=review_json.get("content"),
            )
            review_total += 1

    await redis_client.aclose()
    await engine.dispose()

    skipped = len(fixture_data) - len(pending_reviews)
    print(
        f"Seed import complete: {len(pending_reviews)} content items inserted, "
        f"{skipped} skipped, {review_total} reviews"
    )


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Import sample content and reviews into the RatingSchema database"
    )
    parser.add_argument(
        "--fixtures-path",
        type=Path,
        default=DEFAULT_FIXTURES_PATH,
        help=f"Path to the sample content JSON file (default: {DEFAULT_FIXTURES_PATH})",
    )
    return parser.parse_args()


if __name__ == "__main__":
    args = parse_args()
    asyncio.run(import_seeds(args.fixtures_path))
