"""schema.org record construction for aggregate ratings.

Two record shapes exist, chosen by the schema type mapped to the content's
type in the settings:

- "" (ratings only): a top-level AggregateRating whose itemReviewed is a
  plain Thing carrying the page title and permalink.
- any other type: an entity of that type with the rating nested under
  aggregateRating. Creative-work types additionally get genre,
  datePublished and an Organization author; every entity gets image and
  description when the content has them.

The module-level functions are pure; SchemaBuilder adds the data fetching.
Averages are rounded for display but never clamped or re-validated here.
"""

from typing import TYPE_CHECKING, Optional

from app.schemas.rating import AggregateRecord, round_rating
from app.schemas.settings import SchemaSettings
from app.services.aggregate import AggregateFetcher
from app.services.content import ContentSnapshot
from app.services.text import strip_tags

if TYPE_CHECKING:
    from app.services.context import RenderContext

SCHEMA_CONTEXT = "https://schema.org"

CREATIVE_WORK_TYPES = frozenset({"CreativeWork", "Movie", "TVSeries", "Book"})

# First taxonomy with any terms supplies the genre list; later ones are ignored
GENRE_TAXONOMIES = ("anime_genre", "genre", "anime_category", "category")


def build_rating_fragment(aggregate: AggregateRecord) -> dict:
    return {
        "@type": "AggregateRating",
        "ratingValue": round_rating(aggregate.average_rating),
        "bestRating": aggregate.best_rating,
        "worstRating": aggregate.worst_rating,
        "ratingCount": aggregate.review_count,
        "reviewCount": aggregate.review_count,
    }


def resolve_genres(terms: dict[str, list[str]]) -> list[str]:
    for taxonomy in GENRE_TAXONOMIES:
        names = [name for name in terms.get(taxonomy, []) if name]
        if names:
            return names
    return []


def build_ratings_only_record(fragment: dict, content: ContentSnapshot) -> dict:
    record = {
        "@context": SCHEMA_CONTEXT,
        "@type": "AggregateRating",
        "itemReviewed": {
            "@type": "Thing",
            "name": content.title,
            "url": content.url,
        },
    }
    record.update((key, value) for key, value in fragment.items() if key != "@type")
    return record


def build_entity_record(
    schema_type: str,
    fragment: dict,
    content: ContentSnapshot,
    organization_name: str,
) -> dict:
    record = {
        "@context": SCHEMA_CONTEXT,
        "@type": schema_type,
        "name": content.title,
        "url": content.url,
        "aggregateRating": fragment,
    }

    if schema_type in CREATIVE_WORK_TYPES:
        genres = resolve_genres(content.terms)
        if genres:
            record["genre"] = genres
        if content.published_at is not None:
            record["datePublished"] = content.published_at.date().isoformat()
        record["author"] = {
            "@type": "Organization",
            "name": organization_name,
        }

    if content.thumbnail_url:
        record["image"] = content.thumbnail_url

    if content.excerpt:
        description = strip_tags(content.excerpt)
        if description:
            record["description"] = description

    return record


def build_schema_record(
    aggregate: AggregateRecord,
    content: ContentSnapshot,
    config: SchemaSettings,
) -> dict:
    fragment = build_rating_fragment(aggregate)
    schema_type = config.schema_type_for(content.content_type)
    if not schema_type:
        return build_ratings_only_record(fragment, content)
    return build_entity_record(schema_type, fragment, content, config.organization_name)


class SchemaBuilder:
    def __init__(self, fetcher: AggregateFetcher) -> None:
        self._fetcher = fetcher

    async def build(self, content_id: Optional[int], context: "RenderContext") -> Optional[dict]:
        """Build the schema record for a content item, or None without rating data."""
        aggregate = await self._fetcher.fetch(content_id)
        if aggregate is None:
            return None

        content = await context.content(content_id)
        if content is None:
            return None

        config = await context.schema_settings()
        return build_schema_record(aggregate, content, config)
