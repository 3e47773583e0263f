"""Tests for schema.org record construction."""

from datetime import datetime, timezone

import pytest

from app.schemas.rating import AggregateRecord, round_rating
from app.services.schema_builder import (
    build_rating_fragment,
    build_schema_record,
    resolve_genres,
)
from conftest import make_content, make_settings


class TestRatingFragment:
    def test_fragment_fields(self):
        fragment = build_rating_fragment(AggregateRecord(review_count=3, average_rating=90.0))

        assert fragment == {
            "@type": "AggregateRating",
            "ratingValue": 90.0,
            "bestRating": 100,
            "worstRating": 1,
            "ratingCount": 3,
            "reviewCount": 3,
        }

    def test_rating_value_rounded_to_one_decimal(self):
        fragment = build_rating_fragment(
            AggregateRecord(review_count=3, average_rating=76.666666)
        )

        assert fragment["ratingValue"] == 76.7

    def test_half_rounds_away_from_zero(self):
        fragment = build_rating_fragment(
            AggregateRecord(review_count=4, average_rating=(70 + 80 + 75 + 80) / 4)
        )

        assert fragment["ratingValue"] == 76.3


class TestRoundRating:
    @pytest.mark.parametrize(
        "value, places, expected",
        [
            (76.25, 1, 76.3),
            (76.24, 1, 76.2),
            (0.05, 1, 0.1),
            (4.5, 0, 5.0),
            (2.5, 0, 3.0),
            (100.0, 1, 100.0),
        ],
    )
    def test_half_up(self, value, places, expected):
        assert round_rating(value, places) == expected


class TestResolveGenres:
    def test_first_non_empty_taxonomy_wins(self):
        terms = {"genre": ["Drama"], "anime_genre": ["Action", "Sci-Fi"]}

        assert resolve_genres(terms) == ["Action", "Sci-Fi"]

    def test_falls_back_to_category(self):
        assert resolve_genres({"category": ["News"]}) == ["News"]

    def test_no_terms(self):
        assert resolve_genres({}) == []


class TestEntityRecord:
    def test_movie_record_with_creative_work_fields(self):
        content = make_content(
            42,
            excerpt="<p>Bounty hunters in <em>space</em>.</p>",
            thumbnail_url="https://example.com/bebop-large.jpg",
            terms={"anime_genre": ["Action", "Sci-Fi"]},
        )
        record = build_schema_record(
            AggregateRecord(review_count=3, average_rating=90.0),
            content,
            make_settings(),
        )

        assert record == {
            "@context": "https://schema.org",
            "@type": "Movie",
            "name": "Cowboy Bebop",
            "url": "https://example.com/cowboy-bebop/",
            "aggregateRating": {
                "@type": "AggregateRating",
                "ratingValue": 90.0,
                "bestRating": 100,
                "worstRating": 1,
                "ratingCount": 3,
                "reviewCount": 3,
            },
            "genre": ["Action", "Sci-Fi"],
            "datePublished": "2024-01-15",
            "author": {"@type": "Organization", "name": "Example Reviews"},
            "image": "https://example.com/bebop-large.jpg",
            "description": "Bounty hunters in space.",
        }

    def test_product_gets_no_creative_work_fields(self):
        content = make_content(
            9,
            content_type="gear",
            title="Headphones",
            thumbnail_url="https://example.com/hp.jpg",
            terms={"category": ["Audio"]},
        )
        record = build_schema_record(
            AggregateRecord(review_count=2, average_rating=85.0),
            content,
            make_settings(type_mappings={"gear": "Product"}),
        )

        assert record["@type"] == "Product"
        assert record["image"] == "https://example.com/hp.jpg"
        for key in ("genre", "datePublished", "author", "description"):
            assert key not in record

    def test_empty_genre_and_missing_date_are_omitted(self):
        content = make_content(3, content_type="book", published_at=None)
        record = build_schema_record(
            AggregateRecord(review_count=1, average_rating=40.0),
            content,
            make_settings(type_mappings={"book": "Book"}),
        )

        assert "genre" not in record
        assert "datePublished" not in record
        assert record["author"]["name"] == "Example Reviews"

    def test_date_published_uses_date_only(self):
        content = make_content(
            3, published_at=datetime(2023, 12, 31, 23, 59, tzinfo=timezone.utc)
        )
        record = build_schema_record(
            AggregateRecord(review_count=1, average_rating=40.0),
            content,
            make_settings(),
        )

        assert record["datePublished"] == "2023-12-31"

    def test_excerpt_that_is_only_markup_gives_no_description(self):
        content = make_content(3, excerpt="<script>alert(1)</script>")
        record = build_schema_record(
            AggregateRecord(review_count=1, average_rating=40.0),
            content,
            make_settings(),
        )

        assert "description" not in record


class TestRatingsOnlyRecord:
    def test_unmapped_type_emits_bare_aggregate_rating(self):
        content = make_content(5, content_type="anime", title="Trigun")
        record = build_schema_record(
            AggregateRecord(review_count=12, average_rating=76.3),
            content,
            make_settings(type_mappings={"anime": ""}),
        )

        assert record == {
            "@context": "https://schema.org",
            "@type": "AggregateRating",
            "itemReviewed": {
                "@type": "Thing",
                "name": "Trigun",
                "url": "https://example.com/trigun/",
            },
            "ratingValue": 76.3,
            "bestRating": 100,
            "worstRating": 1,
            "ratingCount": 12,
            "reviewCount": 12,
        }
        assert "aggregateRating" not in record

    def test_content_type_missing_from_mapping_is_ratings_only(self):
        content = make_content(5, content_type="post", title="Roundup")
        record = build_schema_record(
            AggregateRecord(review_count=1, average_rating=70.0),
            content,
            make_settings(),
        )

        assert record["@type"] == "AggregateRating"
        assert record["itemReviewed"]["name"] == "Roundup"


class TestSchemaBuilder:
    async def test_build_fetches_aggregate_and_content(
        self, service, context, review_store, content_repository
    ):
        review_store.add(42, 80, 90, 100)
        content_repository.put(make_content(42))

        record = await service.builder.build(42, context)

        assert record["@type"] == "Movie"
        assert record["aggregateRating"]["ratingValue"] == 90.0
        assert record["aggregateRating"]["reviewCount"] == 3

    async def test_build_without_reviews_is_none(self, service, context, content_repository):
        content_repository.put(make_content(7))

        assert await service.builder.build(7, context) is None

    async def test_build_without_content_is_none(self, service, context, review_store):
        review_store.add(99, 80)

        assert await service.builder.build(99, context) is None
