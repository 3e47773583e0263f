"""HTTP tests for the routers, with the SchemaService and auth overridden.

The application lifespan is not run: no database or Redis is needed.
"""

import json
import uuid
from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient

from app.dependencies import get_current_user, get_schema_service
from app.main import app
from app.middleware.logging_middleware import normalize_path
from conftest import make_content


@pytest.fixture
def admin_user():
    return SimpleNamespace(id=uuid.uuid4(), is_admin=True)


@pytest.fixture
def client(service):
    app.dependency_overrides[get_schema_service] = lambda: service
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def admin_client(client, admin_user):
    app.dependency_overrides[get_current_user] = lambda: admin_user
    return client


@pytest.fixture
def seeded(review_store, content_repository):
    review_store.add(42, 80, 90, 100)
    content_repository.put(make_content(42))
    content_repository.put(make_content(7, title="No Reviews Yet"))


class TestSchemaRoutes:
    def test_schema_record(self, client, seeded):
        response = client.get("/api/v1/content/42/schema")

        assert response.status_code == 200
        body = response.json()
        assert body["@type"] == "Movie"
        assert body["aggregateRating"]["ratingValue"] == 90.0

    def test_schema_missing_is_404(self, client, seeded):
        response = client.get("/api/v1/content/7/schema")

        assert response.status_code == 404

    def test_head_block(self, client, seeded):
        response = client.get("/api/v1/content/42/head")

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/html")
        assert "<!-- RatingSchema Aggregate Schema -->" in response.text
        assert '"reviewCount": 3' in response.text

    def test_head_without_reviews_is_204(self, client, seeded):
        response = client.get("/api/v1/content/7/head")

        assert response.status_code == 204
        assert response.content == b""

    def test_seo_schema_filter_without_toolkit_passes_through(self, client, seeded):
        schemas = [{"@type": "TVSeries", "name": "X"}]

        response = client.post("/api/v1/content/42/seo-schema", json=schemas)

        assert response.status_code == 200
        assert response.json() == schemas

    def test_request_id_header_is_echoed(self, client, seeded):
        response = client.get("/api/v1/content/42/head", headers={"X-Request-ID": "abc-123"})

        assert response.headers["X-Request-ID"] == "abc-123"


class TestRatingRoutes:
    def test_rating_summary(self, client, seeded):
        response = client.get("/api/v1/content/42/rating")

        assert response.status_code == 200
        assert response.json() == {
            "content_id": 42,
            "aggregate": {
                "review_count": 3,
                "average_rating": 90.0,
                "best_rating": 100,
                "worst_rating": 1,
            },
            "formatted": {"percentage": "90%", "decimal": 9.0, "stars": 4.5},
        }

    def test_rating_missing_is_404(self, client, seeded):
        assert client.get("/api/v1/content/7/rating").status_code == 404

    def test_badge(self, client, seeded):
        response = client.get("/api/v1/content/42/rating/badge", params={"show": "count"})

        assert response.status_code == 200
        assert '<span class="rs-count">3 reviews</span>' in response.text

    def test_badge_without_data_is_empty(self, client, seeded):
        response = client.get("/api/v1/content/7/rating/badge")

        assert response.status_code == 200
        assert response.text == ""

    def test_badge_rejects_unknown_show(self, client, seeded):
        response = client.get("/api/v1/content/42/rating/badge", params={"show": "bogus"})

        assert response.status_code == 422


class TestReviewEvents:
    def test_event_invalidates_cache(self, admin_client, seeded, cache):
        admin_client.get("/api/v1/content/42/rating")
        assert "rating:42" in cache.values

        response = admin_client.post(
            "/api/v1/content/42/reviews/events", json={"event": "created"}
        )

        assert response.status_code == 202
        assert response.json() == {
            "content_id": 42,
            "event": "created",
            "cache_invalidated": True,
        }
        assert "rating:42" not in cache.values

    def test_unknown_event_is_422(self, admin_client):
        response = admin_client.post(
            "/api/v1/content/42/reviews/events", json={"event": "archived"}
        )

        assert response.status_code == 422

    def test_missing_api_key_is_rejected(self, client):
        response = client.post("/api/v1/content/42/reviews/events", json={"event": "created"})

        assert response.status_code in (401, 403)


class TestAdminRoutes:
    def test_non_admin_is_forbidden(self, client):
        app.dependency_overrides[get_current_user] = lambda: SimpleNamespace(
            id=uuid.uuid4(), is_admin=False
        )

        response = client.get("/api/v1/admin/settings")

        assert response.status_code == 403

    def test_get_settings(self, admin_client):
        response = admin_client.get("/api/v1/admin/settings")

        assert response.status_code == 200
        assert response.json()["type_mappings"] == {"anime": "Movie"}

    def test_schema_type_options(self, admin_client):
        response = admin_client.get("/api/v1/admin/settings/schema-types")

        assert response.json()[""] == "No Schema (Reviews Only)"
        assert "TVSeries" in response.json()

    def test_update_settings(self, admin_client, settings_store):
        response = admin_client.put(
            "/api/v1/admin/settings",
            json={"organization_name": " <b>New</b>  Org ", "type_mappings": {"anime": "TVSeries"}},
        )

        assert response.status_code == 200
        assert response.json()["organization_name"] == "New Org"
        assert settings_store.current.type_mappings == {"anime": "TVSeries"}
        # Omitted fields keep their value
        assert settings_store.current.integration_enabled is True

    def test_update_settings_rejects_unknown_type(self, admin_client, settings_store):
        response = admin_client.put(
            "/api/v1/admin/settings", json={"type_mappings": {"anime": "Restaurant"}}
        )

        assert response.status_code == 422
        assert settings_store.current.type_mappings == {"anime": "Movie"}

    def test_preview(self, admin_client, seeded):
        response = admin_client.get("/api/v1/admin/content/42/preview")

        assert response.status_code == 200
        body = response.json()
        assert body["content_id"] == 42
        assert json.loads(body["schema_text"])["@type"] == "Movie"
        assert "\n  " in body["schema_text"]
        assert body["validation"] == {"valid": True, "warnings": [], "errors": []}

    def test_preview_invalid_id(self, admin_client):
        response = admin_client.get("/api/v1/admin/content/0/preview")

        assert response.status_code == 400
        assert response.json()["detail"] == "Invalid content ID"

    def test_preview_without_data(self, admin_client, seeded):
        response = admin_client.get("/api/v1/admin/content/7/preview")

        assert response.status_code == 404
        assert response.json()["detail"] == "No aggregate review data found"

    def test_test_report(self, admin_client, seeded):
        response = admin_client.get("/api/v1/admin/test-report")

        assert response.status_code == 200
        body = response.json()
        assert body["version"] == "1.0.2"
        assert [test["content_id"] for test in body["tests"]] == [42, 7]
        generated, missing = body["tests"]
        assert generated["schema_generated"] is True
        assert generated["validation"]["valid"] is True
        assert missing["schema_generated"] is False
        assert missing["errors"] == ["No aggregate review data found for this content"]

    def test_test_report_limit_is_bounded(self, admin_client):
        response = admin_client.get("/api/v1/admin/test-report", params={"limit": 0})

        assert response.status_code == 422

    def test_clear_one_cache_entry(self, admin_client, seeded, cache):
        admin_client.get("/api/v1/content/42/rating")

        response = admin_client.delete("/api/v1/admin/cache/42")

        assert response.status_code == 200
        assert "rating:42" not in cache.values

    def test_clear_all_cache_entries(self, admin_client, seeded, cache):
        admin_client.get("/api/v1/content/42/rating")
        admin_client.get("/api/v1/content/7/rating")

        response = admin_client.delete("/api/v1/admin/cache")

        assert response.json() == {"cleared": 2, "message": "Cache cleared successfully"}
        assert cache.values == {}

    def test_clear_all_with_cache_down_is_503(self, admin_client, cache):
        cache.fail = True

        response = admin_client.delete("/api/v1/admin/cache")

        assert response.status_code == 503


class TestOperational:
    def test_health(self, client):
        assert client.get("/health").json() == {"status": "ok"}

    def test_metrics(self, client, seeded):
        client.get("/api/v1/content/42/head")

        response = client.get("/metrics")

        assert response.status_code == 200
        assert "ratingschema_schema_renders_total" in response.text
        assert 'path="/api/v1/content/{id}/head"' in response.text

    @pytest.mark.parametrize(
        "path, expected",
        [
            ("/api/v1/content/42/head", "/api/v1/content/{id}/head"),
            ("/api/v1/admin/cache/7", "/api/v1/admin/cache/{id}"),
            ("/api/v1/admin/settings", "/api/v1/admin/settings"),
            ("/api/v1/content/abc42/head", "/api/v1/content/abc42/head"),
        ],
    )
    def test_normalize_path(self, path, expected):
        assert normalize_path(path) == expected
