from contextlib import asynccontextmanager

import redis.asyncio as aioredis
from fastapi import FastAPI

from app.config import settings
from app.database import async_session_factory, engine
from app.logging_config import configure_logging
from app.metrics import metrics_endpoint
from app.middleware.logging_middleware import RequestLoggingMiddleware
from app.routers import admin, auth, ratings, reviews, schema
from app.services.cache import RedisCache
from app.services.capabilities import resolve_capabilities
from app.services.pipeline import SchemaService


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Configure structured logging before anything else
    configure_logging(settings.debug)

    app.state.redis = aioredis.from_url(
        settings.redis_url, encoding="utf-8", decode_responses=True
    )

    # Deployment facts are resolved once; services never re-probe them
    capabilities = await resolve_capabilities(engine, settings)
    app.state.schema_service = SchemaService.from_resources(
        async_session_factory,
        RedisCache(app.state.redis),
        capabilities,
        settings,
    )
    try:
        yield
    finally:
        await app.state.redis.aclose()
        await engine.dispose()


app = FastAPI(title="RatingSchema API", version=settings.app_version, lifespan=lifespan)

# Register request logging middleware (runs on every request)
app.add_middleware(RequestLoggingMiddleware)

# Page-facing routers
app.include_router(schema.router)
app.include_router(ratings.router)

# Review store notifications
app.include_router(reviews.router)

# Administration
app.include_router(auth.router)
app.include_router(admin.router)

# Prometheus metrics endpoint
app.get("/metrics")(metrics_endpoint)


@app.get("/health")
async def health_check():
    return {"status": "ok"}
