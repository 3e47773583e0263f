import hashlib
from typing import Annotated

from fastapi import Depends, HTTPException, Request, Security
from fastapi.security import APIKeyHeader
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.database import get_db
from app.models.user import User
from app.services.context import RenderContext
from app.services.pipeline import SchemaService

DbSession = Annotated[AsyncSession, Depends(get_db)]

# API key security scheme, registered in the OpenAPI security definition
api_key_header = APIKeyHeader(name=settings.api_key_header_name, auto_error=True)


async def get_schema_service(request: Request) -> SchemaService:
    """Inject the SchemaService from app.state (built during lifespan startup)."""
    return request.app.state.schema_service


SchemaServiceDep = Annotated[SchemaService, Depends(get_schema_service)]


def get_render_context(service: SchemaServiceDep) -> RenderContext:
    """One RenderContext per request; discarded when the request ends."""
    return service.new_context()


async def get_current_user(
    raw_key: str = Security(api_key_header),
    db: AsyncSession = Depends(get_db),
) -> User:
    """Authenticate a request via X-API-Key header.

    Computes SHA-256 hash of the raw key and looks it up in users.api_key_hash.
    Raises 401 for both missing and invalid keys (no distinction, so keys cannot be enumerated).
    """
    key_hash = hashlib.sha256(raw_key.encode()).hexdigest()
    result = await db.execute(select(User).where(User.api_key_hash == key_hash))
    user = result.scalar_one_or_none()
    if user is None:
        raise HTTPException(status_code=401, detail="Invalid API key")
    return user


CurrentUser = Annotated[User, Depends(get_current_user)]
RenderCtx = Annotated[RenderContext, Depends(get_render_context)]


async def require_admin(user: User = Depends(get_current_user)) -> User:
    """Gate: settings and diagnostics need an administrator key.

    Raises 403 for authenticated users without the admin flag.
    """
    if not user.is_admin:
        raise HTTPException(
            status_code=403,
            detail="Administrator API key required for settings and diagnostics.",
        )
    return user


RequireAdmin = Annotated[User, Depends(require_admin)]
