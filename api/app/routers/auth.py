"""API key issuance and verification endpoints.

POST /api/v1/keys        -- issue a new API key (admin only)
GET  /api/v1/keys/verify -- verify an existing API key (auth required)

The first administrator key is created out of band with
scripts/create_admin_key.py.
"""

import hashlib
import secrets

from fastapi import APIRouter, HTTPException
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from app.dependencies import CurrentUser, DbSession, RequireAdmin
from app.models.user import User
from app.schemas.auth import APIKeyCreate, APIKeyResponse

router = APIRouter(prefix="/api/v1", tags=["auth"])


def hash_api_key(raw_key: str) -> str:
    return hashlib.sha256(raw_key.encode()).hexdigest()


@router.post("/keys", response_model=APIKeyResponse, status_code=201)
async def issue_api_key(
    body: APIKeyCreate,
    admin: RequireAdmin,
    db: DbSession,
) -> APIKeyResponse:
    """Issue a new API key for a review store integration or another admin.

    The raw API key is returned exactly once in this response. Only its
    SHA-256 hash is stored in the database; it cannot be retrieved again.
    A duplicate email is a 409 Conflict.
    """
    if body.email:
        result = await db.execute(select(User).where(User.email == body.email))
        if result.scalar_one_or_none() is not None:
            raise HTTPException(status_code=409, detail="Email already registered")

    raw_key = secrets.token_urlsafe(32)
    user = User(
        api_key_hash=hash_api_key(raw_key),
        email=body.email,
        display_name=body.display_name,
        is_admin=body.is_admin,
    )
    db.add(user)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise HTTPException(status_code=409, detail="Email already registered")
    await db.refresh(user)

    return APIKeyResponse(api_key=raw_key, user_id=user.id, is_admin=user.is_admin)


@router.get("/keys/verify")
async def verify_api_key(user: CurrentUser) -> dict:
    """Verify that the provided API key is valid and report its role."""
    return {"valid": True, "user_id": str(user.id), "is_admin": user.is_admin}
