"""Pydantic schemas for admin API key management."""

import uuid
from typing import Optional

from pydantic import BaseModel, Field


class APIKeyCreate(BaseModel):
    """Request schema for issuing a new API key."""

    email: Optional[str] = Field(None, max_length=255)
    display_name: Optional[str] = Field(None, max_length=100)
    is_admin: bool = False


class APIKeyResponse(BaseModel):
    """Response schema after a new API key is generated.

    The api_key is shown exactly once. It is stored only as a hash in the
    database and cannot be retrieved again after this response.
    """

    api_key: str
    user_id: uuid.UUID
    is_admin: bool
    message: str = "Store this key securely -- it cannot be retrieved again"
