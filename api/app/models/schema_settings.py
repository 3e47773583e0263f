"""SchemaSettingsRow ORM model.

Single-row table holding the admin-editable configuration. The row is keyed
by SETTINGS_ROW_ID so reads and upserts never need to discover it.
"""

from datetime import datetime

from sqlalchemy import Boolean, DateTime, Integer, String, func
from sqlalchemy.dialects.postgresql import JSON
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base

SETTINGS_ROW_ID = 1


class SchemaSettingsRow(Base):
    __tablename__ = "schema_settings"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, default=SETTINGS_ROW_ID)
    # content type -> schema.org type ("" = ratings only)
    type_mappings: Mapped[dict] = mapped_column(JSON, default=dict, nullable=False)
    # Legacy allow-list, consulted only while type_mappings is empty
    enabled_types: Mapped[list] = mapped_column(JSON, default=list, nullable=False)
    organization_name: Mapped[str] = mapped_column(String(200), nullable=False)
    integration_enabled: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )
