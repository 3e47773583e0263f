"""Persistence for the admin-editable schema settings.

The settings live in a single row. The first read creates it with defaults
(legacy enabled_types=["post"], organization name = site name, integration
on), which is what a fresh install has always started from.
"""

from typing import Optional

import structlog
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.config import settings
from app.models.schema_settings import SETTINGS_ROW_ID, SchemaSettingsRow
from app.schemas.settings import DEFAULT_ENABLED_TYPES, SchemaSettings, SchemaSettingsUpdate

log = structlog.get_logger()


class SettingsStore:
    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        default_organization_name: str = settings.site_name,
    ) -> None:
        self._session_factory = session_factory
        self._default_organization_name = default_organization_name

    def defaults(self) -> SchemaSettings:
        return SchemaSettings(
            type_mappings={},
            organization_name=self._default_organization_name,
            integration_enabled=True,
            enabled_types=list(DEFAULT_ENABLED_TYPES),
        )

    async def load(self) -> SchemaSettings:
        async with self._session_factory() as session:
            row = await self._get_or_create(session)
            return SchemaSettings.model_validate(row)

    async def save(self, update: SchemaSettingsUpdate) -> SchemaSettings:
        """Apply the non-null fields of an update and return the stored settings."""
        async with self._session_factory() as session:
            row = await self._get_or_create(session)
            changes = update.model_dump(exclude_none=True)
            for field_name, value in changes.items():
                setattr(row, field_name, value)
            await session.commit()
            await session.refresh(row)
            log.info("schema_settings_saved", fields=sorted(changes))
            return SchemaSettings.model_validate(row)

    async def _get_or_create(self, session: AsyncSession) -> SchemaSettingsRow:
        row: Optional[SchemaSettingsRow] = await session.get(SchemaSettingsRow, SETTINGS_ROW_ID)
        if row is not None:
            return row

        defaults = self.defaults()
        row = SchemaSettingsRow(
            id=SETTINGS_ROW_ID,
            type_mappings=defaults.type_mappings,
            enabled_types=defaults.enabled_types,
            organization_name=defaults.organization_name,
            integration_enabled=defaults.integration_enabled,
        )
        session.add(row)
        try:
            await session.commit()
        except IntegrityError:
            # Another request created the row first
            await session.rollback()
            row = await session.get(SchemaSettingsRow, SETTINGS_ROW_ID)
        else:
            await session.refresh(row)
            log.info("schema_settings_initialized")
        return row
