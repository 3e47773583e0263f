"""Pydantic schemas for the admin settings form.

SchemaSettings is the read model consumed by the schema builder and the
integration dispatcher. SchemaSettingsUpdate is the form payload; its
validators sanitize text the way the settings form always has (tags stripped,
whitespace collapsed) and reject schema types the form does not offer.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.services.text import sanitize_text_field

# "" means "ratings only": emit the bare AggregateRating without an entity wrapper
SCHEMA_TYPE_OPTIONS: dict[str, str] = {
    "": "No Schema (Reviews Only)",
    "Movie": "Movie",
    "TVSeries": "TV Series",
    "Book": "Book (Manga)",
    "CreativeWork": "CreativeWork",
    "Product": "Product",
}

DEFAULT_ENABLED_TYPES = ["post"]


class SchemaSettings(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    type_mappings: dict[str, str] = Field(default_factory=dict)
    organization_name: str
    integration_enabled: bool = True
    enabled_types: list[str] = Field(default_factory=lambda: list(DEFAULT_ENABLED_TYPES))

    def schema_type_for(self, content_type: str) -> str:
        """Mapped schema.org type for a content type, "" when unmapped."""
        return self.type_mappings.get(content_type, "")

    def is_enabled_for(self, content_type: str) -> bool:
        """Whether pages of this content type get rating markup at all.

        The mapping table wins once it has any entry; until then the legacy
        enabled_types list decides.
        """
        if not self.type_mappings:
            return content_type in self.enabled_types
        return content_type in self.type_mappings


class SchemaSettingsUpdate(BaseModel):
    """Request schema for PUT /api/v1/admin/settings.

    Omitted fields keep their stored value.
    """

    type_mappings: Optional[dict[str, str]] = None
    organization_name: Optional[str] = Field(None, max_length=200)
    integration_enabled: Optional[bool] = None
    enabled_types: Optional[list[str]] = Field(None, max_length=50)

    @field_validator("type_mappings")
    @classmethod
    def _sanitize_mappings(cls, value: Optional[dict[str, str]]) -> Optional[dict[str, str]]:
        if value is None:
            return None
        cleaned: dict[str, str] = {}
        for content_type, schema_type in value.items():
            key = sanitize_text_field(content_type)
            schema = sanitize_text_field(schema_type)
            if not key:
                continue
            if schema not in SCHEMA_TYPE_OPTIONS:
                raise ValueError(f"Unsupported schema type for '{key}': {schema!r}")
            cleaned[key] = schema
        return cleaned

    @field_validator("organization_name")
    @classmethod
    def _sanitize_organization(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        return sanitize_text_field(value)

    @field_validator("enabled_types")
    @classmethod
    def _sanitize_enabled_types(cls, value: Optional[list[str]]) -> Optional[list[str]]:
        if value is None:
            return None
        return [t for t in (sanitize_text_field(raw) for raw in value) if t]
