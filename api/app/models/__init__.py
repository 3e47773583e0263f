from .base import Base
from .content import ContentItem, ContentTerm
from .review import Review
from .schema_settings import SETTINGS_ROW_ID, SchemaSettingsRow
from .user import User

__all__ = [
    "Base",
    "ContentItem",
    "ContentTerm",
    "Review",
    "SETTINGS_ROW_ID",
    "SchemaSettingsRow",
    "User",
]
