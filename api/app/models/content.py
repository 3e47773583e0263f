"""Content item ORM models.

ContentItem is the host content layer's view of a page: the fields the schema
builder reads (title, permalink, excerpt, thumbnail, publish date, content
type) plus the schema list a third-party SEO toolkit may have stored for it.

ContentTerm holds taxonomy assignments (genre, category, ...) in display order.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, ForeignKey, Index, Integer, String, Text, func
from sqlalchemy.dialects.postgresql import JSON
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base


class ContentItem(Base):
    __tablename__ = "content_items"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    content_type: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    title: Mapped[str] = mapped_column(Text, nullable=False)
    slug: Mapped[str] = mapped_column(String(200), nullable=False, unique=True)
    excerpt: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    # "large" rendition of the featured image
    thumbnail_url: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    status: Mapped[str] = mapped_column(String(20), default="publish", nullable=False)
    published_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    # Schema list pre-computed by the SEO toolkit, stored as content metadata
    seo_schemas: Mapped[Optional[list]] = mapped_column(JSON, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    terms: Mapped[list["ContentTerm"]] = relationship(
        "ContentTerm",
        back_populates="content",
        order_by="ContentTerm.position",
        lazy="raise",
    )


class ContentTerm(Base):
    __tablename__ = "content_terms"

    __table_args__ = (
        Index("ix_content_terms_content_id_taxonomy", "content_id", "taxonomy"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    content_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("content_items.id", name="fk_content_terms_content_id_content_items"),
        nullable=False,
    )
    taxonomy: Mapped[str] = mapped_column(String(50), nullable=False)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    position: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    content: Mapped["ContentItem"] = relationship("ContentItem", back_populates="terms")
