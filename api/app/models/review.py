"""Review ORM model.

Rows belong to the review store. Ratings are already on a percentage scale
(1-100); a rating of 0 means the review carries no score and is ignored by
aggregation, as are unapproved reviews.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import Boolean, DateTime, Float, Index, Integer, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from app.config import settings

from .base import Base


class Review(Base):
    __tablename__ = settings.reviews_table

    __table_args__ = (
        # Covers the aggregate query: post_id filter + approved/rating predicates
        Index("ix_reviews_post_id_approved", "post_id", "approved"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    # Not a foreign key: the review store is owned by a separate system
    post_id: Mapped[int] = mapped_column(Integer, nullable=False)
    author_name: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    title: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    content: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    rating: Mapped[float] = mapped_column(Float, default=0.0, nullable=False)
    approved: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )
