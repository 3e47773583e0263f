"""Review store access and change notification.

The aggregation pipeline only ever reads from the store, through one grouped
query per content item. Writes exist for seeding and for the owning system;
every write notifies the registered observers synchronously (awaited inline)
with the affected content id, which is how cached aggregates get invalidated.

"Qualifying" reviews are approved and carry a rating above zero.
"""

from typing import Awaitable, Callable, Optional

import structlog
from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.models.review import Review
from app.schemas.rating import ReviewEvent

log = structlog.get_logger()

ReviewObserver = Callable[[int, ReviewEvent], Awaitable[None]]


def _qualifying(content_id: int):
    return (
        Review.post_id == content_id,
        Review.approved.is_(True),
        Review.rating > 0,
    )


class ReviewStore:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory
        self._observers: list[ReviewObserver] = []

    def add_observer(self, observer: ReviewObserver) -> None:
        """Register a callback invoked after every review create/update/delete."""
        self._observers.append(observer)

    async def notify(self, content_id: int, event: ReviewEvent) -> None:
        """Invoke every observer for a change on content_id.

        Observer failures are logged and do not stop the remaining observers;
        the write that triggered the notification has already been committed.
        """
        for observer in self._observers:
            try:
                await observer(content_id, event)
            except Exception:
                log.exception(
                    "review_observer_failed", content_id=content_id, review_event=event.value
                )

    async def aggregate(self, content_id: int) -> tuple[int, Optional[float]]:
        """Count and mean rating of qualifying reviews, in one query."""
        async with self._session_factory() as session:
            result = await session.execute(
                select(func.count(Review.id), func.avg(Review.rating)).where(
                    *_qualifying(content_id)
                )
            )
            count, average = result.one()
        return int(count or 0), (float(average) if average is not None else None)

    async def count_approved_rated_reviews(self, content_id: int) -> int:
        count, _ = await self.aggregate(content_id)
        return count

    async def average_rating(self, content_id: int) -> Optional[float]:
        _, average = await self.aggregate(content_id)
        return average

    async def has_rated_reviews(self, content_id: int) -> bool:
        """Cheap existence probe: is there at least one qualifying review?"""
        async with self._session_factory() as session:
            result = await session.execute(
                select(Review.id).where(*_qualifying(content_id)).limit(1)
            )
            return result.first() is not None

    async def review_counts(self) -> tuple[int, int]:
        """(total, approved) review counts across the whole store."""
        async with self._session_factory() as session:
            result = await session.execute(
                select(
                    func.count(Review.id),
                    func.count(Review.id).filter(Review.approved.is_(True)),
                )
            )
            total, approved = result.one()
        return int(total or 0), int(approved or 0)

    async def sample_rated_review(self) -> Optional[Review]:
        """Any one approved, rated review, for connection diagnostics."""
        async with self._session_factory() as session:
            result = await session.execute(
                select(Review)
                .where(Review.approved.is_(True), Review.rating > 0)
                .order_by(Review.id)
                .limit(1)
            )
            return result.scalar_one_or_none()

    async def create_review(
        self,
        content_id: int,
        rating: float,
        approved: bool = True,
        author_name: Optional[str] = None,
        title: Optional[str] = None,
        content: Optional[str] = None,
    ) -> Review:
        async with self._session_factory() as session:
            review = Review(
                post_id=content_id,
                rating=rating,
                approved=approved,
                author_name=author_name,
                title=title,
                content=content,
            )
            session.add(review)
            await session.commit()
            await session.refresh(review)

        await self.notify(content_id, ReviewEvent.created)
        return review

    async def update_review(
        self,
        review_id: int,
        rating: Optional[float] = None,
        approved: Optional[bool] = None,
    ) -> Optional[Review]:
        async with self._session_factory() as session:
            review = await session.get(Review, review_id)
            if review is None:
                return None
            if rating is not None:
                review.rating = rating
            if approved is not None:
                review.approved = approved
            await session.commit()
            await session.refresh(review)

        await self.notify(review.post_id, ReviewEvent.updated)
        return review

    async def delete_review(self, review_id: int) -> bool:
        async with self._session_factory() as session:
            result = await session.execute(
                delete(Review).where(Review.id == review_id).returning(Review.post_id)
            )
            content_id = result.scalar_one_or_none()
            await session.commit()

        if content_id is None:
            return False
        await self.notify(content_id, ReviewEvent.deleted)
        return True
