import logging
from typing import List, Optional, Tuple

import sqlalchemy as sa
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ..common.errors import ConflictError, ForbiddenError, NotFoundError
from ..inventory.service import ProductStore
from .model import Review, ReviewStatus
from .rating import RatingSummary, summarize_ratings
from .schemas import CreateReviewRequest, ReviewFilter, UpdateReviewRequest

_logger = logging.getLogger(__name__)


class ReviewStore:
    async def get(self, session: AsyncSession, review_id: int) -> Review:
        review = await session.get(Review, review_id)
        if review is None:
            raise NotFoundError("Review not found")
        return review

    async def find_for_user(self, session: AsyncSession, user_id: str, product_id: int) -> Optional[Review]:
        stmt = sa.select(Review).where(Review.user_id == user_id, Review.product_id == product_id)
        return (await session.execute(stmt)).scalars().first()

    async def list_filtered(
        self,
        session: AsyncSession,
        filters: ReviewFilter,
        product_id: Optional[int] = None,
        status: Optional[ReviewStatus] = None,
    ) -> Tuple[List[Review], int]:
        conditions = [Review.status == (status or filters.status or ReviewStatus.approved)]
        if product_id is not None:
            conditions.append(Review.product_id == product_id)
        if filters.rating is not None:
            conditions.append(Review.rating == filters.rating)
        if filters.is_verified is not None:
            conditions.append(Review.is_verified.is_(filters.is_verified))

        sort_column = getattr(Review, filters.sort_by)
        ordering = sort_column.asc() if filters.sort_order == "ASC" else sort_column.desc()

        total = (await session.execute(sa.select(sa.func.count(Review.id)).where(*conditions))).scalar_one()
        stmt = (
            sa.select(Review)
            .where(*conditions)
            .order_by(ordering, Review.id.desc())
            .offset((filters.page - 1) * filters.limit)
            .limit(filters.limit)
        )
        res = await session.execute(stmt)
        return list(res.scalars().all()), int(total)

    async def list_for_user(self, session: AsyncSession, user_id: str) -> List[Review]:
        stmt = sa.select(Review).where(Review.user_id == user_id).order_by(Review.created_at.desc(), Review.id.desc())
        res = await session.execute(stmt)
        return list(res.scalars().all())

    async def ratings(self, session: AsyncSession, product_id: int, *statuses: ReviewStatus) -> List[int]:
        stmt = sa.select(Review.rating).where(Review.product_id == product_id, Review.status.in_(statuses))
        res = await session.execute(stmt)
        return list(res.scalars().all())


class ReviewService:
    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        store: ReviewStore,
        products: ProductStore,
    ):
        self._session_factory = session_factory
        self._store = store
        self._products = products

    async def _refresh_product_rating(self, session: AsyncSession, product_id: int) -> RatingSummary:
        # Rejected reviews never count towards the stored rating
        await session.flush()
        ratings = await self._store.ratings(session, product_id, ReviewStatus.pending, ReviewStatus.approved)
        summary = summarize_ratings(ratings)
        await self._products.set_rating(session, product_id, summary.average, summary.count)
        return summary

    async def create_review(self, user_id: str, payload: CreateReviewRequest) -> Review:
        async with self._session_factory() as session:
            async with session.begin():
                await self._products.get_active(session, payload.product_id)
                if await self._store.find_for_user(session, user_id, payload.product_id) is not None:
                    raise ConflictError("You have already reviewed this product")
                review = Review(user_id=user_id, **payload.model_dump())
                session.add(review)
                summary = await self._refresh_product_rating(session, payload.product_id)
            await session.refresh(review)
        _logger.info(
            "Review created | review_id=%s product_id=%s rating=%s product_rating=%s",
            review.id,
            review.product_id,
            review.rating,
            summary.average,
        )
        return review

    async def list_reviews(self, filters: Optional[ReviewFilter] = None) -> Tuple[List[Review], int]:
        async with self._session_factory() as session:
            return await self._store.list_filtered(session, filters or ReviewFilter())

    async def list_product_reviews(
        self, product_id: int, filters: Optional[ReviewFilter] = None
    ) -> Tuple[List[Review], int, RatingSummary]:
        async with self._session_factory() as session:
            reviews, total = await self._store.list_filtered(
                session, filters or ReviewFilter(), product_id=product_id, status=ReviewStatus.approved
            )
            summary = summarize_ratings(await self._store.ratings(session, product_id, ReviewStatus.approved))
        return reviews, total, summary

    async def get_review(self, review_id: int) -> Review:
        async with self._session_factory() as session:
            return await self._store.get(session, review_id)

    async def list_user_reviews(self, user_id: str) -> List[Review]:
        async with self._session_factory() as session:
            return await self._store.list_for_user(session, user_id)

    async def update_review(self, review_id: int, user_id: str, payload: UpdateReviewRequest) -> Review:
        changes = payload.model_dump(exclude_unset=True, exclude_none=True)
        async with self._session_factory() as session:
            async with session.begin():
                review = await self._store.get(session, review_id)
                if review.user_id != user_id:
                    raise ForbiddenError("You can only update your own reviews")
                for field, value in changes.items():
                    setattr(review, field, value)
                await self._refresh_product_rating(session, review.product_id)
            await session.refresh(review)
        _logger.info("Review updated | review_id=%s fields=%s", review_id, sorted(changes))
        return review

    async def delete_review(self, review_id: int, user_id: str) -> None:
        async with self._session_factory() as session:
            async with session.begin():
                review = await self._store.get(session, review_id)
                if review.user_id != user_id:
                    raise ForbiddenError("You can only delete your own reviews")
                product_id = review.product_id
                await session.delete(review)
                await self._refresh_product_rating(session, product_id)
        _logger.info("Review deleted | review_id=%s product_id=%s", review_id, product_id)

    async def mark_helpful(self, review_id: int, is_helpful: bool) -> Review:
        column = Review.helpful_count if is_helpful else Review.not_helpful_count
        async with self._session_factory() as session:
            async with session.begin():
                res = await session.execute(
                    sa.update(Review)
                    .where(Review.id == review_id)
                    .values({column: column + 1})
                    .execution_options(synchronize_session=False)
                )
                if (res.rowcount or 0) == 0:
                    raise NotFoundError("Review not found")
            return await self._store.get(session, review_id)

    async def get_review_stats(self, product_id: int) -> RatingSummary:
        async with self._session_factory() as session:
            await self._products.get(session, product_id)
            return summarize_ratings(await self._store.ratings(session, product_id, ReviewStatus.approved))

    async def approve_review(self, review_id: int) -> Review:
        return await self._set_status(review_id, ReviewStatus.approved)

    async def reject_review(self, review_id: int) -> Review:
        return await self._set_status(review_id, ReviewStatus.rejected)

    async def _set_status(self, review_id: int, status: ReviewStatus) -> Review:
        async with self._session_factory() as session:
            async with session.begin():
                review = await self._store.get(session, review_id)
                review.status = status
                await self._refresh_product_rating(session, review.product_id)
            await session.refresh(review)
        _logger.info("Review moderated | review_id=%s status=%s", review_id, status.value)
        return review
