# app/repositories/reviews.py
from typing import List, Optional, Tuple

from sqlalchemy import func, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import PersistenceFailure
from app.db.models.review import Review
from app.db.models.user import Talent


class ReviewRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def add(self, review: Review) -> Review:
        self.db.add(review)
        try:
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise PersistenceFailure("Could not store review") from e
        await self.db.refresh(review)
        return review

    async def recompute_summary(self, talent_id: str) -> Optional[Tuple[float, int]]:
        """
        Rewrites the talent's rating summary from the full review set in one
        UPDATE, so overlapping submissions cannot write back a stale read.
        Returns the new (average, count), or None when the talent row is missing.
        """
        count_q = select(func.count(Review.id)).where(Review.talent_id == talent_id).scalar_subquery()
        average_q = (
            select(func.coalesce(func.avg(Review.rating), 0.0))
            .where(Review.talent_id == talent_id)
            .scalar_subquery()
        )
        try:
            result = await self.db.execute(
                update(Talent)
                .where(Talent.id == talent_id)
                .values(rating_average=average_q, rating_count=count_q)
                .execution_options(synchronize_session=False)
            )
            await self.db.commit()
        except SQLAlchemyError:
            await self.db.rollback()
            raise
        if result.rowcount != 1:
            return None
        return await self.get_summary(talent_id)

    async def get_summary(self, talent_id: str) -> Optional[Tuple[float, int]]:
        result = await self.db.execute(
            select(Talent.rating_average, Talent.rating_count).where(Talent.id == talent_id)
        )
        row = result.first()
        if row is None:
            return None
        return float(row[0] or 0.0), int(row[1] or 0)

    async def list_for_talent(self, talent_id: str) -> List[Review]:
        result = await self.db.execute(
            select(Review).where(Review.talent_id == talent_id).order_by(Review.created_at.desc(), Review.id.desc())
        )
        return list(result.scalars().all())

