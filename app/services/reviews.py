# app/services/reviews.py
from dataclasses import dataclass
from typing import Any, List, Optional

import structlog
from sqlalchemy.exc import SQLAlchemyError

from app.core.errors import InvalidReview
from app.db.models.review import Review
from app.repositories.reviews import ReviewRepository
from app.schemas.review import ReviewCreate

logger = structlog.get_logger(__name__)

MIN_RATING = 1
MAX_RATING = 5


@dataclass
class ReviewResult:
    review: Review
    rating_average: Optional[float]
    rating_count: Optional[int]
    summary_updated: bool


def _ref(value: Any) -> Optional[str]:
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def _rating(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    if not isinstance(value, int):
        return None
    return value


class ReviewAggregator:
    def __init__(self, repository: ReviewRepository):
        self.repository = repository

    def _validate(self, review_in: ReviewCreate) -> Review:
        refs = {
            "talent_id": _ref(review_in.talent_id),
            "client_id": _ref(review_in.client_id),
            "reservation_id": _ref(review_in.reservation_id),
        }
        missing = [name for name, value in refs.items() if value is None]
        rating = _rating(review_in.rating)

        errors = {}
        if missing:
            errors["missing"] = missing
        if rating is None or not MIN_RATING <= rating <= MAX_RATING:
            errors["rating"] = f"must be an integer between {MIN_RATING} and {MAX_RATING}"
        if errors:
            raise InvalidReview("Invalid review data", details=errors)

        return Review(
            talent_id=refs["talent_id"],
            client_id=refs["client_id"],
            reservation_id=refs["reservation_id"],
            rating=rating,
            comment=review_in.comment,
        )

    async def submit_review(self, review_in: ReviewCreate) -> ReviewResult:
        review = self._validate(review_in)

        # insert first; a failure here is a PersistenceFailure for the caller
        review = await self.repository.add(review)
        log = logger.bind(talent_id=review.talent_id, review_id=review.id)
        log.info("review_created", rating=review.rating)

        # recompute from the full review set; if it fails the review stays and
        # the summary is stale until the next submission recomputes it
        try:
            summary = await self.repository.recompute_summary(review.talent_id)
        except SQLAlchemyError as e:
            log.error("rating_summary_stale", error=str(e))
            return ReviewResult(review=review, rating_average=None, rating_count=None, summary_updated=False)

        if summary is None:
            log.warning("rating_summary_talent_missing")
            return ReviewResult(review=review, rating_average=None, rating_count=None, summary_updated=False)

        average, count = summary
        return ReviewResult(review=review, rating_average=average, rating_count=count, summary_updated=True)

    async def list_reviews(self, talent_id: str) -> List[Review]:
        return await self.repository.list_for_talent(talent_id)
