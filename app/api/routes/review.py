# app/api/routes/review.py
from typing import List

from fastapi import APIRouter, Depends

from app.api.deps import get_review_aggregator
from app.schemas.review import ReviewCreate, ReviewResponse, ReviewSubmitResponse
from app.services.reviews import ReviewAggregator

router = APIRouter(prefix="/api", tags=["reviews"])


# Client reviews a talent; the talent's rating summary is recomputed
@router.post("/submit-review", response_model=ReviewSubmitResponse)
async def submit_review(review_in: ReviewCreate, aggregator: ReviewAggregator = Depends(get_review_aggregator)):
    result = await aggregator.submit_review(review_in)
    return ReviewSubmitResponse(
        message="Review saved successfully.",
        review=ReviewResponse.model_validate(result.review),
        rating_average=result.rating_average,
        rating_count=result.rating_count,
        summary_updated=result.summary_updated,
    )


# List reviews for a talent (public)
@router.get("/talents/{talent_id}/reviews", response_model=List[ReviewResponse])
async def list_talent_reviews(talent_id: str, aggregator: ReviewAggregator = Depends(get_review_aggregator)):
    return await aggregator.list_reviews(talent_id)
