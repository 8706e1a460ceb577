# app/schemas/review.py
from datetime import datetime
from typing import Any, Optional, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

Ref = Optional[Union[str, int]]


class ReviewCreate(BaseModel):
    # presence and rating range are checked by ReviewAggregator so bad input
    # gets the InvalidReview shape instead of a generic validation error
    model_config = ConfigDict(populate_by_name=True)

    talent_id: Ref = Field(default=None, validation_alias=AliasChoices("talent_id", "talento_id"))
    client_id: Ref = Field(default=None, validation_alias=AliasChoices("client_id", "cliente_id"))
    rating: Optional[Any] = None
    comment: Optional[str] = Field(default=None, validation_alias=AliasChoices("comment", "comentario"))
    reservation_id: Ref = Field(default=None, validation_alias=AliasChoices("reservation_id", "reserva_id"))


class ReviewResponse(BaseModel):
    id: int
    talent_id: str
    client_id: str
    reservation_id: str
    rating: int
    comment: Optional[str]
    created_at: Optional[datetime]

    class Config:
        from_attributes = True


class ReviewSubmitResponse(BaseModel):
    message: str
    review: ReviewResponse
    rating_average: Optional[float] = None
    rating_count: Optional[int] = None
    summary_updated: bool
