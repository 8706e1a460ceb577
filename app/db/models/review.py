# app/db/models/review.py
from sqlalchemy import CheckConstraint, Column, DateTime, Integer, String, func

from app.db.base import Base


class Review(Base):
    __tablename__ = "reviews"
    __table_args__ = (
        CheckConstraint("rating BETWEEN 1 AND 5", name="ck_review_rating"),
    )

    id = Column(Integer, primary_key=True, index=True)
    talent_id = Column(String, nullable=False, index=True)
    client_id = Column(String, nullable=False)
    reservation_id = Column(String, nullable=False)

    rating = Column(Integer, nullable=False)   # 1..5
    comment = Column(String, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
