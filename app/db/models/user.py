# app/db/models/user.py
from sqlalchemy import Column, Float, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from app.db.base import Base


class User(Base):
    __tablename__ = "users"

    id = Column(String, primary_key=True, index=True)
    email = Column(String, unique=True, index=True, nullable=False)
    name = Column(String, nullable=True)

    talent = relationship("Talent", back_populates="user", uselist=False, lazy="selectin")


class Talent(Base):
    """Talent profile hanging off a user; owns the rating summary."""
    __tablename__ = "talents"

    id = Column(String, primary_key=True, index=True)
    user_id = Column(String, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, unique=True)
    display_name = Column(String, nullable=True)

    # recomputed from the reviews table on every new review
    rating_average = Column(Float, nullable=False, default=0.0)
    rating_count = Column(Integer, nullable=False, default=0)

    user = relationship("User", back_populates="talent", lazy="selectin")
