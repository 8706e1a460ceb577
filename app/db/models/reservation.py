# app/db/models/reservation.py
import enum

from sqlalchemy import CheckConstraint, Column, Date, DateTime, Integer, String, Time, func

from app.db.base import Base


class PaymentState(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self is not PaymentState.PENDING


class Reservation(Base):
    """
    A booked service paid through the processor.
    Rows are append-only: state moves pending -> approved | failed once and
    nothing deletes them.
    """
    __tablename__ = "reservations"
    __table_args__ = (
        CheckConstraint("status IN ('pending', 'approved', 'failed')", name="ck_reservation_status"),
        CheckConstraint("gross_amount > 0", name="ck_reservation_gross_positive"),
        CheckConstraint("commission_amount >= 0 AND commission_amount <= gross_amount", name="ck_reservation_commission"),
    )

    id = Column(Integer, primary_key=True, index=True)
    payment_id = Column(String, nullable=False, unique=True, index=True)

    client_id = Column(String, nullable=True)
    talent_id = Column(String, nullable=False, index=True)

    gross_amount = Column(Integer, nullable=False)
    commission_amount = Column(Integer, nullable=False)

    status = Column(String, nullable=False, default=PaymentState.PENDING.value)
    processor_status = Column(String, nullable=True)  # raw status seen at creation

    service_date = Column(Date, nullable=True)
    service_time = Column(Time, nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    approved_at = Column(DateTime(timezone=True), nullable=True)

    @property
    def state(self) -> PaymentState:
        return PaymentState(self.status)
