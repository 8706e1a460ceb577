# app/repositories/reservations.py
from datetime import datetime, timezone
from typing import List, Optional

import structlog
from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import DuplicatePaymentId, PersistenceFailure, RecordNotFound
from app.db.models.reservation import PaymentState, Reservation

logger = structlog.get_logger(__name__)


class ReservationStore:
    """
    Reservation persistence keyed by the processor payment id.

    update_state is a single conditional UPDATE, so two webhook deliveries
    racing on the same payment id cannot both apply the transition.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    async def create(self, reservation: Reservation) -> Reservation:
        if not reservation.payment_id:
            raise ValueError("reservation needs a processor payment id")

        self.db.add(reservation)
        try:
            await self.db.commit()
        except IntegrityError as e:
            await self.db.rollback()
            # the unique index on payment_id is the only constraint a valid
            # reservation can trip
            raise DuplicatePaymentId(
                f"Payment id {reservation.payment_id} already has a reservation",
                payment_id=reservation.payment_id,
            ) from e
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise PersistenceFailure("Could not store reservation", payment_id=reservation.payment_id) from e

        await self.db.refresh(reservation)
        return reservation

    async def update_state(
        self,
        payment_id: str,
        new_state: PaymentState,
        approved_at: Optional[datetime] = None,
    ) -> bool:
        """
        Move a pending reservation into a terminal state.
        Returns True if this call made the transition, False if the
        reservation was already terminal.
        """
        if not new_state.is_terminal:
            raise ValueError(f"{new_state.value} is not a terminal state")

        values = {"status": new_state.value}
        if new_state is PaymentState.APPROVED:
            values["approved_at"] = approved_at or datetime.now(timezone.utc)

        stmt = (
            update(Reservation)
            .where(
                Reservation.payment_id == payment_id,
                Reservation.status == PaymentState.PENDING.value,
            )
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        try:
            result = await self.db.execute(stmt)
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise PersistenceFailure("Could not update reservation state", payment_id=payment_id) from e

        if result.rowcount == 1:
            return True

        existing = await self.find_by_payment_id(payment_id)
        if existing is None:
            raise RecordNotFound(f"No reservation for payment {payment_id}", payment_id=payment_id)

        logger.info(
            "reservation_already_terminal",
            payment_id=payment_id,
            current_state=existing.status,
            requested_state=new_state.value,
        )
        return False

    async def find_by_payment_id(self, payment_id: str) -> Optional[Reservation]:
        try:
            result = await self.db.execute(
                select(Reservation)
                .where(Reservation.payment_id == payment_id)
                .execution_options(populate_existing=True)
            )
        except SQLAlchemyError as e:
            raise PersistenceFailure("Could not read reservation", payment_id=payment_id) from e
        return result.scalars().first()

    async def list_pending(self, older_than: datetime, limit: int = 50, after_id: int = 0) -> List[Reservation]:
        """Pending reservations in id order, starting after `after_id`."""
        try:
            result = await self.db.execute(
                select(Reservation)
                .where(
                    Reservation.status == PaymentState.PENDING.value,
                    Reservation.created_at <= older_than,
                    Reservation.id > after_id,
                )
                .order_by(Reservation.id.asc())
                .limit(limit)
            )
        except SQLAlchemyError as e:
            raise PersistenceFailure("Could not list pending reservations") from e
        return list(result.scalars().all())
