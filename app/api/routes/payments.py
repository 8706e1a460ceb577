# app/api/routes/payments.py
from fastapi import APIRouter, Depends, HTTPException

from app.api.deps import get_payment_initiator, get_reservation_store
from app.repositories.reservations import ReservationStore
from app.schemas.payment import ChargeRequest, ChargeResponse
from app.schemas.reservation import ReservationResponse
from app.services.payments import PaymentInitiator

router = APIRouter(prefix="/api", tags=["payments"])


# Client pays for a booked service (escrow: commission withheld)
@router.post("/process-payment", response_model=ChargeResponse)
async def process_payment(
    charge: ChargeRequest,
    initiator: PaymentInitiator = Depends(get_payment_initiator),
):
    # AppError subclasses are rendered by the handler in app.main
    result = await initiator.initiate_payment(charge)
    return ChargeResponse(status=result.status, id=result.id)


# Support tooling: look a reservation up by processor payment id
@router.get("/reservations/{payment_id}", response_model=ReservationResponse)
async def get_reservation(payment_id: str, store: ReservationStore = Depends(get_reservation_store)):
    reservation = await store.find_by_payment_id(payment_id)
    if not reservation:
        raise HTTPException(status_code=404, detail="Reservation not found")
    return reservation
