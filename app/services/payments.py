# app/services/payments.py
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Protocol

import structlog

from app.clients.processor import ProcessorPayment
from app.core.errors import DuplicatePaymentId, PersistenceFailure
from app.db.models.reservation import PaymentState, Reservation
from app.repositories.reservations import ReservationStore
from app.schemas.payment import ChargeRequest
from app.services.commission import calculate_commission
from app.services.notifier import Notifier

logger = structlog.get_logger(__name__)

# processor statuses that are already final when the charge comes back
APPROVED_STATUSES = {"approved"}
FAILED_STATUSES = {"rejected", "cancelled", "refunded", "charged_back"}


def map_processor_status(status: str) -> PaymentState:
    status = (status or "").lower()
    if status in APPROVED_STATUSES:
        return PaymentState.APPROVED
    if status in FAILED_STATUSES:
        return PaymentState.FAILED
    # pending, in_process, authorized, in_mediation ...
    return PaymentState.PENDING


class PaymentProcessor(Protocol):
    async def create_payment(self, payload: Dict[str, Any], idempotency_key: str) -> ProcessorPayment: ...

    async def get_payment(self, payment_id: str) -> ProcessorPayment: ...


@dataclass
class ChargeResult:
    status: str
    id: str
    reservation: Reservation


class PaymentInitiator:
    def __init__(
        self,
        processor: PaymentProcessor,
        store: ReservationStore,
        notifier: Optional[Notifier] = None,
        default_payer_email: str = "test_user@test.com",
    ):
        self.processor = processor
        self.store = store
        self.notifier = notifier
        # documented fallback: the processor requires a payer email and the
        # web client does not always collect one
        self.default_payer_email = default_payer_email

    def _charge_payload(self, request: ChargeRequest, commission: int) -> Dict[str, Any]:
        payer_email = (request.payer.email if request.payer else None) or self.default_payer_email
        return {
            "transaction_amount": request.transaction_amount,
            "token": request.token,
            "description": f"Service booking - talent {request.talent_id}",
            "payment_method_id": request.payment_method_id,
            "installments": request.installments or 1,
            "payer": {"email": payer_email},
            "application_fee": commission,
        }

    async def initiate_payment(self, request: ChargeRequest) -> ChargeResult:
        # Step 1: validate amount and compute the withheld commission
        commission = calculate_commission(request.transaction_amount)

        # Step 2: submit the charge; rejections raise before anything is stored
        idempotency_key = str(uuid.uuid4())
        log = logger.bind(talent_id=request.talent_id, idempotency_key=idempotency_key)
        log.info("charge_submitting", gross_amount=request.transaction_amount, commission=commission)

        payment = await self.processor.create_payment(self._charge_payload(request, commission), idempotency_key)
        log = log.bind(payment_id=payment.id)
        log.info("charge_accepted", processor_status=payment.status, status_detail=payment.status_detail)

        # Step 3: record the reservation with the state the processor reported
        state = map_processor_status(payment.status)
        reservation = Reservation(
            payment_id=payment.id,
            talent_id=request.talent_id,
            client_id=request.client_id,
            gross_amount=request.transaction_amount,
            commission_amount=commission,
            status=state.value,
            processor_status=payment.status,
            service_date=request.service_date,
            service_time=request.service_time,
            created_at=datetime.now(timezone.utc),
            approved_at=datetime.now(timezone.utc) if state is PaymentState.APPROVED else None,
        )
        try:
            reservation = await self.store.create(reservation)
        except DuplicatePaymentId:
            log.error("reservation_duplicate_payment_id")
            raise
        except PersistenceFailure:
            # the charge exists at the processor but not locally; the payment id
            # in the log is what support needs to reconcile by hand
            log.error("reservation_persist_failed", processor_status=payment.status)
            raise

        log.info("reservation_created", state=state.value, reservation_id=reservation.id)

        # instant approvals never see a pending -> approved transition
        if state is PaymentState.APPROVED and self.notifier is not None:
            await self.notifier.notify_approved(reservation)

        return ChargeResult(status=payment.status, id=payment.id, reservation=reservation)
