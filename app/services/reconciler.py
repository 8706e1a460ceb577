# app/services/reconciler.py
import enum
from datetime import datetime, timezone

import structlog

from app.core.errors import InvalidWebhook, PersistenceFailure
from app.db.models.reservation import PaymentState
from app.repositories.reservations import ReservationStore
from app.schemas.webhook import WebhookEvent
from app.services.notifier import Notifier
from app.services.payments import PaymentProcessor, map_processor_status

logger = structlog.get_logger(__name__)


class ReconcileOutcome(str, enum.Enum):
    IGNORED = "ignored"                  # not a payment notification
    APPROVED = "approved"                # this call moved pending -> approved
    ALREADY_SETTLED = "already_settled"  # redelivery, nothing to do
    NOT_APPROVED = "not_approved"        # processor still reports something else
    FAILED = "failed"                    # this call moved pending -> failed


class WebhookReconciler:
    """
    Brings a reservation in line with the processor's view of its payment.

    The notification body is only used for its type and payment id; the
    status always comes from a fresh processor lookup.
    """

    def __init__(self, processor: PaymentProcessor, store: ReservationStore, notifier: Notifier):
        self.processor = processor
        self.store = store
        self.notifier = notifier

    async def handle_notification(self, event: WebhookEvent) -> ReconcileOutcome:
        if event.type != "payment":
            logger.info("webhook_ignored", event_type=event.type)
            return ReconcileOutcome.IGNORED

        payment_id = event.payment_id
        if not payment_id:
            raise InvalidWebhook("Payment notification without data.id")
        # processor payment ids are numeric; anything else never reaches the URL
        if not (payment_id.isascii() and payment_id.isdigit()):
            raise InvalidWebhook("Payment notification with a malformed data.id", details={"id": payment_id[:64]})

        return await self.reconcile(payment_id)

    async def reconcile(self, payment_id: str, settle_failures: bool = False) -> ReconcileOutcome:
        """
        Webhooks only apply the approved transition. With settle_failures the
        processor's terminal failures (rejected, cancelled, ...) are recorded
        as failed too; the pending sweep uses it so those rows leave its batch.
        """
        log = logger.bind(payment_id=payment_id)

        payment = await self.processor.get_payment(payment_id)
        # key everything on the id the processor answered for
        payment_id = payment.id
        state = map_processor_status(payment.status)

        if state is PaymentState.FAILED and settle_failures:
            applied = await self.store.update_state(payment_id, PaymentState.FAILED)
            log.info("payment_failed", processor_status=payment.status, applied=applied)
            return ReconcileOutcome.FAILED if applied else ReconcileOutcome.ALREADY_SETTLED

        if state is not PaymentState.APPROVED:
            log.info("payment_not_approved", processor_status=payment.status)
            return ReconcileOutcome.NOT_APPROVED

        applied = await self.store.update_state(payment_id, PaymentState.APPROVED, datetime.now(timezone.utc))
        if not applied:
            log.info("payment_already_settled")
            return ReconcileOutcome.ALREADY_SETTLED

        log.info("payment_approved")

        # the transition is committed; nothing below may turn this into a
        # failed acknowledgement, a redelivery would find it settled and
        # never notify
        try:
            reservation = await self.store.find_by_payment_id(payment_id)
        except PersistenceFailure:
            log.error("confirmation_lookup_failed")
            return ReconcileOutcome.APPROVED

        if reservation is not None:
            await self.notifier.notify_approved(reservation)
        return ReconcileOutcome.APPROVED
