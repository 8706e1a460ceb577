# app/services/sweeper.py
from datetime import datetime, timedelta, timezone

import structlog
from sqlalchemy.ext.asyncio import async_sessionmaker

from app.core.errors import AppError
from app.repositories.contacts import ContactDirectory
from app.repositories.reservations import ReservationStore
from app.services.mailer import Mailer
from app.services.notifier import Notifier
from app.services.payments import PaymentProcessor
from app.services.reconciler import ReconcileOutcome, WebhookReconciler

logger = structlog.get_logger(__name__)


class PendingSweeper:
    """
    Re-reconciles reservations left pending, for webhooks that never arrived
    or kept failing.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker,
        processor: PaymentProcessor,
        mailer: Mailer,
        min_age_seconds: float = 300,
        batch_size: int = 50,
        app_name: str = "Talento Local",
    ):
        self.session_factory = session_factory
        self.processor = processor
        self.mailer = mailer
        self.min_age = timedelta(seconds=min_age_seconds)
        self.batch_size = batch_size
        self.app_name = app_name
        # id of the last reservation checked; pages wrap back to 0 at the end
        self._cursor = 0

    async def run_once(self) -> int:
        """Returns how many reservations were approved in this pass."""
        approved = 0
        failed = 0
        cutoff = datetime.now(timezone.utc) - self.min_age

        async with self.session_factory() as session:
            store = ReservationStore(session)
            notifier = Notifier(ContactDirectory(session), self.mailer, self.app_name)
            reconciler = WebhookReconciler(self.processor, store, notifier)

            pending = await store.list_pending(cutoff, self.batch_size, after_id=self._cursor)
            if len(pending) < self.batch_size:
                self._cursor = 0
            else:
                self._cursor = pending[-1].id

            for reservation in pending:
                payment_id = reservation.payment_id
                try:
                    outcome = await reconciler.reconcile(payment_id, settle_failures=True)
                except AppError as e:
                    logger.warning("sweep_reconcile_failed", payment_id=payment_id, error=e.message)
                    continue
                if outcome is ReconcileOutcome.APPROVED:
                    approved += 1
                elif outcome is ReconcileOutcome.FAILED:
                    failed += 1

        if pending:
            logger.info("sweep_finished", checked=len(pending), approved=approved, failed=failed)
        return approved
