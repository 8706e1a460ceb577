# app/api/deps.py
from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from app.clients.processor import ProcessorClient
from app.core.config import Settings, get_settings
from app.db.base import get_db
from app.repositories.contacts import ContactDirectory
from app.repositories.reservations import ReservationStore
from app.repositories.reviews import ReviewRepository
from app.services.mailer import Mailer
from app.services.notifier import Notifier
from app.services.payments import PaymentInitiator
from app.services.reconciler import WebhookReconciler
from app.services.reviews import ReviewAggregator


# long-lived clients are built at startup and kept on app.state

def get_processor(request: Request) -> ProcessorClient:
    return request.app.state.processor


def get_mailer(request: Request) -> Mailer:
    return request.app.state.mailer


def get_reservation_store(db: AsyncSession = Depends(get_db)) -> ReservationStore:
    return ReservationStore(db)


def get_notifier(
    db: AsyncSession = Depends(get_db),
    mailer: Mailer = Depends(get_mailer),
    settings: Settings = Depends(get_settings),
) -> Notifier:
    return Notifier(ContactDirectory(db), mailer, settings.app_name)


def get_payment_initiator(
    processor: ProcessorClient = Depends(get_processor),
    store: ReservationStore = Depends(get_reservation_store),
    notifier: Notifier = Depends(get_notifier),
    settings: Settings = Depends(get_settings),
) -> PaymentInitiator:
    return PaymentInitiator(processor, store, notifier, settings.default_payer_email)


def get_reconciler(
    processor: ProcessorClient = Depends(get_processor),
    store: ReservationStore = Depends(get_reservation_store),
    notifier: Notifier = Depends(get_notifier),
) -> WebhookReconciler:
    return WebhookReconciler(processor, store, notifier)


def get_review_aggregator(db: AsyncSession = Depends(get_db)) -> ReviewAggregator:
    return ReviewAggregator(ReviewRepository(db))
