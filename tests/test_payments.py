from datetime import date, time

import pytest

from app.core.errors import InvalidAmount, PaymentSubmissionFailed, PersistenceFailure
from app.db.models.reservation import PaymentState
from app.repositories.contacts import ContactDirectory
from app.repositories.reservations import ReservationStore
from app.schemas.payment import ChargeRequest, Payer
from app.services.notifier import Notifier
from app.services.payments import PaymentInitiator, map_processor_status


def charge(**overrides):
    fields = dict(
        transaction_amount=1000,
        token="card-token",
        payment_method_id="visa",
        talent_id="talent-1",
        client_id="client-1",
        service_date=date(2026, 11, 2),
        service_time=time(15, 30),
    )
    fields.update(overrides)
    return ChargeRequest(**fields)


def build_initiator(db, processor, mailer):
    store = ReservationStore(db)
    notifier = Notifier(ContactDirectory(db), mailer)
    return PaymentInitiator(processor, store, notifier, default_payer_email="test_user@test.com"), store


@pytest.mark.parametrize(
    "status, state",
    [
        ("approved", PaymentState.APPROVED),
        ("pending", PaymentState.PENDING),
        ("in_process", PaymentState.PENDING),
        ("authorized", PaymentState.PENDING),
        ("rejected", PaymentState.FAILED),
        ("cancelled", PaymentState.FAILED),
    ],
)
def test_map_processor_status(status, state):
    assert map_processor_status(status) is state


@pytest.mark.asyncio
async def test_pending_charge_creates_pending_reservation(db, people, processor, mailer):
    initiator, store = build_initiator(db, processor, mailer)

    result = await initiator.initiate_payment(charge())

    assert result.status == "pending"
    assert result.id == "1001"

    payload = processor.created[0]["payload"]
    assert payload["application_fee"] == 50
    assert payload["installments"] == 1
    assert payload["payer"] == {"email": "test_user@test.com"}
    assert processor.created[0]["idempotency_key"]

    reservation = await store.find_by_payment_id("1001")
    assert reservation.state is PaymentState.PENDING
    assert reservation.gross_amount == 1000
    assert reservation.commission_amount == 50
    assert reservation.service_date == date(2026, 11, 2)
    assert reservation.approved_at is None
    assert mailer.sent == []


@pytest.mark.asyncio
async def test_payer_email_is_forwarded(db, people, processor, mailer):
    initiator, _ = build_initiator(db, processor, mailer)
    await initiator.initiate_payment(charge(payer=Payer(email="real@example.com"), installments=3))

    payload = processor.created[0]["payload"]
    assert payload["payer"] == {"email": "real@example.com"}
    assert payload["installments"] == 3


@pytest.mark.asyncio
async def test_instant_approval_is_recorded_and_notified(db, people, processor, mailer):
    processor.create_status = "approved"
    initiator, store = build_initiator(db, processor, mailer)

    await initiator.initiate_payment(charge())

    reservation = await store.find_by_payment_id("1001")
    assert reservation.state is PaymentState.APPROVED
    assert reservation.approved_at is not None
    assert len(mailer.sent) == 1


@pytest.mark.asyncio
async def test_rejected_charge_creates_failed_reservation(db, people, processor, mailer):
    processor.create_status = "rejected"
    initiator, store = build_initiator(db, processor, mailer)
    result = await initiator.initiate_payment(charge())

    assert result.status == "rejected"
    assert (await store.find_by_payment_id("1001")).state is PaymentState.FAILED


@pytest.mark.asyncio
async def test_processor_rejection_creates_no_reservation(db, processor, mailer):
    processor.reject_with = {"status": 400, "message": "invalid card token", "error": "bad_request"}
    initiator, store = build_initiator(db, processor, mailer)

    with pytest.raises(PaymentSubmissionFailed) as excinfo:
        await initiator.initiate_payment(charge())

    assert excinfo.value.details["message"] == "invalid card token"
    assert await store.find_by_payment_id("1001") is None


@pytest.mark.asyncio
async def test_invalid_amount_never_reaches_processor(db, processor, mailer):
    initiator, _ = build_initiator(db, processor, mailer)

    with pytest.raises(InvalidAmount):
        await initiator.initiate_payment(charge(transaction_amount=0))
    assert processor.created == []


@pytest.mark.asyncio
async def test_reused_payment_id_is_a_persistence_failure(db, people, processor, mailer):
    initiator, store = build_initiator(db, processor, mailer)
    await initiator.initiate_payment(charge())

    with pytest.raises(PersistenceFailure) as excinfo:
        await initiator.initiate_payment(charge(transaction_amount=5000))

    assert excinfo.value.payment_id == "1001"
    assert (await store.find_by_payment_id("1001")).gross_amount == 1000


def test_legacy_field_names_are_accepted():
    request = ChargeRequest.model_validate(
        {
            "transaction_amount": 1000,
            "token": "tok",
            "payment_method_id": "visa",
            "talentId": "talent-9",
            "clienteId": "client-9",
            "fecha_servicio": "2026-11-02",
            "hora_servicio": "10:00",
        }
    )
    assert request.talent_id == "talent-9"
    assert request.client_id == "client-9"
    assert request.service_date == date(2026, 11, 2)
    assert request.service_time == time(10, 0)
