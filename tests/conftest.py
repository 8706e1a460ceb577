"""
Shared fixtures: an in-memory SQLite database and in-memory fakes for the
processor and the mailer.
"""
from typing import Any, AsyncGenerator, Dict, List, Optional

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from app.clients.processor import ProcessorPayment
from app.core.errors import NotificationFailure, PaymentSubmissionFailed
from app.db.base import Base
from app.db.models import reservation, review, user  # noqa: F401
from app.db.models.user import Talent, User


class FakeProcessor:
    """Processor double. `statuses` is what get_payment reports per id."""

    def __init__(self, create_status: str = "pending", payment_id: str = "1001"):
        self.create_status = create_status
        self.payment_id = payment_id
        self.statuses: Dict[str, str] = {}
        self.created: List[Dict[str, Any]] = []
        self.lookups: List[str] = []
        self.reject_with: Optional[Dict[str, Any]] = None
        self.lookup_error: Optional[Exception] = None

    async def create_payment(self, payload, idempotency_key):
        self.created.append({"payload": payload, "idempotency_key": idempotency_key})
        if self.reject_with is not None:
            raise PaymentSubmissionFailed("Error processing the payment", status_code=400, details=self.reject_with)
        self.statuses.setdefault(self.payment_id, self.create_status)
        return ProcessorPayment(id=self.payment_id, status=self.create_status)

    async def get_payment(self, payment_id):
        self.lookups.append(payment_id)
        if self.lookup_error is not None:
            raise self.lookup_error
        return ProcessorPayment(id=payment_id, status=self.statuses.get(payment_id, "pending"))


class RecordingMailer:
    def __init__(self, fail: bool = False):
        self.fail = fail
        self.sent: List[Dict[str, Any]] = []

    async def send(self, recipients, subject, body):
        if self.fail:
            raise NotificationFailure("smtp down")
        self.sent.append({"recipients": list(recipients), "subject": subject, "body": body})


@pytest_asyncio.fixture
async def session_factory() -> AsyncGenerator[async_sessionmaker, Any]:
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)

    await engine.dispose()


@pytest_asyncio.fixture
async def db(session_factory) -> AsyncGenerator[AsyncSession, Any]:
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def people(db):
    """A client user and a talent profile owned by a second user."""
    client = User(id="client-1", email="client@example.com", name="Client")
    owner = User(id="user-talent-1", email="talent@example.com", name="Talent Owner")
    talent = Talent(id="talent-1", user_id=owner.id, display_name="Guitar lessons")
    db.add_all([client, owner, talent])
    await db.commit()
    return {"client": client, "owner": owner, "talent": talent}


@pytest.fixture
def processor() -> FakeProcessor:
    return FakeProcessor()


@pytest.fixture
def mailer() -> RecordingMailer:
    return RecordingMailer()
