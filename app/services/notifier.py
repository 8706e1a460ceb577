# app/services/notifier.py
from typing import Optional, Protocol

import structlog

from app.core.errors import NotificationFailure
from app.db.models.reservation import Reservation
from app.services.mailer import Mailer

logger = structlog.get_logger(__name__)


class Directory(Protocol):
    async def client_email(self, client_id: Optional[str]) -> Optional[str]: ...

    async def talent_email(self, talent_id: str) -> Optional[str]: ...


class Notifier:
    """
    Sends the booking confirmation to client and talent.
    Best effort: every failure is logged and swallowed, the payment state
    already committed is never affected.
    """

    def __init__(self, directory: Directory, mailer: Mailer, app_name: str = "Talento Local"):
        self.directory = directory
        self.mailer = mailer
        self.app_name = app_name

    def _body(self, reservation: Reservation) -> str:
        date = reservation.service_date.isoformat() if reservation.service_date else "to be agreed"
        time = reservation.service_time.strftime("%H:%M") if reservation.service_time else "to be agreed"
        return (
            "Hello,\n\n"
            "Your service has been confirmed.\n"
            f"Date: {date}\n"
            f"Time: {time}\n"
            f"Amount: {reservation.gross_amount}\n\n"
            f"Thanks for using {self.app_name}!"
        )

    async def notify_approved(self, reservation: Reservation) -> bool:
        log = logger.bind(payment_id=reservation.payment_id, talent_id=reservation.talent_id)
        try:
            client_email = await self.directory.client_email(reservation.client_id)
            talent_email = await self.directory.talent_email(reservation.talent_id)

            recipients = [e for e in (client_email, talent_email) if e]
            if not recipients:
                log.warning("confirmation_skipped_no_recipients", client_id=reservation.client_id)
                return False
            if len(recipients) < 2:
                log.warning("confirmation_partial_recipients", client_found=bool(client_email), talent_found=bool(talent_email))

            await self.mailer.send(
                recipients,
                f"Service confirmation - {self.app_name}",
                self._body(reservation),
            )
        except NotificationFailure as e:
            log.error("confirmation_email_failed", error=e.message)
            return False
        except Exception:
            # directory lookups or an unexpected mailer bug; still isolated
            log.exception("confirmation_email_error")
            return False

        log.info("confirmation_email_sent", recipients=len(recipients))
        return True
