# app/api/routes/webhooks.py
import structlog
from fastapi import APIRouter, Depends
from fastapi.responses import PlainTextResponse

from app.api.deps import get_reconciler
from app.core.errors import AppError, ValidationError
from app.schemas.webhook import WebhookEvent
from app.services.reconciler import WebhookReconciler

router = APIRouter(prefix="/api/webhooks", tags=["webhooks"])
logger = structlog.get_logger(__name__)


@router.post("/mercadopago", response_class=PlainTextResponse)
async def mercadopago_webhook(event: WebhookEvent, reconciler: WebhookReconciler = Depends(get_reconciler)):
    try:
        outcome = await reconciler.handle_notification(event)
    except ValidationError:
        raise
    except AppError as e:
        # non-2xx makes the processor redeliver later
        logger.error("webhook_processing_failed", payment_id=event.payment_id, error=e.message, code=e.code)
        return PlainTextResponse("Error", status_code=500)

    logger.info("webhook_acknowledged", payment_id=event.payment_id, outcome=outcome.value)
    return PlainTextResponse("OK", status_code=200)
