# app/clients/processor.py
"""
MercadoPago payments API client.

Only two calls matter here: submitting a charge and reading a payment back.
Status reads are retried on transient failures. Charge submission is sent
once with an idempotency key and never retried here.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, Optional
from urllib.parse import quote

import httpx
import structlog
from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from app.core.config import Settings
from app.core.errors import PaymentSubmissionFailed, ProcessorUnavailable, UpstreamRejection

logger = structlog.get_logger(__name__)


@dataclass
class ProcessorPayment:
    id: str
    status: str
    status_detail: Optional[str] = None
    raw: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_response(cls, body: Dict[str, Any]) -> "ProcessorPayment":
        if body.get("id") is None or not body.get("status"):
            raise UpstreamRejection("Processor response is missing id or status", details=body)
        return cls(
            id=str(body["id"]),
            status=str(body["status"]),
            status_detail=body.get("status_detail"),
            raw=body,
        )


class _RetryableStatus(Exception):
    def __init__(self, response: httpx.Response):
        super().__init__(f"processor answered {response.status_code}")
        self.response = response


def _json_or_text(response: httpx.Response) -> Dict[str, Any]:
    try:
        body = response.json()
    except ValueError:
        return {"status": response.status_code, "message": response.text[:500]}
    if isinstance(body, dict):
        return body
    return {"status": response.status_code, "message": str(body)[:500]}


class ProcessorClient:
    def __init__(self, settings: Settings, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.retry_attempts = settings.processor_retry_attempts
        self._client = httpx.AsyncClient(
            base_url=settings.processor_base_url.rstrip("/"),
            headers={
                "Authorization": f"Bearer {settings.processor_access_token}",
                "Content-Type": "application/json",
            },
            timeout=httpx.Timeout(settings.processor_timeout_seconds),
            transport=transport,
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def create_payment(self, payload: Dict[str, Any], idempotency_key: str) -> ProcessorPayment:
        try:
            response = await self._client.post(
                "/v1/payments",
                json=payload,
                headers={"X-Idempotency-Key": idempotency_key},
            )
        except httpx.TimeoutException as e:
            logger.error("processor_charge_timeout", idempotency_key=idempotency_key)
            raise ProcessorUnavailable("Payment processor timed out") from e
        except httpx.HTTPError as e:
            logger.error("processor_charge_transport_error", error=str(e))
            raise ProcessorUnavailable("Payment processor unreachable") from e

        if response.is_error:
            body = _json_or_text(response)
            logger.warning(
                "processor_charge_rejected",
                http_status=response.status_code,
                processor_message=body.get("message"),
            )
            raise PaymentSubmissionFailed(
                "Error processing the payment",
                status_code=response.status_code,
                details=body,
            )

        return ProcessorPayment.from_response(_json_or_text(response))

    async def get_payment(self, payment_id: str) -> ProcessorPayment:
        """Authoritative payment status. Retries timeouts, transport errors and 5xx."""
        try:
            async for attempt in AsyncRetrying(
                retry=retry_if_exception_type((httpx.TransportError, _RetryableStatus)),
                stop=stop_after_attempt(self.retry_attempts),
                wait=wait_exponential(multiplier=0.5, min=0.5, max=5),
                reraise=True,
            ):
                with attempt:
                    response = await self._client.get(f"/v1/payments/{quote(payment_id, safe='')}")
                    if response.status_code >= 500:
                        raise _RetryableStatus(response)
        except httpx.TimeoutException as e:
            logger.error("processor_lookup_timeout", payment_id=payment_id)
            raise ProcessorUnavailable("Payment processor timed out") from e
        except httpx.HTTPError as e:
            logger.error("processor_lookup_transport_error", payment_id=payment_id, error=str(e))
            raise ProcessorUnavailable("Payment processor unreachable") from e
        except _RetryableStatus as e:
            logger.error("processor_lookup_failed", payment_id=payment_id, http_status=e.response.status_code)
            raise ProcessorUnavailable(
                "Payment processor failed the status lookup",
                details=_json_or_text(e.response),
            ) from e

        if response.is_error:
            logger.warning("processor_lookup_rejected", payment_id=payment_id, http_status=response.status_code)
            raise UpstreamRejection(
                f"Processor refused status lookup for {payment_id}",
                details=_json_or_text(response),
            )

        return ProcessorPayment.from_response(_json_or_text(response))
