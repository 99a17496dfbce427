from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, Optional

import httpx

from offerhub.config import settings
from offerhub.exceptions import PaymentError
from offerhub.models.payment import PaymentRecord, PaymentRequest
from offerhub.models.user import Account
from offerhub.services.postgres_record_store import get_record_store
from offerhub.services.record_store import RecordStore
from offerhub.utils.logger import logger


def to_cents(amount: float) -> int:
    """Convert an amount to the smallest currency unit, halves rounded up."""
    return int((Decimal(str(amount)) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


class PaymentService:
    """Thin pass-through to Stripe PaymentIntents."""

    def __init__(
        self,
        record_store: RecordStore,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        currency: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.record_store = record_store
        self.api_key = api_key or settings.STRIPE_API_KEY
        self.base_url = (base_url or settings.STRIPE_API_BASE_URL).rstrip("/")
        self.currency = currency or settings.PAYMENT_CURRENCY
        self._transport = transport

    async def create_payment_intent(self, amount: float, title: str) -> Dict[str, Any]:
        if not self.api_key:
            raise PaymentError("STRIPE_API_KEY is not configured")

        # Stripe expects the smallest currency unit.
        payload = {
            "amount": str(to_cents(amount)),
            "currency": self.currency,
            "description": title,
        }
        headers = {"Authorization": f"Bearer {self.api_key}"}

        try:
            async with httpx.AsyncClient(
                base_url=self.base_url,
                timeout=settings.PAYMENT_TIMEOUT_SECONDS,
                transport=self._transport,
            ) as client:
                response = await client.post("/v1/payment_intents", data=payload, headers=headers)
                response.raise_for_status()
                intent = response.json()
        except httpx.HTTPStatusError as e:
            logger.error(f"Stripe rejected payment intent: status={e.response.status_code} body={e.response.text[:500]}")
            raise PaymentError(f"Payment provider returned {e.response.status_code}") from e
        except httpx.HTTPError as e:
            logger.error(f"Stripe request failed: {type(e).__name__}: {e}")
            raise PaymentError(f"Payment provider unreachable: {e}") from e

        logger.info(f"Created payment intent {intent.get('id')} amount={payload['amount']} {self.currency}")
        return intent

    async def pay(self, request: PaymentRequest, buyer: Optional[Account] = None) -> Dict[str, Any]:
        intent = await self.create_payment_intent(request.amount, request.title)

        # Bookkeeping only when we know both the offer and the buyer.
        if request.offer_id and buyer is not None:
            record = self.record_store.find_by_id(request.offer_id)
            if record is None:
                logger.warning(f"Payment intent {intent.get('id')} references unknown offer {request.offer_id}")
                return intent
            self.record_store.insert_payment(PaymentRecord(
                amount=request.amount,
                offer_id=record.id,
                owner_id=record.owner_id,
                buyer_id=buyer.id,
                provider_reference=intent.get("id"),
            ))
            record.is_purchased = True
            self.record_store.save(record)

        return intent


def get_payment_service() -> PaymentService:
    return PaymentService(get_record_store())
