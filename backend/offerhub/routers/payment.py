from fastapi import APIRouter, Depends
from typing import Any, Dict, Optional

from offerhub.models.payment import PaymentRequest
from offerhub.models.user import Account
from offerhub.services.account_service import get_optional_account
from offerhub.services.payment_service import PaymentService, get_payment_service

router = APIRouter(tags=["payment"])


@router.post("/payment")
async def create_payment(
    payment: PaymentRequest,
    buyer: Optional[Account] = Depends(get_optional_account),
    payment_service: PaymentService = Depends(get_payment_service),
) -> Dict[str, Any]:
    return await payment_service.pay(payment, buyer)
