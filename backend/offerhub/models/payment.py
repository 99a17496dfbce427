from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional


class PaymentRequest(BaseModel):
    amount: float = Field(gt=0)
    title: str
    offer_id: Optional[str] = None


class PaymentRecord(BaseModel):
    id: Optional[str] = None
    amount: float
    offer_id: str
    owner_id: str
    buyer_id: str
    provider_reference: Optional[str] = None
    date: Optional[datetime] = None
