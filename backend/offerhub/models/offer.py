from pydantic import BaseModel, Field
from datetime import datetime
from typing import Any, Dict, List, Optional, Union

from offerhub.models.asset import AssetDescriptor


# Positional labels of the public ``product_details`` array, in slot order.
DETAIL_SLOT_LABELS = (
    ("brand", "MARQUE"),
    ("size", "TAILLE"),
    ("condition", "ÉTAT"),
    ("color", "COULEUR"),
    ("location", "EMPLACEMENT"),
)

DETAIL_FIELDS = tuple(name for name, _ in DETAIL_SLOT_LABELS)


class OfferDetails(BaseModel):
    brand: Optional[str] = None
    size: Optional[Union[str, float]] = None
    condition: Optional[str] = None
    color: Optional[str] = None
    location: Optional[str] = None

    def to_slots(self) -> List[Dict[str, Any]]:
        """Serialize to the fixed five-slot shape, empty slots as ``""``."""
        slots = []
        for name, label in DETAIL_SLOT_LABELS:
            value = getattr(self, name)
            slots.append({label: "" if value is None else value})
        return slots

    @classmethod
    def from_slots(cls, slots: Optional[List[Dict[str, Any]]]) -> "OfferDetails":
        values = {}
        by_label = {label: name for name, label in DETAIL_SLOT_LABELS}
        for slot in slots or []:
            for label, value in slot.items():
                name = by_label.get(label)
                if name and value not in (None, ""):
                    values[name] = value
        return cls(**values)


class OfferRecord(BaseModel):
    """In-memory form of a persisted offer."""
    id: Optional[str] = None
    title: str
    description: str
    price: float
    details: OfferDetails = Field(default_factory=OfferDetails)
    image: AssetDescriptor
    pictures: List[AssetDescriptor] = Field(default_factory=list)
    owner_id: str
    is_purchased: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class OwnerAccount(BaseModel):
    username: str
    avatar: Optional[AssetDescriptor] = None


class OwnerResponse(BaseModel):
    account: OwnerAccount


class OfferResponse(BaseModel):
    id: str
    product_name: str
    product_description: str
    product_price: float
    product_details: List[Dict[str, Any]]
    product_image: AssetDescriptor
    product_pictures: List[AssetDescriptor]
    owner: Optional[OwnerResponse] = None
    is_purchased: bool = False
    created_at: Optional[datetime] = None

    @classmethod
    def from_record(cls, record: OfferRecord, owner: Optional[OwnerAccount] = None) -> "OfferResponse":
        return cls(
            id=record.id,
            product_name=record.title,
            product_description=record.description,
            product_price=record.price,
            product_details=record.details.to_slots(),
            product_image=record.image,
            product_pictures=record.pictures,
            owner=OwnerResponse(account=owner) if owner else None,
            is_purchased=record.is_purchased,
            created_at=record.created_at,
        )


class OfferListResponse(BaseModel):
    count: int
    offers: List[OfferResponse]


class MessageResponse(BaseModel):
    message: str
