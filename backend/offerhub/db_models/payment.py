from sqlalchemy import Column, String, DateTime, Numeric, ForeignKey
from sqlalchemy.sql import func
from offerhub.database import Base
import uuid

class Payment(Base):
    __tablename__ = "payments"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    amount = Column(Numeric(10, 2), nullable=False)

    offer_id = Column(String(36), ForeignKey('offers.id', ondelete='SET NULL'), index=True)
    owner_id = Column(String(36), ForeignKey('accounts.id', ondelete='SET NULL'), index=True)
    buyer_id = Column(String(36), ForeignKey('accounts.id', ondelete='SET NULL'), index=True)

    provider_reference = Column(String(255))
    date = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
