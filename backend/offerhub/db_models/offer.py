from sqlalchemy import Column, String, DateTime, Numeric, Text, Boolean, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from offerhub.database import Base, JSONDocument
import uuid

class Offer(Base):
    __tablename__ = "offers"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    owner_id = Column(String(36), ForeignKey('accounts.id', ondelete='CASCADE'), nullable=False, index=True)

    product_name = Column(String(50), nullable=False, index=True)
    product_description = Column(Text, nullable=False)
    product_price = Column(Numeric(10, 2), nullable=False, index=True)

    # Five one-key objects: MARQUE, TAILLE, ÉTAT, COULEUR, EMPLACEMENT
    product_details = Column(JSONDocument, nullable=False, default=list)
    product_image = Column(JSONDocument, nullable=False)
    product_pictures = Column(JSONDocument, nullable=False, default=list)

    is_purchased = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    owner = relationship("Account")
