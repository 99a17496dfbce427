from sqlalchemy import Column, String, DateTime, Boolean
from sqlalchemy.sql import func
from offerhub.database import Base, JSONDocument
import uuid

class Account(Base):
    __tablename__ = "accounts"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    email = Column(String(255), unique=True, nullable=False, index=True)
    username = Column(String(100), nullable=False)
    avatar = Column(JSONDocument, nullable=True)

    salt = Column(String(64), nullable=False)
    hash = Column(String(128), nullable=False)
    token = Column(String(64), unique=True, nullable=False, index=True)

    newsletter = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
