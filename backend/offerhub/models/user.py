from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional
import uuid

from offerhub.models.asset import AssetDescriptor


class Account(BaseModel):
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    email: str
    username: str
    avatar: Optional[AssetDescriptor] = None
    salt: str
    hash: str
    # Sole authentication artifact handed to the client; never rotated.
    token: str
    newsletter: bool = False
    created_at: Optional[datetime] = None


class UserLogin(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None


class LoginAccount(BaseModel):
    username: str


class LoginResponse(BaseModel):
    token: str
    account: LoginAccount
