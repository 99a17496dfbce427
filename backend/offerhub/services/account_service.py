from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from offerhub.config import settings
from offerhub.exceptions import DuplicateAccountError, UnauthorizedError, ValidationError
from offerhub.models.asset import UploadedFile
from offerhub.models.user import Account, LoginAccount, LoginResponse
from offerhub.services import credentials as credential_manager
from offerhub.services.asset_store import AssetStore
from offerhub.services.postgres_record_store import get_record_store
from offerhub.services.record_store import RecordStore
from offerhub.services.supabase_storage import get_asset_store
from offerhub.services.validation import validate_signup
from offerhub.utils.logger import logger, mask_token

security = HTTPBearer(auto_error=False)

INVALID_LOGIN_MESSAGE = "Invalid email or password."


class AccountService:

    def __init__(self, record_store: RecordStore, asset_store: AssetStore, avatar_folder_root: Optional[str] = None):
        self.record_store = record_store
        self.asset_store = asset_store
        self.avatar_folder_root = (avatar_folder_root or settings.AVATAR_FOLDER_ROOT).rstrip("/")

    async def signup(
        self,
        username: Optional[str],
        email: Optional[str],
        password: Optional[str],
        newsletter: bool = False,
        avatar: Optional[UploadedFile] = None,
    ) -> Account:
        email = validate_signup(username, email, password)
        if self.record_store.find_account_by_email(email):
            logger.warning(f"Registration failed: Email already exists - {email}")
            raise DuplicateAccountError()

        salt, hashed = credential_manager.register(password)
        account = Account(
            email=email,
            username=username,
            salt=salt,
            hash=hashed,
            token=credential_manager.issue_token(),
            newsletter=bool(newsletter),
        )

        # Same ordering as offers: the asset exists before the record points at it.
        if avatar is not None:
            uploaded = await self.asset_store.upload(avatar)
            account.avatar = await self.asset_store.relocate(uploaded, f"{self.avatar_folder_root}/{account.id}")

        try:
            self.record_store.insert_account(account)
        except DuplicateAccountError:
            # Lost a race with a concurrent signup for the same email.
            if account.avatar is not None:
                await self.asset_store.delete(account.avatar.public_id)
            raise
        logger.info(f"New account registered: {account.email}")
        return account

    def login(self, email: Optional[str], password: Optional[str]) -> LoginResponse:
        if not isinstance(email, str) or not isinstance(password, str):
            raise ValidationError(INVALID_LOGIN_MESSAGE)

        account = self.record_store.find_account_by_email(email.strip().lower())
        if not account:
            logger.warning(f"Authentication failed: User not found - {email}")
            raise UnauthorizedError(INVALID_LOGIN_MESSAGE)
        if not credential_manager.verify(password, account.salt, account.hash):
            logger.warning(f"Authentication failed: Invalid password - {email}")
            raise UnauthorizedError(INVALID_LOGIN_MESSAGE)

        logger.info(f"User authenticated successfully: {email}")
        return LoginResponse(token=account.token, account=LoginAccount(username=account.username))

    def authenticate(self, token: Optional[str]) -> Account:
        if not token:
            raise UnauthorizedError("Unauthorized")
        account = self.record_store.find_account_by_token(token)
        if account is None:
            logger.warning(f"Unknown session token {mask_token(token)}")
            raise UnauthorizedError("Unauthorized")
        return account


def get_account_service() -> AccountService:
    return AccountService(get_record_store(), get_asset_store())


async def get_current_account(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    account_service: AccountService = Depends(get_account_service),
) -> Account:
    token = credentials.credentials if credentials else None
    return account_service.authenticate(token)


async def get_optional_account(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    account_service: AccountService = Depends(get_account_service),
) -> Optional[Account]:
    if not credentials:
        return None
    try:
        return account_service.authenticate(credentials.credentials)
    except UnauthorizedError:
        return None
