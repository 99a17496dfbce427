from fastapi import APIRouter, Depends, File, Form, UploadFile, status
from typing import Optional

from offerhub.models.offer import MessageResponse
from offerhub.models.user import LoginResponse, UserLogin
from offerhub.services.account_service import AccountService, get_account_service
from offerhub.utils.logger import logger
from offerhub.utils.uploads import read_upload

router = APIRouter(prefix="/user", tags=["authentication"])


@router.post("/signup", response_model=MessageResponse, status_code=status.HTTP_201_CREATED)
async def signup(
    username: Optional[str] = Form(None),
    email: Optional[str] = Form(None),
    password: Optional[str] = Form(None),
    newsletter: bool = Form(False),
    avatar: Optional[UploadFile] = File(None),
    account_service: AccountService = Depends(get_account_service),
):
    logger.info(f"Registration attempt for email: {email}")
    account = await account_service.signup(
        username,
        email,
        password,
        newsletter=newsletter,
        avatar=await read_upload(avatar),
    )
    return MessageResponse(
        message=(
            f"Your account was successfully created {account.username}. "
            f"You can now use your email {account.email} to login."
        )
    )


@router.post("/login", response_model=LoginResponse)
async def login(
    user_credentials: UserLogin,
    account_service: AccountService = Depends(get_account_service),
):
    return account_service.login(user_credentials.email, user_credentials.password)
