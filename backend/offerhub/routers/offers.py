from fastapi import APIRouter, Depends, File, Form, Query, UploadFile
from typing import List, Optional

from offerhub.models.offer import MessageResponse, OfferListResponse, OfferResponse
from offerhub.models.user import Account
from offerhub.services.account_service import get_current_account
from offerhub.services.offer_orchestrator import OfferOrchestrator, get_offer_orchestrator
from offerhub.utils.logger import logger
from offerhub.utils.uploads import read_upload, read_uploads

router = APIRouter(tags=["offers"])


def _offer_fields(title, description, price, condition, city, brand, size, color) -> dict:
    # ``city`` is the public form name of the location detail slot.
    return {
        "title": title,
        "description": description,
        "price": price,
        "brand": brand,
        "size": size,
        "condition": condition,
        "color": color,
        "location": city,
    }


@router.post("/offer/publish", response_model=OfferResponse)
async def publish_offer(
    title: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    price: Optional[str] = Form(None),
    condition: Optional[str] = Form(None),
    city: Optional[str] = Form(None),
    brand: Optional[str] = Form(None),
    size: Optional[str] = Form(None),
    color: Optional[str] = Form(None),
    image: Optional[UploadFile] = File(None),
    pictures: Optional[List[UploadFile]] = File(None),
    current_account: Account = Depends(get_current_account),
    orchestrator: OfferOrchestrator = Depends(get_offer_orchestrator),
):
    logger.info(f"Publish offer request from account {current_account.id}")
    return await orchestrator.create_offer(
        current_account,
        _offer_fields(title, description, price, condition, city, brand, size, color),
        image=await read_upload(image),
        pictures=await read_uploads(pictures),
    )


@router.get("/offers", response_model=OfferListResponse)
async def list_offers(
    title: Optional[str] = None,
    description: Optional[str] = None,
    price_min: Optional[str] = Query(None, alias="priceMin"),
    price_max: Optional[str] = Query(None, alias="priceMax"),
    sort: Optional[str] = None,
    page: Optional[str] = None,
    limit: Optional[str] = None,
    orchestrator: OfferOrchestrator = Depends(get_offer_orchestrator),
):
    return orchestrator.search_offers(
        title=title,
        description=description,
        price_min=price_min,
        price_max=price_max,
        sort=sort,
        page=page,
        limit=limit,
    )


@router.get("/offer/{offer_id}", response_model=OfferResponse)
async def get_offer(
    offer_id: str,
    orchestrator: OfferOrchestrator = Depends(get_offer_orchestrator),
):
    return orchestrator.get_offer(offer_id)


@router.put("/offer/{offer_id}", response_model=OfferResponse)
async def update_offer(
    offer_id: str,
    title: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    price: Optional[str] = Form(None),
    condition: Optional[str] = Form(None),
    city: Optional[str] = Form(None),
    brand: Optional[str] = Form(None),
    size: Optional[str] = Form(None),
    color: Optional[str] = Form(None),
    image: Optional[UploadFile] = File(None),
    pictures: Optional[List[UploadFile]] = File(None),
    current_account: Account = Depends(get_current_account),
    orchestrator: OfferOrchestrator = Depends(get_offer_orchestrator),
):
    return await orchestrator.update_offer(
        offer_id,
        current_account.token,
        _offer_fields(title, description, price, condition, city, brand, size, color),
        image=await read_upload(image),
        pictures=await read_uploads(pictures),
    )


@router.delete("/offer/{offer_id}", response_model=MessageResponse)
async def delete_offer(
    offer_id: str,
    current_account: Account = Depends(get_current_account),
    orchestrator: OfferOrchestrator = Depends(get_offer_orchestrator),
):
    message = await orchestrator.delete_offer(offer_id, current_account.token)
    return MessageResponse(message=message)
