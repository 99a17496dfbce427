"""Keeps an offer record and its stored pictures consistent.

The record store and the asset store share no transaction. Every operation
therefore runs in a fixed order:

- create: validate, upload, insert the record, relocate the uploads into
  the offer's folder, save.
- update: reject empty requests, check existence and ownership, validate
  every supplied field, then touch assets, then save once.
- delete: check existence and ownership, delete assets, delete the folder,
  delete the record.

A failure part-way through is terminal for the request and nothing is
compensated: asset deletes/uploads that already happened stay done. The
record is only ever written at the steps listed above, so an update that
fails never persists half of its field changes.
"""

import asyncio
from itertools import zip_longest
from typing import Any, Dict, List, Optional, Sequence, Union

from offerhub.config import settings
from offerhub.exceptions import AssetStoreError, NotFoundError, NoChangeError, UnauthorizedError, ValidationError
from offerhub.models.asset import AssetDescriptor, UploadedFile
from offerhub.models.offer import DETAIL_FIELDS, OfferListResponse, OfferRecord, OfferResponse
from offerhub.models.user import Account
from offerhub.services.asset_store import AssetStore
from offerhub.services.postgres_record_store import get_record_store
from offerhub.services.record_store import RecordStore
from offerhub.services.supabase_storage import get_asset_store
from offerhub.services.validation import (
    normalize_search_params,
    supplied_fields,
    validate_offer_create,
    validate_offer_id,
    validate_offer_update,
)
from offerhub.utils.logger import logger

PICTURE_REQUIRED_MESSAGE = "Please upload a picture of your item."

Uploads = Union[None, UploadedFile, Sequence[UploadedFile]]


def normalize_uploads(files: Uploads) -> List[UploadedFile]:
    """Accept one file or a sequence of files and always return a list."""
    if files is None:
        return []
    if isinstance(files, UploadedFile):
        return [files]
    return [f for f in files if f is not None]


def is_offer_owner(owner: Optional[Account], requester_token: Optional[str]) -> bool:
    """Flat ownership check: the requester's token must equal the owner's."""
    if owner is None or not requester_token:
        return False
    return owner.token == requester_token


def apply_offer_changes(record: OfferRecord, values: Dict[str, Any]) -> OfferRecord:
    """Write validated values onto ``record``; detail slots are overwritten one by one."""
    if "title" in values:
        record.title = values["title"]
    if "description" in values:
        record.description = values["description"]
    if "price" in values:
        record.price = values["price"]
    detail_updates = {name: values[name] for name in DETAIL_FIELDS if name in values}
    if detail_updates:
        record.details = record.details.model_copy(update=detail_updates)
    return record


class OfferOrchestrator:

    def __init__(self, asset_store: AssetStore, record_store: RecordStore, offer_folder_root: Optional[str] = None):
        self.asset_store = asset_store
        self.record_store = record_store
        self.offer_folder_root = (offer_folder_root or settings.OFFER_FOLDER_ROOT).rstrip("/")

    def offer_folder(self, offer_id: str) -> str:
        return f"{self.offer_folder_root}/{offer_id}"

    def _present(self, record: OfferRecord) -> OfferResponse:
        return OfferResponse.from_record(record, self.record_store.populate_owner(record))

    def _load_owned_offer(self, offer_id: str, requester_token: Optional[str]) -> OfferRecord:
        record = self.record_store.find_by_id(offer_id)
        if record is None:
            raise NotFoundError()
        owner = self.record_store.find_account_by_id(record.owner_id)
        if not is_offer_owner(owner, requester_token):
            logger.warning(f"Ownership check failed for offer {offer_id}")
            raise UnauthorizedError()
        return record

    async def _store_pictures(self, files: List[UploadedFile], folder: str) -> List[AssetDescriptor]:
        # All uploads must land before any of them is moved; one failure fails the batch.
        uploaded = await asyncio.gather(*(self.asset_store.upload(f) for f in files))
        return list(await asyncio.gather(*(self.asset_store.relocate(a, folder) for a in uploaded)))

    async def _replace_pictures(
        self,
        current: List[AssetDescriptor],
        files: List[UploadedFile],
        folder: str,
    ) -> List[AssetDescriptor]:
        # Pair old and new pictures by position. Extra old pictures are only
        # deleted, extra new ones only uploaded.
        pairs = list(zip_longest(current, files))
        replaced = await asyncio.gather(*(
            self.asset_store.replace_asset(old.public_id if old else None, new)
            for old, new in pairs
        ))
        fresh = [asset for asset in replaced if asset is not None]
        return list(await asyncio.gather(*(self.asset_store.relocate(a, folder) for a in fresh)))

    async def create_offer(
        self,
        owner: Account,
        fields: Dict[str, Any],
        image: Optional[UploadedFile],
        pictures: Uploads = None,
    ) -> OfferResponse:
        values = validate_offer_create(fields)
        if image is None:
            raise ValidationError(PICTURE_REQUIRED_MESSAGE)
        picture_files = normalize_uploads(pictures)

        # First side effect: nothing to clean up if this fails.
        primary = await self.asset_store.upload(image)

        record = apply_offer_changes(
            OfferRecord(title=values["title"], description=values["description"], price=values["price"],
                        image=primary, owner_id=owner.id),
            values,
        )
        record.id = self.record_store.insert(record)
        folder = self.offer_folder(record.id)
        logger.info(f"Offer {record.id} created by {owner.id}, placing assets in {folder}")

        try:
            record.image = await self.asset_store.relocate(primary, folder)
            if picture_files:
                record.pictures = await self._store_pictures(picture_files, folder)
        except AssetStoreError as e:
            # The record already exists and may reference a temporary or missing asset.
            logger.error(f"Offer {record.id} persisted with incomplete assets: {e.message}")
            raise

        self.record_store.save(record)
        return self._present(record)

    async def update_offer(
        self,
        offer_id: str,
        requester_token: Optional[str],
        fields: Optional[Dict[str, Any]] = None,
        image: Optional[UploadedFile] = None,
        pictures: Uploads = None,
    ) -> OfferResponse:
        changes = supplied_fields(fields)
        picture_files = normalize_uploads(pictures)
        if not changes and image is None and not picture_files:
            raise NoChangeError()

        validate_offer_id(offer_id)
        stored = self._load_owned_offer(offer_id, requester_token)
        values = validate_offer_update(changes)

        # Work on a copy; it is only written back by the final save.
        record = apply_offer_changes(stored.model_copy(deep=True), values)
        folder = self.offer_folder(record.id)

        if image is not None:
            replacement = await self.asset_store.replace_asset(record.image.public_id, image)
            record.image = await self.asset_store.relocate(replacement, folder)

        if picture_files:
            record.pictures = await self._replace_pictures(record.pictures, picture_files, folder)

        self.record_store.save(record)
        logger.info(f"Offer {record.id} updated: fields={sorted(values)}, image={image is not None}, pictures={len(picture_files)}")
        return self._present(record)

    async def delete_offer(self, offer_id: str, requester_token: Optional[str]) -> str:
        validate_offer_id(offer_id)
        record = self._load_owned_offer(offer_id, requester_token)

        await self.asset_store.delete(record.image.public_id)
        if record.pictures:
            await asyncio.gather(*(self.asset_store.delete(p.public_id) for p in record.pictures))
        await self.asset_store.delete_folder(self.offer_folder(record.id))
        self.record_store.delete(record)

        logger.info(f"Offer {record.id} deleted with {1 + len(record.pictures)} asset(s)")
        return f"Your offer {record.title} was successfully deleted."

    def get_offer(self, offer_id: str) -> OfferResponse:
        validate_offer_id(offer_id)
        record = self.record_store.find_by_id(offer_id)
        if record is None:
            raise NotFoundError("No offer can be found with this Id.")
        return self._present(record)

    def search_offers(self, **params) -> OfferListResponse:
        query = normalize_search_params(**params)
        records = self.record_store.find_many(query)
        offers = [self._present(record) for record in records]
        return OfferListResponse(count=len(offers), offers=offers)


def get_offer_orchestrator() -> OfferOrchestrator:
    return OfferOrchestrator(get_asset_store(), get_record_store())
