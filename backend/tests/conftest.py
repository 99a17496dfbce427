import copy
import uuid
from typing import Dict, List, Optional, Set

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import offerhub.db_models  # noqa: F401
from offerhub.database import Base
from offerhub.exceptions import AssetStoreError, DuplicateAccountError, NotFoundError, UploadError
from offerhub.models.asset import AssetDescriptor, UploadedFile
from offerhub.models.offer import OfferRecord, OwnerAccount
from offerhub.models.payment import PaymentRecord
from offerhub.models.user import Account
from offerhub.services import credentials
from offerhub.services.asset_store import AssetStore
from offerhub.services.offer_orchestrator import OfferOrchestrator
from offerhub.services.postgres_record_store import PostgresRecordStore
from offerhub.services.record_store import RecordStore
from offerhub.services.validation import OfferQuery

OFFER_ROOT = "vinted/offers"


class FakeAssetStore(AssetStore):
    """In-memory asset store that records every primitive call."""

    def __init__(self):
        self.objects: Dict[str, bytes] = {}
        self.folders: Set[str] = set()
        self.calls: List[tuple] = []
        self.failing_uploads: Set[str] = set()

    def _descriptor(self, public_id: str) -> AssetDescriptor:
        folder = public_id.rsplit("/", 1)[0]
        return AssetDescriptor(public_id=public_id, folder=folder, url=f"https://cdn.test/{public_id}")

    async def upload(self, file: UploadedFile) -> AssetDescriptor:
        self.calls.append(("upload", file.filename))
        if file.filename in self.failing_uploads:
            raise UploadError()
        public_id = f"tmp/{uuid.uuid4().hex}.jpg"
        self.objects[public_id] = file.data
        return self._descriptor(public_id).model_copy(
            update={"content_type": file.content_type, "size_bytes": len(file.data)}
        )

    async def delete(self, public_id: str) -> None:
        self.calls.append(("delete", public_id))
        self.objects.pop(public_id, None)

    async def list_subfolders(self, path: str) -> List[str]:
        self.calls.append(("list_subfolders", path))
        prefix = path.rstrip("/") + "/"
        return sorted({f[len(prefix):].split("/")[0] for f in self.folders if f.startswith(prefix)})

    async def create_folder(self, path: str) -> None:
        self.calls.append(("create_folder", path))
        self.folders.add(path)

    async def rename_or_move(self, public_id: str, new_public_id: str) -> AssetDescriptor:
        self.calls.append(("move", public_id, new_public_id))
        if public_id not in self.objects:
            raise AssetStoreError(f"missing object {public_id}")
        self.objects[new_public_id] = self.objects.pop(public_id)
        return self._descriptor(new_public_id)

    async def delete_folder(self, path: str) -> None:
        self.calls.append(("delete_folder", path))
        if any(key.startswith(path + "/") for key in self.objects):
            raise AssetStoreError(f"folder {path} is not empty")
        self.folders.discard(path)

    def call_names(self) -> List[str]:
        return [call[0] for call in self.calls]


class InMemoryRecordStore(RecordStore):

    def __init__(self):
        self.offers: Dict[str, OfferRecord] = {}
        self.accounts: Dict[str, Account] = {}
        self.payments: List[PaymentRecord] = []
        self.calls: List[str] = []

    def insert(self, record: OfferRecord) -> str:
        self.calls.append("insert")
        offer_id = str(uuid.uuid4())
        stored = record.model_copy(deep=True)
        stored.id = offer_id
        self.offers[offer_id] = stored
        return offer_id

    def find_by_id(self, offer_id: str) -> Optional[OfferRecord]:
        self.calls.append("find_by_id")
        record = self.offers.get(offer_id)
        return record.model_copy(deep=True) if record else None

    def find_many(self, query: OfferQuery) -> List[OfferRecord]:
        self.calls.append("find_many")
        results = [
            r for r in self.offers.values()
            if query.price_min <= r.price <= query.price_max
            and (not query.title or query.title.lower() in r.title.lower())
            and (not query.description or query.description.lower() in r.description.lower())
        ]
        results.sort(key=lambda r: r.price, reverse=query.sort == "desc")
        results = results[query.skip:]
        if query.limit:
            results = results[:query.limit]
        return [copy.deepcopy(r) for r in results]

    def save(self, record: OfferRecord) -> None:
        self.calls.append("save")
        if record.id not in self.offers:
            raise NotFoundError()
        self.offers[record.id] = record.model_copy(deep=True)

    def delete(self, record: OfferRecord) -> None:
        self.calls.append("delete")
        self.offers.pop(record.id, None)

    def populate_owner(self, record: OfferRecord) -> Optional[OwnerAccount]:
        account = self.accounts.get(record.owner_id)
        if account is None:
            return None
        return OwnerAccount(username=account.username, avatar=account.avatar)

    def insert_account(self, account: Account) -> str:
        if self.find_account_by_email(account.email):
            raise DuplicateAccountError()
        self.accounts[account.id] = account.model_copy(deep=True)
        return account.id

    def find_account_by_id(self, account_id: str) -> Optional[Account]:
        return self.accounts.get(account_id)

    def find_account_by_email(self, email: str) -> Optional[Account]:
        return next((a for a in self.accounts.values() if a.email == email), None)

    def find_account_by_token(self, token: str) -> Optional[Account]:
        return next((a for a in self.accounts.values() if a.token == token), None)

    def insert_payment(self, payment: PaymentRecord) -> str:
        payment = payment.model_copy(update={"id": str(uuid.uuid4())})
        self.payments.append(payment)
        return payment.id


def make_account(username: str, email: str, token: str) -> Account:
    salt, hashed = credentials.register("secret-password")
    return Account(email=email, username=username, salt=salt, hash=hashed, token=token)


def make_file(name: str, data: bytes = b"\x89PNG fake image") -> UploadedFile:
    return UploadedFile(data=data, content_type="image/jpeg", filename=name)


@pytest.fixture
def asset_store():
    return FakeAssetStore()


@pytest.fixture
def record_store():
    return InMemoryRecordStore()


@pytest.fixture
def owner(record_store):
    account = make_account("alice", "alice@example.com", "owner-token")
    record_store.insert_account(account)
    return account


@pytest.fixture
def stranger(record_store):
    account = make_account("mallory", "mallory@example.com", "stranger-token")
    record_store.insert_account(account)
    return account


@pytest.fixture
def orchestrator(asset_store, record_store):
    return OfferOrchestrator(asset_store, record_store, offer_folder_root=OFFER_ROOT)


@pytest.fixture
def valid_fields():
    return {
        "title": "Jacket",
        "description": "Warm winter jacket, worn twice",
        "price": 45,
        "brand": "Acme",
        "size": "M",
        "condition": "Good",
        "color": "Blue",
        "location": "Paris",
    }


@pytest.fixture
def upload():
    """Factory for client files: ``upload("front.jpg")``."""
    return make_file


@pytest.fixture
def account_factory():
    return make_account


@pytest.fixture
def db_store():
    """PostgresRecordStore over a private in-memory SQLite database."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    factory = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    yield PostgresRecordStore(session_factory=factory)
    Base.metadata.drop_all(bind=engine)
    engine.dispose()
