from typing import List, Optional
import uuid
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from offerhub.database import SessionLocal
from offerhub.db_models import Account as AccountDB, Offer as OfferDB, Payment as PaymentDB
from offerhub.exceptions import DuplicateAccountError, NotFoundError
from offerhub.models.asset import AssetDescriptor
from offerhub.models.offer import OfferDetails, OfferRecord, OwnerAccount
from offerhub.models.payment import PaymentRecord
from offerhub.models.user import Account
from offerhub.services.record_store import RecordStore
from offerhub.services.validation import OfferQuery
from offerhub.utils.logger import logger


def _offer_to_record(row: OfferDB) -> OfferRecord:
    return OfferRecord(
        id=row.id,
        title=row.product_name,
        description=row.product_description,
        price=float(row.product_price),
        details=OfferDetails.from_slots(row.product_details),
        image=AssetDescriptor(**row.product_image),
        pictures=[AssetDescriptor(**p) for p in (row.product_pictures or [])],
        owner_id=row.owner_id,
        is_purchased=bool(row.is_purchased),
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def _copy_record_to_row(record: OfferRecord, row: OfferDB) -> None:
    row.product_name = record.title
    row.product_description = record.description
    row.product_price = record.price
    row.product_details = record.details.to_slots()
    row.product_image = record.image.model_dump()
    row.product_pictures = [p.model_dump() for p in record.pictures]
    row.owner_id = record.owner_id
    row.is_purchased = record.is_purchased


def _contains_pattern(text: str) -> str:
    # Search text is matched literally; LIKE wildcards are escaped with a backslash.
    escaped = text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


def _account_to_model(row: AccountDB) -> Account:
    return Account(
        id=row.id,
        email=row.email,
        username=row.username,
        avatar=AssetDescriptor(**row.avatar) if row.avatar else None,
        salt=row.salt,
        hash=row.hash,
        token=row.token,
        newsletter=bool(row.newsletter),
        created_at=row.created_at,
    )


class PostgresRecordStore(RecordStore):
    """RecordStore on SQLAlchemy; Postgres in production, SQLite in tests."""

    def __init__(self, session_factory=None):
        self._session_factory = session_factory or SessionLocal

    def insert(self, record: OfferRecord) -> str:
        db: Session = self._session_factory()
        try:
            row = OfferDB(id=record.id or str(uuid.uuid4()))
            _copy_record_to_row(record, row)
            db.add(row)
            db.commit()
            db.refresh(row)
            logger.info(f"Inserted offer {row.id} for owner {row.owner_id}")
            return row.id
        finally:
            db.close()

    def find_by_id(self, offer_id: str) -> Optional[OfferRecord]:
        db: Session = self._session_factory()
        try:
            row = db.get(OfferDB, offer_id)
            return _offer_to_record(row) if row else None
        finally:
            db.close()

    def find_many(self, query: OfferQuery) -> List[OfferRecord]:
        db: Session = self._session_factory()
        try:
            q = db.query(OfferDB).filter(
                OfferDB.product_price >= query.price_min,
                OfferDB.product_price <= query.price_max,
            )
            if query.title:
                q = q.filter(OfferDB.product_name.ilike(_contains_pattern(query.title), escape="\\"))
            if query.description:
                q = q.filter(OfferDB.product_description.ilike(_contains_pattern(query.description), escape="\\"))

            order = OfferDB.product_price.asc() if query.sort == "asc" else OfferDB.product_price.desc()
            q = q.order_by(order, OfferDB.id)
            if query.skip:
                q = q.offset(query.skip)
            if query.limit:
                q = q.limit(query.limit)
            return [_offer_to_record(row) for row in q.all()]
        finally:
            db.close()

    def save(self, record: OfferRecord) -> None:
        db: Session = self._session_factory()
        try:
            row = db.get(OfferDB, record.id)
            if row is None:
                raise NotFoundError()
            _copy_record_to_row(record, row)
            db.commit()
            logger.info(f"Saved offer {record.id}")
        finally:
            db.close()

    def delete(self, record: OfferRecord) -> None:
        db: Session = self._session_factory()
        try:
            row = db.get(OfferDB, record.id)
            if row is not None:
                db.delete(row)
                db.commit()
                logger.info(f"Deleted offer {record.id}")
        finally:
            db.close()

    def populate_owner(self, record: OfferRecord) -> Optional[OwnerAccount]:
        db: Session = self._session_factory()
        try:
            row = db.get(AccountDB, record.owner_id)
            if row is None:
                return None
            return OwnerAccount(
                username=row.username,
                avatar=AssetDescriptor(**row.avatar) if row.avatar else None,
            )
        finally:
            db.close()

    def insert_account(self, account: Account) -> str:
        db: Session = self._session_factory()
        try:
            row = AccountDB(
                id=account.id,
                email=account.email,
                username=account.username,
                avatar=account.avatar.model_dump() if account.avatar else None,
                salt=account.salt,
                hash=account.hash,
                token=account.token,
                newsletter=account.newsletter,
            )
            db.add(row)
            try:
                db.commit()
            except IntegrityError as e:
                # Unique email index: a concurrent signup got there first.
                db.rollback()
                logger.warning(f"Registration failed: Email already exists - {account.email}")
                raise DuplicateAccountError() from e
            logger.info(f"Created account: {row.email}")
            return row.id
        finally:
            db.close()

    def find_account_by_id(self, account_id: str) -> Optional[Account]:
        db: Session = self._session_factory()
        try:
            row = db.get(AccountDB, account_id)
            return _account_to_model(row) if row else None
        finally:
            db.close()

    def find_account_by_email(self, email: str) -> Optional[Account]:
        db: Session = self._session_factory()
        try:
            row = db.query(AccountDB).filter(AccountDB.email == email).first()
            return _account_to_model(row) if row else None
        finally:
            db.close()

    def find_account_by_token(self, token: str) -> Optional[Account]:
        db: Session = self._session_factory()
        try:
            row = db.query(AccountDB).filter(AccountDB.token == token).first()
            return _account_to_model(row) if row else None
        finally:
            db.close()

    def insert_payment(self, payment: PaymentRecord) -> str:
        db: Session = self._session_factory()
        try:
            row = PaymentDB(
                id=payment.id or str(uuid.uuid4()),
                amount=payment.amount,
                offer_id=payment.offer_id,
                owner_id=payment.owner_id,
                buyer_id=payment.buyer_id,
                provider_reference=payment.provider_reference,
            )
            db.add(row)
            db.commit()
            logger.info(f"Recorded payment {row.id} for offer {row.offer_id}")
            return row.id
        finally:
            db.close()


record_store = PostgresRecordStore()


def get_record_store() -> RecordStore:
    return record_store
