from abc import ABC, abstractmethod
from typing import List, Optional

from offerhub.models.offer import OfferRecord, OwnerAccount
from offerhub.models.payment import PaymentRecord
from offerhub.models.user import Account
from offerhub.services.validation import OfferQuery


class RecordStore(ABC):
    """Document persistence for offers, accounts and payments."""

    @abstractmethod
    def insert(self, record: OfferRecord) -> str:
        """Persist a new offer and return its assigned id."""

    @abstractmethod
    def find_by_id(self, offer_id: str) -> Optional[OfferRecord]:
        pass

    @abstractmethod
    def find_many(self, query: OfferQuery) -> List[OfferRecord]:
        pass

    @abstractmethod
    def save(self, record: OfferRecord) -> None:
        pass

    @abstractmethod
    def delete(self, record: OfferRecord) -> None:
        pass

    @abstractmethod
    def populate_owner(self, record: OfferRecord) -> Optional[OwnerAccount]:
        """Resolve the owner reference to its public projection."""

    @abstractmethod
    def insert_account(self, account: Account) -> str:
        pass

    @abstractmethod
    def find_account_by_id(self, account_id: str) -> Optional[Account]:
        pass

    @abstractmethod
    def find_account_by_email(self, email: str) -> Optional[Account]:
        pass

    @abstractmethod
    def find_account_by_token(self, token: str) -> Optional[Account]:
        pass

    @abstractmethod
    def insert_payment(self, payment: PaymentRecord) -> str:
        pass
