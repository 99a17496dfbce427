from offerhub.db_models.account import Account
from offerhub.db_models.offer import Offer
from offerhub.db_models.payment import Payment

__all__ = [
    "Account",
    "Offer",
    "Payment",
]
