"""Error taxonomy shared by the services and the HTTP layer.

Every error carries the HTTP status it maps to and a user-facing message.
The FastAPI handler in :mod:`offerhub.main` turns them into the
``{"message": ...}`` envelope; services never build responses themselves.
"""

from typing import Optional


INVALID_FIELDS_MESSAGE = (
    "Please fill all the mandatory fields with the right type of parameters "
    "and respecting the text limitation."
)


class OfferHubError(Exception):
    status_code: int = 500
    default_message: str = "Internal server error."

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(OfferHubError):
    """Bad, missing or oversized input. Always a client error."""

    status_code = 400
    default_message = INVALID_FIELDS_MESSAGE


class NoChangeError(OfferHubError):
    """An update request carried neither field values nor files."""

    status_code = 400
    default_message = "Please change at least one information from your offer before validate."


class NotFoundError(OfferHubError):
    status_code = 404
    default_message = "This offer doesn't exist."


class UnauthorizedError(OfferHubError):
    status_code = 401
    default_message = "Unauthorized to do this action."


class DuplicateAccountError(OfferHubError):
    status_code = 409
    default_message = "This email already has an account"


class AssetStoreError(OfferHubError):
    """The remote object store rejected a call or could not be reached."""

    status_code = 500
    default_message = "Error during the file operation."


class UploadError(AssetStoreError):
    default_message = "Error during the file upload."


class PaymentError(OfferHubError):
    status_code = 500
    default_message = "Payment provider error."


class InternalError(OfferHubError):
    status_code = 500
