"""Pure input checks for offers, searches and signups.

Nothing here touches a store. Offer checks deliberately report a single
generic message: callers learn that the payload is invalid, not which
field broke which rule.
"""

import math
import uuid
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional

from offerhub.exceptions import ValidationError
from offerhub.models.offer import DETAIL_FIELDS

TITLE_MAX_LENGTH = 50
DESCRIPTION_MAX_LENGTH = 500
MAX_OFFER_PRICE = 100000
MAX_PAGE_NUMBER = 1000

OFFER_FIELDS = ("title", "description", "price") + DETAIL_FIELDS

INVALID_ID_MESSAGE = "Please use a valid Id."
INVALID_QUERY_MESSAGE = "Please use the right type of query."
MISSING_PARAMETERS_MESSAGE = "Missing parameters"
INVALID_EMAIL_MESSAGE = "Please use a valid email address."


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value)


def _parse_number(value: Any) -> Optional[float]:
    """Return ``value`` as a finite float, or None when it is not numeric."""
    if _is_number(value):
        return float(value)
    if isinstance(value, str) and value.strip():
        try:
            parsed = float(value.strip())
        except ValueError:
            return None
        if math.isfinite(parsed):
            return parsed
    return None


def _check_text(value: Any, max_length: int, required: bool = False) -> str:
    if not isinstance(value, str) or len(value) > max_length:
        raise ValidationError()
    if required and not value.strip():
        raise ValidationError()
    return value


def _check_price(value: Any) -> float:
    price = _parse_number(value)
    if price is None or price < 0 or price > MAX_OFFER_PRICE:
        raise ValidationError()
    return price


def _check_size(value: Any):
    # Size is the only detail that may be numeric (shoe or garment sizes).
    if _is_number(value):
        if value < 0 or value > MAX_OFFER_PRICE:
            raise ValidationError()
        return value
    return _check_text(value, TITLE_MAX_LENGTH)


def _check_field(name: str, value: Any, required: bool = False) -> Any:
    if name == "title":
        return _check_text(value, TITLE_MAX_LENGTH, required=required)
    if name == "description":
        return _check_text(value, DESCRIPTION_MAX_LENGTH, required=required)
    if name == "price":
        return _check_price(value)
    if name == "size":
        return _check_size(value)
    if name in DETAIL_FIELDS:
        return _check_text(value, TITLE_MAX_LENGTH)
    raise ValidationError()


def supplied_fields(fields: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
    """Keep the known offer fields that actually carry a value."""
    if not fields:
        return {}
    return {
        name: value
        for name, value in fields.items()
        if name in OFFER_FIELDS and value is not None and value != ""
    }


def validate_offer_create(fields: Mapping[str, Any]) -> Dict[str, Any]:
    """Validate a full offer payload and return the normalized values.

    Title, description and price are mandatory; details are optional.
    """
    values = supplied_fields(fields)
    normalized = {}
    for name in ("title", "description", "price"):
        if name not in values:
            raise ValidationError()
        normalized[name] = _check_field(name, values[name], required=True)
    for name in DETAIL_FIELDS:
        if name in values:
            normalized[name] = _check_field(name, values[name])
    return normalized


def validate_offer_update(fields: Mapping[str, Any]) -> Dict[str, Any]:
    """Validate each supplied field on its own; one bad field fails them all."""
    values = supplied_fields(fields)
    return {name: _check_field(name, value, required=True) for name, value in values.items()}


def validate_offer_id(offer_id: Any) -> str:
    if not isinstance(offer_id, str):
        raise ValidationError(INVALID_ID_MESSAGE)
    try:
        uuid.UUID(offer_id)
    except ValueError:
        raise ValidationError(INVALID_ID_MESSAGE)
    return offer_id


@dataclass
class OfferQuery:
    title: Optional[str] = None
    description: Optional[str] = None
    price_min: float = 0
    price_max: float = MAX_OFFER_PRICE
    sort: str = "desc"
    skip: int = 0
    limit: Optional[int] = None


def _parse_query_number(value: Any) -> Optional[float]:
    if value is None or value == "":
        return None
    parsed = _parse_number(value)
    if parsed is None:
        raise ValidationError(INVALID_QUERY_MESSAGE)
    return parsed


def normalize_search_params(
    title: Any = None,
    description: Any = None,
    price_min: Any = None,
    price_max: Any = None,
    sort: Any = None,
    page: Any = None,
    limit: Any = None,
) -> OfferQuery:
    """Turn raw query-string values into a bounded :class:`OfferQuery`.

    Out-of-range price bounds fall back to the full range and reversed
    bounds are swapped, so the result always satisfies
    ``0 <= price_min <= price_max <= MAX_OFFER_PRICE``.
    """
    if (title is not None and not isinstance(title, str)) or (
        description is not None and not isinstance(description, str)
    ):
        raise ValidationError(INVALID_QUERY_MESSAGE)

    low = _parse_query_number(price_min)
    high = _parse_query_number(price_max)
    if low is None or low < 0 or low > MAX_OFFER_PRICE:
        low = 0
    if high is None or high < 0 or high > MAX_OFFER_PRICE:
        high = MAX_OFFER_PRICE
    if low > high:
        low, high = high, low

    page_number = _parse_query_number(page)
    if page_number is None or page_number < 1 or page_number > MAX_PAGE_NUMBER:
        page_number = 1
    page_number = int(page_number)

    page_size = _parse_query_number(limit)
    if page_size is not None:
        if page_size < 1 or page_size != int(page_size):
            raise ValidationError(INVALID_QUERY_MESSAGE)
        page_size = int(page_size)

    sort_order = "desc"
    if sort in ("price-desc", "price-asc"):
        sort_order = sort.replace("price-", "")

    return OfferQuery(
        title=title or None,
        description=description or None,
        price_min=low,
        price_max=high,
        sort=sort_order,
        skip=(page_number - 1) * page_size if page_size else 0,
        limit=page_size,
    )


def validate_signup(username: Any, email: Any, password: Any) -> str:
    """Check signup input and return the normalized email."""
    if not all(isinstance(value, str) and value for value in (username, email, password)):
        raise ValidationError(MISSING_PARAMETERS_MESSAGE)

    email = email.strip()
    local, _, domain = email.partition("@")
    if not local or not domain or "." not in domain or domain.endswith(".") or domain.startswith("."):
        raise ValidationError(INVALID_EMAIL_MESSAGE)
    return email.lower()
