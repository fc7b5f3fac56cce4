"""Normalization of raw recipient and order data.

The only markup filtering performed is the removal of ``<`` and ``>`` from
free text (recipient name, product name, product description). This is a
character filter kept for compatibility with existing messages, not an HTML
sanitizer. URL fields such as ``image_link`` are passed through untouched, so
with autoescaping off a quote in a URL is not neutralized inside the
attribute it is rendered into.
"""

import re
from collections.abc import Mapping
from typing import Any, Optional, Tuple

from .models import (
    OrderProduct,
    OrderSnapshot,
    SanitizedRecipient,
    ShippingAddress,
    ValidationError,
)

DEFAULT_NAME = "Customer"
DEFAULT_ORDER_NUMBER = "N/A"

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

ADDRESS_FIELDS = ("state", "city", "line1", "line2", "postal_code")


def strip_brackets(value: Any) -> Any:
    """Remove angle brackets from strings; other values pass through unchanged."""
    if not isinstance(value, str):
        return value
    return value.replace("<", "").replace(">", "")


def sanitize_recipient(raw_recipient: Any) -> SanitizedRecipient:
    """Validate the e-mail address and normalize the display name.

    Raises:
        ValidationError: If the recipient is not a mapping or the address is invalid
    """
    if not isinstance(raw_recipient, Mapping):
        raise ValidationError("Recipient must be an object with an email field")

    email = raw_recipient.get("email")
    if not isinstance(email, str) or not email.strip():
        raise ValidationError("Valid email address is required")

    email = email.strip()
    if "@" not in email or not EMAIL_PATTERN.match(email):
        raise ValidationError(f"Invalid email format: '{email}'")

    name = raw_recipient.get("name")
    if isinstance(name, str) and name.strip():
        name = strip_brackets(name.strip())
    if not isinstance(name, str) or not name.strip():
        name = DEFAULT_NAME

    return SanitizedRecipient(name=name, email=email)


def sanitize_order(raw_order: Any) -> OrderSnapshot:
    """Build an OrderSnapshot, defaulting every absent field independently.

    Raises:
        ValidationError: If the order or one of its products is not a mapping
    """
    if not isinstance(raw_order, Mapping):
        raise ValidationError("Order must be an object")

    raw_products = raw_order.get("orderProducts")
    if not isinstance(raw_products, (list, tuple)):
        raw_products = ()

    products = []
    for index, raw_product in enumerate(raw_products):
        if not isinstance(raw_product, Mapping):
            raise ValidationError(f"Order product at index {index} must be an object")
        products.append(
            OrderProduct(
                name=strip_brackets(raw_product.get("name")),
                price=raw_product.get("price"),
                quantity=raw_product.get("quantity"),
                description=strip_brackets(raw_product.get("description")),
                image_link=raw_product.get("image_link"),
            )
        )

    shipping = raw_order.get("shipping")
    raw_address = shipping.get("address") if isinstance(shipping, Mapping) else None
    if not isinstance(raw_address, Mapping):
        raw_address = {}
    address = ShippingAddress(**{key: raw_address.get(key) for key in ADDRESS_FIELDS})

    return OrderSnapshot(
        order_products=tuple(products),
        shipping_address=address,
        number=_order_number(raw_order.get("number")),
    )


def _order_number(value: Any) -> str:
    if isinstance(value, bool):
        return DEFAULT_ORDER_NUMBER
    if isinstance(value, int):
        return str(value)
    if isinstance(value, str) and value.strip():
        return value.strip()
    return DEFAULT_ORDER_NUMBER


def sanitize(
    raw_recipient: Any, raw_order: Any = None
) -> Tuple[SanitizedRecipient, Optional[OrderSnapshot]]:
    """Sanitize a recipient and an optional order snapshot.

    Either both are returned clean or ValidationError is raised; a partially
    sanitized pair is never produced.

    Args:
        raw_recipient: Mapping with ``email`` and optional ``name``
        raw_order: Optional mapping with ``orderProducts``, ``shipping`` and ``number``

    Returns:
        Tuple of (SanitizedRecipient, OrderSnapshot or None)

    Raises:
        ValidationError: If any part of the input is malformed
    """
    recipient = sanitize_recipient(raw_recipient)
    order = sanitize_order(raw_order) if raw_order is not None else None
    return recipient, order
