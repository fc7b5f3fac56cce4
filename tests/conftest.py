"""Shared fixtures for order notifier tests."""

import pytest

from order_notifier.logging.context import clear_log_context
from order_notifier.notifications.templates import TemplateRenderer


@pytest.fixture(autouse=True)
def clean_context():
    """Clear logging context before and after each test."""
    clear_log_context()
    yield
    clear_log_context()


@pytest.fixture
def renderer():
    """Renderer with a fixed sender and the default site URL."""
    return TemplateRenderer(sender='"Tu Spacio" <shop@example.com>')


@pytest.fixture
def raw_order():
    """Raw order snapshot as the order workflow sends it."""
    return {
        "orderProducts": [
            {
                "name": "Soap",
                "price": 5,
                "quantity": 2,
                "description": "Lavender soap",
                "image_link": "https://cdn.example.com/soap.png",
            }
        ],
        "shipping": {
            "address": {
                "state": "Antioquia",
                "city": "Medellin",
                "line1": "Calle 10 # 43-12",
                "line2": "Apto 301",
                "postal_code": "050021",
            }
        },
        "number": "ORD-1",
    }
