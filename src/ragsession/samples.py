"""Ready-made JSON documents for trying out the embed flow."""

from __future__ import annotations

import copy
from typing import Any

from ragsession.errors import ValidationError

SAMPLE_DOCUMENTS: dict[str, dict[str, Any]] = {
    "customer": {
        "name": "John Smith",
        "email": "john@example.com",
        "address": {"street": "123 Main St", "city": "New York", "zip": "10001"},
        "preferences": {"newsletter": True, "notifications": False},
    },
    "product": {
        "productId": "PROD-001",
        "name": "Smartphone X",
        "price": 999.99,
        "category": "Electronics",
        "specifications": {"screen": "6.1 inch", "storage": "128GB", "color": "Black"},
    },
    "order": {
        "orderId": "ORD-2024-001",
        "customerId": "CUST-123",
        "items": [
            {"productId": "PROD-001", "quantity": 2, "price": 999.99},
            {"productId": "PROD-002", "quantity": 1, "price": 299.99},
        ],
        "total": 2299.97,
        "status": "pending",
    },
}


def sample_document(name: str) -> dict[str, Any]:
    """Return a copy of the named sample so callers may edit it freely."""

    try:
        return copy.deepcopy(SAMPLE_DOCUMENTS[name.strip().lower()])
    except KeyError:
        choices = ", ".join(sorted(SAMPLE_DOCUMENTS))
        raise ValidationError(f"Unknown sample '{name}'. Choose one of: {choices}") from None


__all__ = ["SAMPLE_DOCUMENTS", "sample_document"]
