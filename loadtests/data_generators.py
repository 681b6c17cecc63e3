"""Faker-based payloads for the storefront load test scenarios.

Every generator matches the field names of the API's Pydantic request
schemas and passes the domain's validation rules.
"""

from __future__ import annotations

import random
import uuid
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING

from faker import Faker

if TYPE_CHECKING:
    from requests import Response

fake = Faker("fr_FR")

SHIPPING_METHODS = ["express_24h", "standard_48h", "point_relais"]
SORTS = ["newest", "oldest", "highest", "lowest", "most_helpful", "most_liked"]


def admin_headers() -> dict:
    return {"X-User-Id": "loadtest-admin", "X-User-Role": "admin"}


def user_headers(user_id: str | None = None) -> dict:
    return {"X-User-Id": user_id or f"lt-user-{uuid.uuid4().hex[:8]}"}


def guest_email() -> str:
    return f"{fake.user_name()[:20]}.{uuid.uuid4().hex[:4]}@example.com"


def product_data(stock: int | None = None) -> dict:
    """AddProductRequest payload. Prices are whole XOF amounts."""
    return {
        "name": f"{fake.color_name()} {random.choice(['Boubou', 'Wax Dress', 'Kente Scarf', 'Sandals'])}"[:255],
        "price": float(random.randrange(2000, 60000, 500)),
        "stock": random.randint(50, 500) if stock is None else stock,
        "sku": f"LT-{uuid.uuid4().hex[:10].upper()}",
    }


def coupon_data(usage_limit: int = 0) -> dict:
    now = datetime.now(UTC)
    return {
        "code": f"LT{uuid.uuid4().hex[:8].upper()}",
        "discount_type": random.choice(["percentage", "fixed"]),
        "value": float(random.choice([5, 10, 15, 20])),
        "valid_from": (now - timedelta(days=1)).isoformat(),
        "valid_until": (now + timedelta(days=7)).isoformat(),
        "usage_limit": usage_limit,
    }


def address_data() -> dict:
    return {
        "first_name": fake.first_name()[:100],
        "last_name": fake.last_name()[:100],
        "phone": f"+22177{random.randint(1000000, 9999999)}",
        "street": fake.street_address()[:255],
        "district": fake.city_suffix()[:100],
        "city": random.choice(["Dakar", "Thiès", "Saint-Louis", "Ziguinchor"]),
        "country": "Senegal",
    }


def order_data(product_ids: list[str], coupon_code: str | None = None, quantity: int | None = None) -> dict:
    """PlaceOrderRequest payload over one to three of the given products."""
    chosen = random.sample(product_ids, k=min(len(product_ids), random.randint(1, 3)))
    return {
        "items": [{"product_id": pid, "quantity": quantity or random.randint(1, 3)} for pid in chosen],
        "shipping_address": address_data(),
        "shipping_method": random.choice(SHIPPING_METHODS),
        "coupon_code": coupon_code,
    }


def review_data(product_id: str) -> dict:
    return {
        "product_id": product_id,
        "rating": random.choices([1, 2, 3, 4, 5], weights=[1, 1, 2, 4, 6])[0],
        "title": fake.sentence(nb_words=4)[:200],
        "comment": fake.paragraph(nb_sentences=3),
    }


def extract_error_detail(response: Response) -> str:
    """Compact error text from a storefront API response.

    Handles FastAPI's ``{"detail": ...}`` bodies and the domain's
    ``{"error": {"field": [messages]}}`` bodies.
    """
    try:
        body = response.json()
    except ValueError:
        return (getattr(response, "text", "") or "(empty response body)")[:300]

    if isinstance(body.get("detail"), list):
        return " | ".join(
            f"{'.'.join(str(p) for p in err.get('loc', []))}: {err.get('msg', err)}" for err in body["detail"]
        )
    if "detail" in body:
        return str(body["detail"])
    if isinstance(body.get("error"), dict):
        return " | ".join(f"{field}: {messages}" for field, messages in body["error"].items())
    return str(body)[:300]
