import json
import os
from datetime import UTC, datetime, timedelta
from pathlib import Path

import pytest
from protean.integrations.pytest import DomainFixture

SHIPPING_ADDRESS = {
    "first_name": "Awa",
    "last_name": "Ndiaye",
    "phone": "+221770000000",
    "street": "12 Rue Carnot",
    "district": "Plateau",
    "city": "Dakar",
    "country": "Senegal",
}


def pytest_addoption(parser):
    parser.addoption(
        "--env",
        action="store",
        default="test",
        help="Config environment to run tests on",
    )


def pytest_sessionstart(session):
    """Select the domain.toml overlay before the domain is imported."""
    os.environ["PROTEAN_ENV"] = session.config.option.env


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their directory location."""
    for item in items:
        test_path = str(Path(item.fspath))

        if "/domain/" in test_path:
            item.add_marker(pytest.mark.domain)
        elif "/application/" in test_path:
            item.add_marker(pytest.mark.application)
        elif "/bdd/" in test_path:
            item.add_marker(pytest.mark.bdd)
        elif "/integration/" in test_path:
            item.add_marker(pytest.mark.integration)
            if not any(m.name == "fast" for m in item.iter_markers()):
                item.add_marker(pytest.mark.slow)


@pytest.fixture(scope="session")
def storefront_bed():
    from storefront.domain import storefront

    bed = DomainFixture(storefront)
    bed.setup()
    yield bed
    bed.teardown()


@pytest.fixture(scope="session", autouse=True)
def setup_db(storefront_bed):
    from storefront.domain import storefront
    from storefront.utils.db import drop_db, setup_db

    setup_db(storefront)

    yield

    drop_db(storefront)


@pytest.fixture(autouse=True)
def _ctx(storefront_bed):
    with storefront_bed.domain_context():
        yield


@pytest.fixture(autouse=True)
def run_around_tests(_ctx):
    """Clean up storage after every test"""
    yield

    from protean import current_domain

    for _, provider in current_domain.providers.items():
        provider._data_reset()

    current_domain.event_store.store._data_reset()


# ---------------------------------------------------------------------------
# Seeding helpers shared by every area
# ---------------------------------------------------------------------------
@pytest.fixture()
def shipping_address():
    return dict(SHIPPING_ADDRESS)


@pytest.fixture()
def add_product():
    from protean import current_domain
    from storefront.product.creation import AddProduct

    def _add(**overrides):
        defaults = {"name": "Wax Print Dress", "price": 10000.0, "stock": 10}
        defaults.update(overrides)
        if isinstance(defaults.get("variants"), list):
            defaults["variants"] = json.dumps(defaults["variants"])
        return current_domain.process(AddProduct(**defaults), asynchronous=False)

    return _add


@pytest.fixture()
def add_coupon():
    from protean import current_domain
    from storefront.coupon.creation import CreateCoupon

    def _add(**overrides):
        now = datetime.now(UTC)
        defaults = {
            "code": "WELCOME10",
            "discount_type": "percentage",
            "value": 10.0,
            "valid_from": now - timedelta(days=1),
            "valid_until": now + timedelta(days=30),
            "usage_limit": 0,
        }
        defaults.update(overrides)
        return current_domain.process(CreateCoupon(**defaults), asynchronous=False)

    return _add


@pytest.fixture()
def place_order():
    from protean import current_domain
    from storefront.order.placement import PlaceOrder

    def _place(lines=None, **overrides):
        """Place ``lines`` as a JSON payload; an ``items`` override is sent raw."""
        defaults = {
            "user_id": "user-001",
            "items": json.dumps(lines),
            "shipping_address": json.dumps(SHIPPING_ADDRESS),
            "shipping_method": "standard_48h",
        }
        defaults.update(overrides)
        return current_domain.process(PlaceOrder(**defaults), asynchronous=False)

    return _place
