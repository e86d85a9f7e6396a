import sys
import os

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))
import pytest
from pricing.domain import Catalog, Coupon, DiscountTier, DiscountType, Product


@pytest.fixture
def sample_catalog():
    return Catalog(
        products=(
            Product(
                id="p1",
                name="Phone",
                price=10000,
                stock=20,
                discounts=(DiscountTier(10, 0.1), DiscountTier(20, 0.2)),
            ),
            Product(id="p2", name="Case", price=2000, stock=3),
            Product(id="p3", name="Cable", price=500, stock=0),
        ),
        coupons=(
            Coupon("AMOUNT5000", "5000 off", DiscountType.AMOUNT, 5000),
            Coupon("PERCENT10", "10% off", DiscountType.PERCENTAGE, 10),
        ),
    )


@pytest.fixture
def sink():
    received = []

    def notify(message, severity):
        received.append((message, severity))

    notify.received = received
    return notify
