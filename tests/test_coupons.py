import sys
import os

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))
import pytest
from pricing.domain import Coupon, DiscountType
from pricing.coupons import apply_coupon


def amount(value):
    return Coupon(code="A", name="A", discount_type=DiscountType.AMOUNT, discount_value=value)


def percentage(value):
    return Coupon(code="P", name="P", discount_type=DiscountType.PERCENTAGE, discount_value=value)


def test_no_coupon_no_reduction():
    assert apply_coupon(10000, None) == 0


def test_amount_capped_at_subtotal():
    assert apply_coupon(1000, amount(5000)) == 1000


def test_amount_below_subtotal():
    assert apply_coupon(10000, amount(5000)) == 5000


def test_percentage():
    assert apply_coupon(10000, percentage(10)) == 1000


def test_percentage_floors():
    # 999 * 15 / 100 = 149.85
    assert apply_coupon(999, percentage(15)) == 149


def test_full_percentage_takes_everything():
    assert apply_coupon(12345, percentage(100)) == 12345


def test_zero_subtotal():
    assert apply_coupon(0, amount(5000)) == 0
    assert apply_coupon(0, percentage(50)) == 0


@pytest.mark.parametrize("subtotal", [0, 1, 99, 1000, 123456])
@pytest.mark.parametrize("coupon", [amount(0), amount(700), amount(100000), percentage(0), percentage(33), percentage(100)])
def test_reduction_within_subtotal(subtotal, coupon):
    assert 0 <= apply_coupon(subtotal, coupon) <= subtotal
