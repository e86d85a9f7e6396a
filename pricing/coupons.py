from typing import Optional

from .domain import Coupon, DiscountType


def apply_coupon(subtotal: int, coupon: Optional[Coupon]) -> int:
    """
    Сумма, которую купон снимает с subtotal.
    amount     → min(значение, subtotal)
    percentage → floor(subtotal * значение / 100)
    Результат всегда в [0, subtotal].
    """
    if coupon is None or subtotal <= 0:
        return 0

    if coupon.discount_type == DiscountType.AMOUNT:
        reduction = min(coupon.discount_value, subtotal)
    else:
        reduction = subtotal * coupon.discount_value // 100

    return max(0, min(reduction, subtotal))