import math
from decimal import Decimal
from functools import reduce
from typing import Iterable, Optional, Tuple

from .coupons import apply_coupon
from .discounts import resolve_discount_rate
from .domain import CartItem, CartPrice, Coupon, DiscountTier, LinePrice


def quantity_discount_amount(raw_subtotal: int, rate: float) -> int:
    """
    floor(raw_subtotal * rate) без ошибок float:
    29000 * 0.29 во float даёт 8409.999…, нам нужно 8410
    """
    return math.floor(Decimal(raw_subtotal) * Decimal(str(rate)))


def _discounted_line(
    unit_price: int, quantity: int, discounts: Iterable[DiscountTier]
) -> Tuple[int, float, int]:
    """Шаги 1-3: (raw_subtotal, rate, quantity_discount)"""
    raw_subtotal = unit_price * quantity
    rate = resolve_discount_rate(discounts, quantity)
    return raw_subtotal, rate, quantity_discount_amount(raw_subtotal, rate)


def compute_final_price(
    unit_price: int,
    quantity: int,
    discounts: Iterable[DiscountTier],
    coupon: Optional[Coupon] = None,
) -> LinePrice:
    """
    Цена строки. Порядок фиксирован:
      1. raw = цена * количество
      2. ставка по количеству
      3. subtotal = raw - floor(raw * ставка)
      4. купон считается от subtotal (не от raw!)
      5. final = subtotal - скидка купона
    """
    raw_subtotal, rate, qty_discount = _discounted_line(unit_price, quantity, discounts)
    subtotal = raw_subtotal - qty_discount
    coupon_reduction = apply_coupon(subtotal, coupon)

    return LinePrice(
        raw_subtotal=raw_subtotal,
        rate=rate,
        quantity_discount_amount=qty_discount,
        subtotal=subtotal,
        coupon_reduction_amount=coupon_reduction,
        final_price=subtotal - coupon_reduction,
    )


def compute_line_price(item: CartItem, coupon: Optional[Coupon] = None) -> LinePrice:
    return compute_final_price(
        item.product.price, item.quantity, item.product.discounts, coupon
    )


def compute_cart_price(
    items: Iterable[CartItem], coupon: Optional[Coupon] = None
) -> CartPrice:
    """
    Итог корзины: скидка по количеству считается для каждой строки отдельно,
    единственный купон применяется один раз к сумме subtotal всех строк.
    """
    lines = tuple(compute_line_price(item) for item in items)

    def add(acc: Tuple[int, int, int], line: LinePrice) -> Tuple[int, int, int]:
        raw, discount, subtotal = acc
        return (
            raw + line.raw_subtotal,
            discount + line.quantity_discount_amount,
            subtotal + line.subtotal,
        )

    raw_total, discount_total, subtotal = reduce(add, lines, (0, 0, 0))
    coupon_reduction = apply_coupon(subtotal, coupon)

    return CartPrice(
        lines=lines,
        raw_subtotal=raw_total,
        quantity_discount_amount=discount_total,
        subtotal=subtotal,
        coupon_reduction_amount=coupon_reduction,
        final_price=subtotal - coupon_reduction,
        coupon=coupon,
    )
