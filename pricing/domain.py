from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple

MAX_STOCK = 9999
MAX_PERCENTAGE = 100
MAX_COUPON_AMOUNT = 100_000


class DiscountType(str, Enum):
    AMOUNT = "amount"
    PERCENTAGE = "percentage"


@dataclass(frozen=True)
class DiscountTier:
    quantity: int  # от скольки штук
    rate: float  # доля 0..1


@dataclass(frozen=True)
class Product:
    id: str
    name: str
    price: int  # целые единицы валюты
    stock: int
    description: str = ""
    discounts: Tuple[DiscountTier, ...] = ()


@dataclass(frozen=True)
class Coupon:
    code: str
    name: str
    discount_type: DiscountType
    discount_value: int


@dataclass(frozen=True)
class CartItem:
    product: Product
    quantity: int


@dataclass(frozen=True)
class Cart:
    id: str
    items: Tuple[CartItem, ...] = ()


@dataclass(frozen=True)
class Catalog:
    products: Tuple[Product, ...] = ()
    coupons: Tuple[Coupon, ...] = ()


@dataclass(frozen=True)
class Notification:
    message: str
    severity: str  # "error" | "info"


@dataclass(frozen=True)
class LinePrice:
    raw_subtotal: int
    rate: float
    quantity_discount_amount: int
    subtotal: int
    coupon_reduction_amount: int
    final_price: int


@dataclass(frozen=True)
class CartPrice:
    lines: Tuple[LinePrice, ...]
    raw_subtotal: int
    quantity_discount_amount: int
    subtotal: int
    coupon_reduction_amount: int
    final_price: int
    coupon: Optional[Coupon] = None
