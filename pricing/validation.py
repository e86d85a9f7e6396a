import re
from dataclasses import dataclass, replace
from functools import reduce
from typing import Callable, Generic, Tuple, TypeVar, Union

from .domain import (
    MAX_COUPON_AMOUNT,
    MAX_PERCENTAGE,
    MAX_STOCK,
    Coupon,
    DiscountTier,
    DiscountType,
    Notification,
    Product,
)
from .ftypes import Either, Maybe

T = TypeVar("T")

Notify = Callable[[str, str], None]
NumericInput = Union[int, str, None]

_NUMERIC = re.compile(r"^-?\d+$")
_PERCENT = re.compile(r"^-?\d+(\.\d+)?$")


@dataclass(frozen=True)
class Checked(Generic[T]):
    """Принятое (возможно, зажатое) значение и уведомление, если зажали"""

    value: T
    notice: Maybe[Notification]

    @property
    def clamped(self) -> bool:
        return self.notice.is_some()


def _accept(value: T) -> Checked[T]:
    return Checked(value, Maybe.nothing())


def _clamp(value: T, message: str) -> Checked[T]:
    return Checked(value, Maybe.some(Notification(message, "error")))


# ============ Граница: разбор текста ============


def parse_numeric_input(raw: NumericInput) -> Maybe[int]:
    """
    Текст поля → целое.
    Пустое поле → 0; не число → Nothing (отбрасывается до движка).
    """
    if raw is None:
        return Maybe.some(0)
    if isinstance(raw, bool):
        return Maybe.nothing()
    if isinstance(raw, int):
        return Maybe.some(raw)

    text = str(raw).strip()
    if text == "":
        return Maybe.some(0)
    return Maybe.some(int(text)) if _NUMERIC.match(text) else Maybe.nothing()


def parse_percent_input(raw: NumericInput) -> Maybe[float]:
    """Процент ставки: допускает дробную часть (12.5)"""
    if raw is None:
        return Maybe.some(0.0)
    if isinstance(raw, bool):
        return Maybe.nothing()
    if isinstance(raw, (int, float)):
        return Maybe.some(float(raw))

    text = str(raw).strip()
    if text == "":
        return Maybe.some(0.0)
    return Maybe.some(float(text)) if _PERCENT.match(text) else Maybe.nothing()


# ============ Проверки полей (clamp + notify) ============


def check_price(value: int) -> Checked[int]:
    if value < 0:
        return _clamp(0, "price must be non-negative")
    return _accept(value)


def check_stock(value: int) -> Checked[int]:
    if value < 0:
        return _clamp(0, "stock must be non-negative")
    if value > MAX_STOCK:
        return _clamp(MAX_STOCK, f"stock cannot exceed {MAX_STOCK}")
    return _accept(value)


def check_discount_rate(percent: float) -> Checked[float]:
    """Ставка вводится в процентах 0..100, хранится долей 0..1"""
    if percent < 0:
        return _clamp(0.0, "discount rate must be non-negative")
    if percent > MAX_PERCENTAGE:
        return _clamp(1.0, f"discount rate cannot exceed {MAX_PERCENTAGE}%")
    return _accept(percent / 100)


def check_rate(rate: float) -> Checked[float]:
    """Уже сохранённая доля 0..1"""
    if rate < 0:
        return _clamp(0.0, "discount rate must be non-negative")
    if rate > 1:
        return _clamp(1.0, f"discount rate cannot exceed {MAX_PERCENTAGE}%")
    return _accept(rate)


def check_tier_quantity(value: int) -> Checked[int]:
    if value < 1:
        return _clamp(1, "discount quantity must be at least 1")
    return _accept(value)


def check_coupon_value(discount_type: DiscountType, value: int) -> Checked[int]:
    if value < 0:
        return _clamp(0, "discount value must be non-negative")

    if discount_type == DiscountType.PERCENTAGE:
        if value > MAX_PERCENTAGE:
            return _clamp(MAX_PERCENTAGE, f"percentage cannot exceed {MAX_PERCENTAGE}%")
    elif value > MAX_COUPON_AMOUNT:
        return _clamp(MAX_COUPON_AMOUNT, f"amount cannot exceed {MAX_COUPON_AMOUNT:,}")

    return _accept(value)


def emit(checked: Checked[T], notify: Notify) -> T:
    """Отдаёт уведомление в sink (если есть) и возвращает принятое значение"""
    if checked.notice.is_some():
        notice = checked.notice.get_or_else(None)
        notify(notice.message, notice.severity)
    return checked.value


def check_cart_quantity(stock: int, wanted: int) -> Checked[int]:
    """Количество в корзине не больше остатка"""
    if wanted > stock:
        return _clamp(max(stock, 0), f"only {max(stock, 0)} left in stock")
    return _accept(max(wanted, 0))


# ============ Записи каталога ============


def clamp_tier(tier: DiscountTier, notify: Notify) -> DiscountTier:
    return DiscountTier(
        quantity=emit(check_tier_quantity(tier.quantity), notify),
        rate=emit(check_rate(tier.rate), notify),
    )


def clamp_fields(fields: dict, notify: Notify) -> dict:
    """
    Зажимает числовые поля товара, которые есть в fields.
    Остальные ключи проходят как есть.
    """
    checked = dict(fields)
    if "price" in checked:
        checked["price"] = emit(check_price(checked["price"]), notify)
    if "stock" in checked:
        checked["stock"] = emit(check_stock(checked["stock"]), notify)
    if "discounts" in checked:
        checked["discounts"] = tuple(clamp_tier(t, notify) for t in checked["discounts"])
    return checked


def clamp_product(product: Product, notify: Notify) -> Product:
    return replace(
        product,
        **clamp_fields(
            {
                "price": product.price,
                "stock": product.stock,
                "discounts": product.discounts,
            },
            notify,
        ),
    )


def clamp_coupon(coupon: Coupon, notify: Notify) -> Coupon:
    return replace(
        coupon,
        discount_value=emit(
            check_coupon_value(coupon.discount_type, coupon.discount_value), notify
        ),
    )


# ============ Формы ============


@dataclass(frozen=True)
class ProductForm:
    name: str = ""
    price: NumericInput = 0
    stock: NumericInput = 0
    description: str = ""
    discounts: Tuple[Tuple[NumericInput, NumericInput], ...] = ()  # (кол-во, %)


@dataclass(frozen=True)
class CouponForm:
    name: str = ""
    code: str = ""
    discount_type: str = DiscountType.AMOUNT.value
    discount_value: NumericInput = 0


def new_product_form() -> ProductForm:
    return ProductForm()


def _parse_field(field: str, raw: NumericInput, parse=parse_numeric_input) -> Either:
    parsed = parse(raw)
    if parsed.is_none():
        return Either.left({"error": f"{field} must be a number", "field": field})
    return Either.right(parsed.get_or_else(0))


def _parse_tiers(
    tiers: Tuple[Tuple[NumericInput, NumericInput], ...]
) -> Either[dict, Tuple[Tuple[int, float], ...]]:
    def step(acc: Either, tier) -> Either:
        quantity, percent = tier
        return acc.bind(
            lambda done: _parse_field("discount quantity", quantity).bind(
                lambda q: _parse_field("discount rate", percent, parse_percent_input).map(
                    lambda p: done + ((q, p),)
                )
            )
        )

    return reduce(step, tiers, Either.right(()))


def validate_product_form(form: ProductForm, notify: Notify) -> Either[dict, dict]:
    """
    Форма товара → поля для каталога.
    Left только для нечислового текста или пустого названия;
    выход за границы зажимается с уведомлением.
    """
    name = (form.name or "").strip()
    if not name:
        return Either.left({"error": "name is required", "field": "name"})

    def accept(parsed: Tuple[int, int, Tuple[Tuple[int, float], ...]]) -> dict:
        price, stock, tiers = parsed
        return {
            "name": name,
            "price": emit(check_price(price), notify),
            "stock": emit(check_stock(stock), notify),
            "description": form.description or "",
            "discounts": tuple(
                DiscountTier(
                    quantity=emit(check_tier_quantity(q), notify),
                    rate=emit(check_discount_rate(p), notify),
                )
                for q, p in tiers
            ),
        }

    return (
        _parse_field("price", form.price)
        .bind(lambda price: _parse_field("stock", form.stock).map(lambda s: (price, s)))
        .bind(lambda ps: _parse_tiers(form.discounts).map(lambda t: ps + (t,)))
        .map(accept)
    )


def validate_coupon_form(form: CouponForm, notify: Notify) -> Either[dict, Coupon]:
    """Форма купона → Coupon; код приводится к верхнему регистру"""
    code = (form.code or "").strip().upper()
    name = (form.name or "").strip()
    if not code:
        return Either.left({"error": "code is required", "field": "code"})
    if not name:
        return Either.left({"error": "name is required", "field": "name"})

    try:
        discount_type = DiscountType(form.discount_type)
    except ValueError:
        return Either.left(
            {"error": f"unknown discount type {form.discount_type!r}", "field": "discount_type"}
        )

    return _parse_field("discount value", form.discount_value).map(
        lambda value: Coupon(
            code=code,
            name=name,
            discount_type=discount_type,
            discount_value=emit(check_coupon_value(discount_type, value), notify),
        )
    )
