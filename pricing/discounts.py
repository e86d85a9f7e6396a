from dataclasses import replace
from functools import reduce
from typing import Iterable

from .domain import DiscountTier, Product


# ============ Выбор скидки по количеству ============


def qualifying_tiers(
    discounts: Iterable[DiscountTier], purchased_quantity: int
) -> tuple:
    """Ступени, порог которых уже достигнут"""
    return tuple(filter(lambda t: t.quantity <= purchased_quantity, discounts))


def resolve_discount_rate(
    discounts: Iterable[DiscountTier], purchased_quantity: int
) -> float:
    """
    Ставка скидки для купленного количества.
    Побеждает максимальная ставка среди достигнутых ступеней,
    а не ступень с наибольшим порогом: порядок ступеней не важен.
    Ничего не подошло → 0.
    """
    if purchased_quantity <= 0:
        return 0.0

    return reduce(
        lambda best, tier: max(best, tier.rate),
        qualifying_tiers(discounts, purchased_quantity),
        0.0,
    )


def max_discount_rate(discounts: Iterable[DiscountTier]) -> float:
    """Лучшая ставка товара при любом количестве (для витрины)"""
    return reduce(lambda best, tier: max(best, tier.rate), discounts, 0.0)


# ============ Операции над ступенями товара ============


def new_tier() -> DiscountTier:
    """Ступень по умолчанию для формы: от 10 шт. скидка 10%"""
    return DiscountTier(quantity=10, rate=0.1)


def add_tier(product: Product, tier: DiscountTier) -> Product:
    return replace(product, discounts=product.discounts + (tier,))


def remove_tier(product: Product, index: int) -> Product:
    """Неверный индекс оставляет товар без изменений"""
    if not 0 <= index < len(product.discounts):
        return product
    return replace(
        product,
        discounts=tuple(t for i, t in enumerate(product.discounts) if i != index),
    )


def update_tier(product: Product, index: int, tier: DiscountTier) -> Product:
    if not 0 <= index < len(product.discounts):
        return product
    return replace(
        product,
        discounts=tuple(
            tier if i == index else t for i, t in enumerate(product.discounts)
        ),
    )
