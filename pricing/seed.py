import json
import logging
from pathlib import Path
from typing import Union

from .domain import Catalog, Coupon, DiscountTier, DiscountType, Product
from .validation import clamp_coupon, clamp_product

logger = logging.getLogger(__name__)


def _log_clamp(message: str, severity: str) -> None:
    logger.warning("Seed value clamped: %s", message)


def _to_product(p: dict) -> Product:
    return Product(
        id=str(p["id"]),
        name=str(p["name"]),
        price=int(p.get("price", 0)),
        stock=int(p.get("stock", 0)),
        description=str(p.get("description", "")),
        discounts=tuple(
            DiscountTier(quantity=int(d["quantity"]), rate=float(d["rate"]))
            for d in p.get("discounts", [])
        ),
    )


def _to_coupon(c: dict) -> Coupon:
    return Coupon(
        code=str(c["code"]).upper(),
        name=str(c["name"]),
        discount_type=DiscountType(c["discountType"]),
        discount_value=int(c["discountValue"]),
    )


def load_seed(path: Union[str, Path]) -> Catalog:
    """
    Загружает seed.json в иммутабельный Catalog.
    Значения вне границ зажимаются, как при вводе из формы.
    """
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)

    catalog = Catalog(
        products=tuple(
            clamp_product(_to_product(p), _log_clamp) for p in data.get("products", [])
        ),
        coupons=tuple(
            clamp_coupon(_to_coupon(c), _log_clamp) for c in data.get("coupons", [])
        ),
    )
    logger.info(
        "Seed loaded from %s: %d products, %d coupons",
        path,
        len(catalog.products),
        len(catalog.coupons),
    )
    return catalog
