import logging
import threading
from typing import Callable, Optional

from . import catalog as ops
from .composer import compute_cart_price, compute_final_price
from .discounts import add_tier, remove_tier, update_tier
from .domain import Cart, CartPrice, Catalog, Coupon, DiscountTier, LinePrice, Product
from .ftypes import Either, Maybe
from .validation import (
    CouponForm,
    Notify,
    ProductForm,
    clamp_coupon,
    clamp_fields,
    clamp_product,
    validate_coupon_form,
    validate_product_form,
)

logger = logging.getLogger(__name__)


def log_notice(message: str, severity: str) -> None:
    """Sink по умолчанию: уведомления уходят в лог"""
    logger.warning("Catalog value clamped (%s): %s", severity, message)


class CatalogService:
    """
    Хранилище каталога.
    Снимок Catalog иммутабелен: читатели получают его целиком,
    запись подменяет снимок под замком.
    Всё, что записывается, проходит clamp + notify.
    """

    def __init__(self, catalog: Optional[Catalog] = None, notify: Notify = log_notice):
        self._catalog = catalog if catalog is not None else Catalog()
        self.notify = notify
        self._lock = threading.Lock()

    def snapshot(self) -> Catalog:
        with self._lock:
            return self._catalog

    def product(self, product_id: str) -> Maybe[Product]:
        return ops.safe_product(self.snapshot(), product_id)

    def coupon(self, code: str) -> Maybe[Coupon]:
        return ops.find_coupon(self.snapshot(), code)

    def _commit(
        self, change: Callable[[Catalog], Either[dict, Catalog]]
    ) -> Either[dict, Catalog]:
        with self._lock:
            result = change(self._catalog)
            if result.is_right:
                self._catalog = result.value
            return result

    # ---- товары ----

    def add_product(self, **fields) -> Product:
        clamped = clamp_fields(fields, self.notify)
        updated = self._commit(lambda c: Either.right(ops.add_product(c, **clamped)))
        product = updated.value.products[-1]
        logger.info("Product %s added: %s", product.id, product.name)
        return product

    def update_product(self, product_id: str, **changes) -> Either[dict, Product]:
        clamped = clamp_fields(changes, self.notify)
        result = self._commit(lambda c: ops.update_product(c, product_id, **clamped))
        if result.is_left:
            logger.warning("Product update rejected: %s", result.value["error"])
            return result
        logger.info("Product %s updated: %s", product_id, ", ".join(sorted(changes)))
        return Either.right(ops.safe_product(result.value, product_id).get_or_else(None))

    def delete_product(self, product_id: str) -> bool:
        def change(c: Catalog) -> Either[dict, Catalog]:
            if ops.safe_product(c, product_id).is_none():
                return Either.left({"error": f"product '{product_id}' not found"})
            return Either.right(ops.delete_product(c, product_id))

        removed = self._commit(change).is_right
        if removed:
            logger.info("Product %s deleted", product_id)
        return removed

    def _edit_tiers(
        self, product_id: str, edit: Callable[[Product], Product]
    ) -> Either[dict, Product]:
        def change(c: Catalog) -> Either[dict, Catalog]:
            found = ops.safe_product(c, product_id)
            if found.is_none():
                return Either.left({"error": f"product '{product_id}' not found"})
            edited = edit(found.get_or_else(None))
            return ops.replace_product(c, clamp_product(edited, self.notify))

        result = self._commit(change)
        if result.is_left:
            logger.warning("Discount edit rejected: %s", result.value["error"])
            return result
        return Either.right(ops.safe_product(result.value, product_id).get_or_else(None))

    def add_tier(self, product_id: str, tier: DiscountTier) -> Either[dict, Product]:
        return self._edit_tiers(product_id, lambda p: add_tier(p, tier))

    def remove_tier(self, product_id: str, index: int) -> Either[dict, Product]:
        return self._edit_tiers(product_id, lambda p: remove_tier(p, index))

    def update_tier(
        self, product_id: str, index: int, tier: DiscountTier
    ) -> Either[dict, Product]:
        return self._edit_tiers(product_id, lambda p: update_tier(p, index, tier))

    # ---- купоны ----

    def add_coupon(self, coupon: Coupon) -> Either[dict, Coupon]:
        clamped = clamp_coupon(coupon, self.notify)
        result = self._commit(lambda c: ops.add_coupon(c, clamped))
        if result.is_left:
            logger.warning("Coupon %s rejected: %s", coupon.code, result.value["error"])
            return result
        logger.info("Coupon %s added", coupon.code)
        return Either.right(clamped)

    def delete_coupon(self, code: str) -> bool:
        def change(c: Catalog) -> Either[dict, Catalog]:
            if ops.find_coupon(c, code).is_none():
                return Either.left({"error": f"coupon '{code}' not found"})
            return Either.right(ops.delete_coupon(c, code))

        removed = self._commit(change).is_right
        if removed:
            logger.info("Coupon %s deleted", code.upper())
        return removed


class AdminService:
    """Отправка админских форм: валидация (clamp + notify) → каталог"""

    def __init__(self, catalog_service: CatalogService, notify: Notify):
        self.catalog = catalog_service
        self.notify = notify

    def submit_product(
        self, form: ProductForm, product_id: Optional[str] = None
    ) -> Either[dict, Product]:
        """product_id=None: новый товар, иначе редактирование"""
        fields = validate_product_form(form, self.notify)
        if fields.is_left:
            self.notify(fields.value["error"], "error")
            return fields

        if product_id is None:
            product = self.catalog.add_product(**fields.value)
            self.notify("product added", "info")
            return Either.right(product)

        result = self.catalog.update_product(product_id, **fields.value)
        if result.is_left:
            self.notify(result.value["error"], "error")
        else:
            self.notify("product updated", "info")
        return result

    def submit_coupon(self, form: CouponForm) -> Either[dict, Coupon]:
        """Уведомления о зажатии показываются только если купон создан"""
        held = []
        result = validate_coupon_form(form, lambda *notice: held.append(notice)).bind(
            self.catalog.add_coupon
        )
        if result.is_left:
            self.notify(result.value["error"], "error")
            return result

        for message, severity in held:
            self.notify(message, severity)
        self.notify("coupon added", "info")
        return result


class PricingService:
    """Расчёт цен по текущему снимку каталога"""

    def __init__(self, catalog_service: CatalogService):
        self.catalog = catalog_service

    def _coupon(self, catalog: Catalog, code: Optional[str]) -> Either[dict, Optional[Coupon]]:
        if not code:
            return Either.right(None)
        found = ops.find_coupon(catalog, code)
        if found.is_none():
            return Either.left({"error": f"coupon '{code}' not found"})
        return Either.right(found.get_or_else(None))

    def quote_line(
        self, product_id: str, quantity: int, coupon_code: Optional[str] = None
    ) -> Either[dict, LinePrice]:
        if quantity < 1:
            return Either.left({"error": "quantity must be at least 1"})

        catalog = self.catalog.snapshot()
        found = ops.safe_product(catalog, product_id)
        if found.is_none():
            return Either.left({"error": f"product '{product_id}' not found"})
        product = found.get_or_else(None)

        result = self._coupon(catalog, coupon_code).map(
            lambda coupon: compute_final_price(
                product.price, quantity, product.discounts, coupon
            )
        )
        if result.is_right:
            logger.debug("Quote %s x%d: %s", product_id, quantity, result.value)
        return result

    def quote_cart(self, cart: Cart, coupon_code: Optional[str] = None) -> Either[dict, CartPrice]:
        """Корзина пересобирается по актуальному каталогу, затем проверяется остаток"""
        catalog = self.catalog.snapshot()
        fresh = ops.refresh_cart(cart, catalog)

        result = ops.validate_cart(fresh, catalog).bind(
            lambda valid: self._coupon(catalog, coupon_code).map(
                lambda coupon: compute_cart_price(valid.items, coupon)
            )
        )
        if result.is_left:
            logger.warning("Cart %s not priced: %s", cart.id, result.value["error"])
        else:
            logger.debug("Cart %s final price %d", cart.id, result.value.final_price)
        return result
