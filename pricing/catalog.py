import uuid
from dataclasses import replace
from typing import Tuple

from .domain import Cart, CartItem, Catalog, Coupon, DiscountTier, Product
from .ftypes import Either, Maybe

# Изменяемые через update_product поля; id неизменен
EDITABLE_FIELDS = ("name", "price", "stock", "description", "discounts")


# ============ Товары ============


def add_product(
    catalog: Catalog,
    name: str,
    price: int = 0,
    stock: int = 0,
    description: str = "",
    discounts: Tuple[DiscountTier, ...] = (),
) -> Catalog:
    """Новый каталог с добавленным товаром (id генерируется)"""
    product = Product(
        id=f"p{uuid.uuid4().hex[:8]}",
        name=name,
        price=price,
        stock=stock,
        description=description,
        discounts=tuple(discounts),
    )
    return replace(catalog, products=catalog.products + (product,))


def update_product(catalog: Catalog, product_id: str, **changes) -> Either[dict, Catalog]:
    """
    Right(новый каталог) или Left({"error": ...}),
    если товара нет или передано неизвестное поле
    """
    unknown = sorted(set(changes) - set(EDITABLE_FIELDS))
    if unknown:
        return Either.left({"error": f"cannot edit fields: {', '.join(unknown)}"})

    if safe_product(catalog, product_id).is_none():
        return Either.left({"error": f"product '{product_id}' not found"})

    if "discounts" in changes:
        changes["discounts"] = tuple(changes["discounts"])

    return Either.right(
        replace(
            catalog,
            products=tuple(
                replace(p, **changes) if p.id == product_id else p
                for p in catalog.products
            ),
        )
    )


def replace_product(catalog: Catalog, product: Product) -> Either[dict, Catalog]:
    """Записать отредактированную копию товара (например, после add_tier)"""
    return update_product(
        catalog, product.id, **{f: getattr(product, f) for f in EDITABLE_FIELDS}
    )


def delete_product(catalog: Catalog, product_id: str) -> Catalog:
    return replace(
        catalog,
        products=tuple(filter(lambda p: p.id != product_id, catalog.products)),
    )


def safe_product(catalog: Catalog, product_id: str) -> Maybe[Product]:
    """Безопасный поиск товара по ID"""
    return Maybe.of(next((p for p in catalog.products if p.id == product_id), None))


def stock_level(product: Product) -> str:
    """Бейдж остатка: plenty (> 10), low (> 0), sold_out"""
    if product.stock > 10:
        return "plenty"
    if product.stock > 0:
        return "low"
    return "sold_out"


# ============ Купоны ============


def add_coupon(catalog: Catalog, coupon: Coupon) -> Either[dict, Catalog]:
    """Код купона уникален: дубликат отклоняется, а не зажимается"""
    if find_coupon(catalog, coupon.code).is_some():
        return Either.left({"error": "coupon code already exists", "code": coupon.code})
    return Either.right(replace(catalog, coupons=catalog.coupons + (coupon,)))


def delete_coupon(catalog: Catalog, code: str) -> Catalog:
    return replace(
        catalog,
        coupons=tuple(filter(lambda c: c.code != code.upper(), catalog.coupons)),
    )


def find_coupon(catalog: Catalog, code: str) -> Maybe[Coupon]:
    wanted = (code or "").upper()
    return Maybe.of(next((c for c in catalog.coupons if c.code == wanted), None))


# ============ Корзина (чистые функции) ============


def add_to_cart(cart: Cart, product: Product, qty: int) -> Cart:
    """Новый Cart с добавленным товаром; повторное добавление суммирует количество"""
    if qty <= 0:
        return cart

    if any(item.product.id == product.id for item in cart.items):
        items = tuple(
            CartItem(product=product, quantity=item.quantity + qty)
            if item.product.id == product.id
            else item
            for item in cart.items
        )
    else:
        items = cart.items + (CartItem(product=product, quantity=qty),)

    return replace(cart, items=items)


def remove_from_cart(cart: Cart, product_id: str) -> Cart:
    return replace(
        cart,
        items=tuple(filter(lambda item: item.product.id != product_id, cart.items)),
    )


def cart_quantity(cart: Cart, product_id: str) -> int:
    """Сколько единиц товара уже в корзине (0, если строки нет)"""
    return sum(item.quantity for item in cart.items if item.product.id == product_id)


def update_quantity(cart: Cart, product_id: str, qty: int) -> Cart:
    """qty <= 0 убирает строку"""
    if qty <= 0:
        return remove_from_cart(cart, product_id)
    return replace(
        cart,
        items=tuple(
            replace(item, quantity=qty) if item.product.id == product_id else item
            for item in cart.items
        ),
    )


def refresh_cart(cart: Cart, catalog: Catalog) -> Cart:
    """Подменяет снимки товаров актуальными из каталога; удалённые выпадают"""
    fresh = {p.id: p for p in catalog.products}
    return replace(
        cart,
        items=tuple(
            replace(item, product=fresh[item.product.id])
            for item in cart.items
            if item.product.id in fresh
        ),
    )


def validate_cart(cart: Cart, catalog: Catalog) -> Either[dict, Cart]:
    """
    Проверяет корзину перед расчётом:
    - товар ещё есть в каталоге
    - остатка хватает на количество
    """

    def validate_item(item: CartItem) -> Either[dict, CartItem]:
        found = safe_product(catalog, item.product.id)
        if found.is_none():
            return Either.left({"error": f"product '{item.product.id}' not found"})
        product = found.get_or_else(None)
        if product.stock < item.quantity:
            return Either.left(
                {
                    "error": f"not enough stock for '{product.name}'",
                    "product_id": product.id,
                    "available": product.stock,
                }
            )
        return Either.right(item)

    errors = [r.value for r in map(validate_item, cart.items) if r.is_left]
    if errors:
        return Either.left(errors[0])
    return Either.right(cart)
