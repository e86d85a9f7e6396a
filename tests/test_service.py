import sys
import os

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))
import threading
import pytest
from pricing.domain import Cart, Coupon, DiscountTier, DiscountType
from pricing.catalog import add_to_cart
from pricing.service import AdminService, CatalogService, PricingService
from pricing.validation import CouponForm, ProductForm


@pytest.fixture
def catalog_service(sample_catalog):
    return CatalogService(sample_catalog)


@pytest.fixture
def watched_service(sample_catalog, sink):
    return CatalogService(sample_catalog, sink)


@pytest.fixture
def admin(catalog_service, sink):
    return AdminService(catalog_service, sink)


@pytest.fixture
def pricing(catalog_service):
    return PricingService(catalog_service)


# CatalogService


def test_snapshot_is_stable_after_write(catalog_service):
    before = catalog_service.snapshot()
    catalog_service.update_product("p1", price=1)
    assert before.products[0].price == 10000
    assert catalog_service.snapshot().products[0].price == 1


def test_tier_operations(catalog_service):
    p = catalog_service.add_tier("p2", DiscountTier(2, 0.05)).get_or_else(None)
    assert p.discounts == (DiscountTier(2, 0.05),)

    p = catalog_service.update_tier("p2", 0, DiscountTier(3, 0.1)).get_or_else(None)
    assert p.discounts == (DiscountTier(3, 0.1),)

    p = catalog_service.remove_tier("p2", 0).get_or_else(None)
    assert p.discounts == ()

    assert catalog_service.add_tier("nope", DiscountTier(1, 0.1)).is_left


def test_delete_reports_whether_removed(catalog_service):
    assert catalog_service.delete_product("p3") is True
    assert catalog_service.delete_product("p3") is False
    assert catalog_service.delete_coupon("amount5000") is True
    assert catalog_service.coupon("AMOUNT5000").is_none()


def test_concurrent_deletes_remove_once(catalog_service):
    results = []

    def worker():
        results.append(catalog_service.delete_product("p1"))

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert results.count(True) == 1
    assert catalog_service.product("p1").is_none()


def test_delete_unknown_keeps_snapshot(catalog_service):
    before = catalog_service.snapshot()
    assert catalog_service.delete_product("nope") is False
    assert catalog_service.delete_coupon("NOPE") is False
    assert catalog_service.snapshot() is before


def test_tier_rate_over_limit_is_clamped(watched_service, sink):
    p = watched_service.add_tier("p2", DiscountTier(2, 1.5)).get_or_else(None)
    assert p.discounts == (DiscountTier(2, 1.0),)
    assert sink.received == [("discount rate cannot exceed 100%", "error")]

    line = PricingService(watched_service).quote_line("p2", 2).get_or_else(None)
    assert line.final_price == 0


def test_update_tier_quantity_clamped(watched_service, sink):
    p = watched_service.update_tier("p1", 0, DiscountTier(0, -0.5)).get_or_else(None)
    assert p.discounts[0] == DiscountTier(1, 0.0)
    assert len(sink.received) == 2


def test_update_product_clamps_direct_values(watched_service, sink):
    p = watched_service.update_product("p1", stock=20000, price=-5).get_or_else(None)
    assert (p.price, p.stock) == (0, 9999)
    assert sink.received == [
        ("price must be non-negative", "error"),
        ("stock cannot exceed 9999", "error"),
    ]


def test_add_product_clamps_direct_values(watched_service, sink):
    p = watched_service.add_product(name="Lamp", stock=-3, discounts=(DiscountTier(5, 2.0),))
    assert p.stock == 0
    assert p.discounts == (DiscountTier(5, 1.0),)
    assert len(sink.received) == 2


def test_add_coupon_clamps_direct_value(watched_service, sink):
    big = Coupon("BIG", "Big", DiscountType.AMOUNT, 150000)
    coupon = watched_service.add_coupon(big).get_or_else(None)
    assert coupon.discount_value == 100000
    assert watched_service.coupon("BIG").get_or_else(None).discount_value == 100000
    assert sink.received == [("amount cannot exceed 100,000", "error")]


def test_default_notify_logs_clamps(catalog_service, caplog):
    with caplog.at_level("WARNING", logger="pricing.service"):
        catalog_service.update_product("p2", stock=10000)
    assert catalog_service.product("p2").get_or_else(None).stock == 9999
    assert "stock cannot exceed 9999" in caplog.text


def test_concurrent_adds_are_not_lost(catalog_service):
    def worker():
        for i in range(50):
            catalog_service.add_product(name=f"item {i}")

    threads = [threading.Thread(target=worker) for _ in range(4)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len(catalog_service.snapshot().products) == 3 + 200


# AdminService


def test_submit_new_product(admin, catalog_service, sink):
    result = admin.submit_product(ProductForm(name="Lamp", price="3000", stock="10000"))
    assert result.is_right
    product = result.get_or_else(None)
    assert catalog_service.product(product.id).get_or_else(None) == product
    assert product.stock == 9999
    assert sink.received == [("stock cannot exceed 9999", "error"), ("product added", "info")]


def test_submit_product_edit(admin, catalog_service):
    form = ProductForm(name="Phone X", price="12000", stock="5", discounts=(("5", "10"),))
    result = admin.submit_product(form, "p1")
    product = result.get_or_else(None)
    assert (product.id, product.name, product.price) == ("p1", "Phone X", 12000)
    assert product.discounts == (DiscountTier(5, 0.1),)


def test_submit_product_invalid_text(admin, catalog_service, sink):
    result = admin.submit_product(ProductForm(name="Lamp", price="abc"))
    assert result.is_left
    assert len(catalog_service.snapshot().products) == 3
    assert sink.received[-1][1] == "error"


def test_submit_coupon(admin, catalog_service, sink):
    form = CouponForm(name="Huge", code="huge", discount_type="amount", discount_value="150000")
    coupon = admin.submit_coupon(form).get_or_else(None)
    assert coupon == Coupon("HUGE", "Huge", DiscountType.AMOUNT, 100000)
    assert catalog_service.coupon("HUGE").is_some()
    assert sink.received == [("amount cannot exceed 100,000", "error"), ("coupon added", "info")]


def test_submit_duplicate_coupon(admin, sink):
    form = CouponForm(name="Again", code="percent10", discount_type="percentage", discount_value="5")
    result = admin.submit_coupon(form)
    assert result.is_left
    assert sink.received == [("coupon code already exists", "error")]


def test_rejected_coupon_hides_clamp_notices(admin, catalog_service, sink):
    form = CouponForm(
        name="Again", code="percent10", discount_type="amount", discount_value="150000"
    )
    result = admin.submit_coupon(form)
    assert result.is_left
    assert sink.received == [("coupon code already exists", "error")]
    assert catalog_service.coupon("PERCENT10").get_or_else(None).discount_value == 10


# PricingService


def test_quote_line(pricing):
    line = pricing.quote_line("p1", 12, "PERCENT10").get_or_else(None)
    assert line.raw_subtotal == 120000
    assert line.quantity_discount_amount == 12000
    assert line.coupon_reduction_amount == 10800
    assert line.final_price == 97200


def test_quote_line_errors(pricing):
    assert pricing.quote_line("p1", 0).is_left
    assert pricing.quote_line("nope", 1).is_left
    assert pricing.quote_line("p1", 1, "NOPE").is_left


def test_quote_line_without_coupon(pricing):
    assert pricing.quote_line("p2", 2).get_or_else(None).final_price == 4000


def test_quote_cart_uses_current_prices(pricing, catalog_service, sample_catalog):
    cart = add_to_cart(Cart(id="c1"), sample_catalog.products[1], 2)
    catalog_service.update_product("p2", price=3000)

    quote = pricing.quote_cart(cart, "AMOUNT5000").get_or_else(None)
    assert quote.subtotal == 6000
    assert quote.coupon_reduction_amount == 5000
    assert quote.final_price == 1000


def test_quote_cart_out_of_stock(pricing, sample_catalog):
    cart = add_to_cart(Cart(id="c1"), sample_catalog.products[2], 1)
    result = pricing.quote_cart(cart)
    assert result.is_left
    assert result.error()["product_id"] == "p3"


def test_quote_is_idempotent(pricing, sample_catalog):
    cart = add_to_cart(Cart(id="c1"), sample_catalog.products[0], 10)
    assert pricing.quote_cart(cart, "PERCENT10") == pricing.quote_cart(cart, "PERCENT10")
