import sys
import os
import streamlit as st

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from pricing.config import Config, setup_logging
from pricing.domain import Cart, DiscountType
from pricing.seed import load_seed
from pricing.catalog import (
    add_to_cart,
    cart_quantity,
    refresh_cart,
    remove_from_cart,
    stock_level,
    update_quantity,
)
from pricing.discounts import max_discount_rate
from pricing.service import AdminService, CatalogService, PricingService
from pricing.validation import CouponForm, ProductForm, check_cart_quantity, emit


# ============ Кэширование ресурсов ============
@st.cache_resource
def get_catalog_service() -> CatalogService:
    setup_logging()
    return CatalogService(load_seed(Config.SEED_PATH))


def notify(message: str, severity: str) -> None:
    """Sink уведомлений валидатора"""
    if severity == "error":
        st.error(message, icon="⚠️")
    else:
        st.info(message, icon="ℹ️")


def format_price(amount: int) -> str:
    return f"{amount:,}{Config.CURRENCY_SUFFIX}"


def coupon_label(coupon) -> str:
    if coupon.discount_type == DiscountType.AMOUNT:
        return f"{format_price(coupon.discount_value)} off"
    return f"{coupon.discount_value}% off"


STOCK_BADGES = {"plenty": "🟢", "low": "🟡", "sold_out": "🔴"}


# ============ Инициализация ============
st.set_page_config(page_title="Shop Pricing", page_icon="🛒", layout="wide")

catalog_service = get_catalog_service()
admin = AdminService(catalog_service, notify)
pricing = PricingService(catalog_service)

if "cart" not in st.session_state:
    st.session_state.cart = Cart(id="cart_default")

if "editing_product" not in st.session_state:
    st.session_state.editing_product = None

with st.sidebar:
    st.header("📂 Navigation")
    page = st.radio("Page", ["🛒 Cart", "🛠️ Admin"], label_visibility="collapsed")


# ============ PAGE: CART ============
if page == "🛒 Cart":
    st.header("🛒 Shop")
    catalog = catalog_service.snapshot()

    for p in catalog.products:
        cols = st.columns([5, 2, 2, 2])
        with cols[0]:
            st.markdown(f"**{p.name}** {STOCK_BADGES[stock_level(p)]}")
            best = max_discount_rate(p.discounts)
            if best:
                st.caption(f"up to {best * 100:g}% off in bulk")
        with cols[1]:
            st.write(format_price(p.price))
        with cols[2]:
            qty = st.number_input(
                "Qty", min_value=1, value=1, key=f"qty_{p.id}", label_visibility="collapsed"
            )
        with cols[3]:
            if st.button("➕ Add", key=f"add_{p.id}", disabled=p.stock == 0):
                cart = st.session_state.cart
                in_cart = cart_quantity(cart, p.id)
                allowed = emit(check_cart_quantity(p.stock, in_cart + int(qty)), notify)
                st.session_state.cart = add_to_cart(cart, p, allowed - in_cart)

    st.divider()
    cart = st.session_state.cart = refresh_cart(st.session_state.cart, catalog)

    if not cart.items:
        st.info("Cart is empty")
    else:
        codes = ["(none)"] + [c.code for c in catalog.coupons]
        selected = st.selectbox("Coupon", codes)
        coupon_code = None if selected == "(none)" else selected

        result = pricing.quote_cart(cart, coupon_code)
        quote = result.get_or_else(None)
        lines = quote.lines if quote else (None,) * len(cart.items)

        # строки рисуются и при отказе расчёта, чтобы количество можно было исправить
        for item, line in zip(cart.items, lines):
            cols = st.columns([5, 2, 2, 1])
            with cols[0]:
                st.write(f"**{item.product.name}**")
                if line and line.rate:
                    st.caption(f"-{line.rate * 100:g}% bulk discount")
            with cols[1]:
                new_qty = st.number_input(
                    "Qty", min_value=0, value=item.quantity,
                    key=f"cart_qty_{item.product.id}", label_visibility="collapsed",
                )
                if new_qty != item.quantity:
                    allowed = emit(check_cart_quantity(item.product.stock, int(new_qty)), notify)
                    st.session_state.cart = update_quantity(cart, item.product.id, allowed)
                    st.rerun()
            with cols[2]:
                st.write(format_price(line.subtotal) if line else "-")
            with cols[3]:
                if st.button("🗑️", key=f"remove_{item.product.id}"):
                    st.session_state.cart = remove_from_cart(cart, item.product.id)
                    st.rerun()

        st.divider()
        if result.is_left:
            st.error(result.value["error"])
        else:
            st.write(f"Subtotal: {format_price(quote.raw_subtotal)}")
            st.write(f"Bulk discount: -{format_price(quote.quantity_discount_amount)}")
            st.write(f"Coupon: -{format_price(quote.coupon_reduction_amount)}")
            st.markdown(f"### 💰 Total: **{format_price(quote.final_price)}**")


# ============ PAGE: ADMIN ============
elif page == "🛠️ Admin":
    st.header("🛠️ Admin dashboard")
    tab_products, tab_coupons = st.tabs(["Products", "Coupons"])

    with tab_products:
        catalog = catalog_service.snapshot()
        for p in catalog.products:
            cols = st.columns([3, 2, 1, 3, 1, 1])
            cols[0].write(f"**{p.name}**")
            cols[1].write(format_price(p.price))
            cols[2].write(f"{STOCK_BADGES[stock_level(p)]} {p.stock}")
            cols[3].write(p.description or "-")
            if cols[4].button("Edit", key=f"edit_{p.id}"):
                st.session_state.editing_product = p.id
            if cols[5].button("Delete", key=f"delete_{p.id}"):
                catalog_service.delete_product(p.id)
                notify("product deleted", "info")
                st.rerun()

        if st.button("New product"):
            st.session_state.editing_product = "new"

        editing = st.session_state.editing_product
        if editing:
            current = catalog_service.product(editing).get_or_else(None)
            tiers = current.discounts if current else ()
            tier_count = st.number_input(
                "Discount tiers", min_value=0, value=len(tiers), key=f"tiers_{editing}"
            )

            with st.form(f"product_form_{editing}"):
                st.subheader("New product" if current is None else "Edit product")
                name = st.text_input("Name", value=current.name if current else "")
                description = st.text_input(
                    "Description", value=current.description if current else ""
                )
                price = st.text_input("Price", value=str(current.price) if current else "")
                stock = st.text_input("Stock", value=str(current.stock) if current else "")

                rows = []
                for i in range(int(tier_count)):
                    tier = tiers[i] if i < len(tiers) else None
                    c1, c2 = st.columns(2)
                    q = c1.text_input("From qty", value=str(tier.quantity) if tier else "10", key=f"tq_{editing}_{i}")
                    r = c2.text_input("Rate %", value=f"{tier.rate * 100:g}" if tier else "10", key=f"tr_{editing}_{i}")
                    rows.append((q, r))

                if st.form_submit_button("Save"):
                    form = ProductForm(name, price, stock, description, tuple(rows))
                    result = admin.submit_product(form, None if current is None else current.id)
                    if result.is_right:
                        st.session_state.editing_product = None

    with tab_coupons:
        catalog = catalog_service.snapshot()
        cols = st.columns(3)
        for i, c in enumerate(catalog.coupons):
            with cols[i % 3]:
                st.markdown(f"**{c.name}**  \n`{c.code}`  \n{coupon_label(c)}")
                if st.button("Delete", key=f"del_coupon_{c.code}"):
                    catalog_service.delete_coupon(c.code)
                    st.rerun()

        with st.form("coupon_form", clear_on_submit=True):
            st.subheader("New coupon")
            name = st.text_input("Name", placeholder="Welcome coupon")
            code = st.text_input("Code", placeholder="WELCOME2024")
            discount_type = st.selectbox("Type", [t.value for t in DiscountType])
            value = st.text_input("Value", placeholder="5000 or 10")
            if st.form_submit_button("Create coupon"):
                admin.submit_coupon(CouponForm(name, code, discount_type, value))
