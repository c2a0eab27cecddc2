from datetime import date

from app.core.cart import Cart, renewal_date, review_summary

START = date(2026, 1, 31)


def _cart(*items, **totals):
    payload = {"items": list(items)}
    payload.update(totals)
    return Cart.from_api(payload)


def test_cart_parses_service_field_names():
    cart = _cart(
        {"plan_id": 3, "plan_name": "Solo", "plan_quantity": 2, "price": 4.99, "is_annual": False},
        cart_subtotal=9.98,
        cart_discount=1.5,
        cart_total=8.48,
        shortfall_for_discount=20,
    )
    assert cart.items[0].planId == 3
    assert cart.items[0].name == "Solo"
    assert cart.items[0].quantity == 2
    assert cart.total == 8.48
    assert cart.shortfallForDiscount == 20
    assert not cart.is_empty


def test_missing_or_null_items_is_empty():
    assert Cart.from_api(None).is_empty
    assert Cart.from_api({"items": None}).is_empty


def test_renewal_is_monthly_without_annual_items():
    cart = _cart({"plan_name": "Solo", "is_annual": False})
    assert renewal_date(cart, START) == date(2026, 3, 2)


def test_renewal_is_yearly_with_any_annual_item():
    cart = _cart({"plan_name": "Solo", "is_annual": False}, {"plan_name": "Family", "is_annual": True})
    assert renewal_date(cart, START) == date(2027, 1, 31)


def test_review_summary_rounds_totals():
    cart = _cart({"plan_name": "Solo", "price": 4.99}, cart_subtotal=4.994, cart_total=4.994)
    summary = review_summary(cart, START)
    assert summary["subtotal"] == 4.99
    assert summary["total"] == 4.99
    assert summary["discount"] == 0
    assert summary["renewalDate"] == "2026-03-02"
    assert summary["items"][0]["name"] == "Solo"
