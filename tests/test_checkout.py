from decimal import Decimal

import pytest

from storefront.core.errors import InvalidStateError
from storefront.services.checkout import Cart, CartLine, TaxRule, compute_totals, to_money
from tests.fixtures_data import CHECKOUT_FIXED_CASE, CHECKOUT_PERCENTAGE_CASE


def _totals_for(case):
    line = CartLine(item_id=1, price=Decimal(case["price"]), quantity=case["quantity"])
    tax = TaxRule(name=case["tax"]["name"], type=case["tax"]["type"], value=Decimal(case["tax"]["value"]))
    return compute_totals([line], [tax], Decimal(case["delivery_fee"]))


@pytest.mark.parametrize("case", [CHECKOUT_PERCENTAGE_CASE, CHECKOUT_FIXED_CASE])
def test_compute_totals_examples(case):
    totals = _totals_for(case)

    assert str(totals.subtotal) == case["expected"]["subtotal"]
    assert str(totals.taxes) == case["expected"]["taxes"]
    assert str(totals.total) == case["expected"]["total"]


def test_total_is_subtotal_plus_taxes_plus_delivery_fee():
    lines = [
        CartLine(item_id=1, price=Decimal("3.33"), quantity=3),
        CartLine(item_id=2, price=Decimal("12.50"), quantity=1),
    ]
    taxes = [
        TaxRule(name="State", type="percentage", value=Decimal("8.25")),
        TaxRule(name="Bag", type="fixed", value=Decimal("0.10")),
    ]

    totals = compute_totals(lines, taxes, Decimal("5.00"))

    assert totals.subtotal == Decimal("22.49")
    assert totals.taxes == Decimal("1.96")
    assert totals.total == totals.subtotal + totals.taxes + totals.delivery_fee
    assert [entry.amount for entry in totals.breakdown] == [Decimal("1.86"), Decimal("0.10")]


def test_tax_order_does_not_change_totals():
    lines = [CartLine(item_id=1, price=Decimal("19.99"), quantity=2)]
    state = TaxRule(name="State", type="percentage", value=Decimal("7"))
    city = TaxRule(name="City", type="percentage", value=Decimal("1.5"))
    fee = TaxRule(name="Fee", type="fixed", value=Decimal("2"))

    first = compute_totals(lines, [state, city, fee], Decimal("5.00"))
    second = compute_totals(lines, [fee, city, state], Decimal("5.00"))

    assert first.total == second.total
    assert first.taxes == second.taxes


def test_amounts_round_half_up_to_cents():
    assert to_money("0.005") == Decimal("0.01")
    assert to_money(Decimal("2.675")) == Decimal("2.68")

    totals = compute_totals(
        [CartLine(item_id=1, price=Decimal("0.05"), quantity=1)],
        [TaxRule(name="Tax", type="percentage", value=Decimal("10"))],
        Decimal("0"),
    )
    assert totals.taxes == Decimal("0.01")


def test_compute_totals_rejects_non_positive_quantities():
    with pytest.raises(InvalidStateError):
        compute_totals([CartLine(item_id=1, price=Decimal("1.00"), quantity=0)], [], Decimal("5.00"))


def test_empty_cart_still_charges_delivery():
    totals = compute_totals([], [], Decimal("5.00"))

    assert totals.subtotal == Decimal("0.00")
    assert totals.total == Decimal("5.00")


def test_as_dict_serializes_money_as_strings():
    payload = _totals_for(CHECKOUT_PERCENTAGE_CASE).as_dict()

    assert payload["subtotal"] == "20.00"
    assert payload["delivery_fee"] == "5.00"
    assert payload["tax_breakdown"] == [{"name": "Sales tax", "type": "percentage", "value": "10", "amount": "2.00"}]


def test_cart_add_increments_existing_line():
    cart = Cart()
    cart.add(1, "10.00", name="Gummies")
    cart.add(1, "10.00", name="Gummies")
    cart.add(2, "4.50", name="Tea")

    assert len(cart.lines) == 2
    assert cart.lines[0].quantity == 2
    assert cart.count == 3
    assert cart.subtotal == Decimal("24.50")


def test_cart_set_quantity_to_zero_removes_the_line():
    cart = Cart()
    cart.add(1, "10.00")
    cart.add(2, "4.50")

    cart.set_quantity(1, 0)
    cart.set_quantity(2, 3)

    assert [line.item_id for line in cart.lines] == [2]
    assert cart.lines[0].quantity == 3

    cart.remove(2)
    assert cart.lines == []


def test_cart_clear_empties_everything():
    cart = Cart()
    cart.add(1, "10.00")
    cart.clear()

    assert cart.count == 0
    assert cart.subtotal == Decimal("0.00")


def test_cart_from_submission_merges_repeated_items():
    cart = Cart.from_submission([(1, 2), (2, 1), (1, 3)])

    assert [(line.item_id, line.quantity) for line in cart.lines] == [(1, 5), (2, 1)]


def test_cart_from_submission_rejects_non_positive_quantities():
    with pytest.raises(InvalidStateError):
        Cart.from_submission([(1, 0)])
