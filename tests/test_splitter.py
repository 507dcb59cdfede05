import pytest

from split_checkout.errors import InvalidItemError, NoItemsError
from split_checkout.models import CartItem
from split_checkout.splitter import format_amount, resolve_line_total, split_items


@pytest.mark.parametrize(
    "line_total, unit_price, legacy_price, qty, expected",
    [
        (1500, None, None, 3, 1500),
        (None, 400, None, 3, 1200),
        (None, None, 250, 3, 750),
        (1500, 400, None, 3, 1500),
        (1500, None, 250, 3, 1500),
        (None, 400, 250, 3, 1200),
        (1500, 400, 250, 3, 1500),
        (None, None, None, 3, None),
        # unusable fields are skipped, not treated as zero
        (-1, 400, 250, 3, 1200),
        (float("nan"), None, 250, 2, 500),
        (None, float("inf"), 250, 2, 500),
        ("abc", "", None, 2, None),
        (True, None, 250, 1, 250),
        ("1500", None, None, 1, 1500),
        (0, 400, None, 2, 0),
        (None, 99.6, None, 1, 100),
        # values that overflow a float are unusable
        (10**400, None, 250, 2, 500),
        (None, 1e308, 250, 10, 2500),
        (None, 1e308, None, 10, None),
        (None, 1.5, None, 10**400, None),
    ],
)
def test_resolve_line_total_precedence(line_total, unit_price, legacy_price, qty, expected):
    assert resolve_line_total(line_total, unit_price, legacy_price, qty) == expected


def test_split_partitions_by_pay_method():
    items = [
        CartItem(variant_id=1, qty=1, price_cents=1000, pay_method="card"),
        CartItem(variant_id=2, qty=2, price_cents=500, pay_method="cod"),
        CartItem(variant_id=3, qty=1, line_total_cents=250, pay_method="card"),
    ]
    split = split_items(items)

    assert [line.item.variant_id for line in split.card.lines] == [1, 3]
    assert [line.item.variant_id for line in split.cod.lines] == [2]
    assert split.amounts == {"card_cents": 1250, "cod_cents": 1000}


@pytest.mark.parametrize(
    "prices",
    [
        [(0, 1, "card")],
        [(1, 7, "cod"), (999, 3, "card"), (0, 2, "cod")],
        [(12345, 10, "card"), (1, 1, "card"), (50, 4, "cod"), (7, 9, "cod")],
    ],
)
def test_branch_totals_conserve_item_subtotals(prices):
    items = [
        CartItem(variant_id=i, qty=qty, unit_price_cents=price, pay_method=method)
        for i, (price, qty, method) in enumerate(prices)
    ]
    split = split_items(items)

    expected = sum(price * qty for price, qty, _ in prices)
    assert split.card.total_cents + split.cod.total_cents == expected
    assert len(split.card.lines) + len(split.cod.lines) == len(items)


def test_empty_branch_is_falsy():
    split = split_items([CartItem(variant_id=1, price_cents=100, pay_method="cod")])
    assert not split.card
    assert split.cod
    assert split.card.total_cents == 0


def test_no_items():
    with pytest.raises(NoItemsError):
        split_items([])


@pytest.mark.parametrize(
    "item, reason",
    [
        (CartItem(variant_id=1, pay_method="card"), "missing_price"),
        (CartItem(variant_id=1, price_cents="n/a", pay_method="card"), "missing_price"),
        (CartItem(variant_id=1, qty=0, price_cents=100, pay_method="card"), "invalid_quantity"),
        (CartItem(variant_id=1, qty=1.5, price_cents=100, pay_method="card"), "invalid_quantity"),
        (CartItem(variant_id=1, price_cents=100, pay_method="paypal"), "invalid_pay_method"),
        (CartItem(variant_id=1, price_cents=100), "invalid_pay_method"),
        (CartItem(price_cents=100, pay_method="cod"), "missing_identifier"),
    ],
)
def test_invalid_item(item, reason):
    ok = CartItem(variant_id=9, price_cents=100, pay_method="cod")
    with pytest.raises(InvalidItemError) as exc_info:
        split_items([ok, item])

    assert exc_info.value.index == 1
    assert exc_info.value.reason == reason
    assert exc_info.value.to_dict() == {
        "ok": False,
        "error": "invalid_item",
        "index": 1,
        "reason": reason,
    }


def test_client_priced_line_unit_price():
    item = CartItem(title="Gift wrap", qty=3, line_total_cents=1000, pay_method="cod")
    line = split_items([item]).cod.lines[0]

    assert line.subtotal_cents == 1000
    assert line.unit_price == "3.33"


@pytest.mark.parametrize("cents, text", [(0, "0.00"), (5, "0.05"), (1000, "10.00"), (123456, "1234.56")])
def test_format_amount(cents, text):
    assert format_amount(cents) == text
