"""Partition a cart into the pay-now (card) and pay-on-delivery (cod) branches."""

import math
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Optional, Sequence, Tuple

from split_checkout.errors import InvalidItemError, NoItemsError
from split_checkout.models import CartItem

PAY_NOW = "card"
PAY_ON_DELIVERY = "cod"
PAY_METHODS = (PAY_NOW, PAY_ON_DELIVERY)


@dataclass(frozen=True)
class PricedLine:
    item: CartItem
    quantity: int
    subtotal_cents: int

    @property
    def unit_price(self) -> str:
        """Per-unit price as a Shopify money string."""
        cents = (Decimal(self.subtotal_cents) / self.quantity).quantize(
            Decimal("1"), rounding=ROUND_HALF_UP
        )
        return format_amount(int(cents))


@dataclass(frozen=True)
class Branch:
    pay_method: str
    lines: Tuple[PricedLine, ...] = ()

    @property
    def total_cents(self) -> int:
        return sum(line.subtotal_cents for line in self.lines)

    def __bool__(self) -> bool:
        return bool(self.lines)


@dataclass(frozen=True)
class SplitResult:
    card: Branch
    cod: Branch

    @property
    def amounts(self) -> dict:
        return {"card_cents": self.card.total_cents, "cod_cents": self.cod.total_cents}


def _usable_amount(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        try:
            value = float(value.strip())
        except ValueError:
            return None
    if not isinstance(value, (int, float)):
        return None
    if not _finite(value) or value < 0:
        return None
    return value


def _finite(value) -> bool:
    try:
        return math.isfinite(value)
    except OverflowError:
        # ints too large for a float
        return False


def _quantity(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    if isinstance(value, str) and value.strip().isdigit():
        value = int(value.strip())
    if not isinstance(value, int) or value <= 0:
        return None
    return value


def resolve_line_total(
    line_total: Any, unit_price: Any, legacy_price: Any, qty: int
) -> Optional[int]:
    """Return the line subtotal in minor units, or ``None`` if nothing resolves.

    Precedence: explicit line total, then unit price x qty, then the legacy
    per-unit ``price_cents`` x qty. Unusable fields are skipped.
    """
    total = _usable_amount(line_total)
    if total is not None:
        return int(round(total))
    for price in (unit_price, legacy_price):
        amount = _usable_amount(price)
        if amount is None:
            continue
        try:
            subtotal = amount * qty
        except OverflowError:
            continue
        if _finite(subtotal):
            return int(round(subtotal))
    return None


def price_line(index: int, item: CartItem) -> PricedLine:
    quantity = _quantity(item.qty)
    if quantity is None:
        raise InvalidItemError(index, "invalid_quantity")
    if item.variant_id in (None, "") and not item.title:
        raise InvalidItemError(index, "missing_identifier")
    subtotal = resolve_line_total(
        item.line_total_cents, item.unit_price_cents, item.price_cents, quantity
    )
    if subtotal is None:
        raise InvalidItemError(index, "missing_price")
    return PricedLine(item=item, quantity=quantity, subtotal_cents=subtotal)


def split_items(items: Sequence[CartItem]) -> SplitResult:
    if not items:
        raise NoItemsError()

    branches = {method: [] for method in PAY_METHODS}
    for index, item in enumerate(items):
        method = (item.pay_method or "").strip().lower()
        if method not in branches:
            raise InvalidItemError(index, "invalid_pay_method")
        branches[method].append(price_line(index, item))

    return SplitResult(
        card=Branch(PAY_NOW, tuple(branches[PAY_NOW])),
        cod=Branch(PAY_ON_DELIVERY, tuple(branches[PAY_ON_DELIVERY])),
    )


def format_amount(cents: int) -> str:
    return f"{cents // 100}.{cents % 100:02d}"
