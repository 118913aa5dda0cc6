"""Cart and checkout arithmetic.

Everything here is pure: the same lines and taxes always produce the same
totals. Amounts are ``Decimal`` and rounded half-up to cents.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Iterable, Optional, Sequence

from storefront.core.errors import InvalidStateError

CENT = Decimal("0.01")
HUNDRED = Decimal("100")

TAX_PERCENTAGE = "percentage"
TAX_FIXED = "fixed"


def to_money(value: Any) -> Decimal:
    if isinstance(value, Decimal):
        amount = value
    else:
        amount = Decimal(str(value))
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class CartLine:
    item_id: Optional[int]
    price: Decimal
    quantity: int
    name: str = ""
    description: Optional[str] = None
    image_url: Optional[str] = None

    @property
    def subtotal(self) -> Decimal:
        return to_money(self.price * self.quantity)


@dataclass(frozen=True)
class TaxRule:
    name: str
    type: str
    value: Decimal

    @classmethod
    def from_row(cls, row) -> "TaxRule":
        return cls(name=row.name, type=row.type, value=Decimal(str(row.value)))


@dataclass(frozen=True)
class TaxAmount:
    name: str
    type: str
    value: Decimal
    amount: Decimal


@dataclass(frozen=True)
class CheckoutTotals:
    subtotal: Decimal
    taxes: Decimal
    delivery_fee: Decimal
    total: Decimal
    breakdown: tuple[TaxAmount, ...] = ()

    def as_dict(self) -> dict:
        return {
            "subtotal": str(self.subtotal),
            "taxes": str(self.taxes),
            "delivery_fee": str(self.delivery_fee),
            "total": str(self.total),
            "tax_breakdown": [
                {"name": tax.name, "type": tax.type, "value": str(tax.value), "amount": str(tax.amount)}
                for tax in self.breakdown
            ],
        }


def tax_amount(rule: TaxRule, subtotal: Decimal) -> Decimal:
    if rule.type == TAX_FIXED:
        return to_money(rule.value)
    if rule.type == TAX_PERCENTAGE:
        return to_money(subtotal * rule.value / HUNDRED)
    raise InvalidStateError(f"Unknown tax type: {rule.type}")


def compute_totals(
    lines: Iterable[CartLine], taxes: Iterable[TaxRule], delivery_fee: Decimal
) -> CheckoutTotals:
    """Compute subtotal, taxes and total for a cart.

    Every tax is computed against the subtotal on its own, so the order of
    ``taxes`` never changes the result.
    """
    subtotal = Decimal("0.00")
    for line in lines:
        if line.quantity <= 0:
            raise InvalidStateError("Cart items must have a positive quantity")
        if line.price < 0:
            raise InvalidStateError("Cart items cannot have a negative price")
        subtotal += line.price * line.quantity
    subtotal = to_money(subtotal)

    breakdown = tuple(
        TaxAmount(name=rule.name, type=rule.type, value=rule.value, amount=tax_amount(rule, subtotal))
        for rule in taxes
    )
    taxes_total = to_money(sum((tax.amount for tax in breakdown), Decimal("0.00")))
    fee = to_money(delivery_fee)
    return CheckoutTotals(
        subtotal=subtotal,
        taxes=taxes_total,
        delivery_fee=fee,
        total=to_money(subtotal + taxes_total + fee),
        breakdown=breakdown,
    )


@dataclass
class Cart:
    """Ordered cart lines keyed by item id, with the storefront's mutation rules."""

    lines: list[CartLine] = field(default_factory=list)

    def _index(self, item_id: Optional[int]) -> Optional[int]:
        for position, line in enumerate(self.lines):
            if line.item_id == item_id:
                return position
        return None

    def add(self, item_id: Optional[int], price: Any, *, name: str = "", description=None, image_url=None) -> CartLine:
        position = self._index(item_id)
        if position is not None:
            current = self.lines[position]
            updated = CartLine(
                item_id=current.item_id,
                price=current.price,
                quantity=current.quantity + 1,
                name=current.name,
                description=current.description,
                image_url=current.image_url,
            )
            self.lines[position] = updated
            return updated
        line = CartLine(
            item_id=item_id,
            price=to_money(price),
            quantity=1,
            name=name,
            description=description,
            image_url=image_url,
        )
        self.lines.append(line)
        return line

    def set_quantity(self, item_id: Optional[int], quantity: int) -> None:
        position = self._index(item_id)
        if position is None:
            return
        if quantity <= 0:
            del self.lines[position]
            return
        current = self.lines[position]
        self.lines[position] = CartLine(
            item_id=current.item_id,
            price=current.price,
            quantity=int(quantity),
            name=current.name,
            description=current.description,
            image_url=current.image_url,
        )

    def remove(self, item_id: Optional[int]) -> None:
        self.set_quantity(item_id, 0)

    def clear(self) -> None:
        self.lines.clear()

    @property
    def count(self) -> int:
        return sum(line.quantity for line in self.lines)

    @property
    def subtotal(self) -> Decimal:
        return to_money(sum((line.price * line.quantity for line in self.lines), Decimal("0.00")))

    @classmethod
    def from_submission(cls, entries: Sequence[tuple[int, int]]) -> "Cart":
        """Collapse submitted ``(item_id, quantity)`` pairs into one line per item.

        Quantities for a repeated item are summed. Prices are filled in later
        from the catalog.
        """
        quantities: dict[int, int] = {}
        for item_id, quantity in entries:
            if int(quantity) <= 0:
                raise InvalidStateError("Cart items must have a positive quantity")
            quantities[int(item_id)] = quantities.get(int(item_id), 0) + int(quantity)
        return cls(
            lines=[
                CartLine(item_id=item_id, price=Decimal("0.00"), quantity=quantity)
                for item_id, quantity in quantities.items()
            ]
        )
