"""Decimal money helpers: rounding, VAT splitting, discounts and installments."""

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation, ROUND_DOWN, ROUND_HALF_UP
from typing import List

from feeledger.app.core.errors import ValidationError

CENT = Decimal("0.01")
ZERO = Decimal("0.00")
HUNDRED = Decimal("100")


@dataclass(frozen=True)
class VatSplit:
    subtotal: Decimal
    vat_amount: Decimal


def to_decimal(value: Decimal | float | int | str | None) -> Decimal:
    if value is None:
        return ZERO
    if isinstance(value, Decimal):
        amount = value
    else:
        # floats go through str() so 0.1 stays 0.1
        try:
            amount = Decimal(str(value).strip())
        except InvalidOperation:
            raise ValidationError(f"'{value}' is not a valid amount.") from None
    if not amount.is_finite():
        raise ValidationError(f"'{value}' is not a valid amount.")
    return amount


def round2(value: Decimal | float | int | str | None) -> Decimal:
    """Round half-up to two decimal places."""
    return to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def split_vat(gross_amount: Decimal | float | int | str, vat_rate: Decimal | float | int | str | None) -> VatSplit:
    """Split a VAT-inclusive amount into subtotal and VAT."""
    gross = round2(gross_amount)
    rate = to_decimal(vat_rate)
    if rate <= 0:
        return VatSplit(subtotal=gross, vat_amount=ZERO)
    subtotal = round2(gross / (1 + rate / HUNDRED))
    return VatSplit(subtotal=subtotal, vat_amount=gross - subtotal)


def apply_discount(
    total_amount: Decimal | float | int | str,
    discount_amount: Decimal | float | int | str | None,
    discount_type: str | None,
) -> Decimal:
    total = round2(total_amount)
    discount = to_decimal(discount_amount)
    if discount <= 0:
        return total
    if discount_type == "percentage":
        return round2(total * (1 - discount / HUNDRED))
    return round2(total - discount)


def split_installments(net_amount: Decimal | float | int | str, count: int) -> List[Decimal]:
    """Return `count` slices of net_amount; the last slice absorbs the rounding remainder.

    Slices are truncated to the cent so the final one is never smaller than the rest.
    """
    if count < 1:
        raise ValueError("count must be at least 1")
    net = round2(net_amount)
    base = (net / count).quantize(CENT, rounding=ROUND_DOWN)
    slices = [base] * (count - 1)
    slices.append(net - base * (count - 1))
    return slices
