"""Decimal amount strings <-> integer base units."""

from __future__ import annotations

from decimal import Decimal, DecimalException, localcontext

from web3_wallet.errors import ValidationError

_PRECISION = 100

MAX_UINT256 = 2**256 - 1
_MAX_UINT256_DIGITS = len(str(MAX_UINT256))


def parse_units(amount: str, decimals: int) -> int:
    """Convert a human amount such as ``"1.5"`` to base units.

    Raises ``ValidationError`` for empty, non-numeric or negative amounts,
    for amounts with more fractional digits than *decimals*, and for
    results that do not fit in a uint256.
    """
    text = str(amount).strip()
    if not text:
        raise ValidationError("Amount is empty")
    try:
        value = Decimal(text)
    except DecimalException:
        raise ValidationError(f"Invalid amount: {amount!r}") from None
    if not value.is_finite():
        raise ValidationError(f"Invalid amount: {amount!r}")
    if value < 0:
        raise ValidationError(f"Amount must not be negative: {amount!r}")

    # Exact integer arithmetic on the coefficient; no context rounding.
    _, digits, exponent = value.as_tuple()
    coefficient = "".join(map(str, digits))
    significant = coefficient.rstrip("0")
    if not significant:
        return 0
    shift = exponent + (len(coefficient) - len(significant)) + decimals
    if shift < 0:
        raise ValidationError(f"Amount {amount!r} has more than {decimals} decimal places")
    if len(significant) + shift > _MAX_UINT256_DIGITS:
        raise ValidationError(f"Amount {amount!r} is too large")
    result = int(significant) * 10**shift
    if result > MAX_UINT256:
        raise ValidationError(f"Amount {amount!r} is too large")
    return result


def format_units(value: int, decimals: int) -> str:
    """Inverse of :func:`parse_units`: ``1500000, 6`` -> ``"1.5"``."""
    with localcontext() as ctx:
        ctx.prec = _PRECISION
        text = format(Decimal(value).scaleb(-decimals), "f")
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text or "0"
