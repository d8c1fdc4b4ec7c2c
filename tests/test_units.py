import pytest

from web3_wallet.errors import ValidationError
from web3_wallet.transfer.units import MAX_UINT256, format_units, parse_units


@pytest.mark.parametrize(
    "amount, decimals, expected",
    [
        ("1", 18, 10**18),
        ("1.5", 6, 1_500_000),
        ("0.000001", 6, 1),
        ("0", 18, 0),
        (" 2.25 ", 2, 225),
        ("123456789.123456789123456789", 18, 123456789123456789123456789),
    ],
)
def test_parse_units(amount, decimals, expected):
    assert parse_units(amount, decimals) == expected


@pytest.mark.parametrize("amount", ["", "   ", "abc", "1.2.3", "-1", "NaN", "Infinity"])
def test_parse_units_rejects_invalid_amounts(amount):
    with pytest.raises(ValidationError):
        parse_units(amount, 18)


def test_parse_units_rejects_excess_precision():
    with pytest.raises(ValidationError, match="decimal places"):
        parse_units("0.0000001", 6)


@pytest.mark.parametrize(
    "value, decimals, expected",
    [
        (10**18, 18, "1"),
        (1_500_000, 6, "1.5"),
        (0, 18, "0"),
        (1, 8, "0.00000001"),
        (1234, 0, "1234"),
    ],
)
def test_format_units(value, decimals, expected):
    assert format_units(value, decimals) == expected


@pytest.mark.parametrize("amount", ["1e-999999999", "0.0000000000000000001"])
def test_parse_units_rejects_amounts_below_smallest_unit(amount):
    with pytest.raises(ValidationError, match="decimal places"):
        parse_units(amount, 18)


@pytest.mark.parametrize("amount, decimals", [("1e999999999", 18), (str(2**256), 0), ("1e60", 18)])
def test_parse_units_rejects_amounts_above_uint256(amount, decimals):
    with pytest.raises(ValidationError, match="too large"):
        parse_units(amount, decimals)


def test_parse_units_accepts_uint256_max():
    assert parse_units(str(MAX_UINT256), 0) == MAX_UINT256


@pytest.mark.parametrize(
    "amount, decimals, expected",
    [("1.50", 1, 15), ("100e-2", 0, 1), ("2.5e3", 0, 2500), ("0.000", 0, 0)],
)
def test_parse_units_ignores_trailing_zeros_and_exponents(amount, decimals, expected):
    assert parse_units(amount, decimals) == expected
