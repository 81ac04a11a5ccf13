"""
Price codec kernel: 32-bit floating-point-style price words.

A robot's band bounds are stored as 32-bit codewords over integer prices in the
18-decimal scale:

- top 8 bits: exponent field `e`
- low 24 bits: mantissa field `m`

Decoding:
    e == 0  ->  m
    e >  0  ->  (m + 2^24) << (e - 1)

Encoding keeps the top 25 significant bits of the price (implicit leading bit +
24 stored bits) and truncates the rest. Values below 2^25 round-trip exactly;
larger values have relative error < 2^-24. The encoding is monotonic, so two
codewords can be compared as unsigned integers without decoding.
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation, localcontext


PRICE_DECIMALS = 18
PRICE_SCALE = 10**PRICE_DECIMALS

MANTISSA_BITS = 24
SIGNIFICANT_BITS = MANTISSA_BITS + 1
MANTISSA_MASK = (1 << MANTISSA_BITS) - 1
EXPONENT_MAX = 0xFF
MAX_SHIFT = EXPONENT_MAX - 1
CODEWORD_MAX = (EXPONENT_MAX << MANTISSA_BITS) | MANTISSA_MASK

# Largest price with a codeword (shift <= 254 => at most 279 significant bits).
MAX_PRICE_BITS = SIGNIFICANT_BITS + MAX_SHIFT


def _require_int(name: str, value: int) -> None:
    if not isinstance(value, int) or isinstance(value, bool):
        raise TypeError(f"{name} must be an int")


def pack_price(price: int) -> int:
    """
    Encode a positive 18-decimal integer price into a 32-bit codeword.

    Raises:
        TypeError: If price is not an int
        ValueError: If price is zero/negative or needs more than 279 bits
    """
    _require_int("price", price)
    if price <= 0:
        raise ValueError(f"price must be positive: {price}")
    eff_bits = price.bit_length()
    if eff_bits <= SIGNIFICANT_BITS:
        return price
    shift = eff_bits - SIGNIFICANT_BITS
    if shift > MAX_SHIFT:
        raise ValueError(f"price out of codec range ({eff_bits} bits > {MAX_PRICE_BITS})")
    mantissa = (price >> shift) - (1 << MANTISSA_BITS)
    return ((shift + 1) << MANTISSA_BITS) | mantissa


def unpack_price(codeword: int) -> int:
    """Decode a 32-bit codeword. Total over [0, 2^32)."""
    _require_int("codeword", codeword)
    if not (0 <= codeword <= CODEWORD_MAX):
        raise ValueError(f"codeword must fit in 32 bits: {codeword}")
    mantissa = codeword & MANTISSA_MASK
    exponent = codeword >> MANTISSA_BITS
    if exponent == 0:
        return mantissa
    return (mantissa + (1 << MANTISSA_BITS)) << (exponent - 1)


def quantize_price(price: int) -> int:
    """Return `unpack_price(pack_price(price))`: the value the codec actually stores."""
    return unpack_price(pack_price(price))


def parse_units(value: str, decimals: int = PRICE_DECIMALS) -> int:
    """
    Parse a decimal string ("150.0", "0.0000001234") into integer units.

    Rejects values with more fractional digits than `decimals`.
    """
    _require_int("decimals", decimals)
    if decimals < 0:
        raise ValueError("decimals must be non-negative")
    if not isinstance(value, str) or not value.strip():
        raise ValueError("value must be a non-empty decimal string")
    try:
        d = Decimal(value.strip())
    except InvalidOperation as exc:
        raise ValueError(f"invalid decimal string: {value!r}") from exc
    if not d.is_finite():
        raise ValueError(f"invalid decimal string: {value!r}")
    with localcontext() as ctx:
        ctx.prec = 400
        scaled = d.scaleb(decimals)
    if scaled != scaled.to_integral_value():
        raise ValueError(f"too many fractional digits for {decimals} decimals: {value!r}")
    return int(scaled)


def format_units(amount: int, decimals: int = PRICE_DECIMALS) -> str:
    """
    Format integer units as a decimal string.

    Matches the ethers `formatUnits` convention: at least one fractional digit,
    trailing zeros stripped ("101.0", "400.0000024").
    """
    _require_int("amount", amount)
    _require_int("decimals", decimals)
    sign = "-" if amount < 0 else ""
    whole, frac = divmod(abs(amount), 10**decimals)
    frac_str = str(frac).rjust(decimals, "0").rstrip("0") if decimals else ""
    return f"{sign}{whole}.{frac_str or '0'}"


def price_to_codeword(value: str) -> int:
    """Encode an 18-decimal price string, e.g. `price_to_codeword("150.0")`."""
    return pack_price(parse_units(value, PRICE_DECIMALS))
