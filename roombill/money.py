"""Money helpers.

Amounts are carried as integers in the currency's smallest unit (đồng for VND,
cents for USD).  Intermediate math uses :class:`~decimal.Decimal`; rounding to
an integer happens once, when a value is stored.

``to_decimal`` decodes numeric values coming back from the database or from
callers.  Drivers disagree on the Python type of NUMERIC columns (SQLite gives
``int``/``float``, MySQL gives ``Decimal``) and older exports serialised
decimal.js objects as ``{"s", "d", "e"}`` mappings, so it accepts all of them
and degrades to zero instead of raising.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Mapping
from decimal import ROUND_HALF_UP, Decimal, DecimalTuple, InvalidOperation

logger = logging.getLogger(__name__)

ZERO = Decimal(0)

# ISO 4217 minor-unit digits for the currencies we bill in.
MINOR_UNIT_DIGITS = {"VND": 0, "USD": 2, "EUR": 2}

# decimal.js stores digits in base 1e7 words.
_DECIMALJS_WORD_DIGITS = 7


def _finite(value: Decimal) -> Decimal:
    return value if value.is_finite() else ZERO


def _from_plain(value: object) -> Decimal | None:
    """Convert numbers and numeric strings. Returns None for anything else."""
    if isinstance(value, Decimal):
        return _finite(value)
    if isinstance(value, bool):
        return Decimal(int(value))
    if isinstance(value, int):
        return Decimal(value)
    if isinstance(value, float):
        if not math.isfinite(value):
            return ZERO
        return Decimal(repr(value))
    if isinstance(value, str):
        try:
            return _finite(Decimal(value.strip().replace("_", "")))
        except InvalidOperation:
            return ZERO
    return None


def _from_decimaljs(sign: object, digits: object, exponent: object) -> Decimal:
    """Rebuild a decimal.js ``{s, d, e}`` value.

    ``d`` holds base-1e7 words (all but the first zero-padded), ``e`` is the
    base-10 exponent of the most significant digit and ``s`` is 1 or -1.
    """
    words = [int(word) for word in digits]  # type: ignore[union-attr]
    if not words:
        return ZERO
    if len(words) == 1 and 0 <= words[0] <= 9:
        magnitude = Decimal(words[0]).scaleb(int(exponent))  # type: ignore[call-overload]
    else:
        joined = str(words[0]) + "".join(str(word).zfill(_DECIMALJS_WORD_DIGITS) for word in words[1:])
        magnitude = Decimal(joined).scaleb(int(exponent) - (len(joined) - 1))  # type: ignore[call-overload]
    return -magnitude if int(sign) < 0 else magnitude  # type: ignore[call-overload]


def _from_triple(value: object) -> Decimal | None:
    if isinstance(value, DecimalTuple):
        return _finite(Decimal(value))
    if isinstance(value, Mapping) and {"s", "d", "e"} <= value.keys():
        return _from_decimaljs(value["s"], value["d"], value["e"])
    if all(hasattr(value, attr) for attr in ("sign", "digits", "exponent")):
        return _finite(Decimal((value.sign, tuple(value.digits), value.exponent)))  # type: ignore[attr-defined]
    if all(hasattr(value, attr) for attr in ("s", "d", "e")):
        return _from_decimaljs(value.s, value.d, value.e)  # type: ignore[attr-defined]
    return None


def to_decimal(value: object) -> Decimal:
    """Best-effort conversion of a numeric-like value to ``Decimal``. Never raises."""
    if value is None:
        return ZERO
    try:
        plain = _from_plain(value)
        if plain is not None:
            return plain

        to_number = getattr(value, "to_number", None) or getattr(value, "toNumber", None)
        if callable(to_number):
            converted = _from_plain(to_number())
            if converted is not None:
                return converted

        triple = _from_triple(value)
        if triple is not None:
            return triple

        converted = _from_plain(str(value))
        if converted is not None and converted != ZERO:
            return converted

        return _from_plain(float(value)) or ZERO  # type: ignore[arg-type]
    except Exception:
        logger.debug("Could not decode numeric value %r, using 0", value)
        return ZERO


def to_minor_units(value: object) -> int:
    """Normalise ``value`` and round half-up to an integer amount."""
    return int(to_decimal(value).quantize(Decimal(1), rounding=ROUND_HALF_UP))


def format_money(amount: int, currency: str = "VND") -> str:
    """Format an integer amount for display: 51613 VND -> '51,613 VND', 1250 USD -> '12.50 USD'."""
    digits = MINOR_UNIT_DIGITS.get(currency, 2)
    major = Decimal(amount).scaleb(-digits)
    return f"{major:,.{digits}f} {currency}"


def parse_money(text: str, currency: str = "VND") -> int | None:
    """Parse a user-typed amount into integer minor units. Returns None on invalid input.

    Accepts '100000', '100,000', '12.50' (for two-digit currencies).
    """
    text = text.strip().replace(",", "")
    if not text:
        return None
    try:
        major = Decimal(text)
    except InvalidOperation:
        return None
    if not major.is_finite():
        return None
    digits = MINOR_UNIT_DIGITS.get(currency, 2)
    return int(major.scaleb(digits).quantize(Decimal(1), rounding=ROUND_HALF_UP))
