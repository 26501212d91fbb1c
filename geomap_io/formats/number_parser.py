"""Correctly-rounded decimal text to number conversion.

Parses numerals found in fixed-width attribute cells into IEEE-754
doubles with round-half-to-even semantics, plus signed 32-bit and
64-bit integer parsing with overflow detection.

Pipeline for ``parse_double``:

1. **Scan**: ``scan_decimal`` trims padding, reads an optional sign,
   the ``NaN`` / ``Infinity`` literals, significant digits, an optional
   exponent and an optional ``f``/``F``/``d``/``D`` type suffix, and
   yields a ``DecimalNumeral`` (``0.digits * 10**dec_exponent``).
2. **Fast path**: up to 15 significant digits scaled by a power of ten
   no larger than ``1e22`` are exact operands, so one multiply or
   divide gives the correctly rounded result.
3. **Estimate**: otherwise scale by binary-decomposed powers of ten to
   get a double within a few ULPs of the answer.
4. **Correct**: compare the estimate against the exact decimal value
   using ``BigInt`` arithmetic on numerators scaled by powers of 2 and
   5, moving one ULP at a time until the error is below half an ULP.
   Exact ties take half an ULP, which the float addition resolves to
   the even neighbour.

Errors surface as ``NumberFormatError`` (a ``ValueError``), which
attribute decoding catches per field.
"""

from __future__ import annotations

import math
import struct
from dataclasses import dataclass

from geomap_io.core.constants import MAX_DOUBLE, MIN_DOUBLE
from geomap_io.core.exceptions import NumberFormatError
from geomap_io.formats._bigint import BigInt, construct_pow52, mult_pow52

# ---------------------------------------------------------------------------
# Double layout
# ---------------------------------------------------------------------------

EXP_SHIFT = 52
EXP_BIAS = 1023
FRACT_HOB = 1 << EXP_SHIFT
FRACT_MASK = FRACT_HOB - 1
SIGN_MASK = 1 << 63

MAX_DECIMAL_DIGITS = 15
MAX_DECIMAL_EXPONENT = 308
MIN_DECIMAL_EXPONENT = -324
BIG_DECIMAL_EXPONENT = 324

SMALL_10_POW: tuple[float, ...] = tuple(float(10**i) for i in range(23))
"""Powers of ten exactly representable as doubles (1e0 .. 1e22)."""

MAX_SMALL_TEN = len(SMALL_10_POW) - 1
BIG_10_POW: tuple[float, ...] = (1e16, 1e32, 1e64, 1e128, 1e256)
TINY_10_POW: tuple[float, ...] = (1e-16, 1e-32, 1e-64, 1e-128, 1e-256)

INT_MIN, INT_MAX = -(2**31), 2**31 - 1
LONG_MIN, LONG_MAX = -(2**63), 2**63 - 1

_PADDING = " \n\t\r\x00"
_TYPE_SUFFIXES = frozenset("fFdD")


@dataclass(frozen=True, slots=True)
class DecimalNumeral:
    """A scanned numeral: ``(-1)**negative * 0.digits * 10**dec_exponent``.

    Attributes:
        negative: Sign of the numeral.
        digits: Significant digits without leading or trailing zeros,
            or ``"0"`` for a zero value.
        dec_exponent: Decimal exponent relative to a leading point.
        special: ``nan`` or ``inf`` when the text was a literal, else ``None``.
    """

    negative: bool
    digits: str
    dec_exponent: int
    special: float | None = None


def _is_digit(c: str) -> bool:
    return "0" <= c <= "9"


def _format_error(text: str, kind: str, detail: str = "") -> NumberFormatError:
    msg = f"Cannot parse {text!r} as {kind}"
    if detail:
        msg = f"{msg}: {detail}"
    return NumberFormatError(msg)


# ---------------------------------------------------------------------------
# Scanning
# ---------------------------------------------------------------------------


def scan_decimal(text: str) -> DecimalNumeral:
    """Scan ``text`` into a ``DecimalNumeral``.

    Raises:
        NumberFormatError: On empty input, a second decimal point, no
            digits at all, an exponent marker with no digits, or any
            trailing characters other than one type suffix.
    """
    s = text.strip(_PADDING)
    if not s:
        raise _format_error(text, "double", "empty")
    n = len(s)
    i = 0
    negative = False
    sign_seen = False
    if s[0] in "+-":
        negative = s[0] == "-"
        sign_seen = True
        i = 1
    if i == n:
        raise _format_error(text, "double", "sign without digits")

    if s[i] in "NI":
        word = s[i:]
        if word == "NaN":
            return DecimalNumeral(negative, "0", 0, math.nan)
        if word == "Infinity":
            return DecimalNumeral(negative, "0", 0, -math.inf if negative else math.inf)
        raise _format_error(text, "double")

    digits: list[str] = []
    n_lead_zero = 0
    n_trail_zero = 0
    dec_seen = False
    dec_pt = 0
    while i < n:
        c = s[i]
        if c == "0":
            if digits:
                n_trail_zero += 1
            else:
                n_lead_zero += 1
        elif _is_digit(c):
            digits.extend("0" * n_trail_zero)
            n_trail_zero = 0
            digits.append(c)
        elif c == ".":
            if dec_seen:
                raise _format_error(text, "double", "multiple points")
            dec_pt = i - 1 if sign_seen else i
            dec_seen = True
        else:
            break
        i += 1

    if not digits:
        if n_lead_zero == 0:
            raise _format_error(text, "double", "no digits")
        digits = ["0"]
    n_digits = len(digits)

    dec_exp = dec_pt - n_lead_zero if dec_seen else n_digits + n_trail_zero

    if i < n and s[i] in "eE":
        i += 1
        exp_sign = 1
        if i < n and s[i] in "+-":
            exp_sign = -1 if s[i] == "-" else 1
            i += 1
        exp_at = i
        while i < n and _is_digit(s[i]):
            i += 1
        if i == exp_at:
            raise _format_error(text, "double", "exponent without digits")
        exp_val = int(s[exp_at:i])
        # Clamp so that later scaling lands on infinity or zero.
        exp_limit = BIG_DECIMAL_EXPONENT + n_digits + n_trail_zero
        if exp_val > exp_limit:
            dec_exp = exp_sign * exp_limit
        else:
            dec_exp += exp_sign * exp_val

    if i < n and (i != n - 1 or s[i] not in _TYPE_SUFFIXES):
        raise _format_error(text, "double", f"unexpected {s[i:]!r}")

    return DecimalNumeral(negative, "".join(digits), dec_exp)


# ---------------------------------------------------------------------------
# Bit-level helpers
# ---------------------------------------------------------------------------


def _double_to_bits(value: float) -> int:
    return struct.unpack("<Q", struct.pack("<d", value))[0]


def _bits_to_double(bits: int) -> float:
    return struct.unpack("<d", struct.pack("<Q", bits))[0]


def count_bits(value: int) -> int:
    """Bits from the highest to the lowest set bit, inclusive."""
    if value == 0:
        return 0
    return value.bit_length() - ((value & -value).bit_length() - 1)


def double_to_bigint(value: float) -> tuple[BigInt, int, int]:
    """Decompose a positive finite double into its odd significand.

    Returns:
        ``(significand, exponent, nbits)`` with
        ``value == significand * 2**exponent`` and ``nbits`` the width of
        the significand.

    Raises:
        ValueError: If ``value`` is zero.
    """
    lbits = _double_to_bits(value) & ~SIGN_MASK
    binexp = lbits >> EXP_SHIFT
    lbits &= FRACT_MASK
    if binexp > 0:
        lbits |= FRACT_HOB
    else:
        if lbits == 0:
            msg = "double_to_bigint(0.0)"
            raise ValueError(msg)
        binexp += 1
        while not lbits & FRACT_HOB:
            lbits <<= 1
            binexp -= 1
    binexp -= EXP_BIAS
    nbits = count_bits(lbits)
    lbits >>= EXP_SHIFT + 1 - nbits
    return BigInt.from_int(lbits), binexp + 1 - nbits, nbits


def ulp(value: float, subtracting: bool) -> float:
    """Unit in the last place of ``value``, negated when ``subtracting``.

    When stepping down from an exact power of two the ULP of the next
    smaller binade is used.
    """
    lbits = _double_to_bits(value) & ~SIGN_MASK
    binexp = lbits >> EXP_SHIFT
    if subtracting and binexp >= EXP_SHIFT and not lbits & FRACT_MASK:
        binexp -= 1
    if binexp > EXP_SHIFT:
        result = _bits_to_double((binexp - EXP_SHIFT) << EXP_SHIFT)
    elif binexp == 0:
        result = MIN_DOUBLE
    else:
        result = _bits_to_double(1 << (binexp - 1))
    return -result if subtracting else result


# ---------------------------------------------------------------------------
# Conversion
# ---------------------------------------------------------------------------


def to_double(numeral: DecimalNumeral) -> float:
    """Return the double nearest to ``numeral`` (ties to even)."""
    if numeral.special is not None:
        return numeral.special
    negative = numeral.negative
    digits = numeral.digits
    n_digits = len(digits)
    dec_exponent = numeral.dec_exponent

    k_digits = min(n_digits, MAX_DECIMAL_DIGITS + 1)
    l_value = int(digits[:k_digits])
    d_value = float(l_value)
    exp = dec_exponent - k_digits

    if n_digits <= MAX_DECIMAL_DIGITS:
        if exp == 0 or d_value == 0.0:
            return -d_value if negative else d_value
        if exp > 0:
            if exp <= MAX_SMALL_TEN:
                r_value = d_value * SMALL_10_POW[exp]
                return -r_value if negative else r_value
            slop = MAX_DECIMAL_DIGITS - k_digits
            if exp <= MAX_SMALL_TEN + slop:
                # d_value * 10**slop is still exact, leaving one rounding.
                d_value *= SMALL_10_POW[slop]
                r_value = d_value * SMALL_10_POW[exp - slop]
                return -r_value if negative else r_value
        elif exp >= -MAX_SMALL_TEN:
            r_value = d_value / SMALL_10_POW[-exp]
            return -r_value if negative else r_value

    # Hard cases: approximate by scaling, then correct.
    if exp > 0:
        if dec_exponent > MAX_DECIMAL_EXPONENT + 1:
            return -math.inf if negative else math.inf
        if exp & 15:
            d_value *= SMALL_10_POW[exp & 15]
        exp >>= 4
        if exp:
            j = 0
            while exp > 1:
                if exp & 1:
                    d_value *= BIG_10_POW[j]
                j += 1
                exp >>= 1
            t = d_value * BIG_10_POW[j]
            if math.isinf(t):
                # One binade too large still rounds to MAX_DOUBLE.
                t = (d_value / 2.0) * BIG_10_POW[j]
                if math.isinf(t):
                    return -math.inf if negative else math.inf
                t = MAX_DOUBLE
            d_value = t
    elif exp < 0:
        exp = -exp
        if dec_exponent < MIN_DECIMAL_EXPONENT - 1:
            return -0.0 if negative else 0.0
        if exp & 15:
            d_value /= SMALL_10_POW[exp & 15]
        exp >>= 4
        if exp:
            j = 0
            while exp > 1:
                if exp & 1:
                    d_value *= TINY_10_POW[j]
                j += 1
                exp >>= 1
            t = d_value * TINY_10_POW[j]
            if t == 0.0:
                t = (d_value * 2.0) * TINY_10_POW[j]
                if t == 0.0:
                    return -0.0 if negative else 0.0
                t = MIN_DOUBLE
            d_value = t

    big_d0 = BigInt.from_digits(l_value, digits, k_digits, n_digits)
    exp = dec_exponent - n_digits
    d_value = _correct(d_value, big_d0, exp)
    return -d_value if negative else d_value


def _correct(d_value: float, big_d0: BigInt, exp: int) -> float:
    """Refine ``d_value`` toward ``big_d0 * 10**exp`` one ULP at a time."""
    while True:
        big_b, big_int_exp, big_int_nbits = double_to_bigint(d_value)

        if exp >= 0:
            b2 = b5 = 0
            d2 = d5 = exp
        else:
            b2 = b5 = -exp
            d2 = d5 = 0
        if big_int_exp >= 0:
            b2 += big_int_exp
        else:
            d2 -= big_int_exp
        ulp2 = b2

        # Scale so that half an ULP stays integral.
        if big_int_exp + big_int_nbits <= -EXP_BIAS + 1:
            hulp_bias = big_int_exp + EXP_BIAS + EXP_SHIFT
        else:
            hulp_bias = EXP_SHIFT + 2 - big_int_nbits
        b2 += hulp_bias
        d2 += hulp_bias

        common2 = min(b2, d2, ulp2)
        b2 -= common2
        d2 -= common2
        ulp2 -= common2

        big_b = mult_pow52(big_b, b5, b2)
        big_d = mult_pow52(big_d0, d5, d2)

        order = big_b.cmp(big_d)
        if order > 0:
            overvalue = True
            diff = big_b.sub(big_d)
            if big_int_nbits == 1 and big_int_exp > -EXP_BIAS + 1:
                # Exact power of two, stepping down into a finer binade.
                # The smallest normal has the same ULP as the subnormals.
                ulp2 -= 1
                if ulp2 < 0:
                    ulp2 = 0
                    diff = diff.lshift(1)
        elif order < 0:
            overvalue = False
            diff = big_d.sub(big_b)
        else:
            return d_value

        half_ulp = construct_pow52(b5, ulp2)
        order = diff.cmp(half_ulp)
        if order < 0:
            return d_value
        if order == 0:
            # Half an ULP underflows below the normal range; pick the even side by bits.
            if _double_to_bits(d_value) & 1:
                return d_value + ulp(d_value, overvalue)
            return d_value
        d_value += ulp(d_value, overvalue)
        if d_value == 0.0 or d_value == math.inf:
            return d_value


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def parse_double(text: str) -> float:
    """Parse ``text`` as the correctly rounded nearest double.

    Accepts optional surrounding whitespace and NUL padding, a sign,
    ``NaN``, ``Infinity``, an exponent and one ``f``/``F``/``d``/``D``
    type suffix.

    Raises:
        NumberFormatError: If ``text`` is not a decimal numeral.
    """
    return to_double(scan_decimal(text))


def _parse_integral(text: str, min_value: int, max_value: int, kind: str) -> int:
    s = text.strip(_PADDING)
    if not s:
        raise _format_error(text, kind, "empty")
    negative = s[0] == "-"
    start = 1 if negative else 0
    if start == len(s):
        raise _format_error(text, kind, "sign without digits")
    # Accumulate negatively so the minimum value is reachable.
    limit = min_value if negative else -max_value
    multmin = -(-limit // 10)
    result = 0
    for c in s[start:]:
        if not _is_digit(c):
            raise _format_error(text, kind, f"unexpected {c!r}")
        digit = ord(c) - ord("0")
        if result < multmin:
            raise _format_error(text, kind, "overflow")
        result *= 10
        if result < limit + digit:
            raise _format_error(text, kind, "overflow")
        result -= digit
    return result if negative else -result


def parse_int(text: str) -> int:
    """Parse ``text`` as a signed 32-bit integer.

    Raises:
        NumberFormatError: On empty input, a lone ``-``, any non-digit,
            or a value outside ``[-2**31, 2**31 - 1]``.
    """
    return _parse_integral(text, INT_MIN, INT_MAX, "int")


def parse_long(text: str) -> int:
    """Parse ``text`` as a signed 64-bit integer.

    Raises:
        NumberFormatError: As ``parse_int`` with 64-bit range.
    """
    return _parse_integral(text, LONG_MIN, LONG_MAX, "long")
