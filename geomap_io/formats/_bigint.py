"""Unsigned big integer tailored to decimal-to-binary conversion.

``BigInt`` stores its magnitude as a little-endian list of 32-bit limbs
(``limbs[0]`` is least significant). Arithmetic follows value
semantics: ``lshift``, ``mult_small``, ``mult``, ``add`` and ``sub``
return new instances and never alias their operands. Three operations
mutate in place:

- ``multadd_in_place``: digit accumulation while building from text.
- ``normalize_in_place``: prepares a divisor for ``quo_rem_iteration``.
- ``quo_rem_iteration``: one quotient-digit extraction step.

Of these, conversion relies only on ``multadd_in_place`` (through
``from_digits``). The division pair, ``add`` and ``long_value`` complete
the arithmetic but are not on the conversion path.

Powers of five are memoised in a module-level cache shared by every
caller in the process; growth of the cache is serialised by an
``RLock`` (the builder recurses).
"""

from __future__ import annotations

import threading
from collections.abc import Sequence

LIMB_BITS = 32
LIMB_MASK = (1 << LIMB_BITS) - 1

SMALL_5_POW: tuple[int, ...] = tuple(5**i for i in range(14))
"""Powers of five that fit a signed 32-bit int."""

LONG_5_POW: tuple[int, ...] = tuple(5**i for i in range(27))
"""Powers of five that fit a signed 64-bit long."""


class BigInt:
    """Non-negative arbitrary-precision integer on 32-bit limbs."""

    __slots__ = ("_limbs",)

    def __init__(self, limbs: Sequence[int] = (0,)) -> None:
        self._limbs = [int(limb) & LIMB_MASK for limb in limbs] or [0]
        self._trim()

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    @classmethod
    def from_int(cls, value: int) -> BigInt:
        """Build from a non-negative Python int."""
        if value < 0:
            msg = f"BigInt cannot hold negative value {value}"
            raise ValueError(msg)
        limbs = []
        while value:
            limbs.append(value & LIMB_MASK)
            value >>= LIMB_BITS
        return cls(limbs or [0])

    @classmethod
    def from_digits(cls, seed: int, digits: str, start: int, end: int) -> BigInt:
        """Build ``seed`` followed by the decimal ``digits[start:end]``.

        ``seed`` already holds the value of ``digits[:start]``. The rest
        are folded in five at a time.
        """
        big = cls.from_int(seed)
        i = start
        limit = end - 5
        while i < limit:
            big.multadd_in_place(100000, int(digits[i : i + 5]))
            i += 5
        if i < end:
            big.multadd_in_place(10 ** (end - i), int(digits[i:end]))
        return big

    def copy(self) -> BigInt:
        clone = BigInt.__new__(BigInt)
        clone._limbs = list(self._limbs)
        return clone

    # ------------------------------------------------------------------
    # Value-semantics arithmetic
    # ------------------------------------------------------------------

    def lshift(self, count: int) -> BigInt:
        """Return ``self << count``.

        Raises:
            ValueError: If ``count`` is negative.
        """
        if count < 0:
            msg = f"negative shift count {count}"
            raise ValueError(msg)
        if count == 0:
            return self.copy()
        words, bits = divmod(count, LIMB_BITS)
        result = [0] * words
        carry = 0
        for limb in self._limbs:
            shifted = limb << bits
            result.append((shifted & LIMB_MASK) | carry)
            carry = shifted >> LIMB_BITS
        if carry:
            result.append(carry)
        return BigInt(result)

    def mult_small(self, factor: int) -> BigInt:
        """Return ``self * factor`` for a non-negative machine-sized ``factor``."""
        result = []
        carry = 0
        for limb in self._limbs:
            product = factor * limb + carry
            result.append(product & LIMB_MASK)
            carry = product >> LIMB_BITS
        while carry:
            result.append(carry & LIMB_MASK)
            carry >>= LIMB_BITS
        return BigInt(result)

    def mult(self, other: BigInt) -> BigInt:
        """Return ``self * other`` (schoolbook)."""
        result = [0] * (len(self._limbs) + len(other._limbs))
        for i, a in enumerate(self._limbs):
            if a == 0:
                continue
            carry = 0
            for j, b in enumerate(other._limbs):
                acc = result[i + j] + a * b + carry
                result[i + j] = acc & LIMB_MASK
                carry = acc >> LIMB_BITS
            k = i + len(other._limbs)
            while carry:
                acc = result[k] + carry
                result[k] = acc & LIMB_MASK
                carry = acc >> LIMB_BITS
                k += 1
        return BigInt(result)

    def add(self, other: BigInt) -> BigInt:
        longer, shorter = (
            (self._limbs, other._limbs)
            if len(self._limbs) >= len(other._limbs)
            else (other._limbs, self._limbs)
        )
        result = []
        carry = 0
        for i, limb in enumerate(longer):
            acc = limb + carry + (shorter[i] if i < len(shorter) else 0)
            result.append(acc & LIMB_MASK)
            carry = acc >> LIMB_BITS
        if carry:
            result.append(carry)
        return BigInt(result)

    def sub(self, other: BigInt) -> BigInt:
        """Return ``self - other``.

        Raises:
            ArithmeticError: If the result would be negative.
        """
        if self.cmp(other) < 0:
            msg = "negative result of BigInt subtraction"
            raise ArithmeticError(msg)
        result = []
        borrow = 0
        for i, limb in enumerate(self._limbs):
            acc = limb - borrow - (other._limbs[i] if i < len(other._limbs) else 0)
            borrow = 1 if acc < 0 else 0
            result.append(acc & LIMB_MASK)
        return BigInt(result)

    def cmp(self, other: BigInt) -> int:
        """Three-way compare: negative, zero or positive."""
        a = self._significant()
        b = other._significant()
        if a != b:
            return 1 if a > b else -1
        for i in range(a - 1, -1, -1):
            x = self._limbs[i]
            y = other._limbs[i]
            if x != y:
                return 1 if x > y else -1
        return 0

    # ------------------------------------------------------------------
    # In-place operations
    # ------------------------------------------------------------------

    def multadd_in_place(self, factor: int, addend: int) -> None:
        """``self = self * factor + addend``."""
        carry = addend
        for i, limb in enumerate(self._limbs):
            acc = factor * limb + carry
            self._limbs[i] = acc & LIMB_MASK
            carry = acc >> LIMB_BITS
        while carry:
            self._limbs.append(carry & LIMB_MASK)
            carry >>= LIMB_BITS

    def normalize_in_place(self) -> int:
        """Shift left until the top limb's highest set bit is at ``0x08000000``.

        Keeps quotient digits of ``quo_rem_iteration`` within a single limb.

        Returns:
            The number of bits shifted.

        Raises:
            ValueError: If the value is zero.
        """
        self._trim()
        top = self._limbs[-1]
        if top == 0:
            msg = "cannot normalize a zero BigInt"
            raise ValueError(msg)
        width = top.bit_length()
        shift = 60 - width if width > 28 else 28 - width
        if shift:
            self._limbs = self.lshift(shift)._limbs
        return shift

    def quo_rem_iteration(self, divisor: BigInt) -> int:
        """Return ``q = self // divisor`` and set ``self = 10 * (self % divisor)``.

        ``divisor`` must be normalized and ``self`` shifted to match, so
        that both have the same limb count and ``0 <= q < 10``. The limb
        count of ``self`` is preserved so the step can be repeated.

        Raises:
            ValueError: If the limb counts differ.
            ArithmeticError: If the quotient does not fit a single digit.
        """
        limbs = self._limbs
        other = divisor._limbs
        if len(limbs) != len(other):
            msg = "quo_rem_iteration requires operands of equal limb count"
            raise ValueError(msg)
        top = len(limbs) - 1
        q = limbs[top] // other[top]
        diff = 0
        for i in range(top + 1):
            diff += limbs[i] - q * other[i]
            limbs[i] = diff & LIMB_MASK
            diff >>= LIMB_BITS
        if diff:
            # Estimate was too large: add the divisor back until the
            # running value carries out of the top limb.
            carry = 0
            while carry == 0:
                for i in range(top + 1):
                    carry += limbs[i] + other[i]
                    limbs[i] = carry & LIMB_MASK
                    carry >>= LIMB_BITS
                if carry not in (0, 1):
                    msg = f"carry {carry} out of division correction"
                    raise ArithmeticError(msg)
                q -= 1
        product = 0
        for i in range(top + 1):
            product += 10 * limbs[i]
            limbs[i] = product & LIMB_MASK
            product >>= LIMB_BITS
        if product:
            msg = "carry out of BigInt *10"
            raise ArithmeticError(msg)
        return q

    # ------------------------------------------------------------------
    # Conversion
    # ------------------------------------------------------------------

    def long_value(self) -> int:
        """Return the value as a signed 64-bit integer.

        Raises:
            OverflowError: If the value does not fit.
        """
        value = int(self)
        if value.bit_length() > 63:
            msg = "BigInt value does not fit a 64-bit long"
            raise OverflowError(msg)
        return value

    def __int__(self) -> int:
        value = 0
        for limb in reversed(self._limbs):
            value = (value << LIMB_BITS) | limb
        return value

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, BigInt):
            return NotImplemented
        return self.cmp(other) == 0

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"BigInt({int(self)})"

    @property
    def limbs(self) -> tuple[int, ...]:
        return tuple(self._limbs)

    def _significant(self) -> int:
        n = len(self._limbs)
        while n > 1 and self._limbs[n - 1] == 0:
            n -= 1
        return n

    def _trim(self) -> None:
        while len(self._limbs) > 1 and self._limbs[-1] == 0:
            self._limbs.pop()


# ---------------------------------------------------------------------------
# Powers of five
# ---------------------------------------------------------------------------

_POW5_LOCK = threading.RLock()
_POW5_CACHE: list[BigInt | None] = []


def big5pow(power: int) -> BigInt:
    """Return ``5 ** power`` as a ``BigInt``, memoised.

    The returned instance is shared with the cache; callers must not
    mutate it in place.

    Raises:
        ValueError: If ``power`` is negative.
    """
    if power < 0:
        msg = f"negative power of five {power}"
        raise ValueError(msg)
    with _POW5_LOCK:
        if len(_POW5_CACHE) <= power:
            _POW5_CACHE.extend([None] * (power + 1 - len(_POW5_CACHE)))
        cached = _POW5_CACHE[power]
        if cached is not None:
            return cached
        if power < len(LONG_5_POW):
            value = BigInt.from_int(LONG_5_POW[power])
        else:
            # 5^p = 5^q * 5^r with q = p // 2, r = p - q
            half = power >> 1
            rest = power - half
            if rest < len(SMALL_5_POW):
                value = big5pow(half).mult_small(SMALL_5_POW[rest])
            else:
                value = big5pow(half).mult(big5pow(rest))
        _POW5_CACHE[power] = value
        return value


def mult_pow52(value: BigInt, p5: int, p2: int) -> BigInt:
    """Return ``value * 5**p5 * 2**p2``."""
    if p5:
        if p5 < len(SMALL_5_POW):
            value = value.mult_small(SMALL_5_POW[p5])
        else:
            value = value.mult(big5pow(p5))
    if p2:
        value = value.lshift(p2)
    return value


def construct_pow52(p5: int, p2: int) -> BigInt:
    """Return ``5**p5 * 2**p2`` as a fresh ``BigInt``."""
    value = big5pow(p5)
    return value.lshift(p2) if p2 else value.copy()


def cached_pow5_count() -> int:
    """Number of powers of five currently memoised."""
    with _POW5_LOCK:
        return sum(1 for entry in _POW5_CACHE if entry is not None)
