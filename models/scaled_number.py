# models/scaled_number.py
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Dict, Tuple, Union

from services.economy import Economy

Number = Union[int, float]


def _normalize(mantissa: float, exponent: int) -> Tuple[float, int]:
    """Push mantissa into [1, 10) and clamp the exponent to Economy.MAX_EXPONENT."""
    if not math.isfinite(mantissa) or mantissa == 0:
        return 0.0, 0

    sign = 1.0 if mantissa > 0 else -1.0
    mag = abs(mantissa)

    while mag >= 10 and exponent < Economy.MAX_EXPONENT:
        mag /= 10
        exponent += 1
    while mag < 1:
        mag *= 10
        exponent -= 1

    if exponent >= Economy.MAX_EXPONENT:
        return sign * Economy.MAX_MANTISSA, Economy.MAX_EXPONENT
    return sign * mag, exponent


@dataclass(frozen=True)
class ScaledNumber:
    """
    Large-magnitude number stored as mantissa x 10^exponent.

    Fields:
        mantissa: 1 <= |mantissa| < 10, or exactly 0.
        exponent: Power of ten, never above Economy.MAX_EXPONENT; 0 when zero.

    Instances are immutable: every operation returns a new ScaledNumber.
    Non-finite mantissas normalize to zero, and anything reaching the
    exponent cap saturates at (+-9.99, MAX_EXPONENT).
    """
    mantissa: float = 0.0
    exponent: int = 0

    def __post_init__(self) -> None:
        if isinstance(self.mantissa, bool) or not isinstance(self.mantissa, (int, float)):
            raise TypeError("mantissa must be a number.")
        mantissa = float(self.mantissa)
        exponent = self.exponent
        if isinstance(exponent, float):
            if not math.isfinite(exponent):
                mantissa, exponent = 0.0, 0
            exponent = int(exponent)
        elif not isinstance(exponent, int):
            raise TypeError("exponent must be an integer.")
        mantissa, exponent = _normalize(mantissa, exponent)
        object.__setattr__(self, "mantissa", mantissa)
        object.__setattr__(self, "exponent", exponent)

    # --- Construction ---
    @staticmethod
    def zero() -> "ScaledNumber":
        return ScaledNumber(0.0, 0)

    @staticmethod
    def from_value(value: Number) -> "ScaledNumber":
        """Lift a plain int/float into the scaled representation; ints too large for a float saturate."""
        try:
            return ScaledNumber(float(value), 0)
        except OverflowError:
            sign = 1 if value > 0 else -1
            return ScaledNumber(sign * Economy.MAX_MANTISSA, Economy.MAX_EXPONENT)

    @staticmethod
    def _coerce(value: Union["ScaledNumber", Number]) -> "ScaledNumber":
        if isinstance(value, ScaledNumber):
            return value
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return ScaledNumber.from_value(value)
        raise TypeError(f"Unsupported operand type: {type(value).__name__}")

    # --- Queries ---
    @property
    def is_zero(self) -> bool:
        return self.mantissa == 0

    def to_float(self) -> float:
        """Approximate plain float value (may overflow to inf near the cap)."""
        try:
            return self.mantissa * (10.0 ** self.exponent)
        except OverflowError:
            return math.copysign(math.inf, self.mantissa)

    # --- Arithmetic ---
    def add(self, other: "ScaledNumber") -> "ScaledNumber":
        """
        Sum of two scaled numbers.

        The smaller operand is aligned to the larger exponent; a gap above
        Economy.NEGLIGIBLE_EXPONENT_GAP drops it entirely.
        """
        other = ScaledNumber._coerce(other)
        if self.is_zero:
            return other
        if other.is_zero:
            return self
        if self.exponent == other.exponent:
            return ScaledNumber(self.mantissa + other.mantissa, self.exponent)

        larger, smaller = (self, other) if self.exponent > other.exponent else (other, self)
        diff = larger.exponent - smaller.exponent
        if diff > Economy.NEGLIGIBLE_EXPONENT_GAP:
            return larger
        adjusted = smaller.mantissa / (10 ** diff)
        return ScaledNumber(larger.mantissa + adjusted, larger.exponent)

    def subtract(self, other: "ScaledNumber") -> "ScaledNumber":
        return self.add(-ScaledNumber._coerce(other))

    def multiply(self, other: Union["ScaledNumber", Number]) -> "ScaledNumber":
        other = ScaledNumber._coerce(other)
        return ScaledNumber(self.mantissa * other.mantissa, self.exponent + other.exponent)

    def negate(self) -> "ScaledNumber":
        return ScaledNumber(-self.mantissa, self.exponent)

    @staticmethod
    def compare(a: "ScaledNumber", b: "ScaledNumber") -> int:
        """
        Return 1 if a > b, 0 if equal, -1 if a < b.

        Signs are compared first; for same-signed operands the exponent
        dominates and the mantissa breaks ties.
        """
        if not isinstance(a, ScaledNumber) or not isinstance(b, ScaledNumber):
            raise TypeError("compare expects two ScaledNumber instances.")
        sa = (a.mantissa > 0) - (a.mantissa < 0)
        sb = (b.mantissa > 0) - (b.mantissa < 0)
        if sa != sb:
            return 1 if sa > sb else -1
        if sa == 0:
            return 0
        if a.exponent != b.exponent:
            result = 1 if a.exponent > b.exponent else -1
            return result if sa > 0 else -result
        if a.mantissa == b.mantissa:
            return 0
        return 1 if a.mantissa > b.mantissa else -1

    # --- Operators ---
    def __add__(self, other):
        return self.add(other)

    def __radd__(self, other):
        return ScaledNumber._coerce(other).add(self)

    def __sub__(self, other):
        return self.subtract(other)

    def __mul__(self, other):
        return self.multiply(other)

    def __rmul__(self, other):
        return ScaledNumber._coerce(other).multiply(self)

    def __neg__(self):
        return self.negate()

    def __lt__(self, other):
        return ScaledNumber.compare(self, ScaledNumber._coerce(other)) < 0

    def __le__(self, other):
        return ScaledNumber.compare(self, ScaledNumber._coerce(other)) <= 0

    def __gt__(self, other):
        return ScaledNumber.compare(self, ScaledNumber._coerce(other)) > 0

    def __ge__(self, other):
        return ScaledNumber.compare(self, ScaledNumber._coerce(other)) >= 0

    # --- Formatting ---
    def to_display_string(self, decimals: int = 2) -> str:
        """
        Format with a magnitude suffix, e.g. ScaledNumber(1.23, 6) -> "1.23M".

        Values below one render without a suffix.
        """
        if self.is_zero:
            return "0"
        exp = min(self.exponent, Economy.MAX_EXPONENT)
        if exp < 0:
            return f"{self.mantissa * 10 ** exp:.{decimals}f}"
        index = exp // 3
        suffix = Economy.SUFFIXES[index] if index < len(Economy.SUFFIXES) else Economy.MAX_SUFFIX
        scaled = self.mantissa * 10 ** (exp % 3)
        return f"{scaled:.{decimals}f}{suffix}"

    def __str__(self) -> str:
        return self.to_display_string()

    # --- Serialization ---
    def to_dict(self) -> Dict[str, object]:
        """Serialize to a plain dict suitable for JSON storage."""
        return {"mantissa": self.mantissa, "exponent": self.exponent}

    @staticmethod
    def from_dict(d: Dict[str, object]) -> "ScaledNumber":
        """
        Deserialize from a dict produced by to_dict().

        Missing keys default to zero; non-numeric values raise ValueError or TypeError.
        """
        if not isinstance(d, dict):
            raise TypeError("ScaledNumber payload must be a dict.")
        mantissa = d.get("mantissa", 0)
        exponent = d.get("exponent", 0)
        for value in (mantissa, exponent):
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise TypeError("mantissa and exponent must be numbers.")
        return ScaledNumber(float(mantissa), float(exponent))  # type: ignore[arg-type]
