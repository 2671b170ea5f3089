# services/economy.py
"""
Economy configuration constants for the bakery game.

Provides the numeric limits, timing, save and prestige values that define
the game's economic balance. This module is pure Python, dependency-free,
and intended to be imported wherever economic values are needed.
"""

from typing import Final, Tuple


class Economy:
    """Namespace container for game economy constants. Not meant to be instantiated."""

    # Scaled numbers
    MAX_EXPONENT: Final[int] = 63             # Vigintillion cap
    MAX_MANTISSA: Final[float] = 9.99         # Mantissa used when clamped
    NEGLIGIBLE_EXPONENT_GAP: Final[int] = 50  # Smaller addend is dropped past this gap
    SUFFIXES: Final[Tuple[str, ...]] = (
        "", "K", "M", "B", "T", "Qa", "Qi", "Sx", "Sp", "Oc", "No",
        "Dc", "Ud", "Dd", "Td", "Qad", "Qid", "Sxd", "Spd", "Ocd", "Nod", "Vg",
    )
    MAX_SUFFIX: Final[str] = "Vg"

    # Persistence
    SAVE_KEY: Final[str] = "bakery_save_v1"
    SAVE_FILENAME: Final[str] = "save.json"

    # Production
    TICK_MS: Final[int] = 50                  # Scheduler step in milliseconds
    PROGRESS_COMPLETE: Final[float] = 100.0   # A build finishes at this progress

    # Prestige
    LEVELS_PER_LIFE_LESSON: Final[int] = 100  # Cumulative levels per life lesson
    LIFE_LESSON_BONUS: Final[float] = 0.01    # +1% earnings per life lesson

    # Starter pastry
    STARTER_PASTRY_ID: Final[int] = 1
    STARTER_LEVEL: Final[int] = 1

    def __new__(cls, *args, **kwargs):
        raise TypeError(f"{cls.__name__} is not instantiable")


def clamp(n: float, lo: float, hi: float) -> float:
    """
    Clamp a value between inclusive lower and upper bounds.

    Args:
        n: The value to clamp.
        lo: Minimum allowed value.
        hi: Maximum allowed value.

    Returns:
        n limited to the range [lo, hi].

    Examples:
        >>> clamp(120, 0, 100)
        100
        >>> clamp(-5, 0, 100)
        0
    """
    return max(lo, min(n, hi))
