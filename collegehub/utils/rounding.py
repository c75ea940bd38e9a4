import math


def round_half_up(value: float, ndigits: int = 1) -> float:
    """
    Round with ties going up (2.25 -> 2.3), unlike Python's banker's rounding.

    Rating averages and quality scores are stored with this rule so that
    e.g. a mean of 4.25 is shown as 4.3.
    """
    factor = 10 ** ndigits
    return math.floor(value * factor + 0.5) / factor
