import math


def round_half_up(value) -> int:
    """
    Round to the nearest whole minute, halves going up (2.5 -> 3, -2.5 -> -2).

    Unlike built-in ``round``, halves never go to the nearest even number.
    """
    return int(math.floor(float(value) + 0.5))
