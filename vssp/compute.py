from typing import Iterable

INT16_MAX = 32767
INT16_MIN = -32768


def sum_of_squares(values: Iterable[int]) -> int:
    """
    Saturated sum of squares of int16 values, returned as an int16.

    The running total is checked after every term and we stop at the first
    bound crossed, so remaining elements are never looked at. Squares are
    never negative, which makes the lower bound unreachable for real input;
    it is still checked so both directions saturate the same way.
    """
    total = 0
    for value in values:
        total += value * value
        if total > INT16_MAX:
            return INT16_MAX
        if total < INT16_MIN:
            return INT16_MIN
    return total
