"""
Shared numeric and text helpers for the analysis modules
"""

import math
from datetime import datetime
from typing import Iterable, Sequence


def round_half_up(value: float, digits: int = 0) -> float:
    """Round halves away from zero for positive values (2.5 -> 3, not 2)"""
    factor = 10 ** digits
    return math.floor(value * factor + 0.5) / factor


def round_int(value: float) -> int:
    return int(round_half_up(value))


def minutes_between(start: datetime, end: datetime) -> float:
    """Signed minutes from start to end; negative when the pair is reversed"""
    return (end - start).total_seconds() / 60


def count_occurrences(text: str, phrases: Iterable[str]) -> int:
    """
    Count phrase occurrences with a scan-and-advance loop.

    After a hit the scan resumes at the end of the match, so one phrase never
    overlaps itself, while different phrases may cover the same span
    ("por ejemplo" counts for both "por ejemplo" and "como por ejemplo").
    """
    count = 0
    for phrase in phrases:
        index = text.find(phrase)
        while index != -1:
            count += 1
            index = text.find(phrase, index + len(phrase))
    return count


def population_std_dev(values: Sequence[float]) -> float:
    if len(values) < 2:
        return 0.0
    mean = sum(values) / len(values)
    return math.sqrt(sum((value - mean) ** 2 for value in values) / len(values))
