"""
Name similarity scoring.

Scores are the Dice coefficient over character bigrams (whitespace removed,
case folded), scaled to 0-100 and rounded half up. Bigram counts are treated
as a multiset so repeated pairs only match as often as they occur on both
sides, which keeps the score commutative.
"""

import math
import re
from collections import Counter

_WHITESPACE = re.compile(r'\s+')


def _bigrams(text):
    return Counter(text[i:i + 2] for i in range(len(text) - 1))


def dice_coefficient(first, second):
    """Return the bigram Dice coefficient of two strings as a float in [0, 1]."""
    first = _WHITESPACE.sub('', first)
    second = _WHITESPACE.sub('', second)

    if first == second:
        return 1.0
    if len(first) < 2 or len(second) < 2:
        return 0.0

    overlap = sum((_bigrams(first) & _bigrams(second)).values())
    return (2.0 * overlap) / (len(first) + len(second) - 2)


def similarity(a, b):
    """Score how alike two names are.

    Args:
        a (str or None): First name
        b (str or None): Second name

    Returns:
        int: 0-100, where 100 is an exact case-insensitive match and 0 means
            either side is empty
    """
    if not a or not b:
        return 0
    a = a.strip().lower()
    b = b.strip().lower()
    if not a or not b:
        return 0
    if a == b:
        return 100
    return int(math.floor(dice_coefficient(a, b) * 100 + 0.5))
