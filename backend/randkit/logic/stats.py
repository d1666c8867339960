"""Distribution sanity checks for generator output."""
import math
from collections import Counter
from typing import Iterable

# Standard normal upper quantiles for the significance levels we test at.
_Z_UPPER = {
    0.05: 1.6448536269514722,
    0.01: 2.3263478740408408,
    0.001: 3.090232306167813,
}


def mean(values: Iterable[float]) -> float:
    """Arithmetic mean; raises ValueError on empty input."""
    total = 0.0
    count = 0
    for value in values:
        total += value
        count += 1
    if count == 0:
        raise ValueError("mean of empty sequence")
    return total / count


def chi_square(observed: Iterable[int], expected: float) -> float:
    """Pearson chi-square statistic against a uniform expected count per bucket."""
    return sum((count - expected) ** 2 / expected for count in observed)


def chi_square_critical(df: int, p: float = 0.01) -> float:
    """
    Upper critical value of the chi-square distribution.

    Wilson-Hilferty approximation; accurate to well under 1% for df >= 10.
    """
    if p not in _Z_UPPER:
        raise ValueError(f"unsupported significance level: {p}")
    z = _Z_UPPER[p]
    k = 2.0 / (9.0 * df)
    return df * (1.0 - k + z * math.sqrt(k)) ** 3


def uniformity_report(text: str, alphabet: str, p: float = 0.01) -> dict:
    """
    Chi-square uniformity test of the characters in text over alphabet.

    Characters outside the alphabet are reported, not counted.
    """
    counts = Counter(text)
    foreign = sorted(set(counts) - set(alphabet))
    observed = [counts.get(ch, 0) for ch in alphabet]
    expected = sum(observed) / len(alphabet)
    statistic = chi_square(observed, expected)
    critical = chi_square_critical(len(alphabet) - 1, p)
    return {
        "length": len(text),
        "buckets": len(alphabet),
        "chi_square": statistic,
        "critical": critical,
        "p": p,
        "uniform": statistic < critical and not foreign,
        "foreign_chars": foreign,
    }
