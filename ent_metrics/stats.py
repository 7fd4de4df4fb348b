"""Randomness metrics over byte buffers.

Every function here is a pure, single-pass computation over a uint8 array
(or a :class:`FrequencyTable` built from one). Degenerate inputs never
raise: metrics that cannot be computed come back as ``None``.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from math import erfc, pi, sqrt

import numpy as np
from scipy import stats as sp_stats

PI_GROUP_BYTES = 6
PI_RADIUS_SQUARED = 1 << 48  # (2**24)**2


class AnalysisMode(enum.Enum):
    """Unit of analysis: whole bytes or individual bits."""

    BYTE = "byte"
    BIT = "bit"

    @property
    def alphabet_size(self) -> int:
        return 2 if self is AnalysisMode.BIT else 256

    @property
    def symbols_per_byte(self) -> int:
        return 8 if self is AnalysisMode.BIT else 1

    @property
    def max_entropy(self) -> float:
        """Entropy of a uniform distribution, in bits per symbol."""
        return 1.0 if self is AnalysisMode.BIT else 8.0

    @property
    def expected_mean(self) -> float:
        """Mean a perfectly random source would show (reporting baseline)."""
        return 0.5 if self is AnalysisMode.BIT else 127.5

    @property
    def unit(self) -> str:
        return self.value


@dataclass(frozen=True, eq=False)
class FrequencyTable:
    """Occurrence counts per symbol of the analysis alphabet."""

    mode: AnalysisMode
    counts: np.ndarray
    total: int

    @property
    def fractions(self) -> np.ndarray:
        if self.total == 0:
            return np.zeros(len(self.counts), dtype=float)
        return self.counts / self.total

    def rows(self) -> list[tuple[int, int, float]]:
        """``(symbol, occurrences, fraction)`` for every symbol, in order."""
        fractions = self.fractions
        return [(i, int(c), float(f)) for i, (c, f) in enumerate(zip(self.counts, fractions))]


def as_bytes(data) -> np.ndarray:
    """Coerce bytes-like or array input into a flat uint8 array."""
    if isinstance(data, (bytes, bytearray, memoryview)):
        return np.frombuffer(bytes(data), dtype=np.uint8)
    return np.asarray(data).flatten().astype(np.uint8)


def to_bits(data: np.ndarray) -> np.ndarray:
    """Expand bytes into bits, least significant bit of each byte first."""
    return np.unpackbits(as_bytes(data), bitorder="little")


def frequency_table(data: np.ndarray, mode: AnalysisMode = AnalysisMode.BYTE) -> FrequencyTable:
    """Tabulate symbol occurrences for *mode*."""
    data = as_bytes(data)
    symbols = to_bits(data) if mode is AnalysisMode.BIT else data
    counts = np.bincount(symbols, minlength=mode.alphabet_size).astype(np.int64)
    return FrequencyTable(mode=mode, counts=counts, total=len(data) * mode.symbols_per_byte)


# ═══════════════════════ ENTROPY ═══════════════════════

def shannon_entropy(table: FrequencyTable) -> float:
    """Shannon entropy in bits per symbol; 0.0 for an empty table."""
    if table.total == 0:
        return 0.0
    probs = table.counts[table.counts > 0] / table.total
    # log2(1/p) keeps a single-symbol buffer at +0.0 rather than -0.0
    return float(np.sum(probs * np.log2(1.0 / probs)))


def compression_percent(entropy: float, mode: AnalysisMode) -> float:
    """Size reduction an optimal coder would reach, in percent."""
    return 100.0 * (1.0 - entropy / mode.max_entropy)


# ═══════════════════════ CHI-SQUARE ═══════════════════════

def chi_square(table: FrequencyTable) -> float:
    """Chi-square statistic of the counts against a uniform distribution."""
    if table.total == 0:
        return 0.0
    expected = table.total / table.mode.alphabet_size
    return float(np.sum((table.counts - expected) ** 2 / expected))


def norm_cdf(x: float) -> float:
    """Standard normal CDF."""
    return 0.5 * erfc(-x / sqrt(2))


def chi_square_p_value(chi2: float, dof: int) -> tuple[float, bool]:
    """Normal approximation of the chi-square upper tail.

    Returns ``(p_value, clamped)``. Below *dof* the approximation has no
    real z-score, so z is clamped to zero and ``clamped`` is True.
    """
    radicand = chi2 - dof
    if radicand < 0:
        return 1.0 - norm_cdf(0.0), True
    return 1.0 - norm_cdf(sqrt(radicand)), False


def chi_square_exact_p(chi2: float, dof: int) -> float:
    """Exact upper-tail probability from the chi-square distribution."""
    return float(sp_stats.chi2.sf(chi2, dof))


# ═══════════════════════ MEAN ═══════════════════════

def arithmetic_mean(data: np.ndarray) -> float | None:
    """Mean byte value, or None for an empty buffer."""
    data = as_bytes(data)
    if len(data) == 0:
        return None
    return int(np.sum(data, dtype=np.int64)) / len(data)


# ═══════════════════════ MONTE CARLO PI ═══════════════════════

def monte_carlo_pi(data: np.ndarray) -> tuple[float, int] | None:
    """Estimate π from 6-byte groups read as 24-bit (x, y) coordinates.

    Returns ``(estimate, groups)``, or None when there is no full group.
    Trailing bytes that do not fill a group are ignored.
    """
    data = as_bytes(data)
    groups = len(data) // PI_GROUP_BYTES
    if groups == 0:
        return None
    block = data[:groups * PI_GROUP_BYTES].reshape(groups, PI_GROUP_BYTES).astype(np.int64)
    x = (block[:, 0] << 16) | (block[:, 1] << 8) | block[:, 2]
    y = (block[:, 3] << 16) | (block[:, 4] << 8) | block[:, 5]
    hits = int(np.count_nonzero(x * x + y * y < PI_RADIUS_SQUARED))
    return 4.0 * hits / groups, groups


def pi_error_percent(estimate: float) -> float:
    return abs(estimate - pi) / pi * 100.0


# ═══════════════════════ SERIAL CORRELATION ═══════════════════════

def serial_correlation(data: np.ndarray) -> float | None:
    """Lag-1 correlation between each byte and its predecessor.

    Returns None when the coefficient is undefined: fewer than two bytes,
    or a zero denominator (every byte but the last, or every byte but the
    first, has the same value).
    """
    data = as_bytes(data)
    if len(data) < 2:
        return None
    arr = data.astype(np.int64)
    x, y = arr[:-1], arr[1:]
    n = len(x)
    sum_x = int(np.sum(x))
    sum_y = int(np.sum(y))
    sum_xy = int(np.sum(x * y))
    sum_x2 = int(np.sum(x * x))
    sum_y2 = int(np.sum(y * y))
    denominator = (n * sum_x2 - sum_x * sum_x) * (n * sum_y2 - sum_y * sum_y)
    if denominator == 0:
        return None
    return (n * sum_xy - sum_x * sum_y) / sqrt(denominator)
