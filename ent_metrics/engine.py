"""Metrics engine: owns a byte buffer and computes the five ent metrics.

Usage::

    engine = MetricsEngine.from_path("archive.bin")
    result = engine.calculate()
    result.entropy, result.serial_correlation

A metric that cannot be computed for the buffer (empty input, fewer than
six bytes for the π estimate, constant input for the correlation) is
``None`` on the result, with the reason under ``result.undefined``.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import BinaryIO

import numpy as np

from ent_metrics import stats
from ent_metrics.sources import read_path, read_stream
from ent_metrics.stats import AnalysisMode, FrequencyTable

logger = logging.getLogger(__name__)

_UPPER_A, _UPPER_Z = ord("A"), ord("Z")
_CASE_OFFSET = ord("a") - ord("A")


@dataclass(frozen=True)
class AnalysisConfig:
    """Settings for one ``calculate()`` call."""

    mode: AnalysisMode = AnalysisMode.BYTE
    fold_case: bool = False

    @classmethod
    def from_flags(cls, bits: bool = False, fold_case: bool = False) -> AnalysisConfig:
        return cls(mode=AnalysisMode.BIT if bits else AnalysisMode.BYTE, fold_case=fold_case)


@dataclass(frozen=True)
class MetricsResult:
    """Snapshot of every metric for one buffer and mode."""

    mode: AnalysisMode
    byte_count: int
    samples: int
    entropy: float
    compression_percent: float
    chi_square: float
    degrees_of_freedom: int
    p_value: float | None
    p_value_clamped: bool
    p_value_exact: float | None
    mean: float | None
    pi_estimate: float | None
    pi_error_percent: float | None
    pi_groups: int | None
    serial_correlation: float | None
    undefined: dict[str, str] = field(default_factory=dict)

    @property
    def expected_mean(self) -> float:
        return self.mode.expected_mean

    def is_defined(self, name: str) -> bool:
        return name not in self.undefined

    def to_dict(self) -> dict:
        d = asdict(self)
        d["mode"] = self.mode.value
        return d


def fold_case(data: np.ndarray) -> np.ndarray:
    """Return a copy of *data* with ASCII ``A``-``Z`` lowered."""
    data = stats.as_bytes(data)
    upper = (data >= _UPPER_A) & (data <= _UPPER_Z)
    return np.where(upper, data + _CASE_OFFSET, data).astype(np.uint8)


class MetricsEngine:
    """Computes entropy, chi-square, mean, π and serial correlation.

    The engine keeps its own copy of the input. Case folding, when
    requested, rewrites that copy once; every later call sees the folded
    bytes.
    """

    def __init__(self, data, config: AnalysisConfig | None = None) -> None:
        self._data = np.array(stats.as_bytes(data), dtype=np.uint8, copy=True)
        self._data.setflags(write=False)
        self._config = config or AnalysisConfig()
        self._folded = False
        self._result: MetricsResult | None = None

    @classmethod
    def from_path(cls, path: str | Path, config: AnalysisConfig | None = None) -> MetricsEngine:
        """Load a file (``"-"`` for stdin) into a new engine."""
        return cls(read_path(path), config)

    @classmethod
    def from_stream(cls, stream: BinaryIO, config: AnalysisConfig | None = None) -> MetricsEngine:
        return cls(read_stream(stream), config)

    @property
    def data(self) -> np.ndarray:
        """Read-only view of the analysed bytes."""
        return self._data

    @property
    def config(self) -> AnalysisConfig:
        return self._config

    @property
    def result(self) -> MetricsResult | None:
        """Result of the most recent ``calculate()``, if any."""
        return self._result

    def _apply_fold(self) -> None:
        if self._folded:
            return
        folded = fold_case(self._data)
        changed = int(np.count_nonzero(folded != self._data))
        folded.setflags(write=False)
        self._data = folded
        self._folded = True
        logger.debug("case folding changed %d bytes", changed)

    def frequency_table(self, mode: AnalysisMode | None = None) -> FrequencyTable:
        return stats.frequency_table(self._data, mode or self._config.mode)

    def calculate(self, config: AnalysisConfig | None = None) -> MetricsResult:
        """Compute all metrics and return a fresh :class:`MetricsResult`."""
        config = config or self._config
        if config.fold_case:
            self._apply_fold()

        data = self._data
        mode = config.mode
        logger.debug("analysing %d bytes in %s mode", len(data), mode.value)
        undefined: dict[str, str] = {}

        table = stats.frequency_table(data, mode)
        entropy = stats.shannon_entropy(table)
        chi2 = stats.chi_square(table)
        dof = mode.alphabet_size - 1

        if table.total == 0:
            compression = 0.0
            p_value, clamped, p_exact = None, False, None
            undefined["p_value"] = "empty input"
        else:
            compression = stats.compression_percent(entropy, mode)
            p_value, clamped = stats.chi_square_p_value(chi2, dof)
            p_exact = stats.chi_square_exact_p(chi2, dof)

        mean = stats.arithmetic_mean(data)
        if mean is None:
            undefined["mean"] = "empty input"

        pi_estimate = pi_error = pi_groups = None
        pi_result = stats.monte_carlo_pi(data)
        if pi_result is None:
            undefined["pi_estimate"] = (
                "empty input" if len(data) == 0
                else f"need at least {stats.PI_GROUP_BYTES} bytes, got {len(data)}"
            )
        else:
            pi_estimate, pi_groups = pi_result
            pi_error = stats.pi_error_percent(pi_estimate)

        correlation = stats.serial_correlation(data)
        if correlation is None:
            if len(data) == 0:
                undefined["serial_correlation"] = "empty input"
            elif len(data) < 2:
                undefined["serial_correlation"] = "fewer than 2 bytes"
            elif np.all(data == data[0]):
                undefined["serial_correlation"] = "all values equal"
            else:
                undefined["serial_correlation"] = "zero variance in leading or trailing values"

        if undefined:
            logger.debug("undefined metrics: %s", undefined)

        self._result = MetricsResult(
            mode=mode,
            byte_count=len(data),
            samples=table.total,
            entropy=entropy,
            compression_percent=compression,
            chi_square=chi2,
            degrees_of_freedom=dof,
            p_value=p_value,
            p_value_clamped=clamped,
            p_value_exact=p_exact,
            mean=mean,
            pi_estimate=pi_estimate,
            pi_error_percent=pi_error,
            pi_groups=pi_groups,
            serial_correlation=correlation,
            undefined=undefined,
        )
        return self._result


def analyze(data, bits: bool = False, fold_case: bool = False) -> MetricsResult:
    """One-shot analysis of *data*."""
    return MetricsEngine(data, AnalysisConfig.from_flags(bits, fold_case)).calculate()
