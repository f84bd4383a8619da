"""Fundamental frequency estimation by time-domain autocorrelation."""

from __future__ import annotations
from typing import Optional, ClassVar, TypeAlias

import numpy as np

from ..logger import get_logger
from ..core.errors import InvalidBlock
from .signal_gate import is_silent, rms

logger = get_logger(__name__)


def validate_block(
    samples, sample_rate: int, expected_size: Optional[int] = None
) -> np.ndarray:
    """Check an audio block and return it as a 1-D float64 array.

    Args:
        samples: Sequence of samples in [-1.0, 1.0]
        sample_rate: Capture sample rate in Hz
        expected_size: Required block length, or None to accept any length

    Raises:
        InvalidBlock: If the block is empty, not 1-D, of the wrong length,
            contains NaN/inf, or the sample rate is not positive
    """
    if not sample_rate or sample_rate <= 0:
        raise InvalidBlock(f"Sample rate must be positive, got {sample_rate}")

    try:
        data = np.asarray(samples, dtype=np.float64)
    except (TypeError, ValueError) as e:
        raise InvalidBlock(f"Samples are not numeric: {e}") from e

    if data.ndim != 1:
        raise InvalidBlock(f"Expected a mono 1-D block, got shape {data.shape}")
    if data.size == 0:
        raise InvalidBlock("Empty block")
    if expected_size is not None and data.size != expected_size:
        raise InvalidBlock(f"Expected {expected_size} samples, got {data.size}")
    if not np.all(np.isfinite(data)):
        raise InvalidBlock("Block contains non-finite samples")

    return data


class FundamentalEstimator:
    """Estimates the fundamental frequency of a block of audio.

    The block is gated on RMS, trimmed of its leading and trailing partial
    cycles, autocorrelated, and the first correlation peak after the zero-lag
    slope is refined with parabolic interpolation. Every call is independent.
    """

    # Type aliases
    Frequency: TypeAlias = float

    # Samples quieter than this mark where a partial cycle ends at each edge
    TRIM_THRESHOLD: ClassVar[float] = 0.2
    # Fewer points than this cannot hold a peak with two neighbours
    MIN_LENGTH: ClassVar[int] = 3

    def __init__(self, expected_block_size: Optional[int] = None) -> None:
        """Initialize the estimator.

        Args:
            expected_block_size: If set, blocks of any other length are rejected
        """
        self._expected_block_size = expected_block_size

    def estimate(self, samples, sample_rate: int) -> Optional[Frequency]:
        """Estimate the fundamental frequency of a block.

        Args:
            samples: Mono samples in [-1.0, 1.0]
            sample_rate: Capture sample rate in Hz

        Returns:
            Frequency in Hz, or None when there is no usable signal
        """
        try:
            data = validate_block(samples, sample_rate, self._expected_block_size)
        except InvalidBlock as e:
            logger.debug(f"Discarding block: {e}")
            return None

        if is_silent(data):
            logger.debug(f"Silent block (rms={rms(data):.4f})")
            return None

        trimmed = self._trim_edges(data)
        if len(trimmed) < self.MIN_LENGTH:
            logger.debug(f"Trimmed block too short ({len(trimmed)} samples)")
            return None

        period = self._find_period(self._autocorrelate(trimmed))
        if period is None or period <= 0:
            return None

        frequency = sample_rate / period
        logger.debug(
            f"Estimated {frequency:.2f}Hz (period={period:.3f} samples, "
            f"trimmed length={len(trimmed)})"
        )
        return float(frequency)

    def estimate_block(self, block) -> Optional[Frequency]:
        """Estimate the fundamental frequency of an AudioBlock."""
        return self.estimate(block.samples, block.sample_rate)

    def _trim_edges(self, data: np.ndarray) -> np.ndarray:
        """Drop the partial cycles at both edges of the block.

        The start moves to the first quiet sample in the first half; the end
        moves to the last quiet sample in the second half (exclusive). An edge
        with no quiet sample is left where it is.
        """
        size = len(data)
        half = size // 2
        quiet = np.abs(data) < self.TRIM_THRESHOLD

        start = 0
        head = np.flatnonzero(quiet[:half])
        if head.size:
            start = int(head[0])

        end = size
        tail_start = size - half + 1
        tail = np.flatnonzero(quiet[tail_start:])
        if tail.size:
            end = tail_start + int(tail[-1])

        return data[start:end]

    @staticmethod
    def _autocorrelate(buf: np.ndarray) -> np.ndarray:
        """Unnormalized autocorrelation c[lag] = sum(buf[j] * buf[j + lag]), lag >= 0."""
        return np.correlate(buf, buf, mode="full")[len(buf) - 1:]

    def _find_period(self, corr: np.ndarray) -> Optional[float]:
        """Locate the dominant period in samples, refined to sub-sample accuracy."""
        size = len(corr)

        # Walk down the zero-lag peak into the first trough
        lag = 0
        while lag < size - 1 and corr[lag] > corr[lag + 1]:
            lag += 1
        if lag >= size - 1:
            logger.debug("Correlation never rises after zero lag")
            return None

        peak = lag + int(np.argmax(corr[lag:]))
        if peak < 1 or peak > size - 2:
            logger.debug(f"Correlation peak at lag {peak} has no neighbours")
            return None

        left, centre, right = corr[peak - 1], corr[peak], corr[peak + 1]
        curvature = left + right - 2 * centre
        period = float(peak)
        if curvature != 0:
            period -= (right - left) / (2 * curvature)
        return period
