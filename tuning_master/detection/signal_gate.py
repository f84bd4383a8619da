"""Silence and noise rejection for incoming audio blocks."""

import numpy as np

# RMS below this is treated as silence. Tuned for normalized microphone input;
# fixed so that readings stay comparable between versions.
SILENCE_RMS: float = 0.01


def rms(samples: np.ndarray) -> float:
    """Root-mean-square amplitude of a block of samples."""
    if len(samples) == 0:
        return 0.0
    return float(np.sqrt(np.mean(np.square(samples, dtype=np.float64))))


def is_silent(samples: np.ndarray) -> bool:
    """Return True if the block carries no usable signal."""
    return rms(samples) < SILENCE_RMS
