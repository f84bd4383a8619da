"""Core components for the Tuning Master application."""

# Import interfaces and errors for easier access
from .errors import (
    TunerError,
    AudioAcquisitionFailed,
    InvalidBlock,
    ConfigurationInvalid,
)
from .interfaces import IAudioSource, IScheduler, IPresetStore

__all__ = [
    "TunerError",
    "AudioAcquisitionFailed",
    "InvalidBlock",
    "ConfigurationInvalid",
    "IAudioSource",
    "IScheduler",
    "IPresetStore",
]
