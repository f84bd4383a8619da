"""Defines the core interfaces for the Tuning Master application."""

from __future__ import annotations
from abc import ABC, abstractmethod
from typing import Any, Callable, List, Sequence

from ..note_types import AudioBlock, InstrumentProfile


class IAudioSource(ABC):
    """Interface for audio sources that hand out the latest window of samples."""

    @abstractmethod
    def acquire(self) -> Any:
        """Open the source and return a handle.

        Raises:
            AudioAcquisitionFailed: If the source cannot be opened
        """
        pass

    @abstractmethod
    def read_block(self, handle: Any) -> AudioBlock:
        """Return the most recent fixed-size window of samples."""
        pass

    @abstractmethod
    def release(self, handle: Any) -> None:
        """Close the source."""
        pass


class IScheduler(ABC):
    """Interface for the periodic trigger that drives processing ticks."""

    @abstractmethod
    def register(self, callback: Callable[[], None]) -> None:
        """Start calling ``callback`` at the scheduler's cadence."""
        pass

    @abstractmethod
    def cancel(self) -> None:
        """Stop calling the callback. Must not block."""
        pass


class IPresetStore(ABC):
    """Interface for persistence of instrument profiles."""

    @abstractmethod
    def load(self) -> List[InstrumentProfile]:
        """Return all known profiles."""
        pass

    @abstractmethod
    def save(self, profiles: Sequence[InstrumentProfile]) -> None:
        """Persist the given profiles, keyed by id."""
        pass
