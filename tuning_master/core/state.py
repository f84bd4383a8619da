"""Thread-safe cells for values shared between user input and the tick loop."""

import math
import threading
from typing import Callable, Generic, Optional, TypeVar

from ..logger import get_logger
from .errors import ConfigurationInvalid

logger = get_logger(__name__)

T = TypeVar("T")


class LiveValue(Generic[T]):
    """A single value written by one thread and read by another.

    Readers always see the most recent complete write. A validator may reject
    a write by raising ConfigurationInvalid, in which case the old value stays.
    """

    def __init__(
        self,
        initial: T,
        validator: Optional[Callable[[T], T]] = None,
        name: str = "value",
    ) -> None:
        self._validator = validator
        self._name = name
        self._lock = threading.Lock()
        self._value = self._validate(initial)

    def _validate(self, value: T) -> T:
        if self._validator is None:
            return value
        return self._validator(value)

    def get(self) -> T:
        with self._lock:
            return self._value

    def set(self, value: T) -> T:
        """Store a new value and return it as stored.

        Raises:
            ConfigurationInvalid: If the validator rejects the value
        """
        try:
            value = self._validate(value)
        except ConfigurationInvalid as e:
            logger.warning(f"Rejected {self._name} update: {e}")
            raise

        with self._lock:
            self._value = value
        logger.debug(f"{self._name} set to {value}")
        return value


def validate_reference_pitch(value) -> float:
    """Accept a positive, finite reference pitch in Hz."""
    try:
        pitch = float(value)
    except (TypeError, ValueError) as e:
        raise ConfigurationInvalid(f"Reference pitch is not a number: {value!r}") from e
    if not math.isfinite(pitch) or pitch <= 0:
        raise ConfigurationInvalid(f"Reference pitch must be positive, got {value!r}")
    return pitch


def validate_profile(profile):
    """Accept an instrument profile with at least one string."""
    if profile is None or not profile.strings:
        raise ConfigurationInvalid("Instrument profile must have at least one string")
    return profile
