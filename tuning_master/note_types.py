"""Type definitions for the Tuning Master project."""

from dataclasses import dataclass, field
from typing import Optional, Tuple

import numpy as np


@dataclass(frozen=True)
class AudioBlock:
    """A window of mono samples in [-1.0, 1.0] captured at ``sample_rate``."""

    samples: np.ndarray
    sample_rate: int  # Hz

    def __len__(self):
        return len(self.samples)


@dataclass(frozen=True)
class NoteIdentity:
    """A semitone class (sharp spelling) plus an octave in SPN."""

    name: str  # One of NOTE_NAMES, e.g. 'A#'
    octave: int  # e.g. 4 for A4

    def __str__(self):
        return f"{self.name}{self.octave}"


@dataclass(frozen=True)
class TuningResult:
    """What the renderer shows for the current tick.

    ``note`` is None and ``frequency`` is 0.0 while idle or before the first
    detection.
    """

    note: Optional[NoteIdentity] = None
    cents: float = 0.0
    frequency: float = 0.0

    @property
    def is_idle(self) -> bool:
        return self.note is None


IDLE_RESULT = TuningResult()


@dataclass(frozen=True)
class StringTuningResult:
    """Proximity of the detected pitch to one string of the active instrument."""

    note: NoteIdentity  # The string's target note
    active: bool  # False: pitch is not near this string, cents is 0
    cents: float = 0.0


@dataclass(frozen=True)
class InstrumentProfile:
    """An ordered list of string target notes, e.g. a guitar tuning."""

    id: str
    name: str
    strings: Tuple[NoteIdentity, ...] = field(default_factory=tuple)
    is_user_defined: bool = False

    def __str__(self):
        return f"{self.name} ({' '.join(str(s) for s in self.strings)})"
