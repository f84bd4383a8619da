"""Display strategies: pure functions from tuning results to render models.

Each tuner mode reads the same ``TuningResult``; the polyphonic mode also
reads the per-string results. Renderers only draw what these return.
"""

import math
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Sequence, Tuple, Union

from .note_types import StringTuningResult, TuningResult


class DisplayMode(Enum):
    CHROMATIC = "chromatic"
    POLYPHONIC = "polyphonic"
    STROBE = "strobe"


NEEDLE_MAX_DEGREES = 45.0
NEEDLE_IN_TUNE_CENTS = 3.0
STRING_IN_TUNE_CENTS = 5.0
STROBE_FULL_SPEED_CENTS = 50.0
STROBE_BAND_FACTORS: Tuple[float, ...] = (1.0, 1.5, 0.75)


@dataclass(frozen=True)
class Readout:
    """Note name, octave and cents label shared by every mode."""

    note: str  # '--' while idle
    octave: Optional[int]
    cents_label: str
    in_tune: bool


@dataclass(frozen=True)
class NeedleModel:
    readout: Readout
    rotation: float  # Degrees, clamped to +/-45
    in_tune: bool


@dataclass(frozen=True)
class StrobeBand:
    speed: float  # Revolutions per second
    direction: str  # 'sharp' or 'flat'

    @property
    def period(self) -> float:
        """Seconds per revolution, 0 when stopped."""
        return 0.0 if self.speed == 0 else 1 / abs(self.speed)


@dataclass(frozen=True)
class StrobeModel:
    readout: Readout
    bands: Tuple[StrobeBand, ...]


@dataclass(frozen=True)
class StringBar:
    label: str
    cents: float
    active: bool
    in_tune: bool
    offset: float  # Vertical displacement, negative when sharp


@dataclass(frozen=True)
class PolyphonicModel:
    readout: Readout
    strings: Tuple[StringBar, ...]


RenderModel = Union[NeedleModel, StrobeModel, PolyphonicModel]


def cents_label(cents: float) -> str:
    """'+12 cents' when sharp, '-7 cents' when flat; cents are floored."""
    sign = "+" if cents > 0 else ""
    return f"{sign}{math.floor(cents)} cents"


def readout(result: TuningResult) -> Readout:
    if result.note is None:
        return Readout(note="--", octave=None, cents_label=cents_label(0.0), in_tune=False)
    return Readout(
        note=result.note.name,
        octave=result.note.octave,
        cents_label=cents_label(result.cents),
        in_tune=abs(result.cents) < NEEDLE_IN_TUNE_CENTS,
    )


def chromatic_needle(result: TuningResult) -> NeedleModel:
    rotation = max(-NEEDLE_MAX_DEGREES, min(NEEDLE_MAX_DEGREES, result.cents))
    return NeedleModel(
        readout=readout(result),
        rotation=rotation,
        in_tune=abs(result.cents) < NEEDLE_IN_TUNE_CENTS,
    )


def strobe(result: TuningResult) -> StrobeModel:
    speed = abs(result.cents) / STROBE_FULL_SPEED_CENTS
    direction = "sharp" if result.cents > 0 else "flat"
    return StrobeModel(
        readout=readout(result),
        bands=tuple(StrobeBand(speed=speed * f, direction=direction) for f in STROBE_BAND_FACTORS),
    )


def polyphonic(
    result: TuningResult, strings: Sequence[StringTuningResult]
) -> PolyphonicModel:
    bars = tuple(
        StringBar(
            label=s.note.name,
            cents=s.cents,
            active=s.active,
            in_tune=s.active and abs(s.cents) < STRING_IN_TUNE_CENTS,
            offset=-s.cents,
        )
        for s in strings
    )
    return PolyphonicModel(readout=readout(result), strings=bars)


def build_display(
    mode: DisplayMode,
    result: TuningResult,
    strings: Sequence[StringTuningResult] = (),
) -> RenderModel:
    """Build the render model for ``mode``."""
    mode = DisplayMode(mode)
    if mode is DisplayMode.CHROMATIC:
        return chromatic_needle(result)
    if mode is DisplayMode.STROBE:
        return strobe(result)
    return polyphonic(result, strings)


def mode_names() -> List[str]:
    return [m.value for m in DisplayMode]
