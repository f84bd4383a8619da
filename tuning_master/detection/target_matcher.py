"""Matching a detected pitch against the strings of an instrument."""

from typing import ClassVar, List, Optional, Sequence

from ..logger import get_logger
from ..note_types import NoteIdentity, StringTuningResult
from ..note_utils import cents_between, note_frequency

logger = get_logger(__name__)


class TargetMatcher:
    """Reports, for every target note, whether the detected pitch is near it.

    The window is an absolute band in Hz rather than a musical interval, so
    it is several semitones wide around low strings (20 Hz at E2 is roughly
    four semitones) and much narrower near the top of the range. Targets are
    matched independently: two strings may both be active for one pitch.
    """

    WINDOW_HZ: ClassVar[float] = 20.0

    def __init__(self, window_hz: Optional[float] = None) -> None:
        self._window_hz = self.WINDOW_HZ if window_hz is None else window_hz

    @property
    def window_hz(self) -> float:
        return self._window_hz

    def match(
        self, frequency: Optional[float], target: NoteIdentity, reference_pitch: float
    ) -> StringTuningResult:
        """Compare a detected frequency (None for no signal) with one target note."""
        if frequency is None:
            return StringTuningResult(note=target, active=False)

        target_freq = note_frequency(target, reference_pitch)
        if abs(frequency - target_freq) >= self._window_hz:
            return StringTuningResult(note=target, active=False)

        cents = cents_between(frequency, target_freq)
        logger.debug(
            f"{frequency:.2f}Hz near {target} ({target_freq:.2f}Hz): {cents:+.1f} cents"
        )
        return StringTuningResult(note=target, active=True, cents=cents)

    def match_all(
        self,
        frequency: Optional[float],
        targets: Sequence[NoteIdentity],
        reference_pitch: float,
    ) -> List[StringTuningResult]:
        """Match every target, returning one result per target in the same order."""
        return [self.match(frequency, target, reference_pitch) for target in targets]
