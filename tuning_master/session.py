"""Tuning session: ties audio input, pitch detection and note mapping together."""

from __future__ import annotations
import threading
from functools import partial
from enum import Enum
from typing import Any, List, Optional, Tuple

from .logger import get_logger
from .note_types import AudioBlock, InstrumentProfile, StringTuningResult, TuningResult, IDLE_RESULT
from .note_utils import to_note
from .detection.pitch_estimator import FundamentalEstimator
from .detection.target_matcher import TargetMatcher
from .core.errors import AudioAcquisitionFailed
from .core.events import EventEmitter, TunerEventType
from .core.interfaces import IAudioSource, IScheduler
from .core.presets import BUILTIN_PROFILES
from .core.state import LiveValue, validate_profile, validate_reference_pitch

logger = get_logger(__name__)


class SessionState(Enum):
    IDLE = "idle"
    LISTENING = "listening"


class TuningSession:
    """Turns audio blocks into tuning results while listening.

    The reference pitch and the instrument profile live in thread-safe cells
    and are read afresh on every tick, so changes made from another thread
    apply to the next tick. When a block carries no signal the previous
    result is kept, so the display does not drop to idle between notes.

    Results are published through ``events`` as
    ``RESULT_UPDATED(result, string_results)``.
    """

    def __init__(
        self,
        audio_source: Optional[IAudioSource] = None,
        scheduler: Optional[IScheduler] = None,
        reference_pitch: float = 440.0,
        profile: Optional[InstrumentProfile] = None,
        estimator: Optional[FundamentalEstimator] = None,
        matcher: Optional[TargetMatcher] = None,
    ) -> None:
        """Initialize the session in the idle state.

        Args:
            audio_source: Source to pull blocks from, or None when the caller
                feeds blocks to ``tick`` directly
            scheduler: Trigger that calls ``tick`` periodically while listening
            reference_pitch: Frequency of A4 in Hz
            profile: Instrument whose strings are matched, defaults to a
                standard six-string guitar
            estimator: Fundamental frequency estimator
            matcher: String matcher
        """
        self._audio_source = audio_source
        self._scheduler = scheduler
        self._estimator = estimator or FundamentalEstimator()
        self._matcher = matcher or TargetMatcher()

        self._reference = LiveValue(
            reference_pitch, validate_reference_pitch, name="reference pitch"
        )
        self._profile = LiveValue(
            profile or BUILTIN_PROFILES[0], validate_profile, name="instrument profile"
        )

        self.events = EventEmitter()

        # Guards state, handle, generation and the published results
        self._lock = threading.Lock()
        # Serializes ticks so two never overlap
        self._tick_lock = threading.RLock()
        # Bumped on every start so triggers from an earlier run are ignored
        self._generation = 0
        self._state = SessionState.IDLE
        self._handle: Any = None
        self._result: TuningResult = IDLE_RESULT
        self._string_results: List[StringTuningResult] = self._idle_strings()

    # --- Configuration -------------------------------------------------

    @property
    def reference_pitch(self) -> float:
        return self._reference.get()

    def set_reference_pitch(self, value: float) -> float:
        """Change the A4 calibration; takes effect on the next tick.

        Raises:
            ConfigurationInvalid: If the value is not positive
        """
        pitch = self._reference.set(value)
        self._refresh_strings()
        return pitch

    def nudge_reference_pitch(self, delta: float) -> float:
        """Move the reference pitch by ``delta`` Hz (the +/- buttons)."""
        pitch = self._reference.set(self._reference.get() + delta)
        self._refresh_strings()
        return pitch

    @property
    def profile(self) -> InstrumentProfile:
        return self._profile.get()

    def set_profile(self, profile: InstrumentProfile) -> InstrumentProfile:
        """Switch instrument; takes effect on the next tick.

        Raises:
            ConfigurationInvalid: If the profile has no strings
        """
        profile = self._profile.set(profile)
        self._refresh_strings()
        return profile

    def _refresh_strings(self) -> None:
        """Re-match the retained result against the current profile and reference.

        Keeps the per-string results in step with the active profile even when
        no new note arrives.
        """
        with self._lock:
            frequency = None if self._result.is_idle else self._result.frequency
            self._string_results = self._matcher.match_all(
                frequency, self._profile.get().strings, self._reference.get()
            )
            listening = self._state is SessionState.LISTENING
            result, strings = self._result, list(self._string_results)
        if listening:
            self.events.emit(TunerEventType.RESULT_UPDATED, result, strings)

    # --- State ---------------------------------------------------------

    @property
    def state(self) -> SessionState:
        return self._state

    def is_listening(self) -> bool:
        return self._state is SessionState.LISTENING

    @property
    def result(self) -> TuningResult:
        return self._result

    @property
    def string_results(self) -> List[StringTuningResult]:
        return list(self._string_results)

    def snapshot(self) -> Tuple[TuningResult, List[StringTuningResult]]:
        """The latest result and per-string results, read together."""
        with self._lock:
            return self._result, list(self._string_results)

    def _idle_strings(self) -> List[StringTuningResult]:
        return self._matcher.match_all(None, self._profile.get().strings, self._reference.get())

    # --- Lifecycle -----------------------------------------------------

    def start(self) -> None:
        """Start listening.

        Raises:
            AudioAcquisitionFailed: If the audio source cannot be opened; the
                session stays idle
        """
        if self.is_listening():
            logger.warning("Session already listening")
            return

        handle = None
        if self._audio_source is not None:
            try:
                handle = self._audio_source.acquire()
            except AudioAcquisitionFailed as e:
                logger.error(f"Could not acquire audio input: {e}")
                self.events.emit(TunerEventType.ERROR, e)
                raise

        with self._lock:
            self._handle = handle
            self._state = SessionState.LISTENING
            self._generation += 1
            generation = self._generation

        if self._scheduler is not None and self._audio_source is not None:
            self._scheduler.register(partial(self._on_trigger, generation))

        logger.info(f"Listening (reference A4={self.reference_pitch} Hz, {self.profile.name})")
        self.events.emit(TunerEventType.STATE_CHANGED, SessionState.LISTENING)

    def stop(self) -> None:
        """Stop listening and reset to the idle result. Does not wait for a running tick."""
        with self._lock:
            if self._state is SessionState.IDLE:
                return
            self._state = SessionState.IDLE
            handle, self._handle = self._handle, None
            self._result = IDLE_RESULT
            self._string_results = self._idle_strings()

        if self._scheduler is not None:
            self._scheduler.cancel()
        if self._audio_source is not None:
            self._audio_source.release(handle)

        logger.info("Stopped listening")
        self.events.emit(TunerEventType.STATE_CHANGED, SessionState.IDLE)
        self.events.emit(TunerEventType.RESULT_UPDATED, IDLE_RESULT, self.string_results)

    def _on_trigger(self, generation: int) -> None:
        with self._lock:
            if self._state is not SessionState.LISTENING or generation != self._generation:
                return
            handle = self._handle
        self.tick(self._audio_source.read_block(handle))

    # --- Processing ----------------------------------------------------

    def tick(self, block: AudioBlock) -> TuningResult:
        """Process one block and return the current result.

        Ignored while idle. A block without signal leaves the previous result
        in place.
        """
        with self._tick_lock:
            return self._tick(block)

    def _tick(self, block: AudioBlock) -> TuningResult:
        with self._lock:
            if self._state is not SessionState.LISTENING:
                logger.debug("Tick ignored while idle")
                return self._result
            generation = self._generation

        reference = self._reference.get()
        frequency = self._estimator.estimate_block(block)
        if frequency is None:
            return self._result

        note, cents = to_note(frequency, reference)
        result = TuningResult(note=note, cents=cents, frequency=frequency)

        with self._lock:
            # stop() (and maybe a new start()) ran while this block was processed
            if self._state is not SessionState.LISTENING or generation != self._generation:
                return self._result
            profile = self._profile.get()
            strings = self._matcher.match_all(frequency, profile.strings, self._reference.get())
            self._result = result
            self._string_results = strings

        logger.debug(f"{note} {cents:+.1f} cents ({frequency:.2f}Hz)")
        self.events.emit(TunerEventType.RESULT_UPDATED, result, list(strings))
        return result
