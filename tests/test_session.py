import threading
import time
import unittest

import numpy as np

from tuning_master.core.errors import AudioAcquisitionFailed, ConfigurationInvalid
from tuning_master.core.events import TunerEventType
from tuning_master.detection.pitch_estimator import FundamentalEstimator
from tuning_master.core.presets import BUILTIN_PROFILES, make_profile
from tuning_master.mock_audio_source import MockAudioSource
from tuning_master.note_types import AudioBlock, IDLE_RESULT, InstrumentProfile, NoteIdentity
from tuning_master.scheduler import TickScheduler
from tuning_master.session import SessionState, TuningSession

SAMPLE_RATE = 44100


def tone(frequency, size=4096, amplitude=0.8):
    t = np.arange(size) / SAMPLE_RATE
    return AudioBlock(
        samples=amplitude * np.sin(2 * np.pi * frequency * t), sample_rate=SAMPLE_RATE
    )


def silence(size=4096):
    return AudioBlock(samples=np.zeros(size), sample_rate=SAMPLE_RATE)


class RecordingScheduler:
    """Scheduler stand-in that only fires when the test asks it to."""

    def __init__(self):
        self.callback = None
        self.cancelled = 0

    def register(self, callback):
        self.callback = callback

    def cancel(self):
        self.callback = None
        self.cancelled += 1

    def fire(self):
        if self.callback:
            self.callback()


class StoppingEstimator(FundamentalEstimator):
    """Stops the session while a block is being processed."""

    session = None

    def estimate_block(self, block):
        frequency = super().estimate_block(block)
        self.session.stop()
        return frequency


class SlowEstimator(FundamentalEstimator):
    """Records how many estimates run at the same time."""

    def __init__(self):
        super().__init__()
        self.calls = 0
        self.running = 0
        self.max_running = 0
        self._counter_lock = threading.Lock()

    def estimate_block(self, block):
        with self._counter_lock:
            self.calls += 1
            self.running += 1
            self.max_running = max(self.max_running, self.running)
        time.sleep(0.02)
        with self._counter_lock:
            self.running -= 1
        return super().estimate_block(block)


class TestSessionLifecycle(unittest.TestCase):
    def test_starts_idle(self):
        session = TuningSession()
        self.assertEqual(session.state, SessionState.IDLE)
        self.assertEqual(session.result, IDLE_RESULT)
        self.assertTrue(all(not s.active for s in session.string_results))

    def test_start_and_stop(self):
        source = MockAudioSource()
        session = TuningSession(audio_source=source)
        session.start()
        self.assertTrue(session.is_listening())
        self.assertTrue(source.acquired)

        session.stop()
        self.assertEqual(session.state, SessionState.IDLE)
        self.assertFalse(source.acquired)
        self.assertEqual(source.release_count, 1)

    def test_acquisition_failure_stays_idle(self):
        errors = []
        session = TuningSession(audio_source=MockAudioSource(fail=True))
        session.events.on(TunerEventType.ERROR, errors.append)

        with self.assertRaises(AudioAcquisitionFailed):
            session.start()
        self.assertEqual(session.state, SessionState.IDLE)
        self.assertEqual(len(errors), 1)

    def test_stop_resets_to_idle_result(self):
        session = TuningSession()
        session.start()
        session.tick(tone(440.0))
        self.assertFalse(session.result.is_idle)

        session.stop()
        self.assertEqual(session.result, IDLE_RESULT)
        self.assertEqual(session.result.frequency, 0.0)
        self.assertEqual(session.result.cents, 0.0)
        self.assertTrue(all(not s.active for s in session.string_results))

    def test_stop_twice_is_harmless(self):
        source = MockAudioSource()
        session = TuningSession(audio_source=source)
        session.start()
        session.stop()
        session.stop()
        self.assertEqual(source.release_count, 1)

    def test_tick_ignored_while_idle(self):
        session = TuningSession()
        self.assertEqual(session.tick(tone(440.0)), IDLE_RESULT)
        self.assertEqual(session.result, IDLE_RESULT)


class TestSessionTick(unittest.TestCase):
    def setUp(self):
        self.session = TuningSession()
        self.session.start()

    def test_detects_a4(self):
        result = self.session.tick(tone(440.0))
        self.assertEqual(result.note, NoteIdentity("A", 4))
        self.assertLess(abs(result.cents), 5.0)
        self.assertLess(abs(result.frequency - 440.0), 1.0)

    def test_silence_keeps_previous_result(self):
        first = self.session.tick(tone(440.0))
        after_silence = self.session.tick(silence())
        self.assertIs(after_silence, first)
        self.assertEqual(self.session.result, first)

    def test_silence_before_any_note_stays_idle(self):
        self.assertEqual(self.session.tick(silence()), IDLE_RESULT)

    def test_string_results_for_open_a(self):
        self.session.tick(tone(110.0))
        strings = self.session.string_results
        self.assertEqual(len(strings), 6)
        self.assertEqual([s.active for s in strings], [False, True, False, False, False, False])
        self.assertLess(abs(strings[1].cents), 15.0)

    def test_reference_change_applies_to_next_tick(self):
        in_tune = self.session.tick(tone(440.0))
        self.session.set_reference_pitch(430.0)
        sharp = self.session.tick(tone(440.0))
        self.assertEqual(sharp.note, NoteIdentity("A", 4))
        self.assertGreater(sharp.cents - in_tune.cents, 35.0)

    def test_reference_written_from_another_thread(self):
        writer = threading.Thread(target=self.session.set_reference_pitch, args=(415.0,))
        writer.start()
        writer.join()
        # 440 Hz is A#4 when A4 is 415 Hz
        self.assertEqual(self.session.tick(tone(440.0)).note, NoteIdentity("A#", 4))

    def test_invalid_reference_keeps_previous_value(self):
        for bad in (0, -440, float("nan"), "abc"):
            with self.assertRaises(ConfigurationInvalid):
                self.session.set_reference_pitch(bad)
        self.assertEqual(self.session.reference_pitch, 440.0)

    def test_nudge_reference(self):
        self.assertEqual(self.session.nudge_reference_pitch(1), 441.0)
        self.assertEqual(self.session.nudge_reference_pitch(-2), 439.0)

    def test_profile_change_applies_to_next_tick(self):
        bass = next(p for p in BUILTIN_PROFILES if p.id == "bass-standard")
        self.session.set_profile(bass)
        self.session.tick(tone(110.0))
        self.assertEqual(len(self.session.string_results), 4)

    def test_profile_change_during_silence_updates_strings(self):
        received = []
        self.session.events.on(
            TunerEventType.RESULT_UPDATED, lambda result, strings: received.append(strings)
        )
        self.session.tick(tone(110.0))
        bass = next(p for p in BUILTIN_PROFILES if p.id == "bass-standard")
        self.session.set_profile(bass)
        self.session.tick(silence())

        strings = self.session.string_results
        self.assertEqual([str(s.note) for s in strings], ["E1", "A1", "D2", "G2"])
        # 110 Hz is within 20 Hz of G2 (98 Hz) only
        self.assertEqual([s.active for s in strings], [False, False, False, True])
        self.assertEqual(self.session.result.note, NoteIdentity("A", 2))
        self.assertEqual(len(received[-1]), 4)

    def test_profile_change_rematches_retained_frequency(self):
        self.session.tick(tone(110.0))
        open_a = make_profile("open-a", "Open A", ["E2", "A2", "E3"])
        self.session.set_profile(open_a)
        self.assertEqual([s.active for s in self.session.string_results], [False, True, False])

    def test_empty_profile_rejected(self):
        with self.assertRaises(ConfigurationInvalid):
            self.session.set_profile(InstrumentProfile(id="empty", name="Empty"))
        self.assertEqual(self.session.profile, BUILTIN_PROFILES[0])

    def test_result_event(self):
        received = []
        self.session.events.on(
            TunerEventType.RESULT_UPDATED, lambda result, strings: received.append((result, strings))
        )
        self.session.tick(tone(440.0))
        self.session.tick(silence())
        self.assertEqual(len(received), 1)
        self.assertEqual(received[0][0].note, NoteIdentity("A", 4))

    def test_invalid_block_is_no_signal(self):
        first = self.session.tick(tone(440.0))
        bad = AudioBlock(samples=np.full(4096, np.nan), sample_rate=SAMPLE_RATE)
        self.assertIs(self.session.tick(bad), first)


class TestSessionScheduling(unittest.TestCase):
    def test_trigger_reads_block_and_ticks(self):
        source = MockAudioSource(blocks=[tone(440.0)])
        scheduler = RecordingScheduler()
        session = TuningSession(audio_source=source, scheduler=scheduler)
        session.start()

        scheduler.fire()
        self.assertEqual(source.read_count, 1)
        self.assertEqual(session.result.note, NoteIdentity("A", 4))

    def test_stop_cancels_trigger(self):
        source = MockAudioSource(blocks=[tone(440.0)])
        scheduler = RecordingScheduler()
        session = TuningSession(audio_source=source, scheduler=scheduler)
        session.start()
        session.stop()

        self.assertEqual(scheduler.cancelled, 1)
        scheduler.fire()
        self.assertEqual(source.read_count, 0)

    def test_tick_finishing_after_stop_is_discarded(self):
        estimator = StoppingEstimator()
        session = TuningSession(estimator=estimator)
        estimator.session = session
        received = []
        session.events.on(
            TunerEventType.RESULT_UPDATED, lambda result, strings: received.append(result)
        )
        session.start()

        self.assertEqual(session.tick(tone(440.0)), IDLE_RESULT)
        self.assertEqual(session.state, SessionState.IDLE)
        self.assertEqual(session.result, IDLE_RESULT)
        self.assertEqual(received, [IDLE_RESULT])

    def test_trigger_from_previous_run_is_ignored(self):
        source = MockAudioSource(blocks=[tone(440.0)])
        scheduler = RecordingScheduler()
        session = TuningSession(audio_source=source, scheduler=scheduler)
        session.start()
        stale_trigger = scheduler.callback
        session.stop()
        session.start()

        stale_trigger()
        self.assertEqual(source.read_count, 0)
        self.assertTrue(session.result.is_idle)

        scheduler.fire()
        self.assertEqual(source.read_count, 1)
        self.assertEqual(session.result.note, NoteIdentity("A", 4))

    def test_ticks_do_not_overlap(self):
        estimator = SlowEstimator()
        session = TuningSession(estimator=estimator)
        session.start()
        workers = [threading.Thread(target=session.tick, args=(tone(440.0),)) for _ in range(4)]
        for worker in workers:
            worker.start()
        for worker in workers:
            worker.join()

        self.assertEqual(estimator.calls, 4)
        self.assertEqual(estimator.max_running, 1)

    def test_custom_profile(self):
        profile = make_profile("open-g", "Open G", ["D2", "G2", "D3", "G3", "B3", "D4"])
        session = TuningSession(profile=profile)
        session.start()
        session.tick(tone(98.0))
        self.assertTrue(session.string_results[1].active)

    def test_with_real_scheduler(self):
        source = MockAudioSource(blocks=[tone(440.0)] * 3)
        session = TuningSession(audio_source=source, scheduler=TickScheduler(0.01))
        session.start()
        deadline = time.monotonic() + 2.0
        while session.result.is_idle and time.monotonic() < deadline:
            time.sleep(0.01)
        session.stop()

        self.assertEqual(session.result, IDLE_RESULT)
        self.assertGreaterEqual(source.read_count, 1)


if __name__ == "__main__":
    unittest.main()
