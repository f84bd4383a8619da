import threading
import time
import unittest

from tuning_master.core.events import EventEmitter
from tuning_master.scheduler import TickScheduler


class TestTickScheduler(unittest.TestCase):
    def test_calls_until_cancelled(self):
        calls = []
        fired = threading.Event()

        def callback():
            calls.append(time.monotonic())
            if len(calls) >= 3:
                fired.set()

        scheduler = TickScheduler(0.005)
        scheduler.register(callback)
        self.assertTrue(fired.wait(2.0))
        scheduler.cancel()
        self.assertFalse(scheduler.is_running())

        time.sleep(0.05)
        count = len(calls)
        time.sleep(0.05)
        self.assertEqual(len(calls), count)

    def test_cancel_from_callback_does_not_block(self):
        scheduler = TickScheduler(0.005)
        done = threading.Event()

        def callback():
            scheduler.cancel()
            done.set()

        scheduler.register(callback)
        self.assertTrue(done.wait(2.0))

    def test_failing_callback_keeps_running(self):
        calls = []
        fired = threading.Event()

        def callback():
            calls.append(1)
            if len(calls) >= 2:
                fired.set()
            raise RuntimeError("boom")

        scheduler = TickScheduler(0.005)
        scheduler.register(callback)
        self.assertTrue(fired.wait(2.0))
        scheduler.cancel()

    def test_invalid_interval(self):
        with self.assertRaises(ValueError):
            TickScheduler(0)


class TestEventEmitter(unittest.TestCase):
    def test_listener_errors_are_isolated(self):
        emitter = EventEmitter()
        received = []

        def broken(value):
            raise RuntimeError("listener failed")

        emitter.on("tick", broken)
        emitter.on("tick", received.append)
        emitter.emit("tick", 1)
        self.assertEqual(received, [1])

        emitter.off("tick", received.append)
        emitter.emit("tick", 2)
        self.assertEqual(received, [1])


if __name__ == "__main__":
    unittest.main()
