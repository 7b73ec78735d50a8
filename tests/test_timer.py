"""
Tests for tick scheduling.
"""

import threading
import unittest

from quiz.timer import ManualTicker, ThreadedTicker, TimerHandle


class TestTimerHandle(unittest.TestCase):

    def test_cancel_stops_firing(self):
        fired = []
        handle = TimerHandle(lambda: fired.append(1))
        handle.fire()
        handle.cancel()
        handle.fire()
        self.assertEqual(fired, [1])
        self.assertFalse(handle.active)

    def test_cancel_is_idempotent(self):
        cancelled = []
        handle = TimerHandle(lambda: None, on_cancel=cancelled.append)
        handle.cancel()
        handle.cancel()
        self.assertEqual(cancelled, [handle])


class TestManualTicker(unittest.TestCase):

    def test_advance_fires_each_unit(self):
        ticker = ManualTicker()
        fired = []
        ticker.schedule(lambda: fired.append(1))
        ticker.advance(3)
        self.assertEqual(len(fired), 3)

    def test_cancelled_handle_is_forgotten(self):
        ticker = ManualTicker()
        handle = ticker.schedule(lambda: None)
        self.assertEqual(ticker.live_handles, 1)
        handle.cancel()
        self.assertEqual(ticker.live_handles, 0)

    def test_cancel_during_advance(self):
        ticker = ManualTicker()
        fired = []

        def on_tick():
            fired.append(1)
            if len(fired) == 2:
                handle.cancel()

        handle = ticker.schedule(on_tick)
        ticker.advance(5)
        self.assertEqual(len(fired), 2)


class TestThreadedTicker(unittest.TestCase):

    def test_ticks_until_cancelled(self):
        ticker = ThreadedTicker(interval=0.01)
        done = threading.Event()
        fired = []

        def on_tick():
            fired.append(1)
            if len(fired) >= 3:
                done.set()

        handle = ticker.schedule(on_tick)
        self.assertTrue(done.wait(5.0))
        handle.cancel()
        self.assertFalse(handle.active)

    def test_failing_callback_cancels_handle(self):
        ticker = ThreadedTicker(interval=0.01)
        raised = threading.Event()

        def on_tick():
            raised.set()
            raise RuntimeError("boom")

        handle = ticker.schedule(on_tick)
        self.assertTrue(raised.wait(5.0))
        for _ in range(500):
            if not handle.active:
                break
            threading.Event().wait(0.01)
        self.assertFalse(handle.active)


if __name__ == "__main__":
    unittest.main()
