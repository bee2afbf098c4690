import threading
import unittest

from repeater.config import SchedulerConfig
from repeater.timers import ManualTimer, SerialTimer, ThreadTimer, build_timer


class ManualTimerTests(unittest.TestCase):
    def test_fires_in_deadline_then_fifo_order(self):
        timer = ManualTimer()
        order = []
        timer.schedule_callback(2.0, lambda: order.append("late"))
        timer.schedule_callback(1.0, lambda: order.append("first"))
        timer.schedule_callback(1.0, lambda: order.append("second"))

        self.assertEqual(timer.next_deadline(), 1.0)
        self.assertEqual(timer.advance(1.0), 2)
        self.assertEqual(order, ["first", "second"])
        self.assertEqual(timer.advance(1.0), 1)
        self.assertEqual(order, ["first", "second", "late"])
        self.assertIsNone(timer.next_deadline())

    def test_callbacks_scheduled_while_advancing_use_their_firing_time(self):
        timer = ManualTimer()
        seen = []

        def chain():
            seen.append(timer.now)
            if len(seen) < 3:
                timer.schedule_callback(1.5, chain)

        timer.schedule_callback(1.0, chain)
        timer.advance(10.0)
        self.assertEqual(seen, [1.0, 2.5, 4.0])
        self.assertEqual(timer.now, 10.0)

    def test_run_pending_does_not_move_clock(self):
        timer = ManualTimer(start=5.0)
        fired = []
        timer.schedule_callback(1.0, lambda: fired.append(1))
        self.assertEqual(timer.run_pending(), 0)
        self.assertEqual(timer.now, 5.0)
        self.assertEqual(fired, [])

    def test_rejects_negative_advance(self):
        with self.assertRaises(ValueError):
            ManualTimer().advance(-1.0)


class SerialTimerTests(unittest.TestCase):
    def test_runs_callbacks_on_one_thread_in_order(self):
        timer = SerialTimer(thread_name="serial-test")
        done = threading.Event()
        seen = []

        def record(label):
            seen.append((label, threading.current_thread().name))
            if len(seen) == 2:
                done.set()

        try:
            timer.schedule_callback(0.06, lambda: record("b"))
            timer.schedule_callback(0.01, lambda: record("a"))
            self.assertTrue(done.wait(2.0))
        finally:
            timer.close()
        self.assertEqual([label for label, _ in seen], ["a", "b"])
        self.assertEqual({name for _, name in seen}, {"serial-test"})

    def test_failing_callback_does_not_stop_worker(self):
        timer = SerialTimer()
        done = threading.Event()

        def explode():
            raise RuntimeError("boom")

        try:
            with self.assertLogs("repeater.timers.serial", level="ERROR"):
                timer.schedule_callback(0.01, explode)
                timer.schedule_callback(0.02, done.set)
                self.assertTrue(done.wait(2.0))
        finally:
            timer.close()

    def test_close_drops_pending_callbacks(self):
        timer = SerialTimer()
        fired = threading.Event()
        timer.schedule_callback(0.05, fired.set)
        timer.close()
        timer.schedule_callback(0.01, fired.set)
        self.assertFalse(fired.wait(0.2))


class ThreadTimerTests(unittest.TestCase):
    def test_fires_callback(self):
        timer = ThreadTimer()
        fired = threading.Event()
        timer.schedule_callback(0.01, fired.set)
        self.assertTrue(fired.wait(2.0))

    def test_close_cancels_pending(self):
        timer = ThreadTimer()
        fired = threading.Event()
        timer.schedule_callback(0.2, fired.set)
        self.assertEqual(timer.pending(), 1)
        timer.close()
        self.assertEqual(timer.pending(), 0)
        self.assertFalse(fired.wait(0.4))


class BuildTimerTests(unittest.TestCase):
    def test_builds_configured_backend(self):
        self.assertIsInstance(build_timer(SchedulerConfig(timer="serial")), SerialTimer)
        self.assertIsInstance(build_timer(SchedulerConfig(timer="thread")), ThreadTimer)

    def test_unknown_backend(self):
        with self.assertRaises(ValueError):
            build_timer(SchedulerConfig(timer="gevent"))


if __name__ == "__main__":
    unittest.main()
