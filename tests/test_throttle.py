"""
Tests for the Throttle helper.
"""

import threading
import unittest

from theme_color_engine.utils.throttle import Throttle


class TestThrottle(unittest.TestCase):
    """Tests for the Throttle class."""

    def setUp(self):
        self.calls = []

    def test_zero_delay_is_synchronous(self):
        throttle = Throttle(self.calls.append, delay=0)
        for i in range(3):
            throttle(i)
        self.assertEqual(self.calls, [0, 1, 2])
        self.assertFalse(throttle.in_cooldown)

    def test_leading_call_and_pending_trailing_call(self):
        throttle = Throttle(self.calls.append, delay=60)
        throttle("first")
        throttle("second")
        throttle("third")

        self.assertEqual(self.calls, ["first"])
        self.assertTrue(throttle.in_cooldown)

        throttle.flush()
        self.assertEqual(self.calls, ["first", "third"])
        self.assertFalse(throttle.in_cooldown)
        self.assertEqual(throttle.call_count, 2)

    def test_trailing_call_after_cooldown(self):
        done = threading.Event()

        def record(value):
            self.calls.append(value)
            if value == "last":
                done.set()

        throttle = Throttle(record, delay=0.01)
        throttle("first")
        throttle("last")

        self.assertTrue(done.wait(5))
        self.assertEqual(self.calls, ["first", "last"])
        throttle.cancel()

    def test_cancel_drops_pending_call(self):
        throttle = Throttle(self.calls.append, delay=60)
        throttle("first")
        throttle("dropped")
        throttle.cancel()
        throttle.flush()
        self.assertEqual(self.calls, ["first"])


if __name__ == "__main__":
    unittest.main()
