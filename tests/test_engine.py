"""
Tests for the engine module.
"""

import threading
import time
import unittest

from reactor_sim.engine import DelayedExecutor, Sample, SimulationClock
from reactor_sim.thermal import ThermalModel


class TestSimulationClock(unittest.TestCase):
    """Test the fixed-timestep loop."""

    def setUp(self):
        self.model = ThermalModel()
        self.clock = SimulationClock(self.model, dt=0.5)

    def tearDown(self):
        self.clock.stop()
        self.clock.join(timeout=2.0)

    def test_initially_stopped(self):
        """Test the clock starts in the stopped state."""
        self.assertFalse(self.clock.is_running)
        self.assertEqual(self.clock.sim_time, 0.0)

    def test_invalid_dt_raises(self):
        """Test that non-positive time step raises error."""
        with self.assertRaises(ValueError):
            SimulationClock(self.model, dt=0.0)

    def test_sample_times(self):
        """Test the n-th sample is published at n * dt."""
        samples = [self.clock.tick() for _ in range(7)]

        for n, sample in enumerate(samples, start=1):
            self.assertAlmostEqual(sample.sim_time_s, n * 0.5)

        self.assertAlmostEqual(self.clock.sim_time, 3.5)

    def test_sample_matches_model(self):
        """Test the published sample carries the post-step temperatures."""
        sample = self.clock.tick()
        self.assertEqual(sample.core_temp, self.model.core_temp)
        self.assertEqual(sample.coolant_temp, self.model.coolant_temp)

    def test_sample_is_immutable(self):
        """Test samples cannot be modified after publication."""
        sample = self.clock.tick()
        with self.assertRaises(AttributeError):
            sample.core_temp = 0.0

    def test_listeners_receive_samples(self):
        """Test every listener gets every sample in order."""
        received = []
        self.clock.add_listener(received.append)

        self.clock.tick()
        self.clock.tick()

        self.assertEqual([s.sim_time_s for s in received], [0.5, 1.0])

    def test_failing_listener_is_isolated(self):
        """Test a raising listener does not stop publication to others."""
        received = []

        def broken(sample):
            raise RuntimeError("display unavailable")

        self.clock.add_listener(broken)
        self.clock.add_listener(received.append)

        sample = self.clock.tick()

        self.assertEqual(received, [sample])

    def test_remove_listener(self):
        """Test removed listeners stop receiving samples."""
        received = []
        self.clock.add_listener(received.append)
        self.clock.tick()
        self.clock.remove_listener(received.append)
        self.clock.tick()
        self.assertEqual(len(received), 1)

    def test_channel_receives_samples(self):
        """Test queue channels get published samples."""
        channel = self.clock.open_channel()
        sample = self.clock.tick()
        self.assertEqual(channel.get_nowait(), sample)

    def test_full_channel_drops_oldest(self):
        """Test a full channel never blocks the tick and keeps newest samples."""
        channel = self.clock.open_channel(maxsize=2)
        for _ in range(5):
            self.clock.tick()

        times = [channel.get_nowait().sim_time_s for _ in range(channel.qsize())]
        self.assertEqual(times, [2.0, 2.5])

    def test_start_stop_idempotent(self):
        """Test repeated start/stop calls are no-ops."""
        clock = SimulationClock(self.model, dt=0.05)
        try:
            self.assertTrue(clock.start())
            self.assertFalse(clock.start())
            self.assertTrue(clock.is_running)

            self.assertTrue(clock.stop())
            self.assertFalse(clock.stop())
            self.assertFalse(clock.is_running)
        finally:
            clock.stop()
            clock.join(timeout=2.0)

    def test_running_loop_publishes_monotonic_time(self):
        """Test the background loop publishes consecutive multiples of dt."""
        clock = SimulationClock(self.model, dt=0.02)
        channel = clock.open_channel()

        clock.start()
        try:
            samples = [channel.get(timeout=2.0) for _ in range(5)]
        finally:
            clock.stop()
            clock.join(timeout=2.0)

        for n, sample in enumerate(samples, start=1):
            self.assertAlmostEqual(sample.sim_time_s, n * 0.02)

    def test_stop_from_listener(self):
        """Test a listener on the loop thread can stop the clock."""
        clock = SimulationClock(self.model, dt=0.02)
        stopped = threading.Event()

        def stop_after_three(sample):
            if clock.tick_count >= 3:
                clock.stop()
                stopped.set()

        clock.add_listener(stop_after_three)
        clock.start()

        self.assertTrue(stopped.wait(timeout=2.0))
        clock.join(timeout=2.0)
        self.assertFalse(clock.is_running)
        self.assertEqual(clock.tick_count, 3)

    def test_restart_from_listener_keeps_order(self):
        """Test a stop/start inside a listener never reorders the stream."""
        clock = SimulationClock(self.model, dt=0.02)
        times = []
        restarted = []
        enough = threading.Event()

        def restart_once(sample):
            if not restarted:
                restarted.append(sample)
                clock.stop()
                clock.start()
                time.sleep(0.3)

        def record(sample):
            times.append(sample.sim_time_s)
            if len(times) >= 5:
                enough.set()

        clock.add_listener(restart_once)
        clock.add_listener(record)
        clock.start()
        try:
            self.assertTrue(enough.wait(timeout=3.0))
        finally:
            clock.stop()
            clock.join(timeout=2.0)

        self.assertEqual(times, sorted(times))
        for n, sim_time in enumerate(times, start=1):
            self.assertAlmostEqual(sim_time, n * 0.02)

    def test_reset_time(self):
        """Test simulated time restarts from zero."""
        self.clock.tick()
        self.clock.reset_time()
        self.assertEqual(self.clock.tick()[0], 0.5)


class TestDelayedExecutor(unittest.TestCase):
    """Test delayed actions."""

    def setUp(self):
        self.executor = DelayedExecutor()

    def tearDown(self):
        self.executor.shutdown()

    def test_action_runs_after_delay(self):
        """Test scheduled actions fire."""
        fired = threading.Event()
        self.executor.schedule(0, fired.set)

        self.assertTrue(fired.wait(timeout=2.0))
        self.assertTrue(self.executor.wait_idle(timeout=2.0))
        self.assertEqual(self.executor.pending, 0)

    def test_pending_count(self):
        """Test pending timers are tracked until they fire."""
        self.executor.schedule(30, lambda: None)
        self.assertEqual(self.executor.pending, 1)

    def test_shutdown_cancels_pending(self):
        """Test shutdown cancels timers that have not fired."""
        fired = []
        self.executor.schedule(0.5, lambda: fired.append(True))

        self.executor.shutdown()
        time.sleep(0.8)

        self.assertEqual(fired, [])
        self.assertEqual(self.executor.pending, 0)
        self.assertIsNone(self.executor.schedule(0, lambda: None))

    def test_failing_action_is_contained(self):
        """Test an exception in an action does not leak."""
        def broken():
            raise RuntimeError("boom")

        with self.assertLogs("reactor_sim.engine", level="ERROR"):
            self.executor.schedule(0, broken)
            self.assertTrue(self.executor.wait_idle(timeout=2.0))


class TestSample(unittest.TestCase):
    """Test sample structure."""

    def test_fields(self):
        sample = Sample(1.5, 310.0, 291.0)
        self.assertEqual(sample.sim_time_s, 1.5)
        self.assertEqual(tuple(sample), (1.5, 310.0, 291.0))


if __name__ == "__main__":
    unittest.main()
