"""
Simulation Engine

This module provides the real-time machinery of the simulator:
- Sample: immutable snapshot published once per tick
- SimulationClock: fixed-timestep loop that integrates the thermal model
  and publishes samples to listeners and queue channels
- DelayedExecutor: timers used to restore control inputs after a delay
"""

from typing import Callable, List, NamedTuple, Optional
import logging
import queue
import threading

from .constants import PlantDefaults
from .thermal import ThermalModel

logger = logging.getLogger(__name__)


class Sample(NamedTuple):
    """State published after one tick."""

    sim_time_s: float
    core_temp: float
    coolant_temp: float


SampleListener = Callable[[Sample], None]


class SimulationClock:
    """
    Fixed-timestep simulation loop.

    While running, each iteration integrates one step, publishes a Sample
    with ``sim_time = n * dt`` and then waits ``dt`` seconds of wall-clock
    time. ``stop()`` takes effect at the next iteration boundary.
    """

    def __init__(
        self,
        model: ThermalModel,
        dt: float = PlantDefaults.TIME_STEP,
        channel_size: int = 1000,
    ):
        """
        Initialize the clock.

        Args:
            model: Thermal model to advance
            dt: Time step and pacing interval [s]
            channel_size: Capacity of each sample channel
        """
        if not dt > 0:
            raise ValueError(f"Time step must be positive, got {dt}")

        self.model = model
        self.dt = dt
        self.channel_size = channel_size

        self._ticks = 0
        self._listeners = ()
        self._channels = ()
        self._subscribers_lock = threading.Lock()
        self._state_lock = threading.Lock()
        self._tick_lock = threading.RLock()
        self._stop_event = None
        self._thread = None

    @property
    def is_running(self) -> bool:
        stop_event = self._stop_event
        return stop_event is not None and not stop_event.is_set()

    @property
    def tick_count(self) -> int:
        return self._ticks

    @property
    def sim_time(self) -> float:
        """Simulated time of the last published sample [s]."""
        return self._ticks * self.dt

    def add_listener(self, listener: SampleListener):
        """Register a callback invoked with every published Sample."""
        if listener is None:
            return
        with self._subscribers_lock:
            self._listeners = self._listeners + (listener,)

    def remove_listener(self, listener: SampleListener):
        with self._subscribers_lock:
            self._listeners = tuple(l for l in self._listeners if l != listener)

    def open_channel(self, maxsize: Optional[int] = None) -> queue.Queue:
        """
        Open a queue that receives every published Sample.

        The tick loop never blocks on a channel: when it is full the
        oldest sample is dropped.
        """
        channel = queue.Queue(maxsize=maxsize or self.channel_size)
        with self._subscribers_lock:
            self._channels = self._channels + (channel,)
        return channel

    def close_channel(self, channel: queue.Queue):
        with self._subscribers_lock:
            self._channels = tuple(c for c in self._channels if c is not channel)

    def start(self) -> bool:
        """
        Start the tick loop in a background thread.

        Returns:
            True if the loop was started, False if it was already running
        """
        with self._state_lock:
            if self.is_running:
                return False

            stop_event = threading.Event()
            self._stop_event = stop_event
            self._thread = threading.Thread(
                target=self._run_loop,
                args=(stop_event,),
                name="SimulationClock",
                daemon=True,
            )
            self._thread.start()

        logger.info("Simulation clock started (dt=%.3f s)", self.dt)
        return True

    def stop(self) -> bool:
        """
        Request the loop to stop at the next iteration boundary.

        Returns:
            True if the loop was running, False otherwise
        """
        with self._state_lock:
            if not self.is_running:
                return False
            self._stop_event.set()

        logger.info("Simulation clock stopped at t=%.1f s", self.sim_time)
        return True

    def join(self, timeout: Optional[float] = None):
        """Wait for the loop thread to exit. No-op on the loop thread itself."""
        thread = self._thread
        if thread is None or thread is threading.current_thread():
            return
        thread.join(timeout)

    def reset_time(self):
        """Restart simulated time from zero."""
        with self._tick_lock:
            self._ticks = 0

    def tick(self) -> Sample:
        """
        Run one integrate-and-publish cycle.

        Returns:
            The published Sample
        """
        # Tick n is fully delivered before tick n+1 is computed, also across
        # a stop/start that hands the loop over to a new thread.
        with self._tick_lock:
            core_temp, coolant_temp = self.model.step(self.dt)
            self._ticks += 1
            sample = Sample(self._ticks * self.dt, core_temp, coolant_temp)
            self._publish(sample)

        return sample

    def _publish(self, sample: Sample):
        listeners = self._listeners
        channels = self._channels

        for channel in channels:
            self._offer(channel, sample)

        for listener in listeners:
            try:
                listener(sample)
            except Exception:
                logger.debug("Listener %r failed on %s", listener, sample, exc_info=True)

    @staticmethod
    def _offer(channel: queue.Queue, sample: Sample):
        while True:
            try:
                channel.put_nowait(sample)
                return
            except queue.Full:
                try:
                    channel.get_nowait()
                except queue.Empty:
                    pass

    def _run_loop(self, stop_event: threading.Event):
        while not stop_event.is_set():
            self.tick()
            stop_event.wait(self.dt)


class DelayedExecutor:
    """
    Runs callbacks after a delay on independent timers.

    Timers keep running when the simulation clock stops; only
    ``shutdown()`` cancels the ones still pending.
    """

    def __init__(self):
        self._timers: List[threading.Timer] = []
        self._lock = threading.Lock()
        self._shutdown = False

    @property
    def pending(self) -> int:
        """Number of timers that have not fired yet."""
        with self._lock:
            return len(self._timers)

    def schedule(self, delay: float, action: Callable[[], None]) -> Optional[threading.Timer]:
        """
        Run an action after a delay.

        Args:
            delay: Delay [s]
            action: Callable with no arguments

        Returns:
            The started timer, or None after shutdown
        """
        with self._lock:
            if self._shutdown:
                logger.warning("Executor is shut down, dropping delayed action %r", action)
                return None

            timer = threading.Timer(max(0.0, delay), self._fire, args=(action,))
            timer.daemon = True
            timer.name = "DelayedExecutor"
            self._timers.append(timer)
            timer.start()

        return timer

    def _fire(self, action: Callable[[], None]):
        try:
            action()
        except Exception:
            logger.exception("Delayed action %r failed", action)
        finally:
            current = threading.current_thread()
            with self._lock:
                if current in self._timers:
                    self._timers.remove(current)

    def wait_idle(self, timeout: Optional[float] = None) -> bool:
        """
        Wait until every scheduled timer has fired.

        Args:
            timeout: Maximum time to wait per timer [s]

        Returns:
            True if no timer is pending afterwards
        """
        while True:
            with self._lock:
                timers = list(self._timers)
            if not timers:
                return True
            for timer in timers:
                timer.join(timeout)
                if timer.is_alive():
                    return False

    def shutdown(self):
        """Cancel all pending timers and refuse new ones."""
        with self._lock:
            self._shutdown = True
            timers = list(self._timers)
            self._timers.clear()

        for timer in timers:
            timer.cancel()

        if timers:
            logger.info("Cancelled %d pending delayed action(s)", len(timers))
