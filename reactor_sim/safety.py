"""
Safety System

Monitors every published sample against caution and critical core
temperature thresholds and performs the protective actions:
- SCRAM: full insertion of the control rods
- Emergency coolant injection: temporary flow boost, restored after a delay
- Automatic shutdown: stops the simulation clock on a critical breach
"""

from dataclasses import dataclass
from typing import Callable, Optional
import logging
import math
import threading

from .constants import (
    SAFETY_DEFAULTS,
    STATUS_CRITICAL,
    STATUS_EMERGENCY_COOLANT,
    STATUS_RUNNING,
    STATUS_SCRAMMED,
    STATUS_STOPPED,
    STATUS_WARNING,
)
from .engine import DelayedExecutor, Sample, SimulationClock
from .events import EventLog
from .thermal import ThermalModel
from .utils import clamp_non_negative, whole_seconds

logger = logging.getLogger(__name__)


@dataclass
class SafetyConfig:
    """
    Runtime-adjustable safety parameters.

    Attributes:
        caution_temp: Core temperature raising a warning [°C]
        critical_temp: Core temperature triggering automatic protection [°C]
        auto_shutdown_enabled: Whether threshold monitoring is active
        emergency_flow: Flow applied by emergency injection [kg/s]
        emergency_duration: Duration of emergency injection [s]
    """

    caution_temp: float = SAFETY_DEFAULTS["caution_temp"]
    critical_temp: float = SAFETY_DEFAULTS["critical_temp"]
    auto_shutdown_enabled: bool = SAFETY_DEFAULTS["auto_shutdown_enabled"]
    emergency_flow: float = SAFETY_DEFAULTS["emergency_flow"]
    emergency_duration: float = SAFETY_DEFAULTS["emergency_duration"]


class SafetyMonitor:
    """
    Threshold monitor and protective actions.

    Registered as a listener on the SimulationClock, so ``on_sample`` runs
    on the tick thread right after each sample is published.
    """

    def __init__(
        self,
        model: ThermalModel,
        clock: SimulationClock,
        executor: DelayedExecutor,
        event_log: EventLog,
        config: Optional[SafetyConfig] = None,
    ):
        self.model = model
        self.clock = clock
        self.executor = executor
        self.event_log = event_log
        self.config = config if config is not None else SafetyConfig()

        self._status = ""
        self._status_listeners = ()
        self._lock = threading.Lock()

    # ------------------------------------------------------------------
    # Status
    # ------------------------------------------------------------------

    @property
    def status(self) -> str:
        return self._status

    def add_status_listener(self, listener: Callable[[str], None]):
        """Register a callback invoked on every status report."""
        with self._lock:
            self._status_listeners = self._status_listeners + (listener,)

    def run_state_status(self) -> str:
        return STATUS_RUNNING if self.clock.is_running else STATUS_STOPPED

    def _report(self, status: str):
        self._status = status
        for listener in self._status_listeners:
            try:
                listener(status)
            except Exception:
                logger.debug("Status listener %r failed", listener, exc_info=True)

    def clear_status(self):
        self._report("")

    # ------------------------------------------------------------------
    # Monitoring
    # ------------------------------------------------------------------

    def on_sample(self, sample: Sample):
        """
        Evaluate one published sample against the thresholds.

        With auto-shutdown disabled only the run state is reported.

        Args:
            sample: Latest published sample
        """
        config = self.config
        if not config.auto_shutdown_enabled:
            self._report(self.run_state_status())
            return

        core_temp = sample.core_temp

        if core_temp >= config.critical_temp:
            self.event_log.append(
                f"CRITICAL: core temp {core_temp:.2f} >= {config.critical_temp:.1f}"
                " - initiating SCRAM & emergency actions"
            )
            self.scram()
            self.emergency_inject(config.emergency_duration, config.emergency_flow)
            self.clock.stop()
            self._report(STATUS_CRITICAL)
        elif core_temp >= config.caution_temp:
            self.event_log.append(
                f"CAUTION: core temp {core_temp:.2f} >= {config.caution_temp:.1f}"
            )
            self._report(STATUS_WARNING)
        else:
            self._report(self.run_state_status())

    __call__ = on_sample

    # ------------------------------------------------------------------
    # Protective actions
    # ------------------------------------------------------------------

    def scram(self):
        """Fully insert the control rods."""
        self.model.set_control_rod_position(1.0)
        self.event_log.append("SCRAM executed: rods inserted (pos=1.0)")
        self._report(STATUS_SCRAMMED)

    def emergency_inject(self, duration: float, flow: float) -> Optional[threading.Timer]:
        """
        Boost coolant flow for a limited time.

        The flow in effect now is restored once the duration has elapsed.
        A restoration still pending from an earlier injection will later
        re-apply that earlier value.

        Args:
            duration: Injection duration [s]
            flow: Injected flow rate [kg/s]

        Returns:
            Timer that restores the previous flow, or None for an infinite
            duration
        """
        seconds = whole_seconds(duration)
        flow = clamp_non_negative(flow)
        previous_flow = self.model.flow_rate

        self.model.set_flow_rate(flow)
        period = "indefinitely" if seconds is None else f"for {seconds}s"
        self.event_log.append(
            f"Emergency coolant injected: flow set to {flow:.1f} kg/s {period}"
        )
        self._report(STATUS_EMERGENCY_COOLANT)

        def restore():
            self.model.set_flow_rate(previous_flow)
            self.event_log.append(f"Emergency coolant restored to {previous_flow:.1f} kg/s")
            self._report(self.run_state_status())

        if seconds is None:
            return None
        return self.executor.schedule(seconds, restore)

    # ------------------------------------------------------------------
    # Parameter setters
    # ------------------------------------------------------------------

    def set_caution_temp(self, temp: float):
        self.config.caution_temp = float(temp)
        self.event_log.append(f"Caution temp set to {self.config.caution_temp}")

    def set_critical_temp(self, temp: float):
        self.config.critical_temp = float(temp)
        self.event_log.append(f"Critical temp set to {self.config.critical_temp}")

    def set_auto_shutdown_enabled(self, enabled: bool):
        self.config.auto_shutdown_enabled = bool(enabled)
        self.event_log.append(f"Auto-shutdown set to {self.config.auto_shutdown_enabled}")

    def set_emergency_flow(self, flow: float):
        self.config.emergency_flow = clamp_non_negative(flow)
        self.event_log.append(f"Emergency injection flow set to {self.config.emergency_flow}")

    def set_emergency_duration(self, duration: float):
        seconds = whole_seconds(duration)
        self.config.emergency_duration = math.inf if seconds is None else seconds
        self.event_log.append(
            f"Emergency injection duration set to {self.config.emergency_duration}"
        )
