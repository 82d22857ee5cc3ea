"""
Failure Scenarios

Scripted transients that perturb a control input immediately and restore
the value captured at invocation after a delay:
- Reactivity spike: rods moved to a new position
- Coolant failure: flow dropped to zero

Restorations run on the shared DelayedExecutor, independent of the tick
loop. When invocations overlap, each timer restores its own captured
value, so the last timer to fire decides the final state.
"""

from typing import Optional
import logging
import threading

from .engine import DelayedExecutor
from .thermal import ThermalModel
from .utils import clamp, whole_seconds

logger = logging.getLogger(__name__)


class ScenarioEngine:
    """Time-delayed perturbation and restoration of control inputs."""

    def __init__(self, model: ThermalModel, executor: DelayedExecutor):
        self.model = model
        self.executor = executor

    def reactivity_spike(
        self,
        duration_s: float,
        new_rod_position: float
    ) -> Optional[threading.Timer]:
        """
        Move the rods, then put them back after a delay.

        Args:
            duration_s: Spike duration, truncated to whole seconds [s]
            new_rod_position: Rod position during the spike (clamped, NaN -> 0)

        Returns:
            Timer that restores the previous rod position, or None when the
            duration is infinite and the rods are never restored
        """
        previous = self.model.control_rod_position
        target = clamp(new_rod_position, 0.0, 1.0)
        seconds = whole_seconds(duration_s)

        self.model.set_control_rod_position(target)
        if seconds is None:
            logger.debug("Reactivity spike: rods %.3f -> %.3f with no restore", previous, target)
            return None

        logger.debug("Reactivity spike: rods %.3f -> %.3f for %ds", previous, target, seconds)
        return self.executor.schedule(
            seconds, lambda: self.model.set_control_rod_position(previous)
        )

    def coolant_failure(self, duration_s: float) -> Optional[threading.Timer]:
        """
        Stop the coolant flow, then restore it after a delay.

        Args:
            duration_s: Failure duration, truncated to whole seconds [s]

        Returns:
            Timer that restores the previous flow rate, or None when the
            duration is infinite and the flow is never restored
        """
        previous = self.model.flow_rate
        seconds = whole_seconds(duration_s)

        self.model.set_flow_rate(0.0)
        if seconds is None:
            logger.debug("Coolant failure: flow %.1f -> 0 with no restore", previous)
            return None

        logger.debug("Coolant failure: flow %.1f -> 0 for %ds", previous, seconds)
        return self.executor.schedule(
            seconds, lambda: self.model.set_flow_rate(previous)
        )
