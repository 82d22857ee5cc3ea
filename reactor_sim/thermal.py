"""
Thermal Module for the Two-Node Reactor Model

This module implements the lumped thermal-capacitance model of the plant:
- Reactor core node heated by fission power and cooled by the coolant
- Coolant loop node heated by the core and rejecting heat to a sink
- Explicit (forward) Euler integration with a fixed time step

Energy balance per node:
    m * cp * dT/dt = Q_in - Q_out

Both node derivatives are evaluated from the same pre-step state and
committed together, so the result does not depend on the update order.
"""

from dataclasses import dataclass, field
from typing import Dict, Tuple
import threading
import numpy as np

from .constants import PlantDefaults
from .utils import clamp, clamp_non_negative


def _require_positive(name: str, value: float):
    if not value > 0:
        raise ValueError(f"{name} must be positive, got {value}")


def _require_non_negative(name: str, value: float):
    if not value >= 0:
        raise ValueError(f"{name} must be non-negative, got {value}")


@dataclass
class ReactorCore:
    """
    Reactor core thermal node.

    Attributes:
        core_temp: Core temperature [°C]
        nominal_power: Fission power with rods fully withdrawn [W]
        core_mass: Core mass [kg]
        core_specific_heat: Core specific heat [J/kg/K]
        heat_transfer_coeff: Core-to-coolant conductance [W/K]
        control_rod_position: 0 = withdrawn (full power), 1 = inserted (no power)
    """

    core_temp: float = PlantDefaults.CORE_INITIAL_TEMP
    nominal_power: float = PlantDefaults.NOMINAL_POWER
    core_mass: float = PlantDefaults.CORE_MASS
    core_specific_heat: float = PlantDefaults.CORE_SPECIFIC_HEAT
    heat_transfer_coeff: float = PlantDefaults.CORE_TO_COOLANT_COEFF
    control_rod_position: float = PlantDefaults.INITIAL_ROD_POSITION

    def __post_init__(self):
        """Validate constants and clamp the rod position."""
        _require_non_negative("nominal_power", self.nominal_power)
        _require_positive("core_mass", self.core_mass)
        _require_positive("core_specific_heat", self.core_specific_heat)
        _require_non_negative("heat_transfer_coeff", self.heat_transfer_coeff)
        self.control_rod_position = clamp(self.control_rod_position, 0.0, 1.0)

    @property
    def heat_capacity(self) -> float:
        """Total heat capacity m*cp [J/K]."""
        return self.core_mass * self.core_specific_heat

    @property
    def power_generated(self) -> float:
        """
        Calculate fission power [W].

        Power scales linearly with rod withdrawal.
        """
        return self.nominal_power * (1.0 - self.control_rod_position)

    @property
    def reactivity_percent(self) -> float:
        """Rod withdrawal expressed as percent of maximum reactivity."""
        return (1.0 - self.control_rod_position) * 100.0

    def set_control_rod_position(self, position: float):
        """Set rod position, clamped to [0, 1] (NaN -> 0)."""
        self.control_rod_position = clamp(position, 0.0, 1.0)

    def heat_to_coolant(self, coolant_temp: float) -> float:
        """Heat flow from core to coolant [W]."""
        return self.heat_transfer_coeff * (self.core_temp - coolant_temp)

    def derivative(self, coolant_temp: float) -> float:
        """
        Calculate dT_core/dt [K/s].

        Args:
            coolant_temp: Coolant temperature at the start of the step [°C]
        """
        q_net = self.power_generated - self.heat_to_coolant(coolant_temp)
        return q_net / self.heat_capacity


@dataclass
class CoolantLoop:
    """
    Coolant loop thermal node.

    Attributes:
        coolant_temp: Coolant temperature [°C]
        mass: Coolant inventory [kg]
        specific_heat: Coolant specific heat [J/kg/K]
        sink_temp: Heat rejection temperature [°C]
        heat_transfer_coeff: Core-to-coolant conductance [W/K]
        flow_rate: Coolant mass flow through the heat sink [kg/s]
    """

    coolant_temp: float = PlantDefaults.COOLANT_INITIAL_TEMP
    mass: float = PlantDefaults.COOLANT_MASS
    specific_heat: float = PlantDefaults.COOLANT_SPECIFIC_HEAT
    sink_temp: float = PlantDefaults.SINK_TEMP
    heat_transfer_coeff: float = PlantDefaults.CORE_TO_COOLANT_COEFF
    flow_rate: float = PlantDefaults.INITIAL_FLOW_RATE

    def __post_init__(self):
        """Validate constants and clamp the flow rate."""
        _require_positive("mass", self.mass)
        _require_positive("specific_heat", self.specific_heat)
        _require_non_negative("heat_transfer_coeff", self.heat_transfer_coeff)
        self.flow_rate = clamp_non_negative(self.flow_rate)

    @property
    def heat_capacity(self) -> float:
        """Total heat capacity m*cp [J/K]."""
        return self.mass * self.specific_heat

    def set_flow_rate(self, flow_rate: float):
        """Set flow rate, clamped to >= 0 (NaN -> 0)."""
        self.flow_rate = clamp_non_negative(flow_rate)

    def heat_from_core(self, core_temp: float) -> float:
        """Heat flow received from the core [W]."""
        return self.heat_transfer_coeff * (core_temp - self.coolant_temp)

    def heat_removed(self) -> float:
        """Heat rejected to the sink by the flow [W]."""
        return self.flow_rate * self.specific_heat * (self.coolant_temp - self.sink_temp)

    def derivative(self, core_temp: float) -> float:
        """
        Calculate dT_coolant/dt [K/s].

        Args:
            core_temp: Core temperature at the start of the step [°C]
        """
        q_net = self.heat_from_core(core_temp) - self.heat_removed()
        return q_net / self.heat_capacity


@dataclass
class ThermalModel:
    """
    Coupled core/coolant model with forward Euler integration.

    All mutation goes through the model lock, so a step always sees a
    consistent snapshot and setters never interleave with a commit.
    """

    core: ReactorCore = field(default_factory=ReactorCore)
    coolant: CoolantLoop = field(default_factory=CoolantLoop)

    def __post_init__(self):
        """Remember the initial state for reset()."""
        self._lock = threading.RLock()
        self._initial = (
            self.core.core_temp,
            self.coolant.coolant_temp,
            self.core.control_rod_position,
            self.coolant.flow_rate,
        )

    @property
    def core_temp(self) -> float:
        return self.core.core_temp

    @property
    def coolant_temp(self) -> float:
        return self.coolant.coolant_temp

    @property
    def control_rod_position(self) -> float:
        return self.core.control_rod_position

    @property
    def flow_rate(self) -> float:
        return self.coolant.flow_rate

    @property
    def thermal_power(self) -> float:
        """Current fission power [W]."""
        return self.core.power_generated

    def set_control_rod_position(self, position: float):
        with self._lock:
            self.core.set_control_rod_position(position)

    def set_flow_rate(self, flow_rate: float):
        with self._lock:
            self.coolant.set_flow_rate(flow_rate)

    def step(self, dt: float) -> Tuple[float, float]:
        """
        Advance both nodes by one time step.

        Args:
            dt: Time step [s]

        Returns:
            Tuple of (core_temp, coolant_temp) after the step [°C]
        """
        with self._lock:
            core_temp = self.core.core_temp
            coolant_temp = self.coolant.coolant_temp

            d_core = self.core.derivative(coolant_temp)
            d_coolant = self.coolant.derivative(core_temp)

            self.core.core_temp = core_temp + d_core * dt
            self.coolant.coolant_temp = coolant_temp + d_coolant * dt

            return self.core.core_temp, self.coolant.coolant_temp

    def simulate(
        self,
        n_steps: int,
        dt: float = PlantDefaults.TIME_STEP
    ) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
        """
        Integrate the model for a number of steps without wall-clock pacing.

        Args:
            n_steps: Number of steps
            dt: Time step [s]

        Returns:
            Tuple of (times [s], core temperatures [°C], coolant temperatures [°C])
        """
        times = dt * np.arange(1, n_steps + 1)
        core_temps = np.zeros(n_steps)
        coolant_temps = np.zeros(n_steps)

        for i in range(n_steps):
            core_temps[i], coolant_temps[i] = self.step(dt)

        return times, core_temps, coolant_temps

    def reset(self):
        """Restore temperatures, rod position and flow to their initial values."""
        core_temp, coolant_temp, rod, flow = self._initial
        with self._lock:
            self.core.core_temp = core_temp
            self.coolant.coolant_temp = coolant_temp
            self.core.set_control_rod_position(rod)
            self.coolant.set_flow_rate(flow)

    def heat_flows(self) -> Dict[str, float]:
        """
        Get the instantaneous heat balance.

        Returns:
            Dictionary with heat flows [W] and derivatives [K/s]
        """
        with self._lock:
            core_temp = self.core.core_temp
            coolant_temp = self.coolant.coolant_temp
            return {
                "power_generated_W": self.core.power_generated,
                "core_to_coolant_W": self.core.heat_to_coolant(coolant_temp),
                "removed_to_sink_W": self.coolant.heat_removed(),
                "core_dT_dt_K_s": self.core.derivative(coolant_temp),
                "coolant_dT_dt_K_s": self.coolant.derivative(core_temp),
            }
