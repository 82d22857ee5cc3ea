"""
Reactor Simulator

This module provides the top-level simulator that wires the thermal
model, simulation clock, safety system, scenario engine, event log and
sample recorder together, and exposes the control surface used by a
presentation layer.
"""

from dataclasses import asdict, dataclass, fields
from typing import Any, Dict, Optional
import json
import logging
import queue

from .constants import SAFETY_DEFAULTS, PlantDefaults
from .engine import DelayedExecutor, SampleListener, SimulationClock
from .events import EventLog
from .export import SampleRecorder
from .safety import SafetyConfig, SafetyMonitor
from .scenarios import ScenarioEngine
from .thermal import CoolantLoop, ReactorCore, ThermalModel
from .utils import watts_to_megawatts

logger = logging.getLogger(__name__)


@dataclass
class SimulationConfig:
    """
    Complete simulator configuration.

    Attributes:
        core_initial_temp: Initial core temperature [°C]
        nominal_power: Fission power at fully withdrawn rods [W]
        core_mass: Core mass [kg]
        core_specific_heat: Core specific heat [J/kg/K]
        heat_transfer_coeff: Core-to-coolant conductance [W/K]
        coolant_initial_temp: Initial coolant temperature [°C]
        coolant_mass: Coolant inventory [kg]
        coolant_specific_heat: Coolant specific heat [J/kg/K]
        sink_temp: Heat sink temperature [°C]
        initial_rod_position: Rod position at start-up and after reset
        initial_flow_rate: Coolant flow at start-up and after reset [kg/s]
        dt: Time step and wall-clock pacing [s]
        channel_size: Capacity of sample channels
    """

    core_initial_temp: float = PlantDefaults.CORE_INITIAL_TEMP
    nominal_power: float = PlantDefaults.NOMINAL_POWER
    core_mass: float = PlantDefaults.CORE_MASS
    core_specific_heat: float = PlantDefaults.CORE_SPECIFIC_HEAT
    heat_transfer_coeff: float = PlantDefaults.CORE_TO_COOLANT_COEFF
    coolant_initial_temp: float = PlantDefaults.COOLANT_INITIAL_TEMP
    coolant_mass: float = PlantDefaults.COOLANT_MASS
    coolant_specific_heat: float = PlantDefaults.COOLANT_SPECIFIC_HEAT
    sink_temp: float = PlantDefaults.SINK_TEMP
    initial_rod_position: float = PlantDefaults.INITIAL_ROD_POSITION
    initial_flow_rate: float = PlantDefaults.INITIAL_FLOW_RATE
    dt: float = PlantDefaults.TIME_STEP
    channel_size: int = 1000
    caution_temp: float = SAFETY_DEFAULTS["caution_temp"]
    critical_temp: float = SAFETY_DEFAULTS["critical_temp"]
    auto_shutdown_enabled: bool = SAFETY_DEFAULTS["auto_shutdown_enabled"]
    emergency_flow: float = SAFETY_DEFAULTS["emergency_flow"]
    emergency_duration: float = SAFETY_DEFAULTS["emergency_duration"]

    def __post_init__(self):
        """Validate scalar settings."""
        if not self.dt > 0:
            raise ValueError(f"Time step must be positive, got {self.dt}")
        if self.channel_size < 1:
            raise ValueError(f"Channel size must be at least 1, got {self.channel_size}")
        if self.critical_temp < self.caution_temp:
            raise ValueError(
                f"Critical temperature ({self.critical_temp}) must not be below "
                f"caution temperature ({self.caution_temp})"
            )

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SimulationConfig":
        """
        Build a configuration from a dictionary.

        Raises:
            ValueError: On unknown keys or invalid values
        """
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise ValueError(f"Unknown configuration keys: {sorted(unknown)}")
        return cls(**data)

    @classmethod
    def from_json(cls, filepath: str) -> "SimulationConfig":
        """Load a configuration from a JSON file."""
        with open(filepath) as f:
            return cls.from_dict(json.load(f))

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    def to_json(self, filepath: Optional[str] = None) -> str:
        """
        Serialise the configuration to JSON.

        Args:
            filepath: Optional file path to save JSON

        Returns:
            JSON string
        """
        json_str = json.dumps(self.to_dict(), indent=2)

        if filepath:
            with open(filepath, "w") as f:
                f.write(json_str)

        return json_str

    def safety_config(self) -> SafetyConfig:
        return SafetyConfig(
            caution_temp=self.caution_temp,
            critical_temp=self.critical_temp,
            auto_shutdown_enabled=self.auto_shutdown_enabled,
            emergency_flow=self.emergency_flow,
            emergency_duration=self.emergency_duration,
        )


class ReactorSimulator:
    """
    Composition root and control surface of the simulator.

    Owns the tick thread and every delayed-restoration timer; call
    ``shutdown()`` to stop the clock and cancel pending timers.
    """

    def __init__(self, config: Optional[SimulationConfig] = None):
        self.config = config if config is not None else SimulationConfig()
        cfg = self.config

        self.model = ThermalModel(
            core=ReactorCore(
                core_temp=cfg.core_initial_temp,
                nominal_power=cfg.nominal_power,
                core_mass=cfg.core_mass,
                core_specific_heat=cfg.core_specific_heat,
                heat_transfer_coeff=cfg.heat_transfer_coeff,
                control_rod_position=cfg.initial_rod_position,
            ),
            coolant=CoolantLoop(
                coolant_temp=cfg.coolant_initial_temp,
                mass=cfg.coolant_mass,
                specific_heat=cfg.coolant_specific_heat,
                sink_temp=cfg.sink_temp,
                heat_transfer_coeff=cfg.heat_transfer_coeff,
                flow_rate=cfg.initial_flow_rate,
            ),
        )
        self.clock = SimulationClock(self.model, dt=cfg.dt, channel_size=cfg.channel_size)
        self.executor = DelayedExecutor()
        self.event_log = EventLog()
        self.recorder = SampleRecorder()
        self.safety = SafetyMonitor(
            self.model,
            self.clock,
            self.executor,
            self.event_log,
            cfg.safety_config(),
        )
        self.scenarios = ScenarioEngine(self.model, self.executor)

        # Recorder first so a sample is buffered before any safety action
        self.clock.add_listener(self.recorder)
        self.clock.add_listener(self.safety.on_sample)

    # ------------------------------------------------------------------
    # Read accessors
    # ------------------------------------------------------------------

    @property
    def core_temp(self) -> float:
        return self.model.core_temp

    @property
    def coolant_temp(self) -> float:
        return self.model.coolant_temp

    @property
    def rod_position(self) -> float:
        return self.model.control_rod_position

    @property
    def flow_rate(self) -> float:
        return self.model.flow_rate

    @property
    def caution_temp(self) -> float:
        return self.safety.config.caution_temp

    @property
    def critical_temp(self) -> float:
        return self.safety.config.critical_temp

    @property
    def auto_shutdown_enabled(self) -> bool:
        return self.safety.config.auto_shutdown_enabled

    @property
    def emergency_flow(self) -> float:
        return self.safety.config.emergency_flow

    @property
    def emergency_duration(self) -> float:
        return self.safety.config.emergency_duration

    @property
    def is_running(self) -> bool:
        return self.clock.is_running

    @property
    def status(self) -> str:
        return self.safety.status

    @property
    def sim_time(self) -> float:
        return self.clock.sim_time

    @property
    def dt(self) -> float:
        return self.clock.dt

    # ------------------------------------------------------------------
    # Subscriptions
    # ------------------------------------------------------------------

    def add_listener(self, listener: SampleListener):
        self.clock.add_listener(listener)

    def remove_listener(self, listener: SampleListener):
        self.clock.remove_listener(listener)

    def open_channel(self, maxsize: Optional[int] = None) -> queue.Queue:
        """Open a sample queue for a presentation layer."""
        return self.clock.open_channel(maxsize)

    # ------------------------------------------------------------------
    # Operator controls
    # ------------------------------------------------------------------

    def set_rod_position(self, position: float):
        self.model.set_control_rod_position(position)

    def set_flow_rate(self, flow_rate: float):
        self.model.set_flow_rate(flow_rate)

    def start(self) -> bool:
        """
        Start the simulation. Does nothing when already running.

        Simulated time and recorded samples carry on across stop/start, so
        an export spans every run since the last reset().
        """
        started = self.clock.start()
        if started:
            self.event_log.append("Simulation started")
        return started

    def stop(self) -> bool:
        """Stop the simulation. Does nothing when already stopped."""
        stopped = self.clock.stop()
        if stopped:
            self.event_log.append("Simulation stopped")
        return stopped

    def reset(self):
        """Stop and return the plant and recorded history to initial conditions."""
        self.stop()
        self.clock.join(timeout=2 * self.dt + 1.0)
        self.clock.reset_time()
        self.recorder.clear()
        self.model.reset()
        self.safety.clear_status()
        self.event_log.append("Simulation reset")

    def step(self, n_steps: int = 1):
        """
        Advance the simulation synchronously without wall-clock pacing.

        Args:
            n_steps: Number of ticks

        Returns:
            The last published Sample, or None if n_steps < 1
        """
        sample = None
        for _ in range(n_steps):
            sample = self.clock.tick()
        return sample

    def scram(self):
        self.safety.scram()

    def emergency_inject(self, duration: Optional[float] = None, flow: Optional[float] = None):
        """
        Inject emergency coolant.

        Args:
            duration: Injection duration [s] (default: configured value)
            flow: Injected flow [kg/s] (default: configured value)
        """
        if duration is None:
            duration = self.safety.config.emergency_duration
        if flow is None:
            flow = self.safety.config.emergency_flow
        return self.safety.emergency_inject(duration, flow)

    def trigger_reactivity_spike(self, duration: float, rod_position: float):
        self.event_log.append(
            f"Scenario: Reactivity spike for {duration:.1f}s to rod={rod_position:.2f}"
        )
        return self.scenarios.reactivity_spike(duration, rod_position)

    def trigger_coolant_failure(self, duration: float):
        self.event_log.append(f"Scenario: Coolant failure for {duration:.1f}s")
        return self.scenarios.coolant_failure(duration)

    # Safety parameters

    def set_caution_temp(self, temp: float):
        self.safety.set_caution_temp(temp)

    def set_critical_temp(self, temp: float):
        self.safety.set_critical_temp(temp)

    def set_auto_shutdown_enabled(self, enabled: bool):
        self.safety.set_auto_shutdown_enabled(enabled)

    def set_emergency_flow(self, flow: float):
        self.safety.set_emergency_flow(flow)

    def set_emergency_duration(self, duration: float):
        self.safety.set_emergency_duration(duration)

    # ------------------------------------------------------------------
    # Export and summaries
    # ------------------------------------------------------------------

    def export_csv(self, filepath: str) -> int:
        """
        Export the recorded history to CSV.

        Raises:
            OSError: If the file cannot be written
        """
        rows = self.recorder.export_csv(filepath)
        self.event_log.append(f"CSV exported to {filepath}")
        return rows

    def get_status_summary(self) -> Dict[str, Any]:
        """
        Get current plant readouts.

        Returns:
            Dictionary with temperatures, controls, power and safety state
        """
        return {
            "sim_time_s": self.sim_time,
            "core_temp_C": self.core_temp,
            "coolant_temp_C": self.coolant_temp,
            "rod_position": self.rod_position,
            "flow_rate_kg_s": self.flow_rate,
            "thermal_power_MW": watts_to_megawatts(self.model.thermal_power),
            "reactivity_percent": self.model.core.reactivity_percent,
            "caution_temp_C": self.caution_temp,
            "critical_temp_C": self.critical_temp,
            "auto_shutdown_enabled": self.auto_shutdown_enabled,
            "running": self.is_running,
            "status": self.status,
        }

    def shutdown(self):
        """Stop the clock, wait for it, and cancel pending restorations."""
        self.stop()
        self.clock.join(timeout=2 * self.dt + 1.0)
        self.executor.shutdown()
        self.event_log.append("Simulator shutdown")


def create_simulator(config_file: Optional[str] = None, **overrides) -> ReactorSimulator:
    """
    Factory function to create a simulator.

    Args:
        config_file: Optional JSON configuration file
        **overrides: Configuration fields overriding file or defaults

    Returns:
        Configured ReactorSimulator instance
    """
    data = {}
    if config_file:
        with open(config_file) as f:
            data.update(json.load(f))
    data.update(overrides)
    return ReactorSimulator(SimulationConfig.from_dict(data))
