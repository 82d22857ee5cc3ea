"""
Reactor Thermal Simulator Package

An interactive real-time simulator of a two-node (core + coolant)
lumped thermal reactor model with operator controls, an automatic
safety system and scripted failure scenarios.

Modules:
    - constants: Default plant parameters and status strings
    - thermal: Core and coolant thermal nodes, Euler integration
    - engine: Fixed-timestep simulation clock and delayed executor
    - safety: Threshold monitoring, SCRAM and emergency injection
    - scenarios: Reactivity spike and coolant failure transients
    - events: Timestamped operator event log
    - export: Sample recording and CSV export
    - reactor: Simulator composition root and control surface
"""

from .thermal import ReactorCore, CoolantLoop, ThermalModel
from .engine import Sample, SimulationClock, DelayedExecutor
from .safety import SafetyConfig, SafetyMonitor
from .scenarios import ScenarioEngine
from .events import EventLog
from .export import SampleRecorder, CsvStreamWriter
from .reactor import ReactorSimulator, SimulationConfig, create_simulator

__version__ = "1.0.0"
__author__ = "Reactor Simulation Model"

__all__ = [
    "ReactorCore",
    "CoolantLoop",
    "ThermalModel",
    "Sample",
    "SimulationClock",
    "DelayedExecutor",
    "SafetyConfig",
    "SafetyMonitor",
    "ScenarioEngine",
    "EventLog",
    "SampleRecorder",
    "CsvStreamWriter",
    "ReactorSimulator",
    "SimulationConfig",
    "create_simulator",
]
