"""
Default Plant Parameters for the Reactor Thermal Simulator

This module contains the reference parameters of the two-node lumped
thermal model (reactor core + coolant loop), the safety system defaults,
and the status strings reported to the presentation layer.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class PlantDefaults:
    """Reference physical parameters of the simulated plant."""

    # Reactor core node
    CORE_INITIAL_TEMP: float = 300.0  # [°C]
    NOMINAL_POWER: float = 1.0e7  # [W] at fully withdrawn rods
    CORE_MASS: float = 5.0e4  # [kg]
    CORE_SPECIFIC_HEAT: float = 500.0  # [J/kg/K]
    CORE_TO_COOLANT_COEFF: float = 1.0e5  # [W/K]

    # Coolant loop node
    COOLANT_INITIAL_TEMP: float = 290.0  # [°C]
    COOLANT_MASS: float = 1.0e4  # [kg]
    COOLANT_SPECIFIC_HEAT: float = 4184.0  # [J/kg/K] (water)
    SINK_TEMP: float = 290.0  # [°C] heat rejection temperature

    # Operating point after start-up or reset
    INITIAL_ROD_POSITION: float = 1.0  # fully inserted
    INITIAL_FLOW_RATE: float = 200.0  # [kg/s]

    # Time step [s], also the wall-clock pacing of the tick loop
    TIME_STEP: float = 0.5


# Safety system defaults
SAFETY_DEFAULTS = {
    "caution_temp": 500.0,  # [°C]
    "critical_temp": 700.0,  # [°C]
    "auto_shutdown_enabled": True,
    "emergency_flow": 1000.0,  # [kg/s] injected flow
    "emergency_duration": 10.0,  # [s]
}


# Status strings reported by the safety monitor
STATUS_RUNNING = "Running"
STATUS_STOPPED = "Stopped"
STATUS_WARNING = "WARNING"
STATUS_SCRAMMED = "SCRAMMED"
STATUS_CRITICAL = "CRITICAL - SCRAMMED"
STATUS_EMERGENCY_COOLANT = "EMERGENCY COOLANT"


# CSV export layout
EXPORT_TITLE = "# Reactor simulation export"
EXPORT_COLUMNS = ("time_s", "core_temp_c", "coolant_temp_c")
EXPORT_FORMAT = "%.6f"
