#!/usr/bin/env python3
"""
Example Reactor Thermal Simulation

This script runs the simulator in real time and prints each published
sample to the console, optionally triggering failure scenarios and
exporting the recorded history.

Usage:
    python run_simulation.py [--duration SECONDS] [--rod POSITION] [--flow FLOW]

Example:
    python run_simulation.py --duration 30 --rod 0.0 --flow 200 --export run.csv
"""

import argparse
import logging
import queue
import sys
import os
import time

# Add parent directory to path for importing reactor_sim
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from reactor_sim.reactor import SimulationConfig, ReactorSimulator


def print_header(sim: ReactorSimulator):
    print("\n" + "=" * 70)
    print("       REACTOR THERMAL SIMULATION")
    print("=" * 70)
    summary = sim.get_status_summary()
    print(f"  Rod position:           {summary['rod_position']:>10.2f}")
    print(f"  Coolant flow:           {summary['flow_rate_kg_s']:>10.1f} kg/s")
    print(f"  Thermal power:          {summary['thermal_power_MW']:>10.2f} MW")
    print(f"  Caution / critical:     {summary['caution_temp_C']:>6.1f} / {summary['critical_temp_C']:.1f} °C")
    print("-" * 70)
    print(f"{'t [s]':>10} {'Core [°C]':>12} {'Coolant [°C]':>14} {'Power [MW]':>12}  Status")
    print("-" * 70)


def run_live(sim: ReactorSimulator, duration: float):
    """
    Run the simulation in real time and print samples as they arrive.

    Args:
        sim: Configured simulator
        duration: Wall-clock run time [s]
    """
    channel = sim.open_channel()
    print_header(sim)

    sim.start()
    deadline = time.monotonic() + duration

    while time.monotonic() < deadline:
        try:
            sample = channel.get(timeout=sim.dt)
        except queue.Empty:
            if not sim.is_running:
                break
            continue

        power_mw = sim.get_status_summary()["thermal_power_MW"]
        print(
            f"{sample.sim_time_s:>10.1f} {sample.core_temp:>12.2f} "
            f"{sample.coolant_temp:>14.2f} {power_mw:>12.2f}  {sim.status}"
        )

    sim.stop()


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Reactor Thermal Simulation",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s                                  # Run 20 s with rods inserted
  %(prog)s --rod 0.0 --duration 60          # Withdraw rods and watch heat-up
  %(prog)s --rod 0.2 --spike 5 0.0          # Reactivity spike after start
  %(prog)s --coolant-failure 10 --export out.csv
        """
    )

    parser.add_argument(
        "--config",
        type=str,
        help="JSON configuration file"
    )
    parser.add_argument(
        "--duration",
        type=float,
        default=20.0,
        help="Wall-clock run time in seconds (default: 20)"
    )
    parser.add_argument(
        "--rod",
        type=float,
        help="Initial control rod position, 0=withdrawn 1=inserted"
    )
    parser.add_argument(
        "--flow",
        type=float,
        help="Initial coolant flow in kg/s"
    )
    parser.add_argument(
        "--power",
        type=float,
        help="Nominal power in W (default: 1e7)"
    )
    parser.add_argument(
        "--spike",
        nargs=2,
        type=float,
        metavar=("SECONDS", "ROD"),
        help="Trigger a reactivity spike at start"
    )
    parser.add_argument(
        "--coolant-failure",
        type=float,
        metavar="SECONDS",
        help="Trigger a coolant failure at start"
    )
    parser.add_argument(
        "--no-auto-shutdown",
        action="store_true",
        help="Disable automatic SCRAM on critical temperature"
    )
    parser.add_argument(
        "--export",
        type=str,
        help="Output CSV file path"
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Show debug logging"
    )

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(name)s %(levelname)s: %(message)s",
    )

    try:
        config = SimulationConfig.from_json(args.config) if args.config else SimulationConfig()
        if args.power is not None:
            config = SimulationConfig.from_dict({**config.to_dict(), "nominal_power": args.power})
    except (OSError, ValueError) as e:
        print(f"Error: invalid configuration: {e}")
        sys.exit(1)

    sim = ReactorSimulator(config)

    if args.rod is not None:
        sim.set_rod_position(args.rod)
    if args.flow is not None:
        sim.set_flow_rate(args.flow)
    if args.no_auto_shutdown:
        sim.set_auto_shutdown_enabled(False)
    if args.spike:
        sim.trigger_reactivity_spike(args.spike[0], args.spike[1])
    if args.coolant_failure is not None:
        sim.trigger_coolant_failure(args.coolant_failure)

    try:
        run_live(sim, args.duration)

        if args.export:
            rows = sim.export_csv(args.export)
            print(f"\nExported {rows} samples to: {args.export}")
    except KeyboardInterrupt:
        print("\nInterrupted")
    finally:
        sim.shutdown()

    print("\nEvent log:")
    for line in sim.event_log.lines():
        print(f"  {line}")


if __name__ == "__main__":
    main()
