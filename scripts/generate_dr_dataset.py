"""
Generate synthetic dead-reckoning sample logs.

Writes a rotation-vector stream, a linear-acceleration stream and ground
truth for one of these scenarios:

    walk_stop       Start-stop walk, sine-shaped acceleration per segment
    walk_stop_noisy The same walk with accelerometer noise and bias
    step_walk       Vertical bounce at the step frequency (for PDR)
    constant_accel  Constant world-frame acceleration from rest

The output directory can be replayed with scripts/replay_dr_dataset.py.
"""

import argparse
import logging
import sys
from pathlib import Path

import numpy as np

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from inertial_dr.sim import (
    generate_constant_acceleration,
    generate_step_walk,
    generate_walk_stop,
    save_sample_log,
)

SCENARIOS = {
    "walk_stop": {
        "description": "Three walk/stop segments turning 90 degrees, clean sensors",
        "params": {"n_segments": 3, "headings": [0.0, np.pi / 2, np.pi]},
    },
    "walk_stop_noisy": {
        "description": "Walk/stop with 0.05 m/s^2 noise and a constant bias",
        "params": {
            "n_segments": 3,
            "headings": [0.0, np.pi / 2, np.pi],
            "noise_std": 0.05,
            "bias": [0.03, -0.02, 0.01],
        },
    },
    "step_walk": {
        "description": "20 steps at 2 Hz heading North-East",
        "params": {"n_steps": 20, "heading": np.pi / 4},
    },
    "constant_accel": {
        "description": "1 m/s^2 East for 2 s",
        "params": {"accel_world": (1.0, 0.0, 0.0), "duration": 2.0},
    },
}


def generate(scenario: str, output_dir: str, rate_hz: float, seed: int) -> Path:
    """Generate one scenario and write it to output_dir."""
    params = dict(SCENARIOS[scenario]["params"])

    if scenario.startswith("walk_stop"):
        log = generate_walk_stop(rate_hz=rate_hz, seed=seed, **params)
    elif scenario == "step_walk":
        log = generate_step_walk(rate_hz=rate_hz, seed=seed, **params)
    else:
        log = generate_constant_acceleration(rate_hz=rate_hz, **params)

    log.meta["scenario"] = scenario
    path = save_sample_log(log, output_dir)

    print(f"  Scenario:     {scenario} ({SCENARIOS[scenario]['description']})")
    print(f"  Duration:     {log.duration:.1f} s")
    print(f"  Samples:      {len(log.accel_t)} acceleration, {len(log.orientation_t)} orientation")
    if log.true_position is not None:
        print(f"  Final truth:  {np.round(log.true_position[-1], 3)} m")
    print(f"  Saved to:     {path}")
    return path


def main():
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Generate synthetic dead-reckoning sample logs",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="\n".join(
            ["Scenarios:"]
            + [f"  {name:<16}{scenario['description']}" for name, scenario in SCENARIOS.items()]
            + [
                "",
                "Examples:",
                "  python scripts/generate_dr_dataset.py --scenario walk_stop",
                "  python scripts/generate_dr_dataset.py --scenario step_walk --output data/sim/steps",
            ]
        ),
    )
    parser.add_argument(
        "--scenario",
        type=str,
        choices=sorted(SCENARIOS),
        default="walk_stop",
        help="Scenario to generate (default: walk_stop)",
    )
    parser.add_argument(
        "--output",
        type=str,
        default=None,
        help="Output directory (default: data/sim/dr_<scenario>)",
    )

    sim_group = parser.add_argument_group("Simulation Parameters")
    sim_group.add_argument(
        "--rate", type=float, default=50.0, help="Sample rate in Hz (default: 50.0)"
    )
    sim_group.add_argument(
        "--seed", type=int, default=42, help="Random seed for sensor noise (default: 42)"
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: WARNING)",
    )

    args = parser.parse_args()
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(name)s %(levelname)s: %(message)s",
    )

    output = args.output or f"data/sim/dr_{args.scenario}"

    print("\n" + "=" * 70)
    print(f"Generating dead-reckoning sample log: {Path(output).name}")
    print("=" * 70)
    generate(args.scenario, output, args.rate, args.seed)
    print("=" * 70)


if __name__ == "__main__":
    main()
