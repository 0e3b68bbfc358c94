"""Synthetic sensor streams and sample-log IO."""

from inertial_dr.sim.synthetic import (
    SampleLog,
    generate_constant_acceleration,
    generate_step_walk,
    generate_walk_stop,
    load_sample_log,
    merge_streams,
    replay_log,
    save_sample_log,
)

__all__ = [
    "SampleLog",
    "generate_constant_acceleration",
    "generate_step_walk",
    "generate_walk_stop",
    "load_sample_log",
    "merge_streams",
    "replay_log",
    "save_sample_log",
]
