"""
Simulation utilities for generating landmark SLAM scenarios.

Modules:
    landmark_world: Ground-truth trajectories and noisy range/bearing
        observations of a known landmark set
"""

from slamcore.sim.landmark_world import simulate_observations, simulate_trajectory

__all__ = [
    "simulate_trajectory",
    "simulate_observations",
]
