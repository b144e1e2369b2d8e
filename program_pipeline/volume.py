"""
Volume landmark calculation.

Scales population-average weekly set landmarks (MEV/MAV/MRV) for each
muscle group by the user's training age, recovery capacity, life stress
and volume tolerance.
"""

import math
from typing import Dict, Optional

from program_pipeline.schemas import VolumeLandmarks, VolumeParameters

# Weekly sets per muscle group: (MEV, MAV, MRV)
MUSCLE_GROUP_BASE_VOLUMES: Dict[str, tuple] = {
    "chest": (8, 18, 26),
    "back": (10, 20, 30),
    "shoulders": (8, 16, 24),
    "arms": (6, 14, 22),
    "quads": (8, 16, 24),
    "hamstrings": (6, 12, 18),
    "glutes": (6, 12, 18),
    "calves": (8, 16, 25),
    "abs": (0, 16, 25),
}


def round_half_up(value: float) -> int:
    """Round to the nearest integer, with .5 always rounding up."""
    return int(math.floor(value + 0.5))


def age_multiplier(training_age: float) -> float:
    """Grows linearly from 1.0 to 1.8 over the first two training years."""
    return 1.0 + (min(training_age, 2) / 2) * 0.8


def recovery_multiplier(recovery_capacity: float) -> float:
    if recovery_capacity <= 3:
        return 0.7
    if recovery_capacity <= 7:
        return 1.0
    return 1.3


def stress_multiplier(stress_level: float) -> float:
    if stress_level <= 2:
        return 1.1
    if stress_level <= 4:
        return 1.0
    if stress_level <= 6:
        return 0.9
    if stress_level <= 8:
        return 0.7
    return 0.6


class VolumeLandmarkCalculator:
    """
    Computes individualized volume landmarks.

    The same multiplier is applied to MEV, MAV and MRV, so the ordering of
    the base table carries through to every result.
    """

    def __init__(self, base_volumes: Optional[Dict[str, tuple]] = None):
        """
        Args:
            base_volumes: Override for the (MEV, MAV, MRV) table, keyed by lower-case group
        """
        self.base_volumes = base_volumes or MUSCLE_GROUP_BASE_VOLUMES

    def combined_multiplier(self, params: VolumeParameters) -> float:
        return (
            age_multiplier(params.training_age)
            * recovery_multiplier(params.recovery_capacity)
            * stress_multiplier(params.stress_level)
            * params.volume_tolerance
        )

    def calculate_landmarks(
        self, params: VolumeParameters, muscle_group: str
    ) -> Optional[VolumeLandmarks]:
        """
        Calculate landmarks for one muscle group.

        Args:
            params: Inferred volume parameters
            muscle_group: Group name, case-insensitive

        Returns:
            VolumeLandmarks, or None if the group is not in the base table
        """
        base = self.base_volumes.get(muscle_group.strip().lower())
        if base is None:
            return None

        multiplier = self.combined_multiplier(params)
        mev, mav, mrv = (round_half_up(value * multiplier) for value in base)
        return VolumeLandmarks(mev=mev, mav=mav, mrv=mrv)

    def calculate_all_landmarks(self, params: VolumeParameters) -> Dict[str, VolumeLandmarks]:
        """Landmarks for every muscle group in the base table."""
        return {
            group: self.calculate_landmarks(params, group)
            for group in self.base_volumes
        }
