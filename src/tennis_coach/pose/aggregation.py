"""
Aggregation of per-frame angles into summary statistics.

Both reductions are order-independent: the mean uses an exactly rounded sum
(``math.fsum``), so any permutation of the frames gives bit-identical output.
"""

import math
from typing import Sequence

from ..errors import EmptyInputError
from .schemas import (
    ANGLE_FIELDS,
    RANGE_OF_MOTION_SOURCES,
    AnalysisSummary,
    BiomechanicalAngles,
    RangeOfMotion,
)


def _require_frames(frames: Sequence[BiomechanicalAngles], operation: str) -> None:
    if len(frames) == 0:
        raise EmptyInputError(f"Cannot calculate {operation} of an empty frame sequence.")


def average_angles(frames: Sequence[BiomechanicalAngles]) -> BiomechanicalAngles:
    """Mean of each angle across all frames.

    Raises:
        EmptyInputError: If ``frames`` is empty.
    """
    _require_frames(frames, "average angles")
    count = len(frames)
    return BiomechanicalAngles(**{
        field: math.fsum(getattr(f, field) for f in frames) / count
        for field in ANGLE_FIELDS
    })


def angle_ranges(frames: Sequence[BiomechanicalAngles]) -> dict[str, tuple[float, float]]:
    """(min, max) of every angle field, knee flexion included.

    Raises:
        EmptyInputError: If ``frames`` is empty.
    """
    _require_frames(frames, "angle ranges")
    ranges = {}
    for field in ANGLE_FIELDS:
        values = [getattr(f, field) for f in frames]
        ranges[field] = (min(values), max(values))
    return ranges


def calculate_range_of_motion(frames: Sequence[BiomechanicalAngles]) -> RangeOfMotion:
    """Range of motion of the arm, leg and torso rotation angles.

    Raises:
        EmptyInputError: If ``frames`` is empty.
    """
    _require_frames(frames, "range of motion")
    ranges = angle_ranges(frames)
    return RangeOfMotion(**{
        range_field: ranges[angle_field]
        for range_field, angle_field in RANGE_OF_MOTION_SOURCES.items()
    })


def summarize_angles(frames: Sequence[BiomechanicalAngles]) -> AnalysisSummary:
    """Average angles and range of motion in one summary."""
    return AnalysisSummary(
        avg_angles=average_angles(frames),
        range_of_motion=calculate_range_of_motion(frames),
    )
