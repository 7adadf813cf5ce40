"""Conversion of detector keypoints into the fixed 17-joint PoseLandmarks."""

import logging
from typing import Mapping

from pydantic.alias_generators import to_snake

from .schemas import JOINT_NAMES, Keypoint, PoseLandmarks

logger = logging.getLogger(__name__)

# Stand-in for a joint the detector did not report
MISSING_KEYPOINT = Keypoint(x=0.0, y=0.0, score=0.0)


def build_pose_landmarks(keypoints: Mapping[str, Keypoint]) -> PoseLandmarks:
    """Fill a PoseLandmarks from named keypoints.

    Args:
        keypoints: Joint name -> Keypoint. Names may be snake_case
            (``left_shoulder``, as detectors report them) or camelCase
            (``leftShoulder``). Unknown names are ignored.

    Returns:
        PoseLandmarks with every missing joint replaced by a zero-confidence
        keypoint at the origin.
    """
    by_joint: dict[str, Keypoint] = {}
    for name, keypoint in keypoints.items():
        joint = to_snake(name)
        if joint not in JOINT_NAMES:
            logger.debug("Ignoring unknown keypoint '%s'", name)
            continue
        by_joint[joint] = keypoint

    missing = [j for j in JOINT_NAMES if j not in by_joint]
    if missing:
        logger.debug("Substituting default keypoints for: %s", ", ".join(missing))

    return PoseLandmarks(**{j: by_joint.get(j, MISSING_KEYPOINT) for j in JOINT_NAMES})
