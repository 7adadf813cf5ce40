"""
Planar geometry primitives on keypoints.

Points are anything exposing ``.x`` and ``.y`` (normally a ``Keypoint``).
Coordinates are not assumed to lie in [0, 1].
"""

import numpy as np

# Vectors shorter than this are treated as degenerate (coincident points)
_MIN_MAGNITUDE = 1e-12


def angle(a, b, c) -> float:
    """Angle at vertex b formed by points a-b-c.

    Uses the dot product formula: cos(θ) = (ba·bc) / (|ba||bc|).

    Args:
        a, b, c: Points with ``.x`` and ``.y`` attributes.

    Returns:
        float: Angle in degrees (0-180). 0.0 when a or c coincides with b,
        since the angle is undefined there.
    """
    ba = np.array([a.x - b.x, a.y - b.y], dtype=np.float64)
    bc = np.array([c.x - b.x, c.y - b.y], dtype=np.float64)

    magnitude_ba = np.linalg.norm(ba)
    magnitude_bc = np.linalg.norm(bc)
    if magnitude_ba < _MIN_MAGNITUDE or magnitude_bc < _MIN_MAGNITUDE:
        return 0.0

    # Clip to [-1, 1] for numerical stability
    cos_angle = np.clip(np.dot(ba, bc) / (magnitude_ba * magnitude_bc), -1.0, 1.0)
    return float(np.degrees(np.arccos(cos_angle)))


def torso_rotation(left_shoulder, right_shoulder, left_hip, right_hip) -> float:
    """Rotation of the shoulder line relative to the hip line.

    Each line is measured as ``atan2(dy, dx)`` of its right-minus-left
    vector. Positive means the shoulders are rotated clockwise relative to
    the hips in image coordinates (y grows downward).

    Returns:
        float: Degrees in (-180, 180].
    """
    shoulder_line = np.arctan2(
        right_shoulder.y - left_shoulder.y,
        right_shoulder.x - left_shoulder.x,
    )
    hip_line = np.arctan2(right_hip.y - left_hip.y, right_hip.x - left_hip.x)

    rotation = float(np.degrees(shoulder_line - hip_line))
    if rotation > 180.0:
        rotation -= 360.0
    elif rotation <= -180.0:
        rotation += 360.0
    return rotation


def knee_flex(hip, knee, ankle) -> float:
    """Knee angle at the knee. 180 = fully extended leg, lower = more bent."""
    return angle(hip, knee, ankle)
