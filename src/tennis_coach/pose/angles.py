"""Per-frame biomechanical angles from a full set of pose landmarks."""

from .geometry import angle, knee_flex, torso_rotation
from .schemas import BiomechanicalAngles, PoseLandmarks


def calculate_biomechanical_angles(landmarks: PoseLandmarks) -> BiomechanicalAngles:
    """Compute all seven stroke angles for one pose.

    Leg angle and knee flex use the same joints today but are separate
    measurements in the contract, so each is computed on its own.
    """
    lm = landmarks
    return BiomechanicalAngles(
        # Arms: shoulder-elbow-wrist
        left_arm_angle=angle(lm.left_shoulder, lm.left_elbow, lm.left_wrist),
        right_arm_angle=angle(lm.right_shoulder, lm.right_elbow, lm.right_wrist),
        # Legs: hip-knee-ankle
        left_leg_angle=angle(lm.left_hip, lm.left_knee, lm.left_ankle),
        right_leg_angle=angle(lm.right_hip, lm.right_knee, lm.right_ankle),
        torso_rotation=torso_rotation(
            lm.left_shoulder, lm.right_shoulder, lm.left_hip, lm.right_hip
        ),
        left_knee_flex=knee_flex(lm.left_hip, lm.left_knee, lm.left_ankle),
        right_knee_flex=knee_flex(lm.right_hip, lm.right_knee, lm.right_ankle),
    )
