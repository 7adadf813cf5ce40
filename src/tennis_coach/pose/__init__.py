"""
Pose geometry and biomechanics.

Pure computations on keypoints: geometry primitives, per-frame angles,
multi-frame aggregation and the data contracts shared with the pipeline.
"""

from .aggregation import angle_ranges, average_angles, calculate_range_of_motion, summarize_angles
from .angles import calculate_biomechanical_angles
from .geometry import angle, knee_flex, torso_rotation
from .landmarks import build_pose_landmarks
from .schemas import (
    AnalysisMetadata,
    AnalysisSummary,
    BiomechanicalAngles,
    CoachFeedback,
    FrameAnalysis,
    Keypoint,
    PoseLandmarks,
    RangeOfMotion,
    VideoAnalysis,
    parse_coach_feedback,
    parse_video_analysis,
)

__all__ = [
    "angle",
    "torso_rotation",
    "knee_flex",
    "calculate_biomechanical_angles",
    "average_angles",
    "angle_ranges",
    "calculate_range_of_motion",
    "summarize_angles",
    "build_pose_landmarks",
    "Keypoint",
    "PoseLandmarks",
    "BiomechanicalAngles",
    "FrameAnalysis",
    "RangeOfMotion",
    "AnalysisSummary",
    "AnalysisMetadata",
    "VideoAnalysis",
    "CoachFeedback",
    "parse_video_analysis",
    "parse_coach_feedback",
]
