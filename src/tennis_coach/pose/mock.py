"""
Synthetic forehand data for demos and tests.

Simulates a single forehand: the right arm extends and the shoulders turn
in over the course of the stroke, with a slight knee bend at mid-swing.
"""

import math

from .aggregation import summarize_angles
from .angles import calculate_biomechanical_angles
from .schemas import AnalysisMetadata, FrameAnalysis, Keypoint, PoseLandmarks, VideoAnalysis


def _kp(x: float, y: float, score: float) -> Keypoint:
    return Keypoint(x=x, y=y, score=score)


def generate_mock_landmarks(frame_index: int, total_frames: int) -> PoseLandmarks:
    """Landmarks for frame ``frame_index`` of a ``total_frames``-long stroke."""
    progress = frame_index / total_frames if total_frames else 0.0
    # 0 at start and end of the stroke, 1 at contact
    extension = math.sin(progress * math.pi)

    return PoseLandmarks(
        nose=_kp(0.5, 0.2, 0.95),
        left_eye=_kp(0.48, 0.18, 0.95),
        right_eye=_kp(0.52, 0.18, 0.95),
        left_ear=_kp(0.46, 0.2, 0.9),
        right_ear=_kp(0.54, 0.2, 0.9),
        left_shoulder=_kp(0.4 + extension * 0.05, 0.35, 0.98),
        right_shoulder=_kp(0.6 - extension * 0.05, 0.35 + extension * 0.03, 0.98),
        left_elbow=_kp(0.35, 0.5, 0.95),
        right_elbow=_kp(0.65 + extension * 0.1, 0.45 - extension * 0.05, 0.95),
        left_wrist=_kp(0.3, 0.6, 0.9),
        right_wrist=_kp(0.7 + extension * 0.15, 0.5 - extension * 0.1, 0.9),
        left_hip=_kp(0.42, 0.6, 0.95),
        right_hip=_kp(0.58, 0.6, 0.95),
        left_knee=_kp(0.4, 0.8 + extension * 0.02, 0.95),
        right_knee=_kp(0.6, 0.8 + extension * 0.02, 0.95),
        left_ankle=_kp(0.38, 0.95, 0.9),
        right_ankle=_kp(0.62, 0.95, 0.9),
    )


def generate_mock_video_analysis(duration: float = 3.0, fps: float = 10.0) -> VideoAnalysis:
    """A complete VideoAnalysis of a synthetic stroke sampled at ``fps``."""
    total_frames = max(1, int(math.floor(duration * fps)))

    frames = []
    for i in range(total_frames):
        landmarks = generate_mock_landmarks(i, total_frames)
        frames.append(FrameAnalysis(
            frame_index=i,
            timestamp=i / fps,
            landmarks=landmarks,
            angles=calculate_biomechanical_angles(landmarks),
        ))

    return VideoAnalysis(
        frames=tuple(frames),
        summary=summarize_angles([f.angles for f in frames]),
        metadata=AnalysisMetadata(duration=duration, fps=fps, total_frames=len(frames)),
    )
