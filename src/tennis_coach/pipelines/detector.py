"""
Pose detection on single frames with the MediaPipe Tasks PoseLandmarker.

One ``MediaPipePoseDetector`` is created at service startup and shared by
all requests. The model is loaded lazily on first use; loading is guarded
by a lock so concurrent first requests load it only once. Inference is
serialized as well, since the landmarker is not documented as thread-safe.
"""

import logging
import os
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Optional, Protocol, Union

import cv2
import mediapipe as mp
import numpy as np
from mediapipe.tasks import python
from mediapipe.tasks.python import vision

from ..pose.schemas import Keypoint
from .config import MIN_POSE_DETECTION_CONFIDENCE, POSE_MODEL_PATH

logger = logging.getLogger(__name__)

# Canonical joint name -> MediaPipe 33-point landmark index
MEDIAPIPE_JOINT_INDICES: dict[str, int] = {
    "nose": 0,
    "left_eye": 2,
    "right_eye": 5,
    "left_ear": 7,
    "right_ear": 8,
    "left_shoulder": 11,
    "right_shoulder": 12,
    "left_elbow": 13,
    "right_elbow": 14,
    "left_wrist": 15,
    "right_wrist": 16,
    "left_hip": 23,
    "right_hip": 24,
    "left_knee": 25,
    "right_knee": 26,
    "left_ankle": 27,
    "right_ankle": 28,
}


class PoseDetector(Protocol):
    def detect(self, image: np.ndarray) -> Optional[dict[str, Keypoint]]: ...


@contextmanager
def suppress_stderr():
    """Context manager to temporarily suppress stderr output."""
    null_fd = os.open(os.devnull, os.O_RDWR)
    save_stderr = os.dup(2)
    os.dup2(null_fd, 2)
    try:
        yield
    finally:
        os.dup2(save_stderr, 2)
        os.close(null_fd)
        os.close(save_stderr)


def _landmark_score(landmark) -> Optional[float]:
    visibility = getattr(landmark, "visibility", None)
    if visibility is None:
        return None
    return float(np.clip(visibility, 0.0, 1.0))


class MediaPipePoseDetector:
    """Single-person 2D pose detector.

    Args:
        model_path: Path to a ``pose_landmarker_*.task`` model bundle.
        min_detection_confidence: Minimum pose detection confidence.
    """

    def __init__(
        self,
        model_path: Union[str, Path] = POSE_MODEL_PATH,
        min_detection_confidence: float = MIN_POSE_DETECTION_CONFIDENCE,
    ):
        self.model_path = Path(model_path)
        self.min_detection_confidence = min_detection_confidence
        self._landmarker = None
        self._init_lock = threading.Lock()
        self._inference_lock = threading.Lock()

    @property
    def loaded(self) -> bool:
        return self._landmarker is not None

    def load(self):
        """Load (or return the already loaded) PoseLandmarker.

        Raises:
            FileNotFoundError: If the model bundle does not exist.
        """
        if self._landmarker is not None:
            return self._landmarker

        with self._init_lock:
            if self._landmarker is None:
                if not self.model_path.exists():
                    raise FileNotFoundError(
                        f"Pose model not found at {self.model_path}. "
                        "Download pose_landmarker_full.task or set POSE_MODEL_PATH."
                    )
                logger.info("Loading pose model: %s", self.model_path)
                # Hide TFLite C++ warnings
                with suppress_stderr():
                    base_options = python.BaseOptions(
                        model_asset_path=str(self.model_path),
                        delegate=python.BaseOptions.Delegate.CPU,
                    )
                    options = vision.PoseLandmarkerOptions(
                        base_options=base_options,
                        running_mode=vision.RunningMode.IMAGE,
                        num_poses=1,
                        min_pose_detection_confidence=self.min_detection_confidence,
                    )
                    self._landmarker = vision.PoseLandmarker.create_from_options(options)
        return self._landmarker

    def detect(self, image: np.ndarray) -> Optional[dict[str, Keypoint]]:
        """Detect the pose of one person in a BGR frame.

        Args:
            image: BGR image of shape (H, W, 3), as read by OpenCV.

        Returns:
            Joint name -> Keypoint in normalized image coordinates, or None
            when no person is detected.

        Raises:
            ValueError: If ``image`` is not a 3-channel image.
        """
        if not isinstance(image, np.ndarray) or image.ndim != 3 or image.shape[2] != 3:
            shape = getattr(image, "shape", None)
            raise ValueError(f"Expected a BGR image of shape (H, W, 3), got {shape}.")

        landmarker = self.load()
        rgb = cv2.cvtColor(image, cv2.COLOR_BGR2RGB)
        mp_image = mp.Image(image_format=mp.ImageFormat.SRGB, data=rgb)

        with self._inference_lock:
            result = landmarker.detect(mp_image)

        if not result.pose_landmarks:
            return None

        lm = result.pose_landmarks[0]  # First (only) person
        return {
            name: Keypoint(x=lm[idx].x, y=lm[idx].y, score=_landmark_score(lm[idx]), name=name)
            for name, idx in MEDIAPIPE_JOINT_INDICES.items()
        }

    def close(self) -> None:
        with self._init_lock:
            if self._landmarker is not None:
                self._landmarker.close()
                self._landmarker = None
