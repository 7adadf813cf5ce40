"""
Configuration constants for the stroke analysis backend.

Centralizes sampling defaults, upload limits, the pose model path and
environment variable loading.
"""

import os
from pathlib import Path
from dotenv import load_dotenv

# ---------------------------------------------------------------------------
# Project paths
# ---------------------------------------------------------------------------
PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent.parent
_ENV_PATH = PROJECT_ROOT / ".env"
load_dotenv(_ENV_PATH)

# ---------------------------------------------------------------------------
# Pose detection
# ---------------------------------------------------------------------------
# Download from: https://storage.googleapis.com/mediapipe-models/pose_landmarker/pose_landmarker_full/float16/latest/pose_landmarker_full.task
POSE_MODEL_PATH = Path(
    os.environ.get("POSE_MODEL_PATH", PROJECT_ROOT / "models" / "pose_landmarker_full.task")
)
MIN_POSE_DETECTION_CONFIDENCE: float = float(
    os.environ.get("MIN_POSE_DETECTION_CONFIDENCE", "0.3")
)
# Load the pose model at startup instead of on the first request
PRELOAD_DETECTOR: bool = os.environ.get("PRELOAD_DETECTOR", "false").lower() in ("1", "true", "yes")

# ---------------------------------------------------------------------------
# Analysis
# ---------------------------------------------------------------------------
DEFAULT_SAMPLE_FPS: float = float(os.environ.get("DEFAULT_SAMPLE_FPS", "10"))
ANALYSIS_TIMEOUT_SECONDS: float = float(os.environ.get("ANALYSIS_TIMEOUT_SECONDS", "60"))

# ---------------------------------------------------------------------------
# Upload validation
# ---------------------------------------------------------------------------
MAX_UPLOAD_BYTES: int = 20 * 1024 * 1024
MAX_DEMO_DURATION_SECONDS: float = 30.0
