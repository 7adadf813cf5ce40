"""
Video analysis: sampled frames → pose → angles → summary.

Pipeline for one video:
    1. Probe the video for its duration
    2. Sample frames at the requested rate
    3. Detect a pose in each frame, in order; frames without a pose are
       skipped but keep their original index and timestamp
    4. Compute biomechanical angles per analyzed frame
    5. Aggregate mean angles and range of motion
    6. Release the sampled frames, whatever happened
"""

import logging
import threading
import time
from typing import TYPE_CHECKING, Optional, Sequence

from ..errors import AnalysisCancelledError, NoPoseDetectedError
from ..pose.aggregation import summarize_angles
from ..pose.angles import calculate_biomechanical_angles
from ..pose.landmarks import build_pose_landmarks
from ..pose.schemas import AnalysisMetadata, FrameAnalysis, VideoAnalysis
from .config import DEFAULT_SAMPLE_FPS

if TYPE_CHECKING:
    from .detector import PoseDetector
    from .frames import ExtractedFrames, FrameSampler

logger = logging.getLogger(__name__)


def assemble_video_analysis(
    frames: Sequence[FrameAnalysis],
    duration: float,
    fps: float,
) -> VideoAnalysis:
    """Aggregate analyzed frames into a VideoAnalysis.

    Raises:
        NoPoseDetectedError: If ``frames`` is empty.
    """
    if not frames:
        raise NoPoseDetectedError("No poses detected in any frame.")

    return VideoAnalysis(
        frames=tuple(frames),
        summary=summarize_angles([f.angles for f in frames]),
        metadata=AnalysisMetadata(duration=duration, fps=fps, total_frames=len(frames)),
    )


def _release(extracted: "ExtractedFrames") -> None:
    try:
        extracted.cleanup()
    except Exception:
        logger.warning("Failed to clean up sampled frames in %s", extracted.directory, exc_info=True)


class VideoAnalyzer:
    """Runs the stroke analysis pipeline with injected collaborators.

    Args:
        sampler: Turns video bytes into sampled frames.
        detector: Finds a single pose in a frame. Shared across requests.
    """

    def __init__(self, sampler: "FrameSampler", detector: "PoseDetector"):
        self.sampler = sampler
        self.detector = detector

    def analyze(
        self,
        video_bytes: bytes,
        sample_fps: float = DEFAULT_SAMPLE_FPS,
        cancel_event: Optional[threading.Event] = None,
    ) -> VideoAnalysis:
        """Analyze one video.

        Args:
            video_bytes: Raw video file contents.
            sample_fps: Frames analyzed per second of video.
            cancel_event: When set by the caller, the analysis stops before
                the next frame and nothing is returned.

        Returns:
            VideoAnalysis with one FrameAnalysis per frame that had a pose.

        Raises:
            ValueError: If ``sample_fps`` is not positive.
            FrameExtractionError: If the video cannot be decoded.
            NoPoseDetectedError: If no sampled frame contains a pose.
            AnalysisCancelledError: If ``cancel_event`` was set mid-analysis.
        """
        if sample_fps <= 0:
            raise ValueError(f"sample_fps must be positive, got {sample_fps}.")

        t0 = time.time()
        metadata = self.sampler.probe(video_bytes)
        extracted = self.sampler.extract(video_bytes, sample_fps)
        try:
            frames = self._analyze_frames(extracted, sample_fps, cancel_event)
            analysis = assemble_video_analysis(frames, metadata.duration, sample_fps)
        finally:
            _release(extracted)

        logger.info(
            "Analysis complete in %.2fs: %d / %d frames with a pose",
            time.time() - t0, analysis.metadata.total_frames, len(extracted),
        )
        return analysis

    def _analyze_frames(
        self,
        extracted: "ExtractedFrames",
        sample_fps: float,
        cancel_event: Optional[threading.Event],
    ) -> list[FrameAnalysis]:
        frames: list[FrameAnalysis] = []
        for frame_index, image in enumerate(extracted):
            if cancel_event is not None and cancel_event.is_set():
                raise AnalysisCancelledError(
                    f"Analysis cancelled after {frame_index} of {len(extracted)} frames."
                )

            keypoints = self.detector.detect(image)
            if keypoints is None:
                logger.info("No pose detected in frame %d, skipping", frame_index)
                continue

            landmarks = build_pose_landmarks(keypoints)
            frames.append(FrameAnalysis(
                frame_index=frame_index,
                timestamp=frame_index / sample_fps,
                landmarks=landmarks,
                angles=calculate_biomechanical_angles(landmarks),
            ))
        return frames


# ---------------------------------------------------------------------------
# Default analyzer for callers without their own wiring
# ---------------------------------------------------------------------------
_default_analyzer: Optional[VideoAnalyzer] = None
_default_lock = threading.Lock()


def get_default_analyzer() -> VideoAnalyzer:
    """Lazily build the OpenCV + MediaPipe analyzer, once per process."""
    global _default_analyzer
    with _default_lock:
        if _default_analyzer is None:
            from .detector import MediaPipePoseDetector
            from .frames import OpenCVFrameSampler

            _default_analyzer = VideoAnalyzer(OpenCVFrameSampler(), MediaPipePoseDetector())
    return _default_analyzer


def analyze(video_bytes: bytes, sample_fps: float = DEFAULT_SAMPLE_FPS) -> VideoAnalysis:
    """Analyze a video with the default analyzer."""
    return get_default_analyzer().analyze(video_bytes, sample_fps)
