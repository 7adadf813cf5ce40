"""
Frame sampling: video bytes to ordered still frames.

Decodes the uploaded video with OpenCV, keeps one frame per ``1 / fps``
seconds and writes the kept frames as PNGs into a private temporary
directory. The returned ``ExtractedFrames`` owns that directory; callers
must call ``cleanup()`` once they are done with the frames.
"""

import logging
import shutil
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, Protocol

import cv2
import numpy as np

from ..errors import FrameExtractionError

logger = logging.getLogger(__name__)

_INPUT_NAME = "input.mp4"


@dataclass(frozen=True)
class VideoMetadata:
    duration: float
    width: int
    height: int
    source_fps: float


class ExtractedFrames:
    """Sampled frames stored on disk, read back lazily in order."""

    def __init__(self, directory: Path, paths: list[Path]):
        self.directory = directory
        self.paths = paths

    def __len__(self) -> int:
        return len(self.paths)

    def __iter__(self) -> Iterator[np.ndarray]:
        for path in self.paths:
            image = cv2.imread(str(path))
            if image is None:
                raise FrameExtractionError(f"Could not read extracted frame {path.name}.")
            yield image

    def cleanup(self) -> None:
        """Delete the temporary directory. May raise OSError."""
        shutil.rmtree(self.directory)


class FrameSampler(Protocol):
    def probe(self, video_bytes: bytes) -> VideoMetadata: ...

    def extract(self, video_bytes: bytes, target_fps: float) -> ExtractedFrames: ...


def _open_capture(video_path: Path) -> cv2.VideoCapture:
    cap = cv2.VideoCapture(str(video_path))
    if not cap.isOpened():
        cap.release()
        raise FrameExtractionError("Could not open video. Check the file format.")
    return cap


def _source_fps(cap: cv2.VideoCapture) -> float:
    fps = cap.get(cv2.CAP_PROP_FPS)
    if not fps or fps <= 0:
        fps = 30.0  # Default fallback
    return float(fps)


class OpenCVFrameSampler:
    """FrameSampler backed by ``cv2.VideoCapture``."""

    def probe(self, video_bytes: bytes) -> VideoMetadata:
        """Read duration and resolution of the video.

        Raises:
            FrameExtractionError: If the video cannot be opened.
        """
        with tempfile.TemporaryDirectory(prefix="tennis-video-") as tmpdir:
            video_path = Path(tmpdir) / _INPUT_NAME
            video_path.write_bytes(video_bytes)

            cap = _open_capture(video_path)
            try:
                fps = _source_fps(cap)
                frame_count = cap.get(cv2.CAP_PROP_FRAME_COUNT) or 0
                width = int(cap.get(cv2.CAP_PROP_FRAME_WIDTH) or 0)
                height = int(cap.get(cv2.CAP_PROP_FRAME_HEIGHT) or 0)
            finally:
                cap.release()

        return VideoMetadata(
            duration=max(float(frame_count), 0.0) / fps,
            width=width,
            height=height,
            source_fps=fps,
        )

    def extract(self, video_bytes: bytes, target_fps: float) -> ExtractedFrames:
        """Sample frames at ``target_fps`` into a new temporary directory.

        Args:
            video_bytes: Raw uploaded video.
            target_fps: Frames to keep per second of video.

        Returns:
            ExtractedFrames owning the temporary directory.

        Raises:
            ValueError: If ``target_fps`` is not positive.
            FrameExtractionError: If decoding fails or yields no frames.
        """
        if target_fps <= 0:
            raise ValueError(f"target_fps must be positive, got {target_fps}.")

        tmpdir = Path(tempfile.mkdtemp(prefix="tennis-frames-"))
        try:
            video_path = tmpdir / _INPUT_NAME
            video_path.write_bytes(video_bytes)
            frames_dir = tmpdir / "frames"
            frames_dir.mkdir()

            paths = self._sample(video_path, frames_dir, target_fps)
            if not paths:
                raise FrameExtractionError("No frames were extracted. Check video format.")
        except BaseException:
            shutil.rmtree(tmpdir, ignore_errors=True)
            raise

        logger.info("Extracted %d frames at %.2f fps", len(paths), target_fps)
        return ExtractedFrames(tmpdir, paths)

    @staticmethod
    def _sample(video_path: Path, frames_dir: Path, target_fps: float) -> list[Path]:
        cap = _open_capture(video_path)
        try:
            source_fps = _source_fps(cap)
            interval = 1.0 / target_fps
            next_sample_time = 0.0
            frame_number = 0
            paths: list[Path] = []

            while True:
                ret, frame = cap.read()
                if not ret:
                    break
                timestamp = frame_number / source_fps
                frame_number += 1

                # Small tolerance so e.g. 30 fps -> 10 fps keeps every 3rd frame
                if timestamp + 1e-6 < next_sample_time:
                    continue
                next_sample_time += interval

                path = frames_dir / f"frame-{len(paths):04d}.png"
                if not cv2.imwrite(str(path), frame):
                    raise FrameExtractionError(f"Could not write frame {path.name}.")
                paths.append(path)
        finally:
            cap.release()
        return paths
