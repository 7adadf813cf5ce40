"""Tests for the OpenCV frame sampler and MediaPipe detector adapters.

These need the real libraries but no model file; sample clips are encoded
into pytest's tmp_path.
"""

import logging
import threading
import time

import numpy as np
import pytest

cv2 = pytest.importorskip("cv2")

from tennis_coach.errors import FrameExtractionError  # noqa: E402
from tennis_coach.pipelines import frames as frames_module  # noqa: E402
from tennis_coach.pipelines.frames import ExtractedFrames, OpenCVFrameSampler  # noqa: E402
from tennis_coach.pose.schemas import JOINT_NAMES  # noqa: E402


def _write_png(path, value: int):
    image = np.full((8, 8, 3), value, dtype=np.uint8)
    assert cv2.imwrite(str(path), image)
    return path


def _write_clip(path, n_frames: int = 30, fps: float = 30.0) -> bytes:
    """Encode a clip whose frame i is a flat gray of value 8 * i."""
    writer = cv2.VideoWriter(str(path), cv2.VideoWriter_fourcc(*"MJPG"), fps, (64, 64))
    if not writer.isOpened():
        pytest.skip("No MJPG encoder available in this OpenCV build")
    try:
        for i in range(n_frames):
            writer.write(np.full((64, 64, 3), 8 * i, dtype=np.uint8))
    finally:
        writer.release()
    return path.read_bytes()


def _gray_levels(frames) -> list[float]:
    return [float(image.mean()) for image in frames]


# ============================================================================
# Test: Extracted frames
# ============================================================================

class TestExtractedFrames:
    def test_iterates_in_order(self, tmp_path):
        paths = [_write_png(tmp_path / f"frame-{i:04d}.png", 40 * i) for i in range(3)]
        frames = ExtractedFrames(tmp_path, paths)

        images = list(frames)
        assert len(frames) == 3
        assert [int(img[0, 0, 0]) for img in images] == [0, 40, 80]

    def test_unreadable_frame(self, tmp_path):
        frames = ExtractedFrames(tmp_path, [tmp_path / "missing.png"])
        with pytest.raises(FrameExtractionError):
            list(frames)

    def test_cleanup_removes_directory(self, tmp_path):
        directory = tmp_path / "frames"
        directory.mkdir()
        frames = ExtractedFrames(directory, [_write_png(directory / "frame-0000.png", 1)])
        frames.cleanup()
        assert not directory.exists()


# ============================================================================
# Test: OpenCV sampler
# ============================================================================

class TestOpenCVFrameSampler:
    def test_non_positive_fps_rejected(self):
        with pytest.raises(ValueError):
            OpenCVFrameSampler().extract(b"anything", 0)

    def test_garbage_bytes_fail_and_leave_nothing_behind(self, tmp_path, monkeypatch):
        workdir = tmp_path / "work"

        def fake_mkdtemp(**kwargs):
            workdir.mkdir()
            return str(workdir)

        monkeypatch.setattr(frames_module.tempfile, "mkdtemp", fake_mkdtemp)
        with pytest.raises(FrameExtractionError):
            OpenCVFrameSampler().extract(b"definitely not a video", 10)
        assert not workdir.exists()

    @pytest.fixture
    def clip(self, tmp_path):
        return _write_clip(tmp_path / "clip.avi", n_frames=30, fps=30.0)

    def test_probe_duration(self, clip):
        metadata = OpenCVFrameSampler().probe(clip)
        assert metadata.duration == pytest.approx(1.0, abs=0.05)
        assert (metadata.width, metadata.height) == (64, 64)
        assert metadata.source_fps == pytest.approx(30.0)

    def test_keeps_every_third_frame_at_a_third_of_source_rate(self, clip):
        frames = OpenCVFrameSampler().extract(clip, 10)
        try:
            levels = _gray_levels(frames)
            assert len(frames) == 10
            # Frames 0, 3, 6, ... in order
            assert levels == pytest.approx([8 * i for i in range(0, 30, 3)], abs=4)
        finally:
            frames.cleanup()

    def test_keeps_every_frame_above_source_rate(self, clip):
        frames = OpenCVFrameSampler().extract(clip, 60)
        try:
            assert len(frames) == 30
            levels = _gray_levels(frames)
            assert levels == sorted(levels)
        finally:
            frames.cleanup()

    def test_cleanup_removes_sampled_frames(self, clip):
        frames = OpenCVFrameSampler().extract(clip, 5)
        directory = frames.directory
        assert directory.exists()
        frames.cleanup()
        assert not directory.exists()


# ============================================================================
# Test: MediaPipe detector
# ============================================================================

class TestMediaPipePoseDetector:
    @pytest.fixture
    def detector_module(self):
        pytest.importorskip("mediapipe")
        from tennis_coach.pipelines import detector
        return detector

    def test_maps_every_canonical_joint(self, detector_module):
        assert set(detector_module.MEDIAPIPE_JOINT_INDICES) == set(JOINT_NAMES)
        assert len(set(detector_module.MEDIAPIPE_JOINT_INDICES.values())) == 17

    @pytest.mark.parametrize("image", [
        np.zeros((8, 8), dtype=np.uint8),
        np.zeros((8, 8, 4), dtype=np.uint8),
        "frame.png",
    ])
    def test_malformed_image_rejected(self, detector_module, tmp_path, image):
        detector = detector_module.MediaPipePoseDetector(model_path=tmp_path / "none.task")
        with pytest.raises(ValueError):
            detector.detect(image)

    def test_missing_model_file(self, detector_module, tmp_path):
        detector = detector_module.MediaPipePoseDetector(model_path=tmp_path / "none.task")
        with pytest.raises(FileNotFoundError):
            detector.load()
        assert not detector.loaded

    def test_preload_tolerates_missing_model(self, detector_module, tmp_path, caplog):
        from tennis_coach.pipelines.utils import preload_detector

        detector = detector_module.MediaPipePoseDetector(model_path=tmp_path / "none.task")
        with caplog.at_level(logging.WARNING):
            preload_detector(detector)
        assert "Pose model not found" in caplog.text

    def test_concurrent_first_loads_create_one_landmarker(self, detector_module, tmp_path, monkeypatch):
        model_path = tmp_path / "pose_landmarker_full.task"
        model_path.write_bytes(b"model")
        created = []
        created_lock = threading.Lock()

        def fake_create(options):
            time.sleep(0.05)
            with created_lock:
                created.append(object())
                return created[-1]

        monkeypatch.setattr(detector_module.vision.PoseLandmarker, "create_from_options", fake_create)

        detector = detector_module.MediaPipePoseDetector(model_path=model_path)
        n_threads = 8
        barrier = threading.Barrier(n_threads)
        results = [None] * n_threads

        def worker(i):
            barrier.wait()
            results[i] = detector.load()

        threads = [threading.Thread(target=worker, args=(i,)) for i in range(n_threads)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join(timeout=10)

        assert len(created) == 1
        assert all(result is created[0] for result in results)
        assert detector.loaded
