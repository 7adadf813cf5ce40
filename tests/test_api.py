"""Tests for the FastAPI boundary, with fake analyzer collaborators and agents."""

from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient

from tennis_coach.errors import AnalysisCancelledError, ContractError, FrameExtractionError
from tennis_coach.pipelines import main
from tennis_coach.pipelines.analysis import VideoAnalyzer
from tennis_coach.pose.mock import generate_mock_landmarks, generate_mock_video_analysis
from tennis_coach.pose.schemas import (
    JOINT_NAMES,
    ChatMessage,
    CoachDrill,
    CoachFeedback,
    CoachTip,
    Keypoint,
)


# ============================================================================
# Fakes
# ============================================================================

class FakeFrames:
    directory = "/tmp/fake-frames"

    def __init__(self, count):
        self.images = list(range(count))

    def __len__(self):
        return len(self.images)

    def __iter__(self):
        return iter(self.images)

    def cleanup(self):
        pass


class FakeSampler:
    def __init__(self, count=5, error=None):
        self.count = count
        self.error = error

    def probe(self, video_bytes):
        if self.error is not None:
            raise self.error
        return SimpleNamespace(duration=0.5, width=640, height=480, source_fps=30.0)

    def extract(self, video_bytes, target_fps):
        return FakeFrames(self.count)


class FakeDetector:
    def __init__(self, found=True):
        self.found = found

    def detect(self, image):
        if not self.found:
            return None
        landmarks = generate_mock_landmarks(image, 5)
        return {name: getattr(landmarks, name) for name in JOINT_NAMES}


class CancelledAnalyzer:
    def analyze(self, video_bytes, sample_fps, cancel_event=None):
        raise AnalysisCancelledError("too slow")


class FakeCoach:
    def __init__(self, available=True, error=None):
        self.available = available
        self.error = error
        self.previous = None

    def generate_feedback(self, summary, previous_feedback=None):
        self.previous = previous_feedback
        if self.error is not None:
            raise self.error
        return CoachFeedback(
            summary="Nice stroke.",
            tips=(CoachTip(title="Bend your knees", description="Lower.", priority="high"),),
            drills=(CoachDrill(name="Shadow swings", description="Slowly."),),
        )


class FakeChat:
    def __init__(self, available=True):
        self.available = available

    def reply(self, session, message):
        return ChatMessage(id="m1", role="assistant", content=f"About '{message}'", timestamp=1.0)


def _make_client(analyzer=None, coach=None, chat=None) -> TestClient:
    app = main.create_app(
        analyzer=analyzer or VideoAnalyzer(FakeSampler(), FakeDetector()),
        coaching_agent=coach or FakeCoach(),
        chat_agent=chat or FakeChat(),
    )
    return TestClient(app)


def _video_file(content=b"fake-mp4-bytes", content_type="video/mp4"):
    return {"video": ("swing.mp4", content, content_type)}


def _analysis_payload() -> dict:
    return generate_mock_video_analysis(1.0).model_dump(mode="json", by_alias=True)


# ============================================================================
# Test: Health and demo
# ============================================================================

class TestHealthAndDemo:
    def test_health(self):
        with _make_client() as client:
            assert client.get("/health").json() == {"status": "ok"}

    def test_demo_analysis(self):
        with _make_client() as client:
            response = client.get("/api/analyze/demo", params={"duration": 2})
        assert response.status_code == 200
        body = response.json()
        assert body["metadata"]["totalFrames"] == 20
        assert len(body["frames"]) == 20

    def test_demo_rejects_non_positive_duration(self):
        with _make_client() as client:
            response = client.get("/api/analyze/demo", params={"duration": 0})
        assert response.status_code == 400
        assert response.json()["error_code"] == "INVALID_REQUEST"


# ============================================================================
# Test: Analysis endpoint
# ============================================================================

class TestAnalyzeEndpoint:
    def test_returns_camel_case_analysis(self):
        with _make_client() as client:
            response = client.post("/api/analyze", files=_video_file())
        assert response.status_code == 200
        body = response.json()
        assert body["metadata"] == {"duration": 0.5, "fps": 10.0, "totalFrames": 5}
        assert "rightArmAngle" in body["summary"]["avgAngles"]
        assert [f["frameIndex"] for f in body["frames"]] == [0, 1, 2, 3, 4]

    def test_custom_sampling_rate(self):
        with _make_client() as client:
            response = client.post("/api/analyze", files=_video_file(), data={"fps": "5"})
        assert response.json()["metadata"]["fps"] == 5.0
        assert response.json()["frames"][1]["timestamp"] == pytest.approx(0.2)

    def test_missing_file(self):
        with _make_client() as client:
            response = client.post("/api/analyze", data={"fps": "10"})
        assert response.status_code == 400
        assert response.json()["error_code"] == "INVALID_REQUEST"

    def test_non_video_content_type(self):
        with _make_client() as client:
            response = client.post("/api/analyze", files=_video_file(content_type="image/png"))
        assert response.status_code == 400
        assert response.json()["error_code"] == "INVALID_REQUEST"

    def test_file_too_large(self, monkeypatch):
        monkeypatch.setattr(main, "MAX_UPLOAD_BYTES", 8)
        with _make_client() as client:
            response = client.post("/api/analyze", files=_video_file(content=b"x" * 9))
        assert response.status_code == 400
        assert "too large" in response.json()["message"]

    def test_non_positive_fps(self):
        with _make_client() as client:
            response = client.post("/api/analyze", files=_video_file(), data={"fps": "0"})
        assert response.status_code == 400

    def test_no_pose_detected(self):
        analyzer = VideoAnalyzer(FakeSampler(), FakeDetector(found=False))
        with _make_client(analyzer=analyzer) as client:
            response = client.post("/api/analyze", files=_video_file())
        assert response.status_code == 422
        assert response.json()["error_code"] == "NO_POSE_DETECTED"

    def test_undecodable_video(self):
        sampler = FakeSampler(error=FrameExtractionError("Could not open video."))
        with _make_client(analyzer=VideoAnalyzer(sampler, FakeDetector())) as client:
            response = client.post("/api/analyze", files=_video_file())
        assert response.status_code == 422
        assert response.json()["error_code"] == "VIDEO_DECODE_FAILED"

    def test_timeout(self):
        with _make_client(analyzer=CancelledAnalyzer()) as client:
            response = client.post("/api/analyze", files=_video_file())
        assert response.status_code == 504
        assert response.json()["error_code"] == "ANALYSIS_TIMEOUT"

    def test_unexpected_error(self):
        sampler = FakeSampler(error=OSError("disk full"))
        with _make_client(analyzer=VideoAnalyzer(sampler, FakeDetector())) as client:
            response = client.post("/api/analyze", files=_video_file())
        assert response.status_code == 500
        assert response.json()["error_code"] == "ANALYSIS_FAILED"


# ============================================================================
# Test: Wire output omits unset optional fields
# ============================================================================

class ScorelessDetector:
    """Reports joints without visibility, as some detectors do."""

    def detect(self, image):
        return {name: Keypoint(x=0.5, y=0.1 + 0.05 * i) for i, name in enumerate(JOINT_NAMES)}


def _null_paths(value, path="$"):
    if value is None:
        return [path]
    if isinstance(value, dict):
        return [p for key, item in value.items() for p in _null_paths(item, f"{path}.{key}")]
    if isinstance(value, list):
        return [p for i, item in enumerate(value) for p in _null_paths(item, f"{path}[{i}]")]
    return []


class TestWireOutput:
    def test_demo_keypoints_have_no_nulls(self):
        with _make_client() as client:
            body = client.get("/api/analyze/demo", params={"duration": 1}).json()
        assert _null_paths(body) == []
        assert body["frames"][0]["landmarks"]["leftShoulder"] == {"x": 0.4, "y": 0.35, "score": 0.98}

    def test_analysis_keypoints_have_no_nulls(self):
        with _make_client() as client:
            body = client.post("/api/analyze", files=_video_file()).json()
        assert _null_paths(body) == []
        assert "name" not in body["frames"][0]["landmarks"]["nose"]

    def test_missing_score_is_omitted(self):
        analyzer = VideoAnalyzer(FakeSampler(count=2), ScorelessDetector())
        with _make_client(analyzer=analyzer) as client:
            response = client.post("/api/analyze", files=_video_file())
        assert response.status_code == 200
        nose = response.json()["frames"][0]["landmarks"]["nose"]
        assert nose == {"x": 0.5, "y": 0.1}


# ============================================================================
# Test: Coaching endpoint
# ============================================================================

class TestCoachEndpoint:
    def test_feedback_from_agent(self):
        with _make_client() as client:
            response = client.post("/api/coach", json={"analysis": _analysis_payload()})
        assert response.status_code == 200
        body = response.json()
        assert body["summary"] == "Nice stroke."
        # Optional fields left unset are omitted
        assert "repetitions" not in body["drills"][0]

    def test_previous_feedback_forwarded(self):
        coach = FakeCoach()
        previous = {"summary": "Earlier.", "tips": [], "drills": []}
        with _make_client(coach=coach) as client:
            client.post("/api/coach", json={"analysis": _analysis_payload(), "previousFeedback": previous})
        assert coach.previous.summary == "Earlier."

    def test_fallback_without_llm(self):
        with _make_client(coach=FakeCoach(available=False)) as client:
            response = client.post("/api/coach", json={"analysis": _analysis_payload()})
        assert response.status_code == 200
        body = response.json()
        assert 1 <= len(body["tips"]) <= 3
        assert len(body["drills"]) == 2

    def test_malformed_llm_output(self):
        coach = FakeCoach(error=ContractError("Invalid coach feedback"))
        with _make_client(coach=coach) as client:
            response = client.post("/api/coach", json={"analysis": _analysis_payload()})
        assert response.status_code == 502
        assert response.json()["error_code"] == "INVALID_FEEDBACK"

    def test_invalid_analysis_rejected(self):
        payload = _analysis_payload()
        payload["metadata"]["totalFrames"] = 3
        with _make_client() as client:
            response = client.post("/api/coach", json={"analysis": payload})
        assert response.status_code == 400
        assert response.json()["error_code"] == "INVALID_REQUEST"


# ============================================================================
# Test: Chat endpoint
# ============================================================================

class TestChatEndpoint:
    def _body(self, message):
        return {"session": {"sessionId": "s1", "messages": []}, "message": message}

    def test_reply(self):
        with _make_client() as client:
            response = client.post("/api/chat", json=self._body("knees?"))
        assert response.status_code == 200
        assert response.json()["message"]["content"] == "About 'knees?'"
        assert response.json()["message"]["role"] == "assistant"

    def test_empty_message(self):
        with _make_client() as client:
            response = client.post("/api/chat", json=self._body("  "))
        assert response.status_code == 400
        assert response.json()["error_code"] == "INVALID_REQUEST"

    def test_fallback_without_llm(self):
        with _make_client(chat=FakeChat(available=False)) as client:
            response = client.post("/api/chat", json=self._body("How should I bend my knee?"))
        assert response.status_code == 200
        assert "Knee bend" in response.json()["message"]["content"]
