"""
Data contracts for the stroke analysis pipeline.

Defines the pydantic models that flow between pose detection, aggregation
and the coaching layer, plus the two parsing boundaries used for payloads
that arrive from outside the process (HTTP bodies, LLM output).

Python attributes are snake_case; the JSON wire format keeps the camelCase
field names existing clients depend on (``leftArmAngle``, ``frameIndex``,
``rangeOfMotion`` ...). Dump with ``by_alias=True``.
"""

import json
from typing import Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator
from pydantic.alias_generators import to_camel

from ..errors import ContractError


class WireModel(BaseModel):
    """Immutable model serialized with camelCase keys."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )


# ============================================================================
# Pose models
# ============================================================================

class Keypoint(WireModel):
    """A detected 2D landmark in normalized image coordinates."""
    x: float
    y: float
    score: Optional[float] = Field(default=None, ge=0.0, le=1.0)
    name: Optional[str] = None


class PoseLandmarks(WireModel):
    """The 17 canonical body joints of a single pose. No joint is ever absent."""

    model_config = ConfigDict(extra="forbid")

    nose: Keypoint
    left_eye: Keypoint
    right_eye: Keypoint
    left_ear: Keypoint
    right_ear: Keypoint
    left_shoulder: Keypoint
    right_shoulder: Keypoint
    left_elbow: Keypoint
    right_elbow: Keypoint
    left_wrist: Keypoint
    right_wrist: Keypoint
    left_hip: Keypoint
    right_hip: Keypoint
    left_knee: Keypoint
    right_knee: Keypoint
    left_ankle: Keypoint
    right_ankle: Keypoint


JOINT_NAMES: tuple[str, ...] = tuple(PoseLandmarks.model_fields)


class BiomechanicalAngles(WireModel):
    """Joint and segment angles (degrees) derived from one pose."""
    left_arm_angle: float = Field(ge=0.0, le=180.0)
    right_arm_angle: float = Field(ge=0.0, le=180.0)
    left_leg_angle: float = Field(ge=0.0, le=180.0)
    right_leg_angle: float = Field(ge=0.0, le=180.0)
    torso_rotation: float = Field(ge=-180.0, le=180.0)
    left_knee_flex: float = Field(ge=0.0, le=180.0)
    right_knee_flex: float = Field(ge=0.0, le=180.0)


ANGLE_FIELDS: tuple[str, ...] = tuple(BiomechanicalAngles.model_fields)


class FrameAnalysis(WireModel):
    """Pose and angles for one sampled frame in which a person was detected."""
    frame_index: int = Field(ge=0, description="Position in the sampled sequence")
    timestamp: float = Field(ge=0.0, description="Seconds from video start")
    landmarks: PoseLandmarks
    angles: BiomechanicalAngles


# ============================================================================
# Summary models
# ============================================================================

AngleRange = tuple[float, float]


class RangeOfMotion(WireModel):
    """[min, max] of the surfaced angles across all analyzed frames."""
    left_arm_range: AngleRange
    right_arm_range: AngleRange
    left_leg_range: AngleRange
    right_leg_range: AngleRange
    torso_rotation_range: AngleRange


# Wire range field -> angle field it is computed from
RANGE_OF_MOTION_SOURCES: dict[str, str] = {
    "left_arm_range": "left_arm_angle",
    "right_arm_range": "right_arm_angle",
    "left_leg_range": "left_leg_angle",
    "right_leg_range": "right_leg_angle",
    "torso_rotation_range": "torso_rotation",
}


class AnalysisSummary(WireModel):
    avg_angles: BiomechanicalAngles
    range_of_motion: RangeOfMotion


class AnalysisMetadata(WireModel):
    duration: float = Field(ge=0.0, description="Video duration in seconds")
    fps: float = Field(gt=0.0, description="Frame sampling rate used")
    total_frames: int = Field(ge=0, description="Frames actually analyzed")


class VideoAnalysis(WireModel):
    """The complete result of analyzing one video."""
    frames: tuple[FrameAnalysis, ...]
    summary: AnalysisSummary
    metadata: AnalysisMetadata

    @model_validator(mode="after")
    def _total_frames_matches(self) -> "VideoAnalysis":
        if self.metadata.total_frames != len(self.frames):
            raise ValueError(
                f"metadata.totalFrames ({self.metadata.total_frames}) does not "
                f"match the number of frames ({len(self.frames)})"
            )
        return self


# ============================================================================
# Coaching models
# ============================================================================

class CoachTip(WireModel):
    title: str
    description: str
    priority: Literal["high", "medium", "low"]


class CoachDrill(WireModel):
    name: str
    description: str
    repetitions: Optional[str] = None


class CoachFeedback(WireModel):
    """Structured coaching produced by the text generator."""
    summary: str
    tips: tuple[CoachTip, ...]
    drills: tuple[CoachDrill, ...]


class ChatMessage(WireModel):
    id: str
    role: Literal["user", "assistant"]
    content: str
    timestamp: float = Field(description="Unix time in milliseconds")


class ChatContext(WireModel):
    last_analysis: Optional[VideoAnalysis] = None
    last_feedback: Optional[CoachFeedback] = None


class ChatSession(WireModel):
    session_id: str
    messages: tuple[ChatMessage, ...] = ()
    context: Optional[ChatContext] = None


# ============================================================================
# Parsing boundaries
# ============================================================================

def _describe_errors(exc: ValidationError) -> str:
    parts = []
    for err in exc.errors():
        location = ".".join(str(p) for p in err["loc"]) or "<root>"
        parts.append(f"{location}: {err['msg']}")
    return "; ".join(parts)


def _extract_json_object(raw: str) -> Any:
    """Decode JSON from raw LLM text, tolerating code fences and prose."""
    text = raw.strip()
    if text.startswith("```"):
        text = text.strip("`").strip()
        if text.lower().startswith("json"):
            text = text[4:].strip()
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        pass
    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end <= start:
        raise ContractError("Response does not contain a JSON object.")
    try:
        return json.loads(text[start:end + 1])
    except json.JSONDecodeError as exc:
        raise ContractError(f"Response is not valid JSON: {exc}") from exc


def parse_video_analysis(payload: Union[dict, str, bytes]) -> VideoAnalysis:
    """Validate an external payload against the VideoAnalysis contract.

    Args:
        payload: Decoded JSON object, or JSON text.

    Returns:
        The validated, immutable VideoAnalysis.

    Raises:
        ContractError: If the payload is not valid JSON or does not match
            the contract (missing fields, out-of-range angles, ...).
    """
    try:
        if isinstance(payload, (str, bytes)):
            return VideoAnalysis.model_validate_json(payload)
        return VideoAnalysis.model_validate(payload)
    except ValidationError as exc:
        raise ContractError(f"Invalid video analysis: {_describe_errors(exc)}") from exc


def parse_coach_feedback(payload: Union[dict, str]) -> CoachFeedback:
    """Validate text-generator output against the CoachFeedback contract.

    Args:
        payload: A decoded JSON object, or the raw text returned by the
            model (optionally fenced as a Markdown code block).

    Returns:
        The validated CoachFeedback.

    Raises:
        ContractError: If no JSON object can be decoded or its shape does
            not match (unknown priority, missing summary, ...).
    """
    data = _extract_json_object(payload) if isinstance(payload, str) else payload
    if not isinstance(data, dict):
        raise ContractError(
            f"Coach feedback must be a JSON object, got {type(data).__name__}."
        )
    try:
        return CoachFeedback.model_validate(data)
    except ValidationError as exc:
        raise ContractError(f"Invalid coach feedback: {_describe_errors(exc)}") from exc
