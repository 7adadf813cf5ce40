"""
FastAPI entry point for the tennis stroke coach backend.

Endpoints:
    POST /api/analyze        Upload a stroke video, get the VideoAnalysis
    GET  /api/analyze/demo   Synthetic VideoAnalysis of a forehand
    POST /api/coach          VideoAnalysis -> CoachFeedback
    POST /api/chat           Follow-up question with session context

Run:
    cd <project_root>
    uvicorn tennis_coach.pipelines.main:app --host 0.0.0.0 --port 8000 --reload
"""

import logging
import threading
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import APIRouter, FastAPI, File, Form, Query, Request, UploadFile
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from ..agents import ChatAgent, CoachingAgent
from ..agents.chat_agent import new_chat_message
from ..errors import (
    AnalysisCancelledError,
    ContractError,
    FrameExtractionError,
    NoPoseDetectedError,
)
from ..pose.mock import generate_mock_video_analysis
from ..pose.schemas import (
    ChatMessage,
    ChatSession,
    CoachFeedback,
    VideoAnalysis,
    WireModel,
)
from .analysis import VideoAnalyzer
from .config import (
    ANALYSIS_TIMEOUT_SECONDS,
    DEFAULT_SAMPLE_FPS,
    MAX_DEMO_DURATION_SECONDS,
    MAX_UPLOAD_BYTES,
    PRELOAD_DETECTOR,
)
from .utils import generate_fallback_chat_reply, generate_fallback_feedback, preload_detector

logger = logging.getLogger("tennis_coach")
logging.basicConfig(level=logging.INFO, format="%(levelname)s | %(name)s | %(message)s")


# ============================================================================
# Request / response models
# ============================================================================

class CoachRequest(WireModel):
    analysis: VideoAnalysis
    previous_feedback: Optional[CoachFeedback] = None


class ChatRequest(WireModel):
    session: ChatSession
    message: str


class ChatResponse(WireModel):
    message: ChatMessage


class ErrorResponse(BaseModel):
    error_code: str
    message: str


def _error(status_code: int, error_code: str, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"error_code": error_code, "message": message},
    )


# ============================================================================
# App lifecycle - build collaborators once, share them across requests
# ============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create the analyzer and agents unless they were injected."""
    logger.info("Starting tennis stroke coach backend …")

    if getattr(app.state, "analyzer", None) is None:
        from .detector import MediaPipePoseDetector
        from .frames import OpenCVFrameSampler

        detector = MediaPipePoseDetector()
        if PRELOAD_DETECTOR:
            preload_detector(detector)
        app.state.analyzer = VideoAnalyzer(OpenCVFrameSampler(), detector)

    if getattr(app.state, "coaching_agent", None) is None:
        app.state.coaching_agent = CoachingAgent()

    if getattr(app.state, "chat_agent", None) is None:
        app.state.chat_agent = ChatAgent()

    logger.info("Server is ready.")
    yield
    logger.info("Shutting down.")


router = APIRouter()


# ============================================================================
# Health-check
# ============================================================================

@router.get("/health")
async def health():
    return {"status": "ok"}


# ============================================================================
# Analysis
# ============================================================================

@router.post(
    "/api/analyze",
    response_model=VideoAnalysis,
    response_model_exclude_none=True,
    responses={
        400: {"model": ErrorResponse},
        422: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
        504: {"model": ErrorResponse},
    },
)
def analyze_video(
    request: Request,
    video: Optional[UploadFile] = File(None),
    fps: Optional[float] = Form(None),
):
    """Video → sampled frames → pose → angles → summary.

    NOTE: This is a **sync** endpoint on purpose. FastAPI runs it in a
    threadpool so that decoding and pose inference do not block the
    asyncio event loop.
    """
    if video is None or not video.filename:
        return _error(400, "INVALID_REQUEST", "No video file provided.")
    if not (video.content_type or "").startswith("video/"):
        return _error(400, "INVALID_REQUEST", "Invalid file type. Must be a video.")

    sample_fps = DEFAULT_SAMPLE_FPS if fps is None else fps
    if sample_fps <= 0:
        return _error(400, "INVALID_REQUEST", f"fps must be positive, got {sample_fps}.")

    video_bytes = video.file.read(MAX_UPLOAD_BYTES + 1)
    if len(video_bytes) > MAX_UPLOAD_BYTES:
        return _error(
            400, "INVALID_REQUEST",
            f"File too large. Maximum size is {MAX_UPLOAD_BYTES // (1024 * 1024)}MB.",
        )
    if not video_bytes:
        return _error(400, "INVALID_REQUEST", "Uploaded video is empty.")

    analyzer: VideoAnalyzer = request.app.state.analyzer
    cancel_event = threading.Event()
    timer = threading.Timer(ANALYSIS_TIMEOUT_SECONDS, cancel_event.set)
    timer.daemon = True
    timer.start()
    try:
        analysis = analyzer.analyze(video_bytes, sample_fps, cancel_event=cancel_event)
    except NoPoseDetectedError:
        return _error(
            422, "NO_POSE_DETECTED",
            "No person was detected in the video. Make sure your full body is visible.",
        )
    except FrameExtractionError as exc:
        return _error(422, "VIDEO_DECODE_FAILED", str(exc))
    except AnalysisCancelledError:
        return _error(
            504, "ANALYSIS_TIMEOUT",
            f"Analysis took longer than {ANALYSIS_TIMEOUT_SECONDS:.0f}s. Try a shorter clip.",
        )
    except Exception as exc:
        logger.exception("Video analysis failed")
        return _error(500, "ANALYSIS_FAILED", f"Analysis error: {exc}")
    finally:
        timer.cancel()

    logger.info(
        "Analyzed '%s': %d frames, duration=%.1fs",
        video.filename, analysis.metadata.total_frames, analysis.metadata.duration,
    )
    return analysis


@router.get(
    "/api/analyze/demo",
    response_model=VideoAnalysis,
    response_model_exclude_none=True,
)
def analyze_demo(duration: float = Query(3.0, gt=0, le=MAX_DEMO_DURATION_SECONDS)):
    """Synthetic forehand analysis, for trying the UI without a video."""
    return generate_mock_video_analysis(duration)


# ============================================================================
# Coaching
# ============================================================================

@router.post(
    "/api/coach",
    response_model=CoachFeedback,
    response_model_exclude_none=True,
    responses={502: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
def coach(request: Request, body: CoachRequest):
    agent = request.app.state.coaching_agent
    summary = body.analysis.summary

    if not agent.available:
        logger.warning("LLM not configured, returning rule-based feedback.")
        return generate_fallback_feedback(summary)

    try:
        return agent.generate_feedback(summary, body.previous_feedback)
    except ContractError as exc:
        logger.warning("Coach returned malformed feedback: %s", exc)
        return _error(502, "INVALID_FEEDBACK", str(exc))
    except Exception as exc:
        logger.exception("Coaching failed")
        return _error(500, "COACHING_FAILED", f"Coaching error: {exc}")


@router.post(
    "/api/chat",
    response_model=ChatResponse,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
def chat(request: Request, body: ChatRequest):
    if not body.message.strip():
        return _error(400, "INVALID_REQUEST", "Message is required.")

    agent = request.app.state.chat_agent
    if not agent.available:
        logger.warning("LLM not configured, returning rule-based chat reply.")
        reply = generate_fallback_chat_reply(body.message)
        return ChatResponse(message=new_chat_message("assistant", reply))

    try:
        return ChatResponse(message=agent.reply(body.session, body.message))
    except Exception as exc:
        logger.exception("Chat failed")
        return _error(500, "CHAT_FAILED", f"Chat error: {exc}")


# ============================================================================
# App factory
# ============================================================================

async def _invalid_request_handler(request: Request, exc: RequestValidationError):
    errors = "; ".join(
        f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in exc.errors()
    )
    return _error(400, "INVALID_REQUEST", errors)


def create_app(
    analyzer: Optional[VideoAnalyzer] = None,
    coaching_agent=None,
    chat_agent=None,
) -> FastAPI:
    """Build the FastAPI app. Collaborators not given are created at startup."""
    app = FastAPI(
        title="Tennis Stroke Coach API",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.analyzer = analyzer
    app.state.coaching_agent = coaching_agent
    app.state.chat_agent = chat_agent

    # CORS - needed for the browser front-end
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(RequestValidationError, _invalid_request_handler)
    app.include_router(router)
    return app


app = create_app()
