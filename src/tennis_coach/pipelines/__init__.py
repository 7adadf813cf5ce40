"""
Backend pipeline for the tennis stroke coach.

Processes an uploaded stroke video in stages:
    Stage 1: Frame sampling (OpenCV)
    Stage 2: Pose detection per frame (MediaPipe PoseLandmarker)
    Stage 3: Biomechanical angles + summary statistics
    Stage 4: Coaching feedback (LangGraph + Gemini LLM)
"""
