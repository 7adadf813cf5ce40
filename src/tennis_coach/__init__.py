"""
Tennis stroke coach.

Turns a short video of a tennis stroke into biomechanical joint angles,
summary statistics and LLM-generated coaching feedback:
    pose       Keypoint geometry, per-frame angles and aggregation
    pipelines  Frame sampling, pose detection, analysis assembly, HTTP API
    agents     Coaching feedback (LangGraph + Gemini) and follow-up chat
"""

__version__ = "1.0.0"
