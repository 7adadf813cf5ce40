"""
State definition for the coaching agent graph.

Pydantic model for the state that flows through the LangGraph nodes.
"""

from typing import Optional

from langchain_core.messages import BaseMessage
from pydantic import BaseModel, ConfigDict, Field

from ..pose.schemas import AnalysisSummary, CoachFeedback


class CoachingState(BaseModel):
    """
    State that flows through the LangGraph coaching agent.

    Each node adds to it: the rendered prompt, the raw model output, and
    finally the validated feedback.
    """
    model_config = ConfigDict(arbitrary_types_allowed=True)

    # Input data
    summary: AnalysisSummary
    previous_feedback: Optional[CoachFeedback] = None

    # Rendered prompt messages
    messages: list[BaseMessage] = Field(default_factory=list)

    # Raw text returned by the LLM
    raw_response: str = ""

    # Final output
    feedback: Optional[CoachFeedback] = None
