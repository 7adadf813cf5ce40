"""
Coaching Agent - LangGraph Implementation.

This agent uses LangGraph to create a stateful workflow that:
1. Renders the feedback prompt from the analysis summary
2. Generates coaching feedback with the LLM (Gemini by default)
3. Validates the output against the CoachFeedback contract

Malformed model output fails the call with ``ContractError``; there are no
automatic retries.
"""

import logging
from typing import Optional

from langchain_google_genai import ChatGoogleGenerativeAI
from langgraph.graph import END, START, StateGraph

from ..pose.schemas import AnalysisSummary, CoachFeedback, parse_coach_feedback
from .config import COACH_TEMPERATURE, GEMINI_API_KEY, GEMINI_MODEL_NAME
from .prompts import COACH_FEEDBACK_PROMPT, feedback_prompt_variables
from .state import CoachingState

logger = logging.getLogger(__name__)


def response_text(response) -> str:
    """Plain text of a chat model response (string or list of content parts)."""
    content = response.content if hasattr(response, "content") else response
    if isinstance(content, list):
        parts = []
        for part in content:
            if isinstance(part, dict):
                parts.append(part.get("text", ""))
            else:
                parts.append(str(part))
        return "".join(parts)
    return str(content)


def build_llm():
    """Gemini chat model from configuration, or None without an API key."""
    if not GEMINI_API_KEY:
        return None
    return ChatGoogleGenerativeAI(
        model=GEMINI_MODEL_NAME,
        google_api_key=GEMINI_API_KEY,
        temperature=COACH_TEMPERATURE,
    )


# ============================================================================
# Graph Nodes
# ============================================================================

def build_prompt_node(state: CoachingState) -> dict:
    """
    Node 1: Render the feedback prompt from the summary.
    """
    messages = COACH_FEEDBACK_PROMPT.format_messages(
        **feedback_prompt_variables(state.summary, state.previous_feedback)
    )
    return {"messages": messages}


def make_generate_node(llm):
    """
    Node 2: Call the LLM with the rendered prompt.
    """
    def generate_llm_node(state: CoachingState) -> dict:
        response = llm.invoke(state.messages)
        return {"raw_response": response_text(response)}

    return generate_llm_node


def parse_feedback_node(state: CoachingState) -> dict:
    """
    Node 3: Validate the LLM output against the CoachFeedback contract.
    """
    feedback = parse_coach_feedback(state.raw_response)
    return {"feedback": feedback}


# ============================================================================
# Build the Graph
# ============================================================================

def build_coaching_graph(llm):
    """Build and return the compiled coaching agent graph."""
    graph = StateGraph(CoachingState)

    graph.add_node("build_prompt", build_prompt_node)
    graph.add_node("generate_llm", make_generate_node(llm))
    graph.add_node("parse_feedback", parse_feedback_node)

    # START → build_prompt → generate_llm → parse_feedback → END
    graph.add_edge(START, "build_prompt")
    graph.add_edge("build_prompt", "generate_llm")
    graph.add_edge("generate_llm", "parse_feedback")
    graph.add_edge("parse_feedback", END)

    return graph.compile()


# ============================================================================
# Main Agent Class
# ============================================================================

class CoachingAgent:
    """
    LangGraph-based coaching agent.

    Example usage:
        agent = CoachingAgent()
        if agent.available:
            feedback = agent.generate_feedback(analysis.summary)

    Args:
        llm: Any LangChain chat model. Defaults to Gemini when
            ``GEMINI_API_KEY`` is configured; without one the agent is
            unavailable and callers should fall back to rule-based feedback.
    """

    def __init__(self, llm=None):
        self.llm = llm if llm is not None else build_llm()
        self.graph = build_coaching_graph(self.llm) if self.llm is not None else None

    @property
    def available(self) -> bool:
        return self.graph is not None

    def generate_feedback(
        self,
        summary: AnalysisSummary,
        previous_feedback: Optional[CoachFeedback] = None,
    ) -> CoachFeedback:
        """
        Generate structured coaching feedback for an analysis summary.

        Args:
            summary: Averaged angles and range of motion of the stroke.
            previous_feedback: Feedback given on an earlier turn, if any.

        Returns:
            Validated CoachFeedback.

        Raises:
            RuntimeError: If no LLM is configured.
            ContractError: If the LLM output does not match CoachFeedback.
        """
        if self.graph is None:
            raise RuntimeError("No LLM configured for the coaching agent.")

        initial_state = CoachingState(summary=summary, previous_feedback=previous_feedback)
        result = self.graph.invoke(initial_state)

        feedback = result["feedback"]
        logger.info("Generated feedback with %d tips, %d drills", len(feedback.tips), len(feedback.drills))
        return feedback
