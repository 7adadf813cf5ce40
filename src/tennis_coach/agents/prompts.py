"""
Prompt templates for the coaching and chat agents.

The feedback prompt embeds the averaged stroke angles and the two ranges of
motion shown to players (right arm, torso rotation), and asks the model for
a JSON object in the CoachFeedback shape.
"""

from typing import Optional

from langchain_core.prompts import ChatPromptTemplate

from ..pose.schemas import AnalysisSummary, ChatContext, CoachFeedback
from .config import MAX_CHAT_WORDS, MAX_FEEDBACK_WORDS


# System prompt that defines the coach's persona
COACH_SYSTEM_PROMPT = """You are a professional tennis coach and an expert in stroke biomechanics.
You answer ONLY with valid JSON, no commentary, no markdown."""


# Main feedback generation prompt
COACH_FEEDBACK_PROMPT = ChatPromptTemplate.from_messages([
    ("system", COACH_SYSTEM_PROMPT),
    ("human", """Analyze the following biomechanical data from a tennis stroke.

Average angles:
- Left arm: {left_arm_angle:.1f}°
- Right arm: {right_arm_angle:.1f}°
- Left leg: {left_leg_angle:.1f}°
- Right leg: {right_leg_angle:.1f}°
- Torso rotation: {torso_rotation:.1f}°
- Left knee flexion: {left_knee_flex:.1f}°
- Right knee flexion: {right_knee_flex:.1f}°

Range of motion:
- Right arm: {right_arm_min:.1f}° - {right_arm_max:.1f}°
- Torso rotation: {torso_rotation_min:.1f}° - {torso_rotation_max:.1f}°
{previous_feedback}
Your task:
1. Write a short summary (2-3 sentences) of the stroke
2. Give the three most important observations, prioritized (high/medium/low)
3. Suggest two practical drills to improve

Respond ONLY with a valid JSON object with this structure:
{{
  "summary": "string",
  "tips": [
    {{"title": "string", "description": "string", "priority": "high|medium|low"}}
  ],
  "drills": [
    {{"name": "string", "description": "string", "repetitions": "string (optional)"}}
  ]
}}

Use a motivating, concise tone. At most {max_words} words in total."""),
])


def format_previous_feedback(feedback: Optional[CoachFeedback]) -> str:
    """Format feedback from an earlier turn, or '' when there is none."""
    if feedback is None:
        return ""
    lines = ["", "Feedback you already gave this player:", feedback.summary]
    if feedback.tips:
        lines.append("Key points mentioned:")
        lines.extend(f"- {tip.title}" for tip in feedback.tips)
    lines.append("Build on it rather than repeating it.")
    return "\n".join(lines) + "\n"


def feedback_prompt_variables(
    summary: AnalysisSummary,
    previous_feedback: Optional[CoachFeedback] = None,
) -> dict:
    """Template variables for COACH_FEEDBACK_PROMPT."""
    avg = summary.avg_angles
    rom = summary.range_of_motion
    return {
        "left_arm_angle": avg.left_arm_angle,
        "right_arm_angle": avg.right_arm_angle,
        "left_leg_angle": avg.left_leg_angle,
        "right_leg_angle": avg.right_leg_angle,
        "torso_rotation": avg.torso_rotation,
        "left_knee_flex": avg.left_knee_flex,
        "right_knee_flex": avg.right_knee_flex,
        "right_arm_min": rom.right_arm_range[0],
        "right_arm_max": rom.right_arm_range[1],
        "torso_rotation_min": rom.torso_rotation_range[0],
        "torso_rotation_max": rom.torso_rotation_range[1],
        "previous_feedback": format_previous_feedback(previous_feedback),
        "max_words": MAX_FEEDBACK_WORDS,
    }


def build_coaching_prompt(
    summary: AnalysisSummary,
    previous_feedback: Optional[CoachFeedback] = None,
) -> str:
    """Render the human part of the feedback prompt as plain text."""
    messages = COACH_FEEDBACK_PROMPT.format_messages(
        **feedback_prompt_variables(summary, previous_feedback)
    )
    return messages[-1].content


# ============================================================================
# Chat
# ============================================================================

CHAT_SYSTEM_PROMPT = """You are Coach AI, a professional tennis coach and an expert in biomechanics and technique.

Your communication style is:
- Motivating and positive
- Technically precise
- Concise and direct
- Focused on practical actions
"""


def build_chat_system_prompt(context: Optional[ChatContext]) -> str:
    """System prompt for the follow-up chat, with the session's analysis context."""
    prompt = CHAT_SYSTEM_PROMPT

    if context is not None and context.last_analysis is not None:
        avg = context.last_analysis.summary.avg_angles
        prompt += (
            "\nContext from the recent analysis:\n"
            f"- Average right arm angle: {avg.right_arm_angle:.1f}°\n"
            f"- Torso rotation: {avg.torso_rotation:.1f}°\n"
            f"- Knee flexion: {avg.left_knee_flex:.1f}°\n"
        )

    if context is not None and context.last_feedback is not None:
        feedback = context.last_feedback
        tip_titles = "\n".join(f"- {tip.title}" for tip in feedback.tips)
        prompt += (
            "\nFeedback you already gave:\n"
            f"{feedback.summary}\n\n"
            "Key points mentioned:\n"
            f"{tip_titles}\n"
        )

    prompt += (
        "\nAnswer the user's questions based on this context and your tennis "
        f"expertise. Keep answers short (at most {MAX_CHAT_WORDS} words)."
    )
    return prompt
