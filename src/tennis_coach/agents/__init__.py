"""
Agents module for the tennis stroke coach.

This module contains the LLM agents that turn an analysis summary into
coaching feedback and answer follow-up questions.
"""

from .chat_agent import ChatAgent
from .coaching_agent import CoachingAgent
from .prompts import build_chat_system_prompt, build_coaching_prompt
from .state import CoachingState

__all__ = [
    "CoachingAgent",
    "ChatAgent",
    "CoachingState",
    "build_coaching_prompt",
    "build_chat_system_prompt",
]
