"""
Follow-up chat with the coach.

Answers player questions with the session's last analysis and feedback as
context. The conversation itself is held by the client and sent with every
message; nothing is stored server-side.
"""

import logging
import time
import uuid

from langchain_core.messages import AIMessage, HumanMessage, SystemMessage

from ..pose.schemas import ChatMessage, ChatSession
from .coaching_agent import build_llm, response_text
from .prompts import build_chat_system_prompt

logger = logging.getLogger(__name__)


def new_chat_message(role: str, content: str) -> ChatMessage:
    return ChatMessage(
        id=uuid.uuid4().hex,
        role=role,
        content=content,
        timestamp=time.time() * 1000,
    )


class ChatAgent:
    """Coach chat backed by a LangChain chat model.

    Args:
        llm: Any LangChain chat model. Defaults to Gemini when configured.
    """

    def __init__(self, llm=None):
        self.llm = llm if llm is not None else build_llm()

    @property
    def available(self) -> bool:
        return self.llm is not None

    def reply(self, session: ChatSession, message: str) -> ChatMessage:
        """Answer ``message`` in the context of ``session``.

        Raises:
            ValueError: If ``message`` is empty.
            RuntimeError: If no LLM is configured or it returns nothing.
        """
        if not message or not message.strip():
            raise ValueError("Message is required.")
        if self.llm is None:
            raise RuntimeError("No LLM configured for the chat agent.")

        messages = [SystemMessage(content=build_chat_system_prompt(session.context))]
        for past in session.messages:
            if past.role == "user":
                messages.append(HumanMessage(content=past.content))
            else:
                messages.append(AIMessage(content=past.content))
        messages.append(HumanMessage(content=message))

        text = response_text(self.llm.invoke(messages)).strip()
        if not text:
            raise RuntimeError("Empty response from the chat model.")

        logger.info("Chat reply for session %s (%d prior messages)", session.session_id, len(session.messages))
        return new_chat_message("assistant", text)
