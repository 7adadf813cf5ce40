"""
Settings for the coaching and chat agents.

The Gemini key comes from ``GEMINI_API_KEY`` (environment or the project's
``.env``). Without it both agents report themselves unavailable and the API
answers with rule-based feedback instead.
"""

import os
import warnings
from pathlib import Path
from dotenv import load_dotenv

PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent.parent
load_dotenv(PROJECT_ROOT / ".env")

# ---------------------------------------------------------------------------
# Gemini
# ---------------------------------------------------------------------------
GEMINI_API_KEY: str = os.environ.get("GEMINI_API_KEY", "")
if not GEMINI_API_KEY:
    warnings.warn(
        "GEMINI_API_KEY is not set; coaching feedback and chat replies will be rule-based."
    )

GEMINI_MODEL_NAME: str = os.environ.get("GEMINI_MODEL_NAME", "gemini-2.5-flash")
COACH_TEMPERATURE: float = float(os.environ.get("COACH_TEMPERATURE", "0.7"))

# ---------------------------------------------------------------------------
# Answer length (words) requested in the prompts
# ---------------------------------------------------------------------------
MAX_FEEDBACK_WORDS: int = 200
MAX_CHAT_WORDS: int = 150
