"""
Error taxonomy for the analysis pipeline.

Each error also derives from the builtin exception the rest of the code base
raises for the same situation, so ``except ValueError`` / ``except
RuntimeError`` handlers keep working.
"""


class TennisCoachError(Exception):
    """Base class for errors raised by this package."""


class EmptyInputError(TennisCoachError, ValueError):
    """Aggregation was asked to summarize zero frames."""


class NoPoseDetectedError(TennisCoachError, RuntimeError):
    """No sampled frame of the video contained a detectable pose."""


class FrameExtractionError(TennisCoachError, RuntimeError):
    """The video could not be decoded into frames."""


class AnalysisCancelledError(TennisCoachError, RuntimeError):
    """The analysis was stopped between frames by its caller."""


class ContractError(TennisCoachError, ValueError):
    """A payload does not match its wire contract."""
