"""
Shared utilities for the backend pipeline.

- Fallback coaching feedback (when the Gemini LLM is not configured)
- Fallback chat replies
- Startup pose model pre-loading helper
"""

import logging

from ..pose.schemas import AnalysisSummary, CoachDrill, CoachFeedback, CoachTip

logger = logging.getLogger(__name__)

# Thresholds (degrees) for the rule-based feedback
STRAIGHT_KNEE_THRESHOLD = 160.0
BENT_ARM_THRESHOLD = 100.0
SHORT_SWING_RANGE = 30.0
SMALL_ROTATION_RANGE = 15.0

_PRIORITY_ORDER = {"high": 0, "medium": 1, "low": 2}

_DRILLS = {
    "legs": CoachDrill(
        name="Shadow swings from a split step",
        description=(
            "Split step, sit into both knees, then shadow the stroke while "
            "pushing up through the legs. Feel the swing start from the ground."
        ),
        repetitions="3 sets of 15 swings",
    ),
    "arm": CoachDrill(
        name="Resistance band extension",
        description=(
            "Anchor a band at hip height and swing through contact, reaching "
            "out in front so the hitting arm is fully extended."
        ),
        repetitions="3 sets of 20 per arm",
    ),
    "rotation": CoachDrill(
        name="Medicine ball rotational throws",
        description=(
            "Stand side-on to a wall and throw a light medicine ball by turning "
            "hips first, then shoulders. Keep the arms relaxed."
        ),
        repetitions="3 sets of 10 per side",
    ),
    "consistency": CoachDrill(
        name="Crosscourt rally to a target",
        description="Rally crosscourt aiming at a cone, repeating the same swing shape every ball.",
        repetitions="5 minutes",
    ),
}


# ---------------------------------------------------------------------------
# Fallback feedback (no LLM)
# ---------------------------------------------------------------------------

def generate_fallback_feedback(summary: AnalysisSummary) -> CoachFeedback:
    """Produce rule-based feedback when the Gemini LLM is unavailable.

    Args:
        summary: Averaged angles and range of motion of the stroke.

    Returns:
        CoachFeedback with up to three prioritized tips and two drills.
    """
    avg = summary.avg_angles
    rom = summary.range_of_motion
    tips: list[tuple[CoachTip, str]] = []

    knee = min(avg.left_knee_flex, avg.right_knee_flex)
    if knee > STRAIGHT_KNEE_THRESHOLD:
        tips.append((CoachTip(
            title="Bend your knees more",
            description=(
                f"Your knees stay almost straight ({knee:.0f}°). Lower your "
                "center of gravity to generate power from the legs."
            ),
            priority="high",
        ), "legs"))

    if avg.right_arm_angle < BENT_ARM_THRESHOLD:
        tips.append((CoachTip(
            title="Extend your hitting arm",
            description=(
                f"Your hitting arm averages {avg.right_arm_angle:.0f}°. Reach "
                "through contact for more range and control."
            ),
            priority="medium",
        ), "arm"))

    arm_span = rom.right_arm_range[1] - rom.right_arm_range[0]
    if arm_span < SHORT_SWING_RANGE:
        tips.append((CoachTip(
            title="Lengthen your swing",
            description=(
                f"Your hitting arm only moves through {arm_span:.0f}°. Prepare "
                "earlier and finish the follow-through."
            ),
            priority="medium",
        ), "arm"))

    rotation_span = rom.torso_rotation_range[1] - rom.torso_rotation_range[0]
    if rotation_span < SMALL_ROTATION_RANGE:
        tips.append((CoachTip(
            title="Turn your shoulders",
            description=(
                f"Your shoulders rotate only {rotation_span:.0f}° against the "
                "hips. Start the unit turn earlier and uncoil into the ball."
            ),
            priority="high",
        ), "rotation"))
    else:
        tips.append((CoachTip(
            title="Keep your torso rotation",
            description=(
                f"Your torso rotates through {rotation_span:.0f}°. Keep that "
                "movement fluid, starting from the hips."
            ),
            priority="low",
        ), "rotation"))

    tips.sort(key=lambda item: _PRIORITY_ORDER[item[0].priority])
    tips = tips[:3]

    drill_keys: list[str] = []
    for _, key in tips:
        if key not in drill_keys:
            drill_keys.append(key)
    if len(drill_keys) < 2:
        drill_keys.append("consistency")

    top = tips[0][0]
    if top.priority == "high":
        overview = f"Solid base to work from. The main thing to fix first: {top.title.lower()}."
    else:
        overview = "Good stroke overall. A few details will make it more powerful and consistent."

    return CoachFeedback(
        summary=overview,
        tips=tuple(tip for tip, _ in tips),
        drills=tuple(_DRILLS[k] for k in drill_keys[:2]),
    )


# ---------------------------------------------------------------------------
# Fallback chat (no LLM)
# ---------------------------------------------------------------------------

_CHAT_TOPICS: list[tuple[tuple[str, ...], str]] = [
    (("knee", "leg", "legs"),
     "Knee bend is what generates power. Practice shadow swings from a split "
     "step, 3 sets of 10, and increase gradually. Any doubt about the technique?"),
    (("arm", "elbow", "extension", "extend"),
     "Arm extension is key for control and power. Watch the ball and extend "
     "fully at contact. The resistance band drill will build that muscle memory."),
    (("torso", "rotation", "rotate", "shoulder", "hip"),
     "Keep the rotation fluid and start it from the hips. That rotation is the "
     "power that transfers into the arm. Shadow the stroke focusing only on the turn."),
]

_CHAT_DEFAULT = (
    "Good question. Tennis technique is built with consistent practice. Focus "
    "first on posture and balance, then on rotation, and finally on contact. "
    "Is there a specific part you want to go deeper on?"
)


def generate_fallback_chat_reply(message: str) -> str:
    """Keyword-based coach reply when the Gemini LLM is unavailable."""
    words = set(message.lower().replace("?", " ").replace(",", " ").split())
    for keywords, reply in _CHAT_TOPICS:
        if words.intersection(keywords):
            return reply
    return _CHAT_DEFAULT


# ---------------------------------------------------------------------------
# Startup pre-loader
# ---------------------------------------------------------------------------

def preload_detector(detector) -> None:
    """Eagerly load the pose model at server startup.

    A missing model file is logged rather than raised, so the server still
    starts and coaching/chat keep working; analysis then fails at request
    time.
    """
    try:
        detector.load()
        logger.info("Pre-loaded pose model.")
    except FileNotFoundError:
        logger.warning("Pose model not found, will fail at request time.", exc_info=True)
