"""
Application type classification.

Maps a parsed application document to the kind of claim it represents. The
checks run in priority order and the first match wins: fatal claims are
examined before the crime duration, and a split funeral document is always a
funeral claim.
"""

from enum import Enum
from typing import Any

from .models import Document

ABOUT_APPLICATION_THEME = "about-application"
CRIME_THEME = "crime"

FATAL_CLAIM_ID = "q-applicant-fatal-claim"
CLAIM_TYPE_ID = "q-applicant-claim-type"
CRIME_DURATION_ID = "q-applicant-did-the-crime-happen-once-or-over-time"

OVER_A_PERIOD_OF_TIME = "over-a-period-of-time"
ONCE = "once"


class ApplicationType(Enum):
    """Application type with the label shown on the summary."""
    UNKNOWN = "Unknown"
    FATAL = "Fatal"
    FUNERAL = "Funeral"
    PERIOD_OF_ABUSE = "Period of abuse"
    PERSONAL_INJURY = "Personal injury"

    @property
    def label(self) -> str:
        return self.value


def _answer(document: Document, theme_id: str, question_id: str) -> Any:
    question = document.find_question(theme_id, question_id)
    return getattr(question, "value", None)


def _truthy(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() not in ("", "false", "no", "0")
    return bool(value)


def classify(document: Document) -> ApplicationType:
    """
    Classify an application document.

    Never raises; documents without the expected questions are UNKNOWN.
    """
    if _truthy(_answer(document, ABOUT_APPLICATION_THEME, FATAL_CLAIM_ID)):
        if _truthy(_answer(document, ABOUT_APPLICATION_THEME, CLAIM_TYPE_ID)) or document.meta.split_funeral:
            return ApplicationType.FUNERAL
        return ApplicationType.FATAL

    crime_duration = _answer(document, CRIME_THEME, CRIME_DURATION_ID)
    if crime_duration == OVER_A_PERIOD_OF_TIME:
        return ApplicationType.PERIOD_OF_ABUSE
    if crime_duration == ONCE:
        return ApplicationType.PERSONAL_INJURY

    return ApplicationType.UNKNOWN
