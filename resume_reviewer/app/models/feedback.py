import logging
from enum import Enum
from typing import Annotated, Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

log = logging.getLogger(__name__)

Score = Annotated[float, Field(strict=True, ge=0, le=100)]


class TipType(str, Enum):
    """Whether a tip praises something or asks for an improvement."""

    GOOD = "good"
    IMPROVE = "improve"


class _ReportModel(BaseModel):
    model_config = ConfigDict(frozen=True)


class AtsTip(_ReportModel):
    """A headline-only tip of the ATS category.

    Attributes:
        type (TipType): `good` or `improve`.
        tip (str): The short tip text.

    """

    type: TipType
    tip: str

    @model_validator(mode="before")
    @classmethod
    def _reject_explanation(cls, data: Any) -> Any:
        if isinstance(data, dict) and "explanation" in data:
            raise ValueError("ATS tips do not carry an explanation")
        return data


class DetailedTip(_ReportModel):
    """A tip with a longer explanation, used by every category except ATS.

    Attributes:
        type (TipType): `good` or `improve`.
        tip (str): The short tip text.
        explanation (str): Why the tip applies and what to do about it.

    """

    type: TipType
    tip: str
    explanation: str


class AtsCategory(_ReportModel):
    """Applicant-tracking-system compatibility score and its tips."""

    score: Score
    tips: list[AtsTip]


class DetailedCategory(_ReportModel):
    """Score and explained tips for one review category."""

    score: Score
    tips: list[DetailedTip]


class FeedbackReport(_ReportModel):
    """
    The structured review of a resume.

    Field names follow Python conventions; the aliases are the names used in
    the inference answer and in the record store.

    Attributes:
        overall_score (float): Overall score from 0 to 100 (`overallScore`).
        ats (AtsCategory): ATS compatibility (`ATS`).
        tone_and_style (DetailedCategory): Tone and style (`toneAndStyle`).
        content (DetailedCategory): Content quality.
        structure (DetailedCategory): Layout and structure.
        skills (DetailedCategory): Skills relevance.

    Notes:
        1. Tip order is the presentation order and is preserved.
        2. No relationship between the overall score and the category scores is enforced.

    """

    overall_score: Score = Field(alias="overallScore")
    ats: AtsCategory = Field(alias="ATS")
    tone_and_style: DetailedCategory = Field(alias="toneAndStyle")
    content: DetailedCategory
    structure: DetailedCategory
    skills: DetailedCategory
