import logging
from dataclasses import dataclass
from typing import Any

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    SerializationInfo,
    field_serializer,
    field_validator,
)

from resume_reviewer.app.models.feedback import FeedbackReport

log = logging.getLogger(__name__)

RECORD_KEY_PREFIX = "resume:"


def record_key(record_id: str) -> str:
    """Return the record store key for a resume id."""
    return f"{RECORD_KEY_PREFIX}{record_id}"


@dataclass
class ResumeSubmission:
    """Dataclass to hold one user-initiated analysis request."""

    filename: str
    content: bytes
    job_title: str
    job_description: str
    company_name: str = ""
    content_type: str = "application/pdf"


class ResumeRecord(BaseModel):
    """One resume submission and its eventual feedback report.

    Attributes:
        id (str): Unique identifier generated at submission time; the retrieval handle.
        resume_path (str): Blob path of the uploaded source document.
        image_path (str): Blob path of the preview image, or "" when no preview was generated.
        company_name (str): Company the candidate is applying to.
        job_title (str): Title of the position.
        job_description (str): Description of the position.
        feedback (FeedbackReport | None): None while the record is pending, the validated
            report once analysis succeeded.

    Notes:
        1. The record is immutable; updates produce a new instance via `model_copy`.
        2. Serialized with aliases, the pending state is written as `"feedback": ""`
           and an empty string is read back as pending.

    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    id: str
    resume_path: str = Field(alias="resumePath")
    image_path: str = Field(default="", alias="imagePath")
    company_name: str = Field(default="", alias="companyName")
    job_title: str = Field(default="", alias="jobTitle")
    job_description: str = Field(default="", alias="jobDescription")
    feedback: FeedbackReport | None = None

    @field_validator("feedback", mode="before")
    @classmethod
    def _empty_feedback_is_pending(cls, value: Any) -> Any:
        if value == "":
            return None
        return value

    @field_serializer("feedback")
    def _serialize_feedback(
        self,
        feedback: FeedbackReport | None,
        info: SerializationInfo,
    ) -> Any:
        if feedback is None:
            return ""
        return feedback.model_dump(mode=info.mode, by_alias=info.by_alias)

    @property
    def key(self) -> str:
        return record_key(self.id)

    @property
    def is_pending(self) -> bool:
        return self.feedback is None

    @property
    def has_image(self) -> bool:
        return self.image_path != ""

    def with_feedback(self, report: FeedbackReport) -> "ResumeRecord":
        """Return a copy of the record holding the populated report."""
        return self.model_copy(update={"feedback": report})

    def to_json(self) -> str:
        """Serialize the record in its record-store wire format."""
        return self.model_dump_json(by_alias=True)
