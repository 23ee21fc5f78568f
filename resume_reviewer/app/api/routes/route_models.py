import logging

from pydantic import BaseModel, ConfigDict, Field

from resume_reviewer.app.models.resume import ResumeRecord
from resume_reviewer.app.pipeline.retrieval import PreviewMode

log = logging.getLogger(__name__)


class _ApiModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class ResumeDetailResponse(_ApiModel):
    """Response model for a single resume review.

    Attributes:
        record (ResumeRecord): The stored record, with `feedback` as "" while pending.
        preview_mode (PreviewMode): How the client should present the resume.
        document_url (str): Where to fetch the source document.
        image_url (str | None): Where to fetch the preview image, or None without one.

    """

    record: ResumeRecord
    preview_mode: PreviewMode = Field(alias="previewMode")
    document_url: str = Field(alias="documentUrl")
    image_url: str | None = Field(default=None, alias="imageUrl")


class ResumeCardResponse(_ApiModel):
    """Response model for one entry of the resume list.

    Attributes:
        id (str): The record id.
        company_name (str): Company name, possibly empty.
        job_title (str): Job title, possibly empty.
        overall_score (float | None): The overall score, or None while pending.
        show_preview (bool): Whether the card shows the preview image.
        image_url (str | None): Where to fetch the preview image when it is shown.

    """

    id: str
    company_name: str = Field(alias="companyName")
    job_title: str = Field(alias="jobTitle")
    overall_score: float | None = Field(default=None, alias="overallScore")
    show_preview: bool = Field(alias="showPreview")
    image_url: str | None = Field(default=None, alias="imageUrl")


class SessionResponse(_ApiModel):
    """Response model for the authentication state of the caller."""

    is_authenticated: bool = Field(alias="isAuthenticated")
    subject: str | None = None
