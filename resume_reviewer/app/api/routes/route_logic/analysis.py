import logging

from fastapi import HTTPException, Request, UploadFile, status

from resume_reviewer.app.core.config import Settings
from resume_reviewer.app.models.resume import ResumeSubmission
from resume_reviewer.app.pipeline.capability import (
    Capability,
    ClientSignals,
    classify_with_settings,
)
from resume_reviewer.app.pipeline.errors import (
    ConversionFailed,
    CorruptRecord,
    InferenceFailed,
    MalformedReport,
    NotFound,
    PipelineError,
    RecordStoreFailed,
    UploadFailed,
)

log = logging.getLogger(__name__)

VIEWPORT_WIDTH_HEADER = "X-Viewport-Width"

_STATUS_CODES: dict[type[PipelineError], int] = {
    UploadFailed: status.HTTP_502_BAD_GATEWAY,
    ConversionFailed: status.HTTP_502_BAD_GATEWAY,
    InferenceFailed: status.HTTP_502_BAD_GATEWAY,
    MalformedReport: status.HTTP_502_BAD_GATEWAY,
    NotFound: status.HTTP_404_NOT_FOUND,
    CorruptRecord: status.HTTP_500_INTERNAL_SERVER_ERROR,
    RecordStoreFailed: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def pipeline_error_to_http(error: PipelineError) -> HTTPException:
    """Translate a pipeline failure into the HTTP error shown to the caller.

    Args:
        error (PipelineError): The failure raised by a pipeline stage or the retrieval path.

    Returns:
        HTTPException: The exception to raise; its detail is the short status string.
            Diagnostic detail such as a report field path stays in the log.

    """
    status_code = _STATUS_CODES.get(type(error), status.HTTP_500_INTERNAL_SERVER_ERROR)
    if isinstance(error, MalformedReport):
        _msg = f"Malformed report at {error.field_path}: {error.errors}"
        log.warning(_msg)
    return HTTPException(status_code=status_code, detail=error.status_text)


def _parse_width(value: str | int | None) -> int | None:
    if value is None or value == "":
        return None
    try:
        width = int(value)
    except (TypeError, ValueError):
        _msg = f"Ignoring unparsable viewport width: {value!r}"
        log.debug(_msg)
        return None
    return width if width > 0 else None


def client_signals_from_request(
    request: Request,
    viewport_width: str | int | None = None,
) -> ClientSignals:
    """Collect the capability signals of the caller.

    Args:
        request (Request): The incoming request.
        viewport_width (str | int | None): A width reported in the form or query; takes
            precedence over the `X-Viewport-Width` header.

    Returns:
        ClientSignals: The user agent and the viewport width, if any was reported.

    """
    width = _parse_width(viewport_width)
    if width is None:
        width = _parse_width(request.headers.get(VIEWPORT_WIDTH_HEADER))
    return ClientSignals(
        user_agent=request.headers.get("User-Agent", ""),
        viewport_width=width,
    )


def classify_request(
    request: Request,
    settings: Settings,
    viewport_width: str | int | None = None,
) -> Capability:
    """Classify the caller once for the whole request."""
    return classify_with_settings(
        client_signals_from_request(request, viewport_width),
        settings,
    )


async def read_submission(
    file: UploadFile,
    company_name: str,
    job_title: str,
    job_description: str,
    settings: Settings,
) -> ResumeSubmission:
    """Read the uploaded file into a submission.

    Args:
        file (UploadFile): The uploaded resume.
        company_name (str): Company name from the form.
        job_title (str): Job title from the form.
        job_description (str): Job description from the form.
        settings (Settings): The application settings, for the upload size limit.

    Returns:
        ResumeSubmission: The submission to analyze.

    Raises:
        HTTPException: 400 if the file is empty, 413 if it exceeds the size limit.

    """
    content = await file.read()
    if not content:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Error: No file was uploaded",
        )
    if len(content) > settings.max_upload_bytes:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail="Error: File is too large",
        )

    return ResumeSubmission(
        filename=file.filename or "resume.pdf",
        content=content,
        content_type=file.content_type or "application/pdf",
        company_name=company_name,
        job_title=job_title,
        job_description=job_description,
    )
