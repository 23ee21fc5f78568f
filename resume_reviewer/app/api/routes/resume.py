import logging

from fastapi import (
    APIRouter,
    Depends,
    File,
    Form,
    HTTPException,
    Query,
    Request,
    UploadFile,
    status,
)
from fastapi.responses import Response, StreamingResponse

from resume_reviewer.app.api.dependencies import get_pipeline, get_retrieval
from resume_reviewer.app.api.routes.route_logic.analysis import (
    classify_request,
    pipeline_error_to_http,
    read_submission,
)
from resume_reviewer.app.api.routes.route_logic.analysis_sse import (
    analysis_sse_generator,
)
from resume_reviewer.app.api.routes.route_models import (
    ResumeCardResponse,
    ResumeDetailResponse,
)
from resume_reviewer.app.core.auth import get_current_subject
from resume_reviewer.app.core.config import Settings, get_settings
from resume_reviewer.app.models.resume import ResumeRecord
from resume_reviewer.app.pipeline.errors import PipelineError
from resume_reviewer.app.pipeline.orchestrator import (
    ResumeAnalysisPipeline,
    StatusCallback,
)
from resume_reviewer.app.pipeline.retrieval import (
    ResumeRetrieval,
    preview_mode,
    show_card_preview,
)

log = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/resumes",
    tags=["resumes"],
    dependencies=[Depends(get_current_subject)],
)


def _document_url(record_id: str) -> str:
    return f"/api/resumes/{record_id}/document"


def _image_url(record_id: str) -> str:
    return f"/api/resumes/{record_id}/image"


@router.post("/analyze", response_model=ResumeRecord)
async def analyze_resume(
    request: Request,
    file: UploadFile = File(...),
    company_name: str = Form(""),
    job_title: str = Form(...),
    job_description: str = Form(...),
    viewport_width: str | None = Form(None),
    settings: Settings = Depends(get_settings),
    pipeline: ResumeAnalysisPipeline = Depends(get_pipeline),
):
    """
    Analyze an uploaded resume against a job and store the review.

    Args:
        request (Request): The HTTP request, used for capability signals.
        file (UploadFile): The resume document.
        company_name (str): Company the candidate applies to.
        job_title (str): Title of the position.
        job_description (str): Description of the position.
        viewport_width (str | None): Viewport width reported by the client.
        settings (Settings): The application settings.
        pipeline (ResumeAnalysisPipeline): The analysis pipeline.

    Returns:
        ResumeRecord: The stored record with its validated feedback report.

    Raises:
        HTTPException: 400/413 for an unusable upload, 502 when a pipeline stage fails.

    Notes:
        1. Reads the upload into a submission.
        2. Classifies the client once; the tag is passed through the whole run.
        3. Runs the pipeline and translates stage failures into HTTP errors.

    """
    submission = await read_submission(
        file=file,
        company_name=company_name,
        job_title=job_title,
        job_description=job_description,
        settings=settings,
    )
    capability = classify_request(request, settings, viewport_width)

    try:
        return await pipeline.analyze(submission, capability)
    except PipelineError as e:
        raise pipeline_error_to_http(e) from e


@router.post("/analyze/stream", response_class=StreamingResponse)
async def analyze_resume_stream(
    request: Request,
    file: UploadFile = File(...),
    company_name: str = Form(""),
    job_title: str = Form(...),
    job_description: str = Form(...),
    viewport_width: str | None = Form(None),
    settings: Settings = Depends(get_settings),
    pipeline: ResumeAnalysisPipeline = Depends(get_pipeline),
) -> StreamingResponse:
    """
    Analyze an uploaded resume, streaming progress as Server-Sent Events.

    Emits a `progress` event per stage, then `done` with the record JSON or
    `error` with the failure status, then `close`.
    """
    submission = await read_submission(
        file=file,
        company_name=company_name,
        job_title=job_title,
        job_description=job_description,
        settings=settings,
    )
    capability = classify_request(request, settings, viewport_width)

    async def run(on_status: StatusCallback) -> ResumeRecord:
        return await pipeline.analyze(submission, capability, on_status)

    return StreamingResponse(
        analysis_sse_generator(run),
        media_type="text/event-stream",
    )


@router.post("/{record_id}/reanalyze", response_model=ResumeRecord)
async def reanalyze_resume(
    record_id: str,
    pipeline: ResumeAnalysisPipeline = Depends(get_pipeline),
):
    """Run the analysis again for a stored resume, e.g. after a failed attempt."""
    try:
        return await pipeline.reanalyze(record_id)
    except PipelineError as e:
        raise pipeline_error_to_http(e) from e


@router.get("", response_model=list[ResumeCardResponse])
async def list_resumes(
    request: Request,
    viewport_width: str | None = Query(None),
    settings: Settings = Depends(get_settings),
    retrieval: ResumeRetrieval = Depends(get_retrieval),
):
    """
    List every stored resume as a card.

    Args:
        request (Request): The HTTP request, used for capability signals.
        viewport_width (str | None): Viewport width reported by the client.
        settings (Settings): The application settings.
        retrieval (ResumeRetrieval): The retrieval path.

    Returns:
        list[ResumeCardResponse]: One card per record; the preview is only offered for
            records that have one when the client is full-fidelity.

    """
    capability = classify_request(request, settings, viewport_width)
    records = await retrieval.list_records()

    cards = []
    for record in records:
        show_preview = show_card_preview(record, capability)
        cards.append(
            ResumeCardResponse(
                id=record.id,
                company_name=record.company_name,
                job_title=record.job_title,
                overall_score=None if record.is_pending else record.feedback.overall_score,
                show_preview=show_preview,
                image_url=_image_url(record.id) if show_preview else None,
            )
        )
    return cards


@router.get("/{record_id}", response_model=ResumeDetailResponse)
async def get_resume(
    record_id: str,
    request: Request,
    viewport_width: str | None = Query(None),
    settings: Settings = Depends(get_settings),
    retrieval: ResumeRetrieval = Depends(get_retrieval),
):
    """
    Retrieve a resume review.

    Args:
        record_id (str): The record id.
        request (Request): The HTTP request, used for capability signals.
        viewport_width (str | None): Viewport width reported by the client.
        settings (Settings): The application settings.
        retrieval (ResumeRetrieval): The retrieval path.

    Returns:
        ResumeDetailResponse: The record, how to present it, and where its artifacts live.

    Raises:
        HTTPException: 404 if the record or its source document does not exist.

    """
    try:
        loaded = await retrieval.load(record_id)
    except PipelineError as e:
        raise pipeline_error_to_http(e) from e

    capability = classify_request(request, settings, viewport_width)
    return ResumeDetailResponse(
        record=loaded.record,
        preview_mode=preview_mode(loaded, capability),
        document_url=_document_url(record_id),
        image_url=_image_url(record_id) if loaded.image is not None else None,
    )


@router.get("/{record_id}/document")
async def get_resume_document(
    record_id: str,
    retrieval: ResumeRetrieval = Depends(get_retrieval),
) -> Response:
    """Return the source document of a resume."""
    try:
        loaded = await retrieval.load(record_id)
    except PipelineError as e:
        raise pipeline_error_to_http(e) from e
    return Response(content=loaded.document, media_type="application/pdf")


@router.get("/{record_id}/image")
async def get_resume_image(
    record_id: str,
    retrieval: ResumeRetrieval = Depends(get_retrieval),
) -> Response:
    """Return the preview image of a resume, or 404 when it has none."""
    try:
        loaded = await retrieval.load(record_id)
    except PipelineError as e:
        raise pipeline_error_to_http(e) from e

    if loaded.image is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Resume preview not available",
        )
    return Response(content=loaded.image, media_type="image/png")
