import inspect
import logging
import uuid
from collections.abc import Awaitable, Callable

from resume_reviewer.app.llm.inference import InferenceClient, request_feedback
from resume_reviewer.app.llm.prompts import prepare_instructions
from resume_reviewer.app.llm.report import parse_feedback_report
from resume_reviewer.app.models.resume import ResumeRecord, ResumeSubmission
from resume_reviewer.app.pipeline.capability import Capability
from resume_reviewer.app.pipeline.conversion import ConversionResult, DocumentConverter
from resume_reviewer.app.pipeline.errors import (
    ConversionFailed,
    MalformedReport,
    NotFound,
    UploadFailed,
)
from resume_reviewer.app.storage.blobs import BlobAdapter
from resume_reviewer.app.storage.records import RecordStore

log = logging.getLogger(__name__)

StatusCallback = Callable[[str], Awaitable[None] | None]

STATUS_UPLOADING = "Uploading the file..."
STATUS_CONSTRAINED = "Processing for a constrained client..."
STATUS_CONVERTING = "Converting to image..."
STATUS_UPLOADING_IMAGE = "Uploading the image..."
STATUS_PREPARING = "Preparing data..."
STATUS_ANALYZING = "Analyzing..."
STATUS_COMPLETE = "Analysis complete, redirecting..."


def generate_record_id() -> str:
    return uuid.uuid4().hex


class ResumeAnalysisPipeline:
    """Runs one resume submission from upload to a stored, validated report.

    Every stage is a checkpoint that may fail independently:

    1. upload the document (UploadFailed, nothing persisted);
    2. use the capability tag classified by the caller to decide on a preview;
    3. convert and upload the preview (non-fatal unless `conversion_failure_fatal`);
    4. persist the pending record under `resume:{id}`;
    5. request feedback (InferenceFailed, record stays pending);
    6. parse the answer (MalformedReport, record stays pending);
    7. persist the populated record under the same key.

    Attributes:
        conversion_failure_fatal (bool): When True, a failed conversion or preview upload
            aborts the submission before any record is created. When False it degrades
            to `image_path == ""`.

    """

    def __init__(
        self,
        blobs: BlobAdapter,
        records: RecordStore,
        converter: DocumentConverter,
        inference: InferenceClient,
        conversion_failure_fatal: bool = False,
        id_factory: Callable[[], str] = generate_record_id,
    ):
        self._blobs = blobs
        self._records = records
        self._converter = converter
        self._inference = inference
        self.conversion_failure_fatal = conversion_failure_fatal
        self._id_factory = id_factory

    async def analyze(
        self,
        submission: ResumeSubmission,
        capability: Capability,
        on_status: StatusCallback | None = None,
    ) -> ResumeRecord:
        """Analyze a new resume submission.

        Args:
            submission (ResumeSubmission): The uploaded file and its job context.
            capability (Capability): The client classification, computed once per submission.
            on_status (StatusCallback | None): Receives a short status string at each stage.

        Returns:
            ResumeRecord: The persisted record holding a fully validated report.

        Raises:
            UploadFailed: If the document cannot be stored. No record is created.
            ConversionFailed: If the preview cannot be produced and the failure policy is fatal.
            InferenceFailed: If the inference collaborator gives no usable answer.
            MalformedReport: If the answer does not satisfy the report schema.
            RecordStoreFailed: If a record write is rejected by the store.

        Notes:
            1. The pending record write completes before the inference request starts, so
               a `load` issued after that point always finds the record.
            2. After an InferenceFailed or MalformedReport the stored record remains pending
               and can be retried with `reanalyze`.

        """
        _msg = f"analyze starting for {submission.filename} ({capability.value})"
        log.debug(_msg)

        await self._report_status(on_status, STATUS_UPLOADING)
        resume_path = await self._blobs.upload(
            submission.content,
            submission.filename,
            submission.content_type,
        )

        image_path = await self._produce_preview(submission, capability, on_status)

        await self._report_status(on_status, STATUS_PREPARING)
        record = ResumeRecord(
            id=self._id_factory(),
            resume_path=resume_path,
            image_path=image_path,
            company_name=submission.company_name,
            job_title=submission.job_title,
            job_description=submission.job_description,
            feedback=None,
        )
        await self._records.save(record)
        _msg = f"Pending record {record.id} persisted"
        log.info(_msg)

        return await self._run_analysis(record, on_status)

    async def reanalyze(
        self,
        record_id: str,
        on_status: StatusCallback | None = None,
    ) -> ResumeRecord:
        """Run inference again for an existing record.

        Args:
            record_id (str): The id of a stored record, pending or populated.
            on_status (StatusCallback | None): Receives a short status string at each stage.

        Returns:
            ResumeRecord: The record with the new report.

        Raises:
            NotFound: If no record is stored under the id.
            InferenceFailed: If the inference collaborator gives no usable answer.
            MalformedReport: If the answer does not satisfy the report schema.
            RecordStoreFailed: If a record write is rejected by the store.

        Notes:
            1. On failure the stored record is left untouched; a populated report is
               never reverted to pending.
            2. Concurrent re-analysis of the same id is last-writer-wins.

        """
        record = await self._records.get(record_id)
        if record is None:
            raise NotFound()
        return await self._run_analysis(record, on_status)

    async def _run_analysis(
        self,
        record: ResumeRecord,
        on_status: StatusCallback | None,
    ) -> ResumeRecord:
        await self._report_status(on_status, STATUS_ANALYZING)
        instructions = prepare_instructions(record.job_title, record.job_description)
        answer = await request_feedback(self._inference, record.resume_path, instructions)

        try:
            report = parse_feedback_report(answer)
        except MalformedReport:
            _msg = f"Report for record {record.id} rejected; record left as stored"
            log.warning(_msg)
            raise

        updated = record.with_feedback(report)
        await self._records.save(updated)
        _msg = f"Record {record.id} populated with overall score {report.overall_score}"
        log.info(_msg)

        await self._report_status(on_status, STATUS_COMPLETE)
        return updated

    async def _produce_preview(
        self,
        submission: ResumeSubmission,
        capability: Capability,
        on_status: StatusCallback | None,
    ) -> str:
        """Return the blob path of the preview image, or "" when there is none."""
        if capability == Capability.CONSTRAINED:
            _msg = "Constrained client, skipping preview conversion"
            log.debug(_msg)
            await self._report_status(on_status, STATUS_CONSTRAINED)
            return ""

        await self._report_status(on_status, STATUS_CONVERTING)
        try:
            result = await self._converter.convert(submission.content, submission.filename)
        except Exception as e:
            _msg = f"Converter raised for {submission.filename}: {e!s}"
            log.exception(_msg)
            result = ConversionResult(error=str(e))

        if result.file is None:
            return self._preview_failed(
                ConversionFailed(result.error or "Conversion produced no image")
            )

        await self._report_status(on_status, STATUS_UPLOADING_IMAGE)
        try:
            return await self._blobs.upload(
                result.file.content,
                result.file.filename,
                result.file.content_type,
            )
        except UploadFailed as e:
            return self._preview_failed(e)

    def _preview_failed(self, error: ConversionFailed | UploadFailed) -> str:
        if self.conversion_failure_fatal:
            raise error
        _msg = f"Preview unavailable, continuing without image: {error!s}"
        log.warning(_msg)
        return ""

    @staticmethod
    async def _report_status(on_status: StatusCallback | None, status_text: str) -> None:
        _msg = f"Pipeline status: {status_text}"
        log.debug(_msg)
        if on_status is None:
            return
        result = on_status(status_text)
        if inspect.isawaitable(result):
            await result
