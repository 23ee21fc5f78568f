import json
from unittest.mock import AsyncMock, MagicMock

import pytest

from resume_reviewer.app.models.resume import ResumeSubmission
from resume_reviewer.app.pipeline.capability import Capability
from resume_reviewer.app.pipeline.conversion import ConversionResult
from resume_reviewer.app.pipeline.errors import (
    ConversionFailed,
    InferenceFailed,
    MalformedReport,
    NotFound,
    RecordStoreFailed,
    UploadFailed,
)
from resume_reviewer.app.pipeline.orchestrator import (
    STATUS_ANALYZING,
    STATUS_COMPLETE,
    STATUS_CONSTRAINED,
    STATUS_CONVERTING,
    STATUS_PREPARING,
    STATUS_UPLOADING,
    STATUS_UPLOADING_IMAGE,
    ResumeAnalysisPipeline,
)
from resume_reviewer.app.pipeline.retrieval import ResumeRetrieval


@pytest.fixture
def submission() -> ResumeSubmission:
    return ResumeSubmission(
        filename="resume.pdf",
        content=b"%PDF-1.4 resume",
        job_title="Backend Engineer",
        job_description="Python, FastAPI, PostgreSQL",
        company_name="Acme",
    )


@pytest.fixture
def pipeline(blob_adapter, record_store, converter, inference_client):
    return ResumeAnalysisPipeline(
        blobs=blob_adapter,
        records=record_store,
        converter=converter,
        inference=inference_client,
        id_factory=lambda: "rec-1",
    )


@pytest.fixture
def retrieval(record_store, blob_adapter):
    return ResumeRetrieval(records=record_store, blobs=blob_adapter)


@pytest.mark.asyncio
async def test_constrained_client_skips_preview(pipeline, converter, submission, retrieval):
    statuses = []
    record = await pipeline.analyze(submission, Capability.CONSTRAINED, statuses.append)

    assert record.image_path == ""
    assert record.resume_path
    assert not record.is_pending
    converter.convert.assert_not_awaited()
    assert statuses == [
        STATUS_UPLOADING,
        STATUS_CONSTRAINED,
        STATUS_PREPARING,
        STATUS_ANALYZING,
        STATUS_COMPLETE,
    ]

    loaded = await retrieval.load("rec-1")
    assert loaded.document == b"%PDF-1.4 resume"
    assert loaded.image is None


@pytest.mark.asyncio
async def test_full_fidelity_client_gets_preview(pipeline, submission, retrieval):
    statuses = []

    async def on_status(status_text):
        statuses.append(status_text)

    record = await pipeline.analyze(submission, Capability.FULL_FIDELITY, on_status)

    assert record.image_path
    assert record.resume_path
    assert record.image_path != record.resume_path
    assert statuses == [
        STATUS_UPLOADING,
        STATUS_CONVERTING,
        STATUS_UPLOADING_IMAGE,
        STATUS_PREPARING,
        STATUS_ANALYZING,
        STATUS_COMPLETE,
    ]
    loaded = await retrieval.load("rec-1")
    assert loaded.image == b"\x89PNG preview"


@pytest.mark.asyncio
async def test_populated_record_is_persisted(pipeline, submission, kv_store, report_data):
    record = await pipeline.analyze(submission, Capability.CONSTRAINED)

    stored = json.loads(kv_store.data["resume:rec-1"])
    assert stored["feedback"] == report_data
    assert stored["companyName"] == "Acme"
    assert stored["jobTitle"] == "Backend Engineer"
    assert record.feedback.overall_score == 78


@pytest.mark.asyncio
async def test_inference_sees_stored_document_and_job_context(
    pipeline, submission, inference_client, blob_adapter
):
    record = await pipeline.analyze(submission, Capability.CONSTRAINED)

    document_path, instructions = inference_client.feedback.await_args.args
    assert document_path == record.resume_path
    assert await blob_adapter.read(document_path) == submission.content
    assert "Backend Engineer" in instructions
    assert "Python, FastAPI, PostgreSQL" in instructions


@pytest.mark.asyncio
async def test_missing_inference_answer_leaves_record_pending(
    pipeline, submission, inference_client, retrieval
):
    inference_client.feedback.return_value = None

    with pytest.raises(InferenceFailed):
        await pipeline.analyze(submission, Capability.FULL_FIDELITY)

    loaded = await retrieval.load("rec-1")
    assert loaded.record.is_pending
    assert json.loads(loaded.record.to_json())["feedback"] == ""


@pytest.mark.asyncio
async def test_report_without_ats_leaves_record_pending(
    pipeline, submission, inference_client, report_data, retrieval
):
    del report_data["ATS"]
    inference_client.feedback.return_value = {"message": {"content": json.dumps(report_data)}}

    with pytest.raises(MalformedReport) as exc_info:
        await pipeline.analyze(submission, Capability.CONSTRAINED)

    assert exc_info.value.field_path == "ATS"
    record = await retrieval.get_record("rec-1")
    assert record.is_pending


@pytest.mark.asyncio
async def test_load_unknown_id(retrieval):
    with pytest.raises(NotFound):
        await retrieval.load("does-not-exist")


@pytest.mark.asyncio
async def test_document_upload_failure_creates_no_record(
    record_store, converter, inference_client, submission, kv_store
):
    blobs = MagicMock()
    blobs.upload = AsyncMock(side_effect=UploadFailed())
    pipeline = ResumeAnalysisPipeline(
        blobs=blobs,
        records=record_store,
        converter=converter,
        inference=inference_client,
    )

    with pytest.raises(UploadFailed):
        await pipeline.analyze(submission, Capability.FULL_FIDELITY)

    assert kv_store.data == {}
    converter.convert.assert_not_awaited()
    inference_client.feedback.assert_not_awaited()


@pytest.mark.asyncio
async def test_conversion_failure_degrades_to_no_preview(pipeline, converter, submission):
    converter.convert.return_value = ConversionResult(error="Document has no pages")

    record = await pipeline.analyze(submission, Capability.FULL_FIDELITY)

    assert record.image_path == ""
    assert not record.is_pending


@pytest.mark.asyncio
async def test_converter_exception_degrades_to_no_preview(pipeline, converter, submission):
    converter.convert.side_effect = RuntimeError("renderer crashed")

    record = await pipeline.analyze(submission, Capability.FULL_FIDELITY)

    assert record.image_path == ""


@pytest.mark.asyncio
async def test_conversion_failure_is_fatal_when_configured(
    blob_adapter, record_store, converter, inference_client, submission, kv_store
):
    converter.convert.return_value = ConversionResult(error="broken")
    pipeline = ResumeAnalysisPipeline(
        blobs=blob_adapter,
        records=record_store,
        converter=converter,
        inference=inference_client,
        conversion_failure_fatal=True,
    )

    with pytest.raises(ConversionFailed):
        await pipeline.analyze(submission, Capability.FULL_FIDELITY)

    assert kv_store.data == {}
    inference_client.feedback.assert_not_awaited()


@pytest.mark.asyncio
async def test_image_upload_failure_follows_conversion_policy(
    record_store, converter, inference_client, submission
):
    blobs = MagicMock()
    blobs.upload = AsyncMock(side_effect=["doc/resume.pdf", UploadFailed()])
    pipeline = ResumeAnalysisPipeline(
        blobs=blobs,
        records=record_store,
        converter=converter,
        inference=inference_client,
    )

    record = await pipeline.analyze(submission, Capability.FULL_FIDELITY)

    assert record.resume_path == "doc/resume.pdf"
    assert record.image_path == ""


@pytest.mark.asyncio
async def test_record_ids_are_unique(blob_adapter, record_store, converter, inference_client, submission):
    pipeline = ResumeAnalysisPipeline(
        blobs=blob_adapter,
        records=record_store,
        converter=converter,
        inference=inference_client,
    )

    first = await pipeline.analyze(submission, Capability.CONSTRAINED)
    second = await pipeline.analyze(submission, Capability.CONSTRAINED)

    assert first.id != second.id
    assert len(await record_store.list_records()) == 2


@pytest.mark.asyncio
async def test_reanalyze_populates_pending_record(
    pipeline, submission, inference_client, report_json
):
    inference_client.feedback.return_value = None
    with pytest.raises(InferenceFailed):
        await pipeline.analyze(submission, Capability.CONSTRAINED)

    inference_client.feedback.return_value = {"message": {"content": report_json}}
    statuses = []
    record = await pipeline.reanalyze("rec-1", statuses.append)

    assert record.id == "rec-1"
    assert not record.is_pending
    assert statuses == [STATUS_ANALYZING, STATUS_COMPLETE]


@pytest.mark.asyncio
async def test_failed_reanalyze_keeps_existing_report(
    pipeline, submission, inference_client, record_store
):
    await pipeline.analyze(submission, Capability.CONSTRAINED)

    inference_client.feedback.return_value = {"message": {"content": "not json"}}
    with pytest.raises(MalformedReport):
        await pipeline.reanalyze("rec-1")

    stored = await record_store.get("rec-1")
    assert stored.feedback.overall_score == 78


@pytest.mark.asyncio
async def test_reanalyze_unknown_id(pipeline):
    with pytest.raises(NotFound):
        await pipeline.reanalyze("nope")


@pytest.mark.asyncio
async def test_failed_report_write_surfaces_as_pipeline_error(
    pipeline, submission, kv_store, inference_client
):
    store_set = kv_store.set
    calls = []

    def set_then_fail(key, value):
        calls.append(key)
        if len(calls) > 1:
            raise RuntimeError("disk full")
        store_set(key, value)

    kv_store.set = set_then_fail
    with pytest.raises(RecordStoreFailed):
        await pipeline.analyze(submission, Capability.CONSTRAINED)

    inference_client.feedback.assert_awaited_once()
    assert json.loads(kv_store.data["resume:rec-1"])["feedback"] == ""
