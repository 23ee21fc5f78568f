import logging

from fastapi import Depends

from resume_reviewer.app.core.config import Settings, get_settings
from resume_reviewer.app.database.database import get_session_local
from resume_reviewer.app.llm.inference import InferenceClient, LangChainInferenceClient
from resume_reviewer.app.pipeline.conversion import DocumentConverter, PdfImageConverter
from resume_reviewer.app.pipeline.orchestrator import ResumeAnalysisPipeline
from resume_reviewer.app.pipeline.retrieval import ResumeRetrieval
from resume_reviewer.app.storage.blobs import BlobAdapter, LocalBlobStorage
from resume_reviewer.app.storage.kv_store import SqlAlchemyKeyValueStore
from resume_reviewer.app.storage.records import RecordStore

log = logging.getLogger(__name__)


def get_blob_adapter(settings: Settings = Depends(get_settings)) -> BlobAdapter:
    """Dependency providing the blob adapter over local blob storage."""
    return BlobAdapter(LocalBlobStorage(settings.blob_storage_dir))


def get_record_store() -> RecordStore:
    """Dependency providing the record store over the SQLAlchemy key-value table."""
    return RecordStore(SqlAlchemyKeyValueStore(get_session_local()))


def get_converter(settings: Settings = Depends(get_settings)) -> DocumentConverter:
    """Dependency providing the PDF preview converter."""
    return PdfImageConverter(scale=settings.preview_scale)


def get_inference_client(
    settings: Settings = Depends(get_settings),
    blobs: BlobAdapter = Depends(get_blob_adapter),
) -> InferenceClient:
    """Dependency providing the LLM-backed inference collaborator."""
    return LangChainInferenceClient(settings=settings, blobs=blobs)


def get_pipeline(
    settings: Settings = Depends(get_settings),
    blobs: BlobAdapter = Depends(get_blob_adapter),
    records: RecordStore = Depends(get_record_store),
    converter: DocumentConverter = Depends(get_converter),
    inference: InferenceClient = Depends(get_inference_client),
) -> ResumeAnalysisPipeline:
    """
    Dependency to build the analysis pipeline for a request.

    Args:
        settings (Settings): The application settings.
        blobs (BlobAdapter): The blob adapter.
        records (RecordStore): The record store adapter.
        converter (DocumentConverter): The document-to-image collaborator.
        inference (InferenceClient): The inference collaborator.

    Returns:
        ResumeAnalysisPipeline: A pipeline wired to the given collaborators, using the
            configured conversion failure policy.

    """
    return ResumeAnalysisPipeline(
        blobs=blobs,
        records=records,
        converter=converter,
        inference=inference,
        conversion_failure_fatal=settings.conversion_failure_fatal,
    )


def get_retrieval(
    records: RecordStore = Depends(get_record_store),
    blobs: BlobAdapter = Depends(get_blob_adapter),
) -> ResumeRetrieval:
    """Dependency providing the retrieval path."""
    return ResumeRetrieval(records=records, blobs=blobs)
