import logging
from dataclasses import dataclass
from enum import Enum

from resume_reviewer.app.models.resume import ResumeRecord
from resume_reviewer.app.pipeline.capability import Capability
from resume_reviewer.app.pipeline.errors import NotFound
from resume_reviewer.app.storage.blobs import BlobAdapter
from resume_reviewer.app.storage.records import RecordStore

log = logging.getLogger(__name__)


class PreviewMode(str, Enum):
    """How the review page shows the resume itself."""

    IMAGE = "image"
    EMBEDDED_DOCUMENT = "embedded_document"
    DOCUMENT_LINK = "document_link"


@dataclass(frozen=True)
class LoadedResume:
    """A record together with its viewable artifacts.

    Attributes:
        record (ResumeRecord): The stored record.
        document (bytes): The source document.
        image (bytes | None): The preview image, or None when the record has none
            or the image blob is gone.

    """

    record: ResumeRecord
    document: bytes
    image: bytes | None = None


def preview_mode(loaded: LoadedResume, capability: Capability) -> PreviewMode:
    """Choose how to present the resume.

    Args:
        loaded (LoadedResume): The loaded record and artifacts.
        capability (Capability): The requesting client's classification.

    Returns:
        PreviewMode: IMAGE when a preview image exists; otherwise the document embedded
            for full-fidelity clients, or linked for constrained ones.

    """
    if loaded.image is not None:
        return PreviewMode.IMAGE
    if capability == Capability.CONSTRAINED:
        return PreviewMode.DOCUMENT_LINK
    return PreviewMode.EMBEDDED_DOCUMENT


def show_card_preview(record: ResumeRecord, capability: Capability) -> bool:
    """Whether a list card shows the preview image for a record."""
    return record.has_image and capability == Capability.FULL_FIDELITY


class ResumeRetrieval:
    """The read path: records by id and their blobs."""

    def __init__(self, records: RecordStore, blobs: BlobAdapter):
        self._records = records
        self._blobs = blobs

    async def get_record(self, record_id: str) -> ResumeRecord:
        """Return the stored record, without resolving any blobs.

        Raises:
            NotFound: If no record is stored under the id.

        """
        record = await self._records.get(record_id)
        if record is None:
            _msg = f"Resume record {record_id} not found"
            log.debug(_msg)
            raise NotFound()
        return record

    async def load(self, record_id: str) -> LoadedResume:
        """Load a record and resolve its document and preview image.

        Args:
            record_id (str): The retrieval handle.

        Returns:
            LoadedResume: The record, its document, and its image if one exists.

        Raises:
            NotFound: If the record does not exist or its source document is missing.

        Notes:
            1. Read the record by key.
            2. Resolve the document; a record without its document is unusable.
            3. Resolve the image only when `image_path` is non-empty; a missing image
               blob is logged and treated as "no preview".

        """
        record = await self.get_record(record_id)

        document = await self._blobs.read(record.resume_path)
        if document is None:
            _msg = f"Document {record.resume_path} for record {record_id} is missing"
            log.warning(_msg)
            raise NotFound()

        image = None
        if record.has_image:
            image = await self._blobs.read(record.image_path)
            if image is None:
                _msg = f"Preview image {record.image_path} for record {record_id} is missing"
                log.warning(_msg)

        return LoadedResume(record=record, document=document, image=image)

    async def list_records(self) -> list[ResumeRecord]:
        """Return every stored record ordered by company, job title, then id."""
        records = await self._records.list_records()
        return sorted(
            records,
            key=lambda r: (r.company_name.lower(), r.job_title.lower(), r.id),
        )
