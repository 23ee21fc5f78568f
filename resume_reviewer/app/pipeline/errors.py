import logging

log = logging.getLogger(__name__)


class PipelineError(Exception):
    """Base class for a terminal failure of one analysis run or retrieval.

    Attributes:
        status_text (str): Short human-readable status shown to the user.

    """

    status_text = "Error: Resume analysis failed"

    def __init__(self, message: str | None = None):
        super().__init__(message or self.status_text)


class UploadFailed(PipelineError):
    status_text = "Error: Failed to upload file"


class ConversionFailed(PipelineError):
    status_text = "Error: Failed to convert PDF to image"


class InferenceFailed(PipelineError):
    status_text = "Error: Failed to analyze resume"


class MalformedReport(PipelineError):
    """The inference answer does not satisfy the feedback report schema.

    Attributes:
        field_path (str): Dotted path of the first offending field, `$` for the document itself.
        errors (list[str]): Every problem found, each prefixed with its field path.

    """

    status_text = "Error: The analysis returned an invalid report"

    def __init__(self, field_path: str, errors: list[str] | None = None):
        self.field_path = field_path
        self.errors = errors or [field_path]
        super().__init__(f"Malformed feedback report at '{field_path}'")


class NotFound(PipelineError):
    status_text = "Resume not found"


class CorruptRecord(PipelineError):
    status_text = "Error: Stored resume record is unreadable"


class RecordStoreFailed(PipelineError):
    status_text = "Error: Failed to save the analysis"
