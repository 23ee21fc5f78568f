import json
import logging
from collections.abc import Sequence

from langchain_core.utils.json import parse_json_markdown
from pydantic import ValidationError

from resume_reviewer.app.models.feedback import FeedbackReport
from resume_reviewer.app.pipeline.errors import MalformedReport

log = logging.getLogger(__name__)

ROOT_PATH = "$"


def _field_path(loc: Sequence[str | int]) -> str:
    return ".".join(str(part) for part in loc) or ROOT_PATH


def parse_feedback_report(raw_text: str) -> FeedbackReport:
    """Parse and validate the raw inference answer into a `FeedbackReport`.

    Args:
        raw_text (str): The answer text, either bare JSON or JSON inside a Markdown code fence.

    Returns:
        FeedbackReport: The validated report.

    Raises:
        MalformedReport: If the text is not a JSON object or violates the report schema.
            `field_path` names the first offending field using the answer's own key names
            (e.g. `ATS.tips.0.type`); `errors` lists every problem found.

    Notes:
        1. Decode with a strict JSON parser; truncated or partial JSON is rejected rather
           than completed.
        2. Require a JSON object at the top level.
        3. Validate against `FeedbackReport`: every category present, strict numeric
           scores in [0, 100], tip types limited to `good` and `improve`, explanations
           required on detailed tips and rejected on ATS tips.
        4. Log the full list of problems before raising.

    """
    _msg = "parse_feedback_report starting"
    log.debug(_msg)

    try:
        data = parse_json_markdown(raw_text, parser=json.loads)
    except (json.JSONDecodeError, ValueError, TypeError) as e:
        _msg = f"Feedback answer is not valid JSON: {e!s}"
        log.warning(_msg)
        raise MalformedReport(ROOT_PATH, [f"{ROOT_PATH}: not valid JSON"]) from e

    if not isinstance(data, dict):
        _msg = f"Feedback answer is a {type(data).__name__}, not a JSON object"
        log.warning(_msg)
        raise MalformedReport(ROOT_PATH, [f"{ROOT_PATH}: expected a JSON object"])

    try:
        report = FeedbackReport.model_validate(data)
    except ValidationError as e:
        details = e.errors()
        errors = [f"{_field_path(err['loc'])}: {err['msg']}" for err in details]
        first_path = _field_path(details[0]["loc"])
        _msg = f"Feedback answer failed validation: {'; '.join(errors)}"
        log.warning(_msg)
        raise MalformedReport(first_path, errors) from e

    _msg = "parse_feedback_report returning"
    log.debug(_msg)
    return report


def serialize_feedback_report(report: FeedbackReport) -> str:
    """Serialize a report to JSON using the answer's key names."""
    return report.model_dump_json(by_alias=True)
