import pytest
from pydantic import ValidationError

from resume_reviewer.app.models.feedback import (
    AtsTip,
    DetailedTip,
    FeedbackReport,
    TipType,
)


def test_report_validates_from_answer_keys(report_data):
    report = FeedbackReport.model_validate(report_data)
    assert report.overall_score == 78
    assert report.ats.score == 82
    assert report.ats.tips[0].type == TipType.GOOD
    assert report.tone_and_style.tips[0].explanation == "Bullets start with strong action verbs."
    assert report.skills.tips[0].type == TipType.IMPROVE


def test_report_preserves_tip_order(report_data):
    report = FeedbackReport.model_validate(report_data)
    assert [tip.tip for tip in report.ats.tips] == [
        "Standard section headings",
        "Add more keywords from the posting",
    ]


def test_report_dumps_with_answer_keys(report_data):
    report = FeedbackReport.model_validate(report_data)
    assert report.model_dump(mode="json", by_alias=True) == report_data


def test_report_accepts_empty_tip_lists(report_data):
    report_data["content"]["tips"] = []
    report = FeedbackReport.model_validate(report_data)
    assert report.content.tips == []


@pytest.mark.parametrize("score", [-1, 100.5, "85", True])
def test_report_rejects_bad_scores(report_data, score):
    report_data["structure"]["score"] = score
    with pytest.raises(ValidationError):
        FeedbackReport.model_validate(report_data)


@pytest.mark.parametrize("score", [0, 100, 42.5])
def test_report_accepts_boundary_scores(report_data, score):
    report_data["overallScore"] = score
    assert FeedbackReport.model_validate(report_data).overall_score == score


def test_ats_tip_rejects_explanation():
    with pytest.raises(ValidationError, match="do not carry an explanation"):
        AtsTip.model_validate({"type": "good", "tip": "x", "explanation": "y"})


def test_detailed_tip_requires_explanation():
    with pytest.raises(ValidationError):
        DetailedTip.model_validate({"type": "good", "tip": "x"})


def test_tip_type_is_closed():
    with pytest.raises(ValidationError):
        AtsTip.model_validate({"type": "neutral", "tip": "x"})


def test_report_is_immutable(report_data):
    report = FeedbackReport.model_validate(report_data)
    with pytest.raises(ValidationError):
        report.overall_score = 10
