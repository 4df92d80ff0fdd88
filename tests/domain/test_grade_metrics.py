import pytest

from school_views.domain.metrics import mention_for, overall_grade, qualifying_score
from school_views.domain.models import Grades, Mention
from school_views.domain.metrics import derive_evaluation
from school_views.infrastructure.parsing.evaluations import normalize_evaluation


def test_average_uses_only_qualifying_scores():
    evaluation = derive_evaluation(
        normalize_evaluation({"memorization_grade": 16, "recitation_grade": 0, "tajwid_grade": 14})
    )

    assert evaluation.overall_grade == pytest.approx(15.0)
    assert evaluation.mention is Mention.GOOD


def test_no_qualifying_score_gives_sentinel():
    assert overall_grade(Grades(memorization=0, recitation=None, tajwid=25, behavior=-1)) is None
    assert mention_for(None) is Mention.NOT_GRADED


@pytest.mark.parametrize(
    "grade,expected",
    [
        (20, Mention.EXCELLENT),
        (16, Mention.EXCELLENT),
        (15.99, Mention.GOOD),
        (14, Mention.GOOD),
        (12, Mention.AVERAGE),
        (11.99, Mention.BELOW_AVERAGE),
        (0.5, Mention.BELOW_AVERAGE),
    ],
)
def test_mention_bands_include_their_lower_bound(grade, expected):
    assert mention_for(grade) is expected


def test_qualifying_score_range():
    assert qualifying_score(20) == 20
    assert qualifying_score(20.5) is None
    assert qualifying_score(0) is None
    assert qualifying_score(float("nan")) is None
    assert qualifying_score(True) is None
