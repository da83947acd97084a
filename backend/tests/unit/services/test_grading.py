"""
Unit Tests for evaluation grading
"""
import pytest

from app.services.evaluation_service import compute_overall_grade


def scores(presentation=None, content=None, research=None, innovation=None, implementation=None):
    return {
        "presentation_score": presentation,
        "content_score": content,
        "research_score": research,
        "innovation_score": innovation,
        "implementation_score": implementation,
    }


class TestComputeOverallGrade:

    def test_mean_in_b_band(self):
        # mean 87.6
        assert compute_overall_grade(scores(90, 85, 95, 80, 88)) == "B"

    @pytest.mark.parametrize("value,grade", [
        (100, "A"),
        (90, "A"),
        (89.9, "B"),
        (80, "B"),
        (70, "C"),
        (60, "D"),
        (59.9, "F"),
        (0, "F"),
    ])
    def test_band_boundaries(self, value, grade):
        assert compute_overall_grade(scores(value, value, value, value, value)) == grade

    def test_missing_scores_count_as_zero(self):
        # (95 * 4 + 0) / 5 = 76
        assert compute_overall_grade(scores(95, 95, 95, 95, None)) == "C"

    def test_no_scores_fail(self):
        assert compute_overall_grade({}) == "F"
