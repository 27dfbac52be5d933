"""
Unit tests for grading normalization and score parsing.
"""
import pytest

from pokefolio.services.grading import best_graded_variant, normalize_grading, parse_grade_score


class TestNormalizeGrading:

    @pytest.mark.unit
    def test_canonical_shape_passes_through(self):
        raw = {"company": "PSA", "grade": "10", "certification_number": "123"}
        assert normalize_grading(raw) == raw

    @pytest.mark.unit
    def test_alternate_keys(self):
        assert normalize_grading({"provider": "BGS", "rating": 9.5, "certNumber": 4411}) == {
            "company": "BGS",
            "grade": "9.5",
            "certification_number": "4411",
        }

    @pytest.mark.unit
    def test_integral_float_grade(self):
        assert normalize_grading({"company": "CGC", "score": 9.0})["grade"] == "9"

    @pytest.mark.unit
    def test_grade_key_priority(self):
        assert normalize_grading({"company": "PSA", "value": "7", "grade": "8"})["grade"] == "8"

    @pytest.mark.unit
    @pytest.mark.parametrize("raw", [None, {}, {"notes": "x"}, "PSA 10", {"company": "  ", "grade": ""}])
    def test_unresolvable_is_none(self, raw):
        assert normalize_grading(raw) is None


class TestParseGradeScore:

    @pytest.mark.unit
    @pytest.mark.parametrize("grade,expected", [
        ("10", 10.0),
        ("PSA 9", 9.0),
        ("8,5", 8.5),
        ("Gem Mint", 10.0),
        ("Near Mint", 8.0),
        ("Excellent", 6.0),
        ("", 0.0),
        (None, 0.0),
        ("unknown", 0.0),
    ])
    def test_scores(self, grade, expected):
        assert parse_grade_score(grade) == expected


class TestBestGradedVariant:

    @pytest.mark.unit
    def test_highest_score_wins_and_ties_keep_first(self):
        first = {"graded": True, "grading": {"company": "PSA", "grade": "9"}}
        second = {"graded": True, "grading": {"company": "CGC", "grade": "9"}}
        ungraded = {"graded": False, "grading": {"company": "BGS", "grade": "10"}}

        assert best_graded_variant([ungraded, first, second]) is first

    @pytest.mark.unit
    def test_no_graded_variant(self):
        assert best_graded_variant([{"graded": True, "grading": None}]) is None
        assert best_graded_variant(None) is None
