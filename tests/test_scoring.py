"""Tests for the score aggregator and rating validation."""

import pytest

from teacheval.models import Criterion, Report, ValidationError, make_criterion
from teacheval.scoring import (
    average_percentage,
    calculate_total_percentage,
    criterion_average,
    criterion_percentage,
    resolve_progress,
    validate_ratings,
)


class TestCalculateTotalPercentage:
    def test_no_answers_is_zero(self, rating_criterion, select_criterion):
        assert calculate_total_percentage([rating_criterion], {}) == 0
        assert calculate_total_percentage([rating_criterion, select_criterion], {"c1": 0, "c2": ""}) == 0

    def test_single_top_rating_is_hundred(self, rating_criterion):
        assert calculate_total_percentage([rating_criterion], {"c1": 4}) == 100

    def test_rating_and_on_track_select(self, rating_criterion):
        progress = Criterion(id="c2", label="Progress", type="select", options=("advanced", "on_track", "delayed"))
        assert calculate_total_percentage([rating_criterion, progress], {"c1": 2, "c2": "on_track"}) == 62.5

    def test_text_criterion_never_changes_result(self, rating_criterion, select_criterion, text_criterion):
        ratings = {"c1": 3, "c2": "A"}
        without_text = calculate_total_percentage([rating_criterion, select_criterion], ratings)
        with_text = calculate_total_percentage(
            [rating_criterion, select_criterion, text_criterion], {**ratings, "c3": "Fractions"}
        )
        assert with_text == without_text == 87.5

    def test_unrecognized_select_counts_as_zero(self, rating_criterion, select_criterion):
        assert calculate_total_percentage([rating_criterion, select_criterion], {"c1": 4, "c2": "garbage"}) == 50

    def test_option_rank_scenario(self, rating_criterion, select_criterion):
        assert calculate_total_percentage([rating_criterion, select_criterion], {"c1": 3, "c2": "B"}) == 75.0

    def test_idempotent(self, rating_criterion, select_criterion):
        criteria = [rating_criterion, select_criterion]
        ratings = {"c1": 1, "c2": "C"}
        assert calculate_total_percentage(criteria, ratings) == calculate_total_percentage(criteria, ratings) == 25

    def test_order_does_not_matter(self, rating_criterion, select_criterion):
        ratings = {"c1": 1, "c2": "A"}
        assert calculate_total_percentage([rating_criterion, select_criterion], ratings) == calculate_total_percentage(
            [select_criterion, rating_criterion], ratings
        )

    @pytest.mark.parametrize("value", ["3", None, True, 2.5, 7, -1, float("nan"), [3]])
    def test_malformed_rating_is_unanswered(self, rating_criterion, value):
        other = Criterion(id="c9", label="Other", type="rating")
        assert calculate_total_percentage([rating_criterion, other], {"c1": value, "c9": 2}) == 50

    def test_integral_float_rating_is_accepted(self, rating_criterion):
        assert calculate_total_percentage([rating_criterion], {"c1": 3.0}) == 75

    def test_localized_labels_resolve(self):
        progress = Criterion(id="c2", label="Progress", type="select", options=("advanced", "on_track", "delayed"))
        assert calculate_total_percentage([progress], {"c2": "متأخر"}) == 25
        assert calculate_total_percentage([progress], {"c2": "Advanced"}) == 100


class TestResolveProgress:
    def test_rank_in_options(self, select_criterion):
        assert resolve_progress(select_criterion, "A") == "advanced"
        assert resolve_progress(select_criterion, "C") == "delayed"

    def test_fourth_option_is_unrecognized(self):
        criterion = Criterion(id="x", label="X", type="select", options=("A", "B", "C", "D"))
        assert resolve_progress(criterion, "D") is None
        assert criterion_percentage(criterion, "D") == 0.0

    def test_tag_accepted_for_custom_options(self, select_criterion):
        assert resolve_progress(select_criterion, "on_track") == "on_track"


class TestAverages:
    def test_mean_of_stored_totals(self):
        reports = [
            Report(id="r1", teacher_id="t", date="2024-01-01", total_percentage=50.0),
            Report(id="r2", teacher_id="t", date="2024-01-02", total_percentage=100.0),
        ]
        assert average_percentage(reports) == 75.0

    def test_empty_average_is_zero(self):
        assert average_percentage([]) == 0.0

    def test_criterion_average_skips_unanswered(self, rating_criterion):
        reports = [
            Report(id="r1", teacher_id="t", date="2024-01-01", ratings={"c1": 4}),
            Report(id="r2", teacher_id="t", date="2024-01-02", ratings={"c1": 2}),
            Report(id="r3", teacher_id="t", date="2024-01-03", ratings={}),
        ]
        assert criterion_average(rating_criterion, reports) == 75.0


class TestValidateRatings:
    def test_valid_map_passes(self, rating_criterion, select_criterion, text_criterion):
        validate_ratings([rating_criterion, select_criterion, text_criterion], {"c1": 0, "c2": "B", "c3": "notes"})

    def test_unknown_criterion(self, rating_criterion):
        with pytest.raises(ValidationError, match="Unknown criterion"):
            validate_ratings([rating_criterion], {"missing": 3})

    def test_out_of_range_rating(self, rating_criterion):
        with pytest.raises(ValidationError, match="between 1 and 4"):
            validate_ratings([rating_criterion], {"c1": 5})

    def test_select_value_not_in_options(self, select_criterion):
        with pytest.raises(ValidationError, match="not an option"):
            validate_ratings([select_criterion], {"c2": "garbage"})

    def test_declared_fourth_option_is_valid(self):
        custom = make_criterion("Custom", "select", "A, B, C, D")
        validate_ratings([custom], {custom.id: "D"})

    def test_undeclared_tag_is_rejected(self, select_criterion):
        with pytest.raises(ValidationError, match="not an option"):
            validate_ratings([select_criterion], {"c2": "advanced"})

    def test_undeclared_label_is_rejected(self, select_criterion):
        with pytest.raises(ValidationError, match="not an option"):
            validate_ratings([select_criterion], {"c2": "On Track"})
