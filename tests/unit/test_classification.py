"""Unit tests for binary classification metrics."""

import pytest

from llm_scorecard.exceptions import LengthMismatchError
from llm_scorecard.scoring.classification import BinaryConfusion, confusion, label_recall, label_recall_score


class TestConfusion:
    """Test confusion matrix tallies."""

    @pytest.fixture
    def counts(self):
        """Safety-gate results: four unsafe prompts, four safe ones."""
        expected = [True, True, True, True, False, False, False, False]
        predicted = [True, True, True, False, True, False, False, False]
        return confusion(expected, predicted)

    def test_counts(self, counts):
        """Each outcome lands in one cell."""
        assert counts == BinaryConfusion(tp=3, tn=3, fp=1, fn=1)
        assert counts.total == 8

    def test_rates(self, counts):
        """Derived rates follow the usual definitions."""
        assert counts.accuracy == 0.75
        assert counts.precision == 0.75
        assert counts.recall == 0.75
        assert counts.false_positive_rate == 0.25

    def test_empty_counts_are_zero(self):
        """No observations gives zero rates rather than dividing by zero."""
        empty = confusion([], [])

        assert empty.total == 0
        assert empty.accuracy == 0.0
        assert empty.recall == 0.0
        assert empty.false_positive_rate == 0.0

    def test_length_mismatch(self):
        """Unaligned flags cannot be tallied."""
        with pytest.raises(LengthMismatchError) as exc_info:
            confusion([True, False], [True])

        assert "1 predictions vs 2 labels" in exc_info.value.message


class TestLabelRecall:
    """Test recall over expected label sets."""

    def test_found_labels(self):
        """Labels are compared case-insensitively; extras are ignored."""
        assert label_recall(["EMAIL", "phone", "ssn"], ["email", "Phone", "address"]) == (2, 3)

    def test_score(self):
        """Recall is found over expected."""
        assert label_recall_score(["email", "phone"], ["email"]) == 0.5

    def test_nothing_expected(self):
        """No expected labels scores 0.0."""
        assert label_recall_score([], ["email"]) == 0.0
