"""Unit tests for structured (JSON field) comparison."""

import json

import pytest

from llm_scorecard.schemas.gold import ToolCall
from llm_scorecard.scoring.structured import (
    FieldResult,
    batch_field_match,
    field_match,
    match_ratio,
    match_tool_call,
    parameters_match,
    score_action_items,
    score_field_match,
    score_json_array,
    score_tool_calls,
)


@pytest.fixture
def invoice():
    """Expected extraction for an invoice."""
    return {
        "invoice_number": "INV-2024-001",
        "customer_id": "29451023",
        "total": 1250.5,
        "currency": "USD",
        "line_items": [{"sku": "A1", "qty": 2}],
    }


class TestFieldMatch:
    """Test single-object field matching."""

    def test_identical_objects(self, invoice):
        """Identical objects match every field."""
        matched, total, details = field_match(invoice, invoice)

        assert matched == total == len(invoice)
        assert all(d.match for d in details)

    def test_accepts_json_text(self, invoice):
        """Raw JSON text is parsed on both sides."""
        matched, total, _ = field_match(json.dumps(invoice), json.dumps(invoice, indent=2))

        assert matched == total == 5

    def test_unparseable_actual(self, invoice):
        """Malformed model output scores zero without raising."""
        assert field_match(invoice, "Sure! Here is the JSON: {") == (0, 5, [])

    def test_empty_actual(self, invoice):
        """Empty output scores zero against the full denominator."""
        assert field_match(invoice, "") == (0, len(invoice), [])

    def test_actual_not_an_object(self, invoice):
        """A JSON array where an object is expected scores zero."""
        assert field_match(invoice, "[1, 2]") == (0, 5, [])

    def test_unparseable_expected(self):
        """An unusable reference yields an empty comparison."""
        assert field_match("not json", {"a": 1}) == (0, 0, [])

    def test_cross_type_equivalence(self):
        """A quoted number matches the bare number."""
        matched, total, details = field_match({"id": "42"}, {"id": 42})

        assert (matched, total) == (1, 1)
        assert details[0] == FieldResult(field="id", expected='"42"', actual="42", match=True)

    def test_case_insensitive_key_fallback(self):
        """Keys are looked up exactly first, then case-insensitively."""
        matched, total, details = field_match({"Customer": "Acme"}, {"customer": "ACME"})

        assert (matched, total) == (1, 1)
        assert details[0].actual == '"ACME"'

    def test_exact_key_preferred(self):
        """An exact key wins over a case-insensitive one."""
        matched, _, _ = field_match({"name": "a"}, {"NAME": "b", "name": "a"})

        assert matched == 1

    def test_missing_field_recorded(self, invoice):
        """Missing keys are unmatched with an empty actual value."""
        actual = {k: v for k, v in invoice.items() if k != "currency"}

        matched, total, details = field_match(invoice, actual)

        assert (matched, total) == (4, 5)
        missing = [d for d in details if d.field == "currency"][0]
        assert missing.actual == ""
        assert missing.match is False

    def test_nested_values_compared_whole(self, invoice):
        """One difference inside a nested array fails the whole field."""
        actual = dict(invoice, line_items=[{"sku": "A1", "qty": 3}])

        matched, total, _ = field_match(invoice, actual)

        assert (matched, total) == (4, 5)

    def test_details_follow_expected_key_order(self, invoice):
        """The audit trail is ordered like the expected object."""
        _, _, details = field_match(invoice, {})

        assert [d.field for d in details] == list(invoice)

    def test_score_field_match(self):
        """The ratio helper divides by the expected field count."""
        assert score_field_match({"a": 1, "b": 2}, {"a": 1}) == 0.5
        assert match_ratio(0, 0) == 0.0


class TestBatchFieldMatch:
    """Test array-of-objects matching."""

    def test_one_of_two_records_matches(self):
        """Position-wise comparison counts matched fields across records."""
        matched, total, details = batch_field_match('[{"a":1},{"a":2}]', '[{"a":1},{"a":3}]')

        assert (matched, total) == (1, 2)
        assert match_ratio(matched, total) == 0.5
        assert [d.index for d in details] == [0, 1]

    def test_missing_rows_penalized(self):
        """Expected records without a counterpart count as unmatched."""
        expected = [{"a": 1, "b": 2}, {"a": 3, "b": 4}]

        matched, total, _ = batch_field_match(expected, [{"a": 1, "b": 2}])

        assert (matched, total) == (2, 4)

    def test_extra_rows_ignored(self):
        """Surplus actual records do not change the score."""
        assert score_json_array([{"a": 1}], [{"a": 1}, {"a": 99}]) == 1.0

    def test_unparseable_actual(self):
        """Malformed output keeps the full denominator."""
        assert batch_field_match([{"a": 1, "b": 2}], "oops") == (0, 2, [])

    def test_empty_expected_scores_zero(self):
        """Nothing expected means nothing to score."""
        assert score_json_array([], [{"a": 1}]) == 0.0


class TestToolCalls:
    """Test function-call comparison."""

    def test_parameters_subset(self):
        """Extra actual parameters are ignored."""
        assert parameters_match({"city": "Paris"}, {"city": "paris", "units": "metric"})

    def test_parameters_missing_key(self):
        """A missing expected parameter fails the match."""
        assert not parameters_match({"city": "Paris", "days": 3}, {"city": "Paris"})

    def test_parameters_number_normalization(self):
        """Numbers compare regardless of string/int/float spelling."""
        assert parameters_match({"days": 3}, {"days": "3"})
        assert parameters_match({"days": 3}, {"days": 3.0})

    def test_empty_expected_parameters(self):
        """Only the tool name matters when no parameters are expected."""
        assert parameters_match({}, {"anything": 1})
        assert parameters_match(None, None)

    def test_match_tool_call(self):
        """Tool name and parameters are reported separately."""
        expected = ToolCall(id="t1", tool="get_weather", parameters={"city": "Oslo"})
        actual = ToolCall(id="t1", tool=" Get_Weather ", parameters={"city": "Bergen"})

        result = match_tool_call(expected, actual)

        assert result.tool_match
        assert not result.parameters_match
        assert not result.both

    def test_score_tool_calls_by_id(self):
        """Calls are paired by id and tallied for tool, parameters and both."""
        expected = [
            ToolCall(id="p1", tool="get_weather", parameters={"city": "Oslo"}),
            ToolCall(id="p2", tool="send_email", parameters={"to": "ana@example.com"}),
            ToolCall(id="p3", tool="search", parameters={"q": "flights"}),
            ToolCall(id="p4", tool="search"),
        ]
        actual = [
            {"id": "p2", "tool": "send_email", "parameters": {"to": "bo@example.com"}},
            {"id": "p1", "tool": "get_weather", "parameters": {"city": "oslo"}},
            {"id": "p3", "tool": "lookup", "parameters": {"q": "flights"}},
            {"id": "p9", "tool": "search"},
        ]

        tally = score_tool_calls(expected, actual)

        assert (tally.tool_correct, tally.parameters_correct, tally.both_correct, tally.total) == (2, 2, 1, 4)
        assert tally.tool_accuracy == 0.5
        assert tally.combined_accuracy == 0.25
        assert tally.to_dict()["parameter_accuracy"] == 0.5

    def test_score_tool_calls_first_id_wins(self):
        """A repeated id is answered by its first call."""
        expected = [ToolCall(id="p1", tool="search")]
        actual = '[{"id": "p1", "tool": "search"}, {"id": "p1", "tool": "delete_all"}]'

        assert score_tool_calls(expected, actual).combined_accuracy == 1.0

    def test_score_tool_calls_unparseable(self):
        """Malformed output answers nothing; malformed rows are skipped."""
        expected = [ToolCall(id="p1", tool="search"), ToolCall(id="p2", tool="search")]

        assert score_tool_calls(expected, "no calls").total == 2
        assert score_tool_calls(expected, "no calls").both_correct == 0
        assert score_tool_calls(expected, [{"id": "p1", "tool": "search"}, "junk"]).both_correct == 1
        assert score_tool_calls([], []).combined_accuracy == 0.0


class TestActionItems:
    """Test meeting action item scoring."""

    def test_matching_owner_and_action(self):
        """Items with the same owner and overlapping actions are found."""
        expected = [
            {"owner": "Dana", "action": "Send the revised budget to finance", "deadline": "2024-05-01"},
            {"owner": "Lee", "action": "Book the offsite venue", "deadline": None},
        ]
        actual = [
            {"owner": "dana", "action": "send revised budget to finance team"},
            {"owner": "Lee", "action": "Review hiring plan"},
        ]

        assert score_action_items(expected, actual) == 0.5

    def test_unparseable_actual(self):
        """Malformed output scores zero."""
        assert score_action_items([{"owner": "a", "action": "b"}], "not json") == 0.0

    def test_empty_expected(self):
        """Nothing expected scores zero."""
        assert score_action_items([], [{"owner": "a", "action": "b"}]) == 0.0
