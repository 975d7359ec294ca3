"""Field-level comparison of JSON objects and arrays of objects.

Only the top-level keys of the expected object are scored; nested arrays and
objects are compared as whole values. Key lookup in the actual object tries
the exact key first and then a case-insensitive fallback.
"""

import logging
from collections.abc import Mapping, Sequence
from dataclasses import asdict, dataclass
from typing import Any

from pydantic import ValidationError

from ..schemas.gold import ActionItem, ToolCall
from .normalizer import canonical_json, parse_json, values_equal
from .text import exact_match, text_f1

logger = logging.getLogger(__name__)

_MISSING = object()


@dataclass(frozen=True)
class FieldResult:
    """Match outcome for a single top-level JSON field.

    Attributes:
        field: Key name as written in the expected object
        expected: Expected value as compact JSON
        actual: Actual value as compact JSON ("" when the key is missing)
        match: Whether the field counts as matched
        index: Record position for batch matching, None otherwise
    """

    field: str
    expected: str
    actual: str
    match: bool
    index: int | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return asdict(self)


@dataclass(frozen=True)
class ToolCallResult:
    """Outcome of comparing one expected tool call with the model's call."""

    tool_match: bool
    parameters_match: bool

    @property
    def both(self) -> bool:
        return self.tool_match and self.parameters_match


@dataclass(frozen=True)
class ToolCallTally:
    """Tool selection and parameter accuracy over a batch of calls.

    Attributes:
        tool_correct: Expected calls answered with the right tool
        parameters_correct: Expected calls answered with matching parameters
        both_correct: Expected calls right on both counts
        total: Number of expected calls
    """

    tool_correct: int = 0
    parameters_correct: int = 0
    both_correct: int = 0
    total: int = 0

    @property
    def tool_accuracy(self) -> float:
        return match_ratio(self.tool_correct, self.total)

    @property
    def parameter_accuracy(self) -> float:
        return match_ratio(self.parameters_correct, self.total)

    @property
    def combined_accuracy(self) -> float:
        return match_ratio(self.both_correct, self.total)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        data = asdict(self)
        data["tool_accuracy"] = self.tool_accuracy
        data["parameter_accuracy"] = self.parameter_accuracy
        data["combined_accuracy"] = self.combined_accuracy
        return data


def _as_mapping(value: Any) -> Mapping | None:
    if isinstance(value, str | bytes):
        value, ok = parse_json(value)
        if not ok:
            return None
    return value if isinstance(value, Mapping) else None


def _as_sequence(value: Any) -> Sequence | None:
    if isinstance(value, str | bytes):
        value, ok = parse_json(value)
        if not ok:
            return None
    if isinstance(value, Sequence) and not isinstance(value, str | bytes):
        return value
    return None


def _lookup(actual: Mapping, key: str) -> Any:
    if key in actual:
        return actual[key]

    folded: dict[str, Any] = {}
    for k, v in actual.items():
        folded.setdefault(str(k).lower(), v)
    return folded.get(str(key).lower(), _MISSING)


def field_match(expected: Any, actual: Any, index: int | None = None) -> tuple[int, int, list[FieldResult]]:
    """Compare two JSON objects field by field at the top level.

    Args:
        expected: Expected object (JSON text or decoded mapping)
        actual: Actual object (JSON text or decoded mapping)
        index: Record position recorded on each FieldResult (batch matching)

    Returns:
        Tuple of (matched fields, total expected fields, per-field details).
        An unparseable expected object yields (0, 0, []); an unparseable
        actual object yields (0, len(expected), []).
    """
    expected_map = _as_mapping(expected)
    if expected_map is None:
        return 0, 0, []

    actual_map = _as_mapping(actual)
    if actual_map is None:
        logger.debug("Actual value is not a JSON object; no fields can match")
        return 0, len(expected_map), []

    matched = 0
    details = []
    for key, expected_value in expected_map.items():
        actual_value = _lookup(actual_map, key)
        found = actual_value is not _MISSING

        is_match = found and values_equal(expected_value, actual_value)
        if is_match:
            matched += 1

        details.append(
            FieldResult(
                field=str(key),
                expected=canonical_json(expected_value),
                actual=canonical_json(actual_value) if found else "",
                match=is_match,
                index=index,
            )
        )

    return matched, len(expected_map), details


def match_ratio(matched: int, total: int) -> float:
    """Quality ratio matched/total, 0.0 when nothing was expected."""
    if total <= 0:
        return 0.0
    return matched / total


def score_field_match(expected: Any, actual: Any) -> float:
    """Fraction of expected top-level fields matched by the actual object."""
    matched, total, _ = field_match(expected, actual)
    return match_ratio(matched, total)


def batch_field_match(expected: Any, actual: Any) -> tuple[int, int, list[FieldResult]]:
    """Compare two JSON arrays of objects position by position.

    Expected records without a counterpart contribute all of their fields as
    unmatched; surplus actual records are ignored.

    Args:
        expected: Expected array (JSON text or decoded sequence)
        actual: Actual array (JSON text or decoded sequence)

    Returns:
        Tuple of (matched fields, total expected fields, per-field details)
    """
    expected_rows = _as_sequence(expected)
    if expected_rows is None:
        return 0, 0, []

    actual_rows = _as_sequence(actual)
    if actual_rows is None:
        total = sum(len(row) for row in expected_rows if isinstance(row, Mapping))
        return 0, total, []

    limit = min(len(expected_rows), len(actual_rows))
    total_matched = 0
    total_fields = 0
    details: list[FieldResult] = []

    for i in range(limit):
        matched, total, row_details = field_match(expected_rows[i], actual_rows[i], index=i)
        total_matched += matched
        total_fields += total
        details.extend(row_details)

    for row in expected_rows[limit:]:
        if isinstance(row, Mapping):
            total_fields += len(row)

    return total_matched, total_fields, details


def score_json_array(expected: Any, actual: Any) -> float:
    """Field-match quality of an array of records (0.0 if unparseable or empty)."""
    matched, total, _ = batch_field_match(expected, actual)
    return match_ratio(matched, total)


def parameters_match(expected: Mapping[str, Any] | None, actual: Mapping[str, Any] | None) -> bool:
    """Check that every expected parameter appears in the actual call with an equal value.

    Extra actual parameters are ignored; empty expected parameters always match.
    """
    if not expected:
        return True
    if not actual:
        return False

    for key, expected_value in expected.items():
        if key not in actual:
            return False
        if not values_equal(expected_value, actual[key]):
            return False
    return True


def match_tool_call(expected: ToolCall, actual: ToolCall) -> ToolCallResult:
    """Compare tool selection and parameters of one call."""
    return ToolCallResult(
        tool_match=exact_match(expected.tool, actual.tool),
        parameters_match=parameters_match(expected.parameters, actual.parameters),
    )


def _parse_tool_calls(value: Any) -> list[ToolCall]:
    calls = []
    for row in _as_sequence(value) or []:
        if isinstance(row, ToolCall):
            calls.append(row)
            continue
        try:
            calls.append(ToolCall.model_validate(row))
        except ValidationError as e:
            logger.debug(f"Skipping malformed tool call: {e}")
    return calls


def score_tool_calls(expected: Sequence[ToolCall], actual: Any) -> ToolCallTally:
    """Match a batch of model tool calls to the expected calls by ``id``.

    Each expected call is paired with the first actual call carrying the same
    id. Expected calls the model never answered count as wrong on every
    count; actual calls with unknown ids are ignored.

    Args:
        expected: Expected calls, one per prompt
        actual: Model calls (JSON text or list of dicts/ToolCall)

    Returns:
        ToolCallTally with tool, parameter and combined counts
    """
    by_id: dict[str, ToolCall] = {}
    for call in _parse_tool_calls(actual):
        by_id.setdefault(call.id, call)

    tool_correct = parameters_correct = both_correct = 0
    for exp in expected:
        act = by_id.get(exp.id)
        if act is None:
            continue
        result = match_tool_call(exp, act)
        tool_correct += result.tool_match
        parameters_correct += result.parameters_match
        both_correct += result.both

    return ToolCallTally(
        tool_correct=tool_correct,
        parameters_correct=parameters_correct,
        both_correct=both_correct,
        total=len(expected),
    )


def _parse_action_items(value: Any) -> list[ActionItem] | None:
    rows = _as_sequence(value)
    if rows is None:
        return None
    try:
        return [row if isinstance(row, ActionItem) else ActionItem.model_validate(row) for row in rows]
    except ValidationError as e:
        logger.debug(f"Could not parse action items: {e}")
        return None


def score_action_items(expected: Any, actual: Any, threshold: float = 0.3) -> float:
    """Score extracted action items against the expected list.

    An expected item is found when some actual item has the same owner and an
    action description whose token F1 exceeds ``threshold``.

    Args:
        expected: Expected action items (JSON text or list of dicts/ActionItem)
        actual: Model-extracted action items
        threshold: Minimum action-text F1 (exclusive)

    Returns:
        Fraction of expected items found (0-1)
    """
    expected_items = _parse_action_items(expected)
    actual_items = _parse_action_items(actual)
    if not expected_items or actual_items is None:
        return 0.0

    found = 0
    for exp in expected_items:
        for act in actual_items:
            if exact_match(exp.owner, act.owner) and text_f1(exp.action, act.action) > threshold:
                found += 1
                break

    return found / len(expected_items)
