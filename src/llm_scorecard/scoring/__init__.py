"""Scoring engine: comparators, metrics and record validation."""

from .classification import BinaryConfusion, confusion, label_recall, label_recall_score
from .normalizer import CanonicalValue, ValueKind, canonicalize, equivalent, normalize, raw_values_equal, values_equal
from .ranking import mrr, ndcg, order_by_score, relevance_map
from .structured import (
    FieldResult,
    ToolCallResult,
    ToolCallTally,
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
from .text import (
    accuracy_score,
    combined_accuracy,
    count_matches,
    exact_match,
    extract_key_values,
    key_value_f1,
    text_f1,
    token_f1,
    tokenize,
)
from .validator import DistributionResult, ScoreDetail, check_rule, check_type, uniqueness_score, validate_records

__all__ = [
    "BinaryConfusion",
    "CanonicalValue",
    "DistributionResult",
    "FieldResult",
    "ScoreDetail",
    "ToolCallResult",
    "ToolCallTally",
    "ValueKind",
    "accuracy_score",
    "batch_field_match",
    "canonicalize",
    "check_rule",
    "check_type",
    "combined_accuracy",
    "confusion",
    "count_matches",
    "equivalent",
    "exact_match",
    "extract_key_values",
    "field_match",
    "key_value_f1",
    "label_recall",
    "label_recall_score",
    "match_ratio",
    "match_tool_call",
    "mrr",
    "ndcg",
    "normalize",
    "order_by_score",
    "parameters_match",
    "raw_values_equal",
    "relevance_map",
    "score_action_items",
    "score_field_match",
    "score_json_array",
    "score_tool_calls",
    "text_f1",
    "token_f1",
    "tokenize",
    "uniqueness_score",
    "validate_records",
    "values_equal",
]
