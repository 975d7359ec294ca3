"""Score captured model outputs against their references.

This module handles:
- Loading evaluation cases (expected/actual pairs) from JSON
- Dispatching each case to the scorer for its kind
- Aggregating results overall and per kind
"""

import json
import logging
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Callable

from pydantic import ValidationError

from llm_scorecard.config import Settings, get_settings
from llm_scorecard.exceptions import CaseLoadError, EvaluationError, LengthMismatchError, UnknownCaseKindError
from llm_scorecard.schemas.constraints import Constraints, RecordSchema
from llm_scorecard.schemas.gold import GradedCandidate, RankedResult, ToolCall
from llm_scorecard.scoring import (
    accuracy_score,
    batch_field_match,
    confusion,
    count_matches,
    exact_match,
    field_match,
    key_value_f1,
    match_ratio,
    match_tool_call,
    mrr,
    ndcg,
    order_by_score,
    relevance_map,
    score_action_items,
    score_tool_calls,
    text_f1,
    validate_records,
)
from llm_scorecard.scoring.normalizer import display_string, parse_json

logger = logging.getLogger(__name__)


@dataclass
class EvaluationCase:
    """One captured (expected, actual) pair and the scorer to apply."""
    name: str
    kind: str
    expected: Any
    actual: Any
    options: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "EvaluationCase":
        """Build a case from its JSON representation.

        Raises:
            CaseLoadError: If required keys are missing
        """
        if not isinstance(data, dict):
            raise CaseLoadError("Evaluation case must be a JSON object", details={"case": data})
        missing = [key for key in ("name", "kind", "expected") if key not in data]
        if missing:
            raise CaseLoadError(
                f"Evaluation case is missing keys: {', '.join(missing)}",
                details={"case": data.get("name")},
            )
        return cls(
            name=str(data["name"]),
            kind=str(data["kind"]).strip().lower(),
            expected=data["expected"],
            actual=data.get("actual"),
            options=dict(data.get("options") or {}),
        )


@dataclass
class CaseResult:
    """Result of scoring a single case."""
    name: str
    kind: str
    metric: str
    score: float
    details: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "CaseResult":
        """Rebuild a result saved with ``to_dict``."""
        return cls(
            name=data["name"],
            kind=data["kind"],
            metric=data["metric"],
            score=float(data["score"]),
            details=data.get("details", {}),
        )


def _decode(value: Any) -> tuple[Any, bool]:
    """Decode JSON text; already-decoded values pass through."""
    if isinstance(value, str | bytes):
        return parse_json(value)
    return value, value is not None


def _unwrap(value: Any, key: str) -> Any:
    """Accept either a bare list or an object wrapping it under ``key``."""
    if isinstance(value, dict) and key in value:
        return value[key]
    return value


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    return display_string(value)


class Evaluator:
    """Dispatch evaluation cases to the scoring engine."""

    def __init__(self, settings: Settings | None = None):
        """Initialize evaluator.

        Args:
            settings: Scoring settings (defaults to the cached application settings)
        """
        self.settings = settings or get_settings()
        self._scorers: dict[str, Callable[[EvaluationCase], CaseResult]] = {
            "exact_match": self._score_exact_match,
            "field_match": self._score_field_match,
            "json_array": self._score_json_array,
            "text_f1": self._score_text_f1,
            "key_value_f1": self._score_key_value_f1,
            "action_items": self._score_action_items,
            "ranking": self._score_ranking,
            "compliance": self._score_compliance,
            "tool_call": self._score_tool_call,
            "classification": self._score_classification,
        }

    @property
    def kinds(self) -> list[str]:
        """Supported case kinds."""
        return sorted(self._scorers)

    @staticmethod
    def load_cases(path: str | Path) -> list[EvaluationCase]:
        """Load evaluation cases from a JSON file.

        The file holds either a single case object or a list of them.

        Raises:
            CaseLoadError: If the file is missing or malformed
        """
        path = Path(path)
        if not path.exists():
            raise CaseLoadError(f"Case file not found: {path}")

        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            raise CaseLoadError(f"Could not read case file {path}: {e}") from e

        if isinstance(data, dict):
            data = [data]
        if not isinstance(data, list):
            raise CaseLoadError(f"Case file must hold an object or a list: {path}")

        cases = [EvaluationCase.from_dict(item) for item in data]
        logger.info(f"Loaded {len(cases)} evaluation cases from {path}")
        return cases

    def score_case(self, case: EvaluationCase) -> CaseResult:
        """Score a single case.

        Raises:
            UnknownCaseKindError: If no scorer exists for ``case.kind``
            LengthMismatchError: If paired label lists cannot be aligned
            EvaluationError: If the reference side of the case is invalid
        """
        scorer = self._scorers.get(case.kind)
        if scorer is None:
            raise UnknownCaseKindError(
                f"Unknown case kind '{case.kind}'. Available kinds: {self.kinds}",
                details={"case": case.name},
            )
        result = scorer(case)
        logger.debug(f"Scored {case.name} ({case.kind}): {result.metric}={result.score:.3f}")
        return result

    def evaluate_batch(self, cases: list[EvaluationCase]) -> list[CaseResult]:
        """Score multiple cases, skipping those that cannot be scored.

        Cases whose label lists differ in length are logged and left out of
        the results rather than reported as a 0.0 score.
        """
        results = []
        for case in cases:
            try:
                results.append(self.score_case(case))
            except LengthMismatchError as e:
                logger.warning(f"Cannot score {case.name}: {e.message}")
        logger.info(f"Scored {len(results)} of {len(cases)} cases")
        return results

    def get_aggregate_metrics(self, results: list[CaseResult]) -> dict[str, float]:
        """Calculate aggregate metrics across results.

        Returns:
            Dictionary with mean/min/max score and number of results
        """
        if not results:
            return {
                "mean_score": 0.0,
                "min_score": 0.0,
                "max_score": 0.0,
                "num_evaluated": 0,
            }

        scores = [r.score for r in results]
        return {
            "mean_score": sum(scores) / len(scores),
            "min_score": min(scores),
            "max_score": max(scores),
            "num_evaluated": len(results),
        }

    def get_kind_breakdown(self, results: list[CaseResult]) -> dict[str, dict[str, float]]:
        """Calculate aggregate metrics per case kind."""
        kind_results: dict[str, list[CaseResult]] = {}
        for result in results:
            kind_results.setdefault(result.kind, []).append(result)

        return {
            kind: self.get_aggregate_metrics(kind_evals)
            for kind, kind_evals in kind_results.items()
        }

    # Scorers

    def _score_exact_match(self, case: EvaluationCase) -> CaseResult:
        match = exact_match(_as_text(case.expected), _as_text(case.actual))
        return CaseResult(case.name, case.kind, "exact_match", 1.0 if match else 0.0)

    def _score_field_match(self, case: EvaluationCase) -> CaseResult:
        matched, total, details = field_match(case.expected, case.actual)
        return CaseResult(
            case.name,
            case.kind,
            "field_match",
            match_ratio(matched, total),
            {"matched": matched, "total": total, "fields": [d.to_dict() for d in details]},
        )

    def _score_json_array(self, case: EvaluationCase) -> CaseResult:
        matched, total, details = batch_field_match(case.expected, case.actual)
        return CaseResult(
            case.name,
            case.kind,
            "field_match",
            match_ratio(matched, total),
            {"matched": matched, "total": total, "fields": [d.to_dict() for d in details]},
        )

    def _score_text_f1(self, case: EvaluationCase) -> CaseResult:
        score = text_f1(_as_text(case.expected), _as_text(case.actual))
        return CaseResult(case.name, case.kind, "token_f1", score)

    def _score_key_value_f1(self, case: EvaluationCase) -> CaseResult:
        score = key_value_f1(_as_text(case.expected), _as_text(case.actual))
        return CaseResult(case.name, case.kind, "key_value_f1", score)

    def _score_action_items(self, case: EvaluationCase) -> CaseResult:
        threshold = float(case.options.get("threshold", self.settings.action_item_f1_threshold))
        score = score_action_items(case.expected, case.actual, threshold=threshold)
        return CaseResult(case.name, case.kind, "action_items", score, {"threshold": threshold})

    def _score_ranking(self, case: EvaluationCase) -> CaseResult:
        k = int(case.options.get("k", self.settings.ndcg_k))
        threshold = int(case.options.get("threshold", self.settings.mrr_threshold))

        expected, _ = _decode(case.expected)
        try:
            gold = [GradedCandidate.model_validate(g) for g in _unwrap(expected, "ranking")]
        except (TypeError, ValidationError) as e:
            raise EvaluationError(f"Invalid gold ranking for {case.name}: {e}") from e

        actual, ok = _decode(case.actual)
        try:
            ranked = [RankedResult.model_validate(r) for r in _unwrap(actual, "rankings")] if ok else []
        except (TypeError, ValidationError) as e:
            logger.debug(f"Unparseable rankings for {case.name}: {e}")
            ranked = []

        relevance = relevance_map(gold)
        order = order_by_score(ranked)
        return CaseResult(
            case.name,
            case.kind,
            f"ndcg@{k}",
            ndcg(order, relevance, k),
            {"mrr": mrr(order, relevance, threshold), "k": k, "threshold": threshold, "order": order},
        )

    def _score_compliance(self, case: EvaluationCase) -> CaseResult:
        expected, _ = _decode(case.expected)
        try:
            schema = RecordSchema.model_validate(expected["schema"])
            constraints = Constraints.model_validate(expected.get("constraints") or {})
        except (KeyError, TypeError, AttributeError, ValidationError) as e:
            raise EvaluationError(f"Invalid schema or constraints for {case.name}: {e}") from e

        actual, ok = _decode(case.actual)
        records = _unwrap(actual, "records") if ok else None
        if not isinstance(records, list):
            records = None

        detail = validate_records(records, schema, constraints, weights=self.settings.compliance_weights)
        return CaseResult(case.name, case.kind, "compliance", detail.overall, detail.to_dict())

    def _score_tool_call(self, case: EvaluationCase) -> CaseResult:
        expected, _ = _decode(case.expected)
        if isinstance(expected, list):
            return self._score_tool_call_batch(case, expected)

        try:
            expected_call = ToolCall.model_validate(expected)
        except ValidationError as e:
            raise EvaluationError(f"Invalid expected tool call for {case.name}: {e}") from e

        actual, ok = _decode(case.actual)
        try:
            actual_call = ToolCall.model_validate(actual) if ok else None
        except ValidationError as e:
            logger.debug(f"Unparseable tool call for {case.name}: {e}")
            actual_call = None

        if actual_call is None:
            return CaseResult(
                case.name, case.kind, "tool_call", 0.0, {"tool_match": False, "parameters_match": False}
            )

        result = match_tool_call(expected_call, actual_call)
        return CaseResult(
            case.name,
            case.kind,
            "tool_call",
            1.0 if result.both else 0.0,
            {"tool_match": result.tool_match, "parameters_match": result.parameters_match},
        )

    def _score_tool_call_batch(self, case: EvaluationCase, expected: list[Any]) -> CaseResult:
        """Score a list of calls matched by id; the score is combined accuracy."""
        try:
            expected_calls = [ToolCall.model_validate(call) for call in expected]
        except ValidationError as e:
            raise EvaluationError(f"Invalid expected tool calls for {case.name}: {e}") from e

        tally = score_tool_calls(expected_calls, case.actual)
        return CaseResult(case.name, case.kind, "tool_call", tally.combined_accuracy, tally.to_dict())

    def _score_classification(self, case: EvaluationCase) -> CaseResult:
        expected, _ = _decode(case.expected)
        actual, ok = _decode(case.actual)
        if not isinstance(expected, list):
            raise EvaluationError(f"Expected labels for {case.name} must be a list")
        if not ok or not isinstance(actual, list):
            return CaseResult(case.name, case.kind, "accuracy", 0.0)

        if expected and all(isinstance(v, bool) for v in expected + actual):
            counts = confusion(expected, actual)
            return CaseResult(
                case.name,
                case.kind,
                "accuracy",
                counts.accuracy,
                {
                    "precision": counts.precision,
                    "recall": counts.recall,
                    "false_positive_rate": counts.false_positive_rate,
                    **asdict(counts),
                },
            )

        predictions = [_as_text(v) for v in actual]
        labels = [_as_text(v) for v in expected]
        return CaseResult(
            case.name,
            case.kind,
            "accuracy",
            accuracy_score(predictions, labels),
            {"correct": count_matches(predictions, labels), "total": len(labels)},
        )
