"""Constraint validation for model-generated record sets.

Scores a batch of generated records against a schema (field presence and
type) and a declarative rule set, producing a weighted compliance score:

    overall = 0.4 * schema_compliance + 0.4 * rule_compliance + 0.2 * uniqueness

Every failed check appends one human-readable violation. A record-count
mismatch is reported as a violation but does not lower the score. Cross-field
and distribution checks are reported alongside and do not feed ``overall``.
"""

import logging
import re
from collections.abc import Mapping, Sequence
from dataclasses import asdict, dataclass
from typing import Any

from ..schemas.constraints import Constraints, CrossFieldRule, DistributionCheck, RecordSchema, Rule
from .normalizer import display_string, fold, parse_json, values_equal

logger = logging.getLogger(__name__)

DEFAULT_WEIGHTS = (0.4, 0.4, 0.2)

DATE_PATTERN = re.compile(r"\d{4}-\d{2}-\d{2}", re.ASCII)


@dataclass(frozen=True)
class DistributionResult:
    """Outcome of one distribution check over the whole record set."""

    field: str
    check: str
    passed: bool
    observed: float
    message: str = ""


@dataclass(frozen=True)
class ScoreDetail:
    """Breakdown of the compliance score for one validation run.

    Attributes:
        schema_compliance: Passed / total field presence+type checks
        rule_compliance: Passed / total rule checks on present values
        uniqueness: Product of per-field uniqueness factors
        overall: Weighted composite of the three scores above
        violations: One message per failed check, in evaluation order
        cross_field_compliance: Passed / applicable cross-field checks, or
            None when no cross-field rule applied to any record
        distribution: Results of the distribution checks
    """

    schema_compliance: float
    rule_compliance: float
    uniqueness: float
    overall: float
    violations: tuple[str, ...] = ()
    cross_field_compliance: float | None = None
    distribution: tuple[DistributionResult, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        data = asdict(self)
        data["violations"] = list(self.violations)
        data["distribution"] = [asdict(d) for d in self.distribution]
        return data


def _is_number(value: Any) -> bool:
    return isinstance(value, int | float) and not isinstance(value, bool)


def check_type(value: Any, expected_type: str) -> bool:
    """Check a decoded JSON value against a schema type name.

    Unknown type names always pass.
    """
    if expected_type == "string":
        return isinstance(value, str)
    if expected_type == "integer":
        if not _is_number(value):
            return False
        return isinstance(value, int) or value.is_integer()
    if expected_type == "number":
        return _is_number(value)
    if expected_type == "boolean":
        return isinstance(value, bool)
    if expected_type == "array":
        return isinstance(value, list | tuple)
    return True


def _within(number: float, minimum: float | None, maximum: float | None) -> bool:
    if minimum is not None and number < minimum:
        return False
    if maximum is not None and number > maximum:
        return False
    return True


def check_rule(value: Any, rule: Rule) -> bool:
    """Evaluate one rule against one field value.

    Args:
        value: Decoded field value (present in the record, possibly None)
        rule: Rule to apply

    Returns:
        True if the value satisfies the rule. Unknown rule kinds pass;
        ``unique`` always passes here and is scored across the record set.
    """
    kind = rule.kind

    if kind == "range":
        if not _is_number(value):
            return False
        return _within(value, rule.minimum, rule.maximum)

    if kind == "length":
        if not isinstance(value, str):
            return False
        return rule.exact is None or len(value) == rule.exact

    if kind == "pattern":
        if not isinstance(value, str):
            return False
        try:
            return re.search(rule.regex, value) is not None
        except re.error as e:
            logger.debug(f"Invalid pattern for field {rule.field!r}: {e}")
            return False

    if kind == "enum":
        text = fold(display_string(value))
        return any(text == fold(allowed) for allowed in rule.values)

    if kind == "type":
        return check_type(value, rule.expected_type)

    if kind == "array_length":
        if not isinstance(value, list | tuple):
            return False
        minimum = int(rule.minimum) if rule.minimum is not None else None
        maximum = int(rule.maximum) if rule.maximum is not None else None
        return _within(len(value), minimum, maximum)

    if kind == "date_range":
        # Syntax only; calendar validity is not checked.
        return isinstance(value, str) and DATE_PATTERN.fullmatch(value) is not None

    # "unique" is scored across the record set; unknown kinds pass
    return True


def uniqueness_score(records: Sequence[Mapping[str, Any]], fields: Sequence[str]) -> float:
    """Multiply ``1 - duplicates / len(records)`` across unique-marked fields.

    Records missing a field are skipped when counting its duplicates but
    still count towards the record total.
    """
    if not records:
        return 1.0

    score = 1.0
    for name in fields:
        seen: set[str] = set()
        duplicates = 0
        for record in records:
            if name not in record:
                continue
            key = display_string(record[name])
            if key in seen:
                duplicates += 1
            seen.add(key)
        if duplicates:
            score *= 1.0 - duplicates / len(records)
    return score


def _check_cross_field(records: Sequence[Mapping[str, Any]], rules: Sequence[CrossFieldRule]) -> tuple[int, int, list[str]]:
    passed = 0
    total = 0
    violations = []
    for rule in rules:
        if rule.kind != "if_then":
            logger.debug(f"Skipping unsupported cross-field rule {rule.kind!r}")
            continue
        for i, record in enumerate(records):
            if rule.if_field not in record or not values_equal(rule.if_value, record[rule.if_field]):
                continue
            total += 1
            if rule.then_field in record and values_equal(rule.then_value, record[rule.then_field]):
                passed += 1
            else:
                violations.append(
                    f'record {i}: field "{rule.then_field}" must be {display_string(rule.then_value)} '
                    f'when "{rule.if_field}" is {display_string(rule.if_value)}'
                )
    return passed, total, violations


def _check_distribution(records: Sequence[Mapping[str, Any]], check: DistributionCheck) -> DistributionResult:
    present = [record[check.field] for record in records if check.field in record]

    if check.check == "coverage":
        seen = {fold(display_string(v)) for v in present}
        missing = [v for v in check.values if fold(v) not in seen]
        observed = 1.0 - len(missing) / len(check.values) if check.values else 1.0
        message = f"missing values: {', '.join(missing)}" if missing else ""
        return DistributionResult(check.field, check.check, not missing, observed, message)

    if check.check == "ratio":
        hits = sum(1 for v in present if isinstance(v, bool) and v == check.value)
        observed = hits / len(records) if records else 0.0
        passed = abs(observed - check.target_ratio) <= check.tolerance + 1e-9
        message = "" if passed else f"ratio {observed:.2f} outside {check.target_ratio:.2f}±{check.tolerance:.2f}"
        return DistributionResult(check.field, check.check, passed, observed, message)

    if check.check == "distinct":
        distinct = len({display_string(v) for v in present})
        passed = distinct >= check.minimum
        message = "" if passed else f"{distinct} distinct values, expected at least {check.minimum}"
        return DistributionResult(check.field, check.check, passed, float(distinct), message)

    logger.debug(f"Skipping unsupported distribution check {check.check!r}")
    return DistributionResult(check.field, check.check, True, 0.0, "unsupported check")


def validate_records(
    records: Sequence[Any] | str | bytes | None,
    schema: RecordSchema,
    constraints: Constraints,
    weights: tuple[float, float, float] | None = None,
) -> ScoreDetail:
    """Check generated records against a schema and its constraints.

    Args:
        records: Decoded records, or raw JSON text holding a record array.
            Non-mapping entries count as empty records; anything that is not
            a list counts as no records.
        schema: Required fields and expected record count
        constraints: Rules, cross-field rules and distribution checks
        weights: (schema, rule, uniqueness) weights; defaults to 0.4/0.4/0.2

    Returns:
        ScoreDetail with every score in [0, 1] and the violation log
    """
    schema_weight, rule_weight, uniqueness_weight = weights or DEFAULT_WEIGHTS
    if isinstance(records, str | bytes):
        records, _ = parse_json(records)
    if not isinstance(records, list | tuple):
        records = []
    rows: list[Mapping[str, Any]] = [r if isinstance(r, Mapping) else {} for r in records]
    violations: list[str] = []

    if schema.count is not None and len(rows) != schema.count:
        violations.append(f"expected {schema.count} records, got {len(rows)}")

    if not rows:
        return ScoreDetail(0.0, 0.0, 0.0, 0.0, tuple(violations))

    total_field_checks = 0
    passed_field_checks = 0
    for i, record in enumerate(rows):
        for field_def in schema.fields:
            total_field_checks += 1
            if field_def.name not in record:
                violations.append(f'record {i}: missing field "{field_def.name}"')
                continue
            value = record[field_def.name]
            if value is None:
                violations.append(f'record {i}: field "{field_def.name}" is null')
                continue
            if not check_type(value, field_def.type):
                violations.append(
                    f'record {i}: field "{field_def.name}" has wrong type (expected {field_def.type})'
                )
                continue
            passed_field_checks += 1

    total_rule_checks = 0
    passed_rule_checks = 0
    for rule in constraints.rules:
        for i, record in enumerate(rows):
            if rule.field not in record:
                continue
            total_rule_checks += 1
            if check_rule(record[rule.field], rule):
                passed_rule_checks += 1
            else:
                violations.append(f'record {i}: field "{rule.field}" violates rule "{rule.kind}"')

    uniqueness = uniqueness_score(rows, constraints.unique_fields)

    cross_passed, cross_total, cross_violations = _check_cross_field(rows, constraints.cross_field_rules)
    violations.extend(cross_violations)

    distribution = tuple(_check_distribution(rows, check) for check in constraints.distribution_checks)
    for result in distribution:
        if not result.passed:
            violations.append(f'field "{result.field}" fails distribution check "{result.check}": {result.message}')

    schema_compliance = passed_field_checks / total_field_checks if total_field_checks else 0.0
    rule_compliance = passed_rule_checks / total_rule_checks if total_rule_checks else 0.0
    overall = (
        schema_compliance * schema_weight
        + rule_compliance * rule_weight
        + uniqueness * uniqueness_weight
    )

    return ScoreDetail(
        schema_compliance=schema_compliance,
        rule_compliance=rule_compliance,
        uniqueness=uniqueness,
        overall=min(max(overall, 0.0), 1.0),
        violations=tuple(violations),
        cross_field_compliance=cross_passed / cross_total if cross_total else None,
        distribution=distribution,
    )
