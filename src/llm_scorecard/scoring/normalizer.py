"""Canonical values and the equivalence rules shared by every comparator.

Model output is compared against references after JSON decoding. Two values
are equivalent when their canonical JSON forms are identical, when a string
spells out the canonical form of a non-string (``"42"`` vs ``42``), or when two
strings agree after trimming and case folding.

Parsing never raises: text that is not valid JSON becomes an unparsed
``CanonicalValue`` that only equals an identical raw string.
"""

import json
import logging
import math
from dataclasses import dataclass
from enum import Enum
from typing import Any

logger = logging.getLogger(__name__)


class ValueKind(Enum):
    """Tag describing the shape of a decoded JSON value."""

    NULL = "null"
    BOOLEAN = "boolean"
    NUMBER = "number"
    STRING = "string"
    SEQUENCE = "sequence"
    MAPPING = "mapping"


@dataclass(frozen=True)
class CanonicalValue:
    """A decoded value together with its canonical JSON text.

    Attributes:
        value: Decoded value (integral floats folded to ints). For unparsed
            input this is the trimmed raw text.
        text: Canonical compact JSON, or the trimmed raw text when unparsed
        kind: Shape of the decoded value
        parsed: False when the raw input was not valid JSON
    """

    value: Any
    text: str
    kind: ValueKind
    parsed: bool = True

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, CanonicalValue):
            return NotImplemented
        return equivalent(self, other)

    def __hash__(self) -> int:
        # Must agree with equivalent(): "42", 42 and "  42 " hash alike.
        if isinstance(self.value, str):
            return hash(fold(self.value))
        return hash(fold(self.text.strip('"')))


def _reject_constant(name: str) -> Any:
    raise ValueError(f"Non-standard JSON constant: {name}")


def _fold_numbers(value: Any) -> Any:
    """Collapse integral floats so ``42.0`` and ``42`` share one form."""
    if isinstance(value, bool):
        return value
    if isinstance(value, float):
        if math.isfinite(value) and value.is_integer():
            return int(value)
        return value
    if isinstance(value, list | tuple):
        return [_fold_numbers(v) for v in value]
    if isinstance(value, dict):
        return {str(k): _fold_numbers(v) for k, v in value.items()}
    return value


def kind_of(value: Any) -> ValueKind:
    """Classify a decoded JSON value."""
    if value is None:
        return ValueKind.NULL
    if isinstance(value, bool):
        return ValueKind.BOOLEAN
    if isinstance(value, int | float):
        return ValueKind.NUMBER
    if isinstance(value, str):
        return ValueKind.STRING
    if isinstance(value, list | tuple):
        return ValueKind.SEQUENCE
    if isinstance(value, dict):
        return ValueKind.MAPPING
    raise TypeError(f"Unsupported value type: {type(value).__name__}")


def canonical_json(value: Any) -> str:
    """Serialize a decoded value to compact JSON with sorted keys."""
    return json.dumps(
        _fold_numbers(value),
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
    )


def display_string(value: Any) -> str:
    """String form of a value: strings verbatim, everything else as JSON."""
    if isinstance(value, str):
        return value
    return canonical_json(value)


def fold(text: str | None) -> str:
    """Trim and case-fold a string for equality checks."""
    return (text or "").strip().casefold()


def parse_json(raw: str | bytes | None) -> tuple[Any, bool]:
    """Decode JSON text defensively.

    Args:
        raw: JSON text

    Returns:
        Tuple of (decoded value, success flag). On failure the value is None.
    """
    if raw is None:
        return None, False
    if isinstance(raw, bytes):
        try:
            raw = raw.decode("utf-8")
        except UnicodeDecodeError:
            return None, False
    try:
        return json.loads(raw, parse_constant=_reject_constant), True
    except (ValueError, RecursionError) as e:
        logger.debug(f"Value is not valid JSON, using raw text: {e}")
        return None, False


def canonicalize(value: Any) -> CanonicalValue:
    """Wrap an already-decoded value."""
    folded = _fold_numbers(value)
    return CanonicalValue(value=folded, text=canonical_json(folded), kind=kind_of(folded))


def normalize(raw: str | bytes | None) -> CanonicalValue:
    """Parse raw JSON text into a canonical value.

    Args:
        raw: Raw JSON (or plain text) produced by a model or loaded from a reference

    Returns:
        CanonicalValue; ``parsed`` is False if the text is not valid JSON
    """
    decoded, ok = parse_json(raw)
    if ok:
        return canonicalize(decoded)

    if isinstance(raw, bytes):
        raw = raw.decode("utf-8", errors="replace")
    text = (raw or "").strip()
    return CanonicalValue(value=text, text=text, kind=ValueKind.STRING, parsed=False)


def values_equal(a: Any, b: Any) -> bool:
    """Compare two decoded values under the cross-type equivalence rules."""
    a_json = canonical_json(a)
    b_json = canonical_json(b)
    if a_json == b_json:
        return True

    a_is_str = isinstance(a, str)
    b_is_str = isinstance(b, str)
    if a_is_str and not b_is_str:
        return a.strip() == b_json.strip('"')
    if b_is_str and not a_is_str:
        return b.strip() == a_json.strip('"')
    if a_is_str and b_is_str:
        return fold(a) == fold(b)
    return False


def equivalent(a: CanonicalValue, b: CanonicalValue) -> bool:
    """Compare two canonical values; unparsed input only matches itself."""
    if a.text == b.text and a.parsed == b.parsed:
        return True
    if not (a.parsed and b.parsed):
        return False
    return values_equal(a.value, b.value)


def raw_values_equal(a: str | None, b: str | None) -> bool:
    """Compare two raw JSON texts, degrading to False on parse errors."""
    if (a or "").strip() == (b or "").strip():
        return True
    return equivalent(normalize(a), normalize(b))
