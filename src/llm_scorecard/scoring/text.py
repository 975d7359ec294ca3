"""Text-level metrics: exact match, token F1 and label accuracy."""

import logging
from collections import Counter
from collections.abc import Iterable, Sequence

from ..exceptions import LengthMismatchError
from .normalizer import fold

logger = logging.getLogger(__name__)

# Stripped from both ends of every token
TOKEN_PUNCTUATION = ".,;:!?\"'()[]{}#*-"


def exact_match(expected: str | None, actual: str | None) -> bool:
    """Return True if both strings are identical after trimming and case folding."""
    return fold(expected) == fold(actual)


def tokenize(text: str | None) -> list[str]:
    """Split text into lowercase word tokens with surrounding punctuation removed.

    Args:
        text: Free text (e.g. a model-written summary)

    Returns:
        List of non-empty tokens in original order
    """
    tokens = []
    for word in (text or "").lower().split():
        word = word.strip(TOKEN_PUNCTUATION)
        if word:
            tokens.append(word)
    return tokens


def token_f1(expected: Iterable[str], actual: Iterable[str]) -> float:
    """Compute token-level F1 between two token multisets.

    Tokens are lowercased and trimmed before counting. True positives are the
    per-token minimum of the two counts.

    Args:
        expected: Reference tokens
        actual: Tokens produced by the model

    Returns:
        F1 score (0-1). 0.0 when either side is empty.
    """
    expected_counts = Counter(t.strip().lower() for t in expected)
    actual_counts = Counter(t.strip().lower() for t in actual)

    expected_total = sum(expected_counts.values())
    actual_total = sum(actual_counts.values())
    if expected_total == 0 or actual_total == 0:
        return 0.0

    tp = sum((expected_counts & actual_counts).values())
    precision = tp / actual_total
    recall = tp / expected_total

    if precision + recall == 0:
        return 0.0
    return 2 * precision * recall / (precision + recall)


def text_f1(expected: str | None, actual: str | None) -> float:
    """Token F1 between two free-text strings."""
    return token_f1(tokenize(expected), tokenize(actual))


def count_matches(predictions: Sequence[str], labels: Sequence[str]) -> int:
    """Count positions where prediction and label match exactly.

    Raises:
        LengthMismatchError: If the sequences differ in length
    """
    if len(predictions) != len(labels):
        raise LengthMismatchError(len(predictions), len(labels))
    return sum(1 for p, label in zip(predictions, labels) if exact_match(p, label))


def accuracy_score(predictions: Sequence[str], labels: Sequence[str]) -> float:
    """Fraction of predictions that exactly match their labels.

    Args:
        predictions: Model labels, aligned with ``labels``
        labels: Gold labels

    Returns:
        Accuracy (0-1); 0.0 for empty input

    Raises:
        LengthMismatchError: If the sequences differ in length. This is
            distinct from a 0.0 score: the pair cannot be scored at all.
    """
    correct = count_matches(predictions, labels)
    if not predictions:
        return 0.0
    return correct / len(predictions)


def combined_accuracy(pairs: Sequence[tuple[Sequence[str], Sequence[str]]]) -> float:
    """Fraction of positions where every (predictions, labels) pair matches.

    Used when one item carries several labels that must all be right, for
    example an issue's category and its priority.

    Raises:
        LengthMismatchError: If any pair (or any pair against the first) differs in length
    """
    if not pairs:
        return 0.0

    size = len(pairs[0][0])
    for predictions, labels in pairs:
        if len(predictions) != len(labels):
            raise LengthMismatchError(len(predictions), len(labels))
        if len(predictions) != size:
            raise LengthMismatchError(len(predictions), size)
    if size == 0:
        return 0.0

    correct = 0
    for i in range(size):
        if all(exact_match(predictions[i], labels[i]) for predictions, labels in pairs):
            correct += 1
    return correct / size


def extract_key_values(text: str | None) -> list[str]:
    """Pull ``key:value`` tokens out of YAML-like text.

    List items contribute their bare value; keys with nested content
    contribute the key alone. Blank lines and comments are skipped.
    """
    pairs = []
    for line in (text or "").split("\n"):
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        if line.startswith("-"):
            pairs.append(line[1:].strip())
            continue

        idx = line.find(":")
        if idx > 0:
            key = line[:idx].strip()
            value = line[idx + 1 :].strip()
            pairs.append(f"{key}:{value}" if value else key)
    return pairs


def key_value_f1(expected: str | None, actual: str | None) -> float:
    """Token F1 over the key/value pairs of two YAML-like documents."""
    return token_f1(extract_key_values(expected), extract_key_values(actual))
