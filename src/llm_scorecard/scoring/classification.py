"""Binary classification metrics for gatekeeping-style checks.

The positive class is the one worth catching (an unsafe prompt, a message
containing PII), so recall measures how many of those were caught and the
false positive rate how many safe inputs were wrongly blocked.
"""

from collections.abc import Iterable, Sequence
from dataclasses import dataclass

from ..exceptions import LengthMismatchError
from .normalizer import fold


def _ratio(numerator: int, denominator: int) -> float:
    return numerator / denominator if denominator else 0.0


@dataclass(frozen=True)
class BinaryConfusion:
    """Confusion counts for a binary classifier."""

    tp: int = 0
    tn: int = 0
    fp: int = 0
    fn: int = 0

    @property
    def total(self) -> int:
        return self.tp + self.tn + self.fp + self.fn

    @property
    def accuracy(self) -> float:
        return _ratio(self.tp + self.tn, self.total)

    @property
    def precision(self) -> float:
        return _ratio(self.tp, self.tp + self.fp)

    @property
    def recall(self) -> float:
        return _ratio(self.tp, self.tp + self.fn)

    @property
    def false_positive_rate(self) -> float:
        return _ratio(self.fp, self.fp + self.tn)


def confusion(expected: Sequence[bool], predicted: Sequence[bool]) -> BinaryConfusion:
    """Tally a confusion matrix from aligned gold and predicted flags.

    Args:
        expected: Gold flags (True = positive class)
        predicted: Model flags, aligned with ``expected``

    Returns:
        BinaryConfusion counts

    Raises:
        LengthMismatchError: If the sequences differ in length
    """
    if len(expected) != len(predicted):
        raise LengthMismatchError(len(predicted), len(expected))

    tp = tn = fp = fn = 0
    for gold, pred in zip(expected, predicted):
        if gold and pred:
            tp += 1
        elif not gold and not pred:
            tn += 1
        elif pred:
            fp += 1
        else:
            fn += 1
    return BinaryConfusion(tp=tp, tn=tn, fp=fp, fn=fn)


def label_recall(expected_labels: Iterable[str], actual_labels: Iterable[str]) -> tuple[int, int]:
    """Count how many expected labels the model also reported.

    Returns:
        Tuple of (labels found, labels expected)
    """
    actual = {fold(label) for label in actual_labels}
    found = 0
    total = 0
    for label in expected_labels:
        total += 1
        if fold(label) in actual:
            found += 1
    return found, total


def label_recall_score(expected_labels: Iterable[str], actual_labels: Iterable[str]) -> float:
    """Fraction of expected labels that the model reported (0.0 if none expected)."""
    found, total = label_recall(expected_labels, actual_labels)
    return _ratio(found, total)
