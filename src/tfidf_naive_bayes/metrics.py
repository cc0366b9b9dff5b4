"""Evaluation metrics for trained classifiers."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from .classifier import TrainedClassifier
from .models import InvalidInputError, Sample

METHODS = ("score", "fisher")


@dataclass(frozen=True)
class ClassificationMetrics:
    """Scores derived from one confusion matrix.

    Only the matrix is stored; accuracy and the per-label and averaged
    scores are computed from it on access.

    Attributes:
        confusion_matrix: ``{true: {predicted: count}}`` over the same
            sorted label set on both axes.
        method: Decision function that produced the predictions.
    """

    confusion_matrix: dict[str, dict[str, int]]
    method: str = "score"

    @property
    def labels(self) -> list[str]:
        return list(self.confusion_matrix)

    @property
    def support(self) -> dict[str, int]:
        """True samples per label."""
        return {t: sum(row.values()) for t, row in self.confusion_matrix.items()}

    @property
    def correct(self) -> int:
        return sum(self.confusion_matrix[label][label] for label in self.labels)

    @property
    def total(self) -> int:
        return sum(self.support.values())

    @property
    def accuracy(self) -> float:
        return _ratio(self.correct, self.total)

    @property
    def per_label(self) -> dict[str, dict[str, float]]:
        scores = {}
        for label in self.labels:
            tp = self.confusion_matrix[label][label]
            precision = _ratio(tp, sum(row[label] for row in self.confusion_matrix.values()))
            recall = _ratio(tp, sum(self.confusion_matrix[label].values()))
            scores[label] = {
                "precision": precision,
                "recall": recall,
                "f1": _ratio(2 * precision * recall, precision + recall),
            }
        return scores

    @property
    def macro_f1(self) -> float:
        f1 = [s["f1"] for s in self.per_label.values()]
        return _ratio(sum(f1), len(f1))

    @property
    def weighted_f1(self) -> float:
        support = self.support
        weighted = sum(s["f1"] * support[label] for label, s in self.per_label.items())
        return _ratio(weighted, self.total)

    def to_dict(self) -> dict:
        return {
            "method": self.method,
            "accuracy": round(self.accuracy, 4),
            "correct": self.correct,
            "total": self.total,
            "macro_f1": round(self.macro_f1, 4),
            "weighted_f1": round(self.weighted_f1, 4),
            "per_label": {
                label: {k: round(v, 4) for k, v in scores.items()}
                for label, scores in self.per_label.items()
            },
            "support": self.support,
            "confusion_matrix": self.confusion_matrix,
        }

    def summary(self) -> str:
        """Plain-text report, one row per label."""
        support = self.support
        lines = [
            f"Accuracy: {self.accuracy:.3f} ({self.correct}/{self.total}) [{self.method}]",
            f"Macro F1: {self.macro_f1:.4f}",
            f"Weighted F1: {self.weighted_f1:.4f}",
            "",
            f"{'Label':<20} {'Precision':>10} {'Recall':>10} {'F1':>10} {'Support':>10}",
            "-" * 62,
        ]
        for label, scores in self.per_label.items():
            lines.append(
                f"{label:<20} {scores['precision']:>10.4f} {scores['recall']:>10.4f} "
                f"{scores['f1']:>10.4f} {support[label]:>10}"
            )
        return "\n".join(lines)


def _ratio(numerator: float, denominator: float) -> float:
    return numerator / denominator if denominator > 0 else 0.0


def compute_metrics(
    y_true: Sequence[str],
    y_pred: Sequence[str],
    method: str = "score",
) -> ClassificationMetrics:
    """Tally predicted labels against ground truth.

    Raises:
        InvalidInputError: If the two sequences differ in length.
    """
    if len(y_true) != len(y_pred):
        raise InvalidInputError(
            f"y_true ({len(y_true)}) and y_pred ({len(y_pred)}) must have the same length"
        )

    labels = sorted(set(y_true) | set(y_pred))
    matrix = {t: {p: 0 for p in labels} for t in labels}
    for truth, guess in zip(y_true, y_pred):
        matrix[truth][guess] += 1
    return ClassificationMetrics(confusion_matrix=matrix, method=method)


def evaluate(
    classifier: TrainedClassifier,
    samples: Sequence[Sample],
    method: str = "score",
) -> ClassificationMetrics:
    """Predict every sample and score the predictions.

    Args:
        classifier: Trained classifier.
        samples: Labelled documents to evaluate on.
        method: ``"score"`` for the log-score argmax, ``"fisher"`` for the
            Fisher statistic.
    """
    if method not in METHODS:
        raise InvalidInputError(f"Unknown method {method!r}; expected one of {METHODS}")

    decide = classifier.predict if method == "score" else classifier.predict_fisher
    predictions = [decide(s.text) for s in samples]
    return compute_metrics([s.label for s in samples], predictions, method=method)
