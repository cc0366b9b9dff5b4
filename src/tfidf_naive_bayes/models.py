"""Data models shared by the classification pipeline."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from typing import Optional


class InvalidInputError(ValueError):
    """Structural problem with training or inference input."""


class UndefinedIdfError(InvalidInputError):
    """A term's inverse document frequency cannot be computed.

    Raised when a vocabulary term has a document frequency of zero (or less),
    or when the corpus size used for IDF weighting is not positive.
    """


@dataclass(frozen=True)
class Sample:
    """A single labelled document."""

    text: str
    label: str

    def to_dict(self) -> dict:
        return {"text": self.text, "label": self.label}


@dataclass(frozen=True)
class LabelMap:
    """Bidirectional mapping between label strings and class indices.

    Indices are dense (``0..K-1``) and assigned in the order labels are
    first encountered. Both directions are kept so that neither lookup
    needs a scan.

    Attributes:
        labels: Labels ordered by class index.
    """

    labels: tuple[str, ...] = ()
    _index: dict[str, int] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        index = {label: i for i, label in enumerate(self.labels)}
        if len(index) != len(self.labels):
            raise InvalidInputError(f"Duplicate labels in {self.labels}")
        object.__setattr__(self, "_index", index)

    @classmethod
    def from_labels(cls, labels: Iterable[str]) -> "LabelMap":
        """Build a label map from labels in first-seen order."""
        return cls(labels=tuple(dict.fromkeys(labels)))

    def __len__(self) -> int:
        return len(self.labels)

    def __contains__(self, label: object) -> bool:
        return label in self._index

    def index_of(self, label: str) -> Optional[int]:
        """Return the class index for ``label``, or ``None`` if unknown."""
        return self._index.get(label)

    def label_of(self, index: int) -> Optional[str]:
        """Return the label for a class index, or ``None`` if out of range."""
        if 0 <= index < len(self.labels):
            return self.labels[index]
        return None

    def encode(self, labels: Sequence[str]) -> list[int]:
        """Map known labels to their class indices.

        Raises:
            InvalidInputError: If any label is not in the map.
        """
        encoded = []
        for label in labels:
            idx = self._index.get(label)
            if idx is None:
                raise InvalidInputError(f"Unknown label: {label!r}. Known: {list(self.labels)}")
            encoded.append(idx)
        return encoded

    def to_dict(self) -> dict[str, int]:
        return dict(self._index)


@dataclass(frozen=True)
class ClassificationResult:
    """Both decisions for one text, from a single TF-IDF vector.

    Attributes:
        label: Highest-posterior label.
        probability: Posterior probability of ``label``.
        posterior: Probability per label, in class-index order.
        fisher_label: Label with the lowest Fisher statistic. It ignores
            priors, so it can disagree with ``label``.
    """

    label: str
    probability: float
    posterior: dict[str, float]
    fisher_label: str

    @property
    def agrees(self) -> bool:
        return self.label == self.fisher_label

    def ranked(self) -> list[tuple[str, float]]:
        """``(label, probability)`` pairs, most probable first."""
        return sorted(self.posterior.items(), key=lambda item: item[1], reverse=True)

    def to_dict(self, digits: int = 4) -> dict:
        return {
            "label": self.label,
            "probability": round(self.probability, digits),
            "fisher_label": self.fisher_label,
            "posterior": {k: round(v, digits) for k, v in self.posterior.items()},
        }
