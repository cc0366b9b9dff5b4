"""Text classification with TF-IDF features and Multinomial Naive Bayes.

Pure-Python pipeline, no sklearn or numpy required:

- Deterministic vocabulary (sorted) and document-frequency tables
- TF-IDF vectorization, batch (training) and single-document (inference)
- Laplace-smoothed Naive Bayes estimated in log space
- Three decision functions: log-score argmax, softmax posterior, and a
  Fisher-style combined likelihood statistic

Feature vectors are dense lists of floats; index ``j`` always refers to the
``j``-th term of the sorted vocabulary the classifier was trained with.

Example::

    classifier = train([
        Sample("buy cheap pills now", "spam"),
        Sample("lunch with a friend tomorrow", "ham"),
    ])
    predict(classifier, "cheap pills")                     # "spam"
    predict_label_probability(classifier, "cheap pills", "spam")
"""

from __future__ import annotations

import logging
import math
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from types import MappingProxyType

from .models import ClassificationResult, InvalidInputError, LabelMap, Sample, UndefinedIdfError
from .preprocessing import term_counts, tokenize

logger = logging.getLogger(__name__)

DEFAULT_ALPHA = 1.0


# ---------------------------------------------------------------------------
# Vocabulary & Document Frequency
# ---------------------------------------------------------------------------

def build_vocabulary(samples: Iterable[Sample]) -> tuple[str, ...]:
    """Collect every distinct token in the corpus, sorted lexicographically."""
    terms: set[str] = set()
    for sample in samples:
        terms.update(tokenize(sample.text))
    return tuple(sorted(terms))


def document_frequency(
    samples: Iterable[Sample],
    vocabulary: Sequence[str],
) -> dict[str, int]:
    """Count the documents each vocabulary term appears in.

    Tokens outside ``vocabulary`` are ignored. Every vocabulary term gets
    an entry, even if it is zero.
    """
    df = dict.fromkeys(vocabulary, 0)
    for sample in samples:
        for token in set(tokenize(sample.text)):
            if token in df:
                df[token] += 1
    return df


# ---------------------------------------------------------------------------
# TF-IDF Vectorization
# ---------------------------------------------------------------------------

def _idf_weights(
    vocabulary: Sequence[str],
    df: Mapping[str, int],
    n_docs: int,
) -> list[float]:
    """Compute ``ln(N / df(t))`` for every vocabulary term.

    Terms missing from ``df`` count as appearing in one document.

    Raises:
        UndefinedIdfError: If ``n_docs`` is not positive or a term has a
            document frequency of zero or less.
    """
    if n_docs <= 0:
        raise UndefinedIdfError(f"Corpus size must be positive, got {n_docs}")

    weights = []
    for term in vocabulary:
        count = df.get(term, 1)
        if count <= 0:
            raise UndefinedIdfError(
                f"Term {term!r} has document frequency {count}; IDF is undefined"
            )
        weights.append(math.log(n_docs / count))
    return weights


def _weigh(text: str, vocabulary: Sequence[str], idf: Sequence[float]) -> list[float]:
    counts = term_counts(text)
    return [counts.get(term, 0) * weight for term, weight in zip(vocabulary, idf)]


def vectorize_batch(
    samples: Sequence[Sample],
    vocabulary: Sequence[str],
    df: Mapping[str, int],
) -> list[list[float]]:
    """Build the TF-IDF matrix for a batch of samples.

    The corpus size used for IDF is the size of the batch itself.

    Args:
        samples: Documents to vectorize (``N`` rows).
        vocabulary: Ordered terms defining the ``D`` columns.
        df: Document frequency per term.

    Returns:
        ``N`` rows of ``D`` feature weights (raw term count times IDF).
    """
    if not samples:
        return []
    idf = _idf_weights(vocabulary, df, len(samples))
    return [_weigh(sample.text, vocabulary, idf) for sample in samples]


def vectorize_text(
    text: str,
    vocabulary: Sequence[str],
    df: Mapping[str, int],
    n_docs: int,
) -> list[float]:
    """Build the TF-IDF vector for one document against a fixed corpus.

    ``n_docs`` is the size of the corpus ``df`` was computed from (the
    training set), not of whatever batch is being scored. Tokens that are
    not in ``vocabulary`` contribute nothing.
    """
    return _weigh(text, vocabulary, _idf_weights(vocabulary, df, n_docs))


@dataclass(frozen=True)
class VectorizationContext:
    """Vocabulary, document frequencies and corpus size frozen at training.

    Inference must use exactly the context the model was trained with;
    otherwise feature indices and IDF weights no longer line up with the
    learned likelihoods.

    Attributes:
        vocabulary: Sorted distinct terms; defines feature positions.
        document_frequency: Read-only ``term -> document count`` table.
        n_docs: Number of training documents.
    """

    vocabulary: tuple[str, ...]
    document_frequency: Mapping[str, int] = field(repr=False)
    n_docs: int

    @classmethod
    def from_samples(cls, samples: Sequence[Sample]) -> "VectorizationContext":
        """Derive the context from a training corpus."""
        vocabulary = build_vocabulary(samples)
        df = document_frequency(samples, vocabulary)
        return cls(
            vocabulary=vocabulary,
            document_frequency=MappingProxyType(df),
            n_docs=len(samples),
        )

    @property
    def dimension(self) -> int:
        """Length of every feature vector produced by this context."""
        return len(self.vocabulary)

    def transform(self, text: str) -> list[float]:
        """Vectorize a single document."""
        return vectorize_text(text, self.vocabulary, self.document_frequency, self.n_docs)

    def transform_batch(self, samples: Sequence[Sample]) -> list[list[float]]:
        """Vectorize a batch, using the batch size as corpus size."""
        return vectorize_batch(samples, self.vocabulary, self.document_frequency)


# ---------------------------------------------------------------------------
# Multinomial Naive Bayes
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class NaiveBayesModel:
    """Trained Naive Bayes parameters and the decision functions over them.

    All methods are read-only, so one model can serve concurrent callers.

    Attributes:
        log_prior: ``ln P(class)`` per class; ``-inf`` for a class that
            never occurred in training.
        log_likelihood: ``ln P(feature | class)``, one row per class.
    """

    log_prior: tuple[float, ...]
    log_likelihood: tuple[tuple[float, ...], ...] = field(repr=False)

    def __post_init__(self) -> None:
        if not self.log_prior:
            raise InvalidInputError("Model needs at least one class")
        if len(self.log_likelihood) != len(self.log_prior):
            raise InvalidInputError(
                f"log_prior has {len(self.log_prior)} classes but log_likelihood "
                f"has {len(self.log_likelihood)} rows"
            )
        width = len(self.log_likelihood[0])
        if any(len(row) != width for row in self.log_likelihood):
            raise InvalidInputError("log_likelihood rows must all have the same length")

    @property
    def n_classes(self) -> int:
        return len(self.log_prior)

    @property
    def n_features(self) -> int:
        return len(self.log_likelihood[0])

    def _check_input(self, x: Sequence[float]) -> None:
        if len(x) != self.n_features:
            raise InvalidInputError(
                f"Expected a vector of {self.n_features} features, got {len(x)}"
            )

    def scores(self, x: Sequence[float]) -> list[float]:
        """Unnormalized log posterior ``ln P(c) + sum_j x[j] ln P(j | c)``."""
        self._check_input(x)
        scores: list[float] = []
        for prior, row in zip(self.log_prior, self.log_likelihood):
            score = prior
            for value, log_prob in zip(x, row):
                if value:
                    score += value * log_prob
            scores.append(score)
        return scores

    def predict(self, x: Sequence[float]) -> int:
        """Return the class with the highest score.

        Ties go to the lowest class index. A ``-inf`` score never beats a
        finite one; if every score is ``-inf`` the result is class 0.
        """
        scores = self.scores(x)
        best = 0
        for c in range(1, len(scores)):
            if scores[c] > scores[best]:
                best = c
        return best

    def predict_proba(self, x: Sequence[float]) -> list[float]:
        """Posterior probability per class via a max-shifted softmax."""
        scores = self.scores(x)
        top = max(scores)
        if top == -math.inf:
            return [1.0 / len(scores)] * len(scores)

        exp_scores = [math.exp(s - top) for s in scores]
        total = sum(exp_scores)
        return [s / total for s in exp_scores]

    def fisher_score(self, x: Sequence[float]) -> list[float]:
        """Per-class ``sum(-2 ln P(j | c))`` over the features present in ``x``.

        Only features with a nonzero weight take part, and the weight itself
        is otherwise ignored. Note that this combines likelihoods rather
        than p-values, so it is Fisher's method in form only; lower means
        the observed features are jointly more probable under the class.
        """
        self._check_input(x)
        statistics: list[float] = []
        for row in self.log_likelihood:
            statistic = 0.0
            for value, log_prob in zip(x, row):
                if value == 0:
                    continue
                likelihood = math.exp(log_prob)
                if likelihood > 0:
                    statistic += -2.0 * math.log(likelihood)
            statistics.append(statistic)
        return statistics

    def predict_fisher(self, x: Sequence[float]) -> int:
        """Return the class with the lowest Fisher statistic (ties: lowest index)."""
        statistics = self.fisher_score(x)
        best = 0
        for c in range(1, len(statistics)):
            if statistics[c] < statistics[best]:
                best = c
        return best


def train_naive_bayes(
    X: Sequence[Sequence[float]],
    y: Sequence[int],
    n_classes: int,
    alpha: float = DEFAULT_ALPHA,
) -> NaiveBayesModel:
    """Estimate Naive Bayes parameters from a feature matrix.

    Feature weights are treated as pseudo-counts:
    ``P(j | c) = (sum of X[i][j] over class c + alpha) / sum over j of the same``.

    Args:
        X: ``N x D`` matrix of non-negative feature weights.
        y: Class index per row, each in ``[0, n_classes)``.
        n_classes: Number of classes ``K``.
        alpha: Additive (Laplace) smoothing constant.

    Returns:
        The fitted NaiveBayesModel.

    Raises:
        InvalidInputError: If there are fewer than 2 rows, ``X`` and ``y``
            disagree in length, rows differ in width, a weight is negative,
            or a class index is out of range.
    """
    n_samples = len(X)
    if n_samples < 2:
        raise InvalidInputError(f"Need at least 2 training samples, got {n_samples}")
    if len(y) != n_samples:
        raise InvalidInputError(
            f"X ({n_samples}) and y ({len(y)}) must have same length"
        )
    if n_classes < 1:
        raise InvalidInputError(f"n_classes must be at least 1, got {n_classes}")
    if alpha <= 0:
        raise InvalidInputError(f"alpha must be positive, got {alpha}")

    n_features = len(X[0])
    class_counts = [0] * n_classes
    feature_sums = [[0.0] * n_features for _ in range(n_classes)]

    for i, (row, cls) in enumerate(zip(X, y)):
        if len(row) != n_features:
            raise InvalidInputError(
                f"Row {i} has {len(row)} features, expected {n_features}"
            )
        if not 0 <= cls < n_classes:
            raise InvalidInputError(f"Row {i} has class {cls}, outside [0, {n_classes})")
        class_counts[cls] += 1
        sums = feature_sums[cls]
        for j, value in enumerate(row):
            if value < 0:
                raise InvalidInputError(f"Negative feature weight at row {i}, column {j}")
            sums[j] += value

    log_prior: list[float] = []
    log_likelihood: list[tuple[float, ...]] = []
    for cls in range(n_classes):
        count = class_counts[cls]
        log_prior.append(math.log(count / n_samples) if count else -math.inf)

        smoothed = [s + alpha for s in feature_sums[cls]]
        denominator = sum(smoothed)
        log_likelihood.append(tuple(math.log(v / denominator) for v in smoothed))

    empty = [cls for cls, count in enumerate(class_counts) if not count]
    if empty:
        logger.warning("Classes %s have no training samples; their prior is -inf", empty)

    return NaiveBayesModel(log_prior=tuple(log_prior), log_likelihood=tuple(log_likelihood))


# ---------------------------------------------------------------------------
# Trained Classifier (High-Level API)
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class TrainedClassifier:
    """Everything needed to classify new text, fixed at training time.

    Attributes:
        model: Fitted Naive Bayes parameters.
        label_map: Label strings for the model's class indices.
        context: Vocabulary, document frequencies and training size.
    """

    model: NaiveBayesModel
    label_map: LabelMap
    context: VectorizationContext

    def __post_init__(self) -> None:
        if len(self.label_map) != self.model.n_classes:
            raise InvalidInputError(
                f"Label map has {len(self.label_map)} labels but the model has "
                f"{self.model.n_classes} classes"
            )
        if self.context.dimension != self.model.n_features:
            raise InvalidInputError(
                f"Vocabulary has {self.context.dimension} terms but the model has "
                f"{self.model.n_features} features"
            )

    @property
    def classes(self) -> list[str]:
        """Known labels in class-index order."""
        return list(self.label_map.labels)

    @property
    def vocabulary(self) -> tuple[str, ...]:
        return self.context.vocabulary

    @property
    def train_doc_count(self) -> int:
        return self.context.n_docs

    def vectorize(self, text: str) -> list[float]:
        """TF-IDF vector for ``text`` in the training context."""
        return self.context.transform(text)

    def predict(self, text: str) -> str:
        """Most probable label for ``text``."""
        return self.label_map.labels[self.model.predict(self.vectorize(text))]

    def predict_fisher(self, text: str) -> str:
        """Label with the lowest Fisher statistic for ``text``."""
        return self.label_map.labels[self.model.predict_fisher(self.vectorize(text))]

    def predict_proba(self, text: str) -> dict[str, float]:
        """Posterior probability for every known label."""
        proba = self.model.predict_proba(self.vectorize(text))
        return dict(zip(self.label_map.labels, proba))

    def label_probability(self, text: str, label: str) -> float:
        """Posterior probability of ``label``; 0.0 if the label is unknown."""
        idx = self.label_map.index_of(label)
        if idx is None:
            return 0.0
        return self.model.predict_proba(self.vectorize(text))[idx]

    def classify(self, text: str) -> ClassificationResult:
        """Posterior and Fisher decisions for ``text``, vectorized once."""
        x = self.vectorize(text)
        proba = self.model.predict_proba(x)
        idx = self.model.predict(x)
        return ClassificationResult(
            label=self.label_map.labels[idx],
            probability=proba[idx],
            posterior=dict(zip(self.label_map.labels, proba)),
            fisher_label=self.label_map.labels[self.model.predict_fisher(x)],
        )

    def most_informative_features(
        self,
        label: str,
        top_n: int = 20,
    ) -> list[tuple[str, float]]:
        """Terms whose likelihood most favours ``label`` over the other classes.

        Scores each term by its log likelihood under ``label`` minus the mean
        log likelihood under every other class.

        Raises:
            InvalidInputError: If ``label`` is unknown.
        """
        idx = self.label_map.index_of(label)
        if idx is None:
            raise InvalidInputError(f"Unknown class: {label}. Known: {self.classes}")

        target = self.model.log_likelihood[idx]
        others = [row for c, row in enumerate(self.model.log_likelihood) if c != idx]

        ratios: list[tuple[str, float]] = []
        for j, term in enumerate(self.vocabulary):
            if others:
                baseline = sum(row[j] for row in others) / len(others)
                ratios.append((term, round(target[j] - baseline, 4)))
            else:
                ratios.append((term, round(target[j], 4)))

        ratios.sort(key=lambda x: x[1], reverse=True)
        return ratios[:top_n]


def train(samples: Sequence[Sample], alpha: float = DEFAULT_ALPHA) -> TrainedClassifier:
    """Train a classifier from labelled samples.

    Args:
        samples: Training documents; at least two.
        alpha: Laplace smoothing constant.

    Returns:
        A TrainedClassifier bundling model, labels and vectorization context.

    Raises:
        InvalidInputError: If fewer than 2 samples are given.
    """
    samples = list(samples)
    if len(samples) < 2:
        raise InvalidInputError(f"Need at least 2 samples, got {len(samples)}")

    context = VectorizationContext.from_samples(samples)
    X = context.transform_batch(samples)
    label_map = LabelMap.from_labels(s.label for s in samples)
    y = label_map.encode([s.label for s in samples])
    model = train_naive_bayes(X, y, len(label_map), alpha=alpha)

    logger.info(
        "Trained classifier: %d samples, %d terms, %d classes",
        len(samples), context.dimension, len(label_map),
    )
    return TrainedClassifier(model=model, label_map=label_map, context=context)


def predict(classifier: TrainedClassifier, text: str) -> str:
    """Predict the label of ``text``."""
    return classifier.predict(text)


def predict_fisher(classifier: TrainedClassifier, text: str) -> str:
    """Predict the label of ``text`` with the Fisher statistic."""
    return classifier.predict_fisher(text)


def predict_label_probability(classifier: TrainedClassifier, text: str, label: str) -> float:
    """Posterior probability that ``text`` has ``label`` (0.0 for unknown labels)."""
    return classifier.label_probability(text, label)
