"""TF-IDF Naive Bayes -- short-text classification in pure Python."""

__version__ = "0.1.0"

from .classifier import (
    NaiveBayesModel,
    TrainedClassifier,
    VectorizationContext,
    build_vocabulary,
    document_frequency,
    predict,
    predict_fisher,
    predict_label_probability,
    train,
    train_naive_bayes,
    vectorize_batch,
    vectorize_text,
)
from .config import Settings, load_settings
from .datasets import drop_seen_texts, load_rows, load_samples, subsample, train_test_split, write_rows
from .metrics import ClassificationMetrics, compute_metrics, evaluate
from .models import ClassificationResult, InvalidInputError, LabelMap, Sample, UndefinedIdfError
from .preprocessing import repair_mojibake, tokenize

__all__ = [
    # Core
    "train",
    "predict",
    "predict_fisher",
    "predict_label_probability",
    "TrainedClassifier",
    "Sample",
    "LabelMap",
    "ClassificationResult",
    # Pipeline stages
    "tokenize",
    "build_vocabulary",
    "document_frequency",
    "vectorize_batch",
    "vectorize_text",
    "VectorizationContext",
    "train_naive_bayes",
    "NaiveBayesModel",
    # Errors
    "InvalidInputError",
    "UndefinedIdfError",
    # Data handling
    "load_samples",
    "load_rows",
    "train_test_split",
    "subsample",
    "drop_seen_texts",
    "write_rows",
    "repair_mojibake",
    # Evaluation
    "ClassificationMetrics",
    "compute_metrics",
    "evaluate",
    # Configuration
    "Settings",
    "load_settings",
]
