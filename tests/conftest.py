"""Shared test fixtures for tfidf-naive-bayes tests."""

from __future__ import annotations

import csv
from pathlib import Path

import pytest

from tfidf_naive_bayes.models import Sample

# Each label has distinctive vocabulary to make classification feasible
SPORTS_DOCS = [
    "The striker scored a late goal and the stadium erupted.",
    "Our goalkeeper saved a penalty in the final minute of the match.",
    "The coach praised the defenders after a clean sheet at the stadium.",
    "A hat trick from the striker sealed the league title.",
]

COOKING_DOCS = [
    "Simmer the tomato sauce with garlic and fresh basil.",
    "Knead the dough, let it rise, then bake the bread until golden.",
    "Roast the vegetables with olive oil, garlic and rosemary.",
    "Whisk the eggs with butter and sugar before you bake the cake.",
]

TECH_DOCS = [
    "The new laptop ships with a faster processor and more memory.",
    "Update the firmware before installing the latest software release.",
    "The server crashed after a memory leak in the database driver.",
    "Developers patched the software bug in the network driver.",
]


@pytest.fixture
def corpus() -> list[Sample]:
    """Twelve samples across three labels."""
    return (
        [Sample(text, "sports") for text in SPORTS_DOCS]
        + [Sample(text, "cooking") for text in COOKING_DOCS]
        + [Sample(text, "tech") for text in TECH_DOCS]
    )


@pytest.fixture
def disjoint_corpus() -> list[Sample]:
    """Four samples, two per label, with no shared vocabulary between labels."""
    return [
        Sample("apple banana cherry", "A"),
        Sample("banana cherry date", "A"),
        Sample("engine motor wheel", "B"),
        Sample("motor wheel tire", "B"),
    ]


@pytest.fixture
def write_csv(tmp_path: Path):
    """Factory writing rows (header first) to a CSV under ``tmp_path``."""

    def _write(name: str, rows: list[list[str]]) -> Path:
        path = tmp_path / name
        with open(path, "w", encoding="utf-8", newline="") as f:
            csv.writer(f).writerows(rows)
        return path

    return _write


@pytest.fixture
def corpus_csv(write_csv, corpus: list[Sample]) -> Path:
    """The three-label corpus as a ``text,label`` CSV file."""
    return write_csv("corpus.csv", [["text", "label"]] + [[s.text, s.label] for s in corpus])
