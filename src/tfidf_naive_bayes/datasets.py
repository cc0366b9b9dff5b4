"""Loading, splitting and writing labelled CSV data.

Input files are UTF-8 CSV with a header row. The simple layout is two
columns, ``text,label``; wider files are read by header name with
:func:`load_rows`.
"""

from __future__ import annotations

import csv
import logging
import random
from collections.abc import Iterable, Sequence
from pathlib import Path
from typing import TypeVar

from .models import InvalidInputError, Sample

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _round_half_up(value: float) -> int:
    return int(value + 0.5)


def _unreadable(path: str | Path, error: Exception) -> InvalidInputError:
    return InvalidInputError(f"Could not read {path} as UTF-8 CSV: {error}")


def load_samples(path: str | Path) -> list[Sample]:
    """Read ``text,label`` samples from a CSV file.

    The header row is skipped, as are rows with fewer than two columns or
    with a blank text or label. Extra columns are ignored.

    Args:
        path: CSV file to read.

    Returns:
        Samples in file order.

    Raises:
        InvalidInputError: If the file is not valid UTF-8 CSV.
    """
    samples: list[Sample] = []
    skipped = 0
    try:
        with open(path, "r", encoding="utf-8", newline="") as f:
            reader = csv.reader(f)
            next(reader, None)
            for row in reader:
                if len(row) < 2 or not row[0].strip() or not row[1].strip():
                    skipped += 1
                    continue
                samples.append(Sample(text=row[0], label=row[1]))
    except (UnicodeDecodeError, csv.Error) as e:
        raise _unreadable(path, e) from e

    if skipped:
        logger.info("Skipped %d incomplete rows in %s", skipped, path)
    logger.debug("Loaded %d samples from %s", len(samples), path)
    return samples


def load_rows(path: str | Path, columns: Sequence[str]) -> list[dict[str, str]]:
    """Read selected columns from a CSV file, addressed by header name.

    Header names are matched case-insensitively, ignoring surrounding
    whitespace. Rows too short to hold every requested column, or with a
    blank value in any of them, are skipped.

    Args:
        path: CSV file to read.
        columns: Column names to extract.

    Returns:
        One dict per row, keyed by the names given in ``columns``.

    Raises:
        InvalidInputError: If the file is empty, is not valid UTF-8 CSV,
            or lacks a requested column.
    """
    rows = []
    skipped = 0
    try:
        with open(path, "r", encoding="utf-8", newline="") as f:
            reader = csv.reader(f)
            header = next(reader, None)
            if header is None:
                raise InvalidInputError(f"No header in {path}")

            positions = {name.strip().lower(): i for i, name in enumerate(header)}
            missing = [c for c in columns if c.strip().lower() not in positions]
            if missing:
                raise InvalidInputError(
                    f"Missing required columns in {path}: {', '.join(missing)}"
                )
            wanted = {c: positions[c.strip().lower()] for c in columns}
            width = max(wanted.values(), default=-1) + 1

            for row in reader:
                if len(row) < width or any(not row[i].strip() for i in wanted.values()):
                    skipped += 1
                    continue
                rows.append({name: row[i] for name, i in wanted.items()})
    except (UnicodeDecodeError, csv.Error) as e:
        raise _unreadable(path, e) from e

    if skipped:
        logger.info("Skipped %d incomplete rows in %s", skipped, path)
    logger.debug("Loaded %d rows from %s", len(rows), path)
    return rows


def train_test_split(
    items: Sequence[T],
    test_ratio: float = 0.2,
    seed: int = 42,
) -> tuple[list[T], list[T]]:
    """Shuffle reproducibly and split into ``(train, test)``.

    The first ``round(len(items) * test_ratio)`` shuffled items form the
    test set. The input sequence is left untouched.
    """
    if not 0.0 <= test_ratio <= 1.0:
        raise InvalidInputError(f"test_ratio must be between 0 and 1, got {test_ratio}")

    shuffled = list(items)
    random.Random(seed).shuffle(shuffled)
    n_test = _round_half_up(len(shuffled) * test_ratio)
    return shuffled[n_test:], shuffled[:n_test]


def subsample(items: Sequence[T], fraction: float = 0.8, seed: int = 42) -> list[T]:
    """Reproducibly keep a shuffled ``fraction`` of ``items``."""
    if not 0.0 <= fraction <= 1.0:
        raise InvalidInputError(f"fraction must be between 0 and 1, got {fraction}")

    shuffled = list(items)
    random.Random(seed).shuffle(shuffled)
    return shuffled[: _round_half_up(len(shuffled) * fraction)]


def drop_seen_texts(samples: Iterable[Sample], seen: Iterable[Sample]) -> list[Sample]:
    """Remove samples whose text (ignoring surrounding whitespace) is in ``seen``."""
    seen_texts = {s.text.strip() for s in seen}
    return [s for s in samples if s.text.strip() not in seen_texts]


def write_rows(
    path: str | Path,
    header: Sequence[str],
    rows: Iterable[Sequence[str]],
) -> int:
    """Write a UTF-8 CSV file with a header row.

    Returns:
        Number of data rows written.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    count = 0
    with open(path, "w", encoding="utf-8", newline="") as f:
        writer = csv.writer(f, quoting=csv.QUOTE_ALL)
        writer.writerow(header)
        for row in rows:
            writer.writerow(row)
            count += 1
    logger.debug("Wrote %d rows to %s", count, path)
    return count
