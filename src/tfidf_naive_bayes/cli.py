"""Command-line interface for TF-IDF Naive Bayes text classification.

Trains on labelled CSV files and writes or displays predictions, with
rich terminal output using the ``click`` and ``rich`` libraries.

Usage::

    tfidf-nb train-test samples.csv predictions.csv --test-ratio 0.2
    tfidf-nb holdout train.csv test.csv predictions.csv
    tfidf-nb filter-predict statements.csv filtered.csv --min-probability 0.7
    tfidf-nb evaluate samples.csv --method fisher
    tfidf-nb classify samples.csv "free pills, order now"
"""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from .classifier import TrainedClassifier, train
from .config import Settings, load_settings
from .datasets import (
    drop_seen_texts,
    load_rows,
    load_samples,
    subsample,
    train_test_split,
    write_rows,
)
from .metrics import METHODS, ClassificationMetrics, evaluate as evaluate_metrics
from .models import InvalidInputError, Sample
from .preprocessing import repair_mojibake

console = Console()
err_console = Console(stderr=True)

PREDICTION_HEADER = ("text", "pred_label", "true_label")


def configure_logging(level: str) -> None:
    """Route library logging through rich on stderr."""
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=err_console, rich_tracebacks=True)],
        force=True,
    )


def _fail(error: Exception) -> None:
    err_console.print(f"[bold red]Error:[/] {error}")
    sys.exit(1)


def _settings(ctx: click.Context) -> Settings:
    return ctx.obj["settings"]


def _predict_rows(classifier: TrainedClassifier, samples: list[Sample]) -> list[tuple[str, str, str]]:
    return [
        (repair_mojibake(s.text), classifier.predict(s.text), s.label)
        for s in samples
    ]


@click.group()
@click.version_option(package_name="tfidf-naive-bayes")
@click.option("--verbose", "-v", is_flag=True, help="Show debug logging.")
@click.option("--env-file", type=click.Path(dir_okay=False, path_type=Path), default=None,
              help="Read settings from this .env file instead of ./.env.")
@click.pass_context
def main(ctx: click.Context, verbose: bool, env_file: Path | None) -> None:
    """Naive Bayes text classification over TF-IDF features.

    Train on a labelled CSV (text,label) and predict labels for new text.
    """
    try:
        settings = load_settings(str(env_file) if env_file else None)
    except InvalidInputError as e:
        _fail(e)
    configure_logging("DEBUG" if verbose else settings.log_level)
    ctx.ensure_object(dict)
    ctx.obj["settings"] = settings


@main.command("train-test")
@click.argument("input_csv", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.argument("output_csv", type=click.Path(dir_okay=False, path_type=Path))
@click.option("--test-ratio", "-r", type=click.FloatRange(0.0, 1.0), default=None,
              help="Fraction of samples held out for testing.")
@click.option("--seed", type=int, default=None, help="Shuffle seed.")
@click.pass_context
def train_test(
    ctx: click.Context,
    input_csv: Path,
    output_csv: Path,
    test_ratio: float | None,
    seed: int | None,
) -> None:
    """Split one CSV into train/test, train, and write test predictions.

    Example: tfidf-nb train-test samples.csv predictions.csv -r 0.2
    """
    settings = _settings(ctx)
    ratio = settings.test_ratio if test_ratio is None else test_ratio
    seed = settings.seed if seed is None else seed

    with console.status("[bold blue]Training...", spinner="dots"):
        try:
            train_set, test_set = train_test_split(load_samples(input_csv), ratio, seed)
            classifier = train(train_set)
            written = write_rows(output_csv, PREDICTION_HEADER, _predict_rows(classifier, test_set))
        except (InvalidInputError, OSError) as e:
            _fail(e)

    console.print(f"Done. Test set size: {written}. Output written to {output_csv}")


@main.command()
@click.argument("train_csv", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.argument("test_csv", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.argument("output_csv", type=click.Path(dir_okay=False, path_type=Path))
@click.option("--train-fraction", "-f", type=click.FloatRange(0.0, 1.0), default=None,
              help="Fraction of the training file to train on.")
@click.option("--seed", type=int, default=None, help="Shuffle seed.")
@click.pass_context
def holdout(
    ctx: click.Context,
    train_csv: Path,
    test_csv: Path,
    output_csv: Path,
    train_fraction: float | None,
    seed: int | None,
) -> None:
    """Train on part of one CSV and predict a separate test CSV.

    Test rows whose text also appears in the training subset are dropped.

    Example: tfidf-nb holdout train.csv test.csv predictions.csv
    """
    settings = _settings(ctx)
    fraction = settings.train_fraction if train_fraction is None else train_fraction
    seed = settings.seed if seed is None else seed

    with console.status("[bold blue]Training...", spinner="dots"):
        try:
            train_set = subsample(load_samples(train_csv), fraction, seed)
            test_set = drop_seen_texts(load_samples(test_csv), train_set)
            classifier = train(train_set)
            written = write_rows(output_csv, PREDICTION_HEADER, _predict_rows(classifier, test_set))
        except (InvalidInputError, OSError) as e:
            _fail(e)

    console.print(f"Used {fraction:.0%} of training data: {len(train_set)} samples.")
    console.print(f"Removed duplicates: test set reduced to {len(test_set)}")
    console.print(f"Done. Test set size: {written}. Output written to {output_csv}")


@main.command("filter-predict")
@click.argument("input_csv", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.argument("output_csv", type=click.Path(dir_okay=False, path_type=Path))
@click.option("--text-column", default="text", show_default=True, help="Column holding the text.")
@click.option("--primary", default="concept", show_default=True,
              help="Label column whose confidence gates the output.")
@click.option("--secondary", default="right", show_default=True,
              help="Label column predicted for the rows that pass the gate.")
@click.option("--exclude", default="not_statement", show_default=True,
              help="Primary label value left out of training and output.")
@click.option("--min-probability", "-p", type=click.FloatRange(0.0, 1.0), default=None,
              help="Minimum primary prediction probability to keep a row.")
@click.option("--test-ratio", "-r", type=click.FloatRange(0.0, 1.0), default=None,
              help="Fraction of rows held out for testing.")
@click.option("--seed", type=int, default=None, help="Shuffle seed.")
@click.pass_context
def filter_predict(
    ctx: click.Context,
    input_csv: Path,
    output_csv: Path,
    text_column: str,
    primary: str,
    secondary: str,
    exclude: str,
    min_probability: float | None,
    test_ratio: float | None,
    seed: int | None,
) -> None:
    """Predict two label columns, keeping only confident primary predictions.

    One model is trained per label column on the same split. A test row is
    written when its primary prediction reaches the probability threshold.

    Example: tfidf-nb filter-predict statements.csv filtered.csv -p 0.7
    """
    settings = _settings(ctx)
    threshold = settings.min_probability if min_probability is None else min_probability
    ratio = settings.test_ratio if test_ratio is None else test_ratio
    seed = settings.seed if seed is None else seed

    with console.status("[bold blue]Training...", spinner="dots"):
        try:
            rows = [
                row for row in load_rows(input_csv, [text_column, primary, secondary])
                if row[primary].strip().lower() != exclude.strip().lower()
            ]
            train_rows, test_rows = train_test_split(rows, ratio, seed)
            primary_model = train([Sample(r[text_column], r[primary]) for r in train_rows])
            secondary_model = train([Sample(r[text_column], r[secondary]) for r in train_rows])

            output = []
            for row in test_rows:
                text = row[text_column]
                result = primary_model.classify(text)
                if result.probability >= threshold:
                    output.append((
                        text,
                        row[primary],
                        row[secondary],
                        result.label,
                        f"{result.probability:.4f}",
                        secondary_model.predict(text),
                    ))

            header = (
                text_column, primary, secondary,
                f"pred_{primary}", f"{primary}_predprob", f"pred_{secondary}",
            )
            written = write_rows(output_csv, header, output)
        except (InvalidInputError, OSError) as e:
            _fail(e)

    console.print(
        f"Done. {written} of {len(test_rows)} test rows passed the "
        f"{threshold:.2f} threshold. Output written to {output_csv}"
    )


@main.command()
@click.argument("input_csv", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--test-ratio", "-r", type=click.FloatRange(0.0, 1.0), default=None,
              help="Fraction held out for testing; 0 evaluates on the training data.")
@click.option("--seed", type=int, default=None, help="Shuffle seed.")
@click.option("--method", "-m", type=click.Choice(METHODS), default="score",
              help="Decision function to evaluate.")
@click.option("--output", "-o", type=click.Choice(["rich", "json"]), default="rich",
              help="Output format.")
@click.pass_context
def evaluate(
    ctx: click.Context,
    input_csv: Path,
    test_ratio: float | None,
    seed: int | None,
    method: str,
    output: str,
) -> None:
    """Report accuracy, per-label scores and the confusion matrix.

    Example: tfidf-nb evaluate samples.csv --method fisher
    """
    settings = _settings(ctx)
    ratio = settings.test_ratio if test_ratio is None else test_ratio
    seed = settings.seed if seed is None else seed

    with console.status("[bold blue]Evaluating...", spinner="dots"):
        try:
            train_set, test_set = train_test_split(load_samples(input_csv), ratio, seed)
            classifier = train(train_set)
            metrics = evaluate_metrics(classifier, test_set or train_set, method=method)
        except (InvalidInputError, OSError) as e:
            _fail(e)

    if output == "json":
        click.echo(json.dumps(metrics.to_dict(), indent=2))
    else:
        _render_metrics(metrics)


@main.command()
@click.argument("train_csv", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.argument("text")
@click.option("--top", "-n", type=click.IntRange(min=0), default=5, show_default=True,
              help="Informative terms to show for the predicted label.")
@click.option("--output", "-o", type=click.Choice(["rich", "json"]), default="rich",
              help="Output format.")
def classify(train_csv: Path, text: str, top: int, output: str) -> None:
    """Train on a CSV and classify a single text.

    Example: tfidf-nb classify samples.csv "free pills, order now"
    """
    with console.status("[bold blue]Training...", spinner="dots"):
        try:
            classifier = train(load_samples(train_csv))
        except (InvalidInputError, OSError) as e:
            _fail(e)

    result = classifier.classify(text)
    if output == "json":
        click.echo(json.dumps(result.to_dict(), indent=2))
        return

    table = Table(title="Posterior", show_lines=False)
    table.add_column("Label", style="cyan")
    table.add_column("Probability", justify="right")
    for label, prob in result.ranked():
        style = "bold green" if label == result.label else ""
        table.add_row(label, f"[{style}]{prob:.4f}[/]" if style else f"{prob:.4f}")

    console.print(Panel(
        f"[bold]{result.label}[/] ({result.probability:.1%})\n"
        f"Fisher statistic favours: {result.fisher_label}",
        title="Prediction",
        border_style="blue" if result.agrees else "yellow",
    ))
    console.print(table)

    if top:
        terms = classifier.most_informative_features(result.label, top_n=top)
        console.print(
            f"[dim]Top terms for {result.label}:[/] "
            + ", ".join(term for term, _ in terms)
        )


# ------------------------------------------------------------------
# Rich rendering helpers
# ------------------------------------------------------------------

def _render_metrics(metrics: ClassificationMetrics) -> None:
    """Render evaluation metrics as rich tables."""
    console.print()
    console.print(Panel(
        f"Accuracy: [bold]{metrics.accuracy:.3f}[/] ({metrics.correct}/{metrics.total})\n"
        f"Macro F1: {metrics.macro_f1:.4f} | Weighted F1: {metrics.weighted_f1:.4f}",
        title=f"Evaluation ({metrics.method})",
        border_style="blue",
    ))

    table = Table(title="Per-label scores")
    table.add_column("Label", style="cyan")
    table.add_column("Precision", justify="right")
    table.add_column("Recall", justify="right")
    table.add_column("F1", justify="right")
    table.add_column("Support", justify="right")
    support = metrics.support
    for label, scores in metrics.per_label.items():
        table.add_row(
            label,
            f"{scores['precision']:.4f}",
            f"{scores['recall']:.4f}",
            f"{scores['f1']:.4f}",
            str(support[label]),
        )
    console.print(table)

    labels = metrics.labels
    matrix = Table(title="Confusion matrix (rows: true, columns: predicted)")
    matrix.add_column("")
    for label in labels:
        matrix.add_column(label, justify="right")
    for truth in labels:
        matrix.add_row(truth, *(str(metrics.confusion_matrix[truth][p]) for p in labels))
    console.print(matrix)
    console.print()


if __name__ == "__main__":
    main()
