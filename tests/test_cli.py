"""Tests for the command-line interface."""

from __future__ import annotations

import csv
import json
import os

import pytest
from click.testing import CliRunner

from tfidf_naive_bayes.cli import main


@pytest.fixture
def runner(monkeypatch, tmp_path) -> CliRunner:
    env = {k: v for k, v in os.environ.items() if not k.startswith("TFIDF_NB_")}
    monkeypatch.setattr(os, "environ", env)
    monkeypatch.chdir(tmp_path)
    return CliRunner()


def _read(path):
    with open(path, encoding="utf-8", newline="") as f:
        return list(csv.reader(f))


def _json(output: str) -> dict:
    return json.loads(output[output.index("{"):])


@pytest.fixture
def statements_csv(write_csv):
    rows = [["text", "concept", "right", "source"]]
    for i in range(6):
        rows.append([f"taxes on fuel should rise {i}", "tax", "pro", "a"])
        rows.append([f"public schools need teachers {i}", "school", "contra", "b"])
        rows.append([f"weather was nice today {i}", "not_statement", "none", "c"])
    return write_csv("statements.csv", rows)


class TestTrainTest:
    def test_writes_predictions(self, runner, corpus_csv, tmp_path):
        out = tmp_path / "pred.csv"
        result = runner.invoke(main, ["train-test", str(corpus_csv), str(out), "-r", "0.25"])
        assert result.exit_code == 0, result.output
        rows = _read(out)
        assert rows[0] == ["text", "pred_label", "true_label"]
        assert len(rows) == 1 + 3
        assert all(r[1] in {"sports", "cooking", "tech"} for r in rows[1:])
        assert "Test set size: 3" in result.output

    def test_uses_configured_ratio(self, runner, corpus_csv, tmp_path, monkeypatch):
        monkeypatch.setenv("TFIDF_NB_TEST_RATIO", "0.5")
        out = tmp_path / "pred.csv"
        result = runner.invoke(main, ["train-test", str(corpus_csv), str(out)])
        assert result.exit_code == 0, result.output
        assert len(_read(out)) == 1 + 6

    def test_too_few_training_samples(self, runner, write_csv, tmp_path):
        path = write_csv("tiny.csv", [["text", "label"], ["one", "a"], ["two", "b"]])
        result = runner.invoke(main, ["train-test", str(path), str(tmp_path / "o.csv"), "-r", "0.5"])
        assert result.exit_code == 1
        assert "at least 2" in result.output


class TestHoldout:
    def test_drops_trained_texts(self, runner, corpus_csv, write_csv, corpus, tmp_path):
        test_csv = write_csv("test.csv", [
            ["text", "label"],
            [corpus[0].text, corpus[0].label],
            ["Bake the bread with butter", "cooking"],
        ])
        out = tmp_path / "pred.csv"
        result = runner.invoke(
            main, ["holdout", str(corpus_csv), str(test_csv), str(out), "-f", "1.0"]
        )
        assert result.exit_code == 0, result.output
        rows = _read(out)
        assert rows[1:] == [["Bake the bread with butter", "cooking", "cooking"]]
        assert "test set reduced to 1" in result.output


class TestFilterPredict:
    def test_writes_confident_rows(self, runner, statements_csv, tmp_path):
        out = tmp_path / "filtered.csv"
        result = runner.invoke(
            main, ["filter-predict", str(statements_csv), str(out), "-p", "0.0", "-r", "0.25"]
        )
        assert result.exit_code == 0, result.output
        rows = _read(out)
        assert rows[0] == ["text", "concept", "right", "pred_concept", "concept_predprob", "pred_right"]
        # 12 usable rows, a quarter held out
        assert len(rows) == 1 + 3
        for row in rows[1:]:
            assert row[1] != "not_statement"
            assert row[3] in {"tax", "school"}
            assert 0.0 <= float(row[4]) <= 1.0
            assert len(row[4].split(".")[1]) == 4

    def test_threshold_filters(self, runner, statements_csv, tmp_path):
        out = tmp_path / "filtered.csv"
        result = runner.invoke(
            main, ["filter-predict", str(statements_csv), str(out), "-p", "1.0"]
        )
        assert result.exit_code == 0, result.output
        assert all(float(r[4]) >= 1.0 for r in _read(out)[1:])

    def test_blank_labels_never_become_a_class(self, runner, write_csv, tmp_path):
        rows = [["text", "concept", "right"]]
        for i in range(10):
            rows.append([f"taxes on fuel should rise {i}", "tax", "pro"])
            rows.append([f"school teacher classroom pupil {i}", "education", ""])
            rows.append([f"public schools need teachers {i}", "education", "contra"])
            rows.append(["   ", "tax", "pro"])
        path = write_csv("blanks.csv", rows)
        out = tmp_path / "filtered.csv"
        result = runner.invoke(main, ["filter-predict", str(path), str(out), "-p", "0.0"])
        assert result.exit_code == 0, result.output
        written = _read(out)[1:]
        assert written
        for row in written:
            assert row[0].strip()
            assert row[2] in {"pro", "contra"}
            assert row[5] in {"pro", "contra"}

    def test_missing_column(self, runner, corpus_csv, tmp_path):
        result = runner.invoke(main, ["filter-predict", str(corpus_csv), str(tmp_path / "o.csv")])
        assert result.exit_code == 1
        assert "Missing required columns" in result.output


class TestEvaluate:
    def test_json_output(self, runner, corpus_csv):
        result = runner.invoke(main, ["evaluate", str(corpus_csv), "-r", "0", "-o", "json"])
        assert result.exit_code == 0, result.output
        data = _json(result.output)
        assert data["total"] == 12
        assert data["accuracy"] > 0.5

    def test_fisher_rich_output(self, runner, corpus_csv):
        result = runner.invoke(main, ["evaluate", str(corpus_csv), "-m", "fisher", "-r", "0.25"])
        assert result.exit_code == 0, result.output
        assert "Evaluation (fisher)" in result.output

    def test_invalid_setting_reported(self, runner, corpus_csv, monkeypatch):
        monkeypatch.setenv("TFIDF_NB_SEED", "abc")
        result = runner.invoke(main, ["evaluate", str(corpus_csv)])
        assert result.exit_code == 1
        assert "TFIDF_NB_SEED" in result.output


class TestClassify:
    def test_json_output(self, runner, corpus_csv):
        result = runner.invoke(
            main, ["classify", str(corpus_csv), "Knead the dough and bake bread", "-o", "json"]
        )
        assert result.exit_code == 0, result.output
        data = _json(result.output)
        assert data["label"] == "cooking"
        assert data["fisher_label"] in {"sports", "cooking", "tech"}
        assert sum(data["posterior"].values()) == pytest.approx(1.0, abs=1e-3)

    def test_rich_output(self, runner, corpus_csv):
        result = runner.invoke(main, ["classify", str(corpus_csv), "memory leak in the driver"])
        assert result.exit_code == 0, result.output
        assert "tech" in result.output
        assert "Top terms" in result.output


class TestUnreadableInput:
    """Files that are not UTF-8 CSV are reported, not raised."""

    @pytest.fixture
    def latin1_csv(self, tmp_path):
        path = tmp_path / "latin1.csv"
        rows = "".join(f"café crème {i},food\nbière {i},drink\n" for i in range(4))
        path.write_bytes(("text,label\n" + rows).encode("latin-1"))
        return path

    def test_evaluate_reports_error(self, runner, latin1_csv):
        result = runner.invoke(main, ["evaluate", str(latin1_csv)])
        assert result.exit_code == 1
        assert "Error:" in result.output
        assert not isinstance(result.exception, UnicodeDecodeError)

    def test_classify_reports_error(self, runner, latin1_csv):
        result = runner.invoke(main, ["classify", str(latin1_csv), "café"])
        assert result.exit_code == 1
        assert "Error:" in result.output

    def test_filter_predict_reports_error(self, runner, latin1_csv, tmp_path):
        result = runner.invoke(
            main,
            ["filter-predict", str(latin1_csv), str(tmp_path / "o.csv"), "--primary", "label",
             "--secondary", "label"],
        )
        assert result.exit_code == 1
        assert "Error:" in result.output
