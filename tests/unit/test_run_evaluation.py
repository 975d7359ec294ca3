"""Unit tests for the evaluation CLI."""

import json

import pytest

from evaluation.evaluator import CaseResult, Evaluator
from evaluation.run_evaluation import main, print_results


@pytest.fixture
def cases_file(tmp_path):
    """Write a small mixed case file."""
    path = tmp_path / "cases.json"
    path.write_text(
        json.dumps(
            [
                {"name": "triage_1", "kind": "exact_match", "expected": "bug", "actual": "Bug"},
                {"name": "triage_2", "kind": "exact_match", "expected": "bug", "actual": "docs"},
                {"name": "summary", "kind": "text_f1", "expected": "rates rose", "actual": "rates rose"},
            ]
        )
    )
    return path


class TestMain:
    """Test the command line entry point."""

    def test_scores_all_cases(self, cases_file, capsys):
        """All cases are scored and summarized."""
        assert main([str(cases_file)]) == 0

        out = capsys.readouterr().out
        assert "Number of cases evaluated: 3" in out
        assert "KIND BREAKDOWN" in out
        assert "triage_1 [exact_match]" in out

    def test_kind_filter(self, cases_file, capsys):
        """Only cases of the requested kind are scored."""
        assert main([str(cases_file), "--kind", "TEXT_F1", "--quiet"]) == 0

        out = capsys.readouterr().out
        assert "Number of cases evaluated: 1" in out
        assert "summary [text_f1]" not in out

    def test_save_results(self, cases_file, tmp_path):
        """Results are written per case when requested."""
        results_dir = tmp_path / "saved"

        assert main([str(cases_file), "--save", "--model", "qwen3:4b", "--results-dir", str(results_dir)]) == 0

        assert sorted(p.name for p in results_dir.glob("*.json")) == [
            "summary__qwen3_4b.json",
            "triage_1__qwen3_4b.json",
            "triage_2__qwen3_4b.json",
        ]

    def test_missing_file_exits_nonzero(self, tmp_path):
        """A missing case file is reported with exit code 1."""
        assert main([str(tmp_path / "missing.json")]) == 1

    def test_unknown_kind_exits_nonzero(self, tmp_path):
        """A case with an unsupported kind fails the run."""
        path = tmp_path / "cases.json"
        path.write_text(json.dumps({"name": "x", "kind": "bleu", "expected": "a", "actual": "a"}))

        assert main([str(path)]) == 1


class TestPrintResults:
    """Test result rendering."""

    def test_no_results(self, mock_settings, capsys):
        """An empty run prints a notice."""
        print_results(Evaluator(mock_settings), [])

        assert "No results to display." in capsys.readouterr().out

    def test_violations_truncated(self, mock_settings, capsys):
        """Only the first few violations are listed."""
        result = CaseResult(
            "users",
            "compliance",
            "compliance",
            0.4,
            {"violations": [f'record {i}: missing field "id"' for i in range(7)]},
        )

        print_results(Evaluator(mock_settings), [result], violation_limit=2)

        out = capsys.readouterr().out
        assert "violations (7):" in out
        assert "LLM Scorecard v0.1.0 - EVALUATION RESULTS" in out
        assert 'record 1: missing field "id"' in out
        assert 'record 2: missing field "id"' not in out
        assert "... and 5 more" in out
