"""
tests/unit/test_cli.py
──────────────────────────────────────────────────────────────────────────────
Unit tests for the CLI: output formatting and exit codes.

get_runner is patched at shiftmap.interfaces.cli.get_runner so no provider
is ever built.
"""
from __future__ import annotations

import argparse
import json
from unittest.mock import MagicMock, patch

from shiftmap.domain.exceptions import AuthenticationError, LLMError
from shiftmap.domain.models import (
    ActivityEntry,
    BatchOutcome,
    BatchSummary,
    MappingVerdict,
    VerdictSource,
)
from shiftmap.interfaces.cli import format_summary, format_verdict, run

_GET_RUNNER = "shiftmap.interfaces.cli.get_runner"


def _args(**overrides) -> argparse.Namespace:
    values = dict(entry=None, file=None, output=None, json_output=False, verbose=False)
    values.update(overrides)
    return argparse.Namespace(**values)


def _verdict(**overrides) -> MappingVerdict:
    values = dict(
        input="counted till",
        mapped_output="Cash Register Operation",
        source=VerdictSource.EMBEDDING,
        confidence=0.94,
        human_review_required=False,
    )
    values.update(overrides)
    return MappingVerdict(**values)


class TestFormatting:

    def test_mapped(self):
        assert format_verdict(_verdict()) == (
            "✅ Mapped to: Cash Register Operation (via embedding, confidence: 0.94)"
        )

    def test_review_with_candidate(self):
        text = format_verdict(_verdict(source=VerdictSource.LLM, confidence=0.81,
                                       human_review_required=True))
        assert text.startswith("⚠️ Sent for review (confidence: 0.81)")
        assert "Best candidate: Cash Register Operation (via llm)" in text

    def test_review_without_candidate(self):
        text = format_verdict(_verdict(mapped_output=None, confidence=-1.0,
                                       human_review_required=True))
        assert text == "⚠️ Sent for review (confidence: -1.00)"

    def test_summary(self):
        summary = BatchSummary(total=4, auto_accepted=2, escalated=1, review_required=1, failed=1)
        assert format_summary(summary) == (
            "4 inputs | auto-accepted: 2 | escalated: 1 | review: 1 | failed: 1"
        )


class TestSingleEntry:

    def test_prints_verdict(self, capsys):
        runner = MagicMock()
        runner.run_one.return_value = _verdict()
        with patch(_GET_RUNNER, return_value=runner):
            code = run(_args(entry="counted till"))

        assert code == 0
        runner.run_one.assert_called_once_with("counted till")
        assert "Mapped to: Cash Register Operation" in capsys.readouterr().out

    def test_json_output(self, capsys):
        runner = MagicMock()
        runner.run_one.return_value = _verdict()
        with patch(_GET_RUNNER, return_value=runner):
            run(_args(entry="counted till", json_output=True))

        assert json.loads(capsys.readouterr().out)["mappedOutput"] == "Cash Register Operation"

    def test_blank_entry_exits_2(self, capsys):
        runner = MagicMock()
        runner.run_one.side_effect = lambda text: ActivityEntry(text=text)
        with patch(_GET_RUNNER, return_value=runner):
            assert run(_args(entry="   ")) == 2
        assert "must not be empty" in capsys.readouterr().err

    def test_long_entry_is_resolved(self, capsys):
        text = "x" * 2001

        def _resolve(entry):
            ActivityEntry(text=entry)
            return _verdict(input=entry)

        runner = MagicMock()
        runner.run_one.side_effect = _resolve
        with patch(_GET_RUNNER, return_value=runner):
            assert run(_args(entry=text, json_output=True)) == 0
        assert json.loads(capsys.readouterr().out)["input"] == text

    def test_resolution_error_exits_1(self, capsys):
        runner = MagicMock()
        runner.run_one.side_effect = LLMError("Gemini failed after 3 attempts")
        with patch(_GET_RUNNER, return_value=runner):
            assert run(_args(entry="counted till")) == 1
        assert "Gemini failed" in capsys.readouterr().err

    def test_initialisation_error_exits_1(self, capsys):
        with patch(_GET_RUNNER, side_effect=AuthenticationError("OPENAI_API_KEY is not set")):
            assert run(_args(entry="counted till")) == 1
        assert "initialisation failed" in capsys.readouterr().err

    def test_interactive_prompt(self, capsys, monkeypatch):
        runner = MagicMock()
        runner.run_one.return_value = _verdict()
        monkeypatch.setattr("builtins.input", lambda prompt: "counted till")
        with patch(_GET_RUNNER, return_value=runner):
            assert run(_args()) == 0
        assert "You entered: counted till" in capsys.readouterr().out

    def test_interactive_eof_exits_2(self, monkeypatch):
        def _eof(prompt):
            raise EOFError

        monkeypatch.setattr("builtins.input", _eof)
        assert run(_args()) == 2


class TestBatch:

    def _runner(self, outcomes):
        runner = MagicMock()
        runner.run_batch.return_value = outcomes
        return runner

    def test_writes_output_file(self, tmp_path, capsys):
        src = tmp_path / "in.json"
        src.write_text('["counted till"]', encoding="utf-8")
        out = tmp_path / "out.json"
        outcomes = [BatchOutcome(index=0, input="counted till", verdict=_verdict())]

        with patch(_GET_RUNNER, return_value=self._runner(outcomes)):
            code = run(_args(file=src, output=out))

        assert code == 0
        assert json.loads(out.read_text(encoding="utf-8"))[0]["source"] == "embedding"
        assert "1 inputs" in capsys.readouterr().err

    def test_prints_records_without_output(self, tmp_path, capsys):
        src = tmp_path / "in.json"
        src.write_text('["counted till"]', encoding="utf-8")
        outcomes = [BatchOutcome(index=0, input="counted till", verdict=_verdict())]

        with patch(_GET_RUNNER, return_value=self._runner(outcomes)):
            run(_args(file=src))

        assert json.loads(capsys.readouterr().out)[0]["input"] == "counted till"

    def test_failed_item_exits_1(self, tmp_path):
        src = tmp_path / "in.json"
        src.write_text('["a", "b"]', encoding="utf-8")
        outcomes = [
            BatchOutcome(index=0, input="a", verdict=_verdict(input="a")),
            BatchOutcome(index=1, input="b", error="EmbeddingError: down"),
        ]
        with patch(_GET_RUNNER, return_value=self._runner(outcomes)):
            assert run(_args(file=src, output=tmp_path / "o.json")) == 1

    def test_bad_dataset_exits_2(self, tmp_path, capsys):
        src = tmp_path / "in.json"
        src.write_text('{"not": "an array"}', encoding="utf-8")
        with patch(_GET_RUNNER) as get_runner:
            assert run(_args(file=src)) == 2
        get_runner.assert_not_called()
        assert "JSON array" in capsys.readouterr().err

    def test_missing_file_exits_2(self, tmp_path):
        assert run(_args(file=tmp_path / "missing.json")) == 2

    def test_non_utf8_file_exits_2(self, tmp_path, capsys):
        src = tmp_path / "in.json"
        src.write_bytes(b'["caf\xe9"]')
        with patch(_GET_RUNNER) as get_runner:
            assert run(_args(file=src)) == 2
        get_runner.assert_not_called()
        assert "not UTF-8" in capsys.readouterr().err

    def test_directory_as_input_exits_2(self, tmp_path):
        with patch(_GET_RUNNER) as get_runner:
            assert run(_args(file=tmp_path)) == 2
        get_runner.assert_not_called()

    def test_unwritable_output_exits_2(self, tmp_path, capsys):
        src = tmp_path / "in.json"
        src.write_text('["counted till"]', encoding="utf-8")
        outcomes = [BatchOutcome(index=0, input="counted till", verdict=_verdict())]

        with patch(_GET_RUNNER, return_value=self._runner(outcomes)):
            assert run(_args(file=src, output=tmp_path)) == 2
        assert "Cannot write" in capsys.readouterr().err
