"""
interfaces/cli.py
──────────────────────────────────────────────────────────────────────────────
Command-line interface for the shift activity mapper.

Usage:
  # Interactive: prompts for one activity
  python -m shiftmap.interfaces.cli

  # Single entry
  python -m shiftmap.interfaces.cli --entry "restocking shelves in aisle 3"

  # Batch: JSON array of strings in, JSON array of verdicts out
  python -m shiftmap.interfaces.cli --file activities.json --output verdicts.json

  # JSON output for a single entry
  python -m shiftmap.interfaces.cli --entry "till float count" --json

  # Via installed entry-point (pyproject.toml [project.scripts])
  shiftmap --entry "mopping the back room"

Exit codes:
  0 — success
  1 — fatal error (configuration, auth, provider) or any failed batch item
  2 — argument / input file error, or the output file cannot be written
"""
from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

from pydantic import ValidationError

from shiftmap.adapters.json_dataset import dump_records, load_inputs, write_records
from shiftmap.domain.exceptions import DatasetError
from shiftmap.domain.models import BatchSummary, MappingVerdict
from shiftmap.services.container import get_runner

logger = logging.getLogger(__name__)

_PROMPT = "Enter unmapped activity: "


# ── Argument parser ────────────────────────────────────────────────────────

def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="shiftmap",
        description="Map free-text shift activities onto the canonical activity taxonomy.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    source = p.add_mutually_exclusive_group()
    source.add_argument(
        "--entry", "-e",
        metavar="TEXT",
        help="Single activity description to map.",
    )
    source.add_argument(
        "--file", "-f",
        metavar="FILE",
        type=Path,
        help="Path to a JSON file containing an array of activity strings.",
    )
    p.add_argument(
        "--output", "-o",
        metavar="FILE",
        type=Path,
        help="Write batch verdicts to this JSON file instead of stdout.",
    )
    p.add_argument(
        "--json",
        action="store_true",
        dest="json_output",
        help="Print single-entry verdicts as JSON.",
    )
    p.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable debug logging (default level: INFO, on stderr).",
    )
    return p


# ── Formatting helpers ─────────────────────────────────────────────────────

def format_verdict(verdict: MappingVerdict) -> str:
    """Human-readable one-line summary of a verdict."""
    if verdict.is_mapped:
        return (
            f"✅ Mapped to: {verdict.mapped_output} "
            f"(via {verdict.source.value}, confidence: {verdict.confidence:.2f})"
        )
    line = f"⚠️ Sent for review (confidence: {verdict.confidence:.2f})"
    if verdict.mapped_output:
        line += f"\n   Best candidate: {verdict.mapped_output} (via {verdict.source.value})"
    return line


def format_summary(summary: BatchSummary) -> str:
    return (
        f"{summary.total} inputs | auto-accepted: {summary.auto_accepted} | "
        f"escalated: {summary.escalated} | review: {summary.review_required} | "
        f"failed: {summary.failed}"
    )


# ── Main logic ─────────────────────────────────────────────────────────────

def _run_single(text: str, json_output: bool) -> int:
    try:
        runner = get_runner()
    except Exception as exc:
        logger.exception("Failed to initialise resolver")
        print(f"ERROR: Resolver initialisation failed: {exc}", file=sys.stderr)
        return 1

    try:
        verdict = runner.run_one(text)
    except ValidationError:
        print("ERROR: activity description must not be empty.", file=sys.stderr)
        return 2
    except Exception as exc:
        logger.exception("Resolution failed for %r", text)
        print(f"ERROR [{text!r}]: {exc}", file=sys.stderr)
        return 1

    if json_output:
        print(json.dumps(verdict.to_dict(), indent=2, ensure_ascii=False))
    else:
        print(format_verdict(verdict))
    return 0


def _run_batch(path: Path, output: Path | None) -> int:
    try:
        inputs = load_inputs(path)
    except DatasetError as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return 2

    try:
        runner = get_runner()
    except Exception as exc:
        logger.exception("Failed to initialise resolver")
        print(f"ERROR: Resolver initialisation failed: {exc}", file=sys.stderr)
        return 1

    outcomes = runner.run_batch(inputs)
    records = [o.to_dict() for o in outcomes]
    if output is not None:
        try:
            write_records(output, records)
        except DatasetError as exc:
            print(f"ERROR: {exc}", file=sys.stderr)
            return 2
    else:
        print(dump_records(records))

    summary = BatchSummary.from_outcomes(outcomes)
    print(format_summary(summary), file=sys.stderr)
    return 1 if summary.failed else 0


def run(args: argparse.Namespace) -> int:
    """Execute mapping for the given arguments.

    Returns:
        Exit code (0 = success, 1 = error, 2 = bad input).
    """
    if args.file:
        return _run_batch(args.file, args.output)

    if args.entry is not None:
        return _run_single(args.entry, args.json_output)

    try:
        text = input(_PROMPT)
    except EOFError:
        print("ERROR: no activity entered.", file=sys.stderr)
        return 2
    print(f"You entered: {text}")
    return _run_single(text, args.json_output)


def main() -> None:
    """Entry point for the shiftmap console script."""
    parser = _build_parser()
    args = parser.parse_args()

    # INFO keeps the per-input "Embedding match" / "LLM match" lines on stderr.
    log_level = logging.DEBUG if args.verbose else logging.INFO
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s  %(levelname)-8s  %(name)s  %(message)s",
    )

    if args.output and not args.file:
        parser.error("--output requires --file")

    sys.exit(run(args))


if __name__ == "__main__":
    main()
