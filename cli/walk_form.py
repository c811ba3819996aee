#!/usr/bin/env python3
# cli/walk_form.py - v1.0
# Walk a form template's section navigation for a fixed set of answers

"""
FormFlow Walk Form - CLI

Loads a persisted template and an answers file, then presses "Next" from
the first section until the form submits, printing the sections visited.
Useful for checking branching rules before publishing a form.

Usage:
    python cli/walk_form.py TEMPLATE.json ANSWERS.json [options]

Answers file: {"<questionId>": value, ...} for PERSONAL templates,
{"<member>|COMMON": {"<questionId>": value}} for GROUP templates.
"""

import argparse
import json
import sys
from pathlib import Path

# Ensure project root is on sys.path when run as a script (python cli/walk_form.py)
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from formflow.logger import FormLogger
from formflow.navigation import NavigationEngine
from formflow.service import open_template


VERSION = "1.0"


def parse_args(argv=None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Walk a form's section navigation for a fixed set of answers."
    )
    parser.add_argument("template", help="Persisted template JSON file")
    parser.add_argument("answers", help="Answers JSON file")
    parser.add_argument(
        "--log-dir",
        default="./log",
        help="Log directory (default: ./log)"
    )
    parser.add_argument(
        "--silent",
        action="store_true",
        help="Suppress console detail"
    )
    return parser.parse_args(argv)


def _question_keys(bucket: dict) -> dict:
    return {int(k): v for k, v in bucket.items()}


def read_answers(path: Path, is_group: bool) -> dict:
    """Read an answers file into the engine's personal or group shape."""
    raw = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(raw, dict):
        raise ValueError("Answers file must contain a JSON object")
    if is_group:
        for target, bucket in raw.items():
            if not isinstance(bucket, dict):
                raise ValueError(f"Group answers for {target!r} must be an object")
        return {target: _question_keys(bucket) for target, bucket in raw.items()}
    return _question_keys(raw)


def walk(engine: NavigationEngine, answers: dict) -> tuple[list[int], bool]:
    """
    Advance until submit. Returns (visited section indices, submitted).

    Stops without submitting when navigation stalls or revisits a section,
    which with fixed answers would repeat forever.
    """
    visited = [engine.current_index]
    while not engine.submitted:
        before = engine.current_index
        engine.advance(answers)
        if engine.submitted:
            break
        if engine.current_index == before or engine.current_index in visited:
            visited.append(engine.current_index)
            return visited, False
        visited.append(engine.current_index)
    return visited, True


def main(argv=None):
    """Main entry point."""
    args = parse_args(argv)

    with FormLogger(log_dir=args.log_dir, slug="walk", version=VERSION, silent=args.silent) as logger:
        try:
            data = json.loads(Path(args.template).read_text(encoding="utf-8"))
            template = open_template(data, logger)
            answers = read_answers(Path(args.answers), template.is_group)
        except (OSError, ValueError) as e:
            logger.log(f"Error: {e}")
            sys.exit(1)

        logger.log(f"Template {template.id} '{template.title}' ({template.kind}), {len(template.sections)} section(s)")
        engine = NavigationEngine(template, logger=logger)
        visited, submitted = walk(engine, answers)

        titles = [f"{i}:{engine.sections[i].title}" for i in visited if engine.sections]
        logger.log(f"Path: {' -> '.join(titles) or '(no sections)'}")
        if submitted:
            logger.log("Result: SUBMIT")
        else:
            logger.log(f"Result: stalled at section {engine.current_index} (loop or dead end)")
            sys.exit(2)


if __name__ == "__main__":
    main()
