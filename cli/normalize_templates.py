#!/usr/bin/env python3
# cli/normalize_templates.py - v1.0
# Batch-normalize persisted form template files (.json) through the grouping round trip
# Thin orchestrator over formflow.codec and formflow.grouping

"""
FormFlow Normalize Templates - Batch CLI

Loads every persisted template in the input folder, groups and splits it,
checks that schedule questions survive the round trip, and writes the
normalized persisted JSON (legacy optionsJson normalized, schedule titles
stored in the side-channel) to the output folder.

Usage:
    python cli/normalize_templates.py [options]

See --help for available options.
"""

import argparse
import configparser
import json
import sys
from datetime import datetime
from pathlib import Path

# Ensure project root is on sys.path when run as a script (python cli/normalize_templates.py)
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from formflow.codec import dump_template, load_template
from formflow.grouping import check_round_trip, group_template, split_template
from formflow.logger import FormLogger


VERSION = "1.0"


def parse_args(argv=None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Normalize persisted form template files through the grouping round trip."
    )
    parser.add_argument(
        "--ini",
        default="./conf/formflow.ini",
        help="Config file path (default: ./conf/formflow.ini)"
    )
    parser.add_argument(
        "--input-folder",
        help="Override INPUT_FOLDER from config"
    )
    parser.add_argument(
        "--output-folder",
        help="Override OUTPUT_FOLDER from config"
    )
    parser.add_argument(
        "--skip",
        type=int,
        help="Number of files to skip (NUM_TO_SKIP)"
    )
    parser.add_argument(
        "--process",
        type=int,
        help="Max files to process, 0=all (NUM_TO_PROCESS)"
    )
    parser.add_argument(
        "--backend-types",
        action="store_true",
        help="Write attendance questions as BOOLEAN + syncType"
    )
    parser.add_argument(
        "--noupdate",
        action="store_true",
        help="Dry-run mode: no output files written"
    )
    parser.add_argument(
        "--no-continue",
        action="store_true",
        help="Halt on first error (disable CONTINUE_ON_ERRORS)"
    )
    parser.add_argument(
        "--silent",
        action="store_true",
        help="Suppress console detail (progress only)"
    )
    return parser.parse_args(argv)


def load_config(ini_path: str, args: argparse.Namespace) -> dict:
    """Load configuration from INI file with CLI overrides."""
    if not Path(ini_path).exists():
        print(f"Error: Config file not found: {ini_path}")
        sys.exit(1)

    config = configparser.ConfigParser()
    config.read(ini_path)

    return {
        # Paths
        'input_folder': args.input_folder or config.get('paths', 'INPUT_FOLDER'),
        'output_folder': args.output_folder or config.get('paths', 'OUTPUT_FOLDER'),
        'log_dir': config.get('logging', 'log_dir', fallback='./log'),
        'log_slug': config.get('logging', 'log_slug', fallback='normalize'),

        # Processing options
        'skip': args.skip if args.skip is not None else config.getint('processing', 'NUM_TO_SKIP', fallback=0),
        'process': args.process if args.process is not None else config.getint('processing', 'NUM_TO_PROCESS', fallback=0),
        'backend_types': args.backend_types or config.getboolean('processing', 'BACKEND_TYPES', fallback=False),
        'noupdate': args.noupdate or config.getboolean('processing', 'NOUPDATE', fallback=False),
        'continue_on_errors': not args.no_continue and config.getboolean('processing', 'CONTINUE_ON_ERRORS', fallback=True),
        'silent': args.silent or config.getboolean('logging', 'silent', fallback=False),
    }


def discover_files(input_dir: Path, skip: int, process: int) -> list[Path]:
    """
    Discover .json template files in input directory.
    Returns sorted list after applying skip/process limits.
    """
    files = sorted(
        [f for f in input_dir.glob("*.json") if not f.name.startswith("~")],
        key=lambda p: p.name.lower()
    )

    if skip > 0:
        files = files[skip:]
    if process > 0:
        files = files[:process]

    return files


def normalize_file(file_path: Path, logger: FormLogger, backend_types: bool = False) -> tuple[dict, list[str]]:
    """
    Normalize one persisted template file.

    Returns (normalized persisted dict, round-trip problems).

    Raises:
        ValueError: If the file is not a JSON object.
    """
    data = json.loads(file_path.read_text(encoding="utf-8"))
    if not isinstance(data, dict):
        raise ValueError("Template file must contain a JSON object")

    flat = load_template(data, logger)
    problems = check_round_trip(flat)
    normalized = split_template(group_template(flat, logger))
    return dump_template(normalized, backend_types=backend_types), problems


def main(argv=None):
    """Main entry point."""
    args = parse_args(argv)
    cfg = load_config(args.ini, args)

    input_dir = Path(cfg['input_folder'])
    output_dir = Path(cfg['output_folder'])

    with FormLogger(
        log_dir=cfg['log_dir'],
        slug=cfg['log_slug'],
        version=VERSION,
        silent=cfg['silent'],
    ) as logger:

        start_time = datetime.now()
        logger.log(f"FormFlow Normalize Templates v{VERSION}")
        logger.log(f"Input folder: {input_dir}")
        logger.log(f"Output folder: {output_dir}")
        logger.log(f"Start time: {start_time.strftime('%Y-%m-%d %H:%M:%S')}")
        if cfg['noupdate']:
            logger.log("NOUPDATE mode enabled - no output files will be written")

        files = discover_files(input_dir, cfg['skip'], cfg['process'])
        if not files:
            logger.log("No .json files found in input folder")
            return

        logger.log(f"Found {len(files)} .json file(s) to process")
        if cfg['skip'] > 0:
            logger.log(f"  (skipped first {cfg['skip']} files)")

        if not cfg['noupdate']:
            output_dir.mkdir(parents=True, exist_ok=True)

        files_read = 0
        files_written = 0
        files_failed = 0
        files_changed_shape = 0

        for idx, file_path in enumerate(files, 1):
            try:
                files_read += 1
                logger.log(f'Reading file "{file_path}"')
                logger.progress('T')

                normalized, problems = normalize_file(file_path, logger, cfg['backend_types'])
                for problem in problems:
                    logger.warn(f"  {problem}")
                if problems:
                    files_changed_shape += 1

                for section in normalized['sections']:
                    logger.log(f"  Section {section['orderIndex']}: {section['title']} ({len(section['questions'])} question(s))")
                    logger.progress('S')

                if cfg['noupdate']:
                    logger.log("  NOUPDATE mode - skipping write")
                else:
                    target = output_dir / file_path.name
                    target.write_text(json.dumps(normalized, ensure_ascii=False, indent=2), encoding="utf-8")
                    logger.log(f"  Wrote {target}")
                    files_written += 1

            except (OSError, ValueError) as e:
                files_failed += 1
                logger.log(f"Error processing file #{idx} ({file_path.name}): {e}")

                if not cfg['continue_on_errors']:
                    logger.log("Halting due to error (CONTINUE_ON_ERRORS=false)")
                    break

        logger.newline()
        end_time = datetime.now()
        elapsed = (end_time - start_time).total_seconds()

        logger.log("=" * 60)
        logger.log("Run Summary")
        logger.log("=" * 60)
        logger.log(f"Start time:       {start_time.strftime('%Y-%m-%d %H:%M:%S')}")
        logger.log(f"End time:         {end_time.strftime('%Y-%m-%d %H:%M:%S')}")
        logger.log(f"Elapsed:          {elapsed:.1f} seconds")
        logger.log(f"Files read:       {files_read}")
        logger.log(f"Files written:    {files_written}")
        logger.log(f"Shape changed:    {files_changed_shape}")
        logger.log(f"Files skipped:    {cfg['skip']}")
        logger.log(f"Files failed:     {files_failed}")
        logger.log(f"Warnings:         {logger.warning_count}")

        if cfg['noupdate']:
            logger.log("(NOUPDATE mode - no files written)")


if __name__ == "__main__":
    main()
