"""
Command-line interface for running conveyor calculations.
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from ..calculator.engine import run_calculation
from ..calculator.fixtures import run_fixtures
from ..calculator.output import to_json, to_markdown, to_summary
from ..io.loaders import load_fixtures, load_inputs, load_parameters

FORMATTERS = {
    'json': to_json,
    'markdown': to_markdown,
    'summary': to_summary,
}


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='conveyorcalc',
        description="Calculate and validate a sliderbed conveyor configuration",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Calculate and print a short summary (default)
  conveyorcalc conveyor.json

  # Full JSON result written to a file
  conveyorcalc conveyor.json --format json -o result.json

  # Markdown report with custom engineering parameters
  conveyorcalc conveyor.json --params params.json --format markdown

  # Check every recorded fixture (exit code 1 if any fails)
  conveyorcalc --fixtures fixtures.json
        """
    )

    parser.add_argument(
        'input_file',
        type=str,
        nargs='?',
        default=None,
        help='JSON file with the conveyor configuration'
    )

    parser.add_argument(
        '--params',
        type=str,
        default=None,
        help='JSON file with engineering parameter overrides'
    )

    parser.add_argument(
        '--model-version',
        type=str,
        default=None,
        help='Model version id recorded in the result metadata (default: generated)'
    )

    parser.add_argument(
        '--format',
        type=str,
        choices=sorted(FORMATTERS),
        default='summary',
        help='Output format (default: summary)'
    )

    parser.add_argument(
        '-o', '--output',
        type=str,
        default=None,
        help='Write output to this file instead of stdout'
    )

    parser.add_argument(
        '--fixtures',
        type=str,
        default=None,
        help='Run every fixture in this JSON file instead of a single calculation'
    )

    parser.add_argument(
        '-v', '--verbose',
        action='store_true',
        help='Show debug logging'
    )

    return parser


def _run_fixture_file(path: str) -> int:
    try:
        fixtures = load_fixtures(path)
    except (OSError, ValueError) as e:
        print(f"Error loading fixtures: {e}", file=sys.stderr)
        return 1

    try:
        runs = run_fixtures(fixtures)
    except ValueError as e:
        print(f"Error running fixtures: {e}", file=sys.stderr)
        return 1
    failed = 0
    for run in runs:
        if run.passed:
            print(f"  ✓ {run.name}")
            continue
        failed += 1
        print(f"  ✗ {run.name}")
        for message in run.messages:
            print(f"      {message}")

    print(f"\n{len(runs) - failed}/{len(runs)} fixtures passed")
    return 1 if failed else 0


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format='%(levelname)s %(name)s: %(message)s',
    )

    if args.fixtures:
        return _run_fixture_file(args.fixtures)

    if not args.input_file:
        parser.error("an input file is required unless --fixtures is given")

    try:
        inputs = load_inputs(args.input_file)
        parameters = load_parameters(args.params) if args.params else None
    except (OSError, ValueError) as e:
        print(f"Error loading input: {e}", file=sys.stderr)
        return 1

    try:
        result = run_calculation(inputs, parameters, args.model_version)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    text = FORMATTERS[args.format](result)

    if args.output:
        output_path = Path(args.output)
        output_path.write_text(text)
        print(f"Saved {args.format} output: {output_path}")
    else:
        print(text)

    return 0 if result.success else 2


if __name__ == '__main__':
    sys.exit(main())
