"""
Command Line Interface for wfc-composer
=======================================

Runs the built-in demo song form (Verse / Chorus / Bridge) and prints the
result as a chord sheet, JSON or YAML.

Usage Examples:
    # Basic usage
    wfc-compose

    # Reproducible run
    wfc-compose --seed 42

    # Bigger piece in another key
    wfc-compose --sections 4 --chords 8 --key G --mode minor

    # Verbose mode - see processing details
    wfc-compose --seed 42 --verbose

    # JSON / YAML output - for scripting/integration
    wfc-compose --seed 42 --json
    wfc-compose --seed 42 --yaml
"""

import argparse
import logging
import sys
from typing import List, Optional

from pydantic import ValidationError

from wfc_composer.app.generate import demo_config, format_as_chord_sheet, format_as_json, format_as_yaml, generate
from wfc_composer.wfc.errors import ExhaustionError, WFCError


# =============================================================================
# PART 1: ARGUMENT PARSER SETUP
# =============================================================================

def create_argument_parser() -> argparse.ArgumentParser:
    """
    Create and configure the command-line argument parser.

    Returns:
        Configured ArgumentParser object
    """
    parser = argparse.ArgumentParser(
        prog="wfc-compose",
        description="""
Generate sections, chord progressions and melodies by wave function collapse.

Examples:
  wfc-compose --seed 42
  wfc-compose --sections 4 --chords 8 --key G
  wfc-compose --no-rhythm --json
        """,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    # ─────────────────────────────────────────────────────────────────────────
    # Generation options
    # ─────────────────────────────────────────────────────────────────────────
    parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Random seed for a reproducible run (default: fresh entropy)"
    )

    parser.add_argument(
        "--sections",
        type=int,
        default=3,
        help="Number of sections (default: 3)"
    )

    parser.add_argument(
        "--chords",
        type=int,
        default=4,
        help="Chords per section (default: 4)"
    )

    parser.add_argument(
        "--melody-length",
        type=int,
        default=4,
        help="Note slots per chord (default: 4)"
    )

    parser.add_argument(
        "--key",
        type=str,
        default="C",
        help="Key of the piece (default: C)"
    )

    parser.add_argument(
        "--mode",
        type=str,
        default="major",
        help="major or minor (default: major)"
    )

    parser.add_argument(
        "--bpm",
        type=int,
        default=100,
        help="Tempo in beats per minute (default: 100)"
    )

    parser.add_argument(
        "--no-rhythm",
        action="store_true",
        help="Sound every note slot instead of drawing a rhythm"
    )

    parser.add_argument(
        "--sustain",
        action="store_true",
        help="Let notes ring through the rests that follow them"
    )

    parser.add_argument(
        "--retries",
        type=int,
        default=0,
        help="Re-seed and retry this many times if the constraints can't be met"
    )

    # ─────────────────────────────────────────────────────────────────────────
    # Output format options
    # ─────────────────────────────────────────────────────────────────────────
    output = parser.add_mutually_exclusive_group()
    output.add_argument(
        "--json",
        action="store_true",
        help="Output result as JSON"
    )

    output.add_argument(
        "--yaml",
        action="store_true",
        help="Output result as YAML"
    )

    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Show detailed processing information"
    )

    return parser


# =============================================================================
# PART 2: GENERATION WRAPPER
# =============================================================================

def run(args: argparse.Namespace):
    """
    Build the demo configuration and generate, re-seeding on exhaustion.

    Returns:
        (result, config) of the successful attempt

    Raises:
        ExhaustionError: when the last attempt fails too
        ValidationError: for out-of-range arguments
    """
    seed = args.seed
    attempts = max(args.retries, 0) + 1

    for attempt in range(attempts):
        config = demo_config(
            seed=seed,
            num_sections=args.sections,
            num_chords=args.chords,
            melody_length=args.melody_length,
            key=args.key,
            mode=args.mode,
            bpm=args.bpm,
            use_rhythm=not args.no_rhythm,
            sustain_notes=args.sustain,
        )
        try:
            return generate(config, verbose=args.verbose), config
        except ExhaustionError as e:
            if attempt == attempts - 1:
                raise
            if args.verbose:
                print(f"\n⚠️  {e}; retrying with a fresh seed ({attempt + 1}/{args.retries})")
            seed = None


# =============================================================================
# PART 3: MAIN ENTRY POINT
# =============================================================================

def main(argv: Optional[List[str]] = None) -> int:
    """
    Main entry point for the CLI.

    Returns:
        Process exit code (0 on success, 1 on failure)
    """
    parser = create_argument_parser()
    args = parser.parse_args(argv)

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")

    try:
        result, config = run(args)
    except ValidationError as e:
        print(f"❌ Invalid arguments:\n{e}", file=sys.stderr)
        return 1
    except ExhaustionError as e:
        print(f"❌ Generation failed: {e}", file=sys.stderr)
        print(f"   Re-run with --seed {e.seed} to reproduce.", file=sys.stderr)
        return 1
    except WFCError as e:
        print(f"❌ Generation error: {e}", file=sys.stderr)
        return 1

    if args.json:
        print(format_as_json(result))
    elif args.yaml:
        print(format_as_yaml(result))
    else:
        print(format_as_chord_sheet(result, config.context))
    return 0


if __name__ == "__main__":
    sys.exit(main())
