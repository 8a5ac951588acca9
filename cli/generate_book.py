#!/usr/bin/env python3
"""
CLI for generating picture books.

Usage:
    python cli/generate_book.py "a shy hedgehog who learns to share, for ages 4-6"
    python cli/generate_book.py "..." --format landscape
    python cli/generate_book.py "..." --stop-after prose
    python cli/generate_book.py --brief my_brief.json --mock
"""

import argparse
import asyncio
import json
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from picturebook.config import BOOK_FORMATS, PipelineConfig, configure_logging
from picturebook.core.capabilities import DspyCapabilities
from picturebook.core.errors import IncompleteBriefError, StageFailedError
from picturebook.core.events import print_progress
from picturebook.core.programs import BookPipeline, PipelineOptions
from picturebook.core.types import Brief, Stage


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Generate a children's picture book",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    python cli/generate_book.py "a dragon who is afraid of the dark, ages 3-5"
    python cli/generate_book.py "bedtime story about the moon" --format portrait-large
    python cli/generate_book.py --brief brief.json --stop-after visuals
    python cli/generate_book.py "a robot learns to paint" --mock
        """,
    )

    parser.add_argument(
        "description",
        type=str,
        nargs="?",
        help="What the book should be about (title, characters, setting, ages...)",
    )

    parser.add_argument(
        "--brief",
        type=Path,
        default=None,
        help="Start from a brief JSON file instead of a description",
    )

    parser.add_argument(
        "--format", "-f",
        choices=sorted(BOOK_FORMATS),
        default=None,
        help="Print format (default: PICTUREBOOK_FORMAT or square-large)",
    )

    parser.add_argument(
        "--stop-after",
        choices=[Stage.PLOT.value, Stage.PROSE.value, Stage.VISUALS.value],
        default=None,
        help="Stop after this stage without rendering",
    )

    parser.add_argument(
        "--output-dir", "-o",
        type=Path,
        default=None,
        help="Directory for story folders (default: PICTUREBOOK_OUTPUT_DIR or ./output)",
    )

    parser.add_argument(
        "--mock",
        action="store_true",
        help="Render placeholder pages instead of calling the image model",
    )

    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Print progress information",
    )

    return parser


async def generate(args: argparse.Namespace, config: PipelineConfig) -> int:
    pipeline = BookPipeline(DspyCapabilities(config, mock_render=args.mock), config)
    listeners = [print_progress] if args.verbose else []
    options = PipelineOptions(
        stop_after=Stage(args.stop_after) if args.stop_after else None,
        output_dir=args.output_dir or config.output_dir,
        format=args.format,
        listeners=listeners,
    )

    try:
        if args.brief:
            brief = Brief.model_validate(json.loads(args.brief.read_text(encoding="utf-8")))
            result = await pipeline.run_from_brief(brief, options)
        else:
            result = await pipeline.create(args.description, options)
    except IncompleteBriefError as e:
        print(f"The description is missing: {', '.join(e.missing_fields)}", file=sys.stderr)
        print("Add these details and try again.", file=sys.stderr)
        return 2
    except StageFailedError as e:
        print(f"Generation failed: {e} ({e.__cause__})", file=sys.stderr)
        print("Resume with: python cli/resume_book.py --latest", file=sys.stderr)
        return 1

    print(f"Story: {result.story.title}")
    print(f"Folder: {result.folder}")
    if result.book:
        print(f"Rendered {len(result.book.pages)} pages ({result.book.format})")
    else:
        print(f"Stopped after {args.stop_after}")
    return 0


def main():
    parser = build_parser()
    args = parser.parse_args()
    if not args.description and not args.brief:
        parser.error("give a description or --brief")

    config = PipelineConfig.from_env()
    configure_logging(json_format=config.json_logs, level="DEBUG" if args.verbose else config.log_level)

    sys.exit(asyncio.run(generate(args, config)))


if __name__ == "__main__":
    main()
