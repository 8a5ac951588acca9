#!/usr/bin/env python3
"""
CLI for resuming a picture book from its story folder.

Usage:
    python cli/resume_book.py output/20241126-143052-the-magic-garden-26-Nov-2024
    python cli/resume_book.py --latest
    python cli/resume_book.py --latest --status
"""

import argparse
import asyncio
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from picturebook.config import BOOK_FORMATS, PipelineConfig, configure_logging
from picturebook.core import ResumeError, detect_stage, find_latest_story_folder
from picturebook.core.capabilities import DspyCapabilities
from picturebook.core.errors import StageFailedError
from picturebook.core.events import print_progress
from picturebook.core.programs import BookPipeline, PipelineOptions


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Resume a picture book from its last completed stage")

    parser.add_argument(
        "folder",
        type=Path,
        nargs="?",
        help="Story folder to resume",
    )

    parser.add_argument(
        "--latest",
        action="store_true",
        help="Resume the most recently modified story folder",
    )

    parser.add_argument(
        "--status",
        action="store_true",
        help="Only print the detected stage, do not generate",
    )

    parser.add_argument(
        "--format", "-f",
        choices=sorted(BOOK_FORMATS),
        default=None,
        help="Print format for rendering (default: PICTUREBOOK_FORMAT or square-large)",
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


async def resume(args: argparse.Namespace, folder: Path, config: PipelineConfig) -> int:
    pipeline = BookPipeline(DspyCapabilities(config, mock_render=args.mock), config)
    options = PipelineOptions(format=args.format, listeners=[print_progress] if args.verbose else [])

    try:
        result = await pipeline.resume(folder, options)
    except ResumeError as e:
        print(f"Cannot resume: {e}", file=sys.stderr)
        return 2
    except StageFailedError as e:
        print(f"Generation failed: {e} ({e.__cause__})", file=sys.stderr)
        print(f"Run again to continue from where it stopped: python cli/resume_book.py {folder}", file=sys.stderr)
        return 1

    print(f"Story: {result.story.title}")
    print(f"Rendered {len(result.book.pages)} pages ({result.book.format})")
    return 0


def main():
    parser = build_parser()
    args = parser.parse_args()

    config = PipelineConfig.from_env()
    configure_logging(json_format=config.json_logs, level="DEBUG" if args.verbose else config.log_level)

    folder = args.folder
    if args.latest:
        folder = find_latest_story_folder(config.output_dir)
        if folder is None:
            parser.error(f"no story folders in {config.output_dir}")
    if folder is None:
        parser.error("give a story folder or --latest")

    if args.status:
        try:
            info = detect_stage(folder)
        except ResumeError as e:
            print(f"Cannot resume: {e}", file=sys.stderr)
            sys.exit(2)
        print(f"{folder.name}: {info.stage.value} ({info.latest_artifact_path.name})")
        return

    sys.exit(asyncio.run(resume(args, folder, config)))


if __name__ == "__main__":
    main()
