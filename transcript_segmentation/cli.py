"""Command-line interface for transcript segmentation.

WHY: Batch jobs and quick experiments need to segment a saved word-timing
file without writing Python. The CLI wraps convert_to_transcript() and
emits the timeline as JSON.

HOW: argparse reads the input path (or "-" for stdin), preset and config
overrides. The input JSON is validated against INPUT_SCHEMA with
jsonschema, converted to RawWordTiming objects, segmented, and written to
--output or stdout.

RULES:
- Input: {"text": str, "language"?: str,
         "words": [{"text", "startTime"/"start", "endTime"/"end"}]}
- --language overrides the input file's "language"
- Status and error messages go to stderr (logging); JSON goes to stdout
- Exit codes: 0 = success, 1 = invalid input or configuration
- Config precedence: CLI flags > SEGMENTATION_* environment > preset
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from typing import Any, Dict, List, Optional

import jsonschema

from transcript_segmentation import convert_to_transcript
from transcript_segmentation.config import default_log_level, default_preset_name, load_config
from transcript_segmentation.models import RawWordTiming
from transcript_segmentation.presets import PRESETS

logger = logging.getLogger("transcript_segmentation.cli")

INPUT_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "required": ["text", "words"],
    "properties": {
        "text": {"type": "string"},
        "language": {"type": "string"},
        "words": {
            "type": "array",
            "items": {
                "type": "object",
                "required": ["text"],
                "properties": {
                    "text": {"type": "string"},
                    "startTime": {"type": "number", "minimum": 0},
                    "endTime": {"type": "number", "minimum": 0},
                    "start": {"type": "number", "minimum": 0},
                    "end": {"type": "number", "minimum": 0},
                },
                "anyOf": [
                    {"required": ["startTime", "endTime"]},
                    {"required": ["start", "end"]},
                ],
            },
        },
    },
}


def parse_input(data: Dict[str, Any]) -> List[RawWordTiming]:
    """Validate input JSON and convert its words to RawWordTiming objects.

    Raises:
        jsonschema.ValidationError: If data does not match INPUT_SCHEMA.
        ValueError: If a word ends before it starts.
    """
    jsonschema.validate(instance=data, schema=INPUT_SCHEMA)
    timings = []
    for w in data["words"]:
        start = w["startTime"] if "startTime" in w else w["start"]
        end = w["endTime"] if "endTime" in w else w["end"]
        timings.append(RawWordTiming(text=w["text"], start_time=float(start), end_time=float(end)))
    return timings


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse parser for the CLI."""
    parser = argparse.ArgumentParser(
        prog="transcript_segmentation",
        description="Segment word-level timings into follow-along transcript lines.",
    )
    parser.add_argument(
        "input",
        help="Path to the word-timing JSON file, or '-' to read stdin.",
    )
    parser.add_argument(
        "-o", "--output",
        default=None,
        help="Write the transcript JSON here instead of stdout.",
    )
    parser.add_argument(
        "--preset",
        default=default_preset_name(),
        help="Segmentation preset. Available: {} (default: %(default)s).".format(
            ", ".join(PRESETS.keys())
        ),
    )
    parser.add_argument(
        "--language",
        default=None,
        help="Language code of the text (e.g. en). Overrides the input's \"language\".",
    )
    parser.add_argument(
        "--pause-threshold",
        type=int,
        default=None,
        help="Minimum gap in ms treated as a pause.",
    )
    parser.add_argument(
        "--max-words",
        type=int,
        default=None,
        help="Maximum words per segment.",
    )
    parser.add_argument(
        "--preferred-words",
        type=int,
        default=None,
        help="Preferred words per segment.",
    )
    parser.add_argument(
        "--indent",
        type=int,
        default=2,
        help="JSON indentation (default: %(default)s).",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Log pipeline details to stderr.",
    )
    return parser


def _read_input(path: str) -> str:
    if path == "-":
        return sys.stdin.read()
    with open(path, "r", encoding="utf-8") as f:
        return f.read()


def main(argv: Optional[List[str]] = None) -> None:
    """Entry point for ``python -m transcript_segmentation``.

    Args:
        argv: Command-line arguments (defaults to sys.argv[1:]).
    """
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else default_log_level(),
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    try:
        config = load_config(
            args.preset,
            pause_threshold=args.pause_threshold,
            max_words_per_segment=args.max_words,
            preferred_words_per_segment=args.preferred_words,
        )
        data = json.loads(_read_input(args.input))
        timings = parse_input(data)
        transcript = convert_to_transcript(
            data["text"], timings, config=config,
            language=args.language or data.get("language"),
        )
    except (OSError, ValueError) as e:
        # json.JSONDecodeError is a ValueError
        logger.error("%s", e)
        sys.exit(1)
    except jsonschema.ValidationError as e:
        logger.error("Invalid input: %s", e.message)
        sys.exit(1)

    output = json.dumps(transcript.to_dict(), indent=args.indent, ensure_ascii=False)

    if args.output:
        with open(args.output, "w", encoding="utf-8") as f:
            f.write(output)
        logger.info(
            "Wrote %d lines (%d words) to %s",
            len(transcript.timeline), len(timings), args.output,
        )
    else:
        print(output)


if __name__ == "__main__":
    main()
