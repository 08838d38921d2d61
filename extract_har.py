#!/usr/bin/env python3
"""
HAR API Request Extractor

Extracts JSON and GraphQL requests from a HAR file and formats them for LLM analysis.

Usage:
    python extract_har.py session.har
    python extract_har.py session.har --compact
    cat session.har | python extract_har.py --markdown --output-file report.md
"""

import argparse
import logging
import sys
from pathlib import Path
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

from har_api.config import ExtractorConfig
from har_api.filters import filter_json_entries, filter_stats
from har_api.formatter import format_entries
from har_api.models import OutputMode
from har_api.parser import load_har_file, read_har_from_stdin


# ============================================================================
# LOGGING SETUP
# ============================================================================

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

NO_REQUESTS_MESSAGE = "No JSON or GraphQL requests found in the HAR file."


# ============================================================================
# UTILITY FUNCTIONS
# ============================================================================

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='har-extract',
        description='Extract and format JSON/GraphQL requests from HAR files for LLM analysis',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python extract_har.py session.har
  python extract_har.py session.har --compact
  cat session.har | python extract_har.py --markdown
        """
    )
    parser.add_argument(
        'file',
        nargs='?',
        default=None,
        help='Path to HAR file (omit to read from stdin)'
    )
    mode = parser.add_mutually_exclusive_group()
    mode.add_argument(
        '-c', '--compact',
        action='store_true',
        help='Output in compact format'
    )
    mode.add_argument(
        '-m', '--markdown',
        action='store_true',
        help='Output as a Markdown report'
    )
    parser.add_argument(
        '-a', '--all',
        action='store_true',
        help='Include all requests, not just JSON/GraphQL'
    )
    parser.add_argument(
        '--response-limit',
        type=int,
        default=None,
        help=f'Max characters per response body '
             f'(default: ${ExtractorConfig.RESPONSE_LIMIT_ENV_VAR} or {ExtractorConfig.RESPONSE_PREVIEW_CHARS})'
    )
    parser.add_argument(
        '-o', '--output-file',
        type=str,
        default=None,
        help='Write the report to this file instead of stdout'
    )
    parser.add_argument(
        '-v', '--verbose',
        action='store_true',
        help='Enable debug logging'
    )
    return parser


def select_mode(args: argparse.Namespace) -> OutputMode:
    if args.compact:
        return OutputMode.COMPACT
    if args.markdown:
        return OutputMode.MARKDOWN
    return OutputMode.TAGGED


def build_report(entries, mode: OutputMode, include_all: bool, response_limit: int) -> str:
    """
    Filter entries and render the report text.

    Args:
        entries: HAR entries from the loaded file
        mode: Report layout
        include_all: Skip JSON/GraphQL filtering
        response_limit: Max characters per response body

    Returns:
        Report text, or the "no requests" message
    """
    if include_all:
        selected = list(entries)
    else:
        selected = filter_json_entries(entries)
        stats = filter_stats(entries, selected)
        logger.info(
            f"Kept {stats['filtered_count']}/{stats['original_count']} entries "
            f"({stats['graphql']} GraphQL, {stats['removed']} removed)"
        )

    if not selected:
        return NO_REQUESTS_MESSAGE

    return format_entries(selected, mode=mode, response_limit=response_limit)


# ============================================================================
# MAIN PIPELINE
# ============================================================================

def main(argv=None):
    """Main entry point"""
    args = build_parser().parse_args(argv)

    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    response_limit = args.response_limit
    if response_limit is None:
        response_limit = ExtractorConfig.response_limit()
    if response_limit <= 0:
        logger.error(f"--response-limit must be positive, got {response_limit}")
        return 1

    try:
        if args.file:
            logger.info(f"Loading HAR file: {args.file}")
            har = load_har_file(Path(args.file))
        else:
            logger.info("Reading HAR from stdin...")
            har = read_har_from_stdin()

        entries = har.log.entries
        logger.info(f"Original HAR entries: {len(entries)}")

        report = build_report(entries, select_mode(args), args.all, response_limit)

        if args.output_file:
            output_path = Path(args.output_file)
            with open(output_path, 'w', encoding='utf-8') as f:
                f.write(report + '\n')
            logger.info(f"Report saved to: {output_path}")
        else:
            print(report)

        return 0

    except (FileNotFoundError, ValueError) as e:
        logger.error(f"Error: {e}")
        return 1
    except KeyboardInterrupt:
        logger.warning("\nExtraction interrupted by user")
        return 130


if __name__ == "__main__":
    sys.exit(main())
