"""
Command-line entry point for codefinder.

Usage:
    codefinder how is the database configured
    codefinder -d ~/src/project -n 10 -w 2 retry backoff
    codefinder --no-summary --format json TODO FIXME
"""

import os
import sys
import logging
import argparse
from typing import Optional, Sequence

from pydantic import ValidationError

from . import __version__
from .config.parser import ConfigurationError, create_config_template, load_config
from .finder import CodeFinder
from .models.config import FinderConfig, OutputFormat
from .models.search_query import SearchQuery
from .models.search_results import SearchResults
from .summarizer import SummarizationError, Summarizer
from .tools.fs_walker import DirectoryReadError
from .tools.predicate import EmptyQueryError
from .tools.searcher import ResultAccumulator


logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_CONFIG = 2
EXIT_INTERRUPTED = 130


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="codefinder",
        description="Search a source tree for query tokens and summarize the matching snippets.",
    )
    p.add_argument("query", nargs="*", help="Search words; a line matches if it contains any of them.")
    p.add_argument("-d", "--dir", default=None, help="Directory to search (default: current directory).")
    p.add_argument("-n", "--max", type=int, default=None, help="Maximum number of matches.")
    p.add_argument("-w", "--window", type=int, default=None, help="Context lines before and after each match.")
    p.add_argument("-c", "--config", default=None, help="Path to a YAML configuration file.")
    p.add_argument("--no-summary", action="store_true", help="Print raw matches without summarizing.")
    p.add_argument(
        "--format",
        choices=[fmt.value for fmt in OutputFormat],
        default=None,
        help="Output format for raw matches.",
    )
    p.add_argument("--init-config", metavar="PATH", default=None, help="Write a configuration template and exit.")
    p.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging.")
    p.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return p


def configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def print_raw_results(results: SearchResults, output_format: OutputFormat) -> None:
    if output_format == OutputFormat.JSON:
        print(results.to_json())
    else:
        print(results.format_text())


def summarize_or_fallback(results: SearchResults, config: FinderConfig) -> None:
    """Print the summary; on any summarizer failure print the raw matches instead."""
    summarizer = Summarizer(config.summarizer, config.security)
    try:
        summary = summarizer.summarize(results)
    except SummarizationError as e:
        print(f"Error calling summarizer: {e}", file=sys.stderr)
        print("Snippets:")
        print_raw_results(results, OutputFormat.TEXT)
        return
    print(summary)


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(args.verbose)

    if args.init_config:
        try:
            create_config_template(args.init_config)
        except ConfigurationError as e:
            print(str(e), file=sys.stderr)
            return EXIT_CONFIG
        print(f"Configuration template written to {args.init_config}")
        return EXIT_OK

    text = " ".join(args.query).strip()
    if not text:
        print("Please provide a search query.", file=sys.stderr)
        return EXIT_FAILURE

    try:
        parse_result = load_config(args.config)
    except ConfigurationError as e:
        print(str(e), file=sys.stderr)
        return EXIT_CONFIG

    config = parse_result.config
    for warning in parse_result.warnings:
        logger.info(f"Configuration warning: {warning}")

    output_format = OutputFormat(args.format) if args.format else config.output.format

    try:
        query = SearchQuery(
            text=text,
            root=args.dir or os.getcwd(),
            max_results=args.max if args.max is not None else config.limits.max_results,
            window_lines=args.window if args.window is not None else config.limits.window_lines,
        )
    except ValidationError as e:
        print(f"Invalid arguments: {e}", file=sys.stderr)
        return EXIT_CONFIG

    accumulator = ResultAccumulator(query.max_results)
    try:
        results = CodeFinder(config).run(query, accumulator=accumulator)
    except EmptyQueryError:
        print("Please provide a search query.", file=sys.stderr)
        return EXIT_FAILURE
    except DirectoryReadError as e:
        print(str(e), file=sys.stderr)
        return EXIT_FAILURE
    except KeyboardInterrupt:
        results = SearchResults(
            query=query,
            matches=list(accumulator.matches),
            files_scanned=accumulator.files_scanned,
            cancelled=True,
        )
        print("Search interrupted; showing partial results.", file=sys.stderr)
        if not results.is_empty():
            print_raw_results(results, output_format)
        return EXIT_INTERRUPTED

    for error in results.errors:
        print(f"Warning: {error}", file=sys.stderr)

    if results.is_empty():
        print("No matches found.")
        return EXIT_OK

    if output_format == OutputFormat.JSON or args.no_summary or not config.summarizer.enabled:
        print_raw_results(results, output_format)
        return EXIT_OK

    summarize_or_fallback(results, config)
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
