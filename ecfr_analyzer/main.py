#!/usr/bin/env python3
"""
Main script for the eCFR Analyzer.

This script exposes the pipeline on the command line: syncing titles from the
eCFR API, building reports and rankings from the stored snapshot, and
writing the derived analytics.
"""

import argparse
import sys
import logging
from pathlib import Path
from typing import List, Optional

from .config import Config
from .api_client import ECFRClient
from .error_handler import CatalogUnavailableError, PipelineBusyError, StorageFailure
from .pipeline import ECFRPipeline
from .report_generator import ReportGenerator
from .retry_handler import RetryConfig, RetryHandler
from .storage import SnapshotStorage


EXIT_SUCCESS = 0
EXIT_FAILURE = 1
EXIT_BUSY = 2
EXIT_INTERRUPTED = 130


def setup_argument_parser() -> argparse.ArgumentParser:
    """
    Set up command-line argument parser.

    Returns:
        Configured ArgumentParser instance
    """
    parser = argparse.ArgumentParser(
        prog='ecfr-analyzer',
        description="Ingest eCFR titles and analyze regulatory volume and complexity by agency",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s sync --max-titles 10
  %(prog)s report --format json csv
  %(prog)s top words --limit 5
  %(prog)s --data-dir ./data analytics
        """
    )

    # Storage and output options
    output_group = parser.add_argument_group('Storage and Output Options')
    output_group.add_argument(
        '--data-dir',
        default=Config.DATA_DIRECTORY,
        help=f'Directory for the title snapshot (default: {Config.DATA_DIRECTORY})'
    )
    output_group.add_argument(
        '--output-dir', '-o',
        default=Config.OUTPUT_DIRECTORY,
        help=f'Output directory for reports (default: {Config.OUTPUT_DIRECTORY})'
    )

    # API configuration
    api_group = parser.add_argument_group('API Configuration')
    api_group.add_argument(
        '--api-url',
        default=Config.ECFR_API_BASE_URL,
        help=f'eCFR API base URL (default: {Config.ECFR_API_BASE_URL})'
    )
    api_group.add_argument(
        '--request-delay',
        type=float,
        default=Config.REQUEST_DELAY,
        help=f'Seconds to wait after every API call (default: {Config.REQUEST_DELAY})'
    )
    api_group.add_argument(
        '--timeout',
        type=int,
        default=Config.REQUEST_TIMEOUT,
        help=f'Request timeout in seconds (default: {Config.REQUEST_TIMEOUT})'
    )
    api_group.add_argument(
        '--max-retries',
        type=int,
        default=Config.MAX_RETRY_ATTEMPTS,
        help=f'Maximum attempts per request (default: {Config.MAX_RETRY_ATTEMPTS})'
    )

    # Logging
    logging_group = parser.add_argument_group('Logging')
    logging_group.add_argument(
        '--verbose', '-v',
        action='store_true',
        help='Enable verbose logging'
    )
    logging_group.add_argument(
        '--quiet', '-q',
        action='store_true',
        help='Suppress console logging and progress output'
    )
    logging_group.add_argument(
        '--log-file',
        help=f'Log file path (default: {Config.LOG_FILE})'
    )
    logging_group.add_argument(
        '--validate-config',
        action='store_true',
        help='Validate configuration and exit'
    )

    subparsers = parser.add_subparsers(dest='command', metavar='COMMAND')

    sync_parser = subparsers.add_parser('sync', help='Fetch and enrich titles, then save the snapshot')
    sync_parser.add_argument(
        '--max-titles',
        type=int,
        default=Config.MAX_TITLES_PER_RUN,
        help=f'Non-reserved titles to enrich (default: {Config.MAX_TITLES_PER_RUN})'
    )
    sync_parser.add_argument(
        '--no-progress',
        action='store_true',
        help='Do not print enrichment progress'
    )

    report_parser = subparsers.add_parser('report', help='Build a report from the stored snapshot')
    report_parser.add_argument(
        '--format', '-f',
        nargs='+',
        choices=['csv', 'json', 'summary'],
        default=Config.DEFAULT_OUTPUT_FORMATS,
        help=f'Output formats (default: {" ".join(Config.DEFAULT_OUTPUT_FORMATS)})'
    )
    report_parser.add_argument(
        '--filename',
        help='Base filename for reports (default: auto-generated with timestamp)'
    )

    top_parser = subparsers.add_parser('top', help='Rank agencies by a metric')
    top_parser.add_argument(
        'metric',
        choices=['regulations', 'words', 'complexity'],
        help='Metric to rank by'
    )
    top_parser.add_argument(
        '--limit',
        type=int,
        default=10,
        help='Number of agencies to show (default: 10)'
    )

    subparsers.add_parser('analytics', help='Write the derived analytics JSON files')
    subparsers.add_parser('status', help='Show snapshot metadata and last run state')

    return parser


def validate_arguments(args: argparse.Namespace) -> List[str]:
    """
    Validate command-line arguments.

    Args:
        args: Parsed command-line arguments

    Returns:
        List of validation error messages (empty if valid)
    """
    errors = []

    if args.request_delay < 0:
        errors.append("Request delay cannot be negative")

    if args.timeout <= 0:
        errors.append("Timeout must be positive")

    if args.max_retries < 1:
        errors.append("Max retries must be at least 1")

    if not args.api_url.startswith(('http://', 'https://')):
        errors.append("API URL must be a valid HTTP/HTTPS URL")

    if getattr(args, 'max_titles', 1) <= 0:
        errors.append("Max titles must be positive")

    if getattr(args, 'limit', 1) <= 0:
        errors.append("Limit must be positive")

    # Validate conflicting options
    if args.verbose and args.quiet:
        errors.append("Cannot specify both --verbose and --quiet")

    if args.command is None and not args.validate_config:
        errors.append("A command is required (sync, report, top, analytics or status)")

    return errors


def setup_logging(args: argparse.Namespace) -> None:
    """
    Set up logging configuration.

    Args:
        args: Parsed command-line arguments
    """
    log_level = logging.DEBUG if args.verbose else getattr(
        logging, Config.LOG_LEVEL.upper(), logging.INFO)
    if args.quiet:
        log_level = logging.WARNING

    log_format = Config.LOG_FORMAT
    handlers = []

    # Console handler
    if not args.quiet:
        console_handler = logging.StreamHandler()
        console_handler.setLevel(log_level)
        console_handler.setFormatter(logging.Formatter(log_format))
        handlers.append(console_handler)

    # File handler
    log_file = Path(args.log_file or Config.LOG_FILE)
    log_file.parent.mkdir(parents=True, exist_ok=True)
    file_handler = logging.FileHandler(log_file)
    file_handler.setLevel(logging.DEBUG)  # Always debug level for file
    file_handler.setFormatter(logging.Formatter(log_format))
    handlers.append(file_handler)

    logging.basicConfig(
        level=logging.DEBUG,
        handlers=handlers,
        format=log_format
    )

    # Reduce noise from urllib3
    logging.getLogger('urllib3').setLevel(logging.WARNING)
    logging.getLogger('requests').setLevel(logging.WARNING)


def apply_configuration(args: argparse.Namespace) -> None:
    """Copy command-line overrides onto the shared configuration."""
    Config.DATA_DIRECTORY = args.data_dir
    Config.OUTPUT_DIRECTORY = args.output_dir
    Config.ECFR_API_BASE_URL = args.api_url
    Config.REQUEST_DELAY = args.request_delay
    Config.REQUEST_TIMEOUT = args.timeout
    Config.MAX_RETRY_ATTEMPTS = args.max_retries
    if getattr(args, 'max_titles', None):
        Config.MAX_TITLES_PER_RUN = args.max_titles


def create_pipeline(args: argparse.Namespace) -> ECFRPipeline:
    """
    Create the pipeline from the command-line configuration.

    Args:
        args: Parsed command-line arguments

    Returns:
        Configured ECFRPipeline instance
    """
    logger = logging.getLogger(__name__)

    client = ECFRClient(
        base_url=args.api_url,
        request_delay=args.request_delay,
        timeout=args.timeout,
        retry_handler=RetryHandler(RetryConfig.from_config()),
    )
    show_progress = args.command == 'sync' and not (args.quiet or args.no_progress)

    logger.info(f"Pipeline configured: {args.api_url}, data directory {args.data_dir}")
    return ECFRPipeline(
        client=client,
        storage=SnapshotStorage(args.data_dir),
        max_titles=getattr(args, 'max_titles', None),
        show_progress=show_progress,
    )


def run_sync(pipeline: ECFRPipeline, args: argparse.Namespace) -> int:
    """Run the pipeline and write the derived analytics."""
    logger = logging.getLogger(__name__)

    result = pipeline.run_pipeline()
    print(result.get_summary())

    if pipeline.last_errors and (pipeline.last_errors.has_errors() or
                                 pipeline.last_errors.has_warnings()):
        logger.warning(pipeline.last_errors.get_error_summary())

    paths = ReportGenerator(args.output_dir).generate_analytics(pipeline.build_analytics())
    print(f"Analytics written to {args.output_dir} ({len(paths)} files)")
    return EXIT_SUCCESS


def run_report(pipeline: ECFRPipeline, args: argparse.Namespace) -> int:
    """Build a report from the snapshot and write the requested formats."""
    report = pipeline.generate_report()
    print(report.get_summary())

    reports = ReportGenerator(args.output_dir).generate_all_reports(
        report, formats=args.format, base_filename=args.filename
    )
    print("Reports generated:")
    for format_name, filepath in reports.items():
        print(f"  {format_name.upper()}: {filepath}")
    return EXIT_SUCCESS


def run_top(pipeline: ECFRPipeline, args: argparse.Namespace) -> int:
    """Print the agency ranking for a metric."""
    ranking = pipeline.top_agencies_by_metric(args.metric, args.limit)
    if not ranking:
        print("No agency data available. Run 'sync' first.")
        return EXIT_SUCCESS

    print(f"Top {len(ranking)} agencies by {args.metric}:")
    for i, metrics in enumerate(ranking, 1):
        print(f"{i:2d}. {metrics.agency_name}: {metrics.total_regulations} regulations, "
              f"{metrics.total_word_count:,} words, RCI {metrics.regulatory_complexity_index:.2f}")
    return EXIT_SUCCESS


def run_analytics(pipeline: ECFRPipeline, args: argparse.Namespace) -> int:
    """Write the derived analytics artifacts."""
    paths = ReportGenerator(args.output_dir).generate_analytics(pipeline.build_analytics())
    for name, filepath in paths.items():
        print(f"  {name}: {filepath}")
    return EXIT_SUCCESS


def run_status(pipeline: ECFRPipeline, args: argparse.Namespace) -> int:
    """Print snapshot metadata and the last run state."""
    status = pipeline.get_status()
    metadata = status['metadata']
    last_run = status['last_run']

    if not status['has_data']:
        print("No snapshot stored yet")
    else:
        print(f"Titles in snapshot: {metadata.get('totalTitles', 'unknown')}")
        print(f"Last update: {metadata.get('lastUpdate', 'unknown')}")
        print(f"Snapshot version: {metadata.get('version', 'unknown')}")
    if last_run:
        print(f"Last run: {last_run.get('lastRun')} ({last_run.get('status')}, "
              f"{last_run.get('processedTitles')} titles)")
    print(f"Sync running: {'yes' if status['running'] else 'no'}")
    return EXIT_SUCCESS


COMMANDS = {
    'sync': run_sync,
    'report': run_report,
    'top': run_top,
    'analytics': run_analytics,
    'status': run_status,
}


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main entry point for the eCFR Analyzer.

    Args:
        argv: Command-line arguments (default: sys.argv)

    Returns:
        Exit code (0 for success, non-zero for failure)
    """
    parser = setup_argument_parser()
    args = parser.parse_args(argv)

    # Validate arguments
    validation_errors = validate_arguments(args)
    if validation_errors:
        print("Configuration errors:", file=sys.stderr)
        for error in validation_errors:
            print(f"  - {error}", file=sys.stderr)
        return EXIT_FAILURE

    setup_logging(args)
    logger = logging.getLogger(__name__)
    apply_configuration(args)

    # Validate configuration if requested
    if args.validate_config:
        try:
            Config.validate()
            print("Configuration is valid")
            return EXIT_SUCCESS
        except ValueError as e:
            print(f"Configuration error: {e}", file=sys.stderr)
            return EXIT_FAILURE

    logger.info(f"eCFR Analyzer starting: {args.command}")
    logger.debug(f"Arguments: {vars(args)}")

    pipeline = None
    try:
        pipeline = create_pipeline(args)
        exit_code = COMMANDS[args.command](pipeline, args)
        logger.info("eCFR Analyzer completed successfully")
        return exit_code

    except PipelineBusyError as e:
        logger.warning(str(e))
        print(f"Busy: {e}", file=sys.stderr)
        return EXIT_BUSY

    except (CatalogUnavailableError, StorageFailure) as e:
        logger.error(f"{args.command} failed: {e}")
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_FAILURE

    except KeyboardInterrupt:
        logger.info("Process interrupted by user")
        print("\nProcess interrupted by user")
        return EXIT_INTERRUPTED

    except Exception as e:
        logger.error(f"Unexpected error: {e}", exc_info=True)
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_FAILURE

    finally:
        if pipeline is not None:
            pipeline.close()


if __name__ == '__main__':
    sys.exit(main())
