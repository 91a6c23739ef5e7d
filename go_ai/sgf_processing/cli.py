"""
Command-line interface for SGF processing.

This module provides the CLI functionality for writing SGF game records to
an HDF5 training dataset, separating the command-line logic from the core
processing logic.
"""

import sys
import logging
import argparse
from pathlib import Path
from typing import List, Optional

from go_ai.config import CHUNK_HEIGHT, DEFLATE_LEVEL, LOG_INTERVAL

from .config import ProcessingConfig
from .processor import SGFProcessor

logger = logging.getLogger(__name__)


def setup_logging(log_file: Optional[str] = None, verbose: bool = False):
    """Configure logging for the CLI."""
    handlers = [logging.StreamHandler()]
    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file))
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format='%(asctime)s - %(levelname)s - %(message)s',
        handlers=handlers,
        force=True
    )


def parse_arguments(argv: Optional[List[str]] = None):
    """Parse command-line arguments. argparse exits with status 2 on malformed input."""
    parser = argparse.ArgumentParser(description="Sgf->HDF5 data writer")
    parser.add_argument("-gamesdir", "--gamesdir", dest="gamesdir", action="append", required=True,
                        metavar="DIR", help="Directory of sgf files (repeatable)")
    parser.add_argument("-output", "--output", dest="output", required=True, metavar="FILE",
                        help="H5 file to write")
    parser.add_argument("-train-pool-size", "--train-pool-size", dest="train_pool_size", type=int,
                        required=True, metavar="SIZE", help="Pool size for shuffling training rows")
    parser.add_argument("-test-size", "--test-size", dest="test_size", type=int, required=True,
                        metavar="SIZE", help="Number of testing rows")
    parser.add_argument("--seed", type=int, help="Random seed (default: random, logged for reproduction)")
    parser.add_argument("--chunk-height", type=int, default=CHUNK_HEIGHT,
                        help=f"HDF5 chunk height and rows per write (default: {CHUNK_HEIGHT})")
    parser.add_argument("--deflate-level", type=int, default=DEFLATE_LEVEL,
                        help=f"gzip compression level 0-9 (default: {DEFLATE_LEVEL})")
    parser.add_argument("--log-interval", type=int, default=LOG_INTERVAL,
                        help=f"Log progress every N sgf files (default: {LOG_INTERVAL})")
    parser.add_argument("--max-files", type=int, help="Maximum number of files to process (for testing)")
    parser.add_argument("--log-file", help="Also write logs to this file")
    parser.add_argument("--error-log", help="Write a summary of skipped files and aborted games here")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")

    return parser.parse_args(argv)


def create_config_from_args(args) -> ProcessingConfig:
    """Create ProcessingConfig from parsed arguments."""
    return ProcessingConfig(
        games_dirs=args.gamesdir,
        output_file=args.output,
        train_pool_size=args.train_pool_size,
        test_size=args.test_size,
        chunk_height=args.chunk_height,
        deflate_level=args.deflate_level,
        seed=args.seed,
        log_interval=args.log_interval,
        max_files=args.max_files
    )


def main(argv: Optional[List[str]] = None):
    """Main CLI entry point."""
    args = parse_arguments(argv)
    command = sys.argv if argv is None else [sys.argv[0]] + list(argv)
    config = create_config_from_args(args)

    setup_logging(verbose=args.verbose)
    try:
        processor = SGFProcessor(config)
    except ValueError as e:
        logger.info(f"Command: {' '.join(command)}")
        logger.error(f"Error: {e}")
        sys.exit(1)

    # The log file is only created once the configuration is known to be valid
    if args.log_file:
        setup_logging(args.log_file, args.verbose)
    logger.info(f"Command: {' '.join(command)}")
    logger.info(f"Configuration: {config}")

    try:
        processor.run()
    except KeyboardInterrupt:
        logger.info("Processing interrupted by user")
        sys.exit(1)
    finally:
        if args.error_log:
            processor.error_tracker.write_error_log(Path(args.error_log))

    logger.info("Processing completed successfully")


if __name__ == "__main__":
    main()
