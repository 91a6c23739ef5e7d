"""
Processing orchestrator for SGF files.

SGFProcessor runs the whole pipeline on one control flow: collect game
records, shuffle their order, replay each game into the shuffle pool, and
write the train and test tables of a single HDF5 file.
"""

import logging
from pathlib import Path
from typing import Any, Dict, List

from go_ai.config import (
    INPUT_LEN, MAX_BOARD_SIZE, NUM_FEATURES, SGF_EXTENSION, TARGET_LEN, TARGET_WEIGHTS_LEN,
    TEST_SET_NAME, TOTAL_ROW_LEN, TRAIN_SET_NAME
)
from go_ai.data_pool import ShuffleSplitPool
from go_ai.error_handling import GameErrorTracker, SgfFormatError
from go_ai.features import GameReplayEncoder
from go_ai.file_utils import collect_files
from go_ai.h5_writer import ChunkedTableWriter, open_output_file, write_run_summary
from go_ai.sgf_parser import load_sgf_file
from go_ai.system_utils import check_pool_fits_in_memory, get_memory_info, get_process_memory_mb
from go_ai.utils.random_utils import RandomSource

from .config import ProcessingConfig

logger = logging.getLogger(__name__)


class SGFProcessor:
    """
    Main orchestrator for SGF file processing.

    This class coordinates the discovery of SGF files, the replay of each game
    into a ShuffleSplitPool and the HDF5 output.
    """

    def __init__(self, config: ProcessingConfig):
        """
        Initialize the processor with configuration.

        Args:
            config: Processing configuration (validated here)
        """
        self.config = config
        self.config.validate()
        self.rand = RandomSource(config.seed)
        self.error_tracker = GameErrorTracker()

    def _log_layout(self):
        logger.info(f"maxBoardSize {MAX_BOARD_SIZE}")
        logger.info(f"numFeatures {NUM_FEATURES}")
        logger.info(f"inputLen {INPUT_LEN}")
        logger.info(f"targetLen {TARGET_LEN}")
        logger.info(f"targetWeightsLen {TARGET_WEIGHTS_LEN}")
        logger.info(f"totalRowLen {TOTAL_ROW_LEN}")
        logger.info(f"chunkHeight {self.config.chunk_height}")
        logger.info(f"deflateLevel {self.config.deflate_level}")
        logger.info(f"seed {self.rand.seed}")

    def _find_sgf_files(self) -> List[Path]:
        """Find all .sgf files in the games directories, in a shuffled order."""
        files = collect_files(self.config.games_dirs, SGF_EXTENSION, self.config.max_files)
        logger.info(f"Found {len(files)} sgf files!")
        logger.info("Shuffling sgfs...")
        self.rand.shuffle_list(files)
        return files

    def run(self) -> Dict[str, Any]:
        """
        Process every SGF file and write the output file.

        Returns:
            Summary statistics of the run
        """
        self._log_layout()
        sgf_files = self._find_sgf_files()
        if not sgf_files:
            logger.warning(f"No {SGF_EXTENSION} files found in {[str(d) for d in self.config.games_dirs]}")

        check_pool_fits_in_memory(self.config.train_pool_size, self.config.test_size)

        with open_output_file(self.config.output_file) as h5_file:
            train_writer = ChunkedTableWriter(
                h5_file, TRAIN_SET_NAME, TOTAL_ROW_LEN,
                self.config.chunk_height, self.config.deflate_level
            )
            pool = ShuffleSplitPool(
                TOTAL_ROW_LEN, self.config.train_pool_size, self.config.test_size,
                self.config.chunk_height, train_writer
            )
            encoder = GameReplayEncoder(pool, self.rand, error_tracker=self.error_tracker)

            logger.info("Processing sgfs...")
            num_rows_processed = 0
            for i, file_path in enumerate(sgf_files):
                if i > 0 and i % self.config.log_interval == 0:
                    logger.info(f"Processed {i} sgfs, {num_rows_processed} rows, "
                                f"{train_writer.rows_written} rows written... "
                                f"(rss {get_process_memory_mb():.0f}MB)")
                num_rows_processed += self._process_file(file_path, encoder)

            logger.info("Emptying training pool")
            pool.finish_and_write_train_pool(self.rand)

            test_writer = ChunkedTableWriter(
                h5_file, TEST_SET_NAME, TOTAL_ROW_LEN,
                self.config.chunk_height, self.config.deflate_level
            )
            logger.info("Writing testing set")
            pool.write_test_pool(test_writer, self.rand)

            summary = self._build_summary(sgf_files, num_rows_processed, encoder, pool,
                                          train_writer, test_writer)
            write_run_summary(h5_file, summary)

        self._log_summary(summary)
        return summary

    def _process_file(self, file_path: Path, encoder: GameReplayEncoder) -> int:
        """Parse and replay one file. Unparsable files contribute no rows."""
        try:
            game = load_sgf_file(file_path)
        except (SgfFormatError, OSError) as e:
            self.error_tracker.record_skipped_file(str(file_path), str(e))
            return 0
        return encoder.process_game(game)

    def _build_summary(self, sgf_files, num_rows_processed, encoder, pool,
                       train_writer, test_writer) -> Dict[str, Any]:
        if train_writer.rows_written + test_writer.rows_written != num_rows_processed:
            raise RuntimeError(
                f"Row accounting mismatch: {train_writer.rows_written} train + "
                f"{test_writer.rows_written} test != {num_rows_processed} rows produced"
            )
        summary = {
            'files_found': len(sgf_files),
            'rows': num_rows_processed,
            'train_rows': train_writer.rows_written,
            'test_rows': test_writer.rows_written,
            'unique_pos_hashes': len(encoder.position_hashes),
            'seed': self.rand.seed,
        }
        summary.update(encoder.stats.to_dict())
        summary.update(self.error_tracker.get_stats())
        summary['train_generations'] = pool.stats.train_generations
        return summary

    def _log_summary(self, summary: Dict[str, Any]):
        """Log a summary of the run."""
        logger.info("Done")
        logger.info("")
        logger.info("PROCESSING SUMMARY:")
        logger.info(f"  Files found: {summary['files_found']}")
        logger.info(f"  Skipped files: {summary['skipped_files']}")
        logger.info(f"  Games processed: {summary['games_processed']}")
        logger.info(f"  Games filtered (board size): {summary['games_filtered']}")
        logger.info(f"  Games aborted (illegal moves): {summary['games_aborted']}")
        logger.info(f"  Train rows: {summary['train_rows']}")
        logger.info(f"  Test rows: {summary['test_rows']}")
        logger.info(f"{summary['rows']} rows")
        logger.info(f"{summary['unique_pos_hashes']} unique pos hashes")

        memory = get_memory_info()
        logger.info(f"Memory: {memory['process_rss_mb']:.0f}MB rss, "
                    f"{memory['memory_available_gb']:.2f}GB of {memory['memory_total_gb']:.2f}GB available "
                    f"({memory['memory_percent_used']:.0f}% used)")

        if summary['skipped_files'] > 0:
            logger.warning(f"  {summary['skipped_files']} files could not be parsed")
