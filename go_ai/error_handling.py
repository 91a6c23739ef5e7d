"""
Error handling utilities for Go AI.

This module defines the exception types used across the data pipeline and
an error tracker that records which files and games were skipped.
"""

import logging
from pathlib import Path
from typing import Dict, List, Optional

logger = logging.getLogger(__name__)


class SgfFormatError(ValueError):
    """Raised when a game record cannot be parsed. The whole file is skipped."""
    pass


class PoolInvariantError(RuntimeError):
    """
    Raised when the shuffle pool is used incorrectly.

    This always indicates a programming defect, never a data condition, and is
    not caught anywhere in the pipeline.
    """
    pass


class GameErrorTracker:
    """Tracks skipped files and aborted games during a processing run."""

    def __init__(self):
        self.skipped_files: List[Dict[str, str]] = []
        self.aborted_games: List[Dict[str, object]] = []

    def record_skipped_file(self, file_name: str, error_msg: str):
        """
        Record a file that could not be parsed.

        Args:
            file_name: Path of the game record
            error_msg: Why it was skipped
        """
        self.skipped_files.append({'file_name': file_name, 'error_msg': error_msg})
        logger.warning(f"Skipping sgf file: {file_name}: {error_msg}")

    def record_aborted_game(self, file_name: str, move_idx: int, error_msg: str,
                            board_dump: Optional[str] = None):
        """
        Record a game whose replay stopped on a rule violation.

        Rows emitted before the violation are kept, so this is informational.

        Args:
            file_name: Path of the game record
            move_idx: Index of the offending placement or move
            error_msg: Description of the violation
            board_dump: Board state at the time of the violation
        """
        self.aborted_games.append({
            'file_name': file_name,
            'move_idx': move_idx,
            'error_msg': error_msg,
        })
        logger.warning(f"{file_name}: {error_msg} {move_idx}")
        if board_dump is not None:
            logger.warning(f"\n{board_dump}")

    def get_stats(self) -> Dict[str, int]:
        """Get current error statistics."""
        return {
            'skipped_files': len(self.skipped_files),
            'aborted_games': len(self.aborted_games),
        }

    def write_error_log(self, log_path: Path):
        """Write a summary of every recorded error to log_path."""
        log_path = Path(log_path)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        with open(log_path, "w") as f:
            f.write("Game Record Error Summary\n")
            f.write("=" * 50 + "\n\n")
            f.write(f"Skipped files: {len(self.skipped_files)}\n")
            f.write(f"Aborted games: {len(self.aborted_games)}\n\n")

            f.write("Skipped Files:\n")
            f.write("-" * 30 + "\n")
            for detail in self.skipped_files:
                f.write(f"{detail['file_name']}: {detail['error_msg']}\n")

            f.write("\nAborted Games:\n")
            f.write("-" * 30 + "\n")
            for detail in self.aborted_games:
                f.write(f"{detail['file_name']} (move {detail['move_idx']}): {detail['error_msg']}\n")

        logger.info(f"Error summary written to {log_path}")
