"""
Append-only HDF5 tables for dataset rows.

Each split is a 2-D float32 dataset of shape (rows, row_len) that starts
empty, is chunked in blocks of chunk_height rows and gzip-compressed, and
grows by appending contiguous blocks of rows at its end.
"""

import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Iterator

import h5py
import numpy as np

from go_ai.config import (
    CHUNK_HEIGHT, DEFLATE_LEVEL, H5_DIMENSION, H5_DTYPE, INPUT_LEN, MAX_BOARD_SIZE, NUM_FEATURES,
    TARGET_LEN, TARGET_WEIGHTS_LEN, TOTAL_ROW_LEN
)

logger = logging.getLogger(__name__)


class ChunkedTableWriter:
    """
    A growable, chunked, compressed 2-D table inside an open HDF5 file.

    Instances are callable so they can be passed directly as pool sinks.
    """

    def __init__(self, h5_file: h5py.File, name: str, row_len: int = TOTAL_ROW_LEN,
                 chunk_height: int = CHUNK_HEIGHT, deflate_level: int = DEFLATE_LEVEL):
        self.name = name
        self.row_len = row_len
        self.dataset = h5_file.create_dataset(
            name,
            shape=(0, row_len),
            maxshape=(None, row_len),
            chunks=(chunk_height, row_len),
            compression="gzip",
            compression_opts=deflate_level,
            dtype=H5_DTYPE,
        )
        self.rows_written = 0

    def append(self, rows: np.ndarray) -> None:
        """
        Extend the table and write rows at its end.

        Args:
            rows: Array of shape (k, row_len)
        """
        if rows.ndim != H5_DIMENSION or rows.shape[1] != self.row_len:
            raise ValueError(f"Expected rows of shape (k, {self.row_len}), got {rows.shape}")
        num_rows = rows.shape[0]
        if num_rows == 0:
            return
        start = self.rows_written
        self.dataset.resize(start + num_rows, axis=0)
        self.dataset[start:start + num_rows] = rows
        self.rows_written += num_rows

    __call__ = append

    def __repr__(self) -> str:
        return f"ChunkedTableWriter(name='{self.name}', rows_written={self.rows_written})"


def layout_attributes() -> Dict[str, int]:
    """Row layout constants stamped on every output file."""
    return {
        'max_board_size': MAX_BOARD_SIZE,
        'num_features': NUM_FEATURES,
        'input_len': INPUT_LEN,
        'target_len': TARGET_LEN,
        'target_weights_len': TARGET_WEIGHTS_LEN,
        'total_row_len': TOTAL_ROW_LEN,
    }


@contextmanager
def open_output_file(output_file) -> Iterator[h5py.File]:
    """
    Create (or truncate) an HDF5 output file and stamp the row layout on it.

    Args:
        output_file: Path of the .h5 file to write
    """
    output_file = Path(output_file)
    logger.info(f"Opening h5 file {output_file}...")
    with h5py.File(output_file, "w") as h5_file:
        for key, value in layout_attributes().items():
            h5_file.attrs[key] = value
        yield h5_file


def write_run_summary(h5_file: h5py.File, summary: Dict[str, Any]) -> None:
    """Record end-of-run statistics as file attributes (numbers and strings only)."""
    for key, value in summary.items():
        if isinstance(value, (int, float, str, np.integer, np.floating)):
            h5_file.attrs[f"summary_{key}"] = value
