"""
Bounded-memory shuffle and train/test split for a stream of dataset rows.

ShuffleSplitPool consumes rows one at a time without knowing how many will
arrive. It keeps:

- a test reservoir of test_size rows, which is at every point a uniform
  sample without replacement of all rows seen so far (reservoir sampling,
  Algorithm R). Rows evicted from the reservoir are not dropped, they go to
  the train side as if they had just arrived.
- a train buffer of train_pool_size rows. When it fills up it is shuffled in
  place and flushed to the train sink in groups of at most chunk_height rows,
  then reused.

Only rows within one fill of the train buffer are shuffled together. Groups
from successive fills reach the sink in the order the fills completed, so
train_pool_size is the dial between shuffle quality and memory use. Resident
memory is (train_pool_size + test_size) * row_len * 4 bytes regardless of
stream length.

Routing is decided before a row's content is known. add_row() hands out a
zeroed view of the chosen storage slot for the caller to fill in place and
commits when the caller is done:

    with pool.add_row(rand) as row:
        fill_row(board, moves, idx, row, rand)
"""

import logging
from contextlib import contextmanager
from dataclasses import dataclass, asdict
from typing import Callable, Dict, Iterator

import numpy as np

from go_ai.error_handling import PoolInvariantError
from go_ai.utils.random_utils import RandomSource

logger = logging.getLogger(__name__)

# Receives a (k, row_len) float32 view, 1 <= k <= chunk_height. The view is
# reused after the call returns, so sinks must persist or copy it.
RowSink = Callable[[np.ndarray], None]


@dataclass
class PoolStats:
    rows_added: int = 0
    rows_to_test: int = 0
    rows_to_train: int = 0  # includes rows evicted from the test reservoir
    test_evictions: int = 0
    train_rows_written: int = 0
    test_rows_written: int = 0
    train_generations: int = 0

    def to_dict(self) -> Dict[str, int]:
        return asdict(self)


class ShuffleSplitPool:
    """Streaming reservoir sampler for the test split plus a refill-and-flush shuffler for train."""

    def __init__(self, row_len: int, train_pool_size: int, test_size: int,
                 chunk_height: int, train_sink: RowSink):
        """
        Args:
            row_len: Length of every row
            train_pool_size: Capacity of the train shuffle buffer
            test_size: Capacity of the test reservoir (may be 0)
            chunk_height: Maximum rows per sink call
            train_sink: Called with each group of shuffled train rows
        """
        if row_len < 1:
            raise ValueError(f"row_len must be at least 1, got {row_len}")
        if train_pool_size < 1:
            raise ValueError(f"train_pool_size must be at least 1, got {train_pool_size}")
        if test_size < 0:
            raise ValueError(f"test_size must be non-negative, got {test_size}")
        if chunk_height < 1:
            raise ValueError(f"chunk_height must be at least 1, got {chunk_height}")

        self.row_len = row_len
        self.train_pool_size = train_pool_size
        self.test_size = test_size
        self.chunk_height = chunk_height
        self.train_sink = train_sink

        self.train_pool = np.zeros((train_pool_size, row_len), dtype=np.float32)
        self.test_pool = np.zeros((test_size, row_len), dtype=np.float32)
        self.train_cursor = 0
        self.seen = 0

        self.train_closed = False
        self.test_written = False
        self.stats = PoolStats()

    @property
    def memory_bytes(self) -> int:
        return self.train_pool.nbytes + self.test_pool.nbytes

    @property
    def train_pending(self) -> int:
        """Rows in the train buffer waiting for the next flush."""
        return self.train_cursor

    @property
    def num_test_rows(self) -> int:
        return min(self.test_size, self.seen)

    @contextmanager
    def add_row(self, rand: RandomSource) -> Iterator[np.ndarray]:
        """
        Reserve a slot for the next row and yield a zeroed, writable view of it.

        The row is committed when the with-block exits normally; the view is
        read-only afterwards. If the block raises, nothing is committed.

        Raises:
            PoolInvariantError: If the train side has already been closed
        """
        if self.train_closed:
            raise PoolInvariantError("Cannot add rows after the train pool has been closed")

        to_train = False
        evicted_slot = None
        if self.seen < self.test_size:
            row = self.test_pool[self._check_slot(self.seen, self.test_size, "test")]
        else:
            # With no test split every row goes to train without a draw
            if self.test_size > 0:
                r = rand.next_uint(self.seen + 1)
                if r < self.test_size:
                    evicted_slot = self._check_slot(r, self.test_size, "test")
            if evicted_slot is None:
                to_train = True
                row = self.train_pool[self._check_slot(self.train_cursor, self.train_pool_size, "train")]
            else:
                self._evict_to_train(evicted_slot)
                row = self.test_pool[evicted_slot]

        row[:] = 0.0
        try:
            yield row
        except Exception:
            if evicted_slot is not None:
                self.test_pool[evicted_slot] = self.train_pool[self.train_cursor]
            raise
        row.flags.writeable = False

        if evicted_slot is not None:
            self.stats.test_evictions += 1
            self._commit_train(rand)
        self.seen += 1
        self.stats.rows_added += 1
        if to_train:
            self._commit_train(rand)
        else:
            self.stats.rows_to_test += 1

    def _check_slot(self, idx: int, capacity: int, which: str) -> int:
        if not (0 <= idx < capacity):
            raise PoolInvariantError(f"{which} slot {idx} out of range for capacity {capacity}")
        return idx

    def _evict_to_train(self, test_slot: int):
        """
        Copy the current occupant of a reservoir slot into the next train slot.

        The copy is committed together with the row that displaces it, and
        copied back if that row is never committed.
        """
        train_slot = self._check_slot(self.train_cursor, self.train_pool_size, "train")
        self.train_pool[train_slot] = self.test_pool[test_slot]

    def _commit_train(self, rand: RandomSource):
        self.train_cursor += 1
        self.stats.rows_to_train += 1
        if self.train_cursor == self.train_pool_size:
            self._flush_train(rand)

    def _flush_train(self, rand: RandomSource):
        num_rows = self.train_cursor
        rand.shuffle_rows(self.train_pool, num_rows)
        self.stats.train_rows_written += self._write_groups(self.train_pool, num_rows, self.train_sink)
        self.stats.train_generations += 1
        self.train_cursor = 0
        logger.debug(f"Flushed train generation {self.stats.train_generations} ({num_rows} rows)")

    def _write_groups(self, pool: np.ndarray, num_rows: int, sink: RowSink) -> int:
        """Hand pool[:num_rows] to sink in consecutive groups of at most chunk_height rows."""
        for start in range(0, num_rows, self.chunk_height):
            end = min(start + self.chunk_height, num_rows)
            sink(pool[start:end])
        return num_rows

    def finish_and_write_train_pool(self, rand: RandomSource):
        """
        Shuffle and flush whatever is left in the train buffer, then close the train side.

        Raises:
            PoolInvariantError: If called twice
        """
        if self.train_closed:
            raise PoolInvariantError("Train pool has already been closed")
        if self.train_cursor > 0:
            self._flush_train(rand)
        self.train_closed = True
        logger.info(f"Train pool closed: {self.stats.train_rows_written} rows written "
                    f"in {self.stats.train_generations} generations")

    def write_test_pool(self, test_sink: RowSink, rand: RandomSource):
        """
        Shuffle the occupied reservoir slots and flush them to test_sink.

        Raises:
            PoolInvariantError: If the train side is still open or the test
                pool was already written
        """
        if not self.train_closed:
            raise PoolInvariantError("Test pool can only be written after the train pool is closed")
        if self.test_written:
            raise PoolInvariantError("Test pool has already been written")
        num_rows = self.num_test_rows
        rand.shuffle_rows(self.test_pool, num_rows)
        self.stats.test_rows_written += self._write_groups(self.test_pool, num_rows, test_sink)
        self.test_written = True
        logger.info(f"Test pool written: {num_rows} rows")

    def peek_test_pool(self) -> np.ndarray:
        """Copy of the rows currently held in the test reservoir."""
        return self.test_pool[:self.num_test_rows].copy()
