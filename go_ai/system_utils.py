"""
System utilities for sizing the shuffle pool.

This module helps determine:
- How much memory the shuffle pool will hold
- Current process memory use (for progress logs)
- Whether the configured pool fits in available memory
"""

import logging
from typing import Dict

import numpy as np
import psutil

from go_ai.config import MAX_POOL_MEMORY_FRACTION, TOTAL_ROW_LEN

logger = logging.getLogger(__name__)

FLOAT32_BYTES = np.dtype(np.float32).itemsize


def estimate_pool_memory_bytes(train_pool_size: int, test_size: int, row_len: int = TOTAL_ROW_LEN) -> int:
    """Resident size of the train buffer plus the test reservoir."""
    return (train_pool_size + test_size) * row_len * FLOAT32_BYTES


def get_process_memory_mb() -> float:
    """Resident set size of this process in MB."""
    return psutil.Process().memory_info().rss / (1024**2)


def get_memory_info() -> Dict[str, float]:
    memory = psutil.virtual_memory()
    return {
        'memory_total_gb': memory.total / (1024**3),
        'memory_available_gb': memory.available / (1024**3),
        'memory_percent_used': memory.percent,
        'process_rss_mb': get_process_memory_mb(),
    }


def check_pool_fits_in_memory(train_pool_size: int, test_size: int,
                              row_len: int = TOTAL_ROW_LEN) -> bool:
    """
    Warn if the pool would take more than MAX_POOL_MEMORY_FRACTION of available memory.

    Returns:
        True if the pool fits comfortably
    """
    needed = estimate_pool_memory_bytes(train_pool_size, test_size, row_len)
    available = psutil.virtual_memory().available
    needed_gb = needed / (1024**3)
    logger.info(f"Shuffle pool needs {needed_gb:.2f}GB "
                f"({train_pool_size} train + {test_size} test rows of {row_len} floats)")
    if needed > available * MAX_POOL_MEMORY_FRACTION:
        logger.warning(f"Shuffle pool ({needed_gb:.2f}GB) exceeds {MAX_POOL_MEMORY_FRACTION:.0%} "
                       f"of available memory ({available / (1024**3):.2f}GB)")
        return False
    return True
