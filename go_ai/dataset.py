"""
Dataset and data loading utilities for training on written HDF5 tables.

This module provides a PyTorch Dataset that reads rows back from one split
of an output file and unpacks them into feature planes, target and weight.
"""

import logging
from pathlib import Path
from typing import Dict, Optional, Tuple

import h5py
import numpy as np
import torch
from torch.utils.data import DataLoader, Dataset

from .config import (
    INPUT_LEN, MAX_BOARD_SIZE, NUM_FEATURES, TARGET_LEN, TARGET_OFFSET, TEST_SET_NAME,
    TOTAL_ROW_LEN, TRAIN_SET_NAME, WEIGHT_OFFSET
)

logger = logging.getLogger(__name__)


def row_to_example(row: np.ndarray) -> Tuple[torch.Tensor, int, float]:
    """
    Unpack one row.

    Returns:
        planes: float tensor of shape (NUM_FEATURES, MAX_BOARD_SIZE, MAX_BOARD_SIZE)
        target: index of the played point on the MAX_BOARD_SIZE grid
        weight: row weight
    """
    if row.shape != (TOTAL_ROW_LEN,):
        raise ValueError(f"Expected row of length {TOTAL_ROW_LEN}, got shape {row.shape}")
    # Input region is channels last: (y, x, feature)
    planes = row[:INPUT_LEN].reshape(MAX_BOARD_SIZE, MAX_BOARD_SIZE, NUM_FEATURES).transpose(2, 0, 1)
    target = int(np.argmax(row[TARGET_OFFSET:TARGET_OFFSET + TARGET_LEN]))
    weight = float(row[WEIGHT_OFFSET])
    return torch.from_numpy(np.ascontiguousarray(planes, dtype=np.float32)), target, weight


class H5MoveDataset(Dataset):
    """Random-access dataset over the train or test table of an output file."""

    def __init__(self, path, split: str = TRAIN_SET_NAME):
        if split not in (TRAIN_SET_NAME, TEST_SET_NAME):
            raise ValueError(f"Invalid split: {split}")
        self.path = Path(path)
        self.split = split
        with h5py.File(self.path, "r") as h5_file:
            if split not in h5_file:
                raise ValueError(f"{self.path} has no '{split}' table")
            shape = h5_file[split].shape
        if shape[1] != TOTAL_ROW_LEN:
            raise ValueError(f"{self.path}:{split} has rows of length {shape[1]}, expected {TOTAL_ROW_LEN}")
        self.num_rows = shape[0]
        # Opened lazily so each DataLoader worker gets its own handle
        self._h5_file: Optional[h5py.File] = None

    def __len__(self) -> int:
        return self.num_rows

    def __getitem__(self, idx: int):
        if not (0 <= idx < self.num_rows):
            raise IndexError(f"Index {idx} out of range for {self.num_rows} rows")
        if self._h5_file is None:
            self._h5_file = h5py.File(self.path, "r")
        row = self._h5_file[self.split][idx]
        planes, target, weight = row_to_example(row)
        return planes, torch.tensor(target, dtype=torch.long), torch.tensor(weight, dtype=torch.float32)

    def close(self):
        if self._h5_file is not None:
            self._h5_file.close()
            self._h5_file = None


def create_dataloader(path, split: str = TRAIN_SET_NAME, batch_size: int = 256,
                      shuffle: bool = False, num_workers: int = 0) -> DataLoader:
    """DataLoader over one split. Train rows are already shuffled on disk."""
    return DataLoader(H5MoveDataset(path, split), batch_size=batch_size,
                      shuffle=shuffle, num_workers=num_workers)


def get_dataset_info(path) -> Dict:
    """
    Get information about a written dataset.

    Args:
        path: HDF5 file written by the data writer

    Returns:
        Dictionary with row counts per split and the stored layout attributes
    """
    path = Path(path)
    with h5py.File(path, "r") as h5_file:
        info = {
            "path": str(path),
            "train_rows": h5_file[TRAIN_SET_NAME].shape[0] if TRAIN_SET_NAME in h5_file else 0,
            "test_rows": h5_file[TEST_SET_NAME].shape[0] if TEST_SET_NAME in h5_file else 0,
            "total_size_mb": path.stat().st_size / (1024 * 1024),
        }
        for key, value in h5_file.attrs.items():
            info[key] = value.item() if hasattr(value, "item") else value
    return info
