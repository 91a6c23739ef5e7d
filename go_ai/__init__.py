"""
Go AI training data writer

Converts archives of recorded Go games (SGF) into a fixed-width HDF5 dataset
for move-prediction training, split into a shuffled train table and a
held-out test table, in bounded memory.
"""

# Version info
__version__ = "2025.1.0"

# Core modules
__all__ = [
    "config",
    "enums",
    "error_handling",
    "data_pool",
    "features",
    "go_engine",
    "sgf_parser",
    "h5_writer",
    "file_utils",
    "system_utils",
    "utils",
    "dataset",
    "sgf_processing",
]
