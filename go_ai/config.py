"""
Configuration constants and settings for the Go AI data writer.

This module contains the row layout used by every dataset row, the HDF5
storage parameters, and the defaults used by the SGF processing pipeline.
"""

# Board geometry
# Rows are laid out for a fixed canonical grid. Smaller boards are centered
# inside it, but only the sizes below are currently processed.
MAX_BOARD_SIZE = 19
SUPPORTED_BOARD_SIZES = frozenset({19})
DEFAULT_SGF_BOARD_SIZE = 19  # SGF default when SZ is missing

# Data and feature row parameters
NUM_FEATURES = 13
INPUT_LEN = MAX_BOARD_SIZE * MAX_BOARD_SIZE * NUM_FEATURES  # 4693
TARGET_LEN = MAX_BOARD_SIZE * MAX_BOARD_SIZE  # 361
TARGET_WEIGHTS_LEN = 1
TOTAL_ROW_LEN = INPUT_LEN + TARGET_LEN + TARGET_WEIGHTS_LEN  # 5055

# Offsets of the row regions
TARGET_OFFSET = INPUT_LEN
WEIGHT_OFFSET = INPUT_LEN + TARGET_LEN

# Value written into every set feature bit and into the weight column
FEATURE_ON = 1.0
DEFAULT_ROW_WEIGHT = 1.0

# Previous-move history inclusion probabilities.
# The first entry is unconditional, each later one applies only if the
# previous history move was included.
PREV_MOVE_INCLUDE_PROBS = (0.9, 0.95, 0.95)

# HDF5 parameters
CHUNK_HEIGHT = 2000
DEFLATE_LEVEL = 6
H5_DIMENSION = 2
H5_DTYPE = "<f4"
TRAIN_SET_NAME = "train"
TEST_SET_NAME = "test"

# Processing defaults
LOG_INTERVAL = 100  # Log progress every N game records

# Warn when the shuffle pool would use more than this share of available memory
MAX_POOL_MEMORY_FRACTION = 0.8

# File extensions
SGF_EXTENSION = ".sgf"
