"""
Configuration management for SGF processing.

This module provides a configuration class with validation that runs before
any output is written.
"""

from pathlib import Path
from typing import Any, Dict, List, Optional

from go_ai.config import CHUNK_HEIGHT, DEFLATE_LEVEL, LOG_INTERVAL
from go_ai.file_utils import validate_output_file


class ProcessingConfig:
    """Configuration for SGF processing."""

    def __init__(self,
                 games_dirs: List[str],
                 output_file: str,
                 train_pool_size: int,
                 test_size: int,
                 chunk_height: int = CHUNK_HEIGHT,
                 deflate_level: int = DEFLATE_LEVEL,
                 seed: Optional[int] = None,
                 log_interval: int = LOG_INTERVAL,
                 max_files: Optional[int] = None):
        """
        Initialize processing configuration.

        Args:
            games_dirs: Directories scanned recursively for .sgf files
            output_file: HDF5 file to write
            train_pool_size: Rows held in the train shuffle buffer
            test_size: Number of rows sampled into the test set
            chunk_height: HDF5 chunk height and maximum rows per append
            deflate_level: gzip compression level (0-9)
            seed: Random seed (default: drawn from OS entropy and logged)
            log_interval: Log progress every N game records
            max_files: Maximum number of files to process (for testing)
        """
        self.games_dirs = [Path(d) for d in games_dirs]
        self.output_file = Path(output_file)
        self.train_pool_size = train_pool_size
        self.test_size = test_size
        self.chunk_height = chunk_height
        self.deflate_level = deflate_level
        self.seed = seed
        self.log_interval = log_interval
        self.max_files = max_files

    def to_dict(self) -> Dict[str, Any]:
        """Convert config to a plain dictionary."""
        return {
            'games_dirs': [str(d) for d in self.games_dirs],
            'output_file': str(self.output_file),
            'train_pool_size': self.train_pool_size,
            'test_size': self.test_size,
            'chunk_height': self.chunk_height,
            'deflate_level': self.deflate_level,
            'seed': self.seed,
            'log_interval': self.log_interval,
            'max_files': self.max_files
        }

    @classmethod
    def from_dict(cls, config_dict: Dict[str, Any]) -> 'ProcessingConfig':
        """Create config from dictionary."""
        return cls(**config_dict)

    def validate(self) -> None:
        """Validate configuration and raise ValueError if invalid."""
        if not self.games_dirs:
            raise ValueError("At least one games directory is required")

        for games_dir in self.games_dirs:
            if not games_dir.is_dir():
                raise ValueError(f"Games directory does not exist: {games_dir}")

        if self.train_pool_size < 1:
            raise ValueError(f"train_pool_size must be at least 1, got {self.train_pool_size}")

        if self.test_size < 0:
            raise ValueError(f"test_size must be non-negative, got {self.test_size}")

        if self.chunk_height < 1:
            raise ValueError(f"chunk_height must be at least 1, got {self.chunk_height}")

        if not (0 <= self.deflate_level <= 9):
            raise ValueError(f"deflate_level must be between 0 and 9, got {self.deflate_level}")

        if self.log_interval < 1:
            raise ValueError(f"log_interval must be at least 1, got {self.log_interval}")

        if self.max_files is not None and self.max_files < 1:
            raise ValueError(f"max_files must be at least 1, got {self.max_files}")

        if self.seed is not None and self.seed < 0:
            raise ValueError(f"seed must be non-negative, got {self.seed}")

        validate_output_file(self.output_file)

    def __repr__(self) -> str:
        """String representation of configuration."""
        return (f"ProcessingConfig(games_dirs={[str(d) for d in self.games_dirs]}, "
                f"output_file='{self.output_file}', "
                f"train_pool_size={self.train_pool_size}, "
                f"test_size={self.test_size}, "
                f"chunk_height={self.chunk_height}, "
                f"deflate_level={self.deflate_level}, "
                f"seed={self.seed}, "
                f"log_interval={self.log_interval}, "
                f"max_files={self.max_files})")
