"""
SGF Processing Module

This module turns directories of SGF game records into a shuffled, split
HDF5 training dataset.
"""

from .config import ProcessingConfig
from .processor import SGFProcessor
from .cli import main

__all__ = [
    'ProcessingConfig',
    'SGFProcessor',
    'main'
]
