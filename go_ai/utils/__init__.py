"""
Shared utilities for Go AI.
"""

from .random_utils import RandomSource

__all__ = ['RandomSource']
