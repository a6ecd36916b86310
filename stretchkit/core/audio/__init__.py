# stretchkit/core/audio/__init__.py

"""
Core Audio Package.

Contains audio-specific input/output built on librosa and soundfile.
"""

from . import io

__all__ = [
    "io",
]
