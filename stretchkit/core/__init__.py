# stretchkit/core/__init__.py

"""
Core Processing Package for stretchkit.

Contains modules for:
- WSOLA time-scale modification
- Audio I/O
- Batch processing of audio directories
- Onset detection and pitch tracking
"""

from . import wsola
from . import audio
from . import batch_processor
from . import analysis

__all__ = [
    "wsola",
    "audio",
    "batch_processor",
    "analysis",
]
