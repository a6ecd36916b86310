# stretchkit/__init__.py

"""
stretchkit: pitch-preserving time stretching of audio with WSOLA.
"""

from stretchkit.version import __version__
from stretchkit.core.wsola import (
    Wsola,
    WsolaParams,
    derive_parameters,
    find_best_match,
    hann_window,
    time_stretch,
)
from stretchkit.core.analysis import PitchFrame, analyze, detect_onsets, track_pitch

__all__ = [
    "__version__",
    "Wsola",
    "WsolaParams",
    "derive_parameters",
    "find_best_match",
    "hann_window",
    "time_stretch",
    "PitchFrame",
    "analyze",
    "detect_onsets",
    "track_pitch",
]
