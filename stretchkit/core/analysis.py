# stretchkit/core/analysis.py

"""
Onset detection and pitch tracking for mono audio.

Onsets come from the spectral flux of a framed magnitude spectrum: the flux is
smoothed, an adaptive (local mean) threshold is subtracted, and the remaining
local maxima are reported as onset times. Pitch is tracked per hop with
librosa's probabilistic YIN, giving a time, a frequency (None when the frame is
unvoiced) and a voicing confidence for every hop.
"""

import logging
import math
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Literal, Optional

import librosa
import numpy as np
from numpy.typing import ArrayLike, NDArray

from .wsola import hann_window

logger = logging.getLogger(__name__)

# --- Constants ---
ONSET_FRAME_SIZE = 2048
ONSET_HOP_SIZE = 512
ONSET_SMOOTH_RADIUS = 3
ONSET_THRESHOLD_RADIUS = 16
ONSET_MIN_INTERVAL_SEC = 0.05

PITCH_HOP_SIZE = 512
PITCH_FRAME_SIZE = 2048

AnalysisKind = Literal['onset', 'pitch']


@dataclass(frozen=True)
class PitchFrame:
    """Pitch estimate for one hop. `freq` is None when no pitch was found."""
    time: float
    freq: Optional[float]
    confidence: float

    def as_dict(self) -> dict:
        return {"time": self.time, "freq": self.freq, "confidence": self.confidence}


def _as_mono(y: ArrayLike) -> NDArray[np.float32]:
    y = np.asarray(y, dtype=np.float32)
    if y.ndim != 1:
        raise ValueError("Input audio data must be a 1D array.")
    return y


def _local_mean(values: NDArray[np.float64], radius: int) -> NDArray[np.float64]:
    """Mean over [i - radius, i + radius], using only the samples inside the array."""
    n = len(values)
    idx = np.arange(n)
    lo = np.maximum(idx - radius, 0)
    hi = np.minimum(idx + radius + 1, n)
    csum = np.concatenate(([0.0], np.cumsum(values)))
    return (csum[hi] - csum[lo]) / (hi - lo)


def spectral_flux(
    y: ArrayLike,
    frame_size: int = ONSET_FRAME_SIZE,
    hop_size: int = ONSET_HOP_SIZE
) -> NDArray[np.float64]:
    """
    Positive spectral flux of Hann-windowed frames.

    Frames start every `hop_size` samples while ``start + frame_size < len(y)``.
    For each frame the flux is the sum over the lower `frame_size // 2` bins of
    the magnitude increase against the previous frame (the frame before the
    first one counts as silence).

    Returns:
        One flux value per frame (float64). Empty when `y` holds a single frame or less.
    """
    y = _as_mono(y)
    if len(y) <= frame_size:
        return np.zeros(0, dtype=np.float64)

    n_frames = math.ceil((len(y) - frame_size) / hop_size)
    spectrum = librosa.stft(
        y,
        n_fft=frame_size,
        hop_length=hop_size,
        window=hann_window(frame_size),
        center=False,
    )
    magnitude = np.abs(spectrum[:frame_size // 2, :n_frames]).astype(np.float64)
    increase = np.diff(magnitude, axis=1, prepend=np.zeros((magnitude.shape[0], 1)))
    return np.maximum(increase, 0.0).sum(axis=0)


def smooth(values: ArrayLike, radius: int = ONSET_SMOOTH_RADIUS) -> NDArray[np.float64]:
    """Moving average with a window of ``2 * radius + 1`` values, truncated at the edges."""
    values = np.asarray(values, dtype=np.float64)
    if len(values) == 0 or radius <= 0:
        return values.copy()
    return _local_mean(values, radius)


def adaptive_threshold(values: ArrayLike, radius: int = ONSET_THRESHOLD_RADIUS) -> NDArray[np.float64]:
    """Keeps only the part of each value above its local mean; everything else becomes 0."""
    values = np.asarray(values, dtype=np.float64)
    if len(values) == 0:
        return values.copy()
    local_mean = _local_mean(values, radius)
    return np.where(values > local_mean, values - local_mean, 0.0)


def pick_peaks(
    envelope: ArrayLike,
    sr: float,
    hop_size: int = ONSET_HOP_SIZE,
    min_interval: float = ONSET_MIN_INTERVAL_SEC
) -> NDArray[np.float64]:
    """
    Onset times (seconds) of the strict local maxima of a thresholded envelope.

    The first and last values are never peaks. A peak is kept only if it lies
    more than `min_interval` seconds after the previously kept one.
    """
    envelope = np.asarray(envelope, dtype=np.float64)
    if len(envelope) < 3:
        return np.zeros(0, dtype=np.float64)

    middle = envelope[1:-1]
    is_peak = (middle > envelope[:-2]) & (middle > envelope[2:]) & (middle > 0)
    peak_frames = np.flatnonzero(is_peak) + 1
    peak_times = librosa.frames_to_time(peak_frames, sr=sr, hop_length=hop_size)

    onsets: List[float] = []
    for t in peak_times:
        if not onsets or t - onsets[-1] > min_interval:
            onsets.append(float(t))
    return np.asarray(onsets, dtype=np.float64)


def detect_onsets(
    y: ArrayLike,
    sr: float,
    frame_size: int = ONSET_FRAME_SIZE,
    hop_size: int = ONSET_HOP_SIZE,
    smooth_radius: int = ONSET_SMOOTH_RADIUS,
    threshold_radius: int = ONSET_THRESHOLD_RADIUS,
    min_interval: float = ONSET_MIN_INTERVAL_SEC
) -> NDArray[np.float64]:
    """
    Detects note onsets with spectral flux.

    Args:
        y: Audio time series (1D, converted to float32).
        sr: Sampling rate (Hz).
        frame_size: STFT frame length in samples. (Default: 2048)
        hop_size: Distance between frame starts in samples. (Default: 512)
        smooth_radius: Radius of the moving average applied to the flux. (Default: 3)
        threshold_radius: Radius of the local mean subtracted as threshold. (Default: 16)
        min_interval: Minimum distance between two onsets in seconds. (Default: 0.05)

    Returns:
        Onset times in seconds (float64), ascending. Each time is the start of
        the frame holding the flux peak.

    Raises:
        ValueError: If `y` is not 1D or `sr` is not positive.
    """
    if sr <= 0:
        raise ValueError(f"Sample rate must be positive, got {sr}.")
    logger.debug(f"Detecting onsets: frame_size={frame_size}, hop_size={hop_size}, "
                 f"smooth_radius={smooth_radius}, threshold_radius={threshold_radius}")
    try:
        flux = spectral_flux(y, frame_size=frame_size, hop_size=hop_size)
        envelope = adaptive_threshold(smooth(flux, smooth_radius), threshold_radius)
        onsets = pick_peaks(envelope, sr, hop_size=hop_size, min_interval=min_interval)
    except Exception as e:
        logger.error(f"Error detecting onsets: {e}")
        raise
    logger.debug(f"Found {len(onsets)} onsets in {len(flux)} frames.")
    return onsets


def track_pitch(
    y: ArrayLike,
    sr: float,
    hop_size: int = PITCH_HOP_SIZE,
    frame_size: int = PITCH_FRAME_SIZE,
    fmin: Optional[float] = None,
    fmax: Optional[float] = None
) -> List[PitchFrame]:
    """
    Tracks the fundamental frequency hop by hop using pYIN.

    One frame is produced for every hop start ``i`` in ``range(0, len(y), hop_size)``;
    it analyses ``y[i:i + frame_size]`` (zero-padded at the end of the signal)
    and is stamped with ``time = i / sr``.

    Args:
        y: Audio time series (1D, converted to float32).
        sr: Sampling rate (Hz).
        hop_size: Distance between frames in samples. (Default: 512)
        frame_size: Analysis chunk length in samples. (Default: 2048)
        fmin: Lowest frequency searched (Hz). Defaults to C2 (~65 Hz), or to the
              lowest resolvable pitch when the sample rate is high.
        fmax: Highest frequency searched (Hz). Defaults to C7 (~2093 Hz),
              capped at the Nyquist frequency.

    Returns:
        A list of PitchFrame. `freq` is None for unvoiced frames and
        `confidence` is the voicing probability in [0, 1].

    Raises:
        ValueError: If `y` is not 1D, `sr` is not positive, fmin >= fmax or
                    librosa rejects the frequency range.
    """
    y = _as_mono(y)
    if sr <= 0:
        raise ValueError(f"Sample rate must be positive, got {sr}.")
    if fmin is None:
        # Lowest period pYIN can resolve with its default half-frame window
        fmin = max(librosa.note_to_hz('C2'), sr / (frame_size // 2 - 2))
    fmax = fmax if fmax is not None else librosa.note_to_hz('C7')
    fmax = min(fmax, sr / 2)
    if fmin >= fmax:
        raise ValueError(f"fmin ({fmin} Hz) must be below fmax ({fmax} Hz).")

    n_frames = math.ceil(len(y) / hop_size)
    if n_frames == 0:
        return []
    logger.debug(f"Tracking pitch: hop_size={hop_size}, frame_size={frame_size}, fmin={fmin}, fmax={fmax}")

    # Pad so that every hop start gets a full chunk
    padded = np.zeros((n_frames - 1) * hop_size + frame_size, dtype=np.float32)
    padded[:len(y)] = y
    try:
        f0, _, voiced_probs = librosa.pyin(
            y=padded,
            fmin=fmin,
            fmax=fmax,
            sr=sr,
            frame_length=frame_size,
            hop_length=hop_size,
            fill_na=np.nan,
            center=False,
        )
    except librosa.util.exceptions.ParameterError as e:
        raise ValueError(f"Invalid pitch tracking parameters: {e}") from e
    except Exception as e:
        logger.error(f"Error tracking pitch: {e}")
        raise

    frames = []
    for i in range(n_frames):
        freq = float(f0[i]) if np.isfinite(f0[i]) else None
        frames.append(PitchFrame(time=i * hop_size / sr, freq=freq, confidence=float(voiced_probs[i])))
    logger.debug(f"Tracked pitch over {n_frames} frames ({sum(f.freq is not None for f in frames)} voiced).")
    return frames


ANALYSES: Dict[str, Callable[..., Any]] = {
    'onset': detect_onsets,
    'pitch': track_pitch,
}


def analyze(kind: AnalysisKind, y: ArrayLike, sr: float, **kwargs: Any) -> Any:
    """
    Runs one analysis by name: 'onset' returns onset times, 'pitch' returns PitchFrames.

    Raises:
        ValueError: For an unknown analysis name.
    """
    try:
        analysis = ANALYSES[kind]
    except KeyError:
        raise ValueError(f"Unknown analysis '{kind}'. Choose one of: {', '.join(ANALYSES)}.") from None
    logger.info(f"Running '{kind}' analysis on {len(np.asarray(y))} samples at {sr} Hz.")
    return analysis(y, sr, **kwargs)
