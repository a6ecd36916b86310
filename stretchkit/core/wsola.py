# stretchkit/core/wsola.py

"""
Waveform-Similarity Overlap-Add (WSOLA) time-scale modification.

Changes the duration of a mono signal without shifting its pitch. For every
output frame the engine searches a small neighbourhood of the nominal input
position for the segment whose waveform best continues the tail of the frame
written before it (AMDF similarity), windows that segment with a Hann envelope
and overlap-adds it into the output buffer.

All processing is done in float32. The whole input must be in memory; each call
allocates its own window and output buffer, so separate calls can safely run
on separate threads.
"""

import logging
import math
from dataclasses import dataclass

import numpy as np
from numpy.lib.stride_tricks import sliding_window_view
from numpy.typing import ArrayLike, NDArray
from scipy.signal import get_window

logger = logging.getLogger(__name__)

# --- Constants ---
WINDOW_DURATION_SEC = 0.02  # Analysis/synthesis frame length (20 ms)
SEARCH_DURATION_SEC = 0.01  # Similarity search range (10 ms)


@dataclass(frozen=True)
class WsolaParams:
    """Engine configuration derived from a sample rate and a speed ratio."""
    speed_ratio: float
    window_size: int
    search_range: int

    @property
    def hop_out(self) -> int:
        """Output hop in samples (50% overlap)."""
        return self.window_size // 2

    @property
    def hop_in(self) -> int:
        """Nominal input hop in samples, before similarity correction."""
        return int(self.hop_out * self.speed_ratio)

    @property
    def min_input_length(self) -> int:
        """Shortest input that is actually stretched; shorter inputs pass through."""
        return self.window_size + self.search_range

    def expected_output_length(self, input_length: int) -> int:
        """Size of the pre-allocated output buffer (an upper bound on the result)."""
        return int(input_length / self.speed_ratio) + self.window_size

    def as_dict(self) -> dict:
        return {
            "speed_ratio": self.speed_ratio,
            "window_size": self.window_size,
            "search_range": self.search_range,
            "hop_out": self.hop_out,
            "hop_in": self.hop_in,
            "min_input_length": self.min_input_length,
        }


def derive_parameters(sample_rate: float, speed_ratio: float) -> WsolaParams:
    """
    Derives the WSOLA engine parameters.

    Args:
        sample_rate: Sampling rate of the signal in Hz.
        speed_ratio: Playback speed factor.
                     speed_ratio > 1.0 speeds up the audio (shorter output).
                     speed_ratio < 1.0 slows down the audio (longer output).

    Returns:
        A WsolaParams instance.

    Raises:
        ValueError: If either argument is not a positive finite number, or if the
                    derived window is too short to build a Hann envelope, or if
                    the nominal input hop rounds down to zero samples.
    """
    if not math.isfinite(sample_rate) or sample_rate <= 0:
        raise ValueError(f"Sample rate must be a positive finite number, got {sample_rate}.")
    if not math.isfinite(speed_ratio) or speed_ratio <= 0:
        raise ValueError("Time stretch rate must be positive.")

    params = WsolaParams(
        speed_ratio=float(speed_ratio),
        window_size=int(WINDOW_DURATION_SEC * sample_rate),
        search_range=int(SEARCH_DURATION_SEC * sample_rate),
    )
    if params.window_size < 2:
        raise ValueError(
            f"Sample rate {sample_rate} Hz is too low: derived window size is "
            f"{params.window_size} samples (need at least 2)."
        )
    if params.hop_in < 1:
        raise ValueError(
            f"Time stretch rate {speed_ratio} is too small for sample rate {sample_rate} Hz: "
            f"nominal input hop rounds down to 0 samples."
        )
    return params


def hann_window(window_size: int) -> NDArray[np.float32]:
    """Symmetric Hann envelope, w[i] = 0.5 * (1 - cos(2*pi*i / (window_size - 1)))."""
    return get_window("hann", window_size, fftbins=False).astype(np.float32)


def find_best_match(template: NDArray[np.float32], search_area: NDArray[np.float32]) -> int:
    """
    Finds where the template best fits inside the search area (AMDF).

    Every candidate offset in ``range(len(search_area) - len(template))`` is scored
    with the sum of absolute sample differences against the template; the
    offset with the lowest score wins, the earliest one on ties.

    Args:
        template: Segment to match.
        search_area: Segment to search, at least as long as the template.

    Returns:
        Zero-based offset into `search_area`. 0 if there are no candidates.

    Raises:
        ValueError: If `search_area` is shorter than `template`.
    """
    n_offsets = len(search_area) - len(template)
    if n_offsets < 0:
        raise ValueError(
            f"Search area ({len(search_area)} samples) is shorter than the "
            f"template ({len(template)} samples)."
        )
    if n_offsets == 0:
        return 0

    candidates = sliding_window_view(search_area, len(template))[:n_offsets]
    diffs = np.abs(candidates - template).sum(axis=1, dtype=np.float32)
    # argmin returns the first occurrence of the minimum
    return int(np.argmin(diffs))


class Wsola:
    """
    WSOLA time-stretching engine for one sample rate / speed ratio pair.

    Example:
        >>> engine = Wsola(sample_rate=44100, speed_ratio=1.5)
        >>> y_fast = engine.process(y)
    """

    def __init__(self, sample_rate: float, speed_ratio: float):
        self.params = derive_parameters(sample_rate, speed_ratio)

    def process(self, y: ArrayLike) -> NDArray[np.float32]:
        """
        Time-stretches a mono signal.

        Args:
            y: Input audio time series (1D). Converted to float32; never modified.

        Returns:
            A new float32 array. Inputs shorter than `params.min_input_length`
            are returned unchanged; otherwise the length is
            ``out_ptr + window_size`` where ``out_ptr`` is a multiple of `hop_out`.

        Raises:
            ValueError: If `y` is not 1D.
        """
        y = np.asarray(y, dtype=np.float32)
        if y.ndim != 1:
            raise ValueError("Input audio data must be a 1D array.")

        p = self.params
        window_size = p.window_size
        search_range = p.search_range
        hop_out = p.hop_out
        hop_in = p.hop_in
        n_input = len(y)

        if n_input < p.min_input_length:
            logger.debug(f"Input too short to stretch ({n_input} < {p.min_input_length} samples). Returning it unchanged.")
            return y.copy()

        window = hann_window(window_size)
        output = np.zeros(p.expected_output_length(n_input), dtype=np.float32)

        # First frame goes straight into the output
        output[:window_size] = y[:window_size] * window

        in_ptr = 0
        out_ptr = 0
        while in_ptr + hop_in + window_size + search_range < n_input:
            # Never place a frame that would not fit in the pre-sized buffer
            if out_ptr + hop_out + window_size > len(output):
                logger.info(
                    f"Output buffer full at out_ptr={out_ptr}; "
                    f"{n_input - in_ptr} trailing input samples not stretched."
                )
                break

            target_in_ptr = in_ptr + hop_in

            # Tail of the previous frame: the part the next frame will overlap
            template = output[out_ptr + hop_out:out_ptr + 2 * hop_out]
            search_area = y[target_in_ptr:target_in_ptr + hop_out + search_range]

            adjusted_in_ptr = target_in_ptr + find_best_match(template, search_area)

            start = out_ptr + hop_out
            output[start:start + window_size] += y[adjusted_in_ptr:adjusted_in_ptr + window_size] * window

            out_ptr += hop_out
            in_ptr = adjusted_in_ptr

        logger.debug(
            f"WSOLA finished: {out_ptr // hop_out} frames matched, "
            f"input {n_input} -> output {out_ptr + window_size} samples."
        )
        return output[:out_ptr + window_size].copy()


def time_stretch(
    y: ArrayLike,
    sample_rate: float,
    speed_ratio: float
) -> NDArray[np.float32]:
    """
    Time-stretches an audio signal without changing pitch using WSOLA.

    Args:
        y: Input audio time series (1D, converted to float32).
        sample_rate: Sampling rate of `y` in Hz.
        speed_ratio: Factor by which to change the playback speed.
                     speed_ratio > 1.0 speeds up the audio (makes it shorter).
                     speed_ratio < 1.0 slows down the audio (makes it longer).

    Returns:
        Time-stretched audio time series (float32).

    Raises:
        ValueError: If `y` is not 1D or the parameters are invalid.
    """
    y = np.asarray(y, dtype=np.float32)
    if y.ndim != 1:
        raise ValueError("Input audio data must be a 1D array.")

    logger.debug(f"Applying WSOLA time stretch: sample_rate={sample_rate}, speed_ratio={speed_ratio}")

    try:
        return Wsola(sample_rate, speed_ratio).process(y)
    except Exception as e:
        logger.error(f"Error during time stretching: {e}")
        raise
