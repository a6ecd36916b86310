# stretchkit/core/audio/io.py

"""
Handles loading and saving of audio files using librosa and soundfile.
"""

import logging
from pathlib import Path
from typing import Tuple, Optional

import librosa
import numpy as np
import soundfile as sf
from numpy.typing import NDArray

logger = logging.getLogger(__name__)

# Create sets of supported extensions (lowercase, including dot)
SUPPORTED_READ_EXTENSIONS = {f".{fmt.lower()}" for fmt in sf.available_formats()}
# librosa can read mp3 through its audioread fallback
SUPPORTED_READ_EXTENSIONS.add(".mp3")

SUPPORTED_WRITE_EXTENSIONS = {f".{fmt.lower()}" for fmt in sf.available_formats()}
SUPPORTED_WRITE_EXTENSIONS -= {".mp3"}

logger.debug(f"Supported audio read extensions: {SUPPORTED_READ_EXTENSIONS}")
logger.debug(f"Supported audio write extensions: {SUPPORTED_WRITE_EXTENSIONS}")


def load_audio(
    file_path: Path,
    sr: Optional[int] = None,
    mono: bool = True,
    offset: float = 0.0,
    duration: Optional[float] = None
) -> Tuple[NDArray[np.float32], int]:
    """
    Loads an audio file using librosa.

    Args:
        file_path: Path object for the audio file.
        sr: Target sampling rate. If None, uses the native sampling rate.
        mono: If True, convert signal to mono by averaging channels.
        offset: Start reading after this time (in seconds).
        duration: Only load up to this much audio (in seconds).

    Returns:
        A tuple containing:
        - data (NDArray[np.float32]): The audio time series, shape (n_samples,)
                                      if mono=True, else (n_channels, n_samples).
        - sample_rate (int): The sampling rate of the loaded time series.

    Raises:
        FileNotFoundError: If the file does not exist.
        ValueError: If the path is not a file.
        Exception: For librosa/soundfile/audioread loading errors.
    """
    if not file_path.exists():
        raise FileNotFoundError(f"Audio input file not found: {file_path}")
    if not file_path.is_file():
        raise ValueError(f"Input path is not a file: {file_path}")

    logger.info(f"Loading audio from: {file_path} (sr={sr}, mono={mono}, offset={offset}, duration={duration})")
    try:
        data, sample_rate = librosa.load(
            file_path,
            sr=sr,
            mono=mono,
            offset=offset,
            duration=duration,
            res_type='soxr_hq'
        )
        # The WSOLA engine works in float32
        if data.dtype != np.float32:
            data = data.astype(np.float32)

        logger.debug(f"Audio loaded successfully. Shape: {data.shape}, SR: {sample_rate}")
        return data, int(sample_rate)
    except Exception as e:
        logger.error(f"Error loading audio file {file_path}: {e}")
        raise


def save_audio(
    data: NDArray[np.float32],
    sr: int,
    output_path: Path,
    subtype: Optional[str] = 'PCM_16'
):
    """
    Saves a mono audio signal using soundfile.

    The format is taken from the output file extension. Time-stretched signals
    can exceed [-1.0, 1.0] where overlapping frames add up; for PCM subtypes such
    data is clipped with a warning, use 'FLOAT' to keep it intact.

    Args:
        data: Audio time series, shape (n_samples,).
        sr: Sampling rate (integer, Hz).
        output_path: Path object where to save the audio file.
        subtype: Soundfile subtype string (e.g., 'PCM_16', 'FLOAT').
                 If None, soundfile chooses a default based on the format.

    Raises:
        ValueError: If the extension is unsupported or the data is not 1D.
        Exception: For soundfile writing errors (e.g., permission denied).
    """
    logger.info(f"Saving audio to: {output_path} (sr={sr}, subtype={subtype})")

    ext = output_path.suffix.lower()
    if ext not in SUPPORTED_WRITE_EXTENSIONS:
        raise ValueError(f"Unsupported audio output extension: '{ext}'. "
                         f"Supported extensions: {sorted(SUPPORTED_WRITE_EXTENSIONS)}")
    if data.ndim != 1:
        raise ValueError(f"Input data must be 1D (mono), got shape {data.shape}")

    output_path.parent.mkdir(parents=True, exist_ok=True)

    if subtype and 'PCM' in subtype and data.size > 0:
        max_abs_val = np.max(np.abs(data))
        if max_abs_val > 1.0:
            logger.warning(f"Audio data exceeds range [-1, 1] (max abs: {max_abs_val:.4f}) "
                           f"for PCM subtype '{subtype}'. Clipping data to prevent wrap-around.")
            data = np.clip(data, -1.0, 1.0)

    file_format = ext[1:].upper()

    try:
        sf.write(output_path, data, sr, subtype=subtype, format=file_format)
        logger.info(f"Audio successfully saved to {output_path}")
    except Exception as e:
        logger.error(f"Error saving audio file {output_path}: {e}")
        raise
