# stretchkit/core/batch_processor.py

"""
Provides functionality for time-stretching batches of audio files.
Reads every supported audio file in an input directory, applies the WSOLA
time stretch and saves the results to an output directory.
"""

import logging
import math
from pathlib import Path
from typing import Optional, Tuple, Union

from stretchkit.core.audio.io import (
    load_audio,
    save_audio,
    SUPPORTED_READ_EXTENSIONS,
    SUPPORTED_WRITE_EXTENSIONS,
)
from stretchkit.core.wsola import time_stretch

logger = logging.getLogger(__name__)


def process_batch(
    input_dir: Union[str, Path],
    output_dir: Union[str, Path],
    speed_ratio: float,
    sr: Optional[int] = None,
    subtype: Optional[str] = 'PCM_16',
    suffix: str = "_stretched"
) -> Tuple[int, int]:
    """
    Time-stretch every audio file in a directory.

    Files are visited in name order. Each output keeps the input's extension
    when soundfile can write it, otherwise it is saved as WAV. Output names are
    ``<stem><suffix><ext>``.

    Args:
        input_dir: Directory containing the input audio files.
        output_dir: Directory where stretched files are written (created if needed).
        speed_ratio: Time stretch factor (>1 speeds up, <1 slows down).
        sr: Target sampling rate for loading. None keeps each file's native rate.
        subtype: Soundfile subtype used when saving.
        suffix: Appended to each input file stem.

    Returns:
        A tuple (processed_count, skipped_count).

    Raises:
        FileNotFoundError: If the input directory does not exist.
        ValueError: If `speed_ratio` is not positive.
        # Individual file errors are logged and skipped.
    """
    input_path = Path(input_dir)
    output_path_dir = Path(output_dir)

    if not input_path.is_dir():
        raise FileNotFoundError(f"Input directory not found: {input_dir}")
    if not math.isfinite(speed_ratio) or speed_ratio <= 0:
        raise ValueError("Time stretch rate must be positive.")

    output_path_dir.mkdir(parents=True, exist_ok=True)
    logger.info(f"Starting batch time stretch from '{input_path}' to '{output_path_dir}' with rate {speed_ratio}")

    processed_count = 0
    skipped_count = 0

    for file_path in sorted(input_path.iterdir()):
        if not file_path.is_file():
            logger.debug(f"Skipping non-file item: {file_path.name}")
            continue

        ext = file_path.suffix.lower()
        if ext not in SUPPORTED_READ_EXTENSIONS:
            logger.warning(f"Skipping file {file_path.name}: Unsupported read format '{file_path.suffix}'.")
            skipped_count += 1
            continue

        out_ext = ext if ext in SUPPORTED_WRITE_EXTENSIONS else ".wav"
        output_file_path = output_path_dir / f"{file_path.stem}{suffix}{out_ext}"

        try:
            logger.debug(f"Processing file: {file_path.name}")
            signal_data, fs = load_audio(file_path, sr=sr, mono=True)

            if signal_data.size == 0:
                logger.warning(f"Skipping file {file_path.name}: No audio samples.")
                skipped_count += 1
                continue

            stretched = time_stretch(signal_data, sample_rate=fs, speed_ratio=speed_ratio)
            save_audio(stretched, fs, output_file_path, subtype=subtype)
            logger.info(f"Successfully stretched and saved: {file_path.name} -> {output_file_path.name}")
            processed_count += 1

        except FileNotFoundError:
            logger.error(f"Input file not found during batch processing: {file_path.name}. Skipping.")
            skipped_count += 1
        except ValueError as e:
            logger.error(f"Value error processing file {file_path.name}: {e}. Skipping.")
            skipped_count += 1
        except Exception as e:
            logger.error(f"Unexpected error processing file {file_path.name}: {e}", exc_info=True)
            skipped_count += 1

    logger.info(f"Batch processing finished. Processed: {processed_count}, Skipped: {skipped_count}")
    return processed_count, skipped_count
