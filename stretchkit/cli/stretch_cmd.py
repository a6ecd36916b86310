# stretchkit/cli/stretch_cmd.py

"""
CLI command for time-stretching a single audio file.
"""

import logging
from pathlib import Path
from typing import Optional

import click

from stretchkit.core.audio.io import load_audio, save_audio
from stretchkit.core.wsola import time_stretch
from .base_cmd import get_config, rate_option, sr_option, subtype_option

logger = logging.getLogger(__name__)


@click.command("stretch")
@click.argument("input_file", type=click.Path(exists=True, dir_okay=False, resolve_path=True))
@click.option("-o", "--output", type=click.Path(dir_okay=False, resolve_path=True), required=True,
              help="Output file path for the stretched audio.")
@rate_option
@sr_option
@subtype_option
@click.pass_context
def stretch_cmd(ctx, input_file: str, output: str, rate: float, sr: Optional[int], subtype: Optional[str]):
    """Change the speed of INPUT_FILE without changing its pitch (WSOLA)."""
    config = get_config(ctx)
    input_path = Path(input_file)
    output_path = Path(output)
    sr = sr if sr is not None else config.defaults.default_sample_rate
    subtype = subtype.upper() if subtype else config.defaults.default_output_subtype

    logger.info(f"Running 'stretch' on: {input_path}")
    logger.info(f"Output file: {output_path}")
    logger.info(f"Params: rate={rate}, sr={sr}, subtype={subtype}")

    if rate <= 0:
        raise click.UsageError("Stretch rate must be positive.")

    try:
        signal_data, fs = load_audio(input_path, sr=sr, mono=True)

        stretched = time_stretch(
            y=signal_data,
            sample_rate=fs,
            speed_ratio=rate
        )

        save_audio(stretched, fs, output_path, subtype=subtype)

        click.echo(
            f"Successfully applied time stretch (rate={rate}) to '{input_path.name}' "
            f"({len(signal_data)} -> {len(stretched)} samples), saved to '{output_path.name}'."
        )

    except FileNotFoundError:
        raise click.UsageError(f"Input file not found: {input_path}")
    except ValueError as e:
        raise click.UsageError(f"Error during time stretching: {e}")
    except Exception as e:
        logger.error(f"An unexpected error occurred during time stretching: {e}", exc_info=True)
        raise click.Abort()
