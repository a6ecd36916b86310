# stretchkit/cli/batch_cmd.py

"""
CLI command for time-stretching every audio file in a directory.
"""

import logging
from pathlib import Path
from typing import Optional

import click

from stretchkit.core.batch_processor import process_batch
from .base_cmd import get_config, rate_option, sr_option, subtype_option

logger = logging.getLogger(__name__)


@click.command("batch")
@click.argument("input_dir", type=click.Path(exists=True, file_okay=False, resolve_path=True))
@click.option("-o", "--output-dir", type=click.Path(file_okay=False, resolve_path=True), default=None,
              help="Directory for the stretched files [default: paths.output_dir from config].")
@rate_option
@sr_option
@subtype_option
@click.option("--suffix", type=str, default=None,
              help="Suffix appended to each output file stem [default: from config].")
@click.pass_context
def batch_cmd(ctx, input_dir: str, output_dir: Optional[str], rate: float, sr: Optional[int],
              subtype: Optional[str], suffix: Optional[str]):
    """Time-stretch every audio file found in INPUT_DIR."""
    config = get_config(ctx)
    output_path = Path(output_dir) if output_dir else config.paths.output_dir
    sr = sr if sr is not None else config.defaults.default_sample_rate
    subtype = subtype.upper() if subtype else config.defaults.default_output_subtype
    suffix = suffix if suffix is not None else config.defaults.batch_output_suffix

    if rate <= 0:
        raise click.UsageError("Stretch rate must be positive.")

    try:
        processed, skipped = process_batch(
            input_dir=input_dir,
            output_dir=output_path,
            speed_ratio=rate,
            sr=sr,
            subtype=subtype,
            suffix=suffix
        )
    except FileNotFoundError as e:
        raise click.UsageError(str(e))
    except ValueError as e:
        raise click.UsageError(f"Error during batch time stretching: {e}")

    click.echo(f"Batch time stretch (rate={rate}) finished: {processed} processed, {skipped} skipped. Output: '{output_path}'.")
