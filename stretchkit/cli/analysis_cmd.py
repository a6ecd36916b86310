# stretchkit/cli/analysis_cmd.py

"""
CLI commands for onset detection and pitch tracking of a single audio file.
"""

import json
import logging
from pathlib import Path
from typing import Any, Optional

import click
from tabulate import tabulate

from stretchkit.core.analysis import analyze
from stretchkit.core.audio.io import load_audio
from .base_cmd import get_config, sr_option

logger = logging.getLogger(__name__)

format_option = click.option(
    "--format", "output_format", type=click.Choice(["table", "json"], case_sensitive=False),
    default="table", show_default=True
)


def _run_analysis(ctx: click.Context, kind: str, input_file: str, sr: Optional[int], **kwargs: Any):
    """Loads INPUT_FILE and runs one analysis, mapping failures to Click errors."""
    config = get_config(ctx)
    input_path = Path(input_file)
    sr = sr if sr is not None else config.defaults.default_sample_rate
    logger.info(f"Running '{kind}' analysis on: {input_path} (sr={sr})")

    try:
        signal_data, fs = load_audio(input_path, sr=sr, mono=True)
        return analyze(kind, signal_data, fs, **kwargs)
    except FileNotFoundError:
        raise click.UsageError(f"Input file not found: {input_path}")
    except ValueError as e:
        raise click.UsageError(f"Error during {kind} analysis: {e}")
    except Exception as e:
        logger.error(f"An unexpected error occurred during {kind} analysis: {e}", exc_info=True)
        raise click.Abort()


@click.command("onsets")
@click.argument("input_file", type=click.Path(exists=True, dir_okay=False, resolve_path=True))
@sr_option
@click.option("--min-interval", type=click.FloatRange(min=0.0), default=0.05, show_default=True,
              help="Minimum distance between two onsets in seconds.")
@format_option
@click.pass_context
def onsets_cmd(ctx, input_file: str, sr: Optional[int], min_interval: float, output_format: str):
    """List note onset times of INPUT_FILE (spectral flux)."""
    onsets = _run_analysis(ctx, 'onset', input_file, sr, min_interval=min_interval)
    times = [round(float(t), 6) for t in onsets]

    if output_format.lower() == "json":
        click.echo(json.dumps({"onsets": times}, indent=2))
    else:
        click.echo(tabulate(enumerate(times), headers=["#", "Time (s)"]))
        click.echo(f"{len(times)} onsets detected.")


@click.command("pitch")
@click.argument("input_file", type=click.Path(exists=True, dir_okay=False, resolve_path=True))
@sr_option
@click.option("--fmin", type=click.FloatRange(min=0.0, min_open=True), default=None,
              help="Lowest frequency searched in Hz [default: C2, ~65 Hz].")
@click.option("--fmax", type=click.FloatRange(min=0.0, min_open=True), default=None,
              help="Highest frequency searched in Hz [default: C7, ~2093 Hz].")
@click.option("--voiced-only", is_flag=True, default=False, help="Only list frames with a detected pitch.")
@format_option
@click.pass_context
def pitch_cmd(ctx, input_file: str, sr: Optional[int], fmin: Optional[float], fmax: Optional[float],
              voiced_only: bool, output_format: str):
    """Track the pitch of INPUT_FILE every 512 samples (pYIN)."""
    frames = _run_analysis(ctx, 'pitch', input_file, sr, fmin=fmin, fmax=fmax)
    if voiced_only:
        frames = [f for f in frames if f.freq is not None]

    if output_format.lower() == "json":
        click.echo(json.dumps({"frames": [f.as_dict() for f in frames]}, indent=2))
    else:
        rows = [(f"{f.time:.4f}", "-" if f.freq is None else f"{f.freq:.2f}", f"{f.confidence:.3f}") for f in frames]
        click.echo(tabulate(rows, headers=["Time (s)", "Freq (Hz)", "Confidence"], disable_numparse=True))
