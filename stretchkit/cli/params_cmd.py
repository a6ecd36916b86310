# stretchkit/cli/params_cmd.py

"""
CLI command that shows the WSOLA parameters derived for a sample rate and speed ratio.
"""

import json
import logging
from typing import Optional

import click
from tabulate import tabulate

from stretchkit.core.wsola import derive_parameters

logger = logging.getLogger(__name__)


@click.command("params")
@click.option("--sample-rate", type=float, required=True, help="Sample rate in Hz.")
@click.option("--rate", type=float, required=True, help="Speed ratio.")
@click.option("--input-length", type=click.IntRange(min=0), default=None,
              help="Input length in samples; adds the output buffer bound.")
@click.option("--format", "output_format", type=click.Choice(["table", "json"], case_sensitive=False),
              default="table", show_default=True)
def params_cmd(sample_rate: float, rate: float, input_length: Optional[int], output_format: str):
    """Show window size, search range and hop sizes used for a stretch."""
    try:
        params = derive_parameters(sample_rate, rate)
    except ValueError as e:
        raise click.UsageError(str(e))

    info = {"sample_rate": sample_rate, **params.as_dict()}
    if input_length is not None:
        info["input_length"] = input_length
        info["bypass"] = input_length < params.min_input_length
        info["max_output_length"] = input_length if info["bypass"] else params.expected_output_length(input_length)
    logger.debug(f"Derived parameters: {info}")

    if output_format.lower() == "json":
        click.echo(json.dumps(info, indent=2))
    else:
        click.echo(tabulate(info.items(), headers=["Parameter", "Value"]))
