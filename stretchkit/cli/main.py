# stretchkit/cli/main.py

"""
Main entry point for the stretchkit CLI application.
Uses Click for command-line interface handling.
"""

import logging

import click

from stretchkit.version import __version__
from .base_cmd import ConfigGroup, verbose_option, quiet_option
from .stretch_cmd import stretch_cmd
from .batch_cmd import batch_cmd
from .params_cmd import params_cmd
from .analysis_cmd import onsets_cmd, pitch_cmd

logger = logging.getLogger(__name__)

CONTEXT_SETTINGS = dict(help_option_names=['-h', '--help'])


@click.group(name="stretchkit", context_settings=CONTEXT_SETTINGS, cls=ConfigGroup)
@click.version_option(__version__, '-V', '--version', package_name='stretchkit', prog_name='stretchkit')
@verbose_option
@quiet_option
@click.pass_context
def main_cli(ctx, verbose: int, quiet: bool):
    """
    stretchkit: change the speed of audio without changing its pitch,
    using Waveform-Similarity Overlap-Add (WSOLA), and inspect its onsets
    and pitch.

    Configuration is loaded from:
    Defaults -> ./stretchkit.toml -> ~/.config/stretchkit/stretchkit.toml -> Env Vars

    Use -v for verbose output, -vv for debug output, -q for quiet mode.
    """
    logger.debug(f"stretchkit CLI group invoked (subcommand: {ctx.invoked_subcommand}).")


main_cli.add_command(stretch_cmd)
main_cli.add_command(batch_cmd)
main_cli.add_command(params_cmd)
main_cli.add_command(onsets_cmd)
main_cli.add_command(pitch_cmd)

cli = main_cli

if __name__ == "__main__":
    cli()
