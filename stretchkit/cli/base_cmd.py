# stretchkit/cli/base_cmd.py

"""
Base setup for CLI commands: configuration loading and logging initialization.
"""

import logging
import sys

import click

from stretchkit.config import load_configuration, StretchkitConfig
from stretchkit.utils.logging_config import setup_logging

logger = logging.getLogger(__name__)


def _resolve_verbosity(ctx: click.Context) -> int:
    """Reads -v/-q from the current context, falling back to the parent."""
    for params in (ctx.params, ctx.parent.params if ctx.parent else {}):
        if params.get('quiet', False):
            return -1
        if params.get('verbose', 0) > 0:
            return params['verbose']
    return 0


class ConfigGroup(click.Group):
    """
    A Click Group that loads configuration and sets up logging before invoking
    the group or its subcommands. The configuration is passed on as
    ctx.obj['config']. Setup failures exit with code 1; exceptions raised by
    commands propagate unchanged.
    """
    def invoke(self, ctx: click.Context):
        if ctx.obj is None:
            ctx.obj = {}

        try:
            if 'config' not in ctx.obj:
                config = load_configuration()
                ctx.obj['config'] = config
                setup_logging(config, _resolve_verbosity(ctx))
                logger.debug("Logging setup complete in ConfigGroup.")
            else:
                logger.debug("Configuration already loaded in context.")
        except Exception as e:
            logging.getLogger("stretchkit.error").critical(f"Critical error during CLI setup: {repr(e)}", exc_info=True)
            # Logging might not be fully set up
            print(f"CRITICAL SETUP ERROR: {repr(e)}", file=sys.stderr)
            ctx.exit(1)

        return super().invoke(ctx)


def get_config(ctx: click.Context) -> StretchkitConfig:
    """Returns the configuration loaded by ConfigGroup (defaults if run standalone)."""
    if isinstance(ctx.obj, dict) and 'config' in ctx.obj:
        return ctx.obj['config']
    return StretchkitConfig()


# --- Common CLI Options ---
verbose_option = click.option(
    '-v', '--verbose',
    count=True,
    help="Increase verbosity level (-v for INFO, -vv for DEBUG)."
)
quiet_option = click.option(
    '-q', '--quiet',
    is_flag=True,
    default=False,
    help="Suppress all console output except critical errors."
)
rate_option = click.option(
    "--rate", type=float, required=True,
    help="Speed ratio (>1 speeds up and shortens, <1 slows down and lengthens)."
)
sr_option = click.option(
    "--sr", type=click.IntRange(min=1), default=None,
    help="Resample input to this rate before processing [default: from config, else native]."
)
subtype_option = click.option(
    "--subtype", type=str, default=None,
    help="Soundfile subtype for the output, e.g. PCM_16 or FLOAT [default: from config]."
)
