# stretchkit/utils/logging_config.py

"""
Configures the logging system for stretchkit based on loaded settings.
Uses Rich for enhanced console logging.
"""

import logging
from datetime import datetime
from typing import Optional
from pathlib import Path

from rich.logging import RichHandler

from stretchkit.config import StretchkitConfig
from stretchkit.version import __version__

# --- Constants ---
# Map verbosity levels (from CLI flags) to logging levels; 0 uses the configured console level
VERBOSITY_MAP = {
    1: logging.INFO,     # -v (verbose)
    2: logging.DEBUG,    # -vv (debug)
    -1: logging.CRITICAL + 10 # -q (quiet/silent)
}

PACKAGE_LOGGER = "stretchkit"

# --- Setup Function ---

def setup_logging(config: StretchkitConfig, verbosity: int = 0) -> Optional[Path]:
    """
    Configures the package logger based on the provided configuration and verbosity level.

    Args:
        config: The loaded StretchkitConfig object.
        verbosity: 0 for normal, 1 for verbose, 2+ for debug, -1 for quiet.

    Returns:
        The path of the log file, or None if file logging is disabled or failed.
    """
    log_cfg = config.logging

    if verbosity == 0:
        console_level = logging.getLevelName(log_cfg.log_level_console)
    else:
        console_level = VERBOSITY_MAP.get(min(verbosity, 2), logging.INFO)

    root_logger = logging.getLogger(PACKAGE_LOGGER)
    root_logger.setLevel(logging.DEBUG) # Handlers filter by their own levels
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)
        handler.close()

    # --- Console Handler (Rich) ---
    if console_level <= logging.CRITICAL:
        console_handler = RichHandler(
            level=console_level,
            show_time=False,
            show_level=True,
            show_path=False,
            rich_tracebacks=True,
            markup=False, # File names may contain [brackets]
        )
        console_handler.setFormatter(logging.Formatter("%(message)s"))
        root_logger.addHandler(console_handler)

    # --- File Handler ---
    log_filepath: Optional[Path] = None
    if log_cfg.log_file_enabled:
        try:
            log_dir = config.paths.log_directory
            log_dir.mkdir(parents=True, exist_ok=True)
            log_filename = log_cfg.log_filename_template.format(timestamp=datetime.now())
            log_filepath = log_dir / log_filename

            file_handler = logging.FileHandler(log_filepath, encoding='utf-8')
            file_handler.setLevel(log_cfg.log_level_file)
            file_handler.setFormatter(logging.Formatter(log_cfg.log_format))
            root_logger.addHandler(file_handler)

            file_logger = logging.getLogger(f"{PACKAGE_LOGGER}.init")
            file_logger.info(f"--- stretchkit v{__version__} Log Start ---")
            file_logger.info(f"File logging level set to: {log_cfg.log_level_file}")
            file_logger.info(f"Console logging level set to: {logging.getLevelName(console_level)}")
            file_logger.debug(f"Full configuration loaded: {config.model_dump()}")
        except (OSError, KeyError, ValueError) as e:
            logging.getLogger(f"{PACKAGE_LOGGER}.error").error(f"Failed to configure file logging: {e}", exc_info=True)
            log_filepath = None

    init_logger = logging.getLogger(f"{PACKAGE_LOGGER}.init")
    init_logger.info(f"stretchkit v{__version__} initialized.")
    if log_filepath is not None:
        init_logger.info(f"Logging to file: {log_filepath}")
    else:
        init_logger.info("File logging is disabled.")
    return log_filepath
