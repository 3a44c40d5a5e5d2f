#!/usr/bin/env python3
"""
Shared CLI Context for batchmint

Holds per-invocation state (verbosity, configuration) and the error
handling wrapper used by every command.
"""

import functools
import logging
import sys
import traceback
from typing import Optional

import click

from crypto.exceptions import CryptoError
from nft.exceptions import MintPipelineError

from .config import ConfigurationManager


class CLIContext:
    """Global CLI context for sharing state across commands."""

    def __init__(self):
        self.config_file: Optional[str] = None
        self.verbose: int = 0
        self.logger: logging.Logger = logging.getLogger('batchmint')
        self._config_manager: Optional[ConfigurationManager] = None

    def setup_logging(self):
        """Configure logging based on verbosity level."""
        log_levels = {
            0: logging.WARNING,
            1: logging.INFO,
            2: logging.DEBUG
        }

        level = log_levels.get(min(self.verbose, 2), logging.DEBUG)

        formatter = logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
        )

        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(formatter)

        # Package loggers are named after their modules; attach to the root
        root = logging.getLogger()
        root.handlers = [handler]
        root.setLevel(level)

        # Suppress verbose third-party logs unless in debug mode
        if self.verbose < 2:
            logging.getLogger('httpx').setLevel(logging.WARNING)
            logging.getLogger('httpcore').setLevel(logging.WARNING)

    @property
    def config_manager(self) -> ConfigurationManager:
        if self._config_manager is None:
            self._config_manager = ConfigurationManager(self.config_file)
        return self._config_manager


# Global context instance
pass_context = click.make_pass_decorator(CLIContext, ensure=True)


def handle_cli_error(func):
    """Decorator to turn fatal errors into a message and exit code 1."""
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except KeyboardInterrupt:
            click.echo("\nOperation cancelled by user.", err=True)
            sys.exit(130)
        except (MintPipelineError, CryptoError, OSError) as e:
            ctx = click.get_current_context().find_object(CLIContext)

            click.echo(f"Error: {e}", err=True)
            if ctx and ctx.verbose >= 2:
                click.echo(traceback.format_exc(), err=True)
            else:
                click.echo("Use -vv for detailed error information.", err=True)

            sys.exit(1)

    return wrapper
