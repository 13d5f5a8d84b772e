"""
Main entry point for the upload-tracker application.
This module handles top-level setup, exception handling, and CLI invocation.
"""

import asyncio
import logging
import os
import sys

import typer
from rich.console import Console

from upload_tracker.cli import app as app_module
from upload_tracker.cli.formatters import format_error_with_suggestions
from upload_tracker.exceptions import ConfigurationError, UploadTrackerError


def main() -> None:
    """Main entry point function."""
    if os.name == "nt":
        try:
            sys.stdout.reconfigure(encoding="utf-8")
            sys.stderr.reconfigure(encoding="utf-8")
        except (TypeError, AttributeError):
            pass

    log = logging.getLogger("upload_tracker")
    console = Console()

    try:
        app_module.app()
    except (typer.Exit, typer.Abort):
        pass
    except (KeyboardInterrupt, asyncio.CancelledError):
        console.print(
            "\n[yellow]⚠️  Cancelled. Unfinished uploads were dismissed.[/yellow]"
        )
        sys.exit(0)
    except ConfigurationError as e:
        context = {"config_file": str(app_module.CONFIG_FILE)}
        console.print(f"\n{format_error_with_suggestions(e, context)}")
        sys.exit(1)
    except UploadTrackerError as e:
        console.print(f"\n{format_error_with_suggestions(e)}")
        sys.exit(1)
    except Exception as e:
        console.print(f"\n{format_error_with_suggestions(e, {'type': 'Unexpected'})}")
        log.debug("Full traceback:", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
