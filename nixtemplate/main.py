"""Main entry point for the nix-template application.

Sets up the Typer CLI application, performs dependency injection (Composition Root),
defines CLI commands, and delegates execution to the CommandHandler.
"""

import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

import typer
from rich.console import Console
from typing_extensions import Annotated

# --- Setup Logging Early ---
# Basic config until setup_logging is called with the loaded settings
logging.basicConfig(level=logging.WARNING, format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')
logger = logging.getLogger(__name__)

# --- Core Layer ---
from nixtemplate.core.command_handler import CommandHandler, default_lock_file, parse_variables

# --- Domain Layer ---
from nixtemplate.domain.errors import NixTemplateError
from nixtemplate.domain.models.common import TemplateSource

# --- Infrastructure Layer ---
from nixtemplate.infrastructure.cli.display import ConsoleDisplay
from nixtemplate.infrastructure.cli.progress import delete_global_progress, new_global_progress
from nixtemplate.infrastructure.config.settings import get_config, get_default_lock_file, load_configuration
from nixtemplate.infrastructure.monitoring.logger_setup import level_from_name, setup_logging

AVAILABLE_FUNCTIONS_HELP = "Run `nix-template functions` to list the helper functions templates can call."

# --- Dependency Injection Container (Manual) ---

def configure_logging(verbose: bool = False, console: Optional[Console] = None) -> None:
    """Configures logging from settings, forcing DEBUG when verbose."""
    log_level = logging.DEBUG if verbose else level_from_name(get_config('logging.level'))
    setup_logging(
        log_level=log_level,
        log_file=get_config('logging.file'),
        log_format=get_config('logging.format', '%(asctime)s - %(name)s - %(levelname)s - %(message)s'),
        console=console,
    )

def create_dependencies() -> Dict[str, Any]:
    """Creates and wires up all dependencies for the application.

    This acts as the Composition Root.
    """
    load_configuration()

    dependencies: Dict[str, Any] = {}
    dependencies['ui'] = ConsoleDisplay()
    configure_logging(console=dependencies['ui'].console)
    dependencies['command_handler'] = CommandHandler(ui=dependencies['ui'])
    logger.debug("All dependencies initialized successfully.")
    return dependencies

_dependencies: Dict[str, Any] = create_dependencies()

# --- Typer App Definition ---
app = typer.Typer(
    name="nix-template",
    help="Instantiate a Nix file template, caching expensive helper results in a lock file.",
    epilog=AVAILABLE_FUNCTIONS_HELP,
    add_completion=False,
)

def _fail(message: str, error: BaseException) -> None:
    logger.error(f"{message}: {error}", exc_info=True)
    _dependencies['ui'].display_error(f"{message}: {error}")
    raise typer.Exit(code=1)

# --- CLI Commands ---

@app.command()
def render(
    template: Annotated[Optional[Path], typer.Argument(
        exists=True, file_okay=True, dir_okay=False, readable=True,
        help="The template to instantiate. If not specified, stdin is used.")] = None,
    variable: Annotated[Optional[List[str]], typer.Option(
        "--variable", "-v", help="Template variable as KEY=VALUE. Can be repeated.")] = None,
    lock_file: Annotated[Optional[Path], typer.Option(
        "--lock-file", "-l", dir_okay=False,
        help="Cache file. Defaults to <TEMPLATE>.lock, or cache.lock_file from the config when reading stdin.")] = None,
    no_lock: Annotated[bool, typer.Option(
        "--no-lock", help="Do not read or write a lock file.")] = False,
    update: Annotated[bool, typer.Option(
        "--update", "-u", help="Ignore cached values and recompute everything.")] = False,
    output: Annotated[Optional[Path], typer.Option(
        "--output", "-o", dir_okay=False, help="Write the result to a file instead of stdout.")] = None,
):
    """Render a template to stdout (or --output)."""
    try:
        variables = parse_variables(variable or [])
    except ValueError as e:
        raise typer.BadParameter(str(e), param_hint="--variable")

    if no_lock:
        lock_path = None
    else:
        lock_path = lock_file or default_lock_file(template) or get_default_lock_file()

    handler: CommandHandler = _dependencies['command_handler']
    ui: ConsoleDisplay = _dependencies['ui']
    try:
        source = template.read_text(encoding="utf-8") if template else sys.stdin.read()
        new_global_progress(ui.console)
        try:
            handler.handle_render(
                TemplateSource(source),
                variables=variables,
                lock_file=lock_path,
                update=update,
                output=output,
            )
        finally:
            delete_global_progress()
    except NixTemplateError as e:
        _fail("Rendering failed", e)
    except OSError as e:
        _fail("I/O error", e)

@app.command()
def functions():
    """List the helper functions available to templates."""
    handler: CommandHandler = _dependencies['command_handler']
    handler.handle_functions()

@app.callback()
def main_callback(
    verbose: Annotated[bool, typer.Option("--verbose", help="Enable debug logging.")] = False,
):
    """Utility to instantiate a nix file template."""
    if verbose:
        configure_logging(verbose=True, console=_dependencies['ui'].console)
        logger.debug("Verbose logging enabled.")

# --- Main Execution Guard ---

def cli_entry_point():
    """Function to be called by the script entry point in pyproject.toml."""
    app()

if __name__ == "__main__":
    cli_entry_point()
