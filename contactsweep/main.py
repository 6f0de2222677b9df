"""Main entry point for the contactsweep application.

Sets up the Typer CLI application, performs dependency injection (Composition Root),
defines CLI commands, and delegates execution to the CommandHandler.
"""

import asyncio
import logging
import signal
from pathlib import Path
from typing import Any, Coroutine, Dict, List, Optional

import typer
from typing_extensions import Annotated

# --- Core Layer ---
from contactsweep.core.command_handler import CommandHandler
from contactsweep.core.services.fetch_service import ContactFetchService
from contactsweep.core.services.removal_service import ContactRemovalService
from contactsweep.core.services.selection import select_contacts

# --- Domain Layer ---
from contactsweep.domain.errors import ContactSweepError
from contactsweep.domain.interfaces.credentials import CredentialProvider
from contactsweep.domain.models.common import BulkResult, FilePath
from contactsweep.domain.models.contact import ContactRecord, DiscoveryState

# --- Infrastructure Layer ---
from contactsweep.infrastructure.auth.cookie_credentials import CookieCredentialProvider
from contactsweep.infrastructure.cli.display import ConsoleDisplay
from contactsweep.infrastructure.config.settings import (
    get_config,
    get_linkedin_cookie,
    get_list_timeout,
    get_rate_settings,
    get_remove_timeout,
    load_configuration,
)
from contactsweep.infrastructure.filesystem.contact_io import (
    SUPPORTED_SUFFIXES,
    load_contacts,
    save_contacts,
)
from contactsweep.infrastructure.filesystem.local_fs import LocalFileSystem
from contactsweep.infrastructure.monitoring.logger_setup import DEFAULT_LOG_FORMAT, setup_logging
from contactsweep.infrastructure.resilience.rate_limiter import RateLimiter
from contactsweep.infrastructure.transport.http_transport import HttpxTransport

logger = logging.getLogger(__name__)

# --- Dependency Injection Container (Manual) ---

def create_dependencies(
    cookie_file: Optional[Path] = None,
    log_level: Optional[str] = None,
    log_file: Optional[str] = None,
) -> Dict[str, Any]:
    """Creates and wires up all dependencies for the application.

    This acts as the Composition Root. Command-line options take precedence
    over configuration values.

    Raises:
        NotAuthenticatedError: If the cookie file cannot be parsed.
        OSError: If the cookie file cannot be read.
    """
    # 1. Load Configuration First
    load_configuration()
    level_name = str(log_level or get_config('logging.level', 'INFO')).upper()
    setup_logging(
        log_level=getattr(logging, level_name, logging.INFO),
        log_format=get_config('logging.format', DEFAULT_LOG_FORMAT),
        log_file=log_file or get_config('logging.file'),
    )
    logger.info("Initializing application dependencies...")

    dependencies: Dict[str, Any] = {}

    # 2. Infrastructure Adapters
    dependencies['ui'] = ConsoleDisplay()
    dependencies['file_system'] = LocalFileSystem()
    if cookie_file is not None:
        credentials: CredentialProvider = CookieCredentialProvider.from_file(cookie_file)
    else:
        credentials = CookieCredentialProvider(get_linkedin_cookie())
    dependencies['credentials'] = credentials
    dependencies['transport'] = HttpxTransport()
    dependencies['rate_limiter'] = RateLimiter(settings=get_rate_settings())

    # 3. Core Services (sharing one session memo)
    discovery_state = DiscoveryState()
    dependencies['discovery_state'] = discovery_state
    dependencies['fetch_service'] = ContactFetchService(
        transport=dependencies['transport'],
        credentials=credentials,
        discovery_state=discovery_state,
        list_timeout=get_list_timeout(),
    )
    dependencies['removal_service'] = ContactRemovalService(
        transport=dependencies['transport'],
        credentials=credentials,
        discovery_state=discovery_state,
        timeout=get_remove_timeout(),
    )

    # 4. Command Handler
    dependencies['command_handler'] = CommandHandler(
        credentials=credentials,
        fetch_service=dependencies['fetch_service'],
        removal_service=dependencies['removal_service'],
        rate_limiter=dependencies['rate_limiter'],
        discovery_state=discovery_state,
    )
    logger.info("All dependencies initialized successfully.")
    return dependencies

# --- Wired-up Dependencies ---
# Filled by the CLI callback once the global options are known.
_dependencies: Dict[str, Any] = {}

# --- Typer App Definition ---
app = typer.Typer(
    name="contactsweep",
    help="contactsweep: export and bulk-remove LinkedIn connections, gently.",
    add_completion=False,
)

# --- Helper for Running Async Commands ---
def run_async(coro: Coroutine[Any, Any, Any]) -> Any:
    """Runs an async command body from a sync Typer command."""
    try:
        return asyncio.run(coro)
    except Exception as e:
        logger.error(f"Error executing async command: {e}", exc_info=True)
        _dependencies['ui'].display_error(f"Command execution failed: {e}")
        raise typer.Exit(code=1)

# --- Async Command Bodies ---

async def _fetch(output: Path) -> int:
    handler: CommandHandler = _dependencies['command_handler']
    ui: ConsoleDisplay = _dependencies['ui']
    ui.start_fetch_progress()
    try:
        result = await handler.handle_fetch_all(ui.update_fetch_progress)
    finally:
        ui.stop_progress()
        await handler.aclose()

    if "error" in result:
        ui.display_error(result["error"])
        return 1
    records: List[ContactRecord] = result["records"]
    ui.display_contacts(records)
    await save_contacts(_dependencies['file_system'], FilePath(str(output)), records)
    ui.display_info(f"Saved {len(records)} contacts to {output}")
    return 0


async def _bulk_remove(records: List[ContactRecord]) -> int:
    handler: CommandHandler = _dependencies['command_handler']
    ui: ConsoleDisplay = _dependencies['ui']
    loop = asyncio.get_running_loop()
    try:
        # Ctrl-C asks the scheduler to stop at its next check point
        loop.add_signal_handler(signal.SIGINT, handler.handle_cancel)
        signal_installed = True
    except (NotImplementedError, RuntimeError):
        logger.debug("SIGINT handler not supported here; Ctrl-C will abort immediately.")
        signal_installed = False

    ui.start_removal_progress(len(records))
    try:
        result = await handler.handle_bulk_remove(records, ui.update_removal_progress)
    finally:
        ui.stop_progress()
        if signal_installed:
            loop.remove_signal_handler(signal.SIGINT)
        await handler.aclose()

    if not isinstance(result, BulkResult):
        ui.display_error(result["error"])
        return 1
    ui.display_bulk_summary(result)
    return 0

# --- CLI Commands ---

@app.command(name="check-auth")
def check_auth_command():
    """Checks whether LinkedIn session credentials are available."""
    handler: CommandHandler = _dependencies['command_handler']
    if handler.handle_check_auth()["authenticated"]:
        _dependencies['ui'].display_info("LinkedIn session credentials found.")
        return
    _dependencies['ui'].display_error(
        "Not logged into LinkedIn. Set CONTACTSWEEP_LINKEDIN_COOKIE or pass --cookie-file."
    )
    raise typer.Exit(code=1)


@app.command()
def fetch(
    output: Annotated[Path, typer.Option("--output", "-o", dir_okay=False, help="Where to save the contacts (.json or .csv).")],
):
    """Fetches all connections and saves them to a file."""
    if output.suffix.lower() not in SUPPORTED_SUFFIXES:
        raise typer.BadParameter("Output file must end in .json or .csv.", param_hint="--output")
    code = run_async(_fetch(output))
    if code:
        raise typer.Exit(code=code)


@app.command()
def remove(
    input_file: Annotated[Path, typer.Option("--input", "-i", exists=True, dir_okay=False, readable=True,
                                             help="Contacts exported by 'fetch' (.json or .csv).")],
    title: Annotated[Optional[str], typer.Option("--title", "-t", help="Select contacts whose headline contains this text.")] = None,
    keyword: Annotated[Optional[List[str]], typer.Option("--keyword", "-k", help="Select contacts mentioning any keyword (repeatable, or comma-separated).")] = None,
    keep: Annotated[bool, typer.Option("--keep", help="Keep the matching contacts and remove everyone else.")] = False,
    yes: Annotated[bool, typer.Option("--yes", "-y", help="Do not ask for confirmation.")] = False,
):
    """Removes the selected connections one at a time, with rate limiting."""
    ui: ConsoleDisplay = _dependencies['ui']
    records = run_async(load_contacts(_dependencies['file_system'], FilePath(str(input_file))))
    selected = select_contacts(records, title=title, keywords=keyword, keep=keep)
    if not selected:
        ui.display_warning("No contacts selected; nothing to remove.")
        return

    ui.display_contacts(selected)
    if not yes and not ui.confirm(
        f"Remove {len(selected)} of {len(records)} connections? This cannot be undone."
    ):
        ui.display_info("Aborted. No connections were removed.")
        return

    code = run_async(_bulk_remove(selected))
    if code:
        raise typer.Exit(code=code)


@app.callback()
def main_callback(
    cookie_file: Annotated[Optional[Path], typer.Option("--cookie-file", "-c", exists=True, dir_okay=False, readable=True,
                                                        help="File with the LinkedIn Cookie header or a JSON cookie export.")] = None,
    log_level: Annotated[Optional[str], typer.Option("--log-level", "-l", help="DEBUG, INFO, WARNING or ERROR.")] = None,
    log_file: Annotated[Optional[str], typer.Option("--log-file", help="Also write logs to this file.")] = None,
):
    """Export and bulk-remove LinkedIn connections through the Voyager API."""
    try:
        dependencies = create_dependencies(cookie_file=cookie_file, log_level=log_level, log_file=log_file)
    except (ContactSweepError, OSError) as e:
        logger.error(f"Fatal Error during application initialization: {e}", exc_info=True)
        ConsoleDisplay().display_error(f"Application Initialization Failed: {e}")
        raise typer.Exit(code=1)
    _dependencies.clear()
    _dependencies.update(dependencies)

# --- Main Execution Guard ---

def cli_entry_point():
    """Function to be called by the script entry point in pyproject.toml."""
    app()

if __name__ == "__main__":
    cli_entry_point()
