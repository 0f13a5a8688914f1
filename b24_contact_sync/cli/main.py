"""
Command-line interface for b24_contact_sync.

Provides CLI commands for cleaning up Bitrix24 CRM contacts, inspecting a
saved snapshot offline and generating a configuration file.

Usage:
    # Show help
    b24-contact-sync --help

    # Preview the cleanup without writing anything back
    b24-contact-sync sync --dry-run

    # Run the cleanup
    b24-contact-sync sync

    # Re-check the last snapshot without touching the CRM
    b24-contact-sync normalize
"""

import sys
from pathlib import Path
from typing import Any, Optional

import click
from dotenv import load_dotenv

from b24_contact_sync import __version__
from b24_contact_sync.api.crm_api import DEFAULT_TIMEOUT, CrmAPI
from b24_contact_sync.config.generator import save_config_file
from b24_contact_sync.config.loader import (
    WEBHOOK_URL_ENV_VAR,
    ConfigError,
    ConfigLoader,
    validate_webhook_url,
)
from b24_contact_sync.storage.snapshot import (
    RAW_SNAPSHOT,
    SANITIZED_SNAPSHOT,
    SnapshotStore,
)
from b24_contact_sync.sync.engine import (
    DEFAULT_MAX_FETCH_RETRIES,
    DEFAULT_REQUEST_DELAY,
    SyncEngine,
    SyncError,
    normalize_contacts,
)
from b24_contact_sync.sync.names import (
    DEFAULT_NAME_SERVICE_TIMEOUT,
    HttpNameDecomposer,
    NameDecomposer,
)
from b24_contact_sync.sync.normalizer import ContactNormalizer
from b24_contact_sync.utils import (
    DEFAULT_CONFIG_DIR,
    resolve_cache_dir,
    resolve_config_dir,
)
from b24_contact_sync.utils.logging import cleanup_old_logs, get_logger, setup_logging
from b24_contact_sync.utils.normalization import DEFAULT_PHONE_REGION

# Default configuration file
DEFAULT_CONFIG_FILE = DEFAULT_CONFIG_DIR / "config.yaml"


def get_config_dir(config_dir: str | None) -> Path:
    """Get the configuration directory path."""
    return resolve_config_dir(config_dir)


def get_config_file(config_file: str | None, config_dir: Path) -> Path:
    """Get the configuration file path."""
    if config_file:
        return Path(config_file)
    return config_dir / "config.yaml"


def build_normalizer(config: dict[str, Any]) -> ContactNormalizer:
    """Create the ContactNormalizer described by the configuration."""
    decomposer: Optional[NameDecomposer] = None
    if config.get("name_service_url"):
        decomposer = HttpNameDecomposer(
            config["name_service_url"],
            timeout=config.get("name_service_timeout", DEFAULT_NAME_SERVICE_TIMEOUT),
        )

    region = config.get("phone_region", DEFAULT_PHONE_REGION).upper()
    return ContactNormalizer(decomposer=decomposer, phone_region=region)


def build_snapshot_store(config: dict[str, Any]) -> SnapshotStore:
    """Create the SnapshotStore for the configured cache directory."""
    return SnapshotStore(resolve_cache_dir(config.get("cache_dir")))


@click.group()
@click.version_option(version=__version__, prog_name="b24-contact-sync")
@click.option(
    "--verbose", "-v", is_flag=True, help="Enable verbose output with detailed logging."
)
@click.option(
    "--config-dir",
    "-c",
    type=click.Path(exists=False, file_okay=False, dir_okay=True),
    envvar="B24_CONTACT_SYNC_CONFIG_DIR",
    help="Configuration directory path (default: ~/.b24-contact-sync).",
)
@click.option(
    "--config-file",
    "-f",
    type=click.Path(exists=False, file_okay=True, dir_okay=False),
    envvar="B24_CONTACT_SYNC_CONFIG_FILE",
    help="Configuration file path (default: <config-dir>/config.yaml).",
)
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    config_dir: str | None,
    config_file: str | None,
) -> None:
    """
    Bitrix24 CRM contact cleanup.

    Pulls every contact from the CRM, repairs names, phone numbers and
    emails, removes duplicate phones and emails and writes back only the
    contacts that actually changed.
    """
    ctx.ensure_object(dict)

    # .env is read before subcommand options resolve B24_WEBHOOK_URL
    load_dotenv()

    resolved_config_dir = get_config_dir(config_dir)
    resolved_config_file = get_config_file(config_file, resolved_config_dir)

    ctx.obj["config_dir"] = resolved_config_dir
    ctx.obj["config_file"] = resolved_config_file

    config: dict[str, Any] = {}
    try:
        loader = ConfigLoader(config_dir=resolved_config_dir)
        config = loader.load_from_file(resolved_config_file)
        if config:
            loader.validate(config)
    except ConfigError as e:
        # The CLI still works from options and environment alone
        click.echo(
            click.style(f"Warning: Configuration error: {e}", fg="yellow"), err=True
        )
        config = {}

    ctx.obj["config"] = config

    # CLI flag takes precedence over config file
    effective_verbose = verbose or config.get("verbose", False)
    ctx.obj["verbose"] = effective_verbose

    log_dir = Path(config["log_dir"]) if config.get("log_dir") else None
    setup_logging(verbose=effective_verbose, log_dir=log_dir, enable_file_logging=True)

    log_retention = config.get("log_retention_count", 10)
    if log_retention > 0:
        cleanup_old_logs(log_dir=log_dir, keep_count=log_retention)


# =============================================================================
# Sync Command
# =============================================================================


@cli.command("sync")
@click.option(
    "--dry-run", "-n", is_flag=True, help="Preview changes without applying them."
)
@click.option(
    "--webhook-url",
    "-w",
    envvar=WEBHOOK_URL_ENV_VAR,
    help=f"CRM incoming webhook URL (default: ${WEBHOOK_URL_ENV_VAR}).",
)
@click.option(
    "--delay",
    type=click.FloatRange(min=0),
    default=None,
    help=f"Seconds to wait after each CRM request (default: {DEFAULT_REQUEST_DELAY}).",
)
@click.option(
    "--max-retries",
    type=click.IntRange(min=0),
    default=None,
    help=(
        "Retries of a failing page fetch before giving up, 0 for no limit "
        f"(default: {DEFAULT_MAX_FETCH_RETRIES})."
    ),
)
@click.pass_context
def sync_command(
    ctx: click.Context,
    dry_run: bool,
    webhook_url: str | None,
    delay: float | None,
    max_retries: int | None,
) -> None:
    """
    Clean up all CRM contacts and write back the changed ones.

    Contacts are fetched page by page. Every page is appended to the
    contacts_raw.json snapshot as received and to contacts.json once
    normalized. The changed contacts on it are updated before the next
    page is requested.

    Examples:

        # Preview changes without applying
        b24-contact-sync sync --dry-run

        # Slow down requests for a busy portal
        b24-contact-sync sync --delay 1.0
    """
    logger = get_logger(__name__)
    config = ctx.obj.get("config", {})

    effective_dry_run = dry_run or config.get("dry_run", False)
    effective_delay = (
        delay
        if delay is not None
        else config.get("request_delay", DEFAULT_REQUEST_DELAY)
    )
    effective_retries = (
        max_retries
        if max_retries is not None
        else config.get("max_fetch_retries", DEFAULT_MAX_FETCH_RETRIES)
    )

    # A missing webhook is fatal before any request is made
    try:
        resolved_url = validate_webhook_url(webhook_url or config.get("webhook_url"))
    except ConfigError as e:
        click.echo(click.style(f"Error: {e}", fg="red"), err=True)
        sys.exit(1)

    api = CrmAPI(resolved_url, timeout=config.get("request_timeout", DEFAULT_TIMEOUT))
    store = build_snapshot_store(config)
    engine = SyncEngine(
        api,
        normalizer=build_normalizer(config),
        snapshot_store=store,
        request_delay=effective_delay,
        max_fetch_retries=effective_retries,
        dry_run=effective_dry_run,
    )

    if effective_dry_run:
        click.echo(click.style("Dry run: no contact will be updated.", fg="cyan"))

    try:
        result = engine.run()
    except SyncError as e:
        logger.error(f"Sync aborted: {e}")
        click.echo(click.style(f"Sync aborted: {e}", fg="red"), err=True)
        sys.exit(1)

    click.echo()
    click.echo(result.summary())
    click.echo(f"\nSnapshots: {store.cache_dir}")

    if result.stats.update_errors:
        click.echo(
            click.style(
                f"{result.stats.update_errors} update(s) failed, see the log.",
                fg="yellow",
            ),
            err=True,
        )


# =============================================================================
# Normalize Command
# =============================================================================


@cli.command("normalize")
@click.option(
    "--input",
    "-i",
    "input_name",
    default=RAW_SNAPSHOT,
    show_default=True,
    help="Snapshot file in the cache directory to normalize.",
)
@click.pass_context
def normalize_command(ctx: click.Context, input_name: str) -> None:
    """
    Normalize a saved snapshot without contacting the CRM.

    Reads the contacts a sync saw, as the CRM returned them, from the cache
    directory. Runs the same cleanup as the sync command and writes the
    would-be updates to contacts_sanitized.json.

    Example:

        b24-contact-sync normalize --input contacts_raw.json
    """
    config = ctx.obj.get("config", {})
    store = build_snapshot_store(config)

    contacts = store.read_contacts(input_name)
    if not contacts:
        click.echo(
            click.style(
                f"No contacts found in {store.path_for(input_name)}", fg="yellow"
            ),
            err=True,
        )
        sys.exit(1)

    result = normalize_contacts(
        contacts, normalizer=build_normalizer(config), snapshot_store=store
    )

    click.echo(result.summary())
    click.echo(f"\nWould-be updates: {store.path_for(SANITIZED_SNAPSHOT)}")


# =============================================================================
# Init Config Command
# =============================================================================


@cli.command("init-config")
@click.option("--force", is_flag=True, help="Overwrite an existing config file.")
@click.pass_context
def init_config_command(ctx: click.Context, force: bool) -> None:
    """
    Generate a commented default configuration file.

    Example:

        b24-contact-sync init-config
    """
    config_file = ctx.obj["config_file"]

    success, error = save_config_file(config_file, overwrite=force)
    if not success:
        click.echo(click.style(f"Error: {error}", fg="red"), err=True)
        sys.exit(1)

    click.echo(click.style(f"Configuration file created: {config_file}", fg="green"))
