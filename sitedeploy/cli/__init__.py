import getpass
import logging
import sys
from importlib import metadata
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path

import click
from appdirs import user_log_dir
from rich.console import Console
from rich.logging import RichHandler

from sitedeploy.cli.commands import handle_error, run_cdn, run_deploy, run_remove, run_storage
from sitedeploy.cli.init_command import create_site_app_file, get_site_app_path
from sitedeploy.exceptions import SiteDeployProjectError
from sitedeploy.project import APP_FILE, get_user_stage, normalize_stage, save_user_stage

APP_NAME = "sitedeploy"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
# Request-level tracing from the AWS SDK stays out of the log file
QUIET_LOGGERS = ("boto3", "botocore", "s3transfer", "urllib3")

console = Console()

app_logger = logging.getLogger(APP_NAME)
logger = logging.getLogger(__name__)


def _add_file_handler() -> Path:
    """Send every sitedeploy record to a daily rotated file in the user log dir."""
    log_dir = Path(user_log_dir(APP_NAME))
    log_dir.mkdir(parents=True, exist_ok=True)
    path = log_dir / f"{APP_NAME}.log"
    handler = TimedRotatingFileHandler(
        filename=str(path), when="D", interval=1, backupCount=7, encoding="utf-8"
    )
    handler.setLevel(logging.DEBUG)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    app_logger.setLevel(logging.DEBUG)
    app_logger.addHandler(handler)
    return path


log_file_path = _add_file_handler()
for _name in QUIET_LOGGERS:
    logging.getLogger(_name).setLevel(logging.WARNING)


@click.group(invoke_without_command=True)
@click.option(
    "--verbose", "-v", count=True, help="Increase verbosity. -v for INFO, -vv for DEBUG logs."
)
@click.option("--version", is_flag=True, help="Show sitedeploy version.")
@click.pass_context
def cli(ctx: click.Context, verbose: int, version: bool) -> None:
    if version:
        _version()

    if ctx.invoked_subcommand is None:
        console.print(ctx.get_help())
        ctx.exit(0)

    if verbose > 0:
        console_handler = RichHandler(
            console=console,
            show_time=False,
            show_level=True,
            markup=False,
            tracebacks_suppress=[click],
            rich_tracebacks=True,
        )
        if verbose == 1:
            console_handler.setLevel(logging.INFO)
            console.print("[italic blue]Console verbosity: INFO[/]")
        elif verbose >= 2:  # noqa: PLR2004
            console_handler.setLevel(logging.DEBUG)
            console.print("[italic green]Console verbosity: DEBUG[/]")

        console.print(f"[italic dim]Logs saved to: {log_file_path}[/]")
        app_logger.addHandler(console_handler)


@click.command()
def init() -> None:
    """
    Initialize a sitedeploy project in the current directory.
    Creates site_app.py with a configuration template.
    """
    site_app_path, app_exists = get_site_app_path()
    if app_exists:
        logger.info("%s exists", APP_FILE)
        console.print("[green]sitedeploy project already exists.")
        return

    logger.info("%s does not exist. Initializing sitedeploy project", APP_FILE)
    create_site_app_file(site_app_path)
    console.print(f"\n[bold green]✓[/bold green] Created {APP_FILE}")
    console.print(f"\nEdit {APP_FILE} to set your domain, sync directories and behaviors.")
    console.print(
        "By default, sitedeploy uses your AWS CLI configuration and environment variables."
    )


@click.command()
def version() -> None:
    """Shows version and exit."""
    _version()


@click.command()
@click.argument("stage", default=None, required=False)
def deploy(stage: str | None) -> None:
    """Syncs storage and creates the CloudFront distribution."""
    stage = determine_stage(stage)
    run_deploy(stage)


@click.command()
@click.argument("stage", default=None, required=False)
@click.option("--yes", "-y", is_flag=True, help="Skip confirmation prompts")
def remove(stage: str | None, yes: bool) -> None:
    """Deletes the CloudFront distribution, its DNS record and the service bucket."""
    stage = determine_stage(stage)
    if not yes:
        console.print(f"About to remove [bold red]{stage}[/bold red] stage.")
        if not click.confirm(f"Remove {stage}?"):
            console.print("Removal cancelled.")
            return
    run_remove(stage)


@click.group()
def storage() -> None:
    """Manage the service bucket only."""


@storage.command("deploy")
@click.argument("stage", default=None, required=False)
def storage_deploy(stage: str | None) -> None:
    """Create the bucket if needed and sync configured directories."""
    run_storage(determine_stage(stage), "deploy")


@storage.command("remove")
@click.argument("stage", default=None, required=False)
def storage_remove(stage: str | None) -> None:
    """Delete synced directories and the bucket."""
    run_storage(determine_stage(stage), "remove")


@click.group()
def cdn() -> None:
    """Manage the CloudFront distribution only."""


@cdn.command("deploy")
@click.argument("stage", default=None, required=False)
def cdn_deploy(stage: str | None) -> None:
    """Create the distribution and point the domain at it."""
    run_cdn(determine_stage(stage), "deploy")


@cdn.command("remove")
@click.argument("stage", default=None, required=False)
def cdn_remove(stage: str | None) -> None:
    """Delete the domain record, then disable and delete the distribution."""
    run_cdn(determine_stage(stage), "remove")


cli.add_command(version)
cli.add_command(init)
cli.add_command(deploy)
cli.add_command(remove)
cli.add_command(storage)
cli.add_command(cdn)


def determine_stage(stage: str | None) -> str:
    if stage:
        return stage

    try:
        user_stage = get_user_stage()
        if not user_stage:
            user_stage = normalize_stage(getpass.getuser())
            save_user_stage(user_stage)
    except ValueError as e:
        handle_error(
            SiteDeployProjectError(
                f"No sitedeploy project found. Run 'sitedeploy init' to create {APP_FILE}.",
                cause=e,
            )
        )
    return user_stage


def _version() -> None:
    sitedeploy_version = metadata.version("sitedeploy")
    console.print(f"sitedeploy version: {sitedeploy_version}", highlight=False)
    sys.exit(0)
