import logging
import os
from typing import NoReturn

from rich.console import Console
from rich.markup import escape

from sitedeploy.exceptions import SiteDeployError
from sitedeploy.lifecycle import create_host, load_context

logger = logging.getLogger(__name__)

console = Console()


def handle_error(error: SiteDeployError) -> NoReturn:
    logger.error("%s failed: %s", type(error).__name__, error.message, exc_info=error)
    if os.getenv("SITEDEPLOY_DEBUG", "0") == "1":
        raise error
    message = escape(error.message)
    console.print(f"\n[bold red]✗ {error.kind}[/bold red] {message}", highlight=False)
    raise SystemExit(1) from None


def print_operation_header(operation: str, app_name: str, stage: str) -> None:
    console.print(
        f"{operation} [bold]{escape(app_name)}[/bold] → [bold cyan]{escape(stage)}[/bold cyan]",
        highlight=False,
    )


def run_command(stage: str, command: str, operation: str) -> list[str]:
    """Load the project for ``stage`` and run ``command`` through the lifecycle host."""
    status = console.status("Loading app...")
    status.start()
    try:
        ctx = load_context(stage)
    except SiteDeployError as e:
        status.stop()
        handle_error(e)
    status.stop()

    print_operation_header(operation, ctx.service, stage)
    host = create_host(ctx)
    results = []
    with console.status(f"{operation}..."):
        try:
            results = host.run(command)
        except SiteDeployError as e:
            handle_error(e)

    for result in results:
        console.print(f"[green]✓[/green] {escape(result)}", highlight=False)
    return results


def run_deploy(stage: str) -> list[str]:
    return run_command(stage, "deploy", "Deploying")


def run_remove(stage: str) -> list[str]:
    return run_command(stage, "remove", "Removing")


def run_storage(stage: str, action: str) -> list[str]:
    operation = "Syncing storage for" if action == "deploy" else "Removing storage of"
    return run_command(stage, f"storage:{action}", operation)


def run_cdn(stage: str, action: str) -> list[str]:
    operation = "Deploying CDN for" if action == "deploy" else "Removing CDN of"
    return run_command(stage, f"cdn:{action}", operation)
