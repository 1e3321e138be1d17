import logging
import sys
import threading
from importlib import import_module
from pathlib import Path
from typing import Protocol, final

from sitedeploy.app import SiteDeployApp
from sitedeploy.context import DeployContext
from sitedeploy.exceptions import SiteDeployProjectError, ValidationError
from sitedeploy.plugin import Hook, SiteDeployPlugin
from sitedeploy.project import APP_FILE, get_project_root

logger = logging.getLogger(__name__)

# Commands owned by the host itself. The API stack is deployed by other tooling;
# these commands only exist so plugins can hook before/after them.
BUILTIN_COMMANDS: dict[str, dict[str, list[str]]] = {
    "deploy": {"lifecycle_events": ["deploy"]},
    "remove": {"lifecycle_events": ["remove"]},
}
HOOK_PHASES = ("before:", "", "after:")


class Plugin(Protocol):
    commands: dict[str, dict[str, list[str]]]
    hooks: dict[str, Hook]


@final
class LifecycleHost:
    """Runs the hooks of registered plugins for a command.

    For each lifecycle event of the command the host calls, in order, the
    ``before:<command>:<event>`` hooks, the ``<command>:<event>`` hooks and the
    ``after:<command>:<event>`` hooks. A failing hook stops the run.
    """

    def __init__(self, plugins: list[Plugin]) -> None:
        self.commands = dict(BUILTIN_COMMANDS)
        self._hooks: dict[str, list[Hook]] = {}
        for plugin in plugins:
            self.commands.update(plugin.commands)
            for name, hook in plugin.hooks.items():
                self._hooks.setdefault(name, []).append(hook)

    def hook_names(self, command: str) -> list[str]:
        if command not in self.commands:
            raise ValidationError(
                f"Unknown command '{command}'. Available: {', '.join(sorted(self.commands))}"
            )
        return [
            f"{phase}{command}:{event}"
            for event in self.commands[command]["lifecycle_events"]
            for phase in HOOK_PHASES
        ]

    def run(self, command: str) -> list[str]:
        """Run every hook of ``command``. Returns the status strings the hooks produced."""
        results = []
        for name in self.hook_names(command):
            for hook in self._hooks.get(name, []):
                logger.debug("Running hook %s", name)
                result = hook()
                if result:
                    results.append(result)
        return results


def load_context(stage: str) -> DeployContext:
    """Import the project's app file and build the deploy context for ``stage``."""
    logger.debug("CWD %s", Path.cwd())

    original_sys_path = list(sys.path)
    try:
        project_root = get_project_root()
    except ValueError as e:
        logger.exception("Failed to find sitedeploy project")
        raise SiteDeployProjectError(
            f"No sitedeploy project found. Run 'sitedeploy init' to create {APP_FILE}.",
            cause=e,
        ) from e

    logger.debug("PROJECT ROOT: %s", project_root)
    if str(project_root) not in sys.path:
        sys.path.insert(0, str(project_root))
    try:
        import_module(Path(APP_FILE).stem)
    finally:
        sys.path = original_sys_path

    app = SiteDeployApp.get_instance()
    logger.debug("Getting project configuration for stage: %s", stage)
    config = app.resolve_config(stage)
    return DeployContext(service=app.name, stage=stage, config=config, project_root=project_root)


def create_host(
    ctx: DeployContext, cancel_event: threading.Event | None = None
) -> LifecycleHost:
    return LifecycleHost([SiteDeployPlugin(ctx, cancel_event=cancel_event)])
