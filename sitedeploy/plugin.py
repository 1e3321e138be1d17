import threading
from collections.abc import Callable
from typing import ClassVar, final

from sitedeploy.aws.cloudfront.manager import CloudFrontManager
from sitedeploy.aws.s3 import StorageManager
from sitedeploy.context import DeployContext
from sitedeploy.exceptions import NotFoundError

type Hook = Callable[[], str]

STATUS_FINISHED = "[sitedeploy] finished"


@final
class SiteDeployPlugin:
    """Storage and CDN steps attached to a lifecycle host.

    ``commands`` declares the commands this plugin adds and their lifecycle
    events. ``hooks`` maps ``[before:|after:]<command>:<event>`` names to
    callables. Every hook builds fresh managers from the context, so no state
    is shared between two invocations.
    """

    commands: ClassVar[dict[str, dict[str, list[str]]]] = {
        "storage:deploy": {"lifecycle_events": ["deploy"]},
        "storage:remove": {"lifecycle_events": ["remove"]},
        "cdn:deploy": {"lifecycle_events": ["deploy"]},
        "cdn:remove": {"lifecycle_events": ["remove"]},
    }

    def __init__(self, ctx: DeployContext, cancel_event: threading.Event | None = None) -> None:
        self._ctx = ctx
        self._cancel_event = cancel_event
        self.storage: StorageManager | None = None
        self.cdn: CloudFrontManager | None = None
        self.hooks: dict[str, Hook] = {
            "after:deploy:deploy": self._wrap(self.deploy_after),
            "before:remove:remove": self._wrap(self.remove_before),
            "storage:deploy:deploy": self._wrap(self.deploy_storage),
            "storage:remove:remove": self._wrap(self.remove_storage),
            "cdn:deploy:deploy": self._wrap(self.deploy_cdn),
            "cdn:remove:remove": self._wrap(self.remove_cdn),
        }

    def _wrap(self, func: Callable[[], str]) -> Hook:
        def hook() -> str:
            self._initialize_managers()
            return func()

        hook.__name__ = func.__name__
        return hook

    def _initialize_managers(self) -> None:
        self.storage = StorageManager(self._ctx)
        self.cdn = CloudFrontManager(self._ctx, cancel_event=self._cancel_event)

    def deploy_after(self) -> str:
        self._ctx.logger.info("[sitedeploy] start deploy for %s", self._ctx.basename)
        self.storage.deploy()
        self.cdn.deploy()
        return STATUS_FINISHED

    def remove_before(self) -> str:
        self._ctx.logger.info("[sitedeploy] start remove for %s", self._ctx.basename)
        try:
            self.cdn.remove()
        except NotFoundError as e:
            # Distribution or hosted zone already gone; the bucket is still torn down
            self._ctx.logger.warning("[sitedeploy] skipping CloudFront removal: %s", e)
        self.storage.remove()
        return STATUS_FINISHED

    def deploy_storage(self) -> str:
        directories = self.storage.deploy()
        return f"[sitedeploy] synced {len(directories)} directories to {self.storage.bucket_name}"

    def remove_storage(self) -> str:
        directories = self.storage.remove()
        bucket_name = self.storage.bucket_name
        return f"[sitedeploy] removed {len(directories)} directories from {bucket_name}"

    def deploy_cdn(self) -> str:
        domain_name = self.cdn.deploy()
        return f"[sitedeploy] {self._ctx.domain} -> {domain_name}"

    def remove_cdn(self) -> str:
        distribution_id = self.cdn.remove()
        return f"[sitedeploy] deleted distribution {distribution_id}"
