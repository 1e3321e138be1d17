import logging
from collections.abc import Callable
from typing import ClassVar, final

from sitedeploy.config import SiteDeployConfig
from sitedeploy.exceptions import ValidationError

logger = logging.getLogger(__name__)


type SiteDeployConfigFn = Callable[[str], SiteDeployConfig]


@final
class SiteDeployApp:
    _instance: ClassVar["SiteDeployApp | None"] = None

    def __init__(self, name: str):
        if SiteDeployApp._instance is not None:
            raise RuntimeError("SiteDeployApp has already been instantiated.")
        if not name or not name.strip():
            raise ValidationError("App name cannot be empty")

        self._name = name
        self._config_func: SiteDeployConfigFn | None = None
        SiteDeployApp._instance = self

    @property
    def name(self) -> str:
        return self._name

    @classmethod
    def get_instance(cls) -> "SiteDeployApp":
        if cls._instance is None:
            raise RuntimeError(
                "SiteDeployApp has not been instantiated. Ensure 'app = SiteDeployApp(...)' "
                "is called in your site_app.py."
            )
        return cls._instance

    @classmethod
    def clear(cls) -> None:
        """Forget the current app. Only used for testing and reloading."""
        cls._instance = None

    def config(self, func: SiteDeployConfigFn) -> SiteDeployConfigFn:
        if self._config_func:
            raise RuntimeError("Config function already registered.")
        self._config_func = func
        logger.debug("Config function '%s' registered for app '%s'.", func.__name__, self._name)
        return func

    def resolve_config(self, stage: str) -> SiteDeployConfig:
        if not self._config_func:
            raise RuntimeError("No @SiteDeployApp.config function defined.")
        app_config = self._config_func(stage)
        if app_config is None or not isinstance(app_config, SiteDeployConfig):
            raise ValidationError(
                "@app.config function must return an instance of SiteDeployConfig."
            )
        return app_config
