import sys
from unittest.mock import MagicMock, patch

import pytest

from sitedeploy.app import SiteDeployApp
from sitedeploy.config import AwsConfig, PollConfig, SiteDeployConfig
from sitedeploy.context import DeployContext
from sitedeploy.project import get_project_root

AWS_CLIENT_NAMES = ("cloudformation", "route53", "acm", "cloudfront", "s3")


@pytest.fixture(autouse=True)
def clean_app():
    SiteDeployApp.clear()
    get_project_root.cache_clear()
    sys.modules.pop("site_app", None)
    yield
    SiteDeployApp.clear()
    get_project_root.cache_clear()
    sys.modules.pop("site_app", None)


@pytest.fixture
def aws_clients():
    """One MagicMock per boto3 client name, served by a patched ``boto3.Session``."""
    clients = {name: MagicMock(name=name) for name in AWS_CLIENT_NAMES}
    session = MagicMock()
    session.region_name = "eu-west-1"
    session.client.side_effect = lambda name, **kwargs: clients[name]

    with patch("sitedeploy.context.boto3.Session", return_value=session) as mock_session_cls:
        clients["session"] = session
        clients["session_cls"] = mock_session_cls
        yield clients


@pytest.fixture
def make_ctx(tmp_path):
    def _make(**config_kwargs) -> DeployContext:
        config_kwargs.setdefault("domain", "app.example.com")
        config_kwargs.setdefault("aws", AwsConfig(region="eu-west-1"))
        config_kwargs.setdefault("poll", PollConfig(interval_seconds=0, max_attempts=5))
        return DeployContext(
            service="shop",
            stage="dev",
            config=SiteDeployConfig(**config_kwargs),
            project_root=tmp_path,
        )

    return _make


def paginate(client: MagicMock, *pages: dict) -> None:
    """Make every paginator of ``client`` yield ``pages``."""
    client.get_paginator.return_value.paginate.return_value = list(pages)
