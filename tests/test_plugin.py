import threading
from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import pytest

from sitedeploy.exceptions import NotFoundError, PollTimeoutError
from sitedeploy.plugin import STATUS_FINISHED, SiteDeployPlugin


@pytest.fixture
def managers():
    parent = MagicMock()
    with (
        patch("sitedeploy.plugin.StorageManager", return_value=parent.storage) as storage_cls,
        patch("sitedeploy.plugin.CloudFrontManager", return_value=parent.cdn) as cdn_cls,
    ):
        parent.storage.deploy.return_value = ["_nuxt", "assets"]
        parent.storage.remove.return_value = ["_nuxt"]
        parent.storage.bucket_name = "shop-dev-abc123"
        parent.cdn.deploy.return_value = "d111.cloudfront.net"
        parent.cdn.remove.return_value = "E1"
        yield SimpleNamespace(
            calls=parent,
            storage=parent.storage,
            cdn=parent.cdn,
            storage_cls=storage_cls,
            cdn_cls=cdn_cls,
        )


def test_declared_commands_and_hooks(make_ctx):
    plugin = SiteDeployPlugin(make_ctx())

    assert set(plugin.commands) == {"storage:deploy", "storage:remove", "cdn:deploy", "cdn:remove"}
    assert set(plugin.hooks) == {
        "after:deploy:deploy",
        "before:remove:remove",
        "storage:deploy:deploy",
        "storage:remove:remove",
        "cdn:deploy:deploy",
        "cdn:remove:remove",
    }


def test_deploy_runs_storage_then_cdn(make_ctx, managers):
    plugin = SiteDeployPlugin(make_ctx())

    assert plugin.hooks["after:deploy:deploy"]() == STATUS_FINISHED
    assert [c[0] for c in managers.calls.method_calls] == ["storage.deploy", "cdn.deploy"]


def test_remove_runs_cdn_then_storage(make_ctx, managers):
    plugin = SiteDeployPlugin(make_ctx())

    assert plugin.hooks["before:remove:remove"]() == STATUS_FINISHED
    assert [c[0] for c in managers.calls.method_calls] == ["cdn.remove", "storage.remove"]


@pytest.mark.parametrize(
    ("hook", "called", "status"),
    [
        ("storage:deploy:deploy", "storage.deploy", "synced 2 directories to shop-dev-abc123"),
        ("storage:remove:remove", "storage.remove", "removed 1 directories from shop-dev-abc123"),
        ("cdn:deploy:deploy", "cdn.deploy", "app.example.com -> d111.cloudfront.net"),
        ("cdn:remove:remove", "cdn.remove", "deleted distribution E1"),
    ],
)
def test_single_step_hooks(make_ctx, managers, hook, called, status):
    plugin = SiteDeployPlugin(make_ctx())

    result = plugin.hooks[hook]()

    assert [c[0] for c in managers.calls.method_calls] == [called]
    assert result == f"[sitedeploy] {status}"


def test_managers_are_rebuilt_per_hook(make_ctx, managers):
    ctx = make_ctx()
    event = threading.Event()
    plugin = SiteDeployPlugin(ctx, cancel_event=event)

    plugin.hooks["storage:deploy:deploy"]()
    plugin.hooks["cdn:deploy:deploy"]()

    assert managers.storage_cls.call_count == 2
    managers.storage_cls.assert_called_with(ctx)
    managers.cdn_cls.assert_called_with(ctx, cancel_event=event)


def test_hook_errors_propagate(make_ctx, managers):
    managers.storage.deploy.side_effect = NotFoundError("Could not find CloudFormation resources")
    plugin = SiteDeployPlugin(make_ctx())

    with pytest.raises(NotFoundError):
        plugin.hooks["after:deploy:deploy"]()
    managers.cdn.deploy.assert_not_called()


def test_hooks_log_through_context_logger(make_ctx, managers, caplog):
    ctx = make_ctx()
    plugin = SiteDeployPlugin(ctx)

    with caplog.at_level("INFO", logger="sitedeploy"):
        plugin.hooks["after:deploy:deploy"]()

    assert "[sitedeploy] start deploy for shop-dev" in caplog.text


def test_remove_tears_down_storage_when_distribution_is_gone(make_ctx, managers, caplog):
    managers.cdn.remove.side_effect = NotFoundError("Not found distribution for 'app.example.com'")
    plugin = SiteDeployPlugin(make_ctx())

    assert plugin.hooks["before:remove:remove"]() == STATUS_FINISHED
    managers.storage.remove.assert_called_once_with()
    assert "skipping CloudFront removal" in caplog.text


def test_remove_stops_on_other_cdn_errors(make_ctx, managers):
    managers.cdn.remove.side_effect = PollTimeoutError("E1", 5, "InProgress")
    plugin = SiteDeployPlugin(make_ctx())

    with pytest.raises(PollTimeoutError):
        plugin.hooks["before:remove:remove"]()
    managers.storage.remove.assert_not_called()


def test_single_cdn_remove_still_reports_missing_distribution(make_ctx, managers):
    managers.cdn.remove.side_effect = NotFoundError("Not found distribution")
    plugin = SiteDeployPlugin(make_ctx())

    with pytest.raises(NotFoundError):
        plugin.hooks["cdn:remove:remove"]()
