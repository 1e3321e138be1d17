from unittest.mock import MagicMock

import pytest
from botocore.exceptions import ClientError, NoCredentialsError

from sitedeploy.aws.api_gateway import REST_API_LOGICAL_ID, resolve_rest_api_id
from sitedeploy.exceptions import NotFoundError, ProviderError


def _stack_resource(physical_id):
    return {"StackResourceDetail": {"PhysicalResourceId": physical_id}}


def test_rest_api_id_from_stack(make_ctx):
    cloudformation = MagicMock()
    cloudformation.describe_stack_resource.return_value = _stack_resource("abc123")

    assert resolve_rest_api_id(make_ctx(), cloudformation) == "abc123"
    cloudformation.describe_stack_resource.assert_called_once_with(
        StackName="shop-dev", LogicalResourceId=REST_API_LOGICAL_ID
    )


def test_rest_api_id_uses_custom_stack_name(make_ctx):
    cloudformation = MagicMock()
    cloudformation.describe_stack_resource.return_value = _stack_resource("abc123")

    resolve_rest_api_id(make_ctx(stack_name="legacy-stack"), cloudformation)

    assert cloudformation.describe_stack_resource.call_args.kwargs["StackName"] == "legacy-stack"


def test_rest_api_id_override_skips_lookup(make_ctx):
    cloudformation = MagicMock()

    assert resolve_rest_api_id(make_ctx(rest_api_id="fixed42"), cloudformation) == "fixed42"
    cloudformation.describe_stack_resource.assert_not_called()


def test_missing_stack(make_ctx):
    cloudformation = MagicMock()
    error = ClientError(
        {"Error": {"Code": "ValidationError", "Message": "Stack does not exist"}},
        "DescribeStackResource",
    )
    cloudformation.describe_stack_resource.side_effect = error

    with pytest.raises(NotFoundError, match="stackName: shop-dev") as exc_info:
        resolve_rest_api_id(make_ctx(), cloudformation)
    assert exc_info.value.cause is error


def test_stack_without_rest_api(make_ctx):
    cloudformation = MagicMock()
    cloudformation.describe_stack_resource.return_value = _stack_resource(None)

    with pytest.raises(NotFoundError, match="No RestApiId associated"):
        resolve_rest_api_id(make_ctx(), cloudformation)


def test_stack_lookup_without_credentials(make_ctx):
    cloudformation = MagicMock()
    error = NoCredentialsError()
    cloudformation.describe_stack_resource.side_effect = error

    with pytest.raises(ProviderError, match="Unable to locate credentials") as exc_info:
        resolve_rest_api_id(make_ctx(), cloudformation)
    assert exc_info.value.cause is error
