import logging

from botocore.exceptions import BotoCoreError, ClientError

from sitedeploy.context import DeployContext
from sitedeploy.exceptions import NotFoundError, ProviderError

logger = logging.getLogger(__name__)

REST_API_LOGICAL_ID = "ApiGatewayRestApi"


def resolve_rest_api_id(ctx: DeployContext, cloudformation) -> str:
    """Return the REST API id of the service.

    Uses ``rest_api_id`` from the config when set, otherwise looks up the
    ``ApiGatewayRestApi`` resource of the service's CloudFormation stack.
    """
    if ctx.config.rest_api_id:
        logger.info("Found the RestApiId: %s", ctx.config.rest_api_id)
        return ctx.config.rest_api_id

    stack_name = ctx.config.stack_name or ctx.basename
    try:
        response = cloudformation.describe_stack_resource(
            StackName=stack_name, LogicalResourceId=REST_API_LOGICAL_ID
        )
    except ClientError as e:
        raise NotFoundError(
            f"Could not find CloudFormation resources for {ctx.service}, stackName: {stack_name}",
            cause=e,
        ) from e
    except BotoCoreError as e:
        raise ProviderError(
            f"[cloudformation:DescribeStackResource {stack_name}] {e}", cause=e
        ) from e

    rest_api_id = (response or {}).get("StackResourceDetail", {}).get("PhysicalResourceId")
    if not rest_api_id:
        raise NotFoundError(f"No RestApiId associated with CloudFormation stack {stack_name}")

    logger.info("Found the RestApiId: %s", rest_api_id)
    return rest_api_id
