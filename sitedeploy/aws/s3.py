import logging
from typing import final

from sitedeploy.aws.api_gateway import resolve_rest_api_id
from sitedeploy.aws.errors import provider_errors
from sitedeploy.aws.sync import delete_prefix, upload_directory
from sitedeploy.context import DeployContext
from sitedeploy.exceptions import ProviderError, SiteDeployError

logger = logging.getLogger(__name__)

SYNC_TYPE = "s3"


def service_bucket_name(ctx: DeployContext, rest_api_id: str) -> str:
    return f"{ctx.basename}-{rest_api_id}"


def bucket_exists(s3, bucket_name: str) -> bool:
    with provider_errors("s3:ListBuckets"):
        response = s3.list_buckets()
    return any(bucket["Name"] == bucket_name for bucket in response.get("Buckets", []))


@final
class StorageManager:
    """Service bucket lifecycle: create, sync configured directories, delete."""

    def __init__(self, ctx: DeployContext) -> None:
        self._ctx = ctx
        self._cloudformation = ctx.session.client("cloudformation")
        self._s3 = ctx.session.client("s3")
        self.bucket_name: str | None = None

    def deploy(self) -> list[str]:
        """Create the service bucket if needed and sync directories. Returns synced prefixes."""
        logger.info("[Storage] start deploy")
        self._assign_variables()
        self._create_bucket_if_not_exists(self.bucket_name)
        directories = self._sync_bucket_contents()
        logger.info("[Storage] deployed")
        return directories

    def remove(self) -> list[str]:
        """Delete synced directories and the service bucket. Returns removed prefixes.

        A missing bucket is not an error. Deleting the bucket fails while other
        objects (for example CloudFront access logs) remain; that failure is
        logged and the bucket is left in place.
        """
        logger.info("[Storage] start remove")
        self._assign_variables()
        directories = self._remove_bucket_contents()
        logger.info("[Storage] removed")
        return directories

    def _assign_variables(self) -> None:
        rest_api_id = resolve_rest_api_id(self._ctx, self._cloudformation)
        self.bucket_name = service_bucket_name(self._ctx, rest_api_id)

    def _create_bucket_if_not_exists(self, bucket_name: str) -> str:
        if bucket_exists(self._s3, bucket_name):
            logger.info("Bucket %s already exists", bucket_name)
            return bucket_name

        region = self._ctx.region
        with provider_errors(f"s3:CreateBucket {bucket_name}"):
            if region == "us-east-1":
                self._s3.create_bucket(Bucket=bucket_name)
            else:
                self._s3.create_bucket(
                    Bucket=bucket_name,
                    CreateBucketConfiguration={"LocationConstraint": region},
                )
        logger.info("Created bucket %s in %s", bucket_name, region)
        return bucket_name

    def _sync_entries(self) -> list:
        return [s for s in self._ctx.config.normalized_sync if s.type == SYNC_TYPE]

    def _sync_bucket_contents(self) -> list[str]:
        directories = []
        logger.info("Syncing directories")
        for setting in self._sync_entries():
            logger.info("=> %s", setting.prefix)
            local_dir = self._ctx.project_root / setting.local_dir
            try:
                upload_directory(self._s3, self.bucket_name, local_dir, setting.prefix)
            except SiteDeployError as e:
                logger.error("Could not sync %s: %s", setting.local_dir, e)
            directories.append(setting.prefix)
        return directories

    def _remove_bucket_contents(self) -> list[str]:
        if not bucket_exists(self._s3, self.bucket_name):
            logger.warning("Not found static bucket: %s", self.bucket_name)
            return []

        directories = []
        logger.info("Removing directories")
        for setting in self._sync_entries():
            logger.info("=> %s", setting.prefix)
            try:
                delete_prefix(self._s3, self.bucket_name, setting.prefix)
            except SiteDeployError as e:
                logger.error("Could not remove %s: %s", setting.prefix, e)
            directories.append(setting.prefix)

        logger.info("Removing bucket %s", self.bucket_name)
        try:
            with provider_errors(f"s3:DeleteBucket {self.bucket_name}"):
                self._s3.delete_bucket(Bucket=self.bucket_name)
        except ProviderError as e:
            logger.warning("Could not remove bucket: %s", e)
        else:
            logger.info("=> removed")
        return directories
