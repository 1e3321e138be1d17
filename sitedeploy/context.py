import logging
from dataclasses import dataclass, field
from functools import cached_property
from pathlib import Path

import boto3

from sitedeploy.config import SiteDeployConfig
from sitedeploy.exceptions import ValidationError


@dataclass(frozen=True)
class DeployContext:
    """Everything a manager needs from the lifecycle host.

    Managers receive this object in their constructor instead of reaching into a
    global host instance. It is built once per lifecycle invocation.
    """

    service: str
    stage: str
    config: SiteDeployConfig
    project_root: Path
    logger: logging.Logger = field(default_factory=lambda: logging.getLogger("sitedeploy"))

    @property
    def basename(self) -> str:
        """``<service>-<stage>``, the default stack name and bucket name stem."""
        return f"{self.service}-{self.stage}"

    @cached_property
    def session(self) -> boto3.Session:
        return boto3.Session(
            profile_name=self.config.aws.profile, region_name=self.config.aws.region
        )

    @property
    def region(self) -> str:
        region = self.config.aws.region or self.session.region_name
        if not region:
            raise ValidationError(
                "No AWS region configured. Set AwsConfig(region=...) or AWS_REGION."
            )
        return region.strip()

    @property
    def domain(self) -> str:
        if not self.config.domain:
            raise ValidationError("A domain is required for CloudFront operations.")
        return self.config.domain
