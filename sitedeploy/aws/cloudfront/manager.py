import logging
import threading
import time
from dataclasses import dataclass
from typing import final

from sitedeploy.aws.acm import CERTIFICATE_REGION, find_certificate_arn
from sitedeploy.aws.api_gateway import resolve_rest_api_id
from sitedeploy.aws.cloudfront.behaviors import (
    DEFAULT_FORWARDED_HEADERS,
    DEFAULT_METHODS,
    DEFAULT_S3_TTL,
    ProxyBehavior,
    S3Behavior,
)
from sitedeploy.aws.cloudfront.builder import DistributionConfigBuilder
from sitedeploy.aws.cloudfront.origins import ProxyOrigin, S3Origin
from sitedeploy.aws.errors import provider_errors
from sitedeploy.aws.route53 import change_alias_record, find_hosted_zone_id
from sitedeploy.aws.s3 import bucket_exists, service_bucket_name
from sitedeploy.context import DeployContext
from sitedeploy.exceptions import (
    NotFoundError,
    OperationCancelledError,
    PollTimeoutError,
    SiteDeployError,
)

logger = logging.getLogger(__name__)

DEPLOYED_STATUS = "Deployed"


@final
@dataclass(frozen=True)
class DistributionRef:
    id: str
    domain_name: str


@final
class CloudFrontManager:
    """Creates and tears down the distribution serving ``ctx.domain``.

    The distribution fronts the service's API Gateway stage (default behavior),
    the service bucket (``s3`` behaviors) and any extra endpoints (``proxy``
    behaviors). A Route 53 alias record points the domain at it.

    Deletion has to wait for CloudFront to finish disabling the distribution.
    That wait is bounded by ``ctx.config.poll`` and can be interrupted by setting
    ``cancel_event``.
    """

    def __init__(self, ctx: DeployContext, cancel_event: threading.Event | None = None) -> None:
        self._ctx = ctx
        self._cancel_event = cancel_event or threading.Event()
        session = ctx.session
        self._cloudformation = session.client("cloudformation")
        self._route53 = session.client("route53")
        self._acm = session.client("acm", region_name=CERTIFICATE_REGION)
        self._cloudfront = session.client("cloudfront")
        self._s3 = session.client("s3")

        self.rest_api_id: str | None = None
        self.bucket_name: str | None = None
        self.hosted_zone_id: str | None = None

    @property
    def api_gateway_endpoint(self) -> str:
        return (
            f"https://{self.rest_api_id}.execute-api.{self._ctx.region}.amazonaws.com/"
            f"{self._ctx.stage}"
        )

    def deploy(self) -> str:
        """Create the distribution and its alias record. Returns the CloudFront domain name."""
        logger.info("[CloudFront] start deploy")
        domain = self._ctx.domain
        self.rest_api_id = resolve_rest_api_id(self._ctx, self._cloudformation)
        self.bucket_name = service_bucket_name(self._ctx, self.rest_api_id)
        self.hosted_zone_id = find_hosted_zone_id(self._route53, domain)
        certificate_arn = find_certificate_arn(self._acm, domain)
        self._check_bucket()

        distribution = self._create_distribution(certificate_arn)
        change_alias_record(
            self._route53, "UPSERT", self.hosted_zone_id, domain, distribution.domain_name
        )
        logger.info("[CloudFront] deployed")
        return distribution.domain_name

    def remove(self) -> str:
        """Delete the alias record and the distribution. Returns the distribution id."""
        logger.info("[CloudFront] start remove")
        domain = self._ctx.domain
        self.hosted_zone_id = find_hosted_zone_id(self._route53, domain)
        distribution = self.find_distribution(domain)

        try:
            change_alias_record(
                self._route53, "DELETE", self.hosted_zone_id, domain, distribution.domain_name
            )
        except SiteDeployError as e:
            logger.warning("Could not delete alias record for %s: %s", domain, e)

        self._delete_distribution(distribution.id)
        logger.info("[CloudFront] removed")
        return distribution.id

    def find_distribution(self, domain: str) -> DistributionRef:
        """Return the distribution whose aliases contain ``domain``."""
        with provider_errors("cloudfront:ListDistributions"):
            paginator = self._cloudfront.get_paginator("list_distributions")
            for page in paginator.paginate():
                for item in page.get("DistributionList", {}).get("Items", []):
                    if domain in item.get("Aliases", {}).get("Items", []):
                        logger.info("Found distribution %s for '%s'", item["Id"], domain)
                        return DistributionRef(id=item["Id"], domain_name=item["DomainName"])

        raise NotFoundError(f"Not found distribution for '{domain}'")

    def _check_bucket(self) -> None:
        if not bucket_exists(self._s3, self.bucket_name):
            raise NotFoundError(f"Not found the static bucket '{self.bucket_name}'")

    def _create_origin_access_identity(self, caller_reference: str) -> str:
        with provider_errors("cloudfront:CreateCloudFrontOriginAccessIdentity"):
            response = self._cloudfront.create_cloud_front_origin_access_identity(
                CloudFrontOriginAccessIdentityConfig={
                    "CallerReference": caller_reference,
                    "Comment": f"Created by sitedeploy for '{self._ctx.domain}'",
                }
            )
        identity_id = response["CloudFrontOriginAccessIdentity"]["Id"]
        logger.info("Created origin access identity %s", identity_id)
        return identity_id

    def _config_builder(self, certificate_arn: str) -> DistributionConfigBuilder:
        config = self._ctx.config
        builder = DistributionConfigBuilder(
            domain=self._ctx.domain,
            certificate_arn=certificate_arn,
            logging_bucket=self.bucket_name if config.access_logs else None,
            logging_prefix=config.logging_prefix,
            price_class=config.price_class,
        )
        api_origin = builder.add_origin(ProxyOrigin.from_endpoint(self.api_gateway_endpoint))
        builder.add_behavior(ProxyBehavior(target_origin_id=api_origin.id))

        behaviors = config.normalized_behaviors
        # Every endpoint is parsed before the OAI is created
        proxy_origins = [
            ProxyOrigin.from_endpoint(b.endpoint) if b.type == "proxy" else None
            for b in behaviors
        ]
        s3_origin = None
        if any(b.type == "s3" for b in behaviors):
            identity_id = self._create_origin_access_identity(builder.id)
            s3_origin = builder.add_origin(
                S3Origin.from_endpoint(f"https://{self.bucket_name}.s3.amazonaws.com", identity_id)
            )

        for behavior, proxy_origin in zip(behaviors, proxy_origins, strict=True):
            if behavior.type == "s3":
                builder.add_behavior(
                    S3Behavior(
                        target_origin_id=s3_origin.id,
                        path_pattern=behavior.path_pattern,
                        ttl=DEFAULT_S3_TTL,
                    )
                )
            else:
                origin = builder.add_origin(proxy_origin)
                builder.add_behavior(
                    ProxyBehavior(
                        target_origin_id=origin.id,
                        path_pattern=behavior.path_pattern,
                        allowed_methods=tuple(behavior.methods or DEFAULT_METHODS),
                        forwarded_headers=tuple(behavior.headers or DEFAULT_FORWARDED_HEADERS),
                    )
                )
        return builder

    def _create_distribution(self, certificate_arn: str) -> DistributionRef:
        settings = self._config_builder(certificate_arn).build()
        with provider_errors("cloudfront:CreateDistribution"):
            response = self._cloudfront.create_distribution(**settings)
        distribution = response["Distribution"]
        logger.info(
            "Created distribution %s, DomainName: %s",
            distribution["Id"],
            distribution["DomainName"],
        )
        return DistributionRef(id=distribution["Id"], domain_name=distribution["DomainName"])

    def _delete_distribution(self, distribution_id: str) -> None:
        with provider_errors(f"cloudfront:GetDistribution {distribution_id}"):
            response = self._cloudfront.get_distribution(Id=distribution_id)
        distribution_config = response["Distribution"]["DistributionConfig"]
        if distribution_config["Enabled"]:
            logger.info("Disabling distribution %s", distribution_id)
            distribution_config["Enabled"] = False
            with provider_errors(f"cloudfront:UpdateDistribution {distribution_id}"):
                self._cloudfront.update_distribution(
                    Id=distribution_id,
                    IfMatch=response["ETag"],
                    DistributionConfig=distribution_config,
                )
        self._delete_when_disabled(distribution_id)

    def _delete_when_disabled(self, distribution_id: str) -> None:
        """Poll until the distribution is disabled and deployed, then delete it.

        The first check runs immediately. Between checks the loop waits
        ``poll.interval_seconds`` on the cancel event.
        """
        poll = self._ctx.config.poll
        deadline = None
        if poll.timeout_seconds is not None:
            deadline = time.monotonic() + poll.timeout_seconds

        status = None
        attempt = 0
        while attempt < poll.max_attempts:
            attempt += 1
            with provider_errors(f"cloudfront:GetDistribution {distribution_id}"):
                response = self._cloudfront.get_distribution(Id=distribution_id)
            distribution = response["Distribution"]
            status = distribution["Status"]
            enabled = distribution["DistributionConfig"]["Enabled"]
            logger.info(
                "Distribution %s: %s, enabled=%s (check %d/%d)",
                distribution_id,
                status,
                enabled,
                attempt,
                poll.max_attempts,
            )
            if not enabled and status == DEPLOYED_STATUS:
                with provider_errors(f"cloudfront:DeleteDistribution {distribution_id}"):
                    self._cloudfront.delete_distribution(
                        Id=distribution_id, IfMatch=response["ETag"]
                    )
                logger.info("Deleted distribution %s", distribution_id)
                return

            if attempt == poll.max_attempts:
                break
            wait_seconds = poll.interval_seconds
            if deadline is not None:
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    break
                wait_seconds = min(wait_seconds, remaining)
            if self._cancel_event.wait(wait_seconds):
                raise OperationCancelledError(
                    f"Cancelled while waiting for distribution '{distribution_id}' to be disabled"
                )

        raise PollTimeoutError(distribution_id, attempt, status)
