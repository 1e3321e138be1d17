import uuid
from dataclasses import dataclass, field
from typing import Any, final

from sitedeploy.aws.cloudfront.behaviors import Behavior, build_behavior, is_default
from sitedeploy.aws.cloudfront.origins import Origin, build_origin
from sitedeploy.config import CloudfrontPriceClass
from sitedeploy.exceptions import ValidationError

DISTRIBUTION_COMMENT = "Managed by sitedeploy"
MINIMUM_PROTOCOL_VERSION = "TLSv1.1_2016"


@final
@dataclass(kw_only=True)
class DistributionConfigBuilder:
    """Collects origins and behaviors and renders a ``create_distribution`` payload.

    ``id`` doubles as the distribution caller reference. Exactly one behavior in
    ``behaviors`` must be the default one (no path pattern); ``build`` raises
    ``ValidationError`` otherwise.
    """

    domain: str
    certificate_arn: str
    logging_bucket: str | None = None
    logging_prefix: str = "cloudfront"
    price_class: CloudfrontPriceClass = "PriceClass_200"
    comment: str = DISTRIBUTION_COMMENT
    origins: list[Origin] = field(default_factory=list)
    behaviors: list[Behavior] = field(default_factory=list)
    id: str = field(default_factory=lambda: str(uuid.uuid4()))

    def add_origin(self, origin: Origin) -> Origin:
        self.origins.append(origin)
        return origin

    def add_behavior(self, behavior: Behavior) -> Behavior:
        self.behaviors.append(behavior)
        return behavior

    def _logging(self) -> dict[str, Any]:
        if self.logging_bucket is None:
            return {"Enabled": False, "IncludeCookies": False, "Bucket": "", "Prefix": ""}
        return {
            "Enabled": True,
            "IncludeCookies": False,
            "Bucket": f"{self.logging_bucket}.s3.amazonaws.com",
            "Prefix": self.logging_prefix,
        }

    def build(self) -> dict[str, Any]:
        defaults = [b for b in self.behaviors if is_default(b)]
        if len(defaults) != 1:
            raise ValidationError(
                f"Distribution for '{self.domain}' needs exactly one default behavior, "
                f"got {len(defaults)}"
            )
        cache_behaviors = [build_behavior(b) for b in self.behaviors if not is_default(b)]

        return {
            "DistributionConfig": {
                "Enabled": True,
                "CallerReference": self.id,
                "Comment": self.comment,
                "Origins": {
                    "Quantity": len(self.origins),
                    "Items": [build_origin(o) for o in self.origins],
                },
                "DefaultCacheBehavior": build_behavior(defaults[0]),
                "CacheBehaviors": {"Quantity": len(cache_behaviors), "Items": cache_behaviors},
                "Logging": self._logging(),
                "PriceClass": self.price_class,
                "Aliases": {"Quantity": 1, "Items": [self.domain]},
                "ViewerCertificate": {
                    "CertificateSource": "acm",
                    "ACMCertificateArn": self.certificate_arn,
                    "MinimumProtocolVersion": MINIMUM_PROTOCOL_VERSION,
                    "SSLSupportMethod": "sni-only",
                },
            }
        }
