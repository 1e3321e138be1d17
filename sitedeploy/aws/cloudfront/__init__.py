from .behaviors import ProxyBehavior, S3Behavior, build_behavior, is_default
from .builder import DistributionConfigBuilder
from .manager import CloudFrontManager
from .origins import ProxyOrigin, S3Origin, build_origin

__all__ = [
    "CloudFrontManager",
    "DistributionConfigBuilder",
    "ProxyBehavior",
    "ProxyOrigin",
    "S3Behavior",
    "S3Origin",
    "build_behavior",
    "build_origin",
    "is_default",
]
