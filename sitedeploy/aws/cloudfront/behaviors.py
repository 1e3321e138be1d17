from dataclasses import dataclass
from typing import Any, final

from sitedeploy.exceptions import ValidationError

DEFAULT_METHODS = ("GET", "HEAD")
DEFAULT_FORWARDED_HEADERS = ("Authorization", "Origin")
DEFAULT_S3_TTL = 3600

# Method sets CloudFront accepts for AllowedMethods
CLOUDFRONT_METHOD_SETS = (
    frozenset({"GET", "HEAD"}),
    frozenset({"GET", "HEAD", "OPTIONS"}),
    frozenset({"GET", "HEAD", "OPTIONS", "PUT", "PATCH", "POST", "DELETE"}),
)


@final
@dataclass(frozen=True, kw_only=True)
class ProxyBehavior:
    """Forwards cookies, query strings and selected headers; never caches."""

    target_origin_id: str
    path_pattern: str | None = None
    allowed_methods: tuple[str, ...] = DEFAULT_METHODS
    forwarded_headers: tuple[str, ...] = DEFAULT_FORWARDED_HEADERS

    def __post_init__(self) -> None:
        # Accept lists from config dicts
        object.__setattr__(self, "allowed_methods", tuple(self.allowed_methods))
        object.__setattr__(self, "forwarded_headers", tuple(self.forwarded_headers))
        if frozenset(self.allowed_methods) not in CLOUDFRONT_METHOD_SETS:
            allowed = " | ".join(",".join(sorted(s)) for s in CLOUDFRONT_METHOD_SETS)
            raise ValidationError(
                f"Unsupported method list {list(self.allowed_methods)} "
                f"for '{self.path_pattern or 'default'}'. Allowed sets: {allowed}"
            )


@final
@dataclass(frozen=True, kw_only=True)
class S3Behavior:
    """Serves bucket content with a fixed TTL and no cookie or query forwarding."""

    target_origin_id: str
    path_pattern: str | None = None
    ttl: int = DEFAULT_S3_TTL

    def __post_init__(self) -> None:
        if self.ttl < 0:
            raise ValidationError(f"TTL cannot be negative: {self.ttl}")


type Behavior = ProxyBehavior | S3Behavior


def is_default(behavior: Behavior) -> bool:
    return behavior.path_pattern is None


def _base_behavior(behavior: Behavior) -> dict[str, Any]:
    return {
        "TargetOriginId": behavior.target_origin_id,
        "ViewerProtocolPolicy": "redirect-to-https",
        "AllowedMethods": {
            "Quantity": 2,
            "Items": ["GET", "HEAD"],
            "CachedMethods": {"Quantity": 2, "Items": ["GET", "HEAD"]},
        },
        "ForwardedValues": {
            "Headers": {"Quantity": 0},
            "Cookies": {"Forward": "all"},
            "QueryString": True,
        },
        "MinTTL": 0,
        "MaxTTL": 0,
        "DefaultTTL": 0,
        "SmoothStreaming": False,
        "TrustedSigners": {"Enabled": False, "Quantity": 0},
        "Compress": False,
    }


def build_behavior(behavior: Behavior) -> dict[str, Any]:
    """Serialize a behavior into ``DefaultCacheBehavior`` or a ``CacheBehaviors`` item."""
    match behavior:
        case ProxyBehavior(allowed_methods=methods, forwarded_headers=headers):
            config = _base_behavior(behavior)
            config["AllowedMethods"]["Quantity"] = len(methods)
            config["AllowedMethods"]["Items"] = list(methods)
            config["ForwardedValues"]["Headers"] = {
                "Quantity": len(headers),
                "Items": list(headers),
            }
        case S3Behavior(ttl=ttl):
            config = _base_behavior(behavior)
            config["ForwardedValues"]["Cookies"]["Forward"] = "none"
            config["ForwardedValues"]["QueryString"] = False
            config["MinTTL"] = ttl
            config["MaxTTL"] = ttl
            config["DefaultTTL"] = ttl
        case _:
            raise TypeError(f"Unsupported behavior: {type(behavior).__name__}")

    if not is_default(behavior):
        config["PathPattern"] = behavior.path_pattern
    return config
