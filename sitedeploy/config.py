from dataclasses import dataclass, field
from typing import Literal, TypedDict

from sitedeploy.exceptions import ValidationError

CloudfrontPriceClass = Literal["PriceClass_100", "PriceClass_200", "PriceClass_All"]
BehaviorType = Literal["s3", "proxy"]

PRICE_CLASSES = ("PriceClass_100", "PriceClass_200", "PriceClass_All")
BEHAVIOR_TYPES = ("s3", "proxy")


class SyncConfigDict(TypedDict, total=False):
    type: str
    local_dir: str
    path: str


class BehaviorConfigDict(TypedDict, total=False):
    type: BehaviorType
    path: str
    endpoint: str
    methods: list[str]
    headers: list[str]


@dataclass(frozen=True, kw_only=True)
class AwsConfig:
    """AWS credentials and region selection.

    Both values are optional overrides. When not set, boto3 follows the standard
    AWS credential chain (environment variables, SSO, shared credentials file,
    instance or task roles) and region resolution (AWS_REGION, AWS_DEFAULT_REGION,
    profile region).
    """

    profile: str | None = None
    region: str | None = None


@dataclass(frozen=True, kw_only=True)
class SyncConfig:
    """One local directory mirrored into a bucket prefix.

    Only entries of type ``s3`` are synced; other types are ignored so the same
    list can be shared with other tools.
    """

    local_dir: str
    path: str
    type: str = "s3"

    def __post_init__(self) -> None:
        if not self.local_dir or not self.local_dir.strip():
            raise ValidationError("Sync local_dir cannot be empty")
        if not self.path.strip("/"):
            raise ValidationError(f"Sync path for '{self.local_dir}' cannot be empty")

    @property
    def prefix(self) -> str:
        return self.path.strip("/")


@dataclass(frozen=True, kw_only=True)
class BehaviorConfig:
    type: BehaviorType
    path: str
    endpoint: str | None = None
    methods: list[str] | None = None
    headers: list[str] | None = None

    def __post_init__(self) -> None:
        if self.type not in BEHAVIOR_TYPES:
            raise ValidationError(
                f"Invalid behavior type: {self.type}. Only 's3' and 'proxy' are supported."
            )
        if not self.path.strip("/"):
            raise ValidationError("Behavior path cannot be empty")
        if self.type == "proxy" and not self.endpoint:
            raise ValidationError(f"Proxy behavior for '{self.path}' requires an endpoint")
        if self.methods is not None and not self.methods:
            raise ValidationError(f"Method list for '{self.path}' cannot be empty")

    @property
    def path_pattern(self) -> str:
        return f"/{self.path.strip('/')}/*"


@dataclass(frozen=True, kw_only=True)
class PollConfig:
    """Bounds for the disable-then-delete wait on a distribution.

    Attributes:
        interval_seconds: Pause between two status checks.
        max_attempts: Number of status checks before giving up.
        timeout_seconds: Optional wall-clock limit across all attempts.
    """

    interval_seconds: float = 30.0
    max_attempts: int = 120
    timeout_seconds: float | None = None

    def __post_init__(self) -> None:
        if self.interval_seconds < 0:
            raise ValidationError("Poll interval cannot be negative")
        if self.max_attempts < 1:
            raise ValidationError("Poll max_attempts must be at least 1")
        if self.timeout_seconds is not None and self.timeout_seconds <= 0:
            raise ValidationError("Poll timeout must be positive")


@dataclass(frozen=True, kw_only=True)
class SiteDeployConfig:
    """Configuration returned by the ``@app.config`` function of a project.

    Attributes:
        domain: Custom domain served by the distribution. Required for CDN commands.
        aws: AWS credentials and region configuration.
        sync: Local directories to mirror into the service bucket.
        behaviors: Extra cache behaviors added next to the API Gateway default.
        stack_name: CloudFormation stack holding the REST API. Defaults to
            ``<service>-<stage>``.
        rest_api_id: Skip the CloudFormation lookup and use this REST API id.
        price_class: CloudFront price class.
        logging_prefix: Key prefix of CloudFront access logs in the service bucket.
        access_logs: Write CloudFront access logs to the service bucket.
        poll: Bounds for waiting on distribution state changes.
    """

    domain: str | None = None
    aws: AwsConfig = field(default_factory=AwsConfig)
    sync: list[SyncConfig | SyncConfigDict] = field(default_factory=list)
    behaviors: list[BehaviorConfig | BehaviorConfigDict] = field(default_factory=list)
    stack_name: str | None = None
    rest_api_id: str | None = None
    price_class: CloudfrontPriceClass = "PriceClass_200"
    logging_prefix: str = "cloudfront"
    access_logs: bool = True
    poll: PollConfig = field(default_factory=PollConfig)

    def __post_init__(self) -> None:
        if self.domain is not None and not self.domain.strip():
            raise ValidationError("Domain cannot be empty")
        if self.price_class not in PRICE_CLASSES:
            raise ValidationError(
                f"Invalid price class: {self.price_class}. "
                f"Supported values: {', '.join(PRICE_CLASSES)}"
            )
        # Fail on malformed entries at load time rather than halfway through a deploy
        _ = self.normalized_sync
        _ = self.normalized_behaviors

    @property
    def normalized_sync(self) -> list[SyncConfig]:
        return [_normalize(entry, SyncConfig, "sync") for entry in self.sync]

    @property
    def normalized_behaviors(self) -> list[BehaviorConfig]:
        return [_normalize(entry, BehaviorConfig, "behavior") for entry in self.behaviors]


def _normalize[T](entry: object, config_cls: type[T], label: str) -> T:
    if isinstance(entry, config_cls):
        return entry
    if isinstance(entry, dict):
        try:
            return config_cls(**entry)
        except TypeError as e:
            raise ValidationError(f"Invalid {label} entry {entry!r}: {e}", cause=e) from e
    raise ValidationError(
        f"{label.capitalize()} entry must be {config_cls.__name__} or dict, "
        f"got {type(entry).__name__}"
    )
