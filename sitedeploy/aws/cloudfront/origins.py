import uuid
from dataclasses import dataclass, field
from typing import Any, Literal, Self, final
from urllib.parse import urlparse

from sitedeploy.exceptions import ValidationError

type OriginProtocol = Literal["http", "https"]

ORIGIN_SSL_PROTOCOLS = ["TLSv1", "TLSv1.1", "TLSv1.2"]
ORIGIN_ACCESS_IDENTITY_PREFIX = "origin-access-identity/cloudfront/"


def _new_id() -> str:
    return str(uuid.uuid4())


def parse_endpoint(endpoint: str) -> tuple[OriginProtocol, str, str]:
    """Split an endpoint URL into ``(protocol, host, path)``.

    A root path (``""`` or ``"/"``) becomes ``""`` so CloudFront does not get a
    trailing slash as origin path.
    """
    try:
        parsed = urlparse(endpoint)
        hostname = parsed.hostname
        parsed.port  # noqa: B018 - raises on a non-numeric or out of range port
    except ValueError as e:
        raise ValidationError(f"Malformed origin endpoint {endpoint!r}: {e}", cause=e) from e
    if parsed.scheme not in ("http", "https"):
        raise ValidationError(f"Origin endpoint must use http or https: {endpoint!r}")
    if not hostname:
        raise ValidationError(f"Origin endpoint has no host: {endpoint!r}")
    path = "" if parsed.path in ("", "/") else parsed.path
    return parsed.scheme, hostname, path


@final
@dataclass(frozen=True, kw_only=True)
class ProxyOrigin:
    """Custom origin forwarding to an arbitrary HTTP(S) endpoint."""

    protocol: OriginProtocol
    host: str
    path: str = ""
    id: str = field(default_factory=_new_id)

    @classmethod
    def from_endpoint(cls, endpoint: str) -> Self:
        protocol, host, path = parse_endpoint(endpoint)
        return cls(protocol=protocol, host=host, path=path)


@final
@dataclass(frozen=True, kw_only=True)
class S3Origin:
    """Bucket origin readable only through an origin access identity."""

    protocol: OriginProtocol
    host: str
    access_identity: str
    path: str = ""
    id: str = field(default_factory=_new_id)

    @classmethod
    def from_endpoint(cls, endpoint: str, access_identity: str) -> Self:
        protocol, host, path = parse_endpoint(endpoint)
        return cls(protocol=protocol, host=host, path=path, access_identity=access_identity)


type Origin = ProxyOrigin | S3Origin


def _custom_origin_config(protocol: OriginProtocol) -> dict[str, Any]:
    if protocol == "http":
        return {"HTTPPort": 80, "OriginProtocolPolicy": "http-only"}
    return {
        "HTTPPort": 80,
        "HTTPSPort": 443,
        "OriginProtocolPolicy": "https-only",
        "OriginSslProtocols": {
            "Quantity": len(ORIGIN_SSL_PROTOCOLS),
            "Items": list(ORIGIN_SSL_PROTOCOLS),
        },
    }


def build_origin(origin: Origin) -> dict[str, Any]:
    """Serialize an origin into a CloudFront ``Origins.Items`` entry."""
    match origin:
        case ProxyOrigin(protocol=protocol):
            origin_config = {"CustomOriginConfig": _custom_origin_config(protocol)}
        case S3Origin(access_identity=access_identity):
            origin_config = {
                "S3OriginConfig": {
                    "OriginAccessIdentity": f"{ORIGIN_ACCESS_IDENTITY_PREFIX}{access_identity}"
                }
            }
        case _:
            raise TypeError(f"Unsupported origin: {type(origin).__name__}")
    return {
        "Id": origin.id,
        "DomainName": origin.host,
        "OriginPath": origin.path,
        **origin_config,
    }
