import logging
from typing import Literal

from sitedeploy.aws.errors import provider_errors
from sitedeploy.exceptions import NotFoundError, ValidationError

logger = logging.getLogger(__name__)

# Fixed hosted zone id AWS uses for every CloudFront alias target
CLOUDFRONT_HOSTED_ZONE_ID = "Z2FDTNDATAQYW2"
RECORD_ACTIONS = ("UPSERT", "DELETE")

type RecordAction = Literal["UPSERT", "DELETE"]


def zone_matches(zone_name: str, domain: str) -> bool:
    zone = zone_name.rstrip(".")
    return domain == zone or domain.endswith(f".{zone}")


def find_hosted_zone_id(route53, domain: str) -> str:
    """Return the id of the first hosted zone whose name is a suffix of ``domain``.

    Zones are checked in listing order, so when several zones match (for example
    ``example.com.`` and ``app.example.com.``) the first one listed wins, not
    necessarily the longest.
    """
    with provider_errors("route53:ListHostedZones"):
        paginator = route53.get_paginator("list_hosted_zones")
        for page in paginator.paginate():
            for zone in page.get("HostedZones", []):
                if zone_matches(zone["Name"], domain):
                    hosted_zone_id = zone["Id"].replace("/hostedzone/", "")
                    logger.info("Found the domain '%s', HostedZoneId: %s", domain, hosted_zone_id)
                    return hosted_zone_id

    raise NotFoundError(f"Not found the domain '{domain}' from Route53")


def change_alias_record(
    route53, action: RecordAction, hosted_zone_id: str, domain: str, target_domain: str
) -> str:
    """Create, update or delete the A alias record pointing ``domain`` at CloudFront."""
    if action not in RECORD_ACTIONS:
        raise ValidationError(f"Invalid action \"{action}\"")

    with provider_errors(f"route53:ChangeResourceRecordSets {action} {domain}"):
        route53.change_resource_record_sets(
            HostedZoneId=hosted_zone_id,
            ChangeBatch={
                "Comment": "Record managed by sitedeploy",
                "Changes": [
                    {
                        "Action": action,
                        "ResourceRecordSet": {
                            "Name": domain,
                            "Type": "A",
                            "AliasTarget": {
                                "DNSName": target_domain,
                                "EvaluateTargetHealth": False,
                                "HostedZoneId": CLOUDFRONT_HOSTED_ZONE_ID,
                            },
                        },
                    }
                ],
            },
        )
    logger.info("%s alias record %s -> %s", action, domain, target_domain)
    return domain
