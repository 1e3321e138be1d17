import logging

from sitedeploy.aws.errors import provider_errors
from sitedeploy.exceptions import NotFoundError

logger = logging.getLogger(__name__)

# CloudFront only accepts certificates issued in us-east-1
CERTIFICATE_REGION = "us-east-1"


def certificate_matches(certificate_domain: str, domain: str) -> bool:
    if certificate_domain.startswith("*."):
        parent = certificate_domain[2:]
        # A wildcard covers exactly one extra label
        return domain.endswith(f".{parent}") and "." not in domain[: -len(parent) - 1]
    return domain == certificate_domain or domain.endswith(f".{certificate_domain}")


def find_certificate_arn(acm, domain: str) -> str:
    """Return the ARN of the first issued certificate covering ``domain``."""
    with provider_errors("acm:ListCertificates"):
        paginator = acm.get_paginator("list_certificates")
        for page in paginator.paginate(CertificateStatuses=["ISSUED"]):
            for certificate in page.get("CertificateSummaryList", []):
                if certificate_matches(certificate["DomainName"], domain):
                    certificate_arn = certificate["CertificateArn"]
                    logger.info("Found the certificate for '%s': %s", domain, certificate_arn)
                    return certificate_arn

    raise NotFoundError(
        f"Not found the certificate for '{domain}' from ACM (region {CERTIFICATE_REGION})"
    )
