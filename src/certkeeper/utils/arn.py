"""
ACM certificate ARN parsing.

A certificate ARN has the shape:

    arn:<partition>:acm:<region>:<account-id>:certificate/<certificate-id>

where the account id is exactly twelve digits.
"""

from dataclasses import dataclass

from certkeeper.core.exceptions import ConfigurationError
from certkeeper.core.regions import resolve_region

CERTIFICATE_RESOURCE_PREFIX = "certificate/"


@dataclass(frozen=True)
class CertificateArn:
    """Components of an ACM certificate ARN."""

    arn: str
    partition: str
    region: str
    account_id: str
    certificate_id: str


def parse_certificate_arn(arn: str) -> CertificateArn:
    """
    Parse and validate an ACM certificate ARN.

    Args:
        arn: ARN string

    Returns:
        Parsed ARN with a canonical region

    Raises:
        ConfigurationError: If the ARN is malformed or its region is unknown
    """
    parts = arn.split(":")
    if (
        len(parts) != 6
        or parts[0] != "arn"
        or not parts[1]
        or parts[2] != "acm"
        or len(parts[4]) != 12
        or not parts[4].isdigit()
        or not parts[5].startswith(CERTIFICATE_RESOURCE_PREFIX)
        or len(parts[5]) == len(CERTIFICATE_RESOURCE_PREFIX)
    ):
        raise ConfigurationError(
            f"Invalid ACM certificate ARN: {arn}", field="CertificateArns", value=arn
        )

    try:
        region = resolve_region(parts[3])
    except ConfigurationError as e:
        raise ConfigurationError(
            f"Invalid ACM certificate ARN: {arn}", field="CertificateArns", value=arn
        ) from e

    return CertificateArn(
        arn=arn,
        partition=parts[1],
        region=region,
        account_id=parts[4],
        certificate_id=parts[5][len(CERTIFICATE_RESOURCE_PREFIX) :],
    )
