"""
Region resolution for storage locations.

Maps S3 bucket location constraints and regions embedded in ARNs to
canonical AWS region names. Unknown tokens fail closed with a
ConfigurationError so that bad input is caught during validation and
never reaches a save.
"""

from functools import lru_cache

import botocore.session

from certkeeper.core.exceptions import ConfigurationError

# Services whose endpoint data defines the set of usable regions
REGION_SERVICES = ("acm", "s3", "ssm")

# GetBucketLocation returns no constraint for buckets in us-east-1
DEFAULT_LOCATION_REGION = "us-east-1"

# Legacy location constraints that predate region names
LEGACY_LOCATION_CONSTRAINTS = {
    "EU": "eu-west-1",
}


@lru_cache
def known_regions() -> frozenset[str]:
    """
    All regions known to botocore for the services certkeeper talks to.

    Covers every partition (aws, aws-cn, aws-us-gov, ...). Computed once.

    Returns:
        Set of region names
    """
    session = botocore.session.get_session()
    regions: set[str] = set()

    for partition in session.get_available_partitions():
        for service in REGION_SERVICES:
            regions.update(
                session.get_available_regions(service, partition_name=partition)
            )

    return frozenset(regions)


def resolve_region(name: str | None) -> str:
    """
    Resolve a region token to a canonical region name.

    Args:
        name: Region token, e.g. "us-west-2" (case-insensitive; surrounding
            whitespace is not accepted)

    Returns:
        Canonical region name

    Raises:
        ConfigurationError: If the token is not a known region
    """
    if not name:
        raise ConfigurationError(
            f"Invalid region: {name!r}", field="region", value=name
        )

    region = name.lower()
    if region not in known_regions():
        raise ConfigurationError(
            f"Invalid region: {name!r}", field="region", value=name
        )

    return region


def region_from_location_constraint(constraint: str | None) -> str:
    """
    Resolve an S3 LocationConstraint to a region.

    Args:
        constraint: LocationConstraint from GetBucketLocation (None or empty
            for us-east-1)

    Returns:
        Canonical region name

    Raises:
        ConfigurationError: If the constraint does not name a known region
    """
    if not constraint:
        return DEFAULT_LOCATION_REGION

    if constraint in LEGACY_LOCATION_CONSTRAINTS:
        return LEGACY_LOCATION_CONSTRAINTS[constraint]

    return resolve_region(constraint)


def region_from_arn(arn: str) -> str:
    """
    Resolve the region embedded in an ARN (fourth colon-delimited field).

    Args:
        arn: ARN such as arn:aws:acm:us-east-1:123456789012:certificate/abc

    Returns:
        Canonical region name

    Raises:
        ConfigurationError: If the ARN has no region field or it is unknown
    """
    parts = arn.split(":")
    if len(parts) < 4:
        raise ConfigurationError(f"Invalid ARN: {arn}", field="arn", value=arn)

    return resolve_region(parts[3])
