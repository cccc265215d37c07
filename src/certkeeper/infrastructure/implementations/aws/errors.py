"""Error classification shared by the AWS backends."""

from typing import TypeVar

from botocore.exceptions import BotoCoreError, ClientError
from loguru import logger

from certkeeper.core.exceptions import CertificateStorageError, StorageWriteError

K = TypeVar("K")
T = TypeVar("T")

# API errors (ClientError) and transport/credential errors (BotoCoreError)
AWS_ERRORS = (ClientError, BotoCoreError)

# Failures that are scoped to a single write target
OPERATIONAL_ERRORS = (ClientError, BotoCoreError, CertificateStorageError)


def require_all(
    outcomes: list[tuple[K, T | Exception]], description: str
) -> dict[K, T]:
    """
    Unpack outcomes of an all-or-nothing write set.

    Args:
        outcomes: (tag, result or exception) pairs from gather_outcomes
        description: What was being written, for the error message

    Returns:
        Results keyed by tag, when every write succeeded

    Raises:
        StorageWriteError: If any write failed; carries every failure
        Exception: Unexpected (non-operational) exceptions are re-raised
    """
    results: dict[K, T] = {}
    failures: dict[str, Exception] = {}

    for tag, outcome in outcomes:
        if isinstance(outcome, OPERATIONAL_ERRORS):
            failures[str(tag)] = outcome
        elif isinstance(outcome, Exception):
            raise outcome
        else:
            results[tag] = outcome

    if failures:
        details = "; ".join(f"{tag}: {error}" for tag, error in failures.items())
        logger.error(f"Failed to write {description}: {details}")
        raise StorageWriteError(f"Failed to write {description}: {details}", failures)

    return results
