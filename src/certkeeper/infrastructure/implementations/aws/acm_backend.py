"""
AWS Certificate Manager (ACM) storage backend.

Imports the certificate into ACM. Renewals are reimported over existing
certificates instead of creating duplicates:

1. ForceNewImport: always import a new certificate.
2. CertificateArns: reimport over every listed certificate. The ARNs may
   belong to different regions; each reimport goes to its own region.
3. Otherwise: look for imported certificates with exactly the same domain
   names and reimport over all of them, or import a new certificate if none
   match.

Reimports run concurrently and each target reports its own result, so one
failing ARN never affects the others.
"""

from typing import Any

from certkeeper.core.exceptions import ConfigurationError, InternalError
from certkeeper.core.logging import logger
from certkeeper.core.regions import region_from_arn
from certkeeper.infrastructure.clients import AWSClientFactory
from certkeeper.infrastructure.concurrency import gather_outcomes, run_blocking
from certkeeper.infrastructure.implementations.aws.errors import AWS_ERRORS
from certkeeper.infrastructure.repositories.storage_backend import StorageBackend
from certkeeper.models.material import CertificateMaterial
from certkeeper.models.results import AcmStorageResult, StorageError, StorageResult
from certkeeper.models.storage import AcmStorage
from certkeeper.utils.arn import parse_certificate_arn

ACM_STATUS_ISSUED = "ISSUED"
ACM_STATUS_EXPIRED = "EXPIRED"
ACM_TYPE_IMPORTED = "IMPORTED"

# ListCertificates only returns RSA_2048 certificates unless key types are named
ACM_KEY_TYPES = [
    "RSA_1024",
    "RSA_2048",
    "RSA_3072",
    "RSA_4096",
    "EC_prime256v1",
    "EC_secp384r1",
    "EC_secp521r1",
]


class AWSAcmStorageBackend(StorageBackend[AcmStorage]):
    """ACM implementation of StorageBackend."""

    def __init__(self, clients: AWSClientFactory):
        """
        Initialize the ACM backend.

        Args:
            clients: Regional client factory. Listing and new imports use its
                default region; reimports use the region of each ARN.
        """
        self.clients = clients

    async def validate(self, config: AcmStorage) -> AcmStorage:
        """
        Validate an ACM configuration.

        Args:
            config: ACM configuration

        Returns:
            The configuration, unchanged

        Raises:
            ConfigurationError: If CertificateArns and ForceNewImport are both
                set, CertificateArns is empty, or any ARN is malformed
        """
        if config.certificate_arns is None:
            return config

        if config.force_new_import:
            raise ConfigurationError(
                "Cannot specify both CertificateArns and ForceNewImport",
                field="CertificateArns",
            )

        if not config.certificate_arns:
            raise ConfigurationError(
                "CertificateArns must not be empty", field="CertificateArns"
            )

        for arn in config.certificate_arns:
            parse_certificate_arn(arn)

        return config

    async def save_certificate(
        self, config: AcmStorage, material: CertificateMaterial
    ) -> list[StorageResult]:
        """
        Import or reimport the certificate into ACM.

        Args:
            config: Validated ACM configuration
            material: Certificate and its components (the full chain is not
                used; ACM assembles it)

        Returns:
            One result for a new import, or one result per reimported ARN
        """
        if config.force_new_import:
            return await self.import_new_certificate(material)

        if config.certificate_arns is not None:
            return await self.reimport_certificate(config.certificate_arns, material)

        try:
            existing_arns = await self.find_matching_certificates(
                list(material.domain_names)
            )
        except AWS_ERRORS as e:
            # An incomplete listing must never lead to a new import
            logger.error(
                f"Failed to list ACM certificates, import skipped because the "
                f"listing is incomplete: {e}"
            )
            return [
                StorageError(
                    message=f"Failed to list ACM certificates, import skipped: {e}"
                )
            ]

        if not existing_arns:
            return await self.import_new_certificate(material)

        return await self.reimport_certificate(existing_arns, material)

    async def find_matching_certificates(self, domain_names: list[str]) -> list[str]:
        """
        Find imported certificates that cover exactly the given domain names.

        Lists issued and expired certificates, keeps those whose primary
        domain matches, then describes each candidate concurrently to compare
        the full set of subject alternative names. Candidates that cannot be
        described are skipped.

        Args:
            domain_names: Requested domain names; the first is the primary

        Returns:
            ARNs of matching certificates (possibly empty)

        Raises:
            InternalError: If domain_names is empty
            ClientError, BotoCoreError: If listing certificates fails
        """
        if not domain_names:
            raise InternalError("Cannot match ACM certificates without domain names")

        acm = self.clients.client("acm")
        candidates = await run_blocking(self._list_candidates, acm, domain_names[0])
        if not candidates:
            return []

        outcomes = await gather_outcomes(
            (arn, run_blocking(acm.describe_certificate, CertificateArn=arn))
            for arn in candidates
        )

        wanted = sorted(domain_names)
        matches = []

        for arn, outcome in outcomes:
            if isinstance(outcome, AWS_ERRORS):
                logger.error(f"Failed to describe ACM certificate {arn}: {outcome}")
                continue
            if isinstance(outcome, Exception):
                raise outcome

            detail = outcome.get("Certificate")
            if not detail:
                continue
            if detail.get("Type") != ACM_TYPE_IMPORTED:
                logger.debug(f"Skipping {arn}: not an imported certificate")
                continue
            if sorted(detail.get("SubjectAlternativeNames") or []) != wanted:
                logger.debug(f"Skipping {arn}: domain names differ")
                continue

            matches.append(detail.get("CertificateArn") or arn)

        logger.info(
            f"Found {len(matches)} matching ACM certificate(s) for {domain_names[0]}"
        )
        return matches

    @staticmethod
    def _list_candidates(acm: Any, primary_domain: str) -> list[str]:
        """List ARNs of issued/expired certificates whose domain is primary_domain."""
        paginator = acm.get_paginator("list_certificates")
        candidates = []

        for page in paginator.paginate(
            CertificateStatuses=[ACM_STATUS_ISSUED, ACM_STATUS_EXPIRED],
            Includes={"keyTypes": ACM_KEY_TYPES},
        ):
            for summary in page.get("CertificateSummaryList", []):
                if summary.get("DomainName") == primary_domain:
                    arn = summary["CertificateArn"]
                    logger.info(f"Found existing certificate {arn}")
                    candidates.append(arn)

        return candidates

    @staticmethod
    def _import_request(material: CertificateMaterial) -> dict[str, bytes]:
        request = {
            "Certificate": material.certificate_pem.encode(),
            "PrivateKey": material.private_key_pem.encode(),
        }
        if material.chain_pem:
            request["CertificateChain"] = material.chain_pem.encode()
        return request

    async def import_new_certificate(
        self, material: CertificateMaterial
    ) -> list[StorageResult]:
        """
        Import the certificate as a new ACM certificate.

        Args:
            material: Certificate and its components

        Returns:
            A single AcmStorageResult, or a single StorageError
        """
        acm = self.clients.client("acm")

        try:
            response = await run_blocking(
                acm.import_certificate, **self._import_request(material)
            )
        except AWS_ERRORS as e:
            logger.error(f"Failed to import certificate: {e}")
            return [StorageError(message=f"Failed to import certificate: {e}")]

        certificate_arn = response.get("CertificateArn")
        if not certificate_arn:
            logger.error("Failed to import certificate: no CertificateArn returned")
            return [
                StorageError(
                    message="Failed to import certificate: no CertificateArn returned"
                )
            ]

        logger.info(f"Certificate imported as {certificate_arn}")
        return [AcmStorageResult(certificate_arn=certificate_arn)]

    async def reimport_certificate(
        self, existing_arns: list[str], material: CertificateMaterial
    ) -> list[StorageResult]:
        """
        Reimport the certificate over existing ACM certificates.

        Every ARN is reimported concurrently through a client for the ARN's
        own region.

        Args:
            existing_arns: ARNs to reimport over
            material: Certificate and its components

        Returns:
            One result per ARN, in the order of existing_arns; failures are
            StorageError entries naming the ARN

        Raises:
            InternalError: If an ARN has no resolvable region
        """
        try:
            regions = {arn: region_from_arn(arn) for arn in existing_arns}
        except ConfigurationError as e:
            raise InternalError(f"Unvalidated certificate ARN: {e}") from e

        request = self._import_request(material)
        outcomes = await gather_outcomes(
            (
                arn,
                run_blocking(
                    self.clients.client("acm", regions[arn]).import_certificate,
                    CertificateArn=arn,
                    **request,
                ),
            )
            for arn in existing_arns
        )

        results: list[StorageResult] = []
        n_failed = 0

        for arn, outcome in outcomes:
            if isinstance(outcome, AWS_ERRORS):
                n_failed += 1
                logger.error(f"Failed to reimport certificate {arn}: {outcome}")
                results.append(
                    StorageError(
                        message=f"Failed to reimport certificate {arn}: {outcome}"
                    )
                )
            elif isinstance(outcome, Exception):
                raise outcome
            else:
                certificate_arn = outcome.get("CertificateArn") or arn
                logger.info(f"Certificate reimported as {certificate_arn}")
                results.append(AcmStorageResult(certificate_arn=certificate_arn))

        logger.info(
            f"Reimported {len(existing_arns) - n_failed} of {len(existing_arns)} "
            f"ACM certificate(s)"
        )
        return results
