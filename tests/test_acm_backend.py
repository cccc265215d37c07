"""
Unit tests for the ACM storage backend.

Tests use MagicMock boto3 clients handed out per (service, region) by a
fake client factory, so no AWS credentials are required.
"""

import pytest
from botocore.exceptions import EndpointConnectionError
from loguru import logger

from certkeeper.core.exceptions import ConfigurationError, InternalError
from certkeeper.infrastructure.implementations.aws import AWSAcmStorageBackend
from certkeeper.infrastructure.implementations.aws.acm_backend import (
    ACM_STATUS_EXPIRED,
    ACM_STATUS_ISSUED,
)
from certkeeper.models.results import AcmStorageResult, StorageError
from certkeeper.models.storage import AcmStorage

ARN_US_EAST_1 = "arn:aws:acm:us-east-1:123456789012:certificate/abc"
ARN_EU_WEST_1 = "arn:aws:acm:eu-west-1:123456789012:certificate/def"
ARN_AP_SOUTHEAST_2 = "arn:aws:acm:ap-southeast-2:123456789012:certificate/ghi"


def summary(arn: str, domain: str) -> dict:
    return {"CertificateArn": arn, "DomainName": domain}


def detail(arn: str, names: list[str], cert_type: str = "IMPORTED") -> dict:
    return {
        "Certificate": {
            "CertificateArn": arn,
            "DomainName": names[0],
            "SubjectAlternativeNames": names,
            "Type": cert_type,
        }
    }


@pytest.fixture
def backend(clients):
    return AWSAcmStorageBackend(clients)


# ===========================
# Validation
# ===========================


class TestValidate:
    """Tests for ACM configuration validation."""

    @pytest.mark.asyncio
    async def test_defaults_are_valid(self, backend):
        """Test that a default ACM configuration passes validation unchanged."""
        config = AcmStorage()

        assert await backend.validate(config) is config

    @pytest.mark.asyncio
    async def test_force_new_import_alone_is_valid(self, backend):
        """Test that ForceNewImport without ARNs is valid."""
        config = AcmStorage(force_new_import=True)

        assert await backend.validate(config) is config

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "arns", [[ARN_US_EAST_1], [ARN_US_EAST_1, ARN_EU_WEST_1], [], ["garbage"]]
    )
    async def test_arns_with_force_new_import_rejected(self, backend, arns):
        """Test that ARNs and ForceNewImport together are rejected."""
        config = AcmStorage(certificate_arns=arns, force_new_import=True)

        with pytest.raises(ConfigurationError, match="Cannot specify both"):
            await backend.validate(config)

    @pytest.mark.asyncio
    async def test_arns_across_regions_are_valid(self, backend):
        """Test that ARNs from different regions are accepted."""
        config = AcmStorage(certificate_arns=[ARN_US_EAST_1, ARN_AP_SOUTHEAST_2])

        assert await backend.validate(config) is config

    @pytest.mark.asyncio
    async def test_empty_arn_list_rejected(self, backend):
        """Test that an empty CertificateArns list is rejected."""
        with pytest.raises(ConfigurationError, match="must not be empty"):
            await backend.validate(AcmStorage(certificate_arns=[]))

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "bad_arn",
        [
            "arn:aws:acm:mars-north-1:123456789012:certificate/abc",
            "arn:aws:acm:us-east-1:12345:certificate/abc",
            "arn:aws:s3:us-east-1:123456789012:certificate/abc",
            "arn:aws:acm: us-east-1 :123456789012:certificate/abc",
            "arn:aws:acm:us-east-1:123456789012:key/abc",
        ],
    )
    async def test_one_bad_arn_fails_whole_config(self, backend, bad_arn):
        """Test that one malformed ARN rejects the whole configuration."""
        config = AcmStorage(certificate_arns=[ARN_US_EAST_1, bad_arn])

        with pytest.raises(ConfigurationError) as exc_info:
            await backend.validate(config)

        assert bad_arn in str(exc_info.value)


# ===========================
# Matching
# ===========================


class TestFindMatchingCertificates:
    """Tests for discovering existing certificates to reimport over."""

    @pytest.mark.asyncio
    async def test_lists_issued_and_expired_across_pages(self, backend, clients):
        """Test listing issued and expired certificates over several pages."""
        acm = clients.client("acm")
        acm.get_paginator.return_value.paginate.return_value = [
            {"CertificateSummaryList": [summary(ARN_US_EAST_1, "example.com")]},
            {"CertificateSummaryList": [summary(ARN_EU_WEST_1, "other.com")]},
        ]
        acm.describe_certificate.return_value = detail(
            ARN_US_EAST_1, ["example.com", "www.example.com"]
        )

        matches = await backend.find_matching_certificates(
            ["example.com", "www.example.com"]
        )

        assert matches == [ARN_US_EAST_1]
        acm.get_paginator.assert_called_once_with("list_certificates")
        paginate_kwargs = acm.get_paginator.return_value.paginate.call_args[1]
        assert paginate_kwargs["CertificateStatuses"] == [
            ACM_STATUS_ISSUED,
            ACM_STATUS_EXPIRED,
        ]
        # Only the candidate with the same primary domain is described
        acm.describe_certificate.assert_called_once_with(CertificateArn=ARN_US_EAST_1)

    @pytest.mark.asyncio
    async def test_alternative_names_compared_as_sorted_sets(self, backend, clients):
        """Test that alternative names match regardless of order."""
        acm = clients.client("acm")
        acm.get_paginator.return_value.paginate.return_value = [
            {"CertificateSummaryList": [summary(ARN_US_EAST_1, "example.com")]}
        ]
        acm.describe_certificate.return_value = detail(
            ARN_US_EAST_1, ["www.example.com", "example.com"]
        )

        matches = await backend.find_matching_certificates(
            ["example.com", "www.example.com"]
        )

        assert matches == [ARN_US_EAST_1]

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "names",
        [
            ["example.com"],
            ["example.com", "www.example.com", "api.example.com"],
        ],
    )
    async def test_subset_or_superset_is_not_a_match(self, backend, clients, names):
        """Test that a different set of names is not a match."""
        acm = clients.client("acm")
        acm.get_paginator.return_value.paginate.return_value = [
            {"CertificateSummaryList": [summary(ARN_US_EAST_1, "example.com")]}
        ]
        acm.describe_certificate.return_value = detail(ARN_US_EAST_1, names)

        matches = await backend.find_matching_certificates(
            ["example.com", "www.example.com"]
        )

        assert matches == []

    @pytest.mark.asyncio
    async def test_amazon_issued_certificates_are_never_matched(self, backend, clients):
        """Test that only imported certificates are matched."""
        acm = clients.client("acm")
        acm.get_paginator.return_value.paginate.return_value = [
            {"CertificateSummaryList": [summary(ARN_US_EAST_1, "example.com")]}
        ]
        acm.describe_certificate.return_value = detail(
            ARN_US_EAST_1, ["example.com"], cert_type="AMAZON_ISSUED"
        )

        assert await backend.find_matching_certificates(["example.com"]) == []

    @pytest.mark.asyncio
    async def test_describe_failure_is_a_non_match(
        self, backend, clients, client_error
    ):
        """Test that a certificate that cannot be described is skipped."""
        other = "arn:aws:acm:us-east-1:123456789012:certificate/xyz"
        acm = clients.client("acm")
        acm.get_paginator.return_value.paginate.return_value = [
            {
                "CertificateSummaryList": [
                    summary(ARN_US_EAST_1, "example.com"),
                    summary(other, "example.com"),
                ]
            }
        ]

        def describe(CertificateArn):
            if CertificateArn == ARN_US_EAST_1:
                raise client_error("ResourceNotFoundException", "DescribeCertificate")
            return detail(other, ["example.com"])

        acm.describe_certificate.side_effect = describe

        assert await backend.find_matching_certificates(["example.com"]) == [other]

    @pytest.mark.asyncio
    async def test_no_candidates_skips_describe(self, backend, clients):
        """Test that nothing is described when no primary domain matches."""
        acm = clients.client("acm")
        acm.get_paginator.return_value.paginate.return_value = [{}]

        assert await backend.find_matching_certificates(["example.com"]) == []
        acm.describe_certificate.assert_not_called()

    @pytest.mark.asyncio
    async def test_empty_domain_list_rejected(self, backend, clients):
        """Test that matching without domain names is an internal error."""
        with pytest.raises(InternalError):
            await backend.find_matching_certificates([])

        assert clients.created == {}


# ===========================
# Import / reimport
# ===========================


class TestSaveCertificate:
    """Tests for the import/reimport decision and execution."""

    @pytest.mark.asyncio
    async def test_force_new_import_skips_matching(self, backend, clients, material):
        """Test that ForceNewImport imports without listing."""
        acm = clients.client("acm")
        acm.import_certificate.return_value = {"CertificateArn": ARN_US_EAST_1}

        results = await backend.save_certificate(
            AcmStorage(force_new_import=True), material
        )

        assert results == [AcmStorageResult(certificate_arn=ARN_US_EAST_1)]
        acm.get_paginator.assert_not_called()
        call_kwargs = acm.import_certificate.call_args[1]
        assert "CertificateArn" not in call_kwargs
        assert call_kwargs["Certificate"] == material.certificate_pem.encode()
        assert call_kwargs["CertificateChain"] == material.chain_pem.encode()
        assert call_kwargs["PrivateKey"] == material.private_key_pem.encode()

    @pytest.mark.asyncio
    async def test_new_import_failure_is_one_error(
        self, backend, clients, material, client_error
    ):
        """Test that a failed import is reported as one error."""
        acm = clients.client("acm")
        acm.import_certificate.side_effect = client_error(
            "LimitExceededException", "ImportCertificate"
        )

        results = await backend.save_certificate(
            AcmStorage(force_new_import=True), material
        )

        assert len(results) == 1
        assert isinstance(results[0], StorageError)
        assert results[0].message.startswith("Failed to import certificate:")
        acm.import_certificate.assert_called_once()

    @pytest.mark.asyncio
    async def test_new_import_without_arn_is_one_error(
        self, backend, clients, material
    ):
        """Test that an import response without an ARN is an error."""
        clients.client("acm").import_certificate.return_value = {}

        results = await backend.save_certificate(
            AcmStorage(force_new_import=True), material
        )

        assert len(results) == 1
        assert isinstance(results[0], StorageError)

    @pytest.mark.asyncio
    async def test_no_match_imports_once(self, backend, clients, material):
        """Test importing a new certificate when nothing matches."""
        acm = clients.client("acm")
        acm.get_paginator.return_value.paginate.return_value = [
            {"CertificateSummaryList": []}
        ]
        acm.import_certificate.return_value = {"CertificateArn": ARN_US_EAST_1}

        results = await backend.save_certificate(AcmStorage(), material)

        assert results == [AcmStorageResult(certificate_arn=ARN_US_EAST_1)]
        acm.import_certificate.assert_called_once()
        assert "CertificateArn" not in acm.import_certificate.call_args[1]

    @pytest.mark.asyncio
    async def test_matches_are_reimported(self, backend, clients, material):
        """Test reimporting over a matching certificate."""
        acm = clients.client("acm")
        acm.get_paginator.return_value.paginate.return_value = [
            {"CertificateSummaryList": [summary(ARN_US_EAST_1, "example.com")]}
        ]
        acm.describe_certificate.return_value = detail(
            ARN_US_EAST_1, ["example.com", "www.example.com"]
        )
        acm.import_certificate.return_value = {"CertificateArn": ARN_US_EAST_1}

        results = await backend.save_certificate(AcmStorage(), material)

        assert results == [AcmStorageResult(certificate_arn=ARN_US_EAST_1)]
        acm.import_certificate.assert_called_once()
        assert acm.import_certificate.call_args[1]["CertificateArn"] == ARN_US_EAST_1

    @pytest.mark.asyncio
    async def test_listing_failure_does_not_import(
        self, backend, clients, material, client_error
    ):
        """Test that a listing failure is reported and nothing is imported."""
        acm = clients.client("acm")
        acm.get_paginator.return_value.paginate.side_effect = client_error(
            "ThrottlingException", "ListCertificates"
        )

        messages = []
        sink_id = logger.add(
            lambda message: messages.append(message.record["message"]), level="ERROR"
        )
        try:
            results = await backend.save_certificate(AcmStorage(), material)
        finally:
            logger.remove(sink_id)

        assert len(results) == 1
        assert isinstance(results[0], StorageError)
        assert "Failed to list ACM certificates, import skipped" in results[0].message
        assert "ThrottlingException" in results[0].message
        assert any("import skipped" in message for message in messages)
        acm.import_certificate.assert_not_called()

    @pytest.mark.asyncio
    async def test_single_explicit_arn_reimported_in_its_region(self, backend, clients):
        """Test reimporting a single ARN in its own region."""
        from certkeeper.models.material import CertificateMaterial

        material = CertificateMaterial(
            domain_names=["example.com"],
            certificate_pem="cert",
            chain_pem="chain",
            fullchain_pem="certchain",
            private_key_pem="key",
        )
        acm = clients.client("acm", "us-east-1")
        acm.import_certificate.return_value = {"CertificateArn": ARN_US_EAST_1}

        results = await backend.save_certificate(
            AcmStorage(certificate_arns=[ARN_US_EAST_1]), material
        )

        assert results == [AcmStorageResult(certificate_arn=ARN_US_EAST_1)]
        acm.import_certificate.assert_called_once_with(
            CertificateArn=ARN_US_EAST_1,
            Certificate=b"cert",
            CertificateChain=b"chain",
            PrivateKey=b"key",
        )
        acm.get_paginator.assert_not_called()
        assert list(clients.created) == [("acm", "us-east-1")]

    @pytest.mark.asyncio
    async def test_reimport_fans_out_to_each_region(self, backend, clients, material):
        """Test that each ARN is reimported with a client for its region."""
        arns = [ARN_US_EAST_1, ARN_EU_WEST_1, ARN_AP_SOUTHEAST_2]
        for arn in arns:
            region = arn.split(":")[3]
            clients.client("acm", region).import_certificate.return_value = {
                "CertificateArn": arn
            }

        results = await backend.save_certificate(
            AcmStorage(certificate_arns=arns), material
        )

        assert results == [AcmStorageResult(certificate_arn=arn) for arn in arns]
        for arn in arns:
            acm = clients.created[("acm", arn.split(":")[3])]
            acm.import_certificate.assert_called_once()
            assert acm.import_certificate.call_args[1]["CertificateArn"] == arn

    @pytest.mark.asyncio
    async def test_reimport_failures_are_attributed_and_isolated(
        self, backend, clients, material, client_error
    ):
        """Test that a failed reimport names its ARN and spares the others."""
        second_us_arn = "arn:aws:acm:us-east-1:123456789012:certificate/zzz"
        arns = [ARN_US_EAST_1, ARN_EU_WEST_1, second_us_arn]

        clients.client("acm", "eu-west-1").import_certificate.side_effect = (
            client_error("ResourceNotFoundException", "ImportCertificate")
        )

        def import_us(**kwargs):
            if kwargs["CertificateArn"] == second_us_arn:
                raise EndpointConnectionError(endpoint_url="https://acm.us-east-1")
            return {"CertificateArn": kwargs["CertificateArn"]}

        clients.client("acm", "us-east-1").import_certificate.side_effect = import_us

        results = await backend.save_certificate(
            AcmStorage(certificate_arns=arns), material
        )

        assert len(results) == 3
        assert results[0] == AcmStorageResult(certificate_arn=ARN_US_EAST_1)
        assert isinstance(results[1], StorageError)
        assert ARN_EU_WEST_1 in results[1].message
        assert "ResourceNotFoundException" in results[1].message
        assert isinstance(results[2], StorageError)
        assert second_us_arn in results[2].message
        assert clients.created[("acm", "us-east-1")].import_certificate.call_count == 2

    @pytest.mark.asyncio
    async def test_reimport_of_unvalidated_arn_is_internal_error(
        self, backend, clients, material
    ):
        """Test that reimporting an unvalidated ARN is an internal error."""
        with pytest.raises(InternalError):
            await backend.reimport_certificate(["not-an-arn"], material)

        assert clients.created == {}
