"""
Storage result models.

A save returns a list of results, one per write target. In JSON the list
is an array whose elements are tagged by "Type", except errors, which carry
no tag:

    [
        {"Type": "Acm", "CertificateArn": "arn:aws:acm:..."},
        {"Error": "Failed to reimport certificate arn:aws:acm:...: ..."}
    ]
"""

from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Discriminator, Field, Tag, TypeAdapter


class _ResultModel(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)


class AcmStorageResult(_ResultModel):
    """Certificate stored in ACM."""

    type: Literal["Acm"] = Field(default="Acm", alias="Type")
    certificate_arn: str = Field(alias="CertificateArn")


class S3StorageResult(_ResultModel):
    """
    Certificate stored in S3.

    Attributes:
        bucket: Bucket holding the objects
        certificate: Key of the leaf certificate
        chain: Key of the intermediate chain
        full_chain: Key of the concatenated certificate and chain
        private_key: Key of the private key
    """

    type: Literal["S3"] = Field(default="S3", alias="Type")
    bucket: str = Field(alias="Bucket")
    certificate: str = Field(alias="Certificate")
    chain: str = Field(alias="Chain")
    full_chain: str = Field(alias="FullChain")
    private_key: str = Field(alias="PrivateKey")


class SsmParameterStorageResult(_ResultModel):
    """Certificate stored in SSM Parameter Store: parameter names and ARNs."""

    type: Literal["SsmParameter"] = Field(default="SsmParameter", alias="Type")
    certificate_parameter_name: str = Field(alias="CertificateParameterName")
    chain_parameter_name: str = Field(alias="ChainParameterName")
    full_chain_parameter_name: str = Field(alias="FullChainParameterName")
    private_key_parameter_name: str = Field(alias="PrivateKeyParameterName")
    certificate_arn: str = Field(alias="CertificateArn")
    chain_arn: str = Field(alias="ChainArn")
    full_chain_arn: str = Field(alias="FullChainArn")
    private_key_arn: str = Field(alias="PrivateKeyArn")


class StorageError(_ResultModel):
    """A write target that failed; reported alongside successful results."""

    message: str = Field(alias="Error")


def _result_kind(value: Any) -> str:
    if isinstance(value, dict):
        return value.get("Type", "Error")
    return getattr(value, "type", "Error")


StorageResult = Annotated[
    Annotated[AcmStorageResult, Tag("Acm")]
    | Annotated[S3StorageResult, Tag("S3")]
    | Annotated[SsmParameterStorageResult, Tag("SsmParameter")]
    | Annotated[StorageError, Tag("Error")],
    Discriminator(_result_kind),
]

_results_adapter: TypeAdapter[list[StorageResult]] = TypeAdapter(list[StorageResult])


def dump_results(results: list[StorageResult]) -> list[dict[str, Any]]:
    """
    Serialize results to their JSON representation.

    Args:
        results: Results from one or more saves

    Returns:
        JSON-compatible list of dictionaries
    """
    return _results_adapter.dump_python(results, mode="json", by_alias=True)


def parse_results(raw: list[dict[str, Any]]) -> list[StorageResult]:
    """
    Parse results from their JSON representation.

    Args:
        raw: JSON array as produced by dump_results

    Returns:
        List of result models
    """
    return _results_adapter.validate_python(raw)
