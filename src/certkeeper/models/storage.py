"""
Backend configuration models.

A storage configuration is a tagged union on the JSON key "Type":

    {"Type": "Acm", "CertificateArns": [str], "ForceNewImport": bool}
    {"Type": "S3", "Bucket": str, "Prefix": str}
    {"Type": "SsmParameter", "Path": str}

Configurations are immutable. Validation returns an updated copy
(normalized path, resolved bucket region) instead of mutating the input.
"""

from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator


class _StorageModel(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")


class AcmStorage(_StorageModel):
    """
    Store a certificate in AWS Certificate Manager (ACM).

    Attributes:
        certificate_arns: ARNs of existing certificates to reimport over.
            Cannot be combined with force_new_import.
        force_new_import: Always import a new certificate. Otherwise the
            certificate is reimported over certificate_arns, or over existing
            certificates with the same domain names, or imported new if none
            match.
    """

    type: Literal["Acm"] = Field(default="Acm", alias="Type")
    certificate_arns: list[str] | None = Field(
        default=None,
        alias="CertificateArns",
        description="ARNs of certificates to reimport over",
    )
    force_new_import: bool = Field(
        default=False,
        alias="ForceNewImport",
        description="Always import a new certificate",
    )


class S3Storage(_StorageModel):
    """
    Store a certificate in Amazon S3.

    Attributes:
        bucket: Destination bucket
        prefix: Prepended verbatim to every key ("/" is not appended)
        resolved_region: Bucket region, set by validation only
    """

    type: Literal["S3"] = Field(default="S3", alias="Type")
    bucket: str = Field(alias="Bucket", description="Destination bucket")
    prefix: str = Field(default="", alias="Prefix", description="Key prefix")
    resolved_region: str | None = Field(default=None, exclude=True)

    @model_validator(mode="before")
    @classmethod
    def drop_derived_fields(cls, values: Any) -> Any:
        """Discard resolved_region from input; only validation may set it."""
        if isinstance(values, dict):
            values = {
                key: value
                for key, value in values.items()
                if key not in ("resolved_region", "ResolvedRegion")
            }
        return values


class SsmParameterStorage(_StorageModel):
    """
    Store a certificate in AWS Systems Manager Parameter Store.

    Attributes:
        path: Parameter path, must start with "/"
    """

    type: Literal["SsmParameter"] = Field(default="SsmParameter", alias="Type")
    path: str = Field(alias="Path", description="Parameter path prefix")


StorageConfig = Annotated[
    AcmStorage | S3Storage | SsmParameterStorage,
    Field(discriminator="type"),
]
