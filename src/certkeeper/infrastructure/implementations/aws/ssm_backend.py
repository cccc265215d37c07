"""
AWS Systems Manager Parameter Store storage backend.

Writes each certificate component to its own parameter:

    {path}/Certificate/{domain}/Certificate
    {path}/Certificate/{domain}/Chain
    {path}/Certificate/{domain}/FullChain
    {path}/Certificate/{domain}/PrivateKey   (SecureString)

The four components form one bundle: if any write fails the whole save
fails.
"""

from typing import Any

from certkeeper.core.exceptions import ConfigurationError, UnexpectedResponseError
from certkeeper.core.logging import logger
from certkeeper.infrastructure.clients import AWSClientFactory
from certkeeper.infrastructure.concurrency import gather_outcomes, run_blocking
from certkeeper.infrastructure.implementations.aws.errors import require_all
from certkeeper.infrastructure.repositories.storage_backend import StorageBackend
from certkeeper.models.material import CertificateMaterial
from certkeeper.models.results import SsmParameterStorageResult, StorageResult
from certkeeper.models.storage import SsmParameterStorage
from certkeeper.utils.parameter_path import sanitize_parameter_path

COMPONENT_CERTIFICATE = "Certificate"
COMPONENT_CHAIN = "Chain"
COMPONENT_FULL_CHAIN = "FullChain"
COMPONENT_PRIVATE_KEY = "PrivateKey"

PARAMETER_TYPE_STRING = "String"
PARAMETER_TYPE_SECURE_STRING = "SecureString"


class AWSSsmParameterStorageBackend(StorageBackend[SsmParameterStorage]):
    """SSM Parameter Store implementation of StorageBackend."""

    def __init__(self, clients: AWSClientFactory):
        """
        Initialize the SSM backend.

        Args:
            clients: Regional client factory; parameters are written in its
                default region
        """
        self.clients = clients

    async def validate(self, config: SsmParameterStorage) -> SsmParameterStorage:
        """
        Validate and normalize the parameter path.

        Args:
            config: SSM configuration

        Returns:
            Configuration with the normalized path

        Raises:
            ConfigurationError: If the path is invalid
        """
        path = sanitize_parameter_path(config.path)
        if path is None:
            raise ConfigurationError(
                f"Invalid SSM parameter path: {config.path}",
                field="Path",
                value=config.path,
            )

        return config.model_copy(update={"path": path})

    def parameter_name(
        self, config: SsmParameterStorage, domain: str, component: str
    ) -> str:
        """Full parameter name for one certificate component."""
        return f"{config.path}/Certificate/{domain}/{component}"

    async def save_certificate(
        self, config: SsmParameterStorage, material: CertificateMaterial
    ) -> list[StorageResult]:
        """
        Write all four certificate components concurrently.

        Args:
            config: Validated SSM configuration
            material: Certificate and its components

        Returns:
            A single SsmParameterStorageResult

        Raises:
            StorageWriteError: If any component could not be written
        """
        ssm = self.clients.client("ssm")
        domain = material.primary_domain

        components = [
            (COMPONENT_CERTIFICATE, material.certificate_pem, False),
            (COMPONENT_CHAIN, material.chain_pem, False),
            (COMPONENT_FULL_CHAIN, material.fullchain_pem, False),
            (COMPONENT_PRIVATE_KEY, material.private_key_pem, True),
        ]

        outcomes = await gather_outcomes(
            (
                component,
                self.write_component(
                    ssm,
                    self.parameter_name(config, domain, component),
                    domain,
                    component,
                    value,
                    secure,
                ),
            )
            for component, value, secure in components
        )
        written = require_all(outcomes, f"SSM parameters for {domain}")

        return [
            SsmParameterStorageResult(
                certificate_parameter_name=written[COMPONENT_CERTIFICATE][0],
                chain_parameter_name=written[COMPONENT_CHAIN][0],
                full_chain_parameter_name=written[COMPONENT_FULL_CHAIN][0],
                private_key_parameter_name=written[COMPONENT_PRIVATE_KEY][0],
                certificate_arn=written[COMPONENT_CERTIFICATE][1],
                chain_arn=written[COMPONENT_CHAIN][1],
                full_chain_arn=written[COMPONENT_FULL_CHAIN][1],
                private_key_arn=written[COMPONENT_PRIVATE_KEY][1],
            )
        ]

    async def write_component(
        self,
        ssm: Any,
        name: str,
        domain: str,
        component: str,
        value: str,
        secure: bool,
    ) -> tuple[str, str]:
        """
        Write one parameter and read it back to obtain its ARN.

        PutParameter does not return the ARN, so the parameter is fetched
        after writing.

        Args:
            ssm: SSM client
            name: Parameter name
            domain: Primary domain (for the description)
            component: Component name (for the description)
            value: Parameter value
            secure: Store as SecureString

        Returns:
            (parameter name, parameter ARN)

        Raises:
            ClientError, BotoCoreError: If writing or reading back fails
            UnexpectedResponseError: If the read-back lacks the parameter or ARN
        """
        logger.info(f"Writing SSM parameter {name}")

        try:
            await run_blocking(
                ssm.put_parameter,
                Name=name,
                Description=f"SSL {component} for {domain}",
                Value=value,
                Type=PARAMETER_TYPE_SECURE_STRING if secure else PARAMETER_TYPE_STRING,
                Overwrite=True,
            )
        except Exception as e:
            logger.error(f"Failed to write SSM parameter {name}: {e}")
            raise

        logger.info(f"SSM parameter {name} written successfully")

        try:
            response = await run_blocking(ssm.get_parameter, Name=name)
        except Exception as e:
            logger.error(f"Unable to get ARN for parameter {name}: {e}")
            raise

        parameter = response.get("Parameter")
        if not parameter:
            logger.error(
                f"Unable to get ARN for parameter {name}: no parameter returned"
            )
            raise UnexpectedResponseError(
                f"Unable to get ARN for parameter {name}: no parameter returned"
            )

        arn = parameter.get("ARN")
        if not arn:
            logger.error(f"Unable to get ARN for parameter {name}: no ARN returned")
            raise UnexpectedResponseError(
                f"Unable to get ARN for parameter {name}: no ARN returned"
            )

        return name, arn
