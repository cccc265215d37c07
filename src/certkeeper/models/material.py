"""Certificate material handed to storage backends."""

from dataclasses import dataclass, field

from certkeeper.core.exceptions import InternalError


@dataclass(frozen=True)
class CertificateMaterial:
    """
    A freshly issued certificate and its components.

    PEM contents are opaque to certkeeper and are never parsed.

    Attributes:
        domain_names: Domains covered by the certificate; the first entry is
            the primary domain
        certificate_pem: Leaf certificate
        chain_pem: Intermediate chain
        fullchain_pem: Leaf certificate followed by the intermediate chain
        private_key_pem: Private key
    """

    domain_names: tuple[str, ...]
    certificate_pem: str = field(repr=False)
    chain_pem: str = field(repr=False)
    fullchain_pem: str = field(repr=False)
    private_key_pem: str = field(repr=False)

    def __post_init__(self) -> None:
        # Accept any sequence; keep an immutable copy
        object.__setattr__(self, "domain_names", tuple(self.domain_names))

    @property
    def primary_domain(self) -> str:
        """First requested domain name."""
        if not self.domain_names:
            raise InternalError("Certificate material has no domain names")
        return self.domain_names[0]
