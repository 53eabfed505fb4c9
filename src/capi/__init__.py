"""capi public surface."""

from capi.capability_uri import (
    CapabilityToken,
    CapabilityURI,
    is_capability_uri,
    parse_capability_uri,
    secret_preview,
)
from capi.client import CertificateManagerClient, MediaClient, MembraneClient, ServiceClient
from capi.errors import (
    CapabilityNotFoundError,
    CapabilityURIError,
    CapiError,
    NotFoundError,
    ProvisioningError,
    ServiceRequestError,
    ServiceUnavailableError,
)

__all__ = [
    "CapiError",
    "CapabilityNotFoundError",
    "CapabilityURIError",
    "NotFoundError",
    "ProvisioningError",
    "ServiceRequestError",
    "ServiceUnavailableError",
    "CapabilityToken",
    "CapabilityURI",
    "parse_capability_uri",
    "is_capability_uri",
    "secret_preview",
    "ServiceClient",
    "MembraneClient",
    "CertificateManagerClient",
    "MediaClient",
]
