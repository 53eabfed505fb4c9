"""CLI and client error types."""

from __future__ import annotations


class CapiError(RuntimeError):
    """Base capi error."""

    def to_dict(self) -> dict:
        return {"name": type(self).__name__, "message": str(self)}


class ServiceUnavailableError(CapiError):
    """Capability service could not be reached."""


class ServiceRequestError(ServiceUnavailableError):
    """Capability service returned a structured error response."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        error_code: str | None = None,
        body: object | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.error_code = error_code
        self.body = body

    def to_dict(self) -> dict:
        payload = super().to_dict()
        payload["statusCode"] = self.status_code
        if self.error_code is not None:
            payload["code"] = self.error_code
        if self.body is not None:
            payload["body"] = self.body
        return payload


class CapabilityURIError(CapiError, ValueError):
    """Capability URI failed to parse."""


class CapabilityNotFoundError(CapiError):
    """No capability available for the requested operation."""

    def __init__(self, *, service: str, name: str, profile: str) -> None:
        super().__init__(f'No {service} "{name}" capability found for profile "{profile}"')
        self.service = service
        self.name = name
        self.profile = profile


class NotFoundError(CapiError):
    """Remote lookup matched nothing."""


class ProvisioningError(CapiError):
    """A provisioning workflow step failed."""

    def __init__(self, message: str, *, step: str, cause: BaseException | None = None) -> None:
        super().__init__(message)
        self.step = step
        self.cause = cause

    def to_dict(self) -> dict:
        payload = super().to_dict()
        payload["step"] = self.step
        return payload
