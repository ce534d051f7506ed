"""
Infrastructure layer: errors raised by remote service clients.
"""
from typing import Optional


class ExternalServiceError(Exception):
    """A remote dependency was unreachable or returned a non-success status."""

    def __init__(
        self,
        message: str,
        status_code: int = 502,
        service: str = "external",
        upstream_status: Optional[int] = None,
    ):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.service = service
        self.upstream_status = upstream_status


class ServiceNotConfiguredError(ExternalServiceError):
    """Credentials for a remote dependency are missing."""

    def __init__(self, service: str):
        super().__init__(
            f"{service} credentials are not configured",
            status_code=503,
            service=service,
        )
