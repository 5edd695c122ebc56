"""Certificate and CDN interface used by the provisioner."""

from __future__ import annotations

from typing import Protocol


class CertificateClient(Protocol):
    """Protocol defining certificate upload and domain binding."""

    def find_server_certificate(self, name: str) -> str | None:
        """Return the ID of the server certificate with this name, if uploaded."""
        ...

    def upload_server_certificate(
        self,
        name: str,
        cert: str,
        key: str,
        chain: str | None = None,
    ) -> str:
        """Upload a server certificate and return its ID."""
        ...

    def get_domain_certificate(self, domain: str) -> str | None:
        """Return the ID of the certificate currently serving the domain, if any."""
        ...

    def attach_certificate_to_domain(self, cert_id: str, domain: str, origin: str) -> str:
        """Serve ``domain`` from ``origin`` with the certificate.

        Returns:
            Domain name of the distribution serving the site
        """
        ...
