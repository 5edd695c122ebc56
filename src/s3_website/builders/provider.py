"""Builder for object store and certificate clients."""

from __future__ import annotations

import os

from ..models import Config
from ..services.aws.certificates import AWSCertificateProvider
from ..services.aws.client import AWSProvider


def create_provider_from_config(config: Config) -> AWSProvider:
    """Create the object store client for the website's bucket.

    Credentials come from the standard AWS chain; a non-AWS endpoint may
    instead supply ``S3_WEBSITE_ACCESS_KEY`` and ``S3_WEBSITE_SECRET_KEY``.
    """
    return AWSProvider(
        region=config.region,
        endpoint=config.endpoint_url,
        access_key=os.getenv("S3_WEBSITE_ACCESS_KEY"),
        secret_key=os.getenv("S3_WEBSITE_SECRET_KEY"),
        path_style=config.endpoint_url is not None,
        max_pool_connections=max(10, config.concurrency),
    )


def create_certificate_provider(config: Config) -> AWSCertificateProvider | None:
    """Create the certificate client when the website asks for a certificate."""
    if not config.wants_certificate:
        return None
    return AWSCertificateProvider()
