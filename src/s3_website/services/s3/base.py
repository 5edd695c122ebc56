"""Object store interface used by the sync engine and the provisioner."""

from __future__ import annotations

from typing import Any, Iterator, Protocol

from ...models import RemoteObjectRecord


class ObjectStore(Protocol):
    """Protocol defining the object store operations s3-website needs."""

    def list_objects(self, bucket: str) -> Iterator[RemoteObjectRecord]:
        """Yield every object in the bucket, following pagination."""
        ...

    def put_object(
        self,
        bucket: str,
        key: str,
        body: bytes,
        content_type: str | None = None,
        content_md5: str | None = None,
    ) -> None:
        """Upload or replace one object."""
        ...

    def delete_object(self, bucket: str, key: str) -> None:
        """Delete one object."""
        ...

    def bucket_exists(self, name: str) -> bool:
        """Check if a bucket exists and is owned by the caller."""
        ...

    def create_bucket(self, name: str, region: str) -> None:
        """Create a bucket in the given region."""
        ...

    def get_bucket_website(self, name: str) -> dict[str, Any] | None:
        """Get the website configuration, or None when hosting is not enabled."""
        ...

    def put_bucket_website(
        self,
        name: str,
        index_document: str,
        error_document: str | None = None,
        routing_rules: list[dict[str, Any]] | None = None,
    ) -> None:
        """Set the website configuration."""
        ...

    def get_bucket_policy(self, name: str) -> dict[str, Any] | None:
        """Get the bucket policy, or None when no policy is set."""
        ...

    def put_bucket_policy(self, name: str, policy: dict[str, Any]) -> None:
        """Set the bucket policy."""
        ...

    def get_public_access_block(self, name: str) -> dict[str, bool] | None:
        """Get the public access block settings, or None when none are set."""
        ...

    def delete_public_access_block(self, name: str) -> None:
        """Remove the public access block so a public policy can be attached."""
        ...
