"""AWS S3 client implementation."""

from __future__ import annotations

import json
import logging
import time
from contextlib import contextmanager
from typing import Any, Iterator

import boto3
from botocore.config import Config as BotoConfig
from botocore.exceptions import ClientError

from ... import metrics
from ...models import RemoteObjectRecord

logger = logging.getLogger(__name__)


@contextmanager
def record_api_call(api_type: str, operation: str) -> Iterator[None]:
    """Record the result and duration of one API call."""
    start_time = time.time()
    try:
        yield
        metrics.api_call_total.labels(api_type=api_type, operation=operation, result="success").inc()
    except Exception:
        metrics.api_call_total.labels(api_type=api_type, operation=operation, result="failed").inc()
        raise
    finally:
        metrics.api_call_duration_seconds.labels(api_type=api_type, operation=operation).observe(
            time.time() - start_time
        )


class AWSProvider:
    """AWS S3 object store implementation."""

    def __init__(
        self,
        region: str,
        endpoint: str | None = None,
        access_key: str | None = None,
        secret_key: str | None = None,
        session_token: str | None = None,
        path_style: bool = False,
        max_pool_connections: int = 10,
    ) -> None:
        """Initialize AWS S3 provider.

        Credentials default to the standard boto3 chain (environment,
        ``~/.aws/credentials``, instance profile).

        Args:
            region: AWS region
            endpoint: Optional endpoint URL for S3-compatible stores
            access_key: Optional access key ID
            secret_key: Optional secret access key
            session_token: Optional session token for temporary credentials
            path_style: Use path-style addressing
            max_pool_connections: HTTP connection pool size, at least the sync concurrency
        """
        self.endpoint = endpoint
        self.region = region
        self.path_style = path_style

        # Retries are handled per item by the sync engine
        config = BotoConfig(
            signature_version="s3v4",
            s3={"addressing_style": "path" if path_style else "auto"},
            retries={"max_attempts": 1, "mode": "standard"},
            max_pool_connections=max_pool_connections,
        )

        self.client = boto3.client(
            "s3",
            endpoint_url=endpoint,
            region_name=region,
            aws_access_key_id=access_key,
            aws_secret_access_key=secret_key,
            aws_session_token=session_token,
            config=config,
        )

    def list_objects(self, bucket: str) -> Iterator[RemoteObjectRecord]:
        """Yield every object in the bucket."""
        paginator = self.client.get_paginator("list_objects_v2")
        try:
            with record_api_call("s3", "list_objects"):
                for page in paginator.paginate(Bucket=bucket):
                    for obj in page.get("Contents", []):
                        yield RemoteObjectRecord(
                            key=obj["Key"],
                            fingerprint=obj.get("ETag", "").strip('"').lower(),
                            size=obj.get("Size", 0),
                        )
        except ClientError as e:
            logger.error(f"Failed to list objects in bucket {bucket}: {e}")
            raise

    def put_object(
        self,
        bucket: str,
        key: str,
        body: bytes,
        content_type: str | None = None,
        content_md5: str | None = None,
    ) -> None:
        """Upload or replace one object."""
        params: dict[str, Any] = {"Bucket": bucket, "Key": key, "Body": body}
        if content_type:
            params["ContentType"] = content_type
        if content_md5:
            params["ContentMD5"] = content_md5
        try:
            with record_api_call("s3", "put_object"):
                self.client.put_object(**params)
            logger.debug(f"Uploaded object: {key}")
        except ClientError as e:
            logger.error(f"Failed to upload {key} to bucket {bucket}: {e}")
            raise

    def delete_object(self, bucket: str, key: str) -> None:
        """Delete one object."""
        try:
            with record_api_call("s3", "delete_object"):
                self.client.delete_object(Bucket=bucket, Key=key)
            logger.debug(f"Deleted object: {key}")
        except ClientError as e:
            logger.error(f"Failed to delete {key} from bucket {bucket}: {e}")
            raise

    def bucket_exists(self, name: str) -> bool:
        """Check if bucket exists and is accessible to the caller.

        A bucket owned by someone else answers 403 and is reported as absent;
        creating it then fails with BucketAlreadyExists.
        """
        try:
            with record_api_call("s3", "head_bucket"):
                self.client.head_bucket(Bucket=name)
            return True
        except ClientError as e:
            code = e.response.get("Error", {}).get("Code")
            if code in ("404", "NoSuchBucket", "403", "Forbidden"):
                return False
            logger.error(f"Failed to check bucket {name}: {e}")
            raise

    def create_bucket(self, name: str, region: str) -> None:
        """Create a bucket in the region."""
        create_params: dict[str, Any] = {"Bucket": name}
        # us-east-1 rejects an explicit location constraint
        if region and region != "us-east-1":
            create_params["CreateBucketConfiguration"] = {"LocationConstraint": region}
        try:
            with record_api_call("s3", "create_bucket"):
                self.client.create_bucket(**create_params)
            logger.info(f"Created bucket {name} in {region}")
        except ClientError as e:
            logger.error(f"Failed to create bucket {name}: {e}")
            raise

    def get_bucket_website(self, name: str) -> dict[str, Any] | None:
        """Get bucket website configuration."""
        try:
            with record_api_call("s3", "get_bucket_website"):
                response = self.client.get_bucket_website(Bucket=name)
        except ClientError as e:
            if e.response.get("Error", {}).get("Code") == "NoSuchWebsiteConfiguration":
                return None
            logger.error(f"Failed to get website configuration for bucket {name}: {e}")
            raise
        config: dict[str, Any] = {}
        for field in ("IndexDocument", "ErrorDocument", "RoutingRules", "RedirectAllRequestsTo"):
            if field in response:
                config[field] = response[field]
        return config

    def put_bucket_website(
        self,
        name: str,
        index_document: str,
        error_document: str | None = None,
        routing_rules: list[dict[str, Any]] | None = None,
    ) -> None:
        """Set bucket website configuration."""
        website_config: dict[str, Any] = {"IndexDocument": {"Suffix": index_document}}
        if error_document:
            website_config["ErrorDocument"] = {"Key": error_document}
        if routing_rules:
            website_config["RoutingRules"] = routing_rules
        try:
            with record_api_call("s3", "put_bucket_website"):
                self.client.put_bucket_website(Bucket=name, WebsiteConfiguration=website_config)
            logger.info(f"Set website configuration for bucket {name}")
        except ClientError as e:
            logger.error(f"Failed to set website configuration for bucket {name}: {e}")
            raise

    def get_bucket_policy(self, name: str) -> dict[str, Any] | None:
        """Get bucket policy.

        Returns:
            Policy document dict if policy exists, None if no policy is set
        """
        try:
            with record_api_call("s3", "get_bucket_policy"):
                response = self.client.get_bucket_policy(Bucket=name)
            return json.loads(response["Policy"])
        except ClientError as e:
            if e.response.get("Error", {}).get("Code") == "NoSuchBucketPolicy":
                return None
            logger.error(f"Failed to get policy for bucket {name}: {e}")
            raise

    def put_bucket_policy(self, name: str, policy: dict[str, Any]) -> None:
        """Set bucket policy."""
        try:
            with record_api_call("s3", "put_bucket_policy"):
                self.client.put_bucket_policy(Bucket=name, Policy=json.dumps(policy))
            logger.info(f"Set bucket policy for {name}")
        except ClientError as e:
            logger.error(f"Failed to set policy for bucket {name}: {e}")
            raise

    def get_public_access_block(self, name: str) -> dict[str, bool] | None:
        """Get public access block settings."""
        try:
            with record_api_call("s3", "get_public_access_block"):
                response = self.client.get_public_access_block(Bucket=name)
            return response.get("PublicAccessBlockConfiguration", {})
        except ClientError as e:
            if e.response.get("Error", {}).get("Code") == "NoSuchPublicAccessBlockConfiguration":
                return None
            logger.error(f"Failed to get public access block for bucket {name}: {e}")
            raise

    def delete_public_access_block(self, name: str) -> None:
        """Delete public access block settings."""
        try:
            with record_api_call("s3", "delete_public_access_block"):
                self.client.delete_public_access_block(Bucket=name)
            logger.info(f"Removed public access block from bucket {name}")
        except ClientError as e:
            logger.error(f"Failed to delete public access block for bucket {name}: {e}")
            raise
