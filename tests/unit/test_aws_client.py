"""Unit tests for the AWS S3 object store."""

from __future__ import annotations

import json
from unittest.mock import MagicMock

import pytest
from botocore.exceptions import ClientError

from s3_website.models import RemoteObjectRecord
from s3_website.services.aws.client import AWSProvider


def client_error(code: str, operation: str) -> ClientError:
    return ClientError({"Error": {"Code": code}}, operation)


class TestAWSProvider:
    """Test the boto3-backed object store."""

    @pytest.fixture
    def provider(self) -> AWSProvider:
        """Create a test provider."""
        provider = AWSProvider(
            region="us-east-1",
            access_key="test-access-key",
            secret_key="test-secret-key",
        )
        provider.client = MagicMock()
        return provider

    def test_list_objects_pages(self, provider: AWSProvider) -> None:
        """Test listing walks every page and normalizes ETags."""
        paginator = provider.client.get_paginator.return_value
        paginator.paginate.return_value = [
            {"Contents": [{"Key": "index.html", "ETag": '"ABC123"', "Size": 10}]},
            {"Contents": [{"Key": "css/site.css", "ETag": '"def456"', "Size": 4}]},
            {"KeyCount": 0},
        ]

        records = list(provider.list_objects("site"))

        assert records == [
            RemoteObjectRecord(key="index.html", fingerprint="abc123", size=10),
            RemoteObjectRecord(key="css/site.css", fingerprint="def456", size=4),
        ]
        provider.client.get_paginator.assert_called_once_with("list_objects_v2")
        paginator.paginate.assert_called_once_with(Bucket="site")

    def test_list_objects_error(self, provider: AWSProvider) -> None:
        """Test listing errors propagate."""
        provider.client.get_paginator.return_value.paginate.side_effect = client_error("AccessDenied", "ListObjectsV2")
        with pytest.raises(ClientError):
            list(provider.list_objects("site"))

    def test_put_object_headers(self, provider: AWSProvider) -> None:
        """Test uploading sends content type and MD5."""
        provider.put_object("site", "index.html", b"<h1>", content_type="text/html", content_md5="abc==")
        provider.client.put_object.assert_called_once_with(
            Bucket="site", Key="index.html", Body=b"<h1>", ContentType="text/html", ContentMD5="abc=="
        )

    def test_put_object_without_headers(self, provider: AWSProvider) -> None:
        provider.put_object("site", "blob", b"x")
        provider.client.put_object.assert_called_once_with(Bucket="site", Key="blob", Body=b"x")

    def test_delete_object(self, provider: AWSProvider) -> None:
        provider.delete_object("site", "old.html")
        provider.client.delete_object.assert_called_once_with(Bucket="site", Key="old.html")

    def test_bucket_exists(self, provider: AWSProvider) -> None:
        """Test bucket existence checks."""
        assert provider.bucket_exists("site") is True

        provider.client.head_bucket.side_effect = client_error("404", "HeadBucket")
        assert provider.bucket_exists("site") is False

        provider.client.head_bucket.side_effect = client_error("403", "HeadBucket")
        assert provider.bucket_exists("site") is False

        provider.client.head_bucket.side_effect = client_error("500", "HeadBucket")
        with pytest.raises(ClientError):
            provider.bucket_exists("site")

    def test_create_bucket_us_east_1(self, provider: AWSProvider) -> None:
        """Test us-east-1 buckets are created without a location constraint."""
        provider.create_bucket("site", "us-east-1")
        provider.client.create_bucket.assert_called_once_with(Bucket="site")

    def test_create_bucket_other_region(self, provider: AWSProvider) -> None:
        provider.create_bucket("site", "eu-west-1")
        provider.client.create_bucket.assert_called_once_with(
            Bucket="site", CreateBucketConfiguration={"LocationConstraint": "eu-west-1"}
        )

    def test_get_bucket_website(self, provider: AWSProvider) -> None:
        """Test reading the website configuration."""
        provider.client.get_bucket_website.return_value = {
            "IndexDocument": {"Suffix": "index.html"},
            "ResponseMetadata": {"HTTPStatusCode": 200},
        }
        assert provider.get_bucket_website("site") == {"IndexDocument": {"Suffix": "index.html"}}

    def test_get_bucket_website_not_configured(self, provider: AWSProvider) -> None:
        provider.client.get_bucket_website.side_effect = client_error("NoSuchWebsiteConfiguration", "GetBucketWebsite")
        assert provider.get_bucket_website("site") is None

    def test_put_bucket_website(self, provider: AWSProvider) -> None:
        """Test writing the website configuration."""
        rules = [{"Redirect": {"HostName": "example.org"}}]
        provider.put_bucket_website("site", "index.html", "404.html", rules)
        provider.client.put_bucket_website.assert_called_once_with(
            Bucket="site",
            WebsiteConfiguration={
                "IndexDocument": {"Suffix": "index.html"},
                "ErrorDocument": {"Key": "404.html"},
                "RoutingRules": rules,
            },
        )

    def test_put_bucket_website_minimal(self, provider: AWSProvider) -> None:
        provider.put_bucket_website("site", "index.html")
        provider.client.put_bucket_website.assert_called_once_with(
            Bucket="site", WebsiteConfiguration={"IndexDocument": {"Suffix": "index.html"}}
        )

    def test_bucket_policy_round_trip(self, provider: AWSProvider) -> None:
        """Test policies are sent and read as JSON."""
        policy = {"Version": "2012-10-17", "Statement": []}
        provider.put_bucket_policy("site", policy)
        provider.client.put_bucket_policy.assert_called_once_with(Bucket="site", Policy=json.dumps(policy))

        provider.client.get_bucket_policy.return_value = {"Policy": json.dumps(policy)}
        assert provider.get_bucket_policy("site") == policy

    def test_get_bucket_policy_missing(self, provider: AWSProvider) -> None:
        provider.client.get_bucket_policy.side_effect = client_error("NoSuchBucketPolicy", "GetBucketPolicy")
        assert provider.get_bucket_policy("site") is None

    def test_get_bucket_policy_error(self, provider: AWSProvider) -> None:
        provider.client.get_bucket_policy.side_effect = client_error("AccessDenied", "GetBucketPolicy")
        with pytest.raises(ClientError):
            provider.get_bucket_policy("site")

    def test_public_access_block(self, provider: AWSProvider) -> None:
        """Test reading and removing the public access block."""
        provider.client.get_public_access_block.return_value = {
            "PublicAccessBlockConfiguration": {"BlockPublicPolicy": True}
        }
        assert provider.get_public_access_block("site") == {"BlockPublicPolicy": True}

        provider.client.get_public_access_block.side_effect = client_error(
            "NoSuchPublicAccessBlockConfiguration", "GetPublicAccessBlock"
        )
        assert provider.get_public_access_block("site") is None

        provider.delete_public_access_block("site")
        provider.client.delete_public_access_block.assert_called_once_with(Bucket="site")
