"""Unit tests for client builders and tracing helpers."""

from __future__ import annotations

from unittest.mock import patch

from s3_website.builders.provider import create_certificate_provider, create_provider_from_config
from s3_website.models import Config
from s3_website.tracing import trace_span


class TestProviderBuilder:
    """Test object store and certificate client builders."""

    @patch("s3_website.services.aws.client.boto3.client")
    def test_aws_provider(self, mock_client, monkeypatch) -> None:
        monkeypatch.delenv("S3_WEBSITE_ACCESS_KEY", raising=False)
        monkeypatch.delenv("S3_WEBSITE_SECRET_KEY", raising=False)

        provider = create_provider_from_config(Config(domain="example.com", region="eu-west-1", concurrency=32))

        assert provider.region == "eu-west-1"
        assert provider.path_style is False
        _, kwargs = mock_client.call_args
        assert kwargs["region_name"] == "eu-west-1"
        assert kwargs["endpoint_url"] is None
        assert kwargs["aws_access_key_id"] is None
        assert kwargs["config"].max_pool_connections == 32

    @patch("s3_website.services.aws.client.boto3.client")
    def test_custom_endpoint(self, mock_client, monkeypatch) -> None:
        monkeypatch.setenv("S3_WEBSITE_ACCESS_KEY", "minio")
        monkeypatch.setenv("S3_WEBSITE_SECRET_KEY", "minio-secret")

        provider = create_provider_from_config(Config(domain="site", endpoint_url="http://localhost:9000"))

        assert provider.path_style is True
        _, kwargs = mock_client.call_args
        assert kwargs["endpoint_url"] == "http://localhost:9000"
        assert kwargs["aws_access_key_id"] == "minio"
        assert kwargs["aws_secret_access_key"] == "minio-secret"

    def test_no_certificate_provider_without_certificate(self) -> None:
        assert create_certificate_provider(Config(domain="example.com")) is None

    @patch("s3_website.services.aws.certificates.boto3.client")
    def test_certificate_provider(self, mock_client) -> None:
        provider = create_certificate_provider(Config(domain="example.com", cert_id="ASCA1"))

        assert provider is not None
        services = [call.args[0] for call in mock_client.call_args_list]
        assert services == ["iam", "cloudfront"]
        assert all(call.kwargs["region_name"] == "us-east-1" for call in mock_client.call_args_list)


class TestTraceSpan:
    """Test tracing when no tracer is configured."""

    def test_yields_none_without_tracer(self) -> None:
        with trace_span("sync", component="deploy") as span:
            assert span is None
