"""IAM server certificate and CloudFront distribution client."""

from __future__ import annotations

import logging
from typing import Any

import boto3
from botocore.exceptions import ClientError

from ...constants import CLOUDFRONT_CERT_PATH
from .client import record_api_call

logger = logging.getLogger(__name__)


def build_distribution_config(domain: str, origin: str, cert_id: str) -> dict[str, Any]:
    """Build a CloudFront distribution config serving ``domain`` from a website endpoint."""
    origin_id = f"S3-Website-{origin}"
    return {
        "CallerReference": f"s3-website-{domain}",
        "Aliases": {"Quantity": 1, "Items": [domain]},
        "DefaultRootObject": "",
        "Origins": {
            "Quantity": 1,
            "Items": [
                {
                    "Id": origin_id,
                    "DomainName": origin,
                    "CustomOriginConfig": {
                        "HTTPPort": 80,
                        "HTTPSPort": 443,
                        # Website endpoints only speak plain HTTP
                        "OriginProtocolPolicy": "http-only",
                    },
                }
            ],
        },
        "DefaultCacheBehavior": {
            "TargetOriginId": origin_id,
            "ViewerProtocolPolicy": "redirect-to-https",
            "ForwardedValues": {"QueryString": False, "Cookies": {"Forward": "none"}},
            "TrustedSigners": {"Enabled": False, "Quantity": 0},
            "MinTTL": 0,
        },
        "Comment": f"s3-website {domain}",
        "Enabled": True,
        "ViewerCertificate": viewer_certificate(cert_id),
    }


def viewer_certificate(cert_id: str) -> dict[str, Any]:
    return {
        "IAMCertificateId": cert_id,
        "SSLSupportMethod": "sni-only",
        "MinimumProtocolVersion": "TLSv1.2_2021",
    }


class AWSCertificateProvider:
    """Uploads server certificates to IAM and binds them through CloudFront."""

    def __init__(
        self,
        access_key: str | None = None,
        secret_key: str | None = None,
        session_token: str | None = None,
    ) -> None:
        """Initialize IAM and CloudFront clients.

        Both services are global and always addressed through us-east-1.
        """
        session_kwargs = {
            "aws_access_key_id": access_key,
            "aws_secret_access_key": secret_key,
            "aws_session_token": session_token,
            "region_name": "us-east-1",
        }
        self.iam_client = boto3.client("iam", **session_kwargs)
        self.cloudfront_client = boto3.client("cloudfront", **session_kwargs)

    def find_server_certificate(self, name: str) -> str | None:
        """Return the ID of a server certificate by name."""
        try:
            with record_api_call("iam", "get_server_certificate"):
                response = self.iam_client.get_server_certificate(ServerCertificateName=name)
        except ClientError as e:
            if e.response.get("Error", {}).get("Code") == "NoSuchEntity":
                return None
            logger.error(f"Failed to look up server certificate {name}: {e}")
            raise
        return response["ServerCertificate"]["ServerCertificateMetadata"]["ServerCertificateId"]

    def upload_server_certificate(
        self,
        name: str,
        cert: str,
        key: str,
        chain: str | None = None,
    ) -> str:
        """Upload a server certificate under the CloudFront path."""
        params: dict[str, Any] = {
            "Path": CLOUDFRONT_CERT_PATH,
            "ServerCertificateName": name,
            "CertificateBody": cert,
            "PrivateKey": key,
        }
        if chain:
            params["CertificateChain"] = chain
        try:
            with record_api_call("iam", "upload_server_certificate"):
                response = self.iam_client.upload_server_certificate(**params)
        except ClientError as e:
            if e.response.get("Error", {}).get("Code") == "EntityAlreadyExists":
                logger.info(f"Server certificate {name} already exists, reusing it")
                existing = self.find_server_certificate(name)
                if existing:
                    return existing
            logger.error(f"Failed to upload server certificate {name}: {e.response.get('Error', {}).get('Code')}")
            raise
        cert_id = response["ServerCertificateMetadata"]["ServerCertificateId"]
        logger.info(f"Uploaded server certificate {name} ({cert_id})")
        return cert_id

    def find_distribution(self, domain: str) -> dict[str, Any] | None:
        """Find the distribution whose aliases include the domain."""
        paginator = self.cloudfront_client.get_paginator("list_distributions")
        with record_api_call("cloudfront", "list_distributions"):
            for page in paginator.paginate():
                for summary in page.get("DistributionList", {}).get("Items", []):
                    aliases = summary.get("Aliases", {}).get("Items", [])
                    if domain in aliases:
                        return summary
        return None

    def get_domain_certificate(self, domain: str) -> str | None:
        """Return the IAM certificate ID the domain's distribution serves."""
        distribution = self.find_distribution(domain)
        if distribution is None:
            return None
        return distribution.get("ViewerCertificate", {}).get("IAMCertificateId")

    def attach_certificate_to_domain(self, cert_id: str, domain: str, origin: str) -> str:
        """Create or update the domain's distribution to use the certificate."""
        distribution = self.find_distribution(domain)
        if distribution is None:
            config = build_distribution_config(domain, origin, cert_id)
            try:
                with record_api_call("cloudfront", "create_distribution"):
                    response = self.cloudfront_client.create_distribution(DistributionConfig=config)
            except ClientError as e:
                logger.error(f"Failed to create distribution for {domain}: {e}")
                raise
            created = response["Distribution"]
            logger.info(f"Created distribution {created['Id']} for {domain}")
            return created["DomainName"]

        distribution_id = distribution["Id"]
        try:
            with record_api_call("cloudfront", "get_distribution_config"):
                response = self.cloudfront_client.get_distribution_config(Id=distribution_id)
            config = response["DistributionConfig"]
            if config.get("ViewerCertificate", {}).get("IAMCertificateId") != cert_id:
                config["ViewerCertificate"] = viewer_certificate(cert_id)
                with record_api_call("cloudfront", "update_distribution"):
                    self.cloudfront_client.update_distribution(
                        Id=distribution_id,
                        IfMatch=response["ETag"],
                        DistributionConfig=config,
                    )
                logger.info(f"Bound certificate {cert_id} to distribution {distribution_id}")
        except ClientError as e:
            logger.error(f"Failed to update distribution {distribution_id}: {e}")
            raise
        return distribution["DomainName"]
