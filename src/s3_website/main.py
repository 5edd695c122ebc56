"""Command line entry point for s3-website."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from typing import Any, Sequence
from urllib.parse import urlparse

from . import logging as structured_logging
from .builders.config import persist_settings, resolve_config
from .builders.provider import create_provider_from_config
from .constants import CONFIG_FILE_NAME, EXIT_INTERRUPTED
from .deploy import deploy, sync
from .exceptions import ProvisionError, S3WebsiteError
from .models import DeploymentReport, website_url
from .tracing import initialize_tracing

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="s3-website",
        description="Create an S3 website or deploy content to an existing one. "
        "AWS credentials come from the environment or ~/.aws/credentials.",
    )
    parser.add_argument("--config", default=CONFIG_FILE_NAME, help="Config file [%(default)s].")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log structured events to stderr.")
    commands = parser.add_subparsers(dest="command", required=True)

    create = commands.add_parser("create", help="Create and configure an S3 website.")
    create.add_argument("domain", nargs="?")
    create.add_argument("-r", "--region", help="Region [us-east-1].")
    create.add_argument("-i", "--index", help="Index document [index.html].")
    create.add_argument("-e", "--error", help="Error document.")
    create.add_argument("-t", "--routes", help="Path to routing rules file.")
    create.add_argument("--json", action="store_true", help="Output JSON.")
    create.add_argument("--cert-id", dest="certId", help="The ID of your cert in IAM.")
    create.add_argument("-c", "--cert", help="Path to the public key certificate.")
    create.add_argument("-k", "--key", help="Path to the private key.")
    create.add_argument("-n", "--cert-name", dest="certName", help="A unique name for the server certificate.")
    create.add_argument("--intermediate", help="Path to the concatenated intermediate certificates.")
    create.add_argument("-u", "--upload-dir", dest="uploadDir", help="Upload contents of directory to the site.")
    create.add_argument("-l", "--lock-config", dest="lockConfig", action="store_true",
                        help="Verify only; never change an existing site or the config file.")
    create.add_argument("--concurrency", type=int, help="Parallel transfers [6].")

    deploy_cmd = commands.add_parser("deploy", help="Push the contents of a directory to an existing website.")
    deploy_cmd.add_argument("uploadDir", nargs="?")
    deploy_cmd.add_argument("-r", "--region", help="Region [us-east-1].")
    deploy_cmd.add_argument("-d", "--domain", help="Name of bucket.")
    deploy_cmd.add_argument("-l", "--lock-config", dest="lockConfig", action="store_true",
                            help="Never change the config file.")
    deploy_cmd.add_argument("--json", action="store_true", help="Output JSON.")
    deploy_cmd.add_argument("--concurrency", type=int, help="Parallel transfers [6].")

    return parser


def print_deploy_results(report: DeploymentReport) -> None:
    """Print one line per changed file, then the site URL."""
    for error in report.errors:
        print(f"Error uploading: {error.item} ({error.cause})")
    for path in report.removed:
        print(f"Removed file: {path}")
    for path in report.uploaded:
        print(f"Uploaded file: {path}")
    for path in report.updated:
        print(f"Updated file: {path}")

    if report.is_empty:
        print("There was nothing to push")
    elif report.site_url:
        print(f"Updated site: {report.site_url}")


def _overrides(args: argparse.Namespace) -> dict[str, Any]:
    ignored = {"command", "config", "verbose", "json"}
    return {key: value for key, value in vars(args).items() if key not in ignored}


def _finish(args: argparse.Namespace, report: DeploymentReport) -> int:
    """Persist the settings of a finished run and pick the exit code."""
    if report.interrupted:
        print("Interrupted; files not yet pushed were skipped", file=sys.stderr)
        return EXIT_INTERRUPTED
    persist_settings(_overrides(args), path=args.config)
    return 0 if report.ok else 2


def run_create(args: argparse.Namespace) -> int:
    config = resolve_config(_overrides(args), path=args.config)
    report = deploy(config)

    if args.json:
        print(json.dumps(report.to_dict()))
        return _finish(args, report)

    print("Successfully created your website.\n")
    print(f"URL:\n  {report.site_url}\n")
    print(f"DNS:\n  {config.domain}. CNAME {urlparse(report.site_url or '').hostname}.\n")
    if report.cert_id:
        print(f"Certificate ID:\n  {report.cert_id}\n")
    if report.provisioning is not None and report.provisioning.drift:
        drifted = ", ".join(stage.value for stage in report.provisioning.drift)
        print(f"Locked configuration differs from the site at: {drifted}\n")
    print_deploy_results(report)
    return _finish(args, report)


def run_deploy(args: argparse.Namespace) -> int:
    config = resolve_config(_overrides(args), path=args.config)
    if not config.upload_dir:
        raise S3WebsiteError("an upload directory is required")

    report = sync(
        config.bucket,
        config.upload_dir,
        config.concurrency,
        create_provider_from_config(config),
        max_retries=config.max_retries,
        include_hidden=config.include_hidden,
        exclude=config.exclude,
        site_url=website_url(config.bucket, config.region),
    )
    if args.json:
        print(json.dumps(report.to_dict()))
    else:
        print_deploy_results(report)
    return _finish(args, report)


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.verbose:
        structured_logging.setup_structured_logging()
    initialize_tracing()

    try:
        if args.command == "create":
            return run_create(args)
        return run_deploy(args)
    except KeyboardInterrupt:
        print("Interrupted", file=sys.stderr)
        return EXIT_INTERRUPTED
    except ProvisionError as e:
        if getattr(args, "json", False):
            print(json.dumps({"code": e.reason, "stage": e.stage.value, "message": str(e)}), file=sys.stderr)
        else:
            print(f"Error: {e}", file=sys.stderr)
        return 1
    except S3WebsiteError as e:
        if getattr(args, "json", False):
            print(json.dumps({"code": type(e).__name__, "message": str(e)}), file=sys.stderr)
        else:
            print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
