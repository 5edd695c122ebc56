"""Builders for the desired website hosting configuration."""

from __future__ import annotations

import json
from typing import Any

from ..constants import POLICY_VERSION

PUBLIC_READ_SID = "PublicReadGetObject"


def object_arn(bucket: str) -> str:
    return f"arn:aws:s3:::{bucket}/*"


def public_read_statement(bucket: str) -> dict[str, Any]:
    """Statement granting anonymous s3:GetObject on every object in the bucket."""
    return {
        "Sid": PUBLIC_READ_SID,
        "Effect": "Allow",
        "Principal": "*",
        "Action": "s3:GetObject",
        "Resource": object_arn(bucket),
    }


def _as_list(value: Any) -> list[Any]:
    if value is None:
        return []
    return value if isinstance(value, list) else [value]


def grants_public_read(policy: dict[str, Any] | None, bucket: str) -> bool:
    """Check whether a policy already allows anonymous reads of every object."""
    if not policy:
        return False
    for statement in _as_list(policy.get("Statement")):
        if statement.get("Effect") != "Allow" or "Condition" in statement:
            continue
        principal = statement.get("Principal")
        if principal != "*" and principal != {"AWS": "*"} and principal != {"AWS": ["*"]}:
            continue
        actions = _as_list(statement.get("Action"))
        if not any(action in ("s3:GetObject", "s3:*", "*") for action in actions):
            continue
        if object_arn(bucket) in _as_list(statement.get("Resource")):
            return True
    return False


def create_public_read_policy(bucket: str, current: dict[str, Any] | None = None) -> dict[str, Any]:
    """Return ``current`` with the public-read statement added.

    Statements already on the bucket are kept; an older public-read
    statement with the same Sid is replaced.
    """
    statements = [
        statement
        for statement in _as_list((current or {}).get("Statement"))
        if statement.get("Sid") != PUBLIC_READ_SID
    ]
    statements.append(public_read_statement(bucket))
    return {"Version": (current or {}).get("Version", POLICY_VERSION), "Statement": statements}


def blocks_public_policy(public_access_block: dict[str, bool] | None) -> bool:
    """Check whether the bucket's public access block would reject a public policy."""
    if not public_access_block:
        return False
    return bool(
        public_access_block.get("BlockPublicPolicy") or public_access_block.get("RestrictPublicBuckets")
    )


def hosting_matches(current: dict[str, Any] | None, index_document: str, error_document: str | None) -> bool:
    """Check whether a website configuration serves the desired documents."""
    if current is None or "RedirectAllRequestsTo" in current:
        return False
    current_index = current.get("IndexDocument", {}).get("Suffix")
    current_error = current.get("ErrorDocument", {}).get("Key")
    return current_index == index_document and current_error == error_document


def load_routing_rules(path: str) -> list[dict[str, Any]]:
    """Read and validate a routing-rule file.

    The file holds a JSON array of S3 routing rules; every rule needs a
    ``Redirect`` object and may carry a ``Condition`` object.

    Raises:
        ValueError: If the file is not valid JSON or a rule is malformed
        OSError: If the file cannot be read
    """
    with open(path, encoding="utf-8") as f:
        try:
            rules = json.load(f)
        except json.JSONDecodeError as e:
            raise ValueError(f"routing rules in {path} are not valid JSON: {e}") from e

    if not isinstance(rules, list):
        raise ValueError(f"routing rules in {path} must be a JSON array")
    for index, rule in enumerate(rules):
        if not isinstance(rule, dict):
            raise ValueError(f"routing rule {index} in {path} must be an object")
        if not isinstance(rule.get("Redirect"), dict):
            raise ValueError(f"routing rule {index} in {path} has no Redirect object")
        if "Condition" in rule and not isinstance(rule["Condition"], dict):
            raise ValueError(f"routing rule {index} in {path} has a Condition that is not an object")
        unknown = set(rule) - {"Condition", "Redirect"}
        if unknown:
            raise ValueError(f"routing rule {index} in {path} has unknown fields: {', '.join(sorted(unknown))}")
    return rules


def routing_rules_match(current: list[dict[str, Any]] | None, desired: list[dict[str, Any]]) -> bool:
    return json.dumps(current or [], sort_keys=True) == json.dumps(desired or [], sort_keys=True)
