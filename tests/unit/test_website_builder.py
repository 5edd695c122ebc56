"""Unit tests for website configuration builders."""

from __future__ import annotations

import json

import pytest

from s3_website.builders.website import (
    PUBLIC_READ_SID,
    blocks_public_policy,
    create_public_read_policy,
    grants_public_read,
    hosting_matches,
    load_routing_rules,
    public_read_statement,
    routing_rules_match,
)


class TestPublicReadPolicy:
    """Test bucket policy builders."""

    def test_statement(self) -> None:
        assert public_read_statement("example.com") == {
            "Sid": PUBLIC_READ_SID,
            "Effect": "Allow",
            "Principal": "*",
            "Action": "s3:GetObject",
            "Resource": "arn:aws:s3:::example.com/*",
        }

    def test_new_policy(self) -> None:
        policy = create_public_read_policy("example.com")
        assert policy["Version"] == "2012-10-17"
        assert policy["Statement"] == [public_read_statement("example.com")]
        assert grants_public_read(policy, "example.com")

    def test_replaces_old_statement_with_same_sid(self) -> None:
        current = {"Version": "2012-10-17", "Statement": [public_read_statement("old-name.com")]}
        policy = create_public_read_policy("example.com", current)
        assert policy["Statement"] == [public_read_statement("example.com")]

    @pytest.mark.parametrize(
        "statement,expected",
        [
            ({"Effect": "Allow", "Principal": "*", "Action": "s3:GetObject", "Resource": "arn:aws:s3:::b/*"}, True),
            ({"Effect": "Allow", "Principal": {"AWS": "*"}, "Action": ["s3:*"], "Resource": ["arn:aws:s3:::b/*"]}, True),
            ({"Effect": "Deny", "Principal": "*", "Action": "s3:GetObject", "Resource": "arn:aws:s3:::b/*"}, False),
            ({"Effect": "Allow", "Principal": "*", "Action": "s3:PutObject", "Resource": "arn:aws:s3:::b/*"}, False),
            ({"Effect": "Allow", "Principal": "*", "Action": "s3:GetObject", "Resource": "arn:aws:s3:::b/public/*"}, False),
            (
                {
                    "Effect": "Allow",
                    "Principal": "*",
                    "Action": "s3:GetObject",
                    "Resource": "arn:aws:s3:::b/*",
                    "Condition": {"IpAddress": {"aws:SourceIp": "10.0.0.0/8"}},
                },
                False,
            ),
        ],
    )
    def test_grants_public_read(self, statement, expected) -> None:
        assert grants_public_read({"Statement": [statement]}, "b") is expected

    def test_no_policy(self) -> None:
        assert grants_public_read(None, "b") is False

    def test_blocks_public_policy(self) -> None:
        assert blocks_public_policy(None) is False
        assert blocks_public_policy({"BlockPublicAcls": True}) is False
        assert blocks_public_policy({"BlockPublicPolicy": True}) is True
        assert blocks_public_policy({"RestrictPublicBuckets": True}) is True


class TestHosting:
    """Test website hosting comparisons."""

    def test_matches(self) -> None:
        current = {"IndexDocument": {"Suffix": "index.html"}, "ErrorDocument": {"Key": "404.html"}}
        assert hosting_matches(current, "index.html", "404.html")
        assert not hosting_matches(current, "index.html", None)
        assert not hosting_matches(current, "home.html", "404.html")

    def test_redirect_all_never_matches(self) -> None:
        assert not hosting_matches({"RedirectAllRequestsTo": {"HostName": "x"}}, "index.html", None)

    def test_no_configuration(self) -> None:
        assert not hosting_matches(None, "index.html", None)


class TestRoutingRules:
    """Test routing rule files."""

    def test_load(self, tmp_path) -> None:
        rules = [{"Redirect": {"HostName": "example.org", "HttpRedirectCode": "301"}}]
        path = tmp_path / "routes.json"
        path.write_text(json.dumps(rules))
        assert load_routing_rules(str(path)) == rules

    def test_rule_must_be_object(self, tmp_path) -> None:
        path = tmp_path / "routes.json"
        path.write_text('["redirect"]')
        with pytest.raises(ValueError, match="must be an object"):
            load_routing_rules(str(path))

    def test_condition_must_be_object(self, tmp_path) -> None:
        path = tmp_path / "routes.json"
        path.write_text('[{"Condition": "docs/", "Redirect": {}}]')
        with pytest.raises(ValueError, match="Condition"):
            load_routing_rules(str(path))

    def test_missing_file(self, tmp_path) -> None:
        with pytest.raises(OSError):
            load_routing_rules(str(tmp_path / "missing.json"))

    def test_match_ignores_key_order(self) -> None:
        current = [{"Redirect": {"HostName": "a", "Protocol": "https"}}]
        desired = [{"Redirect": {"Protocol": "https", "HostName": "a"}}]
        assert routing_rules_match(current, desired)
        assert routing_rules_match(None, [])
        assert not routing_rules_match(current, [])
