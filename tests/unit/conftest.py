"""Shared fixtures: in-memory object store and certificate client."""

from __future__ import annotations

import hashlib
import threading
from typing import Any, Callable

import pytest
from botocore.exceptions import ClientError

from s3_website.models import RemoteObjectRecord


def client_error(code: str, operation: str = "Operation") -> ClientError:
    return ClientError({"Error": {"Code": code, "Message": code}}, operation)


class FakeObjectStore:
    """In-memory bucket store that records every mutating call.

    ``failures`` maps an operation name (optionally ``name:key``) to a list
    of exceptions raised, one per call, before the call succeeds.
    """

    def __init__(self, page_size: int = 1000) -> None:
        self.page_size = page_size
        self.buckets: dict[str, dict[str, bytes]] = {}
        self.websites: dict[str, dict[str, Any]] = {}
        self.policies: dict[str, dict[str, Any]] = {}
        self.access_blocks: dict[str, dict[str, bool]] = {}
        self.calls: list[tuple[Any, ...]] = []
        self.failures: dict[str, list[BaseException]] = {}
        self.foreign_buckets: set[str] = set()
        self.pages_served = 0
        self.on_put: Callable[[str], None] | None = None
        self._lock = threading.Lock()

    def add_object(self, bucket: str, key: str, body: bytes) -> None:
        self.buckets.setdefault(bucket, {})[key] = body

    def fail(self, operation: str, *errors: BaseException) -> None:
        self.failures.setdefault(operation, []).extend(errors)

    def _maybe_fail(self, operation: str, key: str | None = None) -> None:
        with self._lock:
            for name in ((f"{operation}:{key}",) if key else ()) + (operation,):
                pending = self.failures.get(name)
                if pending:
                    raise pending.pop(0)

    def _record(self, *call: Any) -> None:
        with self._lock:
            self.calls.append(call)

    def mutations(self) -> list[tuple[Any, ...]]:
        read_only = {"list_objects", "head_bucket", "get_bucket_website", "get_bucket_policy", "get_public_access_block"}
        return [call for call in self.calls if call[0] not in read_only]

    def list_objects(self, bucket: str):
        self._record("list_objects", bucket)
        keys = sorted(self.buckets.get(bucket, {}))
        for start in range(0, max(len(keys), 1), self.page_size):
            self._maybe_fail("list_objects")
            self.pages_served += 1
            for key in keys[start:start + self.page_size]:
                body = self.buckets[bucket][key]
                yield RemoteObjectRecord(key=key, fingerprint=hashlib.md5(body).hexdigest(), size=len(body))

    def put_object(self, bucket, key, body, content_type=None, content_md5=None) -> None:
        self._record("put_object", bucket, key, content_type, content_md5)
        if self.on_put is not None:
            self.on_put(key)
        self._maybe_fail("put_object", key)
        with self._lock:
            self.buckets.setdefault(bucket, {})[key] = body

    def delete_object(self, bucket, key) -> None:
        self._record("delete_object", bucket, key)
        self._maybe_fail("delete_object", key)
        with self._lock:
            self.buckets.get(bucket, {}).pop(key, None)

    def bucket_exists(self, name) -> bool:
        self._record("head_bucket", name)
        self._maybe_fail("head_bucket")
        return name in self.buckets

    def create_bucket(self, name, region) -> None:
        self._record("create_bucket", name, region)
        self._maybe_fail("create_bucket")
        if name in self.foreign_buckets:
            raise client_error("BucketAlreadyExists", "CreateBucket")
        if name in self.buckets:
            raise client_error("BucketAlreadyOwnedByYou", "CreateBucket")
        self.buckets[name] = {}

    def get_bucket_website(self, name):
        self._record("get_bucket_website", name)
        self._maybe_fail("get_bucket_website")
        website = self.websites.get(name)
        return dict(website) if website is not None else None

    def put_bucket_website(self, name, index_document, error_document=None, routing_rules=None) -> None:
        self._record("put_bucket_website", name, index_document, error_document, routing_rules)
        self._maybe_fail("put_bucket_website")
        website: dict[str, Any] = {"IndexDocument": {"Suffix": index_document}}
        if error_document:
            website["ErrorDocument"] = {"Key": error_document}
        if routing_rules:
            website["RoutingRules"] = routing_rules
        self.websites[name] = website

    def get_bucket_policy(self, name):
        self._record("get_bucket_policy", name)
        self._maybe_fail("get_bucket_policy")
        return self.policies.get(name)

    def put_bucket_policy(self, name, policy) -> None:
        self._record("put_bucket_policy", name, policy)
        self._maybe_fail("put_bucket_policy")
        if self.access_blocks.get(name, {}).get("BlockPublicPolicy"):
            raise client_error("AccessDenied", "PutBucketPolicy")
        self.policies[name] = policy

    def get_public_access_block(self, name):
        self._record("get_public_access_block", name)
        return self.access_blocks.get(name)

    def delete_public_access_block(self, name) -> None:
        self._record("delete_public_access_block", name)
        self.access_blocks.pop(name, None)


class FakeCertificateClient:
    """In-memory IAM certificate store and domain bindings."""

    def __init__(self) -> None:
        self.certificates: dict[str, str] = {}
        self.bindings: dict[str, str] = {}
        self.calls: list[tuple[Any, ...]] = []

    def find_server_certificate(self, name):
        self.calls.append(("find_server_certificate", name))
        return self.certificates.get(name)

    def upload_server_certificate(self, name, cert, key, chain=None):
        self.calls.append(("upload_server_certificate", name, cert, key, chain))
        cert_id = f"ASCA{len(self.certificates) + 1:04d}"
        self.certificates[name] = cert_id
        return cert_id

    def get_domain_certificate(self, domain):
        self.calls.append(("get_domain_certificate", domain))
        return self.bindings.get(domain)

    def attach_certificate_to_domain(self, cert_id, domain, origin):
        self.calls.append(("attach_certificate_to_domain", cert_id, domain, origin))
        self.bindings[domain] = cert_id
        return "d111111abcdef8.cloudfront.net"


@pytest.fixture
def store() -> FakeObjectStore:
    return FakeObjectStore()


@pytest.fixture
def certs() -> FakeCertificateClient:
    return FakeCertificateClient()


@pytest.fixture
def no_sleep():
    with pytest.MonkeyPatch.context() as mp:
        sleeps: list[float] = []

        def record(delay, cancel_event=None):
            sleeps.append(delay)
            return cancel_event is not None and cancel_event.is_set()

        mp.setattr("s3_website.utils.retry.wait_before_retry", record)
        yield sleeps


def write_tree(root, files: dict[str, bytes]) -> None:
    """Create ``files`` (forward-slash relative paths) under ``root``."""
    for relative_path, body in files.items():
        path = root.joinpath(*relative_path.split("/"))
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(body)
