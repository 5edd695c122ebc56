"""Diff engine: decide which keys to upload, delete or leave alone."""

from __future__ import annotations

from typing import Iterable

from ..models import DiffPlan, LocalFileRecord, RemoteObjectRecord


def diff(local: Iterable[LocalFileRecord], remote: Iterable[RemoteObjectRecord]) -> DiffPlan:
    """Compare local files against remote objects.

    Fingerprint equality is the only thing that makes a key unchanged; equal
    sizes mean nothing.
    """
    local_fingerprints = {record.path: record.fingerprint.lower() for record in local}
    remote_fingerprints = {record.key: record.fingerprint.lower() for record in remote}

    to_upload: set[str] = set()
    unchanged: set[str] = set()
    new_keys: set[str] = set()

    for key, fingerprint in local_fingerprints.items():
        if key not in remote_fingerprints:
            to_upload.add(key)
            new_keys.add(key)
        elif remote_fingerprints[key] != fingerprint:
            to_upload.add(key)
        else:
            unchanged.add(key)

    to_delete = set(remote_fingerprints) - set(local_fingerprints)

    return DiffPlan(
        to_upload=frozenset(to_upload),
        to_delete=frozenset(to_delete),
        unchanged=frozenset(unchanged),
        new_keys=frozenset(new_keys),
    )
