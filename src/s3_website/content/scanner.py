"""Local tree scanner: enumerate files under the upload directory with fingerprints."""

from __future__ import annotations

import fnmatch
import hashlib
import logging
import os
from typing import Iterable, Iterator

from ..constants import HASH_CHUNK_SIZE
from ..exceptions import ScanError
from ..models import LocalFileRecord

logger = logging.getLogger(__name__)


def fingerprint_file(path: str) -> str:
    """Return the MD5 hex digest of a file's bytes.

    MD5 is what S3 reports as the ETag of a single-part upload, so local and
    remote fingerprints compare directly.
    """
    digest = hashlib.md5(usedforsecurity=False)
    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(HASH_CHUNK_SIZE), b""):
            digest.update(chunk)
    return digest.hexdigest()


def _is_hidden(relative_path: str) -> bool:
    return any(part.startswith(".") for part in relative_path.split("/"))


def _is_excluded(relative_path: str, exclude: Iterable[str]) -> bool:
    return any(fnmatch.fnmatch(relative_path, pattern) for pattern in exclude)


def scan_local_tree(
    root: str,
    include_hidden: bool = True,
    exclude: Iterable[str] = (),
) -> Iterator[LocalFileRecord]:
    """Enumerate every regular file under ``root``.

    The root is checked immediately; the records themselves are produced
    lazily. Symbolic links are neither followed nor recorded.

    Args:
        root: Directory to scan
        include_hidden: Include files with a path component starting with "."
        exclude: Glob patterns matched against the root-relative path

    Returns:
        Iterator of LocalFileRecord with forward-slash, root-relative paths

    Raises:
        ScanError: If the root is missing or not a directory, or a file
            cannot be read while iterating
    """
    if not os.path.exists(root):
        raise ScanError(root, "directory does not exist")
    if not os.path.isdir(root):
        raise ScanError(root, "not a directory")

    return _walk(os.path.abspath(root), include_hidden, tuple(exclude))


def _walk(root: str, include_hidden: bool, exclude: tuple[str, ...]) -> Iterator[LocalFileRecord]:
    def on_error(error: OSError) -> None:
        raise ScanError(error.filename or root, error.strerror or str(error))

    for dirpath, dirnames, filenames in os.walk(root, onerror=on_error, followlinks=False):
        dirnames.sort()
        for filename in sorted(filenames):
            full_path = os.path.join(dirpath, filename)
            if os.path.islink(full_path) or not os.path.isfile(full_path):
                continue

            relative_path = os.path.relpath(full_path, root).replace(os.sep, "/")
            if not include_hidden and _is_hidden(relative_path):
                continue
            if _is_excluded(relative_path, exclude):
                logger.debug(f"Excluded {relative_path}")
                continue

            try:
                fingerprint = fingerprint_file(full_path)
                size = os.path.getsize(full_path)
            except OSError as e:
                raise ScanError(full_path, e.strerror or str(e)) from e

            yield LocalFileRecord(path=relative_path, fingerprint=fingerprint, size=size)
